"""
Exchange Connectors Package

Each exchange has its own subpackage containing one CryptoAPI subclass that
declares its actions as route specs. Connectors expose the same action
names and row shapes (``prices`` → ``{pair, last_price, ...}``), so callers
can switch exchanges without changing code.

Adding an exchange means adding a subpackage; the core is never modified.
"""
