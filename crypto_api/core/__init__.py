"""
Core Package

Contains the exchange-agnostic engine:
- CryptoAPI: base class that turns ``set_<action>`` specs into callable actions
- RequestBuilder / ResponseMapper: interpret the request and response halves of a spec
- Schemas: Pydantic models the declarative specs are validated into
- HttpApiClient: aiohttp collaborator that performs the calls

Connectors only declare data; this layer makes every exchange behave the same.
"""
