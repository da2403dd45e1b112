"""
Test Suite

Contains unit tests for the route-spec engine and the bundled connectors.

Structure:
- tests/unit/: Tests for individual components (paths, schemas, sorting,
  request building, response mapping, HTTP collaborator, connectors)

HTTP traffic is faked; no test reaches a real exchange.

Uses pytest with pytest-asyncio for testing async functionality.
"""
