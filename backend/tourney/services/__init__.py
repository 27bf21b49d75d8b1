"""
Services Layer - the fixture engine

Business logic that:
- Accepts domain inputs (scope IDs, participant lists, sessions)
- Returns domain outputs (Fixture rows, standings rows, bracket views)
- Raises FixtureEngineError subclasses instead of HTTP errors
- Does NOT depend on HTTP request/response objects
"""
