"""
ChatKit Auth Gateway - Client secret issuance for the ChatKit frontend
=======================================================================

FastAPI service that issues, refreshes and validates the signed client
secrets authorizing the ChatKit chat frontend. Users are authenticated by an
external identity provider; this service binds its subject to a short-lived,
stateless credential.

Modules:
    api: FastAPI routes, services and middleware
    core: Client secret codec and configuration constants
    models: Pydantic models for API requests, responses and errors
    utils: Logging

See Also:
    - DESIGN.md: Design decisions and the wire format of client secrets
"""
