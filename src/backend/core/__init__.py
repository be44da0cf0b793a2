"""
Core Layer - Client Secret Codec and Configuration
==================================================

Modules:
    chatkit_token: Issue/validate ChatKit client secrets (HMAC-SHA256, stateless)
    constants: Token parameters, logging constants and Pydantic settings validation

Client Secret Codec (chatkit_token.py):
    Pure functions of the subject, the signing secret and the clock. The
    secret is injected at construction; the codec never reads the
    environment, so tests run with fixed secrets and a fake clock.

Configuration (constants.py):
    Settings load from environment variables and .env files, validated at
    startup. Production refuses the development signing secret.
"""
