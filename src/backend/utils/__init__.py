"""
Utils Module - Logging
======================

Modules:
    logger: Console, auth audit (logs/auth.jsonl) and error (logs/errors.jsonl)
        handlers with request context enrichment and credential redaction
"""
