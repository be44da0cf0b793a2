"""Pydantic models for API requests, responses and error envelopes."""
