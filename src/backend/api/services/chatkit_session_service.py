"""
ChatKit session service.

Issues, refreshes and verifies the client secrets that authorize the ChatKit
frontend to talk to this backend. The subject is always supplied by the
identity layer; this service never authenticates users itself.
"""

from __future__ import annotations

import contextlib

from dataclasses import dataclass

from api.middleware.exception_handlers import ClientSecretRejectedError
from core.chatkit_token import ChatKitTokenCodec, IssuedClientSecret, millis_to_iso8601
from utils.logger import logger


@dataclass(frozen=True, slots=True)
class ClientSecretStatus:
    expires_at_ms: int | None
    expires_at: str | None
    near_expiry: bool


class ChatKitSessionService:
    """Client secret lifecycle for authenticated subjects."""

    def __init__(self, codec: ChatKitTokenCodec):
        self.codec = codec

    def create_session(self, subject: str) -> IssuedClientSecret:
        """Issue a fresh client secret for ``subject``."""
        issued = self.codec.issue(subject)
        logger.log_token_event("issued", subject, expires_at=issued.expires_at)
        return issued

    def refresh_session(self, client_secret: str, subject: str) -> IssuedClientSecret:
        """Exchange a still-valid client secret for one with a new validity window.

        Raises:
            ClientSecretRejectedError: If the existing secret does not validate for ``subject``.
        """
        self.verify(client_secret, subject)
        issued = self.codec.issue(subject)
        logger.log_token_event("refreshed", subject, expires_at=issued.expires_at)
        return issued

    def verify(self, client_secret: str, subject: str) -> None:
        """Raise ClientSecretRejectedError unless ``client_secret`` is valid for ``subject``."""
        result = self.codec.validate(client_secret, subject)
        if result.reason is not None:
            logger.log_token_event("rejected", subject, reason=result.reason.value)
            raise ClientSecretRejectedError(result.reason)

    def describe(self, client_secret: str) -> ClientSecretStatus:
        """Advisory expiry information; does not check signature or subject."""
        expiry = self.codec.peek_expiry(client_secret)
        expires_at = None
        if expiry is not None:
            # Outside the datetime range the expiry is still reported in milliseconds
            with contextlib.suppress(OverflowError):
                expires_at = millis_to_iso8601(expiry)
        return ClientSecretStatus(
            expires_at_ms=expiry,
            expires_at=expires_at,
            near_expiry=self.codec.is_near_expiry(client_secret),
        )
