"""
ChatKit client secret codec.

Issues and validates the self-contained bearer credential handed to the
ChatKit frontend:

    chatkit_<subject>_<issued_at_ms>_<expires_at_ms>_<signature>

The signature is the first 16 hex characters of
HMAC-SHA256(secret, "<subject>_<issued_at_ms>_<expires_at_ms>"). Nothing is
stored server-side; validity is recomputed on every call from the token, the
signing secret and the clock.

Subjects may contain the delimiter (identity provider ids look like
``user_2abc``), so the three trailing fields are split off from the right.
"""

from __future__ import annotations

import hmac
import re
import time

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from hashlib import sha256
from typing import TYPE_CHECKING, Any

from core.constants import (
    EXPIRY_WARNING_MS,
    SIGNATURE_HEX_LENGTH,
    TOKEN_DELIMITER,
    TOKEN_PREFIX,
    TOKEN_VALIDITY_MS,
)

if TYPE_CHECKING:
    from core.constants import Settings

#: Clock returning milliseconds since the Unix epoch.
Clock = Callable[[], int]

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_MILLIS_PATTERN = re.compile(r"-?[0-9]+")


class TokenFailureReason(str, Enum):
    """Why a client secret was rejected. Diagnostic only."""

    INVALID_FORMAT = "invalid_format"
    USER_MISMATCH = "user_mismatch"
    INVALID_TIMESTAMP = "invalid_timestamp"
    EXPIRED = "expired"
    INVALID_SIGNATURE = "invalid_signature"


@dataclass(frozen=True, slots=True)
class IssuedClientSecret:
    client_secret: str
    expires_at: str
    issued_at_ms: int
    expires_at_ms: int


@dataclass(frozen=True, slots=True)
class TokenValidation:
    valid: bool
    reason: TokenFailureReason | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.reason is None:
            return {"valid": self.valid}
        return {"valid": self.valid, "reason": self.reason.value}


_VALID = TokenValidation(valid=True)


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def millis_to_iso8601(value: int) -> str:
    """Format epoch milliseconds as ``YYYY-MM-DDTHH:MM:SS.sssZ``."""
    moment = _EPOCH + timedelta(milliseconds=value)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _split(token: Any) -> tuple[str, str, str, str] | None:
    """Split a token into (subject, issued_at, expires_at, signature) text fields."""
    if not isinstance(token, str):
        return None

    head = TOKEN_PREFIX + TOKEN_DELIMITER
    if not token.startswith(head):
        return None

    fields = token[len(head) :].rsplit(TOKEN_DELIMITER, 3)
    if len(fields) != 4 or not fields[0]:
        return None

    subject, issued_at, expires_at, signature = fields
    return subject, issued_at, expires_at, signature


def _parse_millis(value: str) -> int | None:
    if not _MILLIS_PATTERN.fullmatch(value):
        return None
    try:
        return int(value)
    except ValueError:
        # Longer than the interpreter allows for int conversion
        return None


def peek_expiry(token: Any) -> int | None:
    """Read the expiry of a token without checking its signature or subject.

    Advisory only (refresh warnings); never use the result to authorize.
    Returns None for anything that does not look like a client secret.
    """
    fields = _split(token)
    if fields is None:
        return None
    return _parse_millis(fields[2])


class ChatKitTokenCodec:
    """Issue and validate ChatKit client secrets.

    Args:
        secret: HMAC signing key shared by every process that validates tokens.
        validity_ms: Lifetime of newly issued secrets.
        expiry_warning_ms: How close to expiry a secret counts as near expiry.
        clock: Millisecond clock, injectable for tests.
    """

    def __init__(
        self,
        secret: str,
        *,
        validity_ms: int = TOKEN_VALIDITY_MS,
        expiry_warning_ms: int = EXPIRY_WARNING_MS,
        clock: Clock | None = None,
    ) -> None:
        if not secret:
            raise ValueError("signing secret must not be empty")
        self._secret = secret.encode("utf-8")
        self.validity_ms = validity_ms
        self.expiry_warning_ms = expiry_warning_ms
        self._clock = clock or now_ms

    @classmethod
    def from_settings(cls, settings: Settings, *, clock: Clock | None = None) -> ChatKitTokenCodec:
        return cls(
            settings.chatkit_signing_secret,
            validity_ms=settings.chatkit_token_validity_ms,
            expiry_warning_ms=settings.chatkit_expiry_warning_ms,
            clock=clock,
        )

    def sign(self, subject: str, issued_at_ms: int, expires_at_ms: int) -> str:
        payload = TOKEN_DELIMITER.join((subject, str(issued_at_ms), str(expires_at_ms)))
        digest = hmac.new(self._secret, payload.encode("utf-8"), sha256).hexdigest()
        return digest[:SIGNATURE_HEX_LENGTH]

    def issue(self, subject: str) -> IssuedClientSecret:
        """Issue a client secret for an already authenticated subject."""
        if not isinstance(subject, str) or not subject:
            raise ValueError("subject must be a non-empty string")

        issued_at = self._clock()
        expires_at = issued_at + self.validity_ms
        signature = self.sign(subject, issued_at, expires_at)
        client_secret = TOKEN_DELIMITER.join(
            (TOKEN_PREFIX, subject, str(issued_at), str(expires_at), signature)
        )
        return IssuedClientSecret(
            client_secret=client_secret,
            expires_at=millis_to_iso8601(expires_at),
            issued_at_ms=issued_at,
            expires_at_ms=expires_at,
        )

    def validate(self, token: Any, expected_subject: str) -> TokenValidation:
        """Validate a client secret for ``expected_subject``.

        Checks run in a fixed order (format, subject, timestamps, expiry,
        signature) and the first failure is reported. An expired token is
        reported as expired even when its signature is also wrong.
        """
        fields = _split(token)
        if fields is None:
            return TokenValidation(False, TokenFailureReason.INVALID_FORMAT)

        subject, issued_at_text, expires_at_text, signature = fields
        if subject != expected_subject:
            return TokenValidation(False, TokenFailureReason.USER_MISMATCH)

        issued_at = _parse_millis(issued_at_text)
        expires_at = _parse_millis(expires_at_text)
        if issued_at is None or expires_at is None:
            return TokenValidation(False, TokenFailureReason.INVALID_TIMESTAMP)

        if self._clock() > expires_at:
            return TokenValidation(False, TokenFailureReason.EXPIRED)

        expected = self.sign(subject, issued_at, expires_at)
        if not hmac.compare_digest(signature.encode("utf-8"), expected.encode("ascii")):
            return TokenValidation(False, TokenFailureReason.INVALID_SIGNATURE)

        return _VALID

    def peek_expiry(self, token: Any) -> int | None:
        return peek_expiry(token)

    def is_near_expiry(self, token: Any) -> bool:
        """True if the token is unreadable or within the warning window of expiry."""
        expiry = peek_expiry(token)
        if not expiry:
            return True
        return self._clock() > expiry - self.expiry_warning_ms
