"""
One-Time Code Service.

Issues and checks the 6-digit verification code that gates the final
step of sign-in.  The challenge lives only in memory on this instance;
it is never persisted and never logged.

Hardening over the unbounded reference behaviour is configurable:
``ttl_seconds`` and ``max_attempts`` of ``0`` disable expiry and the
attempt cap respectively.
"""

from __future__ import annotations

import hmac
import secrets
import threading
from datetime import datetime, timedelta, timezone
from enum import StrEnum
from typing import Callable, Optional

from portal.logger import StructuredLogger
from portal.models.auth_models import OtpChallenge
from portal.services.base_service import BaseService

_CODE_FLOOR: int = 100_000
_CODE_SPAN: int = 900_000  # codes are drawn from 100000..999999 inclusive


class OtpVerdict(StrEnum):
    """Outcome of checking an input against the issued challenge."""

    MATCH = "match"
    MISMATCH = "mismatch"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    NO_CHALLENGE = "no_challenge"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OtpService(BaseService):
    """Holds at most one outstanding challenge.

    Parameters
    ----------
    logger:
        Structured JSON logger.
    ttl_seconds:
        Lifetime of an issued code; ``0`` means no expiry.
    max_attempts:
        Wrong entries allowed before the challenge is discarded;
        ``0`` means unlimited retries.
    clock:
        Returns the current UTC time.  Injected in tests.
    """

    def __init__(
        self,
        logger: StructuredLogger,
        ttl_seconds: int = 600,
        max_attempts: int = 5,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        super().__init__(logger)
        self._ttl_seconds = ttl_seconds
        self._max_attempts = max_attempts
        self._clock = clock
        self._lock = threading.Lock()
        self._challenge: Optional[OtpChallenge] = None

    @staticmethod
    def generate_code() -> str:
        """Return a uniformly random 6-digit code in ``100000..999999``."""
        return str(secrets.randbelow(_CODE_SPAN) + _CODE_FLOOR)

    def issue(self, email: str) -> str:
        """Create a fresh challenge for *email*, replacing any previous one.

        Returns the code so the caller can hand it to the OTP channel.
        """
        code = self.generate_code()
        with self._lock:
            self._challenge = OtpChallenge(
                code=code,
                issued_for=email,
                issued_at=self._clock(),
            )
        self._logger.info(
            "Verification code issued.",
            extra={"event": "OTP_ISSUED", "email": email},
        )
        return code

    def verify(self, code: str) -> OtpVerdict:
        """Compare *code* with the outstanding challenge (exact match).

        A match, an expiry or an exhausted attempt budget discards the
        challenge; a mismatch within budget keeps it.
        """
        with self._lock:
            challenge = self._challenge
            if challenge is None:
                return OtpVerdict.NO_CHALLENGE

            if self._is_expired(challenge):
                self._challenge = None
                return OtpVerdict.EXPIRED

            if hmac.compare_digest(code.encode("utf-8"), challenge.code.encode("utf-8")):
                self._challenge = None
                return OtpVerdict.MATCH

            challenge.attempts += 1
            if self._max_attempts and challenge.attempts >= self._max_attempts:
                self._challenge = None
                self._logger.warning(
                    "Verification code discarded after %d wrong attempts.",
                    challenge.attempts,
                    extra={"event": "OTP_EXHAUSTED", "email": challenge.issued_for},
                )
                return OtpVerdict.EXHAUSTED

            return OtpVerdict.MISMATCH

    def discard(self) -> None:
        """Drop the outstanding challenge, if any."""
        with self._lock:
            self._challenge = None

    @property
    def has_challenge(self) -> bool:
        with self._lock:
            return self._challenge is not None

    @property
    def pending_email(self) -> Optional[str]:
        with self._lock:
            return self._challenge.issued_for if self._challenge else None

    def _is_expired(self, challenge: OtpChallenge) -> bool:
        if not self._ttl_seconds:
            return False
        age = self._clock() - challenge.issued_at
        return age >= timedelta(seconds=self._ttl_seconds)
