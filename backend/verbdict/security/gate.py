"""
Verification gate in front of admin login and anonymous export.

Every non-privileged check runs in the same order: ban check, required
fields, captcha digest, then (login only) the admin password.  Only a
completed comparison touches the attempt ledger; incomplete submissions and
requests from banned identities leave it alone.
"""

from __future__ import annotations

import hmac
import random
from typing import Optional, Union

from verbdict.core.settings import GuardConfig
from verbdict.security.attempts import AttemptLedger
from verbdict.security.ban import BanStatus, check_ban
from verbdict.security.challenge import IssuedChallenge, build_challenge, token_matches
from verbdict.security.errors import BadRequest, RateLimited, WrongAnswer, WrongCredential
from verbdict.security.logger import auth_logger as logger

Answer = Union[int, str, None]


def _missing(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def password_matches(candidate: Optional[str], expected: Optional[str]) -> bool:
    if not expected or candidate is None:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


class VerificationGate:
    def __init__(
        self,
        ledger: AttemptLedger,
        config: GuardConfig,
        admin_password: Optional[str] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._ledger = ledger
        self._config = config
        self._admin_password = admin_password
        self._rng = rng

    def check_ban(self, identity: str) -> BanStatus:
        return check_ban(self._ledger, identity, self._config)

    def _ensure_not_banned(self, identity: str) -> None:
        status = self.check_ban(identity)
        if status.banned:
            logger.warning(f"Blocked request from IP {identity}: {status.message}")
            raise RateLimited(status.message or "rate_limited", retry_after=status.retry_after)

    def issue_challenge(self, identity: str) -> IssuedChallenge:
        self._ensure_not_banned(identity)
        challenge = build_challenge(self._config.secret, self._rng)
        logger.debug(f"Captcha issued to IP {identity} op={challenge.question.operator}")
        return challenge

    def _check_captcha(self, identity: str, answer: Answer, token: str) -> None:
        if not token_matches(answer, token.strip(), self._config.secret):
            self._ledger.record_outcome(identity, False)
            logger.warning(f"Wrong captcha answer from IP {identity}")
            raise WrongAnswer()

    def verify(self, identity: str, answer: Answer, token: Optional[str], privileged: bool = False) -> None:
        """Grant (return) or deny (raise a ``GateError``) a captcha-protected action."""
        if privileged:
            logger.info(f"Privileged bypass for IP {identity}")
            return

        self._ensure_not_banned(identity)
        if _missing(answer) or _missing(token):
            raise BadRequest()

        self._check_captcha(identity, answer, token)
        self._ledger.record_outcome(identity, True)
        logger.info(f"Captcha verified for IP {identity}")

    def verify_login(
        self,
        identity: str,
        password: Optional[str],
        answer: Answer,
        token: Optional[str],
    ) -> None:
        self._ensure_not_banned(identity)
        if password is None or _missing(answer) or _missing(token):
            raise BadRequest()

        self._check_captcha(identity, answer, token)
        if not password_matches(password, self._admin_password):
            self._ledger.record_outcome(identity, False)
            logger.warning(f"Failed admin login from IP {identity} Password:[REDACTED]")
            raise WrongCredential()

        self._ledger.record_outcome(identity, True)
        logger.info(f"Successful admin login from IP {identity}")


__all__ = ["VerificationGate", "password_matches"]
