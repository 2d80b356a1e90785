from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from verbdict.core.settings import GuardConfig
from verbdict.db_models import AttemptRecord
from verbdict.security.attempts import AttemptLedger

PERMANENT_MESSAGE = "Too many failed attempts. Access from your address has been blocked permanently."


@dataclass(frozen=True)
class BanStatus:
    banned: bool
    message: Optional[str] = None
    retry_after: Optional[int] = None


NOT_BANNED = BanStatus(banned=False)


def evaluate(record: Optional[AttemptRecord], config: GuardConfig, now_ms: int) -> BanStatus:
    """Decide whether ``record`` blocks its identity at ``now_ms``. Never mutates."""
    if record is None or record.fail_count < config.max_attempts:
        return NOT_BANNED

    if config.cooldown_ms < 0:
        return BanStatus(banned=True, message=PERMANENT_MESSAGE)

    elapsed = now_ms - record.last_attempt_at
    if elapsed < config.cooldown_ms:
        remaining = config.cooldown_ms - elapsed
        minutes = math.ceil(remaining / 60_000)
        return BanStatus(
            banned=True,
            message=f"Too many failed attempts. Please try again in {minutes} minute(s).",
            retry_after=math.ceil(remaining / 1000),
        )

    # Cooldown elapsed; the next failure restarts the count.
    return NOT_BANNED


def check_ban(ledger: AttemptLedger, identity: str, config: GuardConfig) -> BanStatus:
    return evaluate(ledger.get(identity), config, ledger.now_ms())


__all__ = ["BanStatus", "NOT_BANNED", "PERMANENT_MESSAGE", "evaluate", "check_ban"]
