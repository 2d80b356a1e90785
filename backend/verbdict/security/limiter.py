from slowapi import Limiter

from verbdict.core.settings import get_settings
from verbdict.security import client_identity

# Coarse request throttle keyed by the same identity as the gate. Failed
# answers are counted separately by the attempt ledger.
limiter = Limiter(key_func=client_identity)


def verify_rate_limit() -> str:
    return get_settings().verify_rate_limit


__all__ = ["limiter", "verify_rate_limit"]
