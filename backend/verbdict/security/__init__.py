from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from verbdict.core.settings import get_settings
from verbdict.db import get_db
from verbdict.security.attempts import AttemptLedger
from verbdict.security.gate import VerificationGate, password_matches

ADMIN_KEY_HEADER = "Admin-Key"


def client_identity(request: Request) -> str:
    """Identity used by the gate: the configured client-IP header, else the peer address."""
    header = get_settings().identity_header
    value = (request.headers.get(header) or "").strip()
    if value:
        return value
    client = request.client
    return client.host if client and client.host else "0.0.0.0"


def is_admin(request: Request) -> bool:
    return password_matches(request.headers.get(ADMIN_KEY_HEADER), get_settings().admin_password)


def require_admin(request: Request) -> None:
    if not is_admin(request):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def get_gate(db: Session = Depends(get_db)) -> VerificationGate:
    settings = get_settings()
    config = settings.guard_config()
    return VerificationGate(AttemptLedger(db, config), config, admin_password=settings.admin_password)


__all__ = ["ADMIN_KEY_HEADER", "client_identity", "is_admin", "require_admin", "get_gate"]
