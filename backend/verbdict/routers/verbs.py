from datetime import datetime
from typing import Literal, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from verbdict.core.settings import get_settings
from verbdict.db import get_db
from verbdict.models import (
    BatchAddRequest,
    BatchAddResponse,
    BatchDeleteRequest,
    BatchDeleteResponse,
    DeleteRequest,
    PublicConfig,
    SearchResponse,
    SuccessResponse,
    UpdateRequest,
)
from verbdict.security import client_identity, get_gate, is_admin, require_admin
from verbdict.security.gate import VerificationGate
from verbdict.services.verbs import delete_verbs, export_delimited, import_rows, search_verbs, update_verb

router = APIRouter(prefix="/api", tags=["verbs"])

SearchMode = Literal["fuzzy", "exact"]


@router.get("/search", response_model=SearchResponse)
def search(
    q: str = Query(""),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    mode: SearchMode = Query("fuzzy"),
    db: Session = Depends(get_db),
) -> SearchResponse:
    settings = get_settings()
    limit = min(limit or settings.default_page_size, settings.max_page_size)
    rows, total = search_verbs(db, q.strip(), mode, limit=limit, offset=(page - 1) * limit)
    return SearchResponse(data=[row.to_dict() for row in rows], total=total, page=page, limit=limit)


@router.get("/config", response_model=PublicConfig)
def public_config() -> PublicConfig:
    settings = get_settings()
    return PublicConfig(
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
        max_attempts=settings.max_attempts,
    )


def _export_filename(q: str, delim: str) -> str:
    stamp = datetime.now().strftime("%Y%m%d")
    prefix = f"verbs_search_{q}" if q else "verbs_all"
    ext = "txt" if delim == "\t" else "csv"
    return f"{prefix}_{stamp}.{ext}"


@router.get("/export")
def export_data(
    request: Request,
    q: str = Query(""),
    mode: SearchMode = Query("fuzzy"),
    delim: str = Query(","),
    captcha_answer: Optional[str] = Query(None, alias="captchaAnswer"),
    captcha_token: Optional[str] = Query(None, alias="captchaToken"),
    gate: VerificationGate = Depends(get_gate),
    db: Session = Depends(get_db),
) -> Response:
    """Download matching verbs as delimited text. Admins skip the captcha."""
    if len(delim) != 1 or delim in ('"', "\r", "\n"):
        raise HTTPException(status_code=400, detail="delimiter must be a single character")

    gate.verify(client_identity(request), captcha_answer, captcha_token, privileged=is_admin(request))

    q = q.strip()
    rows, _ = search_verbs(db, q, mode)
    filename = quote(_export_filename(q, delim))
    media_type = "text/plain" if delim == "\t" else "text/csv"
    return Response(
        content=export_delimited(rows, delim),
        media_type=f"{media_type}; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{filename}"},
    )


@router.post("/batch_add", response_model=BatchAddResponse, dependencies=[Depends(require_admin)])
def batch_add(payload: BatchAddRequest, db: Session = Depends(get_db)) -> BatchAddResponse:
    added, skipped = import_rows(db, payload.rows, payload.mode)
    return BatchAddResponse(added=added, skipped=skipped)


@router.post("/update", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
def update(payload: UpdateRequest, db: Session = Depends(get_db)) -> SuccessResponse:
    if not (payload.base or "").strip():
        raise HTTPException(status_code=400, detail="base is required")
    if not update_verb(db, payload.id, payload):
        raise HTTPException(status_code=404, detail="Verb not found")
    return SuccessResponse()


@router.post("/delete", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
def delete_item(payload: DeleteRequest, db: Session = Depends(get_db)) -> SuccessResponse:
    delete_verbs(db, [payload.id])
    return SuccessResponse()


@router.post("/batch_delete", response_model=BatchDeleteResponse, dependencies=[Depends(require_admin)])
def batch_delete(payload: BatchDeleteRequest, db: Session = Depends(get_db)) -> BatchDeleteResponse:
    return BatchDeleteResponse(deleted=delete_verbs(db, payload.ids))
