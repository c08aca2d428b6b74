"""
Summary draft endpoints.

The API key is kept in the session's scratch storage, never in the
persisted backend. Generation is admin-only, like the admin page that
offers it.
"""

from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Depends

from ..ai import set_api_key, validate_api_key
from ..auth import SessionContext
from ..dependencies import Services, admin_required, get_services, get_session
from ..errors import InvalidApiKeyFormat
from ..models import ApiKeyRequest, BatchSummaryRequest, SummaryRequest, SummaryResponse


router = APIRouter(
    prefix="/api/summaries", tags=["summaries"], dependencies=[Depends(admin_required("/admin"))]
)


@router.put("/api-key")
def store_api_key(req: ApiKeyRequest, session: SessionContext = Depends(get_session)):
    if not validate_api_key(req.api_key):
        raise InvalidApiKeyFormat()
    key = set_api_key(session, req.api_key)
    return {"status": "ok", "keyPrefix": key[:8] + "..."}


@router.post("/generate", response_model=SummaryResponse)
async def generate(
    req: SummaryRequest,
    session: SessionContext = Depends(get_session),
    services: Services = Depends(get_services),
) -> SummaryResponse:
    summary = await services.summaries.generate_summary(session, req)
    return SummaryResponse(summary=summary)


@router.post("/batch", response_model=Dict[str, str])
async def generate_batch(
    req: BatchSummaryRequest,
    session: SessionContext = Depends(get_session),
    services: Services = Depends(get_services),
) -> Dict[str, str]:
    books = [await services.catalog.get_book(book_id) for book_id in req.book_ids]
    return await services.summaries.generate_batch(session, books, delay=req.delay)
