"""cr_envelope REST endpoints, all behind JWT authentication.

POST /redenvelope/create   — lock funds into a new envelope
POST /redenvelope/claim    — take one share
POST /redenvelope/list     — sent / received boxes, page-numbered
GET  /redenvelope/{id}     — envelope detail with its claims
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.cr_common.database import get_db_session
from src.cr_common.redis_client import get_redis
from src.cr_common.response import ApiResponse, success_response
from src.cr_envelope.application.schemas import ClaimRequest, CreateEnvelopeRequest, ListRequest
from src.cr_envelope.application.service import EnvelopeApplicationService
from src.cr_envelope.domain.policy import EnvelopePolicy
from src.cr_envelope.infrastructure.expiry_timer import RedisExpiryTimer
from src.cr_gateway.auth.dependencies import get_current_user_id

router = APIRouter(prefix="/redenvelope", tags=["redenvelope"])

_service = EnvelopeApplicationService(
    timer=RedisExpiryTimer(get_redis, settings.REDIS_KEY_PREFIX),
    policy=EnvelopePolicy.from_settings(settings),
)


def get_envelope_service() -> EnvelopeApplicationService:
    return _service


def _wrap(request: Request, data: dict) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/create")
async def create_envelope(
    req: CreateEnvelopeRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[EnvelopeApplicationService, Depends(get_envelope_service)],
) -> ApiResponse:
    result = await service.create_envelope(db, user_id, req)
    return _wrap(request, result.model_dump())


@router.post("/claim")
async def claim_envelope(
    req: ClaimRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[EnvelopeApplicationService, Depends(get_envelope_service)],
) -> ApiResponse:
    result = await service.claim(db, req.id, user_id)
    return _wrap(request, result.model_dump())


@router.post("/list")
async def list_envelopes(
    req: ListRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[EnvelopeApplicationService, Depends(get_envelope_service)],
) -> ApiResponse:
    result = await service.list_envelopes(db, user_id, req)
    return _wrap(request, result.model_dump())


@router.get("/{envelope_id}")
async def get_envelope(
    envelope_id: int,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[EnvelopeApplicationService, Depends(get_envelope_service)],
) -> ApiResponse:
    result = await service.get_detail(db, envelope_id, user_id)
    return _wrap(request, result.model_dump())
