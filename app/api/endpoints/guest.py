"""
Guest Screening API Endpoints
Anonymous screenings and linking them to an account after registration
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_async_session
from app.core.auth import get_current_user
from app.core.error_handling import GuestIdentifierNotFound
from app.models import Profile, SubjectType
from app.schemas.screening import GuestLinkRequest, GuestScreeningCreate, LinkOutcome, ScreeningResponse
from app.services.esas import RecommendationTable, recommendation_table_dependency
from app.services.guest_link_service import GuestLinkService
from app.services.screening_service import ScreeningService, identity_from

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/guest", tags=["Guest"])


@router.post("/screenings", response_model=ScreeningResponse, status_code=status.HTTP_201_CREATED)
async def create_guest_screening(
    payload: GuestScreeningCreate,
    db: AsyncSession = Depends(get_async_session),
    table: RecommendationTable = Depends(recommendation_table_dependency),
):
    """
    Create a screening without an account

    The response carries the guest identifier; keep it to view the result
    later or to link it after registering.
    """
    screening = await ScreeningService.create_screening(
        db,
        table,
        raw_scores=payload.scores,
        identity=identity_from(payload.identity),
        subject_type=SubjectType.GUEST,
        screening_type=payload.screening_type,
    )
    return ScreeningService.to_response(screening)


@router.get("/screenings/{guest_identifier}", response_model=List[ScreeningResponse])
async def get_guest_screenings(
    guest_identifier: str,
    db: AsyncSession = Depends(get_async_session),
):
    """
    Screenings still held under a guest identifier, newest first
    """
    screenings = await ScreeningService.get_guest_screenings(db, guest_identifier)
    if not screenings:
        raise GuestIdentifierNotFound(guest_identifier)
    return [ScreeningService.to_response(s) for s in screenings]


@router.post("/link", response_model=LinkOutcome)
async def link_guest_screenings(
    payload: GuestLinkRequest,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Move a guest's screenings onto the calling account

    404 when there is nothing (left) to link, 409 when a concurrent request
    linked the same data first.
    """
    return await GuestLinkService.link(
        db,
        guest_identifier=payload.guest_identifier,
        account_id=current_user.id,
        screening_id=payload.screening_id,
    )
