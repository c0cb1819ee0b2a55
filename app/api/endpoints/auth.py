"""
Authentication Endpoints
Sign-up, login and password reset are handled by the identity provider;
this router only exposes the caller's own profile.
"""

from fastapi import APIRouter, Depends

from app.core.auth import get_current_user
from app.models import Profile
from app.schemas.patient import ProfileResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.get("/me", response_model=ProfileResponse)
async def get_current_user_info(current_user: Profile = Depends(get_current_user)):
    """
    Get Current User Information

    Returns the profile of the token's account, provisioning it on the
    first call.
    """
    return ProfileResponse.model_validate(current_user)
