"""
Permission Middleware
Role-based access control dependencies and record ownership checks
"""
from typing import List, Optional, Union
from fastapi import Depends

from app.core.auth import get_current_user
from app.core.error_handling import ForbiddenException
from app.models import Patient, Profile, Screening, UserRole


class RequireRole:
    """
    Dependency class to check if user has one of the required roles
    """

    def __init__(self, roles: Union[UserRole, List[UserRole]]):
        """
        Initialize role checker

        Args:
            roles: Single role or list of roles (e.g. UserRole.ADMIN or [UserRole.NURSE, UserRole.ADMIN])
        """
        if isinstance(roles, UserRole):
            self.roles = [roles]
        else:
            self.roles = list(roles)

    async def __call__(self, current_user: Profile = Depends(get_current_user)) -> Profile:
        """
        Check if current user has one of the required roles

        Raises:
            ForbiddenException: If user doesn't have required role
        """
        if current_user.role not in [role.value for role in self.roles]:
            raise ForbiddenException(
                f"Access denied. Required roles: {', '.join(role.value for role in self.roles)}",
                details={"role": current_user.role},
            )
        return current_user


require_admin = RequireRole(UserRole.ADMIN)
require_nurse = RequireRole(UserRole.NURSE)
require_screener = RequireRole([UserRole.PATIENT, UserRole.NURSE])
require_clinical_staff = RequireRole([UserRole.NURSE, UserRole.ADMIN])


def can_access_patient(user: Profile, patient: Patient) -> bool:
    if user.role == UserRole.ADMIN.value:
        return True
    return user.id in (patient.user_id, patient.account_id)


def can_access_screening(user: Profile, screening: Screening, patient: Optional[Patient] = None) -> bool:
    """
    Admins see everything; otherwise the caller must have submitted the
    screening or own the patient it belongs to
    """
    if user.role == UserRole.ADMIN.value:
        return True
    if screening.user_id and screening.user_id == user.id:
        return True
    return patient is not None and can_access_patient(user, patient)


def ensure_patient_access(user: Profile, patient: Patient) -> None:
    if not can_access_patient(user, patient):
        raise ForbiddenException("You do not have access to this patient", details={"patient_id": patient.id})


def ensure_screening_access(user: Profile, screening: Screening, patient: Optional[Patient] = None) -> None:
    if not can_access_screening(user, screening, patient):
        raise ForbiddenException("You do not have access to this screening", details={"screening_id": screening.id})
