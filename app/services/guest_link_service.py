"""
Guest Identity Linker
Re-parents a guest's screenings onto a registered account.

Each screening moves Guest -> Linked exactly once. The move is a conditional
UPDATE on the persisted guest state, so two concurrent link requests for the
same token cannot both succeed; the loser gets ConcurrentLinkConflict.
"""

import datetime
import logging
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.error_handling import ConcurrentLinkConflict, GuestIdentifierNotFound
from app.core.storage import guarded
from app.models import Patient, Screening, SubjectType
from app.schemas.screening import LinkOutcome
from app.services.screening_service import ScreeningService

logger = logging.getLogger(__name__)


class GuestLinkService:
    """Links guest screenings to the patient profile of an account"""

    @staticmethod
    async def link(
        db: AsyncSession,
        guest_identifier: str,
        account_id: str,
        screening_id: Optional[str] = None,
    ) -> LinkOutcome:
        """
        Link every guest-state screening carrying ``guest_identifier``

        All writes share the caller's transaction. Raises
        GuestIdentifierNotFound when nothing is left to link and
        ConcurrentLinkConflict when another request got there first.
        """
        screenings = await ScreeningService.get_guest_screenings(db, guest_identifier)
        if not screenings:
            raise GuestIdentifierNotFound(guest_identifier)

        source = screenings[0]
        if screening_id is not None:
            source = next((s for s in screenings if s.id == screening_id), None)
            if source is None:
                raise GuestIdentifierNotFound(guest_identifier)

        patient = await GuestLinkService.get_or_create_account_patient(db, account_id, source, guest_identifier)

        now = datetime.datetime.now(datetime.timezone.utc)
        screening_ids: List[str] = []
        for screening in screenings:
            await GuestLinkService.claim_screening(
                db,
                screening_id=screening.id,
                guest_identifier=guest_identifier,
                account_id=account_id,
                patient_id=patient.id,
                linked_at=now,
            )
            screening_ids.append(screening.id)

        logger.info(f"Linked {len(screening_ids)} guest screening(s) to account {account_id} (patient {patient.id})")
        return LinkOutcome(patient_id=patient.id, screening_ids=screening_ids)

    @staticmethod
    async def claim_screening(
        db: AsyncSession,
        screening_id: str,
        guest_identifier: str,
        account_id: str,
        patient_id: str,
        linked_at: Optional[datetime.datetime] = None,
    ) -> None:
        """Guest -> Linked transition for one screening, guarded by its persisted state"""
        linked_at = linked_at or datetime.datetime.now(datetime.timezone.utc)
        statement = (
            update(Screening)
            .where(
                Screening.id == screening_id,
                Screening.subject_type == SubjectType.GUEST.value,
                Screening.guest_identifier == guest_identifier,
            )
            .values(
                subject_type=SubjectType.PATIENT.value,
                guest_identifier=None,
                user_id=account_id,
                patient_id=patient_id,
                linked_at=linked_at,
                updated_at=linked_at,
            )
            .execution_options(synchronize_session="evaluate")
        )
        result = await guarded(db.execute(statement), "link guest screening")
        if result.rowcount != 1:
            logger.warning(f"Screening {screening_id} left guest state before it could be linked")
            raise ConcurrentLinkConflict(guest_identifier, screening_id)

    @staticmethod
    async def get_or_create_account_patient(
        db: AsyncSession,
        account_id: str,
        source: Screening,
        guest_identifier: str,
    ) -> Patient:
        result = await guarded(
            db.execute(select(Patient).where(Patient.account_id == account_id)),
            "load account patient",
        )
        patient = result.scalar_one_or_none()
        if patient:
            return patient

        identity = source.identity
        patient = Patient(
            user_id=account_id,
            account_id=account_id,
            name=identity.get("name"),
            age=identity.get("age"),
            gender=identity.get("gender"),
            facility_name=identity.get("facility_name"),
        )
        db.add(patient)
        try:
            await guarded(db.flush(), "create account patient")
        except IntegrityError as e:
            # Another request created this account's patient profile first
            logger.warning(f"Patient profile for account {account_id} created concurrently: {e.orig}")
            raise ConcurrentLinkConflict(guest_identifier) from e

        logger.info(f"Created patient {patient.id} for account {account_id} from guest screening {source.id}")
        return patient
