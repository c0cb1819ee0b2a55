"""
Tests for linking guest screenings to an account
"""
import pytest
from sqlalchemy import func, select

from app.core.error_handling import ConcurrentLinkConflict, GuestIdentifierNotFound, LinkError
from app.models import Patient, Screening, SubjectType
from app.services.esas import get_recommendation_table
from app.services.guest_link_service import GuestLinkService
from app.services.screening_service import ScreeningService
from tests.conftest import make_scores


async def create_guest_screening(db_session, identity, **scores) -> Screening:
    return await ScreeningService.create_screening(
        db_session,
        get_recommendation_table(),
        raw_scores=make_scores(**scores),
        identity=identity,
        subject_type=SubjectType.GUEST,
    )


async def count(db_session, model) -> int:
    return (await db_session.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_guest_screening_has_identifier_and_no_owner(db_session, identity):
    screening = await create_guest_screening(db_session, identity, q1=6)
    assert screening.subject_type == SubjectType.GUEST.value
    assert screening.guest_identifier
    assert screening.user_id is None
    assert screening.patient_id is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_link_moves_screening_to_account(db_session, patient_user, identity):
    account_id = patient_user.id
    screening = await create_guest_screening(db_session, identity, q8=9)
    token = screening.guest_identifier

    outcome = await GuestLinkService.link(db_session, token, account_id, screening_id=screening.id)
    await db_session.commit()

    assert outcome.screening_ids == [screening.id]
    stored = (await db_session.execute(select(Screening).where(Screening.id == screening.id))).scalar_one()
    assert stored.subject_type == SubjectType.PATIENT.value
    assert stored.guest_identifier is None
    assert stored.user_id == account_id
    assert stored.patient_id == outcome.patient_id
    assert stored.linked_at is not None

    patient = (await db_session.execute(select(Patient).where(Patient.id == outcome.patient_id))).scalar_one()
    assert patient.account_id == account_id
    assert patient.name == identity["name"]
    assert patient.facility_name == identity["facility_name"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_link_all_screenings_for_token(db_session, patient_user, identity):
    first = await create_guest_screening(db_session, identity, q1=3)
    token = first.guest_identifier
    # a second screening under the same token
    second = await create_guest_screening(db_session, identity, q2=4)
    second.guest_identifier = token
    await db_session.flush()

    outcome = await GuestLinkService.link(db_session, token, patient_user.id)
    assert sorted(outcome.screening_ids) == sorted([first.id, second.id])


@pytest.mark.asyncio
@pytest.mark.integration
async def test_second_link_finds_nothing(db_session, patient_user, identity):
    account_id = patient_user.id
    screening = await create_guest_screening(db_session, identity, q4=5)
    token = screening.guest_identifier

    await GuestLinkService.link(db_session, token, account_id)
    await db_session.commit()

    with pytest.raises(GuestIdentifierNotFound):
        await GuestLinkService.link(db_session, token, account_id)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unknown_token_writes_nothing(db_session, patient_user):
    with pytest.raises(GuestIdentifierNotFound) as exc_info:
        await GuestLinkService.link(db_session, "no-such-token", patient_user.id)

    assert isinstance(exc_info.value, LinkError)
    assert exc_info.value.status_code == 404
    assert await count(db_session, Patient) == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_screening_id_must_belong_to_token(db_session, patient_user, identity):
    screening = await create_guest_screening(db_session, identity, q1=2)
    other = await create_guest_screening(db_session, identity, q1=2)

    with pytest.raises(GuestIdentifierNotFound):
        await GuestLinkService.link(db_session, screening.guest_identifier, patient_user.id, screening_id=other.id)
    assert await count(db_session, Patient) == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_existing_patient_profile_is_reused(db_session, patient_user, identity):
    account_id = patient_user.id
    patient = Patient(user_id=account_id, account_id=account_id, name="Budi Santoso", age=70, gender="L")
    db_session.add(patient)
    await db_session.flush()
    patient_id = patient.id

    screening = await create_guest_screening(db_session, identity, q5=7)
    outcome = await GuestLinkService.link(db_session, screening.guest_identifier, account_id)

    assert outcome.patient_id == patient_id
    assert await count(db_session, Patient) == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_claim_conflicts_when_already_linked(db_session, patient_user, identity):
    account_id = patient_user.id
    screening = await create_guest_screening(db_session, identity, q3=4)
    token = screening.guest_identifier
    screening_id = screening.id
    outcome = await GuestLinkService.link(db_session, token, account_id)

    # a racing request that read the guest state before the first link landed
    with pytest.raises(ConcurrentLinkConflict) as exc_info:
        await GuestLinkService.claim_screening(
            db_session,
            screening_id=screening_id,
            guest_identifier=token,
            account_id=account_id,
            patient_id=outcome.patient_id,
        )

    assert exc_info.value.status_code == 409
    assert exc_info.value.details["retryable"] is True
    assert exc_info.value.details["screening_id"] == screening_id
