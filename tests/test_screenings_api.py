"""
Screening endpoint tests
"""
import pytest

from tests.conftest import make_scores


@pytest.mark.asyncio
@pytest.mark.integration
async def test_questionnaire(client):
    response = await client.get("/api/v1/esas/questions")
    assert response.status_code == 200
    data = response.json()
    assert [q["question_id"] for q in data["questions"]] == list(range(1, 10))
    assert data["questions"][0]["symptom"] == "pain"
    assert data["questions"][0]["max_score"] == 10
    assert data["recommendation_table_version"] == "2025.2"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_patient_first_screening_creates_profile(client, patient_user, patient_headers, identity):
    account_id = patient_user.id
    response = await client.post(
        "/api/v1/screenings",
        json={"identity": identity, "screening_type": "initial", "scores": make_scores(q6=8, q2=8)},
        headers=patient_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["subject_type"] == "patient"
    assert data["user_id"] == account_id
    assert data["patient_id"]
    assert data["guest_identifier"] is None
    assert data["classification"] == {
        "highest_score": 8,
        "primary_question": 2,
        "primary_symptom": "fatigue",
        "risk_level": "high",
        "priority_rank": 2,
    }
    assert data["recommendation"]["diagnosis"]
    assert data["scores"]["6"] == 8

    # later screenings reuse the profile and need no identity
    follow_up = await client.post(
        "/api/v1/screenings",
        json={"screening_type": "follow_up", "scores": make_scores(q1=2)},
        headers=patient_headers,
    )
    assert follow_up.status_code == 201
    assert follow_up.json()["patient_id"] == data["patient_id"]
    assert follow_up.json()["classification"]["risk_level"] == "low"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_patient_first_screening_needs_identity(client, patient_headers):
    response = await client.post("/api/v1/screenings", json={"scores": make_scores()}, headers=patient_headers)
    assert response.status_code == 422
    assert response.json()["error"]["details"]["field"] == "identity"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_nurse_screening_registers_patient(client, nurse_user, nurse_headers, identity):
    nurse_id = nurse_user.id
    response = await client.post(
        "/api/v1/screenings",
        json={"identity": identity, "scores": make_scores(q7=5)},
        headers=nurse_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["subject_type"] == "nurse_assisted"
    assert data["user_id"] == nurse_id
    assert data["identity"]["name"] == identity["name"]

    again = await client.post(
        "/api/v1/screenings",
        json={"patient_id": data["patient_id"], "scores": make_scores(q7=3)},
        headers=nurse_headers,
    )
    assert again.status_code == 201
    assert again.json()["patient_id"] == data["patient_id"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_cannot_submit(client, admin_headers, identity):
    response = await client.post(
        "/api/v1/screenings",
        json={"identity": identity, "scores": make_scores()},
        headers=admin_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("scores,error_type,field", [
    ({"1": 3}, "IncompleteScoreSet", "scores"),
    (dict(make_scores(), **{"11": 2}), "InvalidQuestionId", "11"),
    (dict(make_scores(), **{"²": 2}), "InvalidQuestionId", "²"),
    (make_scores(q5=11), "ScoreOutOfRange", "5"),
    (make_scores(q5=-1), "ScoreOutOfRange", "5"),
])
async def test_invalid_scores_rejected(client, patient_headers, identity, scores, error_type, field):
    response = await client.post(
        "/api/v1/screenings",
        json={"identity": identity, "scores": scores},
        headers=patient_headers,
    )
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["type"] == error_type
    assert error["details"]["field"] == field


@pytest.mark.asyncio
@pytest.mark.integration
async def test_rejected_submission_stores_nothing(client, nurse_headers, identity):
    response = await client.post(
        "/api/v1/screenings",
        json={"identity": identity, "scores": make_scores(q1=12)},
        headers=nurse_headers,
    )
    assert response.status_code == 422

    patients = await client.get("/api/v1/patients", headers=nurse_headers)
    assert patients.json() == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_identity_validation(client, patient_headers):
    response = await client.post(
        "/api/v1/screenings",
        json={"identity": {"name": "Al", "age": 0, "gender": "X"}, "scores": make_scores()},
        headers=patient_headers,
    )
    assert response.status_code == 422
    fields = {error["field"] for error in response.json()["error"]["details"]["errors"]}
    assert "body.identity.name" in fields
    assert "body.identity.age" in fields
    assert "body.identity.gender" in fields


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_and_access(client, patient_headers, nurse_headers, admin_headers, identity):
    own = await client.post(
        "/api/v1/screenings",
        json={"identity": identity, "scores": make_scores(q1=9)},
        headers=patient_headers,
    )
    nurse_made = await client.post(
        "/api/v1/screenings",
        json={"identity": dict(identity, name="Yusuf Hidayat"), "scores": make_scores(q4=5)},
        headers=nurse_headers,
    )
    own_id = own.json()["id"]
    nurse_id = nurse_made.json()["id"]

    patient_list = (await client.get("/api/v1/screenings", headers=patient_headers)).json()
    assert [item["id"] for item in patient_list["data"]] == [own_id]

    nurse_list = (await client.get("/api/v1/screenings", headers=nurse_headers)).json()
    assert [item["id"] for item in nurse_list["data"]] == [nurse_id]
    assert nurse_list["data"][0]["patient_name"] == "Yusuf Hidayat"

    admin_list = (await client.get("/api/v1/screenings", headers=admin_headers)).json()
    assert admin_list["total"] == 2

    high_only = (await client.get("/api/v1/screenings?risk_level=high", headers=admin_headers)).json()
    assert [item["id"] for item in high_only["data"]] == [own_id]

    assert (await client.get(f"/api/v1/screenings/{nurse_id}", headers=patient_headers)).status_code == 403
    assert (await client.get(f"/api/v1/screenings/{own_id}", headers=nurse_headers)).status_code == 403
    assert (await client.get(f"/api/v1/screenings/{own_id}", headers=admin_headers)).status_code == 200
    assert (await client.get("/api/v1/screenings/missing-id", headers=admin_headers)).status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_pagination(client, patient_headers, identity):
    for score in range(3):
        response = await client.post(
            "/api/v1/screenings",
            json={"identity": identity, "scores": make_scores(q1=score)},
            headers=patient_headers,
        )
        assert response.status_code == 201

    page = (await client.get("/api/v1/screenings?page=2&limit=2", headers=patient_headers)).json()
    assert page["total"] == 3
    assert page["total_pages"] == 2
    assert len(page["data"]) == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_report_for_nurse_screening(client, nurse_headers, identity):
    created = await client.post(
        "/api/v1/screenings",
        json={"identity": dict(identity, facility_name="  "), "scores": make_scores(q8=7)},
        headers=nurse_headers,
    )
    screening_id = created.json()["id"]

    response = await client.get(f"/api/v1/screenings/{screening_id}/report", headers=nurse_headers)
    assert response.status_code == 200
    report = response.json()
    assert len(report["questions"]) == 9
    assert report["screening"]["primary_symptom"] == "anxiety"
    assert report["patient"]["facility_name"] == {"value": None, "present": False}
    assert report["provider"]["name"] == {"value": "Ns. Sari Wulandari", "present": True}
    assert report["provider"]["license_number"]["value"] == "STR-1234567"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_report_for_self_screening_has_no_provider(client, patient_headers, identity):
    created = await client.post(
        "/api/v1/screenings",
        json={"identity": identity, "scores": make_scores(q3=2)},
        headers=patient_headers,
    )
    report = (await client.get(f"/api/v1/screenings/{created.json()['id']}/report", headers=patient_headers)).json()
    assert report["provider"]["name"]["present"] is False
    assert report["patient"]["facility_name"]["value"] == identity["facility_name"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_report_pdf(client, patient_headers, identity):
    created = await client.post(
        "/api/v1/screenings",
        json={"identity": identity, "scores": make_scores(q9=6)},
        headers=patient_headers,
    )
    response = await client.get(f"/api/v1/screenings/{created.json()['id']}/report.pdf", headers=patient_headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
