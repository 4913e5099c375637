"""Tests for response submission, listing, and results."""
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy.orm import Session

from formflow.db.enums import InvitationStatus
from formflow.db.models import Answer, Response, SurveyInvitation, User
from formflow.schemas.forms import FormCreate
from formflow.services import form_service, response_service


def create_survey(db: Session, owner: User, **overrides):
    payload = {
        "title": "Lunch Poll",
        "questions": [
            {"key": "coming", "type": "single", "title": "Coming to lunch?",
             "options": ["Yes", "No"], "required": True},
            {"key": "food", "type": "multiple", "title": "What do you eat?",
             "options": ["Pizza", "Salad", "Soup"], "required": True,
             "condition": {"question_key": "coming", "value": "Yes"}},
            {"key": "score", "type": "rating", "title": "Rate last lunch"},
            {"key": "why", "type": "short_text", "title": "Why so low?",
             "condition": {"question_key": "score", "operator": "less_than", "value": 3}},
        ],
    }
    payload.update(overrides)
    form = form_service.create_form(db, owner, FormCreate(**payload))
    return form, {q.title: str(q.id) for q in form.questions}


@pytest.mark.asyncio
async def test_submit_response_stores_visible_answers(
    client: AsyncClient, db: Session, test_user: User
):
    form, ids = create_survey(db, test_user)
    answers = {
        ids["Coming to lunch?"]: "Yes",
        ids["What do you eat?"]: ["Pizza", "Soup"],
        ids["Rate last lunch"]: "4",
        # Hidden: score is not below 3
        ids["Why so low?"]: "Too salty",
    }

    response = await client.post(f"/forms/{form.id}/submit", json={"answers": answers})
    assert response.status_code == 201
    assert response.json()["message"] == "Response submitted"

    stored = {str(a.question_id): a.value for a in db.query(Answer).all()}
    assert stored == {
        ids["Coming to lunch?"]: "Yes",
        ids["What do you eat?"]: ["Pizza", "Soup"],
        ids["Rate last lunch"]: 4,
    }


@pytest.mark.asyncio
async def test_submit_reports_all_validation_errors(
    client: AsyncClient, db: Session, test_user: User
):
    form, ids = create_survey(db, test_user)
    answers = {ids["Coming to lunch?"]: "Yes", ids["Rate last lunch"]: 9}

    response = await client.post(f"/forms/{form.id}/submit", json={"answers": answers})
    assert response.status_code == 400
    assert response.json()["detail"] == (
        "Missing required answer: What do you eat?; "
        "Rating for 'Rate last lunch' must be between 1 and 5"
    )
    assert db.query(Response).count() == 0


@pytest.mark.asyncio
async def test_hidden_required_question_can_be_skipped(
    client: AsyncClient, db: Session, test_user: User
):
    form, ids = create_survey(db, test_user)
    response = await client.post(
        f"/forms/{form.id}/submit", json={"answers": {ids["Coming to lunch?"]: "No"}}
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_submit_rejects_unknown_question(client: AsyncClient, db: Session, test_user: User):
    form, ids = create_survey(db, test_user)
    stray = str(uuid.uuid4())
    response = await client.post(
        f"/forms/{form.id}/submit",
        json={"answers": {ids["Coming to lunch?"]: "No", stray: "x"}},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == f"Unknown question: {stray}"


@pytest.mark.asyncio
async def test_closed_form_rejects_submissions(client: AsyncClient, db: Session, test_user: User):
    form, ids = create_survey(db, test_user)
    form.is_open = False
    db.commit()

    response = await client.post(
        f"/forms/{form.id}/submit", json={"answers": {ids["Coming to lunch?"]: "No"}}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "This survey is closed"


@pytest.mark.asyncio
async def test_past_deadline_rejects_submissions(client: AsyncClient, db: Session, test_user: User):
    yesterday = datetime.now(timezone.utc) - timedelta(days=1)
    form, ids = create_survey(db, test_user, deadline=yesterday)

    response = await client.post(
        f"/forms/{form.id}/submit", json={"answers": {ids["Coming to lunch?"]: "No"}}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "This survey is closed"


@pytest.mark.asyncio
async def test_submit_to_missing_form(client: AsyncClient, db: Session):
    response = await client.post(f"/forms/{uuid.uuid4()}/submit", json={"answers": {}})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_invitation_token_marks_invitation_responded(
    client: AsyncClient, db: Session, test_user: User
):
    form, ids = create_survey(db, test_user)
    invitation = SurveyInvitation(form_id=form.id, email="guest@example.com", token="tok-abc")
    db.add(invitation)
    db.commit()

    response = await client.post(
        f"/forms/{form.id}/submit",
        json={"answers": {ids["Coming to lunch?"]: "No"}, "invitation_token": "tok-abc"},
    )
    assert response.status_code == 201

    db.refresh(invitation)
    assert invitation.status == InvitationStatus.RESPONDED.value
    assert invitation.responded_at is not None
    stored = db.query(Response).one()
    assert stored.invitation_id == invitation.id


@pytest.mark.asyncio
async def test_unknown_invitation_token_is_ignored(
    client: AsyncClient, db: Session, test_user: User
):
    form, ids = create_survey(db, test_user)
    response = await client.post(
        f"/forms/{form.id}/submit",
        json={"answers": {ids["Coming to lunch?"]: "No"}, "invitation_token": "nope"},
    )
    assert response.status_code == 201
    assert db.query(Response).one().invitation_id is None


# =============================================================================
# Owner views
# =============================================================================

@pytest.mark.asyncio
async def test_list_responses_newest_first(
    authed_client: AsyncClient, db: Session, test_user: User
):
    form, ids = create_survey(db, test_user)
    first = response_service.submit_response(db, form, {ids["Coming to lunch?"]: "No"})
    first.submitted_at = datetime.now(timezone.utc) - timedelta(hours=1)
    db.commit()
    response_service.submit_response(
        db, form, {ids["Coming to lunch?"]: "Yes", ids["What do you eat?"]: ["Salad"]}
    )

    response = await authed_client.get(f"/forms/{form.id}/responses")
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    latest = data["responses"][0]
    assert [a["question_title"] for a in latest["answers"]] == [
        "Coming to lunch?",
        "What do you eat?",
    ]
    assert latest["answers"][1]["value"] == ["Salad"]
    assert data["responses"][1]["id"] == str(first.id)


@pytest.mark.asyncio
async def test_results_aggregate_per_question(
    authed_client: AsyncClient, db: Session, test_user: User
):
    form, ids = create_survey(db, test_user)
    coming, food, score = ids["Coming to lunch?"], ids["What do you eat?"], ids["Rate last lunch"]
    response_service.submit_response(db, form, {coming: "Yes", food: ["Pizza", "Salad"], score: 5})
    response_service.submit_response(db, form, {coming: "Yes", food: ["Pizza"], score: 2})
    response_service.submit_response(db, form, {coming: "No"})

    response = await authed_client.get(f"/forms/{form.id}/results")
    assert response.status_code == 200
    results = response.json()
    assert results["response_count"] == 3

    by_title = {q["title"]: q for q in results["questions"]}
    assert by_title["Coming to lunch?"]["counts"] == {"Yes": 2, "No": 1}
    assert by_title["What do you eat?"]["total_responses"] == 2
    assert by_title["What do you eat?"]["percentages"]["Pizza"] == 100.0
    assert by_title["Rate last lunch"]["average"] == 3.5
    assert [q["title"] for q in results["questions"]] == [
        "Coming to lunch?",
        "What do you eat?",
        "Rate last lunch",
        "Why so low?",
    ]


@pytest.mark.asyncio
async def test_results_require_ownership(
    authed_client: AsyncClient, db: Session, other_user: User
):
    form, _ = create_survey(db, other_user)
    for path in ("responses", "results", "export/csv", "export/pdf"):
        response = await authed_client.get(f"/forms/{form.id}/{path}")
        assert response.status_code == 403, path


@pytest.mark.asyncio
async def test_results_require_session(client: AsyncClient, db: Session, test_user: User):
    form, _ = create_survey(db, test_user)
    response = await client.get(f"/forms/{form.id}/results")
    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize("rating", [4, 4.0, "4.0"])
async def test_whole_number_rating_requires_follow_up(
    client: AsyncClient, db: Session, test_user: User, rating
):
    form = form_service.create_form(
        db,
        test_user,
        FormCreate(
            title="Score check",
            questions=[
                {"key": "score", "type": "rating", "title": "Score"},
                {"key": "why", "type": "short_text", "title": "Why four?", "required": True,
                 "condition": {"question_key": "score", "value": 4}},
            ],
        ),
    )
    score_id, why_id = (str(q.id) for q in form.questions)
    form_id = form.id

    response = await client.post(f"/forms/{form_id}/submit", json={"answers": {score_id: rating}})
    assert response.status_code == 400
    assert response.json()["detail"] == "Missing required answer: Why four?"

    response = await client.post(
        f"/forms/{form_id}/submit",
        json={"answers": {score_id: rating, why_id: "Almost perfect"}},
    )
    assert response.status_code == 201
    stored = {str(a.question_id): a.value for a in db.query(Answer).all()}
    assert stored == {score_id: 4, why_id: "Almost perfect"}
