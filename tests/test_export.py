"""Tests for CSV and PDF exports."""
import csv
import io
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy.orm import Session

from formflow.db.models import User
from formflow.schemas.forms import FormCreate
from formflow.services import export_service, form_service, response_service


def create_survey_with_responses(db: Session, owner: User):
    form = form_service.create_form(
        db,
        owner,
        FormCreate(
            title="Snack Survey",
            questions=[
                {"type": "multiple", "title": "Snacks", "options": ["Chips", "Fruit", "Nuts"]},
                {"type": "rating", "title": "Satisfaction"},
                {"type": "short_text", "title": "Comment"},
            ],
        ),
    )
    snacks, rating, comment = (str(q.id) for q in form.questions)
    first = response_service.submit_response(
        db, form, {snacks: ["Chips", "Nuts"], rating: 4, comment: "=HYPERLINK(\"x\")"}
    )
    first.submitted_at = datetime.now(timezone.utc) - timedelta(minutes=5)
    db.commit()
    response_service.submit_response(db, form, {rating: 2})
    return form


def test_csv_safe_neutralizes_formulas():
    assert export_service._csv_safe("=SUM(A1)") == "'=SUM(A1)"
    assert export_service._csv_safe("+1") == "'+1"
    assert export_service._csv_safe("plain") == "plain"
    assert export_service._csv_safe("") == ""


def test_serialize_csv_value():
    assert export_service._serialize_csv_value(None) == ""
    assert export_service._serialize_csv_value(["A", "B"]) == "A; B"
    assert export_service._serialize_csv_value(5) == "5"


def test_build_responses_csv(db: Session, test_user: User):
    form = create_survey_with_responses(db, test_user)
    content = export_service.build_responses_csv(db, form)

    assert content.startswith(export_service.UTF8_BOM)
    rows = list(csv.reader(io.StringIO(content.lstrip(export_service.UTF8_BOM))))
    assert rows[0] == ["Submitted at", "Snacks", "Satisfaction", "Comment"]
    assert len(rows) == 3
    # Oldest first
    assert rows[1][1:] == ["Chips; Nuts", "4", "'=HYPERLINK(\"x\")"]
    assert rows[2][1:] == ["", "2", ""]


@pytest.mark.asyncio
async def test_export_csv_endpoint(authed_client: AsyncClient, db: Session, test_user: User):
    form = create_survey_with_responses(db, test_user)
    response = await authed_client.get(f"/forms/{form.id}/export/csv")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert (
        response.headers["content-disposition"]
        == f'attachment; filename="survey_{form.id}_responses.csv"'
    )
    assert "Snacks" in response.content.decode("utf-8-sig")


@pytest.mark.asyncio
async def test_export_pdf_endpoint(authed_client: AsyncClient, db: Session, test_user: User):
    form = create_survey_with_responses(db, test_user)
    response = await authed_client.get(f"/forms/{form.id}/export/pdf")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    assert f"survey_{form.id}_results.pdf" in response.headers["content-disposition"]


@pytest.mark.asyncio
async def test_export_pdf_without_responses(
    authed_client: AsyncClient, db: Session, test_user: User
):
    form = form_service.create_form(
        db,
        test_user,
        FormCreate(title="Empty <Survey>", questions=[{"type": "rating", "title": "Score"}]),
    )
    response = await authed_client.get(f"/forms/{form.id}/export/pdf")
    assert response.status_code == 200
    assert response.content.startswith(b"%PDF")
