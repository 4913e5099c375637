"""Tests for invitation and reminder email rendering."""
import uuid

from formflow.core.config import settings
from formflow.services import email_service


def test_render_template_escapes_values():
    rendered = email_service.render_template(
        "<p>{{name}}</p>", {"name": "<b>Eve</b>"}
    )
    assert rendered == "<p>&lt;b&gt;Eve&lt;/b&gt;</p>"


def test_render_template_leaves_unknown_variables_empty():
    assert email_service.render_template("Hi {{missing}}!", {}, escape=False) == "Hi !"


def test_build_survey_url_includes_invitation_token():
    form_id = uuid.uuid4()
    url = email_service.build_survey_url(form_id, "tok123")
    assert url == f"{settings.FRONTEND_URL.rstrip('/')}/survey/{form_id}?invite=tok123"
    assert email_service.build_survey_url(form_id).endswith(f"/survey/{form_id}")


def test_invitation_email_contains_title_link_and_message():
    email = email_service.build_invitation_email(
        survey_title="Team Lunch",
        survey_url="https://example.com/survey/1?invite=abc",
        recipient_name="Sam",
        message="Please reply by Friday",
    )
    assert email.subject == "[Survey] You're invited: Team Lunch"
    assert "https://example.com/survey/1?invite=abc" in email.html
    assert "Please reply by Friday" in email.text
    assert "Sam" in email.text


def test_reminder_email_mentions_deadline():
    email = email_service.build_reminder_email(
        survey_title="Team Lunch",
        survey_url="https://example.com/s",
        days_left=3,
    )
    assert email.subject == "[Reminder] Team Lunch is waiting for your response"
    assert "The survey closes in 3 days." in email.text


def test_deadline_phrases():
    assert email_service._deadline_phrase(0) == "The survey closes today."
    assert email_service._deadline_phrase(1) == "The survey closes in 1 day."
    assert email_service._deadline_phrase(None) == ""
