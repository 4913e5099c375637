"""Email content for survey invitations and reminders."""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from uuid import UUID

from formflow.core.config import settings

VARIABLE_PATTERN = re.compile(r"\{\{(\w+)\}\}")


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


INVITATION_SUBJECT = "[Survey] You're invited: {{survey_title}}"
INVITATION_HTML = """<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: 0 auto;">
  <h1 style="color: #9333ea;">FormFlow</h1>
  <p>{{greeting}}</p>
  <p>You have been invited to take part in the following survey.</p>
  <h2>{{survey_title}}</h2>
  {{message_block}}
  <p><a href="{{survey_url}}" style="display: inline-block; padding: 12px 28px; background: #9333ea; color: #fff; text-decoration: none; border-radius: 8px;">Start the survey</a></p>
  <p style="font-size: 13px; color: #6b7280;">Or open this link: <a href="{{survey_url}}">{{survey_url}}</a></p>
</body>
</html>
"""
INVITATION_TEXT = """{{greeting}}

You have been invited to take part in the survey "{{survey_title}}".
{{message_text}}
Start the survey here:
{{survey_url}}
"""

REMINDER_SUBJECT = "[Reminder] {{survey_title}} is waiting for your response"
REMINDER_HTML = """<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: 0 auto;">
  <h1 style="color: #9333ea;">FormFlow</h1>
  <p>{{greeting}}</p>
  <p>This is a friendly reminder that we have not received your response to <strong>{{survey_title}}</strong> yet.</p>
  {{deadline_block}}
  <p><a href="{{survey_url}}" style="display: inline-block; padding: 12px 28px; background: #9333ea; color: #fff; text-decoration: none; border-radius: 8px;">Respond now</a></p>
  <p style="font-size: 13px; color: #6b7280;">Or open this link: <a href="{{survey_url}}">{{survey_url}}</a></p>
</body>
</html>
"""
REMINDER_TEXT = """{{greeting}}

We have not received your response to "{{survey_title}}" yet.
{{deadline_text}}
Respond here:
{{survey_url}}
"""


def render_template(
    template: str,
    variables: dict[str, str],
    *,
    escape: bool = True,
    safe_html_vars: set[str] | None = None,
) -> str:
    """
    Render a template with variable substitution.

    Variables in format {{variable_name}} are replaced with values; missing
    variables become empty strings. Values are HTML-escaped unless ``escape``
    is False or the variable is listed in ``safe_html_vars``.
    """
    safe = safe_html_vars or set()

    def replace_var(match: re.Match) -> str:
        name = match.group(1)
        value = variables.get(name, "")
        if escape and name not in safe:
            return html.escape(value)
        return value

    return VARIABLE_PATTERN.sub(replace_var, template)


def build_survey_url(form_id: UUID, token: str | None = None) -> str:
    url = f"{settings.FRONTEND_URL.rstrip('/')}/survey/{form_id}"
    if token:
        url = f"{url}?invite={token}"
    return url


def _greeting(recipient_name: str | None) -> str:
    return f"Hello {recipient_name}," if recipient_name else "Hello,"


def _render(
    subject: str,
    html_body: str,
    text_body: str,
    variables: dict[str, str],
    safe_html_vars: set[str],
) -> RenderedEmail:
    return RenderedEmail(
        subject=render_template(subject, variables, escape=False),
        html=render_template(html_body, variables, safe_html_vars=safe_html_vars),
        text=render_template(text_body, variables, escape=False),
    )


def build_invitation_email(
    *,
    survey_title: str,
    survey_url: str,
    recipient_name: str | None = None,
    message: str | None = None,
) -> RenderedEmail:
    message = (message or "").strip()
    message_block = (
        f'<p style="background: #f3f4f6; padding: 12px; border-radius: 8px;">{html.escape(message)}</p>'
        if message
        else ""
    )
    variables = {
        "greeting": _greeting(recipient_name),
        "survey_title": survey_title,
        "survey_url": survey_url,
        "message_block": message_block,
        "message_text": f"\n{message}\n" if message else "",
    }
    return _render(
        INVITATION_SUBJECT,
        INVITATION_HTML,
        INVITATION_TEXT,
        variables,
        safe_html_vars={"message_block"},
    )


def _deadline_phrase(days_left: int | None) -> str:
    if days_left is None:
        return ""
    if days_left <= 0:
        return "The survey closes today."
    if days_left == 1:
        return "The survey closes in 1 day."
    return f"The survey closes in {days_left} days."


def build_reminder_email(
    *,
    survey_title: str,
    survey_url: str,
    recipient_name: str | None = None,
    days_left: int | None = None,
) -> RenderedEmail:
    phrase = _deadline_phrase(days_left)
    variables = {
        "greeting": _greeting(recipient_name),
        "survey_title": survey_title,
        "survey_url": survey_url,
        "deadline_block": f"<p><strong>{html.escape(phrase)}</strong></p>" if phrase else "",
        "deadline_text": f"{phrase}\n" if phrase else "",
    }
    return _render(
        REMINDER_SUBJECT,
        REMINDER_HTML,
        REMINDER_TEXT,
        variables,
        safe_html_vars={"deadline_block"},
    )
