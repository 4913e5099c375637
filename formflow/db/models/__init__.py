"""SQLAlchemy ORM models."""

from formflow.db.models.auth import User
from formflow.db.models.forms import Form, Question
from formflow.db.models.invitations import SurveyInvitation
from formflow.db.models.responses import Answer, Response
from formflow.db.models.templates import Template

__all__ = [
    "Answer",
    "Form",
    "Question",
    "Response",
    "SurveyInvitation",
    "Template",
    "User",
]
