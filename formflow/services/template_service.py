"""Question-set template library and preset seeding."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import or_
from sqlalchemy.orm import Session

from formflow.db.enums import DEFAULT_TEMPLATE_CATEGORY, TemplateCategory
from formflow.db.models import Form, Template, User
from formflow.schemas.forms import FormCreate, QuestionInput
from formflow.schemas.templates import TemplateCreate
from formflow.services import form_service

logger = logging.getLogger(__name__)


class TemplatePermissionError(Exception):
    """Caller may not modify this template."""


def _condition(key: str, value: str) -> dict[str, Any]:
    return {"question_key": key, "operator": "equals", "value": value}


PRESET_TEMPLATES: list[dict[str, Any]] = [
    {
        "name": "Customer Satisfaction Survey",
        "description": "Measure how satisfied customers are with a product or service.",
        "category": TemplateCategory.CUSTOMER_SATISFACTION.value,
        "questions": [
            {"key": "q1", "type": "rating", "title": "Overall, how satisfied are you with our service?", "required": True},
            {
                "key": "q2",
                "type": "single",
                "title": "How did you hear about us?",
                "options": ["Friend referral", "Search engine", "Social media", "Advertising", "Other"],
                "required": True,
            },
            {
                "key": "q3",
                "type": "multiple",
                "title": "What do you like most? Select all that apply.",
                "options": ["Friendly staff", "Fast turnaround", "Fair pricing", "Range of services", "Ease of use"],
                "required": False,
            },
            {"key": "q4", "type": "short_text", "title": "Is there anything we should improve?", "required": False},
            {"key": "q5", "type": "long_text", "title": "Tell us about your experience in your own words.", "required": False},
        ],
    },
    {
        "name": "Event Attendance",
        "description": "Confirm whether invitees will attend an event.",
        "category": TemplateCategory.EVENT_ATTENDANCE.value,
        "questions": [
            {
                "key": "q1",
                "type": "single",
                "title": "Will you attend this event?",
                "options": ["Attending", "Not attending", "Undecided"],
                "required": True,
            },
            {
                "key": "q2",
                "type": "single",
                "title": "Which time slot do you prefer?",
                "options": ["Morning (9-12)", "Afternoon (12-6)", "Evening (6-9)"],
                "required": False,
                "condition": _condition("q1", "Attending"),
            },
            {
                "key": "q3",
                "type": "single",
                "title": "How many people are coming with you?",
                "options": ["Just me", "2 people", "3 people", "4 or more"],
                "required": False,
                "condition": _condition("q1", "Attending"),
            },
            {
                "key": "q4",
                "type": "short_text",
                "title": "Any dietary restrictions we should know about?",
                "required": False,
                "condition": _condition("q1", "Attending"),
            },
        ],
    },
    {
        "name": "Employee Satisfaction Survey",
        "description": "Collect employee feedback on their work and workplace.",
        "category": TemplateCategory.EMPLOYEE_SATISFACTION.value,
        "questions": [
            {"key": "q1", "type": "rating", "title": "How satisfied are you with your overall work environment?", "required": True},
            {"key": "q2", "type": "rating", "title": "How satisfied are you with pay and benefits?", "required": True},
            {"key": "q3", "type": "rating", "title": "How satisfied are you with your work-life balance?", "required": True},
            {"key": "q4", "type": "rating", "title": "How satisfied are you with leadership?", "required": True},
            {
                "key": "q5",
                "type": "multiple",
                "title": "Which areas most need improvement? Select all that apply.",
                "options": ["Communication", "Processes", "Benefits", "Career development", "Work-life balance", "Pay"],
                "required": False,
            },
            {"key": "q6", "type": "long_text", "title": "Any suggestions for improving the company?", "required": False},
        ],
    },
    {
        "name": "Product Feedback",
        "description": "Gather feedback on how people use and rate a product.",
        "category": TemplateCategory.PRODUCT_FEEDBACK.value,
        "questions": [
            {
                "key": "q1",
                "type": "single",
                "title": "How often do you use this product?",
                "options": ["Daily", "Once or twice a week", "Once or twice a month", "Rarely"],
                "required": True,
            },
            {"key": "q2", "type": "rating", "title": "How satisfied are you with the product's quality?", "required": True},
            {
                "key": "q3",
                "type": "multiple",
                "title": "Which features do you like most? Select all that apply.",
                "options": ["Ease of use", "Design", "Performance", "Price", "Support", "Durability"],
                "required": False,
            },
            {
                "key": "q4",
                "type": "single",
                "title": "Would you recommend this product to others?",
                "options": ["Definitely", "Probably", "Not sure", "Probably not", "Definitely not"],
                "required": True,
            },
            {
                "key": "q5",
                "type": "short_text",
                "title": "What should we improve?",
                "required": False,
                "condition": {"question_key": "q2", "operator": "less_than", "value": 4},
            },
        ],
    },
    {
        "name": "Course Evaluation",
        "description": "Evaluate a class or lecture from the student's perspective.",
        "category": TemplateCategory.COURSE_EVALUATION.value,
        "questions": [
            {"key": "q1", "type": "rating", "title": "How satisfied are you with the course content?", "required": True},
            {"key": "q2", "type": "rating", "title": "How clear were the instructor's explanations?", "required": True},
            {"key": "q3", "type": "rating", "title": "How useful were the course materials?", "required": True},
            {"key": "q4", "type": "rating", "title": "Was the difficulty level appropriate?", "required": True},
            {
                "key": "q5",
                "type": "multiple",
                "title": "Which parts of the course helped you most? Select all that apply.",
                "options": ["Lectures", "Hands-on exercises", "Q&A sessions", "Assignments", "Extra reading"],
                "required": False,
            },
            {"key": "q6", "type": "long_text", "title": "How could this course be improved?", "required": False},
        ],
    },
    {
        "name": "Wedding RSVP",
        "description": "Confirm attendance for a wedding invitation.",
        "category": TemplateCategory.WEDDING_RSVP.value,
        "questions": [
            {
                "key": "q1",
                "type": "single",
                "title": "Will you attend the wedding?",
                "options": ["Joyfully accepts", "Regretfully declines"],
                "required": True,
            },
            {"key": "q2", "type": "short_text", "title": "Your full name", "required": True},
            {"key": "q3", "type": "short_text", "title": "Your phone number", "required": True},
            {
                "key": "q4",
                "type": "single",
                "title": "How many guests are in your party?",
                "options": ["1", "2", "3", "4 or more"],
                "required": True,
                "condition": _condition("q1", "Joyfully accepts"),
            },
            {
                "key": "q5",
                "type": "multiple",
                "title": "Dietary requirements",
                "options": ["None", "Vegetarian", "Gluten-free", "Nut allergy", "Shellfish allergy", "Other"],
                "required": False,
                "condition": _condition("q1", "Joyfully accepts"),
            },
            {
                "key": "q6",
                "type": "long_text",
                "title": "A message for the couple",
                "required": False,
                "condition": _condition("q1", "Joyfully accepts"),
            },
        ],
    },
]


# =============================================================================
# Queries
# =============================================================================

def list_categories() -> list[str]:
    return [category.value for category in TemplateCategory]


def list_templates(
    db: Session, user_id: UUID | None = None, category: str | None = None
) -> list[Template]:
    """Presets plus the caller's own templates; presets first, then newest."""
    query = db.query(Template)
    if user_id is not None:
        query = query.filter(or_(Template.is_preset.is_(True), Template.owner_user_id == user_id))
    else:
        query = query.filter(Template.is_preset.is_(True))
    if category:
        query = query.filter(Template.category == category)
    return query.order_by(Template.is_preset.desc(), Template.created_at.desc()).all()


def get_template(db: Session, template_id: UUID) -> Template | None:
    return db.query(Template).filter(Template.id == template_id).first()


def can_view(template: Template, user_id: UUID | None) -> bool:
    return template.is_preset or (user_id is not None and template.owner_user_id == user_id)


# =============================================================================
# Mutations
# =============================================================================

def parse_question_payloads(payloads: list[dict[str, Any]]) -> list[QuestionInput]:
    """Parse stored or submitted question payloads into builder inputs."""
    inputs: list[QuestionInput] = []
    for position, payload in enumerate(payloads, start=1):
        data = {k: v for k, v in payload.items() if k != "id"}
        try:
            inputs.append(QuestionInput.model_validate(data))
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ()))
            raise ValueError(f"Question {position}: invalid {field or 'payload'}") from exc
    return inputs


def _generated_key(position: int, taken: set[str]) -> str:
    candidate = position
    while f"q{candidate}" in taken:
        candidate += 1
    return f"q{candidate}"


def _payloads_from_inputs(inputs: list[QuestionInput]) -> list[dict[str, Any]]:
    # Every question gets a unique key so conditions survive the round-trip.
    # Caller-supplied keys win; generated ones skip past them.
    taken = {item.key for item in inputs if item.key}
    payloads = []
    for position, item in enumerate(inputs, start=1):
        payload = item.model_dump(mode="json", exclude={"id"})
        if not item.key:
            payload["key"] = _generated_key(position, taken)
            taken.add(payload["key"])
        payloads.append(payload)
    return payloads


def create_template(db: Session, owner: User, data: TemplateCreate) -> Template:
    name = (data.name or "").strip()
    if not name:
        raise ValueError("Template name is required")
    if not data.questions:
        raise ValueError("At least one question is required")

    category = (data.category or "").strip() or DEFAULT_TEMPLATE_CATEGORY
    if not TemplateCategory.has_value(category):
        raise ValueError(f"Unknown template category: {category}")

    inputs = parse_question_payloads(data.questions)
    form_service.validate_question_inputs(inputs)

    template = Template(
        owner_user_id=owner.id,
        name=name,
        description=(data.description or "").strip() or None,
        category=category,
        questions=_payloads_from_inputs(inputs),
        is_preset=False,
    )
    db.add(template)
    db.commit()
    db.refresh(template)
    logger.info("Created template %s", template.id)
    return template


def delete_template(db: Session, template: Template, user_id: UUID) -> None:
    if template.is_preset:
        raise TemplatePermissionError("Preset templates cannot be deleted")
    if template.owner_user_id != user_id:
        raise TemplatePermissionError("Not allowed to delete this template")
    db.delete(template)
    db.commit()


def create_form_from_template(
    db: Session,
    template: Template,
    owner: User,
    title: str | None = None,
    description: str | None = None,
) -> Form:
    data = FormCreate(
        title=(title or "").strip() or template.name,
        description=description if description is not None else template.description,
        questions=parse_question_payloads(template.questions),
    )
    return form_service.create_form(db, owner, data)


def seed_presets(db: Session) -> int:
    """Insert the preset templates unless any preset exists; returns rows added."""
    if db.query(Template.id).filter(Template.is_preset.is_(True)).first():
        logger.info("Preset templates already exist")
        return 0

    for preset in PRESET_TEMPLATES:
        inputs = parse_question_payloads(preset["questions"])
        form_service.validate_question_inputs(inputs)
        db.add(
            Template(
                owner_user_id=None,
                name=preset["name"],
                description=preset["description"],
                category=preset["category"],
                questions=_payloads_from_inputs(inputs),
                is_preset=True,
            )
        )
    db.commit()
    logger.info("Seeded %d preset templates", len(PRESET_TEMPLATES))
    return len(PRESET_TEMPLATES)
