"""Enum definitions for application constants."""

from enum import Enum


class QuestionType(str, Enum):
    """
    Supported question types.

    - SHORT_TEXT / LONG_TEXT: free text (single line / paragraph)
    - SINGLE: pick exactly one option
    - MULTIPLE: pick any number of options
    - RATING: integer score on the RATING_MIN..RATING_MAX scale
    """
    SHORT_TEXT = "short_text"
    LONG_TEXT = "long_text"
    SINGLE = "single"
    MULTIPLE = "multiple"
    RATING = "rating"


CHOICE_QUESTION_TYPES = {QuestionType.SINGLE.value, QuestionType.MULTIPLE.value}
TEXT_QUESTION_TYPES = {QuestionType.SHORT_TEXT.value, QuestionType.LONG_TEXT.value}

RATING_MIN = 1
RATING_MAX = 5


class ConditionOperator(str, Enum):
    """Operators for question display conditions."""
    EQUALS = "equals"
    CONTAINS = "contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"


NUMERIC_CONDITION_OPERATORS = {
    ConditionOperator.GREATER_THAN.value,
    ConditionOperator.LESS_THAN.value,
}


class InvitationStatus(str, Enum):
    """Survey invitation lifecycle."""
    PENDING = "pending"
    RESPONDED = "responded"


DEFAULT_INVITATION_STATUS = InvitationStatus.PENDING.value


class TemplateCategory(str, Enum):
    """Template library categories."""
    CUSTOMER_SATISFACTION = "customer_satisfaction"
    EVENT_ATTENDANCE = "event_attendance"
    EMPLOYEE_SATISFACTION = "employee_satisfaction"
    PRODUCT_FEEDBACK = "product_feedback"
    COURSE_EVALUATION = "course_evaluation"
    WEDDING_RSVP = "wedding_rsvp"
    CUSTOM = "custom"

    @classmethod
    def has_value(cls, value: str) -> bool:
        return value in cls._value2member_map_


DEFAULT_TEMPLATE_CATEGORY = TemplateCategory.CUSTOM.value
