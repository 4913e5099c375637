"""Baseline migration - accounts, forms, responses, invitations, templates

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19

Creates:
- users
- forms, questions (self-referencing display conditions)
- survey_invitations
- responses, answers
- templates
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# JSONB on PostgreSQL, plain JSON elsewhere
JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), 'postgresql')


def upgrade() -> None:
    """Create all FormFlow tables."""

    # ==========================================================================
    # users
    # ==========================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('name', sa.String(100), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('token_version', sa.Integer(), server_default=sa.text('1'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    # ==========================================================================
    # forms
    # ==========================================================================
    op.create_table(
        'forms',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('owner_user_id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_open', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('deadline', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['owner_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_forms_owner', 'forms', ['owner_user_id'])
    op.create_index('idx_forms_open', 'forms', ['is_open'])

    # ==========================================================================
    # questions
    # ==========================================================================
    op.create_table(
        'questions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('form_id', sa.Uuid(), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('options', JSON_TYPE, nullable=True),
        sa.Column('required', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('condition_question_id', sa.Uuid(), nullable=True),
        sa.Column('condition_operator', sa.String(20), nullable=True),
        sa.Column('condition_value', JSON_TYPE, nullable=True),
        sa.ForeignKeyConstraint(['form_id'], ['forms.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['condition_question_id'], ['questions.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_questions_form_order', 'questions', ['form_id', 'order_index'])

    # ==========================================================================
    # survey_invitations
    # ==========================================================================
    op.create_table(
        'survey_invitations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('form_id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(100), nullable=True),
        sa.Column('token', sa.String(64), nullable=False),
        sa.Column('status', sa.String(20), server_default=sa.text("'pending'"), nullable=False),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reminder_count', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.Column('last_reminder_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['form_id'], ['forms.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('form_id', 'email', name='uq_invitation_form_email'),
        sa.UniqueConstraint('token', name='uq_invitation_token'),
    )
    op.create_index('idx_invitations_form_status', 'survey_invitations', ['form_id', 'status'])

    # ==========================================================================
    # responses + answers
    # ==========================================================================
    op.create_table(
        'responses',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('form_id', sa.Uuid(), nullable=False),
        sa.Column('invitation_id', sa.Uuid(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['form_id'], ['forms.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['invitation_id'], ['survey_invitations.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_responses_form_submitted', 'responses', ['form_id', 'submitted_at'])

    op.create_table(
        'answers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('response_id', sa.Uuid(), nullable=False),
        sa.Column('question_id', sa.Uuid(), nullable=False),
        sa.Column('value', JSON_TYPE, nullable=True),
        sa.ForeignKeyConstraint(['response_id'], ['responses.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['question_id'], ['questions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('response_id', 'question_id', name='uq_answer_response_question'),
    )
    op.create_index('idx_answers_question', 'answers', ['question_id'])

    # ==========================================================================
    # templates
    # ==========================================================================
    op.create_table(
        'templates',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('owner_user_id', sa.Uuid(), nullable=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(50), server_default=sa.text("'custom'"), nullable=False),
        sa.Column('questions', JSON_TYPE, nullable=False),
        sa.Column('is_preset', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['owner_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_templates_owner', 'templates', ['owner_user_id'])
    op.create_index('idx_templates_category', 'templates', ['category'])


def downgrade() -> None:
    """Drop all FormFlow tables."""
    op.drop_index('idx_templates_category', table_name='templates')
    op.drop_index('idx_templates_owner', table_name='templates')
    op.drop_table('templates')

    op.drop_index('idx_answers_question', table_name='answers')
    op.drop_table('answers')
    op.drop_index('idx_responses_form_submitted', table_name='responses')
    op.drop_table('responses')

    op.drop_index('idx_invitations_form_status', table_name='survey_invitations')
    op.drop_table('survey_invitations')

    op.drop_index('idx_questions_form_order', table_name='questions')
    op.drop_table('questions')

    op.drop_index('idx_forms_open', table_name='forms')
    op.drop_index('idx_forms_owner', table_name='forms')
    op.drop_table('forms')

    op.drop_table('users')
