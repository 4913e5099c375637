"""Portable column types shared by the models."""

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in dev/tests)
JsonColumn = JSON().with_variant(JSONB(), "postgresql")
