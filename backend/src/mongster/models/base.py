"""Declarative base and column types shared by the Mongster models."""

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

# Ordered address and header lists: JSONB on PostgreSQL, JSON text elsewhere
JSONDocument = JSON().with_variant(JSONB(), "postgresql")

Base = declarative_base()
