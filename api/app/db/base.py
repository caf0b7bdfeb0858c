"""Declarative base shared by every model module."""

from __future__ import annotations

import uuid

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def new_id() -> str:
    """Primary keys are opaque UUID strings, matching the hosted backend."""
    return str(uuid.uuid4())
