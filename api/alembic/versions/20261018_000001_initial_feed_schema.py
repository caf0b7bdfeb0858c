"""Initial feed schema: profiles, racing reference data, grids and content."""

from __future__ import annotations

from alembic import op

from app.db import Base
from app.db import content, grids, profiles, racing  # noqa: F401

# revision identifiers, used by Alembic.
revision = "20261018_000001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the feed tables from SQLAlchemy metadata."""
    bind = op.get_bind()
    Base.metadata.create_all(bind=bind)


def downgrade() -> None:
    """Drop the feed tables."""
    bind = op.get_bind()
    Base.metadata.drop_all(bind=bind)
