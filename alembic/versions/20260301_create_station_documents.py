from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3f9c2a71d0b4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the station document table (flat rows have owner_id NULL)."""
    op.create_table(
        "station_documents",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("collection", sa.String(length=100), nullable=False),
        sa.Column("owner_id", sa.String(length=128), nullable=True),
        sa.Column("doc_id", sa.String(length=200), nullable=False),
        sa.Column(
            "data",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint("collection", "owner_id", "doc_id", name="_station_document_uc"),
    )
    op.create_index("ix_station_documents_id", "station_documents", ["id"])
    op.create_index(
        "ix_station_documents_collection_owner",
        "station_documents",
        ["collection", "owner_id"],
    )
    # status is the only field discovery filters on inside the JSON payload
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_station_documents_status "
        "ON station_documents ((data->>'status'))"
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS ix_station_documents_status")
    op.drop_index("ix_station_documents_collection_owner", table_name="station_documents")
    op.drop_index("ix_station_documents_id", table_name="station_documents")
    op.drop_table("station_documents")
