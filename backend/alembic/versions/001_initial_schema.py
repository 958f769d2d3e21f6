"""Initial schema — stats, raw events, verification results, claims, sources, claim cache.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "system_stats",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("posts_processed", sa.Integer, nullable=False, server_default="0"),
        sa.Column("claims_verified", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_score", sa.Integer, nullable=False, server_default="0"),
        sa.Column("average_score", sa.Float, nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "nostr_events",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("event_id", sa.String(64), nullable=False, unique=True),
        sa.Column("pubkey", sa.String(64), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("kind", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("received_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "verification_results",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("event_id", sa.String(128), nullable=False, unique=True),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("overall_score", sa.Integer, nullable=False),
        sa.Column("claim_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("processing_method", sa.String(20), nullable=False, server_default="unknown"),
        sa.Column("processing_time_ms", sa.Integer, nullable=False, server_default="0"),
        sa.Column("cache_hits", sa.Integer, nullable=False, server_default="0"),
        sa.Column("verification_errors", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_verification_results_created_at", "verification_results", ["created_at"])

    op.create_table(
        "verification_claims",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "verification_id", UUID(as_uuid=True),
            sa.ForeignKey("verification_results.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("text", sa.Text, nullable=False),
        sa.Column("credibility", sa.Integer, nullable=False),
        sa.Column("confidence", sa.String(10), nullable=False),
        sa.Column("source_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("has_error", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("cached", sa.Boolean, nullable=False, server_default="false"),
    )

    op.create_table(
        "claim_sources",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "claim_id", UUID(as_uuid=True),
            sa.ForeignKey("verification_claims.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("title", sa.Text, nullable=False, server_default=""),
        sa.Column("source", sa.String(200), nullable=False, server_default=""),
        sa.Column("url", sa.Text, nullable=False),
    )

    op.create_table(
        "claim_cache",
        sa.Column("claim_hash", sa.String(32), primary_key=True),
        sa.Column("credibility", sa.Integer, nullable=False),
        sa.Column("confidence", sa.String(10), nullable=False),
        sa.Column("source_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("last_used", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_claim_cache_last_used", "claim_cache", ["last_used"])


def downgrade() -> None:
    op.drop_index("ix_claim_cache_last_used", table_name="claim_cache")
    op.drop_table("claim_cache")
    op.drop_table("claim_sources")
    op.drop_table("verification_claims")
    op.drop_index("ix_verification_results_created_at", table_name="verification_results")
    op.drop_table("verification_results")
    op.drop_table("nostr_events")
    op.drop_table("system_stats")
