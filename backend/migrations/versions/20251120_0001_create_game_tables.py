from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "20251120_0001"
down_revision = None
branch_labels = None
depends_on = None

STATE_KEYS = ("freeze", "naturalDisaster", "worldPeace", "disasterAid", "thief")

def upgrade() -> None:
    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False, nullable=False),
        sa.Column("team_name", sa.String(length=64), nullable=False),
        sa.Column("color", sa.String(length=32), nullable=False, server_default="#64748b"),
    )

    op.create_table(
        "questions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False, nullable=False),
        sa.Column("qn", postgresql.JSONB(), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False, server_default="reward"),
        sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint(
            "type IN ('reward','noreward','empty','temptation','virtue')", name="ck_questions_type"
        ),
    )

    op.create_table(
        "score_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("remarks", sa.String(length=255), nullable=True),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("source", sa.String(length=24), nullable=False, server_default="manual"),
        sa.Column("event_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_score_entries_team_id", "score_entries", ["team_id"])
    op.create_index("ix_score_entries_event_id", "score_entries", ["event_id"])
    op.create_index("ix_score_entries_created_at", "score_entries", ["created_at"])

    op.create_table(
        "completions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("question_id", sa.Integer(), sa.ForeignKey("questions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("files", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_completions_team_id", "completions", ["team_id"])
    op.create_index("ix_completions_question_id", "completions", ["question_id"])

    state = op.create_table(
        "global_state",
        sa.Column("key", sa.String(length=32), primary_key=True, nullable=False),
        sa.Column("value", sa.Text(), nullable=False, server_default="false"),
        sa.Column("event_id", sa.Uuid(), nullable=True),
        sa.Column("time_updated", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.bulk_insert(state, [{"key": k, "value": "false"} for k in STATE_KEYS])


def downgrade() -> None:
    op.drop_table("global_state")
    op.drop_index("ix_completions_question_id", table_name="completions")
    op.drop_index("ix_completions_team_id", table_name="completions")
    op.drop_table("completions")
    op.drop_index("ix_score_entries_created_at", table_name="score_entries")
    op.drop_index("ix_score_entries_event_id", table_name="score_entries")
    op.drop_index("ix_score_entries_team_id", table_name="score_entries")
    op.drop_table("score_entries")
    op.drop_table("questions")
    op.drop_table("teams")
