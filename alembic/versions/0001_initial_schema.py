"""Initial TaskTrail schema."""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create base tables and enums."""
    bind = op.get_bind()

    userrole = sa.Enum("admin", "user", name="userrole")
    taskstatus = sa.Enum("pending", "in_progress", "completed", name="taskstatus")
    auditaction = sa.Enum("CREATE", "UPDATE", "DELETE", name="auditaction")
    entitytype = sa.Enum("Task", name="entitytype")

    userrole.create(bind, checkfirst=True)
    taskstatus.create(bind, checkfirst=True)
    auditaction.create(bind, checkfirst=True)
    entitytype.create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", userrole, nullable=False, server_default="user"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", taskstatus, nullable=False, server_default="pending"),
        sa.Column(
            "created_by",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "assigned_to",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_tasks_status", "tasks", ["status", "created_at"])

    # entity_id deliberately carries no foreign key: entries outlive tasks.
    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("action", auditaction, nullable=False),
        sa.Column("entity_type", entitytype, nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("summary", postgresql.JSONB, nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_activity_timestamp", "activity_logs", ["timestamp"])
    op.create_index("idx_activity_entity", "activity_logs", ["entity_type", "entity_id"])


def downgrade() -> None:
    """Drop TaskTrail tables and enums."""
    op.drop_index("idx_activity_entity", table_name="activity_logs")
    op.drop_index("idx_activity_timestamp", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_index("idx_tasks_status", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for name in ("entitytype", "auditaction", "taskstatus", "userrole"):
        sa.Enum(name=name).drop(bind, checkfirst=True)
