# File: alembic/versions/0001_initial_schema.py | Version: 1.0 | Title: Users, lists, sharing, presence, todos, notifications, preferences
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(updated: bool = True):
    cols = [sa.Column("created_at", sa.DateTime(timezone=True))]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime(timezone=True)))
    return cols


def upgrade():
    op.create_table(
        "user",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255)),
        sa.Column("is_active", sa.Boolean()),
        *_timestamps(),
    )
    op.create_index("ix_user_email", "user", ["email"], unique=True)

    op.create_table(
        "lists",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("color", sa.String(20)),
        sa.Column("icon", sa.String(50)),
        sa.Column("is_default", sa.Boolean(), nullable=False),
        sa.Column("position", sa.BigInteger(), nullable=False),
        sa.Column("location_name", sa.String(255)),
        sa.Column("latitude", sa.Float()),
        sa.Column("longitude", sa.Float()),
        *_timestamps(),
    )
    op.create_index("ix_lists_user_id", "lists", ["user_id"])
    op.create_index("ix_lists_user_position", "lists", ["user_id", "position"])

    op.create_table(
        "list_shares",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("list_id", sa.String(), sa.ForeignKey("lists.id", ondelete="CASCADE"), nullable=False),
        sa.Column("shared_with_user_id", sa.String(), sa.ForeignKey("user.id")),
        sa.Column("shared_with_email", sa.String(255), nullable=False),
        sa.Column("permission", sa.String(20), nullable=False),
        sa.Column("invited_by", sa.String(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("accepted_at", sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index("ix_list_shares_list_id", "list_shares", ["list_id"])
    op.create_index("ix_list_shares_shared_with_user_id", "list_shares", ["shared_with_user_id"])
    op.create_index("ix_list_shares_shared_with_email", "list_shares", ["shared_with_email"])

    op.create_table(
        "list_presence",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("list_id", sa.String(), sa.ForeignKey("lists.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("editing_todo_id", sa.String()),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(updated=False),
        sa.UniqueConstraint("list_id", "user_id", name="uq_list_presence_list_user"),
    )
    op.create_index("ix_list_presence_list_id", "list_presence", ["list_id"])
    op.create_index("ix_list_presence_user_id", "list_presence", ["user_id"])

    op.create_table(
        "todos",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("list_id", sa.String(), sa.ForeignKey("lists.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("completed", sa.Boolean(), nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False),
        sa.Column("position", sa.BigInteger(), nullable=False),
        sa.Column("priority", sa.String(20), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True)),
        sa.Column("location_name", sa.String(255)),
        sa.Column("latitude", sa.Float()),
        sa.Column("longitude", sa.Float()),
        sa.Column("recurrence_rule", sa.String(100)),
        sa.Column("recurrence_parent_id", sa.String(), sa.ForeignKey("todos.id", ondelete="SET NULL")),
        sa.Column("notes", sa.Text()),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("attachments", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_todos_user_id", "todos", ["user_id"])
    op.create_index("ix_todos_list_id", "todos", ["list_id"])
    op.create_index("ix_todos_recurrence_parent_id", "todos", ["recurrence_parent_id"])
    op.create_index("ix_todos_list_position", "todos", ["list_id", "position"])

    op.create_table(
        "todo_shares",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("todo_id", sa.String(), sa.ForeignKey("todos.id", ondelete="CASCADE"), nullable=False),
        sa.Column("shared_with_email", sa.String(255), nullable=False),
        sa.Column("permission", sa.String(20), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_todo_shares_todo_id", "todo_shares", ["todo_id"])
    op.create_index("ix_todo_shares_shared_with_email", "todo_shares", ["shared_with_email"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(40), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("body", sa.Text()),
        sa.Column("read", sa.Boolean(), nullable=False),
        sa.Column("action_url", sa.String(500)),
        *_timestamps(updated=False),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_user_created_at", "notifications", ["user_id", "created_at"])

    op.create_table(
        "user_preferences",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("time_format", sa.String(5), nullable=False),
        sa.Column("auto_hide_completed", sa.Boolean(), nullable=False),
        sa.Column("theme_preference", sa.String(10), nullable=False),
        sa.Column("default_list_id", sa.String(), sa.ForeignKey("lists.id", ondelete="SET NULL")),
        *_timestamps(),
    )


def downgrade():
    op.drop_table("user_preferences")
    op.drop_index("ix_notifications_user_created_at", table_name="notifications")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_todo_shares_shared_with_email", table_name="todo_shares")
    op.drop_index("ix_todo_shares_todo_id", table_name="todo_shares")
    op.drop_table("todo_shares")
    op.drop_index("ix_todos_list_position", table_name="todos")
    op.drop_index("ix_todos_recurrence_parent_id", table_name="todos")
    op.drop_index("ix_todos_list_id", table_name="todos")
    op.drop_index("ix_todos_user_id", table_name="todos")
    op.drop_table("todos")
    op.drop_index("ix_list_presence_user_id", table_name="list_presence")
    op.drop_index("ix_list_presence_list_id", table_name="list_presence")
    op.drop_table("list_presence")
    op.drop_index("ix_list_shares_shared_with_email", table_name="list_shares")
    op.drop_index("ix_list_shares_shared_with_user_id", table_name="list_shares")
    op.drop_index("ix_list_shares_list_id", table_name="list_shares")
    op.drop_table("list_shares")
    op.drop_index("ix_lists_user_position", table_name="lists")
    op.drop_index("ix_lists_user_id", table_name="lists")
    op.drop_table("lists")
    op.drop_index("ix_user_email", table_name="user")
    op.drop_table("user")
