"""Direct messages

Revision ID: 003
Revises: 002
Create Date: 2026-10-19

Creates: messages
Enums: messagetype
"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "003"
down_revision: str | None = "002"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("CREATE TYPE messagetype AS ENUM ('text', 'image', 'file');")

    op.execute("""
        CREATE TABLE messages (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            conversation_id VARCHAR(100) NOT NULL,
            sender_id UUID NOT NULL,
            receiver_id UUID NOT NULL,
            requirement_id UUID REFERENCES requirements(id) ON DELETE SET NULL,
            content VARCHAR(1000) NOT NULL,
            message_type messagetype NOT NULL DEFAULT 'text',
            is_read BOOLEAN NOT NULL DEFAULT false,
            read_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute(
        "CREATE INDEX ix_messages_conversation_created ON messages (conversation_id, created_at);"
    )
    op.execute("CREATE INDEX ix_messages_receiver_read ON messages (receiver_id, is_read);")
    op.execute("CREATE INDEX ix_messages_sender ON messages (sender_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS messages;")
    op.execute("DROP TYPE IF EXISTS messagetype;")
