"""create_tokens_table

Revision ID: 3f1c9a7e2b40
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3f1c9a7e2b40'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('tokens',
        sa.Column('token_index', sa.Text(), nullable=False, comment='Token type, client_id and secret hash joined by the separator'),
        sa.Column('token_type', sa.Text(), nullable=False, comment='Token category (client, grant, refresh, access, ...)'),
        sa.Column('client_id', sa.Text(), nullable=False, comment='Client that owns the token'),
        sa.Column('record', sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), 'postgresql'), nullable=False, comment='Token record returned on successful verification'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False, comment='Creation timestamp'),
        sa.PrimaryKeyConstraint('token_index')
    )
    with op.batch_alter_table('tokens', schema=None) as batch_op:
        batch_op.create_index('ix_tokens_type_client', ['token_type', 'client_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    with op.batch_alter_table('tokens', schema=None) as batch_op:
        batch_op.drop_index('ix_tokens_type_client')

    op.drop_table('tokens')
