"""create_import_jobs

Revision ID: 4e7a91c2b5d0
Revises:
Create Date: 2026-10-18 11:20:41.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4e7a91c2b5d0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'import_jobs',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('session_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('resource_type', sa.String(100), nullable=False),
        sa.Column('file_name', sa.String(500), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('total_rows', sa.Integer(), nullable=False),
        sa.Column('valid_rows', sa.Integer(), nullable=False),
        sa.Column('total_batches', sa.Integer(), nullable=False),
        sa.Column('committed_batches', sa.Integer(), nullable=False),
        sa.Column('committed_rows', postgresql.ARRAY(sa.Integer()), nullable=False),
        sa.Column('unsubmitted_rows', postgresql.ARRAY(sa.Integer()), nullable=False),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_import_jobs'),
    )
    op.create_index('ix_import_jobs_session_id', 'import_jobs', ['session_id'])
    op.create_index('ix_import_jobs_resource_type', 'import_jobs', ['resource_type'])


def downgrade() -> None:
    op.drop_index('ix_import_jobs_resource_type', table_name='import_jobs')
    op.drop_index('ix_import_jobs_session_id', table_name='import_jobs')
    op.drop_table('import_jobs')
