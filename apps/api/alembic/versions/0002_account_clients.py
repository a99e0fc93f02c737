"""Client accounts and ad-hoc requirements

Revision ID: 0002_account_clients
Revises: 0001_baseline
Create Date: 2026-10-17
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0002_account_clients'
down_revision: Union[str, Sequence[str], None] = '0001_baseline'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")
TIMESTAMP = sa.DateTime(timezone=True)
MONEY = sa.Numeric(12, 2)


def upgrade() -> None:
    op.create_table(
        'account_clients',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'organization_id', sa.Uuid(),
            sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('client_name', sa.String(255), nullable=False),
        sa.Column('industry', sa.String(100)),
        sa.Column('avatar_url', sa.String(500)),
        sa.Column('client_type', sa.String(30)),
        sa.Column('client_category', sa.String(30), server_default='active_retainer', nullable=False),
        sa.Column('client_since', sa.Date()),
        sa.Column('end_date', sa.Date()),
        sa.Column('services_signed', JSON, nullable=False),
        sa.Column('contract_type', sa.String(30)),
        sa.Column('invoice_due_day', sa.String(20)),
        sa.Column('retainer_fee', MONEY, server_default='0', nullable=False),
        sa.Column('service_based_fee', MONEY, server_default='0', nullable=False),
        sa.Column('currency', sa.String(3), server_default='AED', nullable=False),
        sa.Column('notes', sa.Text()),
        sa.Column('created_by_user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('created_at', TIMESTAMP, server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', TIMESTAMP, server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_account_clients_org', 'account_clients', ['organization_id'])

    op.create_table(
        'account_adhoc_requirements',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'client_id', sa.Uuid(),
            sa.ForeignKey('account_clients.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('date_requested', sa.Date(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('service_date_start', sa.Date()),
        sa.Column('service_date_end', sa.Date()),
        sa.Column('amount', MONEY, server_default='0', nullable=False),
        sa.Column('currency', sa.String(3), server_default='AED', nullable=False),
        sa.Column('status', sa.String(20), server_default='pending', nullable=False),
        sa.Column('notes', sa.Text()),
        sa.Column('created_by_user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('created_at', TIMESTAMP, server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', TIMESTAMP, server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_account_adhoc_client', 'account_adhoc_requirements', ['client_id'])


def downgrade() -> None:
    op.drop_table('account_adhoc_requirements')
    op.drop_table('account_clients')
