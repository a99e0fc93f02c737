"""Baseline migration - every table for the clinic ops API

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-16

Creates tenants and users, patients, the deal pipeline, workflows, email
log, projects and invoices, leave, tasks, team chat, marketing, and
support tables.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")
TIMESTAMP = sa.DateTime(timezone=True)
MONEY = sa.Numeric(12, 2)
DAYS = sa.Numeric(5, 1)


def _id() -> sa.Column:
    return sa.Column('id', sa.Uuid(), primary_key=True)


def _created_at() -> sa.Column:
    return sa.Column('created_at', TIMESTAMP, server_default=sa.func.now(), nullable=False)


def _updated_at() -> sa.Column:
    return sa.Column('updated_at', TIMESTAMP, server_default=sa.func.now(), nullable=False)


def _org_fk(nullable: bool = False) -> sa.Column:
    return sa.Column(
        'organization_id', sa.Uuid(),
        sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=nullable,
    )


def _user_fk(name: str, ondelete: str = 'SET NULL', nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.Uuid(), sa.ForeignKey('users.id', ondelete=ondelete), nullable=nullable)


def upgrade() -> None:
    """Create all tables."""

    # ==========================================================================
    # Tenants and users
    # ==========================================================================
    op.create_table(
        'organizations',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False, unique=True),
        _created_at(),
    )
    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(320), nullable=False, unique=True),
        sa.Column('full_name', sa.String(255)),
        sa.Column('designation', sa.String(255)),
        sa.Column('avatar_url', sa.String(500)),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('annual_leave_total', DAYS, server_default='30', nullable=False),
        sa.Column('annual_leave_used', DAYS, server_default='0', nullable=False),
        sa.Column('sick_leave_total', DAYS, server_default='90', nullable=False),
        sa.Column('sick_leave_used', DAYS, server_default='0', nullable=False),
        _created_at(),
    )
    op.create_table(
        'memberships',
        _id(),
        _user_fk('user_id', ondelete='CASCADE', nullable=False),
        _org_fk(),
        sa.Column('role', sa.String(50), nullable=False),
        _created_at(),
        sa.UniqueConstraint('user_id', name='uq_membership_user'),
    )
    op.create_index('idx_memberships_org', 'memberships', ['organization_id'])

    # ==========================================================================
    # Patients
    # ==========================================================================
    op.create_table(
        'patients',
        _id(),
        _org_fk(),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(320)),
        sa.Column('phone', sa.String(50)),
        sa.Column('dob', sa.Date()),
        sa.Column('gender', sa.String(30)),
        sa.Column('nationality', sa.String(100)),
        sa.Column('street_address', sa.String(255)),
        sa.Column('postal_code', sa.String(30)),
        sa.Column('town', sa.String(100)),
        sa.Column('profession', sa.String(150)),
        sa.Column('current_employer', sa.String(150)),
        sa.Column('marital_status', sa.String(30)),
        sa.Column('language_preference', sa.String(30)),
        sa.Column('source', sa.String(30), server_default='manual', nullable=False),
        sa.Column('notes', sa.Text()),
        _created_at(),
        _updated_at(),
    )
    op.create_index('idx_patients_org_email', 'patients', ['organization_id', 'email'])
    op.create_index('idx_patients_org_phone', 'patients', ['organization_id', 'phone'])

    op.create_table(
        'patient_insurances',
        _id(),
        sa.Column('patient_id', sa.Uuid(), sa.ForeignKey('patients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('provider_name', sa.String(150), nullable=False),
        sa.Column('card_number', sa.String(100), nullable=False),
        sa.Column('insurance_type', sa.String(50), nullable=False),
        _created_at(),
    )
    op.create_index('idx_patient_insurances_patient', 'patient_insurances', ['patient_id'])

    # ==========================================================================
    # Deals and pipeline
    # ==========================================================================
    op.create_table(
        'deal_stages',
        _id(),
        _org_fk(),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('stage_type', sa.String(20), server_default='open', nullable=False),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_default', sa.Boolean(), server_default=sa.false(), nullable=False),
        _created_at(),
    )
    op.create_index('idx_deal_stages_org', 'deal_stages', ['organization_id'])

    op.create_table(
        'deals',
        _id(),
        _org_fk(),
        sa.Column('patient_id', sa.Uuid(), sa.ForeignKey('patients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('stage_id', sa.Uuid(), sa.ForeignKey('deal_stages.id', ondelete='SET NULL')),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('pipeline', sa.String(100)),
        sa.Column('service', sa.String(150)),
        sa.Column('contact_label', sa.String(100)),
        sa.Column('location', sa.String(150)),
        sa.Column('value', MONEY),
        sa.Column('notes', sa.Text()),
        _user_fk('created_by_user_id'),
        _created_at(),
        _updated_at(),
    )
    op.create_index('idx_deals_org', 'deals', ['organization_id'])
    op.create_index('idx_deals_patient', 'deals', ['patient_id'])

    # ==========================================================================
    # Workflows and email
    # ==========================================================================
    op.create_table(
        'workflows',
        _id(),
        _org_fk(),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('trigger_type', sa.String(50), nullable=False),
        sa.Column('active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('config', JSON, nullable=False),
        _created_at(),
        _updated_at(),
    )
    op.create_index('idx_workflows_org', 'workflows', ['organization_id'])

    op.create_table(
        'workflow_actions',
        _id(),
        sa.Column('workflow_id', sa.Uuid(), sa.ForeignKey('workflows.id', ondelete='CASCADE'), nullable=False),
        sa.Column('action_type', sa.String(50), nullable=False),
        sa.Column('config', JSON, nullable=False),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
        _created_at(),
    )
    op.create_index('idx_workflow_actions_workflow', 'workflow_actions', ['workflow_id'])

    op.create_table(
        'emails',
        _id(),
        _org_fk(nullable=True),
        sa.Column('patient_id', sa.Uuid(), sa.ForeignKey('patients.id', ondelete='SET NULL')),
        sa.Column('deal_id', sa.Uuid(), sa.ForeignKey('deals.id', ondelete='SET NULL')),
        sa.Column('to_address', sa.String(320), nullable=False),
        sa.Column('from_address', sa.String(320)),
        sa.Column('subject', sa.String(500), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('direction', sa.String(20), nullable=False),
        sa.Column('provider_message_id', sa.String(255)),
        sa.Column('error', sa.Text()),
        sa.Column('sent_at', TIMESTAMP),
        _created_at(),
    )
    op.create_index('idx_emails_org', 'emails', ['organization_id'])
    op.create_index('idx_emails_patient', 'emails', ['patient_id', 'created_at'])

    # ==========================================================================
    # Projects and invoices
    # ==========================================================================
    op.create_table(
        'projects',
        _id(),
        _org_fk(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('client_name', sa.String(255)),
        sa.Column('client_email', sa.String(320)),
        sa.Column('description', sa.Text()),
        sa.Column('status', sa.String(20), server_default='active', nullable=False),
        sa.Column('budget', MONEY),
        _user_fk('created_by_user_id'),
        _created_at(),
        _updated_at(),
    )
    op.create_index('idx_projects_org', 'projects', ['organization_id'])

    op.create_table(
        'invoices',
        _id(),
        _org_fk(),
        sa.Column('project_id', sa.Uuid(), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('invoice_number', sa.String(30), nullable=False),
        sa.Column('invoice_type', sa.String(20), server_default='invoice', nullable=False),
        sa.Column('status', sa.String(20), server_default='draft', nullable=False),
        sa.Column('client_name', sa.String(255)),
        sa.Column('client_email', sa.String(320)),
        sa.Column('client_address', sa.Text()),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date()),
        sa.Column('subtotal', MONEY, server_default='0', nullable=False),
        sa.Column('discount', MONEY, server_default='0', nullable=False),
        sa.Column('tax_rate', sa.Numeric(5, 2), server_default='5', nullable=False),
        sa.Column('tax_amount', MONEY, server_default='0', nullable=False),
        sa.Column('total', MONEY, server_default='0', nullable=False),
        sa.Column('currency', sa.String(3), server_default='AED', nullable=False),
        sa.Column('notes', sa.Text()),
        sa.Column('source_quote_id', sa.Uuid(), sa.ForeignKey('invoices.id', ondelete='SET NULL')),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint('organization_id', 'invoice_number', name='uq_invoice_number'),
    )
    op.create_index('idx_invoices_org', 'invoices', ['organization_id'])
    op.create_index('idx_invoices_project', 'invoices', ['project_id'])

    op.create_table(
        'invoice_items',
        _id(),
        sa.Column('invoice_id', sa.Uuid(), sa.ForeignKey('invoices.id', ondelete='CASCADE'), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('quantity', sa.Numeric(10, 2), server_default='1', nullable=False),
        sa.Column('unit_price', MONEY, server_default='0', nullable=False),
        sa.Column('amount', MONEY, server_default='0', nullable=False),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
    )
    op.create_index('idx_invoice_items_invoice', 'invoice_items', ['invoice_id'])

    # ==========================================================================
    # Leave, calendar, tasks
    # ==========================================================================
    op.create_table(
        'leave_requests',
        _id(),
        _org_fk(),
        _user_fk('user_id', ondelete='CASCADE', nullable=False),
        sa.Column('leave_type', sa.String(20), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('days_count', DAYS, nullable=False),
        sa.Column('reason', sa.Text()),
        sa.Column('status', sa.String(20), server_default='pending', nullable=False),
        _user_fk('reviewed_by'),
        sa.Column('reviewed_at', TIMESTAMP),
        sa.Column('review_notes', sa.Text()),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint('end_date >= start_date', name='ck_leave_date_range'),
        sa.CheckConstraint('days_count > 0', name='ck_leave_days_positive'),
    )
    op.create_index('idx_leave_requests_org', 'leave_requests', ['organization_id'])
    op.create_index('idx_leave_user_status', 'leave_requests', ['user_id', 'status'])

    op.create_table(
        'team_schedule_events',
        _id(),
        _org_fk(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('event_type', sa.String(20), nullable=False),
        sa.Column('event_date', sa.Date(), nullable=False),
        sa.Column('priority', sa.String(20), server_default='medium', nullable=False),
        _user_fk('created_by'),
        _created_at(),
    )
    op.create_index('idx_team_events_org_date', 'team_schedule_events', ['organization_id', 'event_date'])

    op.create_table(
        'daily_quotes',
        _id(),
        _user_fk('user_id', ondelete='CASCADE', nullable=False),
        sa.Column('quote_date', sa.Date(), nullable=False),
        sa.Column('quote', sa.Text(), nullable=False),
        _created_at(),
        sa.UniqueConstraint('user_id', 'quote_date', name='uq_daily_quote_user_date'),
    )

    op.create_table(
        'tasks',
        _id(),
        _org_fk(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('status', sa.String(20), server_default='pending', nullable=False),
        _user_fk('assigned_user_id'),
        _user_fk('created_by_user_id'),
        sa.Column('activity_date', sa.Date()),
        sa.Column('completed_at', TIMESTAMP),
        _created_at(),
        _updated_at(),
    )
    op.create_index('idx_tasks_org', 'tasks', ['organization_id'])
    op.create_index('idx_tasks_assignee_status', 'tasks', ['assigned_user_id', 'status'])

    # ==========================================================================
    # Team chat
    # ==========================================================================
    op.create_table(
        'chat_servers',
        _id(),
        _org_fk(),
        _user_fk('owner_id', ondelete='CASCADE', nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('icon_url', sa.String(500)),
        sa.Column('banner_url', sa.String(500)),
        sa.Column('is_public', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('verification_level', sa.Integer(), server_default='0', nullable=False),
        _created_at(),
        _updated_at(),
    )
    op.create_index('idx_chat_servers_org', 'chat_servers', ['organization_id'])

    op.create_table(
        'chat_categories',
        _id(),
        sa.Column('server_id', sa.Uuid(), sa.ForeignKey('chat_servers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('position', sa.Integer(), server_default='0', nullable=False),
        _created_at(),
    )
    op.create_index('idx_chat_categories_server', 'chat_categories', ['server_id'])

    op.create_table(
        'chat_channels',
        _id(),
        sa.Column('server_id', sa.Uuid(), sa.ForeignKey('chat_servers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('category_id', sa.Uuid(), sa.ForeignKey('chat_categories.id', ondelete='SET NULL')),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('topic', sa.Text()),
        sa.Column('channel_type', sa.String(20), server_default='text', nullable=False),
        sa.Column('position', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_private', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('default_auto_archive_duration', sa.Integer()),
        sa.Column('last_message_at', TIMESTAMP),
        _created_at(),
    )
    op.create_index('idx_chat_channels_server', 'chat_channels', ['server_id'])

    op.create_table(
        'chat_roles',
        _id(),
        sa.Column('server_id', sa.Uuid(), sa.ForeignKey('chat_servers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('color', sa.String(7), server_default='#99AAB5', nullable=False),
        sa.Column('permissions', sa.BigInteger(), server_default='0', nullable=False),
        sa.Column('position', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_hoisted', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('is_mentionable', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('is_default', sa.Boolean(), server_default=sa.false(), nullable=False),
        _created_at(),
    )
    op.create_index('idx_chat_roles_server', 'chat_roles', ['server_id'])

    op.create_table(
        'chat_members',
        _id(),
        sa.Column('server_id', sa.Uuid(), sa.ForeignKey('chat_servers.id', ondelete='CASCADE'), nullable=False),
        _user_fk('user_id', ondelete='CASCADE', nullable=False),
        sa.Column('nickname', sa.String(100)),
        sa.Column('is_owner', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('communication_disabled_until', TIMESTAMP),
        sa.Column('joined_at', TIMESTAMP, server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('server_id', 'user_id', name='uq_chat_member'),
    )
    op.create_index('idx_chat_members_user', 'chat_members', ['user_id'])

    op.create_table(
        'chat_member_roles',
        _id(),
        sa.Column('member_id', sa.Uuid(), sa.ForeignKey('chat_members.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role_id', sa.Uuid(), sa.ForeignKey('chat_roles.id', ondelete='CASCADE'), nullable=False),
        sa.UniqueConstraint('member_id', 'role_id', name='uq_chat_member_role'),
    )
    op.create_index('idx_chat_member_roles_role', 'chat_member_roles', ['role_id'])

    op.create_table(
        'chat_messages',
        _id(),
        sa.Column('channel_id', sa.Uuid(), sa.ForeignKey('chat_channels.id', ondelete='CASCADE'), nullable=False),
        _user_fk('author_id', ondelete='CASCADE', nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('message_type', sa.String(20), server_default='default', nullable=False),
        sa.Column('reply_to_id', sa.Uuid(), sa.ForeignKey('chat_messages.id', ondelete='SET NULL')),
        sa.Column('thread_id', sa.Uuid(), sa.ForeignKey('chat_channels.id', ondelete='SET NULL')),
        sa.Column('mentions', JSON, nullable=False),
        sa.Column('mention_everyone', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('edited_at', TIMESTAMP),
        _created_at(),
    )
    op.create_index('idx_chat_messages_channel_created', 'chat_messages', ['channel_id', 'created_at'])

    op.create_table(
        'chat_threads',
        _id(),
        sa.Column('channel_id', sa.Uuid(), sa.ForeignKey('chat_channels.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('parent_channel_id', sa.Uuid(), sa.ForeignKey('chat_channels.id', ondelete='CASCADE'), nullable=False),
        _user_fk('owner_id', ondelete='CASCADE', nullable=False),
        sa.Column('message_id', sa.Uuid(), sa.ForeignKey('chat_messages.id', ondelete='SET NULL')),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('auto_archive_duration', sa.Integer(), server_default='1440', nullable=False),
        sa.Column('is_archived', sa.Boolean(), server_default=sa.false(), nullable=False),
        _created_at(),
    )
    op.create_index('idx_chat_threads_parent', 'chat_threads', ['parent_channel_id'])

    op.create_table(
        'chat_invites',
        _id(),
        sa.Column('code', sa.String(16), nullable=False, unique=True),
        sa.Column('server_id', sa.Uuid(), sa.ForeignKey('chat_servers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('channel_id', sa.Uuid(), sa.ForeignKey('chat_channels.id', ondelete='SET NULL')),
        _user_fk('inviter_id', ondelete='CASCADE', nullable=False),
        sa.Column('max_uses', sa.Integer(), server_default='0', nullable=False),
        sa.Column('uses', sa.Integer(), server_default='0', nullable=False),
        sa.Column('max_age_seconds', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_temporary', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('expires_at', TIMESTAMP),
        _created_at(),
    )
    op.create_index('idx_chat_invites_server', 'chat_invites', ['server_id'])

    op.create_table(
        'dm_channels',
        _id(),
        _org_fk(),
        _user_fk('user1_id', ondelete='CASCADE'),
        _user_fk('user2_id', ondelete='CASCADE'),
        sa.Column('is_group', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('name', sa.String(100)),
        _user_fk('owner_id'),
        sa.Column('last_message_at', TIMESTAMP),
        _created_at(),
        sa.UniqueConstraint('user1_id', 'user2_id', name='uq_dm_pair'),
    )
    op.create_index('idx_dm_channels_org', 'dm_channels', ['organization_id'])

    op.create_table(
        'dm_members',
        _id(),
        sa.Column('dm_channel_id', sa.Uuid(), sa.ForeignKey('dm_channels.id', ondelete='CASCADE'), nullable=False),
        _user_fk('user_id', ondelete='CASCADE', nullable=False),
        sa.Column('joined_at', TIMESTAMP, server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('dm_channel_id', 'user_id', name='uq_dm_member'),
    )
    op.create_index('idx_dm_members_user', 'dm_members', ['user_id'])

    op.create_table(
        'dm_messages',
        _id(),
        sa.Column('dm_channel_id', sa.Uuid(), sa.ForeignKey('dm_channels.id', ondelete='CASCADE'), nullable=False),
        _user_fk('author_id', ondelete='CASCADE', nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('message_type', sa.String(20), server_default='default', nullable=False),
        sa.Column('reply_to_id', sa.Uuid(), sa.ForeignKey('dm_messages.id', ondelete='SET NULL')),
        sa.Column('mentions', JSON, nullable=False),
        sa.Column('mention_everyone', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('edited_at', TIMESTAMP),
        _created_at(),
    )
    op.create_index('idx_dm_messages_channel_created', 'dm_messages', ['dm_channel_id', 'created_at'])

    # ==========================================================================
    # Marketing
    # ==========================================================================
    op.create_table(
        'marketing_campaigns',
        _id(),
        _org_fk(),
        sa.Column('project_id', sa.Uuid(), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('channel', sa.String(30), nullable=False),
        sa.Column('budget', MONEY),
        sa.Column('start_date', sa.Date()),
        sa.Column('end_date', sa.Date()),
        _created_at(),
    )
    op.create_index('idx_marketing_campaigns_project', 'marketing_campaigns', ['project_id'])

    op.create_table(
        'marketing_expense_logs',
        _id(),
        _org_fk(),
        sa.Column('project_id', sa.Uuid(), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('campaign_id', sa.Uuid(), sa.ForeignKey('marketing_campaigns.id', ondelete='SET NULL')),
        sa.Column('channel', sa.String(30), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('spend_date', sa.Date(), nullable=False),
        sa.Column('clicks', sa.Integer(), server_default='0', nullable=False),
        sa.Column('impressions', sa.Integer(), server_default='0', nullable=False),
        sa.Column('notes', sa.Text()),
        _created_at(),
    )
    op.create_index('idx_marketing_expense_logs_project', 'marketing_expense_logs', ['project_id'])

    op.create_table(
        'marketing_leads',
        _id(),
        _org_fk(),
        sa.Column('project_id', sa.Uuid(), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('campaign_id', sa.Uuid(), sa.ForeignKey('marketing_campaigns.id', ondelete='SET NULL')),
        sa.Column('channel', sa.String(30), nullable=False),
        sa.Column('lead_date', sa.Date(), nullable=False),
        sa.Column('name', sa.String(255)),
        sa.Column('converted', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('revenue', MONEY, server_default='0', nullable=False),
        _created_at(),
    )
    op.create_index('idx_marketing_leads_project', 'marketing_leads', ['project_id'])

    op.create_table(
        'marketing_reports',
        _id(),
        _org_fk(),
        sa.Column('project_id', sa.Uuid(), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('date_start', sa.Date(), nullable=False),
        sa.Column('date_end', sa.Date(), nullable=False),
        sa.Column('report_data', JSON, nullable=False),
        sa.Column('is_published', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('public_token', sa.String(64), unique=True),
        sa.Column('public_expires_at', TIMESTAMP),
        sa.Column('published_at', TIMESTAMP),
        _user_fk('created_by_user_id'),
        _created_at(),
    )
    op.create_index('idx_marketing_reports_project', 'marketing_reports', ['project_id'])

    # ==========================================================================
    # Support widget
    # ==========================================================================
    op.create_table(
        'support_tickets',
        _id(),
        _org_fk(),
        _user_fk('user_id'),
        sa.Column('user_email', sa.String(320), nullable=False),
        sa.Column('user_name', sa.String(255)),
        sa.Column('subject', sa.String(100), nullable=False),
        sa.Column('status', sa.String(20), server_default='open', nullable=False),
        sa.Column('resolved_at', TIMESTAMP),
        _created_at(),
        _updated_at(),
    )
    op.create_index('idx_support_tickets_org', 'support_tickets', ['organization_id'])
    op.create_index('idx_support_tickets_user', 'support_tickets', ['user_id'])

    op.create_table(
        'support_messages',
        _id(),
        sa.Column('ticket_id', sa.Uuid(), sa.ForeignKey('support_tickets.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_from_support', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('sender_email', sa.String(320)),
        sa.Column('sender_name', sa.String(255)),
        _created_at(),
    )
    op.create_index('idx_support_messages_ticket', 'support_messages', ['ticket_id'])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    for table in (
        'support_messages',
        'support_tickets',
        'marketing_reports',
        'marketing_leads',
        'marketing_expense_logs',
        'marketing_campaigns',
        'dm_messages',
        'dm_members',
        'dm_channels',
        'chat_invites',
        'chat_threads',
        'chat_messages',
        'chat_member_roles',
        'chat_members',
        'chat_roles',
        'chat_channels',
        'chat_categories',
        'chat_servers',
        'tasks',
        'daily_quotes',
        'team_schedule_events',
        'leave_requests',
        'invoice_items',
        'invoices',
        'projects',
        'emails',
        'workflow_actions',
        'workflows',
        'deals',
        'deal_stages',
        'patient_insurances',
        'patients',
        'memberships',
        'users',
        'organizations',
    ):
        op.drop_table(table)
