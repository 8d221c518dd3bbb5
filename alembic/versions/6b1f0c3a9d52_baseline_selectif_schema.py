"""baseline_selectif_schema

Revision ID: 6b1f0c3a9d52
Revises:
Create Date: 2026-02-03 10:12:41.118204

Production-safe migration: only creates tables that do not exist yet.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '6b1f0c3a9d52'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


user_role = sa.Enum('USER', 'ADMIN', name='userrole')
user_type = sa.Enum('COMPANY', 'CANDIDATE', name='usertype')
promo_type = sa.Enum('PERCENTAGE', 'FIXED_AMOUNT', 'FREE_MONTHS', name='promotype')
job_type = sa.Enum('FULL_TIME', 'PART_TIME', 'CONTRACT', 'INTERNSHIP', 'FREELANCE', name='jobtype')
job_status = sa.Enum('DRAFT', 'PUBLISHED', 'CLOSED', 'ARCHIVED', name='jobstatus')
application_status = sa.Enum(
    'PENDING', 'ANALYZING', 'ANALYZED', 'SHORTLISTED', 'REJECTED', 'CONTACTED', name='applicationstatus'
)
campaign_recipients = sa.Enum(
    'ALL', 'ALL_CANDIDATES', 'ALL_COMPANIES', 'FREE_COMPANIES', 'PAID_COMPANIES', 'PREMIUM_CANDIDATES', 'CUSTOM',
    name='campaignrecipients'
)
campaign_status = sa.Enum('DRAFT', 'SENDING', 'SENT', name='campaignstatus')
ticket_category = sa.Enum('BUG', 'HELP', 'FEATURE', 'CONTACT', name='ticketcategory')
ticket_status = sa.Enum('OPEN', 'IN_PROGRESS', 'RESOLVED', 'CLOSED', name='ticketstatus')

NOW = sa.text('(CURRENT_TIMESTAMP)')


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    if not table_exists('users'):
        op.create_table('users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('email', sa.String(), nullable=False),
            sa.Column('name', sa.String(), nullable=True),
            sa.Column('password_hash', sa.String(), nullable=False),
            sa.Column('role', user_role, nullable=False),
            sa.Column('user_type', user_type, nullable=False),
            sa.Column('onboarding_completed', sa.Boolean(), nullable=False),
            sa.Column('suspended', sa.Boolean(), nullable=False),
            sa.Column('suspended_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('suspension_reason', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
        op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
        op.create_index(op.f('ix_users_user_type'), 'users', ['user_type'], unique=False)
        op.create_index(op.f('ix_users_created_at'), 'users', ['created_at'], unique=False)

    if not table_exists('companies'):
        op.create_table('companies',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('company_name', sa.String(), nullable=False),
            sa.Column('industry', sa.String(), nullable=True),
            sa.Column('company_size', sa.String(), nullable=True),
            sa.Column('location', sa.String(), nullable=True),
            sa.Column('website', sa.String(), nullable=True),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('logo', sa.String(), nullable=True),
            sa.Column('onboarded_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id')
        )
        op.create_index(op.f('ix_companies_id'), 'companies', ['id'], unique=False)
        op.create_index(op.f('ix_companies_company_name'), 'companies', ['company_name'], unique=False)

    if not table_exists('candidates'):
        op.create_table('candidates',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('first_name', sa.String(), nullable=False),
            sa.Column('last_name', sa.String(), nullable=False),
            sa.Column('phone', sa.String(), nullable=True),
            sa.Column('linkedin_url', sa.String(), nullable=True),
            sa.Column('portfolio_url', sa.String(), nullable=True),
            sa.Column('bio', sa.Text(), nullable=True),
            sa.Column('onboarded_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id')
        )
        op.create_index(op.f('ix_candidates_id'), 'candidates', ['id'], unique=False)

    if not table_exists('promo_codes'):
        op.create_table('promo_codes',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('code', sa.String(), nullable=False),
            sa.Column('type', promo_type, nullable=False),
            sa.Column('value', sa.Float(), nullable=False),
            sa.Column('applicable_to', sa.String(), nullable=True),
            sa.Column('max_uses', sa.Integer(), nullable=True),
            sa.Column('current_uses', sa.Integer(), nullable=False),
            sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('active', sa.Boolean(), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('created_by', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_promo_codes_id'), 'promo_codes', ['id'], unique=False)
        op.create_index(op.f('ix_promo_codes_code'), 'promo_codes', ['code'], unique=True)

    if not table_exists('subscriptions'):
        op.create_table('subscriptions',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('plan', sa.String(), nullable=False),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('max_jobs', sa.Integer(), nullable=True),
            sa.Column('max_apps_per_job', sa.Integer(), nullable=True),
            sa.Column('max_ai_analyses_month', sa.Integer(), nullable=True),
            sa.Column('ai_analyses_used', sa.Integer(), nullable=False),
            sa.Column('ai_usage_reset_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('current_period_end', sa.DateTime(timezone=True), nullable=True),
            sa.Column('promo_code_id', sa.Integer(), nullable=True),
            sa.Column('discount_percent', sa.Float(), nullable=True),
            sa.Column('discount_amount', sa.Float(), nullable=True),
            sa.Column('stripe_customer_id', sa.String(), nullable=True),
            sa.Column('stripe_checkout_session_id', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['promo_code_id'], ['promo_codes.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id')
        )
        op.create_index(op.f('ix_subscriptions_id'), 'subscriptions', ['id'], unique=False)
        op.create_index(op.f('ix_subscriptions_plan'), 'subscriptions', ['plan'], unique=False)
        op.create_index(op.f('ix_subscriptions_stripe_customer_id'), 'subscriptions', ['stripe_customer_id'], unique=False)

    if not table_exists('job_offers'):
        op.create_table('job_offers',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('public_id', sa.String(length=32), nullable=False),
            sa.Column('company_id', sa.Integer(), nullable=False),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('description', sa.Text(), nullable=False),
            sa.Column('requirements', sa.Text(), nullable=False),
            sa.Column('location', sa.String(), nullable=True),
            sa.Column('job_type', job_type, nullable=False),
            sa.Column('salary_range', sa.String(), nullable=True),
            sa.Column('interview_slots', sa.Integer(), nullable=False),
            sa.Column('status', job_status, nullable=False),
            sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('idx_job_company_status', 'job_offers', ['company_id', 'status'], unique=False)
        op.create_index(op.f('ix_job_offers_id'), 'job_offers', ['id'], unique=False)
        op.create_index(op.f('ix_job_offers_public_id'), 'job_offers', ['public_id'], unique=True)
        op.create_index(op.f('ix_job_offers_company_id'), 'job_offers', ['company_id'], unique=False)
        op.create_index(op.f('ix_job_offers_title'), 'job_offers', ['title'], unique=False)
        op.create_index(op.f('ix_job_offers_status'), 'job_offers', ['status'], unique=False)
        op.create_index(op.f('ix_job_offers_created_at'), 'job_offers', ['created_at'], unique=False)

    if not table_exists('applications'):
        op.create_table('applications',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('job_offer_id', sa.Integer(), nullable=False),
            sa.Column('candidate_id', sa.Integer(), nullable=True),
            sa.Column('guest_first_name', sa.String(), nullable=True),
            sa.Column('guest_last_name', sa.String(), nullable=True),
            sa.Column('guest_email', sa.String(), nullable=True),
            sa.Column('guest_phone', sa.String(), nullable=True),
            sa.Column('linkedin_url', sa.String(), nullable=True),
            sa.Column('motivation_letter', sa.Text(), nullable=True),
            sa.Column('cv_data', sa.LargeBinary(), nullable=True),
            sa.Column('cv_file_name', sa.String(), nullable=True),
            sa.Column('cv_file_size', sa.Integer(), nullable=True),
            sa.Column('cv_mime_type', sa.String(), nullable=True),
            sa.Column('consent_given', sa.Boolean(), nullable=False),
            sa.Column('data_retention_until', sa.DateTime(timezone=True), nullable=True),
            sa.Column('status', application_status, nullable=False),
            sa.Column('ai_score', sa.Integer(), nullable=True),
            sa.Column('ai_analysis', sa.Text(), nullable=True),
            sa.Column('ai_processed_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('ai_error', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.ForeignKeyConstraint(['job_offer_id'], ['job_offers.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['candidate_id'], ['candidates.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('idx_application_job_status', 'applications', ['job_offer_id', 'status'], unique=False)
        op.create_index(op.f('ix_applications_id'), 'applications', ['id'], unique=False)
        op.create_index(op.f('ix_applications_job_offer_id'), 'applications', ['job_offer_id'], unique=False)
        op.create_index(op.f('ix_applications_candidate_id'), 'applications', ['candidate_id'], unique=False)
        op.create_index(op.f('ix_applications_guest_email'), 'applications', ['guest_email'], unique=False)
        op.create_index(op.f('ix_applications_status'), 'applications', ['status'], unique=False)
        op.create_index(op.f('ix_applications_ai_score'), 'applications', ['ai_score'], unique=False)
        op.create_index(op.f('ix_applications_created_at'), 'applications', ['created_at'], unique=False)

    if not table_exists('pricing_promotions'):
        op.create_table('pricing_promotions',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('plan', sa.String(), nullable=False),
            sa.Column('discount_percent', sa.Integer(), nullable=False),
            sa.Column('label', sa.String(), nullable=True),
            sa.Column('valid_from', sa.DateTime(timezone=True), nullable=True),
            sa.Column('valid_until', sa.DateTime(timezone=True), nullable=True),
            sa.Column('active', sa.Boolean(), nullable=False),
            sa.Column('created_by', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_pricing_promotions_id'), 'pricing_promotions', ['id'], unique=False)
        op.create_index(op.f('ix_pricing_promotions_plan'), 'pricing_promotions', ['plan'], unique=False)

    if not table_exists('email_campaigns'):
        op.create_table('email_campaigns',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('subject', sa.String(), nullable=False),
            sa.Column('body', sa.Text(), nullable=False),
            sa.Column('recipients', campaign_recipients, nullable=False),
            sa.Column('custom_recipients', sa.JSON(), nullable=True),
            sa.Column('status', campaign_status, nullable=False),
            sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('total_sent', sa.Integer(), nullable=False),
            sa.Column('total_failed', sa.Integer(), nullable=False),
            sa.Column('created_by', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_email_campaigns_id'), 'email_campaigns', ['id'], unique=False)
        op.create_index(op.f('ix_email_campaigns_created_at'), 'email_campaigns', ['created_at'], unique=False)

    if not table_exists('notifications'):
        op.create_table('notifications',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('type', sa.String(), nullable=False),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('message', sa.Text(), nullable=False),
            sa.Column('details', sa.JSON(), nullable=True),
            sa.Column('read', sa.Boolean(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('idx_notification_user_read', 'notifications', ['user_id', 'read'], unique=False)
        op.create_index(op.f('ix_notifications_id'), 'notifications', ['id'], unique=False)
        op.create_index(op.f('ix_notifications_user_id'), 'notifications', ['user_id'], unique=False)
        op.create_index(op.f('ix_notifications_created_at'), 'notifications', ['created_at'], unique=False)

    if not table_exists('admin_notifications'):
        op.create_table('admin_notifications',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('type', sa.String(), nullable=False),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('message', sa.Text(), nullable=False),
            sa.Column('severity', sa.String(), nullable=False),
            sa.Column('details', sa.JSON(), nullable=True),
            sa.Column('read', sa.Boolean(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_admin_notifications_id'), 'admin_notifications', ['id'], unique=False)
        op.create_index(op.f('ix_admin_notifications_created_at'), 'admin_notifications', ['created_at'], unique=False)

    if not table_exists('audit_logs'):
        op.create_table('audit_logs',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=True),
            sa.Column('action', sa.String(), nullable=False),
            sa.Column('entity', sa.String(), nullable=False),
            sa.Column('entity_id', sa.String(), nullable=True),
            sa.Column('details', sa.JSON(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_audit_logs_id'), 'audit_logs', ['id'], unique=False)
        op.create_index(op.f('ix_audit_logs_user_id'), 'audit_logs', ['user_id'], unique=False)
        op.create_index(op.f('ix_audit_logs_action'), 'audit_logs', ['action'], unique=False)
        op.create_index(op.f('ix_audit_logs_created_at'), 'audit_logs', ['created_at'], unique=False)

    if not table_exists('support_tickets'):
        op.create_table('support_tickets',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('category', ticket_category, nullable=False),
            sa.Column('subject', sa.String(), nullable=False),
            sa.Column('description', sa.Text(), nullable=False),
            sa.Column('priority', sa.String(), nullable=False),
            sa.Column('status', ticket_status, nullable=False),
            sa.Column('user_agent', sa.String(), nullable=True),
            sa.Column('current_url', sa.String(), nullable=True),
            sa.Column('details', sa.JSON(), nullable=True),
            sa.Column('admin_response', sa.Text(), nullable=True),
            sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_support_tickets_id'), 'support_tickets', ['id'], unique=False)
        op.create_index(op.f('ix_support_tickets_user_id'), 'support_tickets', ['user_id'], unique=False)
        op.create_index(op.f('ix_support_tickets_status'), 'support_tickets', ['status'], unique=False)
        op.create_index(op.f('ix_support_tickets_created_at'), 'support_tickets', ['created_at'], unique=False)


def downgrade() -> None:
    for table in (
        'support_tickets',
        'audit_logs',
        'admin_notifications',
        'notifications',
        'email_campaigns',
        'pricing_promotions',
        'applications',
        'job_offers',
        'subscriptions',
        'promo_codes',
        'candidates',
        'companies',
        'users',
    ):
        if table_exists(table):
            op.drop_table(table)

    bind = op.get_bind()
    for enum_type in (
        ticket_status, ticket_category, campaign_status, campaign_recipients, application_status,
        job_status, job_type, promo_type, user_type, user_role,
    ):
        enum_type.drop(bind, checkfirst=True)
