"""Initial schema: users, partners, referrals, submissions, payouts, commissions, revenue

Revision ID: 0001_partner_commissions
Revises:
Create Date: 2026-10-17 10:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_partner_commissions'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('role', sa.Enum('dancer', 'producer', 'partner', 'admin', name='user_role_enum'),
                  nullable=False, server_default='dancer'),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('username', sa.String(), nullable=True),
        sa.Column('hashed_password', sa.String(), nullable=True),
        sa.Column('stripe_account_id', sa.String(), nullable=True),
        sa.Column('stripe_onboarded', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table(
        'partners',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('user_id', sa.BigInteger(), sa.ForeignKey('users.id'), nullable=True, unique=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False, unique=True),
        sa.Column('referral_code', sa.String(), nullable=False, unique=True),
        sa.Column('status', sa.Enum('active', 'suspended', name='partner_status_enum'),
                  nullable=False, server_default='active'),
        sa.Column('stripe_account_id', sa.String(), nullable=True),
        sa.Column('stripe_onboarded', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('commission_tiers', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_partners_id', 'partners', ['id'])

    op.create_table(
        'partner_referrals',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('partner_id', sa.BigInteger(), sa.ForeignKey('partners.id'), nullable=False),
        sa.Column('dancer_id', sa.BigInteger(), sa.ForeignKey('users.id'), nullable=False, unique=True),
        sa.Column('linked_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_partner_referrals_id', 'partner_referrals', ['id'])
    op.create_index('ix_partner_referrals_partner_id', 'partner_referrals', ['partner_id'])

    op.create_table(
        'submissions',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('dancer_id', sa.BigInteger(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('campaign_id', sa.BigInteger(), nullable=True),
        sa.Column('video_url', sa.String(), nullable=True),
        sa.Column('platform', sa.String(), nullable=True),
        sa.Column('review_status', sa.Enum('pending', 'approved', 'rejected', name='review_status_enum'),
                  nullable=False, server_default='pending'),
        sa.Column('submitted_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_submissions_id', 'submissions', ['id'])
    op.create_index('ix_submissions_dancer_id', 'submissions', ['dancer_id'])
    op.create_index('ix_submissions_review_status', 'submissions', ['review_status'])
    op.create_index('ix_submissions_submitted_at', 'submissions', ['submitted_at'])

    op.create_table(
        'payouts',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('submission_id', sa.BigInteger(), sa.ForeignKey('submissions.id'), nullable=False, unique=True),
        sa.Column('dancer_id', sa.BigInteger(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('status', sa.Enum('pending', 'completed', 'failed', name='payout_status_enum'),
                  nullable=False, server_default='pending'),
        sa.Column('stripe_transfer_id', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_payouts_id', 'payouts', ['id'])
    op.create_index('ix_payouts_dancer_id', 'payouts', ['dancer_id'])
    op.create_index('ix_payouts_status', 'payouts', ['status'])

    op.create_table(
        'partner_commissions',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('partner_id', sa.BigInteger(), sa.ForeignKey('partners.id'), nullable=False),
        # payout_id is the natural key: at most one commission per payout
        sa.Column('payout_id', sa.BigInteger(), sa.ForeignKey('payouts.id'), nullable=False, unique=True),
        sa.Column('dancer_id', sa.BigInteger(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('dancer_payout_cents', sa.Integer(), nullable=False),
        sa.Column('commission_rate', sa.Numeric(5, 4), nullable=False),
        sa.Column('commission_cents', sa.Integer(), nullable=False),
        sa.Column('status', sa.Enum('pending', 'paid', name='commission_status_enum'),
                  nullable=False, server_default='pending'),
        sa.Column('stripe_transfer_id', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_partner_commissions_id', 'partner_commissions', ['id'])
    op.create_index('ix_partner_commissions_partner_id', 'partner_commissions', ['partner_id'])
    op.create_index('ix_partner_commissions_status', 'partner_commissions', ['status'])

    op.create_table(
        'revenue_events',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('track_title', sa.String(), nullable=True),
        sa.Column('producer_name', sa.String(), nullable=True),
        sa.Column('gross_revenue', sa.Numeric(12, 2), nullable=False),
        sa.Column('platform_fee', sa.Numeric(12, 2), nullable=False),
        sa.Column('net_revenue', sa.Numeric(12, 2), nullable=False),
        sa.Column('producer_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('platform_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('payout_status', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_revenue_events_id', 'revenue_events', ['id'])
    op.create_index('ix_revenue_events_created_at', 'revenue_events', ['created_at'])


def downgrade():
    op.drop_table('revenue_events')
    op.drop_table('partner_commissions')
    op.drop_table('payouts')
    op.drop_table('submissions')
    op.drop_table('partner_referrals')
    op.drop_table('partners')
    op.drop_table('users')
    for enum_name in (
        'commission_status_enum',
        'payout_status_enum',
        'review_status_enum',
        'partner_status_enum',
        'user_role_enum',
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
