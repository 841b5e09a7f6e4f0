"""Create otps and user_app_access tables

Revision ID: 7c41d2e9a0b3
Revises:
Create Date: 2026-10-18 09:12:44.512301

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '7c41d2e9a0b3'
down_revision = None
branch_labels = None
depends_on = None

delivery_channel = sa.Enum('email', 'sms', 'both', name='deliverychannel')
granted_via = sa.Enum('payment', 'bundle', 'otp', 'admin', 'free', name='grantedvia')


def upgrade() -> None:
    op.create_table(
        'otps',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('app_id', sa.String(100), nullable=False),
        sa.Column('otp_code', sa.String(64), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('delivery_channel', delivery_channel, nullable=False),
        sa.Column('email_sent', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('sms_sent', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('reason', sa.String(100), nullable=False, server_default='payment_verification'),
        sa.Column('payment_transaction_id', sa.String(255), nullable=True),
        sa.Column('admin_generated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.Column('verification_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_otps_id', 'otps', ['id'])
    op.create_index('ix_otps_user_id', 'otps', ['user_id'])
    op.create_index('ix_otps_email', 'otps', ['email'])
    op.create_index('ix_otps_app_id', 'otps', ['app_id'])
    op.create_index('ix_otps_payment_transaction_id', 'otps', ['payment_transaction_id'])
    op.create_index('ix_otps_created_at', 'otps', ['created_at'])

    op.create_table(
        'user_app_access',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('app_id', sa.String(100), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('granted_via', granted_via, nullable=False),
        sa.Column('payment_id', sa.String(255), nullable=True),
        sa.Column('access_granted_at', sa.DateTime(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.Column('revoke_reason', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'app_id', name='uq_user_app_access_user_app'),
    )
    op.create_index('ix_user_app_access_id', 'user_app_access', ['id'])
    op.create_index('ix_user_app_access_user_id', 'user_app_access', ['user_id'])
    op.create_index('ix_user_app_access_app_id', 'user_app_access', ['app_id'])
    op.create_index('ix_user_app_access_is_active', 'user_app_access', ['is_active'])
    op.create_index('ix_user_app_access_created_at', 'user_app_access', ['created_at'])


def downgrade() -> None:
    op.drop_table('user_app_access')
    op.drop_table('otps')
    granted_via.drop(op.get_bind(), checkfirst=True)
    delivery_channel.drop(op.get_bind(), checkfirst=True)
