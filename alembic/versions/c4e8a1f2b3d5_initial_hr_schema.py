"""initial_hr_schema

Revision ID: c4e8a1f2b3d5
Revises:
Create Date: 2026-10-19 09:00:00.000000

HR 운영 스키마 생성: 조직, 사용자, 프로필, 토큰, 초대, 근태, 휴가, 급여, 감사 로그.
Create the HR operations schema: organizations, users, profiles, tokens,
invitations, attendance, leave, payroll and audit log.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID


# revision identifiers, used by Alembic.
revision: str = 'c4e8a1f2b3d5'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _org_fk() -> sa.Column:
    return sa.Column(
        'organization_id', UUID(as_uuid=True),
        sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # organizations — 테넌트 루트, 정책은 JSONB 하위 문서
    # Tenant root; policies are JSONB sub-documents with configured locks
    op.create_table(
        'organizations',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('timezone', sa.String(64), server_default='Asia/Kolkata', nullable=False),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('contact_email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(32), nullable=True),
        sa.Column('logo_url', sa.String(1024), nullable=True),
        sa.Column('logo_key', sa.String(512), nullable=True),
        sa.Column('working_hours', JSONB(), nullable=False),
        sa.Column('week_off_days', JSONB(), nullable=False),
        sa.Column('attendance_policy', JSONB(), nullable=False),
        sa.Column('attendance_policy_configured', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('leave_policy', JSONB(), nullable=False),
        sa.Column('leave_policy_configured', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('notification_preferences', JSONB(), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=True),
        *_timestamps(),
    )

    # counters — 조직별 사번 시퀀스 (Per-organization employee ID sequence)
    op.create_table(
        'counters',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        _org_fk(),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('value', sa.Integer(), server_default='0', nullable=False),
        sa.UniqueConstraint('organization_id', 'name', name='uq_counters_org_name'),
    )

    # users — 로그인 계정 (Login identities; email is globally unique)
    op.create_table(
        'users',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        _org_fk(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), server_default='EMPLOYEE', nullable=False),
        sa.Column('is_verified', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_organization_id', 'users', ['organization_id'])

    # employee_profiles — 사용자 1:1, PAN/Aadhaar 암호문 저장
    # One per user; PAN/Aadhaar stored as ciphertext only
    op.create_table(
        'employee_profiles',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        _org_fk(),
        sa.Column('employee_id', sa.String(20), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(32), nullable=True),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('pan_encrypted', sa.String(512), nullable=True),
        sa.Column('aadhaar_encrypted', sa.String(512), nullable=True),
        sa.Column('emergency_contact', sa.JSON(), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('date_of_joining', sa.Date(), nullable=True),
        sa.Column('department', sa.String(100), nullable=True),
        sa.Column('position', sa.String(100), nullable=True),
        sa.Column('status', sa.String(20), server_default='ACTIVE', nullable=False),
        sa.Column('completion_percent', sa.Integer(), server_default='0', nullable=False),
        sa.Column('completed_sections', sa.JSON(), nullable=False),
        sa.Column('is_completed', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('organization_id', 'employee_id', name='uq_employee_profiles_org_employee_id'),
    )
    op.create_index('ix_employee_profiles_organization_id', 'employee_profiles', ['organization_id'])

    # tokens — 단회용 토큰 (Single-use verification, reset and refresh tokens)
    op.create_table(
        'tokens',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('token', sa.String(255), nullable=False, unique=True),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('is_used', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_tokens_user_id', 'tokens', ['user_id'])

    # invitations — 초대 (Pending membership offers)
    op.create_table(
        'invitations',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        _org_fk(),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('token', sa.String(255), nullable=False, unique=True),
        sa.Column('invited_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('accepted', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('accepted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_invitations_organization_id', 'invitations', ['organization_id'])
    op.create_index('ix_invitations_email', 'invitations', ['email'])

    # attendances — 출근 1건당 1행 (One row per check-in)
    op.create_table(
        'attendances',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        _org_fk(),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('check_in', sa.DateTime(timezone=True), nullable=False),
        sa.Column('check_out', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(20), server_default='PRESENT', nullable=False),
        sa.Column('is_manual_edit', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('device_info', sa.String(512), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_attendances_user_id', 'attendances', ['user_id'])
    op.create_index('ix_attendances_org_check_in', 'attendances', ['organization_id', 'check_in'])
    # 부분 유니크 인덱스 — 사용자당 열린 세션 1개
    # Partial unique index: at most one open session per user
    op.create_index(
        'uq_attendances_open_session',
        'attendances',
        ['user_id'],
        unique=True,
        postgresql_where=sa.text('check_out IS NULL'),
    )

    # leave_types — 휴가 정책에서 동기화 (Synced from the leave policy)
    op.create_table(
        'leave_types',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        _org_fk(),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('category', sa.String(20), nullable=False),
        sa.Column('is_paid', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('requires_approval', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('auto_approve', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('max_per_year', sa.Integer(), server_default='0', nullable=False),
        sa.Column('carry_forward', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('organization_id', 'name', name='uq_leave_types_org_name'),
    )

    # leave_balances — 유형 삭제 후에도 잔여 유지, FK 없음
    # Balances outlive a deleted leave type, so leave_type_id has no FK
    op.create_table(
        'leave_balances',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        _org_fk(),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('leave_type_id', UUID(as_uuid=True), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('used', sa.Float(), server_default='0', nullable=False),
        sa.Column('remaining', sa.Float(), server_default='0', nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'leave_type_id', 'year', name='uq_leave_balances_user_type_year'),
    )
    op.create_index('ix_leave_balances_organization_id', 'leave_balances', ['organization_id'])

    # leave_requests — 휴가 신청 (Leave applications)
    op.create_table(
        'leave_requests',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        _org_fk(),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('leave_type_id', UUID(as_uuid=True), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('total_days', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), server_default='PENDING', nullable=False),
        sa.Column('approved_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_leave_requests_organization_id', 'leave_requests', ['organization_id'])
    op.create_index('ix_leave_requests_user_id', 'leave_requests', ['user_id'])
    op.create_index('ix_leave_requests_leave_type_id', 'leave_requests', ['leave_type_id'])

    # salary_structures — 사용자 1:1 급여 구조 (One per user)
    op.create_table(
        'salary_structures',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        _org_fk(),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('gross_salary', sa.Float(), nullable=False),
        sa.Column('basic', sa.Float(), nullable=False),
        sa.Column('hra', sa.Float(), nullable=False),
        sa.Column('other_allowances', sa.Float(), nullable=False),
        sa.Column('per_day_salary', sa.Float(), nullable=False),
        sa.Column('bank_name', sa.String(255), nullable=True),
        sa.Column('account_number', sa.String(64), nullable=True),
        sa.Column('ifsc_code', sa.String(20), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_salary_structures_organization_id', 'salary_structures', ['organization_id'])

    # payrolls — 직원/월/연도당 1건 (One row per employee and period)
    op.create_table(
        'payrolls',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        _org_fk(),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('gross_salary', sa.Float(), nullable=False),
        sa.Column('basic', sa.Float(), nullable=False),
        sa.Column('hra', sa.Float(), nullable=False),
        sa.Column('other_allowances', sa.Float(), nullable=False),
        sa.Column('reimbursement', sa.Float(), server_default='0', nullable=False),
        sa.Column('incentives', sa.Float(), server_default='0', nullable=False),
        sa.Column('arrears', sa.Float(), server_default='0', nullable=False),
        sa.Column('tds_deduction', sa.Float(), server_default='0', nullable=False),
        sa.Column('other_deductions', sa.Float(), server_default='0', nullable=False),
        sa.Column('working_days', sa.Integer(), server_default='30', nullable=False),
        sa.Column('present_days', sa.Float(), server_default='30', nullable=False),
        sa.Column('lop_days', sa.Float(), server_default='0', nullable=False),
        sa.Column('total_earnings', sa.Float(), server_default='0', nullable=False),
        sa.Column('total_deductions', sa.Float(), server_default='0', nullable=False),
        sa.Column('net_salary', sa.Float(), server_default='0', nullable=False),
        sa.Column('status', sa.String(20), server_default='DRAFT', nullable=False),
        sa.Column('paid_on', sa.Date(), nullable=True),
        sa.Column('payment_method', sa.String(50), nullable=True),
        sa.Column('transaction_id', sa.String(100), nullable=True),
        sa.Column('generated_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'month', 'year', name='uq_payrolls_user_month_year'),
    )
    op.create_index('ix_payrolls_organization_id', 'payrolls', ['organization_id'])

    # audit_logs — 추가 전용 이력 (Append-only history)
    op.create_table(
        'audit_logs',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        _org_fk(),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_audit_logs_org_created', 'audit_logs', ['organization_id', 'created_at'])
    op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('payrolls')
    op.drop_table('salary_structures')
    op.drop_table('leave_requests')
    op.drop_table('leave_balances')
    op.drop_table('leave_types')
    op.drop_index('uq_attendances_open_session', table_name='attendances')
    op.drop_table('attendances')
    op.drop_table('invitations')
    op.drop_table('tokens')
    op.drop_table('employee_profiles')
    op.drop_table('users')
    op.drop_table('counters')
    op.drop_table('organizations')
