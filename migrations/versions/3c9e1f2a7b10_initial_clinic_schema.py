"""Initial clinic schema: patients, appointments, payments, Psique ledger, invoice queue

Revision ID: 3c9e1f2a7b10
Revises:
Create Date: 2026-03-01 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c9e1f2a7b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'patients',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('email', sa.String(length=120), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('dni', sa.String(length=20), nullable=True),
        sa.Column('birth_date', sa.String(length=10), nullable=True),
        sa.Column('fee', sa.Float(), nullable=True),
        sa.Column('modality', sa.String(length=20), nullable=True),
        sa.Column('professional', sa.String(length=100), nullable=True),
        sa.Column('patient_source', sa.String(length=20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('discharge_date', sa.String(length=10), nullable=True),
        sa.Column('discharge_reason', sa.Text(), nullable=True),
        sa.Column('guardian_name', sa.String(length=200), nullable=True),
        sa.Column('guardian_phone', sa.String(length=30), nullable=True),
        sa.Column('guardian_relationship', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('patients', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_patients_name'), ['name'], unique=False)
        batch_op.create_index(batch_op.f('ix_patients_professional'), ['professional'], unique=False)

    op.create_table(
        'appointments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('patient_id', sa.String(length=36), nullable=False),
        sa.Column('patient_name', sa.String(length=200), nullable=False),
        sa.Column('professional', sa.String(length=100), nullable=True),
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('time', sa.String(length=5), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('modality', sa.String(length=20), nullable=True),
        sa.Column('meet_link', sa.String(length=500), nullable=True),
        sa.Column('consultation_type', sa.String(length=100), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('is_paid', sa.Boolean(), nullable=False),
        sa.Column('price', sa.Float(), nullable=True),
        sa.Column('charge_on_cancellation', sa.Boolean(), nullable=False),
        sa.Column('exclude_from_psique', sa.Boolean(), nullable=False),
        sa.Column('recurrence_id', sa.String(length=36), nullable=True),
        sa.Column('recurrence_index', sa.Integer(), nullable=True),
        sa.Column('recurrence_rule', sa.String(length=20), nullable=True),
        sa.Column('created_by', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('appointments', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_appointments_patient_id'), ['patient_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_appointments_professional'), ['professional'], unique=False)
        batch_op.create_index(batch_op.f('ix_appointments_date'), ['date'], unique=False)
        batch_op.create_index(batch_op.f('ix_appointments_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_appointments_recurrence_id'), ['recurrence_id'], unique=False)

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('patient_id', sa.String(length=36), nullable=True),
        sa.Column('patient_name', sa.String(length=200), nullable=True),
        sa.Column('appointment_id', sa.Integer(), nullable=True),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('concept', sa.String(length=255), nullable=True),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('created_by', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['appointment_id'], ['appointments.id'], ),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('payments', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_payments_patient_id'), ['patient_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_payments_appointment_id'), ['appointment_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_payments_date'), ['date'], unique=False)

    op.create_table(
        'partner_payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('month', sa.String(length=7), nullable=False),
        sa.Column('professional', sa.String(length=100), server_default='', nullable=False),
        sa.Column('doc_key', sa.String(length=150), nullable=False),
        sa.Column('total_amount', sa.Float(), nullable=False),
        sa.Column('is_paid', sa.Boolean(), nullable=False),
        sa.Column('paid_date', sa.String(length=10), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('month', 'professional', name='uq_partner_payments_month_professional')
    )
    with op.batch_alter_table('partner_payments', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_partner_payments_month'), ['month'], unique=False)
        batch_op.create_index(batch_op.f('ix_partner_payments_professional'), ['professional'], unique=False)
        batch_op.create_index(batch_op.f('ix_partner_payments_doc_key'), ['doc_key'], unique=False)

    op.create_table(
        'billing_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('request_type', sa.String(length=20), nullable=False),
        sa.Column('appointment_ids', sa.Text(), nullable=False),
        sa.Column('patient_id', sa.String(length=36), nullable=False),
        sa.Column('patient_name', sa.String(length=200), nullable=True),
        sa.Column('patient_dni', sa.String(length=20), nullable=True),
        sa.Column('patient_email', sa.String(length=120), nullable=True),
        sa.Column('total_price', sa.Float(), nullable=False),
        sa.Column('line_items', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('invoice_url', sa.String(length=500), nullable=True),
        sa.Column('invoice_number', sa.String(length=50), nullable=True),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('retry_count', sa.Integer(), nullable=False),
        sa.Column('requested_by', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('billing_requests', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_billing_requests_patient_id'), ['patient_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_billing_requests_status'), ['status'], unique=False)

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('entity_type', sa.String(length=64), nullable=False),
        sa.Column('entity_id', sa.String(length=64), nullable=True),
        sa.Column('action', sa.String(length=32), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=True),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('audit_logs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_audit_logs_entity_type'), ['entity_type'], unique=False)
        batch_op.create_index(batch_op.f('ix_audit_logs_entity_id'), ['entity_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_audit_logs_action'), ['action'], unique=False)
        batch_op.create_index(batch_op.f('ix_audit_logs_user_id'), ['user_id'], unique=False)


def downgrade():
    op.drop_table('audit_logs')
    op.drop_table('billing_requests')
    op.drop_table('partner_payments')
    op.drop_table('payments')
    op.drop_table('appointments')
    op.drop_table('patients')
