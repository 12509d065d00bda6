"""Clinical notes with task checklists; appointments.has_notes

Revision ID: 7a4d2b9c5e31
Revises: 3c9e1f2a7b10
Create Date: 2026-04-02 11:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '7a4d2b9c5e31'
down_revision = '3c9e1f2a7b10'
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table('appointments', schema=None) as batch_op:
        batch_op.add_column(sa.Column('has_notes', sa.Boolean(), server_default=sa.false(), nullable=False))

    op.create_table(
        'clinical_notes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('patient_id', sa.String(length=36), nullable=False),
        sa.Column('appointment_id', sa.Integer(), nullable=True),
        sa.Column('note_type', sa.String(length=10), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('tasks', sa.Text(), server_default='[]', nullable=False),
        sa.Column('created_by', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['appointment_id'], ['appointments.id'], ),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('clinical_notes', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_clinical_notes_patient_id'), ['patient_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_clinical_notes_appointment_id'), ['appointment_id'], unique=False)


def downgrade():
    op.drop_table('clinical_notes')
    with op.batch_alter_table('appointments', schema=None) as batch_op:
        batch_op.drop_column('has_notes')
