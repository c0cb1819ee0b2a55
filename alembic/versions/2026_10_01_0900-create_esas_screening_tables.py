"""Create profiles, patients and screenings tables

Revision ID: create_esas_screening
Revises:
Create Date: 2026-10-01 09:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'create_esas_screening'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('full_name', sa.String(length=100), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='patient'),
        sa.Column('title', sa.String(length=100), nullable=True),
        sa.Column('license_number', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_profiles_email', 'profiles', ['email'], unique=False)
    op.create_index('ix_profiles_role', 'profiles', ['role'], unique=False)

    op.create_table(
        'patients',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('account_id', sa.String(length=36), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('age', sa.Integer(), nullable=False),
        sa.Column('gender', sa.String(length=1), nullable=False),
        sa.Column('facility_name', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id']),
        sa.ForeignKeyConstraint(['account_id'], ['profiles.id']),
        sa.PrimaryKeyConstraint('id'),
        # One self profile per account; a racing second insert fails here
        sa.UniqueConstraint('account_id', name='uq_patients_account_id'),
        sa.CheckConstraint("gender IN ('L', 'P')", name='ck_patients_gender'),
    )
    op.create_index('ix_patients_user_id', 'patients', ['user_id'], unique=False)

    op.create_table(
        'screenings',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('subject_type', sa.String(length=20), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=True),
        sa.Column('patient_id', sa.String(length=36), nullable=True),
        sa.Column('guest_identifier', sa.String(length=36), nullable=True),
        sa.Column('screening_type', sa.String(length=20), nullable=False, server_default='initial'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='completed'),
        sa.Column('esas_data', sa.JSON(), nullable=False),
        sa.Column('highest_score', sa.Integer(), nullable=False),
        sa.Column('primary_question', sa.Integer(), nullable=False),
        sa.Column('risk_level', sa.String(length=10), nullable=False),
        sa.Column('priority_rank', sa.Integer(), nullable=False),
        sa.Column('recommendation', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('linked_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id']),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("highest_score BETWEEN 0 AND 10", name='ck_screenings_highest_score'),
        sa.CheckConstraint("primary_question BETWEEN 1 AND 9", name='ck_screenings_primary_question'),
        sa.CheckConstraint("risk_level IN ('low', 'medium', 'high')", name='ck_screenings_risk_level'),
        # Guest rows carry a token and no owner; linked rows the reverse
        sa.CheckConstraint(
            "(subject_type = 'guest' AND guest_identifier IS NOT NULL AND user_id IS NULL)"
            " OR (subject_type <> 'guest' AND guest_identifier IS NULL AND user_id IS NOT NULL)",
            name='ck_screenings_ownership_state',
        ),
    )
    op.create_index('ix_screenings_subject_type', 'screenings', ['subject_type'], unique=False)
    op.create_index('ix_screenings_user_id', 'screenings', ['user_id'], unique=False)
    op.create_index('ix_screenings_patient_id', 'screenings', ['patient_id'], unique=False)
    op.create_index('ix_screenings_guest_identifier', 'screenings', ['guest_identifier'], unique=False)
    op.create_index('ix_screenings_risk_level', 'screenings', ['risk_level'], unique=False)
    op.create_index('ix_screenings_created_at', 'screenings', ['created_at'], unique=False)
    op.create_index('ix_screenings_guest_state', 'screenings', ['subject_type', 'guest_identifier'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_screenings_guest_state', table_name='screenings')
    op.drop_index('ix_screenings_created_at', table_name='screenings')
    op.drop_index('ix_screenings_risk_level', table_name='screenings')
    op.drop_index('ix_screenings_guest_identifier', table_name='screenings')
    op.drop_index('ix_screenings_patient_id', table_name='screenings')
    op.drop_index('ix_screenings_user_id', table_name='screenings')
    op.drop_index('ix_screenings_subject_type', table_name='screenings')
    op.drop_table('screenings')
    op.drop_index('ix_patients_user_id', table_name='patients')
    op.drop_table('patients')
    op.drop_index('ix_profiles_role', table_name='profiles')
    op.drop_index('ix_profiles_email', table_name='profiles')
    op.drop_table('profiles')
