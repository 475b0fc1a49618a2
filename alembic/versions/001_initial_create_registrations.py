"""initial create registrations

Revision ID: 001
Revises: 
Create Date: 2025-09-02 19:10:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Criar tabela registrations
    op.create_table(
        'registrations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('document', sa.String(length=11), nullable=False),
        sa.Column('email', sa.String(length=200), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=False),
        sa.Column('birth_date', sa.String(length=10), nullable=False),
        sa.Column('school', sa.String(length=200), nullable=True),
        sa.Column('choreographer', sa.String(length=200), nullable=True),
        sa.Column('notes', sa.String(length=1000), nullable=True),
        sa.Column('selected_events', sa.JSON(), nullable=False),
        sa.Column('participant_counts', sa.JSON(), nullable=False),
        sa.Column('participants', sa.JSON(), nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    # Índices para a checagem de duplicidade (CPF / e-mail)
    op.create_index('ix_registrations_document', 'registrations', ['document'])
    op.create_index('ix_registrations_email', 'registrations', ['email'])


def downgrade() -> None:
    op.drop_index('ix_registrations_email', table_name='registrations')
    op.drop_index('ix_registrations_document', table_name='registrations')
    op.drop_table('registrations')
