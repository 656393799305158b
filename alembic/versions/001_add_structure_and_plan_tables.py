"""Add benefit class structure, limit structure and dental plan tables

Revision ID: 001_add_structure_and_plan_tables
Revises:
Create Date: 2026-10-18 09:12:41.208113

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '001_add_structure_and_plan_tables'
down_revision = None
branch_labels = None
depends_on = None


def _document():
    return sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    # Create benefit_class_structures table
    op.create_table('benefit_class_structures',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('effective_date', sa.String(length=10), nullable=False),
        sa.Column('market_segment', sa.String(length=20), nullable=False),
        sa.Column('product_type', sa.String(length=20), nullable=False),
        sa.Column('number_of_classes', sa.Integer(), nullable=False),
        sa.Column('classes', _document(), nullable=False),
        sa.Column('created_by', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_modified_by', sa.String(length=100), nullable=False),
        sa.Column('last_modified_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_class_structures_compat', 'benefit_class_structures',
                    ['effective_date', 'market_segment', 'product_type'], unique=False)
    op.create_index('idx_class_structures_created_at', 'benefit_class_structures', ['created_at'], unique=False)

    # Create limit_structures table
    op.create_table('limit_structures',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('effective_date', sa.String(length=10), nullable=False),
        sa.Column('market_segment', sa.String(length=20), nullable=False),
        sa.Column('product_type', sa.String(length=20), nullable=False),
        sa.Column('benefit_class_structure_id', sa.String(length=36), nullable=False),
        sa.Column('benefit_class_structure_name', sa.String(length=200), nullable=True),
        sa.Column('limits', _document(), nullable=False),
        sa.Column('created_by', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_modified_by', sa.String(length=100), nullable=False),
        sa.Column('last_modified_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_limit_structures_benefit_class_structure_id'), 'limit_structures',
                    ['benefit_class_structure_id'], unique=False)
    op.create_index('idx_limit_structures_compat', 'limit_structures',
                    ['effective_date', 'market_segment', 'product_type'], unique=False)

    # Create dental_plans table
    op.create_table('dental_plans',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('effective_date', sa.String(length=10), nullable=False),
        sa.Column('market_segment', sa.String(length=20), nullable=False),
        sa.Column('customization_level', sa.String(length=20), nullable=False),
        sa.Column('product_type', sa.String(length=20), nullable=False),
        sa.Column('inn_tiers', sa.Integer(), nullable=False),
        sa.Column('oon_coverage', sa.Boolean(), nullable=False),
        sa.Column('coverage_type', sa.String(length=20), nullable=False),
        sa.Column('class_structure_id', sa.String(length=36), nullable=False),
        sa.Column('class_structure_name', sa.String(length=200), nullable=True),
        sa.Column('limit_structure_id', sa.String(length=36), nullable=True),
        sa.Column('limit_structure_name', sa.String(length=200), nullable=True),
        sa.Column('classes', _document(), nullable=False),
        sa.Column('limits', _document(), nullable=False),
        sa.Column('cost_shares', _document(), nullable=False),
        sa.Column('saved_cost_shares', _document(), nullable=False),
        sa.Column('configuration_dirty', sa.Boolean(), nullable=False),
        sa.Column('save_in_progress', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_modified_by', sa.String(length=100), nullable=False),
        sa.Column('last_modified_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_dental_plans_class_structure_id'), 'dental_plans', ['class_structure_id'], unique=False)
    op.create_index(op.f('ix_dental_plans_limit_structure_id'), 'dental_plans', ['limit_structure_id'], unique=False)
    op.create_index('idx_dental_plans_effective_date', 'dental_plans', ['effective_date'], unique=False)
    op.create_index('idx_dental_plans_market_segment', 'dental_plans', ['market_segment'], unique=False)
    op.create_index('idx_dental_plans_product_type', 'dental_plans', ['product_type'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_dental_plans_product_type', table_name='dental_plans')
    op.drop_index('idx_dental_plans_market_segment', table_name='dental_plans')
    op.drop_index('idx_dental_plans_effective_date', table_name='dental_plans')
    op.drop_index(op.f('ix_dental_plans_limit_structure_id'), table_name='dental_plans')
    op.drop_index(op.f('ix_dental_plans_class_structure_id'), table_name='dental_plans')
    op.drop_table('dental_plans')

    op.drop_index('idx_limit_structures_compat', table_name='limit_structures')
    op.drop_index(op.f('ix_limit_structures_benefit_class_structure_id'), table_name='limit_structures')
    op.drop_table('limit_structures')

    op.drop_index('idx_class_structures_created_at', table_name='benefit_class_structures')
    op.drop_index('idx_class_structures_compat', table_name='benefit_class_structures')
    op.drop_table('benefit_class_structures')
