"""Initial claim verification schema

Revision ID: 3c41d9a0b7e2
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c41d9a0b7e2'
down_revision = None
branch_labels = None
depends_on = None


def _enum(name, *values):
    return sa.Enum(*values, name=name, native_enum=False, create_constraint=True, length=32)


VERDICT_VALUES = ('true', 'false', 'misleading', 'needs_context', 'unverifiable')


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('role', _enum('user_role', 'user', 'fact_checker', 'admin'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
        sa.UniqueConstraint('email'),
    )

    op.create_table(
        'claims',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=128), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('text_hash', sa.String(length=64), nullable=False),
        sa.Column('category', _enum(
            'claim_category', 'politics', 'health', 'economy', 'education',
            'technology', 'environment', 'other',
        ), nullable=False),
        sa.Column('media_url', sa.String(length=1024), nullable=True),
        sa.Column('media_type', sa.String(length=16), nullable=True),
        sa.Column('source_link', sa.String(length=1024), nullable=True),
        sa.Column('status', _enum(
            'claim_status', 'pending', 'ai_processing', 'human_review',
            'ai_approved', 'human_approved', 'rejected',
        ), nullable=False),
        sa.Column('priority', _enum('claim_priority', 'low', 'medium', 'high', 'urgent'), nullable=False),
        sa.Column('submission_count', sa.Integer(), nullable=False),
        sa.Column('duplicate_of_id', sa.Integer(), nullable=True),
        sa.Column('is_trending', sa.Boolean(), nullable=False),
        sa.Column('trending_score', sa.Float(), nullable=True),
        sa.Column('ai_suggestion_id', sa.Integer(), nullable=True),
        sa.Column('final_verdict_id', sa.Integer(), nullable=True),
        sa.Column('assigned_fact_checker_id', sa.Integer(), nullable=True),
        sa.Column('rejection_reason', sa.String(length=512), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['duplicate_of_id'], ['claims.id']),
        sa.ForeignKeyConstraint(['assigned_fact_checker_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_claims_status_priority', 'claims', ['status', 'priority', 'created_at'], unique=False)
    op.create_index('ix_claims_user', 'claims', ['user_id', 'created_at'], unique=False)
    op.create_index('ix_claims_text_hash', 'claims', ['text_hash'], unique=False)
    op.create_index('ix_claims_trending', 'claims', ['is_trending', 'trending_score'], unique=False)

    op.create_table(
        'ai_suggestions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('claim_id', sa.Integer(), nullable=False),
        sa.Column('verdict', _enum('suggestion_verdict', *VERDICT_VALUES), nullable=False),
        sa.Column('confidence', sa.Float(), nullable=False),
        sa.Column('explanation', sa.Text(), nullable=False),
        sa.Column('sources_json', sa.JSON(), nullable=False),
        sa.Column('model_name', sa.String(length=64), nullable=True),
        sa.Column('edited_by_human', sa.Boolean(), nullable=False),
        sa.Column('edited_by_id', sa.Integer(), nullable=True),
        sa.Column('edited_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('confidence >= 0 AND confidence <= 1', name='ck_ai_suggestions_confidence'),
        sa.ForeignKeyConstraint(['claim_id'], ['claims.id']),
        sa.ForeignKeyConstraint(['edited_by_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('claim_id'),
    )

    op.create_table(
        'ai_suggestion_revisions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('suggestion_id', sa.Integer(), nullable=False),
        sa.Column('verdict', _enum('revision_verdict', *VERDICT_VALUES), nullable=False),
        sa.Column('confidence', sa.Float(), nullable=False),
        sa.Column('explanation', sa.Text(), nullable=False),
        sa.Column('sources_json', sa.JSON(), nullable=False),
        sa.Column('model_name', sa.String(length=64), nullable=True),
        sa.Column('replaced_by_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['suggestion_id'], ['ai_suggestions.id']),
        sa.ForeignKeyConstraint(['replaced_by_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_suggestion_revisions_suggestion', 'ai_suggestion_revisions', ['suggestion_id'], unique=False)

    op.create_table(
        'verdicts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('claim_id', sa.Integer(), nullable=False),
        sa.Column('fact_checker_id', sa.Integer(), nullable=False),
        sa.Column('verdict', _enum('verdict_kind', *VERDICT_VALUES), nullable=False),
        sa.Column('explanation', sa.Text(), nullable=False),
        sa.Column('sources_json', sa.JSON(), nullable=False),
        sa.Column('ai_suggestion_id', sa.Integer(), nullable=True),
        sa.Column('responsibility', _enum('verdict_responsibility', 'ai', 'org'), nullable=False),
        sa.Column('is_final', sa.Boolean(), nullable=False),
        sa.Column('approval_status', _enum(
            'verdict_approval_status', 'pending', 'approved', 'rejected',
        ), nullable=False),
        sa.Column('time_spent', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('time_spent >= 0', name='ck_verdicts_time_spent'),
        sa.ForeignKeyConstraint(['claim_id'], ['claims.id']),
        sa.ForeignKeyConstraint(['fact_checker_id'], ['users.id']),
        sa.ForeignKeyConstraint(['ai_suggestion_id'], ['ai_suggestions.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'uq_verdicts_one_final_per_claim', 'verdicts', ['claim_id'], unique=True,
        postgresql_where=sa.text('is_final'),
        sqlite_where=sa.text('is_final = 1'),
    )
    op.create_index('ix_verdicts_fact_checker', 'verdicts', ['fact_checker_id', 'created_at'], unique=False)
    op.create_index('ix_verdicts_created', 'verdicts', ['created_at'], unique=False)

    # claims <-> suggestion/verdict reference each other; add the back edges last
    op.create_foreign_key('fk_claims_ai_suggestion', 'claims', 'ai_suggestions', ['ai_suggestion_id'], ['id'])
    op.create_foreign_key('fk_claims_final_verdict', 'claims', 'verdicts', ['final_verdict_id'], ['id'])

    op.create_table(
        'points_ledger',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('activity_type', sa.String(length=64), nullable=False),
        sa.Column('description', sa.String(length=512), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_points_ledger_user_date', 'points_ledger', ['user_id', 'created_at'], unique=False)
    op.create_index('ix_points_ledger_activity', 'points_ledger', ['user_id', 'activity_type'], unique=False)

    op.create_table(
        'user_points_summaries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('total_points', sa.Integer(), nullable=False),
        sa.Column('current_streak', sa.Integer(), nullable=False),
        sa.Column('longest_streak', sa.Integer(), nullable=False),
        sa.Column('last_activity_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )

    op.create_table(
        'notification_watermarks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('last_read_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )


def downgrade():
    op.drop_table('notification_watermarks')
    op.drop_table('user_points_summaries')
    op.drop_index('ix_points_ledger_activity', table_name='points_ledger')
    op.drop_index('ix_points_ledger_user_date', table_name='points_ledger')
    op.drop_table('points_ledger')

    op.drop_constraint('fk_claims_final_verdict', 'claims', type_='foreignkey')
    op.drop_constraint('fk_claims_ai_suggestion', 'claims', type_='foreignkey')

    op.drop_index('ix_verdicts_created', table_name='verdicts')
    op.drop_index('ix_verdicts_fact_checker', table_name='verdicts')
    op.drop_index('uq_verdicts_one_final_per_claim', table_name='verdicts')
    op.drop_table('verdicts')
    op.drop_index('ix_suggestion_revisions_suggestion', table_name='ai_suggestion_revisions')
    op.drop_table('ai_suggestion_revisions')
    op.drop_table('ai_suggestions')

    op.drop_index('ix_claims_trending', table_name='claims')
    op.drop_index('ix_claims_text_hash', table_name='claims')
    op.drop_index('ix_claims_user', table_name='claims')
    op.drop_index('ix_claims_status_priority', table_name='claims')
    op.drop_table('claims')
    op.drop_table('users')
