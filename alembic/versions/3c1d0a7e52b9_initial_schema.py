"""initial schema

Revision ID: 3c1d0a7e52b9
Revises:
Create Date: 2026-10-19 09:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1d0a7e52b9'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'members',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255)),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('organisation_id', sa.String(64)),
        sa.Column('created_at', sa.DateTime()),
    )
    op.create_index('ix_members_email', 'members', ['email'], unique=True)
    op.create_index('ix_members_organisation_id', 'members', ['organisation_id'])

    op.create_table(
        'candidates',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(32)),
        sa.Column('organisation_id', sa.String(64)),
        sa.Column('resume_key', sa.String(1024)),
        sa.Column('summary', sa.Text()),
        sa.Column('designation', sa.String(255)),
        sa.Column('current_location', sa.String(255)),
        sa.Column('years_of_experience', sa.Float()),
        sa.Column('total_bookmarks', sa.Integer()),
        sa.Column('created_at', sa.DateTime()),
    )
    op.create_index('ix_candidates_email', 'candidates', ['email'], unique=True)
    op.create_index('ix_candidates_organisation_id', 'candidates', ['organisation_id'])

    op.create_table(
        'candidate_skills',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('candidate_id', sa.String(64), sa.ForeignKey('candidates.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('score', sa.Float()),
        sa.Column('years_experience', sa.Float()),
    )
    op.create_index('ix_candidate_skills_candidate_id', 'candidate_skills', ['candidate_id'])

    op.create_table(
        'cultural_fits',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('candidate_id', sa.String(64), sa.ForeignKey('candidates.id', ondelete='CASCADE'), nullable=False, unique=True),
        *[sa.Column(name, sa.Float()) for name in (
            'product_score', 'service_score', 'startup_score', 'mnc_score',
            'loyalty_score', 'coding_score', 'leadership_score', 'architecture_score',
        )],
    )

    op.create_table(
        'jobs',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('organisation_id', sa.String(64)),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('location', sa.String(255)),
        sa.Column('expected_skills', sa.JSON()),
        sa.Column('expected_cultural_fit', sa.JSON()),
        sa.Column('created_at', sa.DateTime()),
    )
    op.create_index('ix_jobs_organisation_id', 'jobs', ['organisation_id'])
    op.create_index('ix_jobs_title', 'jobs', ['title'])

    op.create_table(
        'job_analyses',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('job_id', sa.String(64), nullable=False),
        sa.Column('candidate_id', sa.String(64), nullable=False),
        sa.Column('status', sa.String(16)),
        sa.Column('data', sa.JSON()),
        sa.Column('percentage_match_score', sa.Float()),
        sa.Column('rank', sa.Integer()),
        sa.Column('newly_analysed', sa.Boolean()),
        sa.Column('error', sa.Text()),
        sa.Column('attempts', sa.Integer()),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
        sa.UniqueConstraint('job_id', 'candidate_id', name='uq_job_analyses_job_candidate'),
    )
    op.create_index('ix_job_analyses_job_id', 'job_analyses', ['job_id'])
    op.create_index('ix_job_analyses_candidate_id', 'job_analyses', ['candidate_id'])
    op.create_index('ix_job_analyses_status', 'job_analyses', ['status'])

    op.create_table(
        'bookmarks',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('candidate_id', sa.String(64), nullable=False),
        sa.Column('member_id', sa.String(64), nullable=False),
        sa.Column('job_id', sa.String(64), nullable=False),
        sa.Column('created_at', sa.DateTime()),
        sa.UniqueConstraint('candidate_id', 'member_id', 'job_id', name='uq_bookmarks_candidate_member_job'),
    )
    op.create_index('ix_bookmarks_candidate_id', 'bookmarks', ['candidate_id'])
    op.create_index('ix_bookmarks_member_id', 'bookmarks', ['member_id'])
    op.create_index('ix_bookmarks_job_id', 'bookmarks', ['job_id'])

    op.create_table(
        'embeddings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('namespace', sa.String(64), nullable=False),
        sa.Column('ref_id', sa.String(64), nullable=False),
        sa.Column('organisation_id', sa.String(64)),
        sa.Column('model', sa.String(255), nullable=False),
        sa.Column('dim', sa.Integer(), nullable=False),
        sa.Column('vector', sa.LargeBinary(), nullable=False),
        sa.UniqueConstraint('namespace', 'ref_id', name='uq_embeddings_namespace_ref'),
    )
    op.create_index('ix_embeddings_namespace', 'embeddings', ['namespace'])
    op.create_index('ix_embeddings_ref_id', 'embeddings', ['ref_id'])
    op.create_index('ix_embeddings_organisation_id', 'embeddings', ['organisation_id'])

    op.create_table(
        'scheduled_calls',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('job_id', sa.String(64), nullable=False),
        sa.Column('candidate_id', sa.String(64), nullable=False),
        sa.Column('assistant_id', sa.String(128), nullable=False),
        sa.Column('phone_number', sa.String(32), nullable=False),
        sa.Column('organisation_id', sa.String(64)),
        sa.Column('recruiter_email', sa.String(255)),
        sa.Column('is_called', sa.Boolean()),
        sa.Column('claimed_at', sa.DateTime()),
        sa.Column('call_id', sa.String(128)),
        sa.Column('created_at', sa.DateTime()),
    )
    for col in ('start_time', 'end_time', 'job_id', 'candidate_id', 'is_called', 'call_id'):
        op.create_index(f'ix_scheduled_calls_{col}', 'scheduled_calls', [col])

    op.create_table(
        'call_details',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('job_id', sa.String(64), nullable=False),
        sa.Column('candidate_id', sa.String(64), nullable=False),
        sa.Column('organisation_id', sa.String(64)),
        sa.Column('assistant_id', sa.String(128), nullable=False),
        sa.Column('call_id', sa.String(128), nullable=False),
        sa.Column('recruiter_email', sa.String(255)),
        sa.Column('payload', sa.JSON()),
        sa.Column('created_at', sa.DateTime()),
    )
    for col in ('job_id', 'candidate_id', 'organisation_id', 'call_id'):
        op.create_index(f'ix_call_details_{col}', 'call_details', [col])


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        'call_details', 'scheduled_calls', 'embeddings', 'bookmarks', 'job_analyses',
        'jobs', 'cultural_fits', 'candidate_skills', 'candidates', 'members',
    ):
        op.drop_table(table)
