from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('users',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('name', sa.String(200)),
        sa.Column('email', sa.String(320)),
        sa.Column('strava_athlete_id', sa.BigInteger, unique=True),
        sa.Column('strava_access_token', sa.String(512)),
        sa.Column('strava_refresh_token', sa.String(512)),
        sa.Column('strava_token_expires_at', sa.Integer),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table('activities',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('user_id', sa.String(64), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text),
        sa.Column('distance_km', sa.Float, nullable=False),
        sa.Column('duration_s', sa.Integer, nullable=False),
        sa.Column('pace_min_per_km', sa.Float, nullable=False, server_default='0'),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True)),
        sa.Column('end_time', sa.DateTime(timezone=True)),
        sa.Column('elevation_m', sa.Float),
        sa.Column('heart_rate_bpm', sa.Integer),
        sa.Column('calories', sa.Float),
        sa.Column('strava_id', sa.String(32)),
        sa.Column('route', sa.JSON),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('user_id', 'strava_id', name='uq_user_strava_activity')
    )
    op.create_index('ix_activities_user_id', 'activities', ['user_id'])
    op.create_index('idx_activities_date', 'activities', ['date'])

    op.create_table('session_completions',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('user_id', sa.String(64), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('week_number', sa.Integer, nullable=False),
        sa.Column('day_of_week', sa.String(16), nullable=False, server_default=''),
        sa.Column('session_type', sa.String(64), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('user_id', 'week_number', 'day_of_week', 'session_type',
                            name='uq_session_completion')
    )
    op.create_index('ix_session_completions_user_id', 'session_completions', ['user_id'])

def downgrade():
    op.drop_index('ix_session_completions_user_id', table_name='session_completions')
    op.drop_table('session_completions')
    op.drop_index('idx_activities_date', table_name='activities')
    op.drop_index('ix_activities_user_id', table_name='activities')
    op.drop_table('activities')
    op.drop_table('users')
