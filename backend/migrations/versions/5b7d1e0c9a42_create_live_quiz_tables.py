"""create user, question, quiz, quiz_session and student_response tables

Revision ID: 5b7d1e0c9a42
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5b7d1e0c9a42'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'user' not in existing_tables:
        op.create_table(
            'user',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('password_hash', sa.String(length=256), nullable=False),
            sa.Column('role', sa.String(length=32), nullable=False, server_default='student'),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index('ix_user_username', 'user', ['username'], unique=True)

    if 'question' not in existing_tables:
        op.create_table(
            'question',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('module_id', sa.String(length=32), nullable=True),
            sa.Column('topic', sa.String(length=128), nullable=True),
            sa.Column('question_text', sa.Text(), nullable=False),
            sa.Column('question_type', sa.String(length=16), nullable=False),
            sa.Column('options', sa.Text(), nullable=True),
            sa.Column('correct_answer', sa.Text(), nullable=False),
            sa.Column('explanation', sa.Text(), nullable=False, server_default=''),
            sa.Column('image_url', sa.String(length=512), nullable=True),
            sa.Column('difficulty', sa.String(length=16), nullable=True),
            sa.Column('time_limit', sa.Integer(), nullable=True),
            sa.Column('created_by', sa.Integer(), sa.ForeignKey('user.id'), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index('ix_question_module_id', 'question', ['module_id'])

    if 'quiz' not in existing_tables:
        op.create_table(
            'quiz',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('title', sa.String(length=200), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('mode', sa.String(length=16), nullable=False, server_default='practice'),
            sa.Column('question_refs', sa.Text(), nullable=True),
            sa.Column('time_limit', sa.Integer(), nullable=True),
            sa.Column('created_by', sa.Integer(), sa.ForeignKey('user.id'), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        )

    if 'quiz_session' not in existing_tables:
        op.create_table(
            'quiz_session',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('quiz_id', sa.Integer(), sa.ForeignKey('quiz.id'), nullable=True),
            sa.Column('game_code', sa.String(length=16), nullable=False),
            sa.Column('instructor_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=True),
            sa.Column('status', sa.String(length=16), nullable=False, server_default='waiting'),
            sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index('ix_quiz_session_game_code', 'quiz_session', ['game_code'])

    if 'student_response' not in existing_tables:
        op.create_table(
            'student_response',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('session_id', sa.Integer(), sa.ForeignKey('quiz_session.id'), nullable=False),
            sa.Column('student_name', sa.String(length=64), nullable=False),
            sa.Column('question_id', sa.Integer(), nullable=True),
            sa.Column('answer', sa.Text(), nullable=True),
            sa.Column('is_correct', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('response_time', sa.Integer(), nullable=True),
            sa.Column('points', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('answered_at', sa.DateTime(timezone=True), nullable=True),
        )


def downgrade():
    op.drop_table('student_response')
    op.drop_index('ix_quiz_session_game_code', table_name='quiz_session')
    op.drop_table('quiz_session')
    op.drop_table('quiz')
    op.drop_index('ix_question_module_id', table_name='question')
    op.drop_table('question')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
