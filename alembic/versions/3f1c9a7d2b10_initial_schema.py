"""initial schema

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-17 10:12:41.308115

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.DateTime(timezone=True), nullable=True)
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('whatsapp', sa.String(length=50), nullable=True),
        sa.Column('telegram', sa.String(length=100), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'])
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_role'), 'users', ['role'])

    op.create_table(
        'courses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('max_students', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('creator_id', sa.Integer(), nullable=True),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['creator_id'], ['users.id'], name=op.f('fk_courses_creator_id_users'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_courses')),
    )
    op.create_index(op.f('ix_courses_id'), 'courses', ['id'])
    op.create_index(op.f('ix_courses_status'), 'courses', ['status'])
    op.create_index(op.f('ix_courses_creator_id'), 'courses', ['creator_id'])

    op.create_table(
        'topics',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('course_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], name=op.f('fk_topics_course_id_courses'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_topics')),
    )
    op.create_index(op.f('ix_topics_id'), 'topics', ['id'])
    op.create_index(op.f('ix_topics_course_id'), 'topics', ['course_id'])

    op.create_table(
        'subtopics',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('topic_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['topic_id'], ['topics.id'], name=op.f('fk_subtopics_topic_id_topics'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_subtopics')),
    )
    op.create_index(op.f('ix_subtopics_id'), 'subtopics', ['id'])
    op.create_index(op.f('ix_subtopics_topic_id'), 'subtopics', ['topic_id'])

    op.create_table(
        'materials',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('topic_id', sa.Integer(), nullable=False),
        sa.Column('subtopic_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('url', sa.String(length=1024), nullable=True),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['topic_id'], ['topics.id'], name=op.f('fk_materials_topic_id_topics'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['subtopic_id'], ['subtopics.id'], name=op.f('fk_materials_subtopic_id_subtopics'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_materials')),
    )
    op.create_index(op.f('ix_materials_id'), 'materials', ['id'])
    op.create_index(op.f('ix_materials_topic_id'), 'materials', ['topic_id'])
    op.create_index(op.f('ix_materials_subtopic_id'), 'materials', ['subtopic_id'])

    op.create_table(
        'tests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('topic_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('time_limit_minutes', sa.Integer(), nullable=True),
        sa.Column('passing_score', sa.Integer(), nullable=False),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['topic_id'], ['topics.id'], name=op.f('fk_tests_topic_id_topics'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_tests')),
    )
    op.create_index(op.f('ix_tests_id'), 'tests', ['id'])
    op.create_index(op.f('ix_tests_topic_id'), 'tests', ['topic_id'])

    op.create_table(
        'test_questions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('test_id', sa.Integer(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('options', sa.JSON(), nullable=False),
        sa.Column('correct_option', sa.Integer(), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['test_id'], ['tests.id'], name=op.f('fk_test_questions_test_id_tests'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_test_questions')),
    )
    op.create_index(op.f('ix_test_questions_id'), 'test_questions', ['id'])
    op.create_index(op.f('ix_test_questions_test_id'), 'test_questions', ['test_id'])

    op.create_table(
        'test_submissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('test_id', sa.Integer(), nullable=False),
        sa.Column('student_id', sa.Integer(), nullable=False),
        sa.Column('answers', sa.JSON(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        _timestamp('submitted_at'),
        sa.ForeignKeyConstraint(['test_id'], ['tests.id'], name=op.f('fk_test_submissions_test_id_tests'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['users.id'], name=op.f('fk_test_submissions_student_id_users'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_test_submissions')),
        sa.UniqueConstraint('test_id', 'student_id', name='uq_test_submission_test_student'),
    )
    op.create_index(op.f('ix_test_submissions_id'), 'test_submissions', ['id'])
    op.create_index(op.f('ix_test_submissions_test_id'), 'test_submissions', ['test_id'])
    op.create_index(op.f('ix_test_submissions_student_id'), 'test_submissions', ['student_id'])

    op.create_table(
        'course_enrollments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('student_id', sa.Integer(), nullable=False),
        sa.Column('course_id', sa.Integer(), nullable=False),
        sa.Column('tutor_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        _timestamp('enrolled_at'),
        sa.ForeignKeyConstraint(['student_id'], ['users.id'], name=op.f('fk_course_enrollments_student_id_users'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], name=op.f('fk_course_enrollments_course_id_courses'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tutor_id'], ['users.id'], name=op.f('fk_course_enrollments_tutor_id_users'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_course_enrollments')),
    )
    op.create_index(op.f('ix_course_enrollments_id'), 'course_enrollments', ['id'])
    op.create_index(op.f('ix_course_enrollments_student_id'), 'course_enrollments', ['student_id'])
    op.create_index(op.f('ix_course_enrollments_course_id'), 'course_enrollments', ['course_id'])
    op.create_index(op.f('ix_course_enrollments_tutor_id'), 'course_enrollments', ['tutor_id'])
    op.create_index(op.f('ix_course_enrollments_status'), 'course_enrollments', ['status'])
    # at most one ACTIVE enrollment per (student, course)
    op.create_index(
        'uq_course_enrollments_active_student_course',
        'course_enrollments',
        ['student_id', 'course_id'],
        unique=True,
        sqlite_where=sa.text("status = 'ACTIVE'"),
        postgresql_where=sa.text("status = 'ACTIVE'"),
    )

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('enrollment_id', sa.Integer(), nullable=False),
        sa.Column('student_id', sa.Integer(), nullable=False),
        sa.Column('course_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('method', sa.String(length=30), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['enrollment_id'], ['course_enrollments.id'], name=op.f('fk_payments_enrollment_id_course_enrollments'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['users.id'], name=op.f('fk_payments_student_id_users'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], name=op.f('fk_payments_course_id_courses'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_payments')),
        sa.UniqueConstraint('enrollment_id', name=op.f('uq_payments_enrollment_id')),
    )
    op.create_index(op.f('ix_payments_id'), 'payments', ['id'])
    op.create_index(op.f('ix_payments_student_id'), 'payments', ['student_id'])
    op.create_index(op.f('ix_payments_course_id'), 'payments', ['course_id'])
    op.create_index(op.f('ix_payments_status'), 'payments', ['status'])

    op.create_table(
        'enrollment_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('course_id', sa.Integer(), nullable=False),
        sa.Column('student_name', sa.String(length=255), nullable=False),
        sa.Column('student_email', sa.String(length=255), nullable=False),
        sa.Column('student_phone', sa.String(length=50), nullable=False),
        sa.Column('whatsapp_number', sa.String(length=50), nullable=True),
        sa.Column('telegram_username', sa.String(length=100), nullable=True),
        sa.Column('preferred_contact', sa.String(length=20), nullable=False),
        sa.Column('selected_tutor_id', sa.Integer(), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('student_id', sa.Integer(), nullable=True),
        sa.Column('enrollment_id', sa.Integer(), nullable=True),
        sa.Column('processed_by_id', sa.Integer(), nullable=True),
        _timestamp('processed_at', nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], name=op.f('fk_enrollment_requests_course_id_courses'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['selected_tutor_id'], ['users.id'], name=op.f('fk_enrollment_requests_selected_tutor_id_users'), ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['student_id'], ['users.id'], name=op.f('fk_enrollment_requests_student_id_users'), ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['enrollment_id'], ['course_enrollments.id'], name=op.f('fk_enrollment_requests_enrollment_id_course_enrollments'), ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['processed_by_id'], ['users.id'], name=op.f('fk_enrollment_requests_processed_by_id_users'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_enrollment_requests')),
    )
    op.create_index(op.f('ix_enrollment_requests_id'), 'enrollment_requests', ['id'])
    op.create_index(op.f('ix_enrollment_requests_course_id'), 'enrollment_requests', ['course_id'])
    op.create_index(op.f('ix_enrollment_requests_student_email'), 'enrollment_requests', ['student_email'])
    op.create_index(op.f('ix_enrollment_requests_status'), 'enrollment_requests', ['status'])

    op.create_table(
        'chats',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('type', sa.String(length=20), nullable=False),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_chats')),
    )
    op.create_index(op.f('ix_chats_id'), 'chats', ['id'])

    op.create_table(
        'chat_participants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('chat_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False),
        _timestamp('joined_at'),
        _timestamp('last_read_at', nullable=True),
        sa.ForeignKeyConstraint(['chat_id'], ['chats.id'], name=op.f('fk_chat_participants_chat_id_chats'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_chat_participants_user_id_users'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_chat_participants')),
        sa.UniqueConstraint('chat_id', 'user_id', name='uq_chat_participant_chat_user'),
    )
    op.create_index(op.f('ix_chat_participants_id'), 'chat_participants', ['id'])
    op.create_index(op.f('ix_chat_participants_chat_id'), 'chat_participants', ['chat_id'])
    op.create_index(op.f('ix_chat_participants_user_id'), 'chat_participants', ['user_id'])

    op.create_table(
        'messages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('chat_id', sa.Integer(), nullable=False),
        sa.Column('sender_id', sa.Integer(), nullable=False),
        sa.Column('reply_to_id', sa.Integer(), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('is_edited', sa.Boolean(), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False),
        _timestamp('created_at'),
        _timestamp('edited_at', nullable=True),
        sa.ForeignKeyConstraint(['chat_id'], ['chats.id'], name=op.f('fk_messages_chat_id_chats'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sender_id'], ['users.id'], name=op.f('fk_messages_sender_id_users'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reply_to_id'], ['messages.id'], name=op.f('fk_messages_reply_to_id_messages'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_messages')),
    )
    op.create_index(op.f('ix_messages_id'), 'messages', ['id'])
    op.create_index(op.f('ix_messages_chat_id'), 'messages', ['chat_id'])
    op.create_index(op.f('ix_messages_sender_id'), 'messages', ['sender_id'])

    op.create_table(
        'user_points',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('experience', sa.Integer(), nullable=False),
        sa.Column('streak', sa.Integer(), nullable=False),
        _timestamp('last_activity_at', nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_user_points_user_id_users'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_user_points')),
        sa.UniqueConstraint('user_id', name=op.f('uq_user_points_user_id')),
    )
    op.create_index(op.f('ix_user_points_id'), 'user_points', ['id'])

    op.create_table(
        'point_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(length=30), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=False),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_point_transactions_user_id_users'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_point_transactions')),
    )
    op.create_index(op.f('ix_point_transactions_id'), 'point_transactions', ['id'])
    op.create_index(op.f('ix_point_transactions_user_id'), 'point_transactions', ['user_id'])

    op.create_table(
        'achievements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=50), nullable=False),
        sa.Column('criteria_type', sa.String(length=50), nullable=False),
        sa.Column('criteria_value', sa.Integer(), nullable=False),
        sa.Column('condition', sa.String(length=3), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_achievements')),
        sa.UniqueConstraint('name', name=op.f('uq_achievements_name')),
    )
    op.create_index(op.f('ix_achievements_id'), 'achievements', ['id'])

    op.create_table(
        'user_achievements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('achievement_id', sa.Integer(), nullable=False),
        _timestamp('earned_at'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_user_achievements_user_id_users'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['achievement_id'], ['achievements.id'], name=op.f('fk_user_achievements_achievement_id_achievements'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_user_achievements')),
        sa.UniqueConstraint('user_id', 'achievement_id', name='uq_user_achievement_user_achievement'),
    )
    op.create_index(op.f('ix_user_achievements_id'), 'user_achievements', ['id'])
    op.create_index(op.f('ix_user_achievements_user_id'), 'user_achievements', ['user_id'])
    op.create_index(op.f('ix_user_achievements_achievement_id'), 'user_achievements', ['achievement_id'])

    op.create_table(
        'challenges',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('start_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('reward_points', sa.Integer(), nullable=False),
        sa.Column('max_participants', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], name=op.f('fk_challenges_created_by_id_users'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_challenges')),
    )
    op.create_index(op.f('ix_challenges_id'), 'challenges', ['id'])

    op.create_table(
        'challenge_submissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('challenge_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        _timestamp('submitted_at'),
        sa.ForeignKeyConstraint(['challenge_id'], ['challenges.id'], name=op.f('fk_challenge_submissions_challenge_id_challenges'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_challenge_submissions_user_id_users'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_challenge_submissions')),
        sa.UniqueConstraint('challenge_id', 'user_id', name='uq_challenge_submission_challenge_user'),
    )
    op.create_index(op.f('ix_challenge_submissions_id'), 'challenge_submissions', ['id'])
    op.create_index(op.f('ix_challenge_submissions_challenge_id'), 'challenge_submissions', ['challenge_id'])
    op.create_index(op.f('ix_challenge_submissions_user_id'), 'challenge_submissions', ['user_id'])


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        'challenge_submissions',
        'challenges',
        'user_achievements',
        'achievements',
        'point_transactions',
        'user_points',
        'messages',
        'chat_participants',
        'chats',
        'enrollment_requests',
        'payments',
        'course_enrollments',
        'test_submissions',
        'test_questions',
        'tests',
        'materials',
        'subtopics',
        'topics',
        'courses',
        'users',
    ):
        op.drop_table(table)
