"""initial schema: users, rooms, players, strokes, messages, round stats, word categories

Revision ID: 5c2e9a7d41b0
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2e9a7d41b0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('display_name', sa.String(length=64), nullable=True),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_user_username'), 'user', ['username'], unique=True)

    op.create_table(
        'word_category',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('difficulty', sa.String(length=16), nullable=False),
        sa.Column('words', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_word_category_difficulty'), 'word_category', ['difficulty'], unique=False)

    # current_drawer_id points at player, which does not exist yet; the FK is added below.
    op.create_table(
        'room',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('room_code', sa.String(length=6), nullable=False),
        sa.Column('host_user_id', sa.Integer(), nullable=False),
        sa.Column('state', sa.String(length=16), nullable=False),
        sa.Column('current_round', sa.Integer(), nullable=False),
        sa.Column('max_rounds', sa.Integer(), nullable=False),
        sa.Column('round_duration', sa.Integer(), nullable=False),
        sa.Column('current_drawer_id', sa.Integer(), nullable=True),
        sa.Column('current_word', sa.String(length=128), nullable=True),
        sa.Column('round_started_at_ms', sa.BigInteger(), nullable=True),
        sa.Column('difficulty', sa.String(length=16), nullable=False),
        sa.Column('custom_words', sa.Text(), nullable=True),
        sa.Column('team_mode', sa.Boolean(), nullable=False),
        sa.Column('created_at_ms', sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(['host_user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_room_room_code'), 'room', ['room_code'], unique=True)

    op.create_table(
        'player',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('room_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('display_name', sa.String(length=64), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('team', sa.String(length=8), nullable=True),
        sa.Column('join_order', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('joined_at_ms', sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(['room_id'], ['room.id']),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('room_id', 'user_id', name='uq_player_room_user'),
    )
    op.create_index(op.f('ix_player_room_id'), 'player', ['room_id'], unique=False)

    with op.batch_alter_table('room', schema=None) as batch_op:
        batch_op.create_foreign_key('fk_room_current_drawer_id', 'player', ['current_drawer_id'], ['id'])

    op.create_table(
        'stroke',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('room_id', sa.Integer(), nullable=False),
        sa.Column('round_number', sa.Integer(), nullable=False),
        sa.Column('points', sa.Text(), nullable=False),
        sa.Column('color', sa.String(length=16), nullable=False),
        sa.Column('width', sa.Integer(), nullable=False),
        sa.Column('is_eraser', sa.Boolean(), nullable=False),
        sa.Column('created_at_ms', sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(['room_id'], ['room.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_stroke_room_round', 'stroke', ['room_id', 'round_number'], unique=False)

    op.create_table(
        'message',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('room_id', sa.Integer(), nullable=False),
        sa.Column('author_id', sa.Integer(), nullable=False),
        sa.Column('display_name', sa.String(length=64), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('round_number', sa.Integer(), nullable=True),
        sa.Column('is_guess', sa.Boolean(), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False),
        sa.Column('created_at_ms', sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(['author_id'], ['player.id']),
        sa.ForeignKeyConstraint(['room_id'], ['room.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_message_room_id', 'message', ['room_id', 'id'], unique=False)

    op.create_table(
        'round_stats',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('room_id', sa.Integer(), nullable=False),
        sa.Column('round_number', sa.Integer(), nullable=False),
        sa.Column('drawer_id', sa.Integer(), nullable=True),
        sa.Column('word', sa.String(length=128), nullable=False),
        sa.Column('correct_guessers', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['drawer_id'], ['player.id']),
        sa.ForeignKeyConstraint(['room_id'], ['room.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('room_id', 'round_number', name='uq_round_stats_room_round'),
    )


def downgrade():
    op.drop_table('round_stats')
    op.drop_index('ix_message_room_id', table_name='message')
    op.drop_table('message')
    op.drop_index('ix_stroke_room_round', table_name='stroke')
    op.drop_table('stroke')

    with op.batch_alter_table('room', schema=None) as batch_op:
        batch_op.drop_constraint('fk_room_current_drawer_id', type_='foreignkey')

    op.drop_index(op.f('ix_player_room_id'), table_name='player')
    op.drop_table('player')
    op.drop_index(op.f('ix_room_room_code'), table_name='room')
    op.drop_table('room')
    op.drop_index(op.f('ix_word_category_difficulty'), table_name='word_category')
    op.drop_table('word_category')
    op.drop_index(op.f('ix_user_username'), table_name='user')
    op.drop_table('user')
