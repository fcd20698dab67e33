"""
TopCreator model — persisted leaderboard row, one per (category, creator).

Rows for a category are only ever replaced as a whole set by
leaderboard.ranking.writer; they are never updated in place.
"""
import uuid

from sqlalchemy import (
    Column, Text, Integer, Numeric, DateTime, ForeignKey,
    UniqueConstraint, Index, CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from leaderboard.database import Base


class TopCreator(Base):
    __tablename__ = 'top_creators'
    __table_args__ = (
        UniqueConstraint('category_id', 'creator_id', name='unique_category_creator'),
        Index('idx_category_rank', 'category_id', 'rank_position'),
        Index('idx_last_updated', 'last_updated'),
        CheckConstraint('rank_position >= 1', name='ck_top_creator_rank_position'),
        CheckConstraint('score >= 0 AND score <= 1', name='ck_top_creator_score'),
        CheckConstraint('follower_count >= 0', name='ck_top_creator_follower_count'),
        CheckConstraint('avg_review_score >= 0 AND avg_review_score <= 5', name='ck_top_creator_avg_review'),
        CheckConstraint('collab_count >= 0', name='ck_top_creator_collab_count'),
    )

    top_creator_id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    category_id = Column(Text, ForeignKey('categories.category_id'), nullable=False)
    creator_id = Column(Text, ForeignKey('creators.creator_id'), nullable=False)
    rank_position = Column(Integer, nullable=False)
    score = Column(Numeric(10, 4), nullable=False)
    follower_count = Column(Integer, nullable=False, default=0)
    avg_review_score = Column(Numeric(3, 2), nullable=False, default=0)
    collab_count = Column(Integer, nullable=False, default=0)
    last_updated = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    creator = relationship('Creator', lazy='joined')
    category = relationship('Category', lazy='joined')
