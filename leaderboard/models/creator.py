"""
Creator model — one row per creator profile, linked to its owning user.

social_media is the raw JSON list edited by the profile screens, e.g.
[{"platform": "instagram", "followers": 1200, "url": "..."}]. It is parsed
into typed entries by leaderboard.ranking.metrics, never read ad hoc.
"""
from sqlalchemy import Column, Text, Boolean, JSON, ForeignKey
from sqlalchemy.orm import relationship

from leaderboard.database import Base


class Creator(Base):
    __tablename__ = 'creators'

    creator_id = Column(Text, primary_key=True)
    user_id = Column(Text, ForeignKey('users.user_id'), nullable=False)
    category_id = Column(Text, ForeignKey('categories.category_id'), nullable=True)
    first_name = Column(Text, nullable=False, default='')
    last_name = Column(Text, nullable=False, default='')
    nick_name = Column(Text, nullable=True)
    bio = Column(Text, nullable=True)
    profile_pic_url = Column(Text, nullable=True)
    type = Column(Text, nullable=True)  # Content Creator / Model / Live Streamer
    social_media = Column(JSON, default=list)
    status = Column(Boolean, nullable=False, default=True)

    user = relationship('User', lazy='joined')
