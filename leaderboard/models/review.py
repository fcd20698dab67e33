"""
Review model — brand rating of a creator for a campaign (1-5). Read-only here.
"""
from sqlalchemy import Column, Text, Integer, Boolean, ForeignKey

from leaderboard.database import Base


class Review(Base):
    __tablename__ = 'reviews'

    review_id = Column(Text, primary_key=True)
    campaign_id = Column(Text, nullable=False)
    creator_id = Column(Text, ForeignKey('creators.creator_id'), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    is_shown = Column(Boolean, nullable=False, default=True)
