"""
Category model — content/niche grouping for creators. Read-only here.
"""
from sqlalchemy import Column, Text, Boolean

from leaderboard.database import Base


class Category(Base):
    __tablename__ = 'categories'

    category_id = Column(Text, primary_key=True)
    category_name = Column(Text, nullable=False)
    status = Column(Boolean, nullable=False, default=True)
