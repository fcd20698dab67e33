"""
User model — owned by the account service, read-only here.

Only the columns the ranking pipeline and the leaderboard API read are mapped.
"""
from sqlalchemy import Column, Text, Boolean

from leaderboard.database import Base


class User(Base):
    __tablename__ = 'users'

    user_id = Column(Text, primary_key=True)
    username = Column(Text, nullable=False, unique=True)
    role = Column(Text, nullable=False, default='influencer')
    status = Column(Boolean, nullable=False, default=True)
