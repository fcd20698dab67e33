"""
Contract model — brand/creator agreement for a campaign. Read-only here.

contract_status is one of: Pending, Active, Awaiting Payment, Completed, Cancelled.
"""
from sqlalchemy import Column, Text, Boolean, ForeignKey

from leaderboard.database import Base


class Contract(Base):
    __tablename__ = 'contracts'

    contract_id = Column(Text, primary_key=True)
    campaign_id = Column(Text, nullable=False)
    brand_id = Column(Text, nullable=False)
    creator_id = Column(Text, ForeignKey('creators.creator_id'), nullable=False)
    contract_status = Column(Text, nullable=False, default='Pending')
    status = Column(Boolean, nullable=False, default=True)
