from sqlalchemy import Column, Integer, String, DateTime, Text
from datetime import datetime
from careeros.database import Base


class CommunityPost(Base):
    __tablename__ = "community_posts"

    id = Column(Integer, primary_key=True, index=True)
    community_id = Column(Integer, nullable=False, index=True)
    user_id = Column(Integer, nullable=False, index=True)  # author

    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    # Post types: 'discussion', 'question', 'resource', 'announcement'
    type = Column(String(50), nullable=False, default="discussion")

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
