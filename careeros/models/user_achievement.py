from sqlalchemy import Column, Integer, DateTime
from datetime import datetime
from careeros.database import Base


class UserAchievement(Base):
    """Awarded achievement. Write-once: rows are never updated or deleted."""
    __tablename__ = "user_achievements"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    achievement_id = Column(Integer, nullable=False)
    awarded_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
