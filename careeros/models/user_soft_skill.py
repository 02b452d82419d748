from sqlalchemy import Column, Integer, DateTime, Boolean, UniqueConstraint
from datetime import datetime
from careeros.database import Base


class UserSoftSkill(Base):
    __tablename__ = "user_soft_skills"
    __table_args__ = (UniqueConstraint("user_id", "soft_skill_id", name="uq_user_soft_skill"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    soft_skill_id = Column(Integer, nullable=False, index=True)

    progress = Column(Integer, nullable=False, default=0)
    is_completed = Column(Boolean, nullable=False, default=False)

    started_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
