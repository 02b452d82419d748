from sqlalchemy import Column, Integer, String, DateTime, JSON
from datetime import datetime
from careeros.database import Base


class QuizResult(Base):
    """Career quiz outcome. Any row for a user means they have a career path."""
    __tablename__ = "quiz_results"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    quiz_type = Column(String(100), nullable=False)
    result = Column(JSON, nullable=False)  # opaque quiz payload
    recommended_career = Column(String(255), nullable=False)
    recommended_niches = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
