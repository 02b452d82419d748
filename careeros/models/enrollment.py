from sqlalchemy import Column, Integer, DateTime, Boolean, UniqueConstraint
from datetime import datetime
from careeros.database import Base


class Enrollment(Base):
    """
    A user's enrollment in a course.
    progress is 0-100; is_completed implies progress == 100.
    """
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    course_id = Column(Integer, nullable=False, index=True)

    progress = Column(Integer, nullable=False, default=0)
    is_completed = Column(Boolean, nullable=False, default=False)

    enrolled_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
