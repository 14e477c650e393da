"""Student ORM model."""

from datetime import datetime, timezone

from sqlalchemy import Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.subject import student_subjects


class Student(Base):
    __tablename__ = "students"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    parent_profile_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("parent_profiles.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    grade_level: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    parent_profile: Mapped["ParentProfile"] = relationship(
        "ParentProfile", back_populates="students"
    )
    subjects: Mapped[list["Subject"]] = relationship(
        "Subject",
        secondary=student_subjects,
        back_populates="students",
        order_by="Subject.id",
    )
    learning_sessions: Mapped[list["LearningSession"]] = relationship(
        "LearningSession", back_populates="student", order_by="LearningSession.start_time"
    )
    assessment_submissions: Mapped[list["AssessmentSubmission"]] = relationship(
        "AssessmentSubmission", back_populates="student"
    )
