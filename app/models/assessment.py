"""Assessment and AssessmentSubmission ORM models."""

from datetime import datetime, timezone

from sqlalchemy import Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Assessment(Base):
    __tablename__ = "assessments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[str] = mapped_column(String, default="quiz")
    subject_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("subjects.id"), nullable=True
    )
    total_points: Mapped[int] = mapped_column(Integer, default=100)

    # Relationships
    subject: Mapped["Subject | None"] = relationship("Subject")
    submissions: Mapped[list["AssessmentSubmission"]] = relationship(
        "AssessmentSubmission", back_populates="assessment"
    )


class AssessmentSubmission(Base):
    __tablename__ = "assessment_submissions"
    __table_args__ = (
        UniqueConstraint("assessment_id", "student_id", name="uq_submission_assessment_student"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    assessment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("assessments.id"), nullable=False
    )
    student_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("students.id"), nullable=False
    )
    score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String, default="not_started")
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    assessment: Mapped["Assessment"] = relationship("Assessment", back_populates="submissions")
    student: Mapped["Student"] = relationship(
        "Student", back_populates="assessment_submissions"
    )
