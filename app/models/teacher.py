"""Teacher ORM model."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.subject import subject_teacher


class Teacher(Base):
    __tablename__ = "teachers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, unique=True, nullable=False)

    # Relationships
    subjects: Mapped[list["Subject"]] = relationship(
        "Subject", secondary=subject_teacher, back_populates="teachers"
    )
    learning_sessions: Mapped[list["LearningSession"]] = relationship(
        "LearningSession", back_populates="teacher"
    )
