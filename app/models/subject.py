"""Subject ORM model and its association tables."""

from sqlalchemy import Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

student_subjects = Table(
    "student_subjects",
    Base.metadata,
    Column("student_id", Integer, ForeignKey("students.id"), primary_key=True),
    Column("subject_id", Integer, ForeignKey("subjects.id"), primary_key=True),
)

subject_teacher = Table(
    "subject_teacher",
    Base.metadata,
    Column("teacher_id", Integer, ForeignKey("teachers.id"), primary_key=True),
    Column("subject_id", Integer, ForeignKey("subjects.id"), primary_key=True),
)


class Subject(Base):
    __tablename__ = "subjects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)

    # Relationships
    students: Mapped[list["Student"]] = relationship(
        "Student", secondary=student_subjects, back_populates="subjects"
    )
    teachers: Mapped[list["Teacher"]] = relationship(
        "Teacher", secondary=subject_teacher, back_populates="subjects"
    )
