"""ORM models package - exports all models and Base."""

from app.database import Base
from app.models.subject import Subject, student_subjects, subject_teacher
from app.models.parent_profile import ParentProfile
from app.models.student import Student
from app.models.teacher import Teacher
from app.models.learning_session import LearningSession
from app.models.assessment import Assessment, AssessmentSubmission

__all__ = [
    "Base",
    "Subject",
    "student_subjects",
    "subject_teacher",
    "ParentProfile",
    "Student",
    "Teacher",
    "LearningSession",
    "Assessment",
    "AssessmentSubmission",
]
