"""
Course catalogue models - courses, their study materials and student enrollments
"""
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from quizportal.database import Base
from quizportal.utils.clock import utcnow
import enum
import uuid


class MaterialType(str, enum.Enum):
    EXAM_MATERIAL = "EXAM_MATERIAL"
    TEXTBOOK = "TEXTBOOK"
    SLIDE = "SLIDE"


class Course(Base):
    """
    Courses table - admin-managed catalogue entries
    """
    __tablename__ = "courses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    icon = Column(String(64))
    color = Column(String(32))
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    materials = relationship(
        "CourseMaterial", back_populates="course", cascade="all, delete-orphan",
        order_by="CourseMaterial.created_at.desc()"
    )
    enrollments = relationship("CourseEnrollment", back_populates="course", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Course(id={self.id}, name={self.name})>"


class CourseMaterial(Base):
    __tablename__ = "course_materials"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id = Column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False, index=True)
    file_url = Column(String(512), nullable=False)
    file_name = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    course = relationship("Course", back_populates="materials")

    def __repr__(self):
        return f"<CourseMaterial(course_id={self.course_id}, type={self.type}, title={self.title})>"


class CourseEnrollment(Base):
    """One row per (user, course); enrolling twice is refused"""
    __tablename__ = "course_enrollments"
    __table_args__ = (UniqueConstraint("user_id", "course_id"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    enrolled_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User", back_populates="enrollments")
    course = relationship("Course", back_populates="enrollments")
