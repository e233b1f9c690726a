"""
Course catalogue: courses, study materials and enrollments
"""
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from quizportal.exceptions import (
    CourseNotFoundError,
    EnrollmentError,
    InvalidCourseDataError,
    MaterialNotFoundError,
)
from quizportal.models import Course, CourseEnrollment, CourseMaterial, MaterialType
from quizportal.services.storage_service import StorageService, storage_service

logger = logging.getLogger(__name__)

MATERIAL_TYPES = [t.value for t in MaterialType]

EDITABLE_COURSE_FIELDS = ("name", "description", "icon", "color")


class CourseService:
    """Service for the admin-managed course catalogue"""

    def __init__(self, storage: Optional[StorageService] = None):
        self.storage = storage or storage_service

    def list_courses(self, db: Session) -> List[Dict[str, Any]]:
        """All courses newest first, with material and enrollment counts"""
        material_counts = (
            db.query(CourseMaterial.course_id, func.count(CourseMaterial.id))
            .group_by(CourseMaterial.course_id)
            .all()
        )
        enrollment_counts = (
            db.query(CourseEnrollment.course_id, func.count(CourseEnrollment.id))
            .group_by(CourseEnrollment.course_id)
            .all()
        )
        materials = dict(material_counts)
        enrollments = dict(enrollment_counts)

        courses = db.query(Course).order_by(Course.created_at.desc()).all()
        return [
            {
                **self._fields(course),
                "materials_count": materials.get(course.id, 0),
                "enrollments_count": enrollments.get(course.id, 0),
            }
            for course in courses
        ]

    def get_course(self, db: Session, course_id: UUID) -> Course:
        course = db.query(Course).filter(Course.id == course_id).first()
        if not course:
            raise CourseNotFoundError(f"Course {course_id} not found")
        return course

    def get_course_detail(self, db: Session, course_id: UUID) -> Dict[str, Any]:
        """
        Course fields plus materials newest first, the same materials split
        into exam materials, textbooks and slides, and the enrolled user ids
        """
        course = (
            db.query(Course)
            .options(selectinload(Course.materials), selectinload(Course.enrollments))
            .filter(Course.id == course_id)
            .first()
        )
        if not course:
            raise CourseNotFoundError(f"Course {course_id} not found")

        materials = list(course.materials)
        return {
            **self._fields(course),
            "materials": materials,
            "exam_materials": [m for m in materials if m.type == MaterialType.EXAM_MATERIAL.value],
            "textbooks": [m for m in materials if m.type == MaterialType.TEXTBOOK.value],
            "slides": [m for m in materials if m.type == MaterialType.SLIDE.value],
            "enrollments_count": len(course.enrollments),
            "enrolled_user_ids": [e.user_id for e in course.enrollments],
        }

    def create_course(
        self,
        db: Session,
        name: Optional[str],
        description: Optional[str] = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Course:
        if not name or not name.strip():
            raise InvalidCourseDataError("Course name is required")

        course = Course(name=name.strip(), description=description, icon=icon, color=color)
        db.add(course)
        db.commit()
        db.refresh(course)

        logger.info(f"Course created: {course.id} ({course.name})")
        return course

    def update_course(self, db: Session, course_id: UUID, changes: Dict[str, Any]) -> Course:
        """Apply the provided fields; a name, when given, may not be blank"""
        course = self.get_course(db, course_id)

        if "name" in changes and (not changes["name"] or not changes["name"].strip()):
            raise InvalidCourseDataError("Course name is required")

        for field in EDITABLE_COURSE_FIELDS:
            if field in changes:
                value = changes[field]
                setattr(course, field, value.strip() if field == "name" else value)

        db.commit()
        db.refresh(course)

        logger.info(f"Course updated: {course.id}")
        return course

    def delete_course(self, db: Session, course_id: UUID) -> None:
        """Delete a course with its materials and enrollments"""
        course = self.get_course(db, course_id)
        file_urls = [m.file_url for m in course.materials]

        db.delete(course)
        db.commit()

        for file_url in file_urls:
            self.storage.delete(file_url)

        logger.info(f"Course deleted: {course_id} ({len(file_urls)} materials)")

    def list_materials(self, db: Session, course_id: UUID, material_type: Optional[str] = None) -> List[CourseMaterial]:
        """Materials newest first. An unrecognised type filter is ignored."""
        query = db.query(CourseMaterial).filter(CourseMaterial.course_id == course_id)
        if material_type in MATERIAL_TYPES:
            query = query.filter(CourseMaterial.type == material_type)
        return query.order_by(CourseMaterial.created_at.desc()).all()

    def add_material(
        self,
        db: Session,
        course_id: UUID,
        title: Optional[str],
        material_type: Optional[str],
        file_url: Optional[str],
        file_name: Optional[str],
        file_size: Optional[int] = None,
    ) -> CourseMaterial:
        if not title or not material_type or not file_url or not file_name:
            raise InvalidCourseDataError("All fields are required")

        if material_type not in MATERIAL_TYPES:
            raise InvalidCourseDataError("Invalid material type")

        self.get_course(db, course_id)

        material = CourseMaterial(
            course_id=course_id,
            title=title,
            type=material_type,
            file_url=file_url,
            file_name=file_name,
            file_size=file_size or 0,
        )
        db.add(material)
        db.commit()
        db.refresh(material)

        logger.info(f"Material added to course {course_id}: {material.id} ({material.type})")
        return material

    def delete_material(self, db: Session, course_id: UUID, material_id: UUID) -> None:
        """Delete the material row and try to remove its stored file"""
        material = (
            db.query(CourseMaterial)
            .filter(CourseMaterial.id == material_id, CourseMaterial.course_id == course_id)
            .first()
        )
        if not material:
            raise MaterialNotFoundError(f"Material {material_id} not found")

        self.storage.delete(material.file_url)

        db.delete(material)
        db.commit()

        logger.info(f"Material deleted: {material_id}")

    def enroll(self, db: Session, user_id: UUID, course_id: UUID) -> CourseEnrollment:
        self.get_course(db, course_id)

        existing = (
            db.query(CourseEnrollment)
            .filter(CourseEnrollment.user_id == user_id, CourseEnrollment.course_id == course_id)
            .first()
        )
        if existing:
            raise EnrollmentError("You are already enrolled")

        enrollment = CourseEnrollment(user_id=user_id, course_id=course_id)
        db.add(enrollment)
        try:
            db.commit()
        except IntegrityError:
            # A concurrent enroll for the same pair won the unique constraint
            db.rollback()
            raise EnrollmentError("You are already enrolled")
        db.refresh(enrollment)

        logger.info(f"User {user_id} enrolled in course {course_id}")
        return enrollment

    def unenroll(self, db: Session, user_id: UUID, course_id: UUID) -> None:
        enrollment = (
            db.query(CourseEnrollment)
            .filter(CourseEnrollment.user_id == user_id, CourseEnrollment.course_id == course_id)
            .first()
        )
        if not enrollment:
            raise EnrollmentError("You are not enrolled in this course")

        db.delete(enrollment)
        db.commit()

        logger.info(f"User {user_id} unenrolled from course {course_id}")

    @staticmethod
    def _fields(course: Course) -> Dict[str, Any]:
        return {
            "id": course.id,
            "name": course.name,
            "description": course.description,
            "icon": course.icon,
            "color": course.color,
            "created_at": course.created_at,
        }


# Global instance
course_service = CourseService()
