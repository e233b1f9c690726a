"""
Course catalogue endpoints: browsing, admin management of courses and
materials, and student enrollment
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
import logging

from quizportal.api.deps import get_admin_user, get_current_user
from quizportal.database import get_db
from quizportal.exceptions import (
    CourseNotFoundError,
    EnrollmentError,
    InvalidCourseDataError,
    MaterialNotFoundError,
)
from quizportal.models import User
from quizportal.schemas.auth import MessageResponse
from quizportal.schemas.course import (
    CourseCreate,
    CourseDetail,
    CourseOut,
    CourseSummary,
    CourseUpdate,
    EnrollmentOut,
    MaterialCreate,
    MaterialOut,
)
from quizportal.services.course_service import course_service


router = APIRouter(prefix="/api/courses", tags=["courses"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=List[CourseSummary])
async def list_courses(db: Session = Depends(get_db)):
    """Catalogue, newest course first"""
    return course_service.list_courses(db)


@router.post("/", response_model=CourseOut, status_code=201)
async def create_course(
    request: CourseCreate,
    admin: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    try:
        return course_service.create_course(
            db, request.name, request.description, request.icon, request.color
        )
    except InvalidCourseDataError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{course_id}", response_model=CourseDetail)
async def get_course(course_id: UUID, db: Session = Depends(get_db)):
    """Course with materials grouped by type"""
    try:
        return course_service.get_course_detail(db, course_id)
    except CourseNotFoundError:
        raise HTTPException(status_code=404, detail="Course not found")


@router.put("/{course_id}", response_model=CourseOut)
async def update_course(
    course_id: UUID,
    request: CourseUpdate,
    admin: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    try:
        return course_service.update_course(db, course_id, request.model_dump(exclude_unset=True))
    except CourseNotFoundError:
        raise HTTPException(status_code=404, detail="Course not found")
    except InvalidCourseDataError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{course_id}", response_model=MessageResponse)
async def delete_course(
    course_id: UUID,
    admin: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    try:
        course_service.delete_course(db, course_id)
    except CourseNotFoundError:
        raise HTTPException(status_code=404, detail="Course not found")

    return MessageResponse(message="Course deleted")


@router.get("/{course_id}/materials", response_model=List[MaterialOut])
async def list_materials(
    course_id: UUID,
    type: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    """Materials newest first, optionally filtered to EXAM_MATERIAL, TEXTBOOK or SLIDE"""
    return course_service.list_materials(db, course_id, type)


@router.post("/{course_id}/materials", response_model=MaterialOut, status_code=201)
async def add_material(
    course_id: UUID,
    request: MaterialCreate,
    admin: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    try:
        return course_service.add_material(
            db,
            course_id,
            request.title,
            request.type,
            request.file_url,
            request.file_name,
            request.file_size,
        )
    except InvalidCourseDataError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CourseNotFoundError:
        raise HTTPException(status_code=404, detail="Course not found")


@router.delete("/{course_id}/materials/{material_id}", response_model=MessageResponse)
async def delete_material(
    course_id: UUID,
    material_id: UUID,
    admin: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    try:
        course_service.delete_material(db, course_id, material_id)
    except MaterialNotFoundError:
        raise HTTPException(status_code=404, detail="Material not found")

    return MessageResponse(message="Material deleted")


@router.post("/{course_id}/enroll", response_model=EnrollmentOut, status_code=201)
async def enroll(
    course_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        return course_service.enroll(db, user.id, course_id)
    except CourseNotFoundError:
        raise HTTPException(status_code=404, detail="Course not found")
    except EnrollmentError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{course_id}/enroll", response_model=MessageResponse)
async def unenroll(
    course_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        course_service.unenroll(db, user.id, course_id)
    except EnrollmentError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return MessageResponse(message="Unenrolled from course")
