"""
Pydantic schemas for the course catalogue
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from uuid import UUID
from datetime import datetime


class CourseCreate(BaseModel):
    """Name is checked by the service so an empty one gets the catalogue's own message"""
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=64)
    color: Optional[str] = Field(None, max_length=32)


class CourseUpdate(BaseModel):
    """Partial update; omitted fields keep their value"""
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=64)
    color: Optional[str] = Field(None, max_length=32)


class CourseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    created_at: datetime


class CourseSummary(CourseOut):
    """Catalogue listing row"""
    materials_count: int = 0
    enrollments_count: int = 0


class MaterialCreate(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    type: Optional[str] = None
    file_url: Optional[str] = Field(None, max_length=512)
    file_name: Optional[str] = Field(None, max_length=255)
    file_size: Optional[int] = Field(None, ge=0)


class MaterialOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    title: str
    type: str
    file_url: str
    file_name: str
    file_size: int
    created_at: datetime


class EnrollmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    course_id: UUID
    enrolled_at: datetime


class CourseDetail(CourseOut):
    """Course with its materials newest first, also grouped by type"""
    materials: List[MaterialOut] = []
    exam_materials: List[MaterialOut] = []
    textbooks: List[MaterialOut] = []
    slides: List[MaterialOut] = []
    enrollments_count: int = 0
    enrolled_user_ids: List[UUID] = []
