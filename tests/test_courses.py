import uuid
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from quizportal.exceptions import (
    CourseNotFoundError,
    EnrollmentError,
    InvalidCourseDataError,
    MaterialNotFoundError,
)
from quizportal.main import app
from quizportal.models import Course, CourseEnrollment, CourseMaterial, MaterialType, UserRole
from quizportal.services.course_service import CourseService
from quizportal.services.storage_service import StorageService


@pytest.fixture
def storage(tmp_path):
    return StorageService(root=tmp_path)


@pytest.fixture
def service(storage):
    return CourseService(storage=storage)


@pytest.fixture
def admin(make_user):
    return make_user("Admin", role=UserRole.ADMIN.value)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_course(db):
    def _make_course(name="Biology", created_at=None, **fields):
        course = Course(name=name, created_at=created_at or datetime(2026, 9, 1), **fields)
        db.add(course)
        db.commit()
        db.refresh(course)
        return course

    return _make_course


@pytest.fixture
def add_material(db):
    def _add_material(course, title, material_type, created_at, file_url=None):
        material = CourseMaterial(
            course_id=course.id,
            title=title,
            type=material_type.value,
            file_url=file_url or f"/uploads/courses/{title}.pdf",
            file_name=f"{title}.pdf",
            file_size=10,
            created_at=created_at,
        )
        db.add(material)
        db.commit()
        db.refresh(material)
        return material

    return _add_material


def headers_for(user):
    return {"X-User-Id": str(user.id)}


def test_new_users_are_students(user):
    assert user.role == UserRole.STUDENT.value


def test_catalogue_is_newest_first_with_counts(db, service, user, make_course, add_material):
    older = make_course("Chemistry", created_at=datetime(2026, 1, 1))
    newer = make_course("Physics", created_at=datetime(2026, 2, 1))
    add_material(older, "Week 1", MaterialType.SLIDE, datetime(2026, 1, 2))
    add_material(older, "Textbook", MaterialType.TEXTBOOK, datetime(2026, 1, 3))
    service.enroll(db, user.id, older.id)

    courses = service.list_courses(db)

    assert [c["name"] for c in courses] == ["Physics", "Chemistry"]
    assert (courses[0]["materials_count"], courses[0]["enrollments_count"]) == (0, 0)
    assert (courses[1]["materials_count"], courses[1]["enrollments_count"]) == (2, 1)
    assert courses[0]["id"] == newer.id


def test_course_detail_groups_materials_by_type(db, service, make_course, add_material):
    course = make_course()
    add_material(course, "Old slides", MaterialType.SLIDE, datetime(2026, 9, 2))
    add_material(course, "Midterm", MaterialType.EXAM_MATERIAL, datetime(2026, 9, 3))
    add_material(course, "New slides", MaterialType.SLIDE, datetime(2026, 9, 4))
    add_material(course, "Campbell", MaterialType.TEXTBOOK, datetime(2026, 9, 5))

    detail = service.get_course_detail(db, course.id)

    assert [m.title for m in detail["materials"]] == ["Campbell", "New slides", "Midterm", "Old slides"]
    assert [m.title for m in detail["slides"]] == ["New slides", "Old slides"]
    assert [m.title for m in detail["exam_materials"]] == ["Midterm"]
    assert [m.title for m in detail["textbooks"]] == ["Campbell"]
    assert detail["enrollments_count"] == 0


def test_unknown_course_is_not_found(db, service):
    with pytest.raises(CourseNotFoundError):
        service.get_course_detail(db, uuid.uuid4())


@pytest.mark.parametrize("name", [None, "", "   "])
def test_course_name_is_required(db, service, name):
    with pytest.raises(InvalidCourseDataError, match="Course name is required"):
        service.create_course(db, name)


def test_update_changes_only_given_fields(db, service, make_course):
    course = make_course("Biology", description="Cells", color="#00aa00")

    updated = service.update_course(db, course.id, {"name": "  Biology II ", "icon": "leaf"})

    assert updated.name == "Biology II"
    assert updated.icon == "leaf"
    assert updated.description == "Cells"
    assert updated.color == "#00aa00"

    with pytest.raises(InvalidCourseDataError):
        service.update_course(db, course.id, {"name": ""})


def test_material_validation(db, service, make_course):
    course = make_course()

    with pytest.raises(InvalidCourseDataError, match="All fields are required"):
        service.add_material(db, course.id, "Notes", "SLIDE", "/uploads/courses/n.pdf", "")
    with pytest.raises(InvalidCourseDataError, match="Invalid material type"):
        service.add_material(db, course.id, "Notes", "POSTER", "/uploads/courses/n.pdf", "n.pdf")

    material = service.add_material(db, course.id, "Notes", "SLIDE", "/uploads/courses/n.pdf", "n.pdf")
    assert material.file_size == 0


def test_material_type_filter_ignores_unknown_types(db, service, make_course, add_material):
    course = make_course()
    add_material(course, "Slides", MaterialType.SLIDE, datetime(2026, 9, 2))
    add_material(course, "Book", MaterialType.TEXTBOOK, datetime(2026, 9, 3))

    assert [m.title for m in service.list_materials(db, course.id, "SLIDE")] == ["Slides"]
    assert [m.title for m in service.list_materials(db, course.id, "bogus")] == ["Book", "Slides"]


def test_deleting_material_removes_its_file(db, service, storage, make_course, add_material):
    course = make_course()
    target = storage.root / "courses" / "week1.pdf"
    target.parent.mkdir(parents=True)
    target.write_bytes(b"%PDF")
    on_disk = add_material(course, "Week 1", MaterialType.SLIDE, datetime(2026, 9, 2), "/uploads/courses/week1.pdf")
    missing = add_material(course, "Week 2", MaterialType.SLIDE, datetime(2026, 9, 3), "/uploads/courses/gone.pdf")

    service.delete_material(db, course.id, on_disk.id)
    service.delete_material(db, course.id, missing.id)

    assert not target.exists()
    assert db.query(CourseMaterial).count() == 0
    with pytest.raises(MaterialNotFoundError):
        service.delete_material(db, course.id, on_disk.id)


def test_material_must_belong_to_the_course(db, service, make_course, add_material):
    biology = make_course("Biology")
    physics = make_course("Physics")
    material = add_material(biology, "Cells", MaterialType.SLIDE, datetime(2026, 9, 2))

    with pytest.raises(MaterialNotFoundError):
        service.delete_material(db, physics.id, material.id)


def test_deleting_course_removes_materials_and_enrollments(db, service, user, make_course, add_material):
    course = make_course()
    add_material(course, "Cells", MaterialType.SLIDE, datetime(2026, 9, 2))
    service.enroll(db, user.id, course.id)

    service.delete_course(db, course.id)

    assert db.query(Course).count() == 0
    assert db.query(CourseMaterial).count() == 0
    assert db.query(CourseEnrollment).count() == 0


def test_enrollment_is_unique_per_user_and_course(db, service, user, make_course):
    course = make_course()

    service.enroll(db, user.id, course.id)
    with pytest.raises(EnrollmentError, match="You are already enrolled"):
        service.enroll(db, user.id, course.id)

    service.unenroll(db, user.id, course.id)
    with pytest.raises(EnrollmentError):
        service.unenroll(db, user.id, course.id)

    assert service.enroll(db, user.id, course.id).course_id == course.id


def test_catalogue_is_public_but_changes_are_admin_only(client, user, admin):
    created = client.post("/api/courses/", json={"name": "Genetics", "color": "#123456"}, headers=headers_for(admin))
    assert created.status_code == 201
    course_id = created.json()["id"]

    listing = client.get("/api/courses/")
    assert listing.status_code == 200
    assert listing.json()[0]["name"] == "Genetics"

    denied = client.post("/api/courses/", json={"name": "Nope"}, headers=headers_for(user))
    assert denied.status_code == 403
    assert denied.json()["message"] == "Access denied"
    assert client.put(f"/api/courses/{course_id}", json={"name": "X"}, headers=headers_for(user)).status_code == 403
    assert client.delete(f"/api/courses/{course_id}", headers=headers_for(user)).status_code == 403
    assert client.post("/api/courses/", json={"name": "Anonymous"}).status_code == 401

    missing_name = client.post("/api/courses/", json={"description": "No name"}, headers=headers_for(admin))
    assert missing_name.status_code == 400
    assert missing_name.json()["message"] == "Course name is required"


def test_course_api_flow(client, user, admin):
    course_id = client.post("/api/courses/", json={"name": "Genetics"}, headers=headers_for(admin)).json()["id"]

    material = client.post(
        f"/api/courses/{course_id}/materials",
        json={"title": "Lecture 1", "type": "SLIDE", "file_url": "/uploads/courses/l1.pdf", "file_name": "l1.pdf"},
        headers=headers_for(admin),
    )
    assert material.status_code == 201
    assert material.json()["file_size"] == 0

    invalid = client.post(
        f"/api/courses/{course_id}/materials",
        json={"title": "Lecture 2", "type": "VIDEO", "file_url": "/uploads/courses/l2.mp4", "file_name": "l2.mp4"},
        headers=headers_for(admin),
    )
    assert invalid.status_code == 400
    assert invalid.json()["message"] == "Invalid material type"

    enrolled = client.post(f"/api/courses/{course_id}/enroll", headers=headers_for(user))
    assert enrolled.status_code == 201
    again = client.post(f"/api/courses/{course_id}/enroll", headers=headers_for(user))
    assert again.status_code == 400
    assert again.json()["message"] == "You are already enrolled"

    detail = client.get(f"/api/courses/{course_id}").json()
    assert [m["title"] for m in detail["slides"]] == ["Lecture 1"]
    assert detail["textbooks"] == detail["exam_materials"] == []
    assert detail["enrollments_count"] == 1
    assert detail["enrolled_user_ids"] == [str(user.id)]

    assert len(client.get(f"/api/courses/{course_id}/materials", params={"type": "TEXTBOOK"}).json()) == 0

    left = client.delete(f"/api/courses/{course_id}/enroll", headers=headers_for(user))
    assert left.json() == {"message": "Unenrolled from course"}

    removed = client.delete(f"/api/courses/{course_id}/materials/{material.json()['id']}", headers=headers_for(admin))
    assert removed.json() == {"message": "Material deleted"}

    deleted = client.delete(f"/api/courses/{course_id}", headers=headers_for(admin))
    assert deleted.json() == {"message": "Course deleted"}
    missing = client.get(f"/api/courses/{course_id}")
    assert missing.status_code == 404
    assert missing.json()["message"] == "Course not found"
