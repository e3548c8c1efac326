"""Grading System routes: school structure, class work and attendance."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status

from ....application.services.records_service import RecordsService
from ....core.dependencies import get_records_service
from ....domain.authorization import CREATE, READ, UPDATE, Principal
from ....domain.models.account import SYSTEM_GRADING
from ..dependencies import require_permission, require_system
from ..schemas.records import (
    ActivityCreate,
    ActivityUpdate,
    AttendanceBatchRequest,
    AttendanceCreate,
    AttendanceUpdate,
    ClassCreate,
    ClassUpdate,
    EnrollmentRequest,
    GradeCreate,
    GradeUpdate,
    GradingCriteriaCreate,
    GradingCriteriaUpdate,
    SchoolYearCreate,
    SchoolYearUpdate,
    ScoresRequest,
    StudentCreate,
    StudentStatusCreate,
    StudentStatusUpdate,
    StudentUpdate,
    SubjectCreate,
    SubjectUpdate,
    TeacherCreate,
    TeacherStatusUpdate,
    TeacherUpdate,
)
from .records import add_crud_routes

router = APIRouter(
    prefix="/grading",
    tags=["grading"],
    dependencies=[Depends(require_system(SYSTEM_GRADING))],
)


@router.get("/school-years/active")
def get_active_school_year(
    _: Principal = Depends(require_permission("school_years", READ)),
    records: RecordsService = Depends(get_records_service),
) -> Dict[str, Any]:
    return records.active_school_year()


@router.put("/school-years/{school_year_id}/toggle-active")
def toggle_school_year(
    school_year_id: int,
    _: Principal = Depends(require_permission("school_years", UPDATE)),
    records: RecordsService = Depends(get_records_service),
) -> Dict[str, Any]:
    return {"success": True, "school_year": records.toggle_school_year(school_year_id)}


@router.get("/subjects/by-name/{subject_name}")
def get_subject_by_name(
    subject_name: str,
    _: Principal = Depends(require_permission("subjects", READ)),
    records: RecordsService = Depends(get_records_service),
) -> Dict[str, Any]:
    return records.subject_by_name(subject_name)


@router.put("/teachers/{teacher_id}/status")
def update_teacher_status(
    teacher_id: int,
    payload: TeacherStatusUpdate,
    _: Principal = Depends(require_permission("teachers", UPDATE)),
    records: RecordsService = Depends(get_records_service),
) -> Dict[str, Any]:
    teacher = records.set_teacher_status(teacher_id, payload.status)
    return {
        "success": True,
        "message": f"Teacher status updated to {'ACTIVE' if payload.status else 'INACTIVE'}",
        "teacher": teacher,
    }


@router.get("/classes/{class_id}/students")
def list_class_students(
    class_id: int,
    _: Principal = Depends(require_permission("classes", READ)),
    records: RecordsService = Depends(get_records_service),
) -> List[Dict[str, Any]]:
    return records.class_students(class_id)


@router.post("/classes/{class_id}/students", status_code=status.HTTP_201_CREATED)
def enroll_student(
    class_id: int,
    payload: EnrollmentRequest,
    _: Principal = Depends(require_permission("classes", UPDATE)),
    records: RecordsService = Depends(get_records_service),
) -> Dict[str, Any]:
    return records.enroll(class_id, payload.student_id)


@router.delete("/classes/{class_id}/students/{student_id}")
def unenroll_student(
    class_id: int,
    student_id: int,
    _: Principal = Depends(require_permission("classes", UPDATE)),
    records: RecordsService = Depends(get_records_service),
) -> Dict[str, Any]:
    records.unenroll(class_id, student_id)
    return {"success": True, "message": "Student removed successfully"}


@router.get("/activities/{activity_id}/scores")
def get_activity_scores(
    activity_id: int,
    _: Principal = Depends(require_permission("activities", READ)),
    records: RecordsService = Depends(get_records_service),
) -> List[Dict[str, Any]]:
    return records.activity_scores(activity_id)


@router.put("/activities/{activity_id}/scores")
def save_activity_scores(
    activity_id: int,
    payload: ScoresRequest,
    _: Principal = Depends(require_permission("activities", UPDATE)),
    records: RecordsService = Depends(get_records_service),
) -> List[Dict[str, Any]]:
    return records.save_activity_scores(
        activity_id, [(entry.student_id, entry.score) for entry in payload.scores]
    )


@router.post("/attendance/batch")
def save_attendance_batch(
    payload: AttendanceBatchRequest,
    _: Principal = Depends(require_permission("attendance", CREATE)),
    records: RecordsService = Depends(get_records_service),
) -> Dict[str, Any]:
    results = records.save_attendance_batch(
        payload.class_id,
        payload.school_year_id,
        payload.month,
        [(entry.student_id, entry.day, entry.status) for entry in payload.records],
    )
    return {
        "message": f"Updated {len(results)} attendance records",
        "records": results,
        "total_school_days": payload.total_school_days,
    }


@router.get("/attendance/summary/{class_id}/{month}")
def get_attendance_summary(
    class_id: int,
    month: int,
    school_year_id: int = Query(...),
    _: Principal = Depends(require_permission("attendance", READ)),
    records: RecordsService = Depends(get_records_service),
) -> Dict[str, Any]:
    return records.attendance_summary(class_id, month, school_year_id)


@router.get("/grades/rankings")
def get_grade_rankings(
    school_year_id: int = Query(...),
    quarter: int = Query(..., ge=1, le=4),
    class_id: Optional[int] = Query(default=None),
    _: Principal = Depends(require_permission("grades", READ)),
    records: RecordsService = Depends(get_records_service),
) -> List[Dict[str, Any]]:
    return records.rankings(school_year_id, quarter, class_id)


@router.get("/grades/computed")
def get_computed_grades(
    class_id: int = Query(...),
    subject_id: int = Query(...),
    quarter: int = Query(..., ge=1, le=4),
    _: Principal = Depends(require_permission("grades", READ)),
    records: RecordsService = Depends(get_records_service),
) -> Dict[str, Any]:
    return records.computed_grades(class_id, subject_id, quarter)


@router.get("/grading-criteria/{subject_id}/{school_year_id}")
def get_grading_criteria_for_subject(
    subject_id: int,
    school_year_id: int,
    _: Principal = Depends(require_permission("grading_criteria", READ)),
    records: RecordsService = Depends(get_records_service),
) -> Dict[str, Any]:
    return records.grading_criteria_for(subject_id, school_year_id)


add_crud_routes(router, "/school-years", "school_years", SchoolYearCreate, SchoolYearUpdate)
add_crud_routes(router, "/subjects", "subjects", SubjectCreate, SubjectUpdate)
add_crud_routes(router, "/teachers", "teachers", TeacherCreate, TeacherUpdate)
add_crud_routes(router, "/students", "students", StudentCreate, StudentUpdate)
add_crud_routes(router, "/classes", "classes", ClassCreate, ClassUpdate)
add_crud_routes(router, "/student-status", "student_status", StudentStatusCreate, StudentStatusUpdate)
add_crud_routes(router, "/activities", "activities", ActivityCreate, ActivityUpdate)
add_crud_routes(router, "/grades", "grades", GradeCreate, GradeUpdate)
add_crud_routes(router, "/attendance", "attendance", AttendanceCreate, AttendanceUpdate)
add_crud_routes(router, "/grading-criteria", "grading_criteria", GradingCriteriaCreate, GradingCriteriaUpdate)
