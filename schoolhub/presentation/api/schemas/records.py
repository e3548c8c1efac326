"""Pydantic schemas for Grading and Evaluation System records."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class SchoolYearCreate(BaseModel):
    school_year: str = Field(..., min_length=1, max_length=20)
    is_active: bool = False


class SchoolYearUpdate(BaseModel):
    school_year: Optional[str] = Field(default=None, min_length=1, max_length=20)


class SubjectCreate(BaseModel):
    subject_name: str = Field(..., min_length=1, max_length=120)


class SubjectUpdate(BaseModel):
    subject_name: Optional[str] = Field(default=None, min_length=1, max_length=120)


class TeacherCreate(BaseModel):
    fname: str = Field(..., min_length=1)
    mname: Optional[str] = None
    lname: str = Field(..., min_length=1)
    gender: Optional[str] = None
    email: Optional[EmailStr] = None
    teacher_status: bool = True


class TeacherUpdate(BaseModel):
    fname: Optional[str] = Field(default=None, min_length=1)
    mname: Optional[str] = None
    lname: Optional[str] = Field(default=None, min_length=1)
    gender: Optional[str] = None
    email: Optional[EmailStr] = None


class TeacherStatusUpdate(BaseModel):
    status: bool


class StudentCreate(BaseModel):
    fname: str = Field(..., min_length=1)
    mname: Optional[str] = None
    lname: str = Field(..., min_length=1)
    gender: Optional[str] = None
    birthdate: Optional[date] = None


class StudentUpdate(BaseModel):
    fname: Optional[str] = Field(default=None, min_length=1)
    mname: Optional[str] = None
    lname: Optional[str] = Field(default=None, min_length=1)
    gender: Optional[str] = None
    birthdate: Optional[date] = None


class ClassCreate(BaseModel):
    grade_level: str = Field(..., min_length=1)
    section: str = Field(..., min_length=1)
    class_description: Optional[str] = None
    school_year_id: Optional[int] = None
    class_adviser_id: Optional[int] = None


class ClassUpdate(BaseModel):
    grade_level: Optional[str] = Field(default=None, min_length=1)
    section: Optional[str] = Field(default=None, min_length=1)
    class_description: Optional[str] = None
    school_year_id: Optional[int] = None
    class_adviser_id: Optional[int] = None


class EnrollmentRequest(BaseModel):
    student_id: int


class StudentStatusCreate(BaseModel):
    student_id: int
    school_year_id: Optional[int] = None
    status: str = Field(..., min_length=1)
    remarks: Optional[str] = None


class StudentStatusUpdate(BaseModel):
    school_year_id: Optional[int] = None
    status: Optional[str] = Field(default=None, min_length=1)
    remarks: Optional[str] = None


class ActivityCreate(BaseModel):
    class_id: int
    subject_id: Optional[int] = None
    title: str = Field(..., min_length=1)
    activity_type: Optional[str] = None
    max_score: float = Field(default=100, gt=0)
    quarter: Optional[int] = Field(default=None, ge=1, le=4)
    activity_date: Optional[date] = None


class ActivityUpdate(BaseModel):
    subject_id: Optional[int] = None
    title: Optional[str] = Field(default=None, min_length=1)
    activity_type: Optional[str] = None
    max_score: Optional[float] = Field(default=None, gt=0)
    quarter: Optional[int] = Field(default=None, ge=1, le=4)
    activity_date: Optional[date] = None


class ScoreEntry(BaseModel):
    student_id: int
    score: Optional[float] = None


class ScoresRequest(BaseModel):
    scores: list[ScoreEntry]


class GradeCreate(BaseModel):
    student_id: int
    class_id: Optional[int] = None
    subject_id: Optional[int] = None
    quarter: Optional[int] = Field(default=None, ge=1, le=4)
    grade: Optional[float] = Field(default=None, ge=0, le=100)


class GradeUpdate(BaseModel):
    subject_id: Optional[int] = None
    quarter: Optional[int] = Field(default=None, ge=1, le=4)
    grade: Optional[float] = Field(default=None, ge=0, le=100)


class AttendanceCreate(BaseModel):
    student_id: int
    class_id: int
    school_year_id: Optional[int] = None
    month: int = Field(..., ge=1, le=12)
    day: int = Field(..., ge=1, le=31)
    status: str = Field(..., min_length=1)


class AttendanceUpdate(BaseModel):
    status: Optional[str] = Field(default=None, min_length=1)


class AttendanceEntry(BaseModel):
    student_id: int
    day: int
    status: Optional[str] = None


class AttendanceBatchRequest(BaseModel):
    class_id: int
    school_year_id: int
    month: int
    records: list[AttendanceEntry]
    total_school_days: Optional[int] = None


class GradingCriteriaCreate(BaseModel):
    subject_id: int
    school_year_id: int
    written_works_percentage: float = Field(..., ge=0, le=100)
    performance_tasks_percentage: float = Field(..., ge=0, le=100)
    quarterly_assessment_percentage: float = Field(..., ge=0, le=100)


class GradingCriteriaUpdate(BaseModel):
    written_works_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    performance_tasks_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    quarterly_assessment_percentage: Optional[float] = Field(default=None, ge=0, le=100)


class EvaluationCreate(BaseModel):
    teacher_email: EmailStr
    video_filename: Optional[str] = None
    class_code: Optional[str] = None
    score: Optional[float] = Field(default=None, ge=0)
    remarks: Optional[str] = None


class EvaluationUpdate(BaseModel):
    video_filename: Optional[str] = None
    class_code: Optional[str] = None
    score: Optional[float] = Field(default=None, ge=0)
    remarks: Optional[str] = None
