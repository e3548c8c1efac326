from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ...domain.errors import DomainError, NotFoundError
from ...infrastructure.repositories.records_repository import TABLES, RecordsRepository

logger = logging.getLogger(__name__)

_LABELS = {
    "school_years": "School year",
    "subjects": "Subject",
    "teachers": "Teacher",
    "students": "Student",
    "classes": "Class",
    "student_status": "Student status",
    "activities": "Activity",
    "grades": "Grade",
    "attendance": "Attendance record",
    "grading_criteria": "Grading criteria",
    "evaluations": "Evaluation",
}


class RecordsService:
    """CRUD for Grading and Evaluation System records plus their multi-row operations."""

    def __init__(self, repository: RecordsRepository) -> None:
        self._repository = repository

    @staticmethod
    def resources() -> List[str]:
        return list(TABLES)

    def list(self, resource: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        return self._repository.list_records(resource, filters)

    def get(self, resource: str, record_id: int) -> Dict[str, Any]:
        record = self._repository.get_record(resource, record_id)
        if record is None:
            raise NotFoundError(f"{_LABELS.get(resource, 'Record')} not found")
        return record

    def create(self, resource: str, values: Dict[str, Any]) -> Dict[str, Any]:
        if resource == "school_years" and values.get("is_active"):
            created = self._repository.create_record(resource, {**values, "is_active": False})
            return self.toggle_school_year(created["school_year_id"])
        if resource == "grading_criteria":
            return self.save_grading_criteria(values)
        record = self._repository.create_record(resource, values)
        logger.info("Created %s %s", resource, record.get(TABLES[resource].key))
        return record

    def update(self, resource: str, record_id: int, values: Dict[str, Any]) -> Dict[str, Any]:
        if resource == "grading_criteria":
            _check_weights({**self.get(resource, record_id), **values})
        record = self._repository.update_record(resource, record_id, values)
        if record is None:
            raise NotFoundError(f"{_LABELS.get(resource, 'Record')} not found")
        return record

    def delete(self, resource: str, record_id: int) -> None:
        if not self._repository.delete_record(resource, record_id):
            raise NotFoundError(f"{_LABELS.get(resource, 'Record')} not found")
        logger.info("Deleted %s %s", resource, record_id)

    # ------------------------------------------------------------------
    def active_school_year(self) -> Dict[str, Any]:
        record = self._repository.get_active_school_year()
        if record is None:
            raise NotFoundError("No active school year found")
        return record

    def toggle_school_year(self, school_year_id: int) -> Dict[str, Any]:
        return self._repository.toggle_school_year(school_year_id)

    def subject_by_name(self, name: str) -> Dict[str, Any]:
        record = self._repository.find_subject_by_name(name)
        if record is None:
            raise NotFoundError("Subject not found")
        return record

    def set_teacher_status(self, teacher_id: int, active: bool) -> Dict[str, Any]:
        record = self._repository.set_teacher_status(teacher_id, active)
        if record is None:
            raise NotFoundError("Teacher not found")
        return record

    def class_students(self, class_id: int) -> List[Dict[str, Any]]:
        self.get("classes", class_id)
        return self._repository.list_class_students(class_id)

    def enroll(self, class_id: int, student_id: int) -> Dict[str, Any]:
        self.get("classes", class_id)
        self.get("students", student_id)
        return self._repository.enroll_student(class_id, student_id)

    def unenroll(self, class_id: int, student_id: int) -> None:
        if not self._repository.unenroll_student(class_id, student_id):
            raise NotFoundError("Student is not enrolled in this class")

    def activity_scores(self, activity_id: int) -> List[Dict[str, Any]]:
        self.get("activities", activity_id)
        return self._repository.get_activity_scores(activity_id)

    def save_activity_scores(
        self, activity_id: int, scores: Iterable[Tuple[int, Optional[float]]]
    ) -> List[Dict[str, Any]]:
        activity = self.get("activities", activity_id)
        entries = list(scores)
        max_score = activity.get("max_score")
        for student_id, score in entries:
            if score is not None and (score < 0 or (max_score is not None and score > max_score)):
                raise DomainError(f"Score {score} for student {student_id} is outside 0..{max_score}")
        return self._repository.save_activity_scores(activity_id, entries)

    def save_attendance_batch(
        self,
        class_id: int,
        school_year_id: int,
        month: int,
        records: Iterable[Tuple[int, int, Optional[str]]],
    ) -> List[Dict[str, Any]]:
        if not 1 <= month <= 12:
            raise DomainError("Month must be between 1 and 12")
        entries = list(records)
        for _, day, _ in entries:
            if not 1 <= day <= 31:
                raise DomainError("Day must be between 1 and 31")
        results = self._repository.save_attendance_batch(class_id, school_year_id, month, entries)
        logger.info("Saved %s attendance entries for class %s", len(results), class_id)
        return results

    def attendance_summary(self, class_id: int, month: int, school_year_id: int) -> Dict[str, Any]:
        """Count present, absent and late marks by gender for one class month."""
        if not 1 <= month <= 12:
            raise DomainError("Month must be between 1 and 12")
        self.get("classes", class_id)
        rows, total_days = self._repository.attendance_summary_rows(class_id, school_year_id, month)
        summary = {gender: {"present": 0, "absent": 0, "late": 0} for gender in ("male", "female")}
        for row in rows:
            key = _ATTENDANCE_MARKS.get((row["status"] or "").upper())
            if key is None:
                continue
            gender = "male" if (row["gender"] or "").upper() == "M" else "female"
            summary[gender][key] += 1
        return {"summary": summary, "total_days": total_days}

    # Grading criteria and computed grades ------------------------------
    def save_grading_criteria(self, values: Dict[str, Any]) -> Dict[str, Any]:
        _check_weights(values)
        self.get("subjects", values["subject_id"])
        self.get("school_years", values["school_year_id"])
        record = self._repository.save_grading_criteria(values)
        logger.info(
            "Saved grading criteria for subject %s in school year %s",
            record["subject_id"],
            record["school_year_id"],
        )
        return record

    def grading_criteria_for(self, subject_id: int, school_year_id: int) -> Dict[str, Any]:
        self.get("subjects", subject_id)
        record = self._repository.find_grading_criteria(subject_id, school_year_id)
        if record is None:
            return {
                "exists": False,
                "subject_id": subject_id,
                "school_year_id": school_year_id,
                **{column: 0 for column in _WEIGHT_COLUMNS.values()},
            }
        return {"exists": True, **record}

    def rankings(self, school_year_id: int, quarter: int, class_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """Rank students by their average grade; equal averages share a rank."""
        ranked: List[Dict[str, Any]] = []
        previous = None
        for position, row in enumerate(self._repository.grade_rankings(school_year_id, quarter, class_id), start=1):
            if row["average_grade"] != previous:
                rank = position
                previous = row["average_grade"]
            ranked.append({**row, "rank": rank})
        return ranked

    def computed_grades(self, class_id: int, subject_id: int, quarter: int) -> Dict[str, Any]:
        """Weigh each student's activity scores by the subject's grading criteria.

        A category's percentage is its recorded score total over the matching
        maximum total; categories without scores count as zero.
        """
        klass = self.get("classes", class_id)
        self.get("subjects", subject_id)
        criteria = None
        if klass.get("school_year_id") is not None:
            criteria = self._repository.find_grading_criteria(subject_id, klass["school_year_id"])
        if criteria is None:
            raise NotFoundError("No grading criteria defined for this subject and school year")

        students: Dict[int, Dict[str, Any]] = {}
        for row in self._repository.category_score_totals(class_id, subject_id, quarter):
            student = students.setdefault(
                row["student_id"],
                {
                    "student_id": row["student_id"],
                    "fname": row["fname"],
                    "mname": row["mname"],
                    "lname": row["lname"],
                    **{category: 0.0 for category in _WEIGHT_COLUMNS},
                },
            )
            category = row["activity_type"]
            if category in _WEIGHT_COLUMNS and row["max_total"]:
                student[category] = round(row["score_total"] / row["max_total"] * 100, 2)

        results = []
        for student in students.values():
            weighted = sum(
                student[category] * criteria[column] / 100 for category, column in _WEIGHT_COLUMNS.items()
            )
            results.append({**student, "quarterly_grade": round(weighted, 2)})
        return {"criteria": criteria, "quarter": quarter, "students": results}


_ATTENDANCE_MARKS = {"P": "present", "A": "absent", "L": "late"}

_WEIGHT_COLUMNS = {
    "written_works": "written_works_percentage",
    "performance_tasks": "performance_tasks_percentage",
    "quarterly_assessment": "quarterly_assessment_percentage",
}


def _check_weights(values: Dict[str, Any]) -> None:
    total = sum(float(values.get(column) or 0) for column in _WEIGHT_COLUMNS.values())
    if abs(total - 100) > 0.01:
        raise DomainError(f"Grading criteria percentages must add up to 100, got {total:g}")
