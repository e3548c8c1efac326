"""Repository for Grading and Evaluation System records."""

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from schoolhub.domain.errors import ConflictError, DomainError, NotFoundError, PersistenceError
from schoolhub.infrastructure.persistence.migrations import apply_migrations

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordTable:
    """Whitelisted shape of one record table."""

    name: str
    key: str
    columns: Tuple[str, ...]
    order_by: str
    booleans: Tuple[str, ...] = ()
    dependents: Tuple[Tuple[str, str], ...] = ()
    timestamps: bool = False


TABLES: Dict[str, RecordTable] = {
    "school_years": RecordTable(
        "school_year", "school_year_id", ("school_year", "is_active"),
        "school_year_id DESC", booleans=("is_active",),
    ),
    "subjects": RecordTable("subject", "subject_id", ("subject_name",), "subject_name"),
    "teachers": RecordTable(
        "teacher", "teacher_id",
        ("fname", "mname", "lname", "gender", "email", "teacher_status"),
        "lname, fname", booleans=("teacher_status",),
    ),
    "students": RecordTable(
        "student", "student_id", ("fname", "mname", "lname", "gender", "birthdate"), "lname, fname",
    ),
    "classes": RecordTable(
        "class", "class_id",
        ("grade_level", "section", "class_description", "school_year_id", "class_adviser_id"),
        "class_id DESC",
    ),
    "student_status": RecordTable(
        "student_status", "status_id", ("student_id", "school_year_id", "status", "remarks"),
        "status_id DESC",
    ),
    "activities": RecordTable(
        "activity", "activity_id",
        ("class_id", "subject_id", "title", "activity_type", "max_score", "quarter", "activity_date"),
        "activity_id DESC", dependents=(("activity_score", "activity_id"),),
    ),
    "grades": RecordTable(
        "grade", "grade_id", ("student_id", "class_id", "subject_id", "quarter", "grade"), "grade_id DESC",
    ),
    "attendance": RecordTable(
        "attendance", "attendance_id",
        ("student_id", "class_id", "school_year_id", "month", "day", "status"),
        "month, day, attendance_id",
    ),
    "grading_criteria": RecordTable(
        "grading_criteria", "criteria_id",
        (
            "subject_id", "school_year_id", "written_works_percentage",
            "performance_tasks_percentage", "quarterly_assessment_percentage",
        ),
        "criteria_id",
    ),
    "evaluations": RecordTable(
        "evaluation", "evaluation_id",
        ("teacher_email", "video_filename", "class_code", "score", "remarks", "evaluator_email"),
        "evaluation_id DESC", timestamps=True,
    ),
}


class RecordsRepository:
    """Repository for school records, opening one connection per call."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        with self._connect() as conn:
            apply_migrations(conn)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._connect() as conn:
            try:
                with conn:
                    yield conn
            except sqlite3.IntegrityError as exc:
                raise ConflictError(str(exc), error="Constraint violation") from exc
            except sqlite3.Error as exc:
                logger.exception("Records transaction failed")
                raise PersistenceError(str(exc)) from exc

    # Generic CRUD -----------------------------------------------------------
    def list_records(self, resource: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """List rows of ``resource``, optionally filtered by exact column values."""
        table = self._table(resource)
        query = f"SELECT * FROM {table.name}"
        params: List[Any] = []
        clauses = []
        for column, value in (filters or {}).items():
            if value is None:
                continue
            self._check_columns(table, [column], allow_key=True)
            clauses.append(f"{column} = ?")
            params.append(value)
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += f" ORDER BY {table.order_by}"
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_dict(table, row) for row in rows]

    def get_record(self, resource: str, record_id: int) -> Optional[Dict[str, Any]]:
        table = self._table(resource)
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT * FROM {table.name} WHERE {table.key} = ?", (record_id,)
            ).fetchone()
        return self._row_to_dict(table, row) if row else None

    def create_record(self, resource: str, values: Dict[str, Any]) -> Dict[str, Any]:
        table = self._table(resource)
        data = self._prepare(table, values)
        if table.timestamps:
            now = self._now()
            data["created_at"] = now
            data["updated_at"] = now
        columns = list(data)
        placeholders = ", ".join("?" for _ in columns)
        with self._transaction() as conn:
            cur = conn.execute(
                f"INSERT INTO {table.name} ({', '.join(columns)}) VALUES ({placeholders})",
                [data[column] for column in columns],
            )
            row = conn.execute(
                f"SELECT * FROM {table.name} WHERE {table.key} = ?", (cur.lastrowid,)
            ).fetchone()
        return self._row_to_dict(table, row)

    def update_record(self, resource: str, record_id: int, values: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        table = self._table(resource)
        data = self._prepare(table, values)
        if not data:
            return self.get_record(resource, record_id)
        if table.timestamps:
            data["updated_at"] = self._now()
        assignments = ", ".join(f"{column} = ?" for column in data)
        with self._transaction() as conn:
            cur = conn.execute(
                f"UPDATE {table.name} SET {assignments} WHERE {table.key} = ?",
                [*data.values(), record_id],
            )
            if cur.rowcount == 0:
                return None
            row = conn.execute(
                f"SELECT * FROM {table.name} WHERE {table.key} = ?", (record_id,)
            ).fetchone()
        return self._row_to_dict(table, row)

    def delete_record(self, resource: str, record_id: int) -> bool:
        """Delete a row together with its dependent rows in one transaction."""
        table = self._table(resource)
        with self._transaction() as conn:
            for dependent, column in table.dependents:
                conn.execute(f"DELETE FROM {dependent} WHERE {column} = ?", (record_id,))
            cur = conn.execute(f"DELETE FROM {table.name} WHERE {table.key} = ?", (record_id,))
            deleted = cur.rowcount > 0
        return deleted

    # School years -----------------------------------------------------------
    def get_active_school_year(self) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM school_year WHERE is_active = 1 LIMIT 1").fetchone()
        return self._row_to_dict(TABLES["school_years"], row) if row else None

    def toggle_school_year(self, school_year_id: int) -> Dict[str, Any]:
        """Flip ``is_active``; activating one school year deactivates all others."""
        table = TABLES["school_years"]
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT is_active FROM school_year WHERE school_year_id = ?", (school_year_id,)
            ).fetchone()
            if row is None:
                raise NotFoundError("School year not found")
            if not row["is_active"]:
                conn.execute(
                    "UPDATE school_year SET is_active = 0 WHERE school_year_id != ?", (school_year_id,)
                )
            conn.execute(
                "UPDATE school_year SET is_active = NOT is_active WHERE school_year_id = ?",
                (school_year_id,),
            )
            row = conn.execute(
                "SELECT * FROM school_year WHERE school_year_id = ?", (school_year_id,)
            ).fetchone()
        return self._row_to_dict(table, row)

    # Subjects and teachers --------------------------------------------------
    def find_subject_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM subject WHERE lower(subject_name) = lower(?)", (name,)
            ).fetchone()
        return self._row_to_dict(TABLES["subjects"], row) if row else None

    def set_teacher_status(self, teacher_id: int, active: bool) -> Optional[Dict[str, Any]]:
        return self.update_record("teachers", teacher_id, {"teacher_status": active})

    # Class enrolment --------------------------------------------------------
    def list_class_students(self, class_id: int) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT s.*, cs.date_enrolled
                FROM class_student cs
                JOIN student s ON s.student_id = cs.student_id
                WHERE cs.class_id = ?
                ORDER BY s.lname, s.fname
                """,
                (class_id,),
            ).fetchall()
        return [dict(row) for row in rows]

    def enroll_student(self, class_id: int, student_id: int, enrolled_on: Optional[date] = None) -> Dict[str, Any]:
        enrolled = (enrolled_on or date.today()).isoformat()
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO class_student (class_id, student_id, date_enrolled) VALUES (?, ?, ?)",
                (class_id, student_id, enrolled),
            )
        return {"class_id": class_id, "student_id": student_id, "date_enrolled": enrolled}

    def unenroll_student(self, class_id: int, student_id: int) -> bool:
        with self._transaction() as conn:
            cur = conn.execute(
                "DELETE FROM class_student WHERE class_id = ? AND student_id = ?",
                (class_id, student_id),
            )
            removed = cur.rowcount > 0
        return removed

    # Activity scores --------------------------------------------------------
    def get_activity_scores(self, activity_id: int) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT activity_id, student_id, score FROM activity_score WHERE activity_id = ? ORDER BY student_id",
                (activity_id,),
            ).fetchall()
        return [dict(row) for row in rows]

    def save_activity_scores(self, activity_id: int, scores: Iterable[Tuple[int, Optional[float]]]) -> List[Dict[str, Any]]:
        with self._transaction() as conn:
            if conn.execute(
                "SELECT 1 FROM activity WHERE activity_id = ?", (activity_id,)
            ).fetchone() is None:
                raise NotFoundError("Activity not found")
            for student_id, score in scores:
                conn.execute(
                    """
                    INSERT INTO activity_score (activity_id, student_id, score)
                    VALUES (?, ?, ?)
                    ON CONFLICT (activity_id, student_id) DO UPDATE SET score = excluded.score
                    """,
                    (activity_id, student_id, score),
                )
        return self.get_activity_scores(activity_id)

    # Attendance -------------------------------------------------------------
    def save_attendance_batch(
        self,
        class_id: int,
        school_year_id: int,
        month: int,
        records: Iterable[Tuple[int, int, Optional[str]]],
    ) -> List[Dict[str, Any]]:
        """Upsert ``(student_id, day, status)`` rows; an empty status deletes the day."""
        results: List[Dict[str, Any]] = []
        with self._transaction() as conn:
            for student_id, day, status in records:
                if not status:
                    conn.execute(
                        """
                        DELETE FROM attendance
                        WHERE student_id = ? AND class_id = ? AND school_year_id = ? AND month = ? AND day = ?
                        """,
                        (student_id, class_id, school_year_id, month, day),
                    )
                    results.append({"student_id": student_id, "day": day, "action": "deleted"})
                    continue
                conn.execute(
                    """
                    INSERT INTO attendance (student_id, class_id, school_year_id, month, day, status)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT (student_id, class_id, school_year_id, month, day)
                    DO UPDATE SET status = excluded.status
                    """,
                    (student_id, class_id, school_year_id, month, day, status),
                )
                row = conn.execute(
                    """
                    SELECT attendance_id FROM attendance
                    WHERE student_id = ? AND class_id = ? AND school_year_id = ? AND month = ? AND day = ?
                    """,
                    (student_id, class_id, school_year_id, month, day),
                ).fetchone()
                results.append(
                    {
                        "student_id": student_id,
                        "day": day,
                        "attendance_id": row["attendance_id"],
                        "action": "updated",
                    }
                )
        return results

    def attendance_summary_rows(self, class_id: int, school_year_id: int, month: int) -> Tuple[List[Dict[str, Any]], int]:
        """Return ``(status, gender)`` rows for a class month and its count of recorded days."""
        params = (class_id, school_year_id, month)
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT a.status, s.gender
                FROM attendance a
                JOIN student s ON s.student_id = a.student_id
                WHERE a.class_id = ? AND a.school_year_id = ? AND a.month = ?
                """,
                params,
            ).fetchall()
            days = conn.execute(
                """
                SELECT COUNT(DISTINCT day) FROM attendance
                WHERE class_id = ? AND school_year_id = ? AND month = ?
                """,
                params,
            ).fetchone()[0]
        return [dict(row) for row in rows], days

    # Grading criteria and computed grades -----------------------------------
    def find_grading_criteria(self, subject_id: int, school_year_id: int) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM grading_criteria WHERE subject_id = ? AND school_year_id = ?",
                (subject_id, school_year_id),
            ).fetchone()
        return dict(row) if row else None

    def save_grading_criteria(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """Insert criteria, replacing the percentages of an existing subject/school year pair."""
        table = TABLES["grading_criteria"]
        data = self._prepare(table, values)
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO grading_criteria (
                    subject_id, school_year_id, written_works_percentage,
                    performance_tasks_percentage, quarterly_assessment_percentage
                ) VALUES (:subject_id, :school_year_id, :written_works_percentage,
                          :performance_tasks_percentage, :quarterly_assessment_percentage)
                ON CONFLICT (subject_id, school_year_id) DO UPDATE SET
                    written_works_percentage = excluded.written_works_percentage,
                    performance_tasks_percentage = excluded.performance_tasks_percentage,
                    quarterly_assessment_percentage = excluded.quarterly_assessment_percentage
                """,
                data,
            )
            row = conn.execute(
                "SELECT * FROM grading_criteria WHERE subject_id = ? AND school_year_id = ?",
                (data["subject_id"], data["school_year_id"]),
            ).fetchone()
        return dict(row)

    def grade_rankings(self, school_year_id: int, quarter: int, class_id: Optional[int] = None) -> List[Dict[str, Any]]:
        query = """
            SELECT s.student_id, s.fname, s.mname, s.lname,
                   c.class_id, c.grade_level, c.section,
                   ROUND(AVG(g.grade), 2) AS average_grade
            FROM grade g
            JOIN student s ON s.student_id = g.student_id
            JOIN class c ON c.class_id = g.class_id
            WHERE c.school_year_id = ? AND g.quarter = ? AND g.grade IS NOT NULL
        """
        params: List[Any] = [school_year_id, quarter]
        if class_id is not None:
            query += " AND c.class_id = ?"
            params.append(class_id)
        query += """
            GROUP BY s.student_id, c.class_id
            ORDER BY average_grade DESC, s.lname, s.fname
        """
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [dict(row) for row in rows]

    def category_score_totals(self, class_id: int, subject_id: int, quarter: int) -> List[Dict[str, Any]]:
        """Per enrolled student and activity type, the sum of recorded scores and of their maximums.

        Activities without a recorded score for a student are left out of both sums.
        """
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT s.student_id, s.fname, s.mname, s.lname, a.activity_type,
                       SUM(sc.score) AS score_total,
                       SUM(CASE WHEN sc.score IS NOT NULL THEN a.max_score END) AS max_total
                FROM class_student cs
                JOIN student s ON s.student_id = cs.student_id
                LEFT JOIN activity a
                    ON a.class_id = cs.class_id AND a.subject_id = ? AND a.quarter = ?
                LEFT JOIN activity_score sc
                    ON sc.activity_id = a.activity_id AND sc.student_id = s.student_id
                WHERE cs.class_id = ?
                GROUP BY s.student_id, a.activity_type
                ORDER BY s.lname, s.fname
                """,
                (subject_id, quarter, class_id),
            ).fetchall()
        return [dict(row) for row in rows]

    # Helpers ----------------------------------------------------------------
    @staticmethod
    def _table(resource: str) -> RecordTable:
        try:
            return TABLES[resource]
        except KeyError as exc:
            raise NotFoundError(f"Unknown record type: {resource}") from exc

    @staticmethod
    def _check_columns(table: RecordTable, columns: Iterable[str], allow_key: bool = False) -> None:
        allowed = set(table.columns)
        if allow_key:
            allowed.add(table.key)
        unknown = sorted(set(columns) - allowed)
        if unknown:
            raise DomainError(f"Unknown field(s) for {table.name}: {', '.join(unknown)}")

    def _prepare(self, table: RecordTable, values: Dict[str, Any]) -> Dict[str, Any]:
        self._check_columns(table, values)
        data = {}
        for column, value in values.items():
            if column in table.booleans and value is not None:
                value = int(bool(value))
            elif isinstance(value, (date, datetime)):
                value = value.isoformat()
            data[column] = value
        return data

    @staticmethod
    def _row_to_dict(table: RecordTable, row: sqlite3.Row) -> Dict[str, Any]:
        data = dict(row)
        for column in table.booleans:
            if data.get(column) is not None:
                data[column] = bool(data[column])
        return data

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).replace(microsecond=0).isoformat()
