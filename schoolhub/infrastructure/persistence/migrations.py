"""Versioned schema migrations tracked through ``PRAGMA user_version``."""

import logging
import sqlite3
from typing import List, Tuple

logger = logging.getLogger(__name__)

Migration = Tuple[int, str, str]

MIGRATIONS: List[Migration] = [
    (
        1,
        "token system accounts, api tokens and admin contacts",
        """
        CREATE TABLE accounts (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'user',
            status TEXT NOT NULL DEFAULT 'pending',
            request_date TEXT NOT NULL,
            access_type TEXT NOT NULL DEFAULT 'unlimited',
            trial_days INTEGER,
            system_access TEXT NOT NULL DEFAULT 'both',
            expires_at TEXT,
            is_disabled INTEGER NOT NULL DEFAULT 0,
            uid TEXT,
            approved_at TEXT,
            approved_by TEXT,
            rejected_at TEXT,
            rejected_by TEXT,
            rejection_reason TEXT,
            disabled_at TEXT,
            enabled_at TEXT,
            updated_at TEXT,
            updated_by TEXT,
            note TEXT,
            directory_error TEXT,
            email_sent INTEGER NOT NULL DEFAULT 0,
            email_sent_at TEXT,
            email_error TEXT
        );

        CREATE INDEX idx_accounts_status ON accounts(status);

        CREATE TABLE api_tokens (
            id TEXT PRIMARY KEY,
            token TEXT NOT NULL,
            description TEXT NOT NULL,
            created_by TEXT NOT NULL,
            created_at TEXT NOT NULL,
            expiration TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'active',
            system TEXT NOT NULL,
            user_type TEXT NOT NULL,
            role TEXT NOT NULL
        );

        CREATE INDEX idx_api_tokens_creator_created
            ON api_tokens(created_by, created_at DESC);

        CREATE TABLE admin_contacts (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL,
            subject TEXT NOT NULL,
            message TEXT NOT NULL,
            created_at TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'unread',
            email_sent INTEGER NOT NULL DEFAULT 0,
            email_sent_at TEXT,
            email_error TEXT,
            read_at TEXT,
            read_by TEXT
        );
        """,
    ),
    (
        2,
        "grading and evaluation records",
        """
        CREATE TABLE school_year (
            school_year_id INTEGER PRIMARY KEY AUTOINCREMENT,
            school_year TEXT NOT NULL UNIQUE,
            is_active INTEGER NOT NULL DEFAULT 0
        );

        CREATE TABLE subject (
            subject_id INTEGER PRIMARY KEY AUTOINCREMENT,
            subject_name TEXT NOT NULL UNIQUE
        );

        CREATE TABLE teacher (
            teacher_id INTEGER PRIMARY KEY AUTOINCREMENT,
            fname TEXT NOT NULL,
            mname TEXT,
            lname TEXT NOT NULL,
            gender TEXT,
            email TEXT UNIQUE,
            teacher_status INTEGER NOT NULL DEFAULT 1
        );

        CREATE TABLE student (
            student_id INTEGER PRIMARY KEY AUTOINCREMENT,
            fname TEXT NOT NULL,
            mname TEXT,
            lname TEXT NOT NULL,
            gender TEXT,
            birthdate TEXT
        );

        CREATE TABLE class (
            class_id INTEGER PRIMARY KEY AUTOINCREMENT,
            grade_level TEXT NOT NULL,
            section TEXT NOT NULL,
            class_description TEXT,
            school_year_id INTEGER REFERENCES school_year(school_year_id),
            class_adviser_id INTEGER REFERENCES teacher(teacher_id) ON DELETE SET NULL
        );

        CREATE TABLE class_student (
            class_id INTEGER NOT NULL REFERENCES class(class_id) ON DELETE CASCADE,
            student_id INTEGER NOT NULL REFERENCES student(student_id) ON DELETE CASCADE,
            date_enrolled TEXT NOT NULL,
            PRIMARY KEY (class_id, student_id)
        );

        CREATE TABLE student_status (
            status_id INTEGER PRIMARY KEY AUTOINCREMENT,
            student_id INTEGER NOT NULL REFERENCES student(student_id) ON DELETE CASCADE,
            school_year_id INTEGER REFERENCES school_year(school_year_id),
            status TEXT NOT NULL,
            remarks TEXT
        );

        CREATE TABLE activity (
            activity_id INTEGER PRIMARY KEY AUTOINCREMENT,
            class_id INTEGER NOT NULL REFERENCES class(class_id) ON DELETE CASCADE,
            subject_id INTEGER REFERENCES subject(subject_id),
            title TEXT NOT NULL,
            activity_type TEXT,
            max_score REAL NOT NULL DEFAULT 100,
            quarter INTEGER,
            activity_date TEXT
        );

        CREATE TABLE activity_score (
            activity_id INTEGER NOT NULL REFERENCES activity(activity_id) ON DELETE CASCADE,
            student_id INTEGER NOT NULL REFERENCES student(student_id) ON DELETE CASCADE,
            score REAL,
            PRIMARY KEY (activity_id, student_id)
        );

        CREATE TABLE grade (
            grade_id INTEGER PRIMARY KEY AUTOINCREMENT,
            student_id INTEGER NOT NULL REFERENCES student(student_id) ON DELETE CASCADE,
            class_id INTEGER REFERENCES class(class_id) ON DELETE CASCADE,
            subject_id INTEGER REFERENCES subject(subject_id),
            quarter INTEGER,
            grade REAL
        );

        CREATE TABLE attendance (
            attendance_id INTEGER PRIMARY KEY AUTOINCREMENT,
            student_id INTEGER NOT NULL REFERENCES student(student_id) ON DELETE CASCADE,
            class_id INTEGER NOT NULL REFERENCES class(class_id) ON DELETE CASCADE,
            school_year_id INTEGER REFERENCES school_year(school_year_id),
            month INTEGER NOT NULL,
            day INTEGER NOT NULL,
            status TEXT NOT NULL,
            UNIQUE (student_id, class_id, school_year_id, month, day)
        );

        CREATE TABLE evaluation (
            evaluation_id INTEGER PRIMARY KEY AUTOINCREMENT,
            teacher_email TEXT NOT NULL,
            video_filename TEXT,
            class_code TEXT,
            score REAL,
            remarks TEXT,
            evaluator_email TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE INDEX idx_evaluation_teacher ON evaluation(teacher_email);
        """,
    ),
    (
        3,
        "grading criteria per subject and school year",
        """
        CREATE TABLE grading_criteria (
            criteria_id INTEGER PRIMARY KEY AUTOINCREMENT,
            subject_id INTEGER NOT NULL REFERENCES subject(subject_id) ON DELETE CASCADE,
            school_year_id INTEGER NOT NULL REFERENCES school_year(school_year_id) ON DELETE CASCADE,
            written_works_percentage REAL NOT NULL,
            performance_tasks_percentage REAL NOT NULL,
            quarterly_assessment_percentage REAL NOT NULL,
            UNIQUE (subject_id, school_year_id)
        );
        """,
    ),
]


def current_version(conn: sqlite3.Connection) -> int:
    return conn.execute("PRAGMA user_version").fetchone()[0]


def apply_migrations(conn: sqlite3.Connection) -> int:
    """Run every migration newer than the database's ``user_version``.

    Each migration runs in its own transaction together with the version bump.
    Returns the resulting schema version.
    """
    version = current_version(conn)
    for number, description, script in MIGRATIONS:
        if number <= version:
            continue
        logger.info("Applying schema migration %s: %s", number, description)
        try:
            conn.executescript(f"BEGIN;\n{script}\nPRAGMA user_version = {number};\nCOMMIT;")
        except sqlite3.Error:
            if conn.in_transaction:
                conn.rollback()
            logger.exception("Schema migration %s failed", number)
            raise
        version = number
    return version
