"""
Store Module - SQLite course and review collections.
====================================================

Provides a high-level interface over a SQLite database holding:
- ``courses``: course documents keyed by identifier
- ``reviews``: review documents keyed by (course_id, user_id)
- ``courses_fts``: a weighted FTS5 index over id, subject, code, title and
  description, rebuilt after every seeding run

Seeding is a per-record upsert: new courses are inserted verbatim, known
courses get a fixed set of fields overwritten and their instructors,
schedule and terms unioned with what is already stored.
"""

import json
import re
import sqlite3
from pathlib import Path
from typing import Iterable, Optional

from mcgill_courses.processing.merge import union_fields
from mcgill_courses.shared.config import get_settings
from mcgill_courses.shared.errors import DuplicateReviewError
from mcgill_courses.shared.logging import get_logger
from mcgill_courses.shared.schemas import CourseRecord, ReviewRecord
from mcgill_courses.shared.utils import ensure_parent_directory, load_courses

logger = get_logger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS courses (
    id TEXT PRIMARY KEY,
    document TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS reviews (
    course_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    document TEXT NOT NULL,
    PRIMARY KEY (course_id, user_id)
);

CREATE INDEX IF NOT EXISTS idx_reviews_user ON reviews(user_id);
"""

# Fields overwritten when a stored course is seeded again
SEED_OVERWRITE_FIELDS = (
    "prerequisites",
    "corequisites",
    "credits",
    "description",
    "faculty_url",
    "restrictions",
    "url",
)

# FTS column order and bm25 weights
INDEX_WEIGHTS = {
    "id": 3.0,
    "subject": 4.0,
    "code": 4.0,
    "title": 2.0,
    "description": 1.0,
}


class CourseStore:
    """
    SQLite-backed course and review store.

    Example:
        >>> with CourseStore(Path("data/courses.db")) as store:
        ...     store.seed_file(Path("data/courses/courses-2023-2024.json"))
        ...     hits = store.search("COMP 202")
    """

    def __init__(self, database_path: Optional[Path] = None):
        """
        Open (and create if needed) the store.

        Args:
            database_path: SQLite file (uses the configured path if None)
        """
        settings = get_settings()

        self.database_path = Path(database_path or settings.get_effective_database_path())
        self.search_limit = settings.storage.search_limit

        ensure_parent_directory(self.database_path)
        self._conn = sqlite3.connect(self.database_path)
        self._conn.executescript(SCHEMA)
        self._conn.commit()

        logger.info(f"Course store opened: {self.database_path} ({self.count} courses)")

    @property
    def count(self) -> int:
        """Number of stored courses."""
        return self._conn.execute("SELECT COUNT(*) FROM courses").fetchone()[0]

    # ─────────────────────────────────────────────────────────────────────
    # Seeding
    # ─────────────────────────────────────────────────────────────────────

    def seed(self, courses: Iterable[CourseRecord]) -> tuple[int, int]:
        """
        Upsert courses, then rebuild the search index.

        Returns:
            (inserted, updated) counts
        """
        logger.info("Seeding courses...")

        inserted = updated = 0
        for course in courses:
            found = self.find_course_by_id(course.id)
            if found is None:
                self.add_course(course)
                inserted += 1
                continue

            update = {name: getattr(course, name) for name in SEED_OVERWRITE_FIELDS}
            update.update(union_fields(found, course))
            self.update_course(found.model_copy(update=update))
            updated += 1

        logger.info(
            f"Finished seeding courses ({inserted} inserted, {updated} updated), "
            f"building index..."
        )
        self.build_index()
        logger.info("Course index complete.")

        return inserted, updated

    def seed_file(self, source: Path) -> tuple[int, int]:
        """Seed from a JSON array of course documents."""
        return self.seed(load_courses(source))

    def build_index(self) -> None:
        """(Re)build the weighted full-text index over all courses."""
        columns = ", ".join(INDEX_WEIGHTS)
        placeholders = ", ".join("?" for _ in INDEX_WEIGHTS)

        with self._conn:
            self._conn.execute("DROP TABLE IF EXISTS courses_fts")
            self._conn.execute(f"CREATE VIRTUAL TABLE courses_fts USING fts5({columns})")
            self._conn.executemany(
                f"INSERT INTO courses_fts ({columns}) VALUES ({placeholders})",
                [
                    (course.id, course.subject, course.code, course.title, course.description)
                    for course in self.courses()
                ],
            )

    # ─────────────────────────────────────────────────────────────────────
    # Courses
    # ─────────────────────────────────────────────────────────────────────

    def add_course(self, course: CourseRecord) -> None:
        with self._conn:
            self._conn.execute(
                "INSERT INTO courses (id, document) VALUES (?, ?)",
                (course.id, json.dumps(course.to_document(), ensure_ascii=False)),
            )

    def update_course(self, course: CourseRecord) -> bool:
        with self._conn:
            cursor = self._conn.execute(
                "UPDATE courses SET document = ? WHERE id = ?",
                (json.dumps(course.to_document(), ensure_ascii=False), course.id),
            )
        return cursor.rowcount > 0

    def courses(
        self, limit: Optional[int] = None, offset: Optional[int] = None
    ) -> list[CourseRecord]:
        """List courses in insertion order."""
        rows = self._conn.execute(
            "SELECT document FROM courses ORDER BY rowid LIMIT ? OFFSET ?",
            (-1 if limit is None else limit, offset or 0),
        ).fetchall()
        return [CourseRecord.model_validate(json.loads(row[0])) for row in rows]

    def find_course_by_id(self, course_id: str) -> Optional[CourseRecord]:
        row = self._conn.execute(
            "SELECT document FROM courses WHERE id = ?", (course_id,)
        ).fetchone()
        if row is None:
            return None
        return CourseRecord.model_validate(json.loads(row[0]))

    def search(self, query: str, limit: Optional[int] = None) -> list[CourseRecord]:
        """
        Full-text search, best matches first.

        Every word of the query is an alternative; matches in identifier,
        subject and code outrank matches in the title or description.
        """
        logger.info(f"Received query: {query}")

        terms = re.findall(r"\w+", query or "")
        if not terms or not self._has_index():
            return []

        match = " OR ".join(f'"{term}"' for term in terms)
        weights = ", ".join(str(weight) for weight in INDEX_WEIGHTS.values())

        rows = self._conn.execute(
            "SELECT c.document FROM courses_fts "
            "JOIN courses c ON c.id = courses_fts.id "
            "WHERE courses_fts MATCH ? "
            f"ORDER BY bm25(courses_fts, {weights}) "
            "LIMIT ?",
            (match, limit or self.search_limit),
        ).fetchall()
        return [CourseRecord.model_validate(json.loads(row[0])) for row in rows]

    def _has_index(self) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'courses_fts'"
        ).fetchone()
        return row is not None

    # ─────────────────────────────────────────────────────────────────────
    # Reviews
    # ─────────────────────────────────────────────────────────────────────

    def add_review(self, review: ReviewRecord) -> None:
        """
        Insert a review.

        Raises:
            DuplicateReviewError: If the user already reviewed the course
        """
        if self.find_review(review.course_id, review.user_id) is not None:
            raise DuplicateReviewError(review.course_id, review.user_id)

        try:
            with self._conn:
                self._conn.execute(
                    "INSERT INTO reviews (course_id, user_id, document) VALUES (?, ?, ?)",
                    (review.course_id, review.user_id, json.dumps(review.to_document())),
                )
        except sqlite3.IntegrityError as e:
            raise DuplicateReviewError(review.course_id, review.user_id) from e

    def update_review(self, review: ReviewRecord) -> bool:
        """Replace the stored review of the same (course, user) pair."""
        with self._conn:
            cursor = self._conn.execute(
                "UPDATE reviews SET document = ? WHERE course_id = ? AND user_id = ?",
                (json.dumps(review.to_document()), review.course_id, review.user_id),
            )
        return cursor.rowcount > 0

    def delete_review(self, course_id: str, user_id: str) -> bool:
        with self._conn:
            cursor = self._conn.execute(
                "DELETE FROM reviews WHERE course_id = ? AND user_id = ?",
                (course_id, user_id),
            )
        return cursor.rowcount > 0

    def find_review(self, course_id: str, user_id: str) -> Optional[ReviewRecord]:
        row = self._conn.execute(
            "SELECT document FROM reviews WHERE course_id = ? AND user_id = ?",
            (course_id, user_id),
        ).fetchone()
        if row is None:
            return None
        return ReviewRecord.model_validate(json.loads(row[0]))

    def find_reviews_by_course_id(self, course_id: str) -> list[ReviewRecord]:
        return self._find_reviews("course_id", course_id)

    def find_reviews_by_user_id(self, user_id: str) -> list[ReviewRecord]:
        return self._find_reviews("user_id", user_id)

    def _find_reviews(self, column: str, value: str) -> list[ReviewRecord]:
        rows = self._conn.execute(
            f"SELECT document FROM reviews WHERE {column} = ? ORDER BY rowid", (value,)
        ).fetchall()
        return [ReviewRecord.model_validate(json.loads(row[0])) for row in rows]

    # ─────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "CourseStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        self.close()
