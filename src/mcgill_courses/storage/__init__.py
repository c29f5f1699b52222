"""
Storage Module - Persisted courses, reviews and search index.
=============================================================

- db: SQLite collections with seeding, full-text search and review CRUD
"""

from mcgill_courses.storage.db import CourseStore, INDEX_WEIGHTS, SEED_OVERWRITE_FIELDS

__all__ = [
    "CourseStore",
    "INDEX_WEIGHTS",
    "SEED_OVERWRITE_FIELDS",
]
