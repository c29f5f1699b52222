"""
Utilities Module - Common helper functions.
===========================================

Provides utility functions for:
- Course identifier normalization
- List union with value equality
- File I/O (JSON, atomic writes, course arrays)
- Directory management
"""

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Iterable, TypeVar

from mcgill_courses.shared.logging import get_logger
from mcgill_courses.shared.schemas import CourseRecord

logger = get_logger(__name__)

T = TypeVar("T")


# ─────────────────────────────────────────────────────────────────────────────
# Identifiers
# ─────────────────────────────────────────────────────────────────────────────


def normalize_course_id(code: str) -> str:
    """
    Normalize a course code into a course identifier.

    Example:
        >>> normalize_course_id("comp 202")
        'COMP202'
    """
    return re.sub(r"[\s\-]+", "", code.strip().upper())


# ─────────────────────────────────────────────────────────────────────────────
# Collections
# ─────────────────────────────────────────────────────────────────────────────


def union(prior: Iterable[T], fresh: Iterable[T]) -> list[T]:
    """
    Combine two lists keeping ``prior`` order and appending unseen values.

    Values are compared by equality, so this works for unhashable models.

    Example:
        >>> union(["A", "B"], ["B", "C"])
        ['A', 'B', 'C']
    """
    combined: list[T] = []
    for value in list(prior) + list(fresh):
        if value not in combined:
            combined.append(value)
    return combined


# ─────────────────────────────────────────────────────────────────────────────
# Directory Management
# ─────────────────────────────────────────────────────────────────────────────


def ensure_directory(path: Path) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Returns:
        The path (for chaining)
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def ensure_parent_directory(file_path: Path) -> Path:
    """Ensure the parent directory of a file exists."""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    return file_path


# ─────────────────────────────────────────────────────────────────────────────
# JSON File I/O
# ─────────────────────────────────────────────────────────────────────────────


def load_json(file_path: Path) -> Any:
    """
    Load data from a JSON file.

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If file is not valid JSON
    """
    file_path = Path(file_path)

    with open(file_path, "r", encoding="utf-8") as f:
        return json.load(f)


def save_json(file_path: Path, data: Any, indent: int = 2) -> None:
    """
    Save data to a JSON file atomically.

    The data is written to a temporary file in the same directory which then
    replaces the target, so readers never observe a half-written file.
    """
    file_path = Path(file_path)
    ensure_parent_directory(file_path)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{file_path.name}.", suffix=".tmp", dir=file_path.parent
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent, ensure_ascii=False, default=str)
        os.replace(tmp_name, file_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.debug(f"Saved JSON to {file_path}")


def load_courses(file_path: Path) -> list[CourseRecord]:
    """Load a JSON array of course documents."""
    data = load_json(file_path)
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array of courses in {file_path}")
    return [CourseRecord.model_validate(item) for item in data]


def save_courses(file_path: Path, courses: Iterable[CourseRecord]) -> None:
    """Write courses as a JSON array of documents."""
    save_json(file_path, [course.to_document() for course in courses])
