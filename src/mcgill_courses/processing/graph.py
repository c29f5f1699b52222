"""
Graph Module - Reverse prerequisite edges ("leading to").
=========================================================

For every course, ``leading_to`` lists the other courses whose
prerequisites name it. The lists are rebuilt from scratch over the whole
corpus each time: first into a side table, then applied to the records.
"""

from mcgill_courses.shared.logging import get_logger
from mcgill_courses.shared.schemas import CourseRecord

logger = get_logger(__name__)


def compute_leading_to(courses: list[CourseRecord]) -> dict[str, list[str]]:
    """
    Build the reverse prerequisite table of a corpus.

    Returns:
        Mapping of course identifier to the identifiers it leads to, in
        corpus order
    """
    table: dict[str, list[str]] = {course.id: [] for course in courses}

    for i, course in enumerate(courses):
        leading_to = table[course.id]
        for j, other in enumerate(courses):
            if i != j and course.id in other.prerequisites and other.id not in leading_to:
                leading_to.append(other.id)

    return table


def build_leading_to(courses: list[CourseRecord]) -> list[CourseRecord]:
    """
    Recompute ``leading_to`` for every course of a corpus.

    Runs after merging so the edges reflect the merged prerequisite data.

    Returns:
        New records with ``leading_to`` replaced
    """
    logger.info("Post processing courses...")

    table = compute_leading_to(courses)
    return [course.model_copy(update={"leading_to": table[course.id]}) for course in courses]
