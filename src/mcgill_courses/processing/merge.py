"""
Merge Module - Deduplicate crawled courses and merge them with prior data.
==========================================================================

Same-run duplicates are collapsed by identifier, the last one seen in crawl
order winning. Against a prior corpus, list fields accumulate (so schedule,
instructor and term history survives across crawls) while every other field
takes the freshly crawled value.
"""

from typing import Any, Iterable

from mcgill_courses.shared.logging import get_logger
from mcgill_courses.shared.schemas import CourseRecord
from mcgill_courses.shared.utils import union

logger = get_logger(__name__)

UNION_FIELDS = ("instructors", "terms", "schedule")


def deduplicate(records: Iterable[CourseRecord]) -> list[CourseRecord]:
    """
    Collapse same-run duplicates and drop untitled records.

    Args:
        records: Courses in crawl order

    Returns:
        One record per identifier, sorted by identifier
    """
    by_id: dict[str, CourseRecord] = {}
    total = 0

    for record in records:
        total += 1
        by_id[record.id] = record

    courses = sorted(
        (record for record in by_id.values() if record.title),
        key=lambda record: record.id,
    )

    logger.debug(f"Deduplicated {total} crawled records into {len(courses)} courses")
    return courses


def union_fields(prior: CourseRecord, fresh: CourseRecord) -> dict[str, Any]:
    """Union ``instructors``, ``terms`` and ``schedule``, prior values first."""
    update: dict[str, Any] = {}
    for name in UNION_FIELDS:
        prior_value = getattr(prior, name)
        fresh_value = getattr(fresh, name)
        if prior_value is None and fresh_value is None:
            update[name] = None
        else:
            update[name] = union(prior_value or [], fresh_value or [])
    return update


def merge_course(prior: CourseRecord, fresh: CourseRecord) -> CourseRecord:
    """
    Merge a freshly crawled course into its prior version.

    ``instructors``, ``terms`` and ``schedule`` are unioned (prior order
    first); all other fields are overwritten by ``fresh``.
    """
    return fresh.model_copy(update=union_fields(prior, fresh), deep=True)


def merge_corpus(
    fresh: Iterable[CourseRecord], prior: Iterable[CourseRecord]
) -> list[CourseRecord]:
    """
    Merge every fresh course with the prior course of the same identifier.

    Fresh courses without a prior match pass through unchanged; prior
    courses that were not crawled again are not carried over.
    """
    prior_by_id = {course.id: course for course in prior}

    merged = []
    matched = 0
    for course in fresh:
        found = prior_by_id.get(course.id)
        if found is None:
            merged.append(course)
        else:
            matched += 1
            merged.append(merge_course(found, course))

    logger.info(f"Merged {matched} of {len(merged)} courses with prior data")
    return merged
