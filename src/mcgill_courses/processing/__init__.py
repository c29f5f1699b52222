"""
Processing Module - Reconcile and enrich crawled courses.
=========================================================

- merge: Same-run deduplication and field-level merge with prior data
- graph: Reverse prerequisite ("leading to") computation

Pipeline flow:
    crawled records → deduplicate → merge_corpus(prior) → build_leading_to
"""

from mcgill_courses.processing.merge import (
    deduplicate,
    merge_course,
    merge_corpus,
    union_fields,
)
from mcgill_courses.processing.graph import build_leading_to, compute_leading_to

__all__ = [
    # Merge
    "deduplicate",
    "merge_course",
    "merge_corpus",
    "union_fields",
    # Graph
    "build_leading_to",
    "compute_leading_to",
]
