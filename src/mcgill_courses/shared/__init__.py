"""
Shared Module - Common utilities, configuration, schemas, and logging.
======================================================================

This module provides foundational components used across all other modules:

- config: Configuration loading and management
- logging: Structured logging setup
- errors: Pipeline exception taxonomy
- schemas: Pydantic data models
- utils: Utility functions (identifiers, list union, file I/O)
"""

from mcgill_courses.shared.config import get_settings, Settings
from mcgill_courses.shared.logging import get_logger, setup_logging
from mcgill_courses.shared.errors import (
    PipelineError,
    TransientFetchError,
    FetchExhausted,
    RetryExhausted,
    ExtractionError,
    PermanentExtractionError,
    DuplicateReviewError,
)
from mcgill_courses.shared.schemas import (
    CourseRecord,
    CourseListing,
    CoursePage,
    Instructor,
    ReqNode,
    ReqKind,
    Requirements,
    Schedule,
    Block,
    TimeBlock,
    ReviewRecord,
)
from mcgill_courses.shared.utils import (
    normalize_course_id,
    union,
    ensure_directory,
    load_json,
    save_json,
    load_courses,
    save_courses,
)

__all__ = [
    # Config
    "get_settings",
    "Settings",
    # Logging
    "get_logger",
    "setup_logging",
    # Errors
    "PipelineError",
    "TransientFetchError",
    "FetchExhausted",
    "RetryExhausted",
    "ExtractionError",
    "PermanentExtractionError",
    "DuplicateReviewError",
    # Schemas
    "CourseRecord",
    "CourseListing",
    "CoursePage",
    "Instructor",
    "ReqNode",
    "ReqKind",
    "Requirements",
    "Schedule",
    "Block",
    "TimeBlock",
    "ReviewRecord",
    # Utils
    "normalize_course_id",
    "union",
    "ensure_directory",
    "load_json",
    "save_json",
    "load_courses",
    "save_courses",
]
