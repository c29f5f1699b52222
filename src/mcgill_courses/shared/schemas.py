"""
Schemas Module - Pydantic data models for the application.
==========================================================

Defines all data contracts used across the pipeline:
- Listing and detail page extraction results
- Requirement expression trees
- Schedule builder blocks
- The canonical course record and review documents

Persisted models serialize with camelCase aliases (the course identifier is
stored as ``_id``) and accept either the alias or the field name on input.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Document(BaseModel):
    """Base for models that round-trip through JSON files and the store."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_document(self) -> dict[str, Any]:
        """Serialize with aliases into JSON-compatible values."""
        return self.model_dump(by_alias=True, mode="json")


# ─────────────────────────────────────────────────────────────────────────────
# Crawl Models
# ─────────────────────────────────────────────────────────────────────────────


class Page(BaseModel):
    """One catalog listing page to fetch."""

    number: int
    url: str


class CourseListing(BaseModel):
    """One row of a catalog listing page."""

    subject: str = ""
    code: str = ""
    url: str = ""
    level: str = ""
    department: str = ""
    faculty: str = ""
    terms: list[str] = Field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# Requirements
# ─────────────────────────────────────────────────────────────────────────────


class ReqKind(str, Enum):
    """Node kinds of a requirement expression tree."""

    COURSE = "course"
    TEXT = "text"
    AND = "and"
    OR = "or"
    NOT = "not"


class ReqNode(Document):
    """
    A node of a prerequisite/corequisite expression.

    Leaves are ``course`` (value = course identifier) or ``text`` (value =
    unparsed raw text). Operators carry children; ``not`` has exactly one.
    """

    kind: ReqKind
    value: Optional[str] = None
    children: list["ReqNode"] = Field(default_factory=list)

    @classmethod
    def course(cls, course_id: str) -> "ReqNode":
        return cls(kind=ReqKind.COURSE, value=course_id)

    @classmethod
    def text(cls, raw: str) -> "ReqNode":
        return cls(kind=ReqKind.TEXT, value=raw)

    @classmethod
    def all_of(cls, children: list["ReqNode"]) -> "ReqNode":
        return children[0] if len(children) == 1 else cls(kind=ReqKind.AND, children=children)

    @classmethod
    def any_of(cls, children: list["ReqNode"]) -> "ReqNode":
        return children[0] if len(children) == 1 else cls(kind=ReqKind.OR, children=children)

    @classmethod
    def negate(cls, child: "ReqNode") -> "ReqNode":
        return cls(kind=ReqKind.NOT, children=[child])


ReqNode.model_rebuild()


class Requirements(Document):
    """Prerequisites, corequisites and restrictions of one course."""

    prerequisites_text: Optional[str] = None
    corequisites_text: Optional[str] = None
    prerequisites: list[str] = Field(default_factory=list)
    corequisites: list[str] = Field(default_factory=list)
    logical_prerequisites: Optional[ReqNode] = None
    logical_corequisites: Optional[ReqNode] = None
    restrictions: Optional[str] = None


# ─────────────────────────────────────────────────────────────────────────────
# Schedule Builder Models
# ─────────────────────────────────────────────────────────────────────────────


class TimeBlock(Document):
    """A weekly meeting slot."""

    day: Optional[str] = None
    t1: Optional[str] = None
    t2: Optional[str] = None


class Block(Document):
    """A section of a course with its meeting times."""

    campus: Optional[str] = None
    display: Optional[str] = None
    location: Optional[str] = None
    timeblocks: list[TimeBlock] = Field(default_factory=list)


class Schedule(Document):
    """All sections of a course for one term."""

    term: Optional[str] = None
    blocks: list[Block] = Field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# Course Models
# ─────────────────────────────────────────────────────────────────────────────


class Instructor(Document):
    """An instructor and the season they teach the course in."""

    name: str
    term: Optional[str] = None


class CoursePage(BaseModel):
    """Structured result of extracting one course detail page."""

    title: str
    credits: str = ""
    subject: str
    code: str
    faculty_url: str = ""
    description: str = ""
    instructors: list[Instructor] = Field(default_factory=list)
    requirements: Requirements = Field(default_factory=Requirements)


class CourseRecord(Document):
    """
    The canonical course document.

    ``id`` is the subject followed by the code (e.g. ``COMP202``).
    ``leading_to`` lists the courses naming this one as a prerequisite and
    is always recomputed over a whole corpus.
    """

    id: str = Field(default="", alias="_id")
    title: str = ""
    credits: str = ""
    subject: str = ""
    code: str = ""
    level: str = ""
    url: str = ""
    department: str = ""
    faculty: str = ""
    faculty_url: str = ""
    terms: list[str] = Field(default_factory=list)
    description: str = ""
    instructors: list[Instructor] = Field(default_factory=list)
    prerequisites_text: Optional[str] = None
    corequisites_text: Optional[str] = None
    prerequisites: list[str] = Field(default_factory=list)
    corequisites: list[str] = Field(default_factory=list)
    leading_to: list[str] = Field(default_factory=list)
    restrictions: Optional[str] = None
    logical_prerequisites: Optional[ReqNode] = None
    logical_corequisites: Optional[ReqNode] = None
    schedule: Optional[list[Schedule]] = None

    @classmethod
    def from_page(
        cls,
        listing: CourseListing,
        page: CoursePage,
        faculty_url: str,
        schedule: Optional[list[Schedule]] = None,
    ) -> "CourseRecord":
        """Combine a listing row and its detail page into a record."""
        reqs = page.requirements

        return cls(
            id=f"{page.subject}{page.code}",
            title=page.title,
            credits=page.credits,
            subject=page.subject,
            code=page.code,
            level=listing.level,
            url=listing.url,
            department=listing.department,
            faculty=listing.faculty,
            faculty_url=faculty_url,
            terms=listing.terms,
            description=page.description,
            instructors=page.instructors,
            prerequisites_text=reqs.prerequisites_text,
            corequisites_text=reqs.corequisites_text,
            prerequisites=reqs.prerequisites,
            corequisites=reqs.corequisites,
            restrictions=reqs.restrictions,
            logical_prerequisites=reqs.logical_prerequisites,
            logical_corequisites=reqs.logical_corequisites,
            schedule=schedule,
        )


# ─────────────────────────────────────────────────────────────────────────────
# Review Model
# ─────────────────────────────────────────────────────────────────────────────


class ReviewRecord(Document):
    """A user's review of a course, unique per (course_id, user_id)."""

    content: str = ""
    course_id: str
    instructor: str = ""
    rating: int = Field(default=0, ge=0, le=5)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_timestamp(cls, v: Any) -> Any:
        """Accept epoch seconds and extended-JSON ``{"$date": ...}`` values."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return datetime.fromtimestamp(v, tz=timezone.utc)
        if isinstance(v, dict) and "$date" in v:
            date = v["$date"]
            if isinstance(date, dict):
                millis = int(date.get("$numberLong", 0))
                return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
            return date
        return v
