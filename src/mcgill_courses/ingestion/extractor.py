"""
Extractor Module - Extract course information from catalog HTML.
================================================================

Parses eCalendar pages into structured data using BeautifulSoup with
configurable CSS selectors:

- Listing pages (``/study/<term>/courses/search?page=N``) → CourseListing rows
- Course detail pages → CoursePage

Both entry points are pure functions of the markup. A listing page without
rows returns None so the loader can tell "no more pages" apart from a parse
error; a detail page without its title raises ExtractionError.
"""

import re
from dataclasses import dataclass
from typing import Optional

from bs4 import BeautifulSoup, Tag

from mcgill_courses.ingestion.requirements import extract_requirements
from mcgill_courses.shared.errors import ExtractionError
from mcgill_courses.shared.logging import get_logger
from mcgill_courses.shared.schemas import (
    CourseListing,
    CoursePage,
    Instructor,
    Requirements,
)

logger = get_logger(__name__)

# "COMP 202 Foundations of Programming (3 credits)"
TITLE_RE = re.compile(
    r"^(?P<subject>[A-Z]{3}[A-Z0-9])\s+(?P<code>\d{3}(?:[A-Z]\d)?)\s+(?P<title>.+?)"
    r"(?:\s*\((?P<credits>\d+(?:\.\d+)?)\s+credits?\))?\s*$"
)

TERM_RE = re.compile(r"\b(?:Fall|Winter|Summer)\s+\d{4}\b")

# "Computer Science (Sci) : Overview ..."
DESCRIPTION_PREFIX_RE = re.compile(r"^[^:]{0,120}?\s:\s+")

INSTRUCTOR_GROUP_RE = re.compile(r"(.*?)\((Fall|Winter|Summer)\)")


# ─────────────────────────────────────────────────────────────────────────────
# Selector Configuration
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class ListingSelectors:
    """CSS selectors of the course search listing page."""

    row: str = "div.view-content div.views-row"
    link: str = "h4.field-content a, .views-field-field-course-title-long a"
    faculty: str = ".views-field-field-faculty-code .field-content"
    department: str = ".views-field-field-dept-code .field-content"
    level: str = ".views-field-level .field-content"
    terms: str = ".views-field-terms .field-content"


@dataclass
class DetailSelectors:
    """CSS selectors of a course detail page."""

    title: str = "h1#page-title"
    faculty_link: str = "div.meta a"
    description: str = "div.content > p:not([class])"
    instructors: str = "p.catalog-instructors"
    notes: str = "ul.catalog-notes li"


def _create_soup(html: str) -> BeautifulSoup:
    """Create BeautifulSoup object from HTML."""
    return BeautifulSoup(html, "lxml")


def _text(node: Optional[Tag]) -> str:
    if node is None:
        return ""
    return " ".join(node.get_text(" ", strip=True).split())


def parse_title(text: str) -> Optional[dict[str, str]]:
    """
    Split a catalog heading into its parts.

    Example:
        >>> parse_title("COMP 202 Foundations of Programming (3 credits)")["code"]
        '202'
    """
    match = TITLE_RE.match(" ".join(text.split()))
    if not match:
        return None
    parts = match.groupdict()
    parts["credits"] = parts["credits"] or ""
    return parts


def parse_terms(text: str) -> list[str]:
    """Pick the ``Season YYYY`` entries out of a terms field."""
    terms: list[str] = []
    for term in TERM_RE.findall(text):
        term = " ".join(term.split())
        if term not in terms:
            terms.append(term)
    return terms


def parse_instructors(text: str) -> list[Instructor]:
    """
    Parse an instructors paragraph.

    Example:
        >>> parse_instructors("Instructors: Doe, Jane; Roe, Rick (Fall) Doe, Jane (Winter)")
        [Instructor(name='Jane Doe', term='Fall'), Instructor(name='Rick Roe', term='Fall'), Instructor(name='Jane Doe', term='Winter')]
    """
    body = re.sub(r"^\s*Instructors?\s*:\s*", "", text, flags=re.IGNORECASE)
    if not body or "no professors" in body.lower():
        return []

    groups = INSTRUCTOR_GROUP_RE.findall(body)
    if not groups:
        groups = [(body, None)]

    instructors: list[Instructor] = []
    for names, term in groups:
        for name in names.split(";"):
            last, _, first = name.strip().partition(",")
            full_name = " ".join(f"{first.strip()} {last.strip()}".split())
            if full_name:
                instructor = Instructor(name=full_name, term=term)
                if instructor not in instructors:
                    instructors.append(instructor)

    return instructors


# ─────────────────────────────────────────────────────────────────────────────
# Listing Pages
# ─────────────────────────────────────────────────────────────────────────────


def extract_course_listings(
    html: str, selectors: Optional[ListingSelectors] = None
) -> Optional[list[CourseListing]]:
    """
    Extract the listing rows of one search results page.

    Args:
        html: Page markup
        selectors: Custom selector configuration (uses defaults if None)

    Returns:
        Non-empty list of listings, or None when the page has no rows
    """
    selectors = selectors or ListingSelectors()
    soup = _create_soup(html)

    listings = []
    for row in soup.select(selectors.row):
        link = row.select_one(selectors.link)
        if link is None:
            continue

        parts = parse_title(_text(link))
        if parts is None:
            logger.debug(f"Skipping listing with unexpected heading: {_text(link)!r}")
            continue

        listings.append(
            CourseListing(
                subject=parts["subject"],
                code=parts["code"],
                url=link.get("href", ""),
                level=_text(row.select_one(selectors.level)),
                department=_text(row.select_one(selectors.department)),
                faculty=_text(row.select_one(selectors.faculty)),
                terms=parse_terms(_text(row.select_one(selectors.terms))),
            )
        )

    return listings or None


# ─────────────────────────────────────────────────────────────────────────────
# Detail Pages
# ─────────────────────────────────────────────────────────────────────────────


def _extract_requirements(soup: BeautifulSoup, selectors: DetailSelectors) -> Requirements:
    requirements = Requirements()

    for note in soup.select(selectors.notes):
        text = _text(note)
        lowered = text.lower()

        if lowered.startswith("prerequisite"):
            ids, tree, raw = extract_requirements(text)
            requirements.prerequisites_text = raw
            requirements.prerequisites = ids
            requirements.logical_prerequisites = tree
        elif lowered.startswith("corequisite"):
            ids, tree, raw = extract_requirements(text)
            requirements.corequisites_text = raw
            requirements.corequisites = ids
            requirements.logical_corequisites = tree
        elif lowered.startswith("restriction"):
            requirements.restrictions = text

    return requirements


def extract_course_page(html: str, selectors: Optional[DetailSelectors] = None) -> CoursePage:
    """
    Extract a course detail page.

    Args:
        html: Page markup
        selectors: Custom selector configuration (uses defaults if None)

    Returns:
        CoursePage; everything but title, subject and code may be empty

    Raises:
        ExtractionError: If the title heading is missing or malformed
    """
    selectors = selectors or DetailSelectors()
    soup = _create_soup(html)

    heading = _text(soup.select_one(selectors.title))
    if not heading:
        raise ExtractionError("Course page has no title")

    parts = parse_title(heading)
    if parts is None:
        raise ExtractionError(f"Cannot read subject and code from title {heading!r}")

    faculty_link = soup.select_one(selectors.faculty_link)
    description = DESCRIPTION_PREFIX_RE.sub(
        "", _text(soup.select_one(selectors.description)), count=1
    )

    return CoursePage(
        title=parts["title"],
        credits=parts["credits"],
        subject=parts["subject"],
        code=parts["code"],
        faculty_url=faculty_link.get("href", "") if faculty_link is not None else "",
        description=description,
        instructors=parse_instructors(_text(soup.select_one(selectors.instructors))),
        requirements=_extract_requirements(soup, selectors),
    )
