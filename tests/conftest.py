"""
Pytest Configuration and Fixtures.
===================================

Shared fixtures for all test modules:
- Catalog markup (listing pages, detail pages, schedule builder XML)
- Course records
- A fake fetcher serving canned pages
- Temporary directories and stores
"""

import tempfile
from pathlib import Path
from typing import Generator, Optional

import pytest


# ─────────────────────────────────────────────────────────────────────────────
# Path Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_path(project_root: Path) -> Path:
    """Get the config file path."""
    return project_root / "config" / "settings.yaml"


# ─────────────────────────────────────────────────────────────────────────────
# Markup Fixtures
# ─────────────────────────────────────────────────────────────────────────────


def listing_row(subject: str, code: str, title: str, terms: str = "Fall 2023, Winter 2024") -> str:
    """One row of a course search results page."""
    slug = f"{subject.lower()}-{code.lower()}"
    return f"""
        <div class="views-row">
            <div class="views-field views-field-field-course-title-long">
                <h4 class="field-content">
                    <a href="/study/2023-2024/courses/{slug}">{subject} {code} {title} (3 credits)</a>
                </h4>
            </div>
            <span class="views-field views-field-field-faculty-code">
                <span class="field-content">Faculty of Science</span>
            </span>
            <span class="views-field views-field-field-dept-code">
                <span class="field-content">Computer Science</span>
            </span>
            <span class="views-field views-field-level">
                <span class="field-content">Undergraduate</span>
            </span>
            <span class="views-field views-field-terms">
                <span class="field-content">{terms}</span>
            </span>
        </div>
    """


def listing_page(*rows: str) -> str:
    """A course search results page holding the given rows."""
    return f"""
    <html><body>
        <div class="view-content">{''.join(rows)}</div>
    </body></html>
    """


def detail_page(
    subject: str,
    code: str,
    title: str,
    prerequisite: Optional[str] = None,
    description: str = "Computer Science (Sci) : An introductory course.",
) -> str:
    """A course detail page."""
    notes = f"<li><p>Prerequisite: {prerequisite}</p></li>" if prerequisite else ""
    return f"""
    <html><body>
        <h1 id="page-title">{subject} {code} {title} (3 credits)</h1>
        <div class="meta">
            <p>Offered by: <a href="/study/2023-2024/faculties/science">Computer Science</a></p>
        </div>
        <div class="content">
            <p>{description}</p>
            <p class="catalog-terms">Terms: Fall 2023, Winter 2024</p>
            <p class="catalog-instructors">Instructors: Doe, Jane (Fall)</p>
            <ul class="catalog-notes">{notes}</ul>
        </div>
    </body></html>
    """


EMPTY_LISTING_PAGE = """
<html><body>
    <div class="view-content"></div>
    <p>No courses match your search.</p>
</body></html>
"""


@pytest.fixture
def sample_listing_html() -> str:
    """A listing page with two courses."""
    return listing_page(
        listing_row("COMP", "202", "Foundations of Programming"),
        listing_row("COMP", "250", "Introduction to Computer Science", terms="Fall 2023"),
    )


@pytest.fixture
def sample_detail_html() -> str:
    """A fully populated course detail page."""
    return """
    <html><body>
        <h1 id="page-title">COMP 250 Introduction to Computer Science (3 credits)</h1>
        <div class="meta">
            <p>Offered by: <a href="/study/2023-2024/faculties/science">Computer Science (Faculty of Science)</a></p>
        </div>
        <div class="content">
            <p>Computer Science (Sci) : Mathematical tools (binary numbers, induction,
            recurrence relations) and data structures.</p>
            <p class="catalog-terms">Terms: Fall 2023, Winter 2024</p>
            <p class="catalog-instructors">Instructors: Doe, Jane; Roe, Rick (Fall) Doe, Jane (Winter)</p>
            <ul class="catalog-notes">
                <li><p>Prerequisite: COMP 202 or COMP 204.</p></li>
                <li><p>Corequisite: MATH 240.</p></li>
                <li><p>Restriction: Not open to students who have taken COMP 203.</p></li>
            </ul>
        </div>
    </body></html>
    """


@pytest.fixture
def sample_vsb_xml() -> str:
    """A schedule builder class data response for one course and term."""
    return """<addcourse>
        <classdata>
            <course key="COMP-202">
                <uselection key="COMP-202">
                    <selection ssid="202309"/>
                    <block campus="Downtown" disp="Lec 001" location="ENGMC 204" timeblockids="2,3"/>
                    <block campus="Downtown" disp="Lab 002" location="TR 3120" timeblockids="12"/>
                    <timeblock id="2" day="2" t1="630" t2="715"/>
                    <timeblock id="3" day="4" t1="630" t2="715"/>
                    <timeblock id="12" day="5" t1="840" t2="960"/>
                </uselection>
            </course>
        </classdata>
    </addcourse>
    """


# ─────────────────────────────────────────────────────────────────────────────
# Record Fixtures
# ─────────────────────────────────────────────────────────────────────────────


def make_course(course_id: str, **fields):
    """Build a CourseRecord from an identifier such as ``COMP202``."""
    from mcgill_courses.shared.schemas import CourseRecord

    defaults = {
        "id": course_id,
        "subject": course_id[:4],
        "code": course_id[4:],
        "title": f"Course {course_id}",
        "credits": "3",
        "url": f"https://www.mcgill.ca/study/2023-2024/courses/{course_id.lower()}",
    }
    defaults.update(fields)
    return CourseRecord(**defaults)


@pytest.fixture
def sample_course_record():
    """Sample CourseRecord instance."""
    from mcgill_courses.shared.schemas import Instructor

    return make_course(
        "COMP250",
        title="Introduction to Computer Science",
        description="Mathematical tools and data structures.",
        terms=["Fall 2023"],
        instructors=[Instructor(name="Jane Doe", term="Fall")],
        prerequisites=["COMP202"],
    )


@pytest.fixture
def search_corpus() -> list:
    """Courses with enough unrelated records to give search terms weight."""
    return [
        make_course("COMP202", title="Foundations of Programming",
                    description="Introduction to programming in Python."),
        make_course("COMP250", title="Introduction to Computer Science",
                    description="Data structures and algorithms."),
        make_course("MATH202", title="Basic Statistics",
                    description="Descriptive statistics and probability."),
        make_course("BIOL112", title="Cell and Molecular Biology",
                    description="The cell as the basic unit of life."),
        make_course("CHEM110", title="General Chemistry 1",
                    description="Atomic structure and bonding."),
        make_course("PHYS101", title="Introductory Physics Mechanics",
                    description="Kinematics and dynamics."),
        make_course("ECON208", title="Microeconomic Analysis",
                    description="Consumer and producer theory."),
        make_course("HIST200", title="Introduction to African History",
                    description="Survey of the continent before 1800."),
    ]


# ─────────────────────────────────────────────────────────────────────────────
# Mock Fixtures
# ─────────────────────────────────────────────────────────────────────────────


class FakeFetcher:
    """Serves canned pages by URL and records every request."""

    def __init__(self, pages: dict[str, str], default: str = EMPTY_LISTING_PAGE):
        self.pages = pages
        self.default = default
        self.requests: list[str] = []

    def fetch(self, url: str, max_retries: Optional[int] = None) -> str:
        self.requests.append(url)
        return self.pages.get(url, self.default)

    def close(self) -> None:
        pass


@pytest.fixture
def fake_fetcher_factory():
    """Build a FakeFetcher over a URL → markup mapping."""
    return FakeFetcher


@pytest.fixture
def loader_config():
    """Loader settings with all delays disabled."""
    from mcgill_courses.shared.config import LoaderConfig

    return LoaderConfig(
        course_delay=0,
        page_delay=0,
        retry_delay=0,
        extraction_retry_delay=0,
        batch_size=5,
        workers=4,
        extraction_attempts=3,
        mcgill_terms=["2023-2024"],
        scrape_vsb=False,
    )


@pytest.fixture
def store(temp_dir: Path):
    """An empty course store in a temporary directory."""
    from mcgill_courses.storage.db import CourseStore

    with CourseStore(temp_dir / "courses.db") as course_store:
        yield course_store


# ─────────────────────────────────────────────────────────────────────────────
# Pytest Configuration
# ─────────────────────────────────────────────────────────────────────────────


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that use a real SQLite database"
    )


@pytest.fixture(autouse=True)
def reset_settings():
    """Reset the cached settings between tests."""
    from mcgill_courses.shared.config import get_settings

    get_settings.cache_clear()

    yield

    get_settings.cache_clear()
