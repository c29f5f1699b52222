"""
Crawler Module - Batched catalog crawl for one or more terms.
=============================================================

For every configured term the loader pages through the course search in
batches:

    batch of listing pages ──(parallel)──▶ listings
        all empty? ──▶ stop
    listings ──(parallel)──▶ detail pages (+ schedule builder) ──▶ records

Workers only return values; concatenation, deduplication, merging with the
previous output file and the prerequisite graph all run on the calling
thread after each parallel region has joined.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional, TypeVar
from urllib.parse import urljoin

from mcgill_courses.ingestion.extractor import extract_course_listings, extract_course_page
from mcgill_courses.ingestion.fetcher import Fetcher
from mcgill_courses.ingestion.schedule import VsbClient
from mcgill_courses.processing.graph import build_leading_to
from mcgill_courses.processing.merge import deduplicate, merge_corpus
from mcgill_courses.shared.config import LoaderConfig, get_settings
from mcgill_courses.shared.errors import ExtractionError, PermanentExtractionError
from mcgill_courses.shared.logging import get_logger
from mcgill_courses.shared.schemas import CourseListing, CourseRecord, Page
from mcgill_courses.shared.utils import load_courses, save_courses

logger = get_logger(__name__)

T = TypeVar("T")


class Loader:
    """
    Crawls catalog terms into course JSON files.

    Example:
        >>> with Loader() as loader:
        ...     written = loader.run(Path("data/courses"))
    """

    def __init__(
        self,
        config: Optional[LoaderConfig] = None,
        fetcher: Optional[Fetcher] = None,
    ):
        """
        Initialize the loader.

        Args:
            config: Loader settings (uses the application settings if None)
            fetcher: Fetcher shared by all workers (built from config if None)
        """
        settings = get_settings()

        self.config = config or settings.loader
        self.fetcher = fetcher or Fetcher(
            user_agent=(
                self.config.user_agent if config else settings.get_effective_user_agent()
            ),
            retries=self.config.retries,
            retry_delay=self.config.retry_delay,
            timeout=self.config.timeout,
        )
        self.vsb = VsbClient(self.fetcher, base_url=self.config.vsb_url)

        # Worker threads outlive batches so per-thread sessions stay bounded by workers
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.workers, thread_name_prefix="loader"
        )

    # ─────────────────────────────────────────────────────────────────────
    # Pipeline
    # ─────────────────────────────────────────────────────────────────────

    def run(self, source: Path) -> dict[str, Path]:
        """
        Crawl every configured term and write one JSON file per term.

        Args:
            source: A directory (files are named ``courses-<term>.json``) or
                a single file path that every term is merged into

        Returns:
            Mapping of term to the file written
        """
        source = Path(source)
        written: dict[str, Path] = {}
        terms = self.config.mcgill_terms

        logger.info(f"Running loader for {len(terms)} term(s)...")

        for index, term in enumerate(terms):
            scrape_vsb = self.config.scrape_vsb and index == len(terms) - 1

            courses = deduplicate(self.crawl_term(term, scrape_vsb=scrape_vsb))

            target = source / f"courses-{term}.json" if source.is_dir() else source

            if target.exists():
                logger.info(f"Merging with existing courses in {target}...")
                courses = merge_corpus(courses, load_courses(target))

            save_courses(target, build_leading_to(courses))
            logger.info(f"Wrote {len(courses)} courses for {term} to {target}")
            written[term] = target

        return written

    def crawl_term(self, term: str, scrape_vsb: bool = False) -> list[CourseRecord]:
        """
        Crawl all listing pages of a term and extract every course.

        Pagination stops at the first batch in which every page is empty.

        Raises:
            FetchExhausted: If a page cannot be fetched
            PermanentExtractionError: If a page never extracts cleanly
        """
        courses: list[CourseRecord] = []
        page = 0

        logger.info(f"Crawling term {term}...")

        while True:
            listings = self.parse_listing_pages(
                self.aggregate_urls(term, page, page + self.config.batch_size)
            )
            if listings is None:
                break

            courses.extend(
                self._parallel(lambda listing: self.parse_course(listing, scrape_vsb), listings)
            )
            page += self.config.batch_size

        logger.info(f"Crawled {len(courses)} course pages for {term}")
        return courses

    # ─────────────────────────────────────────────────────────────────────
    # Listing Pages
    # ─────────────────────────────────────────────────────────────────────

    def aggregate_urls(self, term: str, start: int, end: int) -> list[Page]:
        """Listing pages ``start`` through ``end`` inclusive."""
        return [
            Page(
                number=number,
                url=f"{self.config.base_url}/study/{term}/courses/search?page={number}",
            )
            for number in range(start, end + 1)
        ]

    def parse_listing_pages(self, pages: list[Page]) -> Optional[list[CourseListing]]:
        """Fetch a batch of listing pages; None when all of them are empty."""
        listings: list[CourseListing] = []
        for found in self._parallel(self.parse_listing_page, pages):
            listings.extend(found or [])
        return listings or None

    def parse_listing_page(self, page: Page) -> Optional[list[CourseListing]]:
        """Fetch and extract one listing page, making detail URLs absolute."""
        logger.info(f"Parsing html on page: {page.number}...")

        listings = self._fetch_and_extract(page.url, extract_course_listings)
        time.sleep(self.config.page_delay)

        if listings is None:
            return None

        return [
            listing.model_copy(update={"url": urljoin(self.config.base_url, listing.url)})
            for listing in listings
        ]

    # ─────────────────────────────────────────────────────────────────────
    # Detail Pages
    # ─────────────────────────────────────────────────────────────────────

    def parse_course(self, listing: CourseListing, scrape_vsb: bool = False) -> CourseRecord:
        """Fetch and extract a listing's detail page (and schedule)."""
        course_page = self._fetch_and_extract(listing.url, extract_course_page)

        logger.info(f"Parsed course {course_page.subject}{course_page.code}")
        time.sleep(self.config.course_delay)

        schedule = None
        if scrape_vsb:
            schedule = self.vsb.schedule(
                f"{course_page.subject}-{course_page.code}", self.config.vsb_terms
            )

        faculty_url = (
            urljoin(self.config.base_url, course_page.faculty_url)
            if course_page.faculty_url
            else ""
        )

        return CourseRecord.from_page(listing, course_page, faculty_url, schedule=schedule)

    # ─────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────

    def _fetch_and_extract(self, url: str, extract: Callable[[str], T]) -> T:
        """
        Fetch a page and extract it, re-fetching when extraction fails.

        Re-fetches are bounded by ``extraction_attempts``, independently of
        the fetcher's own retry budget.
        """
        attempts = self.config.extraction_attempts
        last_error: Optional[ExtractionError] = None

        for attempt in range(1, attempts + 1):
            html = self.fetcher.fetch(url)
            try:
                return extract(html)
            except ExtractionError as e:
                last_error = e
                logger.warning(f"Retrying extraction ({attempt}/{attempts}): {url}")
                if attempt < attempts:
                    time.sleep(self.config.extraction_retry_delay)

        raise PermanentExtractionError(url, attempts, last_error)

    def _parallel(self, fn: Callable[..., T], items: list) -> list[T]:
        """Map over items on the loader's thread pool, keeping input order."""
        if not items:
            return []
        return list(self._executor.map(fn, items))

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        self.fetcher.close()

    def __enter__(self) -> "Loader":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        self.close()
