"""
Ingestion Module - Fetch and extract catalog and schedule pages.
================================================================

This module handles the crawling half of the pipeline:

- fetcher: HTTP GET with bounded retries and a fixed delay
- extractor: Listing and detail page extraction
- requirements: Prerequisite/corequisite expression parsing
- schedule: Visual Schedule Builder extraction and client
- crawler: Batched, parallel crawl of catalog terms

Pipeline flow:
    Loader → Fetcher → listing pages → detail pages (+ schedules) → CourseRecords
"""

from mcgill_courses.ingestion.fetcher import Fetcher, fetch
from mcgill_courses.ingestion.extractor import (
    ListingSelectors,
    DetailSelectors,
    extract_course_listings,
    extract_course_page,
)
from mcgill_courses.ingestion.requirements import extract_requirements
from mcgill_courses.ingestion.schedule import (
    VsbClient,
    extract_schedule,
    extract_schedules,
    term_from_ssid,
)
from mcgill_courses.ingestion.crawler import Loader

__all__ = [
    # Fetcher
    "Fetcher",
    "fetch",
    # Extractor
    "ListingSelectors",
    "DetailSelectors",
    "extract_course_listings",
    "extract_course_page",
    "extract_requirements",
    # Schedule
    "VsbClient",
    "extract_schedule",
    "extract_schedules",
    "term_from_ssid",
    # Crawler
    "Loader",
]
