"""
Tests Package - Unit and integration tests for McGill Courses.
==============================================================

Test modules:
- test_fetcher: Retrying HTTP fetcher
- test_requirements: Requirement statement parsing
- test_extractor: Listing and detail page extraction
- test_schedule: Schedule builder extraction and client
- test_crawler: Batched crawl, pagination and term files
- test_processing: Deduplication, merge and leading-to graph
- test_storage: Seeding, search and reviews
- test_shared: Settings, utilities and schemas
- test_cli: Command-line interface

Run tests with:
    pytest tests/
    pytest tests/ -m "not integration"
"""
