"""
mcgill-courses - Course catalog ingestion pipeline
==================================================

Crawls the McGill eCalendar course search and the Visual Schedule Builder,
extracts structured course records, reconciles them with previously loaded
data, derives prerequisite relationships and seeds a searchable store.

Pipeline:
    Loader → Fetcher → Extractor → Deduplicator/Merger → Graph → CourseStore
"""

__version__ = "0.1.0"
__author__ = "mcgill-courses contributors"
__license__ = "MIT"

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Main modules (imported on demand)
    "shared",
    "ingestion",
    "processing",
    "storage",
    "cli",
]
