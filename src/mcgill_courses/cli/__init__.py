"""
CLI Module - Command-line interface for McGill Courses.
=======================================================

Provides CLI commands for:
- Crawling catalog terms into JSON files
- Seeding the course store
- Searching and inspecting stored courses

Usage:
    mcgill-courses --help
    mcgill-courses load --term 2023-2024
    mcgill-courses seed data/courses/courses-2023-2024.json
    mcgill-courses search "COMP 202"

Components:
- main: Typer CLI application
"""

from mcgill_courses.cli.main import app, cli

__all__ = ["app", "cli"]
