"""
Tests for Shared Module.
========================

Tests for:
- Settings loading and environment overrides
- Logging setup
- Utilities (identifiers, union, JSON files)
- Course document serialization
"""

import json
from pathlib import Path

import pytest

from tests.conftest import make_course


# ─────────────────────────────────────────────────────────────────────────────
# Config Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestSettings:
    """Tests for settings loading."""

    def test_defaults_from_yaml(self, config_path: Path):
        """Test that the bundled settings file loads."""
        from mcgill_courses.shared.config import _create_settings

        settings = _create_settings(config_path)

        assert settings.loader.retries == 10
        assert settings.loader.batch_size == 20
        assert settings.loader.mcgill_terms[0] == "2009-2010"
        assert settings.loader.mcgill_terms[-1] == "2023-2024"
        assert settings.loader.vsb_terms == ["202305", "202309", "202401"]
        assert settings.loader.scrape_vsb is False
        assert settings.storage.search_limit == 10

    def test_missing_file_uses_model_defaults(self, temp_dir: Path):
        """Test settings without a YAML file."""
        from mcgill_courses.shared.config import _create_settings

        settings = _create_settings(temp_dir / "missing.yaml")

        assert settings.loader.retries == 10
        assert len(settings.loader.mcgill_terms) == 15

    def test_numeric_session_codes(self, temp_dir: Path):
        """Test that bare YAML numbers are read as session codes."""
        from mcgill_courses.shared.config import _create_settings

        path = temp_dir / "settings.yaml"
        path.write_text("loader:\n  vsb_terms: [202309, 202401]\n")

        assert _create_settings(path).loader.vsb_terms == ["202309", "202401"]

    def test_batch_size_must_be_positive(self, temp_dir: Path):
        """Test that an empty batch is rejected."""
        from pydantic import ValidationError
        from mcgill_courses.shared.config import _create_settings

        path = temp_dir / "settings.yaml"
        path.write_text("loader:\n  batch_size: 0\n")

        with pytest.raises(ValidationError):
            _create_settings(path)

    def test_environment_overrides(self, monkeypatch):
        """Test the top-level environment overrides."""
        from mcgill_courses.shared.config import reload_settings

        monkeypatch.setenv("USER_AGENT", "env-agent/2.0")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("DATABASE_PATH", "/tmp/env-courses.db")

        settings = reload_settings()

        assert settings.get_effective_user_agent() == "env-agent/2.0"
        assert settings.get_effective_log_level() == "DEBUG"
        assert settings.get_effective_database_path() == Path("/tmp/env-courses.db")

    def test_relative_database_path(self, monkeypatch):
        """Test that a relative database path resolves against the project root."""
        from mcgill_courses.shared.config import get_settings

        monkeypatch.delenv("DATABASE_PATH", raising=False)
        settings = get_settings()

        assert settings.get_effective_database_path() == (
            settings.project_root / settings.storage.database_path
        )

    def test_settings_are_cached(self):
        """Test that get_settings returns a singleton."""
        from mcgill_courses.shared.config import get_settings

        assert get_settings() is get_settings()


class TestLogging:
    """Tests for logging setup."""

    def test_log_file_and_quiet_libraries(self, temp_dir: Path):
        """Test mirroring to a log file while library loggers stay at WARNING."""
        import logging
        from mcgill_courses.shared.logging import QUIET_LOGGERS, get_logger, setup_logging

        log_file = temp_dir / "logs" / "load.log"
        try:
            setup_logging(level="DEBUG", use_rich=False, log_file=str(log_file), force=True)
            get_logger("mcgill_courses.ingestion.crawler").info("Crawling term 2023-2024...")

            assert all(
                logging.getLogger(name).level == logging.WARNING for name in QUIET_LOGGERS
            )
        finally:
            setup_logging(force=True)

        assert "Crawling term 2023-2024..." in log_file.read_text()


# ─────────────────────────────────────────────────────────────────────────────
# Utility Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestUtils:
    """Tests for utility functions."""

    def test_normalize_course_id(self):
        """Test course identifier normalization."""
        from mcgill_courses.shared.utils import normalize_course_id

        assert normalize_course_id("comp 202") == "COMP202"
        assert normalize_course_id(" ECSE-200 ") == "ECSE200"
        assert normalize_course_id("COMP202") == "COMP202"

    def test_union(self):
        """Test list union semantics."""
        from mcgill_courses.shared.utils import union

        assert union(["A", "B"], ["B", "C"]) == ["A", "B", "C"]
        assert union(["A", "B"], []) == ["A", "B"]
        assert union([], ["A", "A"]) == ["A"]

    def test_save_json_is_atomic(self, temp_dir: Path):
        """Test that writes leave no temporary files behind."""
        from mcgill_courses.shared.utils import load_json, save_json

        target = temp_dir / "nested" / "data.json"
        save_json(target, {"a": 1})
        save_json(target, {"a": 2})

        assert load_json(target) == {"a": 2}
        assert [p.name for p in target.parent.iterdir()] == ["data.json"]

    def test_course_files(self, temp_dir: Path, sample_course_record):
        """Test writing and reading a course array."""
        from mcgill_courses.shared.utils import load_courses, save_courses

        target = temp_dir / "courses.json"
        save_courses(target, [sample_course_record])

        assert load_courses(target) == [sample_course_record]


# ─────────────────────────────────────────────────────────────────────────────
# Schema Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestCourseRecord:
    """Tests for CourseRecord serialization."""

    def test_document_field_names(self, sample_course_record):
        """Test that documents use camelCase names and an _id key."""
        document = sample_course_record.to_document()

        assert document["_id"] == "COMP250"
        assert document["facultyUrl"] == ""
        assert document["leadingTo"] == []
        assert document["logicalPrerequisites"] is None
        assert document["instructors"] == [{"name": "Jane Doe", "term": "Fall"}]
        assert "faculty_url" not in document

    def test_accepts_documents(self):
        """Test loading a stored document."""
        from mcgill_courses.shared.schemas import CourseRecord

        document = json.loads(json.dumps(make_course("COMP202", faculty_url="x").to_document()))
        course = CourseRecord.model_validate(document)

        assert course.id == "COMP202"
        assert course.faculty_url == "x"

    def test_requirement_tree_round_trip(self):
        """Test that requirement trees survive serialization."""
        from mcgill_courses.ingestion.requirements import extract_requirements
        from mcgill_courses.shared.schemas import CourseRecord, ReqKind

        _, tree, _ = extract_requirements("COMP 250 and (MATH 240 or MATH 235)")
        course = make_course("COMP251", logical_prerequisites=tree)

        loaded = CourseRecord.model_validate(course.to_document())

        assert loaded.logical_prerequisites == tree
        assert loaded.logical_prerequisites.kind == ReqKind.AND
