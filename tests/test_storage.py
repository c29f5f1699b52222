"""
Tests for the Course Store.
===========================

Tests for:
- Seeding (insert, update, idempotence)
- Weighted full-text search
- Course lookups
- Review CRUD and uniqueness
"""

import json
from pathlib import Path

import pytest

from tests.conftest import make_course


# ─────────────────────────────────────────────────────────────────────────────
# Seeding Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestSeed:
    """Tests for CourseStore.seed."""

    def test_inserts_new_courses(self, store, search_corpus):
        """Test that unknown courses are inserted verbatim."""
        inserted, updated = store.seed(search_corpus)

        assert (inserted, updated) == (len(search_corpus), 0)
        assert store.count == len(search_corpus)
        assert store.find_course_by_id("COMP202") == search_corpus[0]

    def test_seeding_is_idempotent(self, store, search_corpus):
        """Test that seeding the same data twice changes nothing."""
        store.seed(search_corpus)
        before = store.courses()

        inserted, updated = store.seed(search_corpus)

        assert inserted == 0
        assert updated == len(search_corpus)
        assert store.courses() == before

    def test_default_records_collapse(self, store):
        """Test that ten default records are stored as one."""
        from mcgill_courses.shared.schemas import CourseRecord

        store.seed([CourseRecord() for _ in range(10)])

        assert store.count == 1

    def test_update_overwrites_and_unions(self, store):
        """Test the field policy for courses already in the store."""
        from mcgill_courses.shared.schemas import Instructor

        store.seed([make_course(
            "COMP202",
            title="Foundations of Programming",
            description="old",
            terms=["Fall 2022"],
            instructors=[Instructor(name="Old Prof", term="Fall")],
            leading_to=["COMP250"],
        )])
        store.seed([make_course(
            "COMP202",
            title="Renamed",
            description="new",
            credits="4",
            prerequisites=["COMP100"],
            restrictions="Not open to U3 students.",
            terms=["Fall 2022", "Winter 2023"],
            instructors=[Instructor(name="Jane Doe", term="Winter")],
        )])

        course = store.find_course_by_id("COMP202")
        assert course.description == "new"
        assert course.credits == "4"
        assert course.prerequisites == ["COMP100"]
        assert course.restrictions == "Not open to U3 students."
        assert course.terms == ["Fall 2022", "Winter 2023"]
        assert [i.name for i in course.instructors] == ["Old Prof", "Jane Doe"]
        # Fields outside the update set keep their stored value
        assert course.title == "Foundations of Programming"
        assert course.leading_to == ["COMP250"]

    def test_seed_file(self, store, search_corpus, temp_dir: Path):
        """Test seeding from a course JSON file."""
        from mcgill_courses.shared.utils import save_courses

        source = temp_dir / "courses-2023-2024.json"
        save_courses(source, search_corpus)

        inserted, _ = store.seed_file(source)

        assert inserted == len(search_corpus)

    def test_seed_file_rejects_non_array(self, store, temp_dir: Path):
        """Test that a JSON object is not accepted as a course file."""
        source = temp_dir / "bad.json"
        source.write_text(json.dumps({"_id": "COMP202"}))

        with pytest.raises(ValueError):
            store.seed_file(source)

    def test_persists_across_connections(self, temp_dir: Path, search_corpus):
        """Test that seeded courses survive reopening the store."""
        from mcgill_courses.storage.db import CourseStore

        with CourseStore(temp_dir / "courses.db") as store:
            store.seed(search_corpus)

        with CourseStore(temp_dir / "courses.db") as store:
            assert store.count == len(search_corpus)
            assert store.search("COMP202")[0].id == "COMP202"


# ─────────────────────────────────────────────────────────────────────────────
# Course Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestCourses:
    """Tests for course listing and lookup."""

    def test_find_missing_course(self, store):
        """Test that unknown identifiers return None."""
        assert store.find_course_by_id("COMP999") is None

    def test_courses_pagination(self, store, search_corpus):
        """Test listing with limit and offset in insertion order."""
        store.seed(search_corpus)

        page = store.courses(limit=3, offset=2)

        assert [c.id for c in page] == [c.id for c in search_corpus[2:5]]
        assert len(store.courses()) == len(search_corpus)

    def test_update_course(self, store, search_corpus):
        """Test replacing a stored course."""
        store.seed(search_corpus)
        course = store.find_course_by_id("COMP202").model_copy(update={"title": "Changed"})

        assert store.update_course(course) is True
        assert store.find_course_by_id("COMP202").title == "Changed"
        assert store.update_course(make_course("COMP999")) is False


# ─────────────────────────────────────────────────────────────────────────────
# Search Tests
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.integration
class TestSearch:
    """Tests for CourseStore.search."""

    def test_exact_code_ranks_first(self, store, search_corpus):
        """Test that 'COMP 202' puts COMP 202 above partial matches."""
        store.seed(search_corpus)

        results = store.search("COMP 202")

        assert results[0].id == "COMP202"
        assert {c.id for c in results} == {"COMP202", "COMP250", "MATH202"}

    def test_compact_identifier(self, store, search_corpus):
        """Test that 'COMP202' matches only that course."""
        store.seed(search_corpus)

        results = store.search("COMP202")

        assert [c.id for c in results] == ["COMP202"]

    def test_case_insensitive(self, store, search_corpus):
        """Test lower-case queries."""
        store.seed(search_corpus)

        assert store.search("comp202")[0].id == "COMP202"

    def test_title_outranks_description(self, store):
        """Test that title matches rank above description matches."""
        store.seed([
            make_course("BIOL200", title="Molecular Biology", description="Genes and cells."),
            make_course("CHEM212", title="Organic Chemistry", description="Reactions used in biology labs."),
            make_course("PHYS101", title="Mechanics", description="Forces."),
            make_course("HIST200", title="African History", description="Before 1800."),
            make_course("ECON208", title="Microeconomics", description="Markets."),
        ])

        results = store.search("biology")

        assert [c.id for c in results] == ["BIOL200", "CHEM212"]

    def test_limit(self, store, search_corpus):
        """Test that results are capped."""
        store.seed(search_corpus)

        assert len(store.search("COMP 202", limit=1)) == 1

    def test_default_limit_is_ten(self, store):
        """Test the default result cap."""
        store.seed([make_course(f"COMP{200 + i}") for i in range(15)] + [
            make_course(f"MATH{100 + i}") for i in range(20)
        ])

        assert len(store.search("COMP")) == 10

    def test_no_terms(self, store, search_corpus):
        """Test that punctuation-only queries return nothing."""
        store.seed(search_corpus)

        assert store.search("  --  ") == []

    def test_before_seeding(self, store):
        """Test searching a store that was never seeded."""
        assert store.search("COMP 202") == []


# ─────────────────────────────────────────────────────────────────────────────
# Review Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestReviews:
    """Tests for review CRUD."""

    def _review(self, course_id: str = "COMP202", user_id: str = "user-1", **fields):
        from mcgill_courses.shared.schemas import ReviewRecord

        defaults = {"content": "Great course.", "instructor": "Jane Doe", "rating": 5}
        defaults.update(fields)
        return ReviewRecord(course_id=course_id, user_id=user_id, **defaults)

    def test_add_and_find(self, store):
        """Test adding a review and reading it back."""
        review = self._review()
        store.add_review(review)

        assert store.find_review("COMP202", "user-1") == review

    def test_one_review_per_user_and_course(self, store):
        """Test that a second review of the same course is rejected."""
        from mcgill_courses.shared.errors import DuplicateReviewError

        store.add_review(self._review())

        with pytest.raises(DuplicateReviewError):
            store.add_review(self._review(content="Changed my mind.", rating=1))

        assert store.find_review("COMP202", "user-1").rating == 5

    def test_find_by_course_and_user(self, store):
        """Test review queries by course and by user."""
        store.add_review(self._review("COMP202", "user-1"))
        store.add_review(self._review("COMP202", "user-2"))
        store.add_review(self._review("COMP250", "user-1"))

        assert [r.user_id for r in store.find_reviews_by_course_id("COMP202")] == ["user-1", "user-2"]
        assert [r.course_id for r in store.find_reviews_by_user_id("user-1")] == ["COMP202", "COMP250"]
        assert store.find_reviews_by_course_id("COMP999") == []

    def test_update(self, store):
        """Test updating an existing review."""
        store.add_review(self._review())

        assert store.update_review(self._review(content="Even better.", rating=4)) is True
        assert store.find_review("COMP202", "user-1").content == "Even better."
        assert store.update_review(self._review(user_id="nobody")) is False

    def test_delete(self, store):
        """Test deleting a review frees the slot."""
        store.add_review(self._review())

        assert store.delete_review("COMP202", "user-1") is True
        assert store.find_review("COMP202", "user-1") is None
        assert store.delete_review("COMP202", "user-1") is False

        store.add_review(self._review())

    def test_rating_bounds(self):
        """Test that ratings outside 0-5 are rejected."""
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            self._review(rating=6)

    def test_extended_json_timestamp(self):
        """Test reviews exported with extended-JSON dates."""
        from mcgill_courses.shared.schemas import ReviewRecord

        review = ReviewRecord.model_validate({
            "content": "Fine.",
            "courseId": "COMP202",
            "instructor": "Jane Doe",
            "rating": 3,
            "timestamp": {"$date": {"$numberLong": "1700000000000"}},
            "userId": "user-1",
        })

        assert review.timestamp.year == 2023
        assert review.to_document()["courseId"] == "COMP202"
