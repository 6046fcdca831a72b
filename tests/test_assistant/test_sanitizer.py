"""Test sanitization of model output into TaskDiff."""

from boardmate.assistant.diff import FALLBACK_SUMMARY, PROPOSAL_SUMMARY, TaskDiff, has_actions
from boardmate.assistant.sanitizer import (
    choose_summary,
    sanitize,
    sanitize_added,
    sanitize_deleted_ids,
    sanitize_updated,
)


class TestSanitizeEntries:
    """Per-entry filtering."""

    def test_malformed_added_entry_dropped_alone(self):
        """Test one bad `added` entry is dropped and its siblings kept."""
        raw = {
            "added": [
                {"title": "One"},
                {"title": ""},
                {"priority": "High"},
                "not an object",
                {"title": "Two"},
            ]
        }

        kept = sanitize_added(raw)

        assert [e["title"] for e in kept] == ["One", "Two"]

    def test_blank_title_dropped(self):
        """Test whitespace-only titles count as empty."""
        assert sanitize_added({"added": [{"title": "   "}]}) == []

    def test_updated_requires_id(self):
        """Test `updated` entries without an id are dropped."""
        raw = {"updated": [{"id": "task-1", "status": "Done"}, {"status": "Done"}, {"id": ""}]}

        kept = sanitize_updated(raw)

        assert kept == [{"id": "task-1", "status": "Done"}]

    def test_deleted_ids_filtered_and_deduped(self):
        """Test empty, non-string and duplicate ids are dropped, order kept."""
        raw = {"deletedIds": ["task-2", "", None, 7, "task-1", "task-2", "  "]}

        assert sanitize_deleted_ids(raw) == ["task-2", "task-1"]

    def test_non_list_fields_become_empty(self):
        """Test fields of the wrong type are treated as absent."""
        raw = {"added": {"title": "x"}, "updated": "task-1", "deletedIds": "task-1"}

        diff = sanitize(raw)

        assert diff.added == ()
        assert diff.updated == ()
        assert diff.deleted_ids == ()
        assert not diff.has_actions


class TestSanitize:
    """Whole-diff sanitization."""

    def test_all_fields_missing(self):
        """Test an empty object is a conversational diff with the fallback summary."""
        diff = sanitize({})

        assert diff == TaskDiff()
        assert diff.summary == FALLBACK_SUMMARY
        assert not has_actions(diff)

    def test_fields_sanitized_independently(self):
        """Test a bad field does not affect the others."""
        raw = {
            "added": "oops",
            "updated": [{"id": "task-1", "priority": "Low"}],
            "deletedIds": ["task-3"],
            "summary": "Updated one, deleted one.",
        }

        diff = sanitize(raw)

        assert diff.added == ()
        assert diff.updated == ({"id": "task-1", "priority": "Low"},)
        assert diff.deleted_ids == ("task-3",)
        assert diff.summary == "Updated one, deleted one."

    def test_summary_only(self):
        """Test an answer with no changes has no actions."""
        diff = sanitize({"summary": "You have **2** critical tasks."})

        assert not diff.has_actions
        assert diff.summary == "You have **2** critical tasks."

    def test_missing_summary_uses_remainder(self):
        """Test prose around the JSON becomes the summary."""
        diff = sanitize({"deletedIds": ["task-1"]}, remainder="Removing the old task.")

        assert diff.summary == "Removing the old task."

    def test_missing_summary_with_actions(self):
        """Test proposals without any text get the proposal heading."""
        diff = sanitize({"added": [{"title": "New"}]})

        assert diff.summary == PROPOSAL_SUMMARY

    def test_non_object_json(self):
        """Test a top-level array is treated as conversation."""
        diff = sanitize([{"title": "x"}], remainder="")

        assert not diff.has_actions
        assert diff.summary == FALLBACK_SUMMARY

    def test_no_json_uses_text(self):
        """Test prose-only responses are kept as the summary."""
        diff = sanitize(None, remainder="Looks like a busy week.")

        assert not diff.has_actions
        assert diff.summary == "Looks like a busy week."

    def test_scalar_json_is_the_answer(self):
        """Test a bare string or number reply is shown instead of the fallback."""
        assert sanitize(4).summary == "4"
        assert sanitize("You have 4 tasks").summary == "You have 4 tasks"
        assert sanitize(2.5, remainder="About 2.5 hours.").summary == "About 2.5 hours."
        assert sanitize(True).summary == FALLBACK_SUMMARY
        assert sanitize("   ").summary == FALLBACK_SUMMARY

    def test_source_mutation_does_not_leak(self):
        """Test the diff is independent of the dict it was built from."""
        raw = {"added": [{"title": "Original", "tags": ["a"]}], "summary": "s"}

        diff = sanitize(raw)
        raw["added"][0]["title"] = "Changed"
        raw["added"][0]["tags"].append("b")

        assert diff.added[0]["title"] == "Original"
        assert diff.added[0]["tags"] == ["a"]


class TestChooseSummary:
    """Summary fallback order."""

    def test_prefers_field(self):
        assert choose_summary("  From field  ", "From prose") == "From field"

    def test_remainder_then_fallback(self):
        assert choose_summary("", "From prose") == "From prose"
        assert choose_summary(None, "   ") == FALLBACK_SUMMARY
        assert choose_summary(123, "") == FALLBACK_SUMMARY
