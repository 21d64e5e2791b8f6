"""Tests for the SQLAlchemy content store."""

import pytest

from seo_content_studio.errors import NotFound, ValidationError, VersionConflict
from seo_content_studio.models import (
    Analysis,
    ContentDraft,
    ContentStatus,
    Improvement,
    Revision,
    ScoreBreakdown,
    SuggestedKeyword,
)


def save_draft(store, owner="user-1", **overrides) -> ContentDraft:
    values = {"owner_id": owner, "title": "Coffee Brewing", "body": "Grind the beans fresh."}
    values.update(overrides)
    content = ContentDraft(**values)
    store.save_content(content)
    return content


class TestContentPersistence:
    """Tests for saving and loading content."""

    def test_round_trip(self, store):
        content = save_draft(store, target_keywords=["coffee", "brewing"], meta_description="Meta")

        loaded = store.load_content(content.id, "user-1")

        assert loaded.title == content.title
        assert loaded.body == content.body
        assert loaded.target_keywords == ["coffee", "brewing"]
        assert loaded.status == ContentStatus.DRAFT
        assert loaded.created_at.tzinfo is not None

    def test_other_owner_cannot_load(self, store):
        content = save_draft(store)

        with pytest.raises(NotFound, match="Content not found"):
            store.load_content(content.id, "user-2")

    def test_other_owner_cannot_overwrite(self, store):
        content = save_draft(store)
        intruder = ContentDraft(id=content.id, owner_id="user-2", title="Hijack", body="x")

        with pytest.raises(NotFound):
            store.save_content(intruder)
        assert store.load_content(content.id, "user-1").title == "Coffee Brewing"

    def test_delete_cascades(self, store):
        content = save_draft(store)
        store.append_revision(Revision(content_id=content.id, version=1, title="T", body="B"))
        store.save_analysis(Analysis(content_id=content.id, overall_score=50, scores=ScoreBreakdown()))

        store.delete_content(content.id, "user-1")

        with pytest.raises(NotFound):
            store.load_content(content.id, "user-1")
        assert store.count_revisions(content.id) == 0
        assert store.list_analyses(content.id) == []


class TestListing:
    """Tests for listing, filtering and stats."""

    def test_pagination_and_filter(self, store):
        for i in range(3):
            save_draft(store, title=f"Draft {i}")
        published = save_draft(store, title="Live", status=ContentStatus.PUBLISHED)
        save_draft(store, owner="user-2", title="Not mine")

        page = store.list_contents("user-1", limit=2, page=1)
        assert page.total == 4
        assert page.pages == 2
        assert len(page.items) == 2

        filtered = store.list_contents("user-1", status=ContentStatus.PUBLISHED)
        assert [item.id for item in filtered.items] == [published.id]

    def test_sort_by_score_and_title(self, store):
        save_draft(store, title="Beta", current_score=40)
        save_draft(store, title="Alpha", current_score=90)

        by_score = store.list_contents("user-1", sort="score")
        by_title = store.list_contents("user-1", sort="title")

        assert [item.current_score for item in by_score.items] == [90, 40]
        assert [item.title for item in by_title.items] == ["Alpha", "Beta"]

    def test_invalid_sort(self, store):
        with pytest.raises(ValidationError):
            store.list_contents("user-1", sort="random")

    def test_stats(self, store):
        save_draft(store, body="one two three", current_score=60)
        save_draft(store, body="four five", current_score=80, status=ContentStatus.OPTIMIZED)
        save_draft(store, owner="user-2", current_score=10)

        stats = store.content_stats("user-1")

        assert stats.total_drafts == 2
        assert stats.average_score == 70
        assert stats.total_words == 5
        assert stats.draft_count == 1
        assert stats.optimized_count == 1
        assert stats.published_count == 0
        assert len(stats.recent) == 2

    def test_stats_for_new_owner(self, store):
        stats = store.content_stats("nobody")

        assert stats.total_drafts == 0
        assert stats.average_score == 0
        assert stats.recent == []


class TestRevisionPersistence:
    """Tests for revision storage."""

    def test_duplicate_version_conflicts(self, store):
        content = save_draft(store)
        store.append_revision(Revision(content_id=content.id, version=1, title="T", body="B"))

        with pytest.raises(VersionConflict):
            store.append_revision(Revision(content_id=content.id, version=1, title="T2", body="B2"))
        assert store.count_revisions(content.id) == 1

    def test_revision_for_missing_content(self, store):
        with pytest.raises(NotFound):
            store.append_revision(Revision(content_id="missing", version=1, title="T", body="B"))

    def test_ordering_and_latest(self, store):
        content = save_draft(store)
        for version in (1, 2, 3):
            store.append_revision(Revision(content_id=content.id, version=version, title=f"v{version}", body="B"))

        assert [r.version for r in store.list_revisions(content.id)] == [3, 2, 1]
        assert [r.version for r in store.list_revisions(content.id, descending=False)] == [1, 2, 3]
        assert store.latest_revision(content.id).version == 3
        assert store.load_content(content.id, "user-1").revision_ids == [
            r.id for r in store.list_revisions(content.id, descending=False)
        ]

    def test_attach_analysis_only_sets_reference(self, store):
        content = save_draft(store)
        revision = store.append_revision(
            Revision(content_id=content.id, version=1, title="T", body="B", score=40)
        )

        updated = store.attach_analysis_to_revision(revision.id, "analysis-1")

        assert updated.analysis_id == "analysis-1"
        assert updated.score == 40
        assert updated.title == "T"

    def test_load_missing_revision(self, store):
        with pytest.raises(NotFound, match="Revision not found"):
            store.load_revision("missing")


class TestAnalysisPersistence:
    """Tests for analysis storage."""

    def test_round_trip_and_improvement_update(self, store):
        content = save_draft(store)
        analysis = Analysis(
            content_id=content.id,
            overall_score=66,
            scores=ScoreBreakdown(readability=70),
            suggested_keywords=[SuggestedKeyword("cold brew", 80, "high", "easy")],
            improvements=[Improvement("Content", "Add a recipe section", "high", 7)],
            insights="Decent.",
        )
        store.save_analysis(analysis)

        analysis.improvements[0].mark_applied()
        store.update_improvements(analysis)
        loaded = store.latest_analysis(content.id)

        assert loaded.overall_score == 66
        assert loaded.scores.readability == 70
        assert loaded.suggested_keywords[0].keyword == "cold brew"
        assert loaded.improvements[0].applied is True
        assert loaded.improvements[0].applied_at is not None

    def test_latest_analysis_none(self, store):
        content = save_draft(store)

        assert store.latest_analysis(content.id) is None

    def test_record_analysis_updates_content_and_revision(self, store):
        content = save_draft(store)
        revision = store.append_revision(Revision(content_id=content.id, version=1, title="T", body="B"))
        analysis = Analysis(
            content_id=content.id, revision_id=revision.id, overall_score=81, scores=ScoreBreakdown()
        )
        content.current_score = 81
        content.latest_analysis_id = analysis.id
        content.status = ContentStatus.OPTIMIZED

        store.record_analysis(analysis, content)

        stored = store.load_content(content.id, "user-1")
        assert stored.current_score == 81
        assert stored.status == ContentStatus.OPTIMIZED
        assert stored.latest_analysis_id == analysis.id
        assert store.load_revision(revision.id).analysis_id == analysis.id
        assert store.latest_analysis(content.id).overall_score == 81

    def test_record_analysis_writes_nothing_on_failure(self, store):
        content = save_draft(store)
        analysis = Analysis(
            content_id=content.id, revision_id="missing", overall_score=81, scores=ScoreBreakdown()
        )
        content.current_score = 81
        content.latest_analysis_id = analysis.id

        with pytest.raises(NotFound, match="Revision not found"):
            store.record_analysis(analysis, content)

        stored = store.load_content(content.id, "user-1")
        assert stored.current_score == 0
        assert stored.latest_analysis_id is None
        assert store.list_analyses(content.id) == []
