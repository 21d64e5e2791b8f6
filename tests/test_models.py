"""Tests for content, revision and analysis models."""

import pytest

from seo_content_studio.errors import ValidationError
from seo_content_studio.models import (
    Analysis,
    AnalysisResult,
    ContentDraft,
    ContentPage,
    ContentStatus,
    Improvement,
    Revision,
    RevisionComparison,
    RevisionSnapshot,
    ScoreBreakdown,
    SuggestedKeyword,
    can_transition,
    normalize_keywords,
)


def make_content(**overrides) -> ContentDraft:
    values = {"owner_id": "user-1", "title": "SEO Tips", "body": "Some body text here."}
    values.update(overrides)
    return ContentDraft(**values)


class TestContentDraft:
    """Tests for ContentDraft."""

    def test_word_count_and_reading_time_are_derived(self):
        content = make_content(body=" ".join(["word"] * 250))

        assert content.word_count == 250
        assert content.reading_time == 2

        content.body = "just three words"
        assert content.word_count == 3
        assert content.reading_time == 1

    def test_empty_body_has_zero_reading_time(self):
        content = make_content(body="")

        assert content.word_count == 0
        assert content.reading_time == 0

    def test_keywords_are_normalized(self):
        content = make_content(target_keywords=[" seo ", "SEO", "", "content"])

        assert content.target_keywords == ["seo", "content"]

    @pytest.mark.parametrize("overrides,message", [
        ({"title": "   "}, "Title is required"),
        ({"title": "x" * 201}, "Title cannot exceed 200 characters"),
        ({"body": "  "}, "Content is required"),
        ({"meta_description": "m" * 161}, "Meta description should not exceed 160 characters"),
    ])
    def test_validate(self, overrides, message):
        with pytest.raises(ValidationError, match=message):
            make_content(**overrides).validate()

    def test_apply_edits_keeps_omitted_fields(self):
        content = make_content(meta_description="Meta", target_keywords=["seo"])
        before = content.updated_at

        content.apply_edits(body="New body text.")

        assert content.title == "SEO Tips"
        assert content.body == "New body text."
        assert content.meta_description == "Meta"
        assert content.target_keywords == ["seo"]
        assert content.updated_at >= before

    def test_apply_edits_rejects_empty_title(self):
        content = make_content()

        with pytest.raises(ValidationError, match="Title is required"):
            content.apply_edits(title="")

    def test_rejected_edit_leaves_draft_unchanged(self):
        content = make_content(target_keywords=["seo"])
        before = content.updated_at

        with pytest.raises(ValidationError, match="Title is required"):
            content.apply_edits(title="", body="Replacement body.", target_keywords=["other"])

        assert content.title == "SEO Tips"
        assert content.body == "Some body text here."
        assert content.target_keywords == ["seo"]
        assert content.updated_at == before

    def test_to_dict(self):
        data = make_content().to_dict()

        assert data["status"] == "draft"
        assert data["word_count"] == 4
        assert data["current_score"] == 0
        assert data["created_at"].endswith("+00:00")


class TestStatusTransitions:
    """Tests for the content status state machine."""

    @pytest.mark.parametrize("current,target", [
        (ContentStatus.DRAFT, ContentStatus.ANALYZING),
        (ContentStatus.ANALYZING, ContentStatus.OPTIMIZED),
        (ContentStatus.ANALYZING, ContentStatus.DRAFT),
        (ContentStatus.OPTIMIZED, ContentStatus.PUBLISHED),
        (ContentStatus.PUBLISHED, ContentStatus.ANALYZING),
        (ContentStatus.OPTIMIZED, ContentStatus.OPTIMIZED),
    ])
    def test_allowed(self, current, target):
        assert can_transition(current, target)

    def test_draft_cannot_jump_to_optimized(self):
        content = make_content()

        with pytest.raises(ValidationError, match="Cannot change status"):
            content.transition_to(ContentStatus.OPTIMIZED)
        assert content.status == ContentStatus.DRAFT


class TestRevision:
    """Tests for revision snapshots."""

    def test_from_snapshot(self):
        content = make_content(current_score=60)
        snapshot = RevisionSnapshot.from_content(content)

        revision = Revision.from_snapshot(content.id, 1, snapshot, "Initial draft created")

        assert revision.version == 1
        assert revision.score == 60
        assert revision.word_count == content.word_count
        assert revision.snapshot == snapshot

    def test_version_must_be_positive(self):
        snapshot = RevisionSnapshot(title="T", body="B")

        with pytest.raises(ValidationError):
            Revision.from_snapshot("c1", 0, snapshot, "bad")

    def test_revisions_are_immutable(self):
        revision = Revision(content_id="c1", version=1, title="T", body="B")

        with pytest.raises(AttributeError):
            revision.title = "Changed"

    def test_with_analysis_returns_copy(self):
        revision = Revision(content_id="c1", version=1, title="T", body="B")

        tagged = revision.with_analysis("a1")

        assert tagged.analysis_id == "a1"
        assert revision.analysis_id is None
        assert tagged.id == revision.id

    def test_comparison_is_second_minus_first(self):
        first = Revision(content_id="c1", version=1, title="T", body="B", score=60, word_count=100)
        second = Revision(content_id="c1", version=2, title="T", body="B", score=75, word_count=140)

        forward = RevisionComparison(first, second)
        backward = RevisionComparison(second, first)

        assert forward.score_change == 15
        assert forward.word_count_change == 40
        assert backward.score_change == -15
        assert backward.word_count_change == -40
        assert forward.to_dict()["differences"] == {"score_change": 15, "word_count_change": 40}


class TestAnalysisModels:
    """Tests for score and suggestion models."""

    def test_score_breakdown_range(self):
        with pytest.raises(ValidationError):
            ScoreBreakdown(readability=101)

    def test_suggested_keyword_tiers(self):
        with pytest.raises(ValidationError):
            SuggestedKeyword("seo", search_volume="huge")

    def test_improvement_impact_range(self):
        with pytest.raises(ValidationError):
            Improvement("Title", "Shorten it", impact=11)

    def test_mark_applied(self):
        improvement = Improvement("Title", "Shorten it")

        improvement.mark_applied()

        assert improvement.applied is True
        assert improvement.applied_at is not None
        assert improvement.to_dict()["applied_at"] is not None

    def test_from_result_resets_applied_flags(self):
        applied = Improvement("Title", "Shorten it", applied=True)
        result = AnalysisResult(overall_score=70, scores=ScoreBreakdown(), improvements=[applied])

        analysis = Analysis.from_result(result, content_id="c1", revision_id="r1")

        assert analysis.overall_score == 70
        assert analysis.revision_id == "r1"
        assert analysis.improvements[0].applied is False

    def test_overall_score_range(self):
        with pytest.raises(ValidationError):
            AnalysisResult(overall_score=120, scores=ScoreBreakdown())


class TestHelpers:
    def test_normalize_keywords_preserves_first_casing(self):
        assert normalize_keywords(["SEO Tips", "seo tips", " links "]) == ["SEO Tips", "links"]

    def test_normalize_keywords_none(self):
        assert normalize_keywords(None) == []

    def test_content_page(self):
        page = ContentPage(items=[], total=21, page=2, limit=10)

        assert page.pages == 3
        assert page.to_dict() == {"count": 0, "total": 21, "pages": 3, "current_page": 2, "data": []}
