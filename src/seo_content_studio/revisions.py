"""
Append-only revision history for content drafts.

Each content draft owns an ordered chain of immutable snapshots numbered
1, 2, 3, ... with no gaps. Restoring an old snapshot appends a new one;
history is never rewritten or reordered.
"""

import logging
from typing import Optional

from .errors import InvalidComparison, VersionConflict
from .models import (
    ContentDraft,
    Revision,
    RevisionComparison,
    RevisionSnapshot,
)
from .store import ContentStore

logger = logging.getLogger(__name__)


INITIAL_CHANGE_DESCRIPTION = "Initial draft created"
DEFAULT_CHANGE_DESCRIPTION = "Content updated"
MANUAL_CHANGE_DESCRIPTION = "Manual revision"


class RevisionChain:
    """
    Version history operations on top of a ContentStore.

    Version numbers are assigned as count + 1 and inserted against a unique
    (content, version) constraint. When a concurrent writer wins the race
    the count is re-read and the insert retried, up to `conflict_retries` times.
    """

    def __init__(self, store: ContentStore, conflict_retries: int = 3):
        self.store = store
        self.conflict_retries = conflict_retries

    def append(
        self,
        content: ContentDraft,
        change_description: str = DEFAULT_CHANGE_DESCRIPTION,
        snapshot: Optional[RevisionSnapshot] = None,
    ) -> Revision:
        """
        Record a new revision of a content draft.

        Args:
            content: The owning content draft. Its revision list is extended in place.
            change_description: Free-text description of the change.
            snapshot: State to record. Defaults to the content's current state.

        Returns:
            The stored revision.

        Raises:
            VersionConflict: If every retry lost the race for the next version.
        """
        snapshot = snapshot or RevisionSnapshot.from_content(content)
        change_description = change_description or DEFAULT_CHANGE_DESCRIPTION

        for attempt in range(1, self.conflict_retries + 1):
            version = self.store.count_revisions(content.id) + 1
            revision = Revision.from_snapshot(content.id, version, snapshot, change_description)
            try:
                self.store.append_revision(revision)
            except VersionConflict as e:
                logger.warning(f"Revision version conflict (attempt {attempt}): {e}")
                continue
            content.revision_ids.append(revision.id)
            logger.info(f"Recorded version {version} of content {content.id}")
            return revision

        raise VersionConflict(
            f"Could not assign a revision version for content {content.id} "
            f"after {self.conflict_retries} attempts"
        )

    def get(self, revision_id: str, owner_id: str) -> Revision:
        """
        Load a revision the caller owns.

        Raises:
            NotFound: If the revision is missing or its content is not owned by owner_id.
        """
        revision = self.store.load_revision(revision_id)
        self.store.load_content(revision.content_id, owner_id)
        return revision

    def history(self, content_id: str, owner_id: str) -> list[Revision]:
        """All revisions of a content draft, newest first."""
        self.store.load_content(content_id, owner_id)
        return self.store.list_revisions(content_id, descending=True)

    def restore_from(self, revision_id: str, owner_id: str) -> tuple[ContentDraft, Revision]:
        """
        Restore a content draft to an earlier revision.

        The restored state is first recorded as a new revision
        ("Restored from version N"), then copied onto the content draft.
        Meta description and keywords are left as they are.

        Returns:
            Tuple of (updated content, newly appended revision).
        """
        target = self.get(revision_id, owner_id)
        content = self.store.load_content(target.content_id, owner_id)

        new_revision = self.append(
            content,
            change_description=f"Restored from version {target.version}",
            snapshot=target.snapshot,
        )

        content.title = target.title
        content.body = target.body
        content.body_html = target.body_html
        content.current_score = target.score
        content.touch()
        self.store.save_content(content)

        logger.info(f"Restored content {content.id} from version {target.version}")
        return content, new_revision

    def compare(self, first_id: str, second_id: str, owner_id: str) -> RevisionComparison:
        """
        Compare two revisions of the same content.

        Argument order is kept: differences are second minus first.

        Raises:
            NotFound: If either revision is missing or not owned by the caller.
            InvalidComparison: If the revisions belong to different content.
        """
        first = self.get(first_id, owner_id)
        second = self.get(second_id, owner_id)
        if first.content_id != second.content_id:
            raise InvalidComparison("Revisions must be from the same content")
        return RevisionComparison(first=first, second=second)
