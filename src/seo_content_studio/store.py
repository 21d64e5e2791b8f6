"""
SQLAlchemy-backed content store.

Persists content drafts, revisions and analyses, always scoping content
lookups to the owning user. Supports SQLite (local dev, tests) and
PostgreSQL (production).
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    case,
    create_engine,
    func,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import DEFAULT_DATABASE_URL, StudioConfig
from .errors import NotFound, ValidationError, VersionConflict
from .models import (
    Analysis,
    ContentDraft,
    ContentPage,
    ContentStats,
    ContentStatus,
    Improvement,
    Revision,
    ScoreBreakdown,
    SuggestedKeyword,
)

logger = logging.getLogger(__name__)

Base = declarative_base()


class ContentRecord(Base):
    """A content draft owned by one user"""
    __tablename__ = "contents"

    id = Column(String(32), primary_key=True)
    owner_id = Column(String(64), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    body = Column(Text, nullable=False)
    body_html = Column(Text, default="")
    meta_description = Column(String(160), default="")
    target_keywords = Column(JSON, default=list)
    status = Column(String(16), default=ContentStatus.DRAFT.value, index=True)
    current_score = Column(Integer, default=0, index=True)
    # Denormalized from the body on every save, for sorting and stats
    word_count = Column(Integer, default=0)
    reading_time = Column(Integer, default=0)
    latest_analysis_id = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    revisions = relationship(
        "RevisionRecord",
        back_populates="content",
        cascade="all, delete-orphan",
        order_by="RevisionRecord.version",
    )
    analyses = relationship("AnalysisRecord", back_populates="content", cascade="all, delete-orphan")


class RevisionRecord(Base):
    """Immutable snapshot of a content draft"""
    __tablename__ = "revisions"
    __table_args__ = (
        # Makes version assignment a compare-and-swap
        UniqueConstraint("content_id", "version", name="uq_revisions_content_version"),
    )

    id = Column(String(32), primary_key=True)
    content_id = Column(String(32), ForeignKey("contents.id"), nullable=False, index=True)
    version = Column(Integer, nullable=False)
    title = Column(String(200), nullable=False)
    body = Column(Text, nullable=False)
    body_html = Column(Text, default="")
    score = Column(Integer, default=0)
    word_count = Column(Integer, default=0)
    change_description = Column(Text, default="Content updated")
    analysis_id = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    content = relationship("ContentRecord", back_populates="revisions")


class AnalysisRecord(Base):
    """One stored analysis run"""
    __tablename__ = "analyses"

    id = Column(String(32), primary_key=True)
    content_id = Column(String(32), ForeignKey("contents.id"), nullable=False, index=True)
    revision_id = Column(String(32), nullable=True)
    overall_score = Column(Integer, nullable=False)
    scores = Column(JSON, nullable=False)
    suggested_keywords = Column(JSON, default=list)
    improvements = Column(JSON, default=list)
    insights = Column(Text, default="")
    suggested_title = Column(Text, nullable=True)
    suggested_meta_description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)

    content = relationship("ContentRecord", back_populates="analyses")


SORT_OPTIONS = {
    "created": ContentRecord.created_at.desc(),
    "updated": ContentRecord.updated_at.desc(),
    "score": ContentRecord.current_score.desc(),
    "title": ContentRecord.title.asc(),
}


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite drops tzinfo; stored values are always UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _content_from_record(record: ContentRecord, revision_ids: list[str]) -> ContentDraft:
    return ContentDraft(
        id=record.id,
        owner_id=record.owner_id,
        title=record.title,
        body=record.body,
        body_html=record.body_html or "",
        meta_description=record.meta_description or "",
        target_keywords=list(record.target_keywords or []),
        status=ContentStatus(record.status),
        current_score=record.current_score or 0,
        revision_ids=revision_ids,
        latest_analysis_id=record.latest_analysis_id,
        created_at=_aware(record.created_at),
        updated_at=_aware(record.updated_at),
    )


def _revision_from_record(record: RevisionRecord) -> Revision:
    return Revision(
        id=record.id,
        content_id=record.content_id,
        version=record.version,
        title=record.title,
        body=record.body,
        body_html=record.body_html or "",
        score=record.score or 0,
        word_count=record.word_count or 0,
        change_description=record.change_description,
        analysis_id=record.analysis_id,
        created_at=_aware(record.created_at),
    )


def _improvement_to_json(improvement: Improvement) -> dict:
    return improvement.to_dict()


def _improvement_from_json(data: dict) -> Improvement:
    applied_at = data.get("applied_at")
    return Improvement(
        category=data["category"],
        suggestion=data["suggestion"],
        priority=data.get("priority", "medium"),
        impact=data.get("impact", 5),
        applied=data.get("applied", False),
        applied_at=_aware(datetime.fromisoformat(applied_at)) if applied_at else None,
    )


def _analysis_from_record(record: AnalysisRecord) -> Analysis:
    return Analysis(
        id=record.id,
        content_id=record.content_id,
        revision_id=record.revision_id,
        overall_score=record.overall_score,
        scores=ScoreBreakdown(**record.scores),
        suggested_keywords=[SuggestedKeyword(**kw) for kw in record.suggested_keywords or []],
        improvements=[_improvement_from_json(imp) for imp in record.improvements or []],
        insights=record.insights or "",
        suggested_title=record.suggested_title,
        suggested_meta_description=record.suggested_meta_description,
        created_at=_aware(record.created_at),
    )


def create_store_engine(database_url: str):
    """Create an engine suited to the database backend."""
    if database_url.startswith("sqlite"):
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection so every session sees the same in-memory database
            return create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=False,
            )
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=False,
        )
    return create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        echo=False,
    )


class ContentStore:
    """
    Persistence boundary for content, revisions and analyses.

    Every method runs in its own short session, so the store can be shared
    across concurrent requests.
    """

    def __init__(self, database_url: str = DEFAULT_DATABASE_URL, engine=None):
        self.engine = engine if engine is not None else create_store_engine(database_url)
        self._session_factory = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )

    @classmethod
    def from_config(cls, config: StudioConfig) -> "ContentStore":
        return cls(database_url=config.database_url)

    def create_all(self) -> None:
        """Create all tables that do not exist yet."""
        Base.metadata.create_all(bind=self.engine)

    # Content

    def _content_record(self, session, content_id: str, owner_id: str) -> ContentRecord:
        record = (
            session.query(ContentRecord)
            .filter(ContentRecord.id == content_id, ContentRecord.owner_id == owner_id)
            .first()
        )
        if record is None:
            raise NotFound("Content not found")
        return record

    def _revision_ids(self, session, content_id: str) -> list[str]:
        rows = (
            session.query(RevisionRecord.id)
            .filter(RevisionRecord.content_id == content_id)
            .order_by(RevisionRecord.version.asc())
            .all()
        )
        return [row[0] for row in rows]

    def load_content(self, content_id: str, owner_id: str) -> ContentDraft:
        """
        Load a content draft owned by owner_id.

        Raises:
            NotFound: If the content does not exist or belongs to someone else.
        """
        with self._session_factory() as session:
            record = self._content_record(session, content_id, owner_id)
            return _content_from_record(record, self._revision_ids(session, content_id))

    def _write_content(self, session, content: ContentDraft) -> ContentRecord:
        record = session.get(ContentRecord, content.id)
        if record is None:
            record = ContentRecord(id=content.id, owner_id=content.owner_id, created_at=content.created_at)
            session.add(record)
        elif record.owner_id != content.owner_id:
            raise NotFound("Content not found")

        record.title = content.title
        record.body = content.body
        record.body_html = content.body_html
        record.meta_description = content.meta_description
        record.target_keywords = list(content.target_keywords)
        record.status = content.status.value
        record.current_score = content.current_score
        record.word_count = content.word_count
        record.reading_time = content.reading_time
        record.latest_analysis_id = content.latest_analysis_id
        record.updated_at = content.updated_at
        return record

    def save_content(self, content: ContentDraft) -> ContentDraft:
        """Insert or update a content draft."""
        with self._session_factory() as session:
            self._write_content(session, content)
            session.commit()
        return content

    def delete_content(self, content_id: str, owner_id: str) -> None:
        """Delete a content draft together with its revisions and analyses."""
        with self._session_factory() as session:
            record = self._content_record(session, content_id, owner_id)
            session.delete(record)
            session.commit()
        logger.info(f"Deleted content {content_id} and its history")

    def list_contents(
        self,
        owner_id: str,
        status: Optional[ContentStatus] = None,
        sort: str = "created",
        limit: int = 10,
        page: int = 1,
    ) -> ContentPage:
        """List one owner's content, newest first unless another sort is given."""
        if sort not in SORT_OPTIONS:
            raise ValidationError(
                f"sort must be one of {', '.join(sorted(SORT_OPTIONS))}, got '{sort}'"
            )
        if limit < 1 or page < 1:
            raise ValidationError("limit and page must be >= 1")

        with self._session_factory() as session:
            query = session.query(ContentRecord).filter(ContentRecord.owner_id == owner_id)
            if status is not None:
                query = query.filter(ContentRecord.status == status.value)
            total = query.count()
            records = (
                query.order_by(SORT_OPTIONS[sort])
                .limit(limit)
                .offset((page - 1) * limit)
                .all()
            )
            items = [_content_from_record(r, self._revision_ids(session, r.id)) for r in records]
        return ContentPage(items=items, total=total, page=page, limit=limit)

    def content_stats(self, owner_id: str, recent_limit: int = 5) -> ContentStats:
        """Aggregate score, length and status counts for one owner."""
        with self._session_factory() as session:
            row = (
                session.query(
                    func.count(ContentRecord.id),
                    func.avg(ContentRecord.current_score),
                    func.sum(ContentRecord.word_count),
                    func.sum(case((ContentRecord.status == ContentStatus.DRAFT.value, 1), else_=0)),
                    func.sum(case((ContentRecord.status == ContentStatus.OPTIMIZED.value, 1), else_=0)),
                    func.sum(case((ContentRecord.status == ContentStatus.PUBLISHED.value, 1), else_=0)),
                )
                .filter(ContentRecord.owner_id == owner_id)
                .one()
            )
            recent = (
                session.query(ContentRecord)
                .filter(ContentRecord.owner_id == owner_id)
                .order_by(ContentRecord.updated_at.desc())
                .limit(recent_limit)
                .all()
            )
            recent_items = [_content_from_record(r, []) for r in recent]

        total, average, words, drafts, optimized, published = row
        return ContentStats(
            total_drafts=total or 0,
            average_score=float(average or 0),
            total_words=int(words or 0),
            draft_count=int(drafts or 0),
            optimized_count=int(optimized or 0),
            published_count=int(published or 0),
            recent=recent_items,
        )

    # Revisions

    def count_revisions(self, content_id: str) -> int:
        with self._session_factory() as session:
            return (
                session.query(func.count(RevisionRecord.id))
                .filter(RevisionRecord.content_id == content_id)
                .scalar()
            ) or 0

    def append_revision(self, revision: Revision) -> Revision:
        """
        Insert a new revision.

        Raises:
            NotFound: If the owning content does not exist.
            VersionConflict: If the version number is already taken for this content.
        """
        with self._session_factory() as session:
            if session.get(ContentRecord, revision.content_id) is None:
                raise NotFound("Content not found")
            session.add(RevisionRecord(
                id=revision.id,
                content_id=revision.content_id,
                version=revision.version,
                title=revision.title,
                body=revision.body,
                body_html=revision.body_html,
                score=revision.score,
                word_count=revision.word_count,
                change_description=revision.change_description,
                analysis_id=revision.analysis_id,
                created_at=revision.created_at,
            ))
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise VersionConflict(
                    f"Version {revision.version} already exists for content {revision.content_id}"
                ) from e
        return revision

    def load_revision(self, revision_id: str) -> Revision:
        """
        Raises:
            NotFound: If the revision does not exist.
        """
        with self._session_factory() as session:
            record = session.get(RevisionRecord, revision_id)
            if record is None:
                raise NotFound("Revision not found")
            return _revision_from_record(record)

    def list_revisions(self, content_id: str, descending: bool = True) -> list[Revision]:
        order = RevisionRecord.version.desc() if descending else RevisionRecord.version.asc()
        with self._session_factory() as session:
            records = (
                session.query(RevisionRecord)
                .filter(RevisionRecord.content_id == content_id)
                .order_by(order)
                .all()
            )
            return [_revision_from_record(r) for r in records]

    def latest_revision(self, content_id: str) -> Optional[Revision]:
        with self._session_factory() as session:
            record = (
                session.query(RevisionRecord)
                .filter(RevisionRecord.content_id == content_id)
                .order_by(RevisionRecord.version.desc())
                .first()
            )
            return _revision_from_record(record) if record else None

    def attach_analysis_to_revision(self, revision_id: str, analysis_id: str) -> Revision:
        """Set the analysis reference on a revision; nothing else about it changes."""
        with self._session_factory() as session:
            record = session.get(RevisionRecord, revision_id)
            if record is None:
                raise NotFound("Revision not found")
            record.analysis_id = analysis_id
            session.commit()
            return _revision_from_record(record)

    # Analyses

    def _add_analysis(self, session, analysis: Analysis) -> None:
        if session.get(ContentRecord, analysis.content_id) is None:
            raise NotFound("Content not found")
        session.add(AnalysisRecord(
            id=analysis.id,
            content_id=analysis.content_id,
            revision_id=analysis.revision_id,
            overall_score=analysis.overall_score,
            scores=analysis.scores.to_dict(),
            suggested_keywords=[kw.to_dict() for kw in analysis.suggested_keywords],
            improvements=[_improvement_to_json(imp) for imp in analysis.improvements],
            insights=analysis.insights,
            suggested_title=analysis.suggested_title,
            suggested_meta_description=analysis.suggested_meta_description,
            created_at=analysis.created_at,
        ))

    def save_analysis(self, analysis: Analysis) -> Analysis:
        with self._session_factory() as session:
            self._add_analysis(session, analysis)
            session.commit()
        return analysis

    def record_analysis(self, analysis: Analysis, content: ContentDraft) -> Analysis:
        """
        Store an analysis together with the content it scored, in one transaction.

        The content row takes the new score and status, and the analysis'
        revision (if any) gets the analysis reference. Nothing is written
        unless every step succeeds.
        """
        with self._session_factory() as session:
            self._add_analysis(session, analysis)
            self._write_content(session, content)
            if analysis.revision_id is not None:
                revision = session.get(RevisionRecord, analysis.revision_id)
                if revision is None:
                    raise NotFound("Revision not found")
                revision.analysis_id = analysis.id
            session.commit()
        return analysis

    def update_improvements(self, analysis: Analysis) -> Analysis:
        """Persist the applied flags of an analysis' improvements."""
        with self._session_factory() as session:
            record = session.get(AnalysisRecord, analysis.id)
            if record is None:
                raise NotFound("Analysis not found")
            record.improvements = [_improvement_to_json(imp) for imp in analysis.improvements]
            session.commit()
        return analysis

    def latest_analysis(self, content_id: str) -> Optional[Analysis]:
        with self._session_factory() as session:
            record = (
                session.query(AnalysisRecord)
                .filter(AnalysisRecord.content_id == content_id)
                .order_by(AnalysisRecord.created_at.desc())
                .first()
            )
            return _analysis_from_record(record) if record else None

    def list_analyses(self, content_id: str) -> list[Analysis]:
        with self._session_factory() as session:
            records = (
                session.query(AnalysisRecord)
                .filter(AnalysisRecord.content_id == content_id)
                .order_by(AnalysisRecord.created_at.desc())
                .all()
            )
            return [_analysis_from_record(r) for r in records]
