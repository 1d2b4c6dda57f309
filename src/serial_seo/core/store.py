"""Read-only content store operations."""

from contextlib import contextmanager
from datetime import date, datetime
from typing import Dict, Generator, Iterable, List, Optional, Tuple, Type

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, col, create_engine, select

from .exceptions import DataStoreError
from .logger import get_logger
from .models import (
    ContentCategory, ContentSection, Episode, Post, PostStatus,
    SectionShow, Show, SiteSettings,
)

logger = get_logger(__name__)


class ContentStore:
    """
    Query layer over the content database

    Every query filters on the authoritative active/published flags, so
    inactive rows never reach rendered metadata or sitemaps. Lookups that
    find nothing return None or an empty list; driver failures are raised
    as DataStoreError.
    """

    def __init__(self, database_url: str, echo: bool = False):
        """
        Initialize store with a SQLAlchemy database URL

        Args:
            database_url: e.g. ``sqlite:///data/content.db`` or a Postgres URL
            echo: Log emitted SQL
        """
        self.database_url = database_url
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        self.engine = create_engine(database_url, connect_args=connect_args, echo=echo)

    def init_db(self):
        """Create all tables (local development and tests)."""
        SQLModel.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        """Get a new database session."""
        return Session(self.engine)

    @contextmanager
    def _query(self, name: str) -> Generator[Session, None, None]:
        """Open a session and translate driver errors."""
        try:
            with self.get_session() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"Content store query failed: {name}", extra={"query": name})
            raise DataStoreError(f"Content store query failed: {e}", query=name) from e

    # Settings
    def get_site_settings(self) -> Optional[SiteSettings]:
        """Read the singleton settings row."""
        with self._query("site_settings") as session:
            return session.get(SiteSettings, "main")

    # Shows
    def get_show_by_slug(self, slug: str) -> Optional[Show]:
        with self._query("show_by_slug") as session:
            statement = select(Show).where(Show.slug == slug, Show.is_active == True)  # noqa: E712
            return session.exec(statement).first()

    def get_shows_by_ids(self, show_ids: Iterable[str]) -> Dict[str, Show]:
        """Batch-resolve active shows keyed by id."""
        ids = list(set(show_ids))
        if not ids:
            return {}

        with self._query("shows_by_ids") as session:
            statement = select(Show).where(col(Show.id).in_(ids), Show.is_active == True)  # noqa: E712
            return {show.id: show for show in session.exec(statement).all()}

    def list_active_shows(self) -> List[Show]:
        """All active shows, most recently updated first."""
        with self._query("active_shows") as session:
            statement = (
                select(Show)
                .where(Show.is_active == True)  # noqa: E712
                .order_by(col(Show.updated_at).desc().nulls_last(), col(Show.id))
            )
            return list(session.exec(statement).all())

    def list_featured_shows(self, limit: int = 20) -> List[Show]:
        with self._query("featured_shows") as session:
            statement = (
                select(Show)
                .where(Show.is_active == True, Show.is_featured == True)  # noqa: E712
                .order_by(col(Show.display_order), col(Show.title))
                .limit(limit)
            )
            return list(session.exec(statement).all())

    def list_category_shows(self, category_id: str) -> List[Show]:
        with self._query("category_shows") as session:
            statement = (
                select(Show)
                .where(Show.category_id == category_id, Show.is_active == True)  # noqa: E712
                .order_by(col(Show.display_order), col(Show.title))
            )
            return list(session.exec(statement).all())

    def list_section_shows(self, section_id: str) -> List[Show]:
        """Member shows of a section in their explicit display order."""
        with self._query("section_shows") as session:
            statement = (
                select(Show)
                .join(SectionShow, col(SectionShow.show_id) == col(Show.id))
                .where(SectionShow.section_id == section_id, Show.is_active == True)  # noqa: E712
                .order_by(col(SectionShow.display_order), col(SectionShow.id))
            )
            return list(session.exec(statement).all())

    # Categories and sections
    def get_category(self, category_id: str) -> Optional[ContentCategory]:
        with self._query("category_by_id") as session:
            statement = select(ContentCategory).where(
                ContentCategory.id == category_id,
                ContentCategory.is_active == True,  # noqa: E712
            )
            return session.exec(statement).first()

    def get_category_by_slug(self, slug: str) -> Optional[ContentCategory]:
        with self._query("category_by_slug") as session:
            statement = select(ContentCategory).where(
                ContentCategory.slug == slug,
                ContentCategory.is_active == True,  # noqa: E712
            )
            return session.exec(statement).first()

    def get_section_by_slug(self, slug: str) -> Optional[ContentSection]:
        with self._query("section_by_slug") as session:
            statement = select(ContentSection).where(
                ContentSection.slug == slug,
                ContentSection.is_active == True,  # noqa: E712
            )
            return session.exec(statement).first()

    def list_active_categories(self) -> List[ContentCategory]:
        with self._query("active_categories") as session:
            statement = (
                select(ContentCategory)
                .where(ContentCategory.is_active == True)  # noqa: E712
                .order_by(col(ContentCategory.display_order), col(ContentCategory.name))
            )
            return list(session.exec(statement).all())

    def list_active_sections(self, limit: Optional[int] = None) -> List[ContentSection]:
        with self._query("active_sections") as session:
            statement = (
                select(ContentSection)
                .where(ContentSection.is_active == True)  # noqa: E712
                .order_by(col(ContentSection.display_order), col(ContentSection.title))
            )
            if limit is not None:
                statement = statement.limit(limit)
            return list(session.exec(statement).all())

    # Episodes
    def find_episode(
        self,
        show_id: str,
        air_date: Optional[date] = None,
        episode_number: Optional[int] = None,
        episode_id: Optional[str] = None,
    ) -> Optional[Episode]:
        """
        Find one active episode of a show

        Exactly one criterion is expected; the air date wins over the
        episode number, which wins over the raw id.
        """
        statement = select(Episode).where(Episode.show_id == show_id, Episode.is_active == True)  # noqa: E712

        if air_date is not None:
            statement = statement.where(Episode.air_date == air_date)
        elif episode_number is not None:
            statement = statement.where(Episode.episode_number == episode_number)
        elif episode_id is not None:
            statement = statement.where(Episode.id == episode_id)
        else:
            return None

        with self._query("find_episode") as session:
            matches = list(session.exec(statement.limit(2)).all())

        # Ambiguous tokens resolve to nothing rather than to an arbitrary row
        if len(matches) != 1:
            if len(matches) > 1:
                logger.warning(f"Episode token matched several rows for show {show_id}")
            return None
        return matches[0]

    def list_show_episodes(self, show_id: str, limit: int = 100) -> List[Episode]:
        """Active episodes of a show, newest episode number first."""
        with self._query("show_episodes") as session:
            statement = (
                select(Episode)
                .where(Episode.show_id == show_id, Episode.is_active == True)  # noqa: E712
                .order_by(col(Episode.episode_number).desc().nulls_last(), col(Episode.air_date).desc())
                .limit(limit)
            )
            return list(session.exec(statement).all())

    def get_adjacent_episodes(self, show_id: str, episode_number: Optional[int]) -> Tuple[Optional[Episode], Optional[Episode]]:
        """Previous and next active episodes by episode number."""
        if episode_number is None:
            return None, None

        with self._query("adjacent_episodes") as session:
            base = select(Episode).where(Episode.show_id == show_id, Episode.is_active == True)  # noqa: E712
            previous = session.exec(
                base.where(col(Episode.episode_number) < episode_number)
                .order_by(col(Episode.episode_number).desc())
                .limit(1)
            ).first()
            following = session.exec(
                base.where(col(Episode.episode_number) > episode_number)
                .order_by(col(Episode.episode_number))
                .limit(1)
            ).first()
            return previous, following

    def list_latest_episodes(self, limit: int = 20) -> List[Episode]:
        with self._query("latest_episodes") as session:
            statement = (
                select(Episode)
                .where(Episode.is_active == True)  # noqa: E712
                .order_by(col(Episode.created_at).desc().nulls_last())
                .limit(limit)
            )
            return list(session.exec(statement).all())

    def list_free_episodes(self, limit: int = 50) -> List[Episode]:
        with self._query("free_episodes") as session:
            statement = (
                select(Episode)
                .where(Episode.is_active == True, Episode.is_free == True)  # noqa: E712
                .order_by(col(Episode.created_at).desc().nulls_last())
                .limit(limit)
            )
            return list(session.exec(statement).all())

    def list_episodes_page(self, offset: int, limit: int) -> List[Episode]:
        """
        One page of active episodes for the paginated sitemap

        Ordered by updated_at descending with the id as tie-breaker so
        consecutive pages never overlap.
        """
        with self._query("episodes_page") as session:
            statement = (
                select(Episode)
                .where(Episode.is_active == True)  # noqa: E712
                .order_by(col(Episode.updated_at).desc().nulls_last(), col(Episode.id))
                .offset(offset)
                .limit(limit)
            )
            return list(session.exec(statement).all())

    def count_active_episodes(self) -> int:
        with self._query("count_episodes") as session:
            statement = select(func.count()).select_from(Episode).where(Episode.is_active == True)  # noqa: E712
            return int(session.exec(statement).one() or 0)

    # Posts
    def get_published_post(self, slug: str) -> Optional[Post]:
        with self._query("post_by_slug") as session:
            statement = select(Post).where(Post.slug == slug, Post.status == PostStatus.PUBLISHED.value)
            return session.exec(statement).first()

    # Aggregates
    def latest_updated_at(self, model: Type[SQLModel]) -> Optional[datetime]:
        """Most recent updated_at among the active rows of a table."""
        with self._query(f"latest_updated_at:{model.__tablename__}") as session:
            statement = select(func.max(model.updated_at)).where(model.is_active == True)  # noqa: E712
            return session.exec(statement).one()
