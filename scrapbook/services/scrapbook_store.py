"""
Scrapbook persistence on top of SQLAlchemy.

Every write runs in its own committed transaction, so a body is always
replaced as a whole: either the new bytes are stored or the old ones stay.
"""

import logging
import uuid
from datetime import datetime

from sqlalchemy import DateTime, LargeBinary, String, create_engine, select
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from scrapbook import config
from scrapbook.models.schemas import PageStyle, Scrapbook
from scrapbook.services.cover_renderer import cover_renderer

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled"


class ScrapbookNotFoundError(LookupError):
    """Raised when a scrapbook id is not in the store."""


class Base(DeclarativeBase):
    """Declarative base for the scrapbook tables."""


class ScrapbookRecord(Base):
    """Database row of a scrapbook."""

    __tablename__ = "scrapbooks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    creation_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    page_style: Mapped[str] = mapped_column(String(20), nullable=False, default=PageStyle.PLAIN.value)
    cover_image: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    body: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)

    def to_model(self) -> Scrapbook:
        return Scrapbook(
            id=uuid.UUID(self.id),
            title=self.title,
            creation_date=self.creation_date,
            page_style=PageStyle(self.page_style),
            cover_image=self.cover_image,
            body=self.body,
        )


def resolve_title(title: str | None) -> str:
    """Blank titles are saved as "Untitled"."""
    if title is None or not title.strip():
        return DEFAULT_TITLE
    return title


class ScrapbookStore:
    """CRUD operations for scrapbooks plus body load/save."""

    def __init__(self, database_url: str | None = None) -> None:
        url = database_url or config.DATABASE_URL
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self.engine = create_engine(url, connect_args=connect_args)
        Base.metadata.create_all(self.engine)
        self._session_factory = sessionmaker(self.engine, expire_on_commit=False)

    def _session(self) -> Session:
        return self._session_factory()

    def create(
        self,
        title: str = "",
        page_style: PageStyle = PageStyle.PLAIN,
        cover_image: bytes | None = None,
    ) -> Scrapbook:
        """Create a scrapbook. Without a cover, a placeholder showing the title is generated."""
        final_title = resolve_title(title)
        cover = (
            cover_renderer.prepare_cover(cover_image)
            if cover_image
            else cover_renderer.render_placeholder(final_title)
        )

        record = ScrapbookRecord(
            id=str(uuid.uuid4()),
            title=final_title,
            creation_date=datetime.now(),
            page_style=PageStyle(page_style).value,
            cover_image=cover,
            body=None,
        )

        with self._session() as session:
            session.add(record)
            session.commit()
            logger.info("Created scrapbook %s (%s)", record.id, final_title)
            return record.to_model()

    def get(self, scrapbook_id: uuid.UUID) -> Scrapbook | None:
        with self._session() as session:
            record = session.get(ScrapbookRecord, str(scrapbook_id))
            return record.to_model() if record else None

    def list_scrapbooks(self, search: str | None = None) -> list[Scrapbook]:
        """All scrapbooks, newest first, optionally filtered by a case-insensitive title match."""
        query = select(ScrapbookRecord).order_by(ScrapbookRecord.creation_date.desc())

        with self._session() as session:
            records = session.scalars(query).all()

        scrapbooks = [record.to_model() for record in records]
        if search:
            needle = search.casefold()
            scrapbooks = [book for book in scrapbooks if needle in book.title.casefold()]
        return scrapbooks

    def update(
        self,
        scrapbook_id: uuid.UUID,
        title: str | None = None,
        page_style: PageStyle | None = None,
        cover_image: bytes | None = None,
    ) -> Scrapbook:
        """
        Save edits to title, page style or cover. None leaves a field unchanged.

        Raises:
            ScrapbookNotFoundError: If the scrapbook does not exist.
            ValueError: If ``cover_image`` is not a readable image.
        """
        cover = cover_renderer.prepare_cover(cover_image) if cover_image else None

        with self._session() as session:
            record = session.get(ScrapbookRecord, str(scrapbook_id))
            if record is None:
                raise ScrapbookNotFoundError(f"Scrapbook {scrapbook_id} not found")

            if title is not None:
                record.title = resolve_title(title)
            if page_style is not None:
                record.page_style = PageStyle(page_style).value
            if cover is not None:
                record.cover_image = cover

            session.commit()
            return record.to_model()

    def load(self, scrapbook_id: uuid.UUID) -> bytes | None:
        """
        Return the stored page body, or None if nothing was saved yet.

        Raises:
            ScrapbookNotFoundError: If the scrapbook does not exist.
        """
        with self._session() as session:
            record = session.get(ScrapbookRecord, str(scrapbook_id))
            if record is None:
                raise ScrapbookNotFoundError(f"Scrapbook {scrapbook_id} not found")
            return record.body

    def save(self, scrapbook_id: uuid.UUID, body: bytes) -> bool:
        """Replace the stored page body. Returns False if the scrapbook does not exist."""
        with self._session() as session:
            record = session.get(ScrapbookRecord, str(scrapbook_id))
            if record is None:
                return False
            record.body = body
            session.commit()

        logger.debug("Saved %d byte body for scrapbook %s", len(body), scrapbook_id)
        return True

    def delete(self, scrapbook_id: uuid.UUID) -> bool:
        with self._session() as session:
            record = session.get(ScrapbookRecord, str(scrapbook_id))
            if record is None:
                return False
            session.delete(record)
            session.commit()

        logger.info("Deleted scrapbook %s", scrapbook_id)
        return True


_store: ScrapbookStore | None = None


def get_store() -> ScrapbookStore:
    """FastAPI dependency returning the process-wide store."""
    global _store
    if _store is None:
        _store = ScrapbookStore()
    return _store
