"""SQLAlchemy models and store for the asset list."""

import logging
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import DateTime, Float, Integer, String, create_engine, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from ..portfolio.engine import AssetEntry
from .base import AssetStore, StorageError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class AssetRecord(Base):
    """One row of the saved asset list."""

    __tablename__ = "assets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    asset: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    market_value: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    target_allocation: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))

    def to_entry(self) -> AssetEntry:
        return AssetEntry(
            asset=self.asset,
            market_value=self.market_value,
            target_allocation=self.target_allocation,
        )

    def __repr__(self) -> str:
        return (
            f"<AssetRecord(position={self.position}, asset={self.asset}, "
            f"value={self.market_value}, target={self.target_allocation})>"
        )


class SqlAssetStore(AssetStore):
    """Stores entries in a database table, ordered by position."""

    def __init__(self, database_url: str = "sqlite:///data/portfolio.db", echo: bool = False):
        self.database_url = database_url
        if database_url.startswith("sqlite:///") and database_url != "sqlite:///:memory:":
            Path(database_url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(database_url, echo=echo)
        Base.metadata.create_all(self.engine)
        self._session_factory = sessionmaker(bind=self.engine)

    def __repr__(self) -> str:
        return f"SqlAssetStore({self.database_url!r})"

    def load(self) -> list[AssetEntry]:
        session = self._session_factory()
        try:
            records = session.scalars(
                select(AssetRecord).order_by(AssetRecord.position)
            ).all()
            return [r.to_entry() for r in records]
        except SQLAlchemyError as e:
            raise StorageError(f"Could not load assets: {e}") from e
        finally:
            session.close()

    def save(self, entries: list[AssetEntry]) -> None:
        session = self._session_factory()
        try:
            session.execute(delete(AssetRecord))
            session.add_all(
                AssetRecord(
                    position=i,
                    asset=e.asset,
                    market_value=e.market_value,
                    target_allocation=e.target_allocation,
                )
                for i, e in enumerate(entries)
            )
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageError(f"Could not save assets: {e}") from e
        finally:
            session.close()

        logger.debug(f"Saved {len(entries)} assets to {self.database_url}")
