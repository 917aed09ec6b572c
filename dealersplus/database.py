"""
Database schema and connection management.

Uses SQLite with SQLAlchemy to persist the in-memory dealer store between
runs. The store stays the single owner at runtime; this module only copies
rows in and out of it.
"""

from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Tuple

from sqlalchemy import (
    create_engine,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, sessionmaker

from .storage import CarModel, Dealer, DealerStore, Make, Review

Base = declarative_base()


class DealerRow(Base):
    """Dealer listing."""

    __tablename__ = "dealers"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    city = Column(String, nullable=False, default="")
    state = Column(String(2), nullable=False)
    zip = Column(String, nullable=False, default="")
    brands = Column(JSON, nullable=False, default=list)
    phone = Column(String, nullable=False, default="")
    is_new = Column(Boolean, nullable=False, default=False)
    is_used = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    def to_dealer(self) -> Dealer:
        return Dealer(
            id=self.id,
            name=self.name,
            city=self.city or "",
            state=self.state,
            zip=self.zip or "",
            brands=tuple(self.brands or ()),
            phone=self.phone or "",
            is_new=bool(self.is_new),
            is_used=bool(self.is_used),
        )


class ReviewRow(Base):
    """User review of a dealer."""

    __tablename__ = "reviews"

    id = Column(String, primary_key=True)
    dealer_id = Column(String, ForeignKey("dealers.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, nullable=False)
    user_name = Column(String, nullable=False)
    review = Column(Text, nullable=False)
    rating = Column(Integer, nullable=False)
    time = Column(DateTime, nullable=False, default=datetime.now)
    purchase = Column(Boolean, nullable=False, default=False)
    purchase_date = Column(String, nullable=False, default="")
    car_make = Column(String, nullable=False, default="")
    car_model = Column(String, nullable=False, default="")
    car_year = Column(Integer, nullable=True)

    def to_review(self) -> Review:
        return Review(
            id=self.id,
            dealer_id=self.dealer_id,
            user_id=self.user_id,
            user_name=self.user_name,
            review=self.review,
            rating=self.rating,
            time=self.time,
            purchase=bool(self.purchase),
            purchase_date=self.purchase_date or "",
            car_make=self.car_make or "",
            car_model=self.car_model or "",
            car_year=self.car_year,
        )


class MakeRow(Base):
    """Vehicle make in the catalog."""

    __tablename__ = "makes"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, unique=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def to_make(self) -> Make:
        return Make(id=self.id, name=self.name)


class CarModelRow(Base):
    """Vehicle model, keyed to its make by name."""

    __tablename__ = "car_models"

    id = Column(String, primary_key=True)
    make = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def to_car_model(self) -> CarModel:
        return CarModel(id=self.id, make=self.make, name=self.name)


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(get_engine(db_path))


@lru_cache(maxsize=None)
def _engine_for(url: str):
    return create_engine(url)


def get_engine(db_path: Path):
    """One engine per database file, shared by every session on it."""
    return _engine_for(f"sqlite:///{Path(db_path).resolve()}")


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    Session = sessionmaker(bind=get_engine(db_path))
    return Session()


def save_store_to_database(store: DealerStore, db_path: Path) -> Tuple[int, int]:
    """
    Upsert every dealer and review from ``store`` into the database.

    Returns:
        Tuple of (dealers_written, reviews_written)
    """
    init_database(db_path)
    session = get_session(db_path)
    dealers = store.snapshot()
    reviews = store.all_reviews()
    try:
        for d in dealers:
            session.merge(DealerRow(
                id=d.id,
                name=d.name,
                city=d.city,
                state=d.state,
                zip=d.zip,
                brands=list(d.brands),
                phone=d.phone,
                is_new=d.is_new,
                is_used=d.is_used,
            ))
        session.flush()
        for r in reviews:
            session.merge(ReviewRow(
                id=r.id,
                dealer_id=r.dealer_id,
                user_id=r.user_id,
                user_name=r.user_name,
                review=r.review,
                rating=r.rating,
                time=r.time,
                purchase=r.purchase,
                purchase_date=r.purchase_date,
                car_make=r.car_make,
                car_model=r.car_model,
                car_year=r.car_year,
            ))
        _merge_catalog(session, store)
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
    return len(dealers), len(reviews)


def load_store_from_database(db_path: Path) -> DealerStore:
    """Build a fresh in-memory store from the database contents."""
    init_database(db_path)
    session = get_session(db_path)
    try:
        store = DealerStore(
            [row.to_dealer() for row in session.query(DealerRow).order_by(DealerRow.created_at, DealerRow.id)]
        )
        for row in session.query(ReviewRow).all():
            store.add_review(row.to_review())
        for row in session.query(MakeRow).order_by(MakeRow.created_at, MakeRow.name):
            store.add_make(row.to_make())
        for row in session.query(CarModelRow).order_by(CarModelRow.created_at, CarModelRow.make, CarModelRow.name):
            store.add_model(row.to_car_model())
    finally:
        session.close()
    return store


def _merge_catalog(session, store: DealerStore) -> None:
    # Catalog entries are matched by name; a store seeded with fresh ids
    # must not duplicate makes or models that are already saved.
    known_makes = {name: row_id for row_id, name in session.query(MakeRow.id, MakeRow.name)}
    for m in store.makes():
        if known_makes.setdefault(m.name, m.id) == m.id:
            session.merge(MakeRow(id=m.id, name=m.name))

    known_models = {
        (make, name): row_id
        for row_id, make, name in session.query(CarModelRow.id, CarModelRow.make, CarModelRow.name)
    }
    for m in store.models():
        if known_models.setdefault((m.make, m.name), m.id) == m.id:
            session.merge(CarModelRow(id=m.id, make=m.make, name=m.name))
