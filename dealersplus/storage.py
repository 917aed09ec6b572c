import json
import threading
from dataclasses import dataclass, field, asdict, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

# Longest text kept for a dealer field; scoring cost grows with field length.
MAX_FIELD_LENGTH = 128


@dataclass(frozen=True)
class Dealer:
    """A dealership listing. Frozen so snapshots can be shared freely."""

    id: str
    name: str
    city: str = ""
    state: str = ""
    zip: str = ""
    brands: Tuple[str, ...] = ()
    phone: str = ""
    is_new: bool = False
    is_used: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dealer":
        brands = data.get("brands") or ()
        return cls(
            id=_str(data.get("id")),
            name=_str(data.get("name")),
            city=_str(data.get("city")),
            state=_str(data.get("state")),
            zip=_str(data.get("zip")),
            brands=tuple(_str(b) for b in brands if _str(b)),
            phone=_str(data.get("phone")),
            is_new=bool(data.get("is_new", data.get("isNew", False))),
            is_used=bool(data.get("is_used", data.get("isUsed", True))),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["brands"] = list(self.brands)
        return data


@dataclass
class Review:
    id: str
    dealer_id: str
    user_id: str
    user_name: str
    review: str
    rating: int
    time: datetime = field(default_factory=datetime.now)
    purchase: bool = False
    purchase_date: str = ""
    car_make: str = ""
    car_model: str = ""
    car_year: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["time"] = self.time.isoformat()
        return data


@dataclass(frozen=True)
class Make:
    id: str
    name: str


@dataclass(frozen=True)
class CarModel:
    id: str
    make: str
    name: str


class DealerStore:
    """
    In-memory owner of dealers, reviews and the vehicle catalog.

    All mutation goes through this class under a single lock. Readers get
    tuples of immutable dealers (``snapshot``) or copies of reviews, never
    the live lists.
    """

    def __init__(self, dealers: Optional[List[Dealer]] = None):
        self._lock = threading.RLock()
        self._dealers: Dict[str, Dealer] = {}
        self._reviews: Dict[str, Review] = {}
        self._makes: List[Make] = []
        self._models: List[CarModel] = []
        for d in dealers or []:
            self.insert(d)

    # Dealers

    def get(self, dealer_id: str) -> Optional[Dealer]:
        with self._lock:
            return self._dealers.get(dealer_id)

    def snapshot(self) -> Tuple[Dealer, ...]:
        """Immutable view of all dealers in insertion order."""
        with self._lock:
            return tuple(self._dealers.values())

    def list(self) -> List[Dealer]:
        return list(self.snapshot())

    def insert(self, dealer: Dealer) -> None:
        with self._lock:
            if dealer.id in self._dealers:
                raise ValueError(f"Dealer already exists: {dealer.id}")
            self._dealers[dealer.id] = dealer

    def update(self, dealer_id: str, **changes: Any) -> Dealer:
        with self._lock:
            current = self._dealers.get(dealer_id)
            if current is None:
                raise KeyError(dealer_id)
            if "brands" in changes:
                changes["brands"] = tuple(changes["brands"])
            updated = replace(current, **changes)
            self._dealers[dealer_id] = updated
            return updated

    def delete(self, dealer_id: str) -> bool:
        with self._lock:
            if self._dealers.pop(dealer_id, None) is None:
                return False
            for rid in [r.id for r in self._reviews.values() if r.dealer_id == dealer_id]:
                del self._reviews[rid]
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._dealers)

    # Reviews

    def add_review(self, review: Review) -> None:
        with self._lock:
            self._reviews[review.id] = review

    def get_review(self, review_id: str) -> Optional[Review]:
        with self._lock:
            r = self._reviews.get(review_id)
            return replace(r) if r is not None else None

    def update_review(self, review_id: str, **changes: Any) -> Review:
        with self._lock:
            current = self._reviews.get(review_id)
            if current is None:
                raise KeyError(review_id)
            updated = replace(current, **changes)
            self._reviews[review_id] = updated
            return replace(updated)

    def reviews_for(self, dealer_id: str) -> List[Review]:
        with self._lock:
            return [replace(r) for r in self._reviews.values() if r.dealer_id == dealer_id]

    def all_reviews(self) -> List[Review]:
        with self._lock:
            return [replace(r) for r in self._reviews.values()]

    # Catalog

    def makes(self) -> Tuple[Make, ...]:
        with self._lock:
            return tuple(self._makes)

    def models(self) -> Tuple[CarModel, ...]:
        with self._lock:
            return tuple(self._models)

    def add_make(self, make: Make) -> None:
        with self._lock:
            self._makes.append(make)

    def add_model(self, model: CarModel) -> None:
        with self._lock:
            self._models.append(model)


def load_dealers(path: Path) -> List[Dealer]:
    """Read a dealers JSON file; missing, empty or corrupt files give []."""
    if not path.exists():
        return []
    try:
        with path.open("r", encoding="utf-8") as f:
            content = f.read().strip()
            if not content:
                return []
            data = json.loads(content)
    except (json.JSONDecodeError, IOError):
        return []
    if isinstance(data, dict):
        data = data.get("dealers", [])
    return [Dealer.from_dict(d) for d in data if isinstance(d, dict)]


def save_dealers(path: Path, dealers: List[Dealer]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump([d.to_dict() for d in dealers], f, indent=2, ensure_ascii=False)


def _str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()[:MAX_FIELD_LENGTH].strip()
