"""
Dealer directory operations: listing with filters and fuzzy search,
typeahead suggestions, dealer detail with reviews, review authoring and
the vehicle make/model catalog.

Authentication is handled by the caller; operations that need a user take
a ``User`` that has already been verified.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .config import DEFAULT_MAX_QUERY_LENGTH
from .logger import StructuredLogger, get_logger
from .matcher import (
    MATCH_THRESHOLD,
    SUGGESTION_LIMIT,
    ScoredSuggestion,
    filter_by_relevance,
    suggest as suggest_values,
)
from .normalize import normalize_key
from .schema import clamp_rating, validate_review
from .search import SearchFilters, parse_search_query
from .storage import CarModel, Dealer, DealerStore, Make, Review


class DirectoryError(Exception):
    """Base class for directory operation failures."""


class DealerNotFoundError(DirectoryError):
    pass


class ReviewNotFoundError(DirectoryError):
    pass


class ReviewPermissionError(DirectoryError):
    pass


class ReviewValidationError(DirectoryError):
    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class CatalogError(DirectoryError):
    pass


@dataclass(frozen=True)
class User:
    id: str
    first_name: str
    last_name: str
    username: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class DealerView:
    """A dealer together with its review aggregate."""

    dealer: Dealer
    rating: float = 0.0
    reviews_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = self.dealer.to_dict()
        data["rating"] = self.rating
        data["reviews_count"] = self.reviews_count
        return data


@dataclass
class DealerDetail:
    view: DealerView
    reviews: List[Review] = field(default_factory=list)
    featured: Optional[str] = None


def average_rating(reviews: Sequence[Review]) -> float:
    """Mean rating rounded to one decimal; 0 when there are no reviews."""
    if not reviews:
        return 0.0
    total = sum(r.rating or 0 for r in reviews)
    return round(total / len(reviews), 1)


def apply_structured_filters(dealers: Sequence[Dealer], filters: SearchFilters) -> List[Dealer]:
    """Exact, case-insensitive filters that run before any fuzzy matching."""
    result = list(dealers)
    if filters.state:
        key = normalize_key(filters.state)
        result = [d for d in result if normalize_key(d.state) == key]
    if filters.city:
        key = normalize_key(filters.city)
        result = [d for d in result if normalize_key(d.city) == key]
    if filters.zip:
        zip_code = str(filters.zip).strip()
        result = [d for d in result if d.zip == zip_code]
    if filters.brand:
        key = normalize_key(filters.brand)
        result = [d for d in result if key in {normalize_key(b) for b in d.brands}]
    return result


class DirectoryService:
    """Read and write operations over a ``DealerStore``."""

    def __init__(
        self,
        store: DealerStore,
        logger: Optional[StructuredLogger] = None,
        threshold: int = MATCH_THRESHOLD,
        suggestion_limit: int = SUGGESTION_LIMIT,
        max_query_length: Optional[int] = DEFAULT_MAX_QUERY_LENGTH,
    ):
        self.store = store
        self.logger = logger or get_logger()
        self.threshold = threshold
        self.suggestion_limit = suggestion_limit
        self.max_query_length = max_query_length

    # Search

    def list_dealers(self, filters: Optional[SearchFilters] = None) -> List[DealerView]:
        """
        Dealers matching the structured filters, re-ordered by relevance when
        free text is given. An empty ``q`` means no text filter at all.
        """
        filters = filters or SearchFilters()
        dealers = apply_structured_filters(self.store.snapshot(), filters)

        query = self._bound_query(filters.q)
        if query.strip():
            dealers = filter_by_relevance(query, dealers, threshold=self.threshold)

        views = [self._view(d) for d in dealers]
        self.logger.record_search(len(views))
        self.logger.debug("Dealer listing", filters=filters.as_dict(), results=len(views))
        return views

    def search(self, text: str) -> List[DealerView]:
        """Parse a search box entry and list the matching dealers."""
        return self.list_dealers(parse_search_query(text))

    def suggest(self, text: str) -> List[ScoredSuggestion]:
        query = self._bound_query(text)
        if not query.strip():
            return []
        self.logger.record_suggestion()
        return suggest_values(query, self.store.snapshot(), limit=self.suggestion_limit)

    def states(self) -> List[str]:
        return sorted({d.state for d in self.store.snapshot() if d.state})

    # Detail and reviews

    def get_dealer(self, dealer_id: str) -> DealerDetail:
        dealer = self._require_dealer(dealer_id)
        return DealerDetail(view=self._view(dealer), reviews=self._reviews_newest_first(dealer.id))

    def add_review(self, dealer_id: str, user: User, payload: Dict[str, Any]) -> DealerDetail:
        dealer = self._require_dealer(dealer_id)

        errors = validate_review(payload)
        if errors:
            raise ReviewValidationError(errors)

        purchase = bool(payload.get("purchase"))
        car_year = payload.get("car_year")
        review = Review(
            id=str(uuid.uuid4()),
            dealer_id=dealer.id,
            user_id=user.id,
            user_name=user.display_name,
            review=str(payload["review"]).strip(),
            rating=clamp_rating(payload.get("rating")),
            time=datetime.now(),
            purchase=purchase,
            purchase_date=str(payload.get("purchase_date") or "") if purchase else "",
            car_make=str(payload.get("car_make") or ""),
            car_model=str(payload.get("car_model") or ""),
            car_year=int(car_year) if car_year not in (None, "") else None,
        )
        self.store.add_review(review)
        self.logger.info("Review added", dealer_id=dealer.id, review_id=review.id)

        return DealerDetail(
            view=self._view(dealer),
            reviews=self._reviews_newest_first(dealer.id),
            featured=review.id,
        )

    def edit_review(
        self,
        review_id: str,
        user_id: str,
        review: Optional[str] = None,
        rating: Any = None,
    ) -> Review:
        """Only the author may edit; editing moves the review to the top."""
        current = self.store.get_review(review_id)
        if current is None:
            raise ReviewNotFoundError(f"Review not found: {review_id}")
        if current.user_id != user_id:
            raise ReviewPermissionError("Only the author can edit a review")

        changes: Dict[str, Any] = {"time": datetime.now()}
        if isinstance(review, str):
            text = review.strip()
            if not text:
                raise ReviewValidationError(["Review text required"])
            changes["review"] = text
        if rating is not None:
            value = clamp_rating(rating)
            if not value:
                raise ReviewValidationError(["Rating required"])
            changes["rating"] = value
        return self.store.update_review(review_id, **changes)

    # Catalog

    def add_make(self, name: str) -> Make:
        name = (name or "").strip()
        if not name:
            raise CatalogError("Missing name")
        if any(normalize_key(m.name) == normalize_key(name) for m in self.store.makes()):
            raise CatalogError("Make already exists")
        make = Make(id=str(uuid.uuid4()), name=name)
        self.store.add_make(make)
        return make

    def add_model(self, make: str, name: str) -> CarModel:
        make = (make or "").strip()
        name = (name or "").strip()
        if not make or not name:
            raise CatalogError("Missing fields")
        if not any(normalize_key(m.name) == normalize_key(make) for m in self.store.makes()):
            raise CatalogError("Unknown make")
        model = CarModel(id=str(uuid.uuid4()), make=make, name=name)
        self.store.add_model(model)
        return model

    # Helpers

    def _require_dealer(self, dealer_id: str) -> Dealer:
        dealer = self.store.get(dealer_id)
        if dealer is None:
            raise DealerNotFoundError(f"Dealer not found: {dealer_id}")
        return dealer

    def _reviews_newest_first(self, dealer_id: str) -> List[Review]:
        return sorted(self.store.reviews_for(dealer_id), key=lambda r: r.time, reverse=True)

    def _view(self, dealer: Dealer) -> DealerView:
        reviews = self.store.reviews_for(dealer.id)
        return DealerView(dealer=dealer, rating=average_rating(reviews), reviews_count=len(reviews))

    def _bound_query(self, text: Any) -> str:
        query = text if isinstance(text, str) else ""
        if self.max_query_length is not None and len(query) > self.max_query_length:
            self.logger.debug("Query truncated", length=len(query), limit=self.max_query_length)
            query = query[: self.max_query_length]
        return query


def dealer_counts_by_state(dealers: Sequence[Dealer]) -> List[Tuple[str, int]]:
    counts: Dict[str, int] = {}
    for d in dealers:
        counts[d.state] = counts.get(d.state, 0) + 1
    return sorted(counts.items())
