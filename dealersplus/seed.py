"""
Seed data: the demo dealers and catalog, sample reviews, and a
deterministic synthetic dataset covering all 50 states.
"""

import hashlib
import uuid
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple

from .storage import CarModel, Dealer, DealerStore, Make, Review

DEMO_DEALERS = [
    Dealer("D001", "Rocky Mountain Motors", "Denver", "CO", "80202", ("Toyota", "Honda"), "(303) 555-1300"),
    Dealer("D002", "Hudson River Autos", "New York", "NY", "10001", ("Audi", "BMW", "Mercedes-Benz"), "(212) 555-2200"),
    Dealer("D003", "Lone Star Drive", "Austin", "TX", "73301", ("Ford", "Chevrolet"), "(512) 555-9988"),
    Dealer("D004", "Windy City Wheels", "Chicago", "IL", "60601", ("Honda", "Toyota", "Ford"), "(773) 555-4400"),
    Dealer("D005", "Golden Gate Garage", "San Francisco", "CA", "94103", ("Audi", "BMW"), "(415) 555-7777"),
]

DEMO_MAKES = ["Toyota", "Honda", "Ford", "Chevrolet", "Audi", "BMW", "Mercedes-Benz"]

DEMO_MODELS = [
    ("Toyota", "Camry"),
    ("Toyota", "RAV4"),
    ("Honda", "Civic"),
    ("Honda", "Accord"),
    ("Ford", "F-150"),
    ("Ford", "Escape"),
    ("Audi", "A6"),
    ("BMW", "3 Series"),
    ("Mercedes-Benz", "C-Class"),
]

DEMO_USER_ID = "demo-user"
DEMO_USER_NAME = "Berkly Shepley"

SAMPLE_REVIEWS = [
    {
        "review": "Friendly staff and quick service. Pricing was clear and fair. I would come back.",
        "rating": 5, "purchase": True, "car_make": "Toyota", "car_model": "Camry", "car_year": 2021,
    },
    {
        "review": "Good selection and helpful test drive. Finance process was a little slow.",
        "rating": 4, "purchase": True, "car_make": "Honda", "car_model": "Civic", "car_year": 2020,
    },
    {
        "review": "Showroom was clean. Sales team did not pressure me. Prices were competitive.",
        "rating": 4, "purchase": False,
    },
    {
        "review": "Service department diagnosed the issue fast and fixed it the same day.",
        "rating": 5, "purchase": False,
    },
    {
        "review": "Nice location and premium vibe. Some models had limited inventory.",
        "rating": 4, "purchase": False,
    },
]

FOLLOW_UP_REVIEWS = [
    "Total grid-enabled service desk. Smooth from start to finish.",
    "Excellent customer service. Transparent pricing and quality delivery.",
]

STATES: List[Tuple[str, List[str]]] = [
    ("AL", ["Birmingham", "Montgomery", "Mobile"]),
    ("AK", ["Anchorage", "Fairbanks", "Juneau"]),
    ("AZ", ["Phoenix", "Tucson", "Mesa"]),
    ("AR", ["Little Rock", "Fayetteville", "Fort Smith"]),
    ("CA", ["Los Angeles", "San Diego", "San Francisco", "Sacramento", "San Jose"]),
    ("CO", ["Denver", "Colorado Springs", "Aurora"]),
    ("CT", ["Hartford", "New Haven", "Stamford"]),
    ("DE", ["Wilmington", "Dover", "Newark"]),
    ("FL", ["Miami", "Orlando", "Tampa", "Jacksonville"]),
    ("GA", ["Atlanta", "Savannah", "Augusta"]),
    ("HI", ["Honolulu", "Hilo", "Kailua"]),
    ("ID", ["Boise", "Idaho Falls", "Nampa"]),
    ("IL", ["Chicago", "Springfield", "Naperville"]),
    ("IN", ["Indianapolis", "Fort Wayne", "Evansville"]),
    ("IA", ["Des Moines", "Cedar Rapids", "Davenport"]),
    ("KS", ["Wichita", "Overland Park", "Topeka"]),
    ("KY", ["Louisville", "Lexington", "Bowling Green"]),
    ("LA", ["New Orleans", "Baton Rouge", "Shreveport"]),
    ("ME", ["Portland", "Augusta", "Bangor"]),
    ("MD", ["Baltimore", "Annapolis", "Silver Spring"]),
    ("MA", ["Boston", "Worcester", "Springfield"]),
    ("MI", ["Detroit", "Grand Rapids", "Ann Arbor"]),
    ("MN", ["Minneapolis", "Saint Paul", "Rochester"]),
    ("MS", ["Jackson", "Gulfport", "Hattiesburg"]),
    ("MO", ["Kansas City", "St. Louis", "Springfield"]),
    ("MT", ["Billings", "Missoula", "Bozeman"]),
    ("NE", ["Omaha", "Lincoln", "Bellevue"]),
    ("NV", ["Las Vegas", "Reno", "Henderson"]),
    ("NH", ["Manchester", "Nashua", "Concord"]),
    ("NJ", ["Newark", "Jersey City", "Trenton"]),
    ("NM", ["Albuquerque", "Santa Fe", "Las Cruces"]),
    ("NY", ["New York", "Buffalo", "Rochester"]),
    ("NC", ["Charlotte", "Raleigh", "Greensboro"]),
    ("ND", ["Fargo", "Bismarck", "Grand Forks"]),
    ("OH", ["Columbus", "Cleveland", "Cincinnati"]),
    ("OK", ["Oklahoma City", "Tulsa", "Norman"]),
    ("OR", ["Portland", "Eugene", "Salem"]),
    ("PA", ["Philadelphia", "Pittsburgh", "Allentown"]),
    ("RI", ["Providence", "Warwick", "Cranston"]),
    ("SC", ["Charleston", "Columbia", "Greenville"]),
    ("SD", ["Sioux Falls", "Rapid City", "Aberdeen"]),
    ("TN", ["Nashville", "Memphis", "Knoxville"]),
    ("TX", ["Houston", "Dallas", "Austin", "San Antonio"]),
    ("UT", ["Salt Lake City", "Provo", "Ogden"]),
    ("VT", ["Burlington", "Montpelier", "Rutland"]),
    ("VA", ["Virginia Beach", "Richmond", "Norfolk"]),
    ("WA", ["Seattle", "Spokane", "Tacoma"]),
    ("WV", ["Charleston", "Morgantown", "Huntington"]),
    ("WI", ["Milwaukee", "Madison", "Green Bay"]),
    ("WY", ["Cheyenne", "Casper", "Laramie"]),
]

BRANDS = [
    "Toyota", "Honda", "Ford", "Chevrolet", "Nissan", "Hyundai", "Kia", "Volkswagen",
    "Subaru", "Mazda", "Lexus", "BMW", "Mercedes-Benz", "Audi", "Volvo", "Acura",
    "Infiniti", "GMC", "Ram", "Jeep", "Dodge", "Chrysler", "Cadillac", "Buick",
    "Porsche", "Jaguar", "Land Rover", "Mini", "Mitsubishi", "Tesla",
]

NAME_ADJECTIVES = [
    "Summit", "Premier", "Metro", "Golden", "Liberty", "Pinnacle", "Heritage", "Capital",
    "Grand", "Silver", "Tri-City", "Sunset", "Highline", "Blue Ridge", "Frontier",
    "Red Rock", "Coastal", "Prairie", "Bay Area", "River",
]
NAME_NOUNS = [
    "Motors", "Auto Group", "Auto Mall", "Autohaus", "Garage", "Drive", "Car Center",
    "Auto Plaza", "Motorcars", "Auto Sales", "Automotive", "Imports", "Dealership",
    "Auto Outlet", "Autos",
]


def pseudo_random_int(low: int, high: int, seed: str) -> int:
    """Deterministic integer in [low, high] derived from sha256(seed)."""
    n = int(hashlib.sha256(seed.encode("utf-8")).hexdigest()[:8], 16)
    return low + (n % (high - low + 1))


def pick_n(items: Sequence[str], n: int, seed: str) -> List[str]:
    """Seeded Fisher-Yates shuffle, first ``n`` items."""
    pool = list(items)
    for i in range(len(pool) - 1, 0, -1):
        j = pseudo_random_int(0, i, f"{seed}:{i}")
        pool[i], pool[j] = pool[j], pool[i]
    return pool[:n]


def _phone(seed: str) -> str:
    a = pseudo_random_int(200, 989, seed + ":a")
    b = pseudo_random_int(200, 989, seed + ":b")
    c = pseudo_random_int(0, 9999, seed + ":c")
    return f"({a}) {b:03d}-{c:04d}"


def _name(city: str, seed: str) -> str:
    adj = NAME_ADJECTIVES[pseudo_random_int(0, len(NAME_ADJECTIVES) - 1, seed + ":adj")]
    noun = NAME_NOUNS[pseudo_random_int(0, len(NAME_NOUNS) - 1, seed + ":noun")]
    if pseudo_random_int(0, 1, seed + ":city") == 1:
        return f"{city} {noun}"
    return f"{adj} {noun}"


def synthetic_dealer(index: int, state: str, city: str) -> Dealer:
    seed = f"{state}-{city}-{index}"
    return Dealer(
        id=f"D{index + 1:04d}",
        name=_name(city, seed),
        city=city,
        state=state,
        zip=str(pseudo_random_int(10000, 99999, f"{state}|{city}|{index}")),
        brands=tuple(pick_n(BRANDS, pseudo_random_int(1, 3, seed + ":brands"), seed)),
        phone=_phone(seed),
        is_new=pseudo_random_int(0, 1, seed + ":new") == 1,
        is_used=True,
    )


def generate_dealers(per_state: int = 15) -> List[Dealer]:
    """Synthetic dealers, ``per_state`` for each of the 50 states. Same output every run."""
    dealers = []
    counter = 0
    for state, cities in STATES:
        for i in range(per_state):
            city = cities[pseudo_random_int(0, len(cities) - 1, f"{state}:{i}")]
            dealers.append(synthetic_dealer(counter, state, city))
            counter += 1
    return dealers


def seed_catalog(store: DealerStore) -> None:
    for name in DEMO_MAKES:
        store.add_make(Make(id=str(uuid.uuid4()), name=name))
    for make, name in DEMO_MODELS:
        store.add_model(CarModel(id=str(uuid.uuid4()), make=make, name=name))


def seed_reviews(store: DealerStore, now: Optional[datetime] = None) -> int:
    """Three reviews per dealer from the demo user; returns how many were added."""
    now = now or datetime.now()
    added = 0
    for idx, dealer in enumerate(store.snapshot()):
        base = SAMPLE_REVIEWS[idx % len(SAMPLE_REVIEWS)]
        texts = [base["review"]] + FOLLOW_UP_REVIEWS
        for k, text in enumerate(texts):
            purchase = bool(base.get("purchase"))
            store.add_review(Review(
                id=str(uuid.uuid4()),
                dealer_id=dealer.id,
                user_id=DEMO_USER_ID,
                user_name=DEMO_USER_NAME,
                review=text,
                rating=max(3, min(5, base["rating"] - 1 + k)),
                time=now - timedelta(days=k + 1),
                purchase=purchase,
                purchase_date="07/11/2020" if purchase else "",
                car_make=base.get("car_make", "Ford"),
                car_model=base.get("car_model", "F-150"),
                car_year=base.get("car_year", 2019),
            ))
            added += 1
    return added


def build_demo_store(dealers: Optional[List[Dealer]] = None, with_reviews: bool = True) -> DealerStore:
    """Store loaded with ``dealers`` (demo dealers by default), the catalog and sample reviews."""
    store = DealerStore(list(DEMO_DEALERS) if dealers is None else dealers)
    seed_catalog(store)
    if with_reviews:
        seed_reviews(store)
    return store
