"""
Places Module

This module handles the group's list of points of interest.

Features:
    - Add/delete places
    - Mark places visited / not visited
    - Filter by category
    - Count visited places

Data Model:
    Place stored at: places/{place_id}
    Fields:
        - place_id: string (P001, P002, ... format)
        - name: string
        - category: string (see trip_data.PLACE_CATEGORIES)
        - address: string or None
        - maps_url: string or None
        - notes: string or None
        - visited: bool
        - sort_order: int (default 999)
        - created_at: ISO timestamp

Functions:
    add_place: Add a new place.
    list_places: Get places ordered by sort_order, then created_at.
    toggle_visited: Flip a place's visited flag.
    delete_place: Delete a place.
    visited_summary: Count visited places.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Optional

from google.api_core.exceptions import AlreadyExists

from config.firebase_config import get_db
from trip_data import PLACE_CATEGORIES


logger = logging.getLogger(__name__)

PLACES_COLLECTION = "places"
DEFAULT_SORT_ORDER = 999
MAX_ID_ATTEMPTS = 20


class Place:
    """
    Represents a point of interest.

    Attributes:
        place_id (str): Unique identifier in P### format.
        name (str): Name of the place.
        category (str): One of trip_data.PLACE_CATEGORIES.
        address (str | None): Street address.
        maps_url (str | None): Map link.
        notes (str | None): Free-form notes.
        visited (bool): Whether the group has been there.
        sort_order (int): Manual ordering key.
        created_at (str): ISO timestamp.
    """

    def __init__(
        self,
        place_id: str,
        name: str,
        category: str,
        created_at: str,
        address: Optional[str] = None,
        maps_url: Optional[str] = None,
        notes: Optional[str] = None,
        visited: bool = False,
        sort_order: int = DEFAULT_SORT_ORDER
    ):
        self.place_id = place_id
        self.name = name
        self.category = category
        self.address = address
        self.maps_url = maps_url
        self.notes = notes
        self.visited = visited
        self.sort_order = sort_order
        self.created_at = created_at

    def to_dict(self) -> dict:
        """Convert place to dictionary for Firestore storage."""
        return {
            "place_id": self.place_id,
            "name": self.name,
            "category": self.category,
            "address": self.address,
            "maps_url": self.maps_url,
            "notes": self.notes,
            "visited": self.visited,
            "sort_order": self.sort_order,
            "created_at": self.created_at
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Place":
        """Create a Place instance from a dictionary."""
        return cls(
            place_id=data.get("place_id"),
            name=data.get("name"),
            category=data.get("category"),
            address=data.get("address"),
            maps_url=data.get("maps_url"),
            notes=data.get("notes"),
            visited=bool(data.get("visited", False)),
            sort_order=data.get("sort_order", DEFAULT_SORT_ORDER),
            created_at=data.get("created_at")
        )

    def __repr__(self) -> str:
        return f"Place(name='{self.name}', category='{self.category}', visited={self.visited})"


def _generate_next_place_id() -> str:
    """
    Generate the next sequential place ID.

    Format: P001, P002, P003, ...
    """
    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")

    max_num = 0
    pattern = re.compile(r'^P(\d+)$')

    for doc in db.collection(PLACES_COLLECTION).stream():
        match = pattern.match(doc.id)
        if match:
            max_num = max(max_num, int(match.group(1)))

    return f"P{max_num + 1:03d}"


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def add_place(
    name: str,
    category: str,
    address: Optional[str] = None,
    maps_url: Optional[str] = None,
    notes: Optional[str] = None,
    sort_order: int = DEFAULT_SORT_ORDER
) -> Place:
    """
    Add a new place.

    Args:
        name: Name of the place.
        category: One of trip_data.PLACE_CATEGORIES.
        address: Optional street address.
        maps_url: Optional map link.
        notes: Optional notes.
        sort_order: Manual ordering key (default 999 puts it last).

    Returns:
        Place: The stored place.

    Raises:
        ValueError: If name is empty or category is invalid.
        RuntimeError: If Firestore is not available.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValueError("name must be a non-empty string")
    if category not in PLACE_CATEGORIES:
        raise ValueError(f"category must be one of {PLACE_CATEGORIES}, got: {category}")

    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")

    # create() refuses an ID another writer stored first; pick the next one
    for _ in range(MAX_ID_ATTEMPTS):
        place = Place(
            place_id=_generate_next_place_id(),
            name=name.strip(),
            category=category,
            address=_optional_text(address),
            maps_url=_optional_text(maps_url),
            notes=_optional_text(notes),
            visited=False,
            sort_order=sort_order,
            created_at=datetime.now(timezone.utc).isoformat()
        )
        try:
            db.collection(PLACES_COLLECTION).document(place.place_id).create(place.to_dict())
        except AlreadyExists:
            logger.info("Place ID %s was taken concurrently, retrying", place.place_id)
            continue
        logger.info("Added place %s (%s)", place.place_id, place.name)
        return place

    raise RuntimeError("Could not allocate a new place ID")


def list_places(category: Optional[str] = None) -> list[Place]:
    """
    Get places ordered by sort_order, then created_at.

    Args:
        category: Only return places in this category (None = all).

    Raises:
        RuntimeError: If Firestore is not available.
    """
    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")

    places = [
        Place.from_dict(doc.to_dict())
        for doc in db.collection(PLACES_COLLECTION).stream()
    ]
    if category is not None:
        places = [p for p in places if p.category == category]

    places.sort(key=lambda p: (p.sort_order, p.created_at or ""))
    return places


def toggle_visited(place_id: str) -> Place:
    """
    Flip a place's visited flag.

    Raises:
        KeyError: If the place does not exist.
        RuntimeError: If Firestore is not available.
    """
    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")

    doc_ref = db.collection(PLACES_COLLECTION).document(place_id)
    doc = doc_ref.get()
    if not doc.exists:
        raise KeyError(f"Place {place_id} not found")

    data = doc.to_dict()
    data["visited"] = not data.get("visited", False)
    doc_ref.update({"visited": data["visited"]})

    return Place.from_dict(data)


def delete_place(place_id: str) -> None:
    """
    Delete a place.

    Raises:
        KeyError: If the place does not exist.
        RuntimeError: If Firestore is not available.
    """
    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")

    doc_ref = db.collection(PLACES_COLLECTION).document(place_id)
    if not doc_ref.get().exists:
        raise KeyError(f"Place {place_id} not found")
    doc_ref.delete()
    logger.info("Deleted place %s", place_id)


def visited_summary(places: list[Place]) -> dict:
    """Count visited places: {"visited": n, "total": m}."""
    return {
        "visited": sum(1 for p in places if p.visited),
        "total": len(places)
    }
