"""
Documents Module

Per-member checklist for travel paperwork (arrival card, visa on arrival,
India departure documents).

Data Model:
    Status stored at: documents/{section}__{member}
    Fields:
        - section: string (see trip_data.DOCUMENT_SECTIONS)
        - member: member name
        - status: "not_started", "in_progress" or "completed"
        - ref: string or None (application / reference number)
        - updated_at: ISO timestamp

    One document per (section, member); writes overwrite (last write wins).

Functions:
    next_status: Status that follows another in the cycle.
    get_section_statuses: One status per member for a section.
    set_member_status: Write a member's status.
    cycle_member_status: Advance a member's status.
    completed_count: Count completed statuses.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from config.firebase_config import get_db
from config.settings import get_members
from errors import UnknownMember
from trip_data import DOCUMENT_SECTIONS, DOCUMENT_STATUSES


logger = logging.getLogger(__name__)

DOCUMENTS_COLLECTION = "documents"


def _document_id(section: str, member: str) -> str:
    return f"{section}__{member}"


def _validate_section(section: str) -> None:
    if section not in DOCUMENT_SECTIONS:
        raise ValueError(f"section must be one of {sorted(DOCUMENT_SECTIONS)}, got: {section}")


def next_status(status: str) -> str:
    """
    Return the status after `status`: not_started -> in_progress -> completed -> not_started.

    Raises:
        ValueError: If status is unknown.
    """
    if status not in DOCUMENT_STATUSES:
        raise ValueError(f"status must be one of {DOCUMENT_STATUSES}, got: {status}")
    index = DOCUMENT_STATUSES.index(status)
    return DOCUMENT_STATUSES[(index + 1) % len(DOCUMENT_STATUSES)]


def get_section_statuses(section: str, members: Optional[Iterable[str]] = None) -> list[dict]:
    """
    Get one status per member for a document section.

    Members without a stored status are reported as not_started.

    Args:
        section: Document section key.
        members: Member universe; defaults to the configured members.

    Returns:
        list[dict]: {member, status, ref} in member order.

    Raises:
        ValueError: If section is unknown.
        RuntimeError: If Firestore is not available.
    """
    _validate_section(section)
    universe = list(members) if members is not None else list(get_members())

    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")

    stored = {}
    for doc in db.collection(DOCUMENTS_COLLECTION).stream():
        data = doc.to_dict()
        if data.get("section") == section and data.get("member"):
            stored[data["member"]] = data

    statuses = []
    for member in universe:
        data = stored.get(member, {})
        statuses.append({
            "member": member,
            "status": data.get("status", "not_started"),
            "ref": data.get("ref")
        })
    return statuses


def set_member_status(
    section: str,
    member: str,
    status: str,
    ref: Optional[str] = None,
    members: Optional[Iterable[str]] = None
) -> dict:
    """
    Write a member's status for a section, replacing any previous one.

    Raises:
        ValueError: If section or status is unknown.
        UnknownMember: If member is not a trip member.
        RuntimeError: If Firestore is not available.
    """
    _validate_section(section)
    if status not in DOCUMENT_STATUSES:
        raise ValueError(f"status must be one of {DOCUMENT_STATUSES}, got: {status}")
    universe = list(members) if members is not None else list(get_members())
    if member not in universe:
        raise UnknownMember(member)

    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")

    doc_data = {
        "section": section,
        "member": member,
        "status": status,
        "ref": ref.strip() if ref else None,
        "updated_at": datetime.now(timezone.utc).isoformat()
    }
    db.collection(DOCUMENTS_COLLECTION).document(_document_id(section, member)).set(doc_data)
    logger.info("%s %s -> %s", section, member, status)

    return {"member": member, "status": status, "ref": doc_data["ref"]}


def cycle_member_status(
    section: str,
    member: str,
    members: Optional[Iterable[str]] = None
) -> dict:
    """Advance a member's status to the next one in the cycle."""
    _validate_section(section)

    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")

    doc = db.collection(DOCUMENTS_COLLECTION).document(_document_id(section, member)).get()
    current = doc.to_dict() if doc.exists else {}

    return set_member_status(
        section,
        member,
        next_status(current.get("status", "not_started")),
        ref=current.get("ref"),
        members=members
    )


def completed_count(statuses: list[dict]) -> int:
    return sum(1 for s in statuses if s["status"] == "completed")
