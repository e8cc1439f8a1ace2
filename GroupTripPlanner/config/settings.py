"""
Settings Module

Runtime configuration for the group trip planner, read once from environment
variables.

Environment Variables:
    TRIP_MEMBERS: Comma-separated member names (default: the seven travellers).
    TRIP_TOTAL_CASH: Size of the shared cash pool in baht (default: 70000).
    SETTLE_EPSILON: Tolerance below which a balance counts as settled (default: 0.5).
    SETTLE_MAX_ITERATIONS: Iteration cap for debt simplification (default: 100).
    FIREBASE_CREDENTIALS: Path to a service-account JSON file (optional).
    FIREBASE_PROJECT_ID: Firebase project ID (optional).
    LOG_LEVEL: Logging level name (default: INFO).
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


DEFAULT_MEMBERS = (
    "Mahendra", "Namrata", "Ishmeet", "Meghana", "Unmesh", "Harish", "Swaroop",
)


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    members: tuple[str, ...]
    total_cash: float
    settle_epsilon: float
    settle_max_iterations: int
    firebase_credentials: Optional[str]
    firebase_project_id: Optional[str]
    log_level: str


def _parse_members(raw: Optional[str]) -> tuple[str, ...]:
    """
    Parse a comma-separated member list.

    Blank entries are dropped and duplicates collapse to their first
    occurrence.

    Raises:
        ValueError: If the list ends up empty.
    """
    if raw is None:
        return DEFAULT_MEMBERS

    members = []
    for name in raw.split(","):
        name = name.strip()
        if name and name not in members:
            members.append(name)

    if not members:
        raise ValueError("TRIP_MEMBERS must name at least one member")
    return tuple(members)


def _read_number(name: str, default, cast):
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got: {raw}")


def load_settings() -> Settings:
    """
    Build Settings from the current environment.

    Raises:
        ValueError: If a numeric variable cannot be parsed or is out of range.
    """
    epsilon = _read_number("SETTLE_EPSILON", 0.5, float)
    if epsilon < 0:
        raise ValueError(f"SETTLE_EPSILON must be >= 0, got: {epsilon}")

    max_iterations = _read_number("SETTLE_MAX_ITERATIONS", 100, int)
    if max_iterations < 1:
        raise ValueError(f"SETTLE_MAX_ITERATIONS must be >= 1, got: {max_iterations}")

    return Settings(
        members=_parse_members(os.environ.get("TRIP_MEMBERS")),
        total_cash=_read_number("TRIP_TOTAL_CASH", 70_000.0, float),
        settle_epsilon=epsilon,
        settle_max_iterations=max_iterations,
        firebase_credentials=os.environ.get("FIREBASE_CREDENTIALS") or None,
        firebase_project_id=os.environ.get("FIREBASE_PROJECT_ID") or None,
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide Settings, loading them on first use."""
    return load_settings()


def get_members() -> tuple[str, ...]:
    """Shortcut for the configured member universe."""
    return get_settings().members
