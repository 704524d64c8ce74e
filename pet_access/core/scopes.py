"""Scope catalog for delegated pet access.

A scope is an atomic capability a pet owner can hand to a delegate.
The set is closed: anything outside ``VALID_SCOPES`` is rejected.
"""

from collections.abc import Iterable
from enum import Enum


class Scope(str, Enum):
    """Capabilities that can be delegated over a single pet."""

    PET_READ = "pet:read"  # Read the pet profile
    PET_EDIT_PROFILE = "pet:edit_profile"  # Edit the pet profile
    EVENTS_READ = "events:read"  # Read the clinical timeline
    EVENTS_CREATE = "events:create"  # Record new clinical events
    EVENTS_VOID = "events:void"  # Void existing clinical events
    ATTACHMENTS_ADD = "attachments:add"  # Attach files to the history


VALID_SCOPES: frozenset[str] = frozenset(scope.value for scope in Scope)

# Applied when an invite names no scopes: enough to view profile and timeline.
# Product policy, confirm before widening.
DEFAULT_SCOPES: frozenset[Scope] = frozenset({Scope.PET_READ, Scope.EVENTS_READ})


def is_valid_scope(scope: str) -> bool:
    """Return True if ``scope`` belongs to the catalog."""
    return scope in VALID_SCOPES


def normalize_scopes(scopes: Iterable[str] | None) -> list[str]:
    """Trim, drop blanks and dedupe requested scopes, keeping first-seen order."""
    seen: set[str] = set()
    out: list[str] = []
    for raw in scopes or ():
        scope = str(raw.value if isinstance(raw, Scope) else raw).strip()
        if not scope or scope in seen:
            continue
        seen.add(scope)
        out.append(scope)
    return out
