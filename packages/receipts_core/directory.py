"""User directory lookups used to label receipts with employee names."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .receipts import NormalizedReceipt, first_key, first_text

logger = logging.getLogger(__name__)

USER_KEY_FIELDS = ("Id", "id", "UserID", "UserId")
USER_NAME_FIELDS = ("Name", "FullName", "Username", "Email")
UNKNOWN_EMPLOYEE = "Unknown"


@dataclass(slots=True, frozen=True)
class ResolvedUser:
    """Directory entry keyed by the user's identifier."""

    key: str
    display_name: str


Directory = Dict[str, ResolvedUser]


def build_directory(users: Optional[Iterable[Any]]) -> Directory:
    """Index ``users`` by the string form of their identifier.

    ``None`` behaves like an empty collection. Rows that are not mappings or
    carry no identifier are skipped, and the first row seen for a key wins.
    """

    directory: Directory = {}
    if users is None:
        return directory
    skipped = 0
    for user in users:
        if not isinstance(user, Mapping):
            skipped += 1
            continue
        key = first_key(user, USER_KEY_FIELDS)
        if key is None:
            skipped += 1
            continue
        directory.setdefault(
            key, ResolvedUser(key=key, display_name=first_text(user, USER_NAME_FIELDS))
        )
    if skipped:
        logger.debug("Skipped %d user rows without a usable identifier.", skipped)
    return directory


def resolve_display_name(
    owner_key: Optional[str],
    directory: Mapping[str, ResolvedUser],
    receipt_fallback: Sequence[str] = (),
) -> str:
    """Return the name shown for a receipt owner.

    Directory hits win; otherwise the first non-empty hint carried on the
    receipt is used, and ``"Unknown"`` when there is none. The owner key
    itself is never used as a display name.
    """

    if owner_key is not None:
        user = directory.get(owner_key)
        if user is not None and user.display_name:
            return user.display_name
    for hint in receipt_fallback:
        if hint:
            return hint
    return UNKNOWN_EMPLOYEE


def join_display_names(
    receipts: Iterable[NormalizedReceipt], directory: Mapping[str, ResolvedUser]
) -> List[NormalizedReceipt]:
    """Return copies of ``receipts`` with ``display_name`` filled in."""

    return [
        replace(
            receipt,
            display_name=resolve_display_name(
                receipt.owner_key, directory, receipt.name_hints
            ),
        )
        for receipt in receipts
    ]
