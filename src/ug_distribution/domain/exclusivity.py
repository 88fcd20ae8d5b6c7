"""Solo-upgrade exclusivity rules.

A solo upgrade (e.g. "exclusive") can never be combined with any other
upgrade on the same release. These helpers are shared by the cart (to decide
what is toggleable) and by the reconciler (to refuse an invalid write).
"""

from collections.abc import Iterable
from collections.abc import Set as AbstractSet
from enum import Enum

from src.ug_common.errors import ExclusivityViolation


class BlockReason(str, Enum):
    PURCHASED = "purchased"                    # already in the release's distribution
    SOLO_PURCHASED = "solo_purchased"          # a solo upgrade is already on the release
    SOLO_AFTER_COMBINABLE = "solo_after_combinable"  # solo blocked by a persisted add-on


def find_violation(tokens: Iterable[str], solo_types: AbstractSet[str]) -> str | None:
    """Return a human-readable description of the conflict, or None if valid."""
    token_set = set(tokens)
    solos = sorted(token_set & solo_types)
    if not solos or len(token_set) == 1:
        return None
    others = sorted(token_set - {solos[0]})
    return f"{solos[0]} cannot be combined with {', '.join(others)}"


def ensure_exclusive(tokens: Iterable[str], solo_types: AbstractSet[str]) -> None:
    violation = find_violation(tokens, solo_types)
    if violation is not None:
        raise ExclusivityViolation(violation)


def persisted_block_reason(
    product_type: str,
    persisted: AbstractSet[str],
    solo_types: AbstractSet[str],
) -> BlockReason | None:
    """Why ``product_type`` cannot be selected given what the release already has."""
    if product_type in persisted:
        return BlockReason.PURCHASED
    if persisted & solo_types:
        return BlockReason.SOLO_PURCHASED
    if product_type in solo_types and persisted:
        return BlockReason.SOLO_AFTER_COMBINABLE
    return None
