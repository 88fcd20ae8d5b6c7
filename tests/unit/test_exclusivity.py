"""Unit tests for solo-upgrade exclusivity rules."""

import pytest

from src.ug_common.errors import ExclusivityViolation
from src.ug_distribution.domain.exclusivity import (
    BlockReason,
    ensure_exclusive,
    find_violation,
    persisted_block_reason,
)

SOLO = frozenset({"exclusive"})


class TestFindViolation:
    def test_combinables_together_are_fine(self) -> None:
        assert find_violation({"yahoo", "enhanced"}, SOLO) is None

    def test_solo_alone_is_fine(self) -> None:
        assert find_violation({"exclusive"}, SOLO) is None

    def test_empty_is_fine(self) -> None:
        assert find_violation(set(), SOLO) is None

    def test_solo_with_other_is_violation(self) -> None:
        detail = find_violation({"exclusive", "yahoo"}, SOLO)
        assert detail is not None
        assert "exclusive" in detail
        assert "yahoo" in detail

    def test_two_solos_is_violation(self) -> None:
        assert find_violation({"exclusive", "spotlight"}, SOLO | {"spotlight"}) is not None

    def test_ensure_raises(self) -> None:
        with pytest.raises(ExclusivityViolation) as exc_info:
            ensure_exclusive({"exclusive", "enhanced"}, SOLO)
        assert exc_info.value.code == 3004
        assert exc_info.value.http_status == 422


class TestPersistedBlockReason:
    def test_nothing_persisted(self) -> None:
        assert persisted_block_reason("yahoo", frozenset(), SOLO) is None
        assert persisted_block_reason("exclusive", frozenset(), SOLO) is None

    def test_already_purchased(self) -> None:
        assert persisted_block_reason("yahoo", frozenset({"yahoo"}), SOLO) == BlockReason.PURCHASED

    def test_solo_purchased_blocks_everything(self) -> None:
        assert (
            persisted_block_reason("yahoo", frozenset({"exclusive"}), SOLO)
            == BlockReason.SOLO_PURCHASED
        )

    def test_solo_blocked_by_persisted_combinable(self) -> None:
        assert (
            persisted_block_reason("exclusive", frozenset({"yahoo"}), SOLO)
            == BlockReason.SOLO_AFTER_COMBINABLE
        )

    def test_combinable_after_combinable_is_allowed(self) -> None:
        assert persisted_block_reason("enhanced", frozenset({"yahoo"}), SOLO) is None
