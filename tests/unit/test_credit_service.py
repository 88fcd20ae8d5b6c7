"""Unit tests for CreditService using the in-memory ledger fake."""

import asyncio

import pytest

from src.ug_common.errors import InsufficientCreditsError
from src.ug_credit.application.service import CreditService, consumption_note
from tests.unit.fakes import FakeCreditRepository

USER = 7
COMPANY = 3


def _service() -> tuple[CreditService, FakeCreditRepository]:
    repo = FakeCreditRepository()
    return CreditService(repo=repo), repo


class TestGetBalance:
    async def test_merges_brand_and_user_scope(self) -> None:
        svc, repo = _service()
        repo.grant(USER, COMPANY, "yahoo", 2)
        repo.grant(USER, None, "yahoo", 1)
        repo.grant(USER, None, "enhanced", 4)

        balance = await svc.get_balance(None, USER, COMPANY)

        assert balance.brand == {"yahoo": 2}
        assert balance.user == {"yahoo": 1, "enhanced": 4}
        assert balance.merged() == {"enhanced": 4, "yahoo": 3}
        assert balance.available("yahoo") == 3

    async def test_other_brand_is_excluded(self) -> None:
        svc, repo = _service()
        repo.grant(USER, 99, "yahoo", 5)
        balance = await svc.get_balance(None, USER, COMPANY)
        assert balance.merged() == {}

    async def test_no_company_means_user_scope_only(self) -> None:
        svc, repo = _service()
        repo.grant(USER, COMPANY, "yahoo", 5)
        repo.grant(USER, None, "yahoo", 1)
        balance = await svc.get_balance(None, USER, None)
        assert balance.merged() == {"yahoo": 1}

    async def test_consumption_rows_reduce_balance(self) -> None:
        svc, repo = _service()
        repo.grant(USER, COMPANY, "yahoo", 2)
        repo.grant(USER, COMPANY, "yahoo", -1)
        assert (await svc.get_balance(None, USER, COMPANY)).available("yahoo") == 1


class TestConsumeCredits:
    async def test_inserts_negative_row_tagged_with_release(self) -> None:
        svc, repo = _service()
        repo.grant(USER, COMPANY, "yahoo", 1)

        entries = await svc.consume_credits(
            None, "yahoo", 1, 42, USER, COMPANY, release_title="Quarterly Results", release_uuid="rel-42"
        )
        repo.release_locks()

        assert len(entries) == 1
        assert entries[0].credits == -1
        assert entries[0].pr_id == 42
        assert entries[0].company_id == COMPANY
        assert entries[0].notes == "Used for PR: Quarterly Results"
        assert (await svc.get_balance(None, USER, COMPANY)).available("yahoo") == 0

    async def test_brand_scope_used_before_user_scope(self) -> None:
        svc, repo = _service()
        repo.grant(USER, COMPANY, "yahoo", 1)
        repo.grant(USER, None, "yahoo", 5)

        entries = await svc.consume_credits(None, "yahoo", 2, 42, USER, COMPANY)
        repo.release_locks()

        assert [(e.company_id, e.credits) for e in entries] == [(COMPANY, -1), (None, -1)]

    async def test_insufficient_writes_nothing(self) -> None:
        svc, repo = _service()
        repo.grant(USER, COMPANY, "yahoo", 1)
        rows_before = len(repo.rows)

        with pytest.raises(InsufficientCreditsError):
            await svc.consume_credits(None, "yahoo", 2, 42, USER, COMPANY)
        repo.release_locks()

        assert len(repo.rows) == rows_before

    async def test_no_company_ignores_brand_rows(self) -> None:
        svc, repo = _service()
        repo.grant(USER, COMPANY, "yahoo", 3)
        with pytest.raises(InsufficientCreditsError):
            await svc.consume_credits(None, "yahoo", 1, 42, USER, None)
        repo.release_locks()

    async def test_concurrent_requests_never_overdraw(self) -> None:
        svc, repo = _service()
        repo.grant(USER, COMPANY, "yahoo", 3)

        async def attempt(release_id: int) -> bool:
            try:
                await svc.consume_credits(None, "yahoo", 1, release_id, USER, COMPANY)
                return True
            except InsufficientCreditsError:
                return False
            finally:
                # End of the request's transaction releases the advisory lock
                repo.release_locks()

        results = await asyncio.gather(*(attempt(100 + i) for i in range(8)))

        assert results.count(True) == 3
        balance = await svc.get_balance(None, USER, COMPANY)
        assert balance.available("yahoo") == 0


class TestConsumptionNote:
    def test_title_is_shortened(self) -> None:
        title = "An Exceptionally Long Press Release Headline"
        assert consumption_note(1, title, "rel-1") == f"Used for PR: {title[:30]}"

    def test_falls_back_to_uuid_then_id(self) -> None:
        assert consumption_note(1, None, "rel-1") == "Used for PR: rel-1"
        assert consumption_note(1, "", None) == "Used for PR: 1"

    def test_fits_column(self) -> None:
        assert len(consumption_note(10**60)) == 48
