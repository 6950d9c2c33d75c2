# tests/unit/adapters/uow/test_in_memory_uow.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT

from __future__ import annotations

import pytest

from finstatements.adapters.repositories.in_memory_repositories import (
    InMemoryCompaniesRepository,
    InMemoryRawRecordsRepository,
    InMemoryStatementStore,
)
from finstatements.adapters.uow.in_memory_uow import InMemoryUnitOfWork
from finstatements.application.uow import UnitOfWork, run_in_uow
from finstatements.domain.entities.raw_record import PeriodKey, YearCorrection
from finstatements.domain.enums.statements import PeriodFamily
from finstatements.domain.exceptions.statements import RecordMappingError
from finstatements.domain.interfaces.repositories.companies_repository import (
    CompaniesRepository,
)
from finstatements.domain.interfaces.repositories.raw_records_repository import (
    RawRecordsRepository,
)

_CORRECTION = YearCorrection(record_id="12", company_id="1", period=PeriodKey(2022, 0), new_year=2021)


def test_satisfies_unit_of_work_protocol(store: InMemoryStatementStore) -> None:
    assert isinstance(InMemoryUnitOfWork(store), UnitOfWork)
    assert not isinstance(store, UnitOfWork)


@pytest.mark.asyncio
async def test_run_in_uow_commits_and_returns_result(store: InMemoryStatementStore) -> None:
    uow = InMemoryUnitOfWork(store)

    async def _correct(tx: UnitOfWork) -> str:
        await tx.get_repository(RawRecordsRepository).apply_year_correction(_CORRECTION)
        return "done"

    assert await run_in_uow(uow, _correct) == "done"
    assert store.rows["12"]["Year"] == 2021
    assert (uow.commits, uow.rollbacks) == (1, 0)


@pytest.mark.asyncio
async def test_staged_correction_visible_in_session_and_written_on_commit(
    store: InMemoryStatementStore,
) -> None:
    uow = InMemoryUnitOfWork(store)

    async with uow as tx:
        repo = tx.get_repository(RawRecordsRepository)
        assert isinstance(repo, InMemoryRawRecordsRepository)
        assert tx.get_repository(RawRecordsRepository) is repo

        await repo.apply_year_correction(_CORRECTION)
        records = {r.record_id: r for r in await repo.list_raw_records("1")}
        assert records["12"].period == PeriodKey(2021, 0)
        assert store.rows["12"]["Year"] == 2022

        await tx.commit()

    assert store.rows["12"]["Year"] == 2021
    assert uow.commits == 1


@pytest.mark.asyncio
async def test_leaving_without_commit_discards_staged(store: InMemoryStatementStore) -> None:
    uow = InMemoryUnitOfWork(store)

    async with uow as tx:
        await tx.get_repository(RawRecordsRepository).apply_year_correction(_CORRECTION)

    assert store.rows["12"]["Year"] == 2022
    assert uow.commits == 0


@pytest.mark.asyncio
async def test_exception_rolls_back(store: InMemoryStatementStore) -> None:
    uow = InMemoryUnitOfWork(store)

    async def _fail(tx: UnitOfWork) -> None:
        await tx.get_repository(RawRecordsRepository).apply_year_correction(_CORRECTION)
        raise ValueError("stop")

    with pytest.raises(ValueError):
        await run_in_uow(uow, _fail)

    assert store.rows["12"]["Year"] == 2022
    assert uow.rollbacks >= 1
    assert uow.commits == 0


@pytest.mark.asyncio
async def test_nested_use_is_rejected(store: InMemoryStatementStore) -> None:
    uow = InMemoryUnitOfWork(store)
    async with uow:
        with pytest.raises(RuntimeError):
            await uow.__aenter__()


@pytest.mark.asyncio
async def test_repository_access_requires_session(store: InMemoryStatementStore) -> None:
    uow = InMemoryUnitOfWork(store)

    with pytest.raises(RuntimeError):
        uow.get_repository(RawRecordsRepository)
    with pytest.raises(RuntimeError):
        await uow.commit()

    async with uow as tx:
        assert isinstance(tx.get_repository(CompaniesRepository), InMemoryCompaniesRepository)
        with pytest.raises(KeyError):
            tx.get_repository(dict)


@pytest.mark.asyncio
async def test_family_filter_and_unknown_record(store: InMemoryStatementStore) -> None:
    async with InMemoryUnitOfWork(store) as tx:
        repo = tx.get_repository(RawRecordsRepository)

        quarterly = await repo.list_raw_records("1", PeriodFamily.QUARTERLY)
        annual = await repo.list_raw_records("1", PeriodFamily.ANNUAL)
        assert [r.record_id for r in quarterly] == ["13"]
        assert sorted(r.record_id for r in annual) == ["10", "11", "12"]

        with pytest.raises(RecordMappingError):
            await repo.apply_year_correction(
                YearCorrection(record_id="20", company_id="1", period=PeriodKey(2023, 0), new_year=2022)
            )


@pytest.mark.asyncio
@pytest.mark.parametrize(("query", "company_id"), [("aapl", "1"), ("beta corp", "2"), ("", None), ("ZZZ", None)])
async def test_company_resolution(store: InMemoryStatementStore, query: str, company_id: str | None) -> None:
    company = await InMemoryCompaniesRepository(store).resolve_company(query)
    assert (company.company_id if company else None) == company_id


def test_dataset_round_trip(store: InMemoryStatementStore) -> None:
    store.set_year("12", 2021)
    reloaded = InMemoryStatementStore.from_dataset(store.to_dataset())

    assert reloaded.rows["12"]["Year"] == 2021
    assert [c.symbol for c in reloaded.companies] == ["AAPL", "BETA"]
    with pytest.raises(RecordMappingError):
        store.add_row({"CompanyID": "1"})


@pytest.mark.parametrize(
    "payload",
    [
        {"companies": [{"Name": "No Id Corp", "Symbol": "NOID"}]},
        {"companies": ["AAPL"]},
        {"companies": {"CompanyID": "1"}},
        {"records": [["10", "1", 2022]]},
        {"records": [{"CompanyID": "1", "Year": 2022}]},
    ],
)
def test_malformed_dataset_raises_mapping_error(payload: dict[str, object]) -> None:
    with pytest.raises(RecordMappingError):
        InMemoryStatementStore.from_dataset(payload)
