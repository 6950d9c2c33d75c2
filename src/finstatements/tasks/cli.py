# src/finstatements/tasks/cli.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Finstatements CLI: render statement tables and fix duplicate periods.

Commands:
    render   Normalize a company's reports from a dataset file and print the
             statement tables as JSON.
    dedupe   Re-key duplicate-period records of a company and write the
             dataset back.

Dataset:
    A JSON file with ``companies`` and ``records`` lists; see
    ``InMemoryStatementStore`` for the layout.

Environment:
    ANNUAL_WINDOW_YEARS / QUARTERLY_WINDOW_QUARTERS   Window sizes.
    PRICE_LOOKUP_ENABLED                             Default for ``--price``.
    TWELVEDATA_API_KEY                               Needed for price lookups.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError

from finstatements.adapters.gateways.twelvedata_price_gateway import TwelveDataPriceGateway
from finstatements.adapters.presenters.statements_presenter import StatementsPresenter
from finstatements.adapters.repositories.in_memory_repositories import InMemoryStatementStore
from finstatements.adapters.uow.in_memory_uow import InMemoryUnitOfWork
from finstatements.application.use_cases.statements.get_statement_tables import (
    GetStatementTablesRequest,
    GetStatementTablesUseCase,
)
from finstatements.application.use_cases.statements.resolve_duplicate_periods import (
    ResolveDuplicatePeriodsRequest,
    ResolveDuplicatePeriodsUseCase,
)
from finstatements.config.settings import Settings, get_settings
from finstatements.domain.enums.statements import PeriodFamily
from finstatements.domain.exceptions.statements import (
    CompanyNotFoundError,
    NoStatementDataError,
    RecordMappingError,
    StatementNormalizationError,
)
from finstatements.domain.interfaces.repositories.companies_repository import (
    CompaniesRepository,
)
from finstatements.infrastructure.external_apis.twelvedata.client import TwelveDataClient
from finstatements.infrastructure.external_apis.twelvedata.settings import TwelveDataSettings
from finstatements.infrastructure.logging.logger import (
    configure_root_logging,
    get_json_logger,
    run_context,
)
from finstatements.infrastructure.observability.metrics import PrometheusRunObserver

log = get_json_logger(__name__)

app = typer.Typer(add_completion=False, no_args_is_help=True)


@app.callback()
def main() -> None:
    """Financial statement normalization tools."""
    configure_root_logging(get_settings().log_level)


def _load_store(dataset: Path) -> InMemoryStatementStore:
    try:
        payload: Any = json.loads(dataset.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        typer.echo(f"Cannot read dataset {dataset}: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    if not isinstance(payload, dict):
        typer.echo(f"Dataset {dataset} must be a JSON object.", err=True)
        raise typer.Exit(code=2)
    try:
        return InMemoryStatementStore.from_dataset(payload)
    except RecordMappingError as exc:
        typer.echo(f"Invalid dataset {dataset}: {exc.message}", err=True)
        raise typer.Exit(code=2) from exc


def _price_client(settings: Settings, requested: bool | None) -> TwelveDataClient | None:
    enabled = settings.price_lookup_enabled if requested is None else requested
    if not enabled:
        return None
    try:
        return TwelveDataClient(TwelveDataSettings())
    except ValidationError:
        log.warning("cli.price.disabled", extra={"reason": "missing TWELVEDATA settings"})
        return None


@app.command("render")
def render(
    dataset: Path = typer.Argument(..., exists=True, dir_okay=False, help="Dataset JSON file."),  # noqa: B008
    company: str = typer.Option(..., "--company", "-c", help="Company name or symbol."),  # noqa: B008
    data_type: str = typer.Option("annual", "--data-type", help='"annual" or "quarterly".'),  # noqa: B008
    mode: str = typer.Option("basic", help='"basic" or "enhanced".'),  # noqa: B008
    price: bool | None = typer.Option(None, "--price/--no-price", help="Fetch the latest price."),  # noqa: B008
    validate_merges: bool = typer.Option(False, help="Report merge conflicts."),  # noqa: B008
    output: Path | None = typer.Option(None, "--output", "-o", help="Write JSON here."),  # noqa: B008
    write_corrections: bool = typer.Option(
        True, help="Write duplicate-period corrections back to the dataset."
    ),  # noqa: B008
) -> None:
    """Print normalized statement tables for one company as JSON."""
    settings = get_settings()
    store = _load_store(dataset)
    before = store.to_dataset()
    client = _price_client(settings, price)

    async def _run() -> str:
        uow = InMemoryUnitOfWork(store)
        uc = GetStatementTablesUseCase(
            uow,
            price_gateway=TwelveDataPriceGateway(client) if client is not None else None,
            observer=PrometheusRunObserver(),
            annual_window=settings.annual_window_years,
            quarterly_window=settings.quarterly_window_quarters,
        )
        try:
            with run_context(company=company):
                result = await uc.execute(
                    GetStatementTablesRequest(
                        company=company,
                        data_type=data_type,
                        mode=mode,
                        include_price=client is not None,
                        validate_merges=validate_merges,
                    )
                )
        finally:
            if client is not None:
                await client.aclose()
        return StatementsPresenter().render_json(result)

    try:
        text = asyncio.run(_run())
    except (CompanyNotFoundError, NoStatementDataError) as exc:
        typer.echo(f"{exc.code}: {exc.message}", err=True)
        raise typer.Exit(code=1) from exc
    except StatementNormalizationError as exc:
        typer.echo(f"{exc.code}: {exc.message}", err=True)
        raise typer.Exit(code=3) from exc

    if write_corrections and store.to_dataset() != before:
        dataset.write_text(json.dumps(store.to_dataset(), indent=2), encoding="utf-8")

    if output is not None:
        output.write_text(text, encoding="utf-8")
        log.info("cli.render.written", extra={"path": str(output)})
    else:
        typer.echo(text)


@app.command("dedupe")
def dedupe(
    dataset: Path = typer.Argument(..., exists=True, dir_okay=False, help="Dataset JSON file."),  # noqa: B008
    company: str = typer.Option(..., "--company", "-c", help="Company name or symbol."),  # noqa: B008
    data_type: str | None = typer.Option(
        None, "--data-type", help='Restrict to "annual" or "quarterly".'
    ),  # noqa: B008
    dry_run: bool = typer.Option(False, help="Report corrections without writing them."),  # noqa: B008
) -> None:
    """Re-key duplicate-period records of one company and save the dataset."""
    store = _load_store(dataset)
    family = PeriodFamily.parse(data_type) if data_type is not None else None
    uow = InMemoryUnitOfWork(store)

    async def _run() -> list[dict[str, str]]:
        async with uow as tx:
            companies = tx.get_repository(CompaniesRepository)
            ref = await companies.resolve_company(company)
        if ref is None:
            raise CompanyNotFoundError("Company not found.", details={"company": company})

        uc = ResolveDuplicatePeriodsUseCase(uow, observer=PrometheusRunObserver())
        with run_context(company=company):
            result = await uc.execute(
                ResolveDuplicatePeriodsRequest(company_id=ref.company_id, family=family)
            )
        return [
            {
                "record_id": c.record_id,
                "from": c.period.composite_key,
                "to": c.new_period.composite_key,
            }
            for c in result.corrections
        ]

    try:
        corrections = asyncio.run(_run())
    except CompanyNotFoundError as exc:
        typer.echo(f"{exc.code}: {exc.message}", err=True)
        raise typer.Exit(code=1) from exc
    except RecordMappingError as exc:
        typer.echo(f"{exc.code}: {exc.message}", err=True)
        raise typer.Exit(code=2) from exc

    written = bool(corrections) and not dry_run
    if written:
        dataset.write_text(json.dumps(store.to_dataset(), indent=2), encoding="utf-8")
    typer.echo(json.dumps({"corrections": corrections, "written": written}))


if __name__ == "__main__":
    app()
