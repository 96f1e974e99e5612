# ruff: noqa: I001
"""CLI for the ``ledger_insights`` package.

Command handlers (``cmd_*``) hold the logic and return a process exit code;
the Typer commands below are thin wrappers. Environment variables are loaded
from a local ``.env`` by the root callback before any command runs, and logging
is configured once there as well.

Subcommands
-----------
- ``init-db``: create the ledger tables.
- ``add-entry`` / ``set-fx-rate``: seed the ledger by hand.
- ``forecast`` / ``anomalies``: run the queries the HTTP API exposes.
- ``serve``: start the HTTP API with uvicorn.
"""

from __future__ import annotations

import json
import sys
from dataclasses import replace
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from .config import Settings, load_settings
from .logging_setup import configure_logging, get_logger

logger = get_logger(__name__)
console = Console()


# ---- Small module-level helpers ----------------------------------------------


def _settings(database_url: str | None) -> Settings:
    s = load_settings(dotenv=False)
    if database_url:
        s = replace(s, database_url=database_url)
    return s


def _fmt(v: Any) -> str:
    if v is None:
        return "-"
    if isinstance(v, float):
        return f"{v:,.2f}"
    return str(v)


def _fmt_band(band: list[float] | None) -> str:
    if not band:
        return "-"
    return f"[{band[0]:,.2f}, {band[1]:,.2f}]"


def _parse_when(raw: str | None) -> datetime:
    if not raw:
        return datetime.now(UTC)
    ts = datetime.fromisoformat(raw)
    return ts if ts.tzinfo else ts.replace(tzinfo=UTC)


def render_forecast_table(payload: dict[str, Any]) -> Table:
    table = Table(title=f"Forecast h={payload['h']} ({payload['unit']})")
    table.add_column("Category")
    table.add_column("Method")
    table.add_column("Forecast", justify="right")
    table.add_column("80% CI", justify="right")
    table.add_column("95% CI", justify="right")
    table.add_column("Note")
    for r in payload["results"]:
        if r["ok"]:
            table.add_row(
                r["category"],
                r["method"],
                _fmt(r["forecast"]),
                _fmt_band(r["ci80"]),
                _fmt_band(r["ci95"]),
                "",
            )
        else:
            table.add_row(r["category"], "-", "-", "-", "-", r["reason"])
    return table


def render_anomaly_table(payload: dict[str, Any]) -> Table:
    table = Table(title=f"Anomalies ({payload['unit']})")
    for col in ("Month", "Category", "Method"):
        table.add_column(col)
    for col in ("Actual", "Expected", "z"):
        table.add_column(col, justify="right")
    table.add_column("Note")
    for a in payload["anomalies"]:
        table.add_row(
            a["month"],
            a["category"],
            a["method"],
            _fmt(a["actual"]),
            _fmt(a["expected"]),
            _fmt(a["z"]),
            a.get("note") or "",
        )
    return table


# ---- Command handlers --------------------------------------------------------


def cmd_init_db(*, database_url: str | None = None) -> int:
    """Create the ledger tables in the configured database."""

    from db.client import create_schema

    settings = _settings(database_url)
    if settings.database_url.startswith("sqlite") and ":///" in settings.database_url:
        db_path = settings.database_url.split(":///", 1)[1]
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    try:
        create_schema(database_url=settings.database_url)
    except Exception as e:
        print(f"Error: failed to initialize database: {e}", file=sys.stderr)
        return 1
    console.print(f"[green]Initialized[/green] {settings.database_url}")
    return 0


def cmd_add_entry(
    *,
    chat_id: str,
    amount: str,
    description: str | None,
    code: str = "F",
    currency: str | None = None,
    when: str | None = None,
    category: str | None = None,
    database_url: str | None = None,
) -> int:
    """Insert one ledger entry."""

    from db.client import session_scope

    from .store import LedgerStore

    settings = _settings(database_url)
    try:
        created_at = _parse_when(when)
    except ValueError as e:
        print(f"Error: invalid --when value: {e}", file=sys.stderr)
        return 1
    try:
        with session_scope(database_url=settings.database_url) as session:
            store = LedgerStore(session, base_currency=settings.base_currency)
            entry = store.add_entry(
                chat_id=chat_id,
                amount=amount,
                description=description,
                code=code,
                currency=currency,
                created_at=created_at,
                category=category,
            )
            entry_id = entry.id
    except Exception as e:
        print(f"Error: failed to add entry: {e}", file=sys.stderr)
        return 1
    console.print(f"[green]Added[/green] entry #{entry_id}")
    return 0


def cmd_set_fx_rate(
    on_date: str, currency: str, rate: str, *, database_url: str | None = None
) -> int:
    """Insert or replace an FX rate to the base currency."""

    from db.client import session_scope

    from .store import LedgerStore

    settings = _settings(database_url)
    try:
        d = date.fromisoformat(on_date)
    except ValueError:
        print(f"Error: invalid date {on_date!r}; expected YYYY-MM-DD", file=sys.stderr)
        return 1
    try:
        with session_scope(database_url=settings.database_url) as session:
            LedgerStore(session, base_currency=settings.base_currency).set_fx_rate(
                d, currency, rate
            )
    except Exception as e:
        print(f"Error: failed to set FX rate: {e}", file=sys.stderr)
        return 1
    console.print(f"[green]Set[/green] {currency.upper()} on {d.isoformat()} = {rate}")
    return 0


def _run_query(kind: str, params: dict[str, Any], *, database_url: str | None, as_json: bool) -> int:
    from db.client import session_scope

    from .service import (
        AnomalyQuery,
        FeatureDisabledError,
        ForecastQuery,
        run_anomalies,
        run_forecast,
    )
    from .store import LedgerStore

    settings = _settings(database_url)
    try:
        with session_scope(database_url=settings.database_url) as session:
            store = LedgerStore(session, base_currency=settings.base_currency)
            if kind == "forecast":
                query = ForecastQuery.from_params(
                    **params, default_method=settings.forecast_method
                )
                payload = run_forecast(store, settings, query)
            else:
                payload = run_anomalies(store, settings, AnomalyQuery.from_params(**params))
    except FeatureDisabledError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        logger.debug("cli: %s failed", kind, exc_info=True)
        print(f"Error: {kind} failed: {e}", file=sys.stderr)
        return 1

    if as_json:
        print(json.dumps(payload, indent=2))
    elif kind == "forecast":
        console.print(render_forecast_table(payload))
    else:
        console.print(render_anomaly_table(payload))
    return 0


def cmd_forecast(
    *,
    chat_id: str | None = None,
    category: str | None = None,
    months: int | None = None,
    method: str | None = None,
    h: int | None = None,
    database_url: str | None = None,
    as_json: bool = False,
) -> int:
    """Forecast next-month spending per category."""

    params = {"chat_id": chat_id, "category": category, "months": months, "method": method, "h": h}
    return _run_query("forecast", params, database_url=database_url, as_json=as_json)


def cmd_anomalies(
    *,
    chat_id: str | None = None,
    category: str | None = None,
    months: int | None = None,
    window: int | None = None,
    z: float | None = None,
    database_url: str | None = None,
    as_json: bool = False,
) -> int:
    """List outlier months per category."""

    params = {"chat_id": chat_id, "category": category, "months": months, "window": window, "z": z}
    return _run_query("anomalies", params, database_url=database_url, as_json=as_json)


def cmd_serve(*, host: str | None = None, port: int | None = None) -> int:
    """Serve the HTTP API with uvicorn."""

    import uvicorn

    from .web import create_app

    settings = load_settings(dotenv=False)
    configure_logging(settings.log_level, include_uvicorn=True)
    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
    )
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Spending forecasts and anomaly detection over a personal ledger.",
)

DATABASE_URL_OPTION = typer.Option(None, help="Override DATABASE_URL (falls back to env var).")
CHAT_ID_OPTION = typer.Option(None, "--chat-id", help="Restrict to one chat (default: all).")
CATEGORY_OPTION = typer.Option(None, help="Category code or name (default: all).")
JSON_OPTION = typer.Option(False, "--json", help="Print the raw JSON payload.")


@app.command("init-db")
def init_db_cmd(database_url: str | None = DATABASE_URL_OPTION) -> None:
    """Create the ledger tables."""

    raise typer.Exit(cmd_init_db(database_url=database_url))


@app.command("add-entry")
def add_entry_cmd(
    chat_id: str = typer.Option(..., "--chat-id", help="Chat the entry belongs to."),
    amount: str = typer.Option(..., help="Amount in the entry currency."),
    description: str | None = typer.Option(None, help="Free text; first word is the category."),
    code: str = typer.Option("F", help="Entry code (XFER marks transfers, SAL/INC income)."),
    currency: str | None = typer.Option(None, help="ISO currency (default: base currency)."),
    when: str | None = typer.Option(None, help="ISO timestamp (default: now, UTC)."),
    category: str | None = typer.Option(None, help="Explicit category label."),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Insert one ledger entry."""

    raise typer.Exit(
        cmd_add_entry(
            chat_id=chat_id,
            amount=amount,
            description=description,
            code=code,
            currency=currency,
            when=when,
            category=category,
            database_url=database_url,
        )
    )


@app.command("set-fx-rate")
def set_fx_rate_cmd(
    on_date: str = typer.Argument(..., help="Rate date (YYYY-MM-DD)."),
    currency: str = typer.Argument(..., help="ISO currency code."),
    rate: str = typer.Argument(..., help="Units of base currency per unit of CURRENCY."),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Record an FX rate to the base currency."""

    raise typer.Exit(cmd_set_fx_rate(on_date, currency, rate, database_url=database_url))


@app.command("forecast")
def forecast_cmd(
    chat_id: str | None = CHAT_ID_OPTION,
    category: str | None = CATEGORY_OPTION,
    months: int | None = typer.Option(None, help="History window, 3-60 (default 24)."),
    method: str | None = typer.Option(None, help="auto, lr or hw (default: FORECAST_METHOD)."),
    h: int | None = typer.Option(None, "--h", help="Horizon in months, 1-12 (default 1)."),
    database_url: str | None = DATABASE_URL_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """Forecast spending per category."""

    raise typer.Exit(
        cmd_forecast(
            chat_id=chat_id,
            category=category,
            months=months,
            method=method,
            h=h,
            database_url=database_url,
            as_json=as_json,
        )
    )


@app.command("anomalies")
def anomalies_cmd(
    chat_id: str | None = CHAT_ID_OPTION,
    category: str | None = CATEGORY_OPTION,
    months: int | None = typer.Option(None, help="History window, 6-60 (default 24)."),
    window: int | None = typer.Option(None, help="Rolling window, 3-24 (default 12)."),
    z: float | None = typer.Option(None, "--z", help="z-score threshold (default 3.0)."),
    database_url: str | None = DATABASE_URL_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """List outlier months per category."""

    raise typer.Exit(
        cmd_anomalies(
            chat_id=chat_id,
            category=category,
            months=months,
            window=window,
            z=z,
            database_url=database_url,
            as_json=as_json,
        )
    )


@app.command("serve")
def serve_cmd(
    host: str | None = typer.Option(None, help="Bind address (default: DASHBOARD_HOST)."),
    port: int | None = typer.Option(None, help="Port (default: DASHBOARD_PORT)."),
) -> None:
    """Serve the HTTP API."""

    raise typer.Exit(cmd_serve(host=host, port=port))


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(load_settings(dotenv=False).log_level)


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    main()
