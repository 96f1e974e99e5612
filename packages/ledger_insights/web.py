"""FastAPI application exposing the forecast and anomaly queries.

Routes
------
- ``GET /api/forecast/ping``: liveness check, no auth.
- ``GET /api/forecast``: per-category forecasts with confidence bands.
- ``GET /api/anomalies``: flagged months, sorted ascending.

Numeric query parameters are accepted as strings and clamped by the service
layer; malformed values fall back to defaults rather than producing 422s.
Errors are JSON objects of the form ``{"error": "..."}``.
"""

# Annotations stay eager: FastAPI resolves closure-local dependencies below.
import hmac
import re
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, load_settings
from .logging_setup import get_logger
from .schemas import AnomalyResponse, ErrorOut, ForecastResponse
from .service import (
    AnomalyQuery,
    FeatureDisabledError,
    ForecastQuery,
    LedgerReader,
    run_anomalies,
    run_forecast,
)

logger = get_logger(__name__)

type StoreFactory = Callable[[], AbstractContextManager[LedgerReader]]

_BEARER_RE = re.compile(r"^Bearer\s+(.+)$", re.IGNORECASE)
_ERROR_RESPONSES: dict[int | str, dict] = {
    401: {"model": ErrorOut},
    403: {"model": ErrorOut},
    500: {"model": ErrorOut},
}


class ApiError(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def database_store_factory(settings: Settings) -> StoreFactory:
    """Open one DB session per request and wrap it in a ``LedgerStore``."""

    @contextmanager
    def factory() -> Iterator[LedgerReader]:
        # Deferred so importing the web module does not require the db package.
        from db.client import session_scope

        from .store import LedgerStore

        with session_scope(database_url=settings.database_url) as session:
            yield LedgerStore(session, base_currency=settings.base_currency)

    return factory


def create_app(
    settings: Settings | None = None,
    store_factory: "StoreFactory | None" = None,
) -> FastAPI:
    """Build the API app. Defaults read settings from the environment."""

    settings = settings or load_settings()
    store_factory = store_factory or database_store_factory(settings)

    app = FastAPI(title="Ledger Insights API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"],
    )

    @app.exception_handler(ApiError)
    async def _api_error(_request: Request, exc: ApiError) -> JSONResponse:
        return _error(exc.status_code, exc.message)

    def require_auth(authorization: Annotated[str | None, Header()] = None) -> None:
        # No configured token means development mode: everything is allowed.
        if not settings.auth_token:
            return
        m = _BEARER_RE.match(authorization or "")
        if m and hmac.compare_digest(m.group(1).strip(), settings.auth_token):
            return
        raise ApiError(401, "Unauthorized")

    def get_store() -> Iterator[LedgerReader]:
        with store_factory() as store:
            yield store

    @app.get("/api/forecast/ping")
    def forecast_ping() -> dict[str, bool]:
        return {"ok": True}

    @app.get(
        "/api/forecast",
        response_model=ForecastResponse,
        response_model_exclude_unset=True,
        responses=_ERROR_RESPONSES,
        dependencies=[Depends(require_auth)],
    )
    def forecast(
        store: Annotated[LedgerReader, Depends(get_store)],
        chat_id: Annotated[str | None, Query(alias="chatId")] = None,
        category: str | None = None,
        months: str | None = None,
        method: str | None = None,
        h: str | None = None,
    ):
        try:
            query = ForecastQuery.from_params(
                chat_id=chat_id,
                category=category,
                months=months,
                method=method,
                h=h,
                default_method=settings.forecast_method,
            )
            payload = run_forecast(store, settings, query)
            return ForecastResponse.model_validate(payload)
        except FeatureDisabledError as e:
            return _error(403, str(e))
        except Exception as e:
            logger.exception("api: /api/forecast failed")
            return _error(500, str(e) or e.__class__.__name__)

    @app.get(
        "/api/anomalies",
        response_model=AnomalyResponse,
        response_model_exclude_unset=True,
        responses=_ERROR_RESPONSES,
        dependencies=[Depends(require_auth)],
    )
    def anomalies(
        store: Annotated[LedgerReader, Depends(get_store)],
        chat_id: Annotated[str | None, Query(alias="chatId")] = None,
        category: str | None = None,
        months: str | None = None,
        window: str | None = None,
        z: str | None = None,
    ):
        try:
            query = AnomalyQuery.from_params(
                chat_id=chat_id, category=category, months=months, window=window, z=z
            )
            payload = run_anomalies(store, settings, query)
            return AnomalyResponse.model_validate(payload)
        except FeatureDisabledError as e:
            return _error(403, str(e))
        except Exception as e:
            logger.exception("api: /api/anomalies failed")
            return _error(500, str(e) or e.__class__.__name__)

    logger.info("api: /api/forecast and /api/anomalies routes registered")
    return app


__all__ = ["ApiError", "StoreFactory", "create_app", "database_store_factory"]
