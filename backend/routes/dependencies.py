"""
Shared route dependencies
The record store backing is chosen once at process start
"""
from fastapi import Depends, HTTPException
from datetime import timedelta
from pathlib import Path
from typing import AsyncGenerator, Optional
import logging

from database import settings, AppSettings, get_session_maker
from app.records.application.ports import RecordStore
from app.records.application.repository import Repositories
from app.records.domain.errors import (
    DomainError,
    InvalidRequest,
    NotFound,
    PermissionDenied,
    PersistenceError,
)
from app.records.infrastructure.exchange_rates import UsdInrRateProvider
from app.records.infrastructure.local_store import LocalJsonRecordStore
from app.records.infrastructure.sqlalchemy_store import SqlAlchemyRecordStore

logger = logging.getLogger(__name__)

_store_mode: Optional[str] = None
_local_store: Optional[LocalJsonRecordStore] = None
_rate_provider: Optional[UsdInrRateProvider] = None


def configure_record_store(app_settings: AppSettings = settings) -> str:
    """Pick the remote or local backing for the lifetime of the process"""
    global _store_mode, _local_store

    _store_mode = app_settings.store_mode
    if _store_mode == "local":
        data_dir = Path(app_settings.local_data_dir)
        _local_store = LocalJsonRecordStore(data_dir)
        logger.warning(f"No database configured - using local record store at {data_dir}")
    else:
        _local_store = None
        logger.info("Using PostgreSQL record store")
    return _store_mode


def get_store_mode() -> str:
    if _store_mode is None:
        configure_record_store()
    return _store_mode


async def get_record_store() -> AsyncGenerator[RecordStore, None]:
    """Yield the configured store; remote stores get one session per request"""
    if get_store_mode() == "local":
        yield _local_store
        return

    session_maker = get_session_maker()
    async with session_maker() as session:
        yield SqlAlchemyRecordStore(session)


def get_repositories(store: RecordStore = Depends(get_record_store)) -> Repositories:
    return Repositories.from_store(store)


def get_rate_provider() -> UsdInrRateProvider:
    global _rate_provider
    if _rate_provider is None:
        _rate_provider = UsdInrRateProvider(
            api_url=settings.exchange_rate_api_url,
            refresh_interval=timedelta(hours=settings.exchange_rate_refresh_hours),
            fallback_rate=settings.fallback_inr_rate,
        )
    return _rate_provider


def get_low_stock_threshold() -> int:
    return settings.low_stock_threshold


def to_http_error(exc: DomainError) -> HTTPException:
    """Translate a domain error into the HTTP error the client displays"""
    if isinstance(exc, PermissionDenied):
        return HTTPException(status_code=403, detail=exc.message)
    if isinstance(exc, NotFound):
        return HTTPException(status_code=404, detail=exc.message)
    if isinstance(exc, InvalidRequest):
        return HTTPException(status_code=400, detail=exc.message)
    if isinstance(exc, PersistenceError):
        return HTTPException(status_code=503, detail=exc.to_dict())
    return HTTPException(status_code=500, detail=exc.message)
