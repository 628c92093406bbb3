from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI, HTTPException

from country_directory.collector.api_client import APIClient
from country_directory.collector.sources import NotFound, RecordSource, build_default_source
from country_directory.pipelines.detail import DetailPipeline
from country_directory.pipelines.directory import DirectoryPipeline
from country_directory.pipelines.filters import NO_MATCHES_MESSAGE, REGION_CHOICES, REGIONS, FilterCriteria, normalize_region
from country_directory.pipelines.state import PipelineStatus
from country_directory.preferences.theme_store import ThemeStore, create_redis_client_from_env
from country_directory.transforms.display import card_row, detail_row
from country_directory.utils.config import load_preferences_config
from country_directory.utils.logging import get_logger, setup_logging


logger = get_logger(component="read_api")

_source: RecordSource | None = None
_client: APIClient | None = None
_theme_store: ThemeStore | None = None


def _get_source() -> RecordSource:
    global _source, _client
    if _source is None:
        _source, _client = build_default_source()
    return _source


def _get_theme_store() -> ThemeStore:
    global _theme_store
    if _theme_store is None:
        cfg = load_preferences_config()
        _theme_store = ThemeStore(create_redis_client_from_env(redis_url_env=cfg.redis_url_env), key=cfg.key)
    return _theme_store


@asynccontextmanager
async def _lifespan(_app: FastAPI) -> AsyncIterator[None]:
    global _source, _client
    setup_logging()
    yield
    if _client is not None:
        await _client.aclose()
    _source, _client = None, None


app = FastAPI(title="country-directory-read-api", version="v1", lifespan=_lifespan)


def _theme_payload(store: ThemeStore) -> dict[str, Any]:
    pref = store.current
    return {"ok": True, "dark_mode": pref.dark_mode, "source": pref.source.value}


@app.get("/v1/health")
async def health() -> dict:
    return {"ok": True}


@app.get("/v1/regions")
async def regions() -> dict:
    return {"ok": True, "regions": list(REGION_CHOICES)}


@app.get("/v1/countries")
async def countries(search: str = "", region: str = "") -> dict[str, Any]:
    facet = normalize_region(region)
    if facet and facet not in REGIONS:
        raise HTTPException(
            status_code=400,
            detail={"error": "invalid_region", "region": region, "allowed": list(REGION_CHOICES)},
        )

    pipeline = DirectoryPipeline(_get_source(), criteria=FilterCriteria(search_text=search, region=facet))
    await pipeline.start()
    if pipeline.status == PipelineStatus.FAILED:
        logger.warning("countries_request_failed", search=search, region=facet)
        raise HTTPException(status_code=503, detail=pipeline.error_message)

    view = pipeline.view or ()
    return {
        "ok": True,
        "search": pipeline.criteria.search_text,
        "region": pipeline.criteria.region or "All",
        "count": len(view),
        "message": None if view else NO_MATCHES_MESSAGE,
        "countries": [card_row(rec) for rec in view],
    }


@app.get("/v1/countries/{code}")
async def country_detail(code: str) -> dict[str, Any]:
    pipeline = DetailPipeline(_get_source())
    await pipeline.load(code.strip().upper())
    if pipeline.status == PipelineStatus.FAILED or pipeline.record is None:
        status = 404 if isinstance(pipeline.error, NotFound) else 503
        raise HTTPException(status_code=status, detail=pipeline.error_message)

    return {"ok": True, "country": detail_row(pipeline.record, pipeline.borders)}


@app.get("/v1/preferences/theme")
async def get_theme() -> dict[str, Any]:
    return _theme_payload(_get_theme_store())


@app.post("/v1/preferences/theme/toggle")
async def toggle_theme() -> dict[str, Any]:
    store = _get_theme_store()
    store.toggle()
    return _theme_payload(store)


@app.post("/v1/preferences/theme/system")
async def system_theme(dark: bool) -> dict[str, Any]:
    store = _get_theme_store()
    applied = store.system_preference_changed(dark)
    return {**_theme_payload(store), "applied": applied}
