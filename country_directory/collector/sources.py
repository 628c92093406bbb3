from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Iterable, Protocol, Sequence, runtime_checkable

from country_directory.collector.api_client import APIClient, APIClientError, APINotFoundError
from country_directory.transforms.countries import CountryRecord, transform_countries
from country_directory.utils.config import load_api_config, load_snapshot_config
from country_directory.utils.logging import get_logger


logger = get_logger(component="record_sources")


class SourceError(Exception):
    pass


class SourceUnavailable(SourceError):
    """No source could serve the request (remote down and snapshot unreadable)."""


class RemoteUnavailable(SourceUnavailable):
    pass


class SnapshotError(SourceUnavailable):
    pass


class NotFound(SourceError):
    def __init__(self, code: str) -> None:
        super().__init__(f"Country not found: {code}")
        self.code = code


@runtime_checkable
class RecordSource(Protocol):
    """
    Read-only country record source.

    Implementations are interchangeable: callers never need to know whether the
    remote service or the local snapshot served a given call.
    """

    async def fetch_all(self) -> tuple[CountryRecord, ...]: ...

    async def fetch_one(self, code: str) -> CountryRecord: ...

    async def fetch_many(self, codes: Sequence[str]) -> tuple[CountryRecord, ...]: ...


def _distinct(codes: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for c in codes:
        if c and c not in seen:
            seen.add(c)
            out.append(c)
    return out


class RemoteSource:
    """REST Countries v3.1: /all, /alpha/{code}, /alpha?codes=..."""

    def __init__(self, client: APIClient, *, list_fields: Sequence[str] = ()) -> None:
        self._client = client
        self._list_fields = tuple(list_fields)

    async def _get_records(self, endpoint: str, params: dict[str, Any] | None = None) -> tuple[CountryRecord, ...]:
        try:
            res = await self._client.get(endpoint, params=params)
        except APIClientError as e:
            raise RemoteUnavailable(f"{endpoint}: {e}") from e
        if not isinstance(res.data, list):
            raise RemoteUnavailable(f"{endpoint}: expected a JSON array, got {type(res.data).__name__}")
        return transform_countries(res.data)

    async def fetch_all(self) -> tuple[CountryRecord, ...]:
        params = {"fields": ",".join(self._list_fields)} if self._list_fields else None
        return await self._get_records("/all", params)

    async def fetch_one(self, code: str) -> CountryRecord:
        try:
            records = await self._get_records(f"/alpha/{code}")
        except RemoteUnavailable as e:
            if isinstance(e.__cause__, APINotFoundError):
                raise NotFound(code) from e
            raise
        for rec in records:
            if rec.cca3 == code:
                return rec
        # /alpha/{code} also matches cca2/ccn3/cioc; fall back to the first hit.
        if records:
            return records[0]
        raise NotFound(code)

    async def fetch_many(self, codes: Sequence[str]) -> tuple[CountryRecord, ...]:
        wanted = _distinct(codes)
        if not wanted:
            return ()
        return await self._get_records("/alpha", {"codes": ",".join(wanted)})


class SnapshotSource:
    """Static JSON document holding the full array of records (same shape as /all)."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> tuple[CountryRecord, ...]:
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise SnapshotError(f"Unreadable snapshot {self._path}: {e}") from e
        if not isinstance(raw, list):
            raise SnapshotError(f"Snapshot {self._path} must contain a JSON array")
        return transform_countries(raw)

    async def fetch_all(self) -> tuple[CountryRecord, ...]:
        return await asyncio.to_thread(self._read)

    async def fetch_one(self, code: str) -> CountryRecord:
        for rec in await self.fetch_all():
            if rec.cca3 == code:
                return rec
        raise NotFound(code)

    async def fetch_many(self, codes: Sequence[str]) -> tuple[CountryRecord, ...]:
        wanted = _distinct(codes)
        if not wanted:
            return ()
        by_code = {rec.cca3: rec for rec in await self.fetch_all()}
        return tuple(by_code[c] for c in wanted if c in by_code)


class FallbackSource:
    """
    Remote first, snapshot on failure.

    The choice is made per top-level call: a single fetch never mixes remote
    and snapshot records. SourceUnavailable is raised only when both fail.
    """

    def __init__(self, remote: RecordSource, snapshot: RecordSource) -> None:
        self._remote = remote
        self._snapshot = snapshot

    async def fetch_all(self) -> tuple[CountryRecord, ...]:
        try:
            records = await self._remote.fetch_all()
            logger.debug("fetch_all_served", source="remote", rows=len(records))
            return records
        except SourceUnavailable as e:
            logger.warning("remote_fetch_failed", op="fetch_all", error=str(e))

        try:
            records = await self._snapshot.fetch_all()
        except SourceUnavailable as e:
            logger.error("snapshot_fallback_failed", op="fetch_all", error=str(e))
            raise SourceUnavailable("Both remote and snapshot sources failed") from e
        logger.info("snapshot_fallback_used", op="fetch_all", rows=len(records))
        return records

    async def fetch_one(self, code: str) -> CountryRecord:
        try:
            return await self._remote.fetch_one(code)
        except (SourceUnavailable, NotFound) as e:
            logger.warning("remote_fetch_failed", op="fetch_one", code=code, error=str(e))

        try:
            rec = await self._snapshot.fetch_one(code)
        except SourceUnavailable as e:
            logger.error("snapshot_fallback_failed", op="fetch_one", code=code, error=str(e))
            raise SourceUnavailable("Both remote and snapshot sources failed") from e
        logger.info("snapshot_fallback_used", op="fetch_one", code=code)
        return rec

    async def fetch_many(self, codes: Sequence[str]) -> tuple[CountryRecord, ...]:
        if not codes:
            return ()
        try:
            return await self._remote.fetch_many(codes)
        except SourceUnavailable as e:
            logger.warning("remote_fetch_failed", op="fetch_many", codes=list(codes), error=str(e))

        try:
            records = await self._snapshot.fetch_many(codes)
        except SourceUnavailable as e:
            logger.error("snapshot_fallback_failed", op="fetch_many", codes=list(codes), error=str(e))
            raise SourceUnavailable("Both remote and snapshot sources failed") from e
        logger.info("snapshot_fallback_used", op="fetch_many", requested=len(codes), matched=len(records))
        return records


def build_default_source(
    *,
    api_config_path: str | Path | None = None,
    snapshot_config_path: str | Path | None = None,
) -> tuple[FallbackSource, APIClient]:
    """Wire remote + snapshot from config. Caller owns the returned client (aclose)."""
    api_cfg = load_api_config(api_config_path)
    snap_cfg = load_snapshot_config(snapshot_config_path)
    client = APIClient(base_url=api_cfg.base_url, timeout_seconds=api_cfg.timeout_seconds)
    source = FallbackSource(
        remote=RemoteSource(client, list_fields=api_cfg.list_fields),
        snapshot=SnapshotSource(snap_cfg.path),
    )
    return source, client
