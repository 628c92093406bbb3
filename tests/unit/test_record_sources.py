from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from country_directory.collector.api_client import APIClient
from country_directory.collector.sources import (
    FallbackSource,
    NotFound,
    RecordSource,
    RemoteSource,
    SnapshotError,
    SnapshotSource,
    SourceUnavailable,
)


FIXTURES = Path(__file__).resolve().parents[1] / "fixtures" / "api_responses"
BASE_URL = "https://restcountries.test/v3.1"

FRA = {
    "cca3": "FRA",
    "name": {"common": "France", "official": "French Republic"},
    "region": "Europe",
    "population": 67391582,
    "borders": ["DEU", "BEL"],
    "flags": {"svg": "https://flagcdn.com/fr.svg"},
}
DEU = {
    "cca3": "DEU",
    "name": {"common": "Germany", "official": "Federal Republic of Germany"},
    "region": "Europe",
    "population": 83240525,
    "flags": {"svg": "https://flagcdn.com/de.svg"},
}


def _fixture(name: str):
    return json.loads((FIXTURES / name).read_text(encoding="utf-8"))


def _snapshot(tmp_path: Path, records: list[dict]) -> SnapshotSource:
    p = tmp_path / "countries.json"
    p.write_text(json.dumps(records), encoding="utf-8")
    return SnapshotSource(p)


def _remote(handler, *, list_fields=()) -> RemoteSource:
    client = APIClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return RemoteSource(client, list_fields=list_fields)


def _down(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, text="down")


def test_sources_satisfy_protocol(tmp_path: Path) -> None:
    snap = _snapshot(tmp_path, [FRA])
    remote = _remote(_down)
    assert isinstance(snap, RecordSource)
    assert isinstance(remote, RecordSource)
    assert isinstance(FallbackSource(remote, snap), RecordSource)


@pytest.mark.asyncio
async def test_remote_fetch_all_sends_field_selector() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["fields"] = request.url.params.get("fields")
        return httpx.Response(200, json=_fixture("all_fields_subset.json"))

    records = await _remote(handler, list_fields=("name", "cca3", "flags")).fetch_all()

    assert seen == {"path": "/v3.1/all", "fields": "name,cca3,flags"}
    assert [r.cca3 for r in records] == ["FRA", "DEU", "BRA"]


@pytest.mark.asyncio
async def test_remote_fetch_many_is_one_batched_call() -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        assert request.url.path == "/v3.1/alpha"
        assert request.url.params.get("codes") == "AND,BEL,DEU"
        return httpx.Response(200, json=_fixture("alpha_codes_and_bel_deu.json"))

    records = await _remote(handler).fetch_many(["AND", "BEL", "DEU", "BEL"])

    assert len(calls) == 1
    assert {r.cca3 for r in records} == {"AND", "BEL", "DEU"}


@pytest.mark.asyncio
async def test_remote_fetch_one_404_is_not_found() -> None:
    source = _remote(lambda request: httpx.Response(404, json={"status": 404}))
    with pytest.raises(NotFound):
        await source.fetch_one("XYZ")


@pytest.mark.asyncio
async def test_remote_non_array_payload_is_unavailable() -> None:
    source = _remote(lambda request: httpx.Response(200, json={"status": 400, "message": "bad"}))
    with pytest.raises(SourceUnavailable):
        await source.fetch_all()


@pytest.mark.asyncio
async def test_snapshot_lookup_and_batch(tmp_path: Path) -> None:
    snap = _snapshot(tmp_path, [FRA, DEU])

    assert (await snap.fetch_one("DEU")).common_name == "Germany"
    batch = await snap.fetch_many(["DEU", "BEL", "FRA"])
    assert [r.cca3 for r in batch] == ["DEU", "FRA"]
    with pytest.raises(NotFound):
        await snap.fetch_one("BEL")


@pytest.mark.asyncio
async def test_snapshot_unreadable_raises(tmp_path: Path) -> None:
    missing = SnapshotSource(tmp_path / "missing.json")
    with pytest.raises(SnapshotError):
        await missing.fetch_all()

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(SourceUnavailable):
        await SnapshotSource(bad).fetch_all()


@pytest.mark.asyncio
async def test_fallback_fetch_all_prefers_remote(tmp_path: Path) -> None:
    source = FallbackSource(
        _remote(lambda request: httpx.Response(200, json=[DEU])),
        _snapshot(tmp_path, [FRA, DEU]),
    )
    records = await source.fetch_all()
    # Never mixed: only the remote record set is returned.
    assert [r.cca3 for r in records] == ["DEU"]


@pytest.mark.asyncio
async def test_fallback_fetch_all_uses_snapshot_when_remote_down(tmp_path: Path) -> None:
    source = FallbackSource(_remote(_down), _snapshot(tmp_path, [FRA, DEU]))
    records = await source.fetch_all()
    assert [r.cca3 for r in records] == ["FRA", "DEU"]


@pytest.mark.asyncio
async def test_fallback_both_down_is_source_unavailable(tmp_path: Path) -> None:
    source = FallbackSource(_remote(_down), SnapshotSource(tmp_path / "missing.json"))
    with pytest.raises(SourceUnavailable):
        await source.fetch_all()
    with pytest.raises(SourceUnavailable):
        await source.fetch_one("FRA")
    with pytest.raises(SourceUnavailable):
        await source.fetch_many(["FRA"])


@pytest.mark.asyncio
async def test_fallback_fetch_one_scans_snapshot_after_remote_404(tmp_path: Path) -> None:
    source = FallbackSource(
        _remote(lambda request: httpx.Response(404, json={"status": 404})),
        _snapshot(tmp_path, [FRA, DEU]),
    )
    assert (await source.fetch_one("FRA")).common_name == "France"
    with pytest.raises(NotFound):
        await source.fetch_one("XYZ")


@pytest.mark.asyncio
async def test_fallback_fetch_many_omits_unmatched_codes(tmp_path: Path) -> None:
    source = FallbackSource(_remote(_down), _snapshot(tmp_path, [FRA, DEU]))
    records = await source.fetch_many(["DEU", "BEL"])
    assert [r.cca3 for r in records] == ["DEU"]


@pytest.mark.asyncio
async def test_fetch_one_then_fetch_many_same_identity() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_fixture("alpha_fra.json"))

    source = _remote(handler)
    one = await source.fetch_one("FRA")
    many = await source.fetch_many(["FRA"])
    assert [r.cca3 for r in many] == [one.cca3]
