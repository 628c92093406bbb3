from __future__ import annotations

from dataclasses import dataclass

from country_directory.collector.sources import RecordSource, SourceError
from country_directory.transforms.countries import CountryRecord
from country_directory.utils.logging import get_logger


logger = get_logger(component="border_resolver")


@dataclass(frozen=True)
class BorderEntry:
    name: str
    code: str


async def resolve_borders(source: RecordSource, rec: CountryRecord) -> tuple[BorderEntry, ...]:
    """
    Resolve neighbor codes to display names with a single batched fetch.

    Best-effort: an unresolved code is shown as the raw code, and a failed
    batch yields no entries. Never raises SourceError.
    """
    codes = list(rec.borders or ())
    if not codes:
        return ()

    try:
        records = await source.fetch_many(codes)
    except SourceError as e:
        logger.warning("border_resolution_failed", cca3=rec.cca3, borders=codes, error=str(e))
        return ()

    names = {r.cca3: r.name.common for r in records}
    missing = [c for c in codes if c not in names]
    if missing:
        logger.info("border_codes_unresolved", cca3=rec.cca3, missing=missing)

    return tuple(BorderEntry(name=names.get(c, c), code=c) for c in codes)
