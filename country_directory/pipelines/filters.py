from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from country_directory.transforms.countries import CountryRecord


ALL_REGIONS = ""
REGIONS: tuple[str, ...] = ("Africa", "Americas", "Asia", "Europe", "Oceania")
REGION_CHOICES: tuple[str, ...] = REGIONS + ("All",)

NO_MATCHES_MESSAGE = "No countries found matching your criteria."


def normalize_region(region: str | None) -> str:
    """Map the "All" facet choice (any case, and None) to the no-filter sentinel."""
    if region is None or region.strip().lower() == "all":
        return ALL_REGIONS
    return region


@dataclass(frozen=True)
class FilterCriteria:
    search_text: str = ""
    region: str = ALL_REGIONS


def matches(rec: CountryRecord, criteria: FilterCriteria) -> bool:
    name_ok = criteria.search_text.lower() in rec.name.common.lower()
    region_ok = criteria.region == ALL_REGIONS or rec.region == criteria.region
    return name_ok and region_ok


def filter_countries(records: Sequence[CountryRecord], criteria: FilterCriteria) -> tuple[CountryRecord, ...]:
    """Stable filter: output keeps the relative order of `records`."""
    return tuple(rec for rec in records if matches(rec, criteria))


class FilterEngine:
    """
    filter_countries memoized on (set identity, search text, region).

    Only the last triple is kept; any change recomputes from scratch.
    """

    def __init__(self) -> None:
        self._key: tuple[int, str, str] | None = None
        self._records: Sequence[CountryRecord] | None = None
        self._result: tuple[CountryRecord, ...] = ()

    def apply(self, records: Sequence[CountryRecord], criteria: FilterCriteria) -> tuple[CountryRecord, ...]:
        key = (id(records), criteria.search_text, criteria.region)
        if self._key == key and self._records is records:
            return self._result
        self._result = filter_countries(records, criteria)
        self._key = key
        # Hold a reference so id(records) cannot be reused by another object.
        self._records = records
        return self._result
