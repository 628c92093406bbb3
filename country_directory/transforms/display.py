from __future__ import annotations

from typing import Any, Iterable, Mapping

from country_directory.transforms.countries import CountryRecord


NOT_AVAILABLE = "N/A"


def flag_url(rec: CountryRecord) -> str:
    # svg preferred; Flags guarantees at least one of the two.
    return rec.flags.svg or rec.flags.png or ""


def native_name(rec: CountryRecord) -> str:
    names = rec.name.native_name or {}
    for entry in names.values():
        if entry.common:
            return entry.common
    return NOT_AVAILABLE


def format_population(population: int) -> str:
    return f"{int(population):,}"


def join_or_na(values: Iterable[str] | None) -> str:
    joined = ", ".join(v for v in (values or ()) if v)
    return joined or NOT_AVAILABLE


def currencies_display(currencies: Mapping[str, Any] | None) -> str:
    if not currencies:
        return NOT_AVAILABLE
    return join_or_na(c.name for c in currencies.values())


def languages_display(languages: Mapping[str, str] | None) -> str:
    if not languages:
        return NOT_AVAILABLE
    return join_or_na(languages.values())


def card_row(rec: CountryRecord) -> dict[str, Any]:
    """List-view projection of a record."""
    return {
        "code": rec.cca3,
        "name": rec.name.common,
        "flag": flag_url(rec),
        "population": rec.population,
        "population_display": format_population(rec.population),
        "region": rec.region,
        "capital": join_or_na(rec.capital),
    }


def detail_row(rec: CountryRecord, borders: Iterable[Any]) -> dict[str, Any]:
    """Detail-view projection; `borders` are BorderEntry-like objects (name, code)."""
    return {
        "code": rec.cca3,
        "name": rec.name.common,
        "official_name": rec.name.official or NOT_AVAILABLE,
        "native_name": native_name(rec),
        "flag": flag_url(rec),
        "flag_alt": rec.flags.alt or f"Flag of {rec.name.common}",
        "population": rec.population,
        "population_display": format_population(rec.population),
        "region": rec.region or NOT_AVAILABLE,
        "subregion": rec.subregion or NOT_AVAILABLE,
        "capital": join_or_na(rec.capital),
        "tld": join_or_na(rec.tld),
        "currencies": currencies_display(rec.currencies),
        "languages": languages_display(rec.languages),
        "borders": [{"name": b.name, "code": b.code} for b in borders],
    }
