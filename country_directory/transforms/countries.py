from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from country_directory.utils.logging import get_logger


logger = get_logger(component="transforms_countries")


class NativeName(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    official: str | None = None
    common: str | None = None


class CountryName(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    common: str
    official: str = ""
    native_name: dict[str, NativeName] | None = Field(default=None, alias="nativeName")


class Flags(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    svg: str | None = None
    png: str | None = None
    alt: str | None = None

    @model_validator(mode="after")
    def _require_one_image(self) -> "Flags":
        if not self.svg and not self.png:
            raise ValueError("flags requires at least one of svg/png")
        return self


class Currency(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    symbol: str | None = None


class CountryRecord(BaseModel):
    """
    One country as served by REST Countries v3.1 (or the local snapshot, same shape).
    Identity: cca3. Instances are frozen; derived views never mutate them.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    cca3: str = Field(min_length=3, max_length=3)
    name: CountryName
    population: int = Field(default=0, ge=0)
    region: str = ""
    subregion: str | None = None
    capital: tuple[str, ...] | None = None
    flags: Flags
    tld: tuple[str, ...] | None = None
    currencies: dict[str, Currency] | None = None
    languages: dict[str, str] | None = None
    borders: tuple[str, ...] | None = None

    @property
    def common_name(self) -> str:
        return self.name.common


def transform_countries(payload: Any) -> tuple[CountryRecord, ...]:
    """
    RAW -> CountryRecord snapshot.

    - Accepts the array-of-records shape returned by every REST Countries endpoint
      (a bare object is treated as a one-element array).
    - Items that cannot be rendered (no cca3, no flag image, ...) are skipped.
    - Keeps the first record per cca3 so the identity key stays unique.
    """
    if payload is None:
        return ()
    items = payload if isinstance(payload, list) else [payload]

    out: list[CountryRecord] = []
    seen: set[str] = set()
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            rec = CountryRecord.model_validate(item)
        except ValidationError as e:
            logger.warning("country_record_skipped", cca3=item.get("cca3"), errors=e.error_count())
            continue
        if rec.cca3 in seen:
            logger.warning("country_record_duplicate_cca3", cca3=rec.cca3)
            continue
        seen.add(rec.cca3)
        out.append(rec)

    return tuple(out)
