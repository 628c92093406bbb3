from __future__ import annotations

from country_directory.pipelines.borders import BorderEntry
from country_directory.transforms.countries import CountryRecord
from country_directory.transforms.display import (
    NOT_AVAILABLE,
    card_row,
    currencies_display,
    detail_row,
    flag_url,
    format_population,
    join_or_na,
    native_name,
)


def _record(**overrides) -> CountryRecord:
    data = {
        "cca3": "BEL",
        "name": {
            "common": "Belgium",
            "official": "Kingdom of Belgium",
            "nativeName": {
                "deu": {"official": "Königreich Belgien", "common": "Belgien"},
                "fra": {"official": "Royaume de Belgique", "common": "Belgique"},
            },
        },
        "population": 11555997,
        "region": "Europe",
        "subregion": "Western Europe",
        "capital": ["Brussels"],
        "flags": {"png": "https://flagcdn.com/w320/be.png", "svg": "https://flagcdn.com/be.svg"},
        "tld": [".be"],
        "currencies": {"EUR": {"name": "Euro", "symbol": "€"}},
        "languages": {"deu": "German", "fra": "French", "nld": "Dutch"},
        "borders": ["FRA", "DEU"],
    }
    data.update(overrides)
    return CountryRecord.model_validate(data)


def test_flag_prefers_svg_then_png() -> None:
    assert flag_url(_record()) == "https://flagcdn.com/be.svg"
    assert flag_url(_record(flags={"png": "https://flagcdn.com/w320/be.png"})) == "https://flagcdn.com/w320/be.png"


def test_native_name_is_first_entry_common() -> None:
    assert native_name(_record()) == "Belgien"
    assert native_name(_record(name={"common": "Belgium", "official": "Kingdom of Belgium"})) == NOT_AVAILABLE


def test_population_has_thousands_separators() -> None:
    assert format_population(11555997) == "11,555,997"
    assert format_population(0) == "0"


def test_missing_values_render_as_na() -> None:
    assert join_or_na(None) == NOT_AVAILABLE
    assert join_or_na([]) == NOT_AVAILABLE
    assert currencies_display(None) == NOT_AVAILABLE


def test_card_row() -> None:
    assert card_row(_record()) == {
        "code": "BEL",
        "name": "Belgium",
        "flag": "https://flagcdn.com/be.svg",
        "population": 11555997,
        "population_display": "11,555,997",
        "region": "Europe",
        "capital": "Brussels",
    }


def test_detail_row_joins_collections_and_keeps_border_order() -> None:
    borders = (BorderEntry(name="France", code="FRA"), BorderEntry(name="DEU", code="DEU"))
    row = detail_row(_record(), borders)

    assert row["currencies"] == "Euro"
    assert row["languages"] == "German, French, Dutch"
    assert row["tld"] == ".be"
    assert row["flag_alt"] == "Flag of Belgium"
    assert row["borders"] == [{"name": "France", "code": "FRA"}, {"name": "DEU", "code": "DEU"}]


def test_detail_row_for_sparse_record() -> None:
    rec = CountryRecord.model_validate(
        {"cca3": "ATA", "name": {"common": "Antarctica"}, "region": "Antarctic", "flags": {"svg": "https://flagcdn.com/aq.svg"}}
    )
    row = detail_row(rec, ())
    assert row["subregion"] == NOT_AVAILABLE
    assert row["capital"] == NOT_AVAILABLE
    assert row["languages"] == NOT_AVAILABLE
    assert row["official_name"] == NOT_AVAILABLE
    assert row["borders"] == []
