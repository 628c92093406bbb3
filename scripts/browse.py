from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    # When running as scripts/browse.py, sys.path[0] is scripts/,
    # so `import country_directory.*` fails unless the root is on sys.path.
    sys.path.insert(0, str(PROJECT_ROOT))

from country_directory.collector.sources import build_default_source  # noqa: E402
from country_directory.pipelines.detail import DetailPipeline  # noqa: E402
from country_directory.pipelines.directory import DirectoryPipeline  # noqa: E402
from country_directory.pipelines.filters import NO_MATCHES_MESSAGE, REGION_CHOICES  # noqa: E402
from country_directory.pipelines.state import PipelineStatus  # noqa: E402
from country_directory.preferences.theme_store import ThemeStore, create_redis_client_from_env  # noqa: E402
from country_directory.transforms.display import card_row, detail_row  # noqa: E402
from country_directory.utils.config import load_preferences_config  # noqa: E402
from country_directory.utils.logging import get_logger, setup_logging  # noqa: E402

logger = get_logger(component="browse")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Browse the country directory (REST Countries + local snapshot)")
    sub = p.add_subparsers(dest="command", required=True)

    ls = sub.add_parser("list", help="List countries, optionally filtered")
    ls.add_argument("--search", default="", help="Case-insensitive substring of the common name")
    ls.add_argument("--region", default="All", choices=list(REGION_CHOICES), help="Region facet")

    dt = sub.add_parser("detail", help="Show one country with its border countries")
    dt.add_argument("code", help="3-letter country code (cca3), e.g. FRA")

    th = sub.add_parser("theme", help="Show or toggle the light/dark preference")
    th.add_argument("--toggle", action="store_true", help="Flip and persist the preference")
    return p.parse_args(argv)


async def _run_list(search: str, region: str) -> int:
    source, client = build_default_source()
    try:
        pipeline = DirectoryPipeline(source)
        await pipeline.start()
    finally:
        await client.aclose()

    if pipeline.status == PipelineStatus.FAILED:
        print(pipeline.error_message, file=sys.stderr)
        return 1

    pipeline.set_search_text(search)
    pipeline.set_region(region)
    view = pipeline.view or ()
    if not view:
        print(NO_MATCHES_MESSAGE)
        return 0
    for rec in view:
        row = card_row(rec)
        print(f"{row['code']}  {row['name']:<40} {row['region']:<10} pop={row['population_display']:>15}  capital={row['capital']}")
    return 0


async def _run_detail(code: str) -> int:
    source, client = build_default_source()
    try:
        pipeline = DetailPipeline(source)
        await pipeline.load(code.strip().upper())
    finally:
        await client.aclose()

    if pipeline.status == PipelineStatus.FAILED or pipeline.record is None:
        print(pipeline.error_message, file=sys.stderr)
        return 1

    row = detail_row(pipeline.record, pipeline.borders)
    print(row["name"])
    for label, key in (
        ("Native Name", "native_name"),
        ("Population", "population_display"),
        ("Region", "region"),
        ("Sub Region", "subregion"),
        ("Capital", "capital"),
        ("Top Level Domain", "tld"),
        ("Currencies", "currencies"),
        ("Languages", "languages"),
    ):
        print(f"  {label}: {row[key]}")
    if row["borders"]:
        print("  Border Countries: " + ", ".join(f"{b['name']} ({b['code']})" for b in row["borders"]))
    return 0


def _run_theme(toggle: bool) -> int:
    cfg = load_preferences_config()
    store = ThemeStore(create_redis_client_from_env(redis_url_env=cfg.redis_url_env), key=cfg.key)
    dark = store.toggle() if toggle else store.get_initial()
    print(f"theme={'dark' if dark else 'light'} source={store.current.source.value}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(fmt="console")
    if args.command == "list":
        return asyncio.run(_run_list(args.search, args.region))
    if args.command == "detail":
        return asyncio.run(_run_detail(args.code))
    return _run_theme(args.toggle)


if __name__ == "__main__":
    raise SystemExit(main())
