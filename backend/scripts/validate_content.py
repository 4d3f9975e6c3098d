"""Validate the site's content records and smoke test the chat tools.

Loads site.json, resume.json and projects.json through the content store,
then calls each tool once against the loaded content.

Usage:
    cd backend
    python scripts/validate_content.py [--content-dir DIR]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from folio.config import get_settings
from folio.content.store import ContentKind, ContentStore
from folio.domain.chat.tool_registry import ToolRegistry
from folio.shared.exceptions import FolioError

EXPECTED_TOOL_COUNT = 6


def _check_records(store: ContentStore) -> list[str]:
    failures: list[str] = []
    for kind in ContentKind:
        try:
            store.load(kind)
        except FolioError as exc:
            failures.append(exc.message)
            continue
        print(f"ok   {kind.value}.json")

    if not failures:
        slugs = store.project_slugs()
        duplicates = sorted({slug for slug in slugs if slugs.count(slug) > 1})
        if duplicates:
            failures.append(f"Duplicate project slugs: {', '.join(duplicates)}")
    return failures


async def _check_tools(store: ContentStore) -> list[str]:
    registry = ToolRegistry(store)
    failures: list[str] = []

    if len(registry.names()) != EXPECTED_TOOL_COUNT:
        failures.append(
            f"Expected {EXPECTED_TOOL_COUNT} tools, found {len(registry.names())}"
        )

    search = json.loads(await registry.invoke("search_site", {"query": "python"}))
    if not isinstance(search.get("resultsCount"), int):
        failures.append("search_site did not return a numeric resultsCount")

    listing = json.loads(await registry.invoke("list_projects", {}))
    projects = listing.get("projects")
    if not isinstance(projects, list):
        failures.append("list_projects did not return a project list")
    elif projects:
        slug = projects[0]["slug"]
        project = json.loads(await registry.invoke("get_project", {"slug": slug}))
        if project.get("slug") != slug:
            failures.append(f"get_project could not resolve {slug!r}")

    unknown = json.loads(await registry.invoke("not_a_tool", {}))
    if "error" not in unknown:
        failures.append("unknown tool did not produce an error payload")

    if not failures:
        print(f"ok   {len(registry.names())} tools respond")
    return failures


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--content-dir",
        type=Path,
        default=None,
        help="Directory holding the content JSON files (default: CONTENT_DIR setting)",
    )
    args = parser.parse_args(argv)

    content_dir = args.content_dir or get_settings().content_dir
    store = ContentStore(content_dir)

    failures = _check_records(store)
    if not failures:
        failures = asyncio.run(_check_tools(store))

    for failure in failures:
        print(f"FAIL {failure}", file=sys.stderr)
    if failures:
        return 1

    print("Content is valid.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
