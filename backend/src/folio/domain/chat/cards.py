"""Project card extraction from tool results.

Recognized payload shapes:
- ``{"projects": [...]}`` from list_projects
- a single project object (has ``slug``, ``title`` and ``url``) from get_project
- ``{"results": [...]}`` from search_site, keeping entries of type "project"
"""

import json
from collections.abc import Iterable, Iterator
from typing import Any

from folio.domain.chat.types import ProjectCard


def _card_from_project(record: dict[str, Any], description: Any) -> ProjectCard | None:
    title = record.get("title")
    url = record.get("url")
    if not isinstance(title, str) or not isinstance(url, str) or not url:
        return None
    metrics = record.get("metrics")
    tags = record.get("tags")
    return ProjectCard(
        title=title,
        description=description if isinstance(description, str) else "",
        url=url,
        metrics=metrics if isinstance(metrics, dict) else None,
        tags=tags if isinstance(tags, list) else None,
        github_url=record.get("githubUrl"),
        demo_url=record.get("demoUrl"),
    )


def _cards_from_payload(data: dict[str, Any]) -> Iterator[ProjectCard]:
    projects = data.get("projects")
    if isinstance(projects, list):
        for project in projects:
            if isinstance(project, dict):
                card = _card_from_project(project, project.get("shortDescription"))
                if card is not None:
                    yield card

    if data.get("slug") and data.get("title") and data.get("url"):
        card = _card_from_project(
            data, data.get("shortDescription") or data.get("description")
        )
        if card is not None:
            yield card

    results = data.get("results")
    if isinstance(results, list):
        for result in results:
            if not isinstance(result, dict) or result.get("type") != "project":
                continue
            title, url = result.get("title"), result.get("url")
            if isinstance(title, str) and isinstance(url, str) and url:
                snippet = result.get("snippet")
                yield ProjectCard(
                    title=title,
                    description=snippet if isinstance(snippet, str) else "",
                    url=url,
                )


def extract_project_cards(tool_results: Iterable[str]) -> list[ProjectCard]:
    """Build project cards from tool result JSON, deduplicated by URL.

    The first card seen for a URL wins; source order is preserved. Results
    that are not JSON objects are skipped.
    """
    cards: list[ProjectCard] = []
    seen: set[str] = set()

    for result in tool_results:
        try:
            data = json.loads(result)
        except (json.JSONDecodeError, TypeError):
            continue
        if not isinstance(data, dict):
            continue

        for card in _cards_from_payload(data):
            if card.url in seen:
                continue
            seen.add(card.url)
            cards.append(card)

    return cards
