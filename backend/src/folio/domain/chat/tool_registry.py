"""Tool registry for the chat assistant.

Declares the fixed tool catalog and dispatches calls to handlers that read
from the content store. Every outcome a model can cause (unknown tool, missing
or invalid argument, unknown slug) comes back as a JSON ``{"error": ...}``
payload so it can be handed back to the model. Only genuine handler faults
(e.g. an unreadable content file) raise.
"""

import json
import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ValidationError

from folio.content.models import Project
from folio.content.store import ContentStore
from folio.domain.chat import tool_models as models
from folio.domain.chat.types import ToolDefinition

logger = logging.getLogger(__name__)

TOOL_DEFINITIONS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="search_site",
        description=(
            "Search the portfolio website content for relevant information based on "
            "a query string. Returns matching sections with URLs."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query to find relevant content",
                },
            },
            "required": ["query"],
        },
    ),
    ToolDefinition(
        name="list_projects",
        description=(
            "List all projects in the portfolio with optional filtering by tag and "
            "sorting by impact or recency."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "tag": {
                    "type": "string",
                    "description": "Filter projects by tag (e.g., 'NLP', 'MLOps')",
                },
                "sort": {
                    "type": "string",
                    "enum": ["impact", "recent"],
                    "description": "Sort order: 'impact' for featured first, 'recent' for date order",
                },
            },
        },
    ),
    ToolDefinition(
        name="get_project",
        description="Get detailed information about a specific project by its slug identifier.",
        input_schema={
            "type": "object",
            "properties": {
                "slug": {
                    "type": "string",
                    "description": "Project slug identifier (e.g., 'realtime-fraud-scoring')",
                },
            },
            "required": ["slug"],
        },
    ),
    ToolDefinition(
        name="get_skills",
        description=(
            "Get all technical skills organized by category (languages, frameworks, "
            "cloud and MLOps tooling, etc.) plus certifications."
        ),
        input_schema={"type": "object", "properties": {}},
    ),
    ToolDefinition(
        name="get_resume_section",
        description=(
            "Get a specific section of the resume: summary, experience history, or education."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "section": {
                    "type": "string",
                    "enum": ["summary", "experience", "education"],
                    "description": "Which resume section to retrieve",
                },
            },
            "required": ["section"],
        },
    ),
    ToolDefinition(
        name="get_contact",
        description="Get public contact information and social media links.",
        input_schema={"type": "object", "properties": {}},
    ),
)


def _dump(payload: dict[str, Any]) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _error(message: str, **extra: Any) -> str:
    return json.dumps({"error": message, **extra}, ensure_ascii=False)


def _input_error(exc: ValidationError) -> str:
    """Turn the first validation failure into a message the model can act on."""
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or "input"
    if first["type"] == "missing":
        message = f"{field} is required"
    elif first["type"] == "enum":
        message = f"Unknown {field}: {first.get('input')}"
    else:
        message = f"Invalid {field}: {first['msg']}"
    return _error(message)


class ToolRegistry:
    """Fixed catalog of chat tools over a content store.

    Uses a strategy dict (tool name -> input model, handler) for dispatch.
    """

    def __init__(self, store: ContentStore) -> None:
        self.store = store
        self._handlers: dict[str, tuple[type[BaseModel], Callable[[Any], str]]] = {
            "search_site": (models.SearchSiteInput, self._search_site),
            "list_projects": (models.ListProjectsInput, self._list_projects),
            "get_project": (models.GetProjectInput, self._get_project),
            "get_skills": (models.GetSkillsInput, self._get_skills),
            "get_resume_section": (models.GetResumeSectionInput, self._get_resume_section),
            "get_contact": (models.GetContactInput, self._get_contact),
        }

    def definitions(self) -> list[ToolDefinition]:
        return list(TOOL_DEFINITIONS)

    def names(self) -> list[str]:
        return [definition.name for definition in TOOL_DEFINITIONS]

    async def invoke(self, name: str, args: dict[str, Any] | None = None) -> str:
        """Run a tool and return its JSON result text.

        Args:
            name: Tool name as emitted by the model
            args: Parsed tool arguments

        Returns:
            JSON text: the tool's data, or an ``{"error": ...}`` object

        Raises:
            FolioError: A handler could not read its content (not a model mistake)
        """
        logger.debug("Invoking tool %s with args %s", name, args)

        entry = self._handlers.get(name)
        if entry is None:
            return _error(f"Unknown tool: {name}", availableTools=self.names())

        input_model, handler = entry
        try:
            params = input_model.model_validate(args or {})
        except ValidationError as exc:
            logger.info("Rejected %s call: %s", name, exc.errors()[0]["msg"])
            return _input_error(exc)

        return handler(params)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _project_summary(self, project: Project) -> dict[str, Any]:
        return {
            "slug": project.slug,
            "title": project.title,
            "shortDescription": project.short_description,
            "tags": list(project.tags),
            "metrics": dict(project.metrics),
            "featured": project.featured,
            "date": project.date,
            "status": project.status,
            "url": self.store.project_url(project),
            "githubUrl": project.github_url,
            "demoUrl": project.demo_url,
        }

    def _search_site(self, params: models.SearchSiteInput) -> str:
        hits = self.store.keyword_search(params.query)
        return _dump(
            {
                "query": params.query,
                "resultsCount": len(hits),
                "results": [hit.to_dict() for hit in hits],
            }
        )

    def _list_projects(self, params: models.ListProjectsInput) -> str:
        projects = list(self.store.projects)

        if params.tag:
            wanted = params.tag.lower()
            projects = [p for p in projects if any(t.lower() == wanted for t in p.tags)]

        # sorted() is stable, so ties keep file order
        if params.sort is models.ProjectSort.IMPACT:
            projects = sorted(projects, key=lambda p: not p.featured)
        else:
            projects = sorted(projects, key=lambda p: p.date or "", reverse=True)

        return _dump(
            {
                "filters": {"tag": params.tag, "sort": params.sort.value},
                "count": len(projects),
                "projects": [self._project_summary(p) for p in projects],
            }
        )

    def _get_project(self, params: models.GetProjectInput) -> str:
        project = self.store.find_by_slug(params.slug)
        if project is None:
            return _error(
                f"Project not found: {params.slug}",
                availableSlugs=self.store.project_slugs(),
            )
        return _dump(
            {
                **project.model_dump(by_alias=True, mode="json"),
                "url": self.store.project_url(project),
            }
        )

    def _get_skills(self, params: models.GetSkillsInput) -> str:
        resume = self.store.resume
        return _dump(
            {
                "skills": {category: list(skills) for category, skills in resume.skills.items()},
                "certifications": list(resume.certifications),
                "url": self.store.url_for("/about"),
            }
        )

    def _get_resume_section(self, params: models.GetResumeSectionInput) -> str:
        resume = self.store.resume
        url = self.store.url_for("/resume")

        if params.section is models.ResumeSection.SUMMARY:
            return _dump({"summary": resume.summary, "url": url})
        if params.section is models.ResumeSection.EXPERIENCE:
            return _dump(
                {
                    "experience": [e.model_dump(by_alias=True) for e in resume.experience],
                    "url": url,
                }
            )
        return _dump(
            {
                "education": [e.model_dump(by_alias=True) for e in resume.education],
                "certifications": list(resume.certifications),
                "url": url,
            }
        )

    def _get_contact(self, params: models.GetContactInput) -> str:
        site = self.store.site
        return _dump(
            {
                "name": site.name,
                "location": site.location,
                "socials": dict(site.socials),
            }
        )
