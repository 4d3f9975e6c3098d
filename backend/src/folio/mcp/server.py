"""Folio MCP server.

Serves the same six read-only content tools the chat assistant uses, over the
Model Context Protocol on stdio, so local clients (IDEs, desktop assistants)
can query the portfolio directly.

Usage with an MCP client:
    {
        "mcpServers": {
            "folio": {
                "command": "python",
                "args": ["-m", "folio.mcp.server"],
                "env": {"CONTENT_DIR": "/path/to/backend/content"}
            }
        }
    }
"""

import sys
from typing import Annotated, Any

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from folio.config import get_settings
from folio.content.store import ContentStore
from folio.domain.chat.tool_models import ProjectSort, ResumeSection
from folio.domain.chat.tool_registry import TOOL_DEFINITIONS, ToolRegistry
from folio.shared.logging import get_logger, setup_logging

logger = get_logger(__name__)

SERVER_NAME = "folio"

READ_ONLY = ToolAnnotations(
    readOnlyHint=True,
    destructiveHint=False,
    idempotentHint=True,
    openWorldHint=False,
)

_DESCRIPTIONS = {definition.name: definition.description for definition in TOOL_DEFINITIONS}


def build_server(registry: ToolRegistry) -> FastMCP:
    """Register every registry tool on a new FastMCP server.

    Results are the registry's JSON text unchanged, error payloads included.
    """
    mcp = FastMCP(
        SERVER_NAME,
        instructions="Read-only access to a portfolio site's profile, resume and projects.",
    )

    async def call(name: str, **args: Any) -> str:
        logger.info("mcp_tool_called", tool=name)
        return await registry.invoke(
            name, {key: value for key, value in args.items() if value is not None}
        )

    async def search_site(
        query: Annotated[str, Field(description="Search query to find relevant content")],
    ) -> str:
        return await call("search_site", query=query)

    async def list_projects(
        tag: Annotated[str | None, Field(description="Filter projects by tag")] = None,
        sort: Annotated[
            ProjectSort, Field(description="'impact' for featured first, 'recent' for date order")
        ] = ProjectSort.IMPACT,
    ) -> str:
        return await call("list_projects", tag=tag, sort=sort.value)

    async def get_project(
        slug: Annotated[str, Field(description="Project slug identifier")],
    ) -> str:
        return await call("get_project", slug=slug)

    async def get_skills() -> str:
        return await call("get_skills")

    async def get_resume_section(
        section: Annotated[ResumeSection, Field(description="Which resume section to retrieve")],
    ) -> str:
        return await call("get_resume_section", section=section.value)

    async def get_contact() -> str:
        return await call("get_contact")

    for fn in (
        search_site,
        list_projects,
        get_project,
        get_skills,
        get_resume_section,
        get_contact,
    ):
        mcp.tool(
            name=fn.__name__,
            description=_DESCRIPTIONS[fn.__name__],
            annotations=READ_ONLY,
        )(fn)

    return mcp


def create_server() -> FastMCP:
    """Server over the configured content directory."""
    settings = get_settings()
    store = ContentStore(settings.content_dir, base_url=settings.site_base_url)
    return build_server(ToolRegistry(store))


def main() -> None:
    # stdout carries the protocol
    setup_logging(stream=sys.stderr)
    logger.info("mcp_server_starting", transport="stdio")
    create_server().run()


if __name__ == "__main__":
    main()
