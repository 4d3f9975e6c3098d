"""
Pytest configuration and fixtures for Folio backend tests.
"""
import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from folio.api.ratelimit import ChatRateLimiter
from folio.content.store import ContentStore
from folio.domain.chat.gateway import ModelGateway
from folio.domain.chat.orchestrator import ChatOrchestrator
from folio.domain.chat.tool_registry import ToolRegistry
from folio.domain.chat.types import BackendReply, ChatMessage, ToolDefinition
from folio.main import create_app

SITE: dict[str, Any] = {
    "name": "Jordan Lee",
    "title": "ML Engineer",
    "tagline": "Shipping models to production",
    "bio": "Machine learning (ML) engineer who builds data platforms.",
    "location": "Lisbon, Portugal",
    "socials": {
        "email": "x@y.com",
        "github": "https://github.com/jordanlee",
    },
    "highlights": ["Built a feature store used by 30 teams"],
    "currentFocus": ["LLM evaluation"],
    "navigation": [{"label": "Projects", "href": "/projects"}],
}

RESUME: dict[str, Any] = {
    "summary": "ML engineer with a focus on search and ranking.",
    "experience": [
        {
            "company": "Acme Analytics",
            "role": "Senior ML Engineer",
            "period": "2020 - Present",
            "location": "Remote",
            "highlights": [
                "Launched the ranking service",
                "Reduced inference cost by 40%",
                "Ran the hiring loop",
            ],
        }
    ],
    "education": [
        {
            "institution": "University of Porto",
            "degree": "M.Sc. Informatics",
            "focus": "Machine learning",
            "period": "2014 - 2016",
        }
    ],
    "certifications": ["GCP Professional ML Engineer"],
    "skills": {
        "programming": ["Python", "Rust"],
        "ml": ["PyTorch", "XGBoost"],
    },
    "pdfUrl": "/resume.pdf",
}

PROJECTS: dict[str, Any] = {
    "projects": [
        {
            "slug": "search-ranker",
            "title": "Search Ranker",
            "shortDescription": "Learning-to-rank service for product search.",
            "description": "A Python ranking service with online evaluation.",
            "metrics": {"ndcg": "+12%"},
            "techStack": ["Python", "XGBoost"],
            "tags": ["ml", "search"],
            "featured": False,
            "date": "2024-03",
            "githubUrl": "https://github.com/jordanlee/search-ranker",
            "demoUrl": None,
        },
        {
            "slug": "feature-store",
            "title": "Feature Store",
            "shortDescription": "Shared feature platform for model training.",
            "description": "Batch and streaming features with point-in-time joins.",
            "metrics": {"teams": "30"},
            "techStack": ["Spark", "Kafka"],
            "tags": ["data", "platform"],
            "featured": True,
            "date": "2022-09",
            "githubUrl": None,
            "demoUrl": "https://demo.example.com/features",
        },
    ]
}


def write_content(directory: Path, **records: Any) -> Path:
    """Write content records (site=..., resume=..., projects=...) as JSON files."""
    directory.mkdir(parents=True, exist_ok=True)
    for name, data in records.items():
        (directory / f"{name}.json").write_text(json.dumps(data), encoding="utf-8")
    return directory


class StubBackend:
    """Model backend that replays scripted replies and records what it was sent."""

    name = "stub"

    def __init__(
        self,
        replies: Sequence[BackendReply | str | Exception],
        supports_native_tools: bool = True,
    ) -> None:
        self.replies = list(replies)
        self.supports_native_tools = supports_native_tools
        self.transcripts: list[list[ChatMessage]] = []
        self.tools_seen: list[Sequence[ToolDefinition] | None] = []
        self.closed = False

    async def complete(
        self,
        transcript: Sequence[ChatMessage],
        tools: Sequence[ToolDefinition] | None = None,
    ) -> BackendReply:
        self.transcripts.append(list(transcript))
        self.tools_seen.append(tools)
        if not self.replies:
            raise AssertionError("StubBackend ran out of scripted replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, str):
            return BackendReply(text=reply, finish_reason="stop")
        return reply

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def content_dir(tmp_path: Path) -> Path:
    """Temporary content directory holding all three records."""
    return write_content(tmp_path / "content", site=SITE, resume=RESUME, projects=PROJECTS)


@pytest.fixture
def content_store(content_dir: Path) -> ContentStore:
    return ContentStore(content_dir)


@pytest.fixture
def registry(content_store: ContentStore) -> ToolRegistry:
    return ToolRegistry(content_store)


@pytest.fixture
def make_orchestrator(registry: ToolRegistry):
    """Factory building an orchestrator around a scripted StubBackend."""

    def _make(*replies: BackendReply | str | Exception, native: bool = True):
        backend = StubBackend(replies, supports_native_tools=native)
        orchestrator = ChatOrchestrator(ModelGateway(backend), registry)
        return orchestrator, backend

    return _make


@pytest.fixture
def app(content_store: ContentStore) -> FastAPI:
    """Create test FastAPI application wired to the temporary content store."""
    app = create_app()
    app.state.content_store = content_store
    app.state.rate_limiter = ChatRateLimiter("20/minute")
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create sync test client."""
    return TestClient(app)
