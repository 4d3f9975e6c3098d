"""Request/response models for the chat API."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from folio.domain.chat.types import ChatMessage, ProjectCard

MAX_MESSAGES = 20
MAX_MESSAGE_LENGTH = 4000


class MessageInput(BaseModel):
    """A single message in the conversation."""

    role: Literal["user", "assistant"]
    content: str = Field(..., max_length=MAX_MESSAGE_LENGTH)

    def to_domain(self) -> ChatMessage:
        return ChatMessage(role=self.role, content=self.content)


class ChatRequest(BaseModel):
    """Request to send a chat message."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[MessageInput] = Field(
        ...,
        min_length=1,
        max_length=MAX_MESSAGES,
        description="Conversation so far, oldest first",
    )
    session_id: str | None = Field(None, alias="sessionId")


class ProjectCardOut(BaseModel):
    """Project summary shown next to the answer."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: str
    url: str
    metrics: dict[str, Any] | None = None
    tags: list[str] | None = None
    github_url: str | None = Field(None, alias="githubUrl")
    demo_url: str | None = Field(None, alias="demoUrl")

    @classmethod
    def from_card(cls, card: ProjectCard) -> "ProjectCardOut":
        return cls(
            title=card.title,
            description=card.description,
            url=card.url,
            metrics=card.metrics,
            tags=card.tags,
            github_url=card.github_url,
            demo_url=card.demo_url,
        )


class ChatResponse(BaseModel):
    """Response from the chat endpoint. ``cards`` is omitted when empty."""

    answer: str
    cards: list[ProjectCardOut] | None = None


class ToolInfo(BaseModel):
    name: str
    description: str


class ToolCatalogResponse(BaseModel):
    tools: list[ToolInfo]
