"""Pydantic models for the site's structured content records.

The JSON files use camelCase keys; models keep them as aliases so that
``model_dump(by_alias=True)`` round-trips the original shape.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ContentModel(BaseModel):
    """Base model for content records (read-only, camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


# ============================================================================
# site.json
# ============================================================================


class NavigationLink(ContentModel):
    label: str
    href: str


class SiteProfile(ContentModel):
    """Owner profile shown on the landing page."""

    name: str = Field(..., min_length=1)
    title: str = ""
    tagline: str = ""
    bio: str = Field(..., min_length=1)
    avatar: str = ""
    location: str = ""
    socials: dict[str, str] = Field(default_factory=dict)
    highlights: list[str] = Field(default_factory=list)
    current_focus: list[str] = Field(default_factory=list)
    navigation: list[NavigationLink] = Field(default_factory=list)


# ============================================================================
# resume.json
# ============================================================================


class Experience(ContentModel):
    company: str
    role: str
    period: str = ""
    location: str = ""
    highlights: list[str] = Field(default_factory=list)


class Education(ContentModel):
    institution: str
    degree: str
    focus: str = ""
    period: str = ""


class Resume(ContentModel):
    """Resume: summary, work history, education and skills by category."""

    summary: str = Field(..., min_length=1)
    experience: list[Experience] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    skills: dict[str, list[str]] = Field(default_factory=dict)
    pdf_url: str | None = None


# ============================================================================
# projects.json
# ============================================================================


class ProjectLink(ContentModel):
    label: str
    url: str


class Project(ContentModel):
    """A portfolio project."""

    slug: str = Field(..., pattern=r"^[a-z0-9-]+$")
    title: str = Field(..., min_length=1)
    short_description: str = ""
    description: str = ""
    problem_statement: str = ""
    solution: str = ""
    impact: list[str] = Field(default_factory=list)
    metrics: dict[str, str] = Field(default_factory=dict)
    tech_stack: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    featured: bool = False
    # "YYYY-MM"; compared as text for recency ordering
    date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}$")
    status: str = ""
    github_url: str | None = None
    demo_url: str | None = None
    links: list[ProjectLink] = Field(default_factory=list)


class ProjectCatalog(ContentModel):
    projects: list[Project] = Field(default_factory=list)
