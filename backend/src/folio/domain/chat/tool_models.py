"""Pydantic models for chat tool input validation.

Models are lenient about unknown keys (models sometimes add stray arguments)
but strict about required fields and enum values.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProjectSort(str, Enum):
    """Ordering for list_projects."""

    IMPACT = "impact"  # featured first
    RECENT = "recent"  # newest date first


class ResumeSection(str, Enum):
    SUMMARY = "summary"
    EXPERIENCE = "experience"
    EDUCATION = "education"


class ToolInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class SearchSiteInput(ToolInput):
    query: str = Field(..., min_length=1, max_length=200)

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Query cannot be empty or whitespace only")
        return v


class ListProjectsInput(ToolInput):
    tag: str | None = None
    sort: ProjectSort = ProjectSort.IMPACT

    @field_validator("sort", mode="before")
    @classmethod
    def default_sort(cls, v: object) -> object:
        return ProjectSort.IMPACT if v in (None, "") else v


class GetProjectInput(ToolInput):
    slug: str = Field(..., min_length=1)


class GetSkillsInput(ToolInput):
    pass


class GetResumeSectionInput(ToolInput):
    section: ResumeSection


class GetContactInput(ToolInput):
    pass
