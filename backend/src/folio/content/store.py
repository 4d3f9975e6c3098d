"""Read-only content store backed by JSON files.

Records are parsed once per process and memoized. Concurrent readers are fine
without locking: the cache is only written while being populated and a racing
double load produces an identical record.
"""

import json
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Literal, cast

from pydantic import ValidationError

from folio.content.models import ContentModel, Project, ProjectCatalog, Resume, SiteProfile
from folio.shared.exceptions import MalformedContentError, NotFoundError
from folio.shared.logging import get_logger

logger = get_logger(__name__)


SearchHitType = Literal["about", "resume", "experience", "project", "skills"]


class ContentKind(str, Enum):
    """The three content records the site is built from."""

    SITE = "site"
    RESUME = "resume"
    PROJECTS = "projects"


_RECORD_MODELS: dict[ContentKind, type[ContentModel]] = {
    ContentKind.SITE: SiteProfile,
    ContentKind.RESUME: Resume,
    ContentKind.PROJECTS: ProjectCatalog,
}


@dataclass(frozen=True)
class SearchHit:
    """A keyword search match, tagged by the part of the site it came from."""

    type: SearchHitType
    title: str
    snippet: str
    url: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class ContentStore:
    """Typed lookups and keyword search over the site's content records."""

    def __init__(self, content_dir: Path, base_url: str = "") -> None:
        self.content_dir = Path(content_dir)
        self.base_url = base_url.rstrip("/")
        self._cache: dict[ContentKind, ContentModel] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, kind: ContentKind | str) -> ContentModel:
        """Load a content record, parsing it on first access only.

        Raises:
            NotFoundError: The record file does not exist.
            MalformedContentError: The file is not JSON or has the wrong shape.
        """
        kind = ContentKind(kind)
        cached = self._cache.get(kind)
        if cached is not None:
            return cached

        path = self.content_dir / f"{kind.value}.json"
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise NotFoundError("Content record", str(path)) from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MalformedContentError(kind.value, f"invalid JSON ({exc})") from exc

        try:
            record = _RECORD_MODELS[kind].model_validate(data)
        except ValidationError as exc:
            raise MalformedContentError(kind.value, _summarize_validation_error(exc)) from exc

        self._cache[kind] = record
        logger.debug("content_loaded", kind=kind.value, path=str(path))
        return record

    def clear_cache(self) -> None:
        """Forget loaded records so the next access re-reads the files."""
        self._cache.clear()

    @property
    def site(self) -> SiteProfile:
        return cast(SiteProfile, self.load(ContentKind.SITE))

    @property
    def resume(self) -> Resume:
        return cast(Resume, self.load(ContentKind.RESUME))

    @property
    def projects(self) -> list[Project]:
        return cast(ProjectCatalog, self.load(ContentKind.PROJECTS)).projects

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_by_slug(self, slug: str) -> Project | None:
        return next((p for p in self.projects if p.slug == slug), None)

    def filter_featured(self) -> list[Project]:
        return [p for p in self.projects if p.featured]

    def project_slugs(self) -> list[str]:
        return [p.slug for p in self.projects]

    def url_for(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def project_url(self, project: Project) -> str:
        return self.url_for(f"/projects/{project.slug}")

    def keyword_search(self, query: str) -> list[SearchHit]:
        """Case-insensitive substring search across the whole site.

        Hits are ordered about, resume summary, experience entries, projects,
        then skills; entries within a category keep their file order.
        """
        needle = query.lower()
        site = self.site
        resume = self.resume
        hits: list[SearchHit] = []

        if _matches(needle, site.bio, site.name, *site.highlights):
            hits.append(
                SearchHit(
                    type="about",
                    title=f"About {site.name}",
                    snippet=site.bio,
                    url=self.url_for("/about"),
                )
            )

        if _matches(needle, resume.summary):
            hits.append(
                SearchHit(
                    type="resume",
                    title="Professional Summary",
                    snippet=resume.summary,
                    url=self.url_for("/resume"),
                )
            )

        for exp in resume.experience:
            if _matches(needle, exp.company, exp.role, *exp.highlights):
                hits.append(
                    SearchHit(
                        type="experience",
                        title=f"{exp.role} at {exp.company}",
                        snippet=". ".join(exp.highlights[:2]),
                        url=self.url_for("/resume"),
                    )
                )

        for project in self.projects:
            if _matches(
                needle,
                project.title,
                project.description,
                project.short_description,
                *project.tags,
                *project.tech_stack,
            ):
                hits.append(
                    SearchHit(
                        type="project",
                        title=project.title,
                        snippet=project.short_description,
                        url=self.project_url(project),
                    )
                )

        matched_skills = [
            skill
            for skills in resume.skills.values()
            for skill in skills
            if needle in skill.lower()
        ]
        if matched_skills:
            hits.append(
                SearchHit(
                    type="skills",
                    title="Technical Skills",
                    snippet=f"Matching skills: {', '.join(matched_skills)}",
                    url=self.url_for("/about"),
                )
            )

        return hits


def _matches(needle: str, *fields: str) -> bool:
    return any(needle in field.lower() for field in fields if field)


def _summarize_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors()[:5]:
        location = ".".join(str(part) for part in error["loc"]) or "<root>"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)
