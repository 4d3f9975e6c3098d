"""Structured site content (profile, resume, projects)."""

from folio.content.store import ContentKind, ContentStore, SearchHit

__all__ = ["ContentKind", "ContentStore", "SearchHit"]
