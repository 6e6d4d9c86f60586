"""
File-backed project store.

One directory per project::

    <root>/<project id>/project.json            id, url, platformInfo
    <root>/<project id>/pages.json              scraped page rows
    <root>/<project id>/sitemap-<type>.json     one blob per sitemap type

Blobs are written camelCase with absent optional fields left out, so they
load back unchanged.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Optional

from .errors import ProjectNotFoundError
from .models import PlatformInfo, ScrapedPage, SitemapData, SitemapType, new_id

logger = logging.getLogger(__name__)


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    tmp.replace(path)


def _read_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


class ProjectStore:
    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _dir(self, project_id: str) -> Path:
        if not re.fullmatch(r"[\w.-]+", project_id) or project_id in (".", ".."):
            raise ProjectNotFoundError(f"Invalid project id: {project_id!r}")
        return self.root / project_id

    def _project_file(self, project_id: str) -> Path:
        path = self._dir(project_id) / "project.json"
        if not path.exists():
            raise ProjectNotFoundError(f"Project not found: {project_id}")
        return path

    # Projects

    def create_project(self, url: str, project_id: Optional[str] = None) -> dict:
        project = {"id": project_id or new_id(), "url": url}
        _write_json(self._dir(project["id"]) / "project.json", project)
        logger.info("Created project %s for %s", project["id"], url)
        return project

    def get_project(self, project_id: str) -> dict:
        return _read_json(self._project_file(project_id))

    # Platform

    def save_platform_info(self, project_id: str, info: PlatformInfo) -> None:
        path = self._project_file(project_id)
        project = _read_json(path)
        project["platformInfo"] = info.to_json_dict()
        _write_json(path, project)

    def get_platform_info(self, project_id: str) -> Optional[PlatformInfo]:
        raw = self.get_project(project_id).get("platformInfo")
        return PlatformInfo.model_validate(raw) if raw else None

    # Pages

    def save_pages(self, project_id: str, pages: list[ScrapedPage]) -> list[ScrapedPage]:
        """Add pages, replacing stored rows with the same URL. Returns all stored pages."""
        self._project_file(project_id)
        by_url = {page.url: page for page in self.get_pages(project_id)}
        for page in pages:
            by_url[page.url] = page
        stored = list(by_url.values())
        _write_json(self._dir(project_id) / "pages.json", [p.to_json_dict() for p in stored])
        return stored

    def get_pages(self, project_id: str) -> list[ScrapedPage]:
        path = self._dir(project_id) / "pages.json"
        if not path.exists():
            return []
        return [ScrapedPage.model_validate(row) for row in _read_json(path)]

    # Sitemaps

    def save_sitemap(self, project_id: str, sitemap_type: SitemapType, data: SitemapData) -> None:
        """Replace the stored sitemap of this type."""
        self._project_file(project_id)
        _write_json(self._dir(project_id) / f"sitemap-{sitemap_type}.json", data.to_json_dict())
        logger.info("Stored %s sitemap for %s (%d nodes)", sitemap_type, project_id, data.total_pages)

    def get_sitemap(self, project_id: str, sitemap_type: SitemapType) -> Optional[SitemapData]:
        path = self._dir(project_id) / f"sitemap-{sitemap_type}.json"
        if not path.exists():
            return None
        return SitemapData.model_validate(_read_json(path))
