"""Errors surfaced to the caller of a siteshape command."""


class SiteshapeError(Exception):
    """Base class for conditions reported to the user."""


class SitemapFetchError(SiteshapeError):
    """A sitemap document could not be fetched."""


class NoUrlsFoundError(SiteshapeError):
    """A sitemap.xml import produced no URLs."""

    def __init__(self, errors=None):
        self.errors = list(errors or [])
        super().__init__("; ".join(self.errors) if self.errors else "No URLs found in sitemap.xml")


class NoPagesError(SiteshapeError):
    """A project has no scraped pages to work from."""


class ProjectNotFoundError(SiteshapeError):
    """The store has no project with the given id."""
