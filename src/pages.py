"""Filesystem storage for page fragments.

Each page is an ``<slug>.html`` file in the pages directory holding the
markup that goes inside ``<body>``. An optional first line of the form
``<!-- title: Some Title -->`` sets the page title.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

# Configure logging
logger = logging.getLogger(__name__)

PAGE_SUFFIX = ".html"
SLUG_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
_TITLE_LINE = re.compile(r"^<!--\s*title:\s*(.*?)\s*-->\s*$")


class PageStoreError(Exception):
    """Raised when page storage operations fail."""

    pass


class PageNotFoundError(PageStoreError):
    """Raised when a requested page does not exist."""

    pass


@dataclass
class Page:
    """A page fragment ready to be rendered.

    Attributes:
        slug: URL name of the page
        title: Page title
        content: Markup placed inside <body>
        lang: Document language
    """

    slug: str
    title: str
    content: str
    lang: str = "en"


def is_valid_slug(slug: str) -> bool:
    return bool(slug) and SLUG_PATTERN.match(slug) is not None


def title_from_slug(slug: str) -> str:
    return slug.replace("-", " ").replace("_", " ").strip().title()


class PageStore:
    """Read-only store of page fragments in a directory."""

    def __init__(self, pages_path: str):
        """Initialize the store.

        Args:
            pages_path: Directory holding ``*.html`` fragments

        Raises:
            PageStoreError: If the directory does not exist
        """
        self.pages_path = Path(pages_path)

        if not self.pages_path.is_dir():
            logger.error(f"Pages directory does not exist: {self.pages_path}")
            raise PageStoreError(f"Pages directory does not exist: {self.pages_path}")

        logger.info(f"Page store initialized at: {self.pages_path}")

    def _path_for(self, slug: str) -> Path:
        return self.pages_path / f"{slug}{PAGE_SUFFIX}"

    def exists(self, slug: str) -> bool:
        """Check if a page exists.

        Args:
            slug: Page name

        Returns:
            True if the page exists, False otherwise (including invalid slugs)
        """
        if not is_valid_slug(slug):
            return False
        return self._path_for(slug).is_file()

    def load(self, slug: str) -> Page:
        """Load a page by slug.

        Args:
            slug: Page name

        Returns:
            Page with title and body markup

        Raises:
            PageNotFoundError: If the slug is invalid or no such page exists
            PageStoreError: If the page file cannot be read
        """
        if not is_valid_slug(slug):
            logger.debug(f"Invalid page slug: {slug!r}")
            raise PageNotFoundError(f"Page not found: {slug}")

        path = self._path_for(slug)
        if not path.is_file():
            logger.debug(f"Page not found: {slug}")
            raise PageNotFoundError(f"Page not found: {slug}")

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read page {slug}: {e}")
            raise PageStoreError(f"Failed to read page {slug}: {e}")

        title = title_from_slug(slug)
        first_line, newline, rest = text.partition("\n")
        match = _TITLE_LINE.match(first_line)
        if match:
            title = match.group(1) or title
            text = rest if newline else ""

        logger.debug(f"Page loaded: {slug}")
        return Page(slug=slug, title=title, content=text)

    def list_slugs(self) -> list[str]:
        """Return the slugs of all pages, sorted."""
        try:
            return sorted(
                path.stem
                for path in self.pages_path.glob(f"*{PAGE_SUFFIX}")
                if path.is_file() and is_valid_slug(path.stem)
            )
        except OSError as e:
            logger.error(f"Failed to list pages: {e}")
            raise PageStoreError(f"Failed to list pages: {e}")
