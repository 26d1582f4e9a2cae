"""Page rendering into XHTML 1.0 Strict documents.

Pages are rendered once, as XHTML, and content negotiation later decides
whether that markup goes out as application/xhtml+xml or gets rewritten
into HTML 4.01.
"""

import html

from src.config import NegotiationSettings
from src.pages import Page

XHTML_DOCTYPE = (
    '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Strict//EN" '
    '"http://www.w3.org/TR/xhtml1/DTD/xhtml1-strict.dtd">'
)
XHTML_NAMESPACE = "http://www.w3.org/1999/xhtml"


class Renderer:
    """Renders pages as XHTML documents.

    The output always starts with an xml prolog, carries the XHTML namespace
    and ``xml:lang`` on ``<html>``, and uses self-closing empty elements.
    """

    def __init__(self, settings: NegotiationSettings):
        """Initialize renderer.

        Args:
            settings: Negotiation settings supplying the declared encoding
        """
        self.settings = settings

    def render_page(self, page: Page) -> str:
        """Render a page as a complete XHTML document.

        The page title is escaped; the page content is inserted as is.

        Args:
            page: Page to render

        Returns:
            XHTML document text
        """
        return self._document(page.title, page.content, page.lang)

    def render_index(self, slugs: list[str]) -> str:
        """Render the list of available pages."""
        if slugs:
            items = "\n".join(
                f'        <li><a href="/{html.escape(slug)}">{html.escape(slug)}</a></li>'
                for slug in slugs
            )
            body = f"    <ul>\n{items}\n    </ul>"
        else:
            body = "    <p>No pages yet.</p>"
        return self._document("Pages", body, "en")

    def _document(self, title: str, body: str, lang: str) -> str:
        encoding = self.settings.get_encoding()
        lang = html.escape(lang)
        return f"""<?xml version="1.0" encoding="{encoding}"?>
{XHTML_DOCTYPE}
<html xmlns="{XHTML_NAMESPACE}" xml:lang="{lang}">
<head>
    <meta http-equiv="Content-Type" content="application/xhtml+xml; charset={encoding}" />
    <title>{html.escape(title)}</title>
</head>
<body>
{body}
    <p class="footer">Served&nbsp;by xhtml-negotiator</p>
</body>
</html>"""
