"""Textual rewriting of rendered pages into HTML4 or XHTML.

These are targeted substitutions on the rendered text, not a parser. They
assume the conventions of the page renderer: one xml prolog at the top, one
doctype, an ``xmlns`` attribute on the ``<html>`` tag. Anything that does not
match is left as it is.
"""

import logging
import re
from enum import Enum

from src.config import NegotiationSettings
from src.response import ResponseDocument

# Configure logging
logger = logging.getLogger(__name__)

XML_PROLOG = "<?xml"
HTML4_STRICT_DOCTYPE = (
    '<!DOCTYPE HTML PUBLIC "-//W3C//DTD HTML 4.01//EN" '
    '"http://www.w3.org/TR/html4/strict.dtd">'
)

_UNCLOSED_IMG = re.compile(r"(<img[^>]*[^/>])>", re.IGNORECASE)
_XML_DECLARATION = re.compile(r"<\?xml[^>]+\?>\n?")
_DOCTYPE = re.compile(r"<!DOCTYPE[^>]+>")
_HTML_XMLNS = re.compile(r'<html xmlns="[^"]+"')

# Applied in order, each to the output of the previous one
_HTML_REPLACEMENTS = (
    ("/>", ">"),
    ("xml:lang", "lang"),
    ("application/xhtml+xml", "text/html"),
)


class OutputFormat(str, Enum):
    """Supported representations of a rendered page."""

    HTML = "html"
    XHTML = "xhtml"


class UnknownFormatError(ValueError):
    """Raised when a response is dispatched to a format that does not exist."""

    def __init__(self, fmt: object):
        super().__init__(f"Unknown output format: {fmt!r}")
        self.format = fmt


def to_xhtml(response: ResponseDocument, settings: NegotiationSettings) -> None:
    """Serve the response as application/xhtml+xml.

    Only bodies starting with an xml prolog are served as XHTML. Any other
    body is handed to :func:`to_html` instead. Closes ``<br>`` and ``<img>``
    tags and turns ``&nbsp;`` into its numeric reference.
    """
    content = response.get_body()

    if not content.startswith(XML_PROLOG):
        logger.debug("No xml prolog in body, serving html instead of xhtml")
        to_html(response, settings)
        return

    response.add_header(
        "Content-Type", f"application/xhtml+xml; charset={settings.get_encoding()}"
    )
    response.add_header("Vary", "Accept")

    content = content.replace("&nbsp;", "&#160;")
    content = content.replace("<br>", "<br />")
    content = _UNCLOSED_IMG.sub(r"\1/>", content)

    response.set_body(content)


def to_html(response: ResponseDocument, settings: NegotiationSettings) -> None:
    """Serve the response as text/html with an HTML 4.01 Strict doctype.

    Removes the xml prolog and the ``xmlns`` attribute of ``<html>``, unfolds
    self-closing tags and renames ``xml:lang`` to ``lang``.
    """
    response.add_header("Content-Type", f"text/html; charset={settings.get_encoding()}")
    response.add_header("Vary", "Accept")

    content = response.get_body()

    content = _XML_DECLARATION.sub("", content)
    for old, new in _HTML_REPLACEMENTS:
        content = content.replace(old, new)
    content = _DOCTYPE.sub(HTML4_STRICT_DOCTYPE, content)
    content = _HTML_XMLNS.sub("<html ", content)

    response.set_body(content)


def apply_format(
    fmt: str, response: ResponseDocument, settings: NegotiationSettings
) -> None:
    """Rewrite a response for the given format.

    Args:
        fmt: "html" or "xhtml"
        response: Response to rewrite in place
        settings: Negotiation settings supplying the output encoding

    Raises:
        UnknownFormatError: If fmt is not a supported format
    """
    try:
        output_format = OutputFormat(fmt)
    except ValueError:
        logger.warning(f"Rejecting unknown output format: {fmt!r}")
        raise UnknownFormatError(fmt)

    if output_format is OutputFormat.XHTML:
        to_xhtml(response, settings)
    else:
        to_html(response, settings)
