"""Response documents the rewriter operates on.

The rewriter only needs to read and replace a body string and to set headers,
so it talks to a small protocol. Two implementations are provided: an
in-memory response and an adapter around a Flask response.
"""

from dataclasses import dataclass, field
from typing import Protocol

from flask import Response


class ResponseDocument(Protocol):
    """Mutable response body plus headers."""

    def get_body(self) -> str: ...

    def set_body(self, body: str) -> None: ...

    def add_header(self, name: str, value: str) -> None: ...


@dataclass
class SimpleResponse:
    """In-memory response document.

    Attributes:
        body: Response body text
        headers: Header name to value, in the order headers were first added
    """

    body: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    def get_body(self) -> str:
        return self.body

    def set_body(self, body: str) -> None:
        self.body = body

    def add_header(self, name: str, value: str) -> None:
        """Set a header, replacing any existing header with the same name."""
        for existing in list(self.headers):
            if existing.lower() == name.lower():
                del self.headers[existing]
        self.headers[name] = value

    def get_header(self, name: str) -> str | None:
        for existing, value in self.headers.items():
            if existing.lower() == name.lower():
                return value
        return None


class FlaskResponseDocument:
    """Adapter exposing a Flask response as a ResponseDocument.

    The body is read using the charset the response declares (UTF-8 when it
    declares none) and written back encoded with ``encoding``.
    Characters the encoding cannot represent are written as numeric
    character references, which both HTML and XHTML understand.
    """

    def __init__(self, response: Response, encoding: str = "utf-8"):
        self.response = response
        self.encoding = encoding

    def get_body(self) -> str:
        charset = self.response.mimetype_params.get("charset", "utf-8")
        return self.response.get_data().decode(charset, "replace")

    def set_body(self, body: str) -> None:
        self.response.set_data(body.encode(self.encoding, "xmlcharrefreplace"))

    def add_header(self, name: str, value: str) -> None:
        # Headers.__setitem__ drops every existing header with this name
        self.response.headers[name] = value
