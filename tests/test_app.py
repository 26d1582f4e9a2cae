"""Tests for Flask HTTP server.

Integration tests to verify routes and the negotiation hook work together.
"""

from unittest.mock import Mock

import pytest

from src.app import create_app
from src.config import Config
from src.pages import PageStore, PageStoreError
from src.renderer import Renderer
from src.rewriter import HTML4_STRICT_DOCTYPE

VALIDATOR_AGENT = "W3C_Validator/1.3 http://validator.w3.org/services"


class TestFlaskApp:
    """Integration tests for Flask application."""

    @pytest.fixture
    def pages_dir(self, tmp_path):
        """Create a pages directory with one page."""
        (tmp_path / "about.html").write_text(
            "<!-- title: About -->\n"
            '<p>Café<br />menu</p>\n<p><img src="/logo.png" alt="logo" /></p>\n',
            encoding="utf-8",
        )
        return tmp_path

    @pytest.fixture
    def config(self, pages_dir):
        """Create test configuration."""
        return Config(pages_path=str(pages_dir), listen_port=8080)

    @pytest.fixture
    def page_store(self, config):
        """Create page store."""
        return PageStore(config.pages_path)

    @pytest.fixture
    def renderer(self, config):
        """Create renderer."""
        return Renderer(config.negotiation)

    @pytest.fixture
    def app(self, config, page_store, renderer):
        """Create Flask test app."""
        flask_app = create_app(config, page_store, renderer)
        flask_app.config["TESTING"] = True
        return flask_app

    @pytest.fixture
    def client(self, app):
        """Create Flask test client."""
        return app.test_client()

    def test_health_check_not_negotiated(self, client):
        """Test that plain text responses are left alone."""
        response = client.get("/health", headers={"Accept": "application/xhtml+xml"})

        assert response.status_code == 200
        assert response.mimetype == "text/plain"
        assert response.data == b"OK\n"
        assert "Vary" not in response.headers

    def test_page_as_xhtml(self, client):
        """Test that an xhtml client receives application/xhtml+xml."""
        response = client.get("/about", headers={"Accept": "application/xhtml+xml"})

        body = response.get_data(as_text=True)
        assert response.status_code == 200
        assert response.headers["Content-Type"] == (
            "application/xhtml+xml; charset=utf-8"
        )
        assert response.headers["Vary"] == "Accept"
        assert body.startswith("<?xml")
        assert "&#160;" in body
        assert '<img src="/logo.png" alt="logo" />' in body

    def test_page_as_html(self, client):
        """Test that an html client receives the HTML 4.01 rewrite."""
        response = client.get("/about", headers={"Accept": "text/html"})

        body = response.get_data(as_text=True)
        assert response.status_code == 200
        assert response.headers["Content-Type"] == "text/html; charset=utf-8"
        assert response.headers["Vary"] == "Accept"
        assert body.startswith(HTML4_STRICT_DOCTYPE)
        assert "<?xml" not in body
        assert "/>" not in body
        assert "xmlns" not in body
        assert '<html  lang="en">' in body
        assert "<p>Café<br >menu</p>" in body

    def test_page_without_accept_is_html(self, client):
        """Test that requests without Accept fall back to html."""
        response = client.get("/about")

        assert response.mimetype == "text/html"

    def test_weighted_accept(self, client):
        """Test that q values decide between the formats."""
        response = client.get(
            "/about",
            headers={"Accept": "text/html;q=0.5,application/xhtml+xml;q=0.9"},
        )

        assert response.mimetype == "application/xhtml+xml"

    def test_force_format_overrides_accept(self, client):
        """Test the forceFormat query parameter."""
        response = client.get(
            "/about?forceFormat=xhtml", headers={"Accept": "text/html"}
        )

        assert response.mimetype == "application/xhtml+xml"

    def test_unknown_force_format_rejected(self, client):
        """Test that an unknown forced format yields 400 naming it."""
        response = client.get("/about?forceFormat=pdf")

        assert response.status_code == 400
        assert response.mimetype == "text/plain"
        assert b"Bad Request" in response.data
        assert b"pdf" in response.data

    def test_validator_gets_xhtml(self, client):
        """Test that the W3C validator receives xhtml."""
        response = client.get(
            "/about", headers={"User-Agent": VALIDATOR_AGENT, "Accept": "text/html"}
        )

        assert response.mimetype == "application/xhtml+xml"

    def test_index_lists_pages(self, client):
        """Test the page index."""
        response = client.get("/", headers={"Accept": "application/xhtml+xml"})

        assert response.status_code == 200
        assert response.mimetype == "application/xhtml+xml"
        assert b'<a href="/about">about</a>' in response.data

    def test_page_not_found(self, client):
        """Test retrieval of a non-existent page."""
        response = client.get("/missing", headers={"Accept": "application/xhtml+xml"})

        assert response.status_code == 404
        assert response.mimetype == "text/plain"
        assert b"Not Found" in response.data

    def test_invalid_slug(self, client):
        """Test retrieval with an invalid page name."""
        response = client.get("/bad.name")

        assert response.status_code == 400
        assert b"Invalid page name" in response.data

    def test_slug_too_long(self, client):
        """Test retrieval with a very long page name."""
        response = client.get("/" + "x" * 200)

        assert response.status_code == 400

    def test_store_failure(self, config, renderer):
        """Test that store errors become 500 responses."""
        failing_store = Mock(spec=PageStore)
        failing_store.load.side_effect = PageStoreError("disk on fire")
        failing_store.list_slugs.side_effect = PageStoreError("disk on fire")
        flask_app = create_app(config, failing_store, renderer)
        flask_app.config["TESTING"] = True

        with flask_app.test_client() as client:
            response = client.get("/about")
            assert response.status_code == 500
            assert b"Failed to load page" in response.data

            response = client.get("/")
            assert response.status_code == 500
            assert b"Failed to list pages" in response.data

    def test_disabled_negotiation(self, config, client):
        """Test that disabling negotiation serves the rendered page as is."""
        config.negotiation.disable()

        response = client.get("/about", headers={"Accept": "application/xhtml+xml"})

        assert response.status_code == 200
        assert response.mimetype == "text/html"
        assert "Vary" not in response.headers
        assert response.get_data(as_text=True).startswith("<?xml")

    def test_disabled_negotiation_keeps_declared_encoding(self, pages_dir):
        """Test that skipped negotiation still sends the declared encoding."""
        config = Config(
            pages_path=str(pages_dir),
            encoding="iso-8859-1",
            negotiation_disabled=True,
        )
        flask_app = create_app(
            config, PageStore(config.pages_path), Renderer(config.negotiation)
        )
        flask_app.config["TESTING"] = True

        with flask_app.test_client() as client:
            response = client.get("/about", headers={"Accept": "text/html"})

        assert response.status_code == 200
        assert response.headers["Content-Type"] == "text/html; charset=iso-8859-1"
        assert response.data.startswith(
            b'<?xml version="1.0" encoding="iso-8859-1"?>'
        )
        assert b"Caf\xe9" in response.data
        assert "Café".encode("utf-8") not in response.data

    def test_encoding_change_applies_to_next_request(self, config, client):
        """Test that a new output encoding affects headers and body bytes."""
        first = client.get("/about", headers={"Accept": "text/html"})
        assert first.headers["Content-Type"] == "text/html; charset=utf-8"
        assert "Café".encode("utf-8") in first.data

        config.negotiation.set_encoding("iso-8859-1")

        second = client.get("/about", headers={"Accept": "text/html"})
        assert second.headers["Content-Type"] == "text/html; charset=iso-8859-1"
        assert b"Caf\xe9" in second.data
