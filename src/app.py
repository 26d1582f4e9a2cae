"""Flask HTTP server for the XHTML negotiation service.

This module implements the HTTP server with routes for page retrieval and
runs content negotiation on every rendered page before it leaves the server.
"""

import logging
from flask import Flask, request, Response

from src.config import Config
from src.negotiator import NegotiationContext, process
from src.pages import PageNotFoundError, PageStore, PageStoreError, is_valid_slug
from src.renderer import Renderer
from src.response import FlaskResponseDocument
from src.rewriter import UnknownFormatError

# Configure logging
logger = logging.getLogger(__name__)

# Maximum slug length accepted in URLs
MAX_SLUG_LENGTH = 100

# Only rendered documents are negotiated
NEGOTIABLE_MIMETYPES = {"text/html", "application/xhtml+xml"}


def document_response(document: str, config: Config) -> Response:
    """Build a 200 response for a rendered document.

    The body is encoded in the output encoding the document declares, so it
    is consistent even when negotiation is skipped.

    Args:
        document: Rendered document text
        config: Configuration holding the output encoding

    Returns:
        text/html response carrying the encoded document
    """
    encoding = config.negotiation.get_encoding()
    return Response(
        document.encode(encoding, "xmlcharrefreplace"),
        status=200,
        content_type=f"text/html; charset={encoding}",
    )


def negotiate_response(response: Response, config: Config) -> Response:
    """Run content negotiation on an outgoing Flask response.

    Args:
        response: Response produced by a view
        config: Configuration holding the negotiation settings

    Returns:
        The rewritten response, or a 400 response for an unknown forced format
    """
    if response.mimetype not in NEGOTIABLE_MIMETYPES:
        return response
    if response.direct_passthrough or response.is_streamed:
        return response

    settings = config.negotiation
    # Flask has not sent anything yet when after_request handlers run
    context = NegotiationContext.from_request(request, headers_sent=False)
    document = FlaskResponseDocument(response, encoding=settings.get_encoding())

    try:
        chosen = process(document, context, settings)
    except UnknownFormatError as e:
        logger.warning(f"Bad forceFormat from {request.remote_addr}: {e}")
        return Response(f"Bad Request: {e}\n", status=400, mimetype="text/plain")

    if chosen is not None:
        logger.debug(f"Served {request.path} as {chosen}")
    return response


def create_app(config: Config, page_store: PageStore, renderer: Renderer) -> Flask:
    """Create and configure Flask application.

    Args:
        config: Configuration instance
        page_store: Store of page fragments
        renderer: Renderer producing XHTML documents

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    @app.route("/health", methods=["GET"])
    def health_check():
        """Health check endpoint.

        GET /health - Health check

        Returns:
            200: OK
        """
        return Response("OK\n", status=200, mimetype="text/plain")

    @app.route("/", methods=["GET"])
    def index():
        """List available pages.

        GET / - Page index

        Returns:
            200: Index document
            500: Internal server error
        """
        try:
            slugs = page_store.list_slugs()
        except PageStoreError as e:
            logger.error(f"Failed to list pages: {e}")
            return Response(
                "Internal Server Error: Failed to list pages\n",
                status=500,
                mimetype="text/plain",
            )

        return document_response(renderer.render_index(slugs), config)

    @app.route("/<slug>", methods=["GET"])
    def show_page(slug: str):
        """Render a stored page.

        GET /<slug> - Retrieve a page

        Args:
            slug: Page name from URL path

        Returns:
            200: Page document (html or xhtml after negotiation)
            400: Invalid page name
            404: Not found
            500: Internal server error
        """
        if len(slug) > MAX_SLUG_LENGTH or not is_valid_slug(slug):
            logger.warning(f"Invalid page slug: {slug}")
            return Response(
                "Bad Request: Invalid page name\n",
                status=400,
                mimetype="text/plain",
            )

        try:
            page = page_store.load(slug)
        except PageNotFoundError:
            logger.info(f"Page not found: {slug}")
            return Response(
                f"Not Found: Page {slug} does not exist\n",
                status=404,
                mimetype="text/plain",
            )
        except PageStoreError as e:
            logger.error(f"Failed to load page {slug}: {e}")
            return Response(
                "Internal Server Error: Failed to load page\n",
                status=500,
                mimetype="text/plain",
            )

        return document_response(renderer.render_page(page), config)

    @app.after_request
    def apply_negotiation(response: Response) -> Response:
        return negotiate_response(response, config)

    return app


def run_server(config: Config, page_store: PageStore, renderer: Renderer) -> None:
    """Run the Flask HTTP server.

    Args:
        config: Configuration instance
        page_store: Store of page fragments
        renderer: Renderer producing XHTML documents
    """
    app = create_app(config, page_store, renderer)

    logger.info(f"Starting HTTP server on all interfaces, port {config.listen_port}")
    app.run(host="0.0.0.0", port=config.listen_port, debug=False)  # nosec B104
