"""Format selection between HTML4 and XHTML output.

This module decides which representation a response is served in. The
decision is taken from, in order of precedence:

1. the disabled switch of the negotiation settings (no negotiation at all)
2. whether the response headers have already gone out (always "html")
3. a ``forceFormat`` query parameter (returned as given, for testing)
4. the W3C validator user agent (always "xhtml")
5. the weights of ``text/html`` and ``application/xhtml+xml`` in ``Accept``
6. "html" when nothing above applies
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from flask import Request

from src.config import NegotiationSettings
from src.response import ResponseDocument
from src.rewriter import OutputFormat, apply_format

# Configure logging
logger = logging.getLogger(__name__)

FORCE_FORMAT_PARAM = "forceFormat"
VALIDATOR_AGENT_PREFIX = "W3C_Validator/"
DEFAULT_WEIGHT = "1"

# Scan order decides ties between equal weight tokens
KNOWN_MEDIA_TYPES: tuple[tuple[str, OutputFormat], ...] = (
    ("text/html", OutputFormat.HTML),
    ("application/xhtml+xml", OutputFormat.XHTML),
)

_MEDIA_TYPE_PATTERNS = [
    (
        re.compile(re.escape(mime) + r"(?:\s*;\s*q=(\d+(?:\.\d+)?))?", re.IGNORECASE),
        fmt,
    )
    for mime, fmt in KNOWN_MEDIA_TYPES
]


@dataclass
class NegotiationContext:
    """Request signals consulted when picking a representation.

    Attributes:
        headers_sent: True once response headers can no longer be changed
        force_format: Value of the forceFormat query parameter, if present
        user_agent: User-Agent request header
        accept: Raw Accept request header
    """

    headers_sent: bool = False
    force_format: Optional[str] = None
    user_agent: Optional[str] = None
    accept: Optional[str] = None

    @classmethod
    def from_request(
        cls, request: Request, headers_sent: bool = False
    ) -> "NegotiationContext":
        """Build a context from an incoming Flask request."""
        return cls(
            headers_sent=headers_sent,
            force_format=request.args.get(FORCE_FORMAT_PARAM),
            user_agent=request.headers.get("User-Agent"),
            accept=request.headers.get("Accept"),
        )


def parse_accept_preferences(accept: Optional[str]) -> dict[str, str]:
    """Collect weight tokens for the two supported media types.

    Only the first occurrence of each media type counts. Weights are kept as
    the literal token from the header ("1" when absent) and the first format
    recorded under a token keeps it, so ``q=1`` and a missing weight collide.

    Args:
        accept: Raw Accept header value (or None)

    Returns:
        Mapping of weight token to format, in scan order
    """
    preferences: dict[str, str] = {}
    if not accept:
        return preferences

    for pattern, fmt in _MEDIA_TYPE_PATTERNS:
        match = pattern.search(accept)
        if match is None:
            continue
        weight = match.group(1) or DEFAULT_WEIGHT
        if weight not in preferences:
            preferences[weight] = fmt.value

    return preferences


def _weight_sort_key(token: str) -> tuple[float, str]:
    return float(token), token


def select_format(
    context: NegotiationContext, settings: NegotiationSettings
) -> Optional[str]:
    """Pick the representation for a response.

    Args:
        context: Request signals
        settings: Process-wide negotiation settings

    Returns:
        "html", "xhtml", the verbatim forceFormat value, or None when
        negotiation is disabled and the response must be left alone
    """
    if settings.disabled:
        logger.debug("Negotiation disabled, leaving response untouched")
        return None

    if context.headers_sent:
        logger.debug("Headers already sent, falling back to html")
        return OutputFormat.HTML.value

    if context.force_format is not None:
        logger.debug(f"Format forced by request parameter: {context.force_format!r}")
        return context.force_format

    if context.user_agent and context.user_agent.startswith(VALIDATOR_AGENT_PREFIX):
        logger.debug("W3C validator detected, serving xhtml")
        return OutputFormat.XHTML.value

    preferences = parse_accept_preferences(context.accept)
    if not preferences:
        return OutputFormat.HTML.value

    best = sorted(preferences, key=_weight_sort_key, reverse=True)[0]
    logger.debug(f"Accept preferences {preferences}, choosing {preferences[best]}")
    return preferences[best]


def process(
    response: ResponseDocument,
    context: NegotiationContext,
    settings: NegotiationSettings,
) -> Optional[str]:
    """Negotiate a format and rewrite the response for it.

    Args:
        response: Response to rewrite in place
        context: Request signals
        settings: Process-wide negotiation settings

    Returns:
        The applied format, or None when negotiation is disabled

    Raises:
        UnknownFormatError: If a forced format is neither "html" nor "xhtml"
    """
    chosen = select_format(context, settings)
    if chosen is None:
        return None

    apply_format(chosen, response, settings)
    return chosen
