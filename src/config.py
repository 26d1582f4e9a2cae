"""Configuration management for the XHTML negotiation service.

This module handles loading configuration from environment variables and config files,
with sensible defaults for optional values, and holds the negotiation settings
(output encoding, disabled switch) shared by the selector and the rewriter.
"""

import codecs
import logging
import os
import sys
from pathlib import Path
from types import ModuleType
from typing import Optional
from typing import TypedDict

# Configure logging
logger = logging.getLogger(__name__)

# Handle tomllib/tomli for Python 3.11+ vs earlier versions
tomllib: ModuleType | None
if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None

DEFAULT_ENCODING = "utf-8"

_TRUTHY = {"1", "true", "yes", "on"}


class _ConfigValues(TypedDict):
    pages_path: str
    listen_port: int
    encoding: str
    negotiation_disabled: bool


class ConfigError(Exception):
    """Raised when configuration is invalid or missing required values."""

    pass


class NegotiationSettings:
    """Output encoding and on/off switch for content negotiation.

    One instance is built at startup and handed to every negotiation call.
    Changes made through the setters are seen by all later calls sharing
    the instance. There is deliberately no way to re-enable negotiation once
    ``disable()`` has been called.
    """

    def __init__(self, encoding: str = DEFAULT_ENCODING, disabled: bool = False):
        self._encoding = DEFAULT_ENCODING
        self._disabled = False
        self.set_encoding(encoding)
        if disabled:
            self.disable()

    def set_encoding(self, encoding: str) -> None:
        """Set the character set announced in the Content-Type header.

        Args:
            encoding: Codec name, e.g. "utf-8" or "windows-1252"

        Raises:
            ConfigError: If the encoding is empty or unknown to Python
        """
        if not isinstance(encoding, str):
            logger.error(f"Output encoding must be a string: {encoding!r}")
            raise ConfigError(f"Output encoding must be a string: {encoding!r}")
        if not encoding:
            raise ConfigError("Encoding cannot be empty")
        try:
            codecs.lookup(encoding)
        except LookupError:
            logger.error(f"Unknown output encoding: {encoding}")
            raise ConfigError(f"Unknown output encoding: {encoding}")

        self._encoding = encoding
        logger.debug(f"Output encoding set to {encoding}")

    def get_encoding(self) -> str:
        return self._encoding

    def disable(self) -> None:
        """Turn negotiation off for the rest of the process lifetime."""
        if not self._disabled:
            logger.info("Content negotiation disabled")
        self._disabled = True

    @property
    def disabled(self) -> bool:
        return self._disabled

    def __repr__(self) -> str:
        return (
            f"NegotiationSettings(encoding={self._encoding!r}, "
            f"disabled={self._disabled})"
        )


class Config:
    """Configuration for the XHTML negotiation service.

    Configuration is loaded with the following priority:
    1. Environment variables (highest priority)
    2. Configuration file (TOML format)
    3. Default values (lowest priority)

    Required configuration:
    - pages_path: Directory holding the page fragments to serve

    Optional configuration:
    - listen_port: Port for HTTP server (default: 8080)
    - encoding: Output character encoding (default: utf-8)
    - negotiation_disabled: Serve rendered pages untouched (default: False)
    """

    def __init__(
        self,
        pages_path: str,
        listen_port: int = 8080,
        encoding: str = DEFAULT_ENCODING,
        negotiation_disabled: bool = False,
    ):
        """Initialize configuration with validated values.

        Args:
            pages_path: Directory holding the page fragments
            listen_port: Port for HTTP server
            encoding: Output character encoding
            negotiation_disabled: Skip negotiation for every response

        Raises:
            ConfigError: If configuration values are invalid
        """
        self.pages_path = pages_path
        self.listen_port = listen_port
        self.negotiation = NegotiationSettings(
            encoding=encoding, disabled=negotiation_disabled
        )

    @classmethod
    def from_env_and_file(cls, config_file: Optional[str] = None) -> "Config":
        """Load configuration from environment variables and optional config file.

        Environment variables take precedence over config file values.

        Environment variables:
        - PAGES_PATH: Directory of page fragments (required)
        - LISTEN_PORT: HTTP server port (optional, default: 8080)
        - OUTPUT_ENCODING: Character encoding of responses (optional, default: utf-8)
        - DISABLE_NEGOTIATION: "1", "true", "yes" or "on" to turn negotiation off

        Args:
            config_file: Path to TOML config file (optional)

        Returns:
            Config instance with loaded values

        Raises:
            ConfigError: If required configuration is missing or invalid
        """
        config_values: _ConfigValues = {
            "pages_path": "",
            "listen_port": 8080,
            "encoding": DEFAULT_ENCODING,
            "negotiation_disabled": False,
        }

        if config_file:
            file_config = cls._load_from_file(config_file)
            config_values.update(file_config)

        # Override with environment variables
        if "PAGES_PATH" in os.environ:
            config_values["pages_path"] = os.environ["PAGES_PATH"]

        if not config_values["pages_path"]:
            raise ConfigError("PAGES_PATH is required")
        if "LISTEN_PORT" in os.environ:
            try:
                config_values["listen_port"] = int(os.environ["LISTEN_PORT"])
            except ValueError:
                raise ConfigError("Invalid LISTEN_PORT: must be an integer")
        if "OUTPUT_ENCODING" in os.environ:
            config_values["encoding"] = os.environ["OUTPUT_ENCODING"]
        if "DISABLE_NEGOTIATION" in os.environ:
            config_values["negotiation_disabled"] = (
                os.environ["DISABLE_NEGOTIATION"].lower() in _TRUTHY
            )

        if not (1 <= config_values["listen_port"] <= 65535):
            logger.error(f"Invalid listen_port: {config_values['listen_port']}")
            raise ConfigError("Invalid listen_port: must be between 1 and 65535")

        logger.info(
            f"Configuration loaded: pages_path={config_values['pages_path']}, "
            f"listen_port={config_values['listen_port']}, "
            f"encoding={config_values['encoding']}"
        )

        return cls(**config_values)

    @staticmethod
    def _load_from_file(config_file: str) -> _ConfigValues:
        """Load configuration from TOML file.

        Args:
            config_file: Path to TOML config file

        Returns:
            Dictionary of configuration values

        Raises:
            ConfigError: If file cannot be read or parsed
        """
        if tomllib is None:
            raise ConfigError(
                "TOML support not available. Install tomli for Python < 3.11"
            )

        try:
            with open(config_file, "rb") as f:
                data = tomllib.load(f)
        except FileNotFoundError:
            raise ConfigError(f"Config file not found: {config_file}")
        except Exception as e:
            raise ConfigError(f"Failed to parse config file: {e}")

        config: _ConfigValues = {
            "pages_path": "",
            "listen_port": 8080,
            "encoding": DEFAULT_ENCODING,
            "negotiation_disabled": False,
        }
        if "pages_path" in data:
            config["pages_path"] = data["pages_path"]
        if "listen_port" in data:
            config["listen_port"] = data["listen_port"]
        if "encoding" in data:
            config["encoding"] = data["encoding"]
        if "negotiation_disabled" in data:
            config["negotiation_disabled"] = bool(data["negotiation_disabled"])

        return config

    def validate_pages_path(self) -> None:
        """Validate that the pages directory exists and is readable.

        Raises:
            ConfigError: If pages path is missing or not readable
        """
        path = Path(self.pages_path)

        if not path.is_dir():
            logger.error(f"Pages path is not a directory: {self.pages_path}")
            raise ConfigError(f"Pages path is not a directory: {self.pages_path}")

        if not os.access(path, os.R_OK):
            logger.error(f"Pages path is not readable: {self.pages_path}")
            raise ConfigError(f"Pages path is not readable: {self.pages_path}")

        logger.info(f"Pages path validated: {self.pages_path}")

    def __repr__(self) -> str:
        """String representation of configuration."""
        return (
            f"Config(pages_path={self.pages_path!r}, "
            f"listen_port={self.listen_port}, "
            f"negotiation={self.negotiation!r})"
        )
