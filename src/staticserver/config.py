"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

One immutable ServerConfig, built once at process start and handed to the
server. Nothing reads configuration from module globals.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── staticserver 8080 --public-dir ./public                   │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── STATIC_PUBLIC_DIR=./public STATIC_PORT=8080               │
    │                                                                      │
    │   3. Settings file (JSON)                                           │
    │      └── settings.json: {"publicDir": "./public"}                  │
    │                                                                      │
    │   4. Defaults in ServerConfig                                       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

``public_dir`` has no default. If no source provides it, validate()
raises ConfigError and the process exits before binding a socket.

=============================================================================
"""

import os
import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .exceptions import ConfigError


logger = logging.getLogger(__name__)

DEFAULT_PORT = 3000
DEFAULT_SETTINGS_FILE = "settings.json"


def parse_port(value: Any, default: int = DEFAULT_PORT) -> int:
    """
    Read a listen port, falling back to ``default``.

    Missing, non-numeric and out-of-range values all give the default.

        >>> parse_port("8080")
        8080
        >>> parse_port("http")
        3000
        >>> parse_port(None, default=8000)
        8000
    """
    if value is None:
        return default
    try:
        port = int(str(value).strip())
    except ValueError:
        logger.warning(f"Invalid port {value!r}, using {default}")
        return default
    if not 0 <= port < 65536:
        logger.warning(f"Port {port} out of range, using {default}")
        return default
    return port


def read_settings(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a JSON settings file.

    A missing file gives an empty dict; the missing ``publicDir`` is
    reported later by validate().

    Raises:
        ConfigError: The file exists but is unreadable, not JSON, or not
                     a JSON object.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug(f"No settings file at {path}")
        return {}
    except OSError as e:
        raise ConfigError(f"Cannot read settings file {path}: {e}") from e

    try:
        settings = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Settings file {path} is not valid JSON: {e}") from e

    if not isinstance(settings, dict):
        raise ConfigError(f"Settings file {path} must contain a JSON object")

    return settings


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuration for the static file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    CONTENT
    - public_dir, chunk_size

    NETWORK
    - host, port, backlog, buffer_size, timeout

    HTTP
    - keep_alive, keep_alive_timeout, max_request_size

    THREADING
    - min_workers, max_workers, queue_size

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    public_dir: Optional[str] = None
    """Root directory to serve. Required; nothing outside it is reachable."""

    chunk_size: int = 64 * 1024
    """Bytes read from disk per write when streaming a file."""

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    backlog: int = 128
    buffer_size: int = 8192

    timeout: Optional[float] = 30.0
    """Socket timeout in seconds while reading a request."""

    # ─────────────────────────────────────────────────────────────────────
    # HTTP
    # ─────────────────────────────────────────────────────────────────────

    keep_alive: bool = True
    keep_alive_timeout: float = 5.0

    max_request_size: int = 1024 * 1024
    """Largest request (head plus body) accepted, in bytes."""

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    max_workers: int = 16
    queue_size: int = 100

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING / IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    log_format: str = "text"
    server_name: str = "staticserver/1.0"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **defaults) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        STATIC_PUBLIC_DIR  Root directory to serve
        STATIC_HOST        Bind address (default: 127.0.0.1)
        STATIC_PORT        Listen port (default: 3000, also on bad values)
        STATIC_WORKERS     Minimum worker threads; max is twice this
        STATIC_LOG_LEVEL   Logging level (default: INFO)

        =====================================================================
        """
        return cls(**{**defaults, **_env_values(environ)})

    @classmethod
    def load(
        cls,
        settings_file: Union[str, Path, None] = DEFAULT_SETTINGS_FILE,
        environ: Optional[Mapping[str, str]] = None,
        **overrides,
    ) -> "ServerConfig":
        """
        Build configuration from every source, in priority order.

        Args:
            settings_file: JSON settings file; None skips it.
            environ: Environment mapping, ``os.environ`` by default.
            **overrides: Field values from the command line. None values
                         are ignored so unset flags don't mask lower
                         sources.

        Returns:
            The merged configuration. Not yet validated.
        """
        values: Dict[str, Any] = {}

        if settings_file is not None:
            settings = read_settings(settings_file)
            if settings.get("publicDir") is not None:
                values["public_dir"] = str(settings["publicDir"])

        values.update(_env_values(environ))
        values.update({k: v for k, v in overrides.items() if v is not None})

        return cls(**values)

    def with_overrides(self, **changes) -> "ServerConfig":
        """Copy with some fields replaced; None values are ignored."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def validate(self) -> None:
        """
        Check the configuration, failing fast at startup.

        Raises:
            ConfigError: On the first invalid value.
        """
        if not self.public_dir:
            raise ConfigError('"publicDir" setting is not set')

        if not os.path.exists(self.public_dir):
            logger.warning(f"Public directory does not exist: {self.public_dir}")

        if not 0 <= self.port < 65536:
            raise ConfigError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ConfigError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ConfigError("max_workers must be >= min_workers")

        if self.buffer_size < 1024:
            raise ConfigError("buffer_size must be >= 1024")

        if self.chunk_size < 1:
            raise ConfigError("chunk_size must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ConfigError("timeout must be > 0")

        if self.log_format not in ("text", "json"):
            raise ConfigError(f"log_format must be 'text' or 'json', not {self.log_format!r}")


def _env_values(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """ServerConfig fields found in the environment."""
    env = os.environ if environ is None else environ
    values: Dict[str, Any] = {}

    if env.get("STATIC_PUBLIC_DIR"):
        values["public_dir"] = env["STATIC_PUBLIC_DIR"]
    if env.get("STATIC_HOST"):
        values["host"] = env["STATIC_HOST"]
    if env.get("STATIC_PORT"):
        values["port"] = parse_port(env["STATIC_PORT"])
    if env.get("STATIC_LOG_LEVEL"):
        values["log_level"] = env["STATIC_LOG_LEVEL"].upper()
    if env.get("STATIC_WORKERS"):
        try:
            workers = int(env["STATIC_WORKERS"])
        except ValueError as e:
            raise ConfigError(f"STATIC_WORKERS must be an integer: {env['STATIC_WORKERS']!r}") from e
        values["min_workers"] = workers
        values["max_workers"] = workers * 2

    return values
