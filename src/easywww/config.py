"""
=============================================================================
CONFIGURATION
=============================================================================

Two layers:

    ConfigStore    The persisted "Easy-WWW.cfg" file: string values, one
                   map entry, comments written back on save.
    ServerConfig   Typed runtime settings for the listener, pool and logs.
    RoutingConfig  Immutable snapshot of the virtual-host settings, read
                   once per request.

=============================================================================
FILE FORMAT
=============================================================================

    // Address used by server to listen to incoming requests
    address = 127.0.0.1

    // TCP port which the server will use
    port = 8866

    subdomainRoot:images = ./img
    subdomainRoot:more:colons = ./examples     ← subkey "more:colons"

    # hash comments work too

Rules:
    - Lines starting with "//" or "#" are comments; blank lines are ignored.
    - "key = value", split on the first "=", both sides trimmed.
    - "key:subkey = value" adds subkey → value to the map entry "key".
      Only the first ":" separates; the subkey keeps any further colons.
    - Lines without "=", or with an empty key or value, are skipped with
      a warning. So are "port:x = 1" (subkey on a plain entry) and
      "subdomainRoot = ./img" (plain value on a map entry).

=============================================================================
ENVIRONMENT OVERRIDES
=============================================================================

Applied after the file, one variable per entry:

    EASYWWW_ADDRESS=0.0.0.0
    EASYWWW_PORT=8080
    EASYWWW_DEFAULT_ROOT=./public
    EASYWWW_SUBDOMAIN_ROOT="images=./img,docs=./docs"
    EASYWWW_REDIRECT_TO_MATCHED_SUBDOMAIN=false

Overrides are never written back by save().

=============================================================================
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Union


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "Easy-WWW.cfg"
ENV_PREFIX = "EASYWWW_"


@dataclass(frozen=True)
class ConfigEntry:
    """One known setting: its key, default and the comment saved above it."""
    key: str
    default: Union[str, Dict[str, str]]
    comment: Tuple[str, ...] = ()

    @property
    def is_map(self) -> bool:
        return isinstance(self.default, dict)

    @property
    def env_name(self) -> str:
        """defaultRoot → EASYWWW_DEFAULT_ROOT"""
        return ENV_PREFIX + re.sub(r"(?<!^)(?=[A-Z])", "_", self.key).upper()


ENTRIES: Tuple[ConfigEntry, ...] = (
    ConfigEntry("address", "127.0.0.1", (
        "Address used by server to listen to incoming requests",
        "  127.0.0.1 - loopback, your device only",
        "  [Your local IP], e.g. 192.168.1.2 - listens to outside connections",
    )),
    ConfigEntry("port", "8866", (
        "TCP port which the server will use",
        "  80 - HTTP",
    )),
    ConfigEntry("defaultRoot", "./", (
        "Path to the default served directory, relative to the working directory. Valid examples:",
        "  defaultRoot = ./html",
        "  defaultRoot = html/",
        "  defaultRoot = .",
        "  defaultRoot = ../../../my_website/html",
    )),
    ConfigEntry("subdomainRoot", {}, (
        "Optional additional roots tied to subdomains. Multiple entries are allowed.",
        "The site has to be accessed using [hostname] for this matching to work, not by IP.",
        "Examples (where [hostname] = localhost):",
        "  subdomainRoot:images = ./img - images.localhost uses ./img regardless of [defaultRoot]",
        "  subdomainRoot:other = ../other/html - other.localhost uses ../other/html",
        "  subdomainRoot:images.other = ../other/img - subdomains can be combined",
        "  subdomainRoot:more:colons = ./examples - additional colons are kept (more:colons.localhost)",
    )),
    ConfigEntry("redirectToMatchedSubdomain", "true", (
        "Redirect the browser to exactly the subdomain that was matched, if the Host differs",
        "Example 1 (no subdomains set):",
        "  www.[hostname] -> [hostname]",
        "  aaa.bbb.[hostname] -> [hostname]",
        "Example 2 (all examples from [subdomainRoot] are set):",
        "  images.[hostname] (no redirection)",
        "  aaa.bbb.images.[hostname] -> images.[hostname]",
        "  other.images.[hostname] -> images.[hostname]",
    )),
    ConfigEntry("hostname", "localhost", (
        "Domain name that resolves to [address]",
        "It has to be set correctly if [redirectToMatchedSubdomain] = true",
        "or if any [subdomainRoot] is set",
    )),
    ConfigEntry("openInBrowser", "true", (
        "Open the website root in the default browser when the server starts",
    )),
)

ENTRIES_BY_KEY: Dict[str, ConfigEntry] = {entry.key: entry for entry in ENTRIES}

_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0"}


class ConfigStore:
    """
    Persisted key/value settings.

    Usage:
        store = ConfigStore("Easy-WWW.cfg")
        store.load()                       # creates the file if missing
        store.get_int("port")              # 8866
        store.get_map("subdomainRoot")     # {"images": "./img"}
    """

    def __init__(self, path: Union[str, Path] = DEFAULT_CONFIG_PATH, environ: Optional[Mapping[str, str]] = None):
        self.path = Path(path)
        self.environ = os.environ if environ is None else environ
        self._values: Dict[str, Union[str, Dict[str, str]]] = {}
        self._overrides: Dict[str, Union[str, Dict[str, str]]] = {}
        self.reset()

    def reset(self):
        """Back to built-in defaults."""
        self._values = {
            entry.key: dict(entry.default) if entry.is_map else entry.default
            for entry in ENTRIES
        }
        self._overrides = {}

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def load(self, create: bool = True, apply_env: bool = True) -> "ConfigStore":
        """
        Read the file over the defaults, then apply environment overrides.

        Args:
            create: Write a default file when none exists.
            apply_env: Apply EASYWWW_* variables.
        """
        self.reset()

        if self.path.exists():
            self.loads(self.path.read_text(encoding="utf-8"))
            logger.debug(f"Loaded configuration from {self.path}")
        elif create:
            logger.info(f"No configuration at {self.path}, writing defaults")
            self.save()

        if apply_env:
            self.apply_environment()
        return self

    def loads(self, text: str):
        """Merge file-format text into the current values."""
        for number, raw_line in enumerate(text.splitlines(), start=1):
            line = raw_line.strip()

            if not line or line.startswith("//") or line.startswith("#"):
                continue

            key, sep, value = line.partition("=")
            if not sep:
                logger.warning(f"{self.path}:{number}: invalid config entry (no value): {line}")
                continue

            key = key.strip()
            value = value.strip()
            if not key or not value:
                logger.warning(f"{self.path}:{number}: invalid config entry (empty key/value): {line}")
                continue

            if ":" in key:
                main_key, _, sub_key = key.partition(":")
                main_key = main_key.strip()
                entry = ENTRIES_BY_KEY.get(main_key)
                if entry is not None and not entry.is_map:
                    logger.warning(f"{self.path}:{number}: {main_key} does not take subkeys: {line}")
                    continue
                self._map_for(main_key)[sub_key.strip()] = value
            else:
                entry = ENTRIES_BY_KEY.get(key)
                if entry is None:
                    logger.warning(f"{self.path}:{number}: unknown config key {key!r}")
                elif entry.is_map:
                    logger.warning(f"{self.path}:{number}: {key} needs {key}:<subkey> = <value>: {line}")
                    continue
                self._values[key] = value

    def dumps(self) -> str:
        """File-format text for every known entry, each preceded by its comment."""
        blocks = []
        for entry in ENTRIES:
            lines = [f"// {comment}" for comment in entry.comment]
            value = self._values.get(entry.key, entry.default)

            if isinstance(value, dict):
                lines.extend(f"{entry.key}:{sub_key} = {sub_value}" for sub_key, sub_value in value.items())
            else:
                lines.append(f"{entry.key} = {value}")

            blocks.append("\n".join(lines))
        return "\n\n".join(blocks) + "\n"

    def save(self):
        self.path.write_text(self.dumps(), encoding="utf-8")
        logger.debug(f"Saved configuration to {self.path}")

    def apply_environment(self):
        for entry in ENTRIES:
            raw = self.environ.get(entry.env_name)
            if raw is None:
                continue

            if entry.is_map:
                mapping = {}
                for pair in raw.split(","):
                    sub_key, sep, sub_value = pair.partition("=")
                    if sep and sub_key.strip() and sub_value.strip():
                        mapping[sub_key.strip()] = sub_value.strip()
                    elif pair.strip():
                        logger.warning(f"{entry.env_name}: ignoring {pair.strip()!r}")
                self._overrides[entry.key] = mapping
            else:
                self._overrides[entry.key] = raw.strip()

            logger.debug(f"{entry.key} overridden by {entry.env_name}")

    def _map_for(self, key: str) -> Dict[str, str]:
        current = self._values.get(key)
        if not isinstance(current, dict):
            current = {}
            self._values[key] = current
        return current

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    def _lookup(self, key: str) -> Union[str, Dict[str, str]]:
        # Environment overrides shadow the file values without replacing them
        value = self._overrides.get(key, self._values.get(key))
        if value is None:
            raise KeyError(key)
        return value

    def get_string(self, key: str) -> str:
        value = self._lookup(key)
        if isinstance(value, dict):
            raise TypeError(f"{key} is a map entry, use get_map()")
        return value

    def get_int(self, key: str) -> int:
        """Integer value, or -1 when it does not parse."""
        value = self.get_string(key)
        try:
            return int(value)
        except ValueError:
            logger.warning(f"Config entry {key} is not an integer: {value!r}")
            return -1

    def get_bool(self, key: str) -> bool:
        """Boolean value; anything unrecognised is False."""
        value = self.get_string(key).strip().lower()
        if value in _TRUE:
            return True
        if value not in _FALSE:
            logger.warning(f"Config entry {key} is not a boolean: {value!r}")
        return False

    def get_map(self, key: str) -> Dict[str, str]:
        value = self._lookup(key)
        if not isinstance(value, dict):
            raise TypeError(f"{key} is not a map entry")
        return dict(value)

    def set_string(self, key: str, value: str):
        self._overrides.pop(key, None)
        self._values[key] = str(value)

    def set_int(self, key: str, value: int):
        self.set_string(key, str(int(value)))

    def set_bool(self, key: str, value: bool):
        self.set_string(key, "true" if value else "false")

    def set_map(self, key: str, value: Mapping[str, str]):
        self._overrides.pop(key, None)
        self._values[key] = {str(k): str(v) for k, v in value.items()}

    def __contains__(self, key: str) -> bool:
        return key in self._values or key in self._overrides


@dataclass
class ServerConfig:
    """
    Runtime settings for the listener, the worker pool and logging.

    Usage:
        config = ServerConfig.from_store(ConfigStore().load())
        config.port = 0        # any free port
        config.validate()
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    port: int = 8866
    """0 lets the OS pick a free port."""

    backlog: int = 16
    buffer_size: int = 8192

    # ─────────────────────────────────────────────────────────────────────
    # WORKER POOL
    # ─────────────────────────────────────────────────────────────────────

    max_workers: int = 16
    queue_size: int = 64
    """Connections waiting for a worker before new ones get 503."""

    # ─────────────────────────────────────────────────────────────────────
    # READ WAIT (see core.connection)
    # ─────────────────────────────────────────────────────────────────────

    read_wait_initial: float = 0.02
    read_wait_factor: float = 1.5
    read_wait_limit: float = 10.0

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING / IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    log_format: str = "text"
    """'text' or 'json' for the access log."""

    server_name: str = "Easy-WWW"
    open_in_browser: bool = True

    @classmethod
    def from_store(cls, store: ConfigStore) -> "ServerConfig":
        return cls(
            host=store.get_string("address"),
            port=store.get_int("port"),
            open_in_browser=store.get_bool("openInBrowser"),
        )

    def connection_options(self) -> dict:
        """Keyword arguments for every Connection."""
        return {
            "buffer_size": self.buffer_size,
            "read_wait_initial": self.read_wait_initial,
            "read_wait_factor": self.read_wait_factor,
            "read_wait_limit": self.read_wait_limit,
        }

    def validate(self) -> None:
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.read_wait_initial <= 0 or self.read_wait_limit <= 0:
            raise ValueError("read wait interval and limit must be > 0")

        if self.read_wait_factor < 1:
            raise ValueError("read_wait_factor must be >= 1")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', not {self.log_format!r}")


@dataclass(frozen=True)
class RoutingConfig:
    """
    Virtual-host settings as one immutable value.

    Empty strings from the file mean "not set" and become None.
    """

    default_root: Optional[str] = None
    hostname: Optional[str] = None
    subdomain_roots: Mapping[str, str] = field(default_factory=dict)
    redirect_to_matched_subdomain: bool = True

    def __post_init__(self):
        object.__setattr__(self, "subdomain_roots", MappingProxyType(dict(self.subdomain_roots)))

    @classmethod
    def from_store(cls, store: ConfigStore) -> "RoutingConfig":
        return cls(
            default_root=store.get_string("defaultRoot") or None,
            hostname=store.get_string("hostname") or None,
            subdomain_roots=store.get_map("subdomainRoot"),
            redirect_to_matched_subdomain=store.get_bool("redirectToMatchedSubdomain"),
        )
