from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from . import config_constants


def _is_test_environment() -> bool:
    """Check if we're running in a test environment."""
    import sys

    if "pytest" in sys.modules or "PYTEST_CURRENT_TEST" in os.environ:
        return True
    if os.environ.get("TESTING", "").lower() in ("1", "true", "yes"):
        return True
    return False


# Tests configure through Config objects and env vars, never through .env files
if not _is_test_environment():
    try:
        load_dotenv(override=False)
    except (PermissionError, OSError):
        pass

# Re-exported constants
DEFAULT_LOG_LEVEL = config_constants.DEFAULT_LOG_LEVEL
DEFAULT_TIMEOUT_SECONDS = config_constants.DEFAULT_TIMEOUT_SECONDS
DEFAULT_USER_AGENT = config_constants.DEFAULT_USER_AGENT
MOBILE_USER_AGENT = config_constants.MOBILE_USER_AGENT
DEFAULT_REFERER = config_constants.DEFAULT_REFERER
ALTERNATE_REFERER = config_constants.ALTERNATE_REFERER
INSECURE_REFERER = config_constants.INSECURE_REFERER
DEFAULT_RELAY_URL_TEMPLATE = config_constants.DEFAULT_RELAY_URL_TEMPLATE
DEFAULT_RELAY_MIN_BODY_LENGTH = config_constants.DEFAULT_RELAY_MIN_BODY_LENGTH
MIN_TIMEOUT_SECONDS = config_constants.MIN_TIMEOUT_SECONDS
VALID_LOG_LEVELS = config_constants.VALID_LOG_LEVELS


@dataclass(frozen=True)
class FolderRules:
    """Substring markers that tag a feed item as a folder.

    Attributes:
        mime_markers: Matched against the lowercased enclosure MIME type.
        url_markers: Matched against the lowercased resolved item URL.
    """

    mime_markers: Tuple[str, ...] = config_constants.DEFAULT_FOLDER_MIME_MARKERS
    url_markers: Tuple[str, ...] = config_constants.DEFAULT_FOLDER_URL_MARKERS

    def matches(self, url: str, mime_type: str) -> bool:
        mime_lower = mime_type.lower()
        url_lower = url.lower()
        if any(marker in mime_lower for marker in self.mime_markers):
            return True
        return any(marker in url_lower for marker in self.url_markers)


class Config(BaseModel):
    """Configuration model for feed acquisition, parsing and the endpoint server.

    Configuration can be created programmatically or loaded from JSON/YAML files
    using `load_config_file()`. The model is frozen after creation.

    Attributes:
        user_agent: Desktop browser User-Agent used by the direct strategies.
        mobile_user_agent: User-Agent of the alternate client identity strategy.
        timeout: Per-attempt request timeout in seconds (minimum: 1).
        default_referer: Referer sent when the caller supplies none.
        alternate_referer: Second referer path tried against blocking hosts.
        insecure_referer: Plain-HTTP referer tried for plain-HTTP feed URLs.
        blocking_hosts: Hosts known to answer 204 to unrecognized clients.
        relay_url_template: Read-through relay URL; ``{url}`` is replaced with the
            percent-encoded feed URL.
        relay_min_body_length: Relay bodies must be strictly longer than this.
        folder_mime_markers: MIME substrings marking an item as a folder.
        folder_url_markers: URL substrings marking an item as a folder.
        root_feed_url: Feed opened at the root of a navigation session.
        root_title: Breadcrumb title of the root level.
        host: Bind address of the endpoint server.
        port: Port of the endpoint server.
        log_level: Logging level name.
        log_file: Optional path of a log file.

    Example:
        >>> cfg = Config(timeout=10, blocking_hosts=["allrss.se", "example.org"])
        >>> cfg.folder_rules().matches("https://example.org/feed.xml", "")
        True
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    user_agent: str = Field(default=DEFAULT_USER_AGENT, alias="user_agent")
    mobile_user_agent: str = Field(default=MOBILE_USER_AGENT, alias="mobile_user_agent")
    timeout: int = Field(default=DEFAULT_TIMEOUT_SECONDS, alias="timeout")
    default_referer: str = Field(default=DEFAULT_REFERER, alias="referer")
    alternate_referer: str = Field(default=ALTERNATE_REFERER, alias="alternate_referer")
    insecure_referer: str = Field(default=INSECURE_REFERER, alias="insecure_referer")
    blocking_hosts: List[str] = Field(
        default_factory=lambda: list(config_constants.DEFAULT_BLOCKING_HOSTS),
        alias="blocking_hosts",
    )
    relay_url_template: str = Field(default=DEFAULT_RELAY_URL_TEMPLATE, alias="relay_url")
    relay_min_body_length: int = Field(
        default=DEFAULT_RELAY_MIN_BODY_LENGTH, alias="relay_min_body_length"
    )
    folder_mime_markers: List[str] = Field(
        default_factory=lambda: list(config_constants.DEFAULT_FOLDER_MIME_MARKERS),
        alias="folder_mime_markers",
    )
    folder_url_markers: List[str] = Field(
        default_factory=lambda: list(config_constants.DEFAULT_FOLDER_URL_MARKERS),
        alias="folder_url_markers",
    )
    root_feed_url: str = Field(default=config_constants.DEFAULT_ROOT_FEED_URL, alias="root")
    root_title: str = Field(default=config_constants.DEFAULT_ROOT_TITLE, alias="root_title")
    host: str = Field(default=config_constants.DEFAULT_HOST, alias="host")
    port: int = Field(default=config_constants.DEFAULT_PORT, alias="port")
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, alias="log_level")
    log_file: Optional[str] = Field(default=None, alias="log_file")

    @model_validator(mode="before")
    @classmethod
    def _load_env_overrides(cls, data: Any) -> Any:
        """Apply environment variable overrides before validation."""
        if not isinstance(data, dict):
            return data
        data = dict(data)

        # LOG_LEVEL: environment variable takes precedence
        env_log_level = os.getenv("LOG_LEVEL")
        if env_log_level:
            env_value = str(env_log_level).strip().upper()
            if env_value in VALID_LOG_LEVELS:
                data["log_level"] = env_value

        # The rest only fill in values the caller did not set
        for env_name, keys in (
            ("LOG_FILE", ("log_file",)),
            ("TIMEOUT", ("timeout",)),
            ("RELAY_URL_TEMPLATE", ("relay_url_template", "relay_url")),
            ("ROOT_FEED_URL", ("root_feed_url", "root")),
        ):
            if any(data.get(key) is not None for key in keys):
                continue
            env_value = (os.getenv(env_name) or "").strip()
            if env_value:
                data[keys[0]] = env_value
        return data

    @field_validator(
        "user_agent",
        "mobile_user_agent",
        "default_referer",
        "alternate_referer",
        "insecure_referer",
        "relay_url_template",
        "root_feed_url",
        "root_title",
        "host",
        mode="before",
    )
    @classmethod
    def _coerce_string(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("user_agent", mode="after")
    @classmethod
    def _default_user_agent(cls, value: str) -> str:
        return value or DEFAULT_USER_AGENT

    @field_validator("mobile_user_agent", mode="after")
    @classmethod
    def _default_mobile_user_agent(cls, value: str) -> str:
        return value or MOBILE_USER_AGENT

    @field_validator("timeout", mode="after")
    @classmethod
    def _validate_timeout(cls, value: int) -> int:
        if value < MIN_TIMEOUT_SECONDS:
            raise ValueError(f"timeout must be at least {MIN_TIMEOUT_SECONDS}, got: {value}")
        return value

    @field_validator("relay_min_body_length", mode="after")
    @classmethod
    def _validate_min_body_length(cls, value: int) -> int:
        if value < 0:
            raise ValueError(f"relay_min_body_length must be non-negative, got: {value}")
        return value

    @field_validator("relay_url_template", mode="after")
    @classmethod
    def _validate_relay_template(cls, value: str) -> str:
        if "{url}" not in value:
            raise ValueError("relay_url_template must contain a {url} placeholder")
        return value

    @field_validator("blocking_hosts", mode="before")
    @classmethod
    def _normalize_hosts(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        return [str(host).strip().lower() for host in value if str(host).strip()]

    @field_validator("folder_mime_markers", "folder_url_markers", mode="before")
    @classmethod
    def _normalize_markers(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        return [str(marker).strip().lower() for marker in value if str(marker).strip()]

    @field_validator("folder_mime_markers", "folder_url_markers", mode="after")
    @classmethod
    def _require_markers(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("folder marker lists cannot be empty")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> str:
        if value is None:
            return DEFAULT_LOG_LEVEL
        return str(value).strip().upper() or DEFAULT_LOG_LEVEL

    @field_validator("log_level", mode="after")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        if value not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {VALID_LOG_LEVELS}, got: {value}")
        return value

    @field_validator("log_file", mode="before")
    @classmethod
    def _strip_log_file(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    def folder_rules(self) -> FolderRules:
        """Build the classifier's folder rules from the configured markers."""
        return FolderRules(
            mime_markers=tuple(self.folder_mime_markers),
            url_markers=tuple(self.folder_url_markers),
        )


def load_config_file(path: str) -> Dict[str, Any]:
    """Load configuration from a JSON or YAML file.

    The file format is auto-detected from the extension (`.json`, `.yaml` or
    `.yml`). The returned dictionary can be unpacked into `Config`.

    Args:
        path: Path to the configuration file. Supports tilde expansion.

    Returns:
        Dictionary of configuration values keyed by field name or alias.

    Raises:
        ValueError: If the path is empty or missing, the format is unsupported,
            parsing fails, or the document is not a mapping.

    Example:
        >>> cfg = Config(**load_config_file("navigator.yaml"))
    """
    if not path:
        raise ValueError("Config path cannot be empty")

    cfg_path = Path(path).expanduser()
    try:
        resolved = cfg_path.resolve()
    except (OSError, RuntimeError) as exc:
        raise ValueError(f"Invalid config path: {path} ({exc})") from exc

    if not resolved.exists():
        raise ValueError(f"Config file not found: {resolved}")

    suffix = resolved.suffix.lower()
    try:
        text = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Failed to read config file {resolved}: {exc}") from exc

    if suffix == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON config file {resolved}: {exc}") from exc
    elif suffix in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:  # type: ignore[attr-defined]
            raise ValueError(f"Invalid YAML config file {resolved}: {exc}") from exc
    else:
        raise ValueError(f"Unsupported config file type: {resolved.suffix}")

    if not isinstance(data, dict):
        raise ValueError("Config file must contain a mapping/object at the top level")

    return data
