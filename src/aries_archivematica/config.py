"""Configuration for the Aries Archivematica service.

Reads from config/aries-archivematica.ini if present, environment
variables override it, command-line flags override both.
Credentials never checked into version control.
"""

from __future__ import annotations

import argparse
import configparser
import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass, fields
from pathlib import Path

from aries_archivematica.errors import ConfigError

logger = logging.getLogger(__name__)

_CONFIG_FILE = (
    Path(__file__).resolve().parent.parent.parent / "config" / "aries-archivematica.ini"
)

DATABASE = "database"
API = "api"
SOURCE_KINDS = (DATABASE, API)

_SECRETS = {"application_api_key", "storage_api_key"}
_URLS_WITH_PASSWORDS = {"application_db_url", "storage_db_url"}
_TRUE = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ServiceConfig:
    """Service configuration. Immutable once loaded."""

    host: str = "0.0.0.0"
    port: int = 8080
    admin_url_template: str = ""
    metadata_source: str = DATABASE
    location_source: str = DATABASE
    application_db_url: str = ""
    application_api_user: str = ""
    application_api_key: str = ""
    application_api_url_template: str = ""
    storage_db_url: str = ""
    storage_api_user: str = ""
    storage_api_key: str = ""
    storage_api_url_template: str = ""
    request_timeout: float = 10.0
    use_https: bool = False
    ssl_crt: str = ""
    ssl_key: str = ""

    def redacted(self) -> dict:
        """Config values safe to log."""
        values = asdict(self)
        for key in _SECRETS:
            if values[key]:
                values[key] = "[REDACTED]"
        for key in _URLS_WITH_PASSWORDS:
            if values[key]:
                values[key] = _redact_url(values[key])
        return values


# (config key, INI section, INI key, env var, flag, description)
_OPTIONS = [
    ("host", "server", "host", "ARIES_ARCHIVEMATICA_HOST", "--host", "listen address"),
    ("port", "server", "port", "ARIES_ARCHIVEMATICA_LISTEN_PORT", "--listen-port", "listen port"),
    ("admin_url_template", "server", "admin_url_template", "ARIES_ARCHIVEMATICA_ADMIN_URL_TEMPLATE", "--admin-url-template", "admin url template, {UUID} is substituted"),
    ("request_timeout", "server", "request_timeout", "ARIES_ARCHIVEMATICA_REQUEST_TIMEOUT", "--request-timeout", "outbound API timeout in seconds"),
    ("use_https", "server", "use_https", "ARIES_ARCHIVEMATICA_USE_HTTPS", "--use-https", "serve over https"),
    ("ssl_crt", "server", "ssl_crt", "ARIES_ARCHIVEMATICA_SSL_CRT", "--ssl-crt", "ssl certificate file"),
    ("ssl_key", "server", "ssl_key", "ARIES_ARCHIVEMATICA_SSL_KEY", "--ssl-key", "ssl key file"),
    ("metadata_source", "application", "source", "ARIES_ARCHIVEMATICA_APPLICATION_SOURCE", "--application-source", "metadata source: database or api"),
    ("application_db_url", "application", "db_url", "ARIES_ARCHIVEMATICA_APPLICATION_DB_URL", "--application-db-url", "application database url"),
    ("application_api_user", "application", "api_user", "ARIES_ARCHIVEMATICA_APPLICATION_API_USER", "--application-api-user", "application API user"),
    ("application_api_key", "application", "api_key", "ARIES_ARCHIVEMATICA_APPLICATION_API_KEY", "--application-api-key", "application API key"),
    ("application_api_url_template", "application", "api_url_template", "ARIES_ARCHIVEMATICA_APPLICATION_API_URL_TEMPLATE", "--application-api-url-template", "application API url template"),
    ("location_source", "storage", "source", "ARIES_ARCHIVEMATICA_STORAGE_SOURCE", "--storage-source", "location source: database or api"),
    ("storage_db_url", "storage", "db_url", "ARIES_ARCHIVEMATICA_STORAGE_DB_URL", "--storage-db-url", "storage service database url"),
    ("storage_api_user", "storage", "api_user", "ARIES_ARCHIVEMATICA_STORAGE_API_USER", "--storage-api-user", "storage service API user"),
    ("storage_api_key", "storage", "api_key", "ARIES_ARCHIVEMATICA_STORAGE_API_KEY", "--storage-api-key", "storage service API key"),
    ("storage_api_url_template", "storage", "api_url_template", "ARIES_ARCHIVEMATICA_STORAGE_API_URL_TEMPLATE", "--storage-api-url-template", "storage service API url template"),
]

_TYPES = {f.name: f.type for f in fields(ServiceConfig)}


def _redact_url(url: str) -> str:
    scheme, sep, rest = url.partition("://")
    if not sep or "@" not in rest:
        return url
    credentials, _, location = rest.rpartition("@")
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:[REDACTED]@{location}"


def _convert(config_key: str, raw: str) -> object:
    kind = _TYPES[config_key]
    try:
        if kind == "int":
            return int(raw)
        if kind == "float":
            return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{config_key}: invalid value {raw!r}") from exc
    if kind == "bool":
        return raw.strip().lower() in _TRUE
    return raw


def build_arg_parser() -> argparse.ArgumentParser:
    """Flags for every option. Unset flags do not appear in the namespace."""
    parser = argparse.ArgumentParser(
        prog="aries-archivematica",
        description="Resolve Archivematica AIP identifiers to master files.",
        argument_default=argparse.SUPPRESS,
    )
    for config_key, _, _, env_key, flag, desc in _OPTIONS:
        if _TYPES[config_key] == "bool":
            parser.add_argument(flag, dest=config_key, action="store_true", help=f"{desc} [{env_key}]")
        else:
            parser.add_argument(flag, dest=config_key, help=f"{desc} [{env_key}]")
    return parser


def validate_config(config: ServiceConfig) -> list[str]:
    """Return a message for every required value that is missing."""
    missing = []

    def require(config_key: str) -> None:
        if not getattr(config, config_key):
            option = next(o for o in _OPTIONS if o[0] == config_key)
            missing.append(
                f"{option[5]} is not set, use {option[3]} variable or {option[4]} flag"
            )

    for config_key in ("metadata_source", "location_source"):
        value = getattr(config, config_key)
        if value not in SOURCE_KINDS:
            missing.append(f"{config_key} must be one of {', '.join(SOURCE_KINDS)}, got {value!r}")

    require("admin_url_template")

    if config.metadata_source == DATABASE:
        require("application_db_url")
    elif config.metadata_source == API:
        require("application_api_user")
        require("application_api_key")
        require("application_api_url_template")

    if config.location_source == DATABASE:
        require("storage_db_url")
    elif config.location_source == API:
        require("storage_api_user")
        require("storage_api_key")
        require("storage_api_url_template")

    if config.use_https:
        require("ssl_crt")
        require("ssl_key")

    return missing


def load_config(
    config_path: Path | None = None,
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ServiceConfig:
    """Load config from INI file, then environment variables, then flags.

    Flags are only parsed when ``argv`` is given. Raises ConfigError when a
    required value is missing.
    """
    path = config_path or _CONFIG_FILE
    env = os.environ if environ is None else environ
    kwargs: dict = {}

    if path.exists():
        parser = configparser.ConfigParser(interpolation=None)
        parser.read(path)
        for config_key, section, ini_key, _, _, _ in _OPTIONS:
            val = parser.get(section, ini_key, fallback=None)
            if val is not None:
                kwargs[config_key] = _convert(config_key, val)

    for config_key, _, _, env_key, _, _ in _OPTIONS:
        val = env.get(env_key)
        if val is not None:
            kwargs[config_key] = _convert(config_key, val)

    if argv is not None:
        namespace = build_arg_parser().parse_args(argv)
        for config_key, val in vars(namespace).items():
            kwargs[config_key] = val if isinstance(val, bool) else _convert(config_key, val)

    config = ServiceConfig(**kwargs)
    problems = validate_config(config)
    if problems:
        for problem in problems:
            logger.error("[CONFIG] %s", problem)
        raise ConfigError("; ".join(problems))
    return config
