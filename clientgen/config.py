"""Config and input loading for clientgen.

Two layers:

  Config        — tool settings read from ``.clientgen/config.yaml`` (optional).
                  Raises SystemExit on parse errors or a missing ``version`` field.
                  If no config file is found, returns default values.

  PublishInputs — the per-run workflow inputs (spec URL, package name/version,
                  registry, dry-run). Taken from CLI flags first, then from
                  ``INPUT_*`` environment variables set by the reusable workflow.
                  Invalid inputs raise InputError.

Config search order:
  1. ``config_path`` argument (``--config``)
  2. CLIENTGEN_CONFIG environment variable (if set)
  3. ``.clientgen/config.yaml`` (working directory)
  4. ``~/.clientgen/config.yaml`` (home directory)

Environment variable overrides (applied after the file):
  CLIENTGEN_SELF_REPOSITORY — overrides self_repository
  CLIENTGEN_LOG_LEVEL       — overrides logging.level
  CLIENTGEN_LOG_JSON        — overrides logging.json
"""

from __future__ import annotations

import os
import re
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import NoReturn, Optional
from urllib.parse import urlparse

import yaml

from clientgen.constants import (
    DEFAULT_GENERATOR_EXECUTABLE,
    DEFAULT_NPM_ACCESS,
    DEFAULT_NPM_EXECUTABLE,
    DEFAULT_NPM_REGISTRY,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_SELF_REPOSITORY,
)
from clientgen.errors import InputError
from clientgen.utils.logger import get_logger

logger = get_logger(__name__)

# ─── Version constants ────────────────────────────────────────────────────────

SUPPORTED_CONFIG_VERSION = 1

SUPPORTED_VERSIONS: frozenset[int] = frozenset({1})

# ─── Validation sets ─────────────────────────────────────────────────────────

VALID_NPM_ACCESS: frozenset[str] = frozenset({"public", "restricted"})

VALID_LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

VALID_SPEC_URL_SCHEMES: frozenset[str] = frozenset({"http", "https", "file"})

VALID_REGISTRY_SCHEMES: frozenset[str] = frozenset({"http", "https"})

_TRUE_VALUES = frozenset({"1", "true", "yes", "y", "on"})
_FALSE_VALUES = frozenset({"", "0", "false", "no", "n", "off"})

# SemVer 2.0.0 — https://semver.org/#is-there-a-suggested-regular-expression-regex-to-check-a-semver-string
SEMVER_PATTERN = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)

# npm package name, optionally scoped (@scope/name); lowercase, URL-safe
NPM_NAME_PATTERN = re.compile(r"^(?:@[a-z0-9-~][a-z0-9-._~]*/)?[a-z0-9-~][a-z0-9-._~]*$")
NPM_NAME_MAX_LENGTH = 214

DEFAULT_CONFIG_PATHS = [
    ".clientgen/config.yaml",
    os.path.expanduser("~/.clientgen/config.yaml"),
]


# ─── Dataclasses ─────────────────────────────────────────────────────────────


@dataclass
class GeneratorConfig:
    """openapi-generator invocation settings."""

    executable: str = DEFAULT_GENERATOR_EXECUTABLE


@dataclass
class NpmConfig:
    """npm CLI settings used for build and publish."""

    executable: str = DEFAULT_NPM_EXECUTABLE
    access: str = DEFAULT_NPM_ACCESS  # "public" | "restricted"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    json: bool = False


@dataclass
class Config:
    """Root configuration object populated from .clientgen/config.yaml.

    All fields have safe defaults — clientgen runs without any config file.
    """

    version: int = SUPPORTED_CONFIG_VERSION
    self_repository: str = DEFAULT_SELF_REPOSITORY
    npm_registry: str = DEFAULT_NPM_REGISTRY
    output_dir: str = DEFAULT_OUTPUT_DIR
    generator: GeneratorConfig = field(default_factory=GeneratorConfig)
    npm: NpmConfig = field(default_factory=NpmConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    path: Optional[str] = None  # Path to the loaded config file

    @classmethod
    def defaults(cls) -> "Config":
        """Return a fully-default Config (no file required)."""
        return cls()

    @classmethod
    def from_dict(cls, raw: dict, path: Optional[str] = None) -> "Config":
        """Construct Config from a parsed YAML dict.

        Merges user-supplied values onto defaults; unknown keys are silently ignored.

        Raises:
            SystemExit(1): On invalid npm.access or logging.level values.
        """
        # ── npm ───────────────────────────────────────────────────────────────
        npm_raw = raw.get("npm") or {}
        access = npm_raw.get("access", DEFAULT_NPM_ACCESS)
        if access not in VALID_NPM_ACCESS:
            _config_error(
                f"Invalid npm.access: '{access}'. "
                f"Supported values: {sorted(VALID_NPM_ACCESS)}."
            )
        npm = NpmConfig(
            executable=npm_raw.get("executable", DEFAULT_NPM_EXECUTABLE),
            access=access,
        )

        # ── Generator ─────────────────────────────────────────────────────────
        generator_raw = raw.get("generator") or {}
        generator = GeneratorConfig(
            executable=generator_raw.get("executable", DEFAULT_GENERATOR_EXECUTABLE),
        )

        # ── Logging ───────────────────────────────────────────────────────────
        logging_raw = raw.get("logging") or {}
        level = str(logging_raw.get("level", "INFO")).upper()
        if level not in VALID_LOG_LEVELS:
            _config_error(
                f"Invalid logging.level: '{level}'. "
                f"Supported values: {sorted(VALID_LOG_LEVELS)}."
            )
        logging_config = LoggingConfig(level=level, json=bool(logging_raw.get("json", False)))

        return cls(
            version=raw.get("version", SUPPORTED_CONFIG_VERSION),
            self_repository=raw.get("self_repository", DEFAULT_SELF_REPOSITORY),
            npm_registry=raw.get("npm_registry", DEFAULT_NPM_REGISTRY),
            output_dir=raw.get("output_dir", DEFAULT_OUTPUT_DIR),
            generator=generator,
            npm=npm,
            logging=logging_config,
            path=path,
        )


@dataclass(frozen=True)
class PublishInputs:
    """Validated per-run workflow inputs."""

    openapi_spec_url: str
    package_name: str
    package_version: str
    npm_registry: str = DEFAULT_NPM_REGISTRY
    dry_run: bool = False


# ─── Config loading ───────────────────────────────────────────────────────────


def load_config(config_path: Optional[str] = None) -> Config:
    """Load and validate clientgen configuration.

    If no file is found at any search path, returns default Config (not an error).
    If a file is found but invalid, writes error to stderr and raises SystemExit(1).

    Env var overrides are applied whether or not a config file was found.

    Raises:
        SystemExit(1): On YAML parse error, missing ``version`` field, unsupported
                       version, or an invalid value.
    """
    search_paths: list[str] = []
    if config_path:
        search_paths.append(config_path)
    env_config = os.environ.get("CLIENTGEN_CONFIG")
    if env_config:
        search_paths.append(env_config)
    search_paths.extend(DEFAULT_CONFIG_PATHS)

    found_path: Optional[str] = None
    for candidate in search_paths:
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            found_path = expanded
            break

    # ── No config file found ─────────────────────────────────────────────────
    if found_path is None:
        logger.debug("No config file found — using defaults", searched=search_paths)
        config = Config.defaults()
        _apply_env_overrides(config)
        return config

    # ── Parse config file ─────────────────────────────────────────────────────
    logger.info("Loading config", path=found_path)

    try:
        with open(found_path) as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        _config_error(
            f"Failed to parse {found_path}: {exc}\n"
            "Check the YAML syntax and try again."
        )
    except OSError as exc:
        _config_error(f"Could not read {found_path}: {exc}")

    if not isinstance(raw, dict):
        if raw is None:
            _config_error(
                f"{found_path} is missing the required 'version' field.\n"
                "Add 'version: 1' to the top of your config file."
            )
        _config_error(
            f"{found_path} is not a valid YAML mapping.\n"
            "The config file must be a YAML dictionary at the top level."
        )

    # ── Version validation ────────────────────────────────────────────────────
    version = raw.get("version")
    if version is None:
        _config_error(
            f"{found_path} is missing the required 'version' field.\n"
            "Add 'version: 1' to the top of your config file."
        )
    if version not in SUPPORTED_VERSIONS:
        _config_error(
            f"Unsupported config version: {version}. "
            f"Supported versions: {sorted(SUPPORTED_VERSIONS)}."
        )

    config = Config.from_dict(raw, path=found_path)
    _apply_env_overrides(config)

    logger.info(
        "Config loaded",
        path=found_path,
        version=config.version,
        self_repository=config.self_repository,
    )
    return config


def _apply_env_overrides(config: Config) -> None:
    """Apply CLIENTGEN_* environment variable overrides to a Config in-place."""
    self_repo = os.environ.get("CLIENTGEN_SELF_REPOSITORY")
    if self_repo:
        config.self_repository = self_repo

    log_level = os.environ.get("CLIENTGEN_LOG_LEVEL")
    if log_level:
        if log_level.upper() not in VALID_LOG_LEVELS:
            _config_error(
                f"CLIENTGEN_LOG_LEVEL environment variable is not a valid level: '{log_level}'"
            )
        config.logging.level = log_level.upper()

    log_json = os.environ.get("CLIENTGEN_LOG_JSON")
    if log_json is not None:
        try:
            config.logging.json = parse_bool(log_json)
        except ValueError:
            _config_error(
                f"CLIENTGEN_LOG_JSON environment variable is not a boolean: '{log_json}'"
            )


def _config_error(message: str) -> NoReturn:
    print(f"CONFIG ERROR: {message}", file=sys.stderr)
    raise SystemExit(1)


# ─── Workflow inputs ──────────────────────────────────────────────────────────


def parse_bool(raw: object) -> bool:
    """Parse a workflow boolean (``true``/``false``/``1``/``0``/``yes``/``no``).

    Raises:
        ValueError: unrecognised value.
    """
    if isinstance(raw, bool):
        return raw
    value = str(raw).strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def _input_from_env(env: Mapping[str, str], name: str) -> Optional[str]:
    """Read ``INPUT_<NAME>``; accepts both the hyphenated and underscored forms."""
    upper = name.upper()
    for key in (f"INPUT_{upper}", f"INPUT_{upper.replace('-', '_')}"):
        value = env.get(key)
        if value is not None and value.strip():
            return value.strip()
    return None


def load_inputs(
    overrides: Optional[Mapping[str, object]] = None,
    env: Optional[Mapping[str, str]] = None,
    default_registry: str = DEFAULT_NPM_REGISTRY,
) -> PublishInputs:
    """Resolve and validate workflow inputs.

    Args:
        overrides:        Values from CLI flags keyed by input name
                          (``openapi-spec-url``, ``package-name`` ...). ``None``
                          values fall through to the environment.
        env:              Environment mapping (defaults to os.environ).
        default_registry: Registry used when ``npm-registry`` is not supplied.

    Raises:
        InputError: a required input is missing or a value is invalid.
    """
    overrides = overrides or {}
    env = os.environ if env is None else env

    def _get(name: str) -> Optional[object]:
        value = overrides.get(name)
        if value is not None:
            return value
        return _input_from_env(env, name)

    spec_url = _require(_get("openapi-spec-url"), "openapi-spec-url")
    if urlparse(spec_url).scheme not in VALID_SPEC_URL_SCHEMES:
        raise InputError(
            "openapi-spec-url",
            f"scheme must be one of {sorted(VALID_SPEC_URL_SCHEMES)}",
        )

    package_name = _require(_get("package-name"), "package-name")
    if len(package_name) > NPM_NAME_MAX_LENGTH or not NPM_NAME_PATTERN.match(package_name):
        raise InputError("package-name", f"'{package_name}' is not a valid npm package name")

    package_version = _require(_get("package-version"), "package-version")
    if not SEMVER_PATTERN.match(package_version):
        raise InputError("package-version", f"'{package_version}' is not a valid semver version")

    registry = str(_get("npm-registry") or default_registry).rstrip("/")
    parsed_registry = urlparse(registry)
    if parsed_registry.scheme not in VALID_REGISTRY_SCHEMES or not parsed_registry.netloc:
        raise InputError("npm-registry", f"'{registry}' is not an http(s) URL")

    raw_dry_run = _get("dry-run")
    try:
        dry_run = parse_bool(raw_dry_run) if raw_dry_run is not None else False
    except ValueError:
        raise InputError("dry-run", f"'{raw_dry_run}' is not a boolean") from None

    return PublishInputs(
        openapi_spec_url=spec_url,
        package_name=package_name,
        package_version=package_version,
        npm_registry=registry,
        dry_run=dry_run,
    )


def _require(value: Optional[object], name: str) -> str:
    if value is None or not str(value).strip():
        raise InputError(name, "is required")
    return str(value).strip()
