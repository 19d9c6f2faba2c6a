"""Server configuration.

Settings come from three layers, later ones winning: built-in defaults, a
YAML config file, and ``ARGOCD_MCP_*`` environment variables. The CLI
applies its flags on top with ``Config.with_overrides``.

Example config.yaml:

    argocd:
      server: argocd.example.com
      token: eyJhbGciOi...
      insecure: false
    server:
      safe_mode: true
    logging:
      level: debug
      format: console
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, ValidationError

from .log import get_logger
from .shaping.bounds import Limits

logger = get_logger("config")

ENV_PREFIX = "ARGOCD_MCP"
CONFIG_DIR_NAME = "argocd-mcp"
CONFIG_FILE_NAME = "config.yaml"


class ConfigError(Exception):
    """Configuration could not be loaded or is invalid."""


class ArgoCDSettings(BaseModel):
    """Connection and credentials for the Argo CD API server."""

    server: str = Field(default="localhost:8080", description="host[:port] of the API server")
    auth_url: str = Field(default="", description="Alternate address used for session login")
    username: str = ""
    password: str = ""
    token: str = ""
    insecure: bool = Field(default=False, description="Skip TLS certificate verification")
    plaintext: bool = Field(default=False, description="Use http:// instead of https://")
    cert_file: str = Field(default="", description="CA bundle used to verify the server")
    grpc_web: bool = False
    grpc_web_root_path: str = ""


class ServerSettings(BaseModel):
    """MCP server behavior."""

    mcp_endpoint: str = "stdio"
    safe_mode: bool = Field(default=False, description="Reject write operations")


class LoggingSettings(BaseModel):
    level: str = "info"
    format: str = "json"


class LimitsSettings(BaseModel):
    """Output ceilings, see ``argocd_mcp.shaping.Limits``."""

    max_items: int = Field(default=50, ge=1)
    max_events: int = Field(default=20, ge=1)
    max_diff_resources: int = Field(default=20, ge=1)
    max_manifests: int = Field(default=20, ge=1)
    max_lines: int = Field(default=100, ge=1)
    max_chars: int = Field(default=50_000, ge=1)

    def to_limits(self) -> Limits:
        return Limits(**self.model_dump())


class Config(BaseModel):
    """Complete configuration for the argocd-mcp server."""

    argocd: ArgoCDSettings = Field(default_factory=ArgoCDSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)

    def with_overrides(
        self,
        server: str | None = None,
        token: str | None = None,
        grpc_web: bool | None = None,
        grpc_web_root_path: str | None = None,
        safe_mode: bool | None = None,
    ) -> Config:
        """Return a copy with command-line flags applied.

        Empty or unset flags leave the loaded value alone.
        """
        argocd_updates: dict[str, Any] = {}
        if server:
            argocd_updates["server"] = server
        if token:
            argocd_updates["token"] = token
        if grpc_web:
            argocd_updates["grpc_web"] = True
        if grpc_web_root_path:
            argocd_updates["grpc_web_root_path"] = grpc_web_root_path

        server_updates: dict[str, Any] = {}
        if safe_mode:
            server_updates["safe_mode"] = True

        return self.model_copy(
            update={
                "argocd": self.argocd.model_copy(update=argocd_updates),
                "server": self.server.model_copy(update=server_updates),
            }
        )

    def to_yaml(self) -> str:
        """Serialize to YAML string."""
        return yaml.dump(
            self.model_dump(),
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )


def default_config_path() -> Path:
    """Path written by ``config init``: ~/.config/argocd-mcp/config.yaml."""
    return Path.home() / ".config" / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def _search_paths() -> list[Path]:
    return [default_config_path(), Path.cwd() / CONFIG_FILE_NAME]


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as e:
        logger.warning("config.read_failed", path=str(path), error=str(e))
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("config.not_a_mapping", path=str(path))
        return {}
    return data


def _env_layer(environ: Mapping[str, str]) -> dict[str, dict[str, str]]:
    """Collect ``ARGOCD_MCP_<SECTION>_<KEY>`` variables into nested sections."""
    layer: dict[str, dict[str, str]] = {}
    for section_name, field in Config.model_fields.items():
        section_model = field.annotation
        for key in section_model.model_fields:
            var = f"{ENV_PREFIX}_{section_name}_{key}".upper()
            if var in environ:
                layer.setdefault(section_name, {})[key] = environ[var]

    # Flat shortcuts for the two settings most often passed per process.
    for key in ("server", "token"):
        var = f"{ENV_PREFIX}_{key}".upper()
        if environ.get(var):
            layer.setdefault("argocd", {})[key] = environ[var]
    return layer


def _merge(base: dict[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _merge(dict(merged[key]), value)
        else:
            merged[key] = value
    return merged


def load_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Load configuration from file and environment.

    Args:
        path: Explicit config file. When omitted the first existing file of
            ~/.config/argocd-mcp/config.yaml and ./config.yaml is used, and
            having neither is fine.
        environ: Environment mapping, defaults to ``os.environ``.

    Raises:
        ConfigError: if an explicit ``path`` does not exist or the merged
            settings fail validation.
    """
    environ = os.environ if environ is None else environ

    data: dict[str, Any] = {}
    if path is not None:
        path = Path(path).expanduser()
        if not path.is_file():
            raise ConfigError(f"config file not found: {path}")
        data = _read_yaml(path)
    else:
        for candidate in _search_paths():
            if candidate.is_file():
                data = _read_yaml(candidate)
                logger.debug("config.loaded", path=str(candidate))
                break

    data = _merge(data, _env_layer(environ))

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e


def save_config(config: Config, path: str | Path | None = None) -> Path:
    """Write ``config`` as YAML readable only by the owner.

    Returns:
        The path written.
    """
    path = Path(path).expanduser() if path is not None else default_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w") as f:
        f.write(config.to_yaml())
    os.chmod(path, 0o600)
    return path


def mask_token(token: str) -> str:
    """Hide all but the first and last four characters of a token."""
    if len(token) < 8:
        return "****"
    return f"{token[:4]}****{token[-4:]}"
