"""
Configuration for the authenticated session.

AuthConfig carries what is needed to get credentials: which kind, where
the credentials file and token cache live, and which scopes to ask for.  It
can come from environment variables, a JSON/TOML file, or be built directly,
and is pushed onto the access singleton with apply().
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Self
import json
import logging
import os
import tomllib

from .access import GWSAccess, gws
from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_SCOPES = ["drive", "docs", "calendar"]
DEFAULT_TIMEZONE = "Asia/Tokyo"
DEFAULT_CONFIG_DIR = Path.home() / ".gwshelper"

ENV_PREFIX = "GWSHELPER_"
_TRUE_STRINGS = ("1", "true", "yes", "on")


@dataclass
class AuthConfig():
    use_service_account: bool = field(default=False)
    credentials_file: Path = field(default=DEFAULT_CONFIG_DIR / "credentials.json")
    token_file: Path = field(default=DEFAULT_CONFIG_DIR / "token.json")
    scopes: list[str] = field(default_factory=lambda: list(DEFAULT_SCOPES))
    timezone: str = field(default=DEFAULT_TIMEZONE)

    def __post_init__(self) -> None:
        self.credentials_file = Path(self.credentials_file).expanduser()
        self.token_file = Path(self.token_file).expanduser()
        if isinstance(self.scopes, str):
            self.scopes = [s.strip() for s in self.scopes.split(",") if s.strip()]
        # validates labels early rather than on first connect
        self.scope_urls = GWSAccess.resolve_scopes(self.scopes)

    @classmethod
    def from_env(cls, environ: dict|None = None) -> Self:
        """
        Build from GWSHELPER_* environment variables, anything unset keeps the default.
        """
        env = os.environ if environ is None else environ
        kwargs = {}
        v = env.get(ENV_PREFIX + "CREDENTIALS")
        if v:
            kwargs["credentials_file"] = v
        v = env.get(ENV_PREFIX + "TOKEN")
        if v:
            kwargs["token_file"] = v
        v = env.get(ENV_PREFIX + "SCOPES")
        if v:
            kwargs["scopes"] = v
        v = env.get(ENV_PREFIX + "SERVICE_ACCOUNT")
        if v:
            kwargs["use_service_account"] = v.strip().lower() in _TRUE_STRINGS
        v = env.get(ENV_PREFIX + "TIMEZONE")
        if v:
            kwargs["timezone"] = v
        return cls(**kwargs)

    @classmethod
    def from_file(cls, path: Path|str) -> Self:
        """
        Load from a .json or .toml file using the same keys as to_dict().
        """
        p = Path(path)
        try:
            if p.suffix.lower() == ".toml":
                with open(p, "rb") as f:
                    data = tomllib.load(f)
            else:
                with open(p, "r", encoding="utf-8") as f:
                    data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"unable to read config file {p}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"config file {p} must hold a table/object")
        unknown = set(data) - {"use_service_account", "credentials_file", "token_file", "scopes", "timezone"}
        if unknown:
            raise ConfigError(f"unknown config keys in {p}: {', '.join(sorted(unknown))}")
        return cls(**data)

    def to_dict(self) -> dict:
        return {
            "use_service_account": self.use_service_account,
            "credentials_file": str(self.credentials_file),
            "token_file": str(self.token_file),
            "scopes": list(self.scopes),
            "timezone": self.timezone,
        }

    def apply(self, access: GWSAccess = gws) -> GWSAccess:
        """
        Push onto the access object, reconnecting it if it was already connected.
        """
        access.config = {
            "secrets": self.credentials_file,
            "cache": self.token_file,
            "scopes": self.scope_urls,
            "service_account": self.use_service_account,
            "timezone": self.timezone,
        }
        logger.debug("applied auth config: %s", self.to_dict())
        return access
