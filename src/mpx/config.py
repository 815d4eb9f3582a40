from __future__ import annotations

import base64
import hashlib
import json
import logging
import os
import stat
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass, field, fields
from functools import lru_cache
from pathlib import Path
from typing import Any

from cryptography.fernet import Fernet, InvalidToken
from pydantic import Field
from pydantic_settings import BaseSettings

from .auth.client_credentials import DEFAULT_SCOPE, DEFAULT_TOKEN_PATH
from .errors import ConfigError
from .secrets import SecretSpec, get_secret

logger = logging.getLogger(__name__)

ENV_PREFIX = "MINISTRY_PLATFORM_"
REQUIRED_SETTINGS = ("base_url", "client_id", "client_secret")
# Later files win, mirroring the .env.local > .env.development > .env order.
ENV_FILES = (".env", ".env.development", ".env.local")

_SENSITIVE_KEYS = ("access_token",)
_FERNET_SALT = b"mpx-config"
_ENCRYPTED_PREFIX = "enc:"


class MinistryPlatformSettings(BaseSettings):
    """Connection settings read from ``MINISTRY_PLATFORM_*`` variables and ``.env`` files."""

    base_url: str | None = Field(default=None, description="Platform API root URL")
    client_id: str | None = Field(default=None, description="OAuth2 client id")
    client_secret: str | None = Field(default=None, repr=False, description="OAuth2 client secret")
    scope: str = Field(default=DEFAULT_SCOPE, description="OAuth2 scope requested")
    token_path: str = Field(default=DEFAULT_TOKEN_PATH, description="Token endpoint path")
    timeout: float | None = Field(default=None, description="Optional request timeout (seconds)")

    model_config = {
        "env_prefix": ENV_PREFIX,
        "env_file": ENV_FILES,
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def missing(self, names: Iterable[str] = REQUIRED_SETTINGS) -> list[str]:
        return [f"{ENV_PREFIX}{name.upper()}" for name in names if not getattr(self, name)]

    def validate_required(self, names: Iterable[str] = REQUIRED_SETTINGS) -> None:
        """Raise :class:`ConfigError` listing every missing required variable."""

        missing = self.missing(names)
        if missing:
            raise ConfigError(missing)


class EncryptedConfigError(RuntimeError):
    """Raised when encrypted configuration cannot be decrypted."""


@lru_cache(maxsize=4)
def _fernet_for(key: str) -> Fernet:
    """Use ``key`` as a Fernet key, or stretch it with PBKDF2 when it is a passphrase."""

    raw = key.encode("utf-8")
    try:
        return Fernet(raw)
    except ValueError:
        stretched = hashlib.pbkdf2_hmac("sha256", raw, _FERNET_SALT, 390_000, dklen=32)
        return Fernet(base64.urlsafe_b64encode(stretched))


def _cipher() -> Fernet | None:
    key = os.getenv("MPX_CONFIG_ENCRYPTION_KEY", "").strip()
    return _fernet_for(key) if key else None


def encrypt_field(value: str | None) -> str | None:
    cipher = _cipher()
    if not value or cipher is None:
        return value
    return _ENCRYPTED_PREFIX + cipher.encrypt(value.encode("utf-8")).decode("ascii")


def decrypt_field(value: str | None) -> str | None:
    """Reverse :func:`encrypt_field`; plain values pass through untouched."""

    if not value or not value.startswith(_ENCRYPTED_PREFIX):
        return value
    cipher = _cipher()
    if cipher is None:
        raise EncryptedConfigError(
            "Stored profile tokens are encrypted; set MPX_CONFIG_ENCRYPTION_KEY to read them."
        )
    try:
        token = cipher.decrypt(value[len(_ENCRYPTED_PREFIX) :].encode("ascii"))
    except InvalidToken as exc:
        raise EncryptedConfigError(
            "Stored profile tokens do not decrypt; verify MPX_CONFIG_ENCRYPTION_KEY."
        ) from exc
    return token.decode("utf-8")


def _restrict_permissions(path: Path) -> None:
    """Keep the profile store readable by its owner only."""

    if os.name == "nt" or not path.exists():
        return
    try:
        if stat.S_IMODE(path.stat().st_mode) != 0o600:
            path.chmod(0o600)
    except OSError as exc:
        logger.warning("Could not restrict permissions on %s: %s", path, exc)


def _map_tokens(profile: dict[str, Any], func: Callable[[str], str | None]) -> dict[str, Any]:
    payload = dict(profile)
    for key in _SENSITIVE_KEYS:
        if isinstance(payload.get(key), str):
            payload[key] = func(payload[key])
    return payload


def default_config_path() -> Path:
    home = Path(os.path.expanduser(os.getenv("MPX_HOME", "~/.mpx")))
    return home / "config.json"


@dataclass
class Profile:
    name: str
    base_url: str | None = None
    client_id: str | None = None
    scope: str | None = None
    client_secret_env: str | None = None
    secret_backend: str | None = None
    secret_ref: str | None = None
    access_token: str | None = None

    def client_secret(self) -> str | None:
        if self.client_secret_env:
            secret = os.getenv(self.client_secret_env)
            if secret:
                return secret
        if self.secret_backend and self.secret_ref:
            return get_secret(SecretSpec(backend=self.secret_backend, ref=self.secret_ref))
        return None


_PROFILE_FIELDS = frozenset(f.name for f in fields(Profile))


@dataclass
class ConfigData:
    default_profile: str | None = None
    profiles: dict[str, Profile] = field(default_factory=dict)


class ConfigStore:
    """JSON profile store, encrypting tokens when ``MPX_CONFIG_ENCRYPTION_KEY`` is set."""

    def __init__(self, path: str | os.PathLike[str] | None = None) -> None:
        self.path = Path(path) if path else default_config_path()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {"default": None, "profiles": {}}
        _restrict_permissions(self.path)
        with self.path.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
        raw["profiles"] = {
            name: _map_tokens(profile, decrypt_field)
            for name, profile in raw.get("profiles", {}).items()
        }
        return raw

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        payload = dict(data)
        payload["profiles"] = {
            name: _map_tokens(asdict(profile), encrypt_field)
            for name, profile in payload.get("profiles", {}).items()
        }
        with tmp.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2)
        tmp.replace(self.path)
        _restrict_permissions(self.path)

    def load(self) -> ConfigData:
        raw = self._read()
        profs = {
            name: Profile(
                name=name,
                **{k: v for k, v in data.items() if k in _PROFILE_FIELDS and k != "name"},
            )
            for name, data in raw.get("profiles", {}).items()
        }
        return ConfigData(default_profile=raw.get("default"), profiles=profs)

    def save(self, cfg: ConfigData) -> None:
        self._write({"default": cfg.default_profile, "profiles": cfg.profiles})

    def add_or_update_profile(self, profile: Profile, *, set_default: bool = False) -> ConfigData:
        """Persist ``profile`` and optionally set it as default."""

        cfg = self.load()
        cfg.profiles[profile.name] = profile
        if set_default or not cfg.default_profile:
            cfg.default_profile = profile.name
        self.save(cfg)
        return cfg

    def set_default_profile(self, name: str) -> ConfigData:
        cfg = self.load()
        if name not in cfg.profiles:
            raise KeyError(f"Profile '{name}' not found")
        cfg.default_profile = name
        self.save(cfg)
        return cfg

    def delete_profile(self, name: str) -> ConfigData:
        cfg = self.load()
        cfg.profiles.pop(name, None)
        if cfg.default_profile == name:
            cfg.default_profile = None
        self.save(cfg)
        return cfg


def resolve_settings(profile: Profile | None = None) -> MinistryPlatformSettings:
    """Load settings from the environment, filling gaps from ``profile``.

    Environment variables and ``.env`` files always win over stored profiles.
    """

    settings = MinistryPlatformSettings()
    if profile is None:
        return settings
    updates: dict[str, Any] = {}
    if not settings.base_url and profile.base_url:
        updates["base_url"] = profile.base_url
    if not settings.client_id and profile.client_id:
        updates["client_id"] = profile.client_id
    if not settings.client_secret:
        secret = profile.client_secret()
        if secret:
            updates["client_secret"] = secret
    if profile.scope and "scope" not in settings.model_fields_set:
        updates["scope"] = profile.scope
    return settings.model_copy(update=updates) if updates else settings
