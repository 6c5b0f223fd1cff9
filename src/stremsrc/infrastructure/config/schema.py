"""Validated configuration models.

``AppConfig`` is the merged, final configuration; ``EnvOverrides`` reads
the ``STREMSRC_*`` variables as one flat layer for ``load_config``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
CacheBackendName = Literal["diskcache", "redis"]
ProviderName = Literal["vidsrc", "hdhub"]
ServerConcurrency = Literal["parallel", "sequential"]


def _as_path(value: Any) -> Path:
    # Pure conversion; the directory is created by diskcache on open
    if isinstance(value, (str, Path)):
        return Path(value).expanduser()
    raise TypeError(f"path expected, got {type(value).__name__}")


class CacheConfig(BaseModel):
    """``cache`` section."""

    enabled: bool = Field(
        default=True,
        description="Keep resolved stream lists between requests.",
    )
    backend: CacheBackendName = "diskcache"
    directory: Path = Field(
        default=Path("./.cache/stremsrc"),
        validation_alias=AliasChoices("dir", "directory"),
        description="diskcache directory.",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Used only with backend=redis.",
    )
    ttl_seconds: int = Field(
        default=3600,
        description="Adapter default expiry (metadata lookups use their own).",
    )
    stream_ttl_seconds: int = Field(
        default=7200,
        description="How long a resolved stream list is served from cache.",
    )
    max_concurrent: int = Field(default=10, gt=0)

    @field_validator("directory", mode="before")
    @classmethod
    def _coerce_directory(cls, v: Any) -> Path:
        return _as_path(v)

    @field_validator("ttl_seconds", "stream_ttl_seconds")
    @classmethod
    def _positive_ttl(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("cache TTLs must be > 0")
        return v


class ProvidersConfig(BaseModel):
    """``providers`` section."""

    enabled: list[ProviderName] = Field(
        default_factory=lambda: ["vidsrc", "hdhub"],
        description="Providers to run; their streams are listed in this order.",
    )
    timeout_seconds: float = Field(
        default=45.0,
        gt=0,
        description="A provider still running after this contributes nothing.",
    )


class VidSrcConfig(BaseModel):
    """``vidsrc`` section."""

    embed_base_url: str = "https://vidsrc.xyz/embed"
    default_base_domain: str = "https://cloudnestra.com"
    stagger_ms: int = Field(
        default=200,
        ge=0,
        description="Delay between the starts of consecutive servers.",
    )
    server_concurrency: ServerConcurrency = "parallel"
    fetch_timeout_seconds: float = Field(default=15.0, gt=0)


class HDHubConfig(BaseModel):
    """``hdhub`` section."""

    base_url: str = "https://new1.hdhub4u.fo"
    match_threshold: float = Field(
        default=40.0,
        ge=0,
        description="Best title-match score must exceed this value.",
    )
    trusted_hosts: list[str] = Field(
        default_factory=lambda: ["pixeldrain", "r2.dev", "workers.dev"],
        description="Hosts accepted without a HEAD check.",
    )
    fetch_timeout_seconds: float = Field(default=15.0, gt=0)


class AppConfig(BaseModel):
    """Final configuration after all layers are merged.

    ``http`` and ``logging`` are flattened onto the model through alias
    paths; the other sections stay nested models.
    """

    app_name: str = Field(
        default="stremsrc",
        description="Also used as the cache key namespace.",
    )
    environment: Environment = "dev"

    http_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
    )
    http_user_agents: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "http_user_agents",
            AliasPath("http", "user_agents"),
        ),
        description="One is picked at random per upstream request.",
    )

    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices("log_level", AliasPath("logging", "level")),
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices("log_format", AliasPath("logging", "format")),
        description="Unset means json in prod and console elsewhere.",
    )

    tmdb_api_key: str | None = Field(
        default=None,
        description="Without it, titles come from IMDb Suggest.",
    )

    cache: CacheConfig = Field(default_factory=CacheConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    vidsrc: VidSrcConfig = Field(default_factory=VidSrcConfig)
    hdhub: HDHubConfig = Field(default_factory=HDHubConfig)

    @model_validator(mode="after")
    def _pick_log_format(self) -> "AppConfig":
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """Inverse of loading: the config.yaml shape."""
        cache = self.cache.model_dump()
        cache["dir"] = str(cache.pop("directory"))
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "tmdb_api_key": self.tmdb_api_key,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "user_agents": list(self.http_user_agents),
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "cache": cache,
            "providers": self.providers.model_dump(),
            "vidsrc": self.vidsrc.model_dump(),
            "hdhub": self.hdhub.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """Flat ``STREMSRC_*`` variables, e.g. ``STREMSRC_CACHE_BACKEND=redis``.

    Lists are given as JSON: ``STREMSRC_PROVIDERS_ENABLED='["vidsrc"]'``.
    Only variables that are set take part in the merge.
    """

    model_config = SettingsConfigDict(
        env_prefix="STREMSRC_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None
    tmdb_api_key: Optional[str] = None

    http_timeout_seconds: Optional[float] = None
    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    cache_enabled: Optional[bool] = None
    cache_backend: Optional[CacheBackendName] = None
    cache_dir: Optional[Path] = None
    cache_redis_url: Optional[str] = None
    cache_stream_ttl_seconds: Optional[int] = None

    providers_enabled: Optional[list[ProviderName]] = None
    provider_timeout_seconds: Optional[float] = None

    vidsrc_embed_base_url: Optional[str] = None
    vidsrc_stagger_ms: Optional[int] = None
    vidsrc_server_concurrency: Optional[ServerConcurrency] = None

    hdhub_base_url: Optional[str] = None
    hdhub_match_threshold: Optional[float] = None

    @field_validator("cache_dir", mode="before")
    @classmethod
    def _coerce_cache_dir(cls, v: Any) -> Any:
        return None if v is None else _as_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
