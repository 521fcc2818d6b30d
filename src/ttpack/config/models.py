"""Pydantic models for the plugin manifest and sync configuration."""

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class NamingPolicy(str, Enum):
    """How an installed plugin directory is named."""

    BASENAME = "basename"  # "owner/repo" -> "repo"
    VERSIONED = "versioned"  # "owner/repo" @ v1.0 -> "repo-v1.0"


class PluginSpec(BaseModel):
    """A single plugin entry from plugins.yml."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    repo: str = Field(min_length=1, description="Source repository, e.g. 'owner/name'")
    tag: str = ""
    branch: str = ""
    url: str = Field(default="", description="Explicit archive URL; overrides tag/branch")

    @field_validator("repo", "tag", "branch", "url", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("repo")
    @classmethod
    def _check_repo_name(cls, value: str) -> str:
        # The last segment becomes a directory under the pack root
        name = value.rstrip("/").rsplit("/", 1)[-1]
        if name in ("", ".", "..") or "\\" in name:
            raise ValueError(f"repo '{value}' does not end in a usable directory name")
        return value

    @model_validator(mode="after")
    def _check_source(self) -> "PluginSpec":
        if not (self.tag or self.branch or self.url):
            raise ValueError(f"plugin '{self.repo}' needs one of 'tag', 'branch' or 'url'")
        return self

    @property
    def ref(self) -> str:
        """Version reference: the tag if set, else the branch."""
        return self.tag or self.branch


class Manifest(BaseModel):
    """Decoded plugins.yml: plugins for pack/start and pack/opt."""

    start: list[PluginSpec] = Field(
        default_factory=list,
        validation_alias=AliasChoices("start", "always"),
    )
    opt: list[PluginSpec] = Field(
        default_factory=list,
        validation_alias=AliasChoices("opt", "optional"),
    )

    @field_validator("start", "opt", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        # "start:" with no entries decodes to None
        return [] if value is None else value


class SyncConfig(BaseModel):
    """Runtime settings for a reconciliation pass.

    Attributes:
        pack_dir: Package directory holding the ``start`` and ``opt`` roots.
        naming: Directory naming policy used for both install and lookup.
        timeout: Timeout in seconds for each archive download.
        archive_base_url: Host used to derive archive URLs from tag/branch.
        reconcile_optional: Also prune and install the ``opt`` tier.
    """

    pack_dir: Path
    naming: NamingPolicy = NamingPolicy.BASENAME
    timeout: float = Field(default=60.0, gt=0)
    archive_base_url: str = "https://github.com"
    reconcile_optional: bool = False

    @property
    def start_dir(self) -> Path:
        return self.pack_dir / "start"

    @property
    def opt_dir(self) -> Path:
        return self.pack_dir / "opt"
