"""
Configuration settings for the phylogenetic batch pipeline.

This module provides centralized configuration management using pydantic-settings
for environment variables, file-based configuration, and defaults. Every fixed
file and directory name used by the stages lives here, so a single Settings
object passed into each stage fully determines the on-disk layout.
"""

import os
import json
from pathlib import Path
from typing import Optional, Any
from functools import lru_cache

import psutil
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _available_parallelism() -> int:
    return os.cpu_count() or 1


def _physical_cores() -> int:
    return psutil.cpu_count(logical=False) or _available_parallelism()


class ExecutableSettings(BaseModel):
    """External programs driven by the pipeline."""

    iqtree: str = "iqtree2"
    astral: str = "astral.sh"


class OutputLayout(BaseModel):
    """Fixed file and directory names, relative to the working directory."""

    # Species tree estimation
    species_tree_prefix: str = "concat"
    species_tree_dir: str = "iqtree-species-tree"

    # Gene tree estimation
    gene_tree_collection: str = "genes.treefiles"
    gene_tree_archive_dir: str = "iqtree-genes"
    gene_tree_dir: str = "gene-treefiles"

    # Concordance factors
    concordance_prefix: str = "concord"
    concordance_dir: str = "iqtree-CF"

    # ASTRAL
    msc_tree: str = "msc_astral.tree"
    msc_log: str = "msc_astral.log"


class InferenceSettings(BaseModel):
    """Default IQ-TREE arguments used when no override string is given."""

    default_threads: int = 1
    bootstrap_replicates: int = 1000
    site_concordance_quartets: int = 100
    tree_extension: str = "treefile"

    @field_validator("default_threads", "bootstrap_replicates", "site_concordance_quartets")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v


class ComputeSettings(BaseModel):
    """Computational resource settings."""

    max_workers: int = Field(default_factory=_available_parallelism)
    physical_cores: int = Field(default_factory=_physical_cores)
    # None waits for every subprocess indefinitely
    job_timeout: Optional[float] = None

    @field_validator("max_workers", "physical_cores")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("job_timeout")
    @classmethod
    def timeout_must_be_positive(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("job timeout must be positive")
        return v


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"
    log_file: Optional[Path] = None


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PHYLO_PIPELINE_",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )

    app_name: str = "phylo-pipeline"
    debug: bool = False

    # Directory the external programs run in; all layout names resolve here
    work_dir: Path = Field(default_factory=Path.cwd)

    executables: ExecutableSettings = Field(default_factory=ExecutableSettings)
    layout: OutputLayout = Field(default_factory=OutputLayout)
    inference: InferenceSettings = Field(default_factory=InferenceSettings)
    compute: ComputeSettings = Field(default_factory=ComputeSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("work_dir", mode="before")
    @classmethod
    def create_work_dir(cls, v):
        """Resolve the working directory and create it if needed."""
        path = Path(v).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def resolve(self, name: str) -> Path:
        """Resolve a layout name against the working directory."""
        return self.work_dir / name

    @property
    def gene_tree_dir(self) -> Path:
        return self.resolve(self.layout.gene_tree_dir)

    @property
    def gene_archive_dir(self) -> Path:
        return self.resolve(self.layout.gene_tree_archive_dir)

    @property
    def gene_tree_collection(self) -> Path:
        return self.resolve(self.layout.gene_tree_collection)

    @property
    def species_tree_dir(self) -> Path:
        return self.resolve(self.layout.species_tree_dir)

    @property
    def species_tree_file(self) -> Path:
        return self.resolve(
            f"{self.layout.species_tree_prefix}.{self.inference.tree_extension}"
        )

    @property
    def concordance_dir(self) -> Path:
        return self.resolve(self.layout.concordance_dir)

    @property
    def msc_tree_file(self) -> Path:
        return self.resolve(self.layout.msc_tree)

    @property
    def msc_log_file(self) -> Path:
        return self.resolve(self.layout.msc_log)

    def save_config(self, path: Path) -> None:
        """Save current configuration to file."""
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2, default=str)

    @classmethod
    def load_config(cls, path: Path, **overrides: Any) -> "Settings":
        """Load configuration from file; keyword overrides win over file values."""
        with open(path, "r") as f:
            config_data = json.load(f)
        config_data.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**config_data)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def create_environment_config(environment: str = "production", **overrides: Any) -> Settings:
    """Create environment-specific configuration."""
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if environment == "development":
        overrides.setdefault("debug", True)
        overrides.setdefault("logging", LoggingSettings(level="DEBUG"))
        overrides.setdefault("compute", ComputeSettings(max_workers=2))
    return Settings(**overrides)
