"""Core data structures and exceptions for the phylogenetic batch pipeline."""

from .exceptions import (
    PipelineError,
    ConfigurationError,
    ComputeError,
    FileSystemError,
    ValidationError,
)
from .types import (
    AlignmentFile,
    BatchState,
    BatchSummary,
    CollectedArtifacts,
    InputFormat,
    Job,
    JobOutput,
)

__all__ = [
    "PipelineError",
    "ConfigurationError",
    "ComputeError",
    "FileSystemError",
    "ValidationError",
    "AlignmentFile",
    "BatchState",
    "BatchSummary",
    "CollectedArtifacts",
    "InputFormat",
    "Job",
    "JobOutput",
]
