"""
Type definitions for the phylogenetic batch pipeline.

This module defines the data structures passed between the file locator,
the subprocess runner, the artifact collector and the pipeline stages.
"""

from typing import List, Optional, Union
from dataclasses import dataclass, field
from pathlib import Path
from enum import Enum


PathLike = Union[str, Path]


class InputFormat(str, Enum):
    """Alignment formats accepted by the gene-tree stage."""

    FASTA = "fasta"
    NEXUS = "nexus"
    PHYLIP = "phylip"

    @property
    def glob_pattern(self) -> str:
        """Glob used to discover alignments of this format."""
        return _FORMAT_PATTERNS[self]


_FORMAT_PATTERNS = {
    InputFormat.FASTA: "*.fa*",
    InputFormat.NEXUS: "*.nex*",
    InputFormat.PHYLIP: "*.phy*",
}


class BatchState(str, Enum):
    """Lifecycle of a gene-tree batch."""

    PENDING = "pending"
    DISCOVERING = "discovering"
    DISPATCHING = "dispatching"
    AGGREGATING = "aggregating"
    DONE = "done"


@dataclass(frozen=True)
class AlignmentFile:
    """One locus alignment discovered on disk."""

    path: Path

    @property
    def prefix(self) -> str:
        """Job prefix used to namespace the locus' output files."""
        return self.path.stem

    def __str__(self) -> str:
        return str(self.path)


@dataclass
class Job:
    """A single external program invocation."""

    prefix: str
    input_path: Path
    arguments: List[str]

    @property
    def executable(self) -> str:
        return self.arguments[0]

    @property
    def command_line(self) -> str:
        return " ".join(self.arguments)


@dataclass
class JobOutput:
    """Exit status and captured streams of a finished job."""

    returncode: int
    stdout: str
    stderr: str
    runtime_sec: float = 0.0
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.returncode == 0 and not self.timed_out


@dataclass
class CollectedArtifacts:
    """Where the files of one job prefix ended up."""

    prefix: str
    primary: List[Path] = field(default_factory=list)
    auxiliary: List[Path] = field(default_factory=list)

    @property
    def all_files(self) -> List[Path]:
        return self.primary + self.auxiliary


@dataclass
class BatchSummary:
    """Outcome of one gene-tree batch run."""

    total_jobs: int
    failed_prefixes: List[str] = field(default_factory=list)
    trees_written: int = 0
    collection_file: Optional[Path] = None

    @property
    def succeeded(self) -> int:
        return self.total_jobs - len(self.failed_prefixes)
