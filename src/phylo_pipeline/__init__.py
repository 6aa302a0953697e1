"""
Phylo Pipeline
==============

Batch phylogenomic tree building on top of IQ-TREE 2 and ASTRAL.

Given a directory of per-locus alignments the pipeline:
- estimates a species tree from the concatenated alignments
- estimates one gene tree per locus, in parallel
- computes gene and site concordance factors
- estimates a multi-species coalescent (MSC) tree from the gene trees

Modules:
    core: Data structures and exceptions
    config: Configuration management
    inference: Pipeline stages
    utils: Logging, file and concurrency helpers

Example:
    >>> from phylo_pipeline import build_gene_trees, InputFormat
    >>> build_gene_trees("alignments/", input_format=InputFormat.NEXUS)
"""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("phylo-pipeline")
except PackageNotFoundError:
    __version__ = "unknown"

from .core.exceptions import (
    PipelineError,
    ConfigurationError,
    ComputeError,
    FileSystemError,
)
from .core.types import InputFormat
from .config.settings import Settings, get_settings
from .inference import (
    build_gene_trees,
    build_species_tree,
    estimate_concordance_factor,
    estimate_msc_tree,
    run_full_pipeline,
)

__all__ = [
    "__version__",
    "PipelineError",
    "ConfigurationError",
    "ComputeError",
    "FileSystemError",
    "InputFormat",
    "Settings",
    "get_settings",
    "build_gene_trees",
    "build_species_tree",
    "estimate_concordance_factor",
    "estimate_msc_tree",
    "run_full_pipeline",
]
