"""Pipeline stages driving IQ-TREE and ASTRAL."""

from .process import ProcessRunner, report_failure, split_params
from .artifacts import ArtifactCollector
from .gene_trees import GeneTreeBatch, build_gene_trees
from .species_tree import SpeciesTree, build_species_tree
from .concordance import ConcordanceFactor, estimate_concordance_factor
from .msc_tree import MSCTree, estimate_msc_tree
from .pipeline import run_full_pipeline

__all__ = [
    "ProcessRunner",
    "report_failure",
    "split_params",
    "ArtifactCollector",
    "GeneTreeBatch",
    "build_gene_trees",
    "SpeciesTree",
    "build_species_tree",
    "ConcordanceFactor",
    "estimate_concordance_factor",
    "MSCTree",
    "estimate_msc_tree",
    "run_full_pipeline",
]
