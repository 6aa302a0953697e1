"""
Full pipeline: species tree, gene trees, concordance factors, MSC tree.

Each stage reads files written by the one before it, so stages run one after
another on the calling thread. Only a fatal error stops the sequence; failed
single-job stages are logged and the next stage runs on whatever is on disk.
"""

from typing import Optional

from loguru import logger

from ..config.settings import Settings, get_settings
from ..core.types import BatchSummary, InputFormat, PathLike
from .concordance import ConcordanceFactor
from .gene_trees import GeneTreeBatch
from .msc_tree import MSCTree
from .species_tree import SpeciesTree


def run_full_pipeline(
    path: PathLike,
    species_params: Optional[str] = None,
    gene_params: Optional[str] = None,
    input_format: InputFormat = InputFormat.NEXUS,
    settings: Optional[Settings] = None,
) -> BatchSummary:
    """
    Run every stage for the alignments in ``path``.

    Returns:
        Summary of the gene tree batch
    """
    settings = settings or get_settings()

    logger.info("Step 1/4: species tree")
    SpeciesTree(path, species_params, settings).run()

    logger.info("Step 2/4: gene trees")
    summary = GeneTreeBatch(path, gene_params, input_format, settings).run()

    logger.info("Step 3/4: concordance factors")
    ConcordanceFactor(path, settings).run()

    logger.info("Step 4/4: MSC tree")
    MSCTree(path, settings).run()

    return summary
