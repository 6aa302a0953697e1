"""
Gene and site concordance factors against the species tree.
"""

from pathlib import Path
from typing import Optional

from ..config.settings import Settings, get_settings
from ..core.types import CollectedArtifacts, PathLike
from ..utils.logging import LoggerMixin, log_stage_info
from .artifacts import ArtifactCollector
from .process import ProcessRunner, report_failure


class ConcordanceFactor(LoggerMixin):
    """Runs IQ-TREE's gCF/sCF analysis on the species tree and gene trees."""

    def __init__(
        self,
        path: PathLike,
        settings: Optional[Settings] = None,
        runner: Optional[ProcessRunner] = None,
        collector: Optional[ArtifactCollector] = None,
    ):
        self.path = Path(path)
        self.settings = settings or get_settings()
        self.runner = runner or ProcessRunner(self.settings)
        self.collector = collector or ArtifactCollector(self.settings.work_dir)

    def check_inputs(self) -> None:
        """Warn about upstream files that are missing; IQ-TREE will report the failure."""
        for required in (self.settings.species_tree_file, self.settings.gene_tree_collection):
            if not required.is_file():
                self.logger.warning(f"Concordance factor input is missing: {required}")

    def estimate_concordance(self) -> CollectedArtifacts:
        self.check_inputs()
        job = self.runner.concordance_job(self.path)
        output = self.runner.run(job)
        report_failure(output, self.path)
        return self.collector.collect(
            job.prefix,
            None,
            None,
            self.settings.concordance_dir,
            nest_by_prefix=False,
        )

    def run(self) -> CollectedArtifacts:
        log_stage_info(
            "IQ-TREE gene and site concordance factors",
            self.settings.executables.iqtree,
        )
        self.logger.info("IQ-TREE is processing concordance factor...")
        collected = self.estimate_concordance()
        self.logger.info("Finished estimating concordance factor!")
        return collected


def estimate_concordance_factor(path: PathLike, settings: Optional[Settings] = None) -> None:
    """Compute gene and site concordance factors for the alignments in ``path``."""
    ConcordanceFactor(path, settings).run()
