"""
Species tree estimation from the concatenated alignments.
"""

from pathlib import Path
from typing import Optional

from ..config.settings import Settings, get_settings
from ..core.types import CollectedArtifacts, PathLike
from ..utils.logging import LoggerMixin, log_stage_info
from .artifacts import ArtifactCollector
from .process import ProcessRunner, report_failure


class SpeciesTree(LoggerMixin):
    """Runs one IQ-TREE job over the whole alignment directory."""

    def __init__(
        self,
        path: PathLike,
        params: Optional[str] = None,
        settings: Optional[Settings] = None,
        runner: Optional[ProcessRunner] = None,
        collector: Optional[ArtifactCollector] = None,
    ):
        self.path = Path(path)
        self.params = params
        self.settings = settings or get_settings()
        self.runner = runner or ProcessRunner(self.settings)
        self.collector = collector or ArtifactCollector(self.settings.work_dir)

    def estimate_species_tree(self) -> CollectedArtifacts:
        """
        Run IQ-TREE and archive its output.

        The species tree file stays in the working directory, where the
        concordance factor stage expects it. A failed run is logged only.
        """
        job = self.runner.species_tree_job(self.path, self.params)
        output = self.runner.run(job)
        report_failure(output, self.path)
        return self.collector.collect(
            job.prefix,
            self.settings.inference.tree_extension,
            None,
            self.settings.species_tree_dir,
            nest_by_prefix=False,
        )

    def run(self) -> CollectedArtifacts:
        log_stage_info("IQ-TREE species tree estimation", self.settings.executables.iqtree)
        self.logger.info(f"IQ-TREE is processing species tree for alignments in {self.path}...")
        collected = self.estimate_species_tree()
        self.logger.info("Finished estimating species tree!")
        return collected


def build_species_tree(
    path: PathLike,
    params: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> None:
    """Estimate the species tree for the alignments in ``path``."""
    SpeciesTree(path, params, settings).run()
