"""
Multi-species coalescent tree estimation with ASTRAL.
"""

from pathlib import Path
from typing import Optional

from ..config.settings import Settings, get_settings
from ..core.types import JobOutput, PathLike
from ..utils.logging import LoggerMixin, log_stage_info
from .process import ProcessRunner, report_failure


class MSCTree(LoggerMixin):
    """Runs ASTRAL on the combined gene tree file."""

    def __init__(
        self,
        path: PathLike,
        settings: Optional[Settings] = None,
        runner: Optional[ProcessRunner] = None,
    ):
        self.path = Path(path)
        self.settings = settings or get_settings()
        self.runner = runner or ProcessRunner(self.settings)

    def estimate_msc_tree(self) -> JobOutput:
        collection = self.settings.gene_tree_collection
        if not collection.is_file():
            self.logger.warning(f"Gene tree file is missing: {collection}")

        output = self.runner.run(self.runner.astral_job())
        report_failure(output, collection, program="ASTRAL")
        self.write_astral_output(output)
        return output

    def write_astral_output(self, output: JobOutput) -> Path:
        """ASTRAL reports progress and scores on stderr; keep it verbatim."""
        log_path = self.settings.msc_log_file
        with open(log_path, "w", encoding="utf-8") as handle:
            handle.write(output.stderr)
        return log_path

    def run(self) -> JobOutput:
        log_stage_info("ASTRAL MSC", self.settings.executables.astral)
        self.logger.info("ASTRAL is processing MSC tree...")
        output = self.estimate_msc_tree()
        self.logger.info("Finished estimating MSC tree!")
        return output


def estimate_msc_tree(path: PathLike, settings: Optional[Settings] = None) -> None:
    """Estimate the MSC tree from the gene trees built for ``path``."""
    MSCTree(path, settings).run()
