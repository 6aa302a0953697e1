"""
Batch gene tree estimation.

Every alignment in the input directory becomes one IQ-TREE job. Jobs run on a
bounded thread pool; a failing locus is logged and skipped while the rest of
the batch continues. Once all jobs are done, the per-locus tree files are
combined, in discovery order, into a single file with one tree per line.
"""

from collections import Counter
from pathlib import Path
from typing import Iterable, List, Optional, Set

from ..config.settings import Settings, get_settings
from ..core.exceptions import ConfigurationError
from ..core.types import AlignmentFile, BatchState, BatchSummary, InputFormat, PathLike
from ..utils.concurrent import run_bounded
from ..utils.file_operations import SafeFileOperations, find_alignments, read_trimmed
from ..utils.logging import LoggerMixin, log_stage_info
from .artifacts import ArtifactCollector
from .process import ProcessRunner, report_failure


MIN_ALIGNMENTS = 2


def overlapping_prefixes(prefixes: Iterable[str]) -> List[str]:
    """
    Find prefixes whose ``<prefix>.*`` pattern also matches another job's files.

    ``gene`` and ``gene.v2`` overlap: ``gene.*`` matches ``gene.v2.treefile``.
    """
    known = set(prefixes)
    overlapping = set()
    for prefix in known:
        parts = prefix.split(".")
        for end in range(1, len(parts)):
            shorter = ".".join(parts[:end])
            if shorter in known:
                overlapping.add(f"{shorter}/{prefix}")
    return sorted(overlapping)


def reserved_prefixes(settings: Settings) -> Set[str]:
    """Prefixes the single-job stages write under in the working directory."""
    layout = settings.layout
    return {
        layout.species_tree_prefix,
        layout.concordance_prefix,
        Path(layout.msc_tree).stem,
        Path(layout.msc_log).stem,
    }


class GeneTreeBatch(LoggerMixin):
    """Estimates one gene tree per alignment and combines the results."""

    def __init__(
        self,
        path: PathLike,
        params: Optional[str] = None,
        input_format: InputFormat = InputFormat.NEXUS,
        settings: Optional[Settings] = None,
        runner: Optional[ProcessRunner] = None,
        collector: Optional[ArtifactCollector] = None,
    ):
        self.path = Path(path)
        self.params = params
        self.input_format = InputFormat(input_format)
        self.settings = settings or get_settings()
        self.runner = runner or ProcessRunner(self.settings)
        self.collector = collector or ArtifactCollector(self.settings.work_dir)
        self.state = BatchState.PENDING

    def discover(self) -> List[AlignmentFile]:
        """
        Find the alignments to process.

        Raises:
            ConfigurationError: If fewer than two alignments are found or the
                output files of an alignment would collide with another
                alignment or with a pipeline stage
        """
        self.state = BatchState.DISCOVERING
        alignments = find_alignments(self.path, self.input_format)
        if len(alignments) < MIN_ALIGNMENTS:
            raise ConfigurationError(
                f"Found {len(alignments)} {self.input_format.value} alignment(s) in "
                f"{self.path}; gene tree estimation needs at least {MIN_ALIGNMENTS}",
                config_key="input_dir",
                config_value=self.path,
            )

        duplicates = sorted(
            prefix for prefix, count in Counter(aln.prefix for aln in alignments).items()
            if count > 1
        )
        if duplicates:
            raise ConfigurationError(
                f"Alignments share file names, their outputs would collide: "
                f"{', '.join(duplicates)}",
                config_key="input_dir",
                config_value=self.path,
            )

        reserved = sorted(
            {aln.prefix for aln in alignments} & reserved_prefixes(self.settings)
        )
        if reserved:
            raise ConfigurationError(
                f"Alignment names clash with pipeline output files: "
                f"{', '.join(reserved)}",
                config_key="input_dir",
                config_value=self.path,
            )

        overlapping = overlapping_prefixes(aln.prefix for aln in alignments)
        if overlapping:
            raise ConfigurationError(
                f"Output files of one alignment would match another's prefix: "
                f"{', '.join(overlapping)}",
                config_key="input_dir",
                config_value=self.path,
            )
        return alignments

    def prepare_output_dirs(self) -> None:
        """Recreate the gene tree output directories for a fresh run."""
        SafeFileOperations.reset_directory(self.settings.gene_tree_dir)
        SafeFileOperations.reset_directory(self.settings.gene_archive_dir)

    def estimate_gene_tree(self, alignment: AlignmentFile) -> bool:
        """
        Run IQ-TREE for one alignment and file away its output.

        Artifacts are collected even when IQ-TREE fails, since partial output
        (logs in particular) is still useful.

        Returns:
            True if IQ-TREE exited successfully
        """
        job = self.runner.gene_tree_job(alignment.path, alignment.prefix, self.params)
        output = self.runner.run(job)
        success = report_failure(output, alignment.path)
        self.collector.collect(
            alignment.prefix,
            self.settings.inference.tree_extension,
            self.settings.gene_tree_dir,
            self.settings.gene_archive_dir,
            exclude=[
                alignment.path,
                self.settings.gene_tree_collection,
                self.settings.species_tree_file,
            ],
        )
        return success

    def dispatch(self, alignments: List[AlignmentFile]) -> List[str]:
        """
        Process all alignments on the worker pool.

        Returns:
            Prefixes of the alignments whose job failed
        """
        self.state = BatchState.DISPATCHING
        results = run_bounded(
            self.estimate_gene_tree,
            alignments,
            max_workers=self.settings.compute.max_workers,
            task_id=lambda aln: aln.prefix,
            description="Gene trees",
        )
        return [result.task_id for result in results if not result.success]

    def combine_gene_trees(self, alignments: List[AlignmentFile]) -> int:
        """
        Write every available gene tree into the combined tree file.

        Trees are written in the order the alignments were discovered. Loci
        without a tree file (failed jobs) are skipped.

        Returns:
            Number of trees written
        """
        self.state = BatchState.AGGREGATING
        extension = self.settings.inference.tree_extension
        tree_dir = self.settings.gene_tree_dir
        output = self.settings.gene_tree_collection

        written = 0
        with open(output, "w", encoding="utf-8") as treefile:
            for alignment in alignments:
                tree_path = tree_dir / f"{alignment.prefix}.{extension}"
                if not tree_path.is_file():
                    self.logger.debug(f"No gene tree for {alignment.prefix}, skipping")
                    continue
                treefile.write(read_trimmed(tree_path) + "\n")
                written += 1

        self.logger.info(f"Combined {written} gene trees into {output}")
        return written

    def run(self) -> BatchSummary:
        """Discover, dispatch, and aggregate."""
        alignments = self.discover()
        log_stage_info(
            "IQ-TREE gene tree estimation",
            self.settings.executables.iqtree,
            alignment_path=self.path,
            file_counts=len(alignments),
        )
        self.prepare_output_dirs()

        self.logger.info(f"IQ-TREE is processing gene trees for {len(alignments)} alignments...")
        failed = self.dispatch(alignments)
        if failed:
            self.logger.warning(
                f"IQ-TREE failed for {len(failed)} of {len(alignments)} alignments: "
                f"{', '.join(failed)}"
            )
        self.logger.info(f"Finished estimating gene trees for {len(alignments)} alignments!")

        written = self.combine_gene_trees(alignments)
        self.state = BatchState.DONE
        return BatchSummary(
            total_jobs=len(alignments),
            failed_prefixes=failed,
            trees_written=written,
            collection_file=self.settings.gene_tree_collection,
        )


def build_gene_trees(
    path: PathLike,
    params: Optional[str] = None,
    input_format: InputFormat = InputFormat.NEXUS,
    settings: Optional[Settings] = None,
) -> None:
    """Estimate gene trees for every alignment in ``path``."""
    GeneTreeBatch(path, params, input_format, settings).run()
