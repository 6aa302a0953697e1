"""
Subprocess execution for IQ-TREE and ASTRAL.

ProcessRunner builds the argument list for each kind of job and runs it in the
configured working directory, capturing both output streams. It never decides
whether a job succeeded; callers pass the JobOutput to ``report_failure``.
"""

import subprocess
import time
from pathlib import Path
from typing import List, Optional

from loguru import logger

from ..config.settings import Settings
from ..core.exceptions import ComputeError
from ..core.types import Job, JobOutput, PathLike


def split_params(params: Optional[str]) -> List[str]:
    """Split a free-form parameter string on whitespace."""
    if params is None:
        return []
    return params.split()


def report_failure(output: JobOutput, path: PathLike, program: str = "IQ-TREE") -> bool:
    """
    Log a failed job with its captured output.

    Returns:
        True when the job succeeded, False when a failure was logged
    """
    if output.success:
        return True
    if output.timed_out:
        logger.error(f"{program} timed out while processing {path} (See below).")
    else:
        logger.error(
            f"{program} failed to process {path} "
            f"(exit status {output.returncode}, see below)."
        )
    logger.error(f"{program} stdout for {path}:\n{output.stdout}")
    logger.error(f"{program} stderr for {path}:\n{output.stderr}")
    return False


class ProcessRunner:
    """Builds and runs external program invocations."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.work_dir = settings.work_dir

    def iqtree_arguments(
        self,
        path: PathLike,
        prefix: str,
        params: Optional[str] = None,
    ) -> List[str]:
        """
        Build an IQ-TREE tree inference command.

        Without overrides the default thread count and bootstrap replicates
        are used. An override string replaces both defaults; its tokens are
        appended verbatim after the fixed arguments.
        """
        inference = self.settings.inference
        overrides = split_params(params)
        args = [self.settings.executables.iqtree, "-s", str(path)]
        if not overrides:
            args.extend(["-T", str(inference.default_threads)])
        args.extend(["--prefix", prefix])
        if overrides:
            args.extend(overrides)
        else:
            args.extend(["-B", str(inference.bootstrap_replicates)])
        return args

    def concordance_arguments(self, path: PathLike, prefix: str) -> List[str]:
        """Build the gene and site concordance factor command."""
        layout = self.settings.layout
        return [
            self.settings.executables.iqtree,
            "-t", self.settings.species_tree_file.name,
            "--gcf", layout.gene_tree_collection,
            "-p", str(path),
            "--scf", str(self.settings.inference.site_concordance_quartets),
            "-T", str(self.settings.compute.physical_cores),
            "--prefix", prefix,
        ]

    def astral_arguments(self) -> List[str]:
        """Build the ASTRAL MSC tree command."""
        layout = self.settings.layout
        return [
            self.settings.executables.astral,
            "-i", layout.gene_tree_collection,
            "-o", layout.msc_tree,
        ]

    def gene_tree_job(self, path: PathLike, prefix: str, params: Optional[str] = None) -> Job:
        path = Path(path).resolve()
        return Job(prefix=prefix, input_path=path, arguments=self.iqtree_arguments(path, prefix, params))

    def species_tree_job(self, path: PathLike, params: Optional[str] = None) -> Job:
        path = Path(path).resolve()
        prefix = self.settings.layout.species_tree_prefix
        return Job(prefix=prefix, input_path=path, arguments=self.iqtree_arguments(path, prefix, params))

    def concordance_job(self, path: PathLike) -> Job:
        path = Path(path).resolve()
        prefix = self.settings.layout.concordance_prefix
        return Job(prefix=prefix, input_path=path, arguments=self.concordance_arguments(path, prefix))

    def astral_job(self) -> Job:
        return Job(
            prefix=Path(self.settings.layout.msc_tree).stem,
            input_path=self.settings.gene_tree_collection,
            arguments=self.astral_arguments(),
        )

    def run(self, job: Job) -> JobOutput:
        """
        Run a job to completion in the working directory.

        Args:
            job: Job to execute

        Returns:
            Exit status and captured output

        Raises:
            ComputeError: If the executable cannot be started
        """
        timeout = self.settings.compute.job_timeout
        logger.debug(f"Running: {job.command_line}")
        started = time.perf_counter()
        try:
            proc = subprocess.run(
                job.arguments,
                cwd=str(self.work_dir),
                capture_output=True,
                text=True,
                errors="replace",
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            output = JobOutput(
                returncode=-1,
                stdout=_as_text(e.stdout),
                stderr=_as_text(e.stderr),
                runtime_sec=time.perf_counter() - started,
                timed_out=True,
            )
        except OSError as e:
            raise ComputeError(
                f"Failed to run {job.executable}: {e}",
                executable=job.executable,
                command=job.command_line,
            ) from e
        else:
            output = JobOutput(
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
                runtime_sec=time.perf_counter() - started,
            )

        logger.debug(
            f"{job.prefix} ({job.input_path}) finished in {output.runtime_sec:.2f}s "
            f"with exit status {output.returncode}"
        )
        return output


def _as_text(stream) -> str:
    if stream is None:
        return ""
    if isinstance(stream, bytes):
        return stream.decode("utf-8", errors="replace")
    return stream
