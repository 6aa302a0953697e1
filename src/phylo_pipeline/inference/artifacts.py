"""
Reorganization of external program output files.

IQ-TREE writes every output of a run next to the working directory as
``<prefix>.<ext>``. ArtifactCollector moves those files into the stage output
directories: the primary result (usually the tree file) to the tree directory
and everything else to an archive directory.
"""

import glob
from pathlib import Path
from typing import Iterable, List, Optional

from ..core.types import CollectedArtifacts, PathLike
from ..utils.file_operations import SafeFileOperations, find_files
from ..utils.logging import LoggerMixin


def artifact_extension(path: Path) -> str:
    """Last extension of a file name without the dot."""
    return path.suffix[1:]


class ArtifactCollector(LoggerMixin):
    """Moves ``<prefix>.*`` files out of the working directory."""

    def __init__(self, work_dir: PathLike):
        self.work_dir = Path(work_dir)

    def find_artifacts(self, prefix: str, exclude: Iterable[PathLike] = ()) -> List[Path]:
        """
        Find the files a job produced.

        Args:
            prefix: Job prefix
            exclude: Paths never treated as artifacts, such as the job's input

        Returns:
            Files named ``<prefix>.*`` in the working directory
        """
        excluded = {Path(path).resolve() for path in exclude}
        files = find_files(self.work_dir, f"{glob.escape(prefix)}.*")
        return [path for path in files if path.resolve() not in excluded]

    def collect(
        self,
        prefix: str,
        primary_extension: Optional[str],
        tree_dir: Optional[PathLike],
        archive_dir: PathLike,
        nest_by_prefix: bool = True,
        exclude: Iterable[PathLike] = (),
    ) -> CollectedArtifacts:
        """
        Move a job's files into the stage output directories.

        Args:
            prefix: Job prefix
            primary_extension: Extension of the stage's primary result; None
                archives every file
            tree_dir: Destination of the primary result; None leaves it in
                the working directory
            archive_dir: Destination of all other files
            nest_by_prefix: Archive under ``archive_dir/<prefix>/`` instead of
                directly in ``archive_dir``
            exclude: Paths to leave untouched

        Returns:
            Final locations of the moved files

        Raises:
            FileSystemError: If a directory cannot be created or a file
                cannot be moved
        """
        files = self.find_artifacts(prefix, exclude)
        collected = CollectedArtifacts(prefix=prefix)
        if not files:
            self.logger.warning(f"No output files found for prefix '{prefix}'")
            return collected

        archive = Path(archive_dir) / prefix if nest_by_prefix else Path(archive_dir)
        SafeFileOperations.ensure_directory(archive)
        if tree_dir is not None:
            SafeFileOperations.ensure_directory(tree_dir)

        for path in files:
            if primary_extension is not None and artifact_extension(path) == primary_extension:
                if tree_dir is None:
                    collected.primary.append(path)
                    continue
                collected.primary.append(SafeFileOperations.move_file(path, tree_dir))
            else:
                collected.auxiliary.append(SafeFileOperations.move_file(path, archive))

        self.logger.debug(
            f"Collected {len(collected.primary)} primary and "
            f"{len(collected.auxiliary)} auxiliary files for '{prefix}'"
        )
        return collected
