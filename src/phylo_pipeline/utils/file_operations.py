"""
File operations utilities for the phylogenetic batch pipeline.

This module provides alignment discovery and the directory/move helpers used
when reorganizing external program output, with errors translated into
FileSystemError.
"""

import glob
import os
import shutil
from pathlib import Path
from typing import List

from loguru import logger

from ..core.types import AlignmentFile, InputFormat, PathLike
from ..core.exceptions import FileSystemError


def find_files(directory: PathLike, pattern: str) -> List[Path]:
    """
    Find regular files in a directory matching a glob pattern.

    The directory part is escaped, so only ``pattern`` is interpreted as a
    glob. Results keep the order of the underlying directory listing.

    Args:
        directory: Directory to search
        pattern: Glob pattern for file names

    Returns:
        Matching file paths, possibly empty
    """
    full_pattern = os.path.join(glob.escape(str(directory)), pattern)
    return [Path(match) for match in glob.glob(full_pattern) if os.path.isfile(match)]


def find_alignments(directory: PathLike, input_format: InputFormat) -> List[AlignmentFile]:
    """Discover alignment files of the given format in a directory."""
    paths = find_files(directory, input_format.glob_pattern)
    logger.debug(f"Found {len(paths)} {input_format.value} files in {directory}")
    return [AlignmentFile(path=path) for path in paths]


class SafeFileOperations:
    """Safe file operations with proper error handling."""

    @staticmethod
    def ensure_directory(dir_path: PathLike) -> Path:
        """
        Ensure directory exists, create if necessary.

        Args:
            dir_path: Directory path

        Returns:
            Path object for directory

        Raises:
            FileSystemError: If directory cannot be created
        """
        path = Path(dir_path)

        try:
            path.mkdir(parents=True, exist_ok=True)
            return path
        except OSError as e:
            raise FileSystemError(
                f"Failed creating directory: {path} - {e}",
                file_path=str(path),
                operation="mkdir"
            ) from e

    @staticmethod
    def reset_directory(dir_path: PathLike) -> Path:
        """Remove a directory with its contents, then create it empty."""
        path = Path(dir_path)

        try:
            if path.exists():
                logger.debug(f"Removing previous output directory: {path}")
                shutil.rmtree(path)
        except OSError as e:
            raise FileSystemError(
                f"Failed clearing directory: {path} - {e}",
                file_path=str(path),
                operation="rmtree"
            ) from e
        return SafeFileOperations.ensure_directory(path)

    @staticmethod
    def move_file(source: PathLike, destination_dir: PathLike) -> Path:
        """
        Move a file into a directory, keeping its name.

        Args:
            source: File to move
            destination_dir: Existing target directory

        Returns:
            New path of the file

        Raises:
            FileSystemError: If the move fails
        """
        source = Path(source)
        target = Path(destination_dir) / source.name

        try:
            shutil.move(str(source), str(target))
        except OSError as e:
            raise FileSystemError(
                f"Failed moving {source} to {target} - {e}",
                file_path=str(source),
                operation="move"
            ) from e
        return target


def read_trimmed(path: PathLike) -> str:
    """Read a text file and strip surrounding whitespace."""
    try:
        with open(path, "r", encoding="utf-8") as handle:
            return handle.read().strip()
    except (OSError, UnicodeDecodeError) as e:
        raise FileSystemError(
            f"Failed reading {path} - {e}",
            file_path=str(path),
            operation="read"
        ) from e
