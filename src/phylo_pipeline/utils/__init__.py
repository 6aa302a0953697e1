"""Utility functions for the phylogenetic batch pipeline."""

from .logging import setup_logging, LoggerMixin, log_execution_time, log_stage_info
from .file_operations import find_files, find_alignments, read_trimmed, SafeFileOperations
from .concurrent import run_bounded, ProgressTracker, TaskResult

__all__ = [
    "setup_logging",
    "LoggerMixin",
    "log_execution_time",
    "log_stage_info",
    "find_files",
    "find_alignments",
    "read_trimmed",
    "SafeFileOperations",
    "run_bounded",
    "ProgressTracker",
    "TaskResult",
]
