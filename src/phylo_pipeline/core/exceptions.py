"""
Custom exceptions for the phylogenetic batch pipeline.

This module defines the exception hierarchy used throughout the application.
Only conditions that must stop a run are raised; per-locus and per-stage
subprocess failures are logged instead.
"""

from typing import Optional, Any, Dict


class PipelineError(Exception):
    """Base exception class for all pipeline errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize PipelineError.

        Args:
            message: Human-readable error message
            error_code: Optional error code for programmatic handling
            details: Optional additional error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        result = self.message
        if self.error_code:
            result = f"[{self.error_code}] {result}"
        if self.details:
            result += f" (Details: {self.details})"
        return result


class ConfigurationError(PipelineError):
    """Raised when the run is misconfigured (inputs, settings or layout)."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs
    ):
        """
        Initialize ConfigurationError.

        Args:
            message: Error message
            config_key: Configuration key or input that caused the error
            config_value: Offending value
            **kwargs: Additional arguments passed to parent
        """
        details = kwargs.pop("details", None) or {}
        if config_key:
            details["config_key"] = config_key
        if config_value is not None:
            details["config_value"] = str(config_value)

        super().__init__(message, details=details, **kwargs)
        self.config_key = config_key
        self.config_value = config_value


class ComputeError(PipelineError):
    """Raised when an external program cannot be started at all."""

    def __init__(
        self,
        message: str,
        executable: Optional[str] = None,
        command: Optional[str] = None,
        **kwargs
    ):
        """
        Initialize ComputeError.

        Args:
            message: Error message
            executable: Executable that failed to spawn
            command: Full command line
            **kwargs: Additional arguments passed to parent
        """
        details = kwargs.pop("details", None) or {}
        if executable:
            details["executable"] = executable
        if command:
            details["command"] = command

        super().__init__(message, details=details, **kwargs)
        self.executable = executable
        self.command = command


class FileSystemError(PipelineError):
    """Raised when moving artifacts or creating directories fails."""

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs
    ):
        """
        Initialize FileSystemError.

        Args:
            message: Error message
            file_path: Path to the file that caused the error
            operation: File operation that failed
            **kwargs: Additional arguments passed to parent
        """
        details = kwargs.pop("details", None) or {}
        if file_path:
            details["file_path"] = file_path
        if operation:
            details["operation"] = operation

        super().__init__(message, details=details, **kwargs)
        self.file_path = file_path
        self.operation = operation


class ValidationError(PipelineError):
    """Raised when user-supplied input is invalid."""

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        field_value: Optional[Any] = None,
        **kwargs
    ):
        details = kwargs.pop("details", None) or {}
        if field_name:
            details["field_name"] = field_name
        if field_value is not None:
            details["field_value"] = str(field_value)

        super().__init__(message, details=details, **kwargs)
        self.field_name = field_name
        self.field_value = field_value
