"""
Error taxonomy for PDF conversion.

Each error knows its HTTP status and how to render itself as the JSON
envelope returned to the client.
"""

from typing import Any, Dict, Optional

CONVERSION_FAILED = "PDF conversion failed"


class ConversionError(Exception):
    """Base class for all conversion errors surfaced to the client."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": CONVERSION_FAILED, "details": self.message}


class InputValidationError(ConversionError):
    """Request rejected before any resource was allocated."""

    status_code = 400

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class StagingError(ConversionError):
    """Working directory or input file could not be created."""


class LaunchError(ConversionError):
    """Renderer process could not be started."""


class RendererFailure(ConversionError):
    """Renderer exited with a non-zero code (or was killed on timeout)."""

    def __init__(
        self,
        message: str,
        exit_code: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
    ):
        super().__init__(message)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["stdout"] = self.stdout
        body["stderr"] = self.stderr
        return body


class ResultReadError(ConversionError):
    """Renderer reported success but the output file is missing or unreadable."""


class CleanupError(Exception):
    """Working directory could not be removed. Logged, never surfaced."""
