"""
Pydantic models for the Decktape service.

These models define the structure for API requests and responses.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, Field


class ConversionOptions(BaseModel):
    """Optional rendering options forwarded to the renderer as-is."""

    size: Optional[Union[bool, str, int, float]] = Field(
        None, description="Page size token, e.g. '1280x720' or 'A4'"
    )
    pause: Optional[Union[bool, int, float, str]] = Field(
        None, description="Pause between slides in milliseconds"
    )
    keys: Optional[List[str]] = Field(
        None, description="Key names used to advance to the next slide"
    )


class ConvertRequest(BaseModel):
    """HTML to PDF conversion request."""

    html: Optional[str] = Field(None, description="HTML document to convert")
    options: Optional[ConversionOptions] = Field(
        None, description="Rendering options"
    )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"


class ErrorResponse(BaseModel):
    """Error envelope returned for failed requests."""

    error: str
    details: Optional[str] = None
    stdout: Optional[str] = None
    stderr: Optional[str] = None
