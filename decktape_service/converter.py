"""
Conversion handler - one HTML to PDF conversion end to end.

validate -> stage -> spawn -> wait -> read result -> cleanup
"""

import logging
from typing import Optional

from .config import DecktapeSettings
from .errors import InputValidationError, RendererFailure
from .models import ConversionOptions
from .renderer import RendererInvoker, SubprocessRendererInvoker, build_renderer_args
from .workspace import working_area

logger = logging.getLogger(__name__)

PDF_FILENAME = "presentation.pdf"


class ConversionHandler:
    """Converts HTML to PDF by running the renderer in a private working area."""

    def __init__(
        self,
        settings: DecktapeSettings,
        invoker: Optional[RendererInvoker] = None,
        base_dir: Optional[str] = None,
    ):
        self.settings = settings
        self.invoker = invoker or SubprocessRendererInvoker.from_settings(settings)
        self.base_dir = base_dir

    async def convert(
        self,
        html: Optional[str],
        options: Optional[ConversionOptions] = None,
    ) -> bytes:
        """
        Render HTML to PDF bytes.

        Args:
            html: HTML document to render
            options: Optional size/pause/keys forwarded to the renderer

        Returns:
            Full contents of the rendered PDF

        Raises:
            InputValidationError: html missing or empty (nothing is staged)
            StagingError: working area could not be prepared
            LaunchError: renderer could not be started
            RendererFailure: renderer exited non-zero or timed out
            ResultReadError: output PDF missing after a clean exit
        """
        if not html:
            raise InputValidationError("HTML content is required")

        async with working_area(self.base_dir) as area:
            await area.write_input(html)

            args = build_renderer_args(
                self.settings,
                input_uri=area.input_uri,
                output_path=str(area.output_path),
                options=options,
            )
            result = await self.invoker.invoke(args)

            if not result.succeeded:
                logger.error(f"Failed command: {' '.join(result.args)}")

            if result.timed_out:
                raise RendererFailure(
                    f"Decktape timed out after {self.settings.renderer_timeout_seconds}s",
                    exit_code=result.exit_code,
                    stdout=result.stdout,
                    stderr=result.stderr,
                )

            if not result.succeeded:
                logger.error(f"Decktape process exited with code {result.exit_code}")
                logger.error(f"stderr: {result.stderr}")
                logger.error(f"stdout: {result.stdout}")
                raise RendererFailure(
                    f"Decktape failed: {result.failure_message}",
                    exit_code=result.exit_code,
                    stdout=result.stdout,
                    stderr=result.stderr,
                )

            pdf_bytes = await area.read_output()

        logger.info(f"Conversion completed: {len(pdf_bytes)} bytes")
        return pdf_bytes
