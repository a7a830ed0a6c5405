"""
Per-request working area.

Each conversion owns a uniquely named temporary directory holding the
staged HTML and the PDF written by the renderer. The directory is removed
when the ``working_area`` context exits, whatever the outcome.
"""

import asyncio
import logging
import re
import shutil
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional

from .errors import CleanupError, ResultReadError, StagingError

logger = logging.getLogger(__name__)

WORKDIR_PREFIX = "decktape-"
INPUT_FILENAME = "input.html"
OUTPUT_FILENAME = "output.pdf"

# Any surrogate left in a decoded str is unpaired
_LONE_SURROGATE = re.compile("[\ud800-\udfff]")


@dataclass(frozen=True)
class WorkingArea:
    """Paths inside one request's temporary directory."""

    root: Path

    @property
    def input_path(self) -> Path:
        return self.root / INPUT_FILENAME

    @property
    def output_path(self) -> Path:
        return self.root / OUTPUT_FILENAME

    @property
    def input_uri(self) -> str:
        """file:// URI the renderer loads the slides from."""
        return self.input_path.as_uri()

    async def write_input(self, html: str) -> None:
        """Write the HTML verbatim as UTF-8, lone surrogates become U+FFFD."""
        data = _LONE_SURROGATE.sub("\ufffd", html).encode("utf-8")
        try:
            await asyncio.to_thread(self.input_path.write_bytes, data)
        except OSError as e:
            raise StagingError(f"Failed to write input file: {e}") from e

    async def read_output(self) -> bytes:
        """Read the rendered PDF in full."""
        try:
            return await asyncio.to_thread(self.output_path.read_bytes)
        except OSError as e:
            raise ResultReadError(f"Failed to read rendered PDF: {e}") from e


def _remove_tree(root: Path) -> None:
    try:
        shutil.rmtree(root)
    except FileNotFoundError:
        return
    except OSError as e:
        raise CleanupError(f"Failed to remove {root}: {e}") from e


@asynccontextmanager
async def working_area(base_dir: Optional[str] = None) -> AsyncIterator[WorkingArea]:
    """
    Create a private working directory for one conversion.

    Args:
        base_dir: Parent directory (defaults to the platform temp root)

    Yields:
        WorkingArea bound to the new directory

    Raises:
        StagingError: if the directory cannot be created
    """
    try:
        root = await asyncio.to_thread(tempfile.mkdtemp, prefix=WORKDIR_PREFIX, dir=base_dir)
    except OSError as e:
        raise StagingError(f"Failed to create working directory: {e}") from e

    area = WorkingArea(Path(root))
    logger.debug(f"Created working area {area.root}")
    try:
        yield area
    finally:
        try:
            await asyncio.to_thread(_remove_tree, area.root)
            logger.debug(f"Removed working area {area.root}")
        except CleanupError as e:
            logger.error(f"Error cleaning up temporary files: {e}")
