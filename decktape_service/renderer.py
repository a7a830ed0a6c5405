"""
Renderer Invocation Module

Builds the Decktape command line and runs it as a subprocess with:
- Concurrent capture of stdout and stderr
- Size-capped output buffers
- Optional timeout with process kill
- Exit code capture
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional, Protocol, Sequence, Union

from .config import DecktapeSettings
from .errors import LaunchError
from .models import ConversionOptions

logger = logging.getLogger(__name__)

RENDERER_MODE = "generic"
NAVIGATION_KEYS = ("ArrowRight", "Space")
READ_CHUNK_SIZE = 4096


def _format_option_value(value: Union[bool, str, int, float]) -> str:
    """Render an option the way it was sent (2.0 -> '2', True -> 'true')."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_renderer_args(
    settings: DecktapeSettings,
    input_uri: str,
    output_path: str,
    options: Optional[ConversionOptions] = None,
) -> List[str]:
    """
    Build the Decktape argument vector.

    Args:
        settings: Service configuration (entry point, browser path and flags)
        input_uri: file:// URI of the staged HTML
        output_path: Where the renderer writes the PDF
        options: Optional size/pause/keys pass-through

    Returns:
        Arguments following the Node binary, entry point first
    """
    options = options or ConversionOptions()

    args = [
        settings.decktape_path,
        "--chrome-path",
        settings.chrome_path,
    ]
    args.extend(f"--chrome-arg={flag}" for flag in settings.chrome_flags_list)
    args.extend([RENDERER_MODE, input_uri, output_path])

    # Falsy values (0, "") are treated as unset
    if options.size:
        args.append(f"--size={_format_option_value(options.size)}")
    if options.pause:
        args.append(f"--pause={_format_option_value(options.pause)}")

    if options.keys:
        keys: Sequence[str] = options.keys
    elif settings.navigation_keys_enabled:
        keys = NAVIGATION_KEYS
    else:
        keys = ()
    args.extend(f"--key={key}" for key in keys)

    return args


class OutputBuffer:
    """Accumulates process output, keeping only the most recent ``limit`` bytes."""

    def __init__(self, limit: int):
        self.limit = limit
        self.truncated = False
        self._chunks: Deque[bytes] = deque()
        self._size = 0

    def append(self, chunk: bytes) -> None:
        self._chunks.append(chunk)
        self._size += len(chunk)
        # Drop whole chunks from the front while the rest still covers the limit
        while self._size - len(self._chunks[0]) >= self.limit:
            self._size -= len(self._chunks.popleft())
            self.truncated = True
        if self._size > self.limit:
            self.truncated = True

    @property
    def retained_bytes(self) -> int:
        """Bytes held in memory (at most limit plus one chunk)."""
        return self._size

    @property
    def text(self) -> str:
        data = b"".join(self._chunks)[-self.limit:]
        return data.decode("utf-8", errors="replace")


@dataclass
class RendererResult:
    """Outcome of one renderer run."""

    exit_code: Optional[int]
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    args: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and not self.timed_out

    @property
    def failure_message(self) -> str:
        """Diagnostic text, preferring stderr over stdout."""
        return self.stderr or self.stdout


class RendererInvoker(Protocol):
    """Capability to run the renderer with a prepared argument vector."""

    async def invoke(self, args: List[str]) -> RendererResult:
        ...


class SubprocessRendererInvoker:
    """Runs the renderer as a child process of the service."""

    def __init__(
        self,
        program: str,
        timeout: Optional[float] = None,
        buffer_limit: int = 1024 * 1024,
    ):
        self.program = program
        self.timeout = timeout
        self.buffer_limit = buffer_limit

    @classmethod
    def from_settings(cls, settings: DecktapeSettings) -> "SubprocessRendererInvoker":
        return cls(
            program=settings.node_binary,
            timeout=settings.renderer_timeout_seconds,
            buffer_limit=settings.output_buffer_limit,
        )

    async def invoke(self, args: List[str]) -> RendererResult:
        """
        Run the renderer and wait for it to exit.

        Args:
            args: Arguments passed after the program

        Returns:
            RendererResult with exit code and captured output

        Raises:
            LaunchError: if the process cannot be started
        """
        cmd = [self.program, *args]
        logger.info(f"Executing command: {' '.join(cmd)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error(f"Failed to start Decktape process: {e}")
            raise LaunchError(f"Failed to start renderer: {e}") from e

        stdout = OutputBuffer(self.buffer_limit)
        stderr = OutputBuffer(self.buffer_limit)
        supervised = asyncio.gather(
            self._drain(process.stdout, stdout, "stdout"),
            self._drain(process.stderr, stderr, "stderr"),
            process.wait(),
        )

        timed_out = False
        try:
            await asyncio.wait_for(supervised, timeout=self.timeout)
        except asyncio.TimeoutError:
            # Kill the process on timeout
            timed_out = True
            logger.error(f"Decktape timed out after {self.timeout}s, killing pid {process.pid}")
            process.kill()
            await process.wait()

        for label, buffer in (("stdout", stdout), ("stderr", stderr)):
            if buffer.truncated:
                logger.warning(f"Decktape {label} exceeded {self.buffer_limit} bytes, kept the tail")

        return RendererResult(
            exit_code=process.returncode,
            stdout=stdout.text,
            stderr=stderr.text,
            timed_out=timed_out,
            args=list(args),
        )

    @staticmethod
    async def _drain(
        stream: Optional[asyncio.StreamReader],
        buffer: OutputBuffer,
        label: str,
    ) -> None:
        if stream is None:
            return
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            buffer.append(chunk)
            logger.debug(f"Decktape {label}: {chunk.decode('utf-8', errors='replace').rstrip()}")
