"""
Pytest fixtures for Decktape service tests.

The conversion handler is exercised with a fake renderer that never touches
Node or a browser; subprocess tests use small Python stub scripts instead.
"""

import asyncio
import sys
import textwrap
from pathlib import Path
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from decktape_service.app import create_app
from decktape_service.config import DecktapeSettings
from decktape_service.converter import ConversionHandler
from decktape_service.renderer import RENDERER_MODE, RendererResult

FIXTURE_PDF = b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\ntrailer << /Root 1 0 R >>\n%%EOF\n"


def output_path_from_args(args: List[str]) -> Path:
    """The output path is the second positional after the mode token."""
    return Path(args[args.index(RENDERER_MODE) + 2])


class FakeRenderer:
    """RendererInvoker stand-in that copies a fixture PDF to the output path."""

    def __init__(
        self,
        exit_code: int = 0,
        stdout: str = "",
        stderr: str = "",
        write_output: bool = True,
        delay: float = 0.0,
        pdf: bytes = FIXTURE_PDF,
    ):
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.write_output = write_output
        self.delay = delay
        self.pdf = pdf
        self.calls: List[List[str]] = []
        self.staged_html: List[str] = []
        self.workdirs: List[Path] = []

    async def invoke(self, args: List[str]) -> RendererResult:
        self.calls.append(list(args))
        output = output_path_from_args(args)
        self.workdirs.append(output.parent)
        self.staged_html.append((output.parent / "input.html").read_bytes().decode("utf-8"))

        if self.delay:
            await asyncio.sleep(self.delay)

        if self.write_output and self.exit_code == 0:
            output.write_bytes(self.pdf)

        return RendererResult(
            exit_code=self.exit_code,
            stdout=self.stdout,
            stderr=self.stderr,
            args=list(args),
        )


@pytest.fixture
def workdir_root(tmp_path: Path) -> Path:
    """Parent directory for working areas, so leftovers can be detected."""
    root = tmp_path / "work"
    root.mkdir()
    return root


@pytest.fixture
def settings() -> DecktapeSettings:
    return DecktapeSettings(
        decktape_path="/opt/decktape/decktape.js",
        chrome_path="/usr/bin/chromium",
        chrome_flags="--no-sandbox,--disable-gpu",
    )


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()


def build_client(
    settings: DecktapeSettings,
    renderer: Optional[FakeRenderer],
    workdir_root: Path,
) -> TestClient:
    """Create a test client whose handler stages into ``workdir_root``."""
    app = create_app(settings, invoker=renderer)
    app.state.handler = ConversionHandler(
        settings, invoker=renderer, base_dir=str(workdir_root)
    )
    return TestClient(app)


@pytest.fixture
def client(settings, fake_renderer, workdir_root) -> TestClient:
    """Test client backed by the fake renderer."""
    return build_client(settings, fake_renderer, workdir_root)


@pytest.fixture
def client_for(workdir_root):
    """Build a test client for custom settings and renderer."""

    def _client(settings: DecktapeSettings, renderer: Optional[FakeRenderer] = None) -> TestClient:
        return build_client(settings, renderer, workdir_root)

    return _client


@pytest.fixture
def make_renderer():
    """Factory for fake renderers with custom behaviour."""
    return FakeRenderer


STUB_SCRIPTS = {
    "success": """
        import sys
        args = sys.argv[1:]
        output = args[args.index("generic") + 2]
        with open(output, "wb") as f:
            f.write(b"%PDF-1.4 stub\\n%%EOF\\n")
        print("Printing slide #1")
    """,
    "failure": """
        import sys
        print("Loading page file:///input.html")
        sys.stderr.write("Error: Unable to load page\\n")
        sys.exit(3)
    """,
    "stdout_only_failure": """
        import sys
        print("Navigation timeout exceeded")
        sys.exit(1)
    """,
    "no_output_file": """
        print("done")
    """,
    "chatty": """
        import sys
        sys.stdout.write("x" * 5000)
        sys.stdout.write("TAIL")
    """,
    "hanging": """
        import time
        time.sleep(30)
    """,
}


@pytest.fixture
def stub_settings(tmp_path: Path):
    """Settings that run a stub renderer script with the current interpreter."""

    def _settings(kind: str, **overrides) -> DecktapeSettings:
        script = tmp_path / f"decktape_{kind}.py"
        script.write_text(textwrap.dedent(STUB_SCRIPTS[kind]))
        return DecktapeSettings(
            decktape_path=str(script),
            node_binary=sys.executable,
            chrome_path="/usr/bin/chromium",
            **overrides,
        )

    return _settings
