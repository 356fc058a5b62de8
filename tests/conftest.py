"""Pytest configuration and fixtures."""

import sys
from datetime import timedelta
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from fastapi.testclient import TestClient

from securelink.app import create_app
from securelink.config import Settings
from securelink.links import LinkSigner, PathMapper

SECRET = "s"
FIXED_NOW = 1000.0


@pytest.fixture
def base_dir(tmp_path: Path) -> Path:
    """Create a served tree with one subdirectory and one file at the root."""
    root = tmp_path / "files"
    (root / "sub").mkdir(parents=True)
    (root / "a.txt").write_text("a")
    (root / "sub" / "b.txt").write_text("b")
    return root.resolve()


@pytest.fixture
def mapper(base_dir: Path) -> PathMapper:
    """Create a path mapper with the default public prefixes."""
    return PathMapper(base_dir)


@pytest.fixture
def signer(mapper: PathMapper) -> LinkSigner:
    """Create a signer with a frozen clock and no validity window."""
    return LinkSigner(
        mapper,
        SECRET,
        validity=timedelta(0),
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def settings(base_dir: Path) -> Settings:
    """Create test settings."""
    return Settings(
        secret=SECRET,
        base_dir=base_dir,
        host="127.0.0.1",
        port=3000,
        debug=True,
    )


@pytest.fixture
def client(settings: Settings) -> TestClient:
    """Create test client with configured app."""
    app = create_app(settings)
    return TestClient(app)
