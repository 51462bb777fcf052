import sys
from pathlib import Path

import pytest

# Ensure `src/` is on sys.path so tests can import the local package without installing it.
SRC = str(Path(__file__).resolve().parents[1] / "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    return tmp_path / "project"
