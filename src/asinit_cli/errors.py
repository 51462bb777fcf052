"""Per-artifact failures recorded by the orchestrator."""

from pathlib import Path


class ScaffoldError(Exception):
    """Base class for failures tied to one managed artifact."""

    kind = "ScaffoldError"

    def __init__(self, path: Path, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = Path(path)
        self.reason = reason


class IoError(ScaffoldError):
    kind = "IoError"


class MalformedConfigError(ScaffoldError):
    kind = "MalformedConfigError"


class DependencyUnavailable(ScaffoldError):
    kind = "DependencyUnavailable"

    def __init__(self, path: Path, dependency: Path):
        super().__init__(path, f"parent directory '{dependency}' could not be ensured")
        self.dependency = Path(dependency)
