"""Run the ensure steps for a whole project in plan order."""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .ensure import Outcome, ensure
from .errors import DependencyUnavailable, ScaffoldError
from .plan import ArtifactKind, ArtifactSpec, plan


@dataclass(frozen=True)
class ArtifactResult:
    spec: ArtifactSpec
    outcome: Optional[Outcome] = None
    error: Optional[ScaffoldError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _failed_parent(spec: ArtifactSpec, failed_dirs: list[Path]) -> Optional[Path]:
    for directory in failed_dirs:
        if spec.path != directory and spec.path.is_relative_to(directory):
            return directory
    return None


def run(
    root,
    proceed: bool,
    *,
    compiler_dir: Optional[Path] = None,
    on_start: Optional[Callable[[ArtifactSpec], None]] = None,
    on_result: Optional[Callable[[ArtifactResult], None]] = None,
) -> list[ArtifactResult]:
    """Ensure every planned artifact under `root`.

    Nothing is touched unless `proceed` is true. Errors are recorded per
    artifact; anything nested in a directory that failed is skipped with a
    DependencyUnavailable error. Nothing is rolled back.
    """
    if not proceed:
        return []

    results: list[ArtifactResult] = []
    failed_dirs: list[Path] = []
    for spec in plan(root, compiler_dir):
        if on_start:
            on_start(spec)
        parent = _failed_parent(spec, failed_dirs)
        if parent is not None:
            result = ArtifactResult(spec, error=DependencyUnavailable(spec.path, parent))
        else:
            try:
                result = ArtifactResult(spec, outcome=ensure(spec))
            except ScaffoldError as e:
                result = ArtifactResult(spec, error=e)
        if not result.ok and spec.kind == ArtifactKind.DIRECTORY:
            failed_dirs.append(spec.path)
        results.append(result)
        if on_result:
            on_result(result)
    return results
