import json
import os

import pytest

from asinit_cli.ensure import Outcome
from asinit_cli.errors import DependencyUnavailable, IoError, MalformedConfigError
from asinit_cli.orchestrator import run


def _snapshot(root):
    files = {}
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames:
            files[os.path.relpath(os.path.join(dirpath, name), root)] = None
        for name in filenames:
            path = os.path.join(dirpath, name)
            with open(path, "rb") as fh:
                files[os.path.relpath(path, root)] = fh.read()
    return files


def _by_key(results):
    return {r.spec.key: r for r in results}


def test_declined_run_touches_nothing(project_root):
    assert run(project_root, proceed=False) == []
    assert not project_root.exists()


def test_fresh_root_creates_all_artifacts(project_root):
    results = run(project_root, proceed=True)

    assert len(results) == 8
    assert all(r.ok and r.outcome == Outcome.CREATED for r in results)
    assert set(_snapshot(project_root)) == {
        "assembly",
        "assembly/tsconfig.json",
        "assembly/index.ts",
        "build",
        "build/.gitignore",
        "package.json",
        "index.js",
    }
    assert (project_root / "build" / ".gitignore").read_text().splitlines() == ["*.wasm", "*.wasm.map", "*.asm.js"]
    assert "build/optimized.wasm" in (project_root / "index.js").read_text()
    scripts = json.loads((project_root / "package.json").read_text())["scripts"]
    assert set(scripts) == {"asbuild:untouched", "asbuild:optimized", "asbuild"}
    tsconfig = json.loads((project_root / "assembly" / "tsconfig.json").read_text())
    assert set(tsconfig) == {"extends", "include"}


def test_second_run_is_idempotent(project_root):
    run(project_root, proceed=True)
    before = _snapshot(project_root)

    results = _by_key(run(project_root, proceed=True))

    assert _snapshot(project_root) == before
    assert all(r.outcome != Outcome.CREATED for r in results.values())
    assert results["tsconfig"].outcome == Outcome.UPDATED
    assert results["package"].outcome == Outcome.UNCHANGED
    assert results["entry"].outcome == Outcome.UNCHANGED


def test_existing_entry_file_is_left_alone(project_root):
    (project_root / "assembly").mkdir(parents=True)
    entry = project_root / "assembly" / "index.ts"
    entry.write_text("export function main(): void {}\n")

    results = _by_key(run(project_root, proceed=True))

    assert results["entry"].outcome == Outcome.UNCHANGED
    assert entry.read_text() == "export function main(): void {}\n"


def test_malformed_package_does_not_stop_the_run(project_root):
    project_root.mkdir()
    (project_root / "package.json").write_text("{ name: demo }")

    results = _by_key(run(project_root, proceed=True))

    assert isinstance(results["package"].error, MalformedConfigError)
    assert results["package"].outcome is None
    for key in ("assembly", "tsconfig", "entry", "build", "gitignore", "loader"):
        assert results[key].ok, key
    assert (project_root / "index.js").is_file()
    assert (project_root / "build" / ".gitignore").is_file()


def test_failed_directory_skips_nested_artifacts(project_root):
    project_root.mkdir()
    (project_root / "build").write_text("occupied")

    results = _by_key(run(project_root, proceed=True))

    assert results["build"].error.kind == "IoError"
    gitignore_error = results["gitignore"].error
    assert isinstance(gitignore_error, DependencyUnavailable)
    assert gitignore_error.dependency == project_root / "build"
    assert (project_root / "build").read_text() == "occupied"
    for key in ("assembly", "tsconfig", "entry", "package", "loader"):
        assert results[key].outcome == Outcome.CREATED, key


def test_failed_root_skips_everything(tmp_path):
    root = tmp_path / "project"
    root.write_text("a file, not a directory")

    results = run(root, proceed=True)

    assert results[0].error.kind == "IoError"
    assert all(isinstance(r.error, DependencyUnavailable) for r in results[1:])


def test_callbacks_stream_events_in_plan_order(project_root):
    started, finished = [], []
    results = run(
        project_root,
        proceed=True,
        on_start=lambda spec: started.append(spec.key),
        on_result=lambda result: finished.append(result.spec.key),
    )
    assert started == finished == [r.spec.key for r in results]


def test_unusable_root_path_is_recorded(tmp_path):
    root = tmp_path / ("x" * 300)

    results = run(root, proceed=True)

    assert len(results) == 8
    assert isinstance(results[0].error, IoError)
    assert all(isinstance(r.error, DependencyUnavailable) for r in results[1:])


@pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="needs POSIX permissions enforced")
def test_locked_build_directory_does_not_stop_the_run(project_root):
    build = project_root / "build"
    build.mkdir(parents=True)
    build.chmod(0o600)
    try:
        results = _by_key(run(project_root, proceed=True))
    finally:
        build.chmod(0o755)

    assert results["build"].outcome == Outcome.UNCHANGED
    assert isinstance(results["gitignore"].error, IoError)
    for key in ("assembly", "tsconfig", "entry", "package", "loader"):
        assert results[key].outcome == Outcome.CREATED, key
