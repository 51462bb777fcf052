from pathlib import Path

import pytest

from asinit_cli import templates
from asinit_cli.plan import ArtifactKind, MergePolicy, plan


def test_plan_lists_all_artifacts_in_order(project_root):
    specs = plan(project_root)
    assert [s.relative_to(project_root) for s in specs] == [
        ".",
        "assembly",
        "assembly/tsconfig.json",
        "assembly/index.ts",
        "build",
        "build/.gitignore",
        "package.json",
        "index.js",
    ]


def test_directories_precede_their_contents(project_root):
    specs = plan(project_root)
    for i, spec in enumerate(specs):
        for earlier in specs[:i]:
            assert not (earlier.path != spec.path and earlier.path.is_relative_to(spec.path))
        if spec.kind != ArtifactKind.DIRECTORY:
            parents = [s.path for s in specs[:i] if s.kind == ArtifactKind.DIRECTORY]
            assert spec.path.parent in parents


def test_plan_is_deterministic_and_touches_nothing(project_root):
    assert plan(project_root) == plan(project_root)
    assert not project_root.exists()


def test_tsconfig_extends_compiler_base_config(project_root, tmp_path):
    compiler_dir = tmp_path / "compiler"
    tsconfig = next(s for s in plan(project_root, compiler_dir) if s.key == "tsconfig")
    extends = next(r for r in tsconfig.rules if r.policy == MergePolicy.ALWAYS)
    assert extends.values == {"extends": "../../compiler/std/assembly.json"}
    include = next(r for r in tsconfig.rules if r.policy == MergePolicy.ON_CREATE)
    assert include.values == {"include": ["./**/*.ts"]}


def test_tsconfig_uses_node_resolution_for_installed_compiler(project_root):
    compiler_dir = project_root / "node_modules" / "assemblyscript"
    tsconfig = next(s for s in plan(project_root, compiler_dir) if s.key == "tsconfig")
    assert tsconfig.rules[0].values["extends"] == "assemblyscript/std/assembly.json"


def test_package_scripts_are_one_group(project_root):
    package = next(s for s in plan(project_root) if s.key == "package")
    (rule,) = package.rules
    assert rule.policy == MergePolicy.IF_GROUP_ABSENT
    assert rule.key_path == ("scripts",)
    assert list(rule.values) == ["asbuild:untouched", "asbuild:optimized", "asbuild"]
    assert rule.values["asbuild:untouched"].startswith("asc assembly/index.ts -b build/untouched.wasm")
    assert rule.values["asbuild"] == "npm run asbuild:untouched && npm run asbuild:optimized"


def test_relative_root_is_made_absolute(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    specs = plan("project")
    assert specs[0].path == Path(tmp_path) / "project"


def test_compiler_version_reads_package_json(tmp_path):
    (tmp_path / "package.json").write_text('{"name": "assemblyscript", "version": "0.9.4"}')
    assert templates.compiler_version(tmp_path) == "0.9.4"
    assert templates.compiler_version(tmp_path / "missing") is None


def test_specs_are_read_only_and_unhashable(project_root):
    package = next(s for s in plan(project_root) if s.key == "package")
    (rule,) = package.rules
    with pytest.raises(TypeError):
        rule.values["asbuild"] = "make"
    with pytest.raises(TypeError, match="unhashable"):
        hash(rule)
    with pytest.raises(TypeError, match="unhashable"):
        hash(package)
