"""Static description of every artifact a project needs."""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

from . import templates


class ArtifactKind(str, Enum):
    DIRECTORY = "directory"
    TEXT_FILE = "text"
    JSON_DOCUMENT = "json"


class MergePolicy(str, Enum):
    ALWAYS = "always"
    IF_GROUP_ABSENT = "if-group-absent"
    ON_CREATE = "on-create"


@dataclass(frozen=True, eq=True)
class MergeRule:
    """Keys owned by the tool inside a JSON document.

    `key_path` locates the object the values live in (empty for the top
    level). With IF_GROUP_ABSENT the values are a group: added together, or
    not at all when any of them is already present.
    """

    values: Mapping[str, Any]
    policy: MergePolicy
    key_path: tuple[str, ...] = ()

    # Compared by value, never hashed
    __hash__ = None

    def __post_init__(self):
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))


@dataclass(frozen=True, eq=True)
class ArtifactSpec:
    key: str
    kind: ArtifactKind
    path: Path
    description: str
    template: Optional[str] = None
    rules: tuple[MergeRule, ...] = field(default_factory=tuple)

    __hash__ = None

    def relative_to(self, root: Path) -> str:
        if self.path == root:
            return "."
        return self.path.relative_to(root).as_posix()


def plan(root, compiler_dir: Optional[Path] = None) -> list[ArtifactSpec]:
    """Return the artifacts for `root`, each directory before its contents."""
    root = Path(os.path.abspath(root))
    assembly_dir = root / "assembly"
    entry_file = assembly_dir / "index.ts"
    build_dir = root / "build"

    return [
        ArtifactSpec(
            key="project",
            kind=ArtifactKind.DIRECTORY,
            path=root,
            description="Project directory.",
        ),
        ArtifactSpec(
            key="assembly",
            kind=ArtifactKind.DIRECTORY,
            path=assembly_dir,
            description="Directory holding the AssemblyScript sources being compiled to WebAssembly.",
        ),
        ArtifactSpec(
            key="tsconfig",
            kind=ArtifactKind.JSON_DOCUMENT,
            path=assembly_dir / "tsconfig.json",
            description="TypeScript configuration inheriting recommended AssemblyScript settings.",
            rules=(
                MergeRule({"extends": templates.tsconfig_base(assembly_dir, compiler_dir)}, MergePolicy.ALWAYS),
                MergeRule({"include": list(templates.TSCONFIG_INCLUDE)}, MergePolicy.ON_CREATE),
            ),
        ),
        ArtifactSpec(
            key="entry",
            kind=ArtifactKind.TEXT_FILE,
            path=entry_file,
            description="Example entry file being compiled to WebAssembly to get you started.",
            template=templates.ENTRY_FILE,
        ),
        ArtifactSpec(
            key="build",
            kind=ArtifactKind.DIRECTORY,
            path=build_dir,
            description="Build artifact directory where compiled WebAssembly files are stored.",
        ),
        ArtifactSpec(
            key="gitignore",
            kind=ArtifactKind.TEXT_FILE,
            path=build_dir / ".gitignore",
            description="Git configuration that excludes compiled binaries from source control.",
            template=templates.GITIGNORE,
        ),
        ArtifactSpec(
            key="package",
            kind=ArtifactKind.JSON_DOCUMENT,
            path=root / "package.json",
            description="Package info containing the necessary commands to compile to WebAssembly.",
            rules=(
                MergeRule(
                    templates.build_scripts(entry_file.relative_to(root).as_posix()),
                    MergePolicy.IF_GROUP_ABSENT,
                    key_path=("scripts",),
                ),
            ),
        ),
        ArtifactSpec(
            key="loader",
            kind=ArtifactKind.TEXT_FILE,
            path=root / "index.js",
            description="Main file loading the WebAssembly module and exporting its exports.",
            template=templates.LOADER,
        ),
    ]
