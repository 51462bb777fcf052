"""Idempotent create-or-merge of a single artifact."""

import json
import stat
from enum import Enum
from pathlib import Path

from .errors import IoError, MalformedConfigError
from .plan import ArtifactKind, ArtifactSpec, MergePolicy, MergeRule


class Outcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


def _file_mode(path: Path):
    """Return the st_mode of path, or None when nothing is there."""
    try:
        return path.stat().st_mode
    except (FileNotFoundError, NotADirectoryError):
        return None
    except OSError as e:
        raise IoError(path, e.strerror or str(e)) from e


def ensure_directory(spec: ArtifactSpec) -> Outcome:
    path = spec.path
    mode = _file_mode(path)
    if mode is not None:
        if stat.S_ISDIR(mode):
            return Outcome.UNCHANGED
        raise IoError(path, "path exists and is not a directory")
    try:
        path.mkdir(parents=True)
    except FileExistsError:
        mode = _file_mode(path)
        if mode is not None and stat.S_ISDIR(mode):
            return Outcome.UNCHANGED
        raise IoError(path, "path exists and is not a directory")
    except OSError as e:
        raise IoError(path, e.strerror or str(e)) from e
    return Outcome.CREATED


def _write_text(path: Path, content: str) -> None:
    try:
        with path.open("w", encoding="utf-8", newline="\n") as fh:
            fh.write(content)
    except OSError as e:
        raise IoError(path, e.strerror or str(e)) from e


def ensure_text_file(spec: ArtifactSpec) -> Outcome:
    """Write the template if the file is absent; never touch an existing one."""
    path = spec.path
    mode = _file_mode(path)
    if mode is not None:
        if stat.S_ISDIR(mode):
            raise IoError(path, "path exists and is a directory")
        return Outcome.UNCHANGED
    _write_text(path, spec.template or "")
    return Outcome.CREATED


def dump_json(document: dict) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def _target(document: dict, rule: MergeRule, path: Path, create: bool):
    """Walk to the object at rule.key_path, or None when absent and not created."""
    node = document
    for depth, key in enumerate(rule.key_path):
        child = node.get(key)
        if child is None:
            if not create:
                return None
            child = node[key] = {}
        elif not isinstance(child, dict):
            where = ".".join(rule.key_path[:depth + 1])
            raise MalformedConfigError(path, f"'{where}' is not an object")
        node = child
    return node


def _apply(document: dict, rule: MergeRule, path: Path) -> bool:
    """Merge one rule into an existing document, returning whether it applied."""
    if rule.policy == MergePolicy.ON_CREATE:
        return False
    if rule.policy == MergePolicy.IF_GROUP_ABSENT:
        existing = _target(document, rule, path, create=False)
        # Any member present means the group is user-owned
        if existing is not None and any(key in existing for key in rule.values):
            return False
    node = _target(document, rule, path, create=True)
    for key, value in rule.values.items():
        node[key] = value
    return True


def ensure_json(spec: ArtifactSpec) -> Outcome:
    """Create the document from its rules, or merge the owned keys into it.

    An existing document is rewritten whenever at least one rule applies, which
    also normalizes its formatting; it is reported as updated even if no value
    changed. When every rule is skipped the file is left alone.
    """
    path = spec.path
    mode = _file_mode(path)
    if mode is not None and stat.S_ISDIR(mode):
        raise IoError(path, "path exists and is a directory")

    if mode is None:
        document: dict = {}
        for rule in spec.rules:
            node = _target(document, rule, path, create=True)
            node.update(rule.values)
        _write_text(path, dump_json(document))
        return Outcome.CREATED

    try:
        with path.open("r", encoding="utf-8-sig") as fh:
            document = json.load(fh)
    except ValueError as e:
        raise MalformedConfigError(path, f"invalid JSON ({e})") from e
    except OSError as e:
        raise IoError(path, e.strerror or str(e)) from e
    if not isinstance(document, dict):
        raise MalformedConfigError(path, "top-level value is not an object")

    applied = False
    for rule in spec.rules:
        applied = _apply(document, rule, path) or applied
    if not applied:
        return Outcome.UNCHANGED

    _write_text(path, dump_json(document))
    return Outcome.UPDATED


ENSURERS = {
    ArtifactKind.DIRECTORY: ensure_directory,
    ArtifactKind.TEXT_FILE: ensure_text_file,
    ArtifactKind.JSON_DOCUMENT: ensure_json,
}


def ensure(spec: ArtifactSpec) -> Outcome:
    return ENSURERS[spec.kind](spec)
