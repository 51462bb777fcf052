"""Template data written into new projects.

Kept apart from the ensure logic so contents can change without touching
merge behavior.
"""

import json
import os
import re
from pathlib import Path
from typing import Optional

# Directory of this distribution; ships std/assembly.json
BUNDLED_COMPILER_DIR = Path(__file__).resolve().parent
BASE_CONFIG = Path("std") / "assembly.json"
NODE_RESOLVED_BASE_CONFIG = "assemblyscript/std/assembly.json"
NODE_MODULES_PATTERN = re.compile(r"^(\.\.[/\\])*node_modules[/\\]assemblyscript[/\\]")

TSCONFIG_INCLUDE = ["./**/*.ts"]

ENTRY_FILE = "\n".join([
    "// The entry file of your WebAssembly module.",
    "",
    "export function add(a: i32, b: i32): i32 {",
    "  return a + b;",
    "}",
]) + "\n"

GITIGNORE = "\n".join([
    "*.wasm",
    "*.wasm.map",
    "*.asm.js",
]) + "\n"

LOADER = "\n".join([
    'const fs = require("fs");',
    'const compiled = new WebAssembly.Module(fs.readFileSync(__dirname + "/build/optimized.wasm"));',
    "const imports = {",
    "  env: {",
    "    abort(_msg, _file, line, column) {",
    '      console.error("abort called at index.ts:" + line + ":" + column);',
    "    }",
    "  }",
    "};",
    'Object.defineProperty(module, "exports", {',
    "  get: () => new WebAssembly.Instance(compiled, imports).exports",
    "});",
]) + "\n"

# Binaries produced by `npm run asbuild`, shown after a successful run
BUILD_OUTPUTS = {
    "untouched": "The untouched WebAssembly module as generated by the compiler. "
                 "It matches your sources exactly, without any optimizations.",
    "optimized": "The optimized WebAssembly module using default optimization settings. "
                 "You can change the optimization settings in 'package.json'.",
}


def _posix(path: str) -> str:
    return path.replace("\\", "/")


def tsconfig_base(assembly_dir: Path, compiler_dir: Optional[Path] = None) -> str:
    """Return the `extends` value pointing from assembly_dir at the base config."""
    compiler_dir = Path(compiler_dir) if compiler_dir else BUNDLED_COMPILER_DIR
    relative = os.path.relpath(compiler_dir / BASE_CONFIG, assembly_dir)
    # Use node resolution if the compiler is a normal dependency
    if NODE_MODULES_PATTERN.match(relative):
        return NODE_RESOLVED_BASE_CONFIG
    return _posix(relative)


def build_scripts(entry_path: str) -> dict:
    entry_path = _posix(entry_path)
    return {
        "asbuild:untouched": f"asc {entry_path} -b build/untouched.wasm -t build/untouched.wat --sourceMap --validate --debug",
        "asbuild:optimized": f"asc {entry_path} -b build/optimized.wasm -t build/optimized.wat --sourceMap --validate --optimize",
        "asbuild": "npm run asbuild:untouched && npm run asbuild:optimized",
    }


def compiler_version(compiler_dir: Optional[Path] = None) -> Optional[str]:
    """Read the version from the compiler's package.json, if it has one."""
    compiler_dir = Path(compiler_dir) if compiler_dir else BUNDLED_COMPILER_DIR
    package_file = compiler_dir / "package.json"
    if not package_file.is_file():
        return None
    try:
        with package_file.open("r", encoding="utf-8") as fh:
            version = json.load(fh).get("version")
    except (OSError, ValueError, AttributeError):
        return None
    return str(version) if version else None
