import fnmatch
import os
from typing import List

from .constants import DEFAULT_IGNORE

def build_ignore_patterns(ignore: str|None = DEFAULT_IGNORE) -> List[str]:
    """
    Space-separated folder names to glob patterns.
    e.g., "node_modules dist" → ["**/node_modules/**", "**/dist/**"]
    """
    return [f"**/{name}/**" for name in (ignore or "").split()]

def is_ignored(rel_path: str, patterns: List[str]) -> bool:
    """
    Match a root-relative path against the ignore patterns.
    The path is prefixed with "./" so top-level folders match "**/name/**" too.
    """
    rel_path = rel_path.replace("\\", "/")
    if rel_path.startswith("./"):
        rel_path = rel_path[2:]
    candidate = "./" + rel_path
    return any(fnmatch.fnmatch(candidate, pattern) for pattern in patterns)

def resolve_import_candidates(consumer: str, raw_target: str) -> List[str]:
    """
    Absolute files a relative require() target may load, from the consumer's folder.
    "./lib/x" → [".../lib/x.js", ".../lib/x/index.js"]
    """
    base = os.path.dirname(os.path.abspath(consumer))
    target = os.path.normpath(os.path.join(base, raw_target))
    if target.endswith(".js"):
        return [target]
    return [target + ".js", os.path.join(target, "index.js")]
