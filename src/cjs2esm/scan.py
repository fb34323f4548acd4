#!/usr/bin/env python3
# File enumeration and bulk loading
from __future__ import annotations
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Sequence
from .constants import DEFAULT_EXTENSIONS
from .paths import is_ignored

def scan_dir(root: str, ignore_patterns: Sequence[str] = (), extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> List[str]:
  """Sorted paths of the source files under root, ignored folders pruned."""
  extensions = tuple(e if e.startswith(".") else f".{e}" for e in extensions)
  found: List[str] = []
  for base, dirs, files in os.walk(root):
    rel_base = os.path.relpath(base, root)
    rel_base = "" if rel_base == "." else rel_base + "/"
    dirs[:] = sorted(d for d in dirs if not is_ignored(f"{rel_base}{d}/", ignore_patterns))
    for fn in files:
      if not fn.endswith(extensions):
        continue
      if is_ignored(f"{rel_base}{fn}", ignore_patterns):
        continue
      found.append(os.path.join(base, fn))
  return sorted(found)


def read_file(path: str) -> str:
  with open(path, "r", encoding="utf-8") as f:
    return f.read()


def write_file(path: str, content: str) -> None:
  """Replace the file content in full."""
  with open(path, "w", encoding="utf-8") as f:
    f.write(content)


def load_files_content(paths: Sequence[str], jobs: Optional[int] = None) -> Dict[str, str]:
  """path -> text, read with a bounded thread pool; keeps the order of paths."""
  if not paths:
    return {}
  with ThreadPoolExecutor(max_workers=jobs or min(8, len(paths))) as pool:
    contents = list(pool.map(read_file, paths))
  return dict(zip(paths, contents))
