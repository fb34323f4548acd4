#!/usr/bin/env python3
# Cross-file index of modules exporting a single value through module.exports = X
from __future__ import annotations
import os
from typing import Dict, Iterable, Set
from .module_exports import get_global_exports
from .paths import resolve_import_candidates
from .report import WarningSink

class DefaultExportIndex:
  """
  Absolute paths of the files whose module.exports is a direct assignment.
  Built once before any file is rewritten, read-only afterwards.
  """
  def __init__(self, paths: Iterable[str] = ()):
    self.paths: Set[str] = {os.path.abspath(p) for p in paths}

  @classmethod
  def from_contents(cls, contents: Dict[str, str], experimental: bool = False, silent: bool = True) -> "DefaultExportIndex":
    # readers report again during the real pass
    sink = WarningSink(silent=silent)
    return cls(
      path for path, content in contents.items()
      if get_global_exports(content, experimental, sink).direct_assignment
    )

  def __contains__(self, path: str) -> bool:
    return os.path.abspath(path) in self.paths

  def __len__(self) -> int:
    return len(self.paths)

  def is_default_import(self, consumer: str, raw_target: str) -> bool:
    """Does `require(raw_target)` from consumer load a default-exporting module?"""
    if not raw_target.startswith("."):
      return False
    return any(candidate in self.paths for candidate in resolve_import_candidates(consumer, raw_target))
