#!/usr/bin/env python3
# Orchestration: read every file, build the default-export index, rewrite file by file
from __future__ import annotations
import sys
from typing import Dict, List, Optional, Sequence
from .config import DEFAULT_CONFIG, RewriteConfig
from .defaults import DefaultExportIndex
from .exports import rewrite_exports
from .imports import rewrite_imports
from .module_exports import get_exports
from .report import WarningSink, sink_or_default
from .requires import get_requires
from .scan import load_files_content, write_file

REMINDER = """
----------------------
Beware:
  - review all changes before committing them
  - check the warnings above, every skipped construct is left as it was

To use imports with Node.js:
  - add "type": "module" to your package.json
  - relative imports without extension need --es-module-specifier-resolution=node
"""


def transform(content: str, path: Optional[str] = None, config: RewriteConfig = DEFAULT_CONFIG,
              index: Optional[DefaultExportIndex] = None, sink: Optional[WarningSink] = None) -> str:
  """
  Convert one file's text. Both readers see the original text, then imports are
  written before exports.
  """
  sink = sink_or_default(sink)
  requirements = get_requires(content, sink)
  exports = get_exports(content, config.experimental, sink)
  if not requirements and exports.is_empty:
    return content
  updated = rewrite_imports(content, requirements, path, index, config, sink)
  return rewrite_exports(updated, exports, sink)


def format_progress(current: int, total: int, path: str) -> str:
  digits = len(str(total))
  percent = round(current / total * 100) if total else 100
  return f"({current:>{digits}}/{total:>{digits}}) {percent:>3}% - {path}"


def update_files(paths: Sequence[str], config: RewriteConfig = DEFAULT_CONFIG, dry_run: bool = False,
                 jobs: Optional[int] = None, sink: Optional[WarningSink] = None) -> Dict[str, object]:
  """Rewrite every file in place; a failing file is reported and skipped."""
  sink = sink_or_default(sink)
  contents = load_files_content(list(paths), jobs)
  index = DefaultExportIndex.from_contents(contents, config.experimental, silent=True)

  stats: Dict[str, object] = {"total": len(contents), "current": 0, "changed": [], "failed": []}
  changed: List[str] = stats["changed"]
  failed: List[str] = stats["failed"]
  for path, content in contents.items():
    stats["current"] += 1
    print(format_progress(stats["current"], stats["total"], path))
    try:
      updated = transform(content, path, config, index, sink)
      if updated == content:
        continue
      changed.append(path)
      if not dry_run:
        write_file(path, updated)
    except Exception as e:
      failed.append(path)
      print(f"Warning: skipped {path}: {e}", file=sys.stderr)
  return stats
