#!/usr/bin/env python3
# Import writer: render requirement descriptors as import statements
from __future__ import annotations
from typing import List, Optional, TYPE_CHECKING
from .config import DEFAULT_CONFIG, RewriteConfig
from .report import Reason, WarningSink, sink_or_default
from .requires import WHOLE_MODULE, RequirementDescriptor
from .spans import Edit, apply_edits

if TYPE_CHECKING:
  from .defaults import DefaultExportIndex

def rewrite_imports(content: str, requirements: List[RequirementDescriptor], file_path: Optional[str] = None,
                    default_index: Optional["DefaultExportIndex"] = None, config: RewriteConfig = DEFAULT_CONFIG,
                    sink: Optional[WarningSink] = None) -> str:
  """Replace each descriptor's raw span with its import statement, in one patch set."""
  sink = sink_or_default(sink)
  edits = []
  taken = set()
  for requirement in requirements:
    start = _locate(content, requirement, taken)
    if start == -1:
      sink.warn(f"cannot find require() statement\n{requirement.raw}")
      continue
    is_default = None
    if default_index is not None and file_path and requirement.is_whole_module and requirement.target.startswith("."):
      is_default = default_index.is_default_import(file_path, requirement.target)
    edits.append(Edit(start, start + len(requirement.raw), generate_import(requirement, config, is_default)))
    if requirement.raw[:1] in (" ", "\t") and not requirement.comma_separated:
      sink.warn(f"{Reason.NESTED_IMPORT.value}\n{requirement.raw}", Reason.NESTED_IMPORT)
  return apply_edits(content, edits)


def _locate(content: str, requirement: RequirementDescriptor, taken: set) -> int:
  """Offset of the raw span: the recorded one when it still matches, else the first free occurrence."""
  start = requirement.start
  if start < 0 or not content.startswith(requirement.raw, start):
    start = content.find(requirement.raw)
    while start in taken:
      start = content.find(requirement.raw, start + 1)
  if start != -1:
    taken.add(start)
  return start


def generate_import(requirement: RequirementDescriptor, config: RewriteConfig = DEFAULT_CONFIG,
                    is_default: Optional[bool] = None) -> str:
  """
  Build the `import ... from "..."` line for one requirement.
  is_default, when given, overrides the descriptor's own default guess.
  """
  quote = config.quote or requirement.quote_type
  target = requirement.target
  if config.strip_js_extension and target.startswith(".") and target.endswith(".js"):
    target = target[:-3]
  specifier = f"{quote}{target}{quote}"

  if not requirement.imports:
    return f"import {specifier};"

  has_default = requirement.has_default if is_default is None else is_default
  assignments = []
  for binding in requirement.imports:
    if binding.key == WHOLE_MODULE and has_default:
      assignments.append(binding.alias)
    elif binding.alias:
      assignments.append(f"{binding.key} as {binding.alias}")
    else:
      assignments.append(binding.key)

  if requirement.indent:
    last_comma = "," if config.last_comma else ""
    members = f",\n{requirement.indent}".join(assignments)
    clause = f"{{\n{requirement.indent}{members}{last_comma}\n}}"
  else:
    clause = ", ".join(assignments)
    if not requirement.is_whole_module:
      clause = f"{{ {clause} }}"
  return f"import {clause} from {specifier};"
