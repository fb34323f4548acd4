#!/usr/bin/env python3
# Requirement reader: spot require() call sites and describe them as imports
from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union
from .constants import IDENT, REQUIRE_CALL
from .report import Reason, Unsupported, WarningSink, sink_or_default
from .spans import code_matches, line_end, line_start, strip_comments

WHOLE_MODULE = "*"

# Optional left side (a single line, or one brace group spanning lines), then a
# require() call and the rest of the line. ";" "/" "*" "(" ")" "." keep comments,
# calls and member chains out of the left side.
_LHS = r"[^;=/*().{}\n]*(?:\{[^;=/*().]*\}[^;=/*().{}\n]*)?="
REQUIRE_LINE_RE = re.compile(rf"^\n?((?:{_LHS})?[ \t]*require\s*\([^)]+\)[^\n]*)$", re.M)

REQUIRE_STATEMENT_RE = re.compile(
  r"^\s*(?:(?:(const|let|var)\b)?\s*([^=/]+?)\s*=)?\s*require\s*\(\s*(['\"])([^'\"]+)['\"]\s*\)"
  r"(?:\.([^\s;]+))?\s*;?(,)?"
)
_IDENT_RE = re.compile(rf"^{IDENT}$")
_INDENT_RE = re.compile(r"\n([ \t]+)")
REQUIRE_CALL_RE = re.compile(REQUIRE_CALL)
# the module.exports reader owns `module.exports = require(...)`
_EXPORTED_REQUIRE_RE = re.compile(r"(?:^|;)[ \t]*module\.exports\s*=\s*$")

@dataclass
class ImportBinding:
  key: str
  alias: Optional[str] = None

@dataclass
class RequirementDescriptor:
  target: str
  raw: str
  quote_type: str
  imports: List[ImportBinding] = field(default_factory=list)
  has_default: bool = False
  comma_separated: bool = False
  indent: Optional[str] = None
  start: int = -1

  @property
  def end(self) -> int:
    return self.start + len(self.raw)

  @property
  def is_whole_module(self) -> bool:
    return len(self.imports) == 1 and self.imports[0].key == WHOLE_MODULE


def get_requires(content: str, sink: Optional[WarningSink] = None) -> List[RequirementDescriptor]:
  """
  Spot every single-line anchored require() call and parse it.
  Unsupported shapes are reported on the sink and left out of the result.
  """
  sink = sink_or_default(sink)
  requirements: List[RequirementDescriptor] = []
  previous_comma_separated = False
  covered = []
  for m in REQUIRE_LINE_RE.finditer(content):
    covered.append(m.span(1))
    parsed = parse_requirement_statement(m.group(1), previous_comma_separated)
    if isinstance(parsed, Unsupported):
      sink.reject(parsed)
      previous_comma_separated = False
      continue
    # a clause following "var a = require(...)," inherits the chain
    chained = previous_comma_separated
    previous_comma_separated = parsed.comma_separated
    parsed.comma_separated = parsed.comma_separated or chained
    parsed.start = m.start(1)
    parsed.has_default = parsed.has_default and _is_used_as_value(content, parsed.imports[0].alias)
    requirements.append(parsed)
  for index in _stray_requires(content, covered):
    sink.reject(Unsupported(Reason.REQUIRE_NOT_A_STATEMENT, content[line_start(content, index):line_end(content, index)].strip()))
  return requirements


def parse_requirement_statement(raw_line: str, is_comma_delimited: bool = False) -> Union[RequirementDescriptor, Unsupported]:
  parse = REQUIRE_STATEMENT_RE.match(raw_line)
  if parse is None:
    return Unsupported(Reason.REQUIRE_UNPARSED, raw_line)

  raw = parse.group(0)
  var_type, attributes_raw, quote_type, target, additional_path, comma = parse.groups()
  comma_separated = comma == ","

  rest = strip_comments(raw_line[len(raw):]).strip()
  if rest.startswith("("):
    return Unsupported(Reason.REQUIRE_FUNCTION_CALL, raw_line)
  if rest:
    return Unsupported(Reason.REQUIRE_UNPARSED, raw_line)

  if attributes_raw is None:
    if additional_path:
      return Unsupported(Reason.REQUIRE_DIRECT_CALL, raw)
    return RequirementDescriptor(target=target, raw=raw, quote_type=quote_type, comma_separated=comma_separated)

  bindings = parse_attribute(attributes_raw)
  if isinstance(bindings, Unsupported):
    return bindings

  if not var_type and not is_comma_delimited:
    return Unsupported(Reason.REQUIRE_GLOBAL_VARIABLE, raw)

  # import can't deeply destructure, one level of property access is folded in
  if additional_path:
    has_destructuring = bindings[0].key != WHOLE_MODULE
    if "(" in additional_path:
      return Unsupported(Reason.REQUIRE_FUNCTION_CALL, raw)
    if len(additional_path.split(".")) > 1:
      return Unsupported(Reason.REQUIRE_DEEP_PATH, raw)
    if has_destructuring:
      return Unsupported(Reason.REQUIRE_DESTRUCTURED_PATH, raw)
    bindings = [ImportBinding(key=additional_path, alias=bindings[0].alias)]

  # drop useless aliases
  bindings = [ImportBinding(b.key, None if b.alias == b.key else b.alias) for b in bindings]

  descriptor = RequirementDescriptor(
    target=target,
    raw=raw,
    quote_type=quote_type,
    imports=bindings,
    comma_separated=comma_separated,
  )
  descriptor.has_default = is_package_target(target) and descriptor.is_whole_module
  indent = _INDENT_RE.search(raw)
  if indent:
    descriptor.indent = indent.group(1)
  return descriptor


def parse_attribute(raw: str) -> Union[List[ImportBinding], Unsupported]:
  """Parse the left operand of `xxx = require(...)`."""
  value = raw.strip().replace("\n", "")
  if not (value.startswith("{") and value.endswith("}")):
    if not _IDENT_RE.match(value):
      return Unsupported(Reason.REQUIRE_UNSUPPORTED_BINDING, value)
    return [ImportBinding(key=WHOLE_MODULE, alias=value)]

  inner = value[1:-1].strip()
  if "{" in inner:
    return Unsupported(Reason.REQUIRE_DEEP_DESTRUCTURING, value)

  bindings = []
  for member in inner.split(","):
    member = member.strip()
    if not member:
      continue
    key, _, alias = member.partition(":")
    key, alias = key.strip(), alias.strip()
    if not _IDENT_RE.match(key) or (alias and not _IDENT_RE.match(alias)):
      return Unsupported(Reason.REQUIRE_UNSUPPORTED_BINDING, value)
    bindings.append(ImportBinding(key=key, alias=alias or None))
  if not bindings:
    return Unsupported(Reason.REQUIRE_UNSUPPORTED_BINDING, value)
  return bindings


def is_package_target(target: str) -> bool:
  """Bare package names: not relative, not absolute, not scoped."""
  return not target.startswith((".", "/", "@"))


def _is_used_as_value(content: str, name: Optional[str]) -> bool:
  """A package binding called, constructed or extended needs the default import."""
  if not name:
    return False
  n = re.escape(name)
  pattern = rf"\bnew\s+{n}(?![\w$])|\bextends\s+{n}(?![\w$])|(?<![\w$.]){n}\s*\("
  return re.search(pattern, content) is not None


def _stray_requires(content: str, covered: List[Tuple[int, int]]) -> List[int]:
  """require() calls in code that no statement match covers."""
  stray = []
  for m in code_matches(content, REQUIRE_CALL_RE):
    index = m.start()
    if any(start <= index < end for start, end in covered):
      continue
    if _EXPORTED_REQUIRE_RE.search(content[line_start(content, index):index]):
      continue
    stray.append(index)
  return stray
