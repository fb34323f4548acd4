#!/usr/bin/env python3
# Module-exports reader: module.exports = ..., Object.assign(module.exports, ...), exports.x = ...
from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Union
from .constants import IDENT, REQUIRE_CALL
from .report import ExportStructureError, Reason, Unsupported, WarningSink, sink_or_default
from .spans import (code_matches, find_closing, find_statement_end, has_code_chars, iter_code, line_end,
                    split_top_level, strip_comments)

EXPORTS_TARGET = r"(?:module\.)?exports"
ASSIGN_FUNCTIONS = r"(?:Object\.assign|_\.(?:assign|extend)|lodash\.(?:assign|extend)|\$\.extend)"
# statements start a line or follow a ";" on the same line
STATEMENT_START = r"(?:^|(?<=;))[ \t]*"

OBJECT_ASSIGNMENT_RE = re.compile(rf"{STATEMENT_START}module\.exports\s*=\s*(\{{)", re.M)
ASSIGN_CALL_RE = re.compile(rf"{STATEMENT_START}{ASSIGN_FUNCTIONS}\s*(\()\s*{EXPORTS_TARGET}\s*,", re.M)
DIRECT_ASSIGNMENT_RE = re.compile(rf"{STATEMENT_START}module\.exports\s*=(?!=)[ \t]*", re.M)
INLINE_EXPORT_RE = re.compile(rf"(?:^|(?<=;))([ \t]*{EXPORTS_TARGET}\.({IDENT})\s*=(?!=)\s*)", re.M)
REQUIRE_CALL_RE = re.compile(REQUIRE_CALL)
_TAIL_RE = re.compile(r"[ \t]*;?[ \t]*(?://[^\n]*)?\n?")

_SPREAD_RE = re.compile(rf"^\.\.\.\s*({IDENT})$")
_PROPERTY_RE = re.compile(rf"^({IDENT})$")
_KEY_VALUE_RE = re.compile(rf"^({IDENT})\s*:\s*(.+)$", re.S)
_METHOD_RE = re.compile(rf"^(async\s+)?(\*\s*)?({IDENT})\s*\(", re.S)

PROPERTY, KEY_SET, ASSIGNMENT = "property", "key_set", "assignment"

@dataclass
class Assignment:
  key: str
  value: str
  comment: Optional[str] = None

@dataclass
class GlobalExports:
  raw: Optional[str] = None
  direct_assignment: Optional[str] = None
  exported_properties: List[str] = field(default_factory=list)
  exported_key_sets: List[str] = field(default_factory=list)
  assignments: List[Assignment] = field(default_factory=list)
  start: int = -1

@dataclass
class InlineExport:
  raw: str
  raw_full_line: str
  property: str
  start: int = -1

@dataclass
class ExportDescriptor:
  global_export: GlobalExports = field(default_factory=GlobalExports)
  inline: List[InlineExport] = field(default_factory=list)

  @property
  def is_empty(self) -> bool:
    return not self.global_export.raw and not self.inline

class Member(NamedTuple):
  kind: str
  key: str
  value: Optional[str] = None


def get_exports(content: str, allow_experimental: bool = False, sink: Optional[WarningSink] = None) -> ExportDescriptor:
  """Search for every supported module.exports usage."""
  sink = sink_or_default(sink)
  return ExportDescriptor(
    global_export=get_global_exports(content, allow_experimental, sink),
    inline=get_inline_exports(content),
  )


def get_global_exports(content: str, allow_experimental: bool = False, sink: Optional[WarningSink] = None) -> GlobalExports:
  """
  Whole-module exports. An object literal (direct or through Object.assign) wins
  over a plain `module.exports = X`. Anything not fully understood yields an
  empty result and one warning, never a partial one.
  """
  sink = sink_or_default(sink)
  found = _read_global_exports(content, allow_experimental)
  if isinstance(found, Unsupported):
    sink.reject(found)
    return GlobalExports()
  return found


def get_inline_exports(content: str) -> List[InlineExport]:
  """
  Every `module.exports.NAME = ...` / `exports.NAME = ...`, in file order.
  raw_full_line runs to the end of the statement so a second export on the same line is seen too.
  """
  found = []
  for m in INLINE_EXPORT_RE.finditer(content):
    _, end = find_statement_end(content, m.end())
    found.append(InlineExport(raw=m.group(1), raw_full_line=content[m.start():end], property=m.group(2), start=m.start()))
  return found


def _read_global_exports(content: str, allow_experimental: bool) -> Union[GlobalExports, Unsupported]:
  m = OBJECT_ASSIGNMENT_RE.search(content)
  if m:
    return _read_object_assignment(content, m, allow_experimental)
  m = ASSIGN_CALL_RE.search(content)
  if m:
    return _read_assign_call(content, m, allow_experimental)
  m = DIRECT_ASSIGNMENT_RE.search(content)
  if m:
    return _read_direct_assignment(content, m)
  return GlobalExports()


def _statement_tail(content: str, close: int) -> Optional[int]:
  """End of the statement closed at close, None when more code follows on the line."""
  tail = _TAIL_RE.match(content, close + 1)
  end = tail.end()
  if end < len(content) and content[end-1] != "\n" and ";" not in tail.group(0):
    return None
  return end


def _read_object_assignment(content: str, m: re.Match, allow_experimental: bool) -> Union[GlobalExports, Unsupported]:
  open_index = m.start(1)
  close = find_closing(content, open_index)
  if close == -1:
    return Unsupported(Reason.EXPORTS_UNTERMINATED, content[m.start():line_end(content, open_index)])
  end = _statement_tail(content, close)
  if end is None:
    return Unsupported(Reason.EXPORTS_TOO_COMPLEX, content[m.start():line_end(content, close)])
  raw = content[m.start():end]
  exports = parse_object_literal(content[open_index+1:close], raw, allow_experimental)
  if isinstance(exports, GlobalExports):
    exports.raw, exports.start = raw, m.start()
  return exports


def _read_assign_call(content: str, m: re.Match, allow_experimental: bool) -> Union[GlobalExports, Unsupported]:
  open_index = m.start(1)
  close = find_closing(content, open_index)
  if close == -1:
    return Unsupported(Reason.EXPORTS_UNTERMINATED, content[m.start():line_end(content, open_index)])
  end = _statement_tail(content, close)
  if end is None:
    return Unsupported(Reason.EXPORTS_TOO_COMPLEX, content[m.start():line_end(content, close)])
  raw = content[m.start():end]

  pieces = [p for p in split_top_level(content[m.end():close]) if strip_comments(p).strip()]
  if not pieces:
    return Unsupported(Reason.EXPORTS_TOO_COMPLEX, raw)
  key_sets = []
  literal = None
  for index, piece in enumerate(pieces):
    code = strip_comments(piece).strip()
    if index == len(pieces) - 1 and code.startswith("{") and code.endswith("}"):
      brace = next(i for i, c in iter_code(piece) if c == "{")
      literal = piece[brace+1:find_closing(piece, brace)]
    elif _PROPERTY_RE.match(code):
      key_sets.append(code)
    else:
      return Unsupported(Reason.EXPORTS_TOO_COMPLEX, raw)

  if literal is None:
    return GlobalExports(raw=raw, exported_key_sets=key_sets, start=m.start())
  exports = parse_object_literal(literal, raw, allow_experimental)
  if isinstance(exports, GlobalExports):
    exports.raw, exports.start = raw, m.start()
    exports.exported_key_sets = key_sets + exports.exported_key_sets
  return exports


def _read_direct_assignment(content: str, m: re.Match) -> Union[GlobalExports, Unsupported]:
  expr_start = m.end()
  expr_end, end = find_statement_end(content, expr_start)
  expression = strip_comments(content[expr_start:expr_end]).strip()
  if not expression:
    return GlobalExports()
  if code_matches(expression, REQUIRE_CALL_RE):
    return Unsupported(Reason.EXPORTS_REQUIRE, content[m.start():end].strip())
  while end < len(content) and content[end] in " \t":
    end += 1
  if content.startswith("\n", end):
    end += 1
  return GlobalExports(raw=content[m.start():end], direct_assignment=expression, start=m.start())


def parse_object_literal(inner: str, snippet: str, allow_experimental: bool = False) -> Union[GlobalExports, Unsupported]:
  """
  Members of an exported object literal. Nested scopes, calls and brackets are
  only read by the experimental block parser.
  """
  code = strip_comments(inner)
  problem = None
  if has_code_chars(code, "{}"):
    problem = Reason.EXPORTS_INNER_SCOPE
  elif has_code_chars(code, "()"):
    problem = Reason.EXPORTS_CALLS
  elif has_code_chars(code, "[]"):
    problem = Reason.EXPORTS_TOO_COMPLEX

  if problem is not None:
    if not allow_experimental:
      return Unsupported(problem, snippet)
    from .blocks import BlockParser
    try:
      return BlockParser(inner).parse()
    except ExportStructureError as e:
      return e.unsupported

  exports = GlobalExports()
  for piece in split_top_level(code):
    piece = piece.strip()
    if not piece:
      continue
    member = classify_member(piece)
    if isinstance(member, Unsupported):
      return Unsupported(member.reason, snippet)
    add_member(exports, member)
  return exports


def classify_member(text: str) -> Union[Member, Unsupported]:
  """One comma-separated member of an object literal, comments already removed."""
  m = _SPREAD_RE.match(text)
  if m:
    return Member(KEY_SET, m.group(1))
  m = _PROPERTY_RE.match(text)
  if m:
    return Member(PROPERTY, m.group(1))
  m = _KEY_VALUE_RE.match(text)
  if m:
    key, value = m.group(1), m.group(2).strip()
    if value == key:
      return Member(PROPERTY, key)
    if _PROPERTY_RE.match(value):
      return Member(PROPERTY, f"{key}:{value}")
    return Member(ASSIGNMENT, key, value)
  value = method_as_function(text)
  if value is not None:
    return Member(ASSIGNMENT, _METHOD_RE.match(text).group(3), value)
  return Unsupported(Reason.EXPORTS_INVALID_MEMBER, text)


def method_as_function(text: str) -> Optional[str]:
  """`async name(args) {` shorthand -> `async function name(args) {`."""
  m = _METHOD_RE.match(text)
  if not m:
    return None
  args_open = m.end() - 1
  args_close = find_closing(text, args_open)
  if args_close == -1 or not text[args_close+1:].lstrip().startswith("{"):
    return None
  prefix = "async " if m.group(1) else ""
  star = "*" if m.group(2) else ""
  return f"{prefix}function{star} {m.group(3)}{text[args_open:]}"


def add_member(exports: GlobalExports, member: Member, comment: Optional[str] = None) -> None:
  if member.kind == PROPERTY:
    exports.exported_properties.append(member.key)
  elif member.kind == KEY_SET:
    exports.exported_key_sets.append(member.key)
  else:
    exports.assignments.append(Assignment(member.key, member.value, comment))
