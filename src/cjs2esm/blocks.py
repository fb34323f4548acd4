#!/usr/bin/env python3
# Experimental reader for module.exports object literals holding functions, calls and nested blocks
from __future__ import annotations
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple
from .module_exports import (ASSIGNMENT, Assignment, GlobalExports, _KEY_VALUE_RE, _METHOD_RE, add_member,
                             classify_member, method_as_function)
from .report import ExportStructureError, Reason, Unsupported
from .spans import bracket_depth, split_top_level, strip_comments

class State(Enum):
  SCANNING = "scanning-property"
  COMMENT = "accumulating-comment"
  BLOCK = "accumulating-block"

class LineKind(Enum):
  BLANK = "blank"
  LINE_COMMENT = "line-comment"
  COMMENT_START = "comment-start"
  BLOCK_END = "block-end"
  CONTINUATION = "continuation"
  MEMBER = "member"


def classify_line(body: str) -> LineKind:
  """body is the line with one indentation unit removed."""
  stripped = body.strip()
  if not stripped:
    return LineKind.BLANK
  if body[0] in " \t":
    return LineKind.CONTINUATION
  if stripped.startswith("//"):
    return LineKind.LINE_COMMENT
  if stripped.startswith("/*"):
    return LineKind.COMMENT_START
  if stripped[0] in ")]}":
    return LineKind.BLOCK_END
  return LineKind.MEMBER


def detect_unit(lines: List[str]) -> str:
  """Indentation of the first non-blank line, the unit every member line starts with."""
  for line in lines:
    if line.strip():
      unit = line[:len(line) - len(line.lstrip(" \t"))]
      if not unit:
        raise ExportStructureError(Reason.EXPORTS_NO_TABULATION, line)
      return unit
  return ""


class BlockParser:
  """
  Line-by-line reader of the text between the braces of an exported object literal.

  Member lines sit exactly one indentation unit deep. A member whose brackets do not
  balance on its own line opens a block; deeper lines feed the block until its
  brackets close again. Comments directly above a member are attached to it.
  """
  def __init__(self, inner: str):
    self.inner = inner
    self.state = State.SCANNING
    self.exports = GlobalExports()
    self.unit = ""
    self.comments: List[str] = []
    self.pending_key: Optional[str] = None
    self.pending_lines: List[str] = []
    self.depth = 0
    self.transitions: Dict[Tuple[State, LineKind], Callable[[str], None]] = {
      (State.SCANNING, LineKind.BLANK): self._skip,
      (State.SCANNING, LineKind.LINE_COMMENT): self._buffer_comment,
      (State.SCANNING, LineKind.COMMENT_START): self._open_comment,
      (State.SCANNING, LineKind.MEMBER): self._start_member,
      (State.SCANNING, LineKind.CONTINUATION): self._invalid_tabulation,
      (State.SCANNING, LineKind.BLOCK_END): self._unbalanced,
      (State.BLOCK, LineKind.BLANK): self._continue_block,
      (State.BLOCK, LineKind.LINE_COMMENT): self._continue_block,
      (State.BLOCK, LineKind.COMMENT_START): self._continue_block,
      (State.BLOCK, LineKind.CONTINUATION): self._continue_block,
      (State.BLOCK, LineKind.BLOCK_END): self._continue_block,
      (State.BLOCK, LineKind.MEMBER): self._unterminated,
    }

  def parse(self) -> GlobalExports:
    head, *rest = self.inner.split("\n")
    if head.strip():  # members on the opening brace line
      self._start_member(head.strip())
    if rest:
      self.unit = detect_unit(rest)
    for line in rest:
      self.feed(line)
    if self.state is State.BLOCK:
      raise ExportStructureError(Reason.EXPORTS_UNTERMINATED, "\n".join(self.pending_lines))
    if self.state is State.COMMENT:
      raise ExportStructureError(Reason.EXPORTS_UNTERMINATED, "\n".join(self.comments))
    return self.exports

  def feed(self, line: str) -> None:
    if self.state is State.COMMENT:
      self.comments.append(self._dedent(line))
      if "*/" in line:
        self.state = State.SCANNING
      return
    if line.strip() and not line.startswith(self.unit):
      raise ExportStructureError(Reason.EXPORTS_INVALID_TABULATION, line)
    body = line[len(self.unit):].rstrip() if line.strip() else ""
    self.transitions[(self.state, classify_line(body))](body)

  def _dedent(self, line: str) -> str:
    return (line[len(self.unit):] if line.startswith(self.unit) else line.strip()).rstrip()

  # --- transitions ---
  def _skip(self, body: str) -> None:
    pass

  def _buffer_comment(self, body: str) -> None:
    self.comments.append(body)

  def _open_comment(self, body: str) -> None:
    self.comments.append(body)
    if "*/" not in body:
      self.state = State.COMMENT

  def _invalid_tabulation(self, body: str) -> None:
    raise ExportStructureError(Reason.EXPORTS_INVALID_TABULATION, body)

  def _unbalanced(self, body: str) -> None:
    raise ExportStructureError(Reason.EXPORTS_UNTERMINATED, body)

  def _unterminated(self, body: str) -> None:
    raise ExportStructureError(Reason.EXPORTS_UNTERMINATED, "\n".join(self.pending_lines + [body]))

  def _start_member(self, body: str) -> None:
    code = strip_comments(body).strip()
    depth = bracket_depth(code)
    if depth < 0:
      self._unbalanced(body)
    pieces = [p.strip() for p in split_top_level(code) if p.strip()]
    if depth == 0:
      for piece in pieces:
        self._add(piece)
      self.comments = []
      return
    # only the last member on the line can leave brackets open
    for piece in pieces[:-1]:
      self._add(piece)
    self.pending_key, first_line = self._open_header(pieces[-1])
    self.pending_lines = [first_line]
    self.depth = depth
    self.state = State.BLOCK

  def _continue_block(self, body: str) -> None:
    self.pending_lines.append(body)
    self.depth += bracket_depth(body)
    if self.depth < 0:
      self._unterminated("")
    if self.depth == 0:
      self._flush_block()

  # --- members ---
  def _add(self, piece: str) -> None:
    member = classify_member(piece)
    if isinstance(member, Unsupported):
      raise ExportStructureError(member.reason, member.snippet)
    comment = None
    if member.kind == ASSIGNMENT and self.comments:
      comment = "\n".join(self.comments)
      self.comments = []
    add_member(self.exports, member, comment)

  def _open_header(self, header: str) -> Tuple[str, str]:
    m = _KEY_VALUE_RE.match(header)
    if m:
      return m.group(1), m.group(2).strip()
    value = method_as_function(header)
    if value is None:
      raise ExportStructureError(Reason.EXPORTS_INVALID_MEMBER, header)
    return _METHOD_RE.match(header).group(3), value

  def _flush_block(self) -> None:
    last = strip_comments(self.pending_lines[-1]).rstrip()
    if last.endswith(","):
      last = last[:-1].rstrip()
    self.pending_lines[-1] = last
    comment = "\n".join(self.comments) if self.comments else None
    self.exports.assignments.append(Assignment(self.pending_key, "\n".join(self.pending_lines), comment))
    self.comments = []
    self.pending_key, self.pending_lines, self.depth = None, [], 0
    self.state = State.SCANNING
