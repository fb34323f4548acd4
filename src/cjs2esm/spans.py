#!/usr/bin/env python3
# Text-span utilities: code-aware scanning and positional text surgery
from __future__ import annotations
import re
from typing import Iterable, Iterator, List, NamedTuple, Optional, Tuple

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {v: k for k, v in OPENERS.items()}
QUOTE_CHARS = "'\"`"

# a line ending with one of these keeps the statement going
_CONTINUATION_END = tuple("=+-*/%&|^!?:,.<>~")
# a line starting with one of these continues the previous statement
_CONTINUATION_START = tuple(".?:+-*%&|^=,")

# --- scanning ---
def _skip_string(text: str, i: int, n: int) -> int:
  """Index right after the string literal opened at i."""
  quote = text[i]
  j = i + 1
  while j < n:
    c = text[j]
    if c == "\\":
      j += 2
      continue
    if c == quote:
      return j + 1
    if c == "\n" and quote != "`":
      return j
    j += 1
  return n

def iter_code(text: str, start: int = 0, end: Optional[int] = None) -> Iterator[Tuple[int, str]]:
  """
  Yield (index, char) for every character outside string literals and comments.
  Regex literals are not recognized.
  """
  n = len(text) if end is None else end
  i = start
  while i < n:
    c = text[i]
    if c in QUOTE_CHARS:
      i = _skip_string(text, i, n)
      continue
    if c == "/" and i + 1 < n and text[i+1] == "/":
      j = text.find("\n", i, n)
      i = n if j == -1 else j
      continue
    if c == "/" and i + 1 < n and text[i+1] == "*":
      j = text.find("*/", i + 2, n)
      i = n if j == -1 else j + 2
      continue
    yield i, c
    i += 1

def strip_comments(text: str) -> str:
  out = []
  i, n = 0, len(text)
  while i < n:
    c = text[i]
    if c in QUOTE_CHARS:
      j = _skip_string(text, i, n)
      out.append(text[i:j])
      i = j
      continue
    if text.startswith("//", i):
      j = text.find("\n", i)
      i = n if j == -1 else j
      continue
    if text.startswith("/*", i):
      j = text.find("*/", i + 2)
      i = n if j == -1 else j + 2
      continue
    out.append(c)
    i += 1
  return "".join(out)

def find_closing(text: str, open_index: int) -> int:
  """Index of the bracket closing the one at open_index, -1 when unbalanced."""
  stack: List[str] = []
  for i, c in iter_code(text, open_index):
    if c in OPENERS:
      stack.append(OPENERS[c])
    elif c in CLOSERS:
      if not stack or stack.pop() != c:
        return -1
      if not stack:
        return i
  return -1

def bracket_depth(text: str) -> int:
  """Net count of opened brackets in text (negative when it closes more than it opens)."""
  depth = 0
  for _, c in iter_code(text):
    if c in OPENERS: depth += 1
    elif c in CLOSERS: depth -= 1
  return depth

def has_code_chars(text: str, chars: str) -> bool:
  return any(c in chars for _, c in iter_code(text))

def code_matches(text: str, pattern: re.Pattern) -> List[re.Match]:
  """Matches of pattern starting outside string literals and comments."""
  matches = list(pattern.finditer(text))
  if not matches:
    return []
  code = {i for i, _ in iter_code(text)}
  return [m for m in matches if m.start() in code]

def split_top_level(text: str, sep: str = ",") -> List[str]:
  """Split on sep where it is not nested in brackets, strings or comments."""
  parts = []
  depth = 0
  last = 0
  for i, c in iter_code(text):
    if c in OPENERS: depth += 1
    elif c in CLOSERS: depth -= 1
    elif c == sep and depth == 0:
      parts.append(text[last:i])
      last = i + 1
  parts.append(text[last:])
  return parts

def _ends_statement(text: str, start: int, i: int) -> bool:
  head = strip_comments(text[start:i]).rstrip()
  rest = text[i:].lstrip()
  if not head or head.endswith(_CONTINUATION_END):
    return False
  if rest.startswith(("//", "/*")):
    return True
  return not rest.startswith(_CONTINUATION_START)

def find_statement_end(text: str, start: int) -> Tuple[int, int]:
  """
  Scan the statement starting at start.
  Returns (expr_end, stmt_end): the expression stops before the top-level ";"
  or line break ending it, stmt_end also covers the ";".
  """
  depth = 0
  for i, c in iter_code(text, start):
    if c in OPENERS:
      depth += 1
    elif c in CLOSERS:
      if depth == 0:
        return i, i
      depth -= 1
    elif depth == 0 and c == ";":
      return i, i + 1
    elif depth == 0 and c == "\n" and _ends_statement(text, start, i):
      return i, i
  return len(text), len(text)

def line_start(text: str, index: int) -> int:
  return text.rfind("\n", 0, index) + 1

def line_end(text: str, index: int) -> int:
  j = text.find("\n", index)
  return len(text) if j == -1 else j

# --- surgery ---
class Edit(NamedTuple):
  start: int
  end: int
  replacement: str

def apply_edits(content: str, edits: Iterable[Edit]) -> str:
  """Apply non-overlapping edits back to front so every offset stays valid."""
  bound = len(content)
  for edit in sorted(edits, key=lambda e: e.start, reverse=True):
    if edit.end > bound:
      raise ValueError(f"overlapping edit at {edit.start}:{edit.end}")
    content = content[:edit.start] + edit.replacement + content[edit.end:]
    bound = edit.start
  return content

def insert_before(content: str, search: str, insert: str, limit_linebreak: bool = False) -> str:
  """
  Insert text right before the first occurrence of search.
  With limit_linebreak the insertion sits alone between blank lines:
  no blank line above it at the top of the text, a single newline after it at the end.
  """
  index = content.find(search)
  if index == -1:
    raise ValueError(f"cannot find pattern in content: {search!r}")
  before, after = content[:index], content[index:]
  if not limit_linebreak:
    return before + insert + after
  head = before.rstrip("\n") + "\n\n" if before.strip() else ""
  tail = "\n\n" if after else "\n"
  return head + insert.strip("\n") + tail + after

def drop_block(content: str, block: str) -> str:
  """Remove the first occurrence of block and normalize the blank lines around the gap."""
  index = content.find(block)
  if index == -1:
    raise ValueError(f"cannot find block in content: {block!r}")
  before, after = content[:index], content[index+len(block):]
  kept_before, kept_after = before.rstrip("\n"), after.lstrip("\n")
  if not before:
    return kept_after
  if not after.strip():
    return kept_before + "\n" if kept_before.strip() else ""
  newlines = (len(before) - len(kept_before)) + (len(after) - len(kept_after))
  return kept_before + "\n" * min(max(newlines, 1), 2) + kept_after
