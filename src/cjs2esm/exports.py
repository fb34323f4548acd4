#!/usr/bin/env python3
# Export writer: turn export descriptors into export declarations, in place
from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Tuple
from .constants import IDENT
from .module_exports import Assignment, ExportDescriptor, GlobalExports, InlineExport
from .report import Reason, WarningSink, sink_or_default
from .spans import Edit, apply_edits, drop_block, find_closing, find_statement_end, insert_before

IMPORT_RE = re.compile(r"^import\s+([^;'\"]*?)\s+from\s+(['\"])([^'\"]+)\2[ \t]*;?", re.M)
_IDENT_RE = re.compile(rf"^{IDENT}$")
_NAMESPACE_RE = re.compile(rf"^\*\s*as\s+({IDENT})$")
_FUNCTION_VALUE_RE = re.compile(r"^((?:async\s+)?function(?:\s*\*)?)\s*(\([\s\S]*)")
_BLOCK_ARROW_RE = re.compile(rf"^(async\s+)?(\([^)]*\)|{IDENT})\s*=>\s*(?=\{{)")
_INLINE_FUNCTION_RE = re.compile(rf"(\(\s*)?(async\s+)?function\b\s*(\*)?\s*(?:{IDENT})?\s*(?=\()")
_INLINE_ASYNC_ARROW_RE = re.compile(rf"(async)\s*(\([^)]*\)|{IDENT})\s*=>\s*(?=\{{)")
_DECLARATION_HEAD_RE = re.compile(r"^(?:async\s+)?(?:function|class)\b")

DEFAULT, NAMESPACE, NAMED = "default", "namespace", "named"

class ImportedName(NamedTuple):
  kind: str
  local: str
  imported: str

@dataclass
class ImportStatement:
  raw: str
  start: int
  quote: str
  target: str
  names: List[ImportedName] = field(default_factory=list)
  braced: bool = False

  @property
  def end(self) -> int:
    return self.start + len(self.raw)

  def binding(self, local: str) -> Optional[ImportedName]:
    return next((n for n in self.names if n.local == local), None)


def rewrite_exports(content: str, descriptor: ExportDescriptor, sink: Optional[WarningSink] = None) -> str:
  """Global pass then inline pass, then bare names for remaining exports.X usages."""
  sink = sink_or_default(sink)
  content = rewrite_global_export(content, descriptor.global_export, sink)
  content = rewrite_inline_exports(content, descriptor.inline, sink)
  names = [e.property for e in descriptor.inline]
  names += [p.partition(":")[0] for p in descriptor.global_export.exported_properties]
  return replace_export_usages(content, names, sink)


# --- imports ---
def parse_import_clause(clause: str) -> Tuple[List[ImportedName], bool]:
  names = []
  clause = clause.strip()
  named = None
  brace = clause.find("{")
  if brace != -1:
    named = clause[brace+1:clause.rfind("}")]
    clause = clause[:brace]
  for part in clause.split(","):
    part = part.strip()
    m = _NAMESPACE_RE.match(part)
    if m:
      names.append(ImportedName(NAMESPACE, m.group(1), "*"))
    elif _IDENT_RE.match(part):
      names.append(ImportedName(DEFAULT, part, "default"))
  for part in (named or "").split(","):
    key, _, alias = part.strip().partition(" as ")
    key, alias = key.strip(), alias.strip()
    if key:
      names.append(ImportedName(NAMED, alias or key, key))
  return names, named is not None


def find_imports(content: str) -> List[ImportStatement]:
  statements = []
  for m in IMPORT_RE.finditer(content):
    names, braced = parse_import_clause(m.group(1))
    statements.append(ImportStatement(m.group(0), m.start(), m.group(2), m.group(3), names, braced))
  return statements


def find_import(content: str, name: str) -> Optional[ImportStatement]:
  return next((s for s in find_imports(content) if s.binding(name)), None)


def render_export_from(statement: ImportStatement, names: List[ImportedName]) -> str:
  """export ... from lines re-exporting the given bindings of statement."""
  specifier = f"{statement.quote}{statement.target}{statement.quote}"
  lines = [f"export * as {n.local} from {specifier};" for n in names if n.kind == NAMESPACE]
  members = []
  for n in names:
    if n.kind == DEFAULT:
      members.append(f"default as {n.local}")
    elif n.kind == NAMED:
      members.append(n.imported if n.imported == n.local else f"{n.imported} as {n.local}")
  if members:
    lines.insert(0, f"export {{ {', '.join(members)} }} from {specifier};")
  return "\n".join(lines)


# --- lookups ---
def find_declaration(content: str, name: str) -> Optional[re.Match]:
  """Top-level function, const/let/var or class declaration of name."""
  n = re.escape(name)
  for pattern in (
    rf"^(?:async\s+)?function\s*\*?\s*{n}\s*\(",
    rf"^(?:const|let|var)\s+{n}(?![\w$])",
    rf"^class\s+{n}(?![\w$])",
  ):
    m = re.search(pattern, content, re.M)
    if m:
      return m
  return None


def is_exported(content: str, name: str) -> bool:
  n = re.escape(name)
  pattern = (
    rf"^export\s+(?:default\s+)?(?:async\s+)?(?:function\s*\*?|const|let|var|class)\s*{n}(?![\w$])"
    rf"|^export\s*\{{[^}}]*(?<![\w$]){n}\s*[,}}]"
    rf"|^export\s+\*\s+as\s+{n}(?![\w$])"
  )
  return re.search(pattern, content, re.M) is not None


def is_used(content: str, name: str, skip: List[Tuple[int, int]]) -> bool:
  """Any reference to name outside the skipped spans, object keys and member accesses aside."""
  for m in re.finditer(rf"(?<![\w$.]){re.escape(name)}(?![\w$])(?!\s*:)", content):
    if not any(start <= m.start() < end for start, end in skip):
      return True
  return False


def _span_of(content: str, raw: Optional[str]) -> List[Tuple[int, int]]:
  index = content.find(raw) if raw else -1
  return [] if index == -1 else [(index, index + len(raw))]


# --- global pass ---
def rewrite_global_export(content: str, exports: GlobalExports, sink: Optional[WarningSink] = None) -> str:
  sink = sink_or_default(sink)
  raw = exports.raw
  if not raw:
    return content
  if raw not in content:
    sink.warn(f"{Reason.RAW_EXPORT_NOT_FOUND.value}\n{raw}", Reason.RAW_EXPORT_NOT_FOUND)
    return content

  if exports.direct_assignment:
    return export_default(content, exports, sink)

  properties = []
  for name in exports.exported_properties:
    alias, _, original = name.partition(":")
    if original:
      content = insert_before(content, raw, render_assignment(Assignment(alias, original)), limit_linebreak=True)
    else:
      properties.append(name)
  content = promote_properties(content, properties, raw, sink)
  for name in exports.exported_key_sets:
    content = promote_key_set(content, name, raw, sink)
  for assignment in exports.assignments:
    content = insert_before(content, raw, render_assignment(assignment), limit_linebreak=True)
  return drop_block(content, raw)


def export_default(content: str, exports: GlobalExports, sink: WarningSink) -> str:
  """module.exports = X: the declaration of X becomes the default export."""
  raw, expression = exports.raw, exports.direct_assignment
  newline = "\n" if raw.endswith("\n") else ""
  if not _IDENT_RE.match(expression):
    semicolon = "" if _DECLARATION_HEAD_RE.match(expression) and expression.endswith("}") else ";"
    return content.replace(raw, f"export default {expression}{semicolon}{newline}", 1)

  declaration = find_declaration(content, expression)
  if declaration and _DECLARATION_HEAD_RE.match(declaration.group(0)):
    content = content[:declaration.start()] + "export default " + content[declaration.start():]
    return drop_block(content, raw)
  if declaration or find_import(content, expression):
    return content.replace(raw, f"export default {expression};{newline}", 1)
  sink.warn(f'{Reason.DECLARATION_NOT_FOUND.value} "{expression}"', Reason.DECLARATION_NOT_FOUND)
  return content


def promote_properties(content: str, names: List[str], raw: str, sink: WarningSink) -> str:
  """Prefix local declarations with export, turn imports of the names into re-exports."""
  imported = []
  for name in names:
    declaration = find_declaration(content, name)
    if declaration:
      content = content[:declaration.start()] + "export " + content[declaration.start():]
    elif find_import(content, name):
      imported.append(name)
    elif not is_exported(content, name):
      sink.warn(f'{Reason.DECLARATION_NOT_FOUND.value} "{name}"', Reason.DECLARATION_NOT_FOUND)

  grouped: Dict[int, List[ImportedName]] = {}
  statements = {}
  for name in imported:
    statement = find_import(content, name)
    statements[statement.start] = statement
    grouped.setdefault(statement.start, []).append(statement.binding(name))

  edits = []
  for start, exported in grouped.items():
    statement = statements[start]
    skip = [(statement.start, statement.end)] + _span_of(content, raw)
    used = [n.local for n in exported if is_used(content, n.local, skip)]
    if not used and len(exported) == len(statement.names):
      if statement.braced and all(n.kind == NAMED for n in statement.names):
        edits.append(Edit(start, start + len("import"), "export"))
      else:
        edits.append(Edit(start, statement.end, render_export_from(statement, exported)))
      continue
    edits.append(Edit(statement.end, statement.end, "\n" + render_export_from(statement, exported)))
    for name in used:
      sink.warn(f"{Reason.USED_AND_EXPORTED.value}\n{name}", Reason.USED_AND_EXPORTED)
  return apply_edits(content, edits)


def promote_key_set(content: str, name: str, raw: str, sink: WarningSink) -> str:
  """`...lib` in an exported object: re-export everything lib exports."""
  statement = find_import(content, name)
  if statement and statement.binding(name).kind in (DEFAULT, NAMESPACE):
    specifier = f"{statement.quote}{statement.target}{statement.quote}"
    wildcard = f"export * from {specifier};"
    skip = [(statement.start, statement.end)] + _span_of(content, raw)
    if len(statement.names) == 1 and not is_used(content, name, skip):
      return content[:statement.start] + wildcard + content[statement.end:]
    return content[:statement.end] + "\n" + wildcard + content[statement.end:]

  declaration = find_declaration(content, name)
  if declaration:
    sink.warn(f"{Reason.LOCAL_KEY_SET.value}\n{name}", Reason.LOCAL_KEY_SET)
    return content[:declaration.start()] + "export " + content[declaration.start():]
  if not is_exported(content, name):
    sink.warn(f'{Reason.DECLARATION_NOT_FOUND.value} "{name}"', Reason.DECLARATION_NOT_FOUND)
  return content


def render_assignment(assignment: Assignment) -> str:
  """One exported object member as a top-level export statement."""
  key, value = assignment.key, assignment.value
  first_line = value.split("\n", 1)[0]
  function_value = _FUNCTION_VALUE_RE.match(value)
  arrow = _BLOCK_ARROW_RE.match(value)
  if f" {key}(" in first_line:
    statement = f"export {value}"
  elif function_value:
    statement = f"export {function_value.group(1)} {key}{function_value.group(2)}"
  elif arrow and find_closing(value, arrow.end()) == len(value) - 1:
    params = arrow.group(2) if arrow.group(2).startswith("(") else f"({arrow.group(2)})"
    statement = f"export {arrow.group(1) or ''}function {key}{params} {value[arrow.end():]}"
  else:
    statement = f"export const {key} = {value};"
  if assignment.comment:
    statement = f"{assignment.comment}\n{statement}"
  return statement


# --- inline pass ---
def rewrite_inline_exports(content: str, inline: List[InlineExport], sink: Optional[WarningSink] = None) -> str:
  sink = sink_or_default(sink)
  for export in sorted(inline, key=lambda e: len(e.property), reverse=True):
    position = content.find(export.raw_full_line)
    if position == -1:
      sink.warn(f"{Reason.RAW_EXPORT_NOT_FOUND.value}\n{export.raw_full_line}", Reason.RAW_EXPORT_NOT_FOUND)
      continue
    content = rewrite_inline_export(content, export, position, sink)
  return content


def rewrite_inline_export(content: str, export: InlineExport, position: int, sink: WarningSink) -> str:
  name = export.property
  indent = export.raw[:len(export.raw) - len(export.raw.lstrip(" \t"))]
  value_start = position + len(export.raw)

  function = _inline_function(content, value_start, name)
  if function is not None:
    end, declaration = function
    return content[:position] + f"{indent}export {declaration}" + content[end:]

  declaration = find_declaration(content, name)
  imported = find_import(content, name) if declaration is None else None
  if declaration or imported:
    _, stmt_end = find_statement_end(content, value_start)
    end = _consume_line_end(content, stmt_end)
    edits = [Edit(position, end, "")]
    if declaration:
      edits.append(Edit(declaration.start(), declaration.start(), "export "))
    else:
      edits.append(Edit(imported.end, imported.end, "\n" + render_export_from(imported, [imported.binding(name)])))
      sink.warn(f"{Reason.USED_AND_EXPORTED.value}\n{name}", Reason.USED_AND_EXPORTED)
    return apply_edits(content, edits)

  if indent and (position == 0 or content[position-1] == "\n"):
    sink.warn(f"{Reason.NESTED_EXPORT.value}\n{export.raw_full_line.strip()}", Reason.NESTED_EXPORT)
  return content[:position] + f"{indent}export const {name} = " + content[value_start:]


def _consume_line_end(content: str, index: int) -> int:
  while index < len(content) and content[index] in " \t":
    index += 1
  if content.startswith("\n", index):
    index += 1
  return index


def _inline_function(content: str, value_start: int, name: str) -> Optional[Tuple[int, str]]:
  """
  A function value of an inline export: (end of the statement, declaration named name).
  """
  m = _INLINE_FUNCTION_RE.match(content, value_start)
  arrow = None if m else _INLINE_ASYNC_ARROW_RE.match(content, value_start)
  if m is None and arrow is None:
    return None

  if m:
    args_open = m.end()
    args_close = find_closing(content, args_open)
    if args_close == -1:
      return None
    body_open = _skip_blanks(content, args_close + 1)
    head = f"{m.group(2) or ''}function{m.group(3) or ''} {name}{content[args_open:args_close+1]} "
  else:
    body_open = arrow.end()
    params = arrow.group(2) if arrow.group(2).startswith("(") else f"({arrow.group(2)})"
    head = f"async function {name}{params} "
  if not content.startswith("{", body_open):
    return None
  body_close = find_closing(content, body_open)
  if body_close == -1:
    return None
  end = body_close + 1
  if m and m.group(1):
    # (function () {...}) wrapped, but not an immediate call
    end = _skip_blanks(content, end)
    if not content.startswith(")", end) or content[_skip_blanks(content, end + 1):].startswith("("):
      return None
    end += 1
  semicolon = end
  while semicolon < len(content) and content[semicolon] in " \t":
    semicolon += 1
  if content.startswith(";", semicolon):
    end = semicolon + 1
  return end, head + content[body_open:body_close+1]


def _skip_blanks(content: str, index: int) -> int:
  while index < len(content) and content[index] in " \t\n":
    index += 1
  return index


def replace_export_usages(content: str, names: List[str], sink: Optional[WarningSink] = None) -> str:
  """module.exports.X / exports.X become X once X is a top-level export."""
  sink = sink_or_default(sink)
  for name in sorted(set(names), key=len, reverse=True):
    n = re.escape(name)
    usage = re.compile(rf"(?<![\w$.])(?:module\.)?exports\.{n}(?![\w$])")
    first = usage.search(content)
    if first is None:
      continue
    definition = re.search(rf"^[ \t]*export\s+(?:const|let|var)\s+{n}(?![\w$])", content, re.M)
    if definition and first.start() < definition.start():
      sink.warn(f'{Reason.USED_BEFORE_DEFINITION.value}: "{name}"', Reason.USED_BEFORE_DEFINITION)
    content = usage.sub(name, content)
  return content
