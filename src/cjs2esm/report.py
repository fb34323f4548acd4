#!/usr/bin/env python3
# Warning taxonomy and the sink every reader/writer reports into
from __future__ import annotations
import sys
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, TextIO

class Reason(Enum):
  # require() reader
  REQUIRE_UNPARSED = "require() has failed to parse, input"
  REQUIRE_DIRECT_CALL = "require() has a direct call, you have to separate instructions"
  REQUIRE_FUNCTION_CALL = "require() has a direct function call, you have to separate instructions"
  REQUIRE_DEEP_PATH = "require() has deep object destructuring on both sides, you have to use a new constant"
  REQUIRE_DESTRUCTURED_PATH = "require() has object destructuring on a destructured import, you have to use a new constant"
  REQUIRE_DEEP_DESTRUCTURING = "require() has deep object destructuring on left side, you have to use a new constant"
  REQUIRE_GLOBAL_VARIABLE = "require() is called on some global variable"
  REQUIRE_UNSUPPORTED_BINDING = "require() is assigned to an unsupported binding"
  REQUIRE_NOT_A_STATEMENT = "require() is not the start of a statement, it is left as it is"
  # import writer
  NESTED_IMPORT = "an import was moved out of a nested scope, you should manually check"
  # module.exports reader
  EXPORTS_INNER_SCOPE = 'module.exports with declarations inside is skipped (try "experimental" mode)'
  EXPORTS_CALLS = 'module.exports with calls inside is skipped (try "experimental" mode)'
  EXPORTS_TOO_COMPLEX = 'module.exports is too complex (try "experimental" mode)'
  EXPORTS_NO_TABULATION = "cannot detect tabulation of module.exports"
  EXPORTS_INVALID_TABULATION = "invalid tabulation in module.exports"
  EXPORTS_UNTERMINATED = "unterminated block in module.exports"
  EXPORTS_INVALID_MEMBER = "unsupported member in module.exports"
  EXPORTS_REQUIRE = "module.exports is assigned a require() call, you have to re-export it manually"
  # export writer
  RAW_EXPORT_NOT_FOUND = "cannot find raw export"
  DECLARATION_NOT_FOUND = "cannot find and export declaration of property"
  USED_AND_EXPORTED = "a property is used and exported, you should manually check"
  USED_BEFORE_DEFINITION = "an exported constant is used before its definition"
  LOCAL_KEY_SET = "keys of a local object cannot be re-exported one by one, the object itself is exported"
  NESTED_EXPORT = "an inline export is declared in a nested scope, you should manually check"


@dataclass(frozen=True)
class Unsupported:
  """A construct the readers decline to transform."""
  reason: Reason
  snippet: str = ""

  @property
  def message(self) -> str:
    return f"{self.reason.value}\n{self.snippet}" if self.snippet else self.reason.value


class ExportStructureError(Exception):
  """Raised by the experimental block parser on inconsistent structure."""
  def __init__(self, reason: Reason, snippet: str = ""):
    super().__init__(reason.value)
    self.unsupported = Unsupported(reason, snippet)


class WarningSink:
  def __init__(self, silent: bool = False, stream: Optional[TextIO] = None):
    self.silent = silent
    self.stream = stream
    self.messages: List[str] = []
    self.reasons: List[Reason] = []

  def warn(self, message: str, reason: Optional[Reason] = None) -> None:
    self.messages.append(message)
    if reason is not None:
      self.reasons.append(reason)
    if not self.silent:
      print(f"Warning: {message}", file=self.stream or sys.stderr)

  def reject(self, unsupported: Unsupported) -> None:
    self.warn(unsupported.message, unsupported.reason)


def sink_or_default(sink: Optional[WarningSink]) -> WarningSink:
  return sink if sink is not None else WarningSink()
