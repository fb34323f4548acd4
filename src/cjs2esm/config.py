#!/usr/bin/env python3
# Writer configuration, read once when a conversion run starts
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

QUOTES = ('"', "'")

@dataclass(frozen=True)
class RewriteConfig:
  """
  quote:               force ' or " around generated specifiers, None keeps the original quote
  last_comma:          trailing comma in multi-line import blocks
  strip_js_extension:  drop ".js" from relative import targets
  experimental:        rebuild declarations written inside module.exports = { ... }
  """
  quote: Optional[str] = None
  last_comma: bool = True
  strip_js_extension: bool = True
  experimental: bool = False

  def __post_init__(self):
    if self.quote is not None and self.quote not in QUOTES:
      raise ValueError(f"quote must be one of {QUOTES} or None, got {self.quote!r}")

DEFAULT_CONFIG = RewriteConfig()
