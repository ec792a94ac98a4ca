"""
Stylesheet Block Scanner.

Splits preprocessed CSS into top-level blocks (prelude + body) and reduces a
style rule body to its own declarations. Nested rules, nested at-rule blocks and
at-rule statements inside a body are dropped; the declarations around them are
kept with their values exactly as written.

String literals are skipped whole, so braces and semicolons inside quotes never
affect block structure.
"""

from dataclasses import dataclass
from typing import List, Tuple

_QUOTES = "\"'"


@dataclass(frozen=True)
class CssBlock:
  """
  One top-level ``<prelude> { <body> }`` block.

  Attributes:
      prelude: Selector list or at-rule head, stripped.
      body: Raw text between the braces.
  """

  prelude: str
  body: str

  @property
  def is_at_rule(self) -> bool:
    return self.prelude.startswith("@")

  def declarations(self) -> List[Tuple[str, str]]:
    return body_declarations(self.body)


def split_blocks(text: str) -> List[CssBlock]:
  """
  Lists the top-level blocks of a stylesheet in source order.

  Top-level statements without a block (``@charset "x";``) are skipped.
  An unterminated final block extends to the end of the text.
  """
  blocks = []
  start = 0
  pos = 0
  length = len(text)

  while pos < length:
    char = text[pos]
    if char in _QUOTES:
      pos = _skip_string(text, pos)
      continue
    if char == ";":
      start = pos + 1
    elif char == "{":
      close = _matching_brace(text, pos)
      blocks.append(CssBlock(text[start:pos].strip(), text[pos + 1 : close]))
      pos = close + 1
      start = pos
      continue
    pos += 1
  return blocks


def body_declarations(body: str) -> List[Tuple[str, str]]:
  """
  Extracts ``(property, value)`` pairs from a rule body, in source order.

  Nested ``{...}`` blocks are removed together with their prelude, and
  ``@``-statements are discarded. Values keep their source text, including any
  ``!important`` suffix.

  >>> body_declarations("color: red; .inner { color: blue; } margin: 0px;")
  [('color', 'red'), ('margin', '0px')]
  """
  segments = []
  start = 0
  pos = 0
  depth = 0
  length = len(body)

  while pos < length:
    char = body[pos]
    if char in _QUOTES:
      pos = _skip_string(body, pos)
      continue
    if char == "(":
      depth += 1
    elif char == ")" and depth > 0:
      depth -= 1
    elif char == ";" and depth == 0:
      segments.append(body[start:pos])
      start = pos + 1
    elif char == "{" and depth == 0:
      # Nested rule or at-rule block: drop it and its prelude
      pos = _matching_brace(body, pos) + 1
      start = pos
      continue
    elif char == "}" and depth == 0:
      # Stray closer
      start = pos + 1
    pos += 1
  segments.append(body[start:])

  pairs = []
  for segment in segments:
    segment = segment.strip()
    if not segment or segment.startswith("@"):
      continue
    name, sep, value = segment.partition(":")
    if not sep or not name.strip():
      continue
    pairs.append((name.strip(), value.strip()))
  return pairs


def _matching_brace(text: str, open_pos: int) -> int:
  """
  Returns the offset of the ``}`` closing the ``{`` at `open_pos`, or ``len(text)`` if unterminated.
  """
  depth = 0
  pos = open_pos
  length = len(text)
  while pos < length:
    char = text[pos]
    if char in _QUOTES:
      pos = _skip_string(text, pos)
      continue
    if char == "{":
      depth += 1
    elif char == "}":
      depth -= 1
      if depth == 0:
        return pos
    pos += 1
  return length


def _skip_string(text: str, pos: int) -> int:
  quote = text[pos]
  pos += 1
  length = len(text)
  while pos < length:
    char = text[pos]
    if char == "\\":
      pos += 2
      continue
    if char == quote or char == "\n":
      return pos + 1
    pos += 1
  return length
