"""
Pattern Extractor for Addon Source Idioms.

Scans raw JavaScript text for the small, fixed set of idioms the porting
pipeline understands and returns typed match records. Each family is a lexical
matcher over the whole file; no JavaScript parsing is done.

Families:
1.  **Library imports**: ``import X from "../../libraries/<name>.js";``
2.  **Class markers**: ``FIXCLASS:<file>_<class>_<hash>``
3.  **Dynamic loads**: ``addon.self.lib + "/<name>.js"``

In addition, `find_dynamic_path_sites` locates every ``addon.self.dir + <expr>``
or ``addon.self.lib + <expr>`` expression together with the span of its trailing
operand, which the Import Rewriter replaces with a lookup call.

All matchers return results in first-occurrence order. No match is an empty list.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Union

from addon_porter.core.models import ClassMarker
from addon_porter.enums import PatternKind
from addon_porter.errors import MalformedMarkerError

# import { a, b } from "../../libraries/x.js";  /  import "../../libraries/x.js";
_LIBRARY_IMPORT_RE = re.compile(r"""\bimport\s+(?:[^;'"]*?\s+from\s+)?(["'])(?:\.\./)+libraries/([\w-]+\.js)\1""")

_MARKER_RE = re.compile(r"FIXCLASS:[ \t]*([\w-]*)")

# <file> is the shortest word prefix, <hash> the last segment, <class> the rest.
_MARKER_PARTS_RE = re.compile(r"(\w+?)_([\w-]+)_([\w-]+)")

_DYNAMIC_LOAD_RE = re.compile(r"""addon\.self\.lib\s*\+\s*(["'])/([\w-]+\.js)\1""")

_DYNAMIC_PATH_RE = re.compile(r"addon\.self\.(?:dir|lib)\s*\+\s*")

_STRING_LITERAL_RE = re.compile(r"""^(["'])([^"'\\]*)\1$""")

_OPENERS = "([{"
_CLOSERS = ")]}"
_STOP_CHARS = ";,?:\n"
_STOP_OPERATORS = ("&&", "||", "??", "==", "!=")

DYNAMIC_PATH_ROOTS = ("addon.self.dir", "addon.self.lib")


@dataclass(frozen=True)
class LibraryImportMatch:
  """
  A static import of a shared library.

  Attributes:
      filename: Library filename (e.g. ``normalize-color.js``).
      start: Offset of the ``import`` keyword.
      end: Offset just past the closing quote of the path.
  """

  filename: str
  start: int
  end: int


@dataclass(frozen=True)
class ClassMarkerMatch:
  """
  A decomposed FIXCLASS marker and its location.
  """

  marker: ClassMarker
  start: int
  end: int

  @property
  def source_file(self) -> str:
    return self.marker.source_file

  @property
  def original_class(self) -> str:
    return self.marker.original_class

  @property
  def generated_class(self) -> str:
    return self.marker.generated_class


@dataclass(frozen=True)
class DynamicLoadMatch:
  """
  A runtime library load built from ``addon.self.lib`` and a literal filename.
  """

  filename: str
  start: int
  end: int


@dataclass(frozen=True)
class DynamicPathSite:
  """
  One ``addon.self.<dir|lib> + <expr>`` expression.

  Attributes:
      start: Offset of ``addon.self``.
      end: Offset just past the trailing expression.
      expression: The trailing operand text (e.g. ``"/" + name + ".svg"``).
  """

  start: int
  end: int
  expression: str

  @property
  def literal_path(self) -> Optional[str]:
    """
    The path value when the trailing operand is a single string literal.

    Returns:
        Optional[str]: e.g. ``/icon.svg`` for ``"/icon.svg"``, otherwise None.
    """
    match = _STRING_LITERAL_RE.match(self.expression)
    return match.group(2) if match else None


ExtractorMatch = Union[LibraryImportMatch, ClassMarkerMatch, DynamicLoadMatch]


def extract_library_imports(text: str) -> List[LibraryImportMatch]:
  """
  Finds static imports of ``libraries/<name>.js``.

  Args:
      text: JavaScript source.

  Returns:
      List[LibraryImportMatch]: One record per import statement.
  """
  return [LibraryImportMatch(m.group(2), m.start(), m.end()) for m in _LIBRARY_IMPORT_RE.finditer(text)]


def decompose_marker(token: str, path: Optional[str] = None) -> ClassMarker:
  """
  Splits a generated class token into its components.

  Args:
      token: e.g. ``prompt_ok-button_3QFdD``.
      path: Optional file path used in the error diagnostic.

  Returns:
      ClassMarker: ``(prompt, ok-button, prompt_ok-button_3QFdD, 3QFdD)``.

  Raises:
      MalformedMarkerError: If the token lacks the three expected parts.
  """
  parts = _MARKER_PARTS_RE.fullmatch(token)
  if not parts:
    raise MalformedMarkerError(token, path=path)
  source_file, original_class, hash_ = parts.groups()
  return ClassMarker(
    source_file=source_file,
    original_class=original_class,
    generated_class=token,
    hash=hash_,
  )


def extract_class_markers(text: str, path: Optional[str] = None) -> List[ClassMarkerMatch]:
  """
  Finds and decomposes every ``FIXCLASS:`` marker.

  Args:
      text: JavaScript source.
      path: Optional file path used in error diagnostics.

  Returns:
      List[ClassMarkerMatch]: One record per marker.

  Raises:
      MalformedMarkerError: If any marker token fails to decompose, including
          a ``FIXCLASS:`` with no token after it.
  """
  matches = []
  for m in _MARKER_RE.finditer(text):
    marker = decompose_marker(m.group(1), path=path)
    matches.append(ClassMarkerMatch(marker, m.start(), m.end()))
  return matches


def extract_dynamic_loads(text: str) -> List[DynamicLoadMatch]:
  """
  Finds runtime library loads of the form ``addon.self.lib + "/<name>.js"``.

  Args:
      text: JavaScript source.

  Returns:
      List[DynamicLoadMatch]: One record per occurrence (duplicates included).
  """
  return [DynamicLoadMatch(m.group(2), m.start(), m.end()) for m in _DYNAMIC_LOAD_RE.finditer(text)]


def extract(text: str, kind: PatternKind, path: Optional[str] = None) -> List[ExtractorMatch]:
  """
  Runs the matcher for one pattern family.

  Args:
      text: JavaScript source.
      kind: Which family to extract.
      path: Optional file path used in error diagnostics.

  Returns:
      List of match records for that family.
  """
  if kind == PatternKind.LIBRARY_IMPORT:
    return list(extract_library_imports(text))
  if kind == PatternKind.CLASS_MARKER:
    return list(extract_class_markers(text, path=path))
  if kind == PatternKind.DYNAMIC_LOAD:
    return list(extract_dynamic_loads(text))
  raise ValueError(f"Unknown pattern kind: {kind}")


def references_dynamic_paths(text: str) -> bool:
  """
  Returns True if the text mentions ``addon.self.dir`` or ``addon.self.lib`` at all.
  """
  return any(root in text for root in DYNAMIC_PATH_ROOTS)


def find_dynamic_path_sites(text: str) -> List[DynamicPathSite]:
  """
  Locates every ``addon.self.<dir|lib> + <expr>`` expression.

  The trailing operand extends until a depth-0 statement or argument boundary
  (``;``, ``,``, ``?``, ``:``, newline), an unbalanced closing bracket, or an
  operator binding looser than ``+``. String literals are skipped whole, so a
  ``;`` inside ``"a;b"`` does not end the expression.

  Args:
      text: JavaScript source.

  Returns:
      List[DynamicPathSite]: Sites in source order. Sites with an empty operand are omitted.
  """
  sites = []
  pos = 0
  while True:
    m = _DYNAMIC_PATH_RE.search(text, pos)
    if not m:
      break
    expr_start = m.end()
    expr_end = _scan_trailing_expression(text, expr_start)
    if expr_end > expr_start:
      sites.append(DynamicPathSite(m.start(), expr_end, text[expr_start:expr_end]))
      pos = expr_end
    else:
      pos = expr_start
  return sites


def _scan_trailing_expression(text: str, start: int) -> int:
  """
  Returns the offset where the operand beginning at `start` ends (trailing whitespace excluded).
  """
  depth = 0
  pos = start
  length = len(text)

  while pos < length:
    char = text[pos]
    if char in "\"'`":
      pos = _skip_string(text, pos)
      continue
    if char in _OPENERS:
      depth += 1
    elif char in _CLOSERS:
      if depth == 0:
        break
      depth -= 1
    elif depth == 0 and (char in _STOP_CHARS or text.startswith(_STOP_OPERATORS, pos)):
      break
    pos += 1

  end = pos
  while end > start and text[end - 1].isspace():
    end -= 1
  return end


def _skip_string(text: str, pos: int) -> int:
  """
  Skips a string or template literal starting at `pos`.

  Returns:
      int: Offset just past the closing quote, or the end of text if unterminated.
  """
  quote = text[pos]
  pos += 1
  length = len(text)
  while pos < length:
    char = text[pos]
    if char == "\\":
      pos += 2
      continue
    if char == quote:
      return pos + 1
    if char == "\n" and quote != "`":
      return pos
    pos += 1
  return length
