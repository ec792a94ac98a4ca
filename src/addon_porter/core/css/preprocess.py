"""
Stylesheet Preprocessing.

Resolves the two preprocessor features host stylesheets rely on before their
rules can be inspected:

1.  **Imports**: top-level ``@import "x.css";`` / ``@import url(x.css);`` are
    inlined recursively, relative to the importing file. Each file is inlined at
    most once per run. Imports carrying a media query are wrapped in ``@media``.
    Remote imports are left untouched.
2.  **Variables**: ``$name: value;`` definitions are collected in document order
    and removed; ``$name`` and ``$(name)`` usages are substituted.

Comments are removed up front; the class fixer discards them anyway.
"""

import posixpath
import re
from typing import Dict, Optional, Set

from addon_porter.core.staging import SourceTree
from addon_porter.errors import MissingStylesheetError, UndefinedVariableError, UnreadableFileError

_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)

_IMPORT_RE = re.compile(
  r"""@import\s+(?:url\(\s*(["']?)(?P<url>[^"')]+)\1\s*\)|(["'])(?P<str>[^"']+)\3)\s*(?P<media>[^;{}]*);"""
)

# $name: value;  |  $(name)  |  $name
_VAR_TOKEN_RE = re.compile(r"\$(?P<def>[\w-]+)\s*:\s*(?P<value>[^;{}]+?)\s*;|\$\((?P<paren>[\w-]+)\)|\$(?P<use>[\w-]+)")

_REMOTE_PREFIXES = ("http:", "https:", "//")


class StylesheetPreprocessor:
  """
  Inlines imports and substitutes variables for stylesheets in a source tree.

  Attributes:
      tree (SourceTree): The tree stylesheet paths are resolved against.
  """

  def __init__(self, tree: SourceTree) -> None:
    self.tree = tree

  def process(self, path: str) -> str:
    """
    Loads and preprocesses the stylesheet at `path`.

    Args:
        path: Tree-relative path of the stylesheet.

    Returns:
        str: Flattened CSS with variables resolved.

    Raises:
        MissingStylesheetError: If the stylesheet or one of its imports is absent.
        UndefinedVariableError: If a variable is used before being defined.
        UnreadableFileError: If a stylesheet is not valid UTF-8 text.
    """
    if not self.tree.exists(path) or self.tree.is_dir(path):
      raise MissingStylesheetError(f"Stylesheet not found: {path}", path=path)
    text = self._read(path)
    return self.process_text(text, path)

  def process_text(self, text: str, path: str) -> str:
    """
    Preprocesses already loaded stylesheet text located at `path`.
    """
    seen: Set[str] = {posixpath.normpath(path)}
    inlined = self._inline_imports(text, path, seen)
    return substitute_variables(inlined, path=path)

  def _read(self, path: str) -> str:
    try:
      return self.tree.read_text(path)
    except (UnicodeDecodeError, OSError) as e:
      raise UnreadableFileError(f"Cannot read stylesheet: {e}", path=path) from e

  def _inline_imports(self, text: str, path: str, seen: Set[str]) -> str:
    text = _COMMENT_RE.sub("", text)
    out = []
    last = 0
    depth = 0

    for m in _IMPORT_RE.finditer(text):
      depth += text.count("{", last, m.start()) - text.count("}", last, m.start())
      out.append(text[last : m.start()])
      last = m.end()

      target = (m.group("url") or m.group("str")).strip()
      if depth != 0 or target.startswith(_REMOTE_PREFIXES):
        out.append(m.group(0))
        continue

      resolved = posixpath.normpath(posixpath.join(posixpath.dirname(path), target))
      if resolved in seen:
        continue
      if not self.tree.exists(resolved) or self.tree.is_dir(resolved):
        raise MissingStylesheetError(f"Imported stylesheet not found: {target}", path=path)
      seen.add(resolved)

      imported = self._inline_imports(self._read(resolved), resolved, seen)
      media = m.group("media").strip()
      if media:
        imported = f"@media {media} {{\n{imported}\n}}"
      out.append(imported)

    out.append(text[last:])
    return "".join(out)


def substitute_variables(text: str, path: Optional[str] = None, variables: Optional[Dict[str, str]] = None) -> str:
  """
  Resolves ``$variable`` definitions and usages in document order.

  Definitions may reference previously defined variables.

  Args:
      text: Stylesheet text.
      path: Optional path used in error diagnostics.
      variables: Optional predefined variables.

  Returns:
      str: Text with definitions removed and usages replaced.

  Raises:
      UndefinedVariableError: If a usage has no preceding definition.
  """
  scope: Dict[str, str] = dict(variables or {})

  def lookup(name: str) -> str:
    if name not in scope:
      raise UndefinedVariableError(f"Undefined variable ${name}", path=path)
    return scope[name]

  def replace(m: re.Match) -> str:
    if m.group("def"):
      scope[m.group("def")] = _VAR_TOKEN_RE.sub(replace, m.group("value"))
      return ""
    return lookup(m.group("paren") or m.group("use"))

  return _VAR_TOKEN_RE.sub(replace, text)
