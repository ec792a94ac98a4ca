"""
Hardcoded Class Fixer.

Addon scripts reference host UI elements by their build-time generated class
names and record each reference with a ``FIXCLASS:<file>_<class>_<hash>`` marker.
This module rebuilds the host styles for those elements under their generated
names:

1.  Markers are grouped by originating stylesheet into `ClassMapping` objects.
2.  Each stylesheet (``components/<name>/<name>.css``) is preprocessed
    (imports and variables) and split into top-level blocks; each rule selector
    is parsed with ``cssutils``.
3.  A top-level style rule is emitted only if every class in its selector is
    mapped. Its selector is rewritten to generated names and its body reduced
    to its own declarations, with values kept as written.
4.  Emitted rules are appended to the run's `FixedStylesheet`.
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

import cssutils

from addon_porter.core.css.blocks import split_blocks
from addon_porter.core.css.preprocess import StylesheetPreprocessor
from addon_porter.core.models import ClassMapping, ClassMarker, FixedStylesheet
from addon_porter.core.staging import SourceTree
from addon_porter.core.tracer import get_tracer
from addon_porter.errors import MissingStylesheetError

COMPONENTS_DIR = "components"

_CLASS_RE = re.compile(r"\.([\w-]+)")

_CSSUTILS_CONFIGURED = False


def _configure_cssutils() -> None:
  """Silences cssutils parse logging."""
  global _CSSUTILS_CONFIGURED
  if _CSSUTILS_CONFIGURED:
    return
  cssutils.log.setLevel(logging.CRITICAL)
  _CSSUTILS_CONFIGURED = True


def _no_fetch(url: str) -> None:
  # Imports are inlined by the preprocessor; anything left is remote.
  return None


def group_markers(markers: Iterable[ClassMarker]) -> Dict[str, ClassMapping]:
  """
  Groups markers by their originating stylesheet, in first-occurrence order.

  Args:
      markers: Decomposed markers from one or more scripts.

  Returns:
      Dict[str, ClassMapping]: Stylesheet name -> mapping.
  """
  groups: Dict[str, ClassMapping] = {}
  for marker in markers:
    mapping = groups.setdefault(marker.source_file, ClassMapping(marker.source_file))
    mapping.add(marker.original_class, marker.generated_class)
  return groups


def selector_classes(selector: str) -> List[str]:
  """
  Lists every class name referenced in a selector, in order.

  >>> selector_classes(".a:hover > .b-c")
  ['a', 'b-c']
  """
  return _CLASS_RE.findall(selector)


def rewrite_selector(selector: str, mapping: ClassMapping) -> Optional[str]:
  """
  Rewrites a selector to generated class names.

  Each class is replaced as a whole unit; ``.ok`` never matches inside ``.ok-button``.

  Args:
      selector: Original selector text.
      mapping: The stylesheet's class mapping.

  Returns:
      Optional[str]: The rewritten selector, or None if any class is unmapped.
      A selector naming no class is returned unchanged.
  """
  if not mapping.covers(selector_classes(selector)):
    return None
  return _CLASS_RE.sub(lambda m: f".{mapping.get(m.group(1))}", selector)


def render_rule(selector: str, declarations: List[Tuple[str, str]]) -> str:
  """
  Serializes a rule in compact form: ``<selector> {prop:value;...}``.

  A rule without declarations renders as ``<selector> {}``.
  """
  body = "".join(f"{prop}:{value};" for prop, value in declarations)
  return f"{selector} {{{body}}}\n"


class ClassFixer:
  """
  Rebuilds host stylesheet rules under generated class names.

  Attributes:
      host (SourceTree): Tree containing ``components/<name>/<name>.css``.
      accumulator (FixedStylesheet): Destination for emitted rules.
  """

  def __init__(self, host: SourceTree, accumulator: FixedStylesheet, components_dir: str = COMPONENTS_DIR) -> None:
    _configure_cssutils()
    self.host = host
    self.accumulator = accumulator
    self.components_dir = components_dir
    self.preprocessor = StylesheetPreprocessor(host)
    self._parser = cssutils.CSSParser(
      raiseExceptions=False,
      fetcher=_no_fetch,
      parseComments=False,
      validate=False,
    )

  def stylesheet_path(self, name: str) -> str:
    return f"{self.components_dir}/{name}/{name}.css"

  def fix(self, mappings: Dict[str, ClassMapping]) -> int:
    """
    Processes every mapped stylesheet in mapping order.

    Args:
        mappings: Output of `group_markers`.

    Returns:
        int: Number of rules appended to the accumulator.

    Raises:
        MissingStylesheetError: If a named stylesheet is absent.
    """
    emitted = 0
    for mapping in mappings.values():
      for rule_text in self.fix_stylesheet(mapping):
        self.accumulator.append(rule_text)
        emitted += 1
    return emitted

  def fix_stylesheet(self, mapping: ClassMapping) -> List[str]:
    """
    Produces the fixed rules for one stylesheet, in stylesheet order.

    Top-level at-rule blocks are skipped. Within a rule body, nested rules and
    at-rules are dropped while the surrounding declarations are kept verbatim.
    """
    path = self.stylesheet_path(mapping.stylesheet)
    if not self.host.exists(path):
      raise MissingStylesheetError(f"Stylesheet for class markers not found: {mapping.stylesheet}", path=path)

    css_text = self.preprocessor.process(path)

    rules = []
    for block in split_blocks(css_text):
      if block.is_at_rule:
        continue
      selector = self.parse_selector(block.prelude, path)
      if selector is None:
        continue
      fixed = rewrite_selector(selector, mapping)
      if fixed is None:
        continue
      rules.append(render_rule(fixed, block.declarations()))
      get_tracer().log_class_fix(mapping.stylesheet, selector, fixed)
    return rules

  def parse_selector(self, prelude: str, path: Optional[str] = None) -> Optional[str]:
    """
    Normalizes a rule prelude through cssutils.

    Returns:
        Optional[str]: The selector text, or None if cssutils rejects it.
    """
    sheet = self._parser.parseString(f"{prelude} {{}}", href=path)
    for rule in sheet.cssRules:
      if rule.type == rule.STYLE_RULE:
        return rule.selectorText
    return None
