"""
Tests for the Hardcoded Class Fixer.

Verifies:
1. Markers group into per-stylesheet mappings.
2. Only rules whose every class is mapped are emitted, in stylesheet order.
3. Class names are replaced as whole units.
4. Declarations are emitted in compact form with values and priorities as written.
5. Nested rules and at-rules inside a body are dropped without losing later declarations.
6. Missing stylesheets are fatal.
"""

import pytest

from addon_porter.core.css.fixer import ClassFixer, group_markers, rewrite_selector, selector_classes
from addon_porter.core.extractor import decompose_marker
from addon_porter.core.models import ClassMapping, FixedStylesheet
from addon_porter.core.staging import MemoryTree
from addon_porter.core.tracer import TraceEventType, get_tracer
from addon_porter.errors import MissingStylesheetError


def _fixer(files):
  accumulator = FixedStylesheet()
  return ClassFixer(MemoryTree(files), accumulator), accumulator


def _mapping(*tokens):
  return group_markers(decompose_marker(t) for t in tokens)


def test_group_markers():
  groups = _mapping("prompt_ok-button_3QFdD", "menu_item_9zZ", "prompt_cancel_AAAA")
  assert list(groups) == ["prompt", "menu"]
  assert groups["prompt"] == {"ok-button": "prompt_ok-button_3QFdD", "cancel": "prompt_cancel_AAAA"}
  assert groups["menu"] == {"item": "menu_item_9zZ"}


def test_selector_classes():
  assert selector_classes(".a:hover > .b-c") == ["a", "b-c"]
  assert selector_classes("div#id") == []


def test_rewrite_selector_whole_units():
  mapping = ClassMapping("prompt")
  mapping.add("ok", "prompt_ok_1")
  mapping.add("ok-button", "prompt_ok-button_2")
  assert rewrite_selector(".ok-button .ok", mapping) == ".prompt_ok-button_2 .prompt_ok_1"


def test_rewrite_selector_unmapped_class():
  mapping = ClassMapping("prompt")
  mapping.add("ok-button", "prompt_ok-button_3QFdD")
  assert rewrite_selector(".ok-button.other-class", mapping) is None


def test_hover_rule_kept_partial_rule_dropped():
  """Mapping {ok-button} keeps `.ok-button:hover` and drops `.ok-button.other-class`."""
  fixer, accumulator = _fixer(
    {
      "components/prompt/prompt.css": (
        ".ok-button:hover { color: red; }\n"
        ".ok-button.other-class { color: blue; }\n"
        ".unrelated { color: green; }\n"
      )
    }
  )
  emitted = fixer.fix(_mapping("prompt_ok-button_3QFdD"))
  assert emitted == 1
  assert accumulator.text == FixedStylesheet.BANNER + ".prompt_ok-button_3QFdD:hover {color:red;}\n"


def test_rules_in_stylesheet_order_with_empty_rule():
  fixer, _ = _fixer(
    {
      "components/menu/menu.css": (
        ".item { margin: 0; }\n"
        ".item.active { }\n"
        ".item .label { padding: 1px; }\n"
        ".label { font-weight: bold !important; }\n"
      )
    }
  )
  rules = fixer.fix_stylesheet(_mapping("menu_item_9zZ", "menu_active_1", "menu_label_2")["menu"])
  assert rules == [
    ".menu_item_9zZ {margin:0;}\n",
    ".menu_item_9zZ.menu_active_1 {}\n",
    ".menu_item_9zZ .menu_label_2 {padding:1px;}\n",
    ".menu_label_2 {font-weight:bold !important;}\n",
  ]


def test_multiple_declarations_kept_in_order():
  fixer, _ = _fixer({"components/box/box.css": ".box { color: red; margin: 0; border: 1px solid red; }\n"})
  rules = fixer.fix_stylesheet(_mapping("box_box_h")["box"])
  assert rules == [".box_box_h {color:red;margin:0;border:1px solid red;}\n"]


def test_at_rules_skipped_classless_rules_kept():
  """A selector with no classes has nothing unmapped, so it is emitted as is."""
  fixer, _ = _fixer(
    {
      "components/prompt/prompt.css": (
        "div { color: red; }\n"
        "@media (min-width: 100px) { .ok-button { color: blue; } }\n"
        ".ok-button { color: red; }\n"
      )
    }
  )
  assert fixer.fix_stylesheet(_mapping("prompt_ok-button_3QFdD")["prompt"]) == [
    "div {color:red;}\n",
    ".prompt_ok-button_3QFdD {color:red;}\n",
  ]


def test_variables_and_imports_resolved_before_fixing():
  fixer, _ = _fixer(
    {
      "css/colors.css": "$ui-primary: #123456;\n",
      "components/prompt/prompt.css": (
        '@import "../../css/colors.css";\n' ".ok-button { background-color: $ui-primary; }\n"
      ),
    }
  )
  assert fixer.fix_stylesheet(_mapping("prompt_ok-button_3QFdD")["prompt"]) == [
    ".prompt_ok-button_3QFdD {background-color:#123456;}\n"
  ]


def test_missing_stylesheet():
  fixer, _ = _fixer({})
  with pytest.raises(MissingStylesheetError) as exc:
    fixer.fix(_mapping("ghost_button_h1"))
  assert exc.value.path == "components/ghost/ghost.css"


def test_fixes_are_traced():
  fixer, _ = _fixer({"components/menu/menu.css": ".item { margin: 0; }\n"})
  fixer.fix(_mapping("menu_item_9zZ"))
  events = get_tracer().events_of(TraceEventType.CLASS_FIX)
  assert [e.metadata for e in events] == [{"before": ".item", "after": ".menu_item_9zZ"}]


def test_nested_rule_keeps_surrounding_declarations():
  fixer, _ = _fixer(
    {"components/prompt/prompt.css": ".ok-button { color: red; .inner { color: blue; } margin: 0; }\n"}
  )
  assert fixer.fix_stylesheet(_mapping("prompt_ok-button_3QFdD")["prompt"]) == [
    ".prompt_ok-button_3QFdD {color:red;margin:0;}\n"
  ]


def test_body_with_comment_nested_media_rule_and_statement():
  """Only the rule's own declarations survive, in order, around every nested construct."""
  css = (
    ".ok-button {\n"
    "  color: red;\n"
    "  /* spacing; { not a block } */\n"
    "  padding: 1px;\n"
    "  @media (min-width: 100px) { color: blue; }\n"
    "  margin: 0;\n"
    "  .inner { color: green; }\n"
    "  border: 0;\n"
    "  @apply --mixin;\n"
    "  width: 1px;\n"
    "}\n"
    ".ok-button:hover { color: red; }\n"
  )
  fixer, _ = _fixer({"components/prompt/prompt.css": css})
  assert fixer.fix_stylesheet(_mapping("prompt_ok-button_3QFdD")["prompt"]) == [
    ".prompt_ok-button_3QFdD {color:red;padding:1px;margin:0;border:0;width:1px;}\n",
    ".prompt_ok-button_3QFdD:hover {color:red;}\n",
  ]


def test_declaration_values_kept_as_written():
  fixer, _ = _fixer(
    {
      "components/prompt/prompt.css": (
        '.ok-button { margin: 0px; transition: opacity .1s; background: url("a;b.svg") no-repeat; color: #FFFFFF; }\n'
      )
    }
  )
  assert fixer.fix_stylesheet(_mapping("prompt_ok-button_3QFdD")["prompt"]) == [
    '.prompt_ok-button_3QFdD {margin:0px;transition:opacity .1s;background:url("a;b.svg") no-repeat;color:#FFFFFF;}\n'
  ]
