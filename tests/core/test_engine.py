"""
End-to-end tests for the PortEngine over in-memory trees.

Verifies:
1. Allow-list scoping of addons, libraries and catalogs.
2. Script rewriting, license stamping and byte-for-byte copies.
3. Fixed stylesheet contents and rule order.
4. Metadata output and the returned PortResult.
5. Error propagation with the failing addon attached.
"""

import json

import pytest

from addon_porter.core.engine import FIXED_CSS_FILE, PortEngine, library_references
from addon_porter.core.import_rewriter import CHANGE_MARKER
from addon_porter.core.license import DEFAULT_LICENSE_HEADER
from addon_porter.core.models import FixedStylesheet
from addon_porter.core.staging import MemoryTree
from addon_porter.core.tracer import TraceEventType
from addon_porter.enums import ReferenceKind
from addon_porter.errors import MissingLibraryError, MissingStylesheetError, PortError, UnreadableFileError


def _engine(source, host, addons, output=None, **kwargs):
  return PortEngine(source, host, output if output is not None else MemoryTree(), addons, **kwargs)


def test_full_run(upstream_tree, host_tree):
  engine = _engine(upstream_tree, host_tree, ["foo", "bar"])
  result = engine.run()
  out = engine.output

  # Scope
  assert not out.exists("addons/ignored")
  assert out.walk("libraries") == ["normalize-color.js", "tinycolor-min.js"]
  assert result.libraries == ["normalize-color.js", "tinycolor-min.js"]

  # Scripts
  foo = out.read_text("addons/foo/userscript.js")
  assert foo.startswith(DEFAULT_LICENSE_HEADER + "/* inserted by addon-porter */\n")
  assert 'import _twAsset0 from "./icon.svg";' in foo
  assert 'import _twScript0 from "!file-loader!../../libraries/tinycolor-min.js";' in foo
  assert f'img.src = {CHANGE_MARKER} _twGetAsset("/icon.svg");' in foo
  assert f'loadScript({CHANGE_MARKER} _twGetAsset("/tinycolor-min.js"));' in foo
  assert 'import { normalizeHex } from "../../libraries/normalize-color.js";' in foo

  bar = out.read_text("addons/bar/userscript.js")
  assert bar == upstream_tree.read_text("addons/bar/userscript.js")

  # Stylesheets and other files
  assert out.read_text("addons/foo/style.css") == DEFAULT_LICENSE_HEADER + ".x { color: red; }\n"
  assert out.read_bytes("addons/foo/icon.svg") == b"<svg></svg>"
  assert out.read_bytes("addons/foo/addon.json") == b'{"name": "Foo"}'

  # Localization and metadata
  assert out.read_text("addons-l10n/de/foo.json") == '{"b":2,"a":1}'
  assert not out.exists("addons-l10n/de/ignored.json")
  assert json.loads(out.read_text("upstream-meta.json")) == {"version": "1.2.3-tw", "languages": ["de", "fr"]}
  assert out.read_text("upstream-meta.json") == '{"version":"1.2.3-tw","languages":["de","fr"]}'

  assert result.version == "1.2.3-tw"
  assert result.languages == ["de", "fr"]
  assert FIXED_CSS_FILE in result.files_written


def test_fixed_stylesheet_contents(upstream_tree, host_tree):
  engine = _engine(upstream_tree, host_tree, ["foo", "bar"])
  result = engine.run()

  expected = (
    FixedStylesheet.BANNER + ".prompt_ok-button_3QFdD:hover {color:red;}\n"
    ".prompt_ok-button_3QFdD {}\n"
    ".menu_item_9zZ {margin:0;}\n"
  )
  assert engine.output.read_text(FIXED_CSS_FILE) == expected
  assert result.fixed_css == expected
  assert result.fixed_rules == 3


def test_rule_order_follows_allowlist(upstream_tree, host_tree):
  engine = _engine(upstream_tree, host_tree, ["bar", "foo"])
  css = engine.run().fixed_css
  assert css.index(".menu_item_9zZ") < css.index(".prompt_ok-button_3QFdD")


def test_repeat_runs_are_identical(upstream_tree, host_tree):
  first = _engine(upstream_tree, host_tree, ["foo", "bar"])
  second = _engine(upstream_tree, host_tree, ["foo", "bar"])
  first.run()
  second.run()
  assert first.output.files == second.output.files


def test_clean_output_removes_stale_dirs(upstream_tree, host_tree):
  output = MemoryTree({"libraries/stale.js": "old", "addons/gone/x.js": "old", "keep.txt": "k"})
  _engine(upstream_tree, host_tree, ["foo"], output=output).run()
  assert not output.exists("libraries/stale.js")
  assert not output.exists("addons/gone")
  assert output.exists("keep.txt")


def test_no_clean_keeps_existing(upstream_tree, host_tree):
  output = MemoryTree({"libraries/stale.js": "old"})
  _engine(upstream_tree, host_tree, ["foo"], output=output, clean_output=False).run()
  assert output.exists("libraries/stale.js")


def test_trace_records_phases_and_events(upstream_tree, host_tree):
  result = _engine(upstream_tree, host_tree, ["foo", "bar"]).run()
  types = [e["type"] for e in result.trace_events]
  assert types.count(TraceEventType.PHASE_START) == 3
  assert types.count(TraceEventType.LIBRARY_COPY) == 2
  assert types.count(TraceEventType.CLASS_FIX) == 3
  assert types.count(TraceEventType.IMPORT_REWRITE) == 1


def test_missing_library_names_addon(upstream_files, host_tree):
  del upstream_files["libraries/tinycolor-min.js"]
  output = MemoryTree()
  with pytest.raises(MissingLibraryError) as exc:
    _engine(MemoryTree(upstream_files), host_tree, ["foo"], output=output).run()
  assert exc.value.addon == "foo"
  assert "tinycolor-min.js" in str(exc.value)
  assert not output.exists("upstream-meta.json")


def test_missing_stylesheet_aborts(upstream_tree):
  with pytest.raises(MissingStylesheetError) as exc:
    _engine(upstream_tree, MemoryTree(), ["bar"]).run()
  assert exc.value.addon == "bar"
  assert exc.value.path == "components/menu/menu.css"


def test_unknown_addon(upstream_tree, host_tree):
  with pytest.raises(PortError) as exc:
    _engine(upstream_tree, host_tree, ["nope"]).run()
  assert str(exc.value) == "[addon: nope] [addons/nope] Addon not found in source tree"


def test_non_utf8_script_names_addon_and_path(upstream_files, host_tree):
  upstream_files["addons/foo/u.js"] = b"\xff"
  with pytest.raises(UnreadableFileError) as exc:
    _engine(MemoryTree(upstream_files), host_tree, ["foo"]).run()
  assert exc.value.addon == "foo"
  assert exc.value.path == "addons/foo/u.js"
  assert isinstance(exc.value.__cause__, UnicodeDecodeError)
  assert str(exc.value).startswith("[addon: foo] [addons/foo/u.js] Cannot read file:")


def test_library_references_order_and_kind():
  text = (
    'loadScript(addon.self.lib + "/dyn.js");\n'
    'import a from "../../libraries/static.js";\n'
  )
  refs = library_references(text)
  assert [r.filename for r in refs] == ["static.js", "dyn.js"]
  assert [r.kind for r in refs] == [ReferenceKind.STATIC_IMPORT, ReferenceKind.DYNAMIC_LOAD]
