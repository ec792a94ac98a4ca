"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- In-memory upstream and host trees shared by pipeline tests.
- Tracer and console isolation so state does not leak between tests.
"""

import json
import sys
from pathlib import Path

import pytest

# Add src to path so we can import 'addon_porter' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from addon_porter.core.staging import MemoryTree  # noqa: E402
from addon_porter.core.tracer import reset_tracer  # noqa: E402
from addon_porter.utils.console import reset_console  # noqa: E402

FOO_SCRIPT = """import { normalizeHex } from "../../libraries/normalize-color.js";

export default async function ({ addon }) {
  await addon.tab.loadScript(addon.self.lib + "/tinycolor-min.js");
  // FIXCLASS:prompt_ok-button_3QFdD
  const img = document.createElement("img");
  img.src = addon.self.dir + "/icon.svg";
}
"""

BAR_SCRIPT = """/* @license MIT */
// FIXCLASS:menu_item_9zZ
console.log("bar");
"""

PROMPT_CSS = """.ok-button:hover { color: red; }
.ok-button.other-class { color: blue; }
.ok-button { }
"""

MENU_CSS = """.item { margin: 0; }
"""


@pytest.fixture(autouse=True)
def isolate_global_state():
  """Resets the global tracer and console around every test."""
  reset_tracer()
  reset_console()
  yield
  reset_tracer()
  reset_console()


@pytest.fixture
def upstream_files():
  """Raw file map of a small upstream addon collection."""
  return {
    "manifest.json": json.dumps({"name": "Addons", "version_name": "1.2.3-tw"}),
    "addons/foo/addon.json": '{"name": "Foo"}',
    "addons/foo/userscript.js": FOO_SCRIPT,
    "addons/foo/icon.svg": "<svg></svg>",
    "addons/foo/style.css": ".x { color: red; }\n",
    "addons/bar/userscript.js": BAR_SCRIPT,
    "addons/ignored/userscript.js": "console.log('not ported');\n",
    "libraries/normalize-color.js": "export const normalizeHex = (h) => h;\n",
    "libraries/tinycolor-min.js": "window.tinycolor = {};\n",
    "libraries/unused.js": "export default 1;\n",
    "addons-l10n/de/foo.json": '{\n  "b": 2,\n  "a": 1\n}\n',
    "addons-l10n/de/ignored.json": '{"x": 1}',
    "addons-l10n/fr/bar.json": '{"greeting": "Bonjour à tous"}',
    "addons-l10n/README.md": "not a language",
  }


@pytest.fixture
def upstream_tree(upstream_files):
  return MemoryTree(upstream_files)


@pytest.fixture
def host_tree():
  """Host tree holding component stylesheets."""
  return MemoryTree(
    {
      "components/prompt/prompt.css": PROMPT_CSS,
      "components/menu/menu.css": MENU_CSS,
    }
  )
