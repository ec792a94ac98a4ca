"""
Dynamic Load Import Rewriter.

Addon scripts compute asset and library URLs at runtime
(``addon.self.dir + "/icon.svg"``), which a static bundler cannot follow. This
module rewrites such a script so every resource is imported statically:

1.  **Header synthesis**:
    - one ``import _twAsset<i> from "./<file>";`` per media file in the
      script's directory (sorted by name, imported whether referenced or not),
    - one ``import _twScript<i> from "!file-loader!<libs>/<file>";`` per library
      loaded through ``addon.self.lib`` (first-occurrence order),
    - a ``_twGetAsset(path)`` lookup mapping ``"/<file>"`` to the binding and
      throwing for any other path.
2.  **Call-site rewriting**: each ``addon.self.<dir|lib> + <expr>`` becomes
    ``_twGetAsset(<expr>)``.

Scripts that never mention ``addon.self.dir`` / ``addon.self.lib`` are left alone.
"""

import posixpath
from typing import Iterable, List, Optional, Sequence

from rich.markup import escape

from addon_porter.core.extractor import (
  extract_dynamic_loads,
  find_dynamic_path_sites,
  references_dynamic_paths,
)
from addon_porter.core.libraries import LIBRARIES_DIR
from addon_porter.core.models import AssetTable, SourceUnit
from addon_porter.core.staging import SourceTree
from addon_porter.core.tracer import get_tracer
from addon_porter.utils.console import log_warning

DEFAULT_ASSET_EXTENSIONS = (".svg", ".png", ".jpg", ".jpeg", ".gif", ".webp", ".mp3", ".wav", ".ogg")

HEADER_BANNER = "/* inserted by addon-porter */\n"
CHANGE_MARKER = "/* changed by addon-porter */"
LOOKUP_FUNCTION = "_twGetAsset"
ASSET_BINDING = "_twAsset"
SCRIPT_BINDING = "_twScript"


def unique_in_order(items: Iterable[str]) -> List[str]:
  return list(dict.fromkeys(items))


def build_header(assets: Sequence[str], libraries: Sequence[str], libraries_path: str) -> str:
  """
  Synthesizes the import block and lookup function.

  Args:
      assets: Sibling asset filenames, in index order.
      libraries: Library filenames, in index order.
      libraries_path: Relative path from the script to the libraries directory.

  Returns:
      str: JavaScript header text ending with a blank line.
  """
  lines = [HEADER_BANNER.rstrip("\n")]
  for index, name in enumerate(assets):
    lines.append(f'import {ASSET_BINDING}{index} from "./{name}";')
  for index, name in enumerate(libraries):
    # Loaded as a file URL since it is run through addon.tab.loadScript
    lines.append(f'import {SCRIPT_BINDING}{index} from "!file-loader!{libraries_path}/{name}";')
  lines.append(f"const {LOOKUP_FUNCTION} = (path) => {{")
  for index, name in enumerate(assets):
    lines.append(f'  if (path === "/{name}") return {ASSET_BINDING}{index};')
  for index, name in enumerate(libraries):
    lines.append(f'  if (path === "/{name}") return {SCRIPT_BINDING}{index};')
  lines.append("  throw new Error(`Unknown asset: ${path}`);")
  lines.append("};")
  return "\n".join(lines) + "\n\n"


def build_table(assets: Sequence[str], libraries: Sequence[str]) -> AssetTable:
  """Builds the Python-side mirror of the emitted lookup function."""
  table = AssetTable(assets=list(assets), libraries=list(libraries))
  for index, name in enumerate(assets):
    table.entries.setdefault(f"/{name}", f"{ASSET_BINDING}{index}")
  for index, name in enumerate(libraries):
    table.entries.setdefault(f"/{name}", f"{SCRIPT_BINDING}{index}")
  return table


class ImportRewriter:
  """
  Rewrites dynamic resource loads in scripts into static imports.

  Attributes:
      tree (SourceTree): Tree used to list sibling assets of each script.
      asset_extensions (tuple): Lower-case extensions treated as media assets.
  """

  def __init__(self, tree: SourceTree, asset_extensions: Optional[Iterable[str]] = None) -> None:
    self.tree = tree
    exts = asset_extensions if asset_extensions is not None else DEFAULT_ASSET_EXTENSIONS
    self.asset_extensions = tuple(e.lower() for e in exts)

  def list_assets(self, directory: str) -> List[str]:
    """
    Lists media files directly inside `directory`, sorted by name.
    """
    assets = []
    for name in self.tree.list_dir(directory):
      child = posixpath.join(directory, name) if directory else name
      if self.tree.is_dir(child):
        continue
      if name.lower().endswith(self.asset_extensions):
        assets.append(name)
    return assets

  def rewrite(self, unit: SourceUnit) -> Optional[AssetTable]:
    """
    Rewrites `unit` in place.

    Args:
        unit: A script unit. Its path locates sibling assets and the libraries directory.

    Returns:
        Optional[AssetTable]: The synthesized lookup table, or None if the unit
        does not use dynamic paths and was left unchanged.
    """
    if not references_dynamic_paths(unit.text):
      return None

    assets = self.list_assets(unit.directory)
    libraries = unique_in_order(m.filename for m in extract_dynamic_loads(unit.text))
    libraries_path = posixpath.relpath(LIBRARIES_DIR, unit.directory or ".")

    header = build_header(assets, libraries, libraries_path)
    table = build_table(assets, libraries)
    body, sites = self._rewrite_sites(unit.text)

    for site in sites:
      literal = site.literal_path
      if literal is not None and literal not in table:
        msg = f"{unit.path}: no asset or library for literal path '{literal}'"
        log_warning(escape(msg))
        get_tracer().log_warning(msg)

    unit.text = header + body
    get_tracer().log_import_rewrite(unit.path, assets, libraries, len(sites))
    return table

  def _rewrite_sites(self, text: str):
    sites = find_dynamic_path_sites(text)
    out = []
    last = 0
    for site in sites:
      out.append(text[last : site.start])
      out.append(f"{CHANGE_MARKER} {LOOKUP_FUNCTION}({site.expression})")
      last = site.end
    out.append(text[last:])
    return "".join(out), sites
