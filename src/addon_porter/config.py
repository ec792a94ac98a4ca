"""
Runtime Configuration Store.

Settings are resolved in three layers: model defaults, the ``[tool.addon_porter]``
table of the nearest ``pyproject.toml``, and explicit CLI overrides.
"""

import json
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator
from rich.markup import escape

from addon_porter.core.import_rewriter import DEFAULT_ASSET_EXTENSIONS
from addon_porter.core.license import DEFAULT_LICENSE_HEADER
from addon_porter.errors import AllowlistError
from addon_porter.utils.console import log_warning

TOOL_SECTION = "addon_porter"

_PATH_KEYS = ("source_root", "output_root", "host_root", "addons_file")


class PortConfig(BaseModel):
  """
  Configuration for one porting run.
  """

  source_root: Path = Field(Path("upstream"), description="Checkout of the upstream addon collection.")
  output_root: Path = Field(Path("."), description="Directory receiving addons/, libraries/, etc.")
  host_root: Path = Field(Path(".."), description="Host source tree containing components/<name>/<name>.css.")
  addons: List[str] = Field(default_factory=list, description="Ordered addon allow-list.")
  addons_file: Optional[Path] = Field(None, description="JSON file holding the addon allow-list.")
  asset_extensions: List[str] = Field(
    default_factory=lambda: list(DEFAULT_ASSET_EXTENSIONS),
    description="File extensions imported as static assets.",
  )
  license_header: str = Field(DEFAULT_LICENSE_HEADER, description="Header prepended to unlicensed .js/.css files.")
  clean_output: bool = Field(True, description="Remove stale output directories before writing.")
  upstream_url: Optional[str] = Field(None, description="Git URL to clone into source_root before porting.")
  upstream_branch: Optional[str] = Field(None, description="Branch to clone.")

  @field_validator("asset_extensions")
  @classmethod
  def normalize_extensions(cls, v: List[str]) -> List[str]:
    """
    Lower-cases extensions and ensures each has a leading dot.

    Args:
        v (List[str]): Raw extensions (e.g. ``["SVG", ".png"]``).

    Returns:
        List[str]: Normalized extensions (e.g. ``[".svg", ".png"]``).
    """
    cleaned = []
    for ext in v:
      ext = ext.strip().lower()
      if not ext:
        continue
      cleaned.append(ext if ext.startswith(".") else f".{ext}")
    return cleaned

  @field_validator("addons")
  @classmethod
  def validate_addons(cls, v: List[str]) -> List[str]:
    """
    Rejects empty identifiers and drops duplicates, keeping first occurrence.
    """
    for addon in v:
      if not addon or not addon.strip():
        raise ValueError("Addon identifiers must be non-empty strings")
    return list(dict.fromkeys(a.strip() for a in v))

  def resolve_addons(self) -> List[str]:
    """
    Returns the allow-list, from `addons` or else from `addons_file`.

    Raises:
        AllowlistError: If neither source yields a list.
    """
    if self.addons:
      return list(self.addons)
    if self.addons_file:
      return load_allowlist(self.addons_file)
    raise AllowlistError("No addon allow-list configured (set 'addons' or 'addons_file')")

  @classmethod
  def load(
    cls,
    source_root: Optional[Path] = None,
    output_root: Optional[Path] = None,
    host_root: Optional[Path] = None,
    addons_file: Optional[Path] = None,
    clean_output: Optional[bool] = None,
    upstream_url: Optional[str] = None,
    upstream_branch: Optional[str] = None,
    search_path: Optional[Path] = None,
  ) -> "PortConfig":
    """
    Loads configuration from pyproject.toml and overrides with CLI arguments.

    Paths found in TOML are resolved against the directory holding the TOML file.

    Args:
        source_root: Override for the upstream checkout directory.
        output_root: Override for the output directory.
        host_root: Override for the host source tree.
        addons_file: Override for the allow-list file.
        clean_output: Override for output cleaning.
        upstream_url: Override for the clone URL.
        upstream_branch: Override for the clone branch.
        search_path: Directory to start searching for TOML config.

    Returns:
        PortConfig: The fully resolved configuration object.
    """
    start_dir = search_path or Path.cwd()
    toml_config, toml_dir = _load_toml_settings(start_dir)

    settings: Dict[str, Any] = {}
    for key, value in toml_config.items():
      if key in _PATH_KEYS and value is not None:
        path = Path(value)
        settings[key] = (toml_dir / path).resolve() if toml_dir and not path.is_absolute() else path
      else:
        settings[key] = value

    overrides = {
      "source_root": source_root,
      "output_root": output_root,
      "host_root": host_root,
      "addons_file": addons_file,
      "clean_output": clean_output,
      "upstream_url": upstream_url,
      "upstream_branch": upstream_branch,
    }
    for key, value in overrides.items():
      if value is not None:
        settings[key] = value

    if addons_file is not None:
      # An explicit allow-list file wins over inline TOML addons.
      settings.pop("addons", None)

    return cls(**settings)


def load_allowlist(path: Path) -> List[str]:
  """
  Reads an addon allow-list: a JSON array of addon identifier strings.

  Args:
      path (Path): Location of the list (e.g. ``addons.json``).

  Returns:
      List[str]: Identifiers in file order, duplicates removed.

  Raises:
      AllowlistError: If the file is missing, not JSON, or not a list of strings.
  """
  if not path.is_file():
    raise AllowlistError("Addon allow-list not found", path=str(path))
  try:
    with open(path, "rt", encoding="utf-8") as f:
      data = json.load(f)
  except json.JSONDecodeError as e:
    raise AllowlistError(f"Invalid JSON: {e}", path=str(path)) from e

  if not isinstance(data, list) or not all(isinstance(item, str) and item for item in data):
    raise AllowlistError("Allow-list must be a JSON array of addon identifiers", path=str(path))
  return list(dict.fromkeys(data))


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Searches the start directory and its parents for 'pyproject.toml' and extracts config.

  Args:
      start_path (Path): Directory to start search from.

  Returns:
      Tuple[Dict, Optional[Path]]: The config dict and the directory it was found in.
  """
  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.exists() and toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except tomllib.TOMLDecodeError as e:
        log_warning(f"Ignoring unreadable [path]{toml_path}[/path]: {escape(str(e))}")
        return {}, None

      tool_section = data.get("tool", {})
      return tool_section.get(TOOL_SECTION, {}), parent

  return {}, None
