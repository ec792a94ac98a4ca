"""
Localization Catalogs and Upstream Metadata.

Copies per-language addon catalogs (``addons-l10n/<lang>/<addon>.json``) for
allow-listed addons, re-serialized in minimized form with key order preserved,
and records the upstream version and available languages in
``upstream-meta.json``.
"""

import json
from typing import Any, Dict, List, Sequence

from addon_porter.core.staging import OutputTree, SourceTree
from addon_porter.core.tracer import get_tracer
from addon_porter.errors import CatalogError, ManifestError

L10N_DIR = "addons-l10n"
MANIFEST_FILE = "manifest.json"
METADATA_FILE = "upstream-meta.json"


def minimize_json(data: Any) -> str:
  """
  Serializes without whitespace, keeping key order and non-ASCII characters.

  >>> minimize_json({"b": 2, "a": 1})
  '{"b":2,"a":1}'
  """
  return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


class LocalizationCollector:
  """
  Copies localization catalogs for a fixed list of addons.

  Attributes:
      catalogs (Dict[str, Dict[str, Any]]): language -> addon id -> parsed catalog.
  """

  def __init__(self, source: SourceTree, output: OutputTree) -> None:
    self.source = source
    self.output = output
    self.catalogs: Dict[str, Dict[str, Any]] = {}

  def languages(self) -> List[str]:
    """Language directories under ``addons-l10n``, sorted."""
    return [name for name in self.source.list_dir(L10N_DIR) if self.source.is_dir(f"{L10N_DIR}/{name}")]

  def collect(self, addons: Sequence[str]) -> List[str]:
    """
    Copies every available catalog for `addons`.

    A language with no catalog for any listed addon is still reported.
    Missing catalogs are skipped.

    Returns:
        List[str]: The languages found.

    Raises:
        CatalogError: If a catalog is not valid UTF-8 JSON.
    """
    languages = self.languages()
    for language in languages:
      group = self.catalogs.setdefault(language, {})
      for addon in addons:
        path = f"{L10N_DIR}/{language}/{addon}.json"
        if not self.source.exists(path):
          continue
        try:
          parsed = json.loads(self.source.read_text(path))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
          raise CatalogError(f"Invalid localization catalog: {e}", path=path, addon=addon) from e
        group[addon] = parsed
        self.output.write_text(path, minimize_json(parsed))
        get_tracer().log_catalog(language, addon)
    return languages


def read_upstream_version(source: SourceTree) -> str:
  """
  Reads ``version_name`` from the upstream manifest.

  Raises:
      ManifestError: If the manifest is missing, malformed, or lacks the field.
  """
  if not source.exists(MANIFEST_FILE):
    raise ManifestError("Upstream manifest not found", path=MANIFEST_FILE)
  try:
    manifest = json.loads(source.read_text(MANIFEST_FILE))
  except (json.JSONDecodeError, UnicodeDecodeError) as e:
    raise ManifestError(f"Invalid manifest JSON: {e}", path=MANIFEST_FILE) from e
  version = manifest.get("version_name") if isinstance(manifest, dict) else None
  if not isinstance(version, str):
    raise ManifestError("Manifest has no 'version_name'", path=MANIFEST_FILE)
  return version


def write_metadata(output: OutputTree, version: str, languages: Sequence[str]) -> str:
  """
  Writes ``upstream-meta.json`` as ``{"version": ..., "languages": [...]}``.

  Returns:
      str: The serialized metadata.
  """
  text = minimize_json({"version": version, "languages": list(languages)})
  output.write_text(METADATA_FILE, text)
  return text
