"""
Orchestration Engine for Porting an Addon Collection.

The `PortEngine` drives one complete run:

1.  **Staging**: stale output directories are removed (optional).
2.  **Per addon** (allow-list order), **per file** (sorted):
    - Scripts: shared libraries referenced by static imports or dynamic loads are
      copied; class markers are collected; dynamic path expressions are rewritten
      into static imports.
    - ``.js`` / ``.css`` files receive a license header if they lack one.
    - Other files are copied byte-for-byte.
    - Once all of an addon's scripts are read, its class markers are fixed
      against the host stylesheets.
3.  **Fixed stylesheet**: accumulated rules are written to ``fix-hardcoded-classes.css``.
4.  **Localization**: catalogs for allow-listed addons are minimized and copied.
5.  **Metadata**: ``upstream-meta.json`` records the version and languages.

Any `PortError` aborts the run. The engine never writes a partial metadata file.
"""

from typing import Iterable, List, Optional, Sequence

from addon_porter.config import PortConfig
from addon_porter.core.css.fixer import ClassFixer, group_markers
from addon_porter.core.extractor import (
  extract_class_markers,
  extract_dynamic_loads,
  extract_library_imports,
)
from addon_porter.core.import_rewriter import ImportRewriter
from addon_porter.core.l10n import L10N_DIR, LocalizationCollector, read_upstream_version, write_metadata
from addon_porter.core.libraries import LIBRARIES_DIR, LibraryResolver
from addon_porter.core.license import DEFAULT_LICENSE_HEADER, needs_license, stamp_license
from addon_porter.core.models import ClassMarker, FixedStylesheet, LibraryReference, PortResult, SourceUnit
from addon_porter.core.staging import DiskTree, OutputTree, SourceTree
from addon_porter.core.tracer import get_tracer, reset_tracer
from addon_porter.enums import ReferenceKind, UnitKind
from addon_porter.errors import PortError, UnreadableFileError
from addon_porter.utils.console import log_info, log_success

ADDONS_DIR = "addons"
FIXED_CSS_FILE = "fix-hardcoded-classes.css"
STAGED_DIRS = (ADDONS_DIR, L10N_DIR, LIBRARIES_DIR)


class PortEngine:
  """
  Runs the porting pipeline over a source tree into an output tree.

  Attributes:
      source (SourceTree): Upstream collection (``addons/``, ``libraries/``, ...).
      host (SourceTree): Host tree holding ``components/<name>/<name>.css``.
      output (OutputTree): Destination tree.
      addons (List[str]): Allow-list; defines iteration order and scope.
  """

  def __init__(
    self,
    source: SourceTree,
    host: SourceTree,
    output: OutputTree,
    addons: Sequence[str],
    asset_extensions: Optional[Iterable[str]] = None,
    license_header: str = DEFAULT_LICENSE_HEADER,
    clean_output: bool = True,
  ) -> None:
    self.source = source
    self.host = host
    self.output = output
    self.addons = list(addons)
    self.license_header = license_header
    self.clean_output = clean_output

    self.accumulator = FixedStylesheet()
    self.resolver = LibraryResolver(source, output)
    self.rewriter = ImportRewriter(source, asset_extensions)
    self.fixer = ClassFixer(host, self.accumulator)
    self.files_written: List[str] = []

  @classmethod
  def from_config(cls, config: PortConfig) -> "PortEngine":
    """
    Builds an engine over on-disk trees described by a `PortConfig`.
    """
    return cls(
      source=DiskTree(config.source_root),
      host=DiskTree(config.host_root),
      output=DiskTree(config.output_root),
      addons=config.resolve_addons(),
      asset_extensions=config.asset_extensions,
      license_header=config.license_header,
      clean_output=config.clean_output,
    )

  def run(self) -> PortResult:
    """
    Executes the full pipeline.

    Returns:
        PortResult: Summary of what was written.

    Raises:
        PortError: On any missing dependency or malformed input.
    """
    reset_tracer()
    tracer = get_tracer()

    if self.clean_output:
      for directory in STAGED_DIRS:
        self.output.remove(directory)

    log_info(f"Porting {len(self.addons)} addons")
    for addon in self.addons:
      tracer.start_phase(f"Addon: {addon}")
      try:
        self.port_addon(addon)
      except PortError as e:
        if e.addon is None:
          e.addon = addon
        raise
      finally:
        tracer.end_phase()

    self._write(FIXED_CSS_FILE, self.accumulator.text)

    tracer.start_phase("Localization")
    collector = LocalizationCollector(self.source, self.output)
    languages = collector.collect(self.addons)
    tracer.end_phase()

    version = read_upstream_version(self.source)
    write_metadata(self.output, version, languages)

    log_success(
      f"Ported {len(self.addons)} addons, {len(self.resolver.resolved)} libraries, "
      f"{self.accumulator.rule_count} fixed rules, {len(languages)} languages (upstream {version})"
    )
    return PortResult(
      files_written=list(self.files_written),
      libraries=list(self.resolver.resolved),
      languages=languages,
      version=version,
      fixed_css=self.accumulator.text,
      fixed_rules=self.accumulator.rule_count,
      trace_events=tracer.export(),
    )

  def port_addon(self, addon: str) -> None:
    """
    Ports every file of one addon, then fixes its class markers.

    Raises:
        PortError: If the addon directory does not exist in the source tree.
    """
    addon_dir = f"{ADDONS_DIR}/{addon}"
    if not self.source.is_dir(addon_dir):
      raise PortError("Addon not found in source tree", path=addon_dir, addon=addon)

    markers: List[ClassMarker] = []
    for rel in self.source.walk(addon_dir):
      path = f"{addon_dir}/{rel}"
      markers.extend(self.port_file(path))

    if markers:
      self.fixer.fix(group_markers(markers))

  def port_file(self, path: str) -> List[ClassMarker]:
    """
    Ports a single file.

    Returns:
        List[ClassMarker]: Class markers found in the file (scripts only).

    Raises:
        UnreadableFileError: If the file cannot be read or is not UTF-8 text.
    """
    if UnitKind.from_path(path) == UnitKind.OTHER:
      self.output.write_bytes(path, self._read(path, binary=True))
      self.files_written.append(path)
      return []

    unit = SourceUnit.from_text(path, self._read(path))
    markers: List[ClassMarker] = []

    if unit.kind == UnitKind.SCRIPT:
      self.resolver.resolve_all(library_references(unit.text))
      markers = [m.marker for m in extract_class_markers(unit.text, path=path)]
      self.rewriter.rewrite(unit)

    if needs_license(path):
      unit.text = stamp_license(unit.text, self.license_header, path=path)

    self._write(path, unit.text)
    return markers

  def _read(self, path: str, binary: bool = False):
    try:
      if binary:
        return self.source.read_bytes(path)
      return self.source.read_text(path)
    except (UnicodeDecodeError, OSError) as e:
      raise UnreadableFileError(f"Cannot read file: {e}", path=path) from e

  def _write(self, path: str, text: str) -> None:
    self.output.write_text(path, text)
    self.files_written.append(path)


def library_references(text: str) -> List[LibraryReference]:
  """
  Collects library references from static imports, then dynamic loads.
  """
  refs = [LibraryReference(m.filename, ReferenceKind.STATIC_IMPORT) for m in extract_library_imports(text)]
  refs += [LibraryReference(m.filename, ReferenceKind.DYNAMIC_LOAD) for m in extract_dynamic_loads(text)]
  return refs
