"""
Data structures shared by the porting pipeline.

Contains the per-file `SourceUnit`, the typed references produced by the
extractor, the per-stylesheet `ClassMapping`, the `FixedStylesheet`
accumulator and the `PortResult` returned by a pipeline run.
"""

import posixpath
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from pydantic import BaseModel, Field

from addon_porter.enums import ReferenceKind, UnitKind
from addon_porter.errors import UnresolvedAssetPathError


@dataclass
class SourceUnit:
  """
  A single file moving through the pipeline.

  Attributes:
      path: POSIX path relative to the tree root (e.g. ``addons/foo/userscript.js``).
      text: The current file contents. Stages replace this in place.
      kind: Script, stylesheet or other.
  """

  path: str
  text: str
  kind: UnitKind = UnitKind.OTHER

  @classmethod
  def from_text(cls, path: str, text: str) -> "SourceUnit":
    return cls(path=path, text=text, kind=UnitKind.from_path(path))

  @property
  def directory(self) -> str:
    """The POSIX directory containing this unit."""
    return posixpath.dirname(self.path)

  @property
  def name(self) -> str:
    return posixpath.basename(self.path)


@dataclass(frozen=True)
class LibraryReference:
  """
  A reference to a shared library module. Identity is the filename alone.
  """

  filename: str
  kind: ReferenceKind = field(default=ReferenceKind.STATIC_IMPORT, compare=False)


@dataclass(frozen=True)
class ClassMarker:
  """
  One decomposed ``FIXCLASS:<file>_<class>_<hash>`` token.

  Attributes:
      source_file: Stylesheet name the class originates from (e.g. ``prompt``).
      original_class: Class name as written in the stylesheet (e.g. ``ok-button``).
      generated_class: The full hashed class name (e.g. ``prompt_ok-button_3QFdD``).
      hash: Trailing hash segment.
  """

  source_file: str
  original_class: str
  generated_class: str
  hash: str


class ClassMapping:
  """
  Mapping of original class names to generated class names for one stylesheet.

  Insertion order is preserved. A later marker for the same original class
  overwrites the earlier generated name.
  """

  def __init__(self, stylesheet: str) -> None:
    self.stylesheet = stylesheet
    self._classes: Dict[str, str] = {}

  def add(self, original_class: str, generated_class: str) -> None:
    self._classes[original_class] = generated_class

  def covers(self, classes: List[str]) -> bool:
    """
    Returns True if every class in `classes` has a generated equivalent.
    """
    return all(name in self._classes for name in classes)

  def get(self, original_class: str) -> Optional[str]:
    return self._classes.get(original_class)

  def items(self):
    return self._classes.items()

  def __contains__(self, original_class: object) -> bool:
    return original_class in self._classes

  def __iter__(self) -> Iterator[str]:
    return iter(self._classes)

  def __len__(self) -> int:
    return len(self._classes)

  def __eq__(self, other: object) -> bool:
    if isinstance(other, ClassMapping):
      return self.stylesheet == other.stylesheet and self._classes == other._classes
    if isinstance(other, dict):
      return self._classes == other
    return NotImplemented

  def __repr__(self) -> str:
    return f"ClassMapping({self.stylesheet!r}, {self._classes!r})"


class FixedStylesheet:
  """
  Append-only buffer of generated CSS rules for one pipeline run.

  Created once by the engine, passed to every `ClassFixer`, and flushed to a
  single output file at the end of the run.
  """

  BANNER = "/* generated by addon-porter */\n"

  def __init__(self) -> None:
    self._chunks: List[str] = [self.BANNER]
    self.rule_count = 0

  def append(self, rule_text: str) -> None:
    self._chunks.append(rule_text)
    self.rule_count += 1

  @property
  def text(self) -> str:
    return "".join(self._chunks)


@dataclass
class AssetTable:
  """
  The lookup table synthesized for one rewritten script.

  Mirrors the `_twGetAsset` function emitted into the script: each entry maps a
  literal path (``"/icon.svg"``) to the binding name imported in the header.
  """

  entries: Dict[str, str] = field(default_factory=dict)
  assets: List[str] = field(default_factory=list)
  libraries: List[str] = field(default_factory=list)

  def resolve(self, path: str) -> str:
    """
    Returns the binding name for `path`.

    Raises:
        UnresolvedAssetPathError: If `path` has no entry.
    """
    if path not in self.entries:
      raise UnresolvedAssetPathError(f"Unknown asset: {path}")
    return self.entries[path]

  def __contains__(self, path: object) -> bool:
    return path in self.entries


class PortResult(BaseModel):
  """
  Summary of a completed pipeline run.
  """

  files_written: List[str] = Field(default_factory=list, description="Output paths written, in order.")
  libraries: List[str] = Field(default_factory=list, description="Shared libraries copied to the output.")
  languages: List[str] = Field(default_factory=list, description="Localization languages discovered.")
  version: str = Field(default="", description="Upstream version name from the manifest.")
  fixed_css: str = Field(default="", description="Contents of the generated class-fix stylesheet.")
  fixed_rules: int = Field(default=0, description="Number of rules in the class-fix stylesheet.")
  trace_events: List[Dict[str, Any]] = Field(default_factory=list, description="Execution trace log data.")
