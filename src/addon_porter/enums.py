"""
Enumerations for addon-porter.

Defines the categories used to route files through the pipeline and to tag
extracted references.
"""

from enum import Enum


class UnitKind(str, Enum):
  """
  Category of a source unit, derived from its file extension.
  """

  SCRIPT = "script"
  STYLESHEET = "stylesheet"
  OTHER = "other"

  @classmethod
  def from_path(cls, path: str) -> "UnitKind":
    """
    Classifies a path by extension.

    Args:
        path (str): A relative or absolute file path.

    Returns:
        UnitKind: SCRIPT for ``.js``, STYLESHEET for ``.css``, OTHER otherwise.
    """
    lowered = path.lower()
    if lowered.endswith(".js"):
      return cls.SCRIPT
    if lowered.endswith(".css"):
      return cls.STYLESHEET
    return cls.OTHER


class ReferenceKind(str, Enum):
  """
  How a shared library was referenced by addon code.
  """

  STATIC_IMPORT = "static_import"  # import x from "../../libraries/x.js"
  DYNAMIC_LOAD = "dynamic_load"  # addon.self.lib + "/x.js"


class PatternKind(str, Enum):
  """
  The idiom families recognized by the pattern extractor.
  """

  LIBRARY_IMPORT = "library_import"
  CLASS_MARKER = "class_marker"
  DYNAMIC_LOAD = "dynamic_load"
