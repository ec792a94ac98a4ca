"""
Error hierarchy for the addon porting pipeline.

Every failure raised by the pipeline derives from :class:`PortError`. All of them
are fatal: the engine does not attempt partial output, and the CLI reports the
diagnostic and exits with a non-zero status.
"""

from typing import Optional


class PortError(Exception):
  """
  Base class for all porting failures.

  Attributes:
      path (Optional[str]): The file the failure relates to, if known.
      addon (Optional[str]): The addon being processed when the failure occurred.
  """

  def __init__(self, message: str, path: Optional[str] = None, addon: Optional[str] = None) -> None:
    super().__init__(message)
    self.message = message
    self.path = path
    self.addon = addon

  def __str__(self) -> str:
    prefix = ""
    if self.addon:
      prefix += f"[addon: {self.addon}] "
    if self.path:
      prefix += f"[{self.path}] "
    return f"{prefix}{self.message}"


class MissingLibraryError(PortError):
  """A shared library referenced by an addon is absent from the source tree."""


class MissingStylesheetError(PortError):
  """A stylesheet named by class markers (or by an ``@import``) does not exist."""


class UndefinedVariableError(PortError):
  """A stylesheet uses a ``$variable`` that was never defined."""


class MalformedMarkerError(PortError):
  """
  A ``FIXCLASS`` token does not decompose into ``<file>_<class>_<hash>``.

  Attributes:
      token (str): The raw token that failed to decompose.
  """

  def __init__(self, token: str, path: Optional[str] = None, addon: Optional[str] = None) -> None:
    super().__init__(f"Malformed FIXCLASS marker: '{token}'", path=path, addon=addon)
    self.token = token


class UnresolvedAssetPathError(PortError):
  """A lookup was made for a path that has no entry in the asset table."""


class CatalogError(PortError):
  """A localization catalog could not be parsed."""


class ManifestError(PortError):
  """The upstream manifest is missing or lacks a version name."""


class AllowlistError(PortError):
  """The addon allow-list is missing or is not a list of identifiers."""


class UnreadableFileError(PortError):
  """A source file could not be read or is not valid UTF-8 text."""
