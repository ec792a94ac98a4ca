"""
Shared Library Resolution.

Copies shared library modules referenced by addon code from the source tree's
``libraries/`` directory into the output tree, once per filename.
"""

from typing import List

from addon_porter.core.models import LibraryReference
from addon_porter.core.staging import OutputTree, SourceTree
from addon_porter.core.tracer import get_tracer
from addon_porter.errors import MissingLibraryError

LIBRARIES_DIR = "libraries"


class LibraryResolver:
  """
  Registers referenced libraries into the output library set.

  Resolution is idempotent: a filename already resolved is skipped, so the
  output holds exactly one copy whose content matches the source.

  Attributes:
      resolved (List[str]): Filenames copied so far, in resolution order.
  """

  def __init__(self, source: SourceTree, output: OutputTree) -> None:
    self.source = source
    self.output = output
    self.resolved: List[str] = []
    self._seen = set()

  def resolve(self, reference: LibraryReference) -> bool:
    """
    Copies one library into the output tree.

    Args:
        reference: The library to copy.

    Returns:
        bool: True if the library was copied, False if it had already been resolved.

    Raises:
        MissingLibraryError: If the library does not exist in the source tree.
    """
    filename = reference.filename
    if filename in self._seen:
      return False

    path = f"{LIBRARIES_DIR}/{filename}"
    if not self.source.exists(path) or self.source.is_dir(path):
      raise MissingLibraryError(f"Shared library not found: {filename}", path=path)

    self.output.write_bytes(path, self.source.read_bytes(path))
    self._seen.add(filename)
    self.resolved.append(filename)
    get_tracer().log_library(filename, reference.kind.value)
    return True

  def resolve_all(self, references: List[LibraryReference]) -> int:
    """
    Resolves a batch of references.

    Returns:
        int: Number of libraries newly copied.
    """
    return sum(1 for ref in references if self.resolve(ref))
