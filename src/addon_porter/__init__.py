"""
addon-porter Package.

Rewrites a community addon collection into a form a static bundler can consume:
shared libraries are relocated, hardcoded generated class names are backed by a
synthesized stylesheet, and runtime asset loads become static imports.

Usage
-----

.. code-block:: python

    import addon_porter as ap

    result = ap.port("ScratchAddons", out=".", host="..", addons=["editor-dark-mode"])
    print(result.version, result.languages)

Advanced Usage (in-memory trees)
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    from addon_porter import PortEngine
    from addon_porter.core.staging import MemoryTree

    engine = PortEngine(source=MemoryTree({...}), host=MemoryTree({...}), output=MemoryTree(), addons=["a"])
    res = engine.run()
"""

from pathlib import Path
from typing import List, Optional, Union

from addon_porter.config import PortConfig
from addon_porter.core.engine import PortEngine
from addon_porter.core.models import PortResult
from addon_porter.errors import PortError

__version__ = "0.1.0"


def port(
  source: Union[str, Path],
  out: Union[str, Path] = ".",
  host: Union[str, Path] = "..",
  addons: Optional[List[str]] = None,
  addons_file: Optional[Union[str, Path]] = None,
) -> PortResult:
  """
  Ports an upstream checkout on disk.

  Args:
      source: Upstream collection directory.
      out: Output directory.
      host: Host tree containing ``components/<name>/<name>.css``.
      addons: Ordered allow-list. Takes precedence over `addons_file`.
      addons_file: JSON allow-list file.

  Returns:
      PortResult: Summary of the run.

  Raises:
      PortError: If the run fails.
  """
  config = PortConfig(
    source_root=Path(source),
    output_root=Path(out),
    host_root=Path(host),
    addons=addons or [],
    addons_file=Path(addons_file) if addons_file else None,
  )
  return PortEngine.from_config(config).run()


__all__ = [
  "PortConfig",
  "PortEngine",
  "PortError",
  "PortResult",
  "port",
  "__version__",
]
