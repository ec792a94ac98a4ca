"""
Scan Command Handler.

Implements `addon-porter scan`: reports, per script, the idioms the porting
pipeline would act on, without writing anything.
"""

from pathlib import Path
from typing import Dict, List

from rich.markup import escape
from rich.table import Table

from addon_porter.core.extractor import (
  extract_class_markers,
  extract_dynamic_loads,
  extract_library_imports,
  find_dynamic_path_sites,
)
from addon_porter.errors import MalformedMarkerError
from addon_porter.utils.console import console, log_error, log_info, log_warning


def scan_text(text: str, path: str = "") -> Dict[str, List[str]]:
  """
  Extracts every recognized idiom from one script.

  Args:
      text: Script contents.
      path: Path used in error diagnostics.

  Returns:
      Dict[str, List[str]]: Keys ``libraries``, ``dynamic_loads``, ``markers``, ``dynamic_paths``.

  Raises:
      MalformedMarkerError: If a FIXCLASS token fails to decompose.
  """
  return {
    "libraries": [m.filename for m in extract_library_imports(text)],
    "dynamic_loads": [m.filename for m in extract_dynamic_loads(text)],
    "markers": [m.generated_class for m in extract_class_markers(text, path=path)],
    "dynamic_paths": [site.expression for site in find_dynamic_path_sites(text)],
  }


def handle_scan(path: Path) -> int:
  """
  Handles the 'scan' command.

  Args:
      path: A script or a directory searched recursively for ``.js`` files.

  Returns:
      int: Exit code (0 for success, 1 for failure).
  """
  if not path.exists():
    log_error(f"Input not found: {path}")
    return 1

  files = [path] if path.is_file() else sorted(path.rglob("*.js"))
  if not files:
    log_warning(f"No .js files found in {path}")
    return 0

  log_info(f"Scanning {len(files)} scripts from {path}...")

  table = Table(title="Addon Idioms")
  table.add_column("File", style="cyan")
  table.add_column("Libraries")
  table.add_column("Dynamic Loads")
  table.add_column("Class Markers")
  table.add_column("Dynamic Paths", justify="right")

  for js_file in files:
    rel = js_file.name if path.is_file() else js_file.relative_to(path).as_posix()
    try:
      found = scan_text(js_file.read_text(encoding="utf-8"), path=rel)
    except MalformedMarkerError as e:
      log_error(escape(str(e)))
      return 1
    except (UnicodeDecodeError, OSError) as e:
      log_error(f"Cannot read [path]{escape(rel)}[/path]: {escape(str(e))}")
      return 1

    if not any(found.values()):
      continue
    table.add_row(
      rel,
      escape(", ".join(found["libraries"])),
      escape(", ".join(found["dynamic_loads"])),
      escape(", ".join(found["markers"])),
      str(len(found["dynamic_paths"])),
    )

  console.print(table)
  return 0
