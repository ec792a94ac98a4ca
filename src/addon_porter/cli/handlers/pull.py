"""
Pull Command Handler.

Implements `addon-porter pull`:
1. Configuration loading (pyproject.toml + CLI overrides).
2. Optional shallow clone of the upstream collection.
3. Pipeline execution via `PortEngine`.
4. Trace output and summary reporting.
"""

import json
import subprocess
from pathlib import Path
from typing import Optional

from rich.markup import escape
from rich.table import Table

from addon_porter.config import PortConfig
from addon_porter.core.engine import PortEngine
from addon_porter.core.models import PortResult
from addon_porter.core.staging import clone_upstream
from addon_porter.errors import PortError
from addon_porter.utils.console import console, log_error, log_info


def handle_pull(
  source: Optional[Path],
  out: Optional[Path],
  host: Optional[Path],
  addons_file: Optional[Path],
  clone_url: Optional[str] = None,
  branch: Optional[str] = None,
  clean: Optional[bool] = None,
  json_trace_path: Optional[Path] = None,
  search_path: Optional[Path] = None,
) -> int:
  """
  Handles the 'pull' command execution.

  Args:
      source: Override for the upstream checkout directory.
      out: Override for the output directory.
      host: Override for the host tree.
      addons_file: Override for the allow-list JSON file.
      clone_url: If set, the upstream is cloned into `source` first.
      branch: Branch to clone.
      clean: False to keep existing output directories.
      json_trace_path: Optional path to dump the execution trace JSON.
      search_path: Directory to start searching for pyproject.toml.

  Returns:
      int: Exit code (0 for success, 1 for failure).
  """
  try:
    config = PortConfig.load(
      source_root=source,
      output_root=out,
      host_root=host,
      addons_file=addons_file,
      clean_output=clean,
      upstream_url=clone_url,
      upstream_branch=branch,
      search_path=search_path,
    )
  except ValueError as e:
    log_error(f"Invalid configuration: {escape(str(e))}")
    return 1

  if config.upstream_url:
    try:
      clone_upstream(config.upstream_url, config.source_root, config.upstream_branch)
    except (subprocess.CalledProcessError, OSError) as e:
      detail = getattr(e, "stderr", None) or str(e)
      log_error(f"Clone failed: {escape(detail.strip())}")
      return 1

  if not config.source_root.is_dir():
    log_error(f"Upstream checkout not found: [path]{escape(str(config.source_root))}[/path]")
    return 1

  try:
    engine = PortEngine.from_config(config)
    result = engine.run()
  except PortError as e:
    log_error(escape(str(e)))
    return 1
  except OSError as e:
    log_error(f"I/O failure: {escape(str(e))}")
    return 1

  if json_trace_path:
    json_trace_path.parent.mkdir(parents=True, exist_ok=True)
    with open(json_trace_path, "wt", encoding="utf-8") as f:
      json.dump(result.trace_events, f, indent=2)
    log_info(f"Trace saved to [path]{json_trace_path}[/path]")

  _print_summary(result)
  return 0


def _print_summary(result: PortResult) -> None:
  """
  Renders a summary table of the run to the console.

  Args:
      result: The completed run.
  """
  table = Table(title=f"Upstream {result.version}")
  table.add_column("Output", style="cyan")
  table.add_column("Count", justify="right")

  scripts = sum(1 for p in result.files_written if p.endswith(".js"))
  table.add_row("Files written", str(len(result.files_written)))
  table.add_row("Scripts", str(scripts))
  table.add_row("Libraries", str(len(result.libraries)))
  table.add_row("Fixed rules", str(result.fixed_rules))
  table.add_row("Languages", str(len(result.languages)))

  console.print(table)
