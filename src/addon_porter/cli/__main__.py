"""
Main Entry Point for the addon-porter CLI.

This module handles argument parsing and dispatches to specific command
handlers defined in `addon_porter.cli.commands`.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from addon_porter import __version__
from addon_porter.cli import commands


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Parses arguments via argparse and calls the appropriate handler function.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, non-zero for failure).
  """
  parser = argparse.ArgumentParser(description="addon-porter: Port an addon collection for static bundling")
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

  subparsers = parser.add_subparsers(dest="command", required=True)

  # --- Command: PULL ---
  cmd_pull = subparsers.add_parser("pull", help="Port the allow-listed addons into the output tree")
  cmd_pull.add_argument("--source", type=Path, default=None, help="Upstream checkout (default: from toml)")
  cmd_pull.add_argument("--out", type=Path, default=None, help="Output directory (default: from toml)")
  cmd_pull.add_argument("--host", type=Path, default=None, help="Host tree with components/ (default: from toml)")
  cmd_pull.add_argument("--addons", type=Path, default=None, help="JSON allow-list of addon ids")
  cmd_pull.add_argument("--clone", default=None, metavar="URL", help="Clone the upstream into --source first")
  cmd_pull.add_argument("--branch", default=None, help="Branch to clone")
  cmd_pull.add_argument(
    "--no-clean",
    dest="clean",
    action="store_false",
    default=None,
    help="Keep existing output directories instead of removing them",
  )
  cmd_pull.add_argument(
    "--json-trace", type=Path, default=None, help="Dump the full execution trace to a JSON file."
  )

  # --- Command: SCAN ---
  cmd_scan = subparsers.add_parser("scan", help="Report recognized idioms in scripts without porting")
  cmd_scan.add_argument("path", type=Path, help="Script file or directory")

  args = parser.parse_args(argv)

  if args.command == "pull":
    return commands.handle_pull(
      args.source,
      args.out,
      args.host,
      args.addons,
      clone_url=args.clone,
      branch=args.branch,
      clean=args.clean,
      json_trace_path=args.json_trace,
    )

  elif args.command == "scan":
    return commands.handle_scan(args.path)

  return 0


if __name__ == "__main__":
  sys.exit(main())
