"""
CLI Command Handlers Facade.

Re-exports handlers from `addon_porter.cli.handlers` so the dispatcher (and
tests patching it) have a single import location.
"""

from addon_porter.cli.handlers.pull import handle_pull, _print_summary
from addon_porter.cli.handlers.scan import handle_scan, scan_text

__all__ = [
  "_print_summary",
  "handle_pull",
  "handle_scan",
  "scan_text",
]
