from .pull import handle_pull, _print_summary
from .scan import handle_scan, scan_text

__all__ = [
  "_print_summary",
  "handle_pull",
  "handle_scan",
  "scan_text",
]
