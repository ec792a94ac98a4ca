"""
Port Trace Logger.

Records the step-by-step execution of a pipeline run:
1. Lifecycle Phases (per addon, localization, metadata).
2. Rewrite Events (library copied, rules fixed, imports synthesized, license stamped).
3. Warnings raised while rewriting.

The output is a list of event dictionaries suitable for JSON serialization.
"""

import time
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TraceEventType(str, Enum):
  PHASE_START = "phase_start"
  PHASE_END = "phase_end"
  LIBRARY_COPY = "library_copy"
  CLASS_FIX = "class_fix"
  IMPORT_REWRITE = "import_rewrite"
  LICENSE_STAMP = "license_stamp"
  CATALOG_WRITE = "catalog_write"
  WARNING = "warning"


@dataclass
class TraceEvent:
  id: str
  type: TraceEventType
  timestamp: float
  description: str
  parent_id: Optional[str] = None
  metadata: Dict[str, Any] = field(default_factory=dict)


class TraceLogger:
  """
  Records pipeline events. Phases nest; events attach to the innermost open phase.
  """

  def __init__(self):
    self._events: List[TraceEvent] = []
    self._active_phases: List[str] = []  # Stack of phase IDs

  def start_phase(self, name: str, description: str = "") -> str:
    """Starts a nested phase (e.g. 'Addon: editor-dark-mode'). Returns Phase ID."""
    phase_id = str(uuid.uuid4())
    parent = self._active_phases[-1] if self._active_phases else None

    self._events.append(
      TraceEvent(
        id=phase_id,
        type=TraceEventType.PHASE_START,
        timestamp=time.time(),
        description=name,
        parent_id=parent,
        metadata={"detail": description},
      )
    )
    self._active_phases.append(phase_id)
    return phase_id

  def end_phase(self):
    """Ends the current active phase."""
    if not self._active_phases:
      return

    phase_id = self._active_phases.pop()
    self._events.append(
      TraceEvent(
        id=str(uuid.uuid4()),
        type=TraceEventType.PHASE_END,
        timestamp=time.time(),
        description="End Phase",
        parent_id=phase_id,
      )
    )

  def log_library(self, filename: str, reference_kind: str):
    self._log_simple(TraceEventType.LIBRARY_COPY, f"Copied library {filename}", {"kind": reference_kind})

  def log_class_fix(self, stylesheet: str, selector: str, fixed_selector: str):
    self._log_simple(
      TraceEventType.CLASS_FIX,
      f"Fixed rule from {stylesheet}",
      {"before": selector, "after": fixed_selector},
    )

  def log_import_rewrite(self, path: str, assets: List[str], libraries: List[str], sites: int):
    self._log_simple(
      TraceEventType.IMPORT_REWRITE,
      f"Rewrote dynamic loads in {path}",
      {"assets": list(assets), "libraries": list(libraries), "sites": sites},
    )

  def log_license(self, path: str):
    self._log_simple(TraceEventType.LICENSE_STAMP, f"Stamped license on {path}", {})

  def log_catalog(self, language: str, addon: str):
    self._log_simple(TraceEventType.CATALOG_WRITE, f"Wrote catalog {language}/{addon}", {})

  def log_warning(self, message: str):
    self._log_simple(TraceEventType.WARNING, message, {"level": "warning"})

  def _log_simple(self, evt_type: TraceEventType, desc: str, meta: Dict[str, Any]):
    parent = self._active_phases[-1] if self._active_phases else None
    self._events.append(
      TraceEvent(
        id=str(uuid.uuid4()), type=evt_type, timestamp=time.time(), description=desc, parent_id=parent, metadata=meta
      )
    )

  def events_of(self, evt_type: TraceEventType) -> List[TraceEvent]:
    return [e for e in self._events if e.type == evt_type]

  def export(self) -> List[Dict[str, Any]]:
    """Returns list of dicts for JSON serialization."""
    return [asdict(e) for e in self._events]


_GLOBAL_TRACER = TraceLogger()


def get_tracer() -> TraceLogger:
  return _GLOBAL_TRACER


def reset_tracer():
  global _GLOBAL_TRACER
  _GLOBAL_TRACER = TraceLogger()
