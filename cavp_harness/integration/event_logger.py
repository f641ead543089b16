"""
Event Logger Module

Records everything the harness does while running vector files:
- Run start / completion with pass counts
- Passed and failed KAT cases
- Passed and failed Monte Carlo checkpoints
- Aborted runs and missing vector files

Events are typed, JSON-serializable and delivered to registered callbacks
as they happen. Console output is one such callback.
"""

import json
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..drivers.results import CaseFailure, FailureKind, RunMode, RunResult


EVENT_VERSION = "1.0"


# ============================================================================
# Event Types
# ============================================================================

class EventType(Enum):
    """Types of harness events that can be logged."""

    RUN_START = "run_start"
    RUN_COMPLETE = "run_complete"
    RUN_ABORTED = "run_aborted"
    FILE_NOT_FOUND = "file_not_found"

    # KAT events
    CASE_PASSED = "case_passed"
    CASE_FAILED = "case_failed"

    # Monte Carlo events
    CHECKPOINT_PASSED = "checkpoint_passed"
    CHECKPOINT_FAILED = "checkpoint_failed"


# ============================================================================
# Event Structure
# ============================================================================

@dataclass
class HarnessEvent:
    """A single harness event, tied to the vector file it came from."""
    event_type: EventType
    vector_file: str
    timestamp: int  # Unix timestamp
    details: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        """Serialize the event as compact JSON."""
        return json.dumps({
            'version': EVENT_VERSION,
            'type': self.event_type.value,
            'file': self.vector_file,
            'time': self.timestamp,
            'details': self.details,
        }, separators=(',', ':'))

    @classmethod
    def from_json(cls, data: str) -> 'HarnessEvent':
        """Parse an event produced by to_json()."""
        obj = json.loads(data)
        return cls(
            event_type=EventType(obj['type']),
            vector_file=obj['file'],
            timestamp=obj['time'],
            details=obj.get('details', {}),
        )

    def __str__(self) -> str:
        dt = datetime.fromtimestamp(self.timestamp)
        return (
            f"[{dt.strftime('%Y-%m-%d %H:%M:%S')}] "
            f"{self.event_type.value} | {self.vector_file}"
        )


def _failure_details(failure: CaseFailure) -> Dict[str, Any]:
    return {
        'index': failure.index,
        'kind': failure.kind.value,
        'expected': failure.expected,
        'actual': failure.actual,
        'detail': failure.detail,
    }


# ============================================================================
# Event Logger
# ============================================================================

class EventLogger:
    """
    In-memory event log for a harness run.

    Every event is stored in order and passed to each registered callback.
    """

    def __init__(self, callbacks: Optional[Sequence[Callable[[HarnessEvent], None]]] = None):
        self._events: List[HarnessEvent] = []
        self._callbacks: List[Callable[[HarnessEvent], None]] = list(callbacks or [])

    def _add_event(self, event: HarnessEvent) -> HarnessEvent:
        self._events.append(event)
        for callback in self._callbacks:
            callback(event)
        return event

    def _log(self, event_type: EventType, vector_file: str, **details) -> HarnessEvent:
        return self._add_event(HarnessEvent(
            event_type=event_type,
            vector_file=str(vector_file),
            timestamp=int(time.time()),
            details=details,
        ))

    def add_callback(self, callback: Callable[[HarnessEvent], None]) -> None:
        """Add a callback to be notified of new events."""
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[HarnessEvent], None]) -> None:
        """Remove a callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    # ========================================================================
    # Run Events
    # ========================================================================

    def log_run_start(self, vector_file: str, mode: RunMode) -> HarnessEvent:
        return self._log(EventType.RUN_START, vector_file, mode=mode.value)

    def log_run_complete(self, result: RunResult) -> HarnessEvent:
        """Log the final counts of a vector file run."""
        return self._log(
            EventType.RUN_COMPLETE,
            result.vector_file,
            mode=result.mode.value,
            tests_run=result.tests_run,
            failures=result.failures,
            passed=result.passed,
            aborted=result.aborted,
        )

    def log_run_aborted(self, vector_file: str, reason: str) -> HarnessEvent:
        return self._log(EventType.RUN_ABORTED, vector_file, reason=reason)

    def log_file_not_found(self, vector_file: str, searched: Sequence[str] = ()) -> HarnessEvent:
        return self._log(EventType.FILE_NOT_FOUND, vector_file, searched=list(searched))

    # ========================================================================
    # Case Events
    # ========================================================================

    def log_case_passed(self, vector_file: str, index: int) -> HarnessEvent:
        return self._log(EventType.CASE_PASSED, vector_file, index=index)

    def log_case_failed(self, vector_file: str, failure: CaseFailure) -> HarnessEvent:
        return self._log(EventType.CASE_FAILED, vector_file, **_failure_details(failure))

    def log_checkpoint_passed(self, vector_file: str, index: int, digest_hex: str) -> HarnessEvent:
        return self._log(EventType.CHECKPOINT_PASSED, vector_file, index=index, digest=digest_hex)

    def log_checkpoint_failed(self, vector_file: str, failure: CaseFailure) -> HarnessEvent:
        return self._log(EventType.CHECKPOINT_FAILED, vector_file, **_failure_details(failure))

    # ========================================================================
    # Retrieval
    # ========================================================================

    def get_all_events(self) -> List[HarnessEvent]:
        return list(self._events)

    def get_events_by_type(self, event_type: EventType) -> List[HarnessEvent]:
        """Get all events of a specific type."""
        return [e for e in self._events if e.event_type == event_type]

    def get_file_events(self, vector_file: str) -> List[HarnessEvent]:
        """Get all events recorded for one vector file."""
        return [e for e in self._events if e.vector_file == str(vector_file)]

    def print_log(self, last_n: Optional[int] = None) -> None:
        """Print the event log in a readable format."""
        events = self._events[-last_n:] if last_n else self._events

        print("\n" + "=" * 70)
        print("HARNESS EVENT LOG")
        print("=" * 70)

        for event in events:
            print(event)
            for k, v in event.details.items():
                print(f"    {k}: {v}")

        print("=" * 70)
        print(f"Total events: {len(self._events)}")
        print("=" * 70)

    def export_log(self) -> str:
        """Export all events as a JSON array."""
        return "[" + ",".join(e.to_json() for e in self._events) + "]"

    @classmethod
    def import_log(cls, json_str: str) -> 'EventLogger':
        """Rebuild a logger from export_log() output. Callbacks are not replayed."""
        logger = cls()
        for obj in json.loads(json_str):
            logger._events.append(HarnessEvent.from_json(json.dumps(obj)))
        return logger


# ============================================================================
# Console Output
# ============================================================================

def console_printer(event: HarnessEvent) -> None:
    """Print the human-readable diagnostic line(s) for an event."""
    d = event.details
    kind = event.event_type

    if kind == EventType.RUN_START:
        print(f"Processing file {event.vector_file} ...")
    elif kind == EventType.FILE_NOT_FOUND:
        print(f"Cannot locate file [{event.vector_file}]")
    elif kind == EventType.CASE_FAILED:
        if d['kind'] == FailureKind.MISMATCH.value:
            print(f"Failed test case #{d['index']}")
        else:
            print(f"Failed test case #{d['index']} ({d['kind']}: {d['detail']})")
    elif kind == EventType.CHECKPOINT_FAILED:
        if d['kind'] == FailureKind.MISMATCH.value:
            print(f"Checkpoint {d['index']} mismatch:")
            print(f"   expected => 0x{d['expected']}")
            print(f"   got      => 0x{d['actual']}")
        else:
            print(f"Checkpoint {d['index']} failed ({d['kind']}: {d['detail']})")
    elif kind == EventType.RUN_ABORTED:
        print(f"Run aborted: {d['reason']}")
    elif kind == EventType.RUN_COMPLETE:
        print(f"Tests passed: {d['passed']} / {d['tests_run']}")


# ============================================================================
# Convenience Functions
# ============================================================================

def create_event_logger(console: bool = True) -> EventLogger:
    """Create a new event logger, optionally printing to the console."""
    return EventLogger(callbacks=[console_printer] if console else None)
