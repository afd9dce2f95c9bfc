#!/usr/bin/env python3
"""
Run ledger for the word count coordinator
Tracks the run state machine and the lifecycle of every work unit
"""

import logging
import threading
import time
from enum import Enum
from dataclasses import dataclass
from typing import Dict, Optional

from wikicount.common.errors import WordCountError

logger = logging.getLogger(__name__)


class RunState(Enum):
    """State of a word count run"""
    COLLECTING = "collecting"
    COUNTING = "counting"
    DONE = "done"
    FAILED = "failed"


class UnitStatus(Enum):
    """Status of an individual work unit"""
    PENDING = "pending"
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    FAILED = "failed"


# COUNTING overlaps with reading: the run stays in it until every unit is merged
_TRANSITIONS = {
    RunState.COLLECTING: {RunState.COUNTING, RunState.FAILED},
    RunState.COUNTING: {RunState.DONE, RunState.FAILED},
    RunState.DONE: set(),
    RunState.FAILED: set(),
}


@dataclass
class UnitRecord:
    """Bookkeeping for one work unit"""
    unit_id: int
    size: int
    status: UnitStatus = UnitStatus.PENDING
    execution_time_ms: int = 0


class RunLedger:
    """Single source of truth for run state, unit status and document totals"""

    def __init__(self):
        self.state = RunState.COLLECTING
        self.units: Dict[int, UnitRecord] = {}
        self.documents_counted = 0
        self.start_time = time.time()
        self.end_time = 0.0
        self.error_message = ""
        self.lock = threading.Lock()

    def transition(self, new_state: RunState):
        """Move the run to new_state, rejecting transitions the state machine forbids"""
        with self.lock:
            self._transition(new_state)

    def _transition(self, new_state: RunState):
        if new_state == self.state:
            return
        if new_state not in _TRANSITIONS[self.state]:
            raise WordCountError(f"Invalid run transition {self.state.value} -> {new_state.value}")
        logger.info(f"Run state {self.state.value} -> {new_state.value}")
        self.state = new_state
        if new_state in (RunState.DONE, RunState.FAILED):
            self.end_time = time.time()

    def start_counting(self):
        """Enter COUNTING; a no-op once the run is already counting"""
        with self.lock:
            if self.state == RunState.COLLECTING:
                self._transition(RunState.COUNTING)

    def register_unit(self, unit_id: int, size: int) -> UnitRecord:
        """Record a freshly partitioned unit"""
        with self.lock:
            if unit_id in self.units:
                raise WordCountError(f"Unit {unit_id} registered twice")
            record = UnitRecord(unit_id=unit_id, size=size)
            self.units[unit_id] = record
            return record

    def mark_assigned(self, unit_id: int):
        """Mark a unit as handed to a worker"""
        with self.lock:
            record = self._get(unit_id)
            if record.status != UnitStatus.PENDING:
                raise WordCountError(f"Unit {unit_id} dispatched twice")
            record.status = UnitStatus.ASSIGNED

    def mark_completed(self, unit_id: int, execution_time_ms: int = 0):
        """Mark a unit as counted and merged; adds its documents to the total"""
        with self.lock:
            record = self._get(unit_id)
            if record.status == UnitStatus.COMPLETED:
                raise WordCountError(f"Unit {unit_id} counted twice")
            record.status = UnitStatus.COMPLETED
            record.execution_time_ms = execution_time_ms
            self.documents_counted += record.size

    def mark_failed(self, error_msg: str, unit_id: Optional[int] = None):
        """Fail the run, and the unit that caused it if known"""
        with self.lock:
            if unit_id is not None and unit_id in self.units:
                self.units[unit_id].status = UnitStatus.FAILED
            self.error_message = error_msg
            if self.state not in (RunState.DONE, RunState.FAILED):
                self._transition(RunState.FAILED)
            logger.error(f"Run failed: {error_msg}")

    def mark_done(self):
        """Finish the run; every registered unit must be completed"""
        with self.lock:
            pending = [u.unit_id for u in self.units.values() if u.status != UnitStatus.COMPLETED]
            if pending:
                raise WordCountError(f"Cannot finish run - units not completed: {pending[:10]}")
            self._transition(RunState.DONE)

    def _get(self, unit_id: int) -> UnitRecord:
        record = self.units.get(unit_id)
        if record is None:
            raise WordCountError(f"Unknown unit {unit_id}")
        return record

    def get_status(self) -> Dict:
        """Current run status with progress"""
        with self.lock:
            total = len(self.units)
            completed = sum(1 for u in self.units.values() if u.status == UnitStatus.COMPLETED)
            progress = int((completed / total * 100)) if total > 0 else 0
            return {
                'state': self.state.value,
                'progress': progress,
                'units_completed': completed,
                'units_total': total,
                'documents_counted': self.documents_counted,
                'error_message': self.error_message,
            }
