"""
Import session state, shared between the batch fetch driver and the coordinator.
"""

import uuid
from collections import deque
from enum import Enum
from typing import Optional

from child_sites.models.statement import Page


class ImportState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    FINISHED = "finished"
    CANCELLED = "cancelled"


TERMINAL_STATES = {ImportState.FINISHED, ImportState.CANCELLED}


class ImportSession:
    """One end-to-end import, from confirmation to finish or cancel.

    Counters are only written by the driver coroutine; the coordinator reads
    them and owns ``state``, ``elapsed_seconds`` and ``error``.
    """

    def __init__(self, import_id: Optional[str] = None):
        self.import_id = import_id or str(uuid.uuid4())
        self.total_results = 0
        self.retrieved = 0
        self.elapsed_seconds = 0
        self.state = ImportState.IDLE
        self.failed = False
        self.error: Optional[str] = None
        self.pending: deque[Page] = deque()
        self.in_flight = 0
        self.cleaned_up = False
        self.destination: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.state == ImportState.ACTIVE

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def __repr__(self) -> str:
        return f"ImportSession(import_id={self.import_id!r}, state={self.state.value!r}, retrieved={self.retrieved}/{self.total_results})"
