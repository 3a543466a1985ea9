"""Execution Locks - Per-execution mutual exclusion and cancellation flags"""
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Set

from ..utils.logger import get_logger

logger = get_logger(__name__)


class _LockEntry:
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = threading.RLock()
        self.holders = 0


class ExecutionLockRegistry:
    """
    Re-entrant lock per execution ID
    
    start/resume/cancel and the advance loop run while holding the lock of
    their execution, so two transitions on the same execution never
    interleave. Entries are reference counted and dropped once no thread
    holds or waits on them.
    
    Cancellation is cooperative: request_cancel() raises a flag without
    taking the execution lock, and the advance loop polls it between steps.
    """
    
    def __init__(self):
        self._guard = threading.Lock()
        self._entries: Dict[str, _LockEntry] = {}
        self._cancel_requested: Set[str] = set()
    
    @contextmanager
    def hold(self, execution_id: str) -> Iterator[None]:
        """Hold the execution's lock for the duration of the block"""
        with self._guard:
            entry = self._entries.get(execution_id)
            if entry is None:
                entry = _LockEntry()
                self._entries[execution_id] = entry
            entry.holders += 1
        
        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    self._entries.pop(execution_id, None)
    
    def request_cancel(self, execution_id: str) -> None:
        with self._guard:
            self._cancel_requested.add(execution_id)
        logger.debug(f"Cancellation requested for {execution_id}", extra={"execution_id": execution_id})
    
    def cancel_requested(self, execution_id: str) -> bool:
        with self._guard:
            return execution_id in self._cancel_requested
    
    def clear_cancel(self, execution_id: str) -> None:
        with self._guard:
            self._cancel_requested.discard(execution_id)
    
    def active_count(self) -> int:
        """Number of executions with a live lock entry"""
        with self._guard:
            return len(self._entries)
