"""
Reader/writer lock used to guard shared index and result structures.
"""

import threading
from typing import Optional


class _LockView:
    """One side (read or write) of a ReadWriteLock."""

    def __init__(self, acquire, release):
        self._acquire = acquire
        self._release = release

    def acquire(self):
        self._acquire()

    def release(self):
        self._release()

    def __enter__(self):
        self._acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._release()


class ReadWriteLock:
    """
    Allows many concurrent readers or a single writer.

    The thread holding the write lock may acquire the write lock again and may
    also acquire the read lock, so mutators can call other mutators or readers.
    A reader may not upgrade to a writer.
    """

    def __init__(self):
        self._condition = threading.Condition(threading.Lock())
        self._readers = 0
        self._writers = 0
        self._owner: Optional[int] = None

        self._read_view = _LockView(self._acquire_read, self._release_read)
        self._write_view = _LockView(self._acquire_write, self._release_write)

    def read_lock(self) -> _LockView:
        """Get the read side of this lock."""
        return self._read_view

    def write_lock(self) -> _LockView:
        """Get the write side of this lock."""
        return self._write_view

    @property
    def readers(self) -> int:
        with self._condition:
            return self._readers

    @property
    def writers(self) -> int:
        with self._condition:
            return self._writers

    def is_write_owner(self) -> bool:
        """Check whether the calling thread holds the write lock."""
        with self._condition:
            return self._owner == threading.get_ident()

    def _acquire_read(self):
        me = threading.get_ident()
        with self._condition:
            while self._writers > 0 and self._owner != me:
                self._condition.wait()
            self._readers += 1

    def _release_read(self):
        with self._condition:
            if self._readers <= 0:
                raise RuntimeError("Cannot release a read lock that is not held")
            self._readers -= 1
            if self._readers == 0:
                self._condition.notify_all()

    def _acquire_write(self):
        me = threading.get_ident()
        with self._condition:
            # the owner re-enters even while its own read locks are held
            while self._owner != me and (self._readers > 0 or self._writers > 0):
                self._condition.wait()
            self._writers += 1
            self._owner = me

    def _release_write(self):
        with self._condition:
            if self._owner != threading.get_ident():
                raise RuntimeError("Cannot release a write lock held by another thread")
            self._writers -= 1
            if self._writers == 0:
                self._owner = None
                self._condition.notify_all()


class NullLock:
    """Lock policy with the ReadWriteLock interface and no synchronization."""

    def __init__(self):
        view = _LockView(_noop, _noop)
        self._read_view = view
        self._write_view = view

    def read_lock(self) -> _LockView:
        return self._read_view

    def write_lock(self) -> _LockView:
        return self._write_view


def _noop():
    pass
