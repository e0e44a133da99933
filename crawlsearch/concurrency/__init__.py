"""
Concurrency primitives: reader/writer lock and worker pool.
"""

from .rwlock import ReadWriteLock, NullLock
from .work_queue import WorkQueue, DEFAULT_THREADS

__all__ = ['ReadWriteLock', 'NullLock', 'WorkQueue', 'DEFAULT_THREADS']
