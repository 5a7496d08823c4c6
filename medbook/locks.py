"""
Per-provider serialization for check-then-act sequences.

Requests for the same provider run one at a time inside a process; different
providers never wait on each other. Cross-process exclusion comes from the
provider row lock and the conditional slot claim in the repositories.
"""

import logging
from contextlib import contextmanager
from threading import Lock

from sqlalchemy.orm import Session

from .errors import NotFoundError
from .models import Provider

logger = logging.getLogger(__name__)

# Format: {provider_id: [Lock, holders_and_waiters]}
# An entry lives only while some request holds or waits on it
provider_locks: dict[int, list] = {}
registry_lock = Lock()


@contextmanager
def provider_lock(provider_id: int):
    """Hold the exclusive section for one provider's availability"""
    with registry_lock:
        entry = provider_locks.setdefault(provider_id, [Lock(), 0])
        entry[1] += 1
    lock = entry[0]
    lock.acquire()
    logger.debug(f"🔒 Acquired availability lock for provider {provider_id}")
    try:
        yield
    finally:
        lock.release()
        with registry_lock:
            entry[1] -= 1
            if entry[1] == 0:
                del provider_locks[provider_id]
        logger.debug(f"🔓 Released availability lock for provider {provider_id}")


@contextmanager
def provider_transaction(db: Session, provider_id: int):
    """
    Run one unit of work against a provider's availability.

    Holds the in-process provider lock, row-locks the provider record, and
    commits on success or rolls back on any error. Yields the provider.
    """
    with provider_lock(provider_id):
        try:
            provider = db.query(Provider).filter(Provider.id == provider_id).with_for_update().first()
            if provider is None:
                raise NotFoundError("Provider not found", provider_id=provider_id)
            yield provider
            db.commit()
        except Exception:
            db.rollback()
            raise
