"""In-memory trial dataset shared by the API routers.

Holds the current snapshot and writes every accepted change straight back to
the store, so readers always see the last committed state.
"""

import logging

from models.schemas import TrialSnapshot
from models.trial_config import TrialConfig
from services.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


class TrialSession:
    def __init__(self, store: SnapshotStore, config: TrialConfig, snapshot: TrialSnapshot | None = None):
        self.store = store
        self.config = config
        self.snapshot = snapshot if snapshot is not None else store.load()

    def commit(self, snapshot: TrialSnapshot) -> TrialSnapshot:
        self.snapshot = self.store.save(snapshot)
        return self.snapshot


# Set at startup via init_session()
_session: TrialSession | None = None


def init_session(session: TrialSession):
    global _session
    _session = session
    logger.info("Trial session ready (%d animals)", len(session.snapshot.animals))


def get_session() -> TrialSession:
    if _session is None:
        raise RuntimeError("Trial session not initialized")
    return _session
