"""JSON-file persistence for the trial snapshot.

The file holds one object with a format version, a creation timestamp and one
array per collection. Writes replace whole collections (last writer wins).
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from config import SNAPSHOT_FORMAT_VERSION
from models.schemas import TrialSnapshot

logger = logging.getLogger(__name__)

REQUIRED_COLLECTIONS = ("animals", "weighings", "feed_records", "incidents")


class SnapshotFormatError(ValueError):
    """The snapshot file exists but is not a valid trial snapshot."""


def parse_snapshot(data: dict) -> TrialSnapshot:
    if not isinstance(data, dict):
        raise SnapshotFormatError("Snapshot must be a JSON object")
    missing = [c for c in REQUIRED_COLLECTIONS if c not in data]
    if missing:
        raise SnapshotFormatError(f"Snapshot is missing collections: {', '.join(missing)}")
    try:
        return TrialSnapshot.model_validate(data)
    except ValidationError as e:
        raise SnapshotFormatError(str(e)) from e


class SnapshotStore:
    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> TrialSnapshot:
        """Read the snapshot; an absent file yields an empty dataset."""
        if not self.path.exists():
            logger.info("No snapshot at %s, starting empty", self.path)
            return TrialSnapshot(format_version=SNAPSHOT_FORMAT_VERSION)
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise SnapshotFormatError(f"{self.path.name}: {e}") from e
        snapshot = parse_snapshot(data)
        logger.info(
            "Loaded snapshot %s: %d animals, %d weighings, %d feed records, %d incidents",
            self.path.name, len(snapshot.animals), len(snapshot.weighings),
            len(snapshot.feed_records), len(snapshot.incidents),
        )
        return snapshot

    def save(self, snapshot: TrialSnapshot) -> TrialSnapshot:
        """Write *snapshot* atomically, stamping version and creation time."""
        stamped = snapshot.model_copy(update={
            "format_version": SNAPSHOT_FORMAT_VERSION,
            "created_at": datetime.now(timezone.utc),
        })
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(stamped.model_dump(mode="json"), f, indent=2)
            os.replace(tmp, self.path)
        except Exception:
            Path(tmp).unlink(missing_ok=True)
            raise
        return stamped
