import logging
import os
from pathlib import Path

import yaml

from models.trial_config import TrialConfig

logger = logging.getLogger(__name__)

BACKEND_DIR = Path(__file__).parent
TRIAL_DATA_FILE = Path(os.environ.get("TRIAL_DATA_FILE", BACKEND_DIR / "data" / "trial_data.json"))
TRIAL_CONFIG_FILE = os.environ.get("TRIAL_CONFIG")
GENERATED_DIR = BACKEND_DIR / "generated"

SNAPSHOT_FORMAT_VERSION = "2.0"

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500


def load_trial_config(path: str | Path | None = None) -> TrialConfig:
    """Build the immutable trial configuration.

    Reads an optional YAML file (explicit *path*, else $TRIAL_CONFIG); any key
    it omits keeps the built-in default.
    """
    source = path or TRIAL_CONFIG_FILE
    if not source:
        return TrialConfig()

    source = Path(source)
    with open(source, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    logger.info("Loaded trial config from %s", source)
    return TrialConfig.model_validate(data)
