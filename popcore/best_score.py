"""Best-score persistence.

The only durable state of the engine is a single integer. Stores are read
once when a controller is built and written when a finished session beats
the stored value.

Schema Versioning:
    - Version 1.0: ``{"version": "1.0", "best_score": int, "saved_at": iso8601}``
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol, Union

from popcore.exceptions import PersistenceError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0"

DEFAULT_BEST_SCORE_PATH = Path("data/best_score.json")


class BestScoreStore(Protocol):
    """Anything that can load and save one best-score value."""

    def load(self) -> int: ...

    def save(self, score: int) -> None: ...


class InMemoryBestScoreStore:
    """Process-local store, used by tests and headless runs."""

    def __init__(self, initial: int = 0) -> None:
        self._score = max(0, int(initial))
        self.saves = 0

    def load(self) -> int:
        return self._score

    def save(self, score: int) -> None:
        self._score = max(0, int(score))
        self.saves += 1


class JsonBestScoreStore:
    """Stores the best score in a small JSON document on disk.

    A missing file reads as 0. A corrupt file is logged and also reads as
    0, so a damaged save never prevents a session from starting.
    """

    def __init__(self, path: Union[str, Path] = DEFAULT_BEST_SCORE_PATH) -> None:
        self.path = Path(path)

    def load(self) -> int:
        if not self.path.exists():
            return 0
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read best score from {self.path}: {e}")
            return 0

        raw = data.get("best_score", 0) if isinstance(data, dict) else 0
        if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
            logger.warning(f"Ignoring invalid best score {raw!r} in {self.path}")
            return 0
        return raw

    def save(self, score: int) -> None:
        """Write ``score`` atomically (temp file + rename).

        Raises:
            PersistenceError: If the file cannot be written
        """
        payload = {
            "version": SCHEMA_VERSION,
            "best_score": max(0, int(score)),
            "saved_at": datetime.now(timezone.utc).isoformat(),
        }
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w") as f:
                json.dump(payload, f, indent=2)
            tmp_path.replace(self.path)
        except OSError as e:
            raise PersistenceError(f"Failed to save best score to {self.path}: {e}") from e
        logger.info(f"Saved best score {payload['best_score']} to {self.path}")
