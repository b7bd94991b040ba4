"""
JSON File Repository: Infrastructure adapter for file-based review state.

Implements ReviewItemRepository by storing the whole snapshot in one JSON
document:

    {"version": 1, "items": [{"id": ..., "ease_factor": ..., ...}, ...]}
"""

import json
import logging
import os
import tempfile
from pathlib import Path

from keyrecall.domain.constants import STATE_FORMAT_VERSION
from keyrecall.domain.review.errors import ReviewError, StorageError
from keyrecall.domain.review.models import ReviewItem
from keyrecall.domain.review.ports import ReviewItemRepository

logger = logging.getLogger(__name__)


class JsonFileItemRepository(ReviewItemRepository):
    """
    Reads and writes review items to a JSON file.

    Writes go to a temporary file in the same directory and are then moved
    over the target, so a crash never leaves a half-written state file.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> list[ReviewItem]:
        if not self.path.exists():
            logger.debug(f"No state file at {self.path}; starting empty")
            return []

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Could not read review state from {self.path}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("items"), list):
            raise StorageError(f"Malformed review state in {self.path}: missing 'items' list")

        version = data.get("version", STATE_FORMAT_VERSION)
        if version != STATE_FORMAT_VERSION:
            raise StorageError(
                f"Unsupported review state version {version} in {self.path} "
                f"(expected {STATE_FORMAT_VERSION})"
            )

        try:
            return [ReviewItem.from_dict(raw) for raw in data["items"]]
        except (KeyError, TypeError, ValueError, ReviewError) as e:
            raise StorageError(f"Corrupt review item in {self.path}: {e}") from e

    def save(self, items: list[ReviewItem]) -> None:
        payload = {
            "version": STATE_FORMAT_VERSION,
            "items": [item.to_dict() for item in items],
        }

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Could not write review state to {self.path}: {e}") from e
