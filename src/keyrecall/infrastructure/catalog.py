"""
Shortcut catalog loading.

A catalog is a YAML (or JSON) document in one of three shapes:

    - vscode.save                 # plain list of ids

    - id: vscode.save             # list of shortcut records
      description: Save file

    shortcuts:                    # mapping with a 'shortcuts' key
      - id: vscode.save
"""

import logging
from pathlib import Path
from typing import Any

import yaml
import yaml.constructor

logger = logging.getLogger(__name__)


class CatalogError(ValueError):
    """The catalog file is missing, unparsable, or not in a known shape."""


class UniqueKeyLoader(yaml.SafeLoader):
    """
    Custom YAML loader that forbids duplicate keys.
    """

    def construct_mapping(self, node, deep=False):
        mapping = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if key in mapping:
                raise yaml.constructor.ConstructorError(
                    None, None, f"found duplicate key '{key}'", key_node.start_mark
                )
            mapping.add(key)
        return super().construct_mapping(node, deep)


def parse_catalog(text: str) -> list[str]:
    """
    Extract shortcut ids from catalog text, in document order and without duplicates.

    Ids are returned as-is; validating them is the item store's job.
    """
    try:
        data = yaml.load(text, Loader=UniqueKeyLoader)
    except yaml.YAMLError as e:
        raise CatalogError(f"Invalid catalog: {e}") from e

    if data is None:
        return []

    if isinstance(data, dict):
        if "shortcuts" not in data:
            raise CatalogError("Catalog mapping must have a 'shortcuts' key")
        data = data["shortcuts"] or []

    if not isinstance(data, list):
        raise CatalogError(f"Catalog must be a list, got {type(data).__name__}")

    ids: list[str] = []
    for index, entry in enumerate(data):
        ids.append(_entry_id(entry, index))
    return list(dict.fromkeys(ids))


def _entry_id(entry: Any, index: int) -> Any:
    if isinstance(entry, dict):
        if "id" not in entry:
            raise CatalogError(f"Catalog entry #{index + 1} has no 'id'")
        return entry["id"]
    return entry


def load_catalog(path: Path) -> list[str]:
    """Read a catalog file and return its shortcut ids."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise CatalogError(f"Could not read catalog {path}: {e}") from e

    ids = parse_catalog(text)
    logger.info(f"Loaded {len(ids)} shortcut ids from {path}")
    return ids
