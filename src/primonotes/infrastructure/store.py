"""
Collection store adapters.

Implements CollectionStore with one YAML document per entity kind.
"""

import copy
import logging
from pathlib import Path
from typing import Any

import yaml  # type: ignore
import yaml.error

from primonotes.domain.constants import STORE_KINDS
from primonotes.domain.errors import StoreError
from primonotes.domain.interfaces import CollectionStore, StoreKind

logger = logging.getLogger(__name__)


def _check_kind(kind: str) -> None:
    if kind not in STORE_KINDS:
        raise StoreError(f"Unknown collection kind {kind!r} (expected one of: {', '.join(STORE_KINDS)})")


class YamlCollectionStore(CollectionStore):
    """
    Persists each collection as `<data_dir>/<kind>.yaml`.

    Writes go to a temporary sibling file that is then renamed over the
    target, so a failed write never leaves a half-written collection.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    def path_for(self, kind: StoreKind) -> Path:
        return self.data_dir / f"{kind}.yaml"

    def load(self, kind: StoreKind) -> list[dict[str, Any]]:
        _check_kind(kind)
        path = self.path_for(kind)
        if not path.exists():
            return []

        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.error.YAMLError as e:
            raise StoreError(f"Could not parse {path}: {e}") from e
        except OSError as e:
            raise StoreError(f"Could not read {path}: {e}") from e

        if data is None:
            return []
        if not isinstance(data, list):
            raise StoreError(f"{path} does not contain a list of {kind} records")
        return data

    def save(self, kind: StoreKind, records: list[dict[str, Any]]) -> None:
        _check_kind(kind)
        path = self.path_for(kind)
        tmp_path = path.with_suffix(".yaml.tmp")

        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            text = yaml.safe_dump(
                records, sort_keys=False, allow_unicode=True, default_flow_style=False
            )
            tmp_path.write_text(text, encoding="utf-8")
            tmp_path.replace(path)
        except (OSError, yaml.error.YAMLError) as e:
            raise StoreError(f"Could not write {path}: {e}") from e

        logger.info(f"[store] Saved {len(records)} {kind} to {path}")


class MemoryCollectionStore(CollectionStore):
    """In-process store. Records are deep-copied in and out."""

    def __init__(self, initial: dict[str, list[dict[str, Any]]] | None = None):
        self._data: dict[str, list[dict[str, Any]]] = {}
        for kind, records in (initial or {}).items():
            self.save(kind, records)  # type: ignore[arg-type]

    def load(self, kind: StoreKind) -> list[dict[str, Any]]:
        _check_kind(kind)
        return copy.deepcopy(self._data.get(kind, []))

    def save(self, kind: StoreKind, records: list[dict[str, Any]]) -> None:
        _check_kind(kind)
        self._data[kind] = copy.deepcopy(records)
