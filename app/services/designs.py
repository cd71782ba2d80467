from __future__ import annotations

import json
import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List
from uuid import uuid4

from app.models.design import DesignRecord, Layout, utcnow

logger = logging.getLogger(__name__)


class DesignStorageError(RuntimeError):
    """Raised when a storage operation fails in a non-recoverable way."""


class DesignStore:
    """
    In-memory design store with optional JSON snapshots on disk.

    Every design is written to `<base_dir>/<design_id>.json` and snapshots
    are loaded back on startup. With `base_dir=None` the store is purely
    in-memory, which is what tests use.
    """

    def __init__(self, base_dir: Path | None = None) -> None:
        self._base_dir = base_dir
        self._designs: Dict[str, DesignRecord] = {}
        if self._base_dir is not None:
            self._base_dir.mkdir(parents=True, exist_ok=True)
            self._load_snapshots()

    @property
    def base_dir(self) -> Path | None:
        return self._base_dir

    def _load_snapshots(self) -> None:
        for path in sorted(self._base_dir.glob("*.json")):
            try:
                record = DesignRecord.from_dict(json.loads(path.read_text(encoding="utf-8")))
            except (OSError, ValueError, KeyError, TypeError) as exc:
                logger.warning(f"Skipping unreadable design snapshot {path.name}: {exc}")
                continue
            self._designs[record.id] = record
        logger.info(f"Loaded {len(self._designs)} design(s) from {self._base_dir}")

    def _write_snapshot(self, record: DesignRecord) -> None:
        if self._base_dir is None:
            return
        try:
            path = self._base_dir / f"{record.id}.json"
            path.write_text(json.dumps(record.to_dict()), encoding="utf-8")
        except OSError as exc:
            raise DesignStorageError("Failed to persist design snapshot to disk.") from exc

    def _remove_snapshot(self, design_id: str) -> None:
        if self._base_dir is None:
            return
        try:
            (self._base_dir / f"{design_id}.json").unlink(missing_ok=True)
        except OSError as exc:
            raise DesignStorageError("Failed to remove design snapshot from disk.") from exc

    async def create_design(
        self,
        user_id: str,
        layout: Layout,
        title: str = "Untitled design",
        prompt: str = "",
        canvas_data: Dict[str, Any] | None = None,
    ) -> DesignRecord:
        """Persist a new design for `user_id` and return it."""
        record = DesignRecord(
            id=str(uuid4()),
            user_id=user_id,
            title=title,
            prompt=prompt,
            layout=layout,
            canvas_data=canvas_data,
        )
        self._write_snapshot(record)
        self._designs[record.id] = record
        return record

    async def get_design(self, design_id: str, user_id: str | None = None) -> DesignRecord | None:
        """
        Retrieve a design by id.

        When `user_id` is given, designs owned by someone else are reported
        as missing.
        """
        record = self._designs.get(design_id)
        if record is None or (user_id is not None and record.user_id != user_id):
            return None
        return record

    async def list_designs(self, user_id: str) -> List[DesignRecord]:
        """All designs of a user, newest first."""
        designs = [record for record in self._designs.values() if record.user_id == user_id]
        # Stable sort then reverse, so equal timestamps keep "last saved first".
        return sorted(designs, key=lambda record: record.created_at)[::-1]

    async def update_design(
        self,
        design_id: str,
        *,
        title: str | None = None,
        layout: Layout | None = None,
        canvas_data: Dict[str, Any] | None = None,
        clear_canvas_data: bool = False,
    ) -> DesignRecord | None:
        """
        Apply the given fields to a design and bump `updated_at`.

        Fields left as None are unchanged; `clear_canvas_data` drops the
        stored editor scene.
        """
        record = self._designs.get(design_id)
        if record is None:
            return None

        updated = replace(
            record,
            title=record.title if title is None else title,
            layout=record.layout if layout is None else layout,
            canvas_data=None if clear_canvas_data else (
                record.canvas_data if canvas_data is None else canvas_data
            ),
            updated_at=utcnow(),
        )
        self._write_snapshot(updated)
        self._designs[design_id] = updated
        return updated

    async def delete_design(self, design_id: str) -> bool:
        """Delete a design. Returns False if it did not exist."""
        if design_id not in self._designs:
            return False
        self._remove_snapshot(design_id)
        del self._designs[design_id]
        return True

    async def increment_downloads(self, design_id: str) -> DesignRecord | None:
        """Record one more export of the design."""
        record = self._designs.get(design_id)
        if record is None:
            return None
        updated = replace(record, downloads=record.downloads + 1)
        self._write_snapshot(updated)
        self._designs[design_id] = updated
        return updated


_default_store: DesignStore | None = None


def get_design_store() -> DesignStore:
    """
    Return the process-wide design store instance.

    Created on first use so importing the app does not touch the disk;
    routes receive it through a FastAPI dependency so tests can swap it.
    """
    global _default_store
    if _default_store is None:
        _default_store = DesignStore(
            base_dir=Path(os.getenv("DESIGN_STORAGE_DIR", "storage/designs")),
        )
    return _default_store
