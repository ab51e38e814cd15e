"""
Whole-document JSON persistence.

Each store is one JSON object on disk. Reads load the whole document;
writes replace the whole file atomically (temp file + ``os.replace``).
Read-modify-write cycles go through ``transaction()``, which holds a lock
shared by every store instance pointing at the same file. The lock is
per process: two processes writing the same file can still lose updates.

A document that cannot be parsed is moved aside to
``<file>.corrupt-<epoch>`` and the store continues as empty.
"""
import contextlib
import json
import os
import tempfile
import threading
import time
from pathlib import Path
from typing import Any, Dict, Iterator

import structlog

from sitebuilder.monitoring.metrics import metrics

logger = structlog.get_logger(__name__)

_locks: Dict[Path, threading.RLock] = {}
_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    key = path.resolve()
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = _locks[key] = threading.RLock()
        return lock


class JsonDocumentStore:
    """A JSON object persisted as a single file."""

    def __init__(self, path: Path, name: str):
        """
        Initialize the store.

        Args:
            path: Location of the JSON document
            name: Short store name used in logs and metrics
        """
        self.path = Path(path)
        self.name = name
        self.lock = _lock_for(self.path)

    def load(self) -> Dict[str, Any]:
        """
        Load the whole document.

        Returns:
            Dict[str, Any]: The document, or an empty dict when the file is
            missing or corrupt
        """
        with self.lock:
            if not self.path.exists():
                return {}

            try:
                document = json.loads(self.path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                self._quarantine(str(e))
                return {}

            if not isinstance(document, dict):
                self._quarantine(f"expected a JSON object, got {type(document).__name__}")
                return {}

            return document

    def save(self, document: Dict[str, Any]) -> None:
        """Overwrite the whole document."""
        with self.lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(document, fh, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                with contextlib.suppress(FileNotFoundError):
                    os.unlink(tmp_name)
                raise

    @contextlib.contextmanager
    def transaction(self) -> Iterator[Dict[str, Any]]:
        """
        Load the document, yield it for mutation, then save it.

        Nothing is written if the block raises.
        """
        with self.lock:
            document = self.load()
            yield document
            self.save(document)

    def _quarantine(self, reason: str) -> None:
        target = self.path.with_name(f"{self.path.name}.corrupt-{int(time.time())}")
        try:
            os.replace(self.path, target)
        except OSError as e:
            logger.error(
                "store_quarantine_failed",
                store=self.name,
                path=str(self.path),
                error=str(e),
            )
            target = None

        metrics.record_corrupt_document(self.name)
        logger.warning(
            "store_document_corrupt",
            store=self.name,
            path=str(self.path),
            moved_to=str(target) if target else None,
            reason=reason,
        )
