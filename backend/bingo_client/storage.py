"""Flat key-value persistence for settings and stats."""

import copy
import json
from typing import Any, Dict, Optional


class MemoryBlobStore:
    """In-process store; nothing survives a restart."""

    def __init__(self, initial: Optional[Dict[str, Dict[str, Any]]] = None):
        self._blobs = copy.deepcopy(initial) if initial else {}

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        blob = self._blobs.get(key)
        return copy.deepcopy(blob) if blob is not None else None

    def save(self, key: str, value: Dict[str, Any]) -> None:
        self._blobs[key] = copy.deepcopy(value)


class SqlBlobStore:
    """Stores each blob as JSON text in the ``client_blobs`` table.

    Opens its own app context so it can be used from Socket.IO client
    threads and background tasks as well as request handlers.
    """

    def __init__(self, app):
        self.app = app

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        from bingo_client import db
        from bingo_client.models import ClientBlob
        with self.app.app_context():
            row = db.session.get(ClientBlob, key)
            if not row:
                return None
            try:
                return json.loads(row.value)
            except ValueError:
                self.app.logger.warning(f"[store] unreadable blob {key}, using defaults")
                return None

    def save(self, key: str, value: Dict[str, Any]) -> None:
        from bingo_client import db
        from bingo_client.models import ClientBlob
        with self.app.app_context():
            row = db.session.get(ClientBlob, key)
            if row is None:
                row = ClientBlob(key=key)
            row.value = json.dumps(value)
            db.session.add(row)
            try:
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise
