"""Socket.IO link to the game authority.

Thin binding only: every inbound event is handed to the engine by name and
every outbound intent the engine queues is emitted unchanged. Event
semantics, ordering checks and resync live in the engine.
"""

import logging
from typing import Optional

import socketio as socketio_client

from bingo_client.services.game import EVENT_NAMES, ClientEngine

logger = logging.getLogger(__name__)

# Connection lifecycle is reported by the client library, not by the authority.
_LIFECYCLE = {'disconnect', 'reconnect', 'reconnectFailed'}


class RemoteLink:
    def __init__(self, engine: ClientEngine, url: str, client=None, max_retries: int = 5,
                 on_activity=None):
        self.engine = engine
        self.url = url
        self.client = client or socketio_client.Client(
            reconnection=True,
            reconnection_attempts=max_retries,
            logger=False,
        )
        self.on_activity = on_activity
        self._connected_once = False
        self._attempts = 0
        engine.outbound_listener = self.flush
        self._register()

    def _register(self) -> None:
        self.client.on('connect', self._handle_connect)
        self.client.on('disconnect', self._handle_disconnect)
        self.client.on('connect_error', self._handle_connect_error)
        for name in EVENT_NAMES:
            if name in _LIFECYCLE:
                continue
            self.client.on(name, self._relay(name))

    def _relay(self, name: str):
        def _handler(data=None):
            self.engine.receive(name, data if data is not None else {})
            self._activity()
        return _handler

    def _activity(self) -> None:
        if self.on_activity is not None:
            self.on_activity(self.engine)

    def _handle_connect(self):
        # the first connect is treated like a reconnect: nothing local is trusted yet
        logger.info(f"[remote] connected url={self.url} first={not self._connected_once}")
        self._connected_once = True
        self._attempts = 0
        self.engine.receive('reconnect')
        self._activity()

    def _handle_disconnect(self, reason=None):
        logger.warning(f"[remote] disconnected reason={reason}")
        self.engine.receive('disconnect', {'reason': str(reason) if reason else ''})
        self._activity()

    def _handle_connect_error(self, data=None):
        self._attempts += 1
        logger.warning(f"[remote] connect error attempt={self._attempts}: {data}")
        if self._connected_once:
            self.engine.receive('reconnectFailed', {'attempt': self._attempts})
            self._activity()

    def flush(self) -> int:
        """Emit every queued outbound intent. Intents are dropped while offline."""
        intents = self.engine.drain_outbound()
        if not self.client.connected:
            if intents:
                logger.warning(f"[remote] dropped {len(intents)} intent(s) while disconnected")
            return 0
        for intent in intents:
            self.client.emit(intent.name, intent.payload)
        return len(intents)

    def connect(self, wait_timeout: Optional[float] = None) -> None:
        kwargs = {}
        if wait_timeout is not None:
            kwargs['wait_timeout'] = wait_timeout
        self.client.connect(self.url, **kwargs)

    def disconnect(self) -> None:
        self.client.disconnect()
