from __future__ import annotations

import asyncio
from collections.abc import Callable

from loguru import logger

from agent_gateway.services.session_controller import Emit, SessionController


class SessionHub:
    """Holds one controller per connected session id and serializes its handlers.

    A controller lives while at least one socket for its session is open; the
    next connection after that rehydrates from the message log.
    """

    def __init__(self, factory: Callable[[str], SessionController]):
        self._factory = factory
        self._controllers: dict[str, SessionController] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._connections: dict[str, int] = {}

    def controller(self, session_id: str) -> SessionController:
        controller = self._controllers.get(session_id)
        if controller is None:
            controller = self._factory(session_id)
            self._controllers[session_id] = controller
        return controller

    def _lock(self, session_id: str) -> asyncio.Lock:
        return self._locks.setdefault(session_id, asyncio.Lock())

    async def connect(self, session_id: str, emit: Emit) -> None:
        self._connections[session_id] = self._connections.get(session_id, 0) + 1
        async with self._lock(session_id):
            await self.controller(session_id).on_connect(emit)

    async def dispatch(self, session_id: str, raw: str | bytes, emit: Emit) -> None:
        async with self._lock(session_id):
            await self.controller(session_id).on_message(raw, emit)

    def disconnect(self, session_id: str) -> None:
        remaining = self._connections.get(session_id, 0) - 1
        if remaining > 0:
            self._connections[session_id] = remaining
            return
        self._connections.pop(session_id, None)
        self._controllers.pop(session_id, None)
        self._locks.pop(session_id, None)
        logger.debug(f"Released session {session_id}")

    def __len__(self) -> int:
        return len(self._controllers)
