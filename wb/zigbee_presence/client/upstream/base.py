# upstream/base.py

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional

from .types import UpstreamState

logger = logging.getLogger(__name__)

# Type aliases for handlers

# Handles "set" requests: (friendly_name, key, value) -> optimistic echo
SetHandler = Callable[[str, str, Any], Awaitable[Dict[str, Any]]]

# Handles "get" requests: (friendly_name, key)
GetHandler = Callable[[str, str], Awaitable[None]]


class BaseUpstreamAdapter(ABC):
    """
    Abstract interface for the application side
    Only knows callbacks - not know about router, store or registry
    """

    def __init__(self) -> None:
        self._state: UpstreamState = UpstreamState.INITIALIZING

        # Injected handlers
        self._set_handler: Optional[SetHandler] = None
        self._get_handler: Optional[GetHandler] = None

    @property
    def state(self) -> UpstreamState:
        return self._state

    # --- Lifecycle Methods ---

    @abstractmethod
    async def start(self) -> None:
        """
        Start transport mechanism
        """
        pass

    @abstractmethod
    async def stop(self) -> None:
        """
        Stop transport and release resources
        """
        pass

    async def wait_ready(self, timeout: float = 10.0) -> bool:
        """
        Block until the adapter reaches READY state
        """
        start_time = asyncio.get_running_loop().time()

        while self._state != UpstreamState.READY:
            if asyncio.get_running_loop().time() - start_time > timeout:
                return False
            if self._state == UpstreamState.STOPPED:
                return False
            await asyncio.sleep(0.1)

        return True

    # --- Setup Methods ---

    def register_set_handler(self, handler: SetHandler) -> None:
        """
        Register callback for incoming 'set' requests
        """
        self._set_handler = handler

    def register_get_handler(self, handler: GetHandler) -> None:
        """
        Register callback for incoming 'get' requests
        """
        self._get_handler = handler

    # --- Outgoing (Core -> application) ---

    @abstractmethod
    def publish_state(self, friendly_name: str, state: Dict[str, Any]) -> None:
        """
        Publish merged capability state of a device
        """
        pass

    # --- Internal Helpers (For subclasses) ---

    def _set_state(self, new_state: UpstreamState) -> None:
        """
        Update internal state and log transitions
        """
        if self._state != new_state:
            old_state = self._state
            self._state = new_state
            logger.info("Upstream state changed: %s -> %s", old_state.name, new_state.name)

    async def _handle_incoming_set(self, friendly_name: str, key: str, value: Any) -> Dict[str, Any]:
        if not self._set_handler:
            logger.error("Received set but no handler registered!")
            return {}
        return await self._set_handler(friendly_name, key, value)

    async def _handle_incoming_get(self, friendly_name: str, key: str) -> None:
        if not self._get_handler:
            logger.error("Received get but no handler registered!")
            return
        await self._get_handler(friendly_name, key)
