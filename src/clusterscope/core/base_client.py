"""Base client shared by the Azure and cluster API clients."""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
import structlog

logger = structlog.get_logger(__name__)


class BaseClient(ABC):
    """Lazily connected client with a bound logger.

    Operations call ``ensure_connected`` first, so a client works both inside
    ``async with`` and when used directly. ``disconnect`` is always safe to
    call, connected or not.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, name: Optional[str] = None):
        self.config = config or {}
        self.name = name or self.__class__.__name__
        self._connected = False
        self.logger = logger.bind(client=self.name)

    @abstractmethod
    async def connect(self) -> None:
        """Create the underlying SDK or HTTP client and set ``_connected``."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the underlying client and clear ``_connected``."""
        pass

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def ensure_connected(self) -> None:
        """Connect on first use; later calls are no-ops."""
        if not self._connected:
            await self.connect()

    async def __aenter__(self):
        await self.ensure_connected()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()
