from abc import ABC, abstractmethod
from typing import Any


class AbstractGatewayClient(ABC):
    """Interface for talking to the agent gateway.

    Implementations raise ``GatewayAppError`` when the gateway cannot be
    reached or answers with a non-2xx status.
    """

    @abstractmethod
    async def send_message(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Deliver a message to an agent or existing session."""
        ...

    @abstractmethod
    async def spawn_session(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Start a sub-agent session for a task."""
        ...

    @abstractmethod
    async def list_agents(self) -> dict[str, Any]:
        """Return the agents available for spawning."""
        ...

    @abstractmethod
    async def memory_search(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Run a semantic search over agent memory."""
        ...

    @abstractmethod
    async def memory_index(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Trigger a rebuild of the memory search index."""
        ...

    @abstractmethod
    async def memory_status(self) -> dict[str, Any]:
        """Report the state of the memory search index."""
        ...

    async def aclose(self) -> None:
        """Release network resources held by the client."""
        return None
