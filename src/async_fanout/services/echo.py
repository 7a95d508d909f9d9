"""Echo service used as the reference microservice."""

import asyncio

from async_fanout.services.base import ServiceInterface


class EchoService(ServiceInterface):
    """Service answering ``"<service_id>:<MESSAGE>"`` for every input."""

    def __init__(self, service_id: str, delay_seconds: float = 0.0) -> None:
        """Initialize echo service.

        Args:
            service_id: Identifier prefixed to every reply
            delay_seconds: Simulated latency before replying
        """
        super().__init__(service_id)
        self.delay_seconds = delay_seconds

    async def retrieve(self, message: str) -> str:
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)
        return f"{self.service_id}:{message.upper()}"
