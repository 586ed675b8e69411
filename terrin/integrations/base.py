from abc import ABC, abstractmethod

from terrin.common.logging import get_logger


class BaseIntegration(ABC):
    """Base class for external service adapters.

    Gives each adapter a namespaced logger and a ``health_check`` hook so
    connectivity can be verified on demand.
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = get_logger(f"integrations.{name}")

    @abstractmethod
    async def health_check(self) -> bool:
        """Return True when the provider is reachable."""
        ...
