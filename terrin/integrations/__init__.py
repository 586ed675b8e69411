"""Provider adapters for the LLM, Stripe and file storage.

Each client implements ``BaseIntegration``. Keys prefixed with ``mock_``
switch the LLM and Stripe clients to deterministic local responses.
"""

from terrin.integrations.ai_client import AIClient
from terrin.integrations.base import BaseIntegration
from terrin.integrations.storage import StorageClient
from terrin.integrations.stripe_client import StripeClient

__all__ = [
    "AIClient",
    "BaseIntegration",
    "StorageClient",
    "StripeClient",
]
