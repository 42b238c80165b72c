"""Python client for the unified cart API.

``CartApiClient`` speaks HTTP, ``CartStateStore`` mirrors the server cart
for a UI, and ``TransactionStatusStream`` follows a checkout over SSE.
"""

from client.api import CartApiClient
from client.store import CartStateStore, SubmitStatus
from client.stream import TransactionStatusStream

__all__ = ["CartApiClient", "CartStateStore", "SubmitStatus", "TransactionStatusStream"]
