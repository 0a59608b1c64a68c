"""HTTP clients for the POS source and the ledger."""

from pos_reconcile.clients.optomate import OptomateAPIError, OptomateClient
from pos_reconcile.clients.xero import AuthenticationError, XeroAPIError, XeroClient

__all__ = [
    "OptomateClient",
    "OptomateAPIError",
    "XeroClient",
    "XeroAPIError",
    "AuthenticationError",
]
