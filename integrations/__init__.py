"""
Clients for external services.
"""

from integrations.pos_api import PosApiClient, get_pos_client

__all__ = [
    "PosApiClient",
    "get_pos_client",
]
