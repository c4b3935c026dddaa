"""Control-plane HTTP server for debugport.

``create_app`` builds the RPC surface; ``HttpService`` keeps exactly one
instance of it listening on the configured port.
"""

from debugport.server.app import create_app
from debugport.server.errors import RpcError
from debugport.server.handle import ServerHandle
from debugport.server.service import HttpService, clear_stale_memory_subscription

__all__ = [
    "HttpService",
    "RpcError",
    "ServerHandle",
    "clear_stale_memory_subscription",
    "create_app",
]
