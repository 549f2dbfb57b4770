from .client import SuiJsonRpcClient
from .config import get_explorer_transaction_url, get_rpc_endpoint, resolve_request_type

__all__ = [
    "SuiJsonRpcClient",
    "get_explorer_transaction_url",
    "get_rpc_endpoint",
    "resolve_request_type",
]
