"""
Client side of the route contract: request building and the requests-based client.
"""

from .request_builder import build_request_config, replace_path_params
from .api_client import ContractClient, TransportError

__all__ = [
    'build_request_config',
    'replace_path_params',
    'ContractClient',
    'TransportError',
]
