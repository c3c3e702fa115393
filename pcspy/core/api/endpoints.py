"""
Service endpoints.

The service exposes the same REST surface on three hosts. Every operation
is bound to exactly one of them by its role.
"""
from dataclasses import dataclass
from enum import Enum


class Endpoint(Enum):
    """Closed set of base endpoints."""
    CONTROL = 'control'
    UPLOAD = 'upload'
    DOWNLOAD = 'download'


@dataclass(frozen=True)
class EndpointConfig:
    """
    Base URLs for the three endpoints.
    
    Immutable for the lifetime of a client.
    """
    control: str = 'https://pcs.baidu.com/rest/2.0/pcs'
    upload: str = 'https://c.pcs.baidu.com/rest/2.0/pcs'
    download: str = 'https://d.pcs.baidu.com/rest/2.0/pcs'
    
    def url_for(self, endpoint: Endpoint) -> str:
        """Returns the base URL (without trailing slash) for an endpoint."""
        return getattr(self, endpoint.value).rstrip('/')
    