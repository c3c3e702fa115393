"""
Operation table.

Binds every service operation to its endpoint, resource path segment and
method name. Endpoint choice is fixed here and never taken from callers.
"""
from dataclasses import dataclass

from .endpoints import Endpoint


@dataclass(frozen=True)
class Operation:
    """
    A single service operation.

    Attributes:
        endpoint: Which base endpoint serves the operation
        resource: Path segment appended to the endpoint URL
        method: Value of the mandatory ``method`` query parameter
    """
    endpoint: Endpoint
    resource: str
    method: str

    @property
    def name(self) -> str:
        return f"{self.resource}.{self.method}"


QUOTA_INFO = Operation(Endpoint.CONTROL, 'quota', 'info')

# Upload
FILE_UPLOAD = Operation(Endpoint.UPLOAD, 'file', 'upload')
FILE_RAPID_UPLOAD = Operation(Endpoint.CONTROL, 'file', 'rapidupload')
FILE_CREATE_SUPERFILE = Operation(Endpoint.CONTROL, 'file', 'createsuperfile')

# Download
FILE_DOWNLOAD = Operation(Endpoint.DOWNLOAD, 'file', 'download')

# Files and directories
FILE_MKDIR = Operation(Endpoint.CONTROL, 'file', 'mkdir')
FILE_META = Operation(Endpoint.CONTROL, 'file', 'meta')
FILE_LIST = Operation(Endpoint.CONTROL, 'file', 'list')
FILE_MOVE = Operation(Endpoint.CONTROL, 'file', 'move')
FILE_COPY = Operation(Endpoint.CONTROL, 'file', 'copy')
FILE_DELETE = Operation(Endpoint.CONTROL, 'file', 'delete')
FILE_SEARCH = Operation(Endpoint.CONTROL, 'file', 'search')
FILE_DIFF = Operation(Endpoint.CONTROL, 'file', 'diff')

# Media
THUMBNAIL_GENERATE = Operation(Endpoint.CONTROL, 'thumbnail', 'generate')
FILE_STREAMING = Operation(Endpoint.CONTROL, 'file', 'streaming')
STREAM_LIST = Operation(Endpoint.CONTROL, 'stream', 'list')

# Offline download
CLOUD_DL_ADD_TASK = Operation(Endpoint.CONTROL, 'services/cloud_dl', 'add_task')
CLOUD_DL_QUERY_TASK = Operation(Endpoint.CONTROL, 'services/cloud_dl', 'query_task')
CLOUD_DL_LIST_TASK = Operation(Endpoint.CONTROL, 'services/cloud_dl', 'list_task')
CLOUD_DL_CANCEL_TASK = Operation(Endpoint.CONTROL, 'services/cloud_dl', 'cancel_task')

# Recycle bin
FILE_LIST_RECYCLE = Operation(Endpoint.CONTROL, 'file', 'listrecycle')
FILE_RESTORE = Operation(Endpoint.CONTROL, 'file', 'restore')
