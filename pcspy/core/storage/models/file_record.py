"""
Remote file records.

Read views of remote state as reported by the service. The client never
builds or mutates them locally except by decoding responses.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List
import json


def _require_dict(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise TypeError(f"expected JSON object, got {type(data).__name__}")
    return data


def _block_list_text(value: Any) -> str:
    if isinstance(value, list):
        return json.dumps(value)
    return value or ''


@dataclass(frozen=True)
class FileRecord:
    """
    A remote file or directory.

    Attributes:
        path: Absolute remote path
        size: Size in bytes (0 for directories)
        ctime: Creation time, Unix seconds
        mtime: Modification time, Unix seconds
        md5: Content MD5 (files only)
        fs_id: Service-assigned numeric identifier
        is_dir: True for directories
    """
    path: str = ''
    size: int = 0
    ctime: int = 0
    mtime: int = 0
    md5: str = ''
    fs_id: int = 0
    is_dir: bool = False

    @property
    def name(self) -> str:
        """Base name of the remote path."""
        return self.path.rstrip('/').rsplit('/', 1)[-1]

    @property
    def modified(self) -> datetime:
        return datetime.fromtimestamp(self.mtime)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FileRecord':
        """Create from service JSON; missing fields take zero values."""
        data = _require_dict(data)
        return cls(
            path=data.get('path', ''),
            size=int(data.get('size', 0)),
            ctime=int(data.get('ctime', 0)),
            mtime=int(data.get('mtime', 0)),
            md5=data.get('md5', ''),
            fs_id=int(data.get('fs_id', 0)),
            is_dir=bool(int(data.get('isdir', 0)))
        )

    @classmethod
    def list_from_dict(cls, data: Dict[str, Any]) -> List['FileRecord']:
        """Decode a ``{"list": [...]}`` payload."""
        return [cls.from_dict(item) for item in _require_dict(data).get('list', [])]


@dataclass(frozen=True)
class FileMeta(FileRecord):
    """
    File record with metadata-only fields.

    Attributes:
        block_list: Raw block digest list as reported by the service
        has_subdir: Directory contains subdirectories
    """
    block_list: str = ''
    has_subdir: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FileMeta':
        data = _require_dict(data)
        # meta responses wrap a single record in {"list": [...]}
        if 'list' in data and isinstance(data['list'], list):
            if not data['list']:
                raise ValueError("empty metadata list")
            data = _require_dict(data['list'][0])
        record = FileRecord.from_dict(data)
        return cls(
            path=record.path,
            size=record.size,
            ctime=record.ctime,
            mtime=record.mtime,
            md5=record.md5,
            fs_id=record.fs_id,
            is_dir=record.is_dir,
            block_list=_block_list_text(data.get('block_list', '')),
            has_subdir=bool(int(data.get('ifhassubdir', 0)))
        )

    @classmethod
    def list_from_dict(cls, data: Dict[str, Any]) -> List['FileMeta']:
        return [cls.from_dict(item) for item in _require_dict(data).get('list', [])]
