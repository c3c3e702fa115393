"""Result models for account, batch and recycle-bin operations."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from .file_record import FileRecord


@dataclass(frozen=True)
class Quota:
    """
    Account storage quota.

    Attributes:
        quota: Total space in bytes
        used: Used space in bytes
    """
    quota: int
    used: int

    @property
    def free(self) -> int:
        """Free space in bytes."""
        return max(0, self.quota - self.used)

    @property
    def used_percent(self) -> float:
        if self.quota == 0:
            return 0.0
        return (self.used / self.quota) * 100

    def has_space_for(self, size: int) -> bool:
        return self.free >= size

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Quota':
        return cls(quota=int(data['quota']), used=int(data['used']))


@dataclass(frozen=True)
class MoveCopyResult:
    """Pairs of (from, to) paths the service reports as moved or copied."""
    pairs: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MoveCopyResult':
        items = data.get('extra', {}).get('list', [])
        return cls(pairs=tuple((item['from'], item['to']) for item in items))


@dataclass(frozen=True)
class RestoreResult:
    """Identifiers of restored recycle-bin entries."""
    fs_ids: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RestoreResult':
        items = data.get('extra', {}).get('list', [])
        return cls(fs_ids=tuple(str(item['fs_id']) for item in items))


@dataclass(frozen=True)
class StreamFileList:
    """Paged list of media files of one stream type."""
    total: int = 0
    start: int = 0
    limit: int = 0
    files: List[FileRecord] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StreamFileList':
        return cls(
            total=int(data.get('total', 0)),
            start=int(data.get('start', 0)),
            limit=int(data.get('limit', 0)),
            files=FileRecord.list_from_dict(data)
        )


@dataclass(frozen=True)
class DiffResult:
    """
    Incremental change set since a cursor.

    Attributes:
        entries: Records created or changed since the cursor
        deleted: Paths deleted since the cursor
        cursor: Cursor to pass to the next diff call
        has_more: More changes are pending; call again with ``cursor``
        reset: Local state must be discarded and rebuilt
    """
    entries: List[FileRecord] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    cursor: str = ''
    has_more: bool = False
    reset: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DiffResult':
        entries = []
        deleted = []
        for path, item in (data.get('entries') or {}).items():
            if int(item.get('isdelete', 0)):
                deleted.append(path)
            else:
                entries.append(FileRecord.from_dict({'path': path, **item}))
        return cls(
            entries=entries,
            deleted=deleted,
            cursor=data['cursor'],
            has_more=bool(data.get('has_more', False)),
            reset=bool(data.get('reset', False))
        )
