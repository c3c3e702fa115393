"""
Typed option sets for PCS operations.

Each option class declares an explicit table mapping its attributes to the
query parameter names the service expects. Fields marked ``omit_default``
are left out of the request when they still hold their dataclass default.
"""
from dataclasses import dataclass, fields, MISSING
from enum import Enum
from typing import ClassVar, List, Optional, Tuple
import re

from ..exceptions import PCSValidationError


class OnDup(Enum):
    """Disposition when the target path already exists."""
    OVERWRITE = 'overwrite'
    NEWCOPY = 'newcopy'

    @classmethod
    def from_overwrite(cls, overwrite: bool) -> 'OnDup':
        return cls.OVERWRITE if overwrite else cls.NEWCOPY


class SortOrder(Enum):
    ASC = 'asc'
    DESC = 'desc'


class SortBy(Enum):
    TIME = 'time'
    NAME = 'name'
    SIZE = 'size'


class StreamType(Enum):
    VIDEO = 'video'
    AUDIO = 'audio'
    IMAGE = 'image'
    DOC = 'doc'


@dataclass(frozen=True)
class OptionField:
    """
    Mapping of one option attribute to one query parameter.

    Attributes:
        attr: Attribute name on the option dataclass
        param: Query parameter name sent to the service
        omit_default: Leave the parameter out when the value equals its default
    """
    attr: str
    param: str
    omit_default: bool = False


def encode_value(value) -> str:
    """Encode a single option value as a query string value."""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return '1' if value else '0'
    return str(value)


class OperationOptions:
    """Base class for option dataclasses."""

    FIELDS: ClassVar[Tuple[OptionField, ...]] = ()

    def to_params(self) -> List[Tuple[str, str]]:
        """
        Serialize options to ordered (name, value) pairs.

        Raises:
            PCSValidationError: If a required option is None
        """
        defaults = {
            f.name: f.default
            for f in fields(self)
            if f.default is not MISSING
        }
        params = []
        for field_def in self.FIELDS:
            value = getattr(self, field_def.attr)
            if field_def.omit_default and field_def.attr in defaults and value == defaults[field_def.attr]:
                continue
            if value is None:
                raise PCSValidationError(
                    f"Missing required option '{field_def.param}'",
                    operation=type(self).__name__
                )
            params.append((field_def.param, encode_value(value)))
        return params


@dataclass(frozen=True)
class PathOptions(OperationOptions):
    """Options for operations addressing a single remote path."""
    path: str

    FIELDS = (OptionField('path', 'path'),)


@dataclass(frozen=True)
class FileOptions(OperationOptions):
    """Target path and disposition for uploads and superfile merges."""
    path: str
    ondup: OnDup = OnDup.OVERWRITE

    FIELDS = (
        OptionField('path', 'path'),
        OptionField('ondup', 'ondup'),
    )


@dataclass(frozen=True)
class TmpFileOptions(OperationOptions):
    """Block upload: stores content as a temporary file, returning its md5."""
    type: str = 'tmpfile'

    FIELDS = (OptionField('type', 'type'),)


@dataclass(frozen=True)
class RapidUploadOptions(OperationOptions):
    """Fingerprint-based upload without transferring content."""
    path: str
    content_length: int
    content_md5: str
    slice_md5: str
    content_crc32: int
    ondup: OnDup = OnDup.OVERWRITE

    FIELDS = (
        OptionField('path', 'path'),
        OptionField('content_length', 'content-length'),
        OptionField('content_md5', 'content-md5'),
        OptionField('slice_md5', 'slice-md5'),
        OptionField('content_crc32', 'content-crc32'),
        OptionField('ondup', 'ondup'),
    )

    @classmethod
    def from_fingerprint(cls, path: str, fingerprint, ondup: OnDup) -> 'RapidUploadOptions':
        return cls(
            path=path,
            content_length=fingerprint.length,
            content_md5=fingerprint.whole_md5,
            slice_md5=fingerprint.slice_md5,
            content_crc32=fingerprint.crc32,
            ondup=ondup
        )


_LIMIT_PATTERN = re.compile(r'^\d+-\d+$')


@dataclass(frozen=True)
class ListFilesOptions(OperationOptions):
    """
    Directory listing options.

    ``limit`` is ``"n1-n2"`` and selects entries in ``[n1, n2)``.
    """
    path: str
    order: Optional[SortOrder] = None
    by: Optional[SortBy] = None
    limit: Optional[str] = None

    FIELDS = (
        OptionField('path', 'path'),
        OptionField('order', 'order', omit_default=True),
        OptionField('by', 'by', omit_default=True),
        OptionField('limit', 'limit', omit_default=True),
    )

    def __post_init__(self):
        if self.limit is not None:
            if not _LIMIT_PATTERN.match(self.limit):
                raise PCSValidationError(f"Invalid limit '{self.limit}', expected 'n1-n2'")
            start, end = (int(part) for part in self.limit.split('-'))
            if start >= end:
                raise PCSValidationError(f"Invalid limit '{self.limit}', n1 must be < n2")


@dataclass(frozen=True)
class MoveCopyOptions(OperationOptions):
    from_path: str
    to_path: str

    FIELDS = (
        OptionField('from_path', 'from'),
        OptionField('to_path', 'to'),
    )


@dataclass(frozen=True)
class SearchOptions(OperationOptions):
    """Search by file name under ``path``; directories are not matched."""
    path: str
    word: str
    recursive: bool = False

    FIELDS = (
        OptionField('path', 'path'),
        OptionField('word', 'wd'),
        OptionField('recursive', 're', omit_default=True),
    )


@dataclass(frozen=True)
class ThumbnailOptions(OperationOptions):
    path: str
    width: int
    height: int
    quality: Optional[int] = None

    FIELDS = (
        OptionField('path', 'path'),
        OptionField('quality', 'quality', omit_default=True),
        OptionField('height', 'height'),
        OptionField('width', 'width'),
    )

    def __post_init__(self):
        if self.quality is not None and not 0 < self.quality <= 100:
            raise PCSValidationError(f"Thumbnail quality must be in (0, 100], got {self.quality}")
        for name in ('width', 'height'):
            value = getattr(self, name)
            if not 0 < value <= 1600:
                raise PCSValidationError(f"Thumbnail {name} must be in (0, 1600], got {value}")


@dataclass(frozen=True)
class DiffOptions(OperationOptions):
    """Incremental change query. First call uses cursor 'null'."""
    cursor: str = 'null'

    FIELDS = (OptionField('cursor', 'cursor'),)


@dataclass(frozen=True)
class StreamingOptions(OperationOptions):
    """Transcoded playlist request, e.g. ``type='M3U8_640_480'``."""
    path: str
    type: str

    FIELDS = (
        OptionField('path', 'path'),
        OptionField('type', 'type'),
    )


@dataclass(frozen=True)
class ListStreamOptions(OperationOptions):
    type: StreamType
    start: Optional[int] = None
    limit: Optional[int] = None
    filter_path: Optional[str] = None

    FIELDS = (
        OptionField('type', 'type'),
        OptionField('start', 'start', omit_default=True),
        OptionField('limit', 'limit', omit_default=True),
        OptionField('filter_path', 'filter_path', omit_default=True),
    )


@dataclass(frozen=True)
class AddTaskOptions(OperationOptions):
    """Offline download task: the service fetches ``source_url`` into ``save_path``."""
    save_path: str
    source_url: str
    expires: Optional[int] = None
    rate_limit: Optional[int] = None
    timeout: Optional[int] = None
    callback: Optional[str] = None

    FIELDS = (
        OptionField('expires', 'expires', omit_default=True),
        OptionField('save_path', 'save_path'),
        OptionField('source_url', 'source_url'),
        OptionField('rate_limit', 'rate_limit', omit_default=True),
        OptionField('timeout', 'timeout', omit_default=True),
        OptionField('callback', 'callback', omit_default=True),
    )


@dataclass(frozen=True)
class QueryTaskOptions(OperationOptions):
    """``task_ids`` is a comma separated list; ``op_type`` 0=task info, 1=progress."""
    task_ids: str
    op_type: int = 1
    expires: Optional[int] = None

    FIELDS = (
        OptionField('expires', 'expires', omit_default=True),
        OptionField('task_ids', 'task_ids'),
        OptionField('op_type', 'op_type'),
    )


@dataclass(frozen=True)
class ListTaskOptions(OperationOptions):
    expires: Optional[int] = None
    start: Optional[int] = None
    limit: Optional[int] = None
    asc: bool = False
    source_url: Optional[str] = None
    save_path: Optional[str] = None
    create_time: Optional[int] = None
    status: Optional[int] = None
    need_task_info: bool = True

    FIELDS = (
        OptionField('expires', 'expires', omit_default=True),
        OptionField('start', 'start', omit_default=True),
        OptionField('limit', 'limit', omit_default=True),
        OptionField('asc', 'asc', omit_default=True),
        OptionField('source_url', 'source_url', omit_default=True),
        OptionField('save_path', 'save_path', omit_default=True),
        OptionField('create_time', 'create_time', omit_default=True),
        OptionField('status', 'status', omit_default=True),
        OptionField('need_task_info', 'need_task_info', omit_default=True),
    )


@dataclass(frozen=True)
class CancelTaskOptions(OperationOptions):
    task_id: str
    expires: Optional[int] = None

    FIELDS = (
        OptionField('expires', 'expires', omit_default=True),
        OptionField('task_id', 'task_id'),
    )


@dataclass(frozen=True)
class ListRecycleOptions(OperationOptions):
    start: Optional[int] = None
    limit: Optional[int] = None

    FIELDS = (
        OptionField('start', 'start', omit_default=True),
        OptionField('limit', 'limit', omit_default=True),
    )


@dataclass(frozen=True)
class RestoreOptions(OperationOptions):
    fs_id: str

    FIELDS = (OptionField('fs_id', 'fs_id'),)


@dataclass(frozen=True)
class EmptyRecycleOptions(OperationOptions):
    type: str = 'recycle'

    FIELDS = (OptionField('type', 'type'),)
