import re

from .exceptions import PCSValidationError

MAX_PATH_LENGTH = 1000

_FORBIDDEN_CHARS = re.compile(r'[\\?|"<>:*]')


def validate_remote_path(path: str) -> str:
    """
    Checks a remote target path before it is sent to the service.

    Rules: absolute, at most 1000 characters, none of ``\\ ? | " > < : *``,
    and no segment starting or ending with whitespace.
    """
    if not path or not path.startswith('/'):
        raise PCSValidationError(f"Remote path must be absolute: {path!r}")
    if len(path) > MAX_PATH_LENGTH:
        raise PCSValidationError(
            f"Remote path exceeds {MAX_PATH_LENGTH} characters", path=path[:64]
        )
    match = _FORBIDDEN_CHARS.search(path)
    if match:
        raise PCSValidationError(
            f"Remote path contains forbidden character {match.group()!r}", path=path
        )
    for segment in path.strip('/').split('/'):
        if segment and segment != segment.strip():
            raise PCSValidationError(
                f"Path segment {segment!r} has leading or trailing whitespace", path=path
            )
    return path


def join_remote(parent: str, name: str) -> str:
    """Joins a remote directory and a name with exactly one slash."""
    return f"{parent.rstrip('/')}/{name.lstrip('/')}"


def format_size(size: int) -> str:
    """Human readable byte count."""
    value = float(size)
    for unit in ('B', 'KB', 'MB', 'GB', 'TB'):
        if value < 1024 or unit == 'TB':
            return f"{value:.0f} {unit}" if unit == 'B' else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"
