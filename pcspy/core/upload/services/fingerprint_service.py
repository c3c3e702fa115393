"""
Content fingerprinting for rapid upload.

The service computes the same digests on its side, so algorithms, byte
ranges and hex case must match exactly.
"""
from pathlib import Path
from typing import Union
import hashlib
import os
import zlib

import aiofiles

from ..models import ContentFingerprint, SLICE_SIZE
from ...exceptions import PCSShortReadError
from ...logging import get_logger


def fingerprint_bytes(data: bytes) -> ContentFingerprint:
    """Fingerprint of in-memory content."""
    return ContentFingerprint(
        length=len(data),
        whole_md5=hashlib.md5(data).hexdigest(),
        crc32=zlib.crc32(data) & 0xffffffff,
        slice_md5=hashlib.md5(data[:SLICE_SIZE]).hexdigest()
    )


class FingerprintEngine:
    """
    Computes whole-file MD5, CRC32 and leading-slice MD5 in one pass.

    The file is streamed through incremental digests; the first 256 KiB
    also feed the slice digest. The expected length is the size reported
    by ``fstat`` on the open handle and reading stops there.
    """

    DEFAULT_READ_SIZE = 1024 * 1024

    def __init__(self, read_size: int = DEFAULT_READ_SIZE):
        self._read_size = read_size
        self._logger = get_logger('pcspy.upload.fingerprint')

    @staticmethod
    def _expected_size(handle) -> int:
        return os.fstat(handle.fileno()).st_size

    async def compute(self, file_path: Union[str, Path]) -> ContentFingerprint:
        """
        Fingerprint a local file.

        Raises:
            PCSShortReadError: If the file yields fewer bytes than its size
        """
        path = Path(file_path)
        whole = hashlib.md5()
        head = hashlib.md5()
        crc = 0
        total = 0
        sliced = 0

        async with aiofiles.open(path, 'rb') as f:
            expected = self._expected_size(f)
            while total < expected:
                data = await f.read(min(self._read_size, expected - total))
                if not data:
                    break
                total += len(data)
                whole.update(data)
                crc = zlib.crc32(data, crc)
                if sliced < SLICE_SIZE:
                    part = data[:SLICE_SIZE - sliced]
                    head.update(part)
                    sliced += len(part)

        if sliced < min(expected, SLICE_SIZE):
            raise PCSShortReadError(
                "Short read while hashing leading slice",
                expected=min(expected, SLICE_SIZE),
                actual=sliced,
                operation='fingerprint',
                path=str(path)
            )
        if total < expected:
            raise PCSShortReadError(
                "Short read while hashing file",
                expected=expected,
                actual=total,
                operation='fingerprint',
                path=str(path)
            )

        fingerprint = ContentFingerprint(
            length=total,
            whole_md5=whole.hexdigest(),
            crc32=crc & 0xffffffff,
            slice_md5=head.hexdigest()
        )
        self._logger.debug(
            f"Fingerprint {path.name}: {total} bytes md5={fingerprint.whole_md5} "
            f"crc32={fingerprint.crc32_hex}"
        )
        return fingerprint
