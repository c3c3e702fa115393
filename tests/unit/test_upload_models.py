"""Tests for upload models."""
import asyncio
from pathlib import Path

import pytest

from pcspy.core.api.options import OnDup
from pcspy.core.exceptions import PCSValidationError
from pcspy.core.storage import FileRecord
from pcspy.core.upload.models import (
    BlockList,
    ChunkInfo,
    UploadConfig,
    UploadProgress,
    UploadResult,
    UploadStrategy,
    DEFAULT_BLOCK_SIZE,
)


def digests(count):
    return tuple(f"{i:032x}" for i in range(count))


class TestBlockList:
    """Test suite for BlockList."""

    @pytest.mark.parametrize('count', [0, 1, 1025])
    def test_out_of_bounds_rejected(self, count):
        """Test merges need between 2 and 1024 blocks."""
        with pytest.raises(PCSValidationError):
            BlockList(digests(count)).validate()

    @pytest.mark.parametrize('count', [2, 1024])
    def test_bounds_accepted(self, count):
        """Test the boundary counts pass."""
        BlockList(digests(count)).validate()

    def test_order_preserved(self):
        """Test iteration and indexing keep chunk order."""
        block_list = BlockList(('c', 'a', 'b'))

        assert list(block_list) == ['c', 'a', 'b']
        assert block_list[0] == 'c'
        assert len(block_list) == 3

    def test_list_input_normalized(self):
        """Test a list argument is stored as a tuple."""
        block_list = BlockList(['a', 'b'])

        assert block_list.digests == ('a', 'b')
        assert block_list == BlockList(('a', 'b'))

    def test_to_param(self):
        """Test merge payload shape."""
        assert BlockList(('a', 'b')).to_param() == {'blocklist': ['a', 'b']}

    def test_from_slots(self):
        """Test complete slots build a list."""
        assert BlockList.from_slots(['x', 'y']).digests == ('x', 'y')

    def test_from_slots_missing(self):
        """Test an unfilled slot is rejected."""
        with pytest.raises(PCSValidationError, match="missing blocks \\[1\\]"):
            BlockList.from_slots(['x', None, 'z'])


class TestChunkInfo:
    """Test suite for ChunkInfo."""

    def test_size(self):
        """Test size is end minus start."""
        assert ChunkInfo(index=2, start=100, end=250).size == 150


class TestUploadConfig:
    """Test suite for UploadConfig."""

    def test_defaults(self):
        """Test defaults and normalization."""
        config = UploadConfig(file_path='local.bin', target_path='/apps/demo/local.bin')

        assert config.file_path == Path('local.bin')
        assert config.strategy is UploadStrategy.AUTO
        assert config.block_size == DEFAULT_BLOCK_SIZE
        assert config.block_threshold == DEFAULT_BLOCK_SIZE
        assert config.max_chunks == 1024
        assert config.ondup is OnDup.OVERWRITE

    def test_strategy_from_string(self):
        """Test strategy names are accepted."""
        config = UploadConfig('a', '/apps/a', strategy='block')

        assert config.strategy is UploadStrategy.BLOCK

    def test_unknown_strategy(self):
        """Test an unknown strategy name is rejected."""
        with pytest.raises(PCSValidationError):
            UploadConfig('a', '/apps/a', strategy='fast')

    def test_newcopy(self):
        """Test overwrite=False maps to newcopy."""
        assert UploadConfig('a', '/apps/a', overwrite=False).ondup is OnDup.NEWCOPY

    @pytest.mark.parametrize('target', [
        'relative/path',
        '',
        '/apps/what?.txt',
        '/apps/a|b',
        '/apps/ leading',
        '/apps/trailing /x',
        '/' + 'a' * 1000,
    ])
    def test_invalid_target_path(self, target):
        """Test remote path rules are enforced locally."""
        with pytest.raises(PCSValidationError):
            UploadConfig('a', target)

    def test_max_length_target_path(self):
        """Test a path of exactly 1000 characters is allowed."""
        UploadConfig('a', '/' + 'a' * 999)

    def test_invalid_block_size(self):
        """Test non-positive block size is rejected."""
        with pytest.raises(PCSValidationError):
            UploadConfig('a', '/apps/a', block_size=0)

    def test_invalid_concurrency(self):
        """Test concurrency must be at least one."""
        with pytest.raises(PCSValidationError):
            UploadConfig('a', '/apps/a', max_concurrent_uploads=0)

    def test_cancel_event(self):
        """Test a cancel event is carried through."""
        event = asyncio.Event()

        assert UploadConfig('a', '/apps/a', cancel_event=event).cancel_event is event


class TestUploadResult:
    """Test suite for UploadResult."""

    def test_record_properties(self, sample_record_data):
        """Test path, size and md5 come from the record."""
        result = UploadResult(FileRecord.from_dict(sample_record_data), UploadStrategy.DIRECT)

        assert result.path == '/apps/demo/report.pdf'
        assert result.size == 1024
        assert result.md5 == 'd41d8cd98f00b204e9800998ecf8427e'
        assert result.block_list is None


class TestUploadProgress:
    """Test suite for UploadProgress."""

    def test_percentage(self):
        """Test percentage calculation."""
        progress = UploadProgress(total_chunks=4, uploaded_chunks=1)

        assert progress.percentage == 25.0
        assert not progress.is_complete

    def test_zero_chunks(self):
        """Test zero total does not divide by zero."""
        assert UploadProgress(total_chunks=0).percentage == 0.0

    def test_complete(self):
        """Test completion."""
        assert UploadProgress(total_chunks=3, uploaded_chunks=3).is_complete
