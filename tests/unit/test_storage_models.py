"""Tests for storage models."""
import pytest

from pcspy.core.storage import (
    DiffResult,
    FileMeta,
    FileRecord,
    MoveCopyResult,
    Quota,
    RestoreResult,
    StreamFileList,
)


class TestFileRecord:
    """Test suite for FileRecord."""

    def test_from_dict(self, sample_record_data):
        """Test decoding a service record."""
        record = FileRecord.from_dict(sample_record_data)

        assert record.path == '/apps/demo/report.pdf'
        assert record.size == 1024
        assert record.md5 == 'd41d8cd98f00b204e9800998ecf8427e'
        assert record.fs_id == 3528850315
        assert not record.is_dir
        assert record.name == 'report.pdf'

    def test_directory(self):
        """Test isdir maps to is_dir."""
        record = FileRecord.from_dict({'path': '/apps/demo', 'isdir': 1, 'fs_id': 1})

        assert record.is_dir
        assert record.size == 0
        assert record.md5 == ''

    def test_numeric_strings(self):
        """Test numeric fields given as strings are converted."""
        record = FileRecord.from_dict({'path': '/a', 'size': '12', 'fs_id': '7', 'isdir': '0'})

        assert record.size == 12
        assert record.fs_id == 7

    def test_not_an_object(self):
        """Test a non-object payload is rejected."""
        with pytest.raises(TypeError):
            FileRecord.from_dict(['/a'])

    def test_list_from_dict(self, sample_record_data):
        """Test decoding a listing."""
        records = FileRecord.list_from_dict({'list': [sample_record_data, {'path': '/b'}]})

        assert [r.path for r in records] == ['/apps/demo/report.pdf', '/b']

    def test_empty_listing(self):
        """Test a listing without entries."""
        assert FileRecord.list_from_dict({'list': []}) == []


class TestFileMeta:
    """Test suite for FileMeta."""

    def test_unwraps_list(self, sample_record_data):
        """Test single meta responses are unwrapped from their list."""
        data = dict(sample_record_data, block_list='["a","b"]', ifhassubdir=0)
        meta = FileMeta.from_dict({'list': [data]})

        assert meta.path == '/apps/demo/report.pdf'
        assert meta.block_list == '["a","b"]'
        assert not meta.has_subdir

    def test_block_list_as_array(self):
        """Test a JSON array block list is kept as text."""
        meta = FileMeta.from_dict({'path': '/a', 'block_list': ['x', 'y']})

        assert meta.block_list == '["x", "y"]'

    def test_empty_list_rejected(self):
        """Test an empty meta list is an error."""
        with pytest.raises(ValueError):
            FileMeta.from_dict({'list': []})

    def test_batch(self):
        """Test batch meta decoding keeps order."""
        metas = FileMeta.list_from_dict({'list': [{'path': '/b'}, {'path': '/a', 'isdir': 1}]})

        assert [m.path for m in metas] == ['/b', '/a']
        assert metas[1].is_dir


class TestQuota:
    """Test suite for Quota."""

    def test_from_dict(self):
        """Test quota decoding and derived values."""
        quota = Quota.from_dict({'quota': 2048, 'used': 512, 'request_id': 1})

        assert quota.free == 1536
        assert quota.used_percent == 25.0
        assert quota.has_space_for(1536)
        assert not quota.has_space_for(1537)

    def test_over_quota(self):
        """Test free space never goes negative."""
        assert Quota(quota=10, used=20).free == 0

    def test_zero_quota(self):
        """Test zero quota does not divide by zero."""
        assert Quota(quota=0, used=0).used_percent == 0.0

    def test_missing_field(self):
        """Test a missing field raises KeyError."""
        with pytest.raises(KeyError):
            Quota.from_dict({'quota': 1})


class TestResults:
    """Test suite for batch and recycle results."""

    def test_move_copy(self):
        """Test moved pairs are decoded."""
        result = MoveCopyResult.from_dict(
            {'extra': {'list': [{'from': '/a', 'to': '/b'}]}, 'request_id': 1}
        )

        assert result.pairs == (('/a', '/b'),)

    def test_move_copy_without_extra(self):
        """Test a response without extra yields no pairs."""
        assert MoveCopyResult.from_dict({}).pairs == ()

    def test_restore(self):
        """Test restored ids are decoded as strings."""
        result = RestoreResult.from_dict({'extra': {'list': [{'fs_id': 42}]}})

        assert result.fs_ids == ('42',)

    def test_stream_list(self):
        """Test media list paging fields."""
        result = StreamFileList.from_dict(
            {'total': 3, 'start': 0, 'limit': 1, 'list': [{'path': '/v.mp4', 'size': 9}]}
        )

        assert result.total == 3
        assert result.files[0].size == 9

    def test_diff(self):
        """Test diff entries split into changes and deletions."""
        result = DiffResult.from_dict({
            'entries': {
                '/apps/new.txt': {'size': 3, 'isdir': 0, 'isdelete': 0},
                '/apps/old.txt': {'isdelete': 1},
            },
            'cursor': 'next-cursor',
            'has_more': True,
            'reset': False,
        })

        assert [r.path for r in result.entries] == ['/apps/new.txt']
        assert result.entries[0].size == 3
        assert result.deleted == ['/apps/old.txt']
        assert result.cursor == 'next-cursor'
        assert result.has_more
        assert not result.reset

    def test_diff_needs_cursor(self):
        """Test a diff without cursor cannot be continued."""
        with pytest.raises(KeyError):
            DiffResult.from_dict({'entries': {}})
