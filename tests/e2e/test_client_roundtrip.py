"""
End-to-end tests against an in-process PCS service.

The fake service runs on a local port; every request goes through the
real transport, request builder and response handler.
"""
import asyncio
import hashlib
import os

import pytest

from pcspy import (
    APIConfig,
    BlockUploadError,
    EndpointConfig,
    PCSAPIError,
    PCSClient,
    PCSRedirectError,
    PCSTransportError,
    UploadStrategy,
)
from pcspy.core.api import operations
from pcspy.core.api.options import PathOptions

KiB = 1024


def md5_hex(data):
    return hashlib.md5(data).hexdigest()


class TestUploads:
    """Test suite for the upload strategies."""

    @pytest.mark.asyncio
    async def test_direct_upload_then_meta(self, pcs, fake_pcs, make_file):
        """Test a direct upload is reported back by meta with the same size and md5."""
        data = os.urandom(10 * KiB)

        result = await pcs.upload_file(make_file(data), '/apps/demo/a.bin', strategy='direct')
        meta = await pcs.get_meta('/apps/demo/a.bin')

        assert result.strategy is UploadStrategy.DIRECT
        assert result.md5 == md5_hex(data)
        assert meta.size == len(data)
        assert meta.md5 == md5_hex(data)
        assert fake_pcs.methods('upload') == ['upload']

    @pytest.mark.asyncio
    async def test_block_upload(self, pcs, fake_pcs, make_file):
        """Test blocks go to the upload endpoint and the merge to control."""
        data = os.urandom(600 * KiB + 3)

        result = await pcs.upload_file(
            make_file(data), '/apps/demo/big.bin',
            strategy='block', block_size=256 * KiB
        )

        assert result.strategy is UploadStrategy.BLOCK
        assert len(result.block_list) == 3
        assert fake_pcs.files['/apps/demo/big.bin'] == data
        assert result.md5 == md5_hex(data)
        assert fake_pcs.methods('upload') == ['upload'] * 3
        assert fake_pcs.methods('control') == ['createsuperfile']

    @pytest.mark.asyncio
    async def test_auto_picks_blocks(self, pcs, fake_pcs, make_file):
        """Test auto mode tries rapid, misses and uploads in blocks."""
        data = os.urandom(700 * KiB)

        result = await pcs.upload_file(
            make_file(data), '/apps/demo/auto.bin', block_size=256 * KiB
        )

        assert result.strategy is UploadStrategy.BLOCK
        assert fake_pcs.methods('control') == ['rapidupload', 'createsuperfile']
        assert fake_pcs.files['/apps/demo/auto.bin'] == data

    @pytest.mark.asyncio
    async def test_rapid_upload_after_direct(self, pcs, fake_pcs, make_file):
        """Test content already stored is linked without re-uploading."""
        data = os.urandom(300 * KiB)
        path = make_file(data)
        await pcs.upload_file(path, '/apps/demo/first.bin', strategy='direct')

        result = await pcs.upload_file(path, '/apps/demo/second.bin')

        assert result.strategy is UploadStrategy.RAPID
        assert result.md5 == md5_hex(data)
        assert fake_pcs.files['/apps/demo/second.bin'] == data
        assert fake_pcs.methods('upload') == ['upload']

    @pytest.mark.asyncio
    async def test_rapid_upload_miss(self, pcs, make_file):
        """Test an explicit rapid upload of unknown content fails with the service error."""
        with pytest.raises(PCSAPIError) as exc_info:
            await pcs.upload_file(
                make_file(os.urandom(300 * KiB)), '/apps/demo/x.bin', strategy='rapid'
            )

        assert exc_info.value.status == 404
        assert exc_info.value.error_code == 31079

    @pytest.mark.asyncio
    async def test_merge_is_repeatable(self, pcs):
        """Test merging the same block list twice yields the same record."""
        first = await pcs.upload_block(b'a' * 1000)
        second = await pcs.upload_block(b'b' * 500)
        block_list = [first.md5, second.md5]

        one = await pcs.create_superfile('/apps/demo/merged.bin', block_list)
        two = await pcs.create_superfile('/apps/demo/merged.bin', block_list)

        assert one == two
        assert one.size == 1500
        assert one.md5 == md5_hex(b'a' * 1000 + b'b' * 500)

    @pytest.mark.asyncio
    async def test_merge_order_matters(self, pcs, fake_pcs):
        """Test blocks are concatenated in list order."""
        first = await pcs.upload_block(b'first-')
        second = await pcs.upload_block(b'second')

        await pcs.create_superfile('/apps/demo/order.bin', [second.md5, first.md5])

        assert fake_pcs.files['/apps/demo/order.bin'] == b'secondfirst-'

    @pytest.mark.asyncio
    async def test_newcopy(self, pcs, fake_pcs, make_file):
        """Test overwrite=False keeps both files."""
        path = make_file(b'v1')
        await pcs.upload_file(path, '/apps/demo/v.txt', strategy='direct')

        result = await pcs.upload_file(path, '/apps/demo/v.txt', strategy='direct', overwrite=False)

        assert result.path != '/apps/demo/v.txt'
        assert '/apps/demo/v.txt' in fake_pcs.files

    @pytest.mark.asyncio
    async def test_block_retry_on_server_error(self, pcs, fake_pcs, make_file):
        """Test a block failing with 5xx is retried and the upload completes."""
        fake_pcs.tmpfile_failures = 1
        data = os.urandom(3 * KiB)

        result = await pcs.upload_file(
            make_file(data), '/apps/demo/retry.bin', strategy='block', block_size=KiB
        )

        assert result.md5 == md5_hex(data)
        assert fake_pcs.methods('upload') == ['upload'] * 4

    @pytest.mark.asyncio
    async def test_block_failure_after_retries(self, fake_pcs, make_file):
        """Test a block that keeps failing surfaces its index and skips the merge."""
        fake_pcs.tmpfile_failures = 100
        config = APIConfig(endpoints=fake_pcs.endpoints())
        config.retry.base_delay = 0.0
        config.retry.max_retries = 1

        async with PCSClient('test-token', config=config) as pcs:
            with pytest.raises(BlockUploadError) as exc_info:
                await pcs.upload_file(
                    make_file(b'x' * 2 * KiB), '/apps/demo/fail.bin',
                    strategy='block', block_size=KiB, max_concurrent_uploads=1
                )

        assert exc_info.value.chunk_index == 0
        assert exc_info.value.cause.status == 500
        assert 'createsuperfile' not in fake_pcs.methods()


class TestDownloads:
    """Test suite for downloads."""

    @pytest.fixture
    def content(self, fake_pcs):
        """Stores a known remote file."""
        data = os.urandom(300 * KiB + 11)
        fake_pcs.files['/apps/demo/data.bin'] = data
        return data

    @pytest.mark.asyncio
    async def test_download(self, pcs, content, tmp_path):
        """Test a whole-file download."""
        progress = []

        result = await pcs.download(
            '/apps/demo/data.bin', tmp_path,
            progress_callback=lambda done, total: progress.append((done, total))
        )

        assert result.dest == tmp_path / 'data.bin'
        assert result.dest.read_bytes() == content
        assert result.size == len(content)
        assert not result.resumed
        assert progress[-1] == (len(content), len(content))
        assert 'test-token' not in result.final_url

    @pytest.mark.asyncio
    async def test_resume(self, pcs, content, tmp_path):
        """Test resuming appends only the missing bytes."""
        dest = tmp_path / 'partial.bin'
        dest.write_bytes(content[:1000])

        result = await pcs.download('/apps/demo/data.bin', dest, resume=True)

        assert result.resumed
        assert dest.read_bytes() == content

    @pytest.mark.asyncio
    async def test_resume_complete_file(self, pcs, content, tmp_path):
        """Test resuming an already complete file changes nothing."""
        dest = tmp_path / 'done.bin'
        dest.write_bytes(content)

        result = await pcs.download('/apps/demo/data.bin', dest, resume=True)

        assert result.size == len(content)
        assert dest.read_bytes() == content

    @pytest.mark.asyncio
    async def test_partial_download(self, pcs, content):
        """Test an inclusive byte range."""
        assert await pcs.partial_download('/apps/demo/data.bin', 10, 19) == content[10:20]

    @pytest.mark.asyncio
    async def test_partial_download_single_byte(self, pcs, content):
        """Test start equal to end returns one byte."""
        assert await pcs.partial_download('/apps/demo/data.bin', 5, 5) == content[5:6]

    @pytest.mark.asyncio
    async def test_resume_local_longer_than_remote(self, pcs, fake_pcs, tmp_path):
        """Test a stale local file longer than the remote one is replaced."""
        fake_pcs.files['/apps/demo/fresh.txt'] = b'fresh-content'
        dest = tmp_path / 'fresh.txt'
        dest.write_bytes(b'stale-and-much-longer-local-content')

        result = await pcs.download('/apps/demo/fresh.txt', dest, resume=True)

        assert dest.read_bytes() == b'fresh-content'
        assert result.size == len(b'fresh-content')
        assert not result.resumed

    @pytest.mark.asyncio
    async def test_stream(self, pcs, content):
        """Test iterating the body in chunks."""
        async with pcs.download_stream('/apps/demo/data.bin', 64 * KiB) as chunks:
            received = [chunk async for chunk in chunks]

        assert b''.join(received) == content
        assert all(len(chunk) <= 64 * KiB for chunk in received)

    @pytest.mark.asyncio
    async def test_stream_early_exit_releases_connection(self, pcs, content):
        """Test leaving the stream after one chunk returns the connection."""
        async with pcs.download_stream('/apps/demo/data.bin', 16 * KiB) as chunks:
            async for chunk in chunks:
                first = chunk
                break

        assert first == content[:len(first)]
        assert len(pcs._api._connector._acquired) == 0

    @pytest.mark.asyncio
    async def test_stream_byte_range(self, pcs, content):
        """Test streaming a range yields only that span."""
        async with pcs.download_stream('/apps/demo/data.bin', byte_range=(100, 199)) as chunks:
            received = b''.join([chunk async for chunk in chunks])

        assert received == content[100:200]

    @pytest.mark.asyncio
    async def test_plain_get_respects_redirect_policy(self, fake_pcs, content):
        """Test non-streaming requests surface a redirect when following is off."""
        fake_pcs.redirects['/apps/demo/moved.bin'] = '/apps/demo/data.bin'
        config = APIConfig(endpoints=fake_pcs.endpoints(), follow_redirects=False)

        async with PCSClient('test-token', config=config) as pcs:
            request = pcs._builder.build(
                operations.FILE_DOWNLOAD, PathOptions('/apps/demo/moved.bin')
            )
            response = await pcs._api.get(request)

        assert response.status == 302
        assert 'data.bin' in response.headers['Location']

    @pytest.mark.asyncio
    async def test_redirect_followed(self, pcs, fake_pcs, content, tmp_path):
        """Test redirects are followed and the final URL reported."""
        fake_pcs.redirects['/apps/demo/moved.bin'] = '/apps/demo/data.bin'

        result = await pcs.download('/apps/demo/moved.bin', tmp_path / 'moved.bin')

        assert result.dest.read_bytes() == content
        assert 'data.bin' in result.final_url
        assert 'access_token=***' in result.final_url

    @pytest.mark.asyncio
    async def test_redirect_not_followed(self, fake_pcs, content, tmp_path):
        """Test a redirect is an error when following is disabled."""
        fake_pcs.redirects['/apps/demo/moved.bin'] = '/apps/demo/data.bin'
        config = APIConfig(endpoints=fake_pcs.endpoints(), follow_redirects=False)

        async with PCSClient('test-token', config=config) as pcs:
            with pytest.raises(PCSRedirectError) as exc_info:
                await pcs.download('/apps/demo/moved.bin', tmp_path / 'moved.bin')

        assert exc_info.value.status == 302
        assert 'data.bin' in exc_info.value.location

    @pytest.mark.asyncio
    async def test_missing_file(self, pcs, tmp_path):
        """Test downloading a missing file raises the service error."""
        with pytest.raises(PCSAPIError) as exc_info:
            await pcs.download('/apps/demo/none.bin', tmp_path / 'none.bin')

        assert exc_info.value.error_code == 31066


class TestFileOperations:
    """Test suite for metadata and directory operations."""

    @pytest.mark.asyncio
    async def test_meta_missing(self, pcs):
        """Test a missing path decodes the service error."""
        with pytest.raises(PCSAPIError) as exc_info:
            await pcs.get_meta('/apps/demo/none.bin')

        assert exc_info.value.status == 404
        assert exc_info.value.error_code == 31066
        assert exc_info.value.message == 'file does not exist'
        assert exc_info.value.operation == 'file.meta'

    @pytest.mark.asyncio
    async def test_batch_meta(self, pcs, fake_pcs):
        """Test several paths in one request."""
        fake_pcs.files['/apps/a'] = b'1'
        fake_pcs.files['/apps/b'] = b'22'

        metas = await pcs.batch_get_meta(['/apps/b', '/apps/a'])

        assert [(m.path, m.size) for m in metas] == [('/apps/b', 2), ('/apps/a', 1)]

    @pytest.mark.asyncio
    async def test_mkdir_and_list(self, pcs, fake_pcs):
        """Test a created directory shows up in its parent listing."""
        fake_pcs.dirs.add('/apps')
        fake_pcs.files['/apps/file.txt'] = b'abc'

        created = await pcs.mkdir('/apps/sub')
        records = await pcs.list_files('/apps')

        assert created.path == '/apps/sub'
        assert [(r.name, r.is_dir) for r in records] == [('file.txt', False), ('sub', True)]

    @pytest.mark.asyncio
    async def test_quota(self, pcs, fake_pcs):
        """Test quota decoding."""
        fake_pcs.files['/apps/a'] = b'x' * 100

        quota = await pcs.get_quota()

        assert quota.used == 100
        assert quota.quota == 10 * 1024 ** 3


class TestFailures:
    """Test suite for authentication and transport failures."""

    @pytest.mark.asyncio
    async def test_bad_token(self, fake_pcs):
        """Test the service rejection of a token is surfaced."""
        config = APIConfig(endpoints=fake_pcs.endpoints())
        async with PCSClient('wrong-token', config=config) as pcs:
            with pytest.raises(PCSAPIError) as exc_info:
                await pcs.get_quota()

        assert exc_info.value.status == 401
        assert exc_info.value.error_code == 110

    @pytest.mark.asyncio
    async def test_connection_refused(self):
        """Test an unreachable endpoint is a transport error."""
        endpoints = EndpointConfig(control='http://127.0.0.1:9/rest/2.0/pcs')
        async with PCSClient('test-token', config=APIConfig(endpoints=endpoints)) as pcs:
            with pytest.raises(PCSTransportError) as exc_info:
                await pcs.get_quota()

        assert exc_info.value.operation == 'quota.info'
        assert exc_info.value.cause is not None
        assert 'test-token' not in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_concurrent_requests(self, pcs, fake_pcs):
        """Test one client serves concurrent calls."""
        for i in range(20):
            fake_pcs.files[f'/apps/f{i}'] = b'x' * i

        metas = await asyncio.gather(*(pcs.get_meta(f'/apps/f{i}') for i in range(20)))

        assert [m.size for m in metas] == list(range(20))
