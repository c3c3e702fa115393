"""Pytest fixtures for pcspy tests."""
import hashlib
import json
import os
import re
import tempfile
import zlib
from pathlib import Path
from urllib.parse import urlencode

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from pcspy import APIConfig, EndpointConfig, PCSClient
from pcspy.core.api import RequestBuilder

TOKEN = 'test-token'
FIXED_TIME = 1700000000
SLICE = 256 * 1024


def md5_hex(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


class FakePCS:
    """
    In-process stand-in for the PCS service.

    Serves the three endpoints under ``/control``, ``/upload`` and
    ``/download`` of one aiohttp app. Records are deterministic, so the
    same content at the same path always yields the same record.
    """

    def __init__(self):
        self.files = {}
        self.dirs = {'/'}
        self.blocks = {}
        self.redirects = {}
        self.calls = []
        self.tmpfile_failures = 0
        self.base_url = ''
        self._routes = {
            ('upload', 'file', 'upload'): self.upload,
            ('control', 'file', 'createsuperfile'): self.create_superfile,
            ('control', 'file', 'rapidupload'): self.rapid_upload,
            ('control', 'file', 'meta'): self.meta,
            ('control', 'file', 'list'): self.list_files,
            ('control', 'file', 'mkdir'): self.mkdir,
            ('control', 'quota', 'info'): self.quota,
            ('download', 'file', 'download'): self.download,
        }

    def make_app(self) -> web.Application:
        app = web.Application(client_max_size=64 * 1024 * 1024)
        app.router.add_route('*', '/{role}/rest/2.0/pcs/{resource:.+}', self.dispatch)
        return app

    def endpoints(self) -> EndpointConfig:
        return EndpointConfig(
            control=f"{self.base_url}/control/rest/2.0/pcs",
            upload=f"{self.base_url}/upload/rest/2.0/pcs",
            download=f"{self.base_url}/download/rest/2.0/pcs",
        )

    def methods(self, role=None):
        """Service methods called so far, optionally only on one endpoint."""
        return [method for r, _, method, _ in self.calls if role is None or r == role]

    # -- helpers --------------------------------------------------------------

    @staticmethod
    def error(status, message, code):
        return web.json_response(
            {'error_code': code, 'error_msg': message, 'request_id': 1}, status=status
        )

    def record(self, path):
        if path in self.dirs:
            return {'path': path, 'size': 0, 'ctime': FIXED_TIME, 'mtime': FIXED_TIME,
                    'fs_id': zlib.crc32(path.encode()), 'isdir': 1, 'ifhassubdir': 0}
        content = self.files[path]
        return {'path': path, 'size': len(content), 'ctime': FIXED_TIME,
                'mtime': FIXED_TIME, 'md5': md5_hex(content),
                'fs_id': zlib.crc32(path.encode()), 'isdir': 0}

    def store(self, path, content, ondup):
        if ondup == 'newcopy' and path in self.files:
            path = f"{path}.copy"
        self.files[path] = content
        return path

    # -- handlers -------------------------------------------------------------

    async def dispatch(self, request):
        role = request.match_info['role']
        resource = request.match_info['resource']
        method = request.query.get('method')
        self.calls.append((role, resource, method, request.query.get('type')))

        if request.query.get('access_token') != TOKEN:
            return self.error(401, 'Access token invalid or no longer valid', 110)
        handler = self._routes.get((role, resource, method))
        if handler is None:
            return self.error(400, 'Invalid parameter', 31023)
        return await handler(request)

    async def upload(self, request):
        form = await request.post()
        data = form['file'].file.read()
        if request.query.get('type') == 'tmpfile':
            if self.tmpfile_failures:
                self.tmpfile_failures -= 1
                return web.Response(status=500, text='internal error')
            digest = md5_hex(data)
            self.blocks[digest] = data
            return web.json_response({'md5': digest, 'request_id': 2})

        path = self.store(request.query['path'], data, request.query.get('ondup'))
        return web.json_response(self.record(path))

    async def create_superfile(self, request):
        form = await request.post()
        try:
            digests = json.loads(form['param'])['blocklist']
        except (KeyError, ValueError):
            return self.error(400, 'Invalid parameter', 31023)
        if any(d not in self.blocks for d in digests):
            return self.error(400, 'Superfile creation failed', 31081)
        content = b''.join(self.blocks[d] for d in digests)
        path = self.store(request.query['path'], content, request.query.get('ondup'))
        return web.json_response(self.record(path))

    async def rapid_upload(self, request):
        query = request.query
        for content in list(self.files.values()):
            if (len(content) == int(query['content-length'])
                    and md5_hex(content) == query['content-md5']
                    and md5_hex(content[:SLICE]) == query['slice-md5']
                    and str(zlib.crc32(content) & 0xffffffff) == query['content-crc32']):
                path = self.store(query['path'], content, query.get('ondup'))
                return web.json_response(self.record(path))
        return self.error(404, 'file md5 not found', 31079)

    async def meta(self, request):
        form = await request.post()
        if 'param' in form:
            paths = [item['path'] for item in json.loads(form['param'])['list']]
        else:
            paths = [request.query['path']]
        records = []
        for path in paths:
            if path not in self.files and path not in self.dirs:
                return self.error(404, 'file does not exist', 31066)
            records.append(self.record(path))
        return web.json_response({'list': records})

    async def list_files(self, request):
        parent = request.query['path'].rstrip('/') or '/'
        children = sorted(
            p for p in list(self.files) + list(self.dirs)
            if p != '/' and p.rsplit('/', 1)[0] == ('' if parent == '/' else parent)
        )
        return web.json_response({'list': [self.record(p) for p in children]})

    async def mkdir(self, request):
        path = request.query['path']
        self.dirs.add(path)
        return web.json_response({'path': path, 'ctime': FIXED_TIME, 'mtime': FIXED_TIME,
                                  'fs_id': zlib.crc32(path.encode())})

    async def quota(self, request):
        used = sum(len(content) for content in self.files.values())
        return web.json_response({'quota': 10 * 1024 ** 3, 'used': used})

    async def download(self, request):
        path = request.query['path']
        if path in self.redirects:
            target = urlencode([
                ('access_token', TOKEN), ('method', 'download'), ('path', self.redirects[path])
            ])
            return web.Response(
                status=302, headers={'Location': f"/download/rest/2.0/pcs/file?{target}"}
            )
        if path not in self.files:
            return self.error(404, 'file does not exist', 31066)

        content = self.files[path]
        header = request.headers.get('Range')
        if not header:
            return web.Response(body=content)

        match = re.match(r'^bytes=(\d+)-(\d*)$', header)
        start = int(match.group(1))
        end = int(match.group(2)) if match.group(2) else len(content) - 1
        if start >= len(content):
            return web.Response(
                status=416, headers={'Content-Range': f"bytes */{len(content)}"}
            )
        end = min(end, len(content) - 1)
        return web.Response(
            status=206,
            body=content[start:end + 1],
            headers={'Content-Range': f"bytes {start}-{end}/{len(content)}"}
        )


@pytest_asyncio.fixture
async def fake_pcs():
    """Runs a FakePCS on a local port for the duration of a test."""
    service = FakePCS()
    server = TestServer(service.make_app())
    await server.start_server()
    service.base_url = str(server.make_url('')).rstrip('/')
    yield service
    await server.close()


@pytest_asyncio.fixture
async def pcs(fake_pcs):
    """PCSClient bound to the fake service, with instant retries."""
    config = APIConfig(endpoints=fake_pcs.endpoints())
    config.retry.base_delay = 0.0
    async with PCSClient(TOKEN, config=config) as client:
        yield client


@pytest.fixture
def builder():
    """Request builder against the default endpoints."""
    return RequestBuilder(EndpointConfig(), TOKEN)


@pytest.fixture
def make_file():
    """Factory for temporary files with given content; removed afterwards."""
    created = []

    def _make(content: bytes, suffix: str = '.bin') -> Path:
        fd, path = tempfile.mkstemp(suffix=suffix)
        os.write(fd, content)
        os.close(fd)
        created.append(path)
        return Path(path)

    yield _make
    for path in created:
        if os.path.exists(path):
            os.unlink(path)


@pytest.fixture
def sample_record_data():
    """Returns a file record as the service reports it."""
    return {
        'path': '/apps/demo/report.pdf',
        'size': 1024,
        'ctime': FIXED_TIME,
        'mtime': FIXED_TIME + 60,
        'md5': 'd41d8cd98f00b204e9800998ecf8427e',
        'fs_id': 3528850315,
        'isdir': 0,
        'request_id': 4043312669
    }
