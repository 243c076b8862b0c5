"""Shared fixtures for the OrderTime handler tests."""

import json
import threading
from contextlib import contextmanager
from http.server import HTTPServer

import httpx
import pytest

from api.ordertime.config import LiveConfig, ReportConfig


OT_ENV_VARS = [
    'OT_REPORT_URL', 'OT_BEARER_TOKEN', 'OT_BASIC_USER', 'OT_BASIC_PASS',
    'OT_BASE_URL', 'OT_API_KEY', 'OT_PAGE_SIZE', 'OT_TIMEOUT',
    'OT_TYPE_INVENTORY', 'OT_TYPE_LOT_SERIAL', 'OT_TYPE_ITEM', 'OT_TYPE_BIN',
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep a developer's real OrderTime settings out of the tests."""
    for name in OT_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def live_config():
    return LiveConfig(base_url='https://ot.example.com/api/', api_key='secret-key')


@pytest.fixture
def report_config():
    return ReportConfig(report_url='https://ot.example.com/report.csv', bearer_token='tok')


def list_transport(collections: dict, page_size: int = 500) -> httpx.MockTransport:
    """
    Fake /list endpoint serving fixed collections by entity type.

    Pages are sliced from the collection using the request body.
    """
    def respond(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        records = collections.get(body['Type'], [])
        size = body['NumberOfRecords']
        start = (body['PageNumber'] - 1) * size
        return httpx.Response(200, json={'Records': records[start:start + size]})

    return httpx.MockTransport(respond)


@contextmanager
def serve(handler_cls, transport=None):
    """Run a Vercel-style handler class on an ephemeral local port."""
    cls = type('TestHandler', (handler_cls,), {
        'transport': transport,
        'log_message': lambda self, *args: None,
    })
    server = HTTPServer(('127.0.0.1', 0), cls)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        host, port = server.server_address
        yield f"http://{host}:{port}"
    finally:
        server.shutdown()
        server.server_close()
        thread.join()
