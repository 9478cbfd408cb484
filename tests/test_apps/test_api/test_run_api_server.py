"""Tests for the run_api_server management command."""

from io import StringIO

import pytest
from django.core.management import call_command

from server.apps.api.management.commands import run_api_server


class FakeServer:
    """Records how the command drives the WSGI server."""

    instances: list['FakeServer'] = []

    def __init__(self, bind_addr, wsgi_app, numthreads):
        self.bind_addr = bind_addr
        self.wsgi_app = wsgi_app
        self.numthreads = numthreads
        self.started = False
        self.stopped = False
        FakeServer.instances.append(self)

    def start(self):
        self.started = True
        raise KeyboardInterrupt

    def stop(self):
        self.stopped = True


@pytest.fixture
def fake_server(monkeypatch):
    """Replace cheroot's server with FakeServer.

    Returns:
        FakeServer class with its recorded instances.
    """
    FakeServer.instances = []
    monkeypatch.setattr(run_api_server, 'WSGIServer', FakeServer)
    return FakeServer


def test_defaults_from_settings(fake_server, settings):
    """Test that host and port come from settings."""
    settings.API_HOST = '127.0.0.1'
    settings.API_PORT = 8123
    out = StringIO()

    call_command('run_api_server', stdout=out)

    server = fake_server.instances[0]
    assert server.bind_addr == ('127.0.0.1', 8123)
    assert server.numthreads == 10
    assert server.server_name == 'Drive-API'
    assert server.started
    assert server.stopped
    assert 'Starting API server on 127.0.0.1:8123' in out.getvalue()
    assert 'API server stopped' in out.getvalue()


def test_command_line_overrides(fake_server):
    """Test explicit host, port and threads."""
    call_command(
        'run_api_server',
        '--host',
        '0.0.0.0',  # noqa: S104
        '--port',
        '9000',
        '--threads',
        '4',
        stdout=StringIO(),
    )

    server = fake_server.instances[0]
    assert server.bind_addr == ('0.0.0.0', 9000)  # noqa: S104
    assert server.numthreads == 4
