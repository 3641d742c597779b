"""
Tests for listener construction (no sockets are opened).
"""
from __future__ import annotations

from dataclasses import replace

from app.main import create_app
from app.server import build_servers


def test_http_only_without_tls(settings):
    servers = build_servers(create_app(settings), settings)

    assert [s.config.port for s in servers] == [3000]
    assert servers[0].config.lifespan == "on"


def test_https_listener_when_tls_configured(settings, tmp_path):
    tls = replace(settings, tls_cert_file=tmp_path / "cert.pem", tls_key_file=tmp_path / "key.pem")

    servers = build_servers(create_app(tls), tls)

    assert [s.config.port for s in servers] == [3000, 3001]
    assert servers[1].config.ssl_certfile == str(tmp_path / "cert.pem")
    assert servers[1].config.lifespan == "off"
