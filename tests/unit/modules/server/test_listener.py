import socket

import pytest

from httpgrace.modules.server import listen, parse_address
from httpgrace.modules.shutdown import BindError, GracefulServerError


class TestParseAddress:
    @pytest.mark.parametrize("addr,expected", [
        ("127.0.0.1:8080", ("127.0.0.1", 8080)),
        (":8080", ("", 8080)),
        ("localhost:0", ("localhost", 0)),
        ("[::1]:443", ("::1", 443)),
    ])
    def test_valid_addresses(self, addr, expected):
        assert parse_address(addr) == expected

    @pytest.mark.parametrize("addr", [
        "127.0.0.1",
        "::1:80",
        "host:http",
        "host:70000",
        "host:-1",
    ])
    def test_invalid_addresses(self, addr):
        with pytest.raises(ValueError):
            parse_address(addr)


class TestListen:
    def test_binds_ephemeral_port(self):
        sock = listen("127.0.0.1:0")
        try:
            host, port = sock.getsockname()[:2]
            assert host == "127.0.0.1"
            assert port > 0
        finally:
            sock.close()

    def test_port_in_use(self):
        taken = socket.create_server(("127.0.0.1", 0))
        try:
            addr = "127.0.0.1:%d" % taken.getsockname()[1]
            with pytest.raises(BindError) as exc_info:
                listen(addr)
            assert exc_info.value.addr == addr
            assert str(exc_info.value).startswith(f"listen tcp {addr}: ")
            assert isinstance(exc_info.value.__cause__, OSError)
        finally:
            taken.close()

    def test_malformed_address(self):
        with pytest.raises(BindError) as exc_info:
            listen("no-port-here")
        assert isinstance(exc_info.value, GracefulServerError)
        assert isinstance(exc_info.value.reason, ValueError)
