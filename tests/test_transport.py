import socket
import threading
from pathlib import Path

import pytest

from conftest import FakeTransport
from richipc.exc import CouldNotConnect, NoLocationHint, NotConnected, TransportError
from richipc.ipc.transport import UnixSocketTransport, WindowsPipeTransport

needs_unix = pytest.mark.skipif(not hasattr(socket, "AF_UNIX"), reason="needs AF_UNIX sockets")


def test_connect_retry_exhaustion():
    transport = FakeTransport(refuse=["*"])

    with pytest.raises(CouldNotConnect) as e:
        transport.connect()

    assert len(transport.attempts) == 10
    assert transport.attempts == ["fake-ipc-{}".format(i) for i in range(10)]
    # the last failure is the one reported
    assert e.value.error.filename == "fake-ipc-9"
    assert e.value.__cause__ is e.value.error
    assert not transport.connected


def test_connect_stops_at_first_success():
    transport = FakeTransport(refuse=["fake-ipc-0", "fake-ipc-1"])

    assert transport.connect() == "fake-ipc-2"
    assert transport.attempts == ["fake-ipc-0", "fake-ipc-1", "fake-ipc-2"]
    assert transport.connected


def test_operations_before_connect_fail():
    transport = FakeTransport()

    with pytest.raises(NotConnected):
        transport.read_exact(8)

    with pytest.raises(NotConnected):
        transport.write_all(b"x")

    with pytest.raises(NotConnected):
        transport.close()


def test_short_read_is_an_error():
    transport = FakeTransport(inbound=b"abc")
    transport.connect()

    with pytest.raises(TransportError):
        transport.read_exact(8)


def test_write_error_is_wrapped():
    transport = FakeTransport()
    transport.connect()
    transport.fail_writes = True

    with pytest.raises(TransportError) as e:
        transport.write_all(b"x")

    assert isinstance(e.value.__cause__, BrokenPipeError)


def test_close_drops_handle_even_on_error():
    transport = FakeTransport()
    transport.connect()
    transport.fail_close = True

    with pytest.raises(TransportError):
        transport.close()

    assert not transport.connected


def test_base_path_priority(tmp_path):
    environ = {"TMPDIR": "/tmp/b", "TEMP": "/tmp/d", "XDG_RUNTIME_DIR": str(tmp_path)}
    transport = UnixSocketTransport(environ=environ)

    assert transport.get_base_path() == tmp_path
    assert transport.candidates()[0] == str(tmp_path / "discord-ipc-0")
    assert transport.candidates()[-1] == str(tmp_path / "discord-ipc-9")

    del environ["XDG_RUNTIME_DIR"]
    assert str(transport.get_base_path()) == "/tmp/b"


def test_no_location_hint():
    transport = UnixSocketTransport(environ={"HOME": "/home/test", "PATH": "/usr/bin"})

    with pytest.raises(NoLocationHint):
        transport.connect()


def test_empty_hint_still_wins():
    environ = {"XDG_RUNTIME_DIR": "", "TMPDIR": "/tmp/b"}
    transport = UnixSocketTransport(environ=environ)

    assert transport.get_base_path() == Path("")
    assert transport.candidates()[0] == "discord-ipc-0"

    transport = UnixSocketTransport(environ={"TMP": ""})
    assert transport.get_base_path() == Path("")


def test_connect_twice_fails():
    transport = FakeTransport()
    transport.connect()

    with pytest.raises(RuntimeError):
        transport.connect()

    assert transport.attempts == ["fake-ipc-0"]
    assert transport.connected


def test_windows_candidates():
    transport = WindowsPipeTransport()

    assert transport.candidates()[0] == r"\\?\pipe\discord-ipc-0"
    assert transport.candidates()[9] == r"\\?\pipe\discord-ipc-9"
    assert len(transport.candidates()) == 10


@needs_unix
def test_unix_connects_to_first_bound_slot(tmp_path):
    server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    server.bind(str(tmp_path / "discord-ipc-3"))
    server.listen(1)

    received = []

    def serve():
        conn, _ = server.accept()
        with conn:
            data = b""
            while len(data) < 5:
                data += conn.recv(5 - len(data))
            received.append(data)
            conn.sendall(b"world")

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()

    transport = UnixSocketTransport(environ={"XDG_RUNTIME_DIR": str(tmp_path)})
    try:
        assert transport.connect() == str(tmp_path / "discord-ipc-3")
        transport.write_all(b"hello")
        assert transport.read_exact(5) == b"world"
    finally:
        thread.join(5)
        server.close()

    assert received == [b"hello"]

    # the server has gone; shutting down may or may not complain, but the handle is dropped
    try:
        transport.close()
    except TransportError:
        pass
    assert not transport.connected


@needs_unix
def test_unix_nothing_listening(tmp_path):
    transport = UnixSocketTransport(environ={"TMPDIR": str(tmp_path)})

    with pytest.raises(CouldNotConnect) as e:
        transport.connect()

    assert isinstance(e.value.error, FileNotFoundError)
