"""Tests for process attribution."""

import os
import pwd

import psutil

from portinv import resolver as resolver_module
from portinv.config import AttributionStrategy
from portinv.models import ProcessInfo
from portinv.resolver import ProcessResolver, lookup_username


def expected_owner() -> str:
    return lookup_username(os.getuid())


class TestLookupUsername:
    """Tests for uid to username resolution."""

    def test_known_uid(self):
        assert lookup_username(os.getuid()) in (pwd.getpwuid(os.getuid()).pw_name, "unknown")

    def test_missing_uid_falls_back_to_unknown(self, monkeypatch):
        def missing(uid):
            raise KeyError(f"getpwuid(): uid not found: {uid}")

        monkeypatch.setattr(pwd, "getpwuid", missing)

        assert lookup_username(54321) == "unknown"


class TestSocketStrategy:
    """Attribution through each process's own sockets."""

    def test_finds_fixture_process(self, listener_process):
        proc, port = listener_process
        resolver = ProcessResolver(self_pid=os.getpid())

        info = resolver.resolve(port)

        assert info is not None
        assert info.pid == proc.pid
        assert info.name == psutil.Process(proc.pid).name()
        assert info.owner == expected_owner()

    def test_excludes_own_pid(self, listening_socket):
        """Test the scanner never attributes a port to itself."""
        resolver = ProcessResolver(self_pid=os.getpid())

        assert resolver.resolve(listening_socket) is None

    def test_excludes_own_pid_while_holding_connection(self, listener_process):
        """Test own client connections to the port do not win attribution."""
        import socket

        proc, port = listener_process
        resolver = ProcessResolver(self_pid=os.getpid())

        with socket.create_connection(("127.0.0.1", port), timeout=2.0):
            info = resolver.resolve(port)

        assert info is not None
        assert info.pid == proc.pid

    def test_attributes_own_pid_when_not_excluded(self, listening_socket):
        resolver = ProcessResolver(self_pid=-1)

        info = resolver.resolve(listening_socket)

        assert info is not None
        assert info.pid == os.getpid()

    def test_unowned_port_returns_none(self, free_port):
        resolver = ProcessResolver(self_pid=os.getpid())

        assert resolver.resolve(free_port) is None

    def test_returns_fresh_value_per_call(self, listener_process):
        _, port = listener_process
        resolver = ProcessResolver(self_pid=os.getpid())

        first = resolver.resolve(port)
        second = resolver.resolve(port)

        assert first == second
        assert first is not second


class TestProcTcpStrategy:
    """Attribution through per-process TCP tables."""

    def test_matches_hex_port_in_table(self, tmp_path, listener_process):
        proc, _ = listener_process
        net = tmp_path / str(proc.pid) / "net"
        net.mkdir(parents=True)
        (net / "tcp").write_text(
            "  sl  local_address rem_address   st\n"
            "   0: 0100007F:1F90 00000000:0000 0A 00000000:00000000\n"
        )
        resolver = ProcessResolver(
            self_pid=os.getpid(),
            strategy=AttributionStrategy.PROC_TCP,
            proc_root=tmp_path,
        )

        info = resolver.resolve(8080)

        assert info is not None
        assert info.pid == proc.pid
        assert info.owner == expected_owner()

    def test_unreadable_tables_are_skipped(self, tmp_path):
        """Test a registry with no readable tables yields no attribution."""
        resolver = ProcessResolver(
            self_pid=os.getpid(),
            strategy=AttributionStrategy.PROC_TCP,
            proc_root=tmp_path,
        )

        assert resolver.resolve(8080) is None


class TestFailureAbsorption:
    """The resolver never raises to its caller."""

    def test_access_denied_then_match(self, monkeypatch):
        monkeypatch.setattr(psutil, "pids", lambda: [10, 20, 30])

        def holds_port(self, pid, port):
            if pid == 10:
                raise psutil.AccessDenied(pid)
            if pid == 20:
                raise psutil.NoSuchProcess(pid)
            return True

        monkeypatch.setattr(ProcessResolver, "_holds_port", holds_port)
        monkeypatch.setattr(
            ProcessResolver,
            "_describe",
            lambda self, pid: ProcessInfo(name="svc", pid=pid, owner="root"),
        )

        info = ProcessResolver(self_pid=1).resolve(8080)

        assert info == ProcessInfo(name="svc", pid=30, owner="root")

    def test_first_match_wins(self, monkeypatch):
        """Test enumeration order decides between processes sharing a port."""
        monkeypatch.setattr(psutil, "pids", lambda: [7, 3, 5])
        monkeypatch.setattr(ProcessResolver, "_holds_port", lambda self, pid, port: True)
        monkeypatch.setattr(
            ProcessResolver,
            "_describe",
            lambda self, pid: ProcessInfo(name="svc", pid=pid, owner="root"),
        )

        assert ProcessResolver(self_pid=1).resolve(8080).pid == 7

    def test_self_pid_skipped_before_reading(self, monkeypatch):
        seen = []
        monkeypatch.setattr(psutil, "pids", lambda: [1, 2])

        def holds_port(self, pid, port):
            seen.append(pid)
            return False

        monkeypatch.setattr(ProcessResolver, "_holds_port", holds_port)

        assert ProcessResolver(self_pid=2).resolve(8080) is None
        assert seen == [1]

    def test_describe_failure_continues_sweep(self, monkeypatch):
        monkeypatch.setattr(psutil, "pids", lambda: [10, 11])
        monkeypatch.setattr(ProcessResolver, "_holds_port", lambda self, pid, port: True)

        def describe(self, pid):
            if pid == 10:
                raise psutil.ZombieProcess(pid)
            return ProcessInfo(name="svc", pid=pid, owner="unknown")

        monkeypatch.setattr(ProcessResolver, "_describe", describe)

        assert ProcessResolver(self_pid=1).resolve(8080).pid == 11

    def test_registry_unavailable(self, monkeypatch):
        def no_proc():
            raise FileNotFoundError("/proc")

        monkeypatch.setattr(psutil, "pids", no_proc)

        assert ProcessResolver(self_pid=1).resolve(8080) is None

    def test_module_skippable_errors(self):
        assert psutil.AccessDenied in resolver_module._SKIPPABLE
        assert OSError in resolver_module._SKIPPABLE
