import pytest

from portreleasor.cache import ProcessCache, parse_ps_listing
from portreleasor.models import PortRecord, normalize_protocol
from portreleasor.records import RecordBuilder, port_from_address


@pytest.mark.parametrize("addr, port", [
    ("0.0.0.0:22", 22),
    ("*:8080", 8080),
    ("[::]:443", 443),
    ("[::ffff:127.0.0.1]:5432", 5432),
    ("127.0.0.53%lo:53", 53),
    ("0.0.0.0:*", None),
    ("10.0.0.1:5000->10.0.0.2:443", None),
    ("nocolon", None),
    ("", None),
])
def test_port_from_address(addr, port):
    assert port_from_address(addr) == port


@pytest.mark.parametrize("raw, proto", [
    ("tcp", "TCP"), ("tcp6", "TCP"), ("UDP", "UDP"), ("udp4", "UDP"),
    ("IPv4", None), ("", None), (None, None),
])
def test_normalize_protocol(raw, proto):
    assert normalize_protocol(raw) == proto


def test_first_record_wins():
    b = RecordBuilder()
    b.add(443, "tcp", 100, "nginx")
    b.add(443, "TCP", 200, "apache")
    b.add(443, "udp", 300, "quic")
    recs = b.records()
    assert len(recs) == 2
    tcp = [r for r in recs if r.protocol == "TCP"][0]
    assert tcp.pid == 100
    assert tcp.process_name == "nginx"
    assert b.dropped == 1


def test_taken_counts_drops():
    b = RecordBuilder()
    assert not b.taken(22, "tcp")
    b.add(22, "tcp", 1, "sshd")
    assert b.taken(22, "tcp6")
    assert b.dropped == 1


def test_builder_defaults():
    rec = RecordBuilder().add(53, "udp")
    assert rec.pid == 0
    assert rec.process_name == "Unknown"
    assert rec.process_path == ""
    assert rec.state == "LISTENING"


def test_record_str():
    rec = PortRecord(port=80, protocol="TCP", pid=7, process_name="nginx")
    assert str(rec) == "80/TCP\t7\tnginx"
    rec.process_path = "/usr/sbin/nginx"
    assert str(rec) == "80/TCP\t7\tnginx\t/usr/sbin/nginx"


def test_parse_ps_listing():
    out = "  PID COMM\n    1 systemd\n   42 /Applications/My App.app/x\nbad line\n"
    assert list(parse_ps_listing(out)) == [(1, "systemd"), (42, "/Applications/My App.app/x")]


def test_cache_probes_only_when_incomplete():
    probed = []

    def probe(pid):
        probed.append(pid)
        return "probed"

    cache = ProcessCache(probe=probe)
    cache.add(1, "init")
    cache.mark_complete()
    assert cache.name(1) == "init"
    assert cache.name(2) == "Unknown"
    assert probed == []

    broken = ProcessCache(probe=probe)
    assert broken.name(2) == "probed"
    assert broken.name(2) == "probed"
    assert probed == [2]


def test_cache_probe_on_miss():
    cache = ProcessCache(probe=lambda pid: None, probe_on_miss=True)
    cache.mark_complete()
    assert cache.name(5) == "Unknown"
    assert cache.path(5) == ""
