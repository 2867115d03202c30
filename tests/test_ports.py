import pytest

from portreleasor.errors import PortOrderError, PortRangeError, PortSpecError
from portreleasor.models import PortRecord
from portreleasor.ports import filter_records, match_wildcard, parse_ports


@pytest.mark.parametrize("spec, expected", [
    (["8080"], [8080]),
    (["8080,8081"], [8080, 8081]),
    (["8080-8082"], [8080, 8081, 8082]),
    (["8081", "8080", "8080-8081"], [8080, 8081]),
    (["1", "65535"], [1, 65535]),
    ([" 22 , 80 "], [22, 80]),
])
def test_parse_ports(spec, expected):
    assert parse_ports(spec) == expected


def test_parse_single_string():
    assert parse_ports("443") == [443]


def test_range_order_error():
    with pytest.raises(PortOrderError) as exc:
        parse_ports(["9000-8999"])
    assert exc.value.token == "9000-8999"
    assert "greater than" in str(exc.value)


@pytest.mark.parametrize("token", ["70000", "0", "0-10", "65000-70000"])
def test_out_of_range(token):
    with pytest.raises(PortRangeError) as exc:
        parse_ports([token])
    assert exc.value.token == token


@pytest.mark.parametrize("token", ["http", "80-90-100", "80,,81", "-5", "80-"])
def test_malformed(token):
    with pytest.raises(PortSpecError):
        parse_ports([token])


def test_port_spec_error_is_value_error():
    with pytest.raises(ValueError):
        parse_ports(["abc"])


def _rec(port, proto="TCP"):
    return PortRecord(port=port, protocol=proto, pid=port)


def test_wildcard_is_substring():
    assert match_wildcard(80, "80")
    assert match_wildcard(8080, "80")
    assert not match_wildcard(443, "80")


def test_filter_without_patterns_returns_everything():
    recs = [_rec(22), _rec(80), _rec(53, "UDP")]
    assert filter_records(recs) == recs
    assert filter_records(recs, []) == recs


def test_filter_exact():
    recs = [_rec(80), _rec(8080), _rec(443)]
    assert [r.port for r in filter_records(recs, ["80"])] == [80]
    assert filter_records(recs, ["web"]) == []


def test_filter_wildcard():
    recs = [_rec(80), _rec(8080), _rec(443)]
    assert [r.port for r in filter_records(recs, ["80"], wildcard=True)] == [80, 8080]


def test_filter_record_included_once():
    recs = [_rec(8080)]
    assert len(filter_records(recs, ["80", "8080", "08"], wildcard=True)) == 1
