from portreleasor.errors import PortOrderError, PortRangeError, PortSpecError

MIN_PORT = 1
MAX_PORT = 65535


def _parse_port(token, text):
    text = text.strip()
    try:
        port = int(text)
    except ValueError:
        raise PortSpecError(token, f"'{text}' is not a number")
    if not MIN_PORT <= port <= MAX_PORT:
        raise PortRangeError(token, port)
    return port


def _parse_item(token, item):
    if "-" in item:
        parts = item.split("-")
        if len(parts) != 2:
            raise PortSpecError(token, "range must look like START-END")
        start = _parse_port(token, parts[0])
        end = _parse_port(token, parts[1])
        if start > end:
            raise PortOrderError(token, start, end)
        return range(start, end + 1)
    return (_parse_port(token, item),)


def parse_ports(tokens):
    """Expand port arguments into a sorted list of unique ports.

    Accepts single ports ("8080"), comma lists ("8080,8081") and inclusive
    ranges ("8080-8090"), in any mix. Raises PortSpecError on the first bad
    token.
    """
    if isinstance(tokens, str):
        tokens = [tokens]
    seen = set()
    for token in tokens:
        items = token.split(",")
        for item in items:
            if not item.strip():
                raise PortSpecError(token, "empty port")
            seen.update(_parse_item(token, item.strip()))
    return sorted(seen)


def match_wildcard(port, pattern):
    return pattern in str(port)


def _matches(rec, pattern, wildcard):
    if wildcard:
        return match_wildcard(rec.port, pattern)
    try:
        return rec.port == int(pattern)
    except ValueError:
        return False


def filter_records(records, patterns=None, wildcard=False):
    """Records matching any pattern, each at most once, in input order."""
    if not patterns:
        return list(records)
    return [rec for rec in records if any(_matches(rec, p, wildcard) for p in patterns)]
