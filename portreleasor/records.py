import logging
from typing import Optional

from portreleasor.config import LISTENING, UNKNOWN_NAME
from portreleasor.models import PortRecord, normalize_protocol

logger = logging.getLogger("portreleasor.records")

REMOTE_MARKER = "->"


def port_from_address(addr) -> Optional[int]:
    """Port of a `<host>:<port>` local address, None for anything else.

    Outbound entries (`local->remote`) and wildcard ports (`*:*`) yield None.
    """
    if not addr or REMOTE_MARKER in addr or ":" not in addr:
        return None
    tail = addr.rsplit(":", 1)[1]
    if not tail.isdigit():
        return None
    port = int(tail)
    if not 1 <= port <= 65535:
        return None
    return port


class RecordBuilder:
    """Collects PortRecords keyed by (port, protocol); the first one wins."""

    def __init__(self):
        self._records = {}
        self.dropped = 0

    def __len__(self):
        return len(self._records)

    def taken(self, port, protocol):
        """True (and counted as dropped) if the key already has a record."""
        key = (port, normalize_protocol(protocol))
        if key in self._records:
            self.dropped += 1
            return True
        return False

    def add(self, port, protocol, pid=0, name="", path="", local_address=""):
        proto = normalize_protocol(protocol)
        if proto is None:
            logger.debug("ignoring %s entry on port %s", protocol, port)
            return None
        key = (port, proto)
        if key in self._records:
            self.dropped += 1
            logger.debug("duplicate %d/%s (pid %s) dropped", port, proto, pid)
            return None
        rec = PortRecord(
            port=port,
            protocol=proto,
            pid=pid or 0,
            process_name=name or UNKNOWN_NAME,
            process_path=path or "",
            local_address=local_address,
            state=LISTENING,
        )
        self._records[key] = rec
        return rec

    def records(self):
        return list(self._records.values())
