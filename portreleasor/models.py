from dataclasses import dataclass
from typing import Optional

from portreleasor.config import LISTENING, UNKNOWN_NAME

PROTOCOLS = ("TCP", "UDP")


def normalize_protocol(raw) -> Optional[str]:
    """Map tool spellings (tcp, tcp6, UDPv6, udp4...) onto TCP/UDP."""
    if not raw:
        return None
    token = str(raw).strip().upper()
    for proto in PROTOCOLS:
        if token.startswith(proto):
            return proto
    return None


@dataclass
class PortRecord:
    port: int
    protocol: str
    pid: int = 0
    process_name: str = UNKNOWN_NAME
    process_path: str = ""
    local_address: str = ""
    state: str = LISTENING

    @property
    def key(self):
        return (self.port, self.protocol)

    @property
    def label(self) -> str:
        return f"{self.port}/{self.protocol}"

    def __str__(self):
        if self.process_path:
            return f"{self.label}\t{self.pid}\t{self.process_name}\t{self.process_path}"
        return f"{self.label}\t{self.pid}\t{self.process_name}"
