import logging
import os

from portreleasor.cache import parse_ps_listing
from portreleasor.errors import ProcessLookupFailed, ToolError
from portreleasor.models import normalize_protocol
from portreleasor.platforms.base import PlatformManager
from portreleasor.records import port_from_address
from portreleasor.shell import _cmd_out

logger = logging.getLogger("portreleasor.darwin")

# COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME
LSOF_MIN_FIELDS = 9
LSOF_PROTO = 7
LSOF_NAME = 8


def split_command(command):
    """Display name and path from a ps `comm` value; path empty if not a path."""
    if not command:
        return "", ""
    if "/" in command:
        return os.path.basename(command.rstrip("/")) or command, command
    return command, ""


class DarwinManager(PlatformManager):
    system = "Darwin"
    strategies = (("lsof", "_collect_lsof"), ("psutil", "_collect_psutil"))

    def _probe_name(self, pid):
        out = _cmd_out(self.run, ["ps", "-p", str(pid), "-o", "comm="]).strip()
        return out or None

    def build_cache(self):
        cache = self._new_cache()
        try:
            out = self.run(["ps", "-axo", "pid,comm"])
        except ToolError as e:
            logger.warning("process listing failed (%s); names resolved per PID", e)
            return cache
        for pid, comm in parse_ps_listing(out):
            cache.add(pid, comm)
        cache.mark_complete()
        return cache

    def _owner(self, pid, fallback_name=""):
        if not pid:
            return self.unresolved_name, ""
        name, path = split_command(self.cache.lookup(pid) or fallback_name)
        return name or fallback_name or self.unresolved_name, path

    def _collect_lsof(self, builder):
        out = self.run(["lsof", "-i", "-P", "-n"])
        for ln in out.splitlines():
            fields = ln.split()
            if len(fields) < LSOF_MIN_FIELDS or fields[0] == "COMMAND":
                continue
            address = fields[LSOF_NAME]
            proto = normalize_protocol(fields[LSOF_PROTO])
            port = port_from_address(address)
            if proto is None or port is None or not fields[1].isdigit():
                continue
            if builder.taken(port, proto):
                continue
            pid = int(fields[1])
            name, path = self._owner(pid, fields[0])
            builder.add(port, proto, pid, name, path, address)

    def get_process_path(self, pid) -> str:
        try:
            out = self.run(["ps", "-p", str(pid), "-o", "command"])
        except ToolError as e:
            raise ProcessLookupFailed(pid, str(e))
        lines = out.splitlines()
        if len(lines) >= 2 and lines[1].strip():
            return lines[1].strip()
        raise ProcessLookupFailed(pid, "process path not found")
