import csv
import logging

from portreleasor.errors import ProcessLookupFailed, ToolError
from portreleasor.models import normalize_protocol
from portreleasor.platforms.base import PlatformManager
from portreleasor.records import port_from_address
from portreleasor.shell import _cmd_out

logger = logging.getLogger("portreleasor.windows")


def parse_tasklist(out):
    """Yield (pid, image name) from `tasklist /FO CSV /NH` output."""
    for row in csv.reader(ln for ln in out.splitlines() if ln.strip()):
        if len(row) < 2:
            continue
        try:
            pid = int(row[1].strip())
        except ValueError:
            continue
        yield pid, row[0].strip()


class WindowsManager(PlatformManager):
    system = "Windows"
    strategies = (("netstat", "_collect_netstat"), ("psutil", "_collect_psutil"))

    def _probe_name(self, pid):
        out = _cmd_out(self.run, ["tasklist", "/FI", f"PID eq {pid}", "/FO", "CSV", "/NH"])
        for _, name in parse_tasklist(out):
            return name
        return None

    def build_cache(self):
        cache = self._new_cache()
        try:
            out = self.run(["tasklist", "/FO", "CSV", "/NH"])
        except ToolError as e:
            logger.warning("process listing failed (%s); names resolved per PID", e)
            return cache
        for pid, name in parse_tasklist(out):
            cache.add(pid, name)
        cache.mark_complete()
        return cache

    def _collect_netstat(self, builder):
        out = self.run(["netstat", "-ano"])
        for ln in out.splitlines():
            fields = ln.split()
            if len(fields) < 4 or fields[0] not in ("TCP", "UDP"):
                continue
            proto = normalize_protocol(fields[0])
            if proto == "TCP":
                if len(fields) < 5 or fields[3].upper() != "LISTENING":
                    continue
                pid_field = fields[4]
            else:
                pid_field = fields[3]
            if not pid_field.isdigit():
                continue
            local = fields[1]
            port = port_from_address(local)
            if port is None or builder.taken(port, proto):
                continue
            pid = int(pid_field)
            name, path = self._owner(pid)
            builder.add(port, proto, pid, name, path, local)

    def get_process_path(self, pid) -> str:
        try:
            out = self.run(["wmic", "process", "where", f"ProcessId={pid}",
                            "get", "ExecutablePath", "/format:list"])
        except ToolError as e:
            raise ProcessLookupFailed(pid, str(e))
        for ln in out.splitlines():
            ln = ln.strip()
            if ln.startswith("ExecutablePath="):
                path = ln[len("ExecutablePath="):].strip()
                if path:
                    return path
        raise ProcessLookupFailed(pid, "process path not found")
