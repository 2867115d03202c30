import logging
import os
import re

from portreleasor import config
from portreleasor.cache import parse_ps_listing
from portreleasor.errors import ProcessLookupFailed, ToolError
from portreleasor.models import normalize_protocol
from portreleasor.platforms.base import PlatformManager
from portreleasor.records import port_from_address

logger = logging.getLogger("portreleasor.linux")

PID_RE = re.compile(r"pid=(\d+)")
USERS_NAME_RE = re.compile(r'\(\("([^"]+)"')
NETSTAT_PROG_RE = re.compile(r"^(\d+)/(.+)$")
LISTEN_STATES = ("LISTEN", "UNCONN")

# /proc/net/* columns: sl local_address rem_address st ... inode
PROC_NET_MIN_FIELDS = 10
PROC_NET_STATE = 3
PROC_NET_INODE = 9
# TCP_LISTEN for tcp, TCP_CLOSE (bound, unconnected) for udp
PROC_NET_LISTEN = {"tcp": "0A", "udp": "07"}

# COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME
LSOF_MIN_FIELDS = 9
LSOF_PROTO = 7
LSOF_NAME = 8


class LinuxManager(PlatformManager):
    system = "Linux"
    strategies = (("ss", "_collect_ss"), ("netstat", "_collect_netstat"))

    def __init__(self, runner=None, privileged=None, proc_root=config.PROC_ROOT):
        super().__init__(runner, privileged)
        self.proc_root = proc_root

    # -------------------------------------------------------------------------
    # /proc helpers
    # -------------------------------------------------------------------------

    def _proc(self, *parts):
        return os.path.join(self.proc_root, *[str(p) for p in parts])

    def _read_exe(self, pid):
        try:
            return os.readlink(self._proc(pid, "exe"))
        except OSError:
            return ""

    def _probe_name(self, pid):
        try:
            with open(self._proc(pid, "comm"), "r") as f:
                return f.read().strip() or None
        except OSError:
            return None

    # -------------------------------------------------------------------------
    # Process cache
    # -------------------------------------------------------------------------

    def build_cache(self):
        cache = self._new_cache(probe_on_miss=True)
        try:
            out = self.run(["ps", "-axo", "pid,comm"])
        except ToolError as e:
            logger.warning("process listing failed (%s); names resolved per PID", e)
            return cache
        for pid, name in parse_ps_listing(out):
            # WSL truncates some comm values to "name (..." style junk
            if len(name) > 15 and "(" in name:
                name = self._probe_name(pid) or name
            cache.add(pid, name, self._read_exe(pid))
        cache.mark_complete()
        logger.debug("cached %d processes", len(cache))
        return cache

    # -------------------------------------------------------------------------
    # ss / netstat
    # -------------------------------------------------------------------------

    def _collect_ss(self, builder):
        out = self.run(["ss", "-tunlp"])
        for ln in out.splitlines()[1:]:
            fields = ln.split()
            if len(fields) < 4:
                continue
            proto = normalize_protocol(fields[0])
            state = fields[1].upper()
            local = fields[4] if len(fields) > 4 else fields[3]
            port = port_from_address(local)
            if proto is None or port is None or builder.taken(port, proto):
                continue
            pid, hint = 0, ""
            for token in fields[5:]:
                m = PID_RE.search(token)
                if m:
                    pid = int(m.group(1))
                    n = USERS_NAME_RE.search(token)
                    hint = n.group(1) if n else ""
                    break
            if pid == 0 and state in LISTEN_STATES:
                pid, hint = self.find_process_for_port(port, proto)
            name, path = self._owner(pid, hint)
            builder.add(port, proto, pid, name, path, local)

    def _collect_netstat(self, builder):
        out = self.run(["netstat", "-tunlp"])
        for ln in out.splitlines()[2:]:
            fields = ln.split()
            if len(fields) < 6:
                continue
            proto = normalize_protocol(fields[0])
            local = fields[3]
            port = port_from_address(local)
            if proto is None or port is None or builder.taken(port, proto):
                continue
            pid, hint = 0, ""
            for token in fields[5:]:
                m = NETSTAT_PROG_RE.match(token)
                if m:
                    pid, hint = int(m.group(1)), m.group(2)
                    break
            if pid == 0:
                pid, hint = self.find_process_for_port(port, proto)
            name, path = self._owner(pid, hint)
            builder.add(port, proto, pid, name, path, local)

    # -------------------------------------------------------------------------
    # Per-port owner lookup (lsof, then /proc/net + fd scan)
    # -------------------------------------------------------------------------

    def find_process_for_port(self, port, protocol):
        """(pid, name) of the socket owner, (0, "") when nobody can tell."""
        proto = normalize_protocol(protocol)
        try:
            out = self.run(["lsof", "-P", "-n", "-i", f":{port}"])
        except ToolError as e:
            logger.debug("lsof lookup for port %d failed: %s", port, e)
        else:
            for ln in out.splitlines()[1:]:
                fields = ln.split()
                if len(fields) < LSOF_MIN_FIELDS or not fields[1].isdigit():
                    continue
                # clients connected to the port show up as local->remote
                if normalize_protocol(fields[LSOF_PROTO]) != proto:
                    continue
                if port_from_address(fields[LSOF_NAME]) != port:
                    continue
                return int(fields[1]), fields[0]
        return self.find_process_from_proc_net(port, protocol)

    def find_process_from_proc_net(self, port, protocol):
        base = {"TCP": "tcp", "UDP": "udp"}.get(normalize_protocol(protocol))
        if base is None:
            return 0, ""
        suffix = f":{port:04X}"
        for table in (base, base + "6"):
            try:
                with open(self._proc("net", table), "r") as f:
                    lines = f.read().splitlines()
            except OSError:
                continue
            for ln in lines[1:]:
                fields = ln.split()
                if len(fields) < PROC_NET_MIN_FIELDS:
                    continue
                if not fields[1].upper().endswith(suffix):
                    continue
                if fields[PROC_NET_STATE] != PROC_NET_LISTEN[base]:
                    continue
                inode = fields[PROC_NET_INODE]
                if inode == "0":
                    continue
                pid, name = self.find_process_by_inode(inode)
                if pid:
                    return pid, name
        return 0, ""

    def find_process_by_inode(self, inode):
        if not inode or inode == "0":
            return 0, ""
        target = f"socket:[{inode}]"
        try:
            entries = os.listdir(self.proc_root)
        except OSError:
            return 0, ""
        for entry in entries:
            if not entry.isdigit():
                continue
            fd_dir = self._proc(entry, "fd")
            try:
                fds = os.listdir(fd_dir)
            except OSError:
                continue
            for fd in fds:
                try:
                    link = os.readlink(os.path.join(fd_dir, fd))
                except OSError:
                    continue
                if link == target:
                    pid = int(entry)
                    return pid, self._probe_name(pid) or ""
        return 0, ""

    # -------------------------------------------------------------------------
    # Path resolver
    # -------------------------------------------------------------------------

    def get_process_path(self, pid) -> str:
        try:
            return os.readlink(self._proc(pid, "exe"))
        except FileNotFoundError:
            raise ProcessLookupFailed(pid, "process not found")
        except OSError as e:
            raise ProcessLookupFailed(pid, e.strerror or str(e))
