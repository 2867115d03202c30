import logging
import os
import socket

import psutil

from portreleasor import config, terminator
from portreleasor.cache import ProcessCache
from portreleasor.errors import NoToolAvailableError, ToolError
from portreleasor.records import RecordBuilder
from portreleasor.shell import run_tool

logger = logging.getLogger("portreleasor.platforms")

_SOCK_PROTOCOLS = {socket.SOCK_STREAM: "TCP", socket.SOCK_DGRAM: "UDP"}


def _is_privileged():
    geteuid = getattr(os, "geteuid", None)
    if geteuid is not None:
        return geteuid() == 0
    try:
        import ctypes
        return bool(ctypes.windll.shell32.IsUserAnAdmin())
    except (AttributeError, OSError):
        return False


class PlatformManager:
    """Port discovery, path lookup and termination for one OS family.

    Subclasses list their tools in `strategies` as (name, method name) pairs;
    the first one that runs wins.
    """

    system = ""
    strategies = ()

    def __init__(self, runner=None, privileged=None):
        self.run = runner or run_tool
        self.is_privileged = _is_privileged() if privileged is None else privileged
        self.cache = None

    # ---- capability set -----------------------------------------------------

    def get_port_connections(self):
        """All listening sockets on the host, one record per (port, protocol)."""
        self.cache = self.build_cache()
        tried = []
        for tool, method in self.strategies:
            tried.append(tool)
            builder = RecordBuilder()
            try:
                getattr(self, method)(builder)
            except ToolError as e:
                logger.warning("%s unavailable (%s), trying next tool", tool, e)
                continue
            logger.info("%s: %d listening port(s), %d duplicate(s) dropped",
                        tool, len(builder), builder.dropped)
            return builder.records()
        raise NoToolAvailableError(tried)

    def kill_process(self, pid):
        terminator.terminate(pid, self.system)

    def get_process_path(self, pid) -> str:
        raise NotImplementedError

    # ---- shared helpers -----------------------------------------------------

    @property
    def path_placeholder(self) -> str:
        """What to show instead of a path when no owner could be found."""
        return config.NOT_AVAILABLE if self.is_privileged else config.NO_PERMISSION

    @property
    def unresolved_name(self) -> str:
        return config.UNKNOWN_NAME if self.is_privileged else config.NO_PERMISSION

    def build_cache(self):
        raise NotImplementedError

    def _probe_name(self, pid):
        return None

    def _new_cache(self, probe_on_miss=False):
        return ProcessCache(probe=self._probe_name, probe_on_miss=probe_on_miss)

    def _collect_psutil(self, builder):
        """psutil.net_connections as a last-resort socket listing."""
        try:
            conns = psutil.net_connections(kind="inet")
        except psutil.AccessDenied as e:
            raise ToolError("psutil", f"access denied ({e})")
        except (psutil.Error, OSError) as e:
            raise ToolError("psutil", str(e))
        for c in conns:
            if not c.laddr:
                continue
            proto = _SOCK_PROTOCOLS.get(c.type)
            if proto == "TCP" and c.status != psutil.CONN_LISTEN:
                continue
            if proto == "UDP" and c.raddr:
                continue
            pid = int(c.pid) if c.pid else 0
            name, path = self._owner(pid)
            builder.add(c.laddr.port, proto, pid, name, path,
                        f"{c.laddr.ip}:{c.laddr.port}")

    def _owner(self, pid, fallback_name=""):
        """(display name, path) for a PID from the cache."""
        if not pid:
            return self.unresolved_name, ""
        return self.cache.lookup(pid) or fallback_name or config.UNKNOWN_NAME, self.cache.path(pid)
