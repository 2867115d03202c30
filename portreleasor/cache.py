import logging

from portreleasor.config import UNKNOWN_NAME

logger = logging.getLogger("portreleasor.cache")


class ProcessCache:
    """PID -> name / executable path snapshot for one discovery pass.

    Filled from a single bulk listing. When a PID is missing, `probe` is asked
    for that one PID if the bulk listing failed, or always when
    `probe_on_miss` is set (a probe that only reads files, never spawns).
    """

    def __init__(self, probe=None, probe_on_miss=False):
        self.names = {}
        self.paths = {}
        self.complete = False
        self._probe = probe
        self._probe_on_miss = probe_on_miss
        self._probed = set()

    def add(self, pid, name, path=""):
        self.names[pid] = name
        if path:
            self.paths[pid] = path

    def mark_complete(self):
        self.complete = True

    def lookup(self, pid):
        """Return the cached or probed name, or None."""
        if pid in self.names:
            return self.names[pid]
        if pid <= 0 or pid in self._probed or self._probe is None:
            return None
        if self.complete and not self._probe_on_miss:
            return None
        self._probed.add(pid)
        name = self._probe(pid)
        if name:
            self.names[pid] = name
            return name
        return None

    def name(self, pid) -> str:
        return self.lookup(pid) or UNKNOWN_NAME

    def path(self, pid) -> str:
        return self.paths.get(pid, "")

    def __len__(self):
        return len(self.names)


def parse_ps_listing(out):
    """Yield (pid, comm) from `ps -axo pid,comm` output, header skipped."""
    lines = out.splitlines()
    for ln in lines[1:]:
        parts = ln.strip().split(None, 1)
        if len(parts) < 2:
            continue
        try:
            pid = int(parts[0])
        except ValueError:
            continue
        yield pid, parts[1].strip()
