import logging

import psutil

from portreleasor import config
from portreleasor.errors import TerminationError

logger = logging.getLogger("portreleasor.terminator")

# Whether a platform gets SIGTERM and a grace period before the hard kill.
# Windows has no graceful signal for arbitrary processes, so it goes
# straight to TerminateProcess.
GRACEFUL_FIRST = {
    "Linux": True,
    "Darwin": True,
    "Windows": False,
}


def _graceful(proc, grace):
    """True when the process is gone after SIGTERM."""
    try:
        proc.terminate()
        proc.wait(timeout=grace)
        return True
    except psutil.NoSuchProcess:
        return True
    except psutil.TimeoutExpired:
        logger.info("pid %d still running after %gs, escalating", proc.pid, grace)
    except psutil.AccessDenied:
        logger.info("SIGTERM to pid %d denied, escalating", proc.pid)
    return False


def _forceful(proc):
    try:
        proc.kill()
    except psutil.NoSuchProcess:
        return
    except psutil.AccessDenied:
        raise TerminationError(proc.pid, "permission denied")
    except psutil.Error as e:
        raise TerminationError(proc.pid, str(e) or type(e).__name__)


def terminate(pid, system, grace=None):
    """Stop one process following the platform's policy.

    Resolved -> graceful -> terminated, or -> forceful -> terminated/failed.
    Raises TerminationError when the process cannot be found or killed.
    """
    if pid <= 0:
        raise TerminationError(pid, "owning process unknown")
    try:
        proc = psutil.Process(pid)
    except psutil.NoSuchProcess:
        raise TerminationError(pid, "no such process")
    except psutil.AccessDenied:
        raise TerminationError(pid, "permission denied")
    if GRACEFUL_FIRST.get(system, True):
        if _graceful(proc, config.GRACE_PERIOD if grace is None else grace):
            logger.debug("pid %d terminated gracefully", pid)
            return
    _forceful(proc)
    logger.debug("pid %d killed", pid)


class TerminationReport:
    def __init__(self):
        self.succeeded = []
        self.failed = []

    @property
    def ok(self):
        return not self.failed

    def summary(self):
        return f"{len(self.succeeded)} succeeded, {len(self.failed)} failed"


def terminate_all(manager, pids, out=print):
    """Kill every PID once, reporting each outcome; never stops early."""
    report = TerminationReport()
    for pid in pids:
        try:
            manager.kill_process(pid)
        except TerminationError as e:
            out(f"Failed to kill process {pid}: {e.reason}")
            report.failed.append((pid, e.reason))
            continue
        out(f"Successfully killed process {pid}")
        report.succeeded.append(pid)
    return report
