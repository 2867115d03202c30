import logging

from portreleasor.errors import ProcessLookupFailed, ReleaseError
from portreleasor.platforms import get_manager
from portreleasor.ports import filter_records, parse_ports
from portreleasor.terminator import terminate_all

logger = logging.getLogger("portreleasor.core")

NO_MATCH = "No matching ports found"
NO_PROCESSES = "No processes found using the specified ports"


# -----------------------------------------------------------------------------
# Rendering
# -----------------------------------------------------------------------------

def _sorted(records):
    return sorted(records, key=lambda r: (r.port, r.protocol))


def _path_cell(rec, placeholder):
    if rec.process_path:
        return rec.process_path
    return placeholder if rec.pid == 0 else ""


def format_table(records, verbose=False, placeholder=""):
    """Lines of the PORT/PROTOCOL, PID, PROCESS[, PATH] table."""
    w_port, w_pid, w_name, w_path = 15, 8, 20, 40
    for rec in records:
        w_port = max(w_port, len(rec.label))
        w_pid = max(w_pid, len(str(rec.pid)))
        w_name = max(w_name, len(rec.process_name))
        if verbose:
            w_path = max(w_path, len(_path_cell(rec, placeholder)))
    w_port += 2; w_pid += 2; w_name += 2; w_path += 2

    lines = []
    if verbose:
        lines.append(f"{'PORT/PROTOCOL':<{w_port}} {'PID':<{w_pid}} {'PROCESS':<{w_name}} PATH")
        lines.append("-" * (w_port + w_pid + w_name + w_path + 3))
    else:
        lines.append(f"{'PORT/PROTOCOL':<{w_port}} {'PID':<{w_pid}} PROCESS")
        lines.append("-" * (w_port + w_pid + w_name + 2))
    for rec in records:
        row = f"{rec.label:<{w_port}} {rec.pid:<{w_pid}} "
        if verbose:
            row += f"{rec.process_name:<{w_name}} {_path_cell(rec, placeholder)}"
        else:
            row += rec.process_name
        lines.append(row.rstrip())
    return lines


# -----------------------------------------------------------------------------
# Check
# -----------------------------------------------------------------------------

def resolve_paths(records, manager):
    """Fill in missing executable paths; lookups that fail are left empty."""
    for rec in records:
        if rec.process_path or rec.pid <= 0:
            continue
        try:
            rec.process_path = manager.get_process_path(rec.pid)
        except ProcessLookupFailed as e:
            logger.debug("no path for %s: %s", rec.label, e)


def check_ports(patterns=None, verbose=False, wildcard=False, manager=None, out=print):
    manager = manager or get_manager()
    records = _sorted(filter_records(manager.get_port_connections(), patterns, wildcard))
    if not records:
        out(NO_MATCH)
        return records
    if verbose:
        resolve_paths(records, manager)
    for ln in format_table(records, verbose, manager.path_placeholder):
        out(ln)
    out(f"\nShowing {len(records)} unique port(s)")
    return records


# -----------------------------------------------------------------------------
# Release
# -----------------------------------------------------------------------------

def confirm(prompt="Kill these processes? (y/N): ", read=input, out=print):
    """True only for y/yes; an unreadable stdin counts as no."""
    try:
        answer = read(prompt)
    except (EOFError, OSError):
        out("\nOperation cancelled (could not read input)")
        return False
    if answer.strip().lower() in ("y", "yes"):
        return True
    out("Operation cancelled")
    return False


def release_ports(port_specs, force=False, manager=None, out=print, read=input):
    """Kill the owners of the given ports; raises ReleaseError if any kill failed."""
    ports = set(parse_ports(port_specs))
    manager = manager or get_manager()
    matched = _sorted(r for r in manager.get_port_connections() if r.port in ports)
    for rec in matched:
        if rec.pid <= 0:
            logger.warning("owner of %s is unknown (%s), skipping", rec.label, rec.process_name)
    records = [r for r in matched if r.pid > 0]
    if not records:
        out(NO_PROCESSES)
        return None

    out("Processes using the specified ports:")
    out("PORT/PROTOCOL\tPID\tPROCESS")
    out("-" * 40)
    for rec in records:
        out(str(rec))

    if not force:
        out("")
        if not confirm(read=read, out=out):
            return None

    pids = sorted({r.pid for r in records})
    out("\nKilling processes...")
    report = terminate_all(manager, pids, out=out)
    out(f"\nSummary: {report.summary()}")
    if not report.ok:
        raise ReleaseError([pid for pid, _ in report.failed])
    return report
