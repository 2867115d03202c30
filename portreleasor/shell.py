import logging
import subprocess

from portreleasor import config
from portreleasor.errors import ToolError, ToolNotFoundError

logger = logging.getLogger("portreleasor.shell")


def run_tool(args, timeout=None) -> str:
    """Run an external tool and return its stdout.

    Raises ToolNotFoundError when the binary is missing and ToolError when it
    times out or exits non-zero, so callers can walk a fallback chain.
    """
    tool = args[0]
    limit = timeout if timeout is not None else config.COMMAND_TIMEOUT
    logger.debug("running %s", " ".join(args))
    try:
        res = subprocess.run(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
            timeout=limit,
        )
    except FileNotFoundError:
        raise ToolNotFoundError(tool)
    except subprocess.TimeoutExpired:
        raise ToolError(tool, f"timed out after {limit:g}s")
    except OSError as e:
        raise ToolError(tool, str(e))
    if res.returncode != 0:
        err = (res.stderr or "").strip().splitlines()
        detail = f": {err[0]}" if err else ""
        raise ToolError(tool, f"exited with status {res.returncode}{detail}")
    return res.stdout or ""


def _cmd_out(runner, args) -> str:
    """Best-effort variant of run_tool: empty string on any tool failure."""
    try:
        return runner(args)
    except ToolError as e:
        logger.debug("%s", e)
        return ""
