class PortReleasorError(Exception):
    """Base class for every failure reported to the user."""


class UnsupportedPlatformError(PortReleasorError):
    def __init__(self, system):
        super().__init__(f"unsupported platform: {system or 'unknown'}")
        self.system = system


class ToolError(PortReleasorError):
    """An external tool could not be run or exited non-zero."""

    def __init__(self, tool, reason):
        super().__init__(f"{tool}: {reason}")
        self.tool = tool
        self.reason = reason


class ToolNotFoundError(ToolError):
    def __init__(self, tool):
        super().__init__(tool, "command not found")


class NoToolAvailableError(PortReleasorError):
    def __init__(self, tried):
        self.tried = list(tried)
        super().__init__("no port listing tool available (tried: {})".format(", ".join(self.tried)))


class PortSpecError(PortReleasorError, ValueError):
    """A port argument could not be parsed."""

    def __init__(self, token, reason):
        super().__init__(f"invalid port '{token}': {reason}")
        self.token = token
        self.reason = reason


class PortRangeError(PortSpecError):
    def __init__(self, token, port):
        super().__init__(token, f"{port} is out of range (1-65535)")
        self.port = port


class PortOrderError(PortSpecError):
    def __init__(self, token, start, end):
        super().__init__(token, f"start port {start} is greater than end port {end}")
        self.start = start
        self.end = end


class ProcessLookupFailed(PortReleasorError):
    def __init__(self, pid, reason):
        super().__init__(f"process {pid}: {reason}")
        self.pid = pid
        self.reason = reason


class TerminationError(PortReleasorError):
    def __init__(self, pid, reason):
        super().__init__(f"failed to kill process {pid}: {reason}")
        self.pid = pid
        self.reason = reason


class ReleaseError(PortReleasorError):
    def __init__(self, failed):
        self.failed = list(failed)
        super().__init__(f"failed to kill {len(self.failed)} process(es)")
