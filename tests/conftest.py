import pytest

from portreleasor.errors import ToolError, ToolNotFoundError


class FakeRunner:
    """Stands in for run_tool: argv tuple -> output string or exception."""

    def __init__(self, outputs=None):
        self.outputs = dict(outputs or {})
        self.calls = []

    def __call__(self, args, timeout=None):
        key = tuple(args)
        self.calls.append(key)
        if key not in self.outputs:
            raise ToolNotFoundError(args[0])
        result = self.outputs[key]
        if isinstance(result, Exception):
            raise result
        return result

    def count(self, *args):
        return self.calls.count(tuple(args))


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def tool_failure():
    return lambda tool: ToolError(tool, "exited with status 1")
