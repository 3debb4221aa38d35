"""
Pytest configuration and fixtures for tool-loop tests.
"""

import pytest

from tool_loop.tools import FunctionTool, ToolFailure, ToolSuccess


@pytest.fixture(autouse=True)
def reset_global_state():
    """Reset the tracing singleton and config cache around each test."""
    import tool_loop.tracing.client as tracing_client
    from tool_loop.config_loader import reset_config_cache

    tracing_client._tracing_client = None
    reset_config_cache()
    yield
    tracing_client._tracing_client = None
    reset_config_cache()


@pytest.fixture
def echo_tool():
    """A tool that always succeeds and echoes its input."""
    calls = []

    def handler(tool_input):
        calls.append(tool_input)
        return ToolSuccess(data={"echo": tool_input})

    tool = FunctionTool(name="echo", description="Echoes its input.", handler=handler)
    tool.calls = calls
    return tool


@pytest.fixture
def failing_tool():
    """A tool that always reports a failure."""
    calls = []

    def handler(tool_input):
        calls.append(tool_input)
        return ToolFailure(error="service unavailable")

    tool = FunctionTool(name="flaky", description="Always fails.", handler=handler)
    tool.calls = calls
    return tool
