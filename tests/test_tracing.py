"""
Tests for Langfuse tracing integration.

Tests cover:
- Client disabled states (credentials, failed connectivity)
- Context manager no-ops when disabled
- Trace lifecycle with a mocked Langfuse client
- Loop integration with a disabled tracing context
"""

from unittest.mock import MagicMock, patch

from tool_loop.oracles import ScriptedOracle
from tool_loop.orchestration import OrchestrationLoop
from tool_loop.tracing import (
    ObservationContext,
    TracingClient,
    TracingContext,
    get_tracing_client,
    init_tracing_client,
    shutdown_tracing,
)


class TestTracingClient:
    """Tests for TracingClient."""

    @patch("tool_loop.tracing.client.Langfuse")
    def test_client_disabled_without_credentials(self, mock_langfuse):
        """Test client is disabled when credentials not provided."""
        client = TracingClient(public_key="", secret_key="")
        assert client.enabled is False
        assert client.client is None
        mock_langfuse.assert_not_called()

    def test_client_disabled_with_partial_credentials(self):
        """Test client is disabled with only public key."""
        client = TracingClient(public_key="pk-test", secret_key="")
        assert client.enabled is False

    @patch("tool_loop.tracing.client.Langfuse")
    def test_client_enabled_with_credentials(self, mock_langfuse):
        """Test client enables after a successful auth check."""
        mock_langfuse.return_value.auth_check.return_value = True

        client = TracingClient(public_key="pk", secret_key="sk", host="http://lf:3000")

        assert client.enabled is True
        assert client.client is mock_langfuse.return_value
        mock_langfuse.assert_called_once_with(
            public_key="pk", secret_key="sk", debug=False, host="http://lf:3000"
        )

    @patch("tool_loop.tracing.client.Langfuse")
    def test_client_disabled_when_auth_fails(self, mock_langfuse, caplog):
        """Test client is disabled when auth_check returns False."""
        mock_langfuse.return_value.auth_check.return_value = False

        client = TracingClient(public_key="pk", secret_key="sk")

        assert client.enabled is False
        assert client.client is None
        assert "auth_check" in caplog.text

    @patch("tool_loop.tracing.client.Langfuse")
    def test_client_disabled_when_unreachable(self, mock_langfuse, caplog):
        """Test client is disabled when the connectivity check raises."""
        mock_langfuse.return_value.auth_check.side_effect = ConnectionError("refused")

        client = TracingClient(public_key="pk", secret_key="sk")

        assert client.enabled is False
        assert "refused" in caplog.text

    @patch("tool_loop.tracing.client.Langfuse")
    def test_client_disabled_when_constructor_fails(self, mock_langfuse):
        """Test client is disabled when Langfuse cannot be created."""
        mock_langfuse.side_effect = RuntimeError("bad host")

        client = TracingClient(public_key="pk", secret_key="sk")

        assert client.enabled is False

    def test_shutdown_no_op_when_disabled(self):
        """Test shutdown does nothing when tracing disabled."""
        TracingClient().shutdown()

    @patch("tool_loop.tracing.client.Langfuse")
    def test_shutdown_when_enabled(self, mock_langfuse):
        """Test shutdown reaches the Langfuse client and disables tracing."""
        mock_langfuse.return_value.auth_check.return_value = True
        client = TracingClient(public_key="pk", secret_key="sk")

        client.shutdown()

        mock_langfuse.return_value.shutdown.assert_called_once()
        assert client.enabled is False


class TestTracingClientSingleton:
    """Tests for tracing client singleton pattern."""

    def test_init_tracing_client_creates_singleton(self):
        """Test init_tracing_client creates global singleton."""
        client = init_tracing_client()

        assert get_tracing_client() is client

        shutdown_tracing()
        assert get_tracing_client() is None


class TestTracingContextDisabled:
    """Tests for TracingContext without a working client."""

    def test_context_disabled_without_client(self):
        """Test context is disabled when no client initialized."""
        ctx = TracingContext(execution_id="test-123")
        assert ctx.enabled is False

    def test_trace_lifecycle_no_op(self):
        """Test start and end trace do nothing when disabled."""
        ctx = TracingContext(execution_id="test-123")
        ctx.start_trace(name="test", query="test query")
        ctx.end_trace(output="result", status="success")
        assert ctx.get_trace_context() is None

    def test_span_no_op(self):
        """Test span context manager is no-op when disabled."""
        ctx = TracingContext(execution_id="test-123")
        with ctx.span(name="test_span") as span:
            assert span._observation is None
            span.set_output({"result": "test"})
            span.set_status("success")

    def test_generation_no_op(self):
        """Test generation context manager is no-op when disabled."""
        ctx = TracingContext(execution_id="test-123")
        with ctx.generation(name="test_gen", model="test-model") as gen:
            assert gen._observation is None
            gen.set_output("response text")

    def test_loop_runs_with_disabled_context(self):
        """Test the loop works with a disabled tracing context."""
        oracle = ScriptedOracle(['{"type":"final","answer":"Done."}'])
        loop = OrchestrationLoop(oracle=oracle, tracing_context=TracingContext(execution_id="t"))

        assert loop.run("Test query").answer == "Done."


class TestObservationContext:
    """Tests for ObservationContext."""

    def test_set_output_and_status(self):
        """Test output and status are stored."""
        observation = ObservationContext(name="test")
        observation.set_output({"key": "value"})
        observation.set_status("error")
        assert observation._output == {"key": "value"}
        assert observation._status == "error"


class TestTracingContextEnabled:
    """Tests for TracingContext with a mocked Langfuse client."""

    def _enable(self, mock_langfuse):
        mock_langfuse.return_value.auth_check.return_value = True
        init_tracing_client(public_key="pk", secret_key="sk")
        return mock_langfuse.return_value

    @patch("tool_loop.tracing.client.Langfuse")
    def test_trace_lifecycle(self, mock_langfuse):
        """Test the root span is opened, linked and closed."""
        langfuse = self._enable(mock_langfuse)
        root_cm = MagicMock()
        root_span = root_cm.__enter__.return_value
        root_span.trace_id = "trace-1"
        root_span.id = "span-1"
        langfuse.start_as_current_observation.return_value = root_cm

        ctx = TracingContext(execution_id="exec-1", session_id="sess")
        ctx.start_trace(query="2+2?")

        assert ctx.enabled is True
        trace_context = ctx.get_trace_context()
        assert trace_context["trace_id"] == "trace-1"
        assert trace_context["parent_span_id"] == "span-1"
        root_span.update_trace.assert_called_once_with(session_id="sess")

        ctx.end_trace(output="4")

        assert root_span.update.call_args.kwargs["output"] == "4"
        root_cm.__exit__.assert_called_once_with(None, None, None)

    @patch("tool_loop.tracing.client.Langfuse")
    def test_generation_records_output_and_status(self, mock_langfuse):
        """Test a generation forwards model, output and status."""
        langfuse = self._enable(mock_langfuse)
        gen_cm = MagicMock()
        langfuse.start_as_current_observation.return_value = gen_cm

        ctx = TracingContext(execution_id="exec-1")
        with ctx.generation(name="oracle_step_1", model="llama3.1", input="prompt") as gen:
            gen.set_output("out")
            gen.set_status("error")

        kwargs = langfuse.start_as_current_observation.call_args.kwargs
        assert kwargs["name"] == "oracle_step_1"
        assert kwargs["as_type"] == "generation"
        assert kwargs["model"] == "llama3.1"
        update_kwargs = gen_cm.__enter__.return_value.update.call_args.kwargs
        assert update_kwargs["output"] == "out"
        assert update_kwargs["metadata"]["status"] == "error"

    @patch("tool_loop.tracing.client.Langfuse")
    def test_observation_failure_is_not_fatal(self, mock_langfuse):
        """Test that a Langfuse error while starting a span is swallowed."""
        langfuse = self._enable(mock_langfuse)
        langfuse.start_as_current_observation.side_effect = RuntimeError("network")

        ctx = TracingContext(execution_id="exec-1")
        with ctx.span(name="tool:calc") as span:
            span.set_output({"ok": True})

        assert span._observation is None
