"""
Core orchestration loop.

Each step renders a bounded window of the transcript into a prompt, asks
the oracle for exactly one JSON decision, and either finishes with the
oracle's answer or executes a single tool call and records the outcome.
Malformed output, unknown tools and tool failures are written back into
the transcript so the oracle can correct itself; only oracle faults end a
run early.

Repeated failing calls are tracked by fingerprint. Past the configured
ceiling the oracle is told not to repeat the call, but the call is not
blocked.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, Optional, Union

from ..exceptions import DecisionFormatError, OracleError
from ..tools.base import Tool, ToolFailure, ToolResult
from ..tools.registry import ToolRegistry
from ..tracing import TracingContext
from .context import ContextManager, Message, Role
from .decision import FinalAnswer, ToolCall, canonical_json, serialize_decision, try_parse_decision
from .retry import CallFingerprint, RetryTracker

if TYPE_CHECKING:
    from ..oracles.base import Oracle

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 6
DEFAULT_CONTEXT_WINDOW = 20
DEFAULT_MAX_TOOL_RETRIES = 1

PREAMBLE = "You are a tool-using assistant."
NO_TOOLS_MARKER = "(none)"


@dataclass(frozen=True)
class RunResult:
    """Outcome of a run: an answer, or the exhaustion message."""

    ok: bool
    answer: str
    steps: int

    def to_dict(self) -> dict:
        return {"ok": self.ok, "answer": self.answer, "steps": self.steps}


@dataclass
class OrchestrationStep:
    """A single step in the orchestration process."""

    step_number: int
    raw_output: Optional[str] = None
    action: Optional[str] = None
    action_input: Any = None
    observation: Optional[str] = None
    error: Optional[str] = None
    is_final: bool = False
    final_answer: Optional[str] = None


def validate_budgets(max_steps: int, context_window: int, max_tool_retries: int) -> None:
    """Raise ValueError for budgets the loop cannot honour."""
    if max_steps < 1:
        raise ValueError("max_steps must be at least 1")
    if context_window < 1:
        raise ValueError("context_window must be at least 1")
    if max_tool_retries < 0:
        raise ValueError("max_tool_retries must not be negative")


def exhaustion_message(max_steps: int) -> str:
    return f"Max steps ({max_steps}) reached without a final answer."


def invalid_output_notice(error: DecisionFormatError) -> str:
    return (
        f"Your last output was invalid. Error: {error}. "
        "Output MUST be strictly one of the two JSON shapes."
    )


def unknown_tool_notice(name: str) -> str:
    return f'The tool "{name}" is not in the list of tools.'


def repeated_failure_notice(name: str) -> str:
    return (
        f'Tool "{name}" failed repeatedly for the same input. '
        "Do NOT call it again with the same input; change strategy or answer."
    )


class OrchestrationLoop:
    """
    Step loop between an oracle and a fixed set of tools.

    Per-step flow:
        1. Render prompt (preamble, tools, rules, context window)
        2. Call the oracle
        3. Parse the decision; on malformed output add a corrective notice
        4. Final answer: return it
        5. Tool call: look up, record the call, invoke, record the result,
           count failures per fingerprint and warn past the ceiling
        6. Budget exhausted: return a non-ok result
    """

    def __init__(
        self,
        oracle: "Oracle",
        tools: Union[ToolRegistry, Iterable[Tool]] = (),
        max_steps: int = DEFAULT_MAX_STEPS,
        context_window: int = DEFAULT_CONTEXT_WINDOW,
        max_tool_retries: int = DEFAULT_MAX_TOOL_RETRIES,
        tracing_context: Optional[TracingContext] = None,
        execution_id: Optional[str] = None,
    ):
        validate_budgets(max_steps, context_window, max_tool_retries)

        self.oracle = oracle
        self.registry = tools if isinstance(tools, ToolRegistry) else ToolRegistry(tools)
        self.max_steps = max_steps
        self.context_window = context_window
        self.max_tool_retries = max_tool_retries
        self.tracing_context = tracing_context
        self.execution_id = execution_id

        # Per-run state, replaced at the start of every run
        self._context = ContextManager()
        self._retries = RetryTracker()
        self.steps: list[OrchestrationStep] = []

    @property
    def _id_prefix(self) -> str:
        return f"[{self.execution_id}] " if self.execution_id else ""

    @property
    def transcript(self) -> tuple[Message, ...]:
        """Full transcript of the last run."""
        return self._context.messages

    @property
    def retry_tracker(self) -> RetryTracker:
        return self._retries

    def run(self, user_prompt: str) -> RunResult:
        """
        Run the loop for a user prompt.

        Args:
            user_prompt: Seeds the transcript as the first user message.

        Returns:
            RunResult with ``ok=True`` and the oracle's answer, or
            ``ok=False`` with the exhaustion message.

        Raises:
            OracleError: If the oracle fails.
        """
        self._context = ContextManager()
        self._retries = RetryTracker()
        self.steps = []
        self._context.add(Role.USER, user_prompt)

        logger.debug("%sStarting run for: %s", self._id_prefix, user_prompt)

        if self.tracing_context is None:
            return self._run_loop()

        with self.tracing_context.span(
            name="orchestration",
            metadata={"max_steps": self.max_steps, "execution_id": self.execution_id},
            input={"query": user_prompt},
        ) as span:
            try:
                result = self._run_loop()
            except OracleError:
                span.set_status("error")
                raise
            span.set_output(result.to_dict())
            return result

    def _run_loop(self) -> RunResult:
        for step_num in range(1, self.max_steps + 1):
            step = OrchestrationStep(step_number=step_num)
            self.steps.append(step)

            prompt = self.build_prompt()
            raw_output = self._call_oracle(prompt, step_num)
            step.raw_output = raw_output

            decision = try_parse_decision(raw_output)

            if isinstance(decision, DecisionFormatError):
                logger.warning(
                    "%sStep %d: invalid oracle output: %s", self._id_prefix, step_num, decision
                )
                step.error = str(decision)
                self._context.add(Role.SYSTEM, invalid_output_notice(decision))
                continue

            if isinstance(decision, FinalAnswer):
                step.is_final = True
                step.action = "final"
                step.final_answer = decision.answer
                self._log_trace_summary()
                logger.info("%sRun succeeded at step %d", self._id_prefix, step_num)
                return RunResult(ok=True, answer=decision.answer, steps=step_num)

            self._handle_tool_call(decision, step)

        logger.warning("%sMax steps (%d) reached without a final answer", self._id_prefix, self.max_steps)
        self._log_trace_summary()
        return RunResult(ok=False, answer=exhaustion_message(self.max_steps), steps=self.max_steps)

    def build_prompt(self) -> str:
        """Assemble the oracle prompt from the tool list and the context window."""
        tool_list = self.registry.describe()
        return "\n".join(
            [
                PREAMBLE,
                "",
                "AVAILABLE TOOLS:",
                tool_list or NO_TOOLS_MARKER,
                "",
                "RULES:",
                " - Return ONLY valid JSON, no extra text, no markdown.",
                ' - If you need a tool: {"type":"tool","name":"toolName","input":{...}}',
                ' - If you can answer now: {"type":"final","answer":"..."}',
                " - If a tool fails (TOOL returned ERROR), either:",
                f"    (a) retry with corrected input (at most {self.max_tool_retries} time(s) for the same call), or",
                "    (b) choose a different tool, or",
                "    (c) return a final answer explaining the limitation.",
                "",
                "CONTEXT:",
                self._context.render_window(self.context_window),
            ]
        )

    def _call_oracle(self, prompt: str, step_num: int) -> str:
        """Call the oracle; any failure is fatal to the run."""
        logger.debug("%sStep %d: calling oracle", self._id_prefix, step_num)

        if self.tracing_context is None:
            return self._generate(prompt, step_num)

        with self.tracing_context.generation(
            name=f"oracle_step_{step_num}",
            model=getattr(self.oracle, "model", ""),
            input=prompt,
        ) as gen:
            try:
                output = self._generate(prompt, step_num)
            except OracleError:
                gen.set_status("error")
                raise
            gen.set_output(output[:2000])
            return output

    def _generate(self, prompt: str, step_num: int) -> str:
        try:
            return self.oracle.generate(prompt)
        except OracleError as e:
            logger.error("%sOracle call failed at step %d: %s", self._id_prefix, step_num, e)
            raise
        except Exception as e:
            logger.error("%sOracle call failed at step %d: %s", self._id_prefix, step_num, e)
            raise OracleError(f"Oracle call failed at step {step_num}: {e}") from e

    def _handle_tool_call(self, call: ToolCall, step: OrchestrationStep) -> None:
        step.action = call.name
        step.action_input = call.input

        tool = self.registry.find(call.name)
        if tool is None:
            logger.warning("%sUnknown tool: %s", self._id_prefix, call.name)
            step.error = unknown_tool_notice(call.name)
            self._context.add(Role.SYSTEM, step.error)
            return

        self._context.add(Role.ASSISTANT, serialize_decision(call))

        fingerprint = CallFingerprint.of(call.name, call.input)
        previous_failures = self._retries.attempts_for(fingerprint)
        logger.debug(
            "%sStep %d: executing tool '%s' (previous failures: %d)",
            self._id_prefix,
            step.step_number,
            call.name,
            previous_failures,
        )

        result = self._invoke_tool(tool, call)

        if result.ok:
            observation = canonical_json({"name": call.name, "ok": True, "data": result.data})
            step.observation = observation
            self._context.add(Role.TOOL, observation)
            return

        observation = canonical_json({"name": call.name, "ok": False, "error": result.error})
        step.observation = observation
        step.error = result.error
        self._context.add(Role.TOOL, observation)

        failures = self._retries.record_attempt(fingerprint)
        if failures > self.max_tool_retries:
            logger.warning(
                "%sTool call %s failed %d times (ceiling %d)",
                self._id_prefix,
                fingerprint,
                failures,
                self.max_tool_retries,
            )
            self._context.add(Role.SYSTEM, repeated_failure_notice(call.name))

    def _invoke_tool(self, tool: Tool, call: ToolCall) -> ToolResult:
        """Invoke a tool, converting an unexpected exception into a failure."""
        if self.tracing_context is None:
            return self._safe_invoke(tool, call)

        with self.tracing_context.span(name=f"tool:{call.name}", input=call.input) as span:
            result = self._safe_invoke(tool, call)
            if not result.ok:
                span.set_status("error")
            span.set_output({"ok": result.ok})
            return result

    def _safe_invoke(self, tool: Tool, call: ToolCall) -> ToolResult:
        try:
            return tool.invoke(call.input)
        except Exception as e:
            logger.error("%sTool '%s' raised: %s", self._id_prefix, call.name, e)
            return ToolFailure(error=f"{type(e).__name__}: {e}")

    def _log_trace_summary(self) -> None:
        """Log a compact trace summary."""
        logger.info("%s%s", self._id_prefix, "─" * 50)
        logger.info("%sTRACE SUMMARY", self._id_prefix)
        for step in self.steps:
            if step.is_final:
                logger.info("%sStep %d [FINAL]", self._id_prefix, step.step_number)
            elif step.observation is None:
                logger.info("%sStep %d: %s", self._id_prefix, step.step_number, step.error)
            else:
                obs_preview = (
                    step.observation[:80] + "..." if len(step.observation) > 80 else step.observation
                )
                logger.info(
                    "%sStep %d: %s -> %s", self._id_prefix, step.step_number, step.action, obs_preview
                )

    def get_trace(self) -> list[dict]:
        """
        Get a trace of all orchestration steps of the last run.

        Returns:
            List of step dictionaries.
        """
        return [
            {
                "step": s.step_number,
                "action": s.action,
                "action_input": s.action_input,
                "observation": s.observation,
                "error": s.error,
                "is_final": s.is_final,
                "final_answer": s.final_answer,
            }
            for s in self.steps
        ]
