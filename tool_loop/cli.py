#!/usr/bin/env python3
"""
tool-loop command-line interface.

Runs a single query or an interactive session against the configured
oracle backend with the built-in tools.
"""

import argparse
import json
import logging
import sys
import uuid
from dataclasses import dataclass, replace
from typing import Optional, Union

from .config import OracleConfig, config
from .config_loader import load_app_config
from .exceptions import OracleError, ToolLoopError
from .models import OracleSettings
from .oracles import Oracle, create_oracle
from .orchestration import OrchestrationLoop, RunResult
from .orchestration.loop import validate_budgets
from .tools import ToolRegistry, default_tools
from .tracing import TracingContext, init_tracing_client, shutdown_tracing

logger = logging.getLogger(__name__)

DEMO_PROMPT = "Compute VAT (DPH) for net 123.45 at 19% and add shipping 6.90."


def setup_logging(verbose: bool = False, level: str = "WARNING") -> None:
    """Configure logging based on verbosity level."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def print_banner() -> None:
    """Print the welcome banner."""
    print(
        """
tool-loop interactive

Available commands:
  /help     - Show this help message
  /trace    - Show the trace of the last query
  /tools    - List available tools
  /quit     - Exit

Type your questions or tasks below.
"""
    )


def print_tools(registry: ToolRegistry) -> None:
    """Print available tools."""
    print("\nAvailable Tools:")
    print("─" * 64)
    print(registry.describe() or "(none)")
    print()


def print_trace(loop: OrchestrationLoop) -> None:
    """Print the trace of the last run."""
    trace = loop.get_trace()
    if not trace:
        print("\nNo trace available. Run a query first.\n")
        return

    print("\n" + "═" * 70)
    print("ORCHESTRATION TRACE")
    print("═" * 70)

    for step in trace:
        print(f"\n┌─ Step {step['step']}" + ("  [FINAL]" if step["is_final"] else ""))
        if step["action"]:
            print(f"│  Action: {step['action']}")
        if step["action_input"] is not None:
            print(f"│  Input: {json.dumps(step['action_input'])}")
        if step["observation"]:
            obs = step["observation"]
            if len(obs) > 200:
                obs = obs[:200] + "..."
            print(f"│  Observation: {obs}")
        if step["error"]:
            print(f"│  Error: {step['error']}")
        if step["final_answer"] is not None:
            print(f"│  Final Answer: {step['final_answer']}")
        print("└" + "─" * 68)

    print()


class Runner:
    """Builds one loop per query and wraps it in tracing when enabled."""

    def __init__(
        self,
        oracle: Oracle,
        registry: ToolRegistry,
        max_steps: int,
        context_window: int,
        max_tool_retries: int,
        tracing_enabled: bool = False,
    ):
        validate_budgets(max_steps, context_window, max_tool_retries)
        self.oracle = oracle
        self.registry = registry
        self.max_steps = max_steps
        self.context_window = context_window
        self.max_tool_retries = max_tool_retries
        self.tracing_enabled = tracing_enabled
        self.last_loop: Optional[OrchestrationLoop] = None

    def run(self, query: str) -> RunResult:
        execution_id = uuid.uuid4().hex[:8]
        tracing_context = TracingContext(execution_id=execution_id) if self.tracing_enabled else None
        loop = OrchestrationLoop(
            oracle=self.oracle,
            tools=self.registry,
            max_steps=self.max_steps,
            context_window=self.context_window,
            max_tool_retries=self.max_tool_retries,
            tracing_context=tracing_context,
            execution_id=execution_id,
        )
        self.last_loop = loop

        if tracing_context is None:
            return loop.run(query)

        tracing_context.start_trace(query=query)
        try:
            result = loop.run(query)
        except OracleError as e:
            tracing_context.end_trace(output=str(e), status="error")
            raise
        tracing_context.end_trace(output=result.answer, status="success" if result.ok else "exhausted")
        return result


class InteractiveCLI:
    """Interactive prompt loop."""

    def __init__(self, runner: Runner):
        self.runner = runner

    def process_query(self, query: str) -> None:
        try:
            result = self.runner.run(query)
        except OracleError as e:
            print(f"\nOracle error: {e}\n")
            return

        print("\n" + "═" * 70)
        print("ANSWER" if result.ok else "NO ANSWER")
        print("═" * 70)
        print(result.answer)
        print("═" * 70)
        print(f"(Completed in {result.steps} step{'s' if result.steps != 1 else ''})\n")

    def run(self) -> None:
        print_banner()
        while True:
            try:
                user_input = input(">>> ").strip()
            except (KeyboardInterrupt, EOFError):
                print("\nGoodbye!\n")
                break

            if not user_input:
                continue

            command = user_input.lower()
            if command in ("/quit", "/exit", "/q"):
                print("\nGoodbye!\n")
                break
            elif command in ("/help", "/h", "/?"):
                print_banner()
            elif command == "/trace":
                if self.runner.last_loop is None:
                    print("\nNo trace available. Run a query first.\n")
                else:
                    print_trace(self.runner.last_loop)
            elif command == "/tools":
                print_tools(self.runner.registry)
            elif command.startswith("/"):
                print(f"\nUnknown command: {user_input}")
                print("Type /help for available commands.\n")
            else:
                self.process_query(user_input)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tool-loop",
        description="Run a tool-using oracle loop",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --demo                       # VAT example with the mock backend
  %(prog)s -q "What is 12*(3+4)?" --backend ollama --model llama3.1
  %(prog)s                              # Start interactive mode
""",
    )
    parser.add_argument("-q", "--query", type=str, help="Run a single query and exit")
    parser.add_argument("--demo", action="store_true", help="Run the built-in VAT example")
    parser.add_argument("-c", "--config", type=str, default=None, help="YAML configuration file")
    parser.add_argument(
        "--backend",
        choices=["mock", "ollama", "openai_compatible"],
        default=None,
        help=f"Oracle backend (default: from ORACLE_BACKEND env or {config.oracle.backend})",
    )
    parser.add_argument("--model", type=str, default=None, help="Oracle model name")
    parser.add_argument("--base-url", type=str, default=None, help="Oracle endpoint URL")
    parser.add_argument("--max-steps", type=int, default=None, help="Step budget per run")
    parser.add_argument("--context-window", type=int, default=None, help="Messages rendered per prompt")
    parser.add_argument("--max-tool-retries", type=int, default=None, help="Soft ceiling per identical call")
    parser.add_argument("--json", action="store_true", help="Output results as JSON (for scripting)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    return parser


@dataclass
class CLISettings:
    """Effective settings after merging configuration and flags."""

    oracle: Union[OracleConfig, OracleSettings]
    max_steps: int
    context_window: int
    max_tool_retries: int
    log_level: str = "INFO"
    langfuse_public_key: str = ""
    langfuse_secret_key: str = ""
    langfuse_host: str = ""
    langfuse_debug: bool = False


def resolve_settings(args: argparse.Namespace) -> CLISettings:
    """Merge file or environment configuration with command-line overrides."""
    if args.config:
        app_config = load_app_config(args.config, reload=True)
        settings = CLISettings(
            oracle=app_config.oracle,
            max_steps=app_config.loop.max_steps,
            context_window=app_config.loop.context_window,
            max_tool_retries=app_config.loop.max_tool_retries,
            log_level=app_config.logging.level,
        )
        if app_config.langfuse.enabled:
            settings.langfuse_public_key = app_config.langfuse.public_key
            settings.langfuse_secret_key = app_config.langfuse.secret_key
            settings.langfuse_host = app_config.langfuse.host
            settings.langfuse_debug = app_config.langfuse.debug
    else:
        settings = CLISettings(
            oracle=config.oracle,
            max_steps=config.loop.max_steps,
            context_window=config.loop.context_window,
            max_tool_retries=config.loop.max_tool_retries,
            log_level=config.log_level,
            langfuse_public_key=config.langfuse.public_key,
            langfuse_secret_key=config.langfuse.secret_key,
            langfuse_host=config.langfuse.host,
            langfuse_debug=config.langfuse.debug,
        )

    overrides = {}
    if args.backend is not None:
        overrides["backend"] = args.backend
    elif args.demo and not args.config:
        overrides["backend"] = "mock"
    if args.model is not None:
        overrides["model"] = args.model
    if args.base_url is not None:
        overrides["base_url"] = args.base_url
    if overrides:
        settings.oracle = replace(settings.oracle, **overrides)

    if args.max_steps is not None:
        settings.max_steps = args.max_steps
    if args.context_window is not None:
        settings.context_window = args.context_window
    if args.max_tool_retries is not None:
        settings.max_tool_retries = args.max_tool_retries

    return settings


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        settings = resolve_settings(args)
        setup_logging(args.verbose, settings.log_level)
        oracle = create_oracle(settings.oracle)
        runner = Runner(
            oracle=oracle,
            registry=ToolRegistry(default_tools()),
            max_steps=settings.max_steps,
            context_window=settings.context_window,
            max_tool_retries=settings.max_tool_retries,
        )
    except (ValueError, FileNotFoundError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    tracing_client = init_tracing_client(
        public_key=settings.langfuse_public_key,
        secret_key=settings.langfuse_secret_key,
        host=settings.langfuse_host,
        debug=settings.langfuse_debug,
    )
    runner.tracing_enabled = tracing_client.enabled

    query = args.query or (DEMO_PROMPT if args.demo else None)

    try:
        if query is None:
            InteractiveCLI(runner).run()
            return 0

        try:
            result = runner.run(query)
        except ToolLoopError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        if args.json:
            output = {
                "query": query,
                **result.to_dict(),
                "trace": runner.last_loop.get_trace() if runner.last_loop else [],
            }
            print(json.dumps(output, indent=2))
        else:
            print(result.answer)
        return 0 if result.ok else 1
    finally:
        shutdown_tracing()
        close = getattr(oracle, "close", None)
        if callable(close):
            close()


if __name__ == "__main__":
    sys.exit(main())
