"""
Command line: turn prompts into executed browser sessions and test scripts.

    testgen "Go to github.com and search for playwright" --output tests/test_search.py
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any

from .actions import ToolCallAction
from .bridge import BridgeError, McpBridge
from .codegen import write_script
from .config import BridgeConfig, PlannerConfig
from .orchestrator import Orchestrator, is_error_result, result_text
from .planner import LangChainPlanner

logger = logging.getLogger("mcp.testgen.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="testgen", description="Generate Playwright tests from natural language")
    parser.add_argument("prompts", nargs="+", help="One or more prompts, run in order in one browser session")
    parser.add_argument("-o", "--output", help="Write the last generated script to this path")
    parser.add_argument("--headless", action="store_true", help="Ask the planner for a headless browser")
    parser.add_argument("--model", help="Planner model (default: MCP_PLANNER_MODEL or gpt-4o)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _print_action(action: ToolCallAction, envelope: dict[str, Any]) -> None:
    status = "FAIL" if is_error_result(envelope) else "ok"
    first = (result_text(envelope).splitlines() or [""])[0]
    print(f"  [{status}] {action.name} {dict(action.arguments)} -> {first[:160]}", file=sys.stderr)


async def run(args: argparse.Namespace) -> int:
    planner_config = PlannerConfig.from_env()
    if args.model:
        planner_config.model = args.model
    orchestrator = Orchestrator(McpBridge(BridgeConfig.from_env()), LangChainPlanner(planner_config))

    exit_code = 0
    script: str | None = None
    try:
        await orchestrator.start()
        for prompt in args.prompts:
            text = f"{prompt} (use a headless browser)" if args.headless else prompt
            print(f"> {prompt}", file=sys.stderr)
            result = await orchestrator.process_prompt(text, on_action=_print_action)
            if not result.success:
                print(f"Prompt failed: {result.error}", file=sys.stderr)
                exit_code = 1
                break
            script = result.script or script
    except BridgeError as exc:
        print(f"Driver error: {exc}", file=sys.stderr)
        exit_code = 2
    finally:
        await orchestrator.cleanup()

    if script:
        if args.output:
            path = write_script(args.output, script)
            print(f"Test written to {path}", file=sys.stderr)
        else:
            sys.stdout.write(script)
    return exit_code


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
