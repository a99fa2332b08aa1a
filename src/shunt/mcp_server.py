"""MCP server for Shunt: exposes eval/tokens/program as MCP tools.

The server uses FastMCP (optional dependency) for the transport layer.
Core tool functions are plain Python and can be tested without FastMCP installed.
"""

from __future__ import annotations

import io
import json
from contextlib import redirect_stdout
from pathlib import Path

import shunt.cli

# ---------------------------------------------------------------------------
# Core tool functions (no FastMCP dependency)
# ---------------------------------------------------------------------------


def _run_cli_json(argv: list[str]) -> str:
    """Run a CLI command with --json and capture its stdout JSON output.

    Returns the JSON string emitted by the command. If the command produces no
    stdout (e.g. an argparse error that only prints to stderr), we synthesise an
    error envelope so callers always get valid JSON.
    """
    cmd_name = argv[0] if argv else "unknown"
    buf = io.StringIO()
    with redirect_stdout(buf):
        shunt.cli.main(argv)
    output = buf.getvalue().strip()
    if not output:
        return json.dumps({"command": cmd_name, "ok": False, "error": "command produced no output"})

    try:
        json.loads(output)
    except (json.JSONDecodeError, ValueError):
        return json.dumps({"command": cmd_name, "ok": False, "error": output[:500]})
    return output


def _argv(command: str, expression: str, root: str | None) -> list[str]:
    argv = [command, "--json"]
    if root:
        argv += ["--root", root]
    # `--` keeps expressions such as "-5" from being read as flags.
    return argv + ["--", expression]


def tool_evaluate(expression: str, *, root: str | None = None) -> str:
    """Evaluate an expression and return the value or a positioned error."""
    return _run_cli_json(_argv("eval", expression, root))


def tool_tokens(expression: str, *, root: str | None = None) -> str:
    """Return the token stream of an expression."""
    return _run_cli_json(_argv("tokens", expression, root))


def tool_program(expression: str, *, root: str | None = None) -> str:
    """Return the postfix program an expression compiles to."""
    return _run_cli_json(_argv("program", expression, root))


# ---------------------------------------------------------------------------
# FastMCP server factory
# ---------------------------------------------------------------------------


def create_mcp_server():
    """Create and return a FastMCP server with shunt tools registered.

    Raises ImportError if fastmcp is not installed.
    """
    from fastmcp import FastMCP

    mcp = FastMCP("shunt", instructions="Shunt arithmetic expression evaluator")

    @mcp.tool()
    def shunt_evaluate(expression: str, root: str | None = None) -> str:
        """Evaluate an arithmetic expression.

        Supports + - * / % ^ << >>, postfix !, constants (pi, e, tau) and
        functions such as pow(), max() and average(). Returns JSON with the
        value, or an error with its kind, message, offset and length.
        """
        return tool_evaluate(expression, root=root)

    @mcp.tool()
    def shunt_tokens(expression: str, root: str | None = None) -> str:
        """Tokenize an expression.

        Returns JSON with each token's kind, literal text and offset.
        """
        return tool_tokens(expression, root=root)

    @mcp.tool()
    def shunt_program(expression: str, root: str | None = None) -> str:
        """Compile an expression to its postfix instruction list."""
        return tool_program(expression, root=root)

    return mcp


def run_server(*, root: str | None = None) -> None:
    """Entry point: create and run the MCP server (stdio transport).

    If *root* is provided, changes the working directory to that path so
    that shunt.toml is resolved relative to it.
    """
    import os

    if root:
        os.chdir(Path(root).resolve())
    mcp = create_mcp_server()
    mcp.run()
