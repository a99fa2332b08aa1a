from __future__ import annotations

import argparse
import json
import logging
import math
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from shunt import __version__
from shunt.diagnostics import format_error_with_hint, format_hint
from shunt.errors import ShuntConfigError, ShuntError, ShuntInvariantError

if TYPE_CHECKING:  # pragma: no cover
    from shunt.config import ShuntConfig


EXIT_OK = 0
EXIT_CONFIG = 2
EXIT_EXPRESSION_ERROR = 3
EXIT_INVARIANT = 4


def _add_common_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--root",
        type=str,
        default=None,
        help="Directory holding shunt.toml (defaults to searching upward from cwd).",
    )
    p.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to shunt.toml (defaults to <root>/shunt.toml).",
    )
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print a JSON document on stdout instead of text.",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging on stderr.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shunt")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    eval_p = subparsers.add_parser("eval", help="Evaluate an expression.")
    _add_common_flags(eval_p)
    eval_p.add_argument("expression", help="Expression text (use `--` before a leading '-').")

    tokens_p = subparsers.add_parser("tokens", help="Print the token stream of an expression.")
    _add_common_flags(tokens_p)
    tokens_p.add_argument("expression")

    program_p = subparsers.add_parser("program", help="Print the postfix program of an expression.")
    _add_common_flags(program_p)
    program_p.add_argument("expression")

    mcp_p = subparsers.add_parser("mcp", help="Model Context Protocol server.")
    mcp_sub = mcp_p.add_subparsers(dest="mcp_command", required=True)
    serve_p = mcp_sub.add_parser("serve", help="Run the MCP server over stdio.")
    serve_p.add_argument("--root", type=str, default=None, help="Working directory for tools.")

    return parser


def parse_args(argv: list[str]) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def _is_json_mode(args: argparse.Namespace) -> bool:
    return bool(getattr(args, "json_output", False))


def _resolve_root_and_config(args: argparse.Namespace) -> tuple[Path | None, Path | None]:
    root = Path(args.root).resolve() if args.root else None
    config_path = Path(args.config).resolve() if args.config else None
    return root, config_path


def _load_config(args: argparse.Namespace) -> ShuntConfig:
    from shunt.config import load_config

    root, config_path = _resolve_root_and_config(args)
    return load_config(root=root, config_path=config_path)


def _configure_logging(args: argparse.Namespace, cfg: ShuntConfig) -> None:
    level = logging.DEBUG if args.verbose else cfg.log.level_no
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("shunt").setLevel(level)


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


def _emit_json(data: dict[str, object]) -> None:
    print(json.dumps(data, indent=2))


def _format_value(value: float, precision: int) -> str:
    """Render `value` with at most `precision` significant digits.

    At full precision this is the shortest round-trip form, without a
    trailing `.0` for integral values.
    """

    if precision >= 17:
        text = repr(value)
        if text.endswith(".0"):
            return text[:-2]
        return text
    return format(value, f".{precision}g")


def _json_number(value: float) -> float | str:
    # JSON has no literal for inf/nan.
    if math.isfinite(value):
        return value
    return repr(value)


def _exit_code_for(e: ShuntError) -> int:
    if isinstance(e, ShuntConfigError):
        return EXIT_CONFIG
    if isinstance(e, ShuntInvariantError):
        return EXIT_INVARIANT
    return EXIT_EXPRESSION_ERROR


def _fail(args: argparse.Namespace, e: ShuntError) -> int:
    if _is_json_mode(args):
        _emit_json(
            {
                "command": args.command,
                "ok": False,
                "expression": getattr(args, "expression", None),
                "error": e.to_dict(),
                "hint": format_hint(e),
            }
        )
    else:
        _eprint(format_error_with_hint(e))
    return _exit_code_for(e)


def cmd_eval(args: argparse.Namespace) -> int:
    from shunt.runtime import evaluate

    try:
        cfg = _load_config(args)
        _configure_logging(args, cfg)
        value = evaluate(
            args.expression,
            max_depth=cfg.limits.max_depth,
            max_length=cfg.limits.max_length,
        )
    except ShuntError as e:
        return _fail(args, e)

    text = _format_value(value, cfg.output.precision)
    if _is_json_mode(args):
        _emit_json(
            {
                "command": "eval",
                "ok": True,
                "expression": args.expression,
                "value": _json_number(value),
                "text": text,
            }
        )
    else:
        print(text)
    return EXIT_OK


def cmd_tokens(args: argparse.Namespace) -> int:
    from shunt.lexer import TokenKind, tokenize

    try:
        cfg = _load_config(args)
        _configure_logging(args, cfg)
        tokens = tokenize(args.expression)
    except ShuntError as e:
        return _fail(args, e)

    if _is_json_mode(args):
        _emit_json(
            {
                "command": "tokens",
                "ok": True,
                "expression": args.expression,
                "tokens": [
                    {"kind": t.kind.name, "literal": t.literal, "offset": t.offset}
                    for t in tokens
                ],
            }
        )
    else:
        for t in tokens:
            if t.kind is TokenKind.END:
                continue
            print(f"{t.offset:>4}  {t.kind.name:<15} {t.literal}")
    return EXIT_OK


def cmd_program(args: argparse.Namespace) -> int:
    from shunt.runtime import compile_expression

    try:
        cfg = _load_config(args)
        _configure_logging(args, cfg)
        program = compile_expression(
            args.expression,
            max_depth=cfg.limits.max_depth,
            max_length=cfg.limits.max_length,
        )
    except ShuntError as e:
        return _fail(args, e)

    if _is_json_mode(args):
        _emit_json(
            {
                "command": "program",
                "ok": True,
                "expression": args.expression,
                "instructions": program.to_list(),
            }
        )
    else:
        print(program)
    return EXIT_OK


def cmd_mcp(args: argparse.Namespace) -> int:
    try:
        from shunt.mcp_server import run_server
    except ImportError:
        _eprint("error: fastmcp is not installed. Install it with: pip install 'shunt[mcp]'")
        return EXIT_CONFIG

    try:
        run_server(root=args.root)
    except ImportError:
        _eprint("error: fastmcp is not installed. Install it with: pip install 'shunt[mcp]'")
        return EXIT_CONFIG
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    try:
        args = parse_args(list(sys.argv[1:] if argv is None else argv))
    except SystemExit as e:
        # argparse uses SystemExit for --help/--version and parse errors.
        code = e.code
        return int(code) if isinstance(code, int) else EXIT_CONFIG

    if args.command == "eval":
        return cmd_eval(args)
    if args.command == "tokens":
        return cmd_tokens(args)
    if args.command == "program":
        return cmd_program(args)
    if args.command == "mcp":
        return cmd_mcp(args)

    return EXIT_CONFIG


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
