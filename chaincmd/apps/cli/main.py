#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""chaincmd terminal entrypoint.

    chaincmd [--config PATH] [-v] <command> [subcommand] [args...] [--flags...]

Exit codes: 0 ok, 1 command failure, 2 usage / resolution / config failure.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from chaincmd import __version__
from chaincmd.apps.cli.argv import boolean_flags, command_path, leading_positionals, parse_argv, split_globals
from chaincmd.core.commands import CommandNode
from chaincmd.core.config import resolve_config
from chaincmd.core.context import ChainFactory, ExecutionContext
from chaincmd.core.dispatcher import Dispatcher, Resolution
from chaincmd.core.errors import ChaincmdError
from chaincmd.core.serialize import dumps

console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger("chaincmd")


def setup_logging(level: Optional[str] = None, *, verbose: bool = False) -> None:
    name = (level or ("DEBUG" if verbose else "WARNING")).upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=verbose)],
        force=True,
    )


def _usage(path: Sequence[CommandNode]) -> str:
    parts = ["chaincmd"]
    for node in path:
        parts.append(node.name)
        for i, arg in enumerate(node.arguments):
            label = arg.key(i)
            if arg.query:
                label = f"--{label}"
            parts.append(f"<{label}>" if arg.required else f"[{label}]")
    if path and path[-1].is_router:
        parts.append("<subcommand>")
    return " ".join(parts)


def print_help(roots: Sequence[CommandNode], tokens: Sequence[str] = ()) -> None:
    path = command_path(roots, tokens)
    if not path:
        table = Table(title="Commands", box=box.MINIMAL, show_header=True, header_style="bold cyan")
        table.add_column("Command", style="bold", no_wrap=True)
        table.add_column("Aliases", style="dim", no_wrap=True)
        table.add_column("Details", ratio=1)
        for root in roots:
            subs = ", ".join(s.name for s in root.subcommands)
            details = escape(root.description) + (f" [dim]({subs})[/dim]" if subs else "")
            table.add_row(root.name, ", ".join(root.aliases), details)
        console.print(Panel(f"[bold cyan]chaincmd[/bold cyan] {__version__}", border_style="cyan"))
        console.print(table)
        console.print("[dim]chaincmd <command> --help for details; --config PATH, -v for debug logs[/dim]")
        return

    node = path[-1]
    console.print(f"[bold]{escape(_usage(path))}[/bold]")
    if node.description:
        console.print(escape(node.description))

    table = Table(box=box.MINIMAL, show_header=False)
    table.add_column(style="bold cyan", no_wrap=True)
    table.add_column(style="dim", no_wrap=True)
    table.add_column(ratio=1)
    for sub in node.subcommands:
        table.add_row(sub.name, ", ".join(sub.aliases), escape(sub.description))
    for i, arg in enumerate(node.arguments):
        table.add_row(f"<{arg.key(i)}>", arg.type, escape(arg.description))
    for spec in node.params.values():
        flags = ", ".join(("--" if len(n) > 1 else "-") + n for n in spec.names())
        default = f" (default {spec.default})" if spec.default is not None else ""
        table.add_row(flags, spec.type, escape(spec.description + default))
    if table.row_count:
        console.print(table)
    if node.api is not None:
        console.print(f"[dim]HTTP: {node.api.method.upper()} /api/{'/'.join(n.name for n in path)}[/dim]")


def print_result(result: Any) -> None:
    if result is None:
        return
    if isinstance(result, (dict, list, tuple)):
        console.print_json(dumps(result))
        return
    console.print(str(result), markup=False, highlight=False, soft_wrap=True)


def _print_error(exc: ChaincmdError) -> None:
    err_console.print(f"[red]❌ {escape(str(exc))}[/red]", highlight=False)
    available = getattr(exc, "available", ())
    if available:
        err_console.print(f"[dim]Available: {', '.join(available)}[/dim]")


async def _invoke(
    dispatcher: Dispatcher,
    resolution: Resolution,
    params: Dict[str, Any],
    context: ExecutionContext,
    *,
    owned: bool,
) -> Any:
    try:
        return await dispatcher.invoke(resolution.node, resolution.args, params, context, resolution.path)
    finally:
        if owned:
            await context.aclose()


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    commands: Optional[Sequence[CommandNode]] = None,
    context: Optional[ExecutionContext] = None,
) -> int:
    opts = split_globals(list(argv) if argv is not None else sys.argv[1:])
    if opts.version:
        console.print(__version__)
        return 0
    setup_logging(opts.log_level, verbose=opts.verbose)

    if commands is None:
        from chaincmd.commands import get_commands

        commands = get_commands()
    dispatcher = Dispatcher(commands)

    switches = boolean_flags(command_path(commands, leading_positionals(opts.rest)))
    positionals, params = parse_argv(opts.rest, switches=switches)
    if opts.help or not positionals:
        print_help(commands, positionals)
        return 0 if opts.help else 2

    try:
        resolution = dispatcher.resolve(positionals)
        call_params = {**resolution.params, **params}

        owned = context is None
        if context is None:
            cfg = resolve_config(config_path=Path(opts.config) if opts.config else None)
            context = ChainFactory(cfg).context(call_params.get("chain"))
        logger.debug("%s on %s", " ".join(resolution.path), context.platform)

        result = asyncio.run(_invoke(dispatcher, resolution, call_params, context, owned=owned))
    except ChaincmdError as exc:
        if exc.__cause__ is not None:
            logger.debug("cause", exc_info=exc.__cause__)
        _print_error(exc)
        return exc.exit_code
    except KeyboardInterrupt:
        err_console.print("[yellow]Interrupted[/yellow]")
        return 130

    print_result(result)
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    raise SystemExit(main())
