# -*- coding: utf-8 -*-
"""Terminal argv -> (positionals, params).

    c read USDT balanceOf --owner 0x.. -o out.json --txs
      -> ["c", "read", "USDT", "balanceOf"], {"owner": "0x..", "o": "out.json", "txs": True}

- `--name value`, `--name=value`, `-n value`
- A flag followed by another flag (or nothing) is a switch: True.
- Boolean flags declared on the typed command never take the next token.
- Everything after `--` is positional.

Params keep the spelling that was typed (minus dashes); the dispatcher maps aliases to
canonical names, so `-o` and `--output` end up identical.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

from chaincmd.core.aliases import AliasResolver, aliases as default_aliases
from chaincmd.core.commands import CommandNode

_HELP = ("--help", "-h")


@dataclass
class GlobalOptions:
    config: Optional[str] = None
    log_level: Optional[str] = None
    verbose: bool = False
    help: bool = False
    version: bool = False
    rest: List[str] = field(default_factory=list)


def _global_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="chaincmd", add_help=False, allow_abbrev=False)
    p.add_argument("--config", default=None, help="Path to conf/settings.ini")
    p.add_argument("--log-level", default=None)
    p.add_argument("-v", "--verbose", action="store_true")
    p.add_argument("-h", "--help", action="store_true")
    p.add_argument("--version", action="store_true")
    p.add_argument("rest", nargs=argparse.REMAINDER)
    return p


def split_globals(argv: Sequence[str]) -> GlobalOptions:
    """chaincmd's own flags before the command; `--help` is honoured anywhere."""
    ns, unknown = _global_parser().parse_known_args(list(argv))
    # unknown flags ahead of the command belong to it, e.g. `--chain polygon block get 1`
    tokens = list(unknown) + list(ns.rest)
    opts = GlobalOptions(
        config=ns.config,
        log_level=ns.log_level,
        verbose=ns.verbose,
        help=ns.help,
        version=ns.version,
    )
    head = tokens[: tokens.index("--")] if "--" in tokens else tokens
    if any(t in _HELP for t in head):
        opts.help = True
        tokens = [t for t in head if t not in _HELP] + tokens[len(head):]
    opts.rest = tokens
    return opts


def command_path(
    roots: Sequence[CommandNode],
    tokens: Sequence[str],
    *,
    resolver: Optional[AliasResolver] = None,
) -> List[CommandNode]:
    """Longest command prefix of `tokens`; router arguments are skipped."""
    resolver = resolver or default_aliases
    chain: List[CommandNode] = []
    candidates = list(roots)
    rest = list(tokens)
    while rest and candidates:
        node = resolver.match(candidates, rest.pop(0))
        if node is None:
            break
        chain.append(node)
        rest = rest[len([a for a in node.arguments if not a.query]):] if node.is_router else []
        candidates = list(node.subcommands)
    return chain


def boolean_flags(path: Iterable[CommandNode]) -> FrozenSet[str]:
    """Every spelling of the boolean params declared along a command path."""
    out: Set[str] = set()
    for node in path:
        for spec in node.params.values():
            if spec.type == "boolean":
                out.update(spec.names())
    return frozenset(out)


def leading_positionals(argv: Sequence[str]) -> List[str]:
    """Tokens up to the first flag: the command path plus its router arguments."""
    out: List[str] = []
    for tok in argv:
        if tok == "--" or _is_flag(tok):
            break
        out.append(tok)
    return out


def _is_flag(tok: str) -> bool:
    if not tok.startswith("-") or tok in ("-", "--"):
        return False
    # negative numbers are values
    return not tok[1:].replace(".", "", 1).isdigit()


def parse_argv(
    argv: Sequence[str],
    *,
    switches: FrozenSet[str] = frozenset(),
) -> Tuple[List[str], Dict[str, Any]]:
    positionals: List[str] = []
    params: Dict[str, Any] = {}
    tokens = list(argv)
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if tok == "--":
            positionals.extend(tokens[i + 1:])
            break
        if not _is_flag(tok):
            positionals.append(tok)
            i += 1
            continue

        name, eq, value = tok.lstrip("-").partition("=")
        if eq:
            params[name] = value
        elif name in switches:
            params[name] = True
        elif i + 1 < len(tokens) and not _is_flag(tokens[i + 1]) and tokens[i + 1] != "--":
            params[name] = tokens[i + 1]
            i += 1
        else:
            params[name] = True
        i += 1
    return positionals, params
