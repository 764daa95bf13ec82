# -*- coding: utf-8 -*-
"""Declarative command model.

A command tree is built once (see `chaincmd.commands`) and never mutated afterwards.
The same tree drives the terminal parser and the HTTP route table.

Notes
- `CommandNode("contract, c", ...)` declares `contract` with alias `c`.
- Argument order is significant: it is both the CLI positional order and the HTTP
  path-segment order.
- Flags are declared the way they are typed: `ParamSpec.parse("--output, -o")`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

Handler = Callable[..., Union[Any, Awaitable[Any]]]

ARG_TYPES = ("string", "number", "boolean")


def split_names(declared: str) -> List[str]:
    """'contract, c' -> ['contract', 'c'] (order kept, empties dropped)."""
    return [x.strip() for x in str(declared or "").split(",") if x.strip()]


@dataclass(frozen=True)
class ArgumentSpec:
    name: Optional[str] = None
    description: str = ""
    required: bool = False
    query: bool = False
    type: str = "string"

    def key(self, index: int) -> str:
        """Placeholder name; unnamed positionals get `arg{index}`."""
        return self.name or synthesized_name(index)


def synthesized_name(index: int) -> str:
    return f"arg{int(index)}"


@dataclass(frozen=True)
class ParamSpec:
    name: str
    aliases: Tuple[str, ...] = ()
    description: str = ""
    type: str = "string"
    required: bool = False
    default: Any = None

    @classmethod
    def parse(cls, flags: str, **kwargs: Any) -> "ParamSpec":
        names = [n.lstrip("-") for n in split_names(flags)]
        if not names:
            raise ValueError(f"Invalid flag declaration: {flags!r}")
        return cls(name=names[0], aliases=tuple(names[1:]), **kwargs)

    def names(self) -> Tuple[str, ...]:
        return (self.name,) + tuple(self.aliases)


@dataclass(frozen=True)
class ApiMeta:
    method: str = "get"
    handler: Optional[Handler] = None


@dataclass(frozen=True)
class CommandNode:
    name: str
    description: str = ""
    aliases: Tuple[str, ...] = ()
    arguments: Tuple[ArgumentSpec, ...] = ()
    params: Mapping[str, ParamSpec] = field(default_factory=dict, compare=False)
    subcommands: Tuple["CommandNode", ...] = ()
    api: Optional[ApiMeta] = None
    handler: Optional[Handler] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        names = split_names(self.name)
        if not names:
            raise ValueError("CommandNode requires a name")
        extra = tuple(a for a in names[1:] if a not in self.aliases)
        object.__setattr__(self, "name", names[0])
        object.__setattr__(self, "aliases", extra + tuple(self.aliases))
        object.__setattr__(self, "arguments", tuple(self.arguments))
        object.__setattr__(self, "subcommands", tuple(self.subcommands))
        object.__setattr__(self, "params", _index_params(self.params))
        for arg in self.arguments:
            if arg.type not in ARG_TYPES:
                raise ValueError(f"{self.name}: unsupported argument type {arg.type!r}")
            # router arguments reach the leaf as named params
            if self.subcommands and not arg.name:
                raise ValueError(f"{self.name}: router arguments must be named")

    @property
    def is_router(self) -> bool:
        return bool(self.subcommands)

    @property
    def exposed(self) -> bool:
        return self.api is not None

    def argument_index(self, name: str) -> int:
        for i, arg in enumerate(self.arguments):
            if arg.name == name:
                return i
        return -1

    def find_param(self, flag: str) -> Optional[ParamSpec]:
        key = str(flag).lstrip("-")
        if key in self.params:
            return self.params[key]
        for spec in self.params.values():
            if key in spec.aliases:
                return spec
        return None


def _index_params(params: Union[Mapping[str, ParamSpec], Iterable[ParamSpec], None]) -> Dict[str, ParamSpec]:
    if not params:
        return {}
    specs = params.values() if isinstance(params, Mapping) else params
    out: Dict[str, ParamSpec] = {}
    for spec in specs:
        out[spec.name] = spec
    return out
