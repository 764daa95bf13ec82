# -*- coding: utf-8 -*-
from __future__ import annotations

import json

from chaincmd import __version__
from chaincmd.apps.cli.argv import boolean_flags, command_path, leading_positionals, parse_argv, split_globals
from chaincmd.apps.cli.main import main
from chaincmd.commands import get_commands
from chaincmd.core.commands import ApiMeta, ArgumentSpec, CommandNode, ParamSpec
from tests.conftest import TX_HASH


async def _echo(args, params, context, node):
    return {"args": list(args), "params": params, "platform": context.platform}


async def _fail(args, params, context, node):
    raise RuntimeError("node exploded")


async def _text(args, params, context, node):
    return "plain [text]"


ECHO = CommandNode(
    "contract, c",
    subcommands=(
        CommandNode(
            "read",
            arguments=(ArgumentSpec(), ArgumentSpec()),
            params=(
                ParamSpec.parse("--output, -o"),
                ParamSpec.parse("--block", type="number"),
                ParamSpec.parse("--txs", type="boolean"),
            ),
            api=ApiMeta("get"),
            handler=_echo,
        ),
        CommandNode("fail", handler=_fail),
        CommandNode("text", handler=_text),
    ),
)


def test_parse_argv_shapes():
    args, params = parse_argv(
        ["c", "read", "T", "m", "--owner", "0xabc", "-o", "out.json", "--txs", "extra", "--limit=5", "--flag"],
        switches=frozenset({"txs"}),
    )
    assert args == ["c", "read", "T", "m", "extra"]
    assert params == {"owner": "0xabc", "o": "out.json", "txs": True, "limit": "5", "flag": True}


def test_parse_argv_negative_numbers_and_separator():
    args, params = parse_argv(["rpc", "m", "--offset", "-5", "--", "--not-a-flag"])
    assert args == ["rpc", "m", "--not-a-flag"]
    assert params == {"offset": "-5"}


def test_split_globals():
    opts = split_globals(["--config", "x.ini", "-v", "c", "read", "--help"])
    assert opts.config == "x.ini"
    assert opts.verbose
    assert opts.help
    assert opts.rest == ["c", "read"]

    opts = split_globals(["--log-level=info", "c", "read", "-v"])
    assert opts.log_level == "info"
    assert not opts.verbose
    assert opts.rest == ["c", "read", "-v"]


def test_split_globals_keeps_command_flags_in_order():
    opts = split_globals(["--chain", "polygon", "block", "get", "1", "--txs"])
    assert opts.config is None
    assert not opts.help
    assert opts.rest == ["--chain", "polygon", "block", "get", "1", "--txs"]

    opts = split_globals(["--version"])
    assert opts.version
    assert opts.rest == []


def test_boolean_flags_come_from_the_typed_command():
    tokens = leading_positionals(["block", "get", "--txs", "5"])
    assert tokens == ["block", "get"]
    assert boolean_flags(command_path(get_commands(), tokens)) == frozenset({"txs"})
    assert boolean_flags(command_path(get_commands(), ["contract", "logs"])) == frozenset()


async def _verbatim(args, params, context, node):
    return params


SHARED = [
    CommandNode("a", params=(ParamSpec.parse("--full", type="boolean"),), handler=_verbatim),
    CommandNode("b", params=(ParamSpec.parse("--full"),), handler=_verbatim),
]


def test_switch_on_one_command_does_not_change_another(capsys, context):
    assert main(["b", "--full", "yes"], commands=SHARED, context=context) == 0
    assert json.loads(capsys.readouterr().out) == {"full": "yes"}

    assert main(["a", "--full", "yes"], commands=SHARED, context=context) == 0
    assert json.loads(capsys.readouterr().out) == {"full": True}


def test_prints_json_result(capsys, context):
    code = main(["c", "read", "T", "m", "--block", "0x10", "-o", "x.json", "--txs"], commands=[ECHO], context=context)
    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert out == {
        "args": ["T", "m"],
        "params": {"block": 16, "output": "x.json", "txs": True},
        "platform": "eth",
    }


def test_prints_plain_text(capsys, context):
    assert main(["c", "text"], commands=[ECHO], context=context) == 0
    assert capsys.readouterr().out.strip() == "plain [text]"


def test_handler_failure_exit_code(capsys, context):
    assert main(["c", "fail"], commands=[ECHO], context=context) == 1
    err = capsys.readouterr().err
    assert "❌" in err
    assert "contract fail: node exploded" in err


def test_unknown_command_exit_code(capsys, context):
    assert main(["nope"], commands=[ECHO], context=context) == 2
    err = capsys.readouterr().err
    assert "Unknown command" in err
    assert "contract" in err


def test_missing_argument_exit_code(capsys, context):
    assert main(["tx", "send"], context=context) == 2
    assert "Missing" in capsys.readouterr().err


def test_no_command_prints_help(capsys):
    assert main([], commands=[ECHO]) == 2
    assert "Commands" in capsys.readouterr().out


def test_help_for_a_subcommand(capsys):
    assert main(["c", "read", "--help"]) == 0
    out = capsys.readouterr().out
    assert "chaincmd contract read <name> <method>" in out
    assert "--sender" in out


def test_version(capsys):
    assert main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == __version__


def test_tx_send_waits_in_terminal(capsys, context):
    assert main(["tx", "send", "0xf86c"], context=context) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["hash"] == TX_HASH
    assert out["status"] == 1
    assert context.client.waited == [TX_HASH]


def test_boolean_switch_does_not_swallow_positionals(capsys, context):
    assert main(["block", "get", "--txs", "5"], context=context) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["number"] == 5
    assert out["full"] is True


def test_explicit_missing_config(capsys):
    assert main(["--config", "/nonexistent/settings.ini", "block", "get", "1"]) == 2
    assert "Missing config" in capsys.readouterr().err
