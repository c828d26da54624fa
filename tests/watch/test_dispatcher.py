from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from vigil.watch import dispatcher as dispatcher_mod
from vigil.watch import keys
from vigil.watch.prompt import Prompt

if TYPE_CHECKING:
    from unittest.mock import MagicMock

    from pytest_mock import MockerFixture


@pytest.fixture
def commands(mocker: MockerFixture) -> MagicMock:
    commands = mocker.MagicMock(spec=dispatcher_mod.WatchCommands)
    commands.is_running = False
    return commands


@pytest.fixture
def prompt() -> Prompt:
    return Prompt()


@pytest.fixture
def dispatcher(prompt: Prompt, commands: MagicMock) -> dispatcher_mod.KeypressDispatcher:
    return dispatcher_mod.KeypressDispatcher(prompt, commands)


@pytest.mark.parametrize(
    ("key", "command"),
    [
        (keys.Q, "quit"),
        (keys.ENTER, "rerun"),
        (keys.LINE_FEED, "rerun"),
        (keys.U, "update_snapshots"),
        (keys.A, "run_all"),
        (keys.O, "run_related"),
        (keys.C, "open_coverage"),
        (keys.P, "filter_by_path"),
        (keys.T, "filter_by_name"),
        (keys.W, "show_more_usage"),
    ],
)
def test_command_table(
    dispatcher: dispatcher_mod.KeypressDispatcher, commands: MagicMock, key: str, command: str
) -> None:
    """Each key maps to one command while idle."""
    dispatcher.dispatch(key)

    getattr(commands, command).assert_called_once_with()
    commands.interrupt.assert_not_called()


@pytest.mark.parametrize(
    "key", [keys.Q, keys.ENTER, keys.LINE_FEED, keys.A, keys.O, keys.P, keys.T]
)
def test_interrupt_keys_while_running(
    dispatcher: dispatcher_mod.KeypressDispatcher, commands: MagicMock, key: str
) -> None:
    """Interrupt keys only interrupt while a run is in flight."""
    commands.is_running = True

    dispatcher.dispatch(key)

    commands.interrupt.assert_called_once_with()
    for name in ("quit", "rerun", "run_all", "run_related", "filter_by_path", "filter_by_name"):
        getattr(commands, name).assert_not_called()


@pytest.mark.parametrize(
    ("key", "command"), [(keys.U, "update_snapshots"), (keys.W, "show_more_usage")]
)
def test_other_keys_act_while_running(
    dispatcher: dispatcher_mod.KeypressDispatcher, commands: MagicMock, key: str, command: str
) -> None:
    """Keys outside the interrupt set keep their meaning during a run."""
    commands.is_running = True

    dispatcher.dispatch(key)

    getattr(commands, command).assert_called_once_with()
    commands.interrupt.assert_not_called()


@pytest.mark.parametrize("key", [keys.CONTROL_C, keys.CONTROL_D])
def test_quit_keys_always_quit(
    dispatcher: dispatcher_mod.KeypressDispatcher,
    commands: MagicMock,
    prompt: Prompt,
    key: str,
) -> None:
    """Control-C and Control-D quit even while capturing and running."""
    commands.is_running = True
    prompt.enter(lambda _: None, lambda _: None, lambda: None)

    dispatcher.dispatch(key)

    commands.quit.assert_called_once_with()
    commands.interrupt.assert_not_called()


def test_capturing_routes_to_prompt(
    dispatcher: dispatcher_mod.KeypressDispatcher, commands: MagicMock, prompt: Prompt
) -> None:
    """While capturing, command keys are typed instead of executed."""
    prompt.enter(lambda _: None, lambda _: None, lambda: None)

    assert dispatcher.state == dispatcher_mod.DispatchState.CAPTURING
    for key in "qa":
        dispatcher.dispatch(key)

    assert prompt.value == "qa"
    commands.quit.assert_not_called()
    commands.run_all.assert_not_called()


def test_state_returns_to_command(
    dispatcher: dispatcher_mod.KeypressDispatcher, prompt: Prompt
) -> None:
    """Submitting the prompt returns the dispatcher to command mode."""
    prompt.enter(lambda _: None, lambda _: None, lambda: None)
    dispatcher.dispatch(keys.ENTER)

    assert dispatcher.state == dispatcher_mod.DispatchState.COMMAND


@pytest.mark.parametrize("key", ["x", keys.QUESTION_MARK, keys.ESCAPE, keys.ARROW_DOWN])
def test_unknown_keys_do_nothing(
    dispatcher: dispatcher_mod.KeypressDispatcher, commands: MagicMock, key: str
) -> None:
    """Keys outside the table are ignored."""
    dispatcher.dispatch(key)

    assert commands.method_calls == []
