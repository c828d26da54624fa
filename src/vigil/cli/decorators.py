from __future__ import annotations

import functools
from typing import TYPE_CHECKING, Any

import click

from vigil import exceptions

if TYPE_CHECKING:
    from collections.abc import Callable


def _handle_vigil_error(e: exceptions.VigilError) -> click.ClickException:
    """Convert VigilError to user-friendly ClickException."""
    message = e.format_user_message()
    if suggestion := e.get_suggestion():
        message = f"{message}\n\nTip: {suggestion}"
    return click.ClickException(message)


def with_error_handling[**P, R](func: Callable[P, R]) -> Callable[P, R]:
    """Wrap function with vigil error handling."""

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return func(*args, **kwargs)
        except click.exceptions.Exit:
            raise
        except click.ClickException:
            raise
        except exceptions.VigilError as e:
            raise _handle_vigil_error(e) from e
        except Exception as e:
            raise click.ClickException(repr(e)) from e

    return wrapper


def vigil_command(
    name: str | None = None, **attrs: Any
) -> Callable[[Callable[..., Any]], click.Command]:
    """Create a Click command whose VigilErrors become ClickExceptions with a tip."""

    def decorator(func: Callable[..., Any]) -> click.Command:
        return click.command(name=name, **attrs)(with_error_handling(func))

    return decorator
