"""Click base classes with an ``--examples`` flag.

Commands built with ``examples="..."`` print them on ``--examples`` and
exit, so ``--help`` stays short. On the root group the flag prints a cheat
sheet: the group's own examples followed by those of every subcommand.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import click


def _add_examples_option(cmd: click.Command, render: Callable[[click.Context], str]) -> None:
    """Attach an eager ``--examples`` flag that echoes ``render(ctx)``."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(render(ctx))
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class FlexCommand(click.Command):
    """Command accepting an ``examples`` keyword."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, lambda _ctx: examples)


class FlexGroup(click.Group):
    """Group whose subcommands default to :class:`FlexCommand`."""

    command_class = FlexCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, self.cheat_sheet)

    def cheat_sheet(self, ctx: click.Context) -> str:
        """Own examples, then one block per subcommand that has any."""
        blocks = [self.examples or ""]
        for name in self.list_commands(ctx):
            sub = self.get_command(ctx, name)
            sub_examples = getattr(sub, "examples", None)
            if sub_examples:
                blocks.append(f"{name}:\n{sub_examples}")
        return "\n\n".join(block for block in blocks if block)
