"""
Terminal prompts for generator questions.

Each Inquirer prompt type maps onto a click widget:

    input, text           → free text
    number                → numeric input
    confirm               → yes / no
    list, rawlist, expand → one of the choices
    checkbox              → several choices (comma separated)
    password              → hidden input
    editor                → $EDITOR
    anything else         → free text
"""

from __future__ import annotations

from typing import Any, Mapping

import click

from plopctl.core.models.generator import GeneratorDescription, PromptSpec

SINGLE_CHOICE_TYPES = frozenset({"list", "rawlist", "expand"})
_TRUTHY = frozenset({"1", "true", "yes", "y", "on"})


def choice_options(choices: Any) -> list[tuple[str, Any]]:
    """Normalize Inquirer choices to ``(label, value)`` pairs.

    Accepts plain values or ``{name, value}`` mappings; separators and
    other unlabeled entries are skipped.
    """
    if not isinstance(choices, (list, tuple)):
        return []
    options: list[tuple[str, Any]] = []
    for item in choices:
        if isinstance(item, dict):
            label = item.get("name", item.get("value"))
            if label is None:
                continue
            options.append((str(label), item.get("value", label)))
        elif item is not None:
            options.append((str(item), item))
    return options


def default_option(options: list[tuple[str, Any]], default: Any) -> tuple[str, Any]:
    """The ``(label, value)`` pair an Inquirer ``default`` points at.

    ``default`` may be a choice value, a label, or an integer index.
    Anything else falls back to the first option.
    """
    for option in options:
        if option[1] == default:
            return option
    for option in options:
        if option[0] == default:
            return option
    if isinstance(default, int) and not isinstance(default, bool) and 0 <= default < len(options):
        return options[default]
    return options[0]


def _number(value: Any) -> Any:
    number = float(value)
    return int(number) if number.is_integer() else number


def coerce_answer(prompt: PromptSpec, value: Any) -> Any:
    """Convert a command-line string answer to the prompt's type."""
    if not isinstance(value, str):
        return value
    if prompt.type == "confirm":
        return value.strip().lower() in _TRUTHY
    if prompt.type == "number":
        try:
            return _number(value)
        except ValueError:
            raise click.BadParameter(f"'{prompt.name}' expects a number, got {value!r}")
    if prompt.type == "checkbox":
        return [v.strip() for v in value.split(",") if v.strip()]
    return value


def ask(prompt: PromptSpec) -> Any:
    """Ask one question interactively."""
    label = prompt.display_label
    default = prompt.default

    if prompt.type == "confirm":
        return click.confirm(label, default=bool(default))

    if prompt.type == "number":
        value = click.prompt(label, type=click.FLOAT, default=default)
        return _number(value)

    if prompt.type == "password":
        return click.prompt(label, hide_input=True, default=default)

    if prompt.type == "editor":
        edited = click.edit(str(default or ""))
        return edited if edited is not None else (default or "")

    options = choice_options(prompt.choices)
    if prompt.type in SINGLE_CHOICE_TYPES and options:
        labels = [lbl for lbl, _ in options]
        picked = click.prompt(
            label,
            type=click.Choice(labels),
            default=default_option(options, default)[0],
        )
        return dict(options)[picked]

    if prompt.type == "checkbox" and options:
        labels = [lbl for lbl, _ in options]
        click.echo(f"  choices: {', '.join(labels)}")
        raw = click.prompt(label, default="", show_default=False)
        picked = [v.strip() for v in raw.split(",") if v.strip()]
        unknown = [p for p in picked if p not in labels]
        if unknown:
            raise click.BadParameter(f"unknown choice(s): {', '.join(unknown)}")
        lookup = dict(options)
        return [lookup[p] for p in picked]

    return click.prompt(label, default="" if default is None else str(default),
                        show_default=default is not None)


def collect_answers(
    description: GeneratorDescription,
    preset: Mapping[str, Any],
    *,
    interactive: bool = True,
) -> dict[str, Any]:
    """Answers for every named prompt, in prompt order.

    Preset answers win.  Without ``interactive``, unanswered prompts
    take their default, or are left out when they have none; a
    single-choice prompt takes the choice its default points at, like
    Inquirer does.
    """
    answers: dict[str, Any] = {}
    for prompt in description.prompts:
        if not prompt.name:
            continue
        options = choice_options(prompt.choices)
        if prompt.name in preset:
            answers[prompt.name] = coerce_answer(prompt, preset[prompt.name])
        elif interactive:
            answers[prompt.name] = ask(prompt)
        elif prompt.type in SINGLE_CHOICE_TYPES and options:
            answers[prompt.name] = default_option(options, prompt.default)[1]
        elif prompt.default is not None:
            answers[prompt.name] = prompt.default
    return answers
