"""
plopctl — CLI entrypoint.

Usage:
    plopctl --help
    plopctl list
    plopctl describe component
    plopctl run component --answer name=Button
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from plopctl import __version__
from plopctl.core.observability.logging_config import configure_from_flags


def _parse_answer_pairs(pairs: tuple[str, ...]) -> dict[str, str]:
    answers: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint="--answer")
        answers[key.strip()] = value
    return answers


def _notify(message: str, level: str) -> None:
    click.secho(f"❌ Plop: {message}", fg="red", err=True)


def _resolve_root(ctx: click.Context) -> Path:
    """Project root from --root, else the nearest one above cwd, else cwd."""
    root: Path | None = ctx.obj.get("root")
    if root is not None:
        return root.resolve()
    from plopctl.core.config.resolver import find_project_root

    return find_project_root() or Path.cwd().resolve()


def _settings(ctx: click.Context):
    from plopctl.core.config.loader import ConfigError, load_settings

    try:
        return load_settings(_resolve_root(ctx), node=ctx.obj.get("node"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


def _ops(ctx: click.Context):
    """Build the pipeline for this invocation (once per context)."""
    if "ops" not in ctx.obj:
        from plopctl.core.services.interpreter import interpreter_resolver_from_settings
        from plopctl.core.services.plop_ops import PlopOps

        settings = _settings(ctx)
        ctx.obj["ops"] = PlopOps(
            interpreter_resolver_from_settings(settings),
            timeout=settings.timeout_s,
            notifier=_notify,
        )
    return ctx.obj["ops"]


@click.group()
@click.version_option(version=__version__, prog_name="plopctl")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--root",
    "-r",
    "root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: nearest directory with package.json and a plopfile).",
)
@click.option("--node", default=None, help="Path to the Node.js interpreter.")
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    root: Path | None,
    node: str | None,
) -> None:
    """plopctl — list, inspect and run Plop generators."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["root"] = root
    ctx.obj["node"] = node

    configure_from_flags(verbose=verbose, quiet=quiet, debug=debug)


# ── Generators ──────────────────────────────────────────────────


@cli.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, as_json: bool) -> None:
    """List the generators defined by the project's plopfile."""
    root = _resolve_root(ctx)
    generators = _ops(ctx).list_generators(root)

    if as_json:
        click.echo(json.dumps([g.model_dump() for g in generators], indent=2))
        return

    if not generators:
        click.secho("No Plop generators found", fg="yellow")
        return

    if not ctx.obj.get("quiet"):
        click.secho(f"\n🧩 Generators in {root}", fg="cyan", bold=True)
    width = max(len(g.name) for g in generators)
    for g in generators:
        click.echo(f"   {g.name.ljust(width)}  {g.description}".rstrip())
    click.echo()


@cli.command()
@click.argument("name")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def describe(ctx: click.Context, name: str, as_json: bool) -> None:
    """Show the prompts a generator asks."""
    description = _ops(ctx).describe_generator(_resolve_root(ctx), name)

    if as_json:
        click.echo(json.dumps(description.model_dump(), indent=2, default=str))
        return

    click.secho(f"\n🧩 {description.name or name}", fg="cyan", bold=True)
    if description.description:
        click.echo(f"   {description.description}")
    if not description.prompts:
        click.secho("   No prompts", fg="yellow")
    for prompt in description.prompts:
        label = prompt.name or "(unnamed)"
        click.echo(f"   • {label} [{prompt.type}]  {prompt.message or ''}".rstrip())
        if prompt.default is not None:
            click.echo(f"       default: {prompt.default}")
    click.echo()


@cli.command()
@click.argument("name")
@click.option("--answer", "-a", "answer_pairs", multiple=True, metavar="KEY=VALUE",
              help="Answer a prompt up front (repeatable).")
@click.option("--answers-json", default=None, help="Answers as a JSON object.")
@click.option("--no-input", is_flag=True, help="Never prompt; use defaults for the rest.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def run(
    ctx: click.Context,
    name: str,
    answer_pairs: tuple[str, ...],
    answers_json: str | None,
    no_input: bool,
    as_json: bool,
) -> None:
    """Run a generator, prompting for unanswered questions."""
    from plopctl.core.services.plop_ops import answers_for
    from plopctl.ui.cli.prompts import collect_answers

    preset: dict = {}
    if answers_json:
        try:
            loaded = json.loads(answers_json)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"invalid JSON: {e}", param_hint="--answers-json")
        if not isinstance(loaded, dict):
            raise click.BadParameter("expected a JSON object", param_hint="--answers-json")
        preset.update(loaded)
    preset.update(_parse_answer_pairs(answer_pairs))

    root = _resolve_root(ctx)
    ops = _ops(ctx)
    description = ops.describe_generator(root, name)
    if description.prompts:
        collected = collect_answers(description, preset, interactive=not (no_input or as_json))
        answers = answers_for(description, collected)
    else:
        answers = preset
    result = ops.run_generator(root, name, answers)

    if as_json:
        click.echo(json.dumps(result.model_dump(), indent=2))
    elif result.success:
        click.secho(f"✅ {result.message}", fg="green")
        for path in result.changed_paths:
            click.echo(f"   {path}")
    else:
        click.secho(f"❌ {result.message}", fg="red", err=True)

    if not result.success:
        sys.exit(1)


# ── Diagnostics ─────────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config(ctx: click.Context, as_json: bool) -> None:
    """Show how the project's plopfile would be run."""
    from plopctl.core.config.resolver import resolve_generator_config, watch_paths
    from plopctl.core.services.interpreter import Available
    from plopctl.core.services.runtime_strategy import select_node_flags

    root = _resolve_root(ctx)
    settings = _settings(ctx)
    ops = _ops(ctx)
    generator_config = resolve_generator_config(root)
    status = ops.interpreter_status()

    flags: list[str] = []
    if generator_config is not None and isinstance(status, Available):
        flags = select_node_flags(generator_config, status.path, root, ops.adapter)

    result = {
        "root": str(root),
        "plopfile": str(generator_config.path) if generator_config else None,
        "module_kind": generator_config.module_kind.value if generator_config else None,
        "source_dialect": generator_config.is_source_dialect if generator_config else False,
        "node": status.path if isinstance(status, Available) else None,
        "node_error": None if isinstance(status, Available) else status.reason,
        "node_flags": flags,
        "watch_paths": [str(p) for p in watch_paths(root)],
        "settings": settings.model_dump(),
    }

    if as_json:
        click.echo(json.dumps(result, indent=2))
        return

    click.secho(f"\n📋 {root}", fg="cyan", bold=True)
    if generator_config is None:
        click.secho("   No plopfile found in project", fg="yellow")
    else:
        click.echo(f"   Plopfile:  {generator_config.path}")
        click.echo(f"   Module:    {generator_config.module_kind.value}"
                   f"{' (TypeScript)' if generator_config.is_source_dialect else ''}")
    if result["node"]:
        click.echo(f"   Node:      {result['node']}")
    else:
        click.secho(f"   Node:      {result['node_error']}", fg="red")
    if flags:
        click.echo(f"   Flags:     {' '.join(flags)}")
    click.echo(f"   Timeout:   {settings.timeout_s}s")
    click.echo()


@cli.command()
@click.argument("workspace", required=False, type=click.Path(file_okay=False, path_type=Path))
@click.option("--depth", default=4, show_default=True, type=int, help="Maximum search depth.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def roots(workspace: Path | None, depth: int, as_json: bool) -> None:
    """List Plop project roots under a workspace (default: cwd)."""
    from plopctl.core.config.resolver import discover_project_roots

    found = discover_project_roots(workspace or Path.cwd(), max_depth=depth)

    if as_json:
        click.echo(json.dumps([str(p) for p in found], indent=2))
        return
    if not found:
        click.secho("No Plop projects found", fg="yellow")
        return
    for path in found:
        click.echo(f"   {path}")


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address.")
@click.option("--port", default=8000, show_default=True, type=int, help="Port.")
@click.pass_context
def web(ctx: click.Context, host: str, port: int) -> None:
    """Serve the generator API for the project."""
    from plopctl.ui.web.server import create_app

    root = _resolve_root(ctx)
    app = create_app(root, settings=_settings(ctx))

    click.secho(f"🧩 plopctl web on http://{host}:{port}  ({root})", fg="cyan")
    try:
        app.run(host=host, port=port, threaded=True, use_reloader=False)
    finally:
        app.config["PLOP_SHUTDOWN"]()


def main() -> None:
    """Console-script entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
