#!/usr/bin/env python3
"""Command line interface for linecalc"""
import re
from pathlib import Path

import rich_click as click
from rich_click import RichGroup

from . import app_hooks

# Help output styling
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.MARKUP_MODE = "rich"
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.MAX_WIDTH = 100
click.rich_click.STYLE_OPTION = "#ff79c6"
click.rich_click.STYLE_SWITCH = "#50fa7b"
click.rich_click.STYLE_USAGE = "#BD93F9"
click.rich_click.STYLE_HELPTEXT = "#B3B8C0"
click.rich_click.STYLE_COMMAND = "#50fa7b"
click.rich_click.ERRORS_SUGGESTION = "Run linecalc --help for usage."


def get_version():
    """Version from the source checkout's pyproject.toml, else the installed package"""
    pyproject = Path(__file__).resolve().parents[2] / "pyproject.toml"
    if pyproject.exists():
        match = re.search(r'^version\s*=\s*["\']([^"\']+)["\']', pyproject.read_text(), re.MULTILINE)
        if match:
            return match.group(1)

    from . import __version__

    return __version__


@click.group(cls=RichGroup, context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=get_version(), prog_name="linecalc")
def main():
    """🧮 [bold color(6)]linecalc[/bold color(6)] - Natural-language calculator for plain-text notes

    \b
    [#B3B8C0]Every line of a document is evaluated on its own: arithmetic, variables,
    units, currencies, percentages and section totals.[/#B3B8C0]

    \b
    [bold yellow]🎯 Examples[/bold yellow]
    [green]   linecalc eval budget.txt          [/green] [italic][#B3B8C0]# Evaluate a document[/#B3B8C0][/italic]
    [green]   echo "6 times 7" | linecalc eval -[/green] [italic][#B3B8C0]# Evaluate stdin[/#B3B8C0][/italic]
    [green]   linecalc repl                     [/green] [italic][#B3B8C0]# Interactive session[/#B3B8C0][/italic]
    [green]   linecalc units currency           [/green] [italic][#B3B8C0]# List known currencies[/#B3B8C0][/italic]
    [green]   linecalc config set css.ppi 72    [/green] [italic][#B3B8C0]# Change a setting[/#B3B8C0][/italic]
    """
    pass


@main.command(name="eval")
@click.pass_context
@click.argument("FILE", type=click.File("r", encoding="utf-8"))
@click.option("--json", is_flag=True, help="📋 Output results as JSON")
@click.option("--offline", is_flag=True, help="📴 Use static rates, never touch the network")
@click.option("--wait", is_flag=True, help="⏳ Re-evaluate until pending rates arrive")
@click.option("--debug", is_flag=True, help="🐞 Enable detailed debug logging")
@click.option("--config", type=str, help="⚙️ Path to custom config file")
def eval_(ctx, file, json, offline, wait, debug, config):
    """📝 Evaluate a document (FILE, or - for stdin)"""
    result = app_hooks.on_eval(
        command_name="eval",
        text=file.read(),
        json=json,
        offline=offline,
        wait=wait,
        debug=debug,
        config=config,
    )
    ctx.exit(result)


@main.command()
@click.pass_context
@click.option("--offline", is_flag=True, help="📴 Use static rates, never touch the network")
@click.option("--debug", is_flag=True, help="🐞 Enable detailed debug logging")
@click.option("--config", type=str, help="⚙️ Path to custom config file")
def repl(ctx, offline, debug, config):
    """💬 Interactive session, one line at a time"""
    result = app_hooks.on_repl(command_name="repl", offline=offline, debug=debug, config=config)
    ctx.exit(result)


@main.command()
@click.pass_context
@click.argument("CATEGORY", required=False)
@click.option("--json", is_flag=True, help="📋 Output units as JSON")
def units(ctx, category, json):
    """📏 List known units, optionally for one category"""
    result = app_hooks.on_units(command_name="units", category=category, json=json)
    ctx.exit(result)


@main.group()
@click.pass_context
@click.option("--config", "config_path", type=str, help="⚙️ Path to custom config file")
def config(ctx, config_path):
    """⚙️ Show or change settings in config.jsonc"""
    ctx.obj = {"config": config_path}


@config.command(name="show")
@click.pass_context
@click.option("--json", is_flag=True, help="📋 Output configuration as JSON")
def config_show(ctx, json):
    """👁️ Display current configuration"""
    result = app_hooks.on_config_show(command_name="show", json=json, config=ctx.obj["config"])
    ctx.exit(result)


@config.command(name="get")
@click.pass_context
@click.argument("KEY")
def config_get(ctx, key):
    """🔍 Retrieve a configuration value (dot notation, e.g. css.ppi)"""
    result = app_hooks.on_config_get(command_name="get", key=key, config=ctx.obj["config"])
    ctx.exit(result)


@config.command(name="set")
@click.pass_context
@click.argument("KEY")
@click.argument("VALUE")
def config_set(ctx, key, value):
    """✏️ Set a configuration value; JSON literals like 72 or false keep their type"""
    result = app_hooks.on_config_set(command_name="set", key=key, value=value, config=ctx.obj["config"])
    ctx.exit(result)


def cli_entry():
    """Entry point for the installed console script."""
    main()


if __name__ == "__main__":
    cli_entry()
