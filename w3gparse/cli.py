"""w3gparse decodes Warcraft III replays into JSON.

Use [b]info[/b] to dump a single replay or [b]convert[/b] to process a whole
directory."""

import logging
import sys
from pathlib import Path
from typing import Optional
from typing_extensions import Annotated

import typer

from w3gparse import __version__
from w3gparse.config import Config, config_file
from w3gparse.logging import configure_logging

app = typer.Typer(rich_markup_mode="rich", help=sys.modules[__name__].__doc__)

logger = logging.getLogger(__name__)


def version(value: bool):
    if value:
        typer.echo(f"w3gparse v{__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version information for your w3gparse installation",
            callback=version,
        ),
    ] = False,
    debug: bool = False,
    quiet: bool = False,
):
    configure_logging(debug=debug, quiet=quiet)


def format_timestamp(ms: int) -> str:
    return f"{ms // 60000:02d}:{ms // 1000 % 60:02d}"


@app.command()
def info(replay_file: typer.FileBinaryRead):
    """Decode a replay, outputting it in JSON format."""
    from w3gparse.replay import load_replay

    config = Config.load()
    replay = load_replay(replay_file, **config.decode_options())
    typer.echo(replay.to_json(indent=config.json_indent))


@app.command()
def chat(replay_file: typer.FileBinaryRead):
    """Print the chat transcript of a replay."""
    from w3gparse.replay import load_replay

    replay = load_replay(replay_file, **Config.load().decode_options())
    for message in replay.chat:
        player = replay.players.get(message.sender_player_id)
        name = player.battle_tag if player else f"#{message.sender_player_id}"
        typer.echo(f"[{format_timestamp(message.timestamp)}] {name}: {message.message}")


@app.command(rich_help_panel="Tools for nerds")
def stats(replay_file: typer.FileBinaryRead):
    """Count record tags and action opcodes in a replay."""
    from w3gparse.diagnostics import CountingDiagnostics
    from w3gparse.replay import load_replay

    diagnostics = CountingDiagnostics()
    load_replay(replay_file, diagnostics=diagnostics, **Config.load().decode_options())
    typer.echo("Records:")
    for tag, count in sorted(diagnostics.records.items()):
        typer.echo(f"  {tag:#04x}: {count}")
    typer.echo("Actions:")
    for opcode, count in sorted(diagnostics.actions.items()):
        typer.echo(f"  {opcode:#04x}: {count}")
    for warning in diagnostics.warnings:
        typer.echo(f"Warning: {warning}")


@app.command(rich_help_panel="Tools for nerds")
def header(replay_file: typer.FileBinaryRead):
    """Print the container and lobby header fields of a replay."""
    from w3gparse.container import read_container
    from w3gparse.cursor import ByteCursor
    from w3gparse.header import parse_header

    container = read_container(replay_file.read())
    typer.echo(f"Version: {container.version}")
    typer.echo(f"Header length: {container.header_length}")
    typer.echo(f"Blocks: {container.block_count} ({len(container.data)} bytes)")
    lobby = parse_header(ByteCursor(container.data))
    typer.echo(f"Game: {lobby.game_name}")
    typer.echo(f"Map: {lobby.map_name}")
    typer.echo(f"Created by: {lobby.creator_name}")
    typer.echo(f"Recorded by: {lobby.player_name} (host: {lobby.is_host})")
    typer.echo(f"Player slots: {lobby.player_slot_count}")
    typer.echo(f"Game type: {lobby.game_type:#04x} (private: {lobby.is_private_custom_game})")
    typer.echo(f"Random seed: {lobby.random_seed}")
    typer.echo(f"Selection mode: {lobby.selection_mode:#04x}")
    typer.echo(f"Start spots: {lobby.start_spot_count}")


@app.command()
def convert(
    replay_dir: Annotated[
        Optional[Path],
        typer.Argument(file_okay=False, dir_okay=True, exists=True, readable=True),
    ] = None,
    output_dir: Annotated[Optional[Path], typer.Argument(file_okay=False)] = None,
    overwrite: bool = False,
):
    """Convert every replay below a directory to JSON.

    Replays that fail to decode are logged and skipped."""
    from w3gparse.replay import load_replay

    config = Config.load()
    replay_dir = replay_dir or config.replay_dir
    if replay_dir is None:
        typer.echo("No replay directory given and none set in the config file.")
        raise typer.Exit(1)
    output_dir = output_dir or config.output_dir

    converted = failed = 0
    for path in sorted(replay_dir.glob("**/*.w3g")):
        if output_dir is not None:
            target = output_dir / path.relative_to(replay_dir).with_suffix(".json")
        else:
            target = path.with_suffix(".json")
        if target.exists() and not overwrite:
            logger.debug(f"Skipping {path}, {target} already exists")
            continue
        try:
            replay = load_replay(path, **config.decode_options())
        except Exception:
            logger.exception(f"Unexpected error parsing {path}")
            failed += 1
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(replay.to_json(indent=config.json_indent), encoding="utf-8")
        converted += 1
    logger.info(f"Converted {converted} replays ({failed} failed).")


@app.command(rich_help_panel="Tools for nerds")
def config_path():
    """Print the real path to the w3gparse configuration file."""
    if not config_file.exists():
        Config().save()
    typer.echo(config_file.resolve())
