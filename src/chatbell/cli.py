"""CLI for chatbell.

Usage:
    chatbell run
    chatbell check
    chatbell test dingtalk "hello"
    chatbell match "你感觉到一股不可思议的力量，而『挑战赛通道』好像快消失了。"
    chatbell parse Log/chat_000123.txt
"""

import codecs
from datetime import datetime
from pathlib import Path

import click

from chatbell.chat.record import TIME_FORMAT, Channel, Record, dedupe
from chatbell.config import DEFAULT_CONFIG_PATH, Config, ConfigError
from chatbell.daemon import ChatbellDaemon
from chatbell.dispatcher import Dispatcher
from chatbell.logging import configure_logging, get_logger
from chatbell.metrics import start_metrics_server
from chatbell.notifiers import build_notifiers
from chatbell.tailer import DEFAULT_ENCODING, WatchSetupError
from chatbell.trigger import build_triggers

log = get_logger(__name__)


def load_config(ctx: click.Context) -> Config:
    """Load the config named by --config or exit with error."""
    path: Path = ctx.obj["config_path"]
    try:
        return Config.from_file(path)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    help="Config file path",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: Path, verbose: bool) -> None:
    """Alert on game chat log lines."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose
    configure_logging("DEBUG" if verbose else "INFO")


@main.command("run")
@click.option("--metrics-port", type=int, default=None, help="Serve Prometheus metrics on port")
@click.pass_context
def run(ctx: click.Context, metrics_port: int | None) -> None:
    """Tail the chat log and send alerts until interrupted."""
    config = load_config(ctx)
    log.info("Config loaded", path=str(ctx.obj["config_path"]))

    try:
        daemon = ChatbellDaemon(config)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    if metrics_port:
        start_metrics_server(port=metrics_port)

    try:
        daemon.run()
    except WatchSetupError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)


@main.command("check")
@click.pass_context
def check(ctx: click.Context) -> None:
    """Validate the config file and summarize it."""
    config = load_config(ctx)
    try:
        triggers = build_triggers(config.trigger)
        notifiers = build_notifiers(config.notifier)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    click.echo(f"Game root: {config.game.path}")
    click.echo(f"Log dir:   {config.log_dir}")
    click.echo(f"Notifiers: {', '.join(sorted(notifiers))}")
    click.echo(f"Triggers:  {len(triggers)}")
    for trigger in triggers:
        channel = trigger.channel.value if trigger.channel else "any"
        click.echo(
            f"  - /{trigger.pattern.pattern}/ [{channel}] -> {', '.join(trigger.notifiers)}"
        )


@main.command("test")
@click.argument("notifier")
@click.argument("message")
@click.pass_context
def test_notifier(ctx: click.Context, notifier: str, message: str) -> None:
    """Send MESSAGE through a single configured NOTIFIER."""
    config = load_config(ctx)
    try:
        notifiers = build_notifiers(config.notifier)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    dispatcher = Dispatcher(notifiers, max_workers=1)
    try:
        ok = dispatcher.dispatch(message, [notifier])[0].result()
    finally:
        dispatcher.shutdown()

    if ok:
        click.echo("Message sent!")
    else:
        click.echo("Failed to send message")
        raise SystemExit(1)


@main.command("match")
@click.argument("text")
@click.option("--time", "time_str", default=None, help="Record time as HH:MM:SS (default: now)")
@click.pass_context
def match(ctx: click.Context, text: str, time_str: str | None) -> None:
    """Show the alerts TEXT would produce as an ordinary chat line."""
    config = load_config(ctx)
    if time_str is None:
        record_time = datetime.now().time().replace(microsecond=0)
    else:
        try:
            record_time = datetime.strptime(time_str, TIME_FORMAT).time()
        except ValueError:
            raise click.BadParameter(f"expected HH:MM:SS, got {time_str!r}", param_hint="--time")

    record = Record(time=record_time, channel=Channel.COMMON, message=text.strip())
    fired = 0
    for trigger in build_triggers(config.trigger):
        message = trigger.evaluate(record)
        if message is not None:
            fired += 1
            click.echo(f"/{trigger.pattern.pattern}/ -> {', '.join(trigger.notifiers)}")
            click.echo(f"  {message}")

    if not fired:
        click.echo("No trigger matched")


@main.command("parse")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--encoding", default=DEFAULT_ENCODING, show_default=True, help="Log file encoding")
def parse(path: Path, encoding: str) -> None:
    """Print the unique chat records in an existing log file."""
    try:
        codecs.lookup(encoding)
    except LookupError:
        click.echo(f"Error: unknown encoding: {encoding}", err=True)
        raise SystemExit(1)

    with open(path, encoding=encoding, errors="replace") as f:
        records = dedupe(line.rstrip("\r\n") for line in f)

    for record in records:
        click.echo(str(record))
    click.echo(f"{len(records)} records")


if __name__ == "__main__":
    main()
