"""configstore CLI: inspect and edit a store-managed JSON file.

Commands:
    configstore show FILE              print the merged configuration
    configstore get FILE KEY           print one value (dotted path)
    configstore set FILE KEY VALUE     VALUE is parsed as JSON, else taken as a string
    configstore unset FILE KEY         remove a key
    configstore watch FILE             print the configuration on every external change
"""

from __future__ import annotations

import dataclasses
import json
import logging
import time
from typing import Any

import click

from configstore.config import StoreSettings, load_settings
from configstore.models import ConfigEvent
from configstore.paths import InvalidPathError
from configstore.store import ConfigStore

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def _parse_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


class _OneShot:
    """A non-watching store that collects error events for reporting."""

    def __init__(self, settings: StoreSettings) -> None:
        self.store = ConfigStore(dataclasses.replace(settings, watch=False))
        self.errors: list[ConfigEvent] = []
        self.store.on_error(self.errors.append)

    def load(self, file: str, *, create: bool = True) -> None:
        self.store.load(file, create=create)
        self.check()

    def check(self) -> None:
        if self.errors:
            messages = "; ".join(str(ev.error) for ev in self.errors)
            raise click.ClickException(messages)


def _settings(ctx: click.Context) -> StoreSettings:
    settings: StoreSettings = ctx.obj["settings"]
    return settings


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="configstore")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.option(
    "--settings",
    "settings_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="configstore.toml to use (default: search upward from cwd)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, settings_path: str | None) -> None:
    """configstore: JSON configuration file with defaults and live reload."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(name)s %(message)s",
    )
    try:
        settings = load_settings(settings_path)
    except (OSError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


# ---------------------------------------------------------------------------
# Read commands
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("file", type=click.Path(dir_okay=False))
@click.pass_context
def show(ctx: click.Context, file: str) -> None:
    """Print the merged configuration."""
    one = _OneShot(_settings(ctx))
    one.load(file, create=False)
    click.echo(_dump(one.store.get()))


@cli.command()
@click.argument("file", type=click.Path(dir_okay=False))
@click.argument("key")
@click.option("--default", "default", default=None, help="Printed (as JSON or string) when KEY is absent")
@click.pass_context
def get(ctx: click.Context, file: str, key: str, default: str | None) -> None:
    """Print the value at KEY (e.g. state.checkForUpdates)."""
    one = _OneShot(_settings(ctx))
    one.load(file, create=False)
    try:
        if not one.store.has(key) and default is None:
            raise click.ClickException(f"{key} not found")
        value = one.store.get(key, _parse_value(default) if default is not None else None)
    except InvalidPathError as exc:
        raise click.BadParameter(str(exc), param_hint="KEY") from exc
    click.echo(_dump(value))


# ---------------------------------------------------------------------------
# Write commands
# ---------------------------------------------------------------------------


@cli.command("set")
@click.argument("file", type=click.Path(dir_okay=False))
@click.argument("key")
@click.argument("value")
@click.pass_context
def set_cmd(ctx: click.Context, file: str, key: str, value: str) -> None:
    """Set KEY to VALUE and write the file."""
    one = _OneShot(_settings(ctx))
    one.load(file)
    try:
        persisted = one.store.set(key, _parse_value(value))
    except InvalidPathError as exc:
        raise click.BadParameter(str(exc), param_hint="KEY") from exc
    one.check()
    if not persisted:
        raise click.ClickException(f"{key} was not written to {file}")
    click.echo(f"{key} = {_dump(one.store.get(key))}")


@cli.command("unset")
@click.argument("file", type=click.Path(dir_okay=False))
@click.argument("key")
@click.pass_context
def unset_cmd(ctx: click.Context, file: str, key: str) -> None:
    """Remove KEY and write the file."""
    one = _OneShot(_settings(ctx))
    one.load(file)
    existed = one.store.has(key)
    try:
        persisted = one.store.unset(key)
    except InvalidPathError as exc:
        raise click.BadParameter(str(exc), param_hint="KEY") from exc
    one.check()
    if not persisted:
        raise click.ClickException(f"{file} was not written")
    click.echo(f"removed {key}" if existed else f"{key} was not set")


# ---------------------------------------------------------------------------
# watch
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("file", type=click.Path(dir_okay=False))
@click.option(
    "--backend",
    type=click.Choice(["auto", "inotify", "poll"]),
    default=None,
    help="Override the watch backend from settings",
)
@click.option("--interval", type=float, default=None, help="Poll interval in seconds (poll backend)")
@click.pass_context
def watch(ctx: click.Context, file: str, backend: str | None, interval: float | None) -> None:
    """Print the configuration each time FILE changes. Ctrl-C to stop."""
    settings = _settings(ctx)
    overrides: dict[str, Any] = {"watch": True}
    if backend:
        overrides["watch_backend"] = backend
    if interval:
        overrides["poll_interval"] = interval
    settings = dataclasses.replace(settings, **overrides)

    def _on_change(event: ConfigEvent) -> None:
        click.echo(f"--- change {time.strftime('%H:%M:%S')}")
        click.echo(_dump(event.config))

    def _on_error(event: ConfigEvent) -> None:
        click.echo(f"error: {event.error}", err=True)

    with ConfigStore(settings) as store:
        store.on_change(_on_change)
        store.on_error(_on_error)
        click.echo(_dump(store.load(file)))
        if not store.watching:
            raise click.ClickException(f"could not watch {file}")
        click.echo(f"watching {store.path} (Ctrl-C to stop)", err=True)
        try:
            while True:
                time.sleep(1.0)
        except KeyboardInterrupt:
            click.echo("stopped", err=True)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    cli(standalone_mode=True)


if __name__ == "__main__":
    main()
