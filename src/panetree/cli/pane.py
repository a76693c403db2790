"""Pane lifecycle commands."""
import os
from pathlib import Path

import click

from ..exceptions import MultiplexerNotFound
from ..lifecycle import PaneLifecycle

cwd_option = click.option('--cwd', type=click.Path(file_okay=False, path_type=Path), default=None,
                          help='Directory to show (default: current directory)')


def _resolve_cwd(cwd):
    return (cwd or Path(os.getcwd())).resolve()


@click.command("show")
@cwd_option
@click.option('--socket', 'socket_path', type=click.Path(path_type=Path), default=None,
              help='Control socket to serve')
@click.option('--pane-id', default=None, help='tmux pane this view runs in')
def show(cwd, socket_path, pane_id):
    """Run the live tree view in this terminal."""
    from ..tui.app import run_tui

    run_tui(_resolve_cwd(cwd), socket_path=socket_path, pane_id=pane_id)


@click.command("toggle")
@cwd_option
def toggle(cwd):
    """Open the tree pane beside this pane, or close it if open."""
    try:
        PaneLifecycle().toggle(_resolve_cwd(cwd))
    except MultiplexerNotFound as e:
        click.echo(e.detail, err=True)
        raise click.Abort()


@click.command("spawn")
@cwd_option
def spawn(cwd):
    """Show the tree pane at a directory, reusing an open pane."""
    try:
        pane_id = PaneLifecycle().spawn(_resolve_cwd(cwd))
    except MultiplexerNotFound as e:
        click.echo(e.detail, err=True)
        raise click.Abort()

    if pane_id is None:
        click.echo("Failed to show the tree pane", err=True)
        raise click.Abort()


@click.command("close")
def close():
    """Close the tree pane of this pane."""
    try:
        PaneLifecycle().close()
    except MultiplexerNotFound as e:
        click.echo(e.detail, err=True)
        raise click.Abort()
