"""Commands that talk to a live view over its control socket."""
from pathlib import Path

import click

from ..config import get_config
from ..ipc import send_command
from ..models.message import Ping, Refresh, SetCwd
from ..tmux import Tmux
from ..utils import get_socket_path, get_state_dir


def _socket_for(view_id):
    """Socket of the view ``view_id``, defaulting to this pane's view."""
    config = get_config()
    if not view_id:
        tmux = Tmux(timeout=config.pane.tmux_timeout)
        view_id = tmux.current_pane_id() if tmux.is_available else None
        if not view_id:
            click.echo("No view id given and not inside tmux", err=True)
            raise click.Abort()
    return get_socket_path(view_id, get_state_dir(base=config.pane.state_dir or None))


def _send(view_id, msg):
    socket_path = _socket_for(view_id)
    reply = send_command(socket_path, msg, timeout=get_config().control.reply_timeout)
    if reply is None:
        click.echo(f"No response from view at {socket_path}", err=True)
        raise click.Abort()
    return reply


@click.command("refresh")
@click.argument('view_id', required=False)
def refresh(view_id):
    """Rebuild the tree of a live view."""
    _send(view_id, Refresh())


@click.command("ping")
@click.argument('view_id', required=False)
def ping(view_id):
    """Check that a live view is answering."""
    reply = _send(view_id, Ping())
    click.echo(reply.type)


@click.command("cd")
@click.argument('view_id', required=False)
@click.option('--cwd', required=True, type=click.Path(exists=True, file_okay=False, path_type=Path),
              help='New root directory')
def cd(view_id, cwd):
    """Point a live view at another directory."""
    _send(view_id, SetCwd(cwd=str(cwd.resolve())))
