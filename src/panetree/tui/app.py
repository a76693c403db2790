"""Live tree view running inside the tmux side pane."""
import asyncio
import logging
import os
import signal
from pathlib import Path
from typing import Optional

from rich.text import Text
from textual.app import App, ComposeResult, SuspendNotSupported
from textual.binding import Binding
from textual.widget import Widget

from ..config import Config, get_config
from ..ipc import ControlServer
from ..models.message import Close, ControllerMessage, Ping, Pong, Ready, Refresh, SetCwd
from ..models.node import GitStatus
from ..opener import open_command, run_in_terminal
from ..tmux import Tmux
from ..tree.flatten import horizontal_offset, scroll_start
from ..view import ViewMode, ViewState
from ..watch import WatchDebouncer

logger = logging.getLogger(__name__)

STATUS_STYLES = {
    GitStatus.MODIFIED: "yellow",
    GitStatus.ADDED: "green",
    GitStatus.DELETED: "red",
    GitStatus.UNTRACKED: "bright_black",
    GitStatus.RENAMED: "cyan",
}


def setup_client_logging(config: Optional[Config] = None):
    """Set up logging for the view, which must never write to its own terminal."""
    try:
        config = config or get_config()
        log_level = config.logging.level.upper()
        log_file = config.logging.log_file

        handlers = []
        if log_file:
            log_path = Path(log_file).expanduser()
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_path))
        else:
            handlers.append(logging.NullHandler())

        logging.basicConfig(
            level=getattr(logging, log_level, logging.INFO),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=handlers,
            force=True
        )

        logger.info("Client logging initialized")

    except Exception:
        logging.basicConfig(handlers=[logging.NullHandler()], force=True)


class TitleBar(Widget):
    """Root directory name, mode and focus marker."""

    DEFAULT_CSS = """
    TitleBar {
        height: 2;
    }
    """

    def render(self) -> Text:
        app = self.app
        state = app.view_state
        text = Text()
        text.append(f"📁 {state.cwd.name or str(state.cwd)}", style="bold green" if app.focused_pane else "bold bright_black")
        text.append(f" [{'All' if state.mode is ViewMode.ALL else 'Git'}]", style="dim")
        if app.focused_pane:
            text.append(" ●", style="green")
        return text


class TreePane(Widget):
    """Visible window of the flattened tree around the cursor."""

    def render(self) -> Text:
        state = self.app.view_state
        flat = state.flat
        height = self.size.height
        width = self.size.width

        lines = []
        if not flat:
            if state.mode is ViewMode.GIT:
                lines.append(Text("  No uncommitted changes", style="dim italic"))
            return Text("\n").join(lines)

        visible = max(1, height - 2)
        start = scroll_start(state.cursor, len(flat), visible)
        hidden_below = len(flat) - (start + visible)

        selected = state.selected()
        offset = horizontal_offset(selected, width) if selected else 0

        if start > 0:
            lines.append(Text(f"  ↑ {start} more", style="dim"))
        for entry in flat[start:start + visible]:
            lines.append(self._render_row(entry, entry.index == state.cursor, offset))
        if hidden_below > 0:
            lines.append(Text(f"  ↓ {hidden_below} more", style="dim"))
        return Text("\n").join(lines)

    @staticmethod
    def _render_row(entry, selected: bool, offset: int) -> Text:
        node = entry.node
        guide = (entry.prefix + entry.connector)[offset:]
        if offset > 0 and guide:
            guide = "…" + guide[1:]

        row = Text(guide, style="dim")
        background = " on blue" if selected else ""
        if node.is_dir:
            row.append(f"{node.name}/", style=("bold white" if selected else "bold blue") + background)
        else:
            color = STATUS_STYLES.get(node.git_status) if node.git_status else ("white" if selected else "")
            row.append(node.name, style=(color or "") + background)
        if node.git_status:
            row.append(f" {node.git_status.value}", style=STATUS_STYLES[node.git_status])
        return row


class KeyHints(Widget):
    """Key help along the bottom edge."""

    DEFAULT_CSS = """
    KeyHints {
        height: 1;
        dock: bottom;
    }
    """

    def render(self) -> Text:
        return Text("⏎:open g:git ↑↓←→:nav r:refresh q:close", style="dim")


class PaneTreeApp(App):
    """The live view: tree state, file watcher and control server on one loop."""

    CSS = """
    Screen {
        padding: 0 1;
    }
    TreePane {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Close"),
        Binding("ctrl+c", "quit", "Close", show=False),
        Binding("r", "refresh_tree", "Refresh"),
        Binding("g", "toggle_mode", "Git"),
        Binding("up,k", "cursor_up", "Up", show=False),
        Binding("down,j", "cursor_down", "Down", show=False),
        Binding("left,h", "cursor_parent", "Parent", show=False),
        Binding("right,l", "cursor_child", "Child", show=False),
        Binding("enter", "open_selected", "Open"),
    ]

    def __init__(self, cwd: Path, socket_path: Optional[Path] = None,
                 pane_id: Optional[str] = None, config: Optional[Config] = None, **kwargs):
        super().__init__(**kwargs)
        self.settings = config or get_config()
        self.view_state = ViewState(cwd=Path(cwd).resolve(), config=self.settings)
        self.socket_path = socket_path
        self.pane_id = pane_id or os.environ.get("TMUX_PANE", "")
        self.focused_pane = False
        self.tmux = Tmux(timeout=1.0)
        self.server: Optional[ControlServer] = None
        self.debouncer: Optional[WatchDebouncer] = None

    def compose(self) -> ComposeResult:
        yield TitleBar()
        yield TreePane()
        yield KeyHints()

    async def on_mount(self) -> None:
        # First build is synchronous, outside the debounce path
        self.view_state.rebuild(reset_cursor=True)
        self._start_watching()

        if self.pane_id:
            self.check_focus()
            self.set_interval(self.settings.view.focus_poll_ms / 1000, self.check_focus)

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGHUP):
            try:
                loop.add_signal_handler(sig, self.exit)
            except (NotImplementedError, RuntimeError):
                pass

        if self.socket_path:
            server = ControlServer(self.socket_path, self.handle_message)
            try:
                await server.start()
            except OSError as e:
                logger.error(f"Control server unavailable at {self.socket_path}: {e}")
            else:
                self.server = server
                server.broadcast(Ready())

    def on_unmount(self) -> None:
        self.shutdown()

    def shutdown(self) -> None:
        """Release the watcher and the socket. Safe to call more than once."""
        if self.debouncer is not None:
            self.debouncer.stop()
            self.debouncer = None
        if self.server is not None:
            self.server.close()
            self.server = None

    def _start_watching(self) -> None:
        if self.debouncer is not None:
            self.debouncer.stop()
        self.debouncer = WatchDebouncer(
            self.view_state.cwd,
            self.refresh_tree,
            delay=self.settings.watch.debounce_ms / 1000,
            poll_interval=self.settings.watch.poll_interval_ms / 1000,
        )
        self.debouncer.start()

    def redraw(self) -> None:
        for widget in self.query("TitleBar, TreePane"):
            widget.refresh()

    def refresh_tree(self, reset_cursor: bool = False) -> None:
        self.view_state.rebuild(reset_cursor=reset_cursor)
        self.redraw()

    def change_cwd(self, cwd: Path) -> bool:
        try:
            cwd = Path(cwd).expanduser().resolve()
            is_dir = cwd.is_dir()
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring cwd change to {str(cwd)!r}: {e}")
            return False
        if not is_dir:
            logger.warning(f"Ignoring cwd change to non-directory {cwd}")
            return False
        self.view_state.set_cwd(cwd)
        self._start_watching()
        self.redraw()
        return True

    def handle_message(self, msg: ControllerMessage) -> None:
        """Apply one control message; runs on the event loop."""
        if isinstance(msg, Close):
            self.exit()
        elif isinstance(msg, Ping):
            self._reply(Pong())
        elif isinstance(msg, Refresh):
            self.refresh_tree()
            self._reply(Ready())
        elif isinstance(msg, SetCwd):
            if self.change_cwd(Path(msg.cwd)):
                self._reply(Ready())

    def _reply(self, msg) -> None:
        if self.server is not None:
            self.server.broadcast(msg)

    def check_focus(self) -> None:
        for pane in self.tmux.list_panes():
            if pane.id == self.pane_id:
                if pane.active != self.focused_pane:
                    self.focused_pane = pane.active
                    self.redraw()
                break

    def on_resize(self) -> None:
        self.redraw()

    def action_refresh_tree(self) -> None:
        self.refresh_tree()

    def action_toggle_mode(self) -> None:
        self.view_state.toggle_mode()
        self.redraw()

    def action_cursor_up(self) -> None:
        self.view_state.move(-1)
        self.redraw()

    def action_cursor_down(self) -> None:
        self.view_state.move(1)
        self.redraw()

    def action_cursor_parent(self) -> None:
        self.view_state.to_parent()
        self.redraw()

    def action_cursor_child(self) -> None:
        self.view_state.to_first_child()
        self.redraw()

    def action_open_selected(self) -> None:
        """Open the selected file, blocking everything else until it closes."""
        entry = self.view_state.selected()
        if entry is None or entry.node.is_dir:
            return

        argv = open_command(
            entry.node.path,
            self.view_state.cwd,
            git_mode=self.view_state.mode is ViewMode.GIT,
            editor=self.settings.view.editor,
            pager=self.settings.view.pager,
        )
        try:
            with self.suspend():
                run_in_terminal(argv, self.view_state.cwd)
        except SuspendNotSupported:
            logger.warning("Terminal handoff not supported here")
            return
        self.refresh_tree()


def run_tui(cwd: Path, socket_path: Optional[Path] = None, pane_id: Optional[str] = None):
    """Run the live view until it is closed."""
    setup_client_logging()

    app = PaneTreeApp(cwd, socket_path=socket_path, pane_id=pane_id)
    try:
        app.run()
    finally:
        app.shutdown()
