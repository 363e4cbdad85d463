"""Sprint board TUI: sprints as columns, epics in rank order, keyboard drag-and-drop."""

from __future__ import annotations

from pathlib import Path

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, VerticalScroll
from textual.message import Message
from textual.widgets import Footer, Header, Static

from board_tui.view import (
    DropTarget,
    EpicRow,
    SprintColumn,
    ViewState,
    build_columns,
    ghost_text,
    row_text,
)
from sprintrank.board.controller import MoveOutcome, SprintBoardController
from sprintrank.board.transitions import DragPhase
from sprintrank.ranking.models import DropTargetKind


class TargetFocused(Message):
    """Fired when a card or sprint header gains focus, so a drag can track it."""

    def __init__(self, target: DropTarget, col_index: int) -> None:
        super().__init__()
        self.target = target
        self.col_index = col_index


class EpicCard(Static):
    can_focus = True

    def __init__(self, row: EpicRow, col_index: int, **kwargs) -> None:
        super().__init__(row_text(row), **kwargs)
        self.row = row
        self.col_index = col_index

    @property
    def drop_target(self) -> DropTarget:
        return DropTarget(self.row.epic_id, DropTargetKind.EPIC)

    def set_drag_marks(self, dragging: bool, hovered: bool) -> None:
        self.update(row_text(self.row, dragging=dragging, hovered=hovered))

    def on_focus(self) -> None:
        self.post_message(TargetFocused(self.drop_target, self.col_index))


class SprintHeader(Static):
    can_focus = True

    def __init__(self, column: SprintColumn, col_index: int, **kwargs) -> None:
        super().__init__(column.header_text, **kwargs)
        self.column = column
        self.col_index = col_index

    @property
    def drop_target(self) -> DropTarget:
        return DropTarget(self.column.sprint_id, DropTargetKind.SPRINT)

    def on_focus(self) -> None:
        self.post_message(TargetFocused(self.drop_target, self.col_index))


class SprintColumnView(VerticalScroll):
    def __init__(self, column: SprintColumn, col_index: int, **kwargs) -> None:
        super().__init__(**kwargs)
        self.column = column
        self.col_index = col_index

    def compose(self) -> ComposeResult:
        yield SprintHeader(self.column, self.col_index, classes="column-header")
        if self.column.collapsed:
            return
        if not self.column.rows:
            yield Static("[dim]drop epics here[/]", classes="empty-label")
            return
        for row in self.column.rows:
            yield EpicCard(row, self.col_index, classes="card")


class SprintBoardApp(App):
    TITLE = "Sprint Board"

    CSS = """
    #board {
        height: 1fr;
        width: 100%;
    }

    SprintColumnView {
        width: 1fr;
        height: 100%;
        border-right: solid $surface-lighten-2;
        padding: 0;
    }

    SprintColumnView.active-col {
        border-right: solid $accent;
        border-left: solid $accent;
    }

    .column-header {
        padding: 0 1;
        background: $surface-lighten-1;
        margin-bottom: 1;
        height: 2;
    }

    .empty-label {
        text-align: center;
        color: $text-muted;
    }

    .card {
        padding: 0 1;
        margin: 0;
    }

    EpicCard:focus, SprintHeader:focus {
        background: $surface-lighten-2;
    }

    #drag-status {
        height: 1;
        padding: 0 1;
        background: $warning-darken-2;
        display: none;
    }

    #drag-status.visible {
        display: block;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Refresh"),
        Binding("space", "grab", "Grab"),
        Binding("enter", "drop", "Drop"),
        Binding("escape", "cancel_drag", "Cancel"),
        Binding("c", "toggle_collapse", "Collapse"),
        Binding("u", "toggle_unscheduled", "Unscheduled"),
        Binding("left", "col_left", "< Col", show=True),
        Binding("right", "col_right", "Col >", show=True),
        Binding("up", "card_up", "", show=False),
        Binding("down", "card_down", "", show=False),
        Binding("question_mark", "help_screen", "?=Help"),
    ]

    def __init__(self, store_path: Path | str | None = None, store=None) -> None:
        super().__init__()
        if store is None:
            from sprintrank.adapters.yaml_file import YamlFileStore

            store = YamlFileStore(store_path or Path.cwd() / "sprintboard.yaml")
        self.controller = SprintBoardController(store)
        self.view_state = ViewState()
        self.columns: list[SprintColumn] = []
        self.active_col_index: int = 0

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("", id="drag-status")
        yield Horizontal(id="board")
        yield Footer()

    async def on_mount(self) -> None:
        await self.action_refresh()

    # -- Refresh --

    async def action_refresh(self) -> None:
        """Re-read the whole board from the store and rebuild the columns."""
        board_widget = self.query_one("#board", Horizontal)
        for child in list(board_widget.children):
            await child.remove()

        snapshot = await self.controller.load_board()
        self.columns = build_columns(snapshot, self.view_state)
        for i, column in enumerate(self.columns):
            await board_widget.mount(
                SprintColumnView(column, col_index=i, id=f"col-{i}")
            )
        if self.active_col_index >= len(self.columns):
            self.active_col_index = max(len(self.columns) - 1, 0)
        self._highlight_active_column()
        self._focus_first_in_active_col()

    # -- Column navigation --

    def _get_column_widgets(self) -> list[SprintColumnView]:
        return list(self.query(SprintColumnView))

    def _highlight_active_column(self) -> None:
        for i, col in enumerate(self._get_column_widgets()):
            col.set_class(i == self.active_col_index, "active-col")

    def _focusables_in_column(self, col_index: int) -> list[SprintHeader | EpicCard]:
        cols = self._get_column_widgets()
        if col_index < 0 or col_index >= len(cols):
            return []
        return [
            w for w in cols[col_index].walk_children()
            if isinstance(w, (SprintHeader, EpicCard))
        ]

    def _focus_first_in_active_col(self) -> None:
        items = self._focusables_in_column(self.active_col_index)
        if items:
            items[min(1, len(items) - 1)].focus()

    def action_col_left(self) -> None:
        if self.active_col_index > 0:
            self.active_col_index -= 1
            self._highlight_active_column()
            self._focus_first_in_active_col()

    def action_col_right(self) -> None:
        if self.active_col_index < len(self._get_column_widgets()) - 1:
            self.active_col_index += 1
            self._highlight_active_column()
            self._focus_first_in_active_col()

    def action_card_up(self) -> None:
        items = self._focusables_in_column(self.active_col_index)
        if not items:
            return
        try:
            idx = items.index(self.focused)
            if idx > 0:
                items[idx - 1].focus()
        except ValueError:
            items[-1].focus()

    def action_card_down(self) -> None:
        items = self._focusables_in_column(self.active_col_index)
        if not items:
            return
        try:
            idx = items.index(self.focused)
            if idx < len(items) - 1:
                items[idx + 1].focus()
        except ValueError:
            items[0].focus()

    # -- Drag and drop --

    def _update_drag_marks(self) -> None:
        drag = self.controller.drag_state
        status = self.query_one("#drag-status", Static)
        status.update(ghost_text(drag))
        status.set_class(drag is not None, "visible")
        for card in self.query(EpicCard):
            dragging = drag is not None and card.row.epic_id == drag.epic_id
            hovered = drag is not None and card.row.epic_id == drag.over_id
            card.set_drag_marks(dragging, hovered)

    @on(TargetFocused)
    def _on_target_focused(self, event: TargetFocused) -> None:
        if event.col_index != self.active_col_index:
            self.active_col_index = event.col_index
            self._highlight_active_column()
        if self.controller.phase is not DragPhase.DRAGGING:
            return
        self.controller.drag_over(event.target.target_id, event.target.kind)
        self._update_drag_marks()

    def action_grab(self) -> None:
        focused = self.focused
        if not isinstance(focused, EpicCard):
            self.notify("Select an epic to move", severity="warning")
            return
        if self.controller.phase is not DragPhase.IDLE:
            self.notify("A move is already in progress", severity="warning")
            return
        row = focused.row
        self.controller.drag_start(row.epic_id, epic_name=row.name, sprint_id=row.sprint_id)
        self._update_drag_marks()

    async def action_drop(self) -> None:
        if self.controller.phase is not DragPhase.DRAGGING:
            return
        focused = self.focused
        target = focused.drop_target if isinstance(focused, (EpicCard, SprintHeader)) else None

        self.notify("Saving...", timeout=2)
        result = await self.controller.drag_end(
            target.target_id if target else None,
            target.kind if target else DropTargetKind.EPIC,
        )
        self._update_drag_marks()

        if result.outcome is MoveOutcome.COMMITTED:
            self.notify(f"Moved to rank {result.plan.final_rank(result.epic_id)}")
        elif result.outcome is MoveOutcome.FAILED:
            self.notify(str(result.error.USER_MESSAGE), severity="error")
        elif result.outcome is MoveOutcome.NOT_FOUND:
            self.notify(f"Board is out of date: {result.error}", severity="warning")
        await self.action_refresh()

    def action_cancel_drag(self) -> None:
        if self.controller.phase is DragPhase.DRAGGING:
            self.controller.drag_cancel()
            self._update_drag_marks()
            self.notify("Move cancelled")

    # -- View state --

    async def action_toggle_collapse(self) -> None:
        if not self.columns:
            return
        column = self.columns[self.active_col_index]
        self.view_state.toggle_collapsed(column.sprint_id)
        await self.action_refresh()

    async def action_toggle_unscheduled(self) -> None:
        self.view_state.hide_unscheduled = not self.view_state.hide_unscheduled
        self.active_col_index = 0
        await self.action_refresh()
        label = "hidden" if self.view_state.hide_unscheduled else "shown"
        self.notify(f"Unscheduled sprints {label}")

    def action_help_screen(self) -> None:
        self.notify(
            "[bold]Keys:[/] space=grab  Up/Down/Left/Right=move target  enter=drop on epic or sprint header  "
            "esc=cancel  c=collapse  u=unscheduled  r=refresh  q=quit",
            timeout=6,
        )


def run_board(store_path: Path | str | None = None) -> None:
    """Entry point for the sprintrank board command."""
    app = SprintBoardApp(store_path)
    app.run()
