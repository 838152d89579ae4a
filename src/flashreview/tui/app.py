"""ReviewApp and its modal screens for the interactive flashcard TUI."""

from __future__ import annotations

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, OptionList, Static

from flashreview.controller import ReviewSessionController
from flashreview.deletion import DeletionResult
from flashreview.projection import SessionProjection, SideListEntry
from flashreview.schemas import DeleteOutcome, Direction
from flashreview.store import CardValidationError, StoreError
from flashreview.tui.widgets import ActionBar, CardDisplay, CardList, StatusBar

# Outcomes shown to the user; DENIED_BUSY is deliberately silent
_OUTCOME_SEVERITY = {
    DeleteOutcome.COMPLETED: "information",
    DeleteOutcome.REJECTED_GONE: "information",
    DeleteOutcome.REJECTED_NOT_OWNER: "warning",
    DeleteOutcome.REJECTED_DELETE_FAILED: "error",
}


class ConfirmDeleteScreen(ModalScreen[bool]):
    """Asks the user to confirm a delete before it is requested."""

    DEFAULT_CSS = """
    ConfirmDeleteScreen {
        align: center middle;
    }
    #confirm-dialog {
        width: 70;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $error;
    }
    """

    def __init__(self, question: str) -> None:
        self._question = question
        super().__init__()

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-dialog"):
            yield Static("Delete Flashcard", classes="title")
            yield Static(
                "Are you sure you want to delete this flashcard? "
                "This action cannot be undone."
            )
            yield Static(f"“{self._question}”")
            yield Button("Delete", id="confirm-delete", variant="error")
            yield Button("Cancel", id="confirm-cancel")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm-delete")


class CreateCardScreen(ModalScreen[tuple[str, str] | None]):
    """Modal screen for entering a new card's question and answer."""

    DEFAULT_CSS = """
    CreateCardScreen {
        align: center middle;
    }
    #create-dialog {
        width: 80;
        height: auto;
        max-height: 80%;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }
    #create-question, #create-answer {
        margin-bottom: 1;
    }
    """

    def compose(self) -> ComposeResult:
        with Vertical(id="create-dialog"):
            yield Static("Create Flashcard", classes="title")
            yield Static("Question:")
            yield Input(placeholder="Enter your question", id="create-question")
            yield Static("Answer:")
            yield Input(placeholder="Enter the answer", id="create-answer")
            yield Button("Save Flashcard", id="create-save", variant="primary")
            yield Button("Cancel", id="create-cancel")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle save/cancel button clicks."""
        if event.button.id == "create-save":
            question = self.query_one("#create-question", Input).value
            answer = self.query_one("#create-answer", Input).value
            self.dismiss((question, answer))
        else:
            self.dismiss(None)


class ReviewApp(App[None]):
    """Main TUI application for reviewing a user's flashcards."""

    TITLE = "flashreview"

    DEFAULT_CSS = """
    Screen {
        layout: vertical;
    }
    StatusBar {
        dock: top;
        height: 1;
        background: $accent;
        color: $text;
        padding: 0 1;
    }
    ActionBar {
        dock: bottom;
        height: 1;
        background: $accent;
        color: $text;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("n", "next_card", "Next"),
        Binding("p", "prev_card", "Previous"),
        Binding("f", "flip_card", "Flip"),
        Binding("space", "flip_card", "Flip", show=False),
        Binding("l", "toggle_list", "List"),
        Binding("d", "delete_card", "Delete"),
        Binding("c", "create_card", "Create"),
        Binding("r", "refresh_cards", "Refresh"),
        Binding("q", "quit_app", "Quit"),
    ]

    def __init__(
        self,
        controller: ReviewSessionController,
        *,
        preview_chars: int = 60,
    ) -> None:
        self.controller = controller
        self.preview_chars = preview_chars
        self.last_delete: DeletionResult | None = None
        controller.on_delete_event = self._on_delete_event
        super().__init__()

    def compose(self) -> ComposeResult:
        yield StatusBar("")
        yield CardList()
        yield CardDisplay()
        yield ActionBar("")

    async def on_mount(self) -> None:
        """Load the session's cards, then draw."""
        try:
            await self.controller.start()
        except StoreError as e:
            self.notify(f"Failed to fetch flashcards: {e}", severity="error")
        self._refresh_ui()

    # ── Actions ───────────────────────────────────────────

    def action_next_card(self) -> None:
        """Navigate to the next card."""
        self.controller.on_navigate(Direction.NEXT)
        self._refresh_ui()

    def action_prev_card(self) -> None:
        """Navigate to the previous card."""
        self.controller.on_navigate(Direction.PREVIOUS)
        self._refresh_ui()

    def action_flip_card(self) -> None:
        """Show the other side of the current card."""
        self.controller.on_toggle_answer()
        self._refresh_ui()

    def action_toggle_list(self) -> None:
        """Open or close the side list."""
        self.controller.toggle_side_list()
        self._refresh_ui()
        card_list = self.query_one(CardList)
        if card_list.display:
            card_list.focus()

    def action_delete_card(self) -> None:
        """Confirm, then delete the highlighted (list) or current card."""
        if self._has_modal():
            return
        projection = self.controller.projection()
        target = self._delete_target(projection)
        if target is None or not target.delete_enabled:
            return

        def _on_confirm(confirmed: bool | None) -> None:
            if confirmed:
                self.run_worker(self._delete(target.id))

        self.push_screen(ConfirmDeleteScreen(target.question), callback=_on_confirm)

    def action_create_card(self) -> None:
        """Open the create modal."""
        if self._has_modal():
            return
        self.push_screen(CreateCardScreen(), callback=self._on_create_complete)

    async def action_refresh_cards(self) -> None:
        """Reload every card from the store."""
        try:
            await self.controller.refresh()
        except StoreError as e:
            self.notify(f"Failed to fetch flashcards: {e}", severity="error")
        self._refresh_ui()

    def action_quit_app(self) -> None:
        """Tear down the session and exit."""
        self.controller.close()
        self.exit()

    # ── Events ────────────────────────────────────────────

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        """Jump to the card picked in the side list."""
        self.controller.select_from_list(event.option_index)
        self._refresh_ui()

    # ── Internal ──────────────────────────────────────────

    def _delete_target(self, projection: SessionProjection) -> SideListEntry | None:
        if projection.side_list_open:
            highlighted = self.query_one(CardList).highlighted
            if highlighted is not None and highlighted < len(projection.side_list):
                return projection.side_list[highlighted]
        for entry in projection.side_list:
            if entry.is_current:
                return entry
        return None

    async def _delete(self, record_id: str) -> None:
        result = await self.controller.on_request_delete(record_id)
        self.last_delete = result
        severity = _OUTCOME_SEVERITY.get(result.outcome)
        if severity is not None:
            self.notify(result.message, severity=severity)

    def _on_delete_event(self, outcome: DeleteOutcome) -> None:
        if not self.controller.closed and self.is_running:
            self._refresh_ui()

    def _on_create_complete(self, result: tuple[str, str] | None) -> None:
        if result is not None:
            question, answer = result
            self.run_worker(self._create(question, answer))

    async def _create(self, question: str, answer: str) -> None:
        try:
            await self.controller.create_card(question, answer)
        except CardValidationError as e:
            self.notify(str(e), severity="warning")
            return
        except StoreError as e:
            self.notify(f"Error saving flashcard: {e}", severity="error")
            return
        self.notify("Flashcard created successfully.")
        self._refresh_ui()

    def _has_modal(self) -> bool:
        return len(self.screen_stack) > 1

    def _refresh_ui(self) -> None:
        """Update all widgets to reflect the current projection."""
        projection = self.controller.projection()
        # Widgets live on the base screen, which may be under a modal
        base = self.screen_stack[0]

        base.query_one(StatusBar).update_status(projection)
        base.query_one(ActionBar).update_actions(projection)
        base.query_one(CardDisplay).update_card(projection)

        card_list = base.query_one(CardList)
        card_list.update_entries(projection, preview_chars=self.preview_chars)
        card_list.display = projection.side_list_open
