"""Custom widgets for the review TUI: StatusBar, CardDisplay, CardList, ActionBar."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container
from textual.widgets import OptionList, Static

from flashreview.projection import SessionProjection, SideListEntry

EMPTY_TEXT = "No flashcards found. Press [C] to create your first flashcard."


class StatusBar(Static):
    """Top bar showing the current position."""

    def update_status(self, projection: SessionProjection) -> None:
        """Refresh the position text."""
        if projection.is_empty:
            self.update(" No flashcards")
            return
        side = "Answer" if projection.answer_revealed else "Question"
        self.update(f" {projection.position_label} | Showing: {side}")


class CardDisplay(Container):
    """Central area displaying the current card face."""

    DEFAULT_CSS = """
    CardDisplay {
        height: 1fr;
        padding: 1 2;
    }
    #card-content {
        width: 1fr;
    }
    """

    def compose(self) -> ComposeResult:
        yield Static("", id="card-content")

    def render_card_text(self, projection: SessionProjection) -> str:
        """Build the display text for the current card (pure function)."""
        if projection.display_text is None:
            return EMPTY_TEXT

        label = "Answer" if projection.answer_revealed else "Question"
        lines = [
            f"{label}:",
            "",
            projection.display_text,
            "─" * 60,
        ]
        if projection.peek_question is not None:
            lines.append(f"Up next: {projection.peek_question}")
        return "\n".join(lines)

    def update_card(self, projection: SessionProjection) -> None:
        """Update the display from a projection."""
        content = self.query_one("#card-content", Static)
        content.update(self.render_card_text(projection))


def format_entry(entry: SideListEntry, preview_chars: int) -> str:
    """One side-list row: marker, question and a truncated answer."""
    marker = "▶" if entry.is_current else " "
    return f"{marker} {entry.question} — {entry.answer_preview(preview_chars)}"


class CardList(OptionList):
    """Side panel listing every card in the session."""

    DEFAULT_CSS = """
    CardList {
        dock: right;
        width: 40%;
        height: 1fr;
    }
    """

    def update_entries(
        self, projection: SessionProjection, *, preview_chars: int
    ) -> None:
        """Rebuild rows and highlight the current card."""
        self.clear_options()
        self.add_options(
            [format_entry(e, preview_chars) for e in projection.side_list]
        )
        for idx, entry in enumerate(projection.side_list):
            if entry.is_current:
                self.highlighted = idx
                break


class ActionBar(Static):
    """Bottom bar showing key bindings and delete availability."""

    def update_actions(self, projection: SessionProjection) -> None:
        """Refresh the action bar text."""
        if projection.is_empty:
            self.update(" [C]reate  [R]efresh  [Q]uit")
            return
        delete_label = "Deleting…" if projection.deleting_id else "[D]elete"
        self.update(
            " [N]ext  [P]rev  [F]lip  [L]ist"
            f"  {delete_label}  [C]reate  [R]efresh  [Q]uit"
        )
