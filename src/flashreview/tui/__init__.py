"""Interactive flashcard review TUI for flashreview.

Public API: launch_review() — open a review session for the configured user.
"""

from __future__ import annotations

from pathlib import Path

from flashreview.config import AppConfig
from flashreview.controller import ReviewSessionController
from flashreview.session import StaticAuthService, open_session
from flashreview.store import JsonFileFlashcardStore
from flashreview.tui.app import ReviewApp


def launch_review(config: AppConfig) -> None:
    """Launch the interactive review TUI against the configured store.

    Raises:
        Unauthenticated: If no user is configured.
        StoreError: If the store file cannot be read.
    """
    session = open_session(StaticAuthService.from_config(config))
    store = JsonFileFlashcardStore(Path(config.store_path).expanduser())
    controller = ReviewSessionController(session, store)
    app = ReviewApp(controller, preview_chars=config.list_preview_chars)
    try:
        app.run()
    finally:
        session.close()
