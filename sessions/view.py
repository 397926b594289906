"""
Dialogue View Protocol

The conversation loop never touches widgets directly. A frontend (the rich
console client, a game engine bridge, a test double) implements this
protocol and the loop drives it.
"""

from __future__ import annotations

from typing import Protocol


class DialogueView(Protocol):
    """Surface the conversation loop renders to."""

    def show_text(self, text: str) -> None:
        """Replace the dialogue text. An empty string clears it."""
        ...

    def set_input_visible(self, visible: bool) -> None:
        ...

    def set_input_interactable(self, interactable: bool) -> None:
        ...

    def set_talking(self, talking: bool) -> None:
        """Drive the talking animation while speech audio plays."""
        ...
