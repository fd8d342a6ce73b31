"""Editor-side collaborators the tag core calls into."""

from typing import Protocol


class NavigationSurface(Protocol):
    """Opens a file and selects a span; used when a reference is activated."""

    async def open_and_select(
        self, file_path: str, line: int, character: int, length: int
    ) -> None: ...


class ConfirmationPrompt(Protocol):
    """Yes/no question to the user; used only before merging tags."""

    async def confirm(self, message: str) -> bool: ...
