"""RelayChat TUI Application - single-screen streaming chat client."""

from __future__ import annotations

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer

from ..chat.llm_provider import ProviderName
from ..client import ChatClient
from .widgets.chat_panel import ChatPanel


class RelayChatApp(App):
    """Terminal chat against a RelayChat server."""

    TITLE = "RelayChat"

    BINDINGS = [
        Binding("ctrl+q", "quit_app", "Quit", show=True),
    ]

    def __init__(self, client: ChatClient, provider: ProviderName = ProviderName.OPENAI) -> None:
        super().__init__()
        self._client = client
        self._provider = provider

    def compose(self) -> ComposeResult:
        yield ChatPanel(self._client, self._provider, id="chat-panel")
        yield Footer()

    @property
    def chat_panel(self) -> ChatPanel:
        return self.query_one("#chat-panel", ChatPanel)

    async def action_quit_app(self) -> None:
        await self._client.aclose()
        self.exit()
