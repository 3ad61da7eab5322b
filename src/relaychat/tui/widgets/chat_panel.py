"""ChatPanel widget - streams replies from the chat server with markdown rendering."""

from __future__ import annotations

from textual import work
from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.widget import Widget
from textual.widgets import Input, Markdown, Static

from ...chat.errors import UnsupportedProviderError
from ...chat.llm_provider import ChatMessage, ProviderName
from ...chat.reassembler import AccumulatingMessage
from ...client import ChatClient, ChatRequestFailed
from ..commands import COMMANDS, ChatCommand, parse_command


class ChatPanel(Widget):
    """Chat panel with input, in-memory conversation and streaming replies."""

    DEFAULT_CSS = """
    ChatPanel {
        height: 100%;
        width: 100%;
        layout: vertical;
    }
    ChatPanel #chat-messages {
        height: 1fr;
        padding: 0 1;
    }
    ChatPanel .chat-user {
        color: $accent;
        margin: 1 0 0 0;
    }
    ChatPanel .chat-assistant {
        margin: 0 0 0 2;
    }
    ChatPanel .chat-error {
        color: $error;
        margin: 0 0 0 2;
    }
    ChatPanel .chat-info {
        color: $text-muted;
        content-align: center middle;
        margin: 1 0;
    }
    ChatPanel #chat-input {
        dock: bottom;
        margin: 0;
    }
    """

    def __init__(self, client: ChatClient, provider: ProviderName, **kwargs) -> None:
        super().__init__(**kwargs)
        self._client = client
        self._provider = provider
        self._model: str | None = None
        self._conversation: list[ChatMessage] = []
        self._streaming = False
        self._reply: AccumulatingMessage | None = None

    @property
    def provider(self) -> ProviderName:
        return self._provider

    @property
    def conversation(self) -> list[ChatMessage]:
        return list(self._conversation)

    @property
    def streaming(self) -> bool:
        return self._streaming

    def compose(self) -> ComposeResult:
        yield VerticalScroll(id="chat-messages")
        yield Input(placeholder="Message or /command...", id="chat-input")

    def on_mount(self) -> None:
        self._add_info(f"Chat ready ({self._provider.value})")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "chat-input":
            return

        text = event.value.strip()
        if not text:
            return

        event.input.value = ""

        cmd = parse_command(text)
        if cmd is not None:
            self._handle_command(cmd)
            return

        if self._streaming:
            return

        self._add_user_bubble(text)
        self._conversation.append(ChatMessage(role="user", content=text))
        self._stream_response()

    def _handle_command(self, cmd: ChatCommand) -> None:
        self._add_user_bubble(cmd.echo())
        if not cmd.known:
            self._add_error(f"Unknown command: /{cmd.name}. Type /help for commands.")
        elif cmd.name == "clear":
            self._clear_chat()
        elif cmd.name == "help":
            lines = ["Available commands:", ""]
            for name, description in COMMANDS.items():
                lines.append(f"  /{name} - {description}")
            self._add_info("\n".join(lines))
        elif cmd.name == "provider":
            try:
                self._provider = ProviderName.parse(cmd.args)
            except UnsupportedProviderError as e:
                self._add_error(str(e))
                return
            self._add_info(f"Provider: {self._provider.value}")
        elif cmd.name == "model":
            self._model = cmd.args or None
            self._add_info(f"Model: {self._model or 'provider default'}")

    @work(exclusive=True)
    async def _stream_response(self) -> None:
        """Stream the assistant reply in an async worker."""
        self._streaming = True
        input_widget = self.query_one("#chat-input", Input)
        input_widget.disabled = True

        reply = AccumulatingMessage()
        self._reply = reply
        widget = Markdown("...", classes="chat-assistant")
        container = self.query_one("#chat-messages", VerticalScroll)
        await container.mount(widget)
        container.scroll_end(animate=False)

        try:
            async for _ in self._client.stream_chat(
                self._conversation, reply, provider=self._provider.value, model=self._model
            ):
                await widget.update(reply.content)
                container.scroll_end(animate=False)
        except ChatRequestFailed as e:
            await widget.remove()
            if e.unauthorized:
                self._add_error("Not authorized. Set RELAYCHAT_TOKEN.")
            else:
                self._add_error(f"Request failed: {e.error}")
        else:
            if reply.complete:
                self._conversation.append(ChatMessage(role="assistant", content=reply.content))
            elif reply.content:
                # Keep partial reply on screen but out of the conversation
                self._add_error("Generation failed before completion.")
            else:
                await widget.remove()
                self._add_error("Generation failed.")
        finally:
            self._streaming = False
            input_widget.disabled = False
            input_widget.focus()

    def _clear_chat(self) -> None:
        self._conversation.clear()
        container = self.query_one("#chat-messages", VerticalScroll)
        container.remove_children()
        self._add_info("Conversation cleared")

    def _add_user_bubble(self, text: str) -> None:
        container = self.query_one("#chat-messages", VerticalScroll)
        container.mount(Static(f"> {text}", classes="chat-user"))
        container.scroll_end(animate=False)

    def _add_error(self, text: str) -> None:
        container = self.query_one("#chat-messages", VerticalScroll)
        container.mount(Static(text, classes="chat-error"))
        container.scroll_end(animate=False)

    def _add_info(self, text: str) -> None:
        container = self.query_one("#chat-messages", VerticalScroll)
        container.mount(Static(text, classes="chat-info"))
        container.scroll_end(animate=False)
