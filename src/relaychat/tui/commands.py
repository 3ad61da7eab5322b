"""Slash commands understood by the RelayChat TUI."""

from __future__ import annotations

from dataclasses import dataclass

COMMANDS: dict[str, str] = {
    "provider": "Switch provider (openai, anthropic, google)",
    "model": "Override the model id, or reset with no argument",
    "help": "Show available commands",
    "clear": "Clear the conversation",
}


@dataclass(frozen=True)
class ChatCommand:
    name: str
    args: str = ""

    @property
    def known(self) -> bool:
        return self.name in COMMANDS

    def echo(self) -> str:
        """The command as it is shown back in the message list."""
        return f"/{self.name} {self.args}".rstrip()


def parse_command(text: str) -> ChatCommand | None:
    """Return the command for input like "/provider google", else None.

    Unknown names still produce a command so the panel can report them.
    """
    parts = text.split(maxsplit=1)
    if not parts or parts[0] == "/" or not parts[0].startswith("/"):
        return None
    args = parts[1].strip() if len(parts) > 1 else ""
    return ChatCommand(name=parts[0][1:].lower(), args=args)
