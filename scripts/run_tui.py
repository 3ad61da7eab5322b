#!/usr/bin/env python3
"""Entry point for the RelayChat terminal client."""

import os
from pathlib import Path

from dotenv import load_dotenv

project_root = Path(__file__).parent.parent
load_dotenv(project_root / ".env")

from relaychat.chat.llm_provider import ProviderName
from relaychat.client import DEFAULT_BASE_URL, ChatClient
from relaychat.tui.app import RelayChatApp


def main():
    client = ChatClient(
        base_url=os.getenv("RELAYCHAT_URL", DEFAULT_BASE_URL),
        token=os.getenv("RELAYCHAT_TOKEN") or None,
    )
    provider = ProviderName.parse(os.getenv("RELAYCHAT_DEFAULT_PROVIDER", "openai"))
    app = RelayChatApp(client, provider=provider)
    app.run()


if __name__ == "__main__":
    main()
