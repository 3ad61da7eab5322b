#!/usr/bin/env python3
"""Start the RelayChat Web API server."""

import os
from pathlib import Path

from dotenv import load_dotenv

project_root = Path(__file__).parent.parent
load_dotenv(project_root / ".env")

import uvicorn

from relaychat.logging_config import configure_logging

if __name__ == "__main__":
    configure_logging(os.getenv("RELAYCHAT_LOG_LEVEL", "INFO"))
    uvicorn.run(
        "relaychat.api.main:create_app",
        factory=True,
        host=os.getenv("RELAYCHAT_HOST", "0.0.0.0"),
        port=int(os.getenv("RELAYCHAT_PORT", "8000")),
        reload=os.getenv("RELAYCHAT_RELOAD", "") == "1",
        reload_dirs=[str(project_root / "src")],
        log_config=None,
    )
