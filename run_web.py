#!/usr/bin/env python
"""Script to run the web front (pages, auth callback and session bridge)."""
import os

import uvicorn

from tasklist.config import load_settings
from tasklist.logging_config import get_logging_config

if __name__ == "__main__":
    settings = load_settings()
    uvicorn.run(
        "tasklist.web.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=int(os.getenv("PORT", "3000")),
        reload=True,
        log_config=get_logging_config(settings.log_level),
    )
