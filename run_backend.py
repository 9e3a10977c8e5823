#!/usr/bin/env python
"""Script to run the backend API server."""
import os

import uvicorn

from tasklist.config import load_settings
from tasklist.logging_config import get_logging_config

if __name__ == "__main__":
    settings = load_settings()
    uvicorn.run(
        "tasklist.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=int(os.getenv("PORT", "3001")),
        reload=True,
        log_config=get_logging_config(settings.log_level),
    )
