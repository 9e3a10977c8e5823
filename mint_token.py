#!/usr/bin/env python
"""Print a bearer token for local testing of the backend API.

Usage: python mint_token.py <user-id> [minutes]
"""
import sys
from datetime import timedelta

from tasklist.config import load_settings
from tasklist.security import create_access_token

if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__.strip())
        sys.exit(2)

    settings = load_settings()
    settings.require("jwt_secret")
    minutes = int(sys.argv[2]) if len(sys.argv) > 2 else 60
    print(create_access_token(
        sys.argv[1],
        settings.jwt_secret,
        expires_delta=timedelta(minutes=minutes),
        audience=settings.jwt_audience,
    ))
