#!/usr/bin/env python3
"""
Startup script for the addressfmt FastAPI server.

Usage:
    python run_api.py

Or with uvicorn directly:
    uvicorn addressfmt.api.main:app --reload --host 0.0.0.0 --port 8080
"""

import uvicorn

from addressfmt.config import FormatterConfig

if __name__ == "__main__":
    uvicorn.run(
        "addressfmt.api.main:app",
        host="0.0.0.0",
        port=8080,
        reload=True,  # Auto-reload on code changes (dev mode)
        log_level=FormatterConfig.from_env().log_level.lower(),
    )
