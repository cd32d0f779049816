#!/usr/bin/env python3
"""
Startup script for the Comply Scheduler backend
This script starts the FastAPI server with proper configuration
"""

import uvicorn

from comply.config.settings import AppConfig


def main():
    # Server configuration (.env is loaded by AppConfig)
    host = AppConfig.SERVER["host"]
    port = AppConfig.SERVER["port"]
    reload = AppConfig.SERVER["reload"]

    print("Starting Comply Scheduler Backend Server...")
    print(f"Host: {host}")
    print(f"Port: {port}")
    print(f"Reload: {reload}")
    print(f"Daily sweep: {AppConfig.SCHEDULER['sweep_hour']:02d}:{AppConfig.SCHEDULER['sweep_minute']:02d} {AppConfig.TIMEZONE}")
    print("=" * 50)

    # Start the server
    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=AppConfig.SERVER["log_level"].lower()
    )


if __name__ == "__main__":
    main()
