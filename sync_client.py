#!/usr/bin/env python3
"""
Console client that keeps a local copy of the task list in sync with the API
and prints the dashboard stats after every sync.
"""

import argparse
import time

from comply.client.sync import TaskSyncClient
from comply.client.api import TaskApiClient
from comply.config.settings import AppConfig
from comply.logging_setup import configure_logging


def print_dashboard(client: TaskSyncClient):
    stats = client.stats()
    print(
        f"[{client.last_synced_at:%H:%M:%S}] total={stats['total']} in-progress={stats['in_progress']} "
        f"overdue={stats['overdue']} completed={stats['completed']} due-soon={stats['upcoming_due_soon']}"
    )
    for task in client.view(status="overdue"):
        print(f"   OVERDUE  {task.due_date:%Y-%m-%d}  {task.heading}")


def main():
    parser = argparse.ArgumentParser(description="Poll the Comply Scheduler API")
    parser.add_argument("--api", default=AppConfig.CLIENT["api_base_url"])
    parser.add_argument("--user", default=None, help="only tasks created by this email")
    parser.add_argument("--interval", type=int, default=AppConfig.CLIENT["sync_seconds"])
    args = parser.parse_args()

    configure_logging()
    client = TaskSyncClient(TaskApiClient(args.api), created_by=args.user, interval_seconds=args.interval)
    client.start()
    try:
        while True:
            if client.last_synced_at is not None:
                print_dashboard(client)
            time.sleep(args.interval)
    except KeyboardInterrupt:
        pass
    finally:
        client.stop()


if __name__ == "__main__":
    main()
