#!/usr/bin/env python3
"""
CLI tool to trigger a sync on a running Overall server.

Usage:
    python sync_cli.py --owner acme --limit 20 --server http://localhost:8080
"""
import argparse
import sys
from urllib.parse import urljoin

import requests


def trigger_sync(server_url: str, owners=None, limit=None, incremental: bool = False,
                 timeout: float = 600) -> dict:
    """
    POST /api/sync and return the decoded response.

    The server syncs synchronously, so the timeout covers the whole sync.
    """
    url = urljoin(server_url, '/api/sync')
    payload = {'incremental': incremental}
    if owners:
        payload['owners'] = list(owners)
    if limit:
        payload['limit'] = limit

    print(f"Triggering sync on {server_url}...")
    response = requests.post(url, json=payload, timeout=timeout)
    if response.status_code >= 400:
        try:
            message = response.json().get('message', response.text)
        except ValueError:
            message = response.text
        raise RuntimeError(f"Server returned {response.status_code}: {message}")

    return response.json()


def main():
    parser = argparse.ArgumentParser(description='Trigger a sync on a running Overall server')
    parser.add_argument('--owner', action='append', help='Owner to sync (repeatable; default: server settings)')
    parser.add_argument('--limit', type=int, help='Repositories per owner')
    parser.add_argument('--incremental', action='store_true', help='Only refresh recently pushed repositories')
    parser.add_argument('--server', default='http://localhost:8080',
                        help='Server URL (default: http://localhost:8080)')

    args = parser.parse_args()

    try:
        result = trigger_sync(
            server_url=args.server,
            owners=args.owner,
            limit=args.limit,
            incremental=args.incremental
        )
    except (requests.RequestException, RuntimeError) as e:
        print(f"\nError: {e}")
        sys.exit(1)

    print(result['message'])
    if result['success']:
        print("✓ Sync completed")
    else:
        print("✗ Sync completed with failures")
        sys.exit(1)


if __name__ == '__main__':
    main()
