"""
Cloud Queues admin tool.
Inspect and manipulate queues through the driver from the command line.

Usage:
    cloud-queues status
    cloud-queues push jobs '{"job_id": "42"}'
    cloud-queues pop jobs --wait 10 --ack
    cloud-queues peek jobs --index 0 --limit 5
"""

import argparse
import json
import sys
from typing import Any, List, Optional

from .config import get_driver, load_env


def _parse_body(raw: str) -> Any:
    """Message bodies are JSON; anything else is sent as a plain string."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, sort_keys=True)


def get_status(driver, queue_names: Optional[List[str]] = None):
    """Print message counts for the given queues (all queues if none given)."""
    names = queue_names or driver.list_queues()

    print("\nQueue Status:")
    print("-" * 40)

    if not names:
        print("No queues")
        return

    for name in names:
        try:
            print(f"{name}: {driver.count_messages(name)} message(s)")
        except Exception as e:
            print(f"{name}: Error - {e}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Manage Cloud Queues through the queue driver')
    parser.add_argument('--env-file', help='Load settings from this .env file')

    commands = parser.add_subparsers(dest='command', required=True)

    status = commands.add_parser('status', help='Show message counts')
    status.add_argument('queues', nargs='*', help='Queue names (default: all)')

    commands.add_parser('list', help='List queue names')
    commands.add_parser('info', help='Show driver and endpoint info')

    for name, help_text in [('create', 'Create a queue'), ('remove', 'Delete a queue'),
                            ('count', 'Count messages in a queue')]:
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument('queue')

    push = commands.add_parser('push', help='Push a message (JSON or plain text)')
    push.add_argument('queue')
    push.add_argument('message', nargs='+', help='One or more message bodies')

    pop = commands.add_parser('pop', help='Claim and print one message')
    pop.add_argument('queue')
    pop.add_argument('--wait', type=float, default=5, help='Seconds to wait (default: 5)')
    pop.add_argument('--ack', action='store_true',
                     help='Acknowledge (delete) the message after printing it')

    peek = commands.add_parser('peek', help='Print messages without claiming them')
    peek.add_argument('queue')
    peek.add_argument('--index', type=int, default=0, help='Start position (default: 0)')
    peek.add_argument('--limit', type=int, default=20, help='Maximum messages (default: 20)')

    return parser


def main(argv: Optional[List[str]] = None, driver=None) -> int:
    args = build_parser().parse_args(argv)

    load_env(args.env_file)
    if driver is None:
        driver = get_driver()

    if args.command == 'status':
        get_status(driver, args.queues)

    elif args.command == 'list':
        for name in driver.list_queues():
            print(name)

    elif args.command == 'info':
        print(_dump(driver.info()))

    elif args.command == 'create':
        driver.create_queue(args.queue)
        print(f"Created queue: {args.queue}")

    elif args.command == 'remove':
        driver.remove_queue(args.queue)
        print(f"Removed queue: {args.queue}")

    elif args.command == 'count':
        print(driver.count_messages(args.queue))

    elif args.command == 'push':
        for raw in args.message:
            driver.push_message(args.queue, _parse_body(raw))
        print(f"Pushed {len(args.message)} message(s) to {args.queue}")

    elif args.command == 'pop':
        message, receipt = driver.pop_message(args.queue, args.wait)
        if receipt is None:
            print(f"No message received within {args.wait}s")
            return 1
        print(_dump(message))
        print(f"Receipt: {receipt}")
        if args.ack:
            driver.acknowledge_message(args.queue, receipt)
            print("Acknowledged")

    elif args.command == 'peek':
        for message in driver.peek_queue(args.queue, args.index, args.limit):
            print(_dump(message))

    return 0


if __name__ == '__main__':
    sys.exit(main())
