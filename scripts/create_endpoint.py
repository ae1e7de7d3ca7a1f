"""
Provision a webhook endpoint for a user from the shell.

Usage:
    python scripts/create_endpoint.py --user 3f6c1c2e-0d6a-4c55-9a8e-7f1b2f7d9a10 --name "Stripe test"

    # List a user's endpoints instead:
    python scripts/create_endpoint.py --user 3f6c1c2e-0d6a-4c55-9a8e-7f1b2f7d9a10 --list
"""
import argparse
import asyncio
import logging
import sys
import uuid

from catchhook.api.endpoints import webhook_url
from catchhook.database import async_session_factory, dispose_engine
from catchhook.services.endpoints import EndpointNameError, create_endpoint, list_endpoints

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def main() -> int:
    parser = argparse.ArgumentParser(description="Create a webhook endpoint")
    parser.add_argument("--user", required=True, help="Owner user id (UUID from the auth provider)")
    parser.add_argument("--name", help="Display name for the new endpoint")
    parser.add_argument("--list", action="store_true", help="List the user's endpoints and exit")
    args = parser.parse_args()

    try:
        user_id = uuid.UUID(args.user)
    except ValueError:
        print(f"Not a UUID: {args.user}", file=sys.stderr)
        return 2

    try:
        async with async_session_factory() as session:
            if args.list:
                for row in await list_endpoints(session, user_id):
                    print(
                        f"{row.endpoint.webhook_id}  {row.event_count:>6} events  "
                        f"{row.endpoint.name}  {webhook_url(row.endpoint.webhook_id)}"
                    )
                return 0

            if not args.name:
                parser.error("--name is required unless --list is given")

            try:
                endpoint = await create_endpoint(session, user_id, args.name)
            except EndpointNameError as e:
                print(str(e), file=sys.stderr)
                return 2
            await session.commit()
            logger.info("Created endpoint %s for user %s", endpoint.webhook_id, user_id)
            print(webhook_url(endpoint.webhook_id))
            return 0
    finally:
        await dispose_engine()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
