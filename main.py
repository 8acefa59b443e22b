"""
dndbeyond entry point
Checks the stored session and lists characters in the user's active campaigns
"""

import asyncio

from loguru import logger

from dndbeyond.api import check_auth, endpoints
from dndbeyond.exceptions import ServiceError
from dndbeyond.services.client import close_ddb_client, get_ddb_client
from dndbeyond.settings import CAMPAIGN_TTL


async def main() -> None:
    """Entry point"""
    logger.info("Starting dndbeyond client...")
    client = get_ddb_client()

    try:
        status = check_auth(client, client.store)
        logger.info(status.message)
        if not status.authenticated:
            return

        # active-campaigns answers {status, data} rather than the usual envelope
        response = await client.get(
            endpoints.campaign_list(), "campaigns", ttl=CAMPAIGN_TTL
        )
        campaigns = response.get("data", []) if isinstance(response, dict) else response
        for campaign in campaigns or []:
            logger.info(f"Campaign: {campaign.get('name')}")
            for character in campaign.get("characters", []):
                logger.info(
                    f"  {character.get('characterId')}: {character.get('characterName')}"
                )

    except ServiceError as e:
        logger.error(f"D&D Beyond request failed: {e}")
        if client.is_auth_expired:
            logger.warning(check_auth(client, client.store).message)
    finally:
        await close_ddb_client()
        logger.info("dndbeyond client stopped")


if __name__ == "__main__":
    asyncio.run(main())
