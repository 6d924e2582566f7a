"""Load the built-in challenge catalog into the database"""
import asyncio
import logging

from habitquest.gamification.challenges import seed_challenge_library
from habitquest.main import configure_logging, shutdown, startup

logger = logging.getLogger(__name__)


async def main() -> None:
    configure_logging()
    try:
        await startup()
        count = await seed_challenge_library()
        logger.info(f"✅ Seeded {count} challenges")
    except Exception as e:
        logger.error(f"❌ Seeding failed: {e}", exc_info=True)
        raise
    finally:
        await shutdown()


if __name__ == "__main__":
    asyncio.run(main())
