"""Main entry point for the Academy quiz bot."""
import asyncio
import logging
import sys

from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import BotCommand

from academy_bot.config import settings
from academy_bot.handlers import start, topic, quiz, certificate

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)


async def main():
    """Main function to start the bot."""
    if not settings.BOT_TOKEN:
        logger.error("BOT_TOKEN is not set. Add it to the environment or .env")
        sys.exit(1)
    if not settings.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY is not set, every test generation will fail")

    bot = Bot(token=settings.BOT_TOKEN)
    dp = Dispatcher(storage=MemoryStorage())

    # Register routers (certificate before topic: text in the certificate view is a name)
    dp.include_router(start.router)
    dp.include_router(certificate.router)
    dp.include_router(quiz.router)
    dp.include_router(topic.router)

    await bot.set_my_commands([
        BotCommand(command="start", description="Start a new test"),
    ])

    try:
        logger.info("Starting bot polling...")
        await dp.start_polling(
            bot,
            allowed_updates=dp.resolve_used_update_types()
        )
    finally:
        await bot.session.close()
        logger.info("Bot stopped")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
