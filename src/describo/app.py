"""Main application entry point."""
import asyncio
import logging
import signal
from typing import Optional

from telegram.ext import Application, CallbackQueryHandler, CommandHandler

from describo.bot import close_games, handle_callback, handle_simple_words_command, handle_start
from describo.config import settings
from describo.models.base import init_db


class DescriboBot:
    """Main application class."""

    def __init__(self):
        """Initialize the application."""
        self.application: Optional[Application] = None
        self.running = False
        self.logger = logging.getLogger(__name__)

    async def start(self) -> None:
        """Start the application."""
        if self.running:
            return

        if not settings.bot.token:
            raise ValueError("TELEGRAM_BOT_TOKEN is required")

        try:
            # Initialize database
            init_db()
            self.logger.info("Database initialized")

            # Create application
            self.application = Application.builder().token(settings.bot.token).build()
            self.logger.info("Application created")

            self.application.add_handler(CommandHandler("start", handle_start))
            self.application.add_handler(CommandHandler("simple", handle_simple_words_command))
            self.application.add_handler(CallbackQueryHandler(handle_callback))
            self.logger.info("Handlers added")

            # Start application
            await self.application.initialize()
            await self.application.start()
            await self.application.updater.start_polling()
            self.logger.info("Application started")

            self.running = True

        except Exception as e:
            self.logger.error("Failed to start application: %s", str(e))
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop the application."""
        if not self.application:
            self.running = False
            return

        try:
            # Stop timers and close chat stores
            await close_games(self.application)
            self.logger.info("Game sessions closed")

            if self.running:
                await self.application.updater.stop()
                await self.application.stop()
            await self.application.shutdown()
            self.logger.info("Application stopped")

        except Exception as e:
            self.logger.error("Error while stopping application: %s", str(e))
            raise
        finally:
            self.application = None
            self.running = False

    def run(self) -> None:
        """Run the application until interrupted."""
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)

        stop_event = asyncio.Event()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, stop_event.set)

        try:
            loop.run_until_complete(self.start())
            loop.run_until_complete(stop_event.wait())
            self.logger.info("Received exit signal, shutting down...")
        except KeyboardInterrupt:
            self.logger.info("Received keyboard interrupt")
        finally:
            loop.run_until_complete(self.stop())
            loop.close()
