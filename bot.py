"""
Main Discord bot module for the deadline to-do list.

This module contains the bot class and the startup logic. The task list
itself lives in the ``cogs.todo`` extension.
"""

# Third-party imports first
import discord
from discord.ext import commands

# Local imports go last
from config.config import DISCORD_BOT_TOKEN
from utils.logging_util import get_logger

# Configure logging
logger = get_logger("bot")

EXTENSIONS = [
    'cogs.todo',  # To-do list commands, modal dialogs and live board
]

class TodoBot(commands.Bot):
    """
    A Discord bot serving a shared to-do list with deadlines.

    Inherits from discord.ext.commands.Bot; commands are registered as
    slash commands by the loaded extensions and synced on startup.
    """

    def __init__(self) -> None:
        """
        Initialize the TodoBot with Discord intents.

        Raises:
            ValueError: If DISCORD_BOT_TOKEN is not set.
        """
        intents = self._setup_intents()

        # Store the activity to set later (can't use async in __init__)
        self._desired_activity = discord.Activity(type=discord.ActivityType.watching, name="your deadlines")

        self._get_bot_token()

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None
        )

        logger.info("TodoBot initialized successfully")

    def _setup_intents(self) -> discord.Intents:
        """Slash commands and components only need the default intents."""
        intents = discord.Intents.default()
        logger.debug("Discord intents configured")
        return intents

    def _get_bot_token(self) -> str:
        """
        Retrieve and validate the Discord bot token from configuration.

        Returns:
            str: The Discord bot token.

        Raises:
            ValueError: If DISCORD_BOT_TOKEN is not set in configuration.
        """
        if not DISCORD_BOT_TOKEN:
            error_msg = "DISCORD_BOT_TOKEN is not set in configuration"
            logger.error(error_msg)
            raise ValueError(error_msg)

        logger.debug("Bot token retrieved from configuration")
        return DISCORD_BOT_TOKEN

    async def setup_hook(self) -> None:
        """
        Load extensions and sync slash commands with Discord.

        Called by discord.py during startup, before the bot connects.
        """
        try:
            logger.info("Starting bot setup...")

            await self._load_extensions()

            logger.info("Syncing slash commands with Discord...")
            synced = await self.tree.sync()
            logger.info(f"Synced {len(synced)} command(s) with Discord")

            for command in self.tree.get_commands():
                logger.info(f"Registered command: /{command.name}")

            logger.info("Bot setup completed successfully")

        except Exception as e:
            logger.error(f"Error during bot setup: {e}")
            raise

    async def _load_extensions(self) -> None:
        """Load every extension listed in EXTENSIONS."""
        logger.info(f"Attempting to load {len(EXTENSIONS)} extensions: {EXTENSIONS}")

        for extension in EXTENSIONS:
            try:
                logger.info(f"Loading extension: {extension}")
                await self.load_extension(extension)
                logger.info(f"Successfully loaded extension: {extension}")
            except Exception as e:
                logger.error(f"Failed to load extension {extension}: {e}")
                raise

    async def on_ready(self) -> None:
        """Set the presence and log the connection details."""
        if hasattr(self, '_desired_activity'):
            await self.change_presence(activity=self._desired_activity)
            logger.info(f"Bot presence set to: {self._desired_activity.name}")

        logger.info(f"Bot logged in successfully as: {self.user.name}")
        logger.info(f"Bot ID: {self.user.id}")
        logger.info(f"Connected to {len(self.guilds)} guild(s)")


def main() -> None:
    """
    Main entry point for the to-do bot.

    Creates a TodoBot instance and starts it with the Discord token.
    """
    try:
        if not DISCORD_BOT_TOKEN:
            logger.error("Cannot start bot: DISCORD_BOT_TOKEN not found in configuration")
            return

        bot = TodoBot()

        logger.info("Starting TodoBot...")
        bot.run(DISCORD_BOT_TOKEN, log_handler=None)

    except KeyboardInterrupt:
        logger.info("Bot shutdown requested by user")
    except Exception as e:
        logger.error(f"Fatal error during bot startup: {e}")
        raise


if __name__ == "__main__":
    main()
