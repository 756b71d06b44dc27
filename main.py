import os
import discord
from discord.ext import commands
from dotenv import load_dotenv

load_dotenv()

from utils.logger import log_error, log_ok, log_sync  # noqa: E402

TOKEN = os.getenv("DISCORD_TOKEN")

intents = discord.Intents.default()
intents.guilds = True
intents.guild_messages = True

bot = commands.Bot(command_prefix="!", intents=intents)

INITIAL_EXTENSIONS = [
    "cogs.game_night_cog",
]


@bot.event
async def on_ready():
    log_ok(f"[boot] Logged in as {bot.user} ({bot.user.id})")
    log_sync(f"[boot] extensions loaded: {', '.join(bot.extensions) or 'none'}")


if __name__ == "__main__":
    if not TOKEN:
        raise RuntimeError("Missing DISCORD_TOKEN env var.")

    # load extensions (sync in py-cord)
    for ext in INITIAL_EXTENSIONS:
        try:
            bot.load_extension(ext)
        except Exception as e:
            log_error(f"[boot] Failed to load extension '{ext}': {e}")

    bot.run(TOKEN)
