"""discord.py and Discord REST adapters."""
