"""Command modules. Each exposes ``async def setup(bot)`` that registers its commands."""
