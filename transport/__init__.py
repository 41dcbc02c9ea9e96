"""Concrete messaging-platform transports."""

from transport.discord_transport import DiscordTransport, TransportError

__all__ = ["DiscordTransport", "TransportError"]
