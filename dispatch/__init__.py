"""Inbound routing: command registry with cooldowns and the message dispatcher."""

from dispatch.dispatcher import Dispatcher
from dispatch.registry import Command, CommandRegistry

__all__ = ["Command", "CommandRegistry", "Dispatcher"]
