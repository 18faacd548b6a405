"""
WebSocket event models for the Kaboom game.
"""

from .events import EventType, InboundEvent, create_error_event, parse_inbound_event

__all__ = ["EventType", "InboundEvent", "create_error_event", "parse_inbound_event"]
