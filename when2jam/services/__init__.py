"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .jam_session import JamSession, SlotDetails, StoreClientProtocol

__all__ = ["JamSession", "SlotDetails", "StoreClientProtocol"]
