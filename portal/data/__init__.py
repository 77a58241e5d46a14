"""
Data access for the portal.

Surfaces call ``DataAccessFacade``; it routes each call to the simulated or
live backend according to the session's mode flag and wraps the result in an
``Envelope``.
"""

from portal.data.schemas import Envelope
from portal.data.facade import DataAccessFacade
from portal.data.simulator import EventKind, EventSimulator, SimulatedEvent

__all__ = [
    "Envelope",
    "DataAccessFacade",
    "EventKind",
    "EventSimulator",
    "SimulatedEvent",
]
