"""
Synthetic real-time events for simulated mode.

A cancellable background task rolls a die every interval and, on a hit,
publishes one event to the subscribed handlers. Nothing is produced in live
mode or after ``stop()``.
"""

import asyncio
import random
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Any, Awaitable, Callable, Dict, List

import structlog
from pydantic import BaseModel, Field

from portal.auth.session import SessionManager
from portal.core.config import Settings, settings as default_settings
from portal.data.schemas import Priority, RiskLevel

logger = structlog.get_logger(__name__)


# ============================================================================
# EVENT DEFINITIONS
# ============================================================================


class EventKind(str, Enum):
    """Event kinds the simulator can produce."""

    INCIDENT_CREATED = "incident.created"
    ALERT_CREATED = "alert.created"
    RISK_UPDATED = "risk.updated"
    SOS_TRIGGERED = "sos.triggered"


class SimulatedEvent(BaseModel):
    """One synthetic event."""

    event_id: str
    kind: EventKind
    timestamp: datetime
    payload: Dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


EventHandler = Callable[[SimulatedEvent], Awaitable[None]]

LOCATIONS = ("Red Fort", "India Gate", "Connaught Place", "Chandni Chowk")
PRIORITIES = (Priority.LOW, Priority.MEDIUM, Priority.HIGH)
RISK_LEVELS = (RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH)
ZONE_IDS = ("zone-1", "zone-2", "zone-3")
CALL_TYPES = ("Emergency", "Medical", "Theft", "Harassment")


# ============================================================================
# SIMULATOR
# ============================================================================


class EventSimulator:
    """
    Background generator of synthetic events.

    Usage:
        simulator = EventSimulator(session)
        simulator.subscribe(on_event)
        simulator.start()
        ...
        await simulator.stop()
    """

    def __init__(
        self,
        session: SessionManager,
        interval_seconds: Optional[float] = None,
        probability: Optional[float] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
        history_size: int = 100,
        settings: Optional[Settings] = None,
    ):
        settings = settings or default_settings
        self._session = session
        self.interval_seconds = (
            settings.simulator_interval_seconds if interval_seconds is None else interval_seconds
        )
        self.probability = (
            settings.simulator_probability if probability is None else probability
        )
        self._rng = rng or random.Random()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._handlers: Dict[str, EventHandler] = {}
        self._history: List[SimulatedEvent] = []
        self._history_size = history_size
        self._task: Optional[asyncio.Task] = None
        self._stopped = False

    # ========================================================================
    # SUBSCRIPTIONS
    # ========================================================================

    def subscribe(self, handler: EventHandler) -> str:
        """Register an async handler. Returns its id."""
        handler_id = str(uuid.UUID(int=self._rng.getrandbits(128)))
        self._handlers[handler_id] = handler
        logger.debug("simulator_handler_subscribed", handler_id=handler_id)
        return handler_id

    def unsubscribe(self, handler_id: str) -> bool:
        if handler_id in self._handlers:
            del self._handlers[handler_id]
            return True
        return False

    # ========================================================================
    # GENERATION
    # ========================================================================

    def generate(self, kind: Optional[EventKind] = None) -> SimulatedEvent:
        """Build one event without publishing it."""
        kind = kind or self._rng.choice(list(EventKind))
        event_id = str(uuid.UUID(int=self._rng.getrandbits(128)))
        location = self._rng.choice(LOCATIONS)
        priority = self._rng.choice(PRIORITIES)
        now = self._clock()

        if kind == EventKind.INCIDENT_CREATED:
            payload = {
                "incidentId": f"INC-{event_id[:8].upper()}",
                "callType": self._rng.choice(CALL_TYPES),
                "location": location,
                "priority": priority.value,
                "callerId": f"caller-{event_id[-9:]}",
            }
        elif kind == EventKind.ALERT_CREATED:
            payload = {
                "alertId": f"ALERT-{event_id[:8].upper()}",
                "title": f"New alert near {location}",
                "location": location,
                "priority": priority.value,
            }
        elif kind == EventKind.RISK_UPDATED:
            payload = {
                "zoneId": self._rng.choice(ZONE_IDS),
                "riskLevel": self._rng.choice(RISK_LEVELS).value,
                "riskScore": round(self._rng.uniform(0.0, 10.0), 1),
            }
        else:
            payload = {
                "location": location,
                "priority": Priority.EMERGENCY.value,
                "digitalId": f"DID-{self._rng.randint(10000, 99999)}",
            }

        return SimulatedEvent(event_id=event_id, kind=kind, timestamp=now, payload=payload)

    async def tick(self) -> Optional[SimulatedEvent]:
        """
        One trial. Publishes and returns an event with probability ``p``.

        Returns None after ``stop()``, in live mode, or on a miss.
        """
        if self._stopped or not self._session.is_simulated:
            return None
        if self._rng.random() >= self.probability:
            return None

        event = self.generate()
        self._history.append(event)
        if len(self._history) > self._history_size:
            self._history = self._history[-self._history_size:]

        logger.info(
            "simulated_event",
            event_id=event.event_id,
            kind=event.kind.value,
        )
        await self._publish(event)
        return event

    async def _publish(self, event: SimulatedEvent) -> None:
        for handler_id, handler in list(self._handlers.items()):
            try:
                await handler(event)
            except Exception as e:
                logger.error(
                    "simulator_handler_error",
                    handler_id=handler_id,
                    event_id=event.event_id,
                    error=str(e),
                )

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Launch the background loop. Must be called inside a running loop."""
        if self.running:
            return
        self._stopped = False
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(
            "simulator_started",
            interval_seconds=self.interval_seconds,
            probability=self.probability,
        )

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.tick()

    async def stop(self) -> None:
        """Cancel the loop and wait for it to end. Idempotent."""
        self._stopped = True
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("simulator_stopped")

    def recent(self, limit: int = 10) -> List[SimulatedEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._history[-limit:])) if limit > 0 else []
