"""Backend implementations behind the data-access façade."""

from portal.data.backends.base import DataBackend
from portal.data.backends.simulated import SimulatedBackend
from portal.data.backends.live import LiveBackend, LiveBackendConfig

__all__ = ["DataBackend", "SimulatedBackend", "LiveBackend", "LiveBackendConfig"]
