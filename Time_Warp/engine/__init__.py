"""Engine-side pieces of the time-warp driver."""

from .baseline import BaselineComparator, BaselineTrace, FinishedTrip, load_baseline
from .interface import Alert, PeriodicObserver, SimulationEngine
from .monitor import DelayMonitor, MonitorLease, MonitorSlot, get_monitor_slot
from .scripted import Scenario, ScriptedEngine, load_scenario
from .stepper import StepController

__all__ = [
    "Alert",
    "BaselineComparator",
    "BaselineTrace",
    "DelayMonitor",
    "FinishedTrip",
    "MonitorLease",
    "MonitorSlot",
    "PeriodicObserver",
    "Scenario",
    "ScriptedEngine",
    "SimulationEngine",
    "StepController",
    "get_monitor_slot",
    "load_baseline",
    "load_scenario",
]
