from dataclasses import dataclass, field

from solix.builtin import BuiltinRegistry, default_registry
from solix.history import HistoryBuffer
from solix.process import Spawner
from solix.signals import SignalState


@dataclass
class ShellContext:
    """Interpreter state handed to every component for one session."""

    history: HistoryBuffer = field(default_factory=HistoryBuffer)
    builtins: BuiltinRegistry = field(default_factory=default_registry)
    spawner: Spawner = field(default_factory=Spawner)
    signals: SignalState = field(default_factory=SignalState)
    last_status: int = 0
    running: bool = True
