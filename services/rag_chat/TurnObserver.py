"""Observability port for chat turns.

ChatService reports every phase transition to a TurnObserver. The default
implementation writes log lines; a tracing backend can be plugged in by
implementing the same interface, without touching the turn logic.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from shared.helper.HelperConfig import HelperConfig


class TurnPhase(str, Enum):
    VALIDATING = "validating"
    RETRIEVING = "retrieving"
    GENERATING = "generating"
    PERSISTING = "persisting"
    RESPONDED = "responded"
    ERRORED = "errored"


class TurnObserverInterface(ABC):
    @abstractmethod
    def on_phase(self, turn_id: str, phase: TurnPhase, **attributes: Any) -> None:
        """Called when a turn enters a phase.

        Args:
            turn_id (str): Identifier shared by all phases of one turn.
            phase (TurnPhase): The phase being entered.
            **attributes: Phase details (conversation id, document count, error type, ...).
        """
        pass


class LoggingTurnObserver(TurnObserverInterface):
    """Writes one log line per phase transition."""

    _COLORS = {
        TurnPhase.RESPONDED: "green",
        TurnPhase.ERRORED: "red",
    }

    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()

    def on_phase(self, turn_id: str, phase: TurnPhase, **attributes: Any) -> None:
        details = " ".join(f"{key}={value}" for key, value in sorted(attributes.items()))
        if phase == TurnPhase.ERRORED:
            self.logging.warning("Turn %s -> %s %s", turn_id, phase.value, details, color=self._COLORS[phase])
        else:
            self.logging.info("Turn %s -> %s %s", turn_id, phase.value, details, color=self._COLORS.get(phase))
