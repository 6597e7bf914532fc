from enum import Enum
from typing import List
from dataclasses import dataclass


class MatchPhase(str, Enum):
    INIT = "init"
    AWAITING_MOVE = "awaiting_move"
    APPLYING_MOVE = "applying_move"
    WON = "won"
    DRAW = "draw"
    ERROR = "error"


TERMINAL_PHASES = (MatchPhase.WON, MatchPhase.DRAW, MatchPhase.ERROR)


class TransitionError(Exception):
    def __init__(self, from_state: str, to_state: str, reason: str = None):
        self.from_state = from_state
        self.to_state = to_state
        self.reason = reason or f"Cannot transition from {from_state} to {to_state}"
        super().__init__(self.reason)


@dataclass
class Transition:
    from_state: MatchPhase
    to_state: MatchPhase
    action: str


class MatchStateMachine:
    TRANSITIONS = [
        Transition(MatchPhase.INIT, MatchPhase.AWAITING_MOVE, "start"),
        Transition(MatchPhase.AWAITING_MOVE, MatchPhase.APPLYING_MOVE, "receive_move"),
        Transition(MatchPhase.AWAITING_MOVE, MatchPhase.ERROR, "forfeit"),
        Transition(MatchPhase.APPLYING_MOVE, MatchPhase.AWAITING_MOVE, "next_turn"),
        Transition(MatchPhase.APPLYING_MOVE, MatchPhase.WON, "win"),
        Transition(MatchPhase.APPLYING_MOVE, MatchPhase.DRAW, "draw"),
        Transition(MatchPhase.APPLYING_MOVE, MatchPhase.ERROR, "forfeit"),
    ]

    def __init__(self, initial_state: MatchPhase = MatchPhase.INIT):
        self._state = initial_state
        self._history: List[tuple] = []

    @property
    def state(self) -> MatchPhase:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_PHASES

    @property
    def allowed_actions(self) -> List[str]:
        return [t.action for t in self.TRANSITIONS if t.from_state == self._state]

    def can_transition(self, action: str) -> bool:
        return action in self.allowed_actions

    def transition(self, action: str) -> MatchPhase:
        for t in self.TRANSITIONS:
            if t.from_state == self._state and t.action == action:
                old_state = self._state
                self._state = t.to_state
                self._history.append((old_state, action, self._state))
                return self._state

        raise TransitionError(
            self._state.value,
            "unknown",
            f"No valid transition for action '{action}' from state '{self._state.value}'"
        )

    def get_history(self) -> List[tuple]:
        return self._history.copy()
