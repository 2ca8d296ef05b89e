from __future__ import annotations

from enum import Enum


class FlightState(str, Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    IN_FLIGHT_WITH_PENDING = "in_flight_with_pending"


class FlightEvent(str, Enum):
    SUBMIT = "submit"
    COMPLETE = "complete"


# (state, event) -> (next state, issue a request now)
TRANSITIONS: dict[tuple[FlightState, FlightEvent], tuple[FlightState, bool]] = {
    (FlightState.IDLE, FlightEvent.SUBMIT): (FlightState.IN_FLIGHT, True),
    (FlightState.IN_FLIGHT, FlightEvent.SUBMIT): (FlightState.IN_FLIGHT_WITH_PENDING, False),
    (FlightState.IN_FLIGHT_WITH_PENDING, FlightEvent.SUBMIT): (FlightState.IN_FLIGHT_WITH_PENDING, False),
    (FlightState.IN_FLIGHT, FlightEvent.COMPLETE): (FlightState.IDLE, False),
    (FlightState.IN_FLIGHT_WITH_PENDING, FlightEvent.COMPLETE): (FlightState.IN_FLIGHT, True),
}


class SingleFlight:
    """At most one request in flight; submissions made meanwhile coalesce into one follow-up.

    Not thread-safe: drive it from the owning backend's serialized context.
    """

    def __init__(self) -> None:
        self.state = FlightState.IDLE

    def on_submit(self) -> bool:
        return self._apply(FlightEvent.SUBMIT)

    def on_complete(self) -> bool:
        return self._apply(FlightEvent.COMPLETE)

    def reset(self) -> None:
        self.state = FlightState.IDLE

    def _apply(self, event: FlightEvent) -> bool:
        transition = TRANSITIONS.get((self.state, event))
        if transition is None:
            raise RuntimeError(f"Invalid single-flight transition: {self.state.value} + {event.value}")
        self.state, issue = transition
        return issue
