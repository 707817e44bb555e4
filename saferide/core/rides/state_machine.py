# saferide/core/rides/state_machine.py
"""
Допустимые переходы статусов поездки.
"""

from __future__ import annotations

from saferide.common.constants import RideStatus


class RideStateMachine:
    ALLOWED_TRANSITIONS: dict[RideStatus, list[RideStatus]] = {
        RideStatus.REQUESTED: [RideStatus.ACCEPTED],
        RideStatus.ACCEPTED: [],
    }

    @staticmethod
    def can_transition(current_status: str, new_status: str) -> bool:
        try:
            current = RideStatus(current_status)
            new = RideStatus(new_status)
        except ValueError:
            return False
        return new in RideStateMachine.ALLOWED_TRANSITIONS.get(current, [])
