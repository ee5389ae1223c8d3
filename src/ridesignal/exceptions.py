"""Exception hierarchy for RideSignal detectors."""


class RideSignalError(Exception):
    """Base class for every error raised by the engine."""


class TrajectoryValidationError(RideSignalError, ValueError):
    """A ride's GPS points violate the ordering contract."""

    def __init__(self, ride_id: str, index: int, previous_ts: int, current_ts: int) -> None:
        self.ride_id = ride_id
        self.index = index
        self.previous_ts = previous_ts
        self.current_ts = current_ts
        super().__init__(
            f"ride {ride_id}: point {index} has timestamp {current_ts} "
            f"before previous point ({previous_ts})"
        )


class CandidateResolutionError(RideSignalError):
    """A candidate account could not be fetched from the injected loader."""

    def __init__(self, account_id: str, reason: str) -> None:
        self.account_id = account_id
        self.reason = reason
        super().__init__(f"could not resolve candidate {account_id}: {reason}")
