"""Last-request-wins tracking for one stream of asynchronous operations."""


class RequestEpoch:
    """
    Monotonic counter identifying the latest request on one stream.

    An operation captures the epoch when it starts and applies its result only if that
    epoch is still current when it finishes.  Superseded operations are never cancelled,
    their results are simply dropped.
    """

    def __init__(self) -> None:
        self._epoch = 0

    def begin(self) -> int:
        """
        Start a new request, superseding any in flight.

        Returns:
            The new request's epoch
        """
        self._epoch += 1
        return self._epoch

    def current(self) -> int:
        """Get the current epoch without starting a request."""
        return self._epoch

    def is_current(self, epoch: int) -> bool:
        """
        Check whether a request's result may still be applied.

        Args:
            epoch: Epoch captured when the request started

        Returns:
            True if no newer request or invalidation has happened since
        """
        return epoch == self._epoch

    def invalidate(self) -> None:
        """Supersede every request in flight without starting a new one."""
        self._epoch += 1
