"""
Shared utilities for risk estimation.

This module provides the small pieces of infrastructure shared by the risk
estimators and the risk facade:

- Cooperative cancellation of long-running numeric fits
- Wall-clock timeouts that drive cancellation from a timer thread
- Callbacks for progress reporting and timing instrumentation
"""

import logging
import threading
import time
from typing import Optional


class CancellationToken:
    """
    Cooperative cancellation flag shared between a controller and the estimators.

    The controller (e.g. an interactive session or a timer) calls ``cancel()``;
    estimator loops poll ``is_cancelled()`` at iteration boundaries and abandon
    the fit, reporting an invalid estimate rather than raising.

    Notes
    -----
    Observing the flag one iteration late is harmless: the loop simply runs one
    more bounded iteration before returning.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    def is_cancelled(self) -> bool:
        """
        Check whether cancellation has been requested.

        Returns
        -------
        bool
            True once ``cancel()`` has been called.
        """
        return self._event.is_set()

    def reset(self) -> None:
        """Clear a previous cancellation request so the token can be reused."""
        self._event.clear()


def is_cancelled(cancellation: Optional[CancellationToken]) -> bool:
    return cancellation is not None and cancellation.is_cancelled()


def cancel_after(
    logger: logging.Logger, cancellation: CancellationToken, timeout_s: float
) -> threading.Timer:
    """
    Cancel a token once a wall-clock timeout has elapsed.

    The estimators have no timeout of their own beyond ``max_iterations``; callers
    that need one can use this to drive the cancellation token from a timer.

    Parameters
    ----------
    logger : logging.Logger
        Logger used to report that the timeout was hit.
    cancellation : CancellationToken
        Token to cancel when the timeout elapses.
    timeout_s : float
        Timeout in seconds, must be non-negative.

    Returns
    -------
    threading.Timer
        The started (daemon) timer. Call ``cancel()`` on it once the computation
        finishes in time, so that the token is left untouched.

    Raises
    ------
    ValueError
        If timeout_s is negative.
    """
    if timeout_s < 0:
        raise ValueError(f"timeout_s must be non-negative, got {timeout_s}")

    def signal_timeout() -> None:
        logger.warning("Signaling risk estimation timeout after %s seconds", timeout_s)
        cancellation.cancel()

    timer = threading.Timer(timeout_s, signal_timeout)
    timer.daemon = True
    timer.start()
    return timer


class RiskCallbacks:
    """
    Callback mechanism for progress reporting and instrumentation of risk estimation.

    The risk facade reports coarse progress checkpoints (0-100) while eagerly
    precomputing its estimates, and records timestamps before and after each
    statistical model is fitted. Users can extend this class to forward progress
    to a status display or to gather additional statistics.

    Attributes
    ----------
    progress_value : int
        The most recently reported progress, 0 until the first report.
    timestamps : dict
        Timestamps keyed by ``"<model>_bm"`` and ``"<model>_am"``, where 'bm'
        stands for "before method" and 'am' for "after method".

    Examples
    --------
    >>> class PrintingCallbacks(RiskCallbacks):
    ...     def progress(self, value):
    ...         super().progress(value)
    ...         print(f"Risk estimation {value}% done")
    """

    def __init__(self) -> None:
        self.progress_value = 0
        self.timestamps: dict[str, float] = {}

    def progress(self, value: int) -> None:
        self.progress_value = value

    def estimate_bm(self, model_name: str) -> None:
        self.timestamps[f"{model_name}_bm"] = time.time()

    def estimate_am(self, model_name: str) -> None:
        self.timestamps[f"{model_name}_am"] = time.time()
