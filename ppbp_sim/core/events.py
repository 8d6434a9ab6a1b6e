"""Cancellable timed callbacks on top of a SimPy environment.

This module defines the EventScheduler, which runs callbacks at a virtual time
offset, the EventHandle returned for every scheduled callback, and the
EventRegistry an application uses to own its pending events by role.
"""

import simpy
from typing import Any, Callable, Dict, List, Optional

from ppbp_sim.core.enums import EventRole


class EventHandle:
    """A callback scheduled on the simulation clock.

    Attributes:
        time: Virtual time at which the callback is due.
        cancelled: Whether the callback was cancelled before firing.
        fired: Whether the callback has run.
    """

    def __init__(
        self,
        event: simpy.events.Event,
        time: float,
        callback: Callable[..., Any],
        args: tuple,
    ) -> None:
        self._event = event
        self._callback = callback
        self._args = args
        self.time = time
        self.cancelled = False
        self.fired = False
        event.callbacks.append(self._fire)

    def _fire(self, event: simpy.events.Event) -> None:
        if self.cancelled:
            return
        self.fired = True
        self._callback(*self._args)

    def is_pending(self) -> bool:
        """Check whether the callback is still due to run.

        Returns:
            True if the handle has neither fired nor been cancelled.
        """
        return not (self.fired or self.cancelled)

    def cancel(self) -> None:
        """Prevent the callback from running. Safe to call at any time."""
        if not self.is_pending():
            return
        self.cancelled = True
        # SimPy sets callbacks to None once the event has been processed.
        callbacks = self._event.callbacks
        if callbacks is not None and self._fire in callbacks:
            callbacks.remove(self._fire)

    def __repr__(self) -> str:
        if self.fired:
            status = "fired"
        elif self.cancelled:
            status = "cancelled"
        else:
            status = "pending"
        name = getattr(self._callback, "__name__", repr(self._callback))
        return f"EventHandle({name} @ {self.time:.6f}, {status})"


class EventScheduler:
    """Virtual-time scheduler backed by a SimPy environment.

    Attributes:
        env: SimPy environment providing the clock.
    """

    def __init__(self, env: simpy.Environment) -> None:
        self.env = env

    @property
    def now(self) -> float:
        """Current virtual time in seconds."""
        return self.env.now

    def schedule_after(
        self, delay: float, callback: Callable[..., Any], *args: Any
    ) -> EventHandle:
        """Run a callback after a virtual-time delay.

        Callbacks due at the same instant run in the order they were scheduled.

        Args:
            delay: Delay in seconds, must be non-negative.
            callback: Function to call.
            *args: Positional arguments for the callback.

        Returns:
            Handle that can be used to cancel the callback.
        """
        if delay < 0:
            raise ValueError(f"Cannot schedule an event in the past (delay={delay})")
        event = self.env.timeout(delay)
        return EventHandle(event, self.env.now + delay, callback, args)

    @staticmethod
    def cancel(handle: Optional[EventHandle]) -> None:
        """Cancel a handle. No-op for None, fired or already cancelled handles."""
        if handle is not None:
            handle.cancel()


class EventRegistry:
    """Pending event handles of one application, keyed by role.

    Most roles hold at most one pending handle at a time; DEPARTURE holds one
    per burst in flight.
    """

    def __init__(self, scheduler: EventScheduler) -> None:
        self.scheduler = scheduler
        self._handles: Dict[EventRole, List[EventHandle]] = {
            role: [] for role in EventRole
        }

    def schedule(
        self,
        role: EventRole,
        delay: float,
        callback: Callable[..., Any],
        *args: Any,
    ) -> EventHandle:
        """Schedule a callback and track its handle under a role.

        Args:
            role: Role the event plays for the application.
            delay: Delay in seconds.
            callback: Function to call.
            *args: Positional arguments for the callback.

        Returns:
            The handle of the scheduled callback.
        """
        handles = self._handles[role]
        handles[:] = [h for h in handles if h.is_pending()]
        handle = self.scheduler.schedule_after(delay, callback, *args)
        handles.append(handle)
        return handle

    def pending(self, role: EventRole) -> List[EventHandle]:
        """Get the handles of a role that have not fired or been cancelled."""
        return [h for h in self._handles[role] if h.is_pending()]

    def is_pending(self, role: EventRole) -> bool:
        return any(h.is_pending() for h in self._handles[role])

    def cancel(self, role: EventRole) -> int:
        """Cancel every pending handle of a role.

        Returns:
            Number of handles that were actually cancelled.
        """
        count = 0
        for handle in self._handles[role]:
            if handle.is_pending():
                handle.cancel()
                count += 1
        self._handles[role] = []
        return count

    def cancel_all(self) -> int:
        """Cancel every pending handle in the registry.

        Returns:
            Number of handles that were actually cancelled.
        """
        return sum(self.cancel(role) for role in EventRole)

    def __len__(self) -> int:
        return sum(len(self.pending(role)) for role in EventRole)
