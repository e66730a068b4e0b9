"""Observer registration for engine and relay notifications."""

from typing import Any, Callable, List


class Signal:
    """A list of listeners that are all called when the signal is emitted.

    Usage:
        timer_updated = Signal("timer_updated")
        unsubscribe = timer_updated.connect(lambda seconds: print(seconds))
        timer_updated.emit(42)
        unsubscribe()
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._listeners: List[Callable[..., Any]] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def connect(self, listener: Callable[..., Any]) -> Callable[[], bool]:
        """Register a listener.

        Returns:
            A callable that removes this listener again.
        """
        self._listeners.append(listener)
        return lambda: self.disconnect(listener)

    def disconnect(self, listener: Callable[..., Any]) -> bool:
        """Remove a listener. Returns False if it was not registered."""
        try:
            self._listeners.remove(listener)
            return True
        except ValueError:
            return False

    def clear(self) -> None:
        """Remove every listener."""
        self._listeners.clear()

    def emit(self, *args: Any) -> None:
        """Call every listener with the given arguments."""
        # Listeners may (dis)connect while we iterate.
        for listener in list(self._listeners):
            listener(*args)
