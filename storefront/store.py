from typing import Any, Callable, Generic, TypeVar

from pydantic import BaseModel, ConfigDict

S = TypeVar("S", bound=BaseModel)

Listener = Callable[[], None]


class Action(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    payload: Any = None

    def __init__(self, type: str, payload: Any = None) -> None:
        super().__init__(type=type, payload=payload)


class Store(Generic[S]):
    """Single-writer state container.

    State only changes through ``dispatch``, which runs the reducer and
    notifies subscribers when the reducer returns a new state object.
    """

    def __init__(self, reducer: Callable[[S, Action], S], initial: S) -> None:
        self._reducer = reducer
        self._initial = initial
        self.state: S = initial.model_copy(deep=True)
        self._listeners: list[Listener] = []
        self._sequence: dict[str, int] = {}

    # ── writes ────────────────────────────────────────────────────────────────

    def dispatch(self, action: Action) -> None:
        new_state = self._reducer(self.state, action)
        if new_state is self.state:
            return
        self.state = new_state
        self._notify()

    def reset(self) -> None:
        self.state = self._initial.model_copy(deep=True)
        # requests still in flight must not land on the fresh state
        for slot in self._sequence:
            self._sequence[slot] += 1
        self._notify()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    # ── request sequencing ────────────────────────────────────────────────────

    def begin(self, slot: str) -> int:
        """Issue the next sequence number for a request slot."""
        seq = self._sequence.get(slot, 0) + 1
        self._sequence[slot] = seq
        return seq

    def is_current(self, slot: str, seq: int) -> bool:
        return self._sequence.get(slot) == seq
