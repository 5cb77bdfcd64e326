from typing import Callable, List, Optional

SESSION_KEY = "gradebook_current_class_id"

Listener = Callable[[Optional[int]], None]


class AppContext:
    """
    The class currently selected in the UI. `select` is the only writer and
    subscribers hear about actual changes only.
    """

    def __init__(self, current_class_id: Optional[int] = None):
        self._current_class_id = current_class_id
        self._listeners: List[Listener] = []

    @property
    def current_class_id(self) -> Optional[int]:
        return self._current_class_id

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def select(self, class_id: Optional[int]) -> bool:
        if class_id == self._current_class_id:
            return False
        self._current_class_id = class_id
        for listener in list(self._listeners):
            listener(class_id)
        return True

    @classmethod
    def for_session(cls, session) -> "AppContext":
        """Context bound to a Django session: every change is written back to it."""
        context = cls(session.get(SESSION_KEY))

        def persist(class_id):
            session[SESSION_KEY] = class_id

        context.subscribe(persist)
        return context
