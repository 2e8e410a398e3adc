"""
Engine Exceptions

Structural failures raised by the dialog engine and the state layer.
These propagate up to the turn boundary (see services/bot.py), where they are
logged and turned into a generic apology. Recognition failures are NOT
exceptions: they drive the prompt retry loop and never leave a Prompt dialog.
"""


class DialogEngineError(Exception):
    """Base class for all engine errors."""
    pass


class DialogNotFoundError(DialogEngineError):
    """Raised when begin/replace references a dialog id that is not registered."""

    def __init__(self, dialog_id: str):
        self.dialog_id = dialog_id
        super().__init__(f"Dialog '{dialog_id}' is not registered.")


class StateError(DialogEngineError):
    """Base class for state-layer contract violations."""
    pass


class ScopeIdentityUnavailableError(StateError):
    """Raised when the incoming activity lacks the identity a state scope keys on."""

    def __init__(self, scope: str, missing: str):
        self.scope = scope
        self.missing = missing
        super().__init__(
            f"Cannot derive {scope} state key: activity has no {missing}."
        )


class PropertyNotFoundError(StateError):
    """Raised by a factory-less get() when the property was never stored."""

    def __init__(self, key: str, scope: str):
        self.key = key
        self.scope = scope
        super().__init__(f"Property '{key}' not found in {scope} state.")


class StorageError(StateError):
    """Raised when the durable backend fails to read or write."""
    pass


class TurnCancelledError(DialogEngineError):
    """Raised when the turn's cancellation signal fires before a step runs."""
    pass
