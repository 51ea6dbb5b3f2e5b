from __future__ import annotations


class NoteNotFoundError(LookupError):
    pass


class ProviderError(RuntimeError):
    pass


class ProviderTimeout(ProviderError):
    pass


class BackendError(RuntimeError):
    pass


class BackendTimeout(BackendError):
    pass


class OperationFailure(RuntimeError):
    """
    Failure of a client operation, converted into a user-visible notification
    at the operation boundary instead of propagating.
    """

    kind = "operation_failure"

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause

    @property
    def timed_out(self) -> bool:
        return isinstance(self.cause, BackendTimeout)


class LoadFailure(OperationFailure):
    kind = "load_failure"


class SaveFailure(OperationFailure):
    kind = "save_failure"


class DeleteFailure(OperationFailure):
    kind = "delete_failure"


class AskFailure(OperationFailure):
    kind = "ask_failure"


class OperationBusy(OperationFailure):
    kind = "busy"
