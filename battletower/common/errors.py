class BattleTowerError(Exception):
    """Base class for all Battle Tower errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class PoolUnavailableError(BattleTowerError):
    pass


class AlreadyActiveError(BattleTowerError):
    pass


class BattleCreationFailedError(BattleTowerError):
    pass


class GrowthExhaustedError(BattleTowerError):
    pass


class PersistenceError(BattleTowerError):
    pass


class PoolLoadError(BattleTowerError):
    pass


class IllegalTransitionError(BattleTowerError):
    pass
