"""Challenge error hierarchy.

Domain conflicts and resource exhaustion are user-facing and never retried.
Infrastructure failures wrap store errors and may be retried by the caller.
"""

from uuid import UUID


class ChallengeError(Exception):
    """Base class for all challenge errors."""

    retryable = False


class DomainConflict(ChallengeError):
    """The command conflicts with the current session state."""


class ResourceExhaustion(ChallengeError):
    """The restriction catalog cannot supply a new round."""


class InfrastructureFailure(ChallengeError):
    """The repository failed or timed out."""

    retryable = True


class SessionNotFound(DomainConflict):
    def __init__(self, session_id: UUID) -> None:
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


class AlreadyInSession(DomainConflict):
    """The user is already a member of an unfinished session in this guild."""

    def __init__(self, user_id: str, session_id: UUID) -> None:
        self.user_id = user_id
        self.session_id = session_id
        super().__init__(f"User {user_id} is already in session {session_id}")


class NotLeader(DomainConflict):
    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"User {user_id} is not the session leader")


class UserNotInSession(DomainConflict):
    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"User {user_id} is not in the session")


class LeaderCannotBeRemoved(DomainConflict):
    def __init__(self) -> None:
        super().__init__("The session leader cannot be removed")


class SessionAlreadyStarted(DomainConflict):
    def __init__(self, session_id: UUID) -> None:
        self.session_id = session_id
        super().__init__(f"Session {session_id} has already started")


class SessionAlreadyFinished(DomainConflict):
    def __init__(self, session_id: UUID) -> None:
        self.session_id = session_id
        super().__init__(f"Session {session_id} is finished")


class RoundAlreadyActive(DomainConflict):
    def __init__(self) -> None:
        super().__init__("A round is already in progress")


class NoActiveRound(DomainConflict):
    def __init__(self) -> None:
        super().__init__("No round is in progress")


class InvalidGhostType(DomainConflict):
    def __init__(self, ghost_type: str) -> None:
        self.ghost_type = ghost_type
        super().__init__(f"Unknown ghost type: {ghost_type}")


class InvalidSessionParameters(DomainConflict):
    """Goal and restrictions per round must both be at least 1."""


class NoRestrictionsAvailable(ResourceExhaustion):
    def __init__(self) -> None:
        super().__init__("No restrictions found !")


class PoolExhausted(ResourceExhaustion):
    def __init__(self) -> None:
        super().__init__("No new restrictions can be added !")
