"""Process-local session storage."""

from dataclasses import dataclass, field

from animal_identifier.domain.sessions import UserSession
from animal_identifier.services.conversation import SessionRepository


@dataclass
class InMemorySessionRepository(SessionRepository):
    """Session repository keeping state in a dict for the process lifetime."""

    sessions: dict[int, UserSession] = field(default_factory=dict)

    def get(self, user_id: int) -> UserSession | None:
        return self.sessions.get(user_id)

    def save(self, user_id: int, session: UserSession) -> None:
        self.sessions[user_id] = session

    def clear(self, user_id: int) -> None:
        self.sessions.pop(user_id, None)
