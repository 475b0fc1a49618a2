import logging
from typing import Dict, List, Optional
from dataclasses import dataclass, field
from .registration_state import RegistrationStep, RegistrationCandidate
from .selection import SelectionState

logger = logging.getLogger(__name__)


@dataclass
class RegistrationSession:
    """
    Estado de uma sessão de inscrição.
    Cada sessão é dona exclusiva da sua seleção e dos dados do candidato.
    """
    session_id: str
    step: RegistrationStep = RegistrationStep.SELECAO
    selection: SelectionState = field(default_factory=SelectionState)
    candidate: RegistrationCandidate = field(default_factory=RegistrationCandidate)
    errors: List[str] = field(default_factory=list)
    registration_id: Optional[int] = None

    def reset(self) -> None:
        """
        Volta ao início do fluxo, descartando seleção e dados informados.
        """
        self.step = RegistrationStep.SELECAO
        self.selection = SelectionState()
        self.candidate = RegistrationCandidate()
        self.errors = []
        self.registration_id = None

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "step": self.step.value,
            "selection": self.selection.to_dict(),
            "candidate": self.candidate.to_dict(),
            "errors": list(self.errors),
            "registration_id": self.registration_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RegistrationSession":
        return cls(
            session_id=data["session_id"],
            step=RegistrationStep(data.get("step", RegistrationStep.SELECAO.value)),
            selection=SelectionState.from_dict(data.get("selection") or {}),
            candidate=RegistrationCandidate.from_dict(data.get("candidate") or {}),
            errors=list(data.get("errors") or []),
            registration_id=data.get("registration_id"),
        )


class InMemorySessionManager:
    """
    Gerenciador simples de sessões em memória.
    Em produção com mais de um processo, use o RedisSessionManager.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, RegistrationSession] = {}

    def get_or_create(self, session_id: str) -> RegistrationSession:
        if session_id not in self._sessions:
            logger.debug(f"Nova RegistrationSession criada: session_id={session_id}")
            self._sessions[session_id] = RegistrationSession(session_id=session_id)
        else:
            logger.debug(
                f"RegistrationSession recuperada: session_id={session_id}, "
                f"selected={len(self._sessions[session_id].selection.selected)}"
            )
        return self._sessions[session_id]

    def save_session(self, session_id: str, session: RegistrationSession) -> None:
        # Em memória o objeto já é o próprio estado guardado
        self._sessions[session_id] = session

    def clear_session(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        logger.debug(f"Sessão removida da memória: session_id={session_id}")
