from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional


class RegistrationStep(str, Enum):
    """
    Etapas do fluxo de inscrição.
    """
    SELECAO = "selecao"
    FORMULARIO = "formulario"
    PAGAMENTO = "pagamento"
    CONFIRMACAO = "confirmacao"


class RegistrationStatus(str, Enum):
    PENDENTE = "pendente"
    CONFIRMADA = "confirmada"
    CANCELADA = "cancelada"


@dataclass
class RegistrationCandidate:
    """
    Dados informados pelo responsável pela inscrição.

    participants mapeia o id de cada evento selecionado para a lista de
    nomes dos bailarinos daquele evento.
    """
    name: str = ""
    document: str = ""
    email: str = ""
    phone: str = ""
    birth_date: str = ""
    school: Optional[str] = None
    choreographer: Optional[str] = None
    notes: Optional[str] = None
    participants: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "document": self.document,
            "email": self.email,
            "phone": self.phone,
            "birth_date": self.birth_date,
            "school": self.school,
            "choreographer": self.choreographer,
            "notes": self.notes,
            "participants": {k: list(v) for k, v in self.participants.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RegistrationCandidate":
        return cls(
            name=data.get("name") or "",
            document=data.get("document") or "",
            email=data.get("email") or "",
            phone=data.get("phone") or "",
            birth_date=data.get("birth_date") or "",
            school=data.get("school"),
            choreographer=data.get("choreographer"),
            notes=data.get("notes"),
            participants={k: list(v) for k, v in (data.get("participants") or {}).items()},
        )
