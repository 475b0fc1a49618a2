"""
Seleção de eventos e cálculo de preço.

O SelectionState pertence a uma única sessão de inscrição. O PricingEngine
não guarda estado próprio além do catálogo, que é somente leitura.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List

from ..domain.regulation import (
    ENSEMBLE_MAX_PARTICIPANTS,
    ENSEMBLE_MIN_PARTICIPANTS,
)
from .catalog import Catalog, EventOffering

logger = logging.getLogger(__name__)


@dataclass
class SelectionState:
    """
    Eventos selecionados (em ordem de seleção) e número de participantes
    por evento. As chaves de participant_counts são sempre exatamente os
    ids selecionados.
    """
    selected: List[str] = field(default_factory=list)
    participant_counts: Dict[str, int] = field(default_factory=dict)

    def is_selected(self, event_id: str) -> bool:
        return event_id in self.participant_counts

    def is_empty(self) -> bool:
        return not self.selected

    def to_dict(self) -> dict:
        return {
            "selected": list(self.selected),
            "participant_counts": dict(self.participant_counts),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SelectionState":
        # Cada id aparece uma única vez, na ordem da primeira ocorrência
        selected = list(dict.fromkeys(data.get("selected") or []))
        counts = data.get("participant_counts") or {}
        return cls(
            selected=selected,
            participant_counts={event_id: int(counts.get(event_id, 1)) for event_id in selected},
        )


@dataclass(frozen=True)
class SelectionSummary:
    count: int
    unique_styles: List[str]
    unique_modalities: List[str]


def required_slots(offering: EventOffering, state: SelectionState) -> int:
    """
    Quantos nomes de bailarinos o evento exige: o número informado para
    Conjunto, o número fixo da modalidade para as demais.
    """
    if offering.is_ensemble:
        return state.participant_counts.get(offering.id, ENSEMBLE_MIN_PARTICIPANTS)
    return offering.modality.performers


def clamp_ensemble_size(count: int) -> int:
    return max(ENSEMBLE_MIN_PARTICIPANTS, min(ENSEMBLE_MAX_PARTICIPANTS, count))


class PricingEngine:
    """
    Regras de seleção e preço sobre um catálogo fixo.

    toggle_selection não confere se o id existe no catálogo: quem valida
    isso é o validador de inscrição. compute_event_price, por outro lado,
    levanta UnknownEventError para ids desconhecidos.
    """

    def __init__(self, catalog: Catalog) -> None:
        self._catalog = catalog

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    def default_participant_count(self, event_id: str) -> int:
        offering = self._catalog.find(event_id)
        if offering is not None and offering.is_ensemble:
            return ENSEMBLE_MIN_PARTICIPANTS
        return 1

    def toggle_selection(self, state: SelectionState, event_id: str) -> bool:
        """
        Seleciona ou remove um evento. Retorna True se o evento ficou selecionado.
        """
        if state.is_selected(event_id):
            state.selected.remove(event_id)
            del state.participant_counts[event_id]
            logger.debug(f"Evento removido da seleção: event_id={event_id}")
            return False

        state.selected.append(event_id)
        state.participant_counts[event_id] = self.default_participant_count(event_id)
        logger.debug(
            f"Evento adicionado à seleção: event_id={event_id}, "
            f"participants={state.participant_counts[event_id]}"
        )
        return True

    def select_only(self, state: SelectionState, event_id: str) -> bool:
        """
        Mantém apenas este evento selecionado.
        Se ele já era a única seleção, a seleção fica vazia.
        """
        was_only = state.selected == [event_id]
        state.selected.clear()
        state.participant_counts.clear()
        if was_only:
            return False
        return self.toggle_selection(state, event_id)

    def set_participant_count(self, state: SelectionState, event_id: str, count: int) -> None:
        """
        Define o número de bailarinos de um evento de Conjunto, limitado a [4, 20].
        Não faz nada para eventos não selecionados ou que não são Conjunto.
        """
        if not state.is_selected(event_id):
            return
        offering = self._catalog.find(event_id)
        if offering is None or not offering.is_ensemble:
            return

        clamped = clamp_ensemble_size(count)
        if clamped != count:
            logger.debug(
                f"Número de participantes ajustado: event_id={event_id}, "
                f"requested={count}, stored={clamped}"
            )
        state.participant_counts[event_id] = clamped

    def required_participant_slots(self, state: SelectionState, event_id: str) -> int:
        return required_slots(self._catalog.get(event_id), state)

    def compute_event_price(self, state: SelectionState, event_id: str) -> Decimal:
        """
        Preço de um evento. Único lugar onde o preço unitário é multiplicado
        pelo número de participantes (apenas para Conjunto).
        """
        offering = self._catalog.get(event_id)
        if offering.is_ensemble:
            count = state.participant_counts.get(event_id, ENSEMBLE_MIN_PARTICIPANTS)
            return offering.unit_price * count
        return offering.unit_price

    def compute_total(self, state: SelectionState) -> Decimal:
        total = Decimal("0.00")
        for event_id in state.selected:
            total += self.compute_event_price(state, event_id)
        return total

    def summarize(self, state: SelectionState) -> SelectionSummary:
        styles: List[str] = []
        modalities: List[str] = []
        for event_id in state.selected:
            offering = self._catalog.find(event_id)
            if offering is None:
                continue
            if offering.style.display_name not in styles:
                styles.append(offering.style.display_name)
            if offering.modality.display_name not in modalities:
                modalities.append(offering.modality.display_name)
        return SelectionSummary(
            count=len(state.selected),
            unique_styles=styles,
            unique_modalities=modalities,
        )
