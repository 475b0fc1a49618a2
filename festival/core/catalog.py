"""
Catálogo de eventos do festival.

Cada combinação (estilo, modalidade permitida, categoria de idade) vira
uma EventOffering. O catálogo é gerado uma única vez pela raiz de composição
(RegistrationEngine) e repassado explicitamente a quem precisa dele.
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterator, List, Optional, Tuple

from ..domain.regulation import (
    DEFAULT_CAPACITY,
    FESTIVAL_END,
    FESTIVAL_START,
    FESTIVAL_VENUE,
    POINTE_SHOES_NOTE,
    STYLE_MODALITIES,
    AgeCategory,
    DanceStyle,
    Modality,
    requires_pointe_shoes,
)

logger = logging.getLogger(__name__)


class UnknownEventError(KeyError):
    """Id de evento que não existe no catálogo."""

    def __init__(self, event_id: str) -> None:
        super().__init__(event_id)
        self.event_id = event_id

    def __str__(self) -> str:
        return f"Evento {self.event_id} não encontrado"


@dataclass(frozen=True)
class EventOffering:
    """Uma combinação inscrevível de estilo, modalidade e categoria."""
    id: str
    title: str
    style: DanceStyle
    modality: Modality
    category: AgeCategory
    min_age: int
    max_age: int
    unit_price: Decimal
    time_limit: str
    venue: str
    start_date: date
    end_date: date
    available: bool
    capacity: int
    description: str
    notes: Tuple[str, ...] = ()

    @property
    def category_label(self) -> str:
        return self.category.label

    @property
    def is_ensemble(self) -> bool:
        return self.modality.is_ensemble

    def accepts_age(self, age: int) -> bool:
        return self.min_age <= age <= self.max_age


@dataclass(frozen=True)
class CatalogStatistics:
    total_offerings: int
    unique_styles: int
    unique_modalities: int
    unique_categories: int
    total_capacity: int
    min_price: Decimal
    max_price: Decimal
    mean_price: Decimal


def build_offering(style: DanceStyle, modality: Modality, category: AgeCategory) -> EventOffering:
    notes: Tuple[str, ...] = ()
    if requires_pointe_shoes(style, category):
        notes = (POINTE_SHOES_NOTE,)

    return EventOffering(
        id=f"{style.name}_{modality.name}_{category.code}",
        title=f"{style.display_name} - {modality.display_name} ({category.display_name})",
        style=style,
        modality=modality,
        category=category,
        min_age=category.min_age,
        max_age=category.max_age,
        unit_price=modality.unit_price,
        time_limit=modality.time_limit,
        venue=FESTIVAL_VENUE,
        start_date=FESTIVAL_START,
        end_date=FESTIVAL_END,
        available=True,
        capacity=DEFAULT_CAPACITY,
        description=style.description,
        notes=notes,
    )


def generate_catalog() -> List[EventOffering]:
    """
    Gera todas as ofertas possíveis.

    Ordem determinística: estilos na ordem de declaração, depois as
    modalidades permitidas do estilo, depois as quatro categorias.
    """
    offerings: List[EventOffering] = []
    for style, modalities in STYLE_MODALITIES.items():
        for modality in modalities:
            for category in AgeCategory:
                offerings.append(build_offering(style, modality, category))
    return offerings


class Catalog:
    """
    Catálogo somente leitura, indexado por id.
    Seguro para compartilhar entre sessões: nada aqui é mutado após a construção.
    """

    def __init__(self, offerings: Optional[List[EventOffering]] = None) -> None:
        if offerings is None:
            offerings = generate_catalog()
        self._offerings: Tuple[EventOffering, ...] = tuple(offerings)
        self._by_id: Dict[str, EventOffering] = {o.id: o for o in self._offerings}
        logger.info(f"Catálogo carregado: offerings={len(self._offerings)}")

    def __len__(self) -> int:
        return len(self._offerings)

    def __iter__(self) -> Iterator[EventOffering]:
        return iter(self._offerings)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._by_id

    def find(self, event_id: str) -> Optional[EventOffering]:
        return self._by_id.get(event_id)

    def get(self, event_id: str) -> EventOffering:
        offering = self._by_id.get(event_id)
        if offering is None:
            raise UnknownEventError(event_id)
        return offering

    def filter(
        self,
        style: Optional[DanceStyle] = None,
        modality: Optional[Modality] = None,
        category: Optional[AgeCategory] = None,
        dancer_age: Optional[int] = None,
        max_price: Optional[Decimal] = None,
        text: Optional[str] = None,
    ) -> List[EventOffering]:
        """
        Filtra as ofertas. Critérios omitidos não restringem nada;
        os informados são combinados com E.
        """
        term = text.strip().lower() if text else ""
        result = []
        for offering in self._offerings:
            if style is not None and offering.style is not style:
                continue
            if modality is not None and offering.modality is not modality:
                continue
            if category is not None and offering.category is not category:
                continue
            if dancer_age is not None and not offering.accepts_age(dancer_age):
                continue
            if max_price is not None and offering.unit_price > max_price:
                continue
            if term and not _matches_text(offering, term):
                continue
            result.append(offering)
        return result

    def statistics(self) -> CatalogStatistics:
        prices = [o.unit_price for o in self._offerings]
        if not prices:
            zero = Decimal("0.00")
            return CatalogStatistics(0, 0, 0, 0, 0, zero, zero, zero)
        mean = (sum(prices, Decimal("0")) / len(prices)).quantize(Decimal("0.01"))
        return CatalogStatistics(
            total_offerings=len(self._offerings),
            unique_styles=len({o.style for o in self._offerings}),
            unique_modalities=len({o.modality for o in self._offerings}),
            unique_categories=len({o.category for o in self._offerings}),
            total_capacity=sum(o.capacity for o in self._offerings),
            min_price=min(prices),
            max_price=max(prices),
            mean_price=mean,
        )


def _matches_text(offering: EventOffering, term: str) -> bool:
    haystack = (
        offering.title,
        offering.style.display_name,
        offering.modality.display_name,
        offering.description,
    )
    return any(term in field.lower() for field in haystack)
