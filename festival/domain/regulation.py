"""
Tabelas de referência do regulamento do festival (FID BSB v1.1).

Estilos, modalidades, categorias de idade e a tabela de compatibilidade
estilo x modalidade. São dados fixos: nada aqui é informado pelo usuário.
"""
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Tuple


ENSEMBLE_MIN_PARTICIPANTS = 4
ENSEMBLE_MAX_PARTICIPANTS = 20
DEFAULT_CAPACITY = 7

FESTIVAL_NAME = "Festival Internacional de Dança de Brasília"
FESTIVAL_VENUE = "Teatro Nacional Cláudio Santoro - Brasília/DF"
FESTIVAL_START = date(2025, 10, 16)
FESTIVAL_END = date(2025, 10, 18)

POINTE_SHOES_NOTE = "Obrigatório uso de sapatilhas de ponta para obras de repertório clássico"


class DanceStyle(Enum):
    """
    Estilos de dança aceitos.
    A ordem de declaração é a ordem em que o catálogo é gerado.
    """
    BALLET_CLASSICO = (
        "Ballet Clássico de Repertório",
        "Trechos de balés consagrados até o séc. XIX",
        ("Não serão aceitos Ballets do séc. XX por motivos de direitos autorais",),
    )
    NEOCLASSICO = (
        "Neoclássico",
        "Modalidade Clássica mais flexível, menos rígida, mais aventureira, contempla obras de criação autoral",
        (),
    )
    CONTEMPORANEO = (
        "Dança Contemporânea",
        "Todas as formas experimentais de dança e pesquisa do movimento, com abertura para dança teatro",
        (),
    )
    JAZZ = (
        "Jazz",
        "Trabalhos que utilizem técnicas provenientes de todas as linhas do Jazz",
        (),
    )
    URBANAS = (
        "Danças Urbanas",
        "Trabalhos provenientes de contextos sociais e culturais das ruas e comunidades urbanas",
        (),
    )
    LIVRES = (
        "Danças Livres",
        "Todas as danças que não se enquadrem nas demais ou quando for uma mistura de estilos",
        (),
    )
    POPULARES = (
        "Danças Populares",
        "Manifestações culturais transmitidas de geração em geração",
        (),
    )
    TRADICIONAIS = (
        "Danças Tradicionais",
        "Dança Flamenca, Dança do Ventre",
        (),
    )

    def __init__(self, display_name: str, description: str, remarks: Tuple[str, ...]) -> None:
        self.display_name = display_name
        self.description = description
        self.remarks = remarks

    @classmethod
    def from_name(cls, name: str) -> Optional["DanceStyle"]:
        """Aceita tanto a chave (BALLET_CLASSICO) quanto o nome de exibição."""
        for style in cls:
            if name in (style.name, style.display_name):
                return style
        return None


class Modality(Enum):
    """
    Modalidades com preço unitário, tempo limite e número de bailarinos.
    Conjunto é cobrado por participante.
    """
    SOLO = ("Solo", Decimal("80.00"), "até 3 minutos", 1)
    VARIACAO_FEMININA = ("Variação Feminina", Decimal("80.00"), "tempo da obra", 1)
    VARIACAO_MASCULINA = ("Variação Masculina", Decimal("80.00"), "tempo da obra", 1)
    DUO = ("Duo", Decimal("140.00"), "até 5 minutos", 2)
    TRIO = ("Trio", Decimal("195.00"), "até 5 minutos", 3)
    PAS_DE_DEUX = ("Pas de Deux", Decimal("160.00"), "tempo da obra", 2)
    GRAND_PAS_DE_DEUX = ("Grand Pas de Deux", Decimal("200.00"), "tempo da obra", 2)
    CONJUNTO = ("Conjunto", Decimal("45.00"), "até 6 minutos", ENSEMBLE_MIN_PARTICIPANTS)

    def __init__(self, display_name: str, unit_price: Decimal, time_limit: str, performers: int) -> None:
        self.display_name = display_name
        self.unit_price = unit_price
        self.time_limit = time_limit
        self.performers = performers

    @property
    def is_ensemble(self) -> bool:
        return self is Modality.CONJUNTO

    @property
    def price_note(self) -> Optional[str]:
        if self.is_ensemble:
            return f"R$ 45,00 por participante, mínimo {ENSEMBLE_MIN_PARTICIPANTS} bailarinos"
        return None

    @classmethod
    def from_name(cls, name: str) -> Optional["Modality"]:
        for modality in cls:
            if name in (modality.name, modality.display_name):
                return modality
        return None


class AgeCategory(Enum):
    """
    Faixas etárias (limites inclusivos). Não se sobrepõem e cobrem
    todas as idades a partir de 9 anos sem lacunas.
    """
    PRE = ("PRÉ", 9, 11, "PRE_09_11")
    JUNIOR = ("JÚNIOR", 12, 14, "JUNIOR_12_14")
    SENIOR = ("SENIOR", 15, 19, "SENIOR_15_19")
    AVANCADO = ("AVANÇADO", 20, 99, "AVANCADO_20_MAIS")

    def __init__(self, display_name: str, min_age: int, max_age: int, code: str) -> None:
        self.display_name = display_name
        self.min_age = min_age
        self.max_age = max_age
        self.code = code

    @property
    def label(self) -> str:
        return f"{self.display_name} ({self.min_age} a {self.max_age} anos)"

    def accepts(self, age: int) -> bool:
        return self.min_age <= age <= self.max_age

    @classmethod
    def for_age(cls, age: int) -> Optional["AgeCategory"]:
        for category in cls:
            if category.accepts(age):
                return category
        return None

    @classmethod
    def from_name(cls, name: str) -> Optional["AgeCategory"]:
        for category in cls:
            if name in (category.name, category.display_name, category.code, category.label):
                return category
        return None


_OPEN_STYLE_MODALITIES = (Modality.SOLO, Modality.DUO, Modality.TRIO, Modality.CONJUNTO)

# Compatibilidade estilo -> modalidades permitidas, na ordem do regulamento
STYLE_MODALITIES: Dict[DanceStyle, Tuple[Modality, ...]] = {
    DanceStyle.BALLET_CLASSICO: (
        Modality.VARIACAO_FEMININA,
        Modality.VARIACAO_MASCULINA,
        Modality.PAS_DE_DEUX,
        Modality.GRAND_PAS_DE_DEUX,
        Modality.CONJUNTO,
    ),
    DanceStyle.NEOCLASSICO: _OPEN_STYLE_MODALITIES,
    DanceStyle.CONTEMPORANEO: _OPEN_STYLE_MODALITIES,
    DanceStyle.JAZZ: _OPEN_STYLE_MODALITIES,
    DanceStyle.URBANAS: _OPEN_STYLE_MODALITIES,
    DanceStyle.LIVRES: _OPEN_STYLE_MODALITIES,
    DanceStyle.POPULARES: (Modality.CONJUNTO,),  # apenas conjunto
    DanceStyle.TRADICIONAIS: _OPEN_STYLE_MODALITIES,
}


def is_modality_allowed(style: DanceStyle, modality: Modality) -> bool:
    return modality in STYLE_MODALITIES.get(style, ())


def requires_pointe_shoes(style: DanceStyle, category: AgeCategory) -> bool:
    """Sapatilha de ponta é obrigatória no Ballet Clássico a partir do JÚNIOR."""
    return style is DanceStyle.BALLET_CLASSICO and category is not AgeCategory.PRE
