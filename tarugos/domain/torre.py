# tarugos/domain/torre.py
"""
Modelo de posições da torre (coluna x andar).

A configuração é um mapeamento ``{coluna: [andares]}``. As funções daqui são
puras; a leitura/gravação no banco e a checagem de ocupação ficam em
``tarugos.usecases.torre``.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Mapping, Set

from tarugos.config import DEFAULTS
from tarugos.domain.errors import ValidationError
from tarugos.domain.models import StoragePosition


TowerConfig = Dict[str, List[int]]


def default_config() -> TowerConfig:
    """Grade padrão 8x4 (A..H, andares 1..4)."""
    return {col: list(DEFAULTS.andares) for col in DEFAULTS.colunas}


def normalizar(config: Mapping[str, Iterable[int]]) -> TowerConfig:
    """Valida e ordena a configuração (colunas maiúsculas, andares únicos e crescentes)."""
    out: TowerConfig = {}
    for coluna, andares in config.items():
        col = str(coluna).strip().upper()
        andares = list(andares)
        if not andares:
            raise ValidationError(f"Coluna {col} sem andares", campo="floors")
        # StoragePosition valida letra e andar
        posicoes = [StoragePosition(col, a) for a in andares]
        out[col] = sorted({p.floor for p in posicoes})
    return dict(sorted(out.items()))


class Posicoes:
    """Sequência preguiçosa e reiniciável das posições válidas.

    Ordenada por coluna e depois por andar. Cada ``iter()`` recomeça do início.
    """

    def __init__(self, config: Mapping[str, Iterable[int]]):
        self._config = normalizar(config)

    def __iter__(self) -> Iterator[StoragePosition]:
        for coluna, andares in self._config.items():
            for andar in andares:
                yield StoragePosition(coluna, andar)

    def __len__(self) -> int:
        return sum(len(a) for a in self._config.values())

    def __contains__(self, position: object) -> bool:
        return isinstance(position, StoragePosition) and is_valid(self._config, position)


def list_available(config: Mapping[str, Iterable[int]]) -> Posicoes:
    return Posicoes(config)


def is_valid(config: Mapping[str, Iterable[int]], position: StoragePosition) -> bool:
    andares = config.get(position.column)
    return andares is not None and position.floor in andares


def removed_positions(atual: Mapping[str, Iterable[int]], nova: Mapping[str, Iterable[int]]) -> Set[StoragePosition]:
    """Posições presentes em ``atual`` que deixam de existir em ``nova``."""
    antes = set(list_available(atual))
    depois = set(list_available(nova))
    return antes - depois
