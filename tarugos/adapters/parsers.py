"""
Utilidades de parsing para posições e configuração da torre.

Este módulo interpreta os textos digitados na CLI ou lidos de planilhas:
- posições no formato "H2" (coluna + andar);
- faixas de andares como "1-4" ou "1,2,5";
- especificações de coluna como "A:1-4".
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Union

from tarugos.domain.errors import ValidationError
from tarugos.domain.models import StoragePosition

_POS_RE = re.compile(r"^\s*([A-Za-z])\s*-?\s*(\d+)\s*$")
_FAIXA_RE = re.compile(r"^\s*(\d+)\s*-\s*(\d+)\s*$")


def parse_posicao(txt: Union[str, StoragePosition]) -> StoragePosition:
    """Interpreta uma posição da torre.

    Exemplos:
        "H2"  → StoragePosition("H", 2)
        "b 3" → StoragePosition("B", 3)
        "C-1" → StoragePosition("C", 1)

    Raises:
        ValidationError: texto vazio ou fora do formato coluna+andar.
    """
    if isinstance(txt, StoragePosition):
        return txt
    if txt is None:
        raise ValidationError("Posição obrigatória", campo="position")
    m = _POS_RE.match(str(txt))
    if not m:
        raise ValidationError(f"Posição inválida: {txt!r}", campo="position")
    return StoragePosition(m.group(1).upper(), int(m.group(2)))


def parse_andares(txt: str) -> List[int]:
    """Interpreta "1-4", "1,2,5" ou combinações ("1-3,6")."""
    andares: List[int] = []
    for parte in str(txt).split(","):
        parte = parte.strip()
        if not parte:
            continue
        faixa = _FAIXA_RE.match(parte)
        if faixa:
            ini, fim = int(faixa.group(1)), int(faixa.group(2))
            if ini > fim:
                raise ValidationError(f"Faixa de andares inválida: {parte!r}", campo="floors")
            andares.extend(range(ini, fim + 1))
        elif parte.isdigit():
            andares.append(int(parte))
        else:
            raise ValidationError(f"Andar inválido: {parte!r}", campo="floors")
    if not andares:
        raise ValidationError(f"Nenhum andar em {txt!r}", campo="floors")
    return sorted(set(andares))


def parse_torre_spec(specs: Iterable[str]) -> Dict[str, List[int]]:
    """Interpreta ["A:1-4", "B:1-3"] → {"A": [1, 2, 3, 4], "B": [1, 2, 3]}."""
    config: Dict[str, List[int]] = {}
    for spec in specs:
        if ":" not in spec:
            raise ValidationError(f"Use COLUNA:ANDARES, ex.: A:1-4 (recebido {spec!r})", campo="floors")
        coluna, andares = spec.split(":", 1)
        coluna = coluna.strip().upper()
        if len(coluna) != 1 or not coluna.isalpha():
            raise ValidationError(f"Coluna inválida: {coluna!r}", campo="column")
        config[coluna] = parse_andares(andares)
    return config
