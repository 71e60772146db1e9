"""
Regras de negócio puras do razão de estoque.

Este módulo concentra as regras que não dependem de banco:
- derivação do status de exibição de um item;
- validação da soma dos baldes (disponível + reservada + avaria);
- tabela de transições da ordem de saída;
- política de baixa manual (de qual balde a saída é debitada).

Os casos de uso chamam estas funções antes de gravar; o schema repete
as restrições de quantidade como CHECKs para que nenhuma escrita fure
o invariante mesmo fora destas funções.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Optional

from tarugos.domain.errors import (
    InsufficientStock,
    InvalidTransitionError,
    QuantityMismatchError,
    TerminalOrderError,
    ValidationError,
)
from tarugos.domain.models import InventoryItem, ItemStatus, OrdemStatus


BALDES = ("quantidade_disponivel", "quantidade_reservada", "quantidade_avaria")
CAMPOS_QUANTIDADE = frozenset(("quantidade",) + BALDES)

# Origens aceitas para baixa manual. Reservado nunca: pertence a uma ordem.
ORIGENS_SAIDA = {
    "disponivel": "quantidade_disponivel",
    "avaria": "quantidade_avaria",
}

TRANSICOES: Dict[OrdemStatus, FrozenSet[OrdemStatus]] = {
    OrdemStatus.EM_SEPARACAO: frozenset({
        OrdemStatus.AGUARDANDO_ENVIO,
        OrdemStatus.CONCLUIDA,
        OrdemStatus.CANCELADA,
    }),
    OrdemStatus.AGUARDANDO_ENVIO: frozenset({
        OrdemStatus.CONCLUIDA,
        OrdemStatus.CANCELADA,
    }),
    OrdemStatus.CONCLUIDA: frozenset(),
    OrdemStatus.CANCELADA: frozenset(),
}


def derive_status(item: InventoryItem) -> ItemStatus:
    """Classifica o status de exibição de um item.

    Regras:
        - ``avaria == quantidade > 0`` → ``avaria``
        - ``reservada == quantidade > 0`` (sem avaria) → ``reservado``
        - ``disponivel > 0`` → ``disponivel``
        - caso contrário → ``indisponivel``
    """
    qtd = item.quantidade
    if qtd > 0 and item.quantidade_avaria == qtd:
        return ItemStatus.AVARIA
    if qtd > 0 and item.quantidade_reservada == qtd and item.quantidade_avaria == 0:
        return ItemStatus.RESERVADO
    if item.quantidade_disponivel > 0:
        return ItemStatus.DISPONIVEL
    return ItemStatus.INDISPONIVEL


def as_int(valor, campo: str) -> int:
    """Converte quantidades vindas de formulários/planilhas para ``int``."""
    if isinstance(valor, bool):
        raise ValidationError(f"Valor inválido para {campo}: {valor!r}", campo=campo)
    if isinstance(valor, int):
        return valor
    if isinstance(valor, float) and valor.is_integer():
        return int(valor)
    if isinstance(valor, str) and valor.strip().lstrip("-").isdigit():
        return int(valor.strip())
    if isinstance(valor, str):
        # "5.0" de célula numérica de planilha
        try:
            numero = float(valor.strip().replace(",", "."))
        except ValueError:
            numero = None
        if numero is not None and numero.is_integer():
            return int(numero)
    raise ValidationError(f"Valor inválido para {campo}: {valor!r}", campo=campo)


def validar_baldes(
    quantidade: int,
    disponivel: int,
    reservada: int,
    avaria: int,
    item_id: Optional[str] = None,
) -> None:
    """Garante baldes não negativos e soma igual à quantidade total."""
    for campo, valor in (
        ("quantidade", quantidade),
        ("quantidade_disponivel", disponivel),
        ("quantidade_reservada", reservada),
        ("quantidade_avaria", avaria),
    ):
        if valor < 0:
            raise ValidationError(f"{campo} não pode ser negativa ({valor})", campo=campo)
    soma = disponivel + reservada + avaria
    if soma != quantidade:
        raise QuantityMismatchError(soma=soma, esperado=quantidade, item_id=item_id)


def validar_item(item: InventoryItem) -> None:
    validar_baldes(
        item.quantidade,
        item.quantidade_disponivel,
        item.quantidade_reservada,
        item.quantidade_avaria,
        item_id=item.id,
    )


def validar_transicao(ordem_id: Optional[str], atual: OrdemStatus, novo: OrdemStatus) -> bool:
    """Valida ``atual -> novo``.

    Returns:
        ``True`` quando há efeito a aplicar; ``False`` quando ``novo`` já é o
        status atual de uma ordem não terminal (no-op).

    Raises:
        TerminalOrderError: ordem já concluída/cancelada.
        InvalidTransitionError: par fora da tabela de transições.
    """
    if atual.terminal:
        raise TerminalOrderError(ordem_id, atual.value)
    if novo == atual:
        return False
    if novo not in TRANSICOES[atual]:
        raise InvalidTransitionError(ordem_id, atual.value, novo.value)
    return True


def aplicar_saida_manual(item: InventoryItem, quantidade: int, origem: str = "disponivel") -> InventoryItem:
    """Aplica a política de baixa manual sobre ``item`` (em memória).

    A baixa debita a quantidade total e um único balde (``disponivel`` por
    padrão, ou ``avaria`` para descarte de material avariado). Nunca toca a
    quantidade reservada.
    """
    if origem not in ORIGENS_SAIDA:
        raise ValidationError(f"Origem de saída inválida: {origem!r}", campo="origem")
    if quantidade < 1 or quantidade > item.quantidade:
        raise InsufficientStock(item.codigo, quantidade, item.quantidade)
    balde = ORIGENS_SAIDA[origem]
    saldo = getattr(item, balde)
    if quantidade > saldo:
        raise InsufficientStock(item.codigo, quantidade, saldo)
    item.quantidade -= quantidade
    setattr(item, balde, saldo - quantidade)
    validar_item(item)
    return item
