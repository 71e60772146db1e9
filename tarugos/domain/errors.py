# tarugos/domain/errors.py
"""
Erros tipados do razão de estoque e de ordens de saída.

Todo erro herda de ``EstoqueError`` e carrega:
- ``code``: identificador estável (atributo de classe), seguro para APIs/UI;
- atributos estruturados com o contexto (código do item, somas, posições...).

Quem chama (CLI, UI) decide a mensagem para o usuário; os testes comparam
pelo tipo, nunca pelo texto.

    EstoqueError
    +-- ValidationError
    +-- QuantityMismatchError
    +-- InsufficientStock
    +-- PositionOccupied
    +-- TerminalOrderError
    |   +-- InvalidTransitionError
    +-- NotFoundError
    +-- ConcurrencyError
"""

from __future__ import annotations

from typing import Iterable, Optional


class EstoqueError(Exception):
    """Base de todos os erros do domínio."""

    code: str = "ESTOQUE_ERROR"

    def to_dict(self) -> dict:
        data = {k: v for k, v in vars(self).items() if not k.startswith("_")}
        return {"code": self.code, "message": str(self), **data}


class ValidationError(EstoqueError):
    """Campo obrigatório ausente ou malformado."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, campo: Optional[str] = None):
        self.campo = campo
        super().__init__(message)


class QuantityMismatchError(EstoqueError):
    """disponível + reservada + avaria != quantidade."""

    code: str = "QUANTITY_MISMATCH"

    def __init__(self, soma: int, esperado: int, item_id: Optional[str] = None):
        self.soma = soma
        self.esperado = esperado
        self.item_id = item_id
        super().__init__(
            f"A soma das quantidades ({soma}) deve ser igual à quantidade total ({esperado})"
        )


class InsufficientStock(EstoqueError):
    """Quantidade pedida maior que a disponível."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, codigo: Optional[str], solicitado: int, disponivel: int):
        self.codigo = codigo
        self.solicitado = solicitado
        self.disponivel = disponivel
        self.faltante = solicitado - disponivel
        super().__init__(
            f"Quantidade insuficiente disponível para o item {codigo}: "
            f"solicitado {solicitado}, disponível {disponivel}"
        )


class PositionOccupied(EstoqueError):
    """Posição (ou coluna) ainda tem estoque."""

    code: str = "POSITION_OCCUPIED"

    def __init__(self, posicoes: Iterable[object]):
        self.posicoes = sorted(str(p) for p in posicoes)
        super().__init__(f"Posições ocupadas: {', '.join(self.posicoes)}")


class TerminalOrderError(EstoqueError):
    """Ordem concluída ou cancelada não aceita mais alterações."""

    code: str = "TERMINAL_ORDER"

    def __init__(self, ordem_id: Optional[str], status: str, message: Optional[str] = None):
        self.ordem_id = ordem_id
        self.status = status
        super().__init__(
            message
            or f"Ordens concluídas ou canceladas não podem ser alteradas (ordem {ordem_id}: {status})"
        )


class InvalidTransitionError(TerminalOrderError):
    """Transição fora da tabela de estados, a partir de um estado não terminal."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, ordem_id: Optional[str], de: str, para: str):
        self.de = de
        self.para = para
        super().__init__(ordem_id, de, f"Transição não permitida: {de} -> {para}")


class NotFoundError(EstoqueError):
    """Item ou ordem inexistente."""

    code: str = "NOT_FOUND"

    def __init__(self, entidade: str, id: object):
        self.entidade = entidade
        self.id = id
        super().__init__(f"{entidade} não encontrado(a): {id}")


class ConcurrencyError(EstoqueError):
    """Registro alterado por outra sessão entre a leitura e a escrita."""

    code: str = "CONCURRENT_UPDATE"

    def __init__(self, entidade: str, id: object):
        self.entidade = entidade
        self.id = id
        super().__init__(f"{entidade} {id} foi alterado(a) por outra operação; tente novamente")
