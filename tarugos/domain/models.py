# tarugos/domain/models.py
"""
Modelos (dataclasses) do domínio.

Observação importante:
- Os casos de uso aceitam rascunhos em dicionário (entrada de estoque,
  patches de edição); as dataclasses representam o estado persistido
  e são o que os repositórios devolvem.
- A posição é sempre um ``StoragePosition``; não existe representação
  alternativa com ``position_column``/``position_floor`` fora do banco.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from tarugos.domain.errors import ValidationError


class TipoItem(str, Enum):
    TARUGO = "tarugo"
    LINGOTE = "lingote"


class ItemStatus(str, Enum):
    DISPONIVEL = "disponivel"
    INDISPONIVEL = "indisponivel"
    RESERVADO = "reservado"
    AVARIA = "avaria"


class OrdemStatus(str, Enum):
    EM_SEPARACAO = "em_separacao"
    AGUARDANDO_ENVIO = "aguardando_envio"
    CONCLUIDA = "concluida"
    CANCELADA = "cancelada"

    @property
    def terminal(self) -> bool:
        return self in (OrdemStatus.CONCLUIDA, OrdemStatus.CANCELADA)


class TipoMovimento(str, Enum):
    ENTRADA = "entrada"
    SAIDA = "saida"


TEMPERA_OPTIONS = ("H14", "H16", "H18", "H24", "H26", "O", "T6")

ITEM_TYPE_LABELS = {
    TipoItem.TARUGO: "Tarugo",
    TipoItem.LINGOTE: "Lingote",
}

ORDEM_STATUS_LABELS = {
    OrdemStatus.EM_SEPARACAO: "Em Separação",
    OrdemStatus.AGUARDANDO_ENVIO: "Aguardando Envio",
    OrdemStatus.CONCLUIDA: "Concluída",
    OrdemStatus.CANCELADA: "Cancelada",
}


@dataclass(frozen=True, order=True)
class StoragePosition:
    """Endereço na torre: coluna (letra) + andar (inteiro positivo)."""
    column: str
    floor: int

    def __post_init__(self) -> None:
        if not isinstance(self.column, str) or len(self.column) != 1 or not self.column.isalpha() or not self.column.isupper():
            raise ValidationError(f"Coluna inválida: {self.column!r}", campo="column")
        if isinstance(self.floor, bool) or not isinstance(self.floor, int) or self.floor < 1:
            raise ValidationError(f"Andar inválido: {self.floor!r}", campo="floor")

    def __str__(self) -> str:
        return f"{self.column}{self.floor}"


@dataclass
class ItemAttributes:
    """Atributos físicos (mm / polegadas). Nenhum afeta o razão de quantidades."""
    largura: Optional[float] = None
    altura: Optional[float] = None
    espessura: Optional[float] = None
    tempera: Optional[str] = None
    polegada: Optional[float] = None


@dataclass
class Usuario:
    """Usuário que executa a operação (atribuição das movimentações)."""
    id: Optional[str] = None
    email: Optional[str] = None
    nome: Optional[str] = None

    @property
    def display_name(self) -> str:
        if self.nome:
            return self.nome
        if self.email:
            return self.email.split("@")[0]
        return "Usuário"


@dataclass
class InventoryItem:
    """Um lote de material em uma posição da torre."""
    codigo: str
    tipo: TipoItem
    position: StoragePosition
    quantidade: int
    quantidade_disponivel: int
    quantidade_reservada: int = 0
    quantidade_avaria: int = 0
    nome: Optional[str] = None
    attributes: ItemAttributes = field(default_factory=ItemAttributes)
    acabamento: Optional[str] = None
    peso_bruto: Optional[float] = None
    peso_liquido: Optional[float] = None
    observacoes: Optional[str] = None
    observacao_disponivel: Optional[str] = None
    observacao_reservado: Optional[str] = None
    observacao_avaria: Optional[str] = None
    lote_id: Optional[str] = None
    usina: Optional[str] = None
    id: Optional[str] = None
    version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def status(self) -> ItemStatus:
        from tarugos.domain.policies import derive_status
        return derive_status(self)


@dataclass
class OrdemSaidaItem:
    """Linha de uma ordem de saída.

    ``codigo``, ``tipo`` e ``position`` podem vir vazios na requisição; são
    preenchidos a partir do item vivo no momento da criação e não são
    relidos depois.
    """
    item_id: str
    quantidade: int
    codigo: Optional[str] = None
    tipo: Optional[str] = None
    position: Optional[StoragePosition] = None
    empresa: Optional[str] = None
    observacoes: Optional[str] = None
    id: Optional[int] = None
    ordem_id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class OrdemSaida:
    numero_ordem: str
    status: OrdemStatus
    itens: List[OrdemSaidaItem] = field(default_factory=list)
    observacoes: Optional[str] = None
    usuario_id: Optional[str] = None
    usuario_nome: Optional[str] = None
    usuario_email: Optional[str] = None
    id: Optional[str] = None
    data_emissao: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class StockMovement:
    """Registro de auditoria. Nunca é alterado depois de gravado."""
    item_id: str
    tipo: TipoMovimento
    quantidade: int
    position: StoragePosition
    codigo: Optional[str] = None
    observacoes: Optional[str] = None
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    id: Optional[int] = None
    timestamp: Optional[datetime] = None
