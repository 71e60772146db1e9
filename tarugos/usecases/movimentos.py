# tarugos/usecases/movimentos.py
"""
UC: Livro de movimentações (somente inserção).
- registrar_movimento(): grava uma entrada/saída dentro da transação de quem chama.
- listar_movimentos(): consulta por intervalo de datas, item e tipo.

Não existe operação de alteração ou exclusão; o schema rejeita ambas.
"""

from __future__ import annotations

import sqlite3
from datetime import date, datetime, time, timezone
from typing import List, Optional, Union

from tarugos.config import DB_PATH
from tarugos.domain.models import StockMovement, StoragePosition, TipoMovimento, Usuario
from tarugos.infra.db import connect
from tarugos.infra.logger import log_database_operation
from tarugos.infra.repositories import MovimentoRepo


DataLike = Union[date, datetime, str, None]


def registrar_movimento(
    conn: sqlite3.Connection,
    item_id: str,
    tipo: TipoMovimento,
    quantidade: int,
    position: StoragePosition,
    usuario: Optional[Usuario] = None,
    observacoes: Optional[str] = None,
    codigo: Optional[str] = None,
) -> StockMovement:
    """Grava uma movimentação na transação aberta em ``conn``."""
    usuario = usuario or Usuario()
    mov = StockMovement(
        item_id=item_id,
        codigo=codigo,
        tipo=TipoMovimento(tipo),
        quantidade=quantidade,
        position=position,
        observacoes=observacoes,
        user_id=usuario.id,
        user_name=usuario.display_name,
        user_email=usuario.email,
    )
    MovimentoRepo(conn).insert(mov)
    log_database_operation("stock_movements", "INSERT", 1, item_id=item_id, tipo=mov.tipo.value, quantidade=quantidade)
    return mov


def _limite(valor: DataLike, fim: bool) -> Optional[datetime]:
    """Normaliza um limite do intervalo para datetime UTC.

    Datas sem horário cobrem o dia inteiro (00:00 no início, 23:59:59.999999 no fim).
    """
    if valor is None:
        return None
    if isinstance(valor, str):
        valor = datetime.fromisoformat(valor) if "T" in valor or " " in valor else date.fromisoformat(valor)
    if not isinstance(valor, datetime):
        valor = datetime.combine(valor, time.max if fim else time.min)
    if valor.tzinfo is None:
        valor = valor.replace(tzinfo=timezone.utc)
    return valor.astimezone(timezone.utc)


def listar_movimentos(
    inicio: DataLike = None,
    fim: DataLike = None,
    item_id: Optional[str] = None,
    tipo: Optional[TipoMovimento] = None,
    db_path: str = DB_PATH,
) -> List[StockMovement]:
    """Movimentações mais recentes primeiro, filtradas pelos critérios informados."""
    with connect(db_path) as c:
        movs = MovimentoRepo(c).list(
            inicio=_limite(inicio, fim=False),
            fim=_limite(fim, fim=True),
            item_id=item_id,
            tipo=tipo,
        )
    log_database_operation("stock_movements", "SELECT", len(movs), item_id=item_id)
    return movs
