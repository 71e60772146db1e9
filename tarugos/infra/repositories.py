# tarugos/infra/repositories.py
"""
Repositórios (DAO) para acesso e manipulação de dados no SQLite.

Classes:
- TowerConfigRepo
- InventoryRepo
- OrdemRepo
- MovimentoRepo
- SequenciaRepo
- ReportLogRepo

Todos recebem uma conexão aberta (``connect``/``transaction``) em vez do
caminho do banco: um caso de uso combina vários repositórios dentro da
mesma transação e confirma tudo de uma vez.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from tarugos.domain.errors import ConcurrencyError, NotFoundError, QuantityMismatchError, ValidationError
from tarugos.domain.models import (
    InventoryItem,
    ItemAttributes,
    OrdemSaida,
    OrdemSaidaItem,
    OrdemStatus,
    StockMovement,
    StoragePosition,
    TipoItem,
    TipoMovimento,
    Usuario,
)
from tarugos.domain.torre import TowerConfig


# -------------------------
# Helpers
# -------------------------

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None


def _dt(s: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(s) if s else None


def _position(row: sqlite3.Row) -> StoragePosition:
    return StoragePosition(row["position_column"], int(row["position_floor"]))


# -------------------------
# Torre
# -------------------------

class TowerConfigRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def load(self) -> TowerConfig:
        cur = self.conn.execute("SELECT column_name, floors FROM tower_config ORDER BY column_name")
        return {row["column_name"]: list(json.loads(row["floors"])) for row in cur.fetchall()}

    def replace(self, config: TowerConfig) -> None:
        """Grava ``config`` por inteiro: remove colunas ausentes e faz upsert das demais."""
        colunas = list(config.keys())
        if colunas:
            marks = ",".join("?" for _ in colunas)
            self.conn.execute(f"DELETE FROM tower_config WHERE column_name NOT IN ({marks})", colunas)
        else:
            self.conn.execute("DELETE FROM tower_config")
        self.conn.executemany(
            """
            INSERT INTO tower_config (column_name, floors)
            VALUES (?, ?)
            ON CONFLICT(column_name) DO UPDATE SET floors=excluded.floors
            """,
            [(col, json.dumps(list(floors))) for col, floors in config.items()],
        )


# -------------------------
# Itens de estoque
# -------------------------

class InventoryRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @staticmethod
    def _from_row(row: sqlite3.Row) -> InventoryItem:
        return InventoryItem(
            id=row["id"],
            codigo=row["codigo"],
            nome=row["nome"],
            tipo=TipoItem(row["tipo"]),
            attributes=ItemAttributes(
                largura=row["largura"],
                altura=row["altura"],
                espessura=row["espessura"],
                tempera=row["tempera"],
                polegada=row["polegada"],
            ),
            acabamento=row["acabamento"],
            peso_bruto=row["peso_bruto"],
            peso_liquido=row["peso_liquido"],
            quantidade=row["quantidade"],
            quantidade_disponivel=row["quantidade_disponivel"],
            quantidade_reservada=row["quantidade_reservada"],
            quantidade_avaria=row["quantidade_avaria"],
            position=_position(row),
            observacoes=row["observacoes"],
            observacao_disponivel=row["observacao_disponivel"],
            observacao_reservado=row["observacao_reservado"],
            observacao_avaria=row["observacao_avaria"],
            lote_id=row["lote_id"],
            usina=row["usina"],
            version=row["version"],
            created_at=_dt(row["created_at"]),
            updated_at=_dt(row["updated_at"]),
        )

    @staticmethod
    def _to_row(item: InventoryItem) -> Dict[str, Any]:
        attrs = item.attributes or ItemAttributes()
        return {
            "id": item.id,
            "codigo": item.codigo,
            "nome": item.nome,
            "tipo": TipoItem(item.tipo).value,
            "largura": attrs.largura,
            "altura": attrs.altura,
            "espessura": attrs.espessura,
            "tempera": attrs.tempera,
            "polegada": attrs.polegada,
            "acabamento": item.acabamento,
            "peso_bruto": item.peso_bruto,
            "peso_liquido": item.peso_liquido,
            "quantidade": item.quantidade,
            "quantidade_disponivel": item.quantidade_disponivel,
            "quantidade_reservada": item.quantidade_reservada,
            "quantidade_avaria": item.quantidade_avaria,
            "position_column": item.position.column,
            "position_floor": item.position.floor,
            "status": item.status.value,
            "observacoes": item.observacoes,
            "observacao_disponivel": item.observacao_disponivel,
            "observacao_reservado": item.observacao_reservado,
            "observacao_avaria": item.observacao_avaria,
            "lote_id": item.lote_id,
            "usina": item.usina,
            "version": item.version,
            "created_at": _iso(item.created_at),
            "updated_at": _iso(item.updated_at),
        }

    def get(self, item_id: str) -> Optional[InventoryItem]:
        row = self.conn.execute("SELECT * FROM inventory_items WHERE id = ?", (item_id,)).fetchone()
        return self._from_row(row) if row else None

    def require(self, item_id: str) -> InventoryItem:
        item = self.get(item_id)
        if item is None:
            raise NotFoundError("Item", item_id)
        return item

    def list(self) -> List[InventoryItem]:
        cur = self.conn.execute("SELECT * FROM inventory_items ORDER BY created_at DESC, rowid DESC")
        return [self._from_row(r) for r in cur.fetchall()]

    def at_position(self, position: StoragePosition) -> List[InventoryItem]:
        cur = self.conn.execute(
            "SELECT * FROM inventory_items WHERE position_column = ? AND position_floor = ? ORDER BY created_at",
            (position.column, position.floor),
        )
        return [self._from_row(r) for r in cur.fetchall()]

    def occupied_positions(self) -> Dict[StoragePosition, int]:
        """Posição → número de itens nela."""
        cur = self.conn.execute(
            """SELECT position_column, position_floor, COUNT(*) AS n
               FROM inventory_items GROUP BY position_column, position_floor"""
        )
        return {_position(r): r["n"] for r in cur.fetchall()}

    def insert(self, item: InventoryItem) -> InventoryItem:
        now = utcnow()
        item.id = item.id or uuid.uuid4().hex
        item.version = 0
        item.created_at = item.created_at or now
        item.updated_at = now
        row = self._to_row(item)
        cols = ",".join(row.keys())
        vals = ",".join(f":{k}" for k in row.keys())
        try:
            self.conn.execute(f"INSERT INTO inventory_items ({cols}) VALUES ({vals})", row)
        except sqlite3.IntegrityError:
            soma = item.quantidade_disponivel + item.quantidade_reservada + item.quantidade_avaria
            raise QuantityMismatchError(soma=soma, esperado=item.quantidade, item_id=item.id)
        return item

    def update(self, item: InventoryItem) -> InventoryItem:
        """Grava ``item`` se a versão no banco ainda for ``item.version`` (compare-and-swap)."""
        row = self._to_row(item)
        row["updated_at"] = _iso(utcnow())
        expected = row.pop("version")
        row.pop("created_at")
        sets = ",".join(f"{k}=:{k}" for k in row.keys() if k != "id")
        try:
            cur = self.conn.execute(
                f"UPDATE inventory_items SET {sets}, version = version + 1 "
                "WHERE id = :id AND version = :expected_version",
                {**row, "expected_version": expected},
            )
        except sqlite3.IntegrityError:
            soma = item.quantidade_disponivel + item.quantidade_reservada + item.quantidade_avaria
            raise QuantityMismatchError(soma=soma, esperado=item.quantidade, item_id=item.id)
        if cur.rowcount != 1:
            raise ConcurrencyError("Item", item.id)
        item.version = expected + 1
        item.updated_at = _dt(row["updated_at"])
        return item

    def delete(self, item: InventoryItem) -> None:
        cur = self.conn.execute(
            "DELETE FROM inventory_items WHERE id = ? AND version = ?",
            (item.id, item.version),
        )
        if cur.rowcount != 1:
            raise ConcurrencyError("Item", item.id)


# -------------------------
# Ordens de saída
# -------------------------

class OrdemRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @staticmethod
    def _item_from_row(row: sqlite3.Row) -> OrdemSaidaItem:
        return OrdemSaidaItem(
            id=row["id"],
            ordem_id=row["ordem_id"],
            item_id=row["item_id"],
            codigo=row["codigo"],
            tipo=row["tipo"],
            quantidade=row["quantidade"],
            position=_position(row),
            empresa=row["empresa"],
            observacoes=row["observacoes"],
            created_at=_dt(row["created_at"]),
        )

    def _itens(self, ordem_id: str) -> List[OrdemSaidaItem]:
        cur = self.conn.execute(
            "SELECT * FROM ordens_saida_itens WHERE ordem_id = ? ORDER BY id", (ordem_id,)
        )
        return [self._item_from_row(r) for r in cur.fetchall()]

    def _from_row(self, row: sqlite3.Row) -> OrdemSaida:
        return OrdemSaida(
            id=row["id"],
            numero_ordem=row["numero_ordem"],
            data_emissao=_dt(row["data_emissao"]),
            usuario_id=row["usuario_id"],
            usuario_nome=row["usuario_nome"],
            usuario_email=row["usuario_email"],
            status=OrdemStatus(row["status"]),
            observacoes=row["observacoes"],
            created_at=_dt(row["created_at"]),
            updated_at=_dt(row["updated_at"]),
            itens=self._itens(row["id"]),
        )

    def get(self, ordem_id: str) -> Optional[OrdemSaida]:
        row = self.conn.execute("SELECT * FROM ordens_saida WHERE id = ?", (ordem_id,)).fetchone()
        return self._from_row(row) if row else None

    def require(self, ordem_id: str) -> OrdemSaida:
        ordem = self.get(ordem_id)
        if ordem is None:
            raise NotFoundError("Ordem", ordem_id)
        return ordem

    def get_status(self, ordem_id: str) -> OrdemStatus:
        row = self.conn.execute("SELECT status FROM ordens_saida WHERE id = ?", (ordem_id,)).fetchone()
        if row is None:
            raise NotFoundError("Ordem", ordem_id)
        return OrdemStatus(row["status"])

    def list(self, status: Optional[OrdemStatus] = None) -> List[OrdemSaida]:
        sql = "SELECT * FROM ordens_saida"
        params: tuple = ()
        if status is not None:
            sql += " WHERE status = ?"
            params = (OrdemStatus(status).value,)
        sql += " ORDER BY data_emissao DESC, rowid DESC"
        return [self._from_row(r) for r in self.conn.execute(sql, params).fetchall()]

    def insert(self, ordem: OrdemSaida) -> OrdemSaida:
        now = utcnow()
        ordem.id = ordem.id or uuid.uuid4().hex
        ordem.data_emissao = ordem.data_emissao or now
        ordem.created_at = now
        ordem.updated_at = now
        try:
            self.conn.execute(
                """
                INSERT INTO ordens_saida
                    (id, numero_ordem, data_emissao, usuario_id, usuario_nome, usuario_email,
                     status, observacoes, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    ordem.id, ordem.numero_ordem, _iso(ordem.data_emissao), ordem.usuario_id,
                    ordem.usuario_nome, ordem.usuario_email, ordem.status.value, ordem.observacoes,
                    _iso(ordem.created_at), _iso(ordem.updated_at),
                ),
            )
        except sqlite3.IntegrityError:
            raise ValidationError(f"Número de ordem já existe: {ordem.numero_ordem}", campo="numero_ordem")
        for linha in ordem.itens:
            linha.ordem_id = ordem.id
            linha.created_at = now
            cur = self.conn.execute(
                """
                INSERT INTO ordens_saida_itens
                    (ordem_id, item_id, codigo, tipo, quantidade, position_column,
                     position_floor, empresa, observacoes, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    ordem.id, linha.item_id, linha.codigo, linha.tipo, linha.quantidade,
                    linha.position.column, linha.position.floor, linha.empresa,
                    linha.observacoes, _iso(now),
                ),
            )
            linha.id = cur.lastrowid
        return ordem

    def update_header(self, ordem: OrdemSaida) -> None:
        ordem.updated_at = utcnow()
        self.conn.execute(
            "UPDATE ordens_saida SET status = ?, observacoes = ?, updated_at = ? WHERE id = ?",
            (ordem.status.value, ordem.observacoes, _iso(ordem.updated_at), ordem.id),
        )

    def update_item(self, linha: OrdemSaidaItem) -> None:
        self.conn.execute(
            """
            UPDATE ordens_saida_itens
               SET codigo = ?, tipo = ?, quantidade = ?, observacoes = ?, empresa = ?
             WHERE id = ? AND ordem_id = ?
            """,
            (linha.codigo, linha.tipo, linha.quantidade, linha.observacoes,
             linha.empresa, linha.id, linha.ordem_id),
        )


# -------------------------
# Movimentações
# -------------------------

class MovimentoRepo:
    """Somente inserção e leitura; o schema rejeita UPDATE/DELETE."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @staticmethod
    def _from_row(row: sqlite3.Row) -> StockMovement:
        return StockMovement(
            id=row["id"],
            item_id=row["item_id"],
            codigo=row["codigo"],
            tipo=TipoMovimento(row["tipo"]),
            quantidade=row["quantidade"],
            position=_position(row),
            observacoes=row["observacoes"],
            user_id=row["user_id"],
            user_name=row["user_name"],
            user_email=row["user_email"],
            timestamp=_dt(row["timestamp"]),
        )

    def insert(self, mov: StockMovement) -> StockMovement:
        mov.timestamp = mov.timestamp or utcnow()
        cur = self.conn.execute(
            """
            INSERT INTO stock_movements
                (item_id, codigo, tipo, quantidade, position_column, position_floor,
                 observacoes, user_id, user_name, user_email, timestamp)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                mov.item_id, mov.codigo, TipoMovimento(mov.tipo).value, mov.quantidade,
                mov.position.column, mov.position.floor, mov.observacoes, mov.user_id,
                mov.user_name, mov.user_email, _iso(mov.timestamp),
            ),
        )
        mov.id = cur.lastrowid
        return mov

    def list(
        self,
        inicio: Optional[datetime] = None,
        fim: Optional[datetime] = None,
        item_id: Optional[str] = None,
        tipo: Optional[TipoMovimento] = None,
    ) -> List[StockMovement]:
        where: List[str] = []
        params: List[Any] = []
        if inicio is not None:
            where.append("timestamp >= ?")
            params.append(_iso(inicio))
        if fim is not None:
            where.append("timestamp <= ?")
            params.append(_iso(fim))
        if item_id is not None:
            where.append("item_id = ?")
            params.append(item_id)
        if tipo is not None:
            where.append("tipo = ?")
            params.append(TipoMovimento(tipo).value)
        sql = "SELECT * FROM stock_movements"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY timestamp DESC, id DESC"
        return [self._from_row(r) for r in self.conn.execute(sql, params).fetchall()]


# -------------------------
# Sequências
# -------------------------

class SequenciaRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def proximo(self, nome: str) -> int:
        """Incrementa e devolve o contador ``nome`` (começa em 1)."""
        cur = self.conn.execute("UPDATE sequencias SET valor = valor + 1 WHERE nome = ?", (nome,))
        if cur.rowcount == 0:
            self.conn.execute("INSERT INTO sequencias (nome, valor) VALUES (?, 1)", (nome,))
        return self.conn.execute("SELECT valor FROM sequencias WHERE nome = ?", (nome,)).fetchone()[0]


# -------------------------
# Logs de relatório
# -------------------------

class ReportLogRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def insert(self, report_type: str, usuario: Optional[Usuario] = None) -> None:
        usuario = usuario or Usuario()
        self.conn.execute(
            """
            INSERT INTO report_logs (report_type, user_id, user_name, user_email, timestamp)
            VALUES (?, ?, ?, ?, ?)
            """,
            (report_type, usuario.id, usuario.display_name, usuario.email, _iso(utcnow())),
        )

    def list(self) -> List[Dict[str, Any]]:
        cur = self.conn.execute(
            "SELECT report_type, user_id, user_name, user_email, timestamp FROM report_logs ORDER BY id DESC"
        )
        cols = [d[0] for d in cur.description]
        return [dict(zip(cols, row)) for row in cur.fetchall()]
