# tarugos/infra/migrations.py
"""
Migrações de schema usando PRAGMA user_version.

V1: tabelas base (torre, itens, ordens, movimentações, sequências, logs de relatório)
V2: gatilhos que tornam ``stock_movements`` somente-inserção + índices
"""

from __future__ import annotations

from typing import List
from .db import connect


SCHEMA_V1: List[str] = [
    # Configuração da torre: uma linha por coluna, andares em JSON
    """
    CREATE TABLE IF NOT EXISTS tower_config (
        column_name TEXT PRIMARY KEY,
        floors TEXT NOT NULL
    );
    """,
    # Itens de estoque. Os CHECKs repetem o invariante dos baldes no banco.
    """
    CREATE TABLE IF NOT EXISTS inventory_items (
        id TEXT PRIMARY KEY,
        codigo TEXT NOT NULL,
        nome TEXT,
        tipo TEXT NOT NULL CHECK (tipo IN ('tarugo', 'lingote')),
        largura REAL,
        altura REAL,
        espessura REAL,
        tempera TEXT,
        polegada REAL,
        acabamento TEXT,
        peso_bruto REAL,
        peso_liquido REAL,
        quantidade INTEGER NOT NULL CHECK (quantidade >= 0),
        quantidade_disponivel INTEGER NOT NULL DEFAULT 0 CHECK (quantidade_disponivel >= 0),
        quantidade_reservada INTEGER NOT NULL DEFAULT 0 CHECK (quantidade_reservada >= 0),
        quantidade_avaria INTEGER NOT NULL DEFAULT 0 CHECK (quantidade_avaria >= 0),
        position_column TEXT NOT NULL,
        position_floor INTEGER NOT NULL CHECK (position_floor >= 1),
        status TEXT NOT NULL,
        observacoes TEXT,
        observacao_disponivel TEXT,
        observacao_reservado TEXT,
        observacao_avaria TEXT,
        lote_id TEXT,
        usina TEXT,
        version INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        CHECK (quantidade_disponivel + quantidade_reservada + quantidade_avaria = quantidade)
    );
    """,
    # Ordens de saída
    """
    CREATE TABLE IF NOT EXISTS ordens_saida (
        id TEXT PRIMARY KEY,
        numero_ordem TEXT NOT NULL UNIQUE,
        data_emissao TEXT NOT NULL,
        usuario_id TEXT,
        usuario_nome TEXT,
        usuario_email TEXT,
        status TEXT NOT NULL CHECK (status IN ('em_separacao', 'aguardando_envio', 'concluida', 'cancelada')),
        observacoes TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    """,
    # Linhas da ordem: item_id sem FK, o item some quando a ordem é concluída
    """
    CREATE TABLE IF NOT EXISTS ordens_saida_itens (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        ordem_id TEXT NOT NULL,
        item_id TEXT NOT NULL,
        codigo TEXT NOT NULL,
        tipo TEXT NOT NULL,
        quantidade INTEGER NOT NULL CHECK (quantidade > 0),
        position_column TEXT NOT NULL,
        position_floor INTEGER NOT NULL,
        empresa TEXT,
        observacoes TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (ordem_id) REFERENCES ordens_saida(id) ON DELETE CASCADE
    );
    """,
    # Movimentações (auditoria)
    """
    CREATE TABLE IF NOT EXISTS stock_movements (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        item_id TEXT NOT NULL,
        codigo TEXT,
        tipo TEXT NOT NULL CHECK (tipo IN ('entrada', 'saida')),
        quantidade INTEGER NOT NULL CHECK (quantidade > 0),
        position_column TEXT NOT NULL,
        position_floor INTEGER NOT NULL,
        observacoes TEXT,
        user_id TEXT,
        user_name TEXT,
        user_email TEXT,
        timestamp TEXT NOT NULL
    );
    """,
    # Contadores nomeados (número da ordem)
    """
    CREATE TABLE IF NOT EXISTS sequencias (
        nome TEXT PRIMARY KEY,
        valor INTEGER NOT NULL
    );
    """,
    # Registro de geração de relatórios
    """
    CREATE TABLE IF NOT EXISTS report_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        report_type TEXT NOT NULL,
        user_id TEXT,
        user_name TEXT,
        user_email TEXT,
        timestamp TEXT NOT NULL
    );
    """,
]

SCHEMA_V2: List[str] = [
    """
    CREATE TRIGGER IF NOT EXISTS trg_stock_movements_no_update
    BEFORE UPDATE ON stock_movements
    BEGIN
        SELECT RAISE(ABORT, 'stock_movements é somente-inserção');
    END;
    """,
    """
    CREATE TRIGGER IF NOT EXISTS trg_stock_movements_no_delete
    BEFORE DELETE ON stock_movements
    BEGIN
        SELECT RAISE(ABORT, 'stock_movements é somente-inserção');
    END;
    """,
    "CREATE INDEX IF NOT EXISTS idx_items_position ON inventory_items(position_column, position_floor);",
    "CREATE INDEX IF NOT EXISTS idx_items_codigo ON inventory_items(codigo);",
    "CREATE INDEX IF NOT EXISTS idx_mov_timestamp ON stock_movements(timestamp);",
    "CREATE INDEX IF NOT EXISTS idx_mov_item ON stock_movements(item_id);",
    "CREATE INDEX IF NOT EXISTS idx_ordem_itens_ordem ON ordens_saida_itens(ordem_id);",
]


def _apply_v1(conn) -> None:
    for sql in SCHEMA_V1:
        conn.executescript(sql)


def _apply_v2(conn) -> None:
    for sql in SCHEMA_V2:
        conn.executescript(sql)


def apply_migrations(db_path: str) -> None:
    """Aplica migrações incrementais de acordo com PRAGMA user_version."""
    with connect(db_path) as conn:
        ver = conn.execute("PRAGMA user_version;").fetchone()[0] or 0

        if ver < 1:
            _apply_v1(conn)
            conn.execute("PRAGMA user_version = 1;")
            ver = 1

        if ver < 2:
            _apply_v2(conn)
            conn.execute("PRAGMA user_version = 2;")
            ver = 2
