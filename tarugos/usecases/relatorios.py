# tarugos/usecases/relatorios.py
"""
Relatórios do estoque em DataFrames (pandas):
- estoque atual (um registro por item, com os três baldes e o status)
- entradas por período
- movimentações por período (entradas e saídas)
- ordens de saída (uma linha por item da ordem)
- resumo geral (totais e ocupação da torre)

Cada geração fica registrada em ``report_logs``. ``exportar_csv`` grava
qualquer um deles em disco.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from tarugos.config import DB_PATH
from tarugos.domain.models import (
    ITEM_TYPE_LABELS,
    ORDEM_STATUS_LABELS,
    OrdemStatus,
    TipoMovimento,
    Usuario,
)
from tarugos.infra.db import connect
from tarugos.infra.logger import (
    log_database_operation, log_file_operation, log_system_event, system_logger
)
from tarugos.infra.repositories import InventoryRepo, OrdemRepo, ReportLogRepo
from tarugos.usecases.movimentos import DataLike, listar_movimentos
from tarugos.usecases.torre import mapa_ocupacao


COLUNAS_ESTOQUE = [
    "codigo", "nome", "tipo", "posicao", "quantidade", "disponivel", "reservada",
    "avaria", "status", "largura", "altura", "espessura", "tempera", "polegada",
    "acabamento", "peso_bruto", "peso_liquido", "lote_id", "usina", "created_at",
]
COLUNAS_MOVIMENTOS = [
    "timestamp", "tipo", "codigo", "item_id", "quantidade", "posicao", "observacoes", "usuario",
]
COLUNAS_ORDENS = [
    "numero_ordem", "data_emissao", "status", "usuario", "codigo", "tipo", "posicao",
    "quantidade", "empresa", "observacoes",
]


def _registrar(report_type: str, usuario: Optional[Usuario], db_path: str) -> None:
    with connect(db_path) as c:
        ReportLogRepo(c).insert(report_type, usuario)
    log_database_operation("report_logs", "INSERT", 1, report_type=report_type)


# ----------------------
# Estoque
# ----------------------

def relatorio_estoque(usuario: Optional[Usuario] = None, db_path: str = DB_PATH) -> pd.DataFrame:
    """Posição atual do estoque, ordenada por posição e código."""
    log_system_event("relatorio_estoque_start", {"db_path": db_path})
    with connect(db_path) as c:
        itens = InventoryRepo(c).list()
    rows = [
        {
            "codigo": i.codigo,
            "nome": i.nome,
            "tipo": ITEM_TYPE_LABELS[i.tipo],
            "posicao": str(i.position),
            "quantidade": i.quantidade,
            "disponivel": i.quantidade_disponivel,
            "reservada": i.quantidade_reservada,
            "avaria": i.quantidade_avaria,
            "status": i.status.value,
            "largura": i.attributes.largura,
            "altura": i.attributes.altura,
            "espessura": i.attributes.espessura,
            "tempera": i.attributes.tempera,
            "polegada": i.attributes.polegada,
            "acabamento": i.acabamento,
            "peso_bruto": i.peso_bruto,
            "peso_liquido": i.peso_liquido,
            "lote_id": i.lote_id,
            "usina": i.usina,
            "created_at": i.created_at,
        }
        for i in sorted(itens, key=lambda i: (i.position, i.codigo))
    ]
    df = pd.DataFrame(rows, columns=COLUNAS_ESTOQUE)
    _registrar("estoque", usuario, db_path)
    system_logger.info(f"REPORT_ESTOQUE: {len(df)} itens")
    return df


def resumo_estoque(db_path: str = DB_PATH) -> Dict[str, Any]:
    """Totais por balde e ocupação das posições configuradas."""
    with connect(db_path) as c:
        itens = InventoryRepo(c).list()
    mapa = mapa_ocupacao(db_path)
    ocupadas = sum(1 for m in mapa if m["occupied"])
    return {
        "itens": len(itens),
        "quantidade": sum(i.quantidade for i in itens),
        "disponivel": sum(i.quantidade_disponivel for i in itens),
        "reservada": sum(i.quantidade_reservada for i in itens),
        "avaria": sum(i.quantidade_avaria for i in itens),
        "posicoes": len(mapa),
        "posicoes_ocupadas": ocupadas,
        "posicoes_livres": len(mapa) - ocupadas,
    }


# ----------------------
# Movimentações
# ----------------------

def relatorio_movimentacoes(
    inicio: DataLike = None,
    fim: DataLike = None,
    tipo: Optional[Union[TipoMovimento, str]] = None,
    usuario: Optional[Usuario] = None,
    db_path: str = DB_PATH,
) -> pd.DataFrame:
    """Movimentações do período (datas inclusivas), mais recentes primeiro."""
    log_system_event("relatorio_movimentacoes_start", {"inicio": str(inicio), "fim": str(fim), "tipo": tipo})
    movs = listar_movimentos(inicio, fim, tipo=TipoMovimento(tipo) if tipo else None, db_path=db_path)
    df = pd.DataFrame(
        [
            {
                "timestamp": m.timestamp,
                "tipo": m.tipo.value,
                "codigo": m.codigo,
                "item_id": m.item_id,
                "quantidade": m.quantidade,
                "posicao": str(m.position),
                "observacoes": m.observacoes,
                "usuario": m.user_name,
            }
            for m in movs
        ],
        columns=COLUNAS_MOVIMENTOS,
    )
    _registrar("movimentacoes" if tipo is None else f"movimentacoes_{TipoMovimento(tipo).value}", usuario, db_path)
    system_logger.info(f"REPORT_MOVIMENTACOES: {len(df)} registros")
    return df


def relatorio_entradas(
    inicio: DataLike = None,
    fim: DataLike = None,
    usuario: Optional[Usuario] = None,
    db_path: str = DB_PATH,
) -> pd.DataFrame:
    """Somente as entradas do período."""
    return relatorio_movimentacoes(inicio, fim, tipo=TipoMovimento.ENTRADA, usuario=usuario, db_path=db_path)


# ----------------------
# Ordens
# ----------------------

def relatorio_ordens(
    status: Optional[Union[OrdemStatus, str]] = None,
    usuario: Optional[Usuario] = None,
    db_path: str = DB_PATH,
) -> pd.DataFrame:
    """Uma linha por item de ordem; ordens mais recentes primeiro."""
    with connect(db_path) as c:
        ordens = OrdemRepo(c).list(OrdemStatus(status) if status else None)
    rows: List[Dict[str, Any]] = []
    for o in ordens:
        for linha in o.itens:
            rows.append({
                "numero_ordem": o.numero_ordem,
                "data_emissao": o.data_emissao,
                "status": ORDEM_STATUS_LABELS[o.status],
                "usuario": o.usuario_nome,
                "codigo": linha.codigo,
                "tipo": linha.tipo,
                "posicao": str(linha.position),
                "quantidade": linha.quantidade,
                "empresa": linha.empresa,
                "observacoes": linha.observacoes,
            })
    df = pd.DataFrame(rows, columns=COLUNAS_ORDENS)
    _registrar("ordens", usuario, db_path)
    system_logger.info(f"REPORT_ORDENS: {len(ordens)} ordens, {len(df)} linhas")
    return df


# ----------------------
# Exportação e histórico
# ----------------------

def exportar_csv(df: pd.DataFrame, path: Union[str, Path]) -> Path:
    """Grava o relatório em CSV (UTF-8 com BOM, abre direto no Excel)."""
    destino = Path(path)
    destino.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(destino, index=False, encoding="utf-8-sig")
    log_file_operation("export_csv", str(destino), len(df))
    return destino


def listar_report_logs(db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    with connect(db_path) as c:
        return ReportLogRepo(c).list()
