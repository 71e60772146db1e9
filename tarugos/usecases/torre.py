# tarugos/usecases/torre.py
"""
UC: Configuração e ocupação da torre.
- carregar_torre(): configuração vigente (ou a grade padrão 8x4).
- configurar_torre(): substitui a configuração, tudo-ou-nada, recusando
  remover posições que ainda têm estoque.
- mapa_ocupacao(): todas as posições configuradas com os itens de cada uma.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Dict, Iterable, List, Mapping, Optional

from tarugos.config import DB_PATH
from tarugos.domain.errors import EstoqueError, PositionOccupied, ValidationError
from tarugos.domain.models import StoragePosition, Usuario
from tarugos.domain.torre import (
    TowerConfig,
    default_config,
    is_valid,
    list_available,
    normalizar,
    removed_positions,
)
from tarugos.infra.db import connect, transaction
from tarugos.infra.eventos import TORRE_CONFIGURADA, EventBus, Evento, bus as default_bus
from tarugos.infra.logger import log_database_operation, log_system_event, log_transaction
from tarugos.infra.repositories import InventoryRepo, TowerConfigRepo


def config_vigente(conn: sqlite3.Connection) -> TowerConfig:
    """Configuração gravada; sem linhas na tabela vale a grade padrão."""
    return TowerConfigRepo(conn).load() or default_config()


def validar_posicao(conn: sqlite3.Connection, position: StoragePosition) -> None:
    """Recusa posições fora da configuração vigente."""
    if not is_valid(config_vigente(conn), position):
        raise ValidationError(f"Posição {position} não existe na torre", campo="position")


def carregar_torre(db_path: str = DB_PATH) -> TowerConfig:
    with connect(db_path) as c:
        return config_vigente(c)


def configurar_torre(
    nova: Mapping[str, Iterable[int]],
    usuario: Optional[Usuario] = None,
    db_path: str = DB_PATH,
    bus: EventBus = default_bus,
) -> TowerConfig:
    """Substitui a configuração da torre.

    Cada posição que deixa de existir é conferida contra os itens atuais;
    se alguma estiver ocupada nada é gravado.

    Raises:
        PositionOccupied: com todas as posições removidas que têm itens.
        ValidationError: configuração malformada.
    """
    usuario = usuario or Usuario()
    log_system_event("configurar_torre_start", {"colunas": sorted(nova.keys())})
    try:
        config = normalizar(nova)
        with transaction(db_path) as c:
            atual = config_vigente(c)
            removidas = removed_positions(atual, config)
            ocupadas = InventoryRepo(c).occupied_positions()
            conflitos = [p for p in removidas if p in ocupadas]
            if conflitos:
                raise PositionOccupied(conflitos)
            TowerConfigRepo(c).replace(config)
            log_database_operation("tower_config", "REPLACE", len(config), removidas=len(removidas))
    except EstoqueError as e:
        log_transaction("configurar_torre", {"config": dict(nova)}, error=str(e))
        raise

    log_transaction("configurar_torre", {"config": config, "usuario": usuario.display_name}, result="success")
    bus.publish(Evento(TORRE_CONFIGURADA, {"config": config, "removidas": sorted(str(p) for p in removidas)}))
    return config


def mapa_ocupacao(db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    """Uma entrada por posição configurada: ``{"position", "occupied", "items"}``.

    Itens em posições que saíram da configuração não aparecem aqui, mas
    continuam válidos (só novas entradas exigem posição configurada).
    """
    with connect(db_path) as c:
        config = config_vigente(c)
        itens = InventoryRepo(c).list()
    por_posicao: Dict[StoragePosition, list] = {}
    for item in itens:
        por_posicao.setdefault(item.position, []).append(item)
    return [
        {"position": p, "occupied": bool(por_posicao.get(p)), "items": por_posicao.get(p, [])}
        for p in list_available(config)
    ]
