# tarugos/usecases/ordens.py
"""
UC: Ordens de saída (separação → envio → conclusão/cancelamento).
- gerar_numero_ordem(): número sequencial único ("OS-2026-00001").
- criar_ordem(): reserva as quantidades e grava a ordem em "em_separacao".
- atualizar_ordem(): observações e linhas, enquanto a ordem não é terminal.
- atualizar_status(): aplica a tabela de transições e o efeito no estoque.
- obter_ordem() / listar_ordens(): consultas.

Efeito de cada transição sobre o item referenciado por cada linha:
    criação          disponível -= qtd; reservada += qtd
    → concluida      quantidade -= qtd; reservada -= qtd (item excluído se zerar)
    → cancelada      disponível += qtd; reservada -= qtd
    → aguardando     nenhum

Tudo acontece numa única transação por chamada: reservas, status,
movimentações. Qualquer falha desfaz a chamada inteira.
"""

from __future__ import annotations

import sqlite3
from collections import OrderedDict
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from tarugos.config import DB_PATH, DEFAULTS
from tarugos.domain.errors import (
    EstoqueError,
    InsufficientStock,
    NotFoundError,
    TerminalOrderError,
    ValidationError,
)
from tarugos.domain.models import (
    ORDEM_STATUS_LABELS,
    InventoryItem,
    OrdemSaida,
    OrdemSaidaItem,
    OrdemStatus,
    TipoMovimento,
    Usuario,
)
from tarugos.domain.policies import as_int, validar_transicao
from tarugos.infra.db import connect, transaction
from tarugos.infra.eventos import ORDEM_ATUALIZADA, ORDEM_CRIADA, ORDEM_STATUS, EventBus, Evento, bus as default_bus
from tarugos.infra.logger import log_database_operation, log_ordem, log_transaction
from tarugos.infra.repositories import InventoryRepo, OrdemRepo, SequenciaRepo
from tarugos.usecases.movimentos import registrar_movimento


CAMPOS_LINHA_EDITAVEIS = ("codigo", "tipo", "quantidade", "observacoes", "empresa")

LinhaLike = Union[OrdemSaidaItem, Mapping[str, Any]]


def _texto(val: Any) -> Optional[str]:
    if val is None:
        return None
    s = str(val).strip()
    return s or None


def _linha(dados: LinhaLike) -> OrdemSaidaItem:
    if isinstance(dados, OrdemSaidaItem):
        return replace(dados)
    if not dados.get("item_id"):
        raise ValidationError("Linha sem item_id", campo="item_id")
    return OrdemSaidaItem(
        item_id=dados["item_id"],
        quantidade=dados.get("quantidade"),
        codigo=dados.get("codigo"),
        tipo=dados.get("tipo"),
        empresa=_texto(dados.get("empresa")),
        observacoes=_texto(dados.get("observacoes")),
    )


def _resumo(ordem: OrdemSaida) -> Dict[str, Any]:
    return {
        "id": ordem.id,
        "numero_ordem": ordem.numero_ordem,
        "status": ordem.status.value,
        "linhas": len(ordem.itens),
        "quantidade": sum(l.quantidade for l in ordem.itens),
    }


def gerar_numero_ordem(conn: sqlite3.Connection, agora: Optional[datetime] = None) -> str:
    """Próximo número da ordem, sequencial por ano, dentro da transação de ``conn``."""
    ano = (agora or datetime.now(timezone.utc)).year
    n = SequenciaRepo(conn).proximo(f"ordem_saida:{ano}")
    return f"{DEFAULTS.prefixo_ordem}-{ano}-{n:05d}"


class _Itens:
    """Cache dos itens lidos numa transação (várias linhas podem citar o mesmo item)."""

    def __init__(self, conn: sqlite3.Connection):
        self.repo = InventoryRepo(conn)
        self._cache: Dict[str, InventoryItem] = {}

    def get(self, linha: OrdemSaidaItem) -> InventoryItem:
        if linha.item_id not in self._cache:
            item = self.repo.get(linha.item_id)
            if item is None:
                raise NotFoundError("Item", f"{linha.item_id} ({linha.codigo or 'sem código'})")
            self._cache[linha.item_id] = item
        return self._cache[linha.item_id]


# -------------------------
# criação
# -------------------------

def criar_ordem(
    itens: Iterable[LinhaLike],
    usuario: Usuario,
    observacoes: Optional[str] = None,
    gerar_numero: Optional[Callable[[], str]] = None,
    db_path: str = DB_PATH,
    bus: EventBus = default_bus,
) -> OrdemSaida:
    """Cria uma ordem de saída reservando as quantidades pedidas.

    Todas as linhas são conferidas antes de qualquer reserva; linhas do
    mesmo item somam. Posição, código e tipo de cada linha são copiados do
    item neste momento.

    Args:
        itens: linhas (``OrdemSaidaItem`` ou dict com item_id, quantidade,
            empresa, observacoes).
        usuario: quem emite a ordem.
        observacoes: observações gerais.
        gerar_numero: gerador externo de números; padrão é a sequência do banco.

    Raises:
        InsufficientStock: alguma linha pede mais que o disponível (nada é reservado).
        NotFoundError: item inexistente.
        ValidationError: ordem sem linhas ou quantidade inválida.
    """
    linhas = [_linha(d) for d in itens]
    if not linhas:
        raise ValidationError("A ordem precisa de pelo menos um item", campo="itens")

    try:
        with transaction(db_path) as c:
            numero = gerar_numero() if gerar_numero else gerar_numero_ordem(c)
            estoque = _Itens(c)

            pedidos: "OrderedDict[str, int]" = OrderedDict()
            lidos: Dict[str, InventoryItem] = {}
            for linha in linhas:
                linha.quantidade = as_int(linha.quantidade, "quantidade")
                if linha.quantidade < 1:
                    raise ValidationError("A quantidade de cada linha deve ser maior que zero", campo="quantidade")
                item = estoque.get(linha)
                linha.codigo = linha.codigo or item.codigo
                lidos[item.id] = item
                linha.tipo = linha.tipo or item.tipo.value
                linha.position = item.position
                pedidos[item.id] = pedidos.get(item.id, 0) + linha.quantidade
                if item.quantidade_disponivel < pedidos[item.id]:
                    raise InsufficientStock(item.codigo, pedidos[item.id], item.quantidade_disponivel)

            for item_id, qtd in pedidos.items():
                item = lidos[item_id]
                item.quantidade_disponivel -= qtd
                item.quantidade_reservada += qtd
                estoque.repo.update(item)
            log_database_operation("inventory_items", "RESERVE", len(pedidos), numero_ordem=numero)

            ordem = OrdemSaida(
                numero_ordem=numero,
                status=OrdemStatus.EM_SEPARACAO,
                itens=linhas,
                observacoes=_texto(observacoes),
                usuario_id=usuario.id,
                usuario_nome=usuario.display_name,
                usuario_email=usuario.email,
            )
            OrdemRepo(c).insert(ordem)
            log_database_operation("ordens_saida", "INSERT", 1, linhas=len(linhas))

            rotulo = ORDEM_STATUS_LABELS[OrdemStatus.EM_SEPARACAO]
            for linha in linhas:
                registrar_movimento(
                    c,
                    linha.item_id,
                    TipoMovimento.SAIDA,
                    linha.quantidade,
                    linha.position,
                    usuario=usuario,
                    observacoes=f"Ordem de Saída {numero} - {rotulo}",
                    codigo=linha.codigo,
                )
    except EstoqueError as e:
        log_transaction("criar_ordem", {"linhas": len(linhas)}, error=str(e))
        raise

    log_ordem("create", ordem.numero_ordem, ordem.status.value, usuario=usuario.display_name)
    log_transaction("criar_ordem", {"usuario": usuario.display_name}, result=_resumo(ordem))
    bus.publish(Evento(ORDEM_CRIADA, _resumo(ordem)))
    return ordem


# -------------------------
# edição
# -------------------------

def _ajustar_reserva(
    c: sqlite3.Connection,
    estoque: _Itens,
    ordem: OrdemSaida,
    linha: OrdemSaidaItem,
    nova_qtd: int,
    usuario: Usuario,
) -> None:
    """Aplica a diferença de quantidade de uma linha sobre a reserva do item."""
    delta = nova_qtd - linha.quantidade
    if delta == 0:
        return
    item = estoque.get(linha)
    if delta > 0:
        if item.quantidade_disponivel < delta:
            raise InsufficientStock(item.codigo, delta, item.quantidade_disponivel)
        tipo = TipoMovimento.SAIDA
    else:
        if item.quantidade_reservada < -delta:
            raise InsufficientStock(item.codigo, -delta, item.quantidade_reservada)
        tipo = TipoMovimento.ENTRADA
    item.quantidade_disponivel -= delta
    item.quantidade_reservada += delta
    estoque.repo.update(item)
    registrar_movimento(
        c,
        item.id,
        tipo,
        abs(delta),
        linha.position,
        usuario=usuario,
        observacoes=f"Ordem de Saída {ordem.numero_ordem} - ajuste de quantidade ({linha.quantidade} -> {nova_qtd})",
        codigo=item.codigo,
    )


def atualizar_ordem(
    ordem_id: str,
    updates: Mapping[str, Any],
    usuario: Optional[Usuario] = None,
    db_path: str = DB_PATH,
    bus: EventBus = default_bus,
) -> OrdemSaida:
    """Edita observações e/ou linhas de uma ordem em separação ou aguardando envio.

    ``updates`` aceita:
        - ``observacoes``: novo texto (``None`` ou vazio limpa o campo);
        - ``itens``: lista de dicts com ``id`` da linha e os campos a trocar
          (codigo, tipo, quantidade, observacoes, empresa).

    Trocar a quantidade de uma linha ajusta a reserva do item na mesma
    transação (e registra a movimentação da diferença).

    Raises:
        TerminalOrderError: ordem concluída ou cancelada.
        NotFoundError: ordem ou linha inexistente.
        InsufficientStock: aumento maior que o disponível do item.
    """
    usuario = usuario or Usuario()
    desconhecidos = set(updates) - {"observacoes", "itens"}
    if desconhecidos:
        raise ValidationError(f"Campos não editáveis: {', '.join(sorted(desconhecidos))}")

    try:
        with transaction(db_path) as c:
            repo = OrdemRepo(c)
            ordem = repo.require(ordem_id)
            if ordem.status.terminal:
                raise TerminalOrderError(ordem_id, ordem.status.value)

            if "observacoes" in updates:
                ordem.observacoes = _texto(updates["observacoes"])

            estoque = _Itens(c)
            linhas = {l.id: l for l in ordem.itens}
            for dados in updates.get("itens") or []:
                linha = linhas.get(dados.get("id"))
                if linha is None:
                    raise NotFoundError("Linha da ordem", dados.get("id"))
                extras = set(dados) - set(CAMPOS_LINHA_EDITAVEIS) - {"id", "item_id", "ordem_id", "position"}
                if extras:
                    raise ValidationError(f"Campos não editáveis na linha: {', '.join(sorted(extras))}")
                if "quantidade" in dados:
                    nova_qtd = as_int(dados["quantidade"], "quantidade")
                    if nova_qtd < 1:
                        raise ValidationError("A quantidade de cada linha deve ser maior que zero", campo="quantidade")
                    _ajustar_reserva(c, estoque, ordem, linha, nova_qtd, usuario)
                    linha.quantidade = nova_qtd
                if "codigo" in dados:
                    linha.codigo = _texto(dados["codigo"]) or linha.codigo
                if "tipo" in dados:
                    linha.tipo = _texto(dados["tipo"]) or linha.tipo
                for campo in ("observacoes", "empresa"):
                    if campo in dados:
                        setattr(linha, campo, _texto(dados[campo]))
                repo.update_item(linha)

            repo.update_header(ordem)
            log_database_operation("ordens_saida", "UPDATE", 1, id=ordem_id)
    except EstoqueError as e:
        log_transaction("atualizar_ordem", {"id": ordem_id}, error=str(e))
        raise

    log_ordem("update", ordem.numero_ordem, ordem.status.value, usuario=usuario.display_name)
    bus.publish(Evento(ORDEM_ATUALIZADA, _resumo(ordem)))
    return ordem


# -------------------------
# transições de status
# -------------------------

def _concluir(c: sqlite3.Connection, ordem: OrdemSaida, usuario: Usuario) -> None:
    estoque = _Itens(c)
    for linha in ordem.itens:
        item = estoque.get(linha)
        if item.quantidade_reservada < linha.quantidade:
            raise InsufficientStock(item.codigo, linha.quantidade, item.quantidade_reservada)
        # movimentação antes de excluir o item
        registrar_movimento(
            c,
            linha.item_id,
            TipoMovimento.SAIDA,
            linha.quantidade,
            linha.position,
            usuario=usuario,
            observacoes=f"Ordem de Saída {ordem.numero_ordem} concluída",
            codigo=linha.codigo,
        )
        item.quantidade -= linha.quantidade
        item.quantidade_reservada -= linha.quantidade
        if item.quantidade == 0:
            estoque.repo.delete(item)
            log_database_operation("inventory_items", "DELETE", 1, id=item.id, numero_ordem=ordem.numero_ordem)
        else:
            estoque.repo.update(item)


def _cancelar(c: sqlite3.Connection, ordem: OrdemSaida, usuario: Usuario) -> None:
    estoque = _Itens(c)
    for linha in ordem.itens:
        item = estoque.get(linha)
        if item.quantidade_reservada < linha.quantidade:
            raise InsufficientStock(item.codigo, linha.quantidade, item.quantidade_reservada)
        item.quantidade_disponivel += linha.quantidade
        item.quantidade_reservada -= linha.quantidade
        estoque.repo.update(item)
        registrar_movimento(
            c,
            linha.item_id,
            TipoMovimento.ENTRADA,
            linha.quantidade,
            linha.position,
            usuario=usuario,
            observacoes=f"Ordem de Saída {ordem.numero_ordem} cancelada - Item devolvido ao estoque",
            codigo=linha.codigo,
        )


def atualizar_status(
    ordem_id: str,
    status: Union[OrdemStatus, str],
    usuario: Usuario,
    db_path: str = DB_PATH,
    bus: EventBus = default_bus,
) -> OrdemSaida:
    """Muda o status de uma ordem aplicando o efeito no estoque.

    O status atual é relido dentro da transação. Pedir o status que a ordem
    já tem (não terminal) não faz nada.

    Raises:
        TerminalOrderError: ordem já concluída/cancelada.
        InvalidTransitionError: transição fora da tabela (ex.: aguardando_envio → em_separacao).
        NotFoundError: ordem inexistente, ou item de alguma linha não existe mais.
    """
    try:
        novo = OrdemStatus(status)
    except ValueError:
        raise ValidationError(f"Status inválido: {status!r}", campo="status")

    try:
        with transaction(db_path) as c:
            repo = OrdemRepo(c)
            atual = repo.get_status(ordem_id)
            mudou = validar_transicao(ordem_id, atual, novo)
            ordem = repo.require(ordem_id)
            if mudou:
                if novo == OrdemStatus.CONCLUIDA:
                    _concluir(c, ordem, usuario)
                elif novo == OrdemStatus.CANCELADA:
                    _cancelar(c, ordem, usuario)
                ordem.status = novo
                repo.update_header(ordem)
                log_database_operation("ordens_saida", "UPDATE_STATUS", 1, de=atual.value, para=novo.value)
    except EstoqueError as e:
        log_transaction("atualizar_status", {"id": ordem_id, "status": novo.value}, error=str(e))
        raise

    if mudou:
        log_ordem("status", ordem.numero_ordem, novo.value, de=atual.value, usuario=usuario.display_name)
        bus.publish(Evento(ORDEM_STATUS, {**_resumo(ordem), "de": atual.value}))
    return ordem


# -------------------------
# consultas
# -------------------------

def obter_ordem(ordem_id: str, db_path: str = DB_PATH) -> OrdemSaida:
    with connect(db_path) as c:
        return OrdemRepo(c).require(ordem_id)


def listar_ordens(status: Optional[Union[OrdemStatus, str]] = None, db_path: str = DB_PATH) -> List[OrdemSaida]:
    """Ordens mais recentes primeiro, opcionalmente só de um status."""
    with connect(db_path) as c:
        ordens = OrdemRepo(c).list(OrdemStatus(status) if status else None)
    log_database_operation("ordens_saida", "SELECT_ALL", len(ordens))
    return ordens
