# tarugos/usecases/estoque.py
"""
UC: Razão de estoque (itens por posição).
- adicionar_item(): entrada de um lote, com movimentação de entrada.
- adicionar_lote(): várias entradas, todas ou nenhuma.
- atualizar_item(): edição parcial; revalida a soma dos baldes no registro completo.
- remover_quantidade(): baixa manual, com movimentação de saída.
- transferir_item(): troca a posição de um item.
- obter_item() / listar_itens() / buscar_itens(): consultas.

Obs.:
- Rascunhos chegam como dicionários (formulário, planilha); ``position``
  aceita ``StoragePosition`` ou texto no formato "H2".
- Todas as escritas acontecem dentro de ``transaction``: a validação, o
  item e a movimentação são confirmados juntos.
- Eventos só são publicados depois do commit.
"""

from __future__ import annotations

import sqlite3
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional

from tarugos.config import DB_PATH
from tarugos.adapters.parsers import parse_posicao
from tarugos.domain.errors import EstoqueError, PositionOccupied, ValidationError
from tarugos.domain.models import (
    ITEM_TYPE_LABELS,
    TEMPERA_OPTIONS,
    InventoryItem,
    ItemAttributes,
    TipoItem,
    TipoMovimento,
    Usuario,
)
from tarugos.domain.policies import CAMPOS_QUANTIDADE, aplicar_saida_manual, as_int, validar_item
from tarugos.infra.db import connect, transaction
from tarugos.infra.eventos import (
    ITEM_ATUALIZADO,
    ITEM_CRIADO,
    ITEM_REMOVIDO,
    ITEM_TRANSFERIDO,
    EventBus,
    Evento,
    bus as default_bus,
)
from tarugos.infra.logger import (
    log_database_operation,
    log_entrada,
    log_saida,
    log_system_event,
    log_transaction,
)
from tarugos.infra.repositories import InventoryRepo
from tarugos.usecases.movimentos import registrar_movimento
from tarugos.usecases.torre import validar_posicao


ATRIBUTOS = ("largura", "altura", "espessura", "tempera", "polegada")

CAMPOS_TEXTO = (
    "nome", "acabamento", "observacoes", "observacao_disponivel",
    "observacao_reservado", "observacao_avaria", "lote_id", "usina",
)
CAMPOS_NUMERICOS = ("peso_bruto", "peso_liquido")

CAMPOS_EDITAVEIS = frozenset(
    ("codigo", "tipo", "attributes") + ATRIBUTOS + CAMPOS_TEXTO + CAMPOS_NUMERICOS
) | CAMPOS_QUANTIDADE

CAMPOS_BUSCA = ("codigo", "nome", "tipo", "acabamento", "atributos", "lote")


# -------------------------
# normalização de rascunhos
# -------------------------

def _texto(val: Any) -> Optional[str]:
    if val is None:
        return None
    s = str(val).strip()
    return s or None


def _numero(val: Any, campo: str) -> Optional[float]:
    if val is None or (isinstance(val, str) and not val.strip()):
        return None
    try:
        return float(str(val).replace(",", "."))
    except ValueError:
        raise ValidationError(f"Valor numérico inválido para {campo}: {val!r}", campo=campo)


def _tipo(val: Any) -> TipoItem:
    if val is None or not str(val).strip():
        raise ValidationError("Tipo obrigatório (tarugo ou lingote)", campo="tipo")
    try:
        return TipoItem(str(getattr(val, "value", val)).strip().lower())
    except ValueError:
        raise ValidationError(f"Tipo inválido: {val!r}", campo="tipo")


def _codigo(val: Any) -> str:
    codigo = _texto(val)
    if not codigo:
        raise ValidationError("Código obrigatório", campo="codigo")
    return codigo


def _attributes(dados: Mapping[str, Any], base: Optional[ItemAttributes] = None) -> ItemAttributes:
    """Aceita atributos aninhados (``attributes``) ou no nível do rascunho."""
    attrs = replace(base) if base else ItemAttributes()
    origem = dict(dados.get("attributes") or {})
    origem.update({k: dados[k] for k in ATRIBUTOS if k in dados})
    for campo, valor in origem.items():
        if campo not in ATRIBUTOS:
            raise ValidationError(f"Atributo desconhecido: {campo}", campo=campo)
        if campo == "tempera":
            tempera = _texto(valor)
            if tempera is not None:
                tempera = tempera.upper()
                if tempera not in TEMPERA_OPTIONS:
                    raise ValidationError(f"Têmpera inválida: {valor!r}", campo="tempera")
            attrs.tempera = tempera
        else:
            setattr(attrs, campo, _numero(valor, campo))
    return attrs


def item_from_draft(draft: Mapping[str, Any]) -> InventoryItem:
    """Converte um rascunho de entrada em ``InventoryItem`` (ainda sem id).

    Quantidade mínima 1. Sem baldes informados, tudo entra como disponível.
    """
    codigo = _codigo(draft.get("codigo"))
    tipo = _tipo(draft.get("tipo"))
    if draft.get("quantidade") is None:
        raise ValidationError("Quantidade obrigatória", campo="quantidade")
    quantidade = as_int(draft["quantidade"], "quantidade")
    if quantidade < 1:
        raise ValidationError("A quantidade deve ser no mínimo 1", campo="quantidade")
    reservada = as_int(draft.get("quantidade_reservada") or 0, "quantidade_reservada")
    avaria = as_int(draft.get("quantidade_avaria") or 0, "quantidade_avaria")
    if draft.get("quantidade_disponivel") is None:
        disponivel = quantidade - reservada - avaria
    else:
        disponivel = as_int(draft["quantidade_disponivel"], "quantidade_disponivel")

    item = InventoryItem(
        codigo=codigo,
        tipo=tipo,
        position=parse_posicao(draft.get("position")),
        quantidade=quantidade,
        quantidade_disponivel=disponivel,
        quantidade_reservada=reservada,
        quantidade_avaria=avaria,
        attributes=_attributes(draft),
        peso_bruto=_numero(draft.get("peso_bruto"), "peso_bruto"),
        peso_liquido=_numero(draft.get("peso_liquido"), "peso_liquido"),
        **{campo: _texto(draft.get(campo)) for campo in CAMPOS_TEXTO},
    )
    validar_item(item)
    return item


def _resumo(item: InventoryItem) -> Dict[str, Any]:
    return {
        "id": item.id,
        "codigo": item.codigo,
        "posicao": str(item.position),
        "quantidade": item.quantidade,
        "disponivel": item.quantidade_disponivel,
        "reservada": item.quantidade_reservada,
        "avaria": item.quantidade_avaria,
        "status": item.status.value,
    }


def _inserir(conn: sqlite3.Connection, item: InventoryItem, usuario: Usuario) -> InventoryItem:
    validar_posicao(conn, item.position)
    InventoryRepo(conn).insert(item)
    registrar_movimento(
        conn,
        item.id,
        TipoMovimento.ENTRADA,
        item.quantidade,
        item.position,
        usuario=usuario,
        observacoes=item.observacoes,
        codigo=item.codigo,
    )
    log_database_operation("inventory_items", "INSERT", 1, codigo=item.codigo)
    return item


# -------------------------
# entradas
# -------------------------

def adicionar_item(
    draft: Mapping[str, Any],
    usuario: Usuario,
    db_path: str = DB_PATH,
    bus: EventBus = default_bus,
) -> InventoryItem:
    """Registra a entrada de um lote e a movimentação correspondente."""
    log_entrada("draft", draft.get("codigo"), draft.get("quantidade"), str(draft.get("position")))
    try:
        item = item_from_draft(draft)
        with transaction(db_path) as c:
            _inserir(c, item, usuario)
    except EstoqueError as e:
        log_transaction("adicionar_item", dict(draft), error=str(e))
        raise

    log_entrada("insert", item.codigo, item.quantidade, str(item.position), usuario=usuario.display_name)
    log_transaction("adicionar_item", {"codigo": item.codigo}, result=_resumo(item))
    bus.publish(Evento(ITEM_CRIADO, _resumo(item)))
    return item


def adicionar_lote(
    drafts: Iterable[Mapping[str, Any]],
    usuario: Usuario,
    db_path: str = DB_PATH,
    bus: EventBus = default_bus,
) -> List[InventoryItem]:
    """Registra várias entradas numa única transação (todas ou nenhuma).

    Erros de validação indicam a linha (1-based) no campo da exceção.
    """
    drafts = list(drafts)
    log_system_event("adicionar_lote_start", {"linhas": len(drafts)})
    if not drafts:
        raise ValidationError("Nenhum item informado", campo="itens")

    itens: List[InventoryItem] = []
    try:
        for n, draft in enumerate(drafts, start=1):
            try:
                itens.append(item_from_draft(draft))
            except ValidationError as e:
                raise ValidationError(f"Linha {n}: {e}", campo=e.campo) from e
        with transaction(db_path) as c:
            for item in itens:
                _inserir(c, item, usuario)
    except EstoqueError as e:
        log_transaction("adicionar_lote", {"linhas": len(drafts)}, error=str(e))
        log_system_event("adicionar_lote_error", {"error": str(e)}, level="error")
        raise

    for item in itens:
        log_entrada("batch_insert", item.codigo, item.quantidade, str(item.position))
        bus.publish(Evento(ITEM_CRIADO, _resumo(item)))
    log_transaction("adicionar_lote", {"linhas": len(itens)}, result={"inseridos": len(itens)})
    return itens


# -------------------------
# edição
# -------------------------

def atualizar_item(
    item_id: str,
    patch: Mapping[str, Any],
    usuario: Optional[Usuario] = None,
    db_path: str = DB_PATH,
    bus: EventBus = default_bus,
) -> InventoryItem:
    """Edição parcial de um item.

    Se o patch toca ``quantidade`` ou algum balde, a soma é conferida no
    registro resultante completo. Edição não gera movimentação. A posição
    muda apenas por ``transferir_item``.

    Raises:
        QuantityMismatchError: soma dos baldes diferente da quantidade.
        ValidationError: campo desconhecido ou valor inválido.
        NotFoundError: item inexistente.
    """
    usuario = usuario or Usuario()
    desconhecidos = set(patch) - CAMPOS_EDITAVEIS
    if "position" in desconhecidos:
        raise ValidationError("Use transferir_item para mudar a posição", campo="position")
    if desconhecidos:
        raise ValidationError(f"Campos não editáveis: {', '.join(sorted(desconhecidos))}")

    try:
        with transaction(db_path) as c:
            repo = InventoryRepo(c)
            item = repo.require(item_id)
            if "codigo" in patch:
                item.codigo = _codigo(patch["codigo"])
            if "tipo" in patch:
                item.tipo = _tipo(patch["tipo"])
            if "attributes" in patch or any(k in patch for k in ATRIBUTOS):
                item.attributes = _attributes(patch, base=item.attributes)
            for campo in CAMPOS_TEXTO:
                if campo in patch:
                    setattr(item, campo, _texto(patch[campo]))
            for campo in CAMPOS_NUMERICOS:
                if campo in patch:
                    setattr(item, campo, _numero(patch[campo], campo))
            for campo in CAMPOS_QUANTIDADE & set(patch):
                setattr(item, campo, as_int(patch[campo], campo))
            if CAMPOS_QUANTIDADE & set(patch):
                validar_item(item)
            repo.update(item)
            log_database_operation("inventory_items", "UPDATE", 1, id=item_id, campos=sorted(patch))
    except EstoqueError as e:
        log_transaction("atualizar_item", {"id": item_id, "patch": dict(patch)}, error=str(e))
        raise

    log_transaction("atualizar_item", {"id": item_id, "usuario": usuario.display_name}, result=_resumo(item))
    bus.publish(Evento(ITEM_ATUALIZADO, _resumo(item)))
    return item


# -------------------------
# saídas
# -------------------------

def remover_quantidade(
    item_id: str,
    quantidade: int,
    usuario: Usuario,
    observacoes: Optional[str] = None,
    origem: str = "disponivel",
    db_path: str = DB_PATH,
    bus: EventBus = default_bus,
) -> Optional[InventoryItem]:
    """Baixa manual de ``quantidade`` unidades de um item.

    A baixa sai da quantidade total e do balde ``origem`` (``disponivel`` ou
    ``avaria``); unidades reservadas para ordens não podem ser baixadas aqui.
    Quando a quantidade chega a zero o item é excluído.

    Returns:
        O item atualizado, ou ``None`` se ele foi excluído.

    Raises:
        InsufficientStock: quantidade menor que 1 ou maior que o total ou que o balde de origem.
        ValidationError: quantidade não numérica ou origem inválida.
        NotFoundError: item inexistente.
    """
    try:
        quantidade = as_int(quantidade, "quantidade")
        with transaction(db_path) as c:
            repo = InventoryRepo(c)
            item = repo.require(item_id)
            posicao = item.position
            aplicar_saida_manual(item, quantidade, origem)
            registrar_movimento(
                c,
                item.id,
                TipoMovimento.SAIDA,
                quantidade,
                posicao,
                usuario=usuario,
                observacoes=_texto(observacoes),
                codigo=item.codigo,
            )
            if item.quantidade == 0:
                repo.delete(item)
                log_database_operation("inventory_items", "DELETE", 1, id=item_id)
            else:
                repo.update(item)
                log_database_operation("inventory_items", "UPDATE", 1, id=item_id)
    except EstoqueError as e:
        log_transaction("remover_quantidade", {"id": item_id, "quantidade": quantidade}, error=str(e))
        raise

    log_saida("remove", item.codigo, quantidade, str(posicao), origem=origem, usuario=usuario.display_name)
    log_transaction("remover_quantidade", {"id": item_id, "quantidade": quantidade}, result=_resumo(item))
    if item.quantidade == 0:
        bus.publish(Evento(ITEM_REMOVIDO, _resumo(item)))
        return None
    bus.publish(Evento(ITEM_ATUALIZADO, _resumo(item)))
    return item


def transferir_item(
    item_id: str,
    nova_posicao: Any,
    usuario: Optional[Usuario] = None,
    db_path: str = DB_PATH,
    bus: EventBus = default_bus,
) -> InventoryItem:
    """Move um item para ``nova_posicao`` (válida e livre, ou a própria posição atual).

    Não gera movimentação: o tipo de movimentação é só entrada/saída e a
    quantidade em estoque não muda. A troca fica no log e no evento.
    """
    usuario = usuario or Usuario()
    try:
        destino = parse_posicao(nova_posicao)
        with transaction(db_path) as c:
            repo = InventoryRepo(c)
            item = repo.require(item_id)
            origem = item.position
            if destino == origem:
                return item
            validar_posicao(c, destino)
            if repo.at_position(destino):
                raise PositionOccupied([destino])
            item.position = destino
            repo.update(item)
            log_database_operation("inventory_items", "UPDATE", 1, id=item_id, position=str(destino))
    except EstoqueError as e:
        log_transaction("transferir_item", {"id": item_id, "destino": str(nova_posicao)}, error=str(e))
        raise

    dados = {**_resumo(item), "de": str(origem), "para": str(destino)}
    log_transaction("transferir_item", {"id": item_id, "usuario": usuario.display_name}, result=dados)
    bus.publish(Evento(ITEM_TRANSFERIDO, dados))
    return item


# -------------------------
# consultas
# -------------------------

def obter_item(item_id: str, db_path: str = DB_PATH) -> InventoryItem:
    with connect(db_path) as c:
        return InventoryRepo(c).require(item_id)


def listar_itens(db_path: str = DB_PATH) -> List[InventoryItem]:
    with connect(db_path) as c:
        itens = InventoryRepo(c).list()
    log_database_operation("inventory_items", "SELECT_ALL", len(itens))
    return itens


def _atributos_casam(item: InventoryItem, termo: str) -> bool:
    attrs = item.attributes
    numeros = [attrs.largura, attrs.altura, attrs.espessura, attrs.polegada]
    for n in numeros:
        if n is None:
            continue
        texto = str(int(n)) if float(n).is_integer() else str(n)
        if termo in texto:
            return True
    return bool(attrs.tempera and termo.upper() in attrs.tempera)


def buscar_itens(
    termo: Optional[str] = None,
    campo: str = "codigo",
    tipo: Optional[str] = None,
    acabamento: Optional[str] = None,
    db_path: str = DB_PATH,
) -> List[InventoryItem]:
    """Busca por texto em ``campo`` e filtra por tipo/acabamento.

    ``campo``: codigo | nome | tipo | acabamento | atributos | lote.
    A comparação de texto ignora maiúsculas/minúsculas.
    """
    if campo not in CAMPOS_BUSCA:
        raise ValidationError(f"Campo de busca inválido: {campo!r}", campo="campo")
    itens = listar_itens(db_path)

    termo = (termo or "").strip()
    if termo:
        t = termo.lower()
        if campo == "codigo":
            itens = [i for i in itens if t in i.codigo.lower()]
        elif campo == "nome":
            itens = [i for i in itens if i.nome and t in i.nome.lower()]
        elif campo == "tipo":
            itens = [i for i in itens if t in ITEM_TYPE_LABELS[i.tipo].lower()]
        elif campo == "acabamento":
            itens = [i for i in itens if i.acabamento and t in i.acabamento.lower()]
        elif campo == "atributos":
            itens = [i for i in itens if _atributos_casam(i, termo)]
        elif campo == "lote":
            itens = [i for i in itens if i.lote_id and t in i.lote_id.lower()]

    if tipo and tipo != "all":
        tipo_enum = _tipo(tipo)
        itens = [i for i in itens if i.tipo == tipo_enum]
    if acabamento and acabamento != "all":
        itens = [i for i in itens if (i.acabamento or "").lower() == acabamento.lower()]
    return itens
