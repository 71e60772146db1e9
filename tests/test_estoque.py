import pytest

from tarugos.domain.errors import (
    ConcurrencyError,
    InsufficientStock,
    NotFoundError,
    PositionOccupied,
    QuantityMismatchError,
    ValidationError,
)
from tarugos.domain.models import ItemStatus, StoragePosition, TipoItem, TipoMovimento
from tarugos.infra.db import connect
from tarugos.infra.eventos import ITEM_ATUALIZADO, ITEM_CRIADO, ITEM_REMOVIDO, ITEM_TRANSFERIDO
from tarugos.infra.repositories import InventoryRepo
from tarugos.usecases.estoque import (
    adicionar_item,
    adicionar_lote,
    atualizar_item,
    buscar_itens,
    listar_itens,
    obter_item,
    remover_quantidade,
    transferir_item,
)
from tarugos.usecases.movimentos import listar_movimentos
from tarugos.usecases.torre import configurar_torre


# -------------------------
# entradas
# -------------------------

def test_adicionar_item_grava_movimento_de_entrada(db_path, usuario, eventos):
    item = adicionar_item(
        {"codigo": "T-100", "tipo": "tarugo", "quantidade": 10, "position": "A1", "tempera": "t6"},
        usuario,
        db_path=db_path,
        bus=eventos,
    )

    assert item.id
    assert item.quantidade_disponivel == 10
    assert item.quantidade_reservada == 0
    assert item.quantidade_avaria == 0
    assert item.status == ItemStatus.DISPONIVEL
    assert item.attributes.tempera == "T6"

    movs = listar_movimentos(item_id=item.id, db_path=db_path)
    assert len(movs) == 1
    assert movs[0].tipo == TipoMovimento.ENTRADA
    assert movs[0].quantidade == 10
    assert movs[0].position == StoragePosition("A", 1)
    assert movs[0].user_name == "João Silva"
    assert [e.tipo for e in eventos.recebidos] == [ITEM_CRIADO]


def test_adicionar_item_com_baldes(db_path, usuario):
    item = adicionar_item(
        {"codigo": "L-1", "tipo": "lingote", "quantidade": 10, "position": "B2",
         "quantidade_reservada": 3, "quantidade_avaria": 2},
        usuario,
        db_path=db_path,
    )
    assert item.tipo == TipoItem.LINGOTE
    assert (item.quantidade_disponivel, item.quantidade_reservada, item.quantidade_avaria) == (5, 3, 2)


@pytest.mark.parametrize(
    "draft",
    [
        {"tipo": "tarugo", "quantidade": 1, "position": "A1"},
        {"codigo": "T", "quantidade": 1, "position": "A1"},
        {"codigo": "T", "tipo": "barra", "quantidade": 1, "position": "A1"},
        {"codigo": "T", "tipo": "tarugo", "quantidade": 0, "position": "A1"},
        {"codigo": "T", "tipo": "tarugo", "quantidade": 1},
        {"codigo": "T", "tipo": "tarugo", "quantidade": 1, "position": "Z9"},
        {"codigo": "T", "tipo": "tarugo", "quantidade": 1, "position": "A1", "tempera": "X1"},
    ],
)
def test_adicionar_item_invalido(db_path, usuario, draft):
    with pytest.raises(ValidationError):
        adicionar_item(draft, usuario, db_path=db_path)
    assert listar_itens(db_path) == []
    assert listar_movimentos(db_path=db_path) == []


def test_adicionar_item_soma_divergente(db_path, usuario):
    with pytest.raises(QuantityMismatchError) as exc:
        adicionar_item(
            {"codigo": "T", "tipo": "tarugo", "quantidade": 10, "position": "A1",
             "quantidade_disponivel": 4, "quantidade_reservada": 3},
            usuario,
            db_path=db_path,
        )
    assert exc.value.soma == 7
    assert exc.value.esperado == 10


def test_adicionar_lote_atomico(db_path, usuario):
    drafts = [
        {"codigo": "T-1", "tipo": "tarugo", "quantidade": 5, "position": "A1"},
        {"codigo": "T-2", "tipo": "tarugo", "quantidade": 5, "position": "A2"},
        {"codigo": "T-3", "tipo": "tarugo", "quantidade": 5, "position": "Z1"},
    ]
    with pytest.raises(ValidationError):
        adicionar_lote(drafts, usuario, db_path=db_path)
    assert listar_itens(db_path) == []
    assert listar_movimentos(db_path=db_path) == []


def test_adicionar_lote_indica_linha(db_path, usuario):
    drafts = [
        {"codigo": "T-1", "tipo": "tarugo", "quantidade": 5, "position": "A1"},
        {"codigo": "T-2", "tipo": "tarugo", "quantidade": "x", "position": "A2"},
    ]
    with pytest.raises(ValidationError, match="Linha 2"):
        adicionar_lote(drafts, usuario, db_path=db_path)


def test_adicionar_lote_grava_um_movimento_por_item(db_path, usuario, eventos):
    drafts = [
        {"codigo": "T-1", "tipo": "tarugo", "quantidade": 5, "position": "A1"},
        {"codigo": "L-1", "tipo": "lingote", "quantidade": "7", "position": "b3"},
    ]
    itens = adicionar_lote(drafts, usuario, db_path=db_path, bus=eventos)
    assert [i.codigo for i in itens] == ["T-1", "L-1"]
    assert len(listar_itens(db_path)) == 2
    assert len(listar_movimentos(tipo=TipoMovimento.ENTRADA, db_path=db_path)) == 2
    assert [e.tipo for e in eventos.recebidos] == [ITEM_CRIADO, ITEM_CRIADO]


def test_adicionar_lote_vazio(db_path, usuario):
    with pytest.raises(ValidationError):
        adicionar_lote([], usuario, db_path=db_path)


# -------------------------
# edição
# -------------------------

def test_atualizar_item_soma_divergente_nao_grava(db_path, usuario, novo_item):
    item = novo_item("T-1", "A1", quantidade=10)
    with pytest.raises(QuantityMismatchError) as exc:
        atualizar_item(item.id, {"quantidade_disponivel": 4, "quantidade_reservada": 3}, usuario, db_path=db_path)
    assert exc.value.soma == 7
    assert exc.value.esperado == 10
    assert obter_item(item.id, db_path).quantidade_disponivel == 10


def test_atualizar_item_campos(db_path, usuario, novo_item, eventos):
    item = novo_item("T-1", "A1", quantidade=10)
    atualizado = atualizar_item(
        item.id,
        {"nome": "Tarugo 6063", "largura": "178,5", "quantidade_disponivel": 8, "quantidade_avaria": 2},
        usuario,
        db_path=db_path,
        bus=eventos,
    )
    assert atualizado.nome == "Tarugo 6063"
    assert atualizado.attributes.largura == 178.5
    assert atualizado.quantidade_avaria == 2
    assert atualizado.version == 1
    relido = obter_item(item.id, db_path)
    assert relido.quantidade_disponivel == 8
    assert relido.version == 1
    assert [e.tipo for e in eventos.recebidos] == [ITEM_ATUALIZADO]
    # edição não gera movimentação
    assert len(listar_movimentos(item_id=item.id, db_path=db_path)) == 1


def test_atualizar_item_rejeita_posicao(db_path, usuario, novo_item):
    item = novo_item("T-1", "A1")
    with pytest.raises(ValidationError):
        atualizar_item(item.id, {"position": "B1"}, usuario, db_path=db_path)


def test_atualizar_item_inexistente(db_path, usuario):
    with pytest.raises(NotFoundError):
        atualizar_item("nao-existe", {"nome": "x"}, usuario, db_path=db_path)


def test_status_derivado_dos_baldes(db_path, usuario, novo_item):
    item = novo_item("T-1", "A1", quantidade=4)
    item = atualizar_item(item.id, {"quantidade_disponivel": 0, "quantidade_avaria": 4}, usuario, db_path=db_path)
    assert item.status == ItemStatus.AVARIA
    item = atualizar_item(item.id, {"quantidade_avaria": 0, "quantidade_reservada": 4}, usuario, db_path=db_path)
    assert item.status == ItemStatus.RESERVADO


def test_versao_desatualizada_gera_conflito(db_path, novo_item):
    item = novo_item("T-1", "A1")
    with connect(db_path) as c:
        velho = InventoryRepo(c).require(item.id)
    with connect(db_path) as c:
        atual = InventoryRepo(c).require(item.id)
        atual.nome = "primeiro"
        InventoryRepo(c).update(atual)
    velho.nome = "segundo"
    with pytest.raises(ConcurrencyError):
        with connect(db_path) as c:
            InventoryRepo(c).update(velho)
    assert obter_item(item.id, db_path).nome == "primeiro"


# -------------------------
# baixa manual
# -------------------------

def test_remover_quantidade_parcial(db_path, usuario, novo_item, eventos):
    item = novo_item("T-1", "A1", quantidade=10)
    restante = remover_quantidade(item.id, 4, usuario, observacoes="corte", db_path=db_path, bus=eventos)
    assert restante.quantidade == 6
    assert restante.quantidade_disponivel == 6
    saidas = listar_movimentos(tipo=TipoMovimento.SAIDA, db_path=db_path)
    assert [(m.quantidade, m.observacoes) for m in saidas] == [(4, "corte")]
    assert [e.tipo for e in eventos.recebidos] == [ITEM_ATUALIZADO]


def test_remover_tudo_exclui_item_e_mantem_movimento(db_path, usuario, novo_item, eventos):
    item = novo_item("T-1", "A1", quantidade=3)
    assert remover_quantidade(item.id, 3, usuario, db_path=db_path, bus=eventos) is None
    assert listar_itens(db_path) == []
    movs = listar_movimentos(item_id=item.id, db_path=db_path)
    assert [m.tipo for m in movs] == [TipoMovimento.SAIDA, TipoMovimento.ENTRADA]
    assert movs[0].codigo == "T-1"
    assert [e.tipo for e in eventos.recebidos] == [ITEM_REMOVIDO]


def test_remover_mais_que_o_total(db_path, usuario, novo_item):
    item = novo_item("T-1", "A1", quantidade=3)
    with pytest.raises(InsufficientStock) as exc:
        remover_quantidade(item.id, 5, usuario, db_path=db_path)
    assert exc.value.faltante == 2
    assert obter_item(item.id, db_path).quantidade == 3


def test_remover_nao_usa_quantidade_reservada(db_path, usuario, novo_item):
    item = novo_item("T-1", "A1", quantidade=10, quantidade_reservada=8)
    with pytest.raises(InsufficientStock):
        remover_quantidade(item.id, 3, usuario, db_path=db_path)
    relido = obter_item(item.id, db_path)
    assert (relido.quantidade, relido.quantidade_disponivel, relido.quantidade_reservada) == (10, 2, 8)


def test_remover_da_avaria(db_path, usuario, novo_item):
    item = novo_item("T-1", "A1", quantidade=10, quantidade_avaria=4)
    restante = remover_quantidade(item.id, 4, usuario, origem="avaria", db_path=db_path)
    assert (restante.quantidade, restante.quantidade_disponivel, restante.quantidade_avaria) == (6, 6, 0)


@pytest.mark.parametrize("quantidade", [0, -2])
def test_remover_quantidade_menor_que_um(db_path, usuario, novo_item, quantidade):
    item = novo_item("T-1", "A1", quantidade=10)
    with pytest.raises(InsufficientStock) as exc:
        remover_quantidade(item.id, quantidade, usuario, db_path=db_path)
    assert exc.value.solicitado == quantidade
    assert exc.value.disponivel == 10
    assert obter_item(item.id, db_path).quantidade == 10
    assert listar_movimentos(tipo=TipoMovimento.SAIDA, db_path=db_path) == []


# -------------------------
# transferência
# -------------------------

def test_transferir_item(db_path, usuario, novo_item, eventos):
    item = novo_item("T-1", "A1")
    movido = transferir_item(item.id, "C3", usuario, db_path=db_path, bus=eventos)
    assert movido.position == StoragePosition("C", 3)
    assert obter_item(item.id, db_path).position == StoragePosition("C", 3)
    assert eventos.recebidos[0].tipo == ITEM_TRANSFERIDO
    assert eventos.recebidos[0].dados["de"] == "A1"
    assert eventos.recebidos[0].dados["para"] == "C3"


def test_transferir_para_posicao_ocupada(db_path, usuario, novo_item):
    item = novo_item("T-1", "A1")
    novo_item("T-2", "A2")
    with pytest.raises(PositionOccupied) as exc:
        transferir_item(item.id, "A2", usuario, db_path=db_path)
    assert exc.value.posicoes == ["A2"]


def test_transferir_para_mesma_posicao(db_path, usuario, novo_item, eventos):
    item = novo_item("T-1", "A1")
    assert transferir_item(item.id, "A1", usuario, db_path=db_path, bus=eventos).position == item.position
    assert eventos.recebidos == []


def test_transferir_para_posicao_fora_da_torre(db_path, usuario, novo_item):
    configurar_torre({"A": [1, 2]}, usuario, db_path=db_path)
    item = novo_item("T-1", "A1")
    with pytest.raises(ValidationError):
        transferir_item(item.id, "B1", usuario, db_path=db_path)


# -------------------------
# consultas
# -------------------------

def test_buscar_itens(db_path, novo_item):
    novo_item("6063-178", "A1", nome="Tarugo 7 pol", tempera="T6", largura=178)
    novo_item("1050-ING", "A2", tipo="lingote", acabamento="bruto")

    assert [i.codigo for i in buscar_itens("6063", db_path=db_path)] == ["6063-178"]
    assert [i.codigo for i in buscar_itens("7 POL", campo="nome", db_path=db_path)] == ["6063-178"]
    assert [i.codigo for i in buscar_itens("t6", campo="atributos", db_path=db_path)] == ["6063-178"]
    assert [i.codigo for i in buscar_itens("178", campo="atributos", db_path=db_path)] == ["6063-178"]
    assert [i.codigo for i in buscar_itens(tipo="lingote", db_path=db_path)] == ["1050-ING"]
    assert [i.codigo for i in buscar_itens(acabamento="bruto", db_path=db_path)] == ["1050-ING"]
    assert len(buscar_itens(db_path=db_path)) == 2


def test_buscar_campo_invalido(db_path):
    with pytest.raises(ValidationError):
        buscar_itens("x", campo="cor", db_path=db_path)
