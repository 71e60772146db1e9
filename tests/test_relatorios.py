from datetime import datetime, timezone

import pandas as pd

from tarugos.usecases.ordens import atualizar_status, criar_ordem
from tarugos.usecases.relatorios import (
    COLUNAS_ESTOQUE,
    COLUNAS_MOVIMENTOS,
    COLUNAS_ORDENS,
    exportar_csv,
    listar_report_logs,
    relatorio_entradas,
    relatorio_estoque,
    relatorio_movimentacoes,
    relatorio_ordens,
    resumo_estoque,
)


def test_relatorio_estoque_vazio(db_path):
    df = relatorio_estoque(db_path=db_path)
    assert df.empty
    assert list(df.columns) == COLUNAS_ESTOQUE


def test_relatorio_estoque_ordenado_por_posicao(db_path, novo_item):
    novo_item("T-2", "B1", quantidade=3)
    novo_item("T-1", "A2", quantidade=5, tempera="H14")
    df = relatorio_estoque(db_path=db_path)
    assert list(df["posicao"]) == ["A2", "B1"]
    assert list(df["quantidade"]) == [5, 3]
    assert df.loc[0, "tempera"] == "H14"
    assert df.loc[0, "tipo"] == "Tarugo"


def test_relatorio_movimentacoes_e_entradas(db_path, usuario, novo_item):
    item = novo_item("T-1", "A1", quantidade=10)
    criar_ordem([{"item_id": item.id, "quantidade": 2}], usuario, db_path=db_path)
    hoje = datetime.now(timezone.utc).date()

    movs = relatorio_movimentacoes(hoje, hoje, db_path=db_path)
    assert list(movs.columns) == COLUNAS_MOVIMENTOS
    assert sorted(movs["tipo"]) == ["entrada", "saida"]

    entradas = relatorio_entradas(hoje, hoje, db_path=db_path)
    assert list(entradas["quantidade"]) == [10]


def test_relatorio_ordens(db_path, usuario, novo_item):
    item = novo_item("T-1", "A1", quantidade=10)
    ordem = criar_ordem(
        [{"item_id": item.id, "quantidade": 2}, {"item_id": item.id, "quantidade": 3}],
        usuario,
        db_path=db_path,
    )
    atualizar_status(ordem.id, "aguardando_envio", usuario, db_path=db_path)

    df = relatorio_ordens(db_path=db_path)
    assert list(df.columns) == COLUNAS_ORDENS
    assert len(df) == 2
    assert set(df["status"]) == {"Aguardando Envio"}
    assert df["quantidade"].sum() == 5
    assert relatorio_ordens("concluida", db_path=db_path).empty


def test_resumo_estoque(db_path, usuario, novo_item):
    item = novo_item("T-1", "A1", quantidade=10, quantidade_avaria=1)
    criar_ordem([{"item_id": item.id, "quantidade": 4}], usuario, db_path=db_path)
    resumo = resumo_estoque(db_path)
    assert resumo["quantidade"] == 10
    assert resumo["disponivel"] == 5
    assert resumo["reservada"] == 4
    assert resumo["avaria"] == 1
    assert resumo["posicoes"] == 32
    assert resumo["posicoes_ocupadas"] == 1
    assert resumo["posicoes_livres"] == 31


def test_geracao_fica_registrada(db_path, usuario):
    relatorio_estoque(usuario, db_path=db_path)
    relatorio_entradas(usuario=usuario, db_path=db_path)
    logs = listar_report_logs(db_path)
    assert [l["report_type"] for l in logs] == ["movimentacoes_entrada", "estoque"]
    assert logs[0]["user_name"] == "João Silva"


def test_exportar_csv(tmp_path, db_path, novo_item):
    novo_item("T-1", "A1", quantidade=7)
    destino = exportar_csv(relatorio_estoque(db_path=db_path), tmp_path / "saida" / "estoque.csv")
    lido = pd.read_csv(destino, encoding="utf-8-sig")
    assert list(lido.columns) == COLUNAS_ESTOQUE
    assert lido.loc[0, "codigo"] == "T-1"
    assert lido.loc[0, "quantidade"] == 7
