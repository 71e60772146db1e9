import pandas as pd
import pytest

from tarugos.adapters.planilha_loader import _normalize_columns, load_itens
from tarugos.domain.errors import ValidationError
from tarugos.usecases.estoque import adicionar_lote, listar_itens


def test_normalize_columns_sinonimos():
    df = pd.DataFrame(columns=["Código", "Qtde", "Posição", "Têmpera", "Peso Líquido", "Observação Avaria", "Cor"])
    assert list(_normalize_columns(df).columns) == [
        "codigo", "quantidade", "posicao", "tempera", "peso_liquido", "observacao_avaria", "cor",
    ]


def test_load_itens_xlsx(tmp_path):
    path = tmp_path / "entradas.xlsx"
    pd.DataFrame({
        "Código": ["6063-178", "1050-ING"],
        "Tipo": ["Tarugo", "lingote"],
        "Quantidade": [40, 12],
        "Coluna": ["A", "B"],
        "Andar": [1, 3],
        "Têmpera": ["T6", None],
        "Lote": ["L-88", None],
    }).to_excel(path, index=False)

    itens = load_itens(path)

    assert len(itens) == 2
    assert itens[0]["codigo"] == "6063-178"
    assert itens[0]["position"] == "A1"
    assert itens[0]["quantidade"] == "40"
    assert itens[0]["tempera"] == "T6"
    assert itens[0]["lote_id"] == "L-88"
    assert itens[1]["position"] == "B3"
    assert itens[1]["tempera"] is None


def test_load_itens_csv_ignora_linhas_vazias(tmp_path):
    path = tmp_path / "entradas.csv"
    path.write_text(
        "codigo;tipo;qtd;posicao\nT-1;tarugo;5;C2\n;;;\nT-2;tarugo;3;C3\n",
        encoding="utf-8",
    )
    itens = load_itens(path)
    assert [i["codigo"] for i in itens] == ["T-1", "T-2"]
    assert [i["position"] for i in itens] == ["C2", "C3"]


def test_planilha_vira_lote(tmp_path, db_path, usuario):
    path = tmp_path / "entradas.xlsx"
    pd.DataFrame({
        "Código": ["T-1", "T-2"],
        "Tipo": ["tarugo", "tarugo"],
        "Quantidade": [5, 6],
        "Posição": ["A1", "A2"],
        "Avaria": [1, None],
    }).to_excel(path, index=False)

    itens = adicionar_lote(load_itens(path), usuario, db_path=db_path)

    assert [(i.codigo, i.quantidade_disponivel, i.quantidade_avaria) for i in itens] == [("T-1", 4, 1), ("T-2", 6, 0)]
    assert len(listar_itens(db_path)) == 2


def test_formato_nao_suportado(tmp_path):
    path = tmp_path / "entradas.txt"
    path.write_text("x", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_itens(path)


def test_arquivo_inexistente(tmp_path):
    with pytest.raises(ValidationError):
        load_itens(tmp_path / "nao_existe.xlsx")
