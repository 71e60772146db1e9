from pathlib import Path

import pandas as pd
from typer.testing import CliRunner

from tarugos.adapters.cli import app
from tarugos.domain.models import OrdemStatus, StoragePosition
from tarugos.usecases.estoque import listar_itens
from tarugos.usecases.ordens import listar_ordens
from tarugos.usecases.torre import carregar_torre

runner = CliRunner()


def _add(db: str, codigo: str, posicao: str, quantidade: int = 10):
    return runner.invoke(
        app,
        ["item", "add", "--db", db, "--codigo", codigo, "--tipo", "tarugo",
         "--quantidade", str(quantidade), "--posicao", posicao, "--usuario", "Ana"],
    )


def test_cli_migrate_e_torre(tmp_path: Path):
    db = str(tmp_path / "cli.sqlite")
    result = runner.invoke(app, ["migrate", "--db", db])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["torre", "config", "A:1-4", "B:1,2", "--db", db])
    assert result.exit_code == 0, result.output
    assert carregar_torre(db) == {"A": [1, 2, 3, 4], "B": [1, 2]}

    result = runner.invoke(app, ["torre", "show", "--db", db])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["torre", "mapa", "--livres", "--db", db])
    assert result.exit_code == 0, result.output


def test_cli_item_e_ordem(tmp_path: Path):
    db = str(tmp_path / "cli.sqlite")
    result = _add(db, "T-1", "A1")
    assert result.exit_code == 0, result.output
    (item,) = listar_itens(db)
    assert item.position == StoragePosition("A", 1)

    result = runner.invoke(app, ["ordem", "criar", "--db", db, "--item", f"{item.id}:4", "--empresa", "Cliente A"])
    assert result.exit_code == 0, result.output
    (ordem,) = listar_ordens(db_path=db)
    assert ordem.itens[0].empresa == "Cliente A"

    result = runner.invoke(app, ["ordem", "editar", ordem.id, "--db", db, "--linha", f"{ordem.itens[0].id}=5"])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["ordem", "status", ordem.id, "concluida", "--db", db])
    assert result.exit_code == 0, result.output
    assert listar_ordens(db_path=db)[0].status == OrdemStatus.CONCLUIDA
    (item,) = listar_itens(db)
    assert (item.quantidade, item.quantidade_disponivel, item.quantidade_reservada) == (5, 5, 0)

    for args in (["ordem", "list"], ["ordem", "show", ordem.id], ["mov", "list"], ["item", "list"]):
        result = runner.invoke(app, args + ["--db", db])
        assert result.exit_code == 0, result.output


def test_cli_item_update_remover_transferir(tmp_path: Path):
    db = str(tmp_path / "cli.sqlite")
    _add(db, "T-1", "A1")
    (item,) = listar_itens(db)

    result = runner.invoke(app, ["item", "update", item.id, "--db", db, "--set", "nome=Tarugo 7", "--set", "tempera=h18"])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["item", "transferir", item.id, "C2", "--db", db])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["item", "remover", item.id, "3", "--db", db, "--obs", "amostra"])
    assert result.exit_code == 0, result.output

    (item,) = listar_itens(db)
    assert item.nome == "Tarugo 7"
    assert item.attributes.tempera == "H18"
    assert str(item.position) == "C2"
    assert item.quantidade == 7


def test_cli_erro_de_dominio_sai_com_codigo_1(tmp_path: Path):
    db = str(tmp_path / "cli.sqlite")
    _add(db, "T-1", "H2")

    result = runner.invoke(app, ["torre", "config", "A:1-4", "--db", db])
    assert result.exit_code == 1
    assert "H2" in result.output
    assert "H" in carregar_torre(db)

    (item,) = listar_itens(db)
    result = runner.invoke(app, ["ordem", "criar", "--db", db, "--item", f"{item.id}:50"])
    assert result.exit_code == 1
    assert listar_ordens(db_path=db) == []


def test_cli_importa_planilha(tmp_path: Path):
    db = str(tmp_path / "cli.sqlite")
    path = tmp_path / "entradas.xlsx"
    pd.DataFrame({
        "Código": ["T-1", "L-1"],
        "Tipo": ["tarugo", "lingote"],
        "Quantidade": [5, 2],
        "Posição": ["A1", "A2"],
    }).to_excel(path, index=False)

    result = runner.invoke(app, ["item", "import", str(path), "--db", db])
    assert result.exit_code == 0, result.output
    assert sorted(i.codigo for i in listar_itens(db)) == ["L-1", "T-1"]


def test_cli_relatorio_csv(tmp_path: Path):
    db = str(tmp_path / "cli.sqlite")
    _add(db, "T-1", "A1", quantidade=8)
    destino = tmp_path / "estoque.csv"

    result = runner.invoke(app, ["rel", "estoque", "--db", db, "--csv", str(destino)])
    assert result.exit_code == 0, result.output
    assert destino.exists()
    assert pd.read_csv(destino, encoding="utf-8-sig").loc[0, "quantidade"] == 8

    for args in (["rel", "entradas"], ["rel", "movimentos"], ["rel", "ordens"], ["rel", "resumo"], ["rel", "historico"]):
        result = runner.invoke(app, args + ["--db", db])
        assert result.exit_code == 0, result.output


def test_cli_logs(monkeypatch, tmp_path: Path):
    from tarugos.infra import logger

    monkeypatch.setattr(logger, "ENABLE_LOGGING", False)
    monkeypatch.setattr(logger, "ENABLE_OUTPUT", False)
    result = runner.invoke(app, ["logs", "ordens"])
    assert result.exit_code == 1
    assert "TARUGOS_LOGGING" in result.output

    arquivo = tmp_path / "ordens.log"
    arquivo.write_text("ORDEM_CREATE: OS-2026-00001\n", encoding="utf-8")
    monkeypatch.setattr(logger, "ENABLE_LOGGING", True)
    monkeypatch.setitem(logger.LOG_FILES, "ordens", arquivo)
    result = runner.invoke(app, ["logs", "ordens", "--linhas", "5"])
    assert result.exit_code == 0, result.output
    assert "OS-2026-00001" in result.output
