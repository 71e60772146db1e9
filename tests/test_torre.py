import pytest

from tarugos.domain.errors import PositionOccupied, ValidationError
from tarugos.domain.models import StoragePosition
from tarugos.domain.torre import default_config, is_valid, list_available, normalizar, removed_positions
from tarugos.infra.eventos import TORRE_CONFIGURADA
from tarugos.usecases.torre import carregar_torre, configurar_torre, mapa_ocupacao


def test_grade_padrao_8x4():
    posicoes = list(list_available(default_config()))
    assert len(posicoes) == 32
    assert posicoes[0] == StoragePosition("A", 1)
    assert posicoes[-1] == StoragePosition("H", 4)


def test_list_available_ordenada_e_reiniciavel():
    seq = list_available({"B": [2, 1], "A": [3]})
    esperado = [StoragePosition("A", 3), StoragePosition("B", 1), StoragePosition("B", 2)]
    assert list(seq) == esperado
    # cada iteração recomeça do início
    assert list(seq) == esperado
    assert len(seq) == 3
    assert StoragePosition("B", 2) in seq
    assert StoragePosition("A", 1) not in seq


def test_is_valid():
    cfg = {"A": [1, 2], "C": [5]}
    assert is_valid(cfg, StoragePosition("C", 5))
    assert not is_valid(cfg, StoragePosition("B", 1))
    assert not is_valid(cfg, StoragePosition("A", 3))


def test_normalizar_rejeita_coluna_sem_andares():
    with pytest.raises(ValidationError):
        normalizar({"A": []})


def test_normalizar_rejeita_andar_zero():
    with pytest.raises(ValidationError):
        normalizar({"A": [0, 1]})


def test_removed_positions():
    removidas = removed_positions({"A": [1, 2], "B": [1]}, {"A": [1]})
    assert removidas == {StoragePosition("A", 2), StoragePosition("B", 1)}


def test_sem_configuracao_vale_padrao(db_path):
    assert carregar_torre(db_path) == default_config()


def test_configurar_torre_grava_e_publica(db_path, usuario, eventos):
    cfg = configurar_torre({"a": [2, 1], "B": [1]}, usuario, db_path=db_path, bus=eventos)
    assert cfg == {"A": [1, 2], "B": [1]}
    assert carregar_torre(db_path) == cfg
    assert [e.tipo for e in eventos.recebidos] == [TORRE_CONFIGURADA]


def test_remover_coluna_ocupada_e_rejeitado(db_path, usuario, novo_item, eventos):
    novo_item("T-1", "H2")
    antes = carregar_torre(db_path)
    nova = {c: a for c, a in antes.items() if c != "H"}

    with pytest.raises(PositionOccupied) as exc:
        configurar_torre(nova, usuario, db_path=db_path, bus=eventos)

    assert exc.value.posicoes == ["H2"]
    assert carregar_torre(db_path) == antes
    assert eventos.recebidos == []


def test_remover_posicoes_livres_e_permitido(db_path, usuario, novo_item):
    novo_item("T-1", "A1")
    cfg = configurar_torre({"A": [1], "B": [1, 2]}, usuario, db_path=db_path)
    assert cfg == {"A": [1], "B": [1, 2]}


def test_conflitos_listam_todas_as_posicoes(db_path, usuario, novo_item):
    novo_item("T-1", "G1")
    novo_item("T-2", "H3")
    with pytest.raises(PositionOccupied) as exc:
        configurar_torre({"A": [1, 2, 3, 4]}, usuario, db_path=db_path)
    assert exc.value.posicoes == ["G1", "H3"]


def test_mapa_ocupacao(db_path, usuario, novo_item):
    configurar_torre({"A": [1, 2]}, usuario, db_path=db_path)
    item = novo_item("T-1", "A2")
    mapa = mapa_ocupacao(db_path)
    assert [str(m["position"]) for m in mapa] == ["A1", "A2"]
    assert mapa[0]["occupied"] is False
    assert mapa[1]["occupied"] is True
    assert [i.id for i in mapa[1]["items"]] == [item.id]
