import pytest

from tarugos.adapters.parsers import parse_andares, parse_posicao, parse_torre_spec
from tarugos.domain.errors import ValidationError
from tarugos.domain.models import StoragePosition


@pytest.mark.parametrize(
    "txt,exp",
    [
        ("H2", StoragePosition("H", 2)),
        ("b 3", StoragePosition("B", 3)),
        ("C-1", StoragePosition("C", 1)),
        (" a10 ", StoragePosition("A", 10)),
    ],
)
def test_parse_posicao(txt, exp):
    assert parse_posicao(txt) == exp


def test_parse_posicao_aceita_storage_position():
    pos = StoragePosition("D", 4)
    assert parse_posicao(pos) is pos


@pytest.mark.parametrize("txt", [None, "", "22", "AB1", "A0", "A-"])
def test_parse_posicao_invalida(txt):
    with pytest.raises(ValidationError):
        parse_posicao(txt)


def test_parse_andares():
    assert parse_andares("1-3,6") == [1, 2, 3, 6]
    assert parse_andares("4, 2, 2") == [2, 4]


def test_parse_torre_spec():
    cfg = parse_torre_spec(["a:1-4", "B:1,2"])
    assert cfg == {"A": [1, 2, 3, 4], "B": [1, 2]}


def test_parse_torre_spec_sem_separador():
    with pytest.raises(ValidationError):
        parse_torre_spec(["A1-4"])
