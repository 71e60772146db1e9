import sqlite3
from datetime import date, datetime, timedelta, timezone

import pytest

from tarugos.domain.models import StoragePosition, TipoMovimento, Usuario
from tarugos.infra.db import connect, transaction
from tarugos.usecases.movimentos import listar_movimentos, registrar_movimento


def test_registrar_movimento_com_usuario_padrao(db_path):
    with transaction(db_path) as c:
        mov = registrar_movimento(c, "item-1", "entrada", 5, StoragePosition("A", 1), codigo="T-1")
    assert mov.id is not None
    assert mov.user_name == "Usuário"
    assert mov.timestamp.tzinfo is not None


def test_nome_de_exibicao_cai_para_o_email():
    assert Usuario(email="maria.souza@example.com").display_name == "maria.souza"
    assert Usuario(nome="Maria", email="m@example.com").display_name == "Maria"


def test_movimentos_sao_somente_insercao(db_path, novo_item):
    novo_item("T-1", "A1")
    with pytest.raises(sqlite3.DatabaseError):
        with connect(db_path) as c:
            c.execute("UPDATE stock_movements SET quantidade = 99")
    with pytest.raises(sqlite3.DatabaseError):
        with connect(db_path) as c:
            c.execute("DELETE FROM stock_movements")
    assert listar_movimentos(db_path=db_path)[0].quantidade == 10


def test_filtro_por_data_inclui_o_dia_inteiro(db_path, novo_item):
    novo_item("T-1", "A1")
    hoje = datetime.now(timezone.utc).date()

    assert len(listar_movimentos(hoje, hoje, db_path=db_path)) == 1
    assert len(listar_movimentos(hoje.isoformat(), db_path=db_path)) == 1
    assert listar_movimentos(fim=hoje - timedelta(days=1), db_path=db_path) == []
    assert listar_movimentos(inicio=hoje + timedelta(days=1), db_path=db_path) == []


def test_filtro_por_tipo_e_item(db_path, usuario, novo_item):
    a = novo_item("T-1", "A1")
    novo_item("T-2", "A2")
    with transaction(db_path) as c:
        registrar_movimento(c, a.id, TipoMovimento.SAIDA, 2, a.position, usuario=usuario, codigo=a.codigo)

    assert len(listar_movimentos(item_id=a.id, db_path=db_path)) == 2
    saidas = listar_movimentos(tipo=TipoMovimento.SAIDA, db_path=db_path)
    assert [(m.codigo, m.quantidade, m.user_email) for m in saidas] == [("T-1", 2, "joao.silva@example.com")]
