import pytest

from tarugos.domain.models import Usuario
from tarugos.infra.eventos import EventBus
from tarugos.infra.migrations import apply_migrations
from tarugos.usecases.estoque import adicionar_item


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "tarugos_test.sqlite")
    apply_migrations(path)
    return path


@pytest.fixture
def usuario():
    return Usuario(id="u-1", email="joao.silva@example.com", nome="João Silva")


@pytest.fixture
def eventos():
    """Barramento isolado que guarda tudo o que foi publicado."""
    bus = EventBus()
    recebidos = []
    bus.subscribe(recebidos.append)
    bus.recebidos = recebidos
    return bus


@pytest.fixture
def novo_item(db_path, usuario):
    """Fábrica de itens: novo_item("T-100", "A1", quantidade=10, ...)."""
    def _novo(codigo="T-100", position="A1", quantidade=10, tipo="tarugo", **extra):
        draft = {"codigo": codigo, "tipo": tipo, "quantidade": quantidade, "position": position}
        draft.update(extra)
        return adicionar_item(draft, usuario, db_path=db_path)
    return _novo
