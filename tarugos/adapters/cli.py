# tarugos/adapters/cli.py
"""
CLI do estoque de tarugos/lingotes (Typer).

Comandos principais:
- migrate                       -> aplica migrações
- logs <tipo>                   -> últimas linhas de um log
- torre show/config/mapa        -> configuração e ocupação da torre
- item add/import/list/buscar   -> entrada e consulta de itens
- item update/remover/transferir-> edição, baixa manual e troca de posição
- ordem criar/list/show/status/editar -> ordens de saída
- mov list                      -> livro de movimentações
- rel estoque/entradas/movimentos/ordens/resumo/historico -> relatórios (com --csv)
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd
import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tarugos.config import DB_PATH
from tarugos.domain.errors import EstoqueError
from tarugos.domain.models import (
    ITEM_TYPE_LABELS,
    ORDEM_STATUS_LABELS,
    InventoryItem,
    OrdemSaida,
    OrdemStatus,
    TipoMovimento,
    Usuario,
)
from tarugos.adapters.parsers import parse_posicao, parse_torre_spec
from tarugos.adapters.planilha_loader import load_itens
from tarugos.infra.logger import get_log_summary
from tarugos.infra.migrations import apply_migrations
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
from tarugos.usecases.ordens import (
    atualizar_ordem,
    atualizar_status,
    criar_ordem,
    listar_ordens,
    obter_ordem,
)
from tarugos.usecases.relatorios import (
    exportar_csv,
    listar_report_logs,
    relatorio_entradas,
    relatorio_estoque,
    relatorio_movimentacoes,
    relatorio_ordens,
    resumo_estoque,
)
from tarugos.usecases.torre import carregar_torre, configurar_torre, mapa_ocupacao


app = typer.Typer(help="Estoque de Tarugos e Lingotes (CLI)")
console = Console()


# -----------------------
# util
# -----------------------

def _db(db_path: str) -> str:
    """Garante o schema antes de qualquer comando."""
    apply_migrations(db_path)
    return db_path


def _usuario(nome: Optional[str], email: Optional[str]) -> Usuario:
    return Usuario(id=email, email=email, nome=nome)


@contextmanager
def _erros():
    """Erros do domínio viram um painel vermelho e saída com código 1."""
    try:
        yield
    except EstoqueError as e:
        console.print(Panel(str(e), title=f"Erro: {e.code}", border_style="red"))
        raise typer.Exit(code=1)


def _print_json(obj) -> None:
    typer.echo(json.dumps(obj, ensure_ascii=False, indent=2, default=str))


def _fmt(val: Any) -> str:
    if val is None or (isinstance(val, float) and pd.isna(val)):
        return ""
    if isinstance(val, float):
        return f"{val:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    if isinstance(val, datetime):
        return val.strftime("%d/%m/%Y %H:%M")
    return str(val)


def _display_table(data: List[Dict[str, Any]], title: str = "Resultado") -> None:
    """Exibe uma lista de registros em tabela Rich."""
    if not data:
        console.print(Panel("Nenhum dado encontrado", title=title, border_style="yellow"))
        return
    table = Table(title=title, box=box.ROUNDED)
    columns = list(data[0].keys())
    for column in columns:
        if column.lower() in ["quantidade", "disponivel", "reservada", "avaria"]:
            table.add_column(column, justify="right")
        elif column.lower() in ["posicao", "data", "status"]:
            table.add_column(column, justify="center")
        else:
            table.add_column(column)
    for row in data:
        table.add_row(*[_fmt(row.get(col)) for col in columns])
    console.print(table)


def _display_df(df: pd.DataFrame, title: str, csv: Optional[str]) -> None:
    _display_table(df.to_dict(orient="records"), title=title)
    if csv:
        destino = exportar_csv(df, csv)
        console.print(f"[dim]CSV gravado em: {destino}[/dim]")


def _item_row(item: InventoryItem) -> Dict[str, Any]:
    return {
        "id": item.id,
        "codigo": item.codigo,
        "tipo": ITEM_TYPE_LABELS[item.tipo],
        "posicao": str(item.position),
        "quantidade": item.quantidade,
        "disponivel": item.quantidade_disponivel,
        "reservada": item.quantidade_reservada,
        "avaria": item.quantidade_avaria,
        "status": item.status.value,
        "tempera": item.attributes.tempera,
        "acabamento": item.acabamento,
    }


def _display_ordem(ordem: OrdemSaida) -> None:
    cabecalho = [
        f"Número: {ordem.numero_ordem}",
        f"Status: {ORDEM_STATUS_LABELS[ordem.status]}",
        f"Emitida por: {ordem.usuario_nome or '-'}",
        f"Data: {_fmt(ordem.data_emissao)}",
    ]
    if ordem.observacoes:
        cabecalho.append(f"Observações: {ordem.observacoes}")
    console.print(Panel("\n".join(cabecalho), title="Ordem de Saída", subtitle=ordem.id))
    _display_table(
        [
            {
                "linha": l.id,
                "item_id": l.item_id,
                "codigo": l.codigo,
                "tipo": l.tipo,
                "posicao": str(l.position),
                "quantidade": l.quantidade,
                "empresa": l.empresa,
                "observacoes": l.observacoes,
            }
            for l in ordem.itens
        ],
        title="Itens",
    )


def _pares(valores: List[str], opcao: str, sep: str) -> List[tuple]:
    """Interpreta repetições de ``chave<sep>valor`` (ex.: --item abc:5)."""
    out = []
    for v in valores:
        if sep not in v:
            raise typer.BadParameter(f"Use o formato chave{sep}valor: {v!r}", param_hint=opcao)
        chave, valor = v.split(sep, 1)
        out.append((chave.strip(), valor.strip()))
    return out


# -----------------------
# comandos de infra
# -----------------------

@app.command("migrate")
def cmd_migrate(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Aplica migrações no banco."""
    apply_migrations(db_path)
    typer.echo(f">> Migrações aplicadas em: {db_path}")


@app.command("logs")
def cmd_logs(
    tipo: str = typer.Argument("transactions", help="transactions | entradas | saidas | ordens | database | system"),
    linhas: int = typer.Option(50, help="Quantidade de linhas finais"),
):
    """Mostra as últimas linhas de um arquivo de log."""
    resumo = get_log_summary(tipo, lines=linhas)
    if resumo is None:
        typer.echo("Logging desativado (defina TARUGOS_LOGGING=1).")
        raise typer.Exit(code=1)
    typer.echo(resumo)


# -----------------------
# torre
# -----------------------

torre_app = typer.Typer(help="Configuração e ocupação da torre.")
app.add_typer(torre_app, name="torre")


@torre_app.command("show")
def cmd_torre_show(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Mostra colunas e andares configurados."""
    config = carregar_torre(_db(db_path))
    _display_table(
        [{"coluna": col, "andares": ", ".join(str(a) for a in andares)} for col, andares in sorted(config.items())],
        title="Torre",
    )


@torre_app.command("config")
def cmd_torre_config(
    specs: List[str] = typer.Argument(..., help='Colunas e andares, ex.: "A:1-4" "B:1,2,3"'),
    usuario: Optional[str] = typer.Option(None, "--usuario", envvar="TARUGOS_USUARIO", help="Nome de quem opera"),
    email: Optional[str] = typer.Option(None, "--email", envvar="TARUGOS_EMAIL", help="E-mail de quem opera"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Substitui a configuração da torre (recusa remover posições ocupadas)."""
    with _erros():
        config = configurar_torre(parse_torre_spec(specs), usuario=_usuario(usuario, email), db_path=_db(db_path))
    typer.echo(f">> Torre configurada: {len(config)} colunas.")


@torre_app.command("mapa")
def cmd_torre_mapa(
    livres: bool = typer.Option(False, "--livres", help="Somente posições livres"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Mapa de ocupação das posições."""
    mapa = mapa_ocupacao(_db(db_path))
    rows = [
        {
            "posicao": str(m["position"]),
            "ocupada": "sim" if m["occupied"] else "não",
            "itens": ", ".join(i.codigo for i in m["items"]),
            "quantidade": sum(i.quantidade for i in m["items"]),
        }
        for m in mapa
        if not (livres and m["occupied"])
    ]
    _display_table(rows, title="Mapa da Torre")


# -----------------------
# itens
# -----------------------

item_app = typer.Typer(help="Entrada, consulta e edição de itens.")
app.add_typer(item_app, name="item")


@item_app.command("add")
def cmd_item_add(
    codigo: str = typer.Option(..., help="Código do item"),
    tipo: str = typer.Option(..., help="tarugo | lingote"),
    quantidade: int = typer.Option(..., help="Quantidade total"),
    posicao: str = typer.Option(..., help="Posição na torre, ex.: B3"),
    nome: Optional[str] = typer.Option(None),
    largura: Optional[float] = typer.Option(None),
    altura: Optional[float] = typer.Option(None),
    espessura: Optional[float] = typer.Option(None),
    tempera: Optional[str] = typer.Option(None, help="H14 H16 H18 H24 H26 O T6"),
    polegada: Optional[float] = typer.Option(None),
    acabamento: Optional[str] = typer.Option(None),
    peso_bruto: Optional[float] = typer.Option(None),
    peso_liquido: Optional[float] = typer.Option(None),
    reservada: int = typer.Option(0, help="Quantidade já reservada"),
    avaria: int = typer.Option(0, help="Quantidade com avaria"),
    observacoes: Optional[str] = typer.Option(None, "--obs"),
    lote: Optional[str] = typer.Option(None),
    usina: Optional[str] = typer.Option(None),
    usuario: Optional[str] = typer.Option(None, "--usuario", envvar="TARUGOS_USUARIO", help="Nome de quem opera"),
    email: Optional[str] = typer.Option(None, "--email", envvar="TARUGOS_EMAIL", help="E-mail de quem opera"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Registra a entrada de um item."""
    draft = {
        "codigo": codigo,
        "tipo": tipo,
        "quantidade": quantidade,
        "quantidade_reservada": reservada,
        "quantidade_avaria": avaria,
        "position": posicao,
        "nome": nome,
        "largura": largura,
        "altura": altura,
        "espessura": espessura,
        "tempera": tempera,
        "polegada": polegada,
        "acabamento": acabamento,
        "peso_bruto": peso_bruto,
        "peso_liquido": peso_liquido,
        "observacoes": observacoes,
        "lote_id": lote,
        "usina": usina,
    }
    with _erros():
        item = adicionar_item(draft, _usuario(usuario, email), db_path=_db(db_path))
    _display_table([_item_row(item)], title="Entrada Registrada")


@item_app.command("import")
def cmd_item_import(
    path: str = typer.Argument(..., help="Planilha XLSX ou CSV com os itens"),
    usuario: Optional[str] = typer.Option(None, "--usuario", envvar="TARUGOS_USUARIO", help="Nome de quem opera"),
    email: Optional[str] = typer.Option(None, "--email", envvar="TARUGOS_EMAIL", help="E-mail de quem opera"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Entrada de vários itens a partir de uma planilha (tudo ou nada)."""
    with _erros():
        drafts = load_itens(path)
        itens = adicionar_lote(drafts, _usuario(usuario, email), db_path=_db(db_path))
    console.print(Panel(f"Itens registrados: {len(itens)}", title="Entrada em Lote"))
    _display_table([_item_row(i) for i in itens], title="Itens")


@item_app.command("list")
def cmd_item_list(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Lista todos os itens em estoque."""
    _display_table([_item_row(i) for i in listar_itens(_db(db_path))], title="Estoque")


@item_app.command("show")
def cmd_item_show(
    item_id: str = typer.Argument(...),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Mostra todos os campos de um item."""
    with _erros():
        item = obter_item(item_id, _db(db_path))
    _print_json({**_item_row(item), **item.attributes.__dict__, "observacoes": item.observacoes,
                 "lote_id": item.lote_id, "usina": item.usina, "version": item.version})


@item_app.command("buscar")
def cmd_item_buscar(
    termo: Optional[str] = typer.Argument(None, help="Texto procurado"),
    campo: str = typer.Option("codigo", help="codigo | nome | lote | atributos"),
    tipo: Optional[str] = typer.Option(None, help="tarugo | lingote"),
    acabamento: Optional[str] = typer.Option(None),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Busca itens por texto e filtros."""
    with _erros():
        itens = buscar_itens(termo, campo=campo, tipo=tipo, acabamento=acabamento, db_path=_db(db_path))
    _display_table([_item_row(i) for i in itens], title="Resultado da Busca")


@item_app.command("update")
def cmd_item_update(
    item_id: str = typer.Argument(...),
    campos: List[str] = typer.Option(..., "--set", help="campo=valor (repetível)"),
    usuario: Optional[str] = typer.Option(None, "--usuario", envvar="TARUGOS_USUARIO", help="Nome de quem opera"),
    email: Optional[str] = typer.Option(None, "--email", envvar="TARUGOS_EMAIL", help="E-mail de quem opera"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Edita campos de um item (quantidades precisam continuar somando o total)."""
    patch = {k: (v or None) for k, v in _pares(campos, "--set", "=")}
    with _erros():
        item = atualizar_item(item_id, patch, usuario=_usuario(usuario, email), db_path=_db(db_path))
    _display_table([_item_row(item)], title="Item Atualizado")


@item_app.command("remover")
def cmd_item_remover(
    item_id: str = typer.Argument(...),
    quantidade: int = typer.Argument(..., help="Quantidade a baixar"),
    origem: str = typer.Option("disponivel", help="disponivel | avaria"),
    observacoes: Optional[str] = typer.Option(None, "--obs"),
    usuario: Optional[str] = typer.Option(None, "--usuario", envvar="TARUGOS_USUARIO", help="Nome de quem opera"),
    email: Optional[str] = typer.Option(None, "--email", envvar="TARUGOS_EMAIL", help="E-mail de quem opera"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Baixa manual de quantidade (o item é excluído ao zerar)."""
    with _erros():
        item = remover_quantidade(
            item_id, quantidade, _usuario(usuario, email), observacoes=observacoes,
            origem=origem, db_path=_db(db_path),
        )
    if item is None:
        typer.echo(">> Item zerado e removido do estoque.")
    else:
        _display_table([_item_row(item)], title="Saída Registrada")


@item_app.command("transferir")
def cmd_item_transferir(
    item_id: str = typer.Argument(...),
    posicao: str = typer.Argument(..., help="Nova posição, ex.: C2"),
    usuario: Optional[str] = typer.Option(None, "--usuario", envvar="TARUGOS_USUARIO", help="Nome de quem opera"),
    email: Optional[str] = typer.Option(None, "--email", envvar="TARUGOS_EMAIL", help="E-mail de quem opera"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Move um item para outra posição livre."""
    with _erros():
        item = transferir_item(item_id, parse_posicao(posicao), usuario=_usuario(usuario, email), db_path=_db(db_path))
    _display_table([_item_row(item)], title="Item Transferido")


# -----------------------
# ordens de saída
# -----------------------

ordem_app = typer.Typer(help="Ordens de saída.")
app.add_typer(ordem_app, name="ordem")


@ordem_app.command("criar")
def cmd_ordem_criar(
    itens: List[str] = typer.Option(..., "--item", help="item_id:quantidade (repetível)"),
    empresa: Optional[str] = typer.Option(None, help="Empresa de destino (todas as linhas)"),
    observacoes: Optional[str] = typer.Option(None, "--obs"),
    usuario: Optional[str] = typer.Option(None, "--usuario", envvar="TARUGOS_USUARIO", help="Nome de quem opera"),
    email: Optional[str] = typer.Option(None, "--email", envvar="TARUGOS_EMAIL", help="E-mail de quem opera"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Cria uma ordem reservando as quantidades."""
    linhas = [{"item_id": i, "quantidade": q, "empresa": empresa} for i, q in _pares(itens, "--item", ":")]
    with _erros():
        ordem = criar_ordem(linhas, _usuario(usuario, email), observacoes=observacoes, db_path=_db(db_path))
    _display_ordem(ordem)


@ordem_app.command("list")
def cmd_ordem_list(
    status: Optional[OrdemStatus] = typer.Option(None, help="Filtra por status"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Lista as ordens de saída."""
    ordens = listar_ordens(status, db_path=_db(db_path))
    _display_table(
        [
            {
                "id": o.id,
                "numero": o.numero_ordem,
                "data": o.data_emissao,
                "status": ORDEM_STATUS_LABELS[o.status],
                "linhas": len(o.itens),
                "quantidade": sum(l.quantidade for l in o.itens),
                "usuario": o.usuario_nome,
            }
            for o in ordens
        ],
        title="Ordens de Saída",
    )


@ordem_app.command("show")
def cmd_ordem_show(
    ordem_id: str = typer.Argument(...),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Mostra uma ordem e suas linhas."""
    with _erros():
        ordem = obter_ordem(ordem_id, _db(db_path))
    _display_ordem(ordem)


@ordem_app.command("status")
def cmd_ordem_status(
    ordem_id: str = typer.Argument(...),
    novo: OrdemStatus = typer.Argument(..., help="aguardando_envio | concluida | cancelada"),
    usuario: Optional[str] = typer.Option(None, "--usuario", envvar="TARUGOS_USUARIO", help="Nome de quem opera"),
    email: Optional[str] = typer.Option(None, "--email", envvar="TARUGOS_EMAIL", help="E-mail de quem opera"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Muda o status de uma ordem (conclui, cancela ou libera para envio)."""
    with _erros():
        ordem = atualizar_status(ordem_id, novo, _usuario(usuario, email), db_path=_db(db_path))
    typer.echo(f">> {ordem.numero_ordem}: {ORDEM_STATUS_LABELS[ordem.status]}")


@ordem_app.command("editar")
def cmd_ordem_editar(
    ordem_id: str = typer.Argument(...),
    observacoes: Optional[str] = typer.Option(None, "--obs", help="Novo texto (vazio limpa)"),
    linhas: List[str] = typer.Option([], "--linha", help="linha_id=quantidade (repetível)"),
    usuario: Optional[str] = typer.Option(None, "--usuario", envvar="TARUGOS_USUARIO", help="Nome de quem opera"),
    email: Optional[str] = typer.Option(None, "--email", envvar="TARUGOS_EMAIL", help="E-mail de quem opera"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Edita observações e quantidades de uma ordem ainda aberta."""
    updates: Dict[str, Any] = {}
    if observacoes is not None:
        updates["observacoes"] = observacoes
    if linhas:
        updates["itens"] = []
        for linha_id, qtd in _pares(linhas, "--linha", "="):
            if not linha_id.isdigit():
                raise typer.BadParameter(f"Id de linha inválido: {linha_id!r}", param_hint="--linha")
            updates["itens"].append({"id": int(linha_id), "quantidade": qtd})
    if not updates:
        typer.echo("Nada a alterar. Informe --obs ou --linha.")
        raise typer.Exit(code=1)
    with _erros():
        ordem = atualizar_ordem(ordem_id, updates, usuario=_usuario(usuario, email), db_path=_db(db_path))
    _display_ordem(ordem)


# -----------------------
# movimentações
# -----------------------

mov_app = typer.Typer(help="Livro de movimentações.")
app.add_typer(mov_app, name="mov")


@mov_app.command("list")
def cmd_mov_list(
    inicio: Optional[datetime] = typer.Option(None, formats=["%Y-%m-%d"], help="YYYY-MM-DD"),
    fim: Optional[datetime] = typer.Option(None, formats=["%Y-%m-%d"], help="YYYY-MM-DD (inclusivo)"),
    item_id: Optional[str] = typer.Option(None, "--item"),
    tipo: Optional[TipoMovimento] = typer.Option(None),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Lista movimentações, mais recentes primeiro."""
    movs = listar_movimentos(
        inicio.date() if inicio else None,
        fim.date() if fim else None,
        item_id=item_id,
        tipo=tipo,
        db_path=_db(db_path),
    )
    _display_table(
        [
            {
                "data": m.timestamp,
                "tipo": m.tipo.value,
                "codigo": m.codigo,
                "quantidade": m.quantidade,
                "posicao": str(m.position),
                "observacoes": m.observacoes,
                "usuario": m.user_name,
            }
            for m in movs
        ],
        title="Movimentações",
    )


# -----------------------
# relatórios
# -----------------------

rel_app = typer.Typer(help="Relatórios do estoque")
app.add_typer(rel_app, name="rel")


@rel_app.command("estoque")
def rel_estoque(
    csv: Optional[str] = typer.Option(None, "--csv", help="Exporta para CSV"),
    usuario: Optional[str] = typer.Option(None, "--usuario", envvar="TARUGOS_USUARIO", help="Nome de quem opera"),
    email: Optional[str] = typer.Option(None, "--email", envvar="TARUGOS_EMAIL", help="E-mail de quem opera"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Posição atual do estoque."""
    df = relatorio_estoque(_usuario(usuario, email), db_path=_db(db_path))
    _display_df(df, "Relatório de Estoque", csv)


@rel_app.command("entradas")
def rel_entradas(
    inicio: Optional[datetime] = typer.Option(None, formats=["%Y-%m-%d"], help="YYYY-MM-DD"),
    fim: Optional[datetime] = typer.Option(None, formats=["%Y-%m-%d"], help="YYYY-MM-DD (inclusivo)"),
    csv: Optional[str] = typer.Option(None, "--csv", help="Exporta para CSV"),
    usuario: Optional[str] = typer.Option(None, "--usuario", envvar="TARUGOS_USUARIO", help="Nome de quem opera"),
    email: Optional[str] = typer.Option(None, "--email", envvar="TARUGOS_EMAIL", help="E-mail de quem opera"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Entradas do período."""
    df = relatorio_entradas(
        inicio.date() if inicio else None, fim.date() if fim else None,
        usuario=_usuario(usuario, email), db_path=_db(db_path),
    )
    _display_df(df, "Relatório de Entradas", csv)


@rel_app.command("movimentos")
def rel_movimentos(
    inicio: Optional[datetime] = typer.Option(None, formats=["%Y-%m-%d"], help="YYYY-MM-DD"),
    fim: Optional[datetime] = typer.Option(None, formats=["%Y-%m-%d"], help="YYYY-MM-DD (inclusivo)"),
    tipo: Optional[TipoMovimento] = typer.Option(None),
    csv: Optional[str] = typer.Option(None, "--csv", help="Exporta para CSV"),
    usuario: Optional[str] = typer.Option(None, "--usuario", envvar="TARUGOS_USUARIO", help="Nome de quem opera"),
    email: Optional[str] = typer.Option(None, "--email", envvar="TARUGOS_EMAIL", help="E-mail de quem opera"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Entradas e saídas do período."""
    df = relatorio_movimentacoes(
        inicio.date() if inicio else None, fim.date() if fim else None, tipo=tipo,
        usuario=_usuario(usuario, email), db_path=_db(db_path),
    )
    _display_df(df, "Relatório de Movimentações", csv)


@rel_app.command("ordens")
def rel_ordens(
    status: Optional[OrdemStatus] = typer.Option(None, help="Filtra por status"),
    csv: Optional[str] = typer.Option(None, "--csv", help="Exporta para CSV"),
    usuario: Optional[str] = typer.Option(None, "--usuario", envvar="TARUGOS_USUARIO", help="Nome de quem opera"),
    email: Optional[str] = typer.Option(None, "--email", envvar="TARUGOS_EMAIL", help="E-mail de quem opera"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Ordens de saída, uma linha por item."""
    df = relatorio_ordens(status, usuario=_usuario(usuario, email), db_path=_db(db_path))
    _display_df(df, "Relatório de Ordens de Saída", csv)


@rel_app.command("resumo")
def rel_resumo(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Totais por balde e ocupação da torre."""
    resumo = resumo_estoque(_db(db_path))
    _display_table([{"indicador": k, "valor": v} for k, v in resumo.items()], title="Resumo do Estoque")


@rel_app.command("historico")
def rel_historico(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Relatórios gerados (quem e quando)."""
    _display_table(listar_report_logs(_db(db_path)), title="Histórico de Relatórios")


# Entry point opcional:
def main():
    app()


if __name__ == "__main__":
    main()
