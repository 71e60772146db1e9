# tarugos/adapters/planilha_loader.py
"""
Loader de planilhas (XLSX/CSV) para entrada de vários itens de uma vez.

Essas funções:
- leem a planilha usando pandas;
- normalizam cabeçalhos (acentos, variações, sinônimos);
- retornam listas de dicionários no formato aceito por ``adicionar_lote``.

Observações:
- Quantidades e medidas seguem como texto; a conversão (e o erro com o
  número da linha) fica com ``adicionar_lote``.
- A posição pode vir numa coluna só ("B3") ou em "coluna" + "andar".
- Linhas totalmente vazias são ignoradas.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from tarugos.domain.errors import ValidationError
from tarugos.infra.logger import log_file_operation


# ---------------------------
# utilitários de normalização
# ---------------------------

def _slug(s: str) -> str:
    """Normaliza cabeçalhos: minúsculas, sem acentos, sem não-alfanumérico."""
    if s is None:
        return ""
    s = str(s).strip().lower()
    acentos = dict(zip("áàâãäéèêëíìîïóòôõöúùûüç", "aaaaaeeeeiiiiooooouuuuc"))
    s = "".join(acentos.get(ch, ch) for ch in s)
    s = re.sub(r"[^a-z0-9]+", " ", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s


def _safe_get(row, key) -> Optional[str]:
    """Valor da linha sem NA e sem espaços nas pontas."""
    val = row.get(key)
    if val is None or pd.isna(val):
        return None
    s = str(val).strip()
    return s or None


ALIASES = {
    "codigo": "codigo",
    "cod": "codigo",
    "codigo do item": "codigo",

    "nome": "nome",
    "descricao": "nome",

    "tipo": "tipo",
    "tipo item": "tipo",

    "largura": "largura",
    "altura": "altura",
    "espessura": "espessura",
    "tempera": "tempera",
    "polegada": "polegada",
    "pol": "polegada",
    "acabamento": "acabamento",

    "peso bruto": "peso_bruto",
    "peso liquido": "peso_liquido",

    "quantidade": "quantidade",
    "qtde": "quantidade",
    "qtd": "quantidade",
    "quantidade total": "quantidade",

    "disponivel": "quantidade_disponivel",
    "quantidade disponivel": "quantidade_disponivel",
    "reservada": "quantidade_reservada",
    "reservado": "quantidade_reservada",
    "quantidade reservada": "quantidade_reservada",
    "avaria": "quantidade_avaria",
    "quantidade avaria": "quantidade_avaria",

    "posicao": "posicao",
    "local": "posicao",
    "coluna": "coluna",
    "andar": "andar",

    "observacoes": "observacoes",
    "observacao": "observacoes",
    "obs": "observacoes",
    "observacao disponivel": "observacao_disponivel",
    "observacao reservado": "observacao_reservado",
    "observacao avaria": "observacao_avaria",

    "lote": "lote_id",
    "lote id": "lote_id",
    "usina": "usina",
}

CAMPOS = [
    "codigo", "nome", "tipo", "largura", "altura", "espessura", "tempera", "polegada",
    "acabamento", "peso_bruto", "peso_liquido", "quantidade", "quantidade_disponivel",
    "quantidade_reservada", "quantidade_avaria", "observacoes", "observacao_disponivel",
    "observacao_reservado", "observacao_avaria", "lote_id", "usina",
]


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Renomeia colunas com base em sinônimos/variações."""
    new_cols = {}
    for col in df.columns:
        key = _slug(col)
        new_cols[col] = ALIASES.get(key, key)  # se não houver alias, mantém slug
    return df.rename(columns=new_cols)


def _posicao(row) -> Optional[str]:
    pos = _safe_get(row, "posicao")
    if pos:
        return pos
    coluna, andar = _safe_get(row, "coluna"), _safe_get(row, "andar")
    if coluna and andar:
        # "3.0" vindo de célula numérica
        return f"{coluna}{andar[:-2] if andar.endswith('.0') else andar}"
    return None


# ---------------------------
# loader público
# ---------------------------

def read_planilha(path: Union[str, Path]) -> pd.DataFrame:
    """Lê XLSX/XLS ou CSV como texto, com cabeçalhos normalizados."""
    p = Path(path)
    if not p.exists():
        raise ValidationError(f"Arquivo não encontrado: {p}", campo="arquivo")
    if p.suffix.lower() in {".xlsx", ".xlsm", ".xls"}:
        df = pd.read_excel(p, dtype="string")
    elif p.suffix.lower() == ".csv":
        df = pd.read_csv(p, dtype="string", sep=None, engine="python")
    else:
        raise ValidationError(f"Formato não suportado: {p.suffix or p.name}", campo="arquivo")
    return _normalize_columns(df)


def load_itens(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Lê a planilha e retorna um rascunho de item por linha.

    Campos de saída (chaves do dict por linha): os de ``CAMPOS`` mais
    ``position`` (texto como "B3"). Valores ausentes ficam ``None``.
    """
    df = read_planilha(path)
    out: List[Dict[str, Any]] = []
    for _, row in df.iterrows():
        rec = {campo: _safe_get(row, campo) for campo in CAMPOS}
        rec["position"] = _posicao(row)
        if not any(v is not None for v in rec.values()):
            continue
        out.append(rec)
    log_file_operation("load_itens", str(path), len(out), colunas=list(df.columns))
    return out
