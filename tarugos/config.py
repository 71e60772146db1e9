# tarugos/config.py
"""
Configurações globais e valores padrão do controle de tarugos/lingotes.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple


# Caminho padrão do banco de dados SQLite
DB_PATH = os.getenv("TARUGOS_DB", os.path.join(os.getcwd(), "tarugos.db"))

# Diretório dos arquivos de log
LOGS_DIR = Path(os.getenv("TARUGOS_LOGS", Path(__file__).parent.parent / "logs"))


@dataclass
class DefaultConfig:
    """Valores padrão usados quando o banco ainda não tem configuração."""
    colunas: str = "ABCDEFGH"
    andares: Tuple[int, ...] = field(default_factory=lambda: (1, 2, 3, 4))
    prefixo_ordem: str = "OS"
    usuario_padrao: str = "Usuário"


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
