# tarugos/infra/logger.py
"""
Sistema de logging para as transações do estoque de tarugos/lingotes.

Este módulo configura e fornece loggers para registrar as operações
críticas do sistema: entradas, saídas, ordens de saída e operações no
banco de dados. A gravação é controlada por ``ENABLE_LOGGING`` (variável
de ambiente ``TARUGOS_LOGGING=1``).
"""

import logging
import os
from pathlib import Path
from typing import Dict, Any, Optional

from tarugos.config import LOGS_DIR


# Flag global para habilitar/desabilitar logging
ENABLE_LOGGING = os.getenv("TARUGOS_LOGGING", "0").strip().lower() in {"1", "true", "sim", "yes"}
# Flag global para habilitar/desabilitar prints/output
ENABLE_OUTPUT = False

# Configuração base dos loggers
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configura um logger específico com arquivo de saída.

    O arquivo só é aberto na primeira mensagem (``delay=True``), então
    importar o módulo não cria arquivos quando o logging está desligado.
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    file_handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger

LOG_FILES = {
    "transactions": LOGS_DIR / "transactions.log",
    "entradas": LOGS_DIR / "entradas.log",
    "saidas": LOGS_DIR / "saidas.log",
    "ordens": LOGS_DIR / "ordens.log",
    "database": LOGS_DIR / "database.log",
    "system": LOGS_DIR / "system.log",
}

# Loggers específicos para cada operação
transaction_logger = setup_logger('tarugos.transactions', str(LOG_FILES["transactions"]))
entrada_logger = setup_logger('tarugos.entradas', str(LOG_FILES["entradas"]))
saida_logger = setup_logger('tarugos.saidas', str(LOG_FILES["saidas"]))
ordem_logger = setup_logger('tarugos.ordens', str(LOG_FILES["ordens"]))
database_logger = setup_logger('tarugos.database', str(LOG_FILES["database"]))
system_logger = setup_logger('tarugos.system', str(LOG_FILES["system"]))

def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Registra uma transação completa no log.

    Args:
        operation: Tipo de operação (adicionar_item, criar_ordem, ...)
        data: Dados da transação
        result: Resultado da operação (opcional)
        error: Mensagem de erro (opcional)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    if error:
        transaction_logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")

def log_entrada(action: str, codigo: str, quantidade: int, posicao: str = None, **kwargs) -> None:
    """Log específico para entradas de estoque."""
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "action": action,
        "codigo": codigo,
        "quantidade": quantidade,
        "posicao": posicao,
        **kwargs
    }
    entrada_logger.info(f"ENTRADA_{action.upper()}: {log_data}")

def log_saida(action: str, codigo: str, quantidade: int, posicao: str = None, **kwargs) -> None:
    """Log específico para saídas de estoque."""
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "action": action,
        "codigo": codigo,
        "quantidade": quantidade,
        "posicao": posicao,
        **kwargs
    }
    saida_logger.info(f"SAIDA_{action.upper()}: {log_data}")

def log_ordem(action: str, numero_ordem: str, status: str = None, **kwargs) -> None:
    """Log específico para o ciclo de vida das ordens de saída."""
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "action": action,
        "numero_ordem": numero_ordem,
        "status": status,
        **kwargs
    }
    ordem_logger.info(f"ORDEM_{action.upper()}: {log_data}")

def log_database_operation(table: str, operation: str, affected_rows: int = 0, **kwargs) -> None:
    """
    Log específico para operações no banco de dados.

    Args:
        table: Nome da tabela
        operation: Operação SQL (INSERT, UPDATE, DELETE, SELECT)
        affected_rows: Número de linhas afetadas
        **kwargs: Dados adicionais
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "table": table,
        "operation": operation,
        "affected_rows": affected_rows,
        **kwargs
    }
    database_logger.info(f"DB_{operation}: {log_data}")

def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Log para eventos do sistema.

    Args:
        event: Descrição do evento
        details: Detalhes adicionais (opcional)
        level: Nível do log (info, warning, error)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "event": event,
        "details": details or {}
    }
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")

def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, **kwargs) -> None:
    """Log para operações de arquivo (importação de planilhas, exportação de relatórios)."""
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "operation": operation,
        "file_path": file_path,
        "rows_processed": rows_processed,
        **kwargs
    }
    system_logger.info(f"FILE_{operation.upper()}: {log_data}")

def get_log_summary(log_type: str = "transactions", lines: int = 100) -> Optional[str]:
    """
    Obtém um resumo dos logs recentes.

    Args:
        log_type: Tipo de log (transactions, entradas, saidas, ordens, database, system)
        lines: Número de linhas a retornar

    Returns:
        Conteúdo do log como string
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return None

    log_file = LOG_FILES.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} não encontrado."

    with open(log_file, 'r', encoding='utf-8') as f:
        all_lines = f.readlines()
    return ''.join(all_lines[-lines:])
