# tarugos/infra/eventos.py
"""
Canal de notificações publicado pelo razão após cada commit.

Substitui a assinatura de "realtime" do banco: a UI (ou qualquer outro
consumidor) assina o barramento e recebe um ``Evento`` por alteração
confirmada. Nada é publicado se a transação for desfeita.

Uso:
    from tarugos.infra.eventos import bus
    bus.subscribe(lambda ev: print(ev.tipo, ev.dados), tipo="ordem_status")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from tarugos.infra.logger import log_system_event


ITEM_CRIADO = "item_criado"
ITEM_ATUALIZADO = "item_atualizado"
ITEM_REMOVIDO = "item_removido"
ITEM_TRANSFERIDO = "item_transferido"
ORDEM_CRIADA = "ordem_criada"
ORDEM_ATUALIZADA = "ordem_atualizada"
ORDEM_STATUS = "ordem_status"
TORRE_CONFIGURADA = "torre_configurada"


@dataclass(frozen=True)
class Evento:
    tipo: str
    dados: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Handler = Callable[[Evento], None]


class EventBus:
    def __init__(self) -> None:
        self._handlers: List[Tuple[Optional[str], Handler]] = []

    def subscribe(self, handler: Handler, tipo: Optional[str] = None) -> Callable[[], None]:
        """Assina eventos (todos, ou só ``tipo``). Retorna a função de cancelamento."""
        entry = (tipo, handler)
        self._handlers.append(entry)

        def _unsubscribe() -> None:
            if entry in self._handlers:
                self._handlers.remove(entry)

        return _unsubscribe

    def publish(self, evento: Evento) -> None:
        # o commit já aconteceu: falha de assinante é registrada, não propagada
        for tipo, handler in list(self._handlers):
            if tipo is not None and tipo != evento.tipo:
                continue
            try:
                handler(evento)
            except Exception as e:
                log_system_event(
                    "event_handler_error",
                    {"evento": evento.tipo, "error": str(e)},
                    level="error",
                )

    def clear(self) -> None:
        self._handlers.clear()


# Barramento padrão do processo
bus = EventBus()
