from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional


LONG_TTL = 300  # 5 минут для успешных ответов
SHORT_TTL = 15  # 15 секунд для not-found и ошибок


@dataclass
class CachedTxResult:
    value: dict
    status_code: int
    expires_at: float


class TxResultCache:
    """
    Процессный кэш ответов по хэшу транзакции.

    Записи не удаляются, только перезаписываются; устаревшая запись
    просто перестаёт отдаваться из get().
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._store: Dict[str, CachedTxResult] = {}
        self._clock = clock

    def get(self, key: str) -> Optional[CachedTxResult]:
        entry = self._store.get(key)
        if entry is None or self._clock() >= entry.expires_at:
            return None
        return entry

    def set(self, key: str, value: dict, status_code: int, ttl: float) -> CachedTxResult:
        entry = CachedTxResult(value=value, status_code=status_code, expires_at=self._clock() + ttl)
        self._store[key] = entry
        return entry

    def __len__(self) -> int:
        return len(self._store)


tx_cache = TxResultCache()


def get_tx_cache() -> TxResultCache:
    return tx_cache
