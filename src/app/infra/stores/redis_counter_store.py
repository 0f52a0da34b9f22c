"""Redis Counter Store — contadores de rate limit compartilhados entre instâncias.

O consumo condicional roda num script Lua: Redis executa scripts de forma
atômica, então checar todos os limites e incrementar todos os contadores
acontece sem intercalação de outras requisições.

Contrato de Keys:
    As keys chegam prontas do rate limiter (plataforma + origem + janela).
    O store só adiciona o namespace.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.protocols.counter_store import ConsumeResult, CounterStoreProtocol
from utils.errors import RedisConnectionError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from redis.asyncio import Redis as AsyncRedis

    from app.protocols.counter_store import CounterWindow

logger = logging.getLogger(__name__)

COUNTER_PREFIX = "ratelimit:"

# KEYS = contadores; ARGV = pares (limite, ttl) na mesma ordem das KEYS.
# Retorno: {admitted, count_1, ..., count_n}
CONSUME_IF_BELOW_SCRIPT = """
local counts = {}
local admitted = 1
for i, key in ipairs(KEYS) do
  counts[i] = tonumber(redis.call('GET', key) or '0')
  if counts[i] >= tonumber(ARGV[2 * i - 1]) then admitted = 0 end
end
if admitted == 1 then
  for i, key in ipairs(KEYS) do
    counts[i] = redis.call('INCR', key)
    if counts[i] == 1 then redis.call('EXPIRE', key, tonumber(ARGV[2 * i])) end
  end
end
table.insert(counts, 1, admitted)
return counts
"""


class RedisCounterStore(CounterStoreProtocol):
    """Store de contadores usando Redis (Upstash compatível).

    Args:
        async_redis_client: Cliente Redis assíncrono
    """

    def __init__(self, async_redis_client: AsyncRedis[bytes]) -> None:
        self._redis = async_redis_client
        self._consume_script = async_redis_client.register_script(CONSUME_IF_BELOW_SCRIPT)

    def _key(self, key: str) -> str:
        return f"{COUNTER_PREFIX}{key}"

    async def consume_if_below(self, windows: Sequence[CounterWindow]) -> ConsumeResult:
        """Incrementa todas as janelas se nenhuma atingiu o limite.

        Args:
            windows: Janelas a consumir (minuto, hora...)

        Returns:
            ConsumeResult com contagens após o incremento (se admitido)

        Raises:
            RedisConnectionError: Se o Redis não responder
        """
        keys = [self._key(window.key) for window in windows]
        args: list[int] = []
        for window in windows:
            args.extend((window.limit, window.ttl_seconds))

        try:
            raw = await self._consume_script(keys=keys, args=args)
        except Exception as exc:
            raise RedisConnectionError("Falha ao consumir contadores no Redis") from exc

        admitted, *counts = (int(value) for value in raw)
        if not admitted:
            logger.debug("rate_counter_rejected", extra={"counts": counts})
        return ConsumeResult(admitted=bool(admitted), counts=tuple(counts))

    async def get_counts(self, keys: Sequence[str]) -> list[int]:
        if not keys:
            return []
        try:
            values = await self._redis.mget([self._key(key) for key in keys])
        except Exception as exc:
            raise RedisConnectionError("Falha ao ler contadores no Redis") from exc
        return [int(value) if value is not None else 0 for value in values]

    async def reset(self, keys: Sequence[str]) -> None:
        if not keys:
            return
        try:
            await self._redis.delete(*(self._key(key) for key in keys))
        except Exception as exc:
            raise RedisConnectionError("Falha ao resetar contadores no Redis") from exc
        logger.info("rate_counters_reset", extra={"count": len(keys)})

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except Exception as exc:
            raise RedisConnectionError("Redis não respondeu ao ping") from exc
