import logging
import random
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from .config import Settings
from .helpers import Clock, now_ts
from .infra.sql import backend_name, make_async_engine
from .model.order import create_schema
from .payments import PaymentAdapter, new_adapter
from .uploads import ensure_dirs

log = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Everything a request needs besides the request itself."""
    settings: Settings
    adapter: PaymentAdapter
    rng: random.Random = field(default_factory=random.Random)
    clock: Clock = now_ts
    engine: Optional[AsyncEngine] = None
    SessionAsync: Optional[async_sessionmaker[AsyncSession]] = None

    @classmethod
    def from_settings(cls, settings: Settings,
                      adapter: Optional[PaymentAdapter] = None,
                      rng: Optional[random.Random] = None,
                      clock: Optional[Clock] = None) -> "AppContext":
        if adapter is None:
            adapter = new_adapter(
                settings.payment_backend,
                settings.stripe_secret_key,
                timeout=settings.payment_timeout,
            )
        return cls(
            settings=settings,
            adapter=adapter,
            rng=rng or random.Random(),
            clock=clock or now_ts,
        )

    async def init(self) -> None:
        s = self.settings
        ensure_dirs(s.uploads_dir, s.templates_dir)
        self.engine, self.SessionAsync = make_async_engine(s.database_url)
        async with self.engine.begin() as conn:
            await create_schema(conn)
        log.info("database %s ready", backend_name(s.database_url))

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            self.SessionAsync = None
