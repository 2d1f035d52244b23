"""One-time, TTL-bounded storage of login state and nonce.

A ``state`` token is written during login initiation and read back exactly
once when the platform posts the launch. Both backends share the contract:

* ``put`` sweeps expired entries, evicts the oldest-inserted entry when the
  store is full, then stores the new entry.
* ``consume`` removes the entry atomically and returns it, or returns None
  when the entry is absent or expired. An expired entry is still removed.
"""

import threading
from collections import OrderedDict
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Protocol

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from edusphere.core.settings import STATE_MAX_ENTRIES_DEFAULT, STATE_TTL_DEFAULT
from edusphere.db.models_lti import LoginStateEntity
from edusphere.lti.types import StateEntry

Clock = Callable[[], datetime]

_NO_SYNC = {"synchronize_session": False}


def utcnow() -> datetime:
    return datetime.now(UTC)


def _is_expired(expires_at: datetime, now: datetime) -> bool:
    if expires_at.tzinfo is None:
        now = now.replace(tzinfo=None)
    return now >= expires_at


class StateStore(Protocol):
    """Contract shared by the state store backends."""

    async def put(self, state: str, nonce: str, login_hint: str) -> None: ...

    async def consume(self, state: str) -> StateEntry | None: ...


class MemoryStateStore:
    """Process-local state store.

    Entries live in an OrderedDict so eviction follows insertion order
    explicitly. A single lock guards every read-modify-write, which makes
    ``consume`` an atomic pop across threads and tasks.
    """

    def __init__(
        self,
        *,
        ttl_seconds: int = STATE_TTL_DEFAULT,
        max_entries: int = STATE_MAX_ENTRIES_DEFAULT,
        clock: Clock = utcnow,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self._ttl = timedelta(seconds=ttl_seconds)
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, StateEntry] = OrderedDict()
        self._lock = threading.Lock()
        # False once a wall clock step back leaves expiry out of insertion order
        self._ordered = True

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, state: object) -> bool:
        with self._lock:
            return state in self._entries

    async def put(self, state: str, nonce: str, login_hint: str) -> None:
        now = self._clock()
        entry = StateEntry(
            nonce=nonce,
            login_hint=login_hint,
            created_at=now,
            expires_at=now + self._ttl,
        )
        with self._lock:
            self._sweep(now)
            # re-putting a key moves it to the newest position
            self._entries.pop(state, None)
            while len(self._entries) >= self._max_entries:
                self._entries.popitem(last=False)
            newest = next(reversed(self._entries.values()), None)
            if newest is not None and newest.expires_at > entry.expires_at:
                self._ordered = False
            self._entries[state] = entry

    async def consume(self, state: str) -> StateEntry | None:
        with self._lock:
            entry = self._entries.pop(state, None)
        if entry is None:
            return None
        if _is_expired(entry.expires_at, self._clock()):
            return None
        return entry

    def _sweep(self, now: datetime) -> None:
        if not self._ordered:
            self._sweep_all(now)
            return
        # TTL is constant, so with a forward-moving clock expired entries form
        # a prefix of insertion order
        while self._entries:
            oldest = next(iter(self._entries.values()))
            if not _is_expired(oldest.expires_at, now):
                break
            self._entries.popitem(last=False)

    def _sweep_all(self, now: datetime) -> None:
        expired = [
            k for k, e in self._entries.items() if _is_expired(e.expires_at, now)
        ]
        for key in expired:
            del self._entries[key]
        expiries = [e.expires_at for e in self._entries.values()]
        self._ordered = all(a <= b for a, b in zip(expiries, expiries[1:]))


class SqlStateStore:
    """State store on the ``lti_login_states`` table.

    Every call runs in its own committed transaction, independent of the
    request session, so a consumed state stays consumed even if the launch
    later fails and the request transaction rolls back.
    """

    def __init__(
        self,
        factory: async_sessionmaker[AsyncSession],
        *,
        ttl_seconds: int = STATE_TTL_DEFAULT,
        max_entries: int = STATE_MAX_ENTRIES_DEFAULT,
        clock: Clock = utcnow,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self._factory = factory
        self._ttl = timedelta(seconds=ttl_seconds)
        self._max_entries = max_entries
        self._clock = clock

    async def put(self, state: str, nonce: str, login_hint: str) -> None:
        now = self._clock()
        async with self._factory() as session, session.begin():
            await session.execute(
                delete(LoginStateEntity).where(LoginStateEntity.expires_at <= now),
                execution_options=_NO_SYNC,
            )
            await session.execute(
                delete(LoginStateEntity).where(LoginStateEntity.state == state),
                execution_options=_NO_SYNC,
            )
            count = await session.scalar(
                select(func.count()).select_from(LoginStateEntity)
            )
            overflow = (count or 0) - self._max_entries + 1
            if overflow > 0:
                oldest = (
                    select(LoginStateEntity.seq)
                    .order_by(LoginStateEntity.seq)
                    .limit(overflow)
                )
                await session.execute(
                    delete(LoginStateEntity).where(LoginStateEntity.seq.in_(oldest)),
                    execution_options=_NO_SYNC,
                )
            session.add(
                LoginStateEntity(
                    state=state,
                    nonce=nonce,
                    login_hint=login_hint,
                    created_at=now,
                    expires_at=now + self._ttl,
                )
            )

    async def consume(self, state: str) -> StateEntry | None:
        stmt = (
            delete(LoginStateEntity)
            .where(LoginStateEntity.state == state)
            .returning(
                LoginStateEntity.nonce,
                LoginStateEntity.login_hint,
                LoginStateEntity.created_at,
                LoginStateEntity.expires_at,
            )
        )
        async with self._factory() as session, session.begin():
            result = await session.execute(stmt, execution_options=_NO_SYNC)
            row = result.one_or_none()
        if row is None:
            return None
        if _is_expired(row.expires_at, self._clock()):
            return None
        return StateEntry(
            nonce=row.nonce,
            login_hint=row.login_hint,
            created_at=row.created_at,
            expires_at=row.expires_at,
        )
