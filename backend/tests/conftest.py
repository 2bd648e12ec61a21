"""Pytest fixtures for backend tests."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from authguard.core.config import _default_endpoint_limits
from authguard.db.base import Base
from authguard.main import create_app
from authguard.services.auth_policy import AuthAttemptPolicy
from authguard.services.challenge import ChallengeGate
from authguard.services.credentials import CredentialCause, VerificationResult
from authguard.services.rate_limit import RateLimiter
from authguard.stores.memory import MemoryCounterStore, MemoryFailureCounterStore

VALID_CAPTCHA = "valid-captcha-token"


class FakeClock:
    """Controllable UTC clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeCredentialVerifier:
    """Credential service with an in-memory account directory."""

    def __init__(self):
        # email -> (password, confirmed)
        self.accounts: dict[str, tuple[str, bool]] = {}
        self.verify_calls: list[str] = []
        self.create_calls: list[str] = []

    def add_account(self, email: str, password: str, confirmed: bool = True) -> None:
        self.accounts[email.lower()] = (password, confirmed)

    async def verify(self, identity: str, secret: str) -> VerificationResult:
        self.verify_calls.append(identity)
        account = self.accounts.get(identity.lower())
        if account is None:
            return VerificationResult.rejected(CredentialCause.NOT_FOUND)
        password, confirmed = account
        if password != secret:
            return VerificationResult.rejected(CredentialCause.BAD_SECRET)
        if not confirmed:
            return VerificationResult.rejected(CredentialCause.UNCONFIRMED)
        return VerificationResult.accepted()

    async def create_account(self, identity: str, secret: str, profile: dict) -> VerificationResult:
        self.create_calls.append(identity)
        if identity.lower() in self.accounts:
            return VerificationResult.rejected(CredentialCause.DUPLICATE_ON_CREATE)
        if "password" in secret.lower():
            # Service-side weak password policy
            return VerificationResult.rejected(CredentialCause.BAD_SECRET)
        self.add_account(identity, secret, confirmed=False)
        return VerificationResult.accepted()


class FakeChallengeVerifier:
    def __init__(self, valid_tokens: set[str] | None = None):
        self.valid_tokens = valid_tokens if valid_tokens is not None else {VALID_CAPTCHA}
        self.calls: list[str | None] = []

    async def verify_token(self, token: str | None) -> bool:
        self.calls.append(token)
        return token in self.valid_tokens


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def counter_store(clock) -> MemoryCounterStore:
    return MemoryCounterStore(clock=clock)


@pytest.fixture
def failure_store() -> MemoryFailureCounterStore:
    return MemoryFailureCounterStore()


@pytest.fixture
def credentials() -> FakeCredentialVerifier:
    verifier = FakeCredentialVerifier()
    verifier.add_account("alice@example.com", "Correct-horse-1")
    verifier.add_account("pending@example.com", "Correct-horse-1", confirmed=False)
    return verifier


@pytest.fixture
def challenge_verifier() -> FakeChallengeVerifier:
    return FakeChallengeVerifier()


@pytest.fixture
def rate_limiter(counter_store) -> RateLimiter:
    return RateLimiter(counter_store, endpoint_limits=_default_endpoint_limits(), timeout_seconds=1.0)


@pytest.fixture
def challenge_gate(failure_store) -> ChallengeGate:
    return ChallengeGate(failure_store, threshold=3, timeout_seconds=1.0)


@pytest.fixture
def policy(rate_limiter, challenge_gate, credentials, challenge_verifier) -> AuthAttemptPolicy:
    return AuthAttemptPolicy(
        rate_limiter=rate_limiter,
        challenge_gate=challenge_gate,
        credentials=credentials,
        challenge_verifier=challenge_verifier,
        register_requires_challenge=True,
        register_min_response_seconds=0,
    )


@pytest_asyncio.fixture(scope="function")
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory backed by an in-memory SQLite database on one shared connection."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def valid_captcha() -> str:
    return VALID_CAPTCHA


@pytest_asyncio.fixture
async def client(policy) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app wired to the in-memory policy."""
    app = create_app(auth_policy=policy)
    # ASGITransport does not run the lifespan
    app.state.auth_policy = policy

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def file_session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory on a file SQLite database with a real connection pool.

    Each session gets its own connection, so concurrent upserts run as
    separate transactions the way they do against PostgreSQL.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'counters.db'}",
        echo=False,
        connect_args={"timeout": 30},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()
