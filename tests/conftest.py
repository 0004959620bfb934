import time
from contextlib import asynccontextmanager

import jwt
import pytest
from fastapi.testclient import TestClient

from main import app
from core.config import Settings, get_settings
from core.database import get_connection_provider, get_db_connection
from core.security import get_current_user_context

TEST_JWT_SECRET = "secreto-de-pruebas-gestor-activos-2024"


@pytest.fixture
def mock_db_conn():
    """Mock de conexión asyncpg: registra las llamadas y devuelve resultados encolados."""
    class MockDbConnection:
        def __init__(self):
            self._execute_calls = []
            self._fetch_results = []
            self._fetchrow_results = []
            self._fetchval_results = []
            self.fetch_error = None

        async def fetch(self, query, *params):
            self._execute_calls.append(('fetch', query, params))
            if self.fetch_error is not None:
                raise self.fetch_error
            return self._fetch_results.pop(0) if self._fetch_results else []

        async def fetchrow(self, query, *params):
            self._execute_calls.append(('fetchrow', query, params))
            return self._fetchrow_results.pop(0) if self._fetchrow_results else None

        async def fetchval(self, query, *params):
            self._execute_calls.append(('fetchval', query, params))
            return self._fetchval_results.pop(0) if self._fetchval_results else None

        # Helpers para configurar mocks
        def set_fetch_result(self, result):
            self._fetch_results.append(result)

        def set_fetchrow_result(self, result):
            self._fetchrow_results.append(result)

        def set_fetchval_result(self, result):
            self._fetchval_results.append(result)

        # Helpers para verificar llamadas
        @property
        def calls(self):
            return list(self._execute_calls)

        def calls_of(self, method):
            return [c for c in self._execute_calls if c[0] == method]

        def called_with_pattern(self, pattern):
            """Verifica si alguna query contiene el patrón."""
            return any(pattern.lower() in call[1].lower() for call in self._execute_calls)

    return MockDbConnection()


@pytest.fixture
def test_settings():
    return Settings(JWT_SECRET=TEST_JWT_SECRET, DEBUG_MODE=False)


@pytest.fixture
def make_token():
    """Genera JWTs firmados con la clave de pruebas."""
    def _make(payload=None, secret=TEST_JWT_SECRET, expires_in=3600):
        data = {"id": 7, "email": "admin@empresa.com", "rol": "admin"}
        if payload is not None:
            data = payload
        data = dict(data)
        data.setdefault("exp", int(time.time()) + expires_in)
        return jwt.encode(data, secret, algorithm="HS256")
    return _make


async def mock_user_context():
    return {
        "user_id": 7,
        "email": "admin@empresa.com",
        "role": "admin"
    }


@pytest.fixture
def client(mock_db_conn, test_settings):
    """Cliente sin autenticación simulada (el guard JWT real está activo)."""
    @asynccontextmanager
    async def mock_acquire():
        yield mock_db_conn

    app.dependency_overrides[get_db_connection] = lambda: mock_db_conn
    app.dependency_overrides[get_connection_provider] = lambda: mock_acquire
    app.dependency_overrides[get_settings] = lambda: test_settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def client_auth(client):
    """Cliente autenticado: el contexto de usuario se inyecta directamente."""
    app.dependency_overrides[get_current_user_context] = mock_user_context
    return client


@pytest.fixture
def client_sin_bd(test_settings):
    """Cliente autenticado con el pool sin inicializar (startup de BD fallido)."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_current_user_context] = mock_user_context
    yield TestClient(app)
    app.dependency_overrides.clear()
