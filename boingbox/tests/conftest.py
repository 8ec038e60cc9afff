import os
import tempfile
import pytest
import pytest_asyncio

# Configure test environment before the app modules read it
TEST_ROOT = tempfile.mkdtemp(prefix='boingbox-tests-')
os.environ['DATABASE_URL'] = f"sqlite+aiosqlite:///{os.path.join(TEST_ROOT, 'boingbox.db')}"
os.environ['MEDIA_UPLOAD_DIR'] = os.path.join(TEST_ROOT, 'uploads')
os.environ.setdefault('ENVIRONMENT', 'test')

from httpx import AsyncClient, ASGITransport  # noqa: E402
from boingbox.main import app  # noqa: E402
from boingbox.models import init_models, drop_models  # noqa: E402
from boingbox.media_pipeline import media_pipeline  # noqa: E402


@pytest_asyncio.fixture
async def db():
    await init_models()
    yield
    await drop_models()


@pytest_asyncio.fixture
async def client(db):
    # lifespan does not run under ASGITransport; fixtures do the startup work
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def pipeline(db):
    await media_pipeline.start()
    yield media_pipeline
    await media_pipeline.stop()


@pytest.fixture
def make_user(client):
    async def _make(name: str) -> dict:
        res = await client.post('/api/users/register', json={
            'username': name,
            'email': f'{name}@boingbox.io',
            'password': f'{name}-secret',
        })
        assert res.status_code == 200, res.text
        return res.json()
    return _make
