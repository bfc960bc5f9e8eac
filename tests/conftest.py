import os
import tempfile

# Configuración de pruebas: SQLite en memoria y logs en un directorio temporal
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="cleanova-logs-")
os.environ["STORAGE_URL"] = ""
os.environ["STORAGE_SERVICE_KEY"] = ""

import pytest
from fastapi.testclient import TestClient

from cleanova.core import security
from cleanova.crud import crud_catalog, crud_user
from cleanova.db.models_registry import Base
from cleanova.db.session import SessionLocal, engine
from cleanova.main import app
from cleanova.services.asset_resolver import SignedAssetResolver, get_asset_resolver
from cleanova.services.playback_registry import PlaybackRegistry, get_playback_registry
from cleanova.services.storage_service import StorageError

PASSWORD = "cleanova123"


class FakeStorage:
    """Storage en memoria con el mismo contrato que SupabaseStorageClient."""

    def __init__(self, names=None):
        self.names = list(names or [])
        self.fail_paths = set()
        self.fail_listing = False
        self.list_calls = 0
        self.sign_calls = []

    def list_objects(self, bucket):
        self.list_calls += 1
        if self.fail_listing:
            raise StorageError("listing unavailable")
        return [{"name": name} for name in self.names]

    def create_signed_url(self, bucket, path, expires_in):
        self.sign_calls.append((path, expires_in))
        if path in self.fail_paths:
            raise StorageError(f"cannot sign {path}")
        return f"https://storage.test/object/sign/{bucket}/{path}?token=t{len(self.sign_calls)}"


class FakeProgressStore:
    """Almacén de progreso en memoria que registra cada llamada."""

    def __init__(self):
        self.records = {}
        self.inserts = []
        self.updates = []
        self.finds = 0
        self.fail_find = False
        self.fail_write = False

    def find_by_user_and_video(self, user_id, video_id):
        self.finds += 1
        if self.fail_find:
            raise RuntimeError("lookup failed")
        return self.records.get((user_id, video_id))

    def insert(self, record):
        if self.fail_write:
            raise RuntimeError("insert failed")
        self.inserts.append(record)
        self.records[(record.user_id, record.video_id)] = {
            "progress_seconds": record.progress_seconds,
            "is_completed": record.is_completed,
        }

    def update(self, user_id, video_id, fields):
        if self.fail_write:
            raise RuntimeError("update failed")
        self.updates.append((user_id, video_id, dict(fields)))
        self.records[(user_id, video_id)] = dict(fields)

    @property
    def writes(self):
        """(segundos, completado) de cada escritura, en orden."""
        rows = [(r.progress_seconds, r.is_completed) for r in self.inserts]
        rows += [(f["progress_seconds"], f["is_completed"]) for _, _, f in self.updates]
        return rows


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def store():
    return FakeProgressStore()


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def registry():
    return PlaybackRegistry(SessionLocal, backstop_interval=30, idle_seconds=3600)


@pytest.fixture
def client(db, storage, registry):
    app.dependency_overrides[get_asset_resolver] = lambda: SignedAssetResolver(
        storage, bucket="cleanova-videos", ttl_seconds=3600
    )
    app.dependency_overrides[get_playback_registry] = lambda: registry
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def subscriber(db):
    return crud_user.create_user(db, email="ana@cleanova.id", password=PASSWORD, is_subscribed=True)


@pytest.fixture
def auth_headers(subscriber):
    token = security.create_access_token(subject=subscriber.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def catalog(db):
    """Dos categorías y cuatro videos; 'Tips Dapur' tiene tres."""
    kitchen = crud_catalog.create_category(db, "Tips Dapur")
    laundry = crud_catalog.create_category(db, "Laundry")
    videos = {
        "intro": crud_catalog.create_video(
            db, "Membersihkan Kompor", kitchen.id, "videos/kompor.mp4",
            thumbnail_url="thumbs/kompor.jpg", description="Kompor bersih"),
        "sink": crud_catalog.create_video(
            db, "Wastafel Mengkilap", kitchen.id, "videos/wastafel.mp4",
            thumbnail_url="thumbs/wastafel.jpg"),
        "oven": crud_catalog.create_video(
            db, "Oven Bebas Lemak", kitchen.id, "videos/oven.mp4"),
        "shirt": crud_catalog.create_video(
            db, "Noda Kemeja", laundry.id, "videos/kemeja.mp4"),
    }
    return {"kitchen": kitchen, "laundry": laundry, "videos": videos}
