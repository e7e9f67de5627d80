"""
Pytest 配置和共享 fixtures
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("RECONCILE_ON_STARTUP", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from decimal import Decimal

from hotel_admin.database import Base, get_db
from hotel_admin.exceptions import PersistenceError
from hotel_admin.gateway import PersistenceGateway
from hotel_admin.models import ontology
from hotel_admin.models.ontology import Room, RoomType, RoomStatus, Guest, GuestStatus
from hotel_admin.main import app


@pytest.fixture(scope="function")
def db_engine():
    """创建内存数据库引擎"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """创建数据库会话"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """创建测试客户端"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============== 事件 / 网关 Fixtures ==============

@pytest.fixture
def published_events():
    """收集服务发布的事件"""
    return []


@pytest.fixture
def publisher(published_events):
    """不经过全局事件总线的事件发布器"""
    return published_events.append


class FlakyGateway(PersistenceGateway):
    """可按 (操作, 表) 注入 PersistenceError 的网关"""

    def __init__(self, db):
        super().__init__(db)
        self.failures = set()
        self.calls = []

    def fail_on(self, action, model, entity_id=None):
        self.failures.add((action, model.__tablename__, entity_id))

    def heal(self):
        self.failures.clear()

    def _check(self, action, model, entity_id=None):
        table = model.__tablename__
        self.calls.append((action, table))
        if (action, table, None) in self.failures or (action, table, entity_id) in self.failures:
            raise PersistenceError(f"injected {action} failure on {model.__tablename__}")

    def select(self, model, *args, **kwargs):
        self._check("select", model)
        return super().select(model, *args, **kwargs)

    def get(self, model, entity_id):
        self._check("get", model, entity_id)
        return super().get(model, entity_id)

    def insert(self, model, values):
        self._check("insert", model)
        return super().insert(model, values)

    def update(self, model, entity_id, patch):
        self._check("update", model, entity_id)
        return super().update(model, entity_id, patch)

    def delete(self, model, entity_id):
        self._check("delete", model, entity_id)
        return super().delete(model, entity_id)


@pytest.fixture
def flaky_gateway(db_session):
    """故障注入网关"""
    return FlakyGateway(db_session)


# ============== 数据 Fixtures ==============

@pytest.fixture
def sample_room(db_session):
    """创建测试房间 R200，房价 150"""
    room = Room(
        number="R200",
        type=RoomType.DOUBLE,
        status=RoomStatus.AVAILABLE,
        rate=Decimal("150.00")
    )
    db_session.add(room)
    db_session.commit()
    db_session.refresh(room)
    return room


@pytest.fixture
def sample_guest(db_session):
    """创建测试客人"""
    guest = Guest(
        name="Maria Silva",
        email="maria@example.com",
        phone="11999990000",
        cpf="123.456.789-00",
        status=GuestStatus.NO_STAY
    )
    db_session.add(guest)
    db_session.commit()
    db_session.refresh(guest)
    return guest
