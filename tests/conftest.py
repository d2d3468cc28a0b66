import pytest
from sqlalchemy.pool import StaticPool

from hospital.models.database import DatabaseManager
from hospital.repositories.registry import Repositories
from hospital.services.forms import Forms


@pytest.fixture
def database():
    """In-memory SQLite behind the real connection manager, schema created."""
    manager = DatabaseManager("sqlite://", poolclass=StaticPool)
    manager.connect()
    manager.init_schema()
    yield manager
    manager.close()


@pytest.fixture
def repos(database):
    return Repositories.build(database.connection)


@pytest.fixture
def forms(repos):
    return Forms.build(repos)
