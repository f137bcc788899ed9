import pytest
from django.contrib.auth.models import User


@pytest.fixture(autouse=True)
def _backup_dir(settings, tmp_path):
    settings.BACKUP_DIR = str(tmp_path / "backups")


@pytest.fixture
def owner(db):
    return User.objects.create_user(username="amina", email="amina@example.com", password="secret123")


@pytest.fixture
def other_owner(db):
    return User.objects.create_user(username="karim", email="karim@example.com", password="secret123")


@pytest.fixture
def owner_client(client, owner):
    client.force_login(owner)
    return client
