import os
import sys

import pytest

# raiz do projeto no sys.path para importar os módulos diretamente
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config
from errors import AuthError
from repository import LocalRecordStore


class FakeIdentity:
    def __init__(self):
        self.usuarios = {"ana@exemplo.com": ("segredo1", "user-1")}
        self.excluidos = []
        self.resets = []
        self.senhas = []

    def sign_up(self, email, password, name, marketing_opt_in=False):
        if email in self.usuarios:
            raise AuthError("Este e-mail já está cadastrado.")
        user_id = f"user-{len(self.usuarios) + 1}"
        self.usuarios[email] = (password, user_id)
        return {"user_id": user_id, "email": email, "access_token": "tok-novo", "refresh_token": "ref-novo"}

    def sign_in(self, email, password):
        senha, user_id = self.usuarios.get(email, (None, None))
        if senha is None or senha != password:
            raise AuthError("E-mail ou senha incorretos.")
        return {"user_id": user_id, "email": email, "access_token": "tok", "refresh_token": "ref"}

    def sign_out(self):
        pass

    def request_password_reset(self, email):
        self.resets.append(email)

    def update_password(self, access_token, refresh_token, new_password):
        self.senhas.append((access_token, new_password))

    def delete_user(self, user_id):
        self.excluidos.append(user_id)


class FakeGateway:
    def __init__(self):
        self.chamadas = []

    def criar_checkout(self, token, return_url):
        self.chamadas.append(("checkout", token, return_url))
        return "https://checkout.stripe.com/c/pay/cs_test_123"

    def abrir_portal(self, token, return_url):
        self.chamadas.append(("portal", token, return_url))
        return "https://billing.stripe.com/p/session/test_456"


class FakeBilling:
    """Registra as chamadas e quantas assinaturas ainda existiam no momento."""

    def __init__(self, store):
        self.store = store
        self.chamadas = []

    def cancelar_assinatura(self, subscription_id):
        restantes = len(self.store.list("subscriptions"))
        self.chamadas.append(("cancelar", subscription_id, restantes))
        return True

    def excluir_cliente(self, customer_id):
        restantes = len(self.store.list("subscriptions"))
        self.chamadas.append(("excluir_cliente", customer_id, restantes))
        return True


@pytest.fixture
def store(tmp_path):
    return LocalRecordStore(str(tmp_path / "store.json"))


@pytest.fixture
def identity():
    return FakeIdentity()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def billing(store):
    return FakeBilling(store)


@pytest.fixture
def config(tmp_path):
    class TestConfig(Config):
        TESTING = True
        SECRET_KEY = "test"
        SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
        STORAGE_DIR = str(tmp_path / "data")
        LOCAL_STORE_PATH = str(tmp_path / "cache.json")
        APP_URL = "http://localhost:5000"
        POLITICA_CONTRATO = {}

    return TestConfig


@pytest.fixture
def app(config, store, identity, gateway, billing):
    from app import create_app
    return create_app(config, store=store, identity=identity, gateway=gateway, billing=billing)


@pytest.fixture
def client(app):
    c = app.test_client()
    with c.session_transaction() as s:
        s["user_id"] = "user-1"
        s["access_token"] = "tok"
        s["refresh_token"] = "ref"
    return c
