import pytest

from errors import NotFoundError, StoreError
from repository import FallbackRecordStore, LocalRecordStore, SqlRecordStore, escolher_store


def test_local_crud(store):
    p = store.create("proposals", {"user_id": "u1", "client_name": "Ana", "value": 100.0})
    assert p["id"]
    assert p["created_at"]

    assert store.get("proposals", p["id"])["client_name"] == "Ana"

    atualizada = store.update("proposals", p["id"], {"value": 200.0, "id": "outro"})
    assert atualizada["value"] == 200.0
    assert atualizada["id"] == p["id"]

    assert store.delete("proposals", p["id"]) is True
    assert store.get("proposals", p["id"]) is None
    assert store.delete("proposals", p["id"]) is False


def test_local_update_inexistente(store):
    with pytest.raises(NotFoundError):
        store.update("proposals", "nao-existe", {"value": 1})


def test_local_list_filtra_e_ordena(store):
    store.create("proposals", {"user_id": "u1", "status": "rascunho", "created_at": "2026-01-01T00:00:00+00:00"})
    store.create("proposals", {"user_id": "u1", "status": "enviada", "created_at": "2026-03-01T00:00:00+00:00"})
    store.create("proposals", {"user_id": "u2", "status": "enviada", "created_at": "2026-02-01T00:00:00+00:00"})

    todas = store.list("proposals", user_id="u1")
    assert [p["status"] for p in todas] == ["enviada", "rascunho"]
    assert len(store.list("proposals", status="enviada")) == 2


def test_local_delete_where(store):
    for _ in range(3):
        store.create("clients", {"user_id": "u1", "name": "X"})
    store.create("clients", {"user_id": "u2", "name": "Y"})

    assert store.delete_where("clients", user_id="u1") == 3
    assert store.delete_where("clients", user_id="u1") == 0
    assert len(store.list("clients")) == 1


def test_local_tipo_desconhecido(store):
    with pytest.raises(ValueError):
        store.list("invoices")


def test_local_arquivo_corrompido(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{nao e json", encoding="utf-8")
    with pytest.raises(StoreError):
        LocalRecordStore(str(path)).list("proposals")


def test_sql_crud(app):
    with app.app_context():
        sql = SqlRecordStore()
        assert sql.health()

        c = sql.create("contracts", {
            "user_id": "u1",
            "client_name": "Ana",
            "service_name": "Site",
            "value": 1000.0,
            "payment_installments": [{"number": 1, "amount": 1000.0}],
            "campo_desconhecido": "ignorado",
        })
        assert c["payment_installments"][0]["amount"] == 1000.0
        assert "campo_desconhecido" not in c

        assert sql.update("contracts", c["id"], {"status": "ativo"})["status"] == "ativo"
        assert [x["id"] for x in sql.list("contracts", user_id="u1")] == [c["id"]]
        assert sql.delete_where("contracts", user_id="u1") == 1
        assert sql.get("contracts", c["id"]) is None

        with pytest.raises(NotFoundError):
            sql.update("contracts", c["id"], {"status": "ativo"})


class _BancoFora:
    name = "sql"

    def health(self):
        return False

    def create(self, kind, data):
        raise StoreError()

    def get(self, kind, record_id):
        raise StoreError()

    def update(self, kind, record_id, changes):
        raise StoreError()

    def delete(self, kind, record_id):
        raise StoreError()

    def list(self, kind, **filters):
        raise StoreError()

    def delete_where(self, kind, **filters):
        raise StoreError()


def test_fallback_leitura_usa_cache(store):
    registro = store.create("proposals", {"user_id": "u1", "client_name": "Cache"})
    fb = FallbackRecordStore(_BancoFora(), store)

    assert fb.get("proposals", registro["id"])["client_name"] == "Cache"
    assert len(fb.list("proposals", user_id="u1")) == 1


def test_fallback_gravacao_nao_cai_no_cache(store):
    fb = FallbackRecordStore(_BancoFora(), store)
    with pytest.raises(StoreError):
        fb.create("proposals", {"user_id": "u1", "client_name": "X"})
    assert store.list("proposals") == []


def test_fallback_espelha_gravacoes(app, store):
    with app.app_context():
        fb = FallbackRecordStore(SqlRecordStore(), store)
        p = fb.create("proposals", {"user_id": "u1", "client_name": "Ana", "service": "Logo", "value": 50.0})
        assert store.get("proposals", p["id"])["client_name"] == "Ana"

        fb.update("proposals", p["id"], {"status": "enviada"})
        assert store.get("proposals", p["id"])["status"] == "enviada"

        fb.delete("proposals", p["id"])
        assert store.get("proposals", p["id"]) is None


def test_escolher_store(app):
    with app.app_context():
        escolhido = escolher_store(app)
    assert escolhido.name == "sql+local"
