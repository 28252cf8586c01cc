import subprocess
from datetime import timedelta
from pathlib import Path

import pdf_service
from utils import agora_utc


def _proposta():
    return {"client_name": "Carlos Lima", "service": "Identidade visual", "value": "1.500,00"}


def _contrato():
    return {"client_name": "Maria Souza", "service_name": "Site", "value": 100, "payment_type": "3x"}


def test_health_publico(app):
    r = app.test_client().get("/health")
    assert r.status_code == 200
    assert r.get_json() == {"ok": True, "store": "local"}


def test_api_exige_login(app):
    r = app.test_client().get("/api/propostas")
    assert r.status_code == 401
    assert "erro" in r.get_json()


def test_login_e_logout(app, store):
    c = app.test_client()
    r = c.post("/login", json={"email": "ana@exemplo.com", "password": "errada"})
    assert r.status_code == 401
    assert r.get_json()["erro"] == "E-mail ou senha incorretos."

    r = c.post("/login", json={"email": "ana@exemplo.com", "password": "segredo1"})
    assert r.status_code == 200
    assert r.get_json()["user_id"] == "user-1"
    assert len(store.list("freelancers", user_id="user-1")) == 1

    assert c.get("/api/propostas").status_code == 200
    c.get("/logout")
    assert c.get("/api/propostas").status_code == 401


def test_signup(app, store):
    c = app.test_client()
    r = c.post("/signup", json={"name": "Bia", "email": "bia@x.com", "password": "123456",
                                "confirm_password": "123456", "accept_terms": True, "marketing_opt_in": True})
    assert r.status_code == 201
    assert r.get_json()["confirm_email"] is False

    f = store.list("freelancers", email="bia@x.com")[0]
    assert f["name"] == "Bia"
    assert f["marketing_opt_in"] is True

    r = c.post("/signup", json={"name": "Bia", "email": "bia@x.com", "password": "123",
                                "confirm_password": "123", "accept_terms": True})
    assert r.status_code == 400
    assert r.get_json()["campo"] == "password"


def test_recuperar_e_redefinir_senha(app, identity):
    c = app.test_client()
    assert c.post("/recuperar-senha", json={"email": "ana@exemplo.com"}).status_code == 200
    assert identity.resets == ["ana@exemplo.com"]

    r = c.post("/redefinir-senha", json={"password": "novasenha", "confirm_password": "novasenha"})
    assert r.status_code == 401

    r = c.post("/redefinir-senha", json={"password": "novasenha", "confirm_password": "novasenha",
                                         "access_token": "at", "refresh_token": "rt"})
    assert r.status_code == 200
    assert identity.senhas == [("at", "novasenha")]


def test_fluxo_da_proposta(client):
    r = client.post("/api/propostas", json=_proposta())
    assert r.status_code == 201
    p = r.get_json()
    assert p["status"] == "rascunho"

    r = client.post(f"/api/propostas/{p['id']}/gerar")
    assert r.get_json()["status"] == "enviada"

    r = client.put(f"/api/propostas/{p['id']}", json={**_proposta(), "status": "aceita"})
    assert r.get_json()["status"] == "aceita"

    r = client.get(f"/api/propostas/{p['id']}/preview")
    assert r.status_code == 200
    assert "Carlos Lima" in r.get_data(as_text=True)

    r = client.get("/api/propostas?status=aceita")
    assert [x["id"] for x in r.get_json()] == [p["id"]]

    assert client.delete(f"/api/propostas/{p['id']}").status_code == 200
    assert client.get(f"/api/propostas/{p['id']}").status_code == 404


def test_proposta_invalida(client):
    r = client.post("/api/propostas", json={"client_name": "X", "service": "Y", "value": ""})
    assert r.status_code == 400
    assert r.get_json()["campo"] == "value"


def test_fluxo_do_contrato(client):
    p = client.post("/api/propostas/gerar", json=_proposta()).get_json()

    pre = client.get(f"/api/contratos/prefill/{p['id']}").get_json()
    assert pre["proposal_id"] == p["id"]
    assert pre["service_name"] == "Identidade visual"

    r = client.post("/api/contratos", json=_contrato())
    assert r.status_code == 201
    contrato = r.get_json()
    assert [x["amount"] for x in contrato["payment_installments"]] == [33.33, 33.33, 33.34]
    assert "CLAUSULA PRIMEIRA - DO OBJETO" in contrato["contract_text"]

    r = client.put(f"/api/contratos/{contrato['id']}", json={**_contrato(), "status": "ativo"})
    assert r.get_json()["status"] == "ativo"

    html = client.get(f"/api/contratos/{contrato['id']}/preview").get_data(as_text=True)
    assert "CLAUSULA PRIMEIRA" in html

    texto = client.post("/api/contratos/texto", json={**_contrato(), "deliverables": "Layout"}).get_json()
    assert "CLAUSULA TERCEIRA - DAS REVISOES" in texto["contract_text"]

    docs = client.get("/api/documentos").get_json()
    assert {d["type"] for d in docs} == {"proposal", "contract"}

    clientes = client.get("/api/clientes").get_json()
    assert {c["name"] for c in clientes} == {"Carlos Lima", "Maria Souza"}


def test_pdf_da_proposta(client, monkeypatch):
    def _fake_soffice(args, **kwargs):
        out_dir = args[args.index("--outdir") + 1]
        (Path(out_dir) / Path(args[-1]).with_suffix(".pdf").name).write_bytes(b"%PDF-1.4")
        return subprocess.CompletedProcess(args, 0, stdout="", stderr="")

    monkeypatch.setattr(pdf_service.subprocess, "run", _fake_soffice)
    p = client.post("/api/propostas", json=_proposta()).get_json()

    r = client.get(f"/api/propostas/{p['id']}/pdf")
    assert r.status_code == 200
    assert r.data.startswith(b"%PDF")
    assert "proposta-carlos-lima.pdf" in r.headers["Content-Disposition"]


def test_pdf_falha(client, monkeypatch):
    def _falha(args, **kwargs):
        return subprocess.CompletedProcess(args, 1, stdout="", stderr="sem fonte")

    monkeypatch.setattr(pdf_service.subprocess, "run", _falha)
    p = client.post("/api/propostas", json=_proposta()).get_json()

    r = client.get(f"/api/propostas/{p['id']}/pdf")
    assert r.status_code == 502
    assert r.get_json()["erro"] == "Erro ao gerar PDF."


def test_trial_expirado_bloqueia_criacao(client, store):
    inicio = agora_utc() - timedelta(days=8)
    store.create("freelancers", {
        "user_id": "user-1", "plan_type": "free", "subscription_status": "trial",
        "trial_started_at": inicio, "trial_ends_at": inicio + timedelta(days=7),
    })

    r = client.post("/api/propostas", json=_proposta())
    assert r.status_code == 403

    situacao = client.get("/api/assinatura").get_json()
    assert situacao["subscription_status"] == "expired"
    assert situacao["can_create_documents"] is False

    # leitura continua liberada
    assert client.get("/api/propostas").status_code == 200


def test_financeiro(client):
    contrato = client.post("/api/contratos", json={**_contrato(), "value": 1000, "status": "ativo"}).get_json()

    r1 = client.post("/api/financeiro", json={"contract_id": contrato["id"], "description": "Entrada",
                                              "amount": 300, "is_received": True})
    assert r1.status_code == 201
    r2 = client.post("/api/financeiro", json={"contract_id": contrato["id"], "description": "Saldo",
                                              "amount": 200}).get_json()

    resumo = client.get("/api/financeiro/resumo").get_json()
    assert resumo["resumo"]["total_received"] == 300
    assert resumo["contratos"][0]["outstanding"] == 700

    r = client.post(f"/api/financeiro/{r2['id']}/recebido", json={"recebido": True})
    assert r.get_json()["is_received"] is True

    dash = client.get("/api/dashboard").get_json()
    assert dash["received"] == 500
    assert dash["outstanding"] == 500


def test_configuracoes_e_perfis(client):
    assert client.get("/api/configuracoes").get_json()["validity_unit"] == "dias"
    r = client.put("/api/configuracoes", json={"date_format": "aaaa-mm-dd"})
    assert r.get_json()["date_format"] == "aaaa-mm-dd"

    perfil = client.get("/api/perfil").get_json()
    assert perfil["subscription_status"] == "trial"
    r = client.put("/api/perfil", json={"name": "Ana", "person_type": "pf", "cpf": "529.982.247-25"})
    assert r.get_json()["cpf"] == "529.982.247-25"

    assert client.get("/api/perfil-publico").get_json() == {}
    client.put("/api/perfil-publico", json={"display_name": "Ana Design", "published": True})

    publico = client.application.test_client().get("/p/ana-design")
    assert publico.status_code == 200
    assert "Ana Design" in publico.get_data(as_text=True)


def test_assinatura_checkout_e_portal(client, gateway):
    r = client.post("/api/assinatura/checkout")
    assert r.get_json()["url"].startswith("https://checkout.stripe.com")

    r = client.post("/api/assinatura/portal", json={"return_url": "http://localhost:5000/configuracoes"})
    assert r.get_json()["url"].startswith("https://billing.stripe.com")
    assert gateway.chamadas == [
        ("checkout", "tok", "http://localhost:5000"),
        ("portal", "tok", "http://localhost:5000/configuracoes"),
    ]


def test_excluir_conta(client, store, identity):
    client.post("/api/propostas", json=_proposta())
    assert client.delete("/api/conta").status_code == 200
    assert store.list("proposals", user_id="user-1") == []
    assert identity.excluidos == ["user-1"]
    assert client.get("/api/propostas").status_code == 401


def test_financeiro_por_formulario(client):
    contrato = client.post("/api/contratos", json={**_contrato(), "value": 1000, "status": "ativo"}).get_json()

    r = client.post("/api/financeiro", data={"contract_id": contrato["id"], "description": "Saldo",
                                             "amount": "200,00", "is_received": "false"})
    registro = r.get_json()
    assert registro["is_received"] is False
    assert not registro.get("received_date")

    r = client.post(f"/api/financeiro/{registro['id']}/recebido", data={"recebido": "true"})
    assert r.get_json()["is_received"] is True
    r = client.post(f"/api/financeiro/{registro['id']}/recebido", data={"recebido": "false"})
    assert r.get_json()["is_received"] is False

    resumo = client.get("/api/financeiro/resumo").get_json()
    assert resumo["resumo"]["total_received"] == 0


def test_perfil_publico_por_formulario_nao_publica(client):
    client.put("/api/perfil-publico", data={"display_name": "Ana Design", "published": "off"})
    assert client.application.test_client().get("/p/ana-design").status_code == 404


def test_importar_app_nao_cria_arquivos(tmp_path, monkeypatch):
    import importlib

    import app as app_module

    monkeypatch.chdir(tmp_path)
    importlib.reload(app_module)
    assert list(tmp_path.iterdir()) == []
