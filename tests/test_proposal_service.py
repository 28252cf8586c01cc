from datetime import date

import pytest

import proposal_service
import settings_service
from errors import NotFoundError, ValidationError

HOJE = date(2026, 10, 19)


def _proposta(**extra):
    base = {"client_name": "Carlos Lima", "service": "Identidade visual", "value": "1.500,00"}
    base.update(extra)
    return base


def test_rascunho_novo(store):
    p = proposal_service.salvar_rascunho(store, "u1", _proposta(status="aceita"), hoje=HOJE)
    assert p["status"] == "rascunho"
    assert p["value"] == 1500.0
    assert p["validity_days"] == 30
    assert p["expires_at"] == "2026-11-18"


def test_validade_vem_das_configuracoes(store):
    settings_service.atualizar_configuracoes(store, "u1", {"proposal_validity": 2, "validity_unit": "semanas"})
    p = proposal_service.salvar_rascunho(store, "u1", _proposta(), hoje=HOJE)
    assert p["validity_days"] == 14
    assert p["expires_at"] == "2026-11-02"


@pytest.mark.parametrize("campo,dados", [
    ("client_name", {"client_name": "  "}),
    ("service", {"service": ""}),
    ("value", {"value": "0"}),
])
def test_validacao(store, campo, dados):
    with pytest.raises(ValidationError) as e:
        proposal_service.salvar_rascunho(store, "u1", _proposta(**dados))
    assert e.value.campo == campo
    assert store.list("proposals") == []


def test_gerar_rascunho_vira_enviada_uma_vez(store):
    p = proposal_service.salvar_rascunho(store, "u1", _proposta(), hoje=HOJE)
    assert p["status"] == "rascunho"

    gerada = proposal_service.gerar_documento(store, "u1", proposal_id=p["id"])
    assert gerada["status"] == "enviada"

    de_novo = proposal_service.gerar_documento(store, "u1", proposal_id=p["id"])
    assert de_novo["status"] == "enviada"


def test_gerar_mantem_status_escolhido(store):
    p = proposal_service.salvar_rascunho(store, "u1", _proposta(), hoje=HOJE)
    p = proposal_service.salvar_rascunho(store, "u1", {**p, "status": "aceita"}, proposal_id=p["id"])
    assert p["status"] == "aceita"

    assert proposal_service.gerar_documento(store, "u1", proposal_id=p["id"])["status"] == "aceita"


def test_gerar_sem_salvar_antes(store):
    p = proposal_service.gerar_documento(store, "u1", _proposta(), hoje=HOJE)
    assert p["status"] == "enviada"
    assert len(store.list("proposals", user_id="u1")) == 1


def test_status_invalido(store):
    with pytest.raises(ValidationError):
        proposal_service.listar_propostas(store, "u1", status="ganha")


def test_vincula_cliente(store):
    p1 = proposal_service.salvar_rascunho(store, "u1", _proposta(client_email="carlos@exemplo.com"), hoje=HOJE)
    p2 = proposal_service.salvar_rascunho(
        store, "u1", _proposta(client_name="carlos  lima", client_phone="11999998888"), hoje=HOJE
    )
    assert p1["client_id"] == p2["client_id"]

    clientes = store.list("clients", user_id="u1")
    assert len(clientes) == 1
    assert clientes[0]["phone"] == "11999998888"


def test_isolamento_por_usuario(store):
    p = proposal_service.salvar_rascunho(store, "u1", _proposta(), hoje=HOJE)
    with pytest.raises(NotFoundError):
        proposal_service.obter_proposta(store, "u2", p["id"])
    with pytest.raises(NotFoundError):
        proposal_service.excluir_proposta(store, "u2", p["id"])

    proposal_service.excluir_proposta(store, "u1", p["id"])
    assert proposal_service.listar_propostas(store, "u1") == []
