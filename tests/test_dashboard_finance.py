from datetime import date

import pytest

import finance_service
from dashboard_service import arredondar, calcular_metricas, montar_dashboard
from errors import NotFoundError, ValidationError

HOJE = date(2026, 10, 19)


def test_percentual_sem_propostas_enviadas():
    m = calcular_metricas([{"status": "rascunho", "value": 100}], [], [])
    assert m["proposals_sent"] == 0
    assert m["proposals_accepted_percent"] == 0
    assert m["closing_rate"] == 0


def test_metricas_do_funil():
    propostas = [
        {"status": "rascunho", "value": 100},
        {"status": "enviada", "value": 200},
        {"status": "aceita", "value": 300},
        {"status": "encerrada", "value": 400},
        {"status": "expirada", "value": 0},
    ]
    contratos = [
        {"status": "ativo", "value": 1000},
        {"status": "finalizado", "value": 500},
        {"status": "cancelado", "value": 100},
    ]
    registros = [
        {"amount": 300, "is_received": True},
        {"amount": 200, "is_received": False},
    ]
    m = calcular_metricas(propostas, contratos, registros)

    assert m["pipeline"] == {"rascunho": 1, "enviada": 1, "aceita": 1, "encerrada": 1, "expirada": 1}
    assert m["proposals_sent"] == 4
    assert m["proposals_accepted"] == 2
    assert m["proposals_accepted_percent"] == 50
    assert m["total_proposed"] == 1000
    assert m["total_closed"] == 700
    assert m["closing_rate"] == 70
    assert m["contracts_active"] == 1
    assert m["contracts_value"] == 1600
    assert m["received"] == 300
    assert m["outstanding"] == 1300
    assert m["pending_records"] == 200


def test_percentual_sempre_entre_0_e_100():
    for aceitas in range(0, 4):
        propostas = [{"status": "aceita"}] * aceitas + [{"status": "enviada"}] * (3 - aceitas)
        assert 0 <= calcular_metricas(propostas, [], [])["proposals_accepted_percent"] <= 100


def test_arredondamento_meio_para_cima():
    assert arredondar(2.5) == 3
    assert arredondar(66.666) == 67
    assert arredondar(33.3) == 33


def test_recebido_e_saldo_do_contrato():
    contrato = {"id": "c1", "status": "ativo", "value": 1000}
    registros = [
        {"contract_id": "c1", "amount": 300, "is_received": True},
        {"contract_id": "c1", "amount": 200, "is_received": False},
    ]
    m = calcular_metricas([], [contrato], registros)
    assert m["received"] == 300
    assert m["outstanding"] == 700

    resumo = finance_service.resumo_financeiro([contrato], registros, HOJE)
    assert resumo["total_received"] == 300
    assert resumo["total_outstanding"] == 700
    assert resumo["situations"]["parcial"] == 1


@pytest.mark.parametrize("registros,esperado", [
    ([{"contract_id": "c1", "amount": 1000, "is_received": True}], "quitado"),
    ([{"contract_id": "c1", "amount": 100, "is_received": True}], "parcial"),
    ([{"contract_id": "c1", "amount": 100, "is_received": False, "due_date": "2026-10-01"}], "atrasado"),
    ([{"contract_id": "c1", "amount": 100, "is_received": False, "due_date": "2026-11-01"}], "em-dia"),
    ([], "em-dia"),
])
def test_situacao_contrato(registros, esperado):
    contrato = {"id": "c1", "status": "ativo", "value": 1000}
    assert finance_service.situacao_contrato(contrato, registros, HOJE) == esperado


def test_situacao_contrato_rascunho_sem_pagamento():
    assert finance_service.situacao_contrato({"id": "c1", "status": "rascunho", "value": 10}, [], HOJE) is None


def test_registros_crud(store):
    c = store.create("contracts", {"user_id": "u1", "client_name": "Ana", "value": 1000.0, "status": "ativo"})

    r = finance_service.criar_registro(store, "u1", {
        "contract_id": c["id"], "description": "Entrada", "amount": "300,00", "is_received": True,
    }, hoje=HOJE)
    assert r["amount"] == 300.0
    assert r["received_date"] == "2026-10-19"

    pendente = finance_service.criar_registro(store, "u1", {
        "contract_id": c["id"], "description": "Saldo", "amount": 700, "due_date": "20/11/2026",
    })
    assert pendente["is_received"] is False
    assert pendente["due_date"] == "2026-11-20"

    recebido = finance_service.marcar_recebido(store, "u1", pendente["id"], hoje=HOJE)
    assert recebido["is_received"] is True
    assert recebido["received_date"] == "2026-10-19"

    desmarcado = finance_service.marcar_recebido(store, "u1", pendente["id"], recebido=False)
    assert desmarcado["received_date"] is None

    atualizado = finance_service.atualizar_registro(store, "u1", r["id"], {"notes": "via pix", "payment_method": "pix"})
    assert atualizado["payment_method"] == "pix"
    assert atualizado["amount"] == 300.0

    resumo = finance_service.resumo_do_usuario(store, "u1", HOJE)
    assert resumo["total_received"] == 300.0
    assert resumo["active_clients"] == 1

    finance_service.excluir_registro(store, "u1", r["id"])
    assert len(finance_service.listar_registros(store, "u1", c["id"])) == 1


def test_registro_validacao(store):
    with pytest.raises(ValidationError):
        finance_service.criar_registro(store, "u1", {"description": "X", "amount": 0})
    with pytest.raises(ValidationError):
        finance_service.criar_registro(store, "u1", {"description": "X", "amount": 10, "payment_method": "cheque"})
    with pytest.raises(NotFoundError):
        finance_service.criar_registro(store, "u1", {"description": "X", "amount": 10, "contract_id": "nao-existe"})


def test_montar_dashboard(store):
    store.create("proposals", {"user_id": "u1", "status": "enviada", "value": 100.0})
    store.create("proposals", {"user_id": "u2", "status": "aceita", "value": 100.0})
    m = montar_dashboard(store, "u1")
    assert m["total_proposals"] == 1
    assert m["proposals_accepted_percent"] == 0
