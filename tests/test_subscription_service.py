from datetime import datetime, timedelta, timezone

import pytest

import account_service
import subscription_service
from subscription_service import avaliar_assinatura, dias_restantes

AGORA = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _freelancer(dias_atras: float, **extra):
    inicio = AGORA - timedelta(days=dias_atras)
    f = {
        "plan_type": "free",
        "subscription_status": "trial",
        "trial_started_at": inicio.isoformat(),
        "trial_ends_at": (inicio + timedelta(days=7)).isoformat(),
    }
    f.update(extra)
    return f


def test_trial_expirado():
    s = avaliar_assinatura(_freelancer(8), agora=AGORA)
    assert s["subscription_status"] == "expired"
    assert s["can_create_documents"] is False
    assert s["is_blocked"] is True
    assert s["days_remaining"] == 0


def test_trial_ativo():
    s = avaliar_assinatura(_freelancer(2), agora=AGORA)
    assert s["subscription_status"] == "trial"
    assert s["is_trial_active"] is True
    assert s["can_create_documents"] is True
    assert s["days_remaining"] == 5


def test_usuario_sem_registro_comeca_trial():
    s = avaliar_assinatura(None, agora=AGORA)
    assert s["plan_type"] == "free"
    assert s["days_remaining"] == 7
    assert s["can_create_documents"] is True


def test_plano_pro_ativo():
    s = avaliar_assinatura(_freelancer(30, plan_type="pro", subscription_status="active"), agora=AGORA)
    assert s["plan_type"] == "pro"
    assert s["can_create_documents"] is True
    assert subscription_service.mensagem_status(s) == "Plano Pro ativo"
    assert subscription_service.cor_status(s) == "green"


def test_assinatura_paga_libera_mesmo_com_trial_vencido():
    assinatura = {"status": "active", "stripe_subscription_id": "sub_1", "cancel_at_period_end": False}
    s = avaliar_assinatura(_freelancer(30), assinatura, agora=AGORA)
    assert s["plan_type"] == "pro"
    assert s["subscription_status"] == "active"
    assert s["has_active_subscription"] is True
    assert s["can_create_documents"] is True


def test_assinatura_cancelada_nao_libera():
    s = avaliar_assinatura(_freelancer(30), {"status": "canceled"}, agora=AGORA)
    assert s["has_active_subscription"] is False
    assert s["can_create_documents"] is False


def test_dias_restantes_monotonicos():
    fim = AGORA + timedelta(days=7)
    anteriores = []
    for horas in range(0, 24 * 10, 5):
        anteriores.append(dias_restantes(fim, AGORA + timedelta(hours=horas)))
    assert anteriores == sorted(anteriores, reverse=True)
    assert max(anteriores) <= 7
    assert anteriores[-1] == 0


@pytest.mark.parametrize("dias,mensagem,cor", [
    (5, "Restam 2 dias de teste", "yellow"),
    (6, "Resta 1 dia de teste", "yellow"),
    (1, "Restam 6 dias de teste", "blue"),
    (8, "Período de teste expirado", "red"),
])
def test_mensagens(dias, mensagem, cor):
    s = avaliar_assinatura(_freelancer(dias), agora=AGORA)
    assert subscription_service.mensagem_status(s) == mensagem
    assert subscription_service.cor_status(s) == cor


def test_situacao_marca_bloqueio_uma_vez(store):
    f = account_service.garantir_freelancer(store, "u1", agora=AGORA - timedelta(days=10))
    s = subscription_service.situacao_do_usuario(store, "u1", agora=AGORA)
    assert s["subscription_status"] == "expired"
    assert s["mensagem"] == "Período de teste expirado"

    bloqueado = store.get("freelancers", f["id"])
    assert bloqueado["blocked_at"] == AGORA.isoformat()
    assert bloqueado["subscription_status"] == "expired"

    subscription_service.situacao_do_usuario(store, "u1", agora=AGORA + timedelta(days=1))
    assert store.get("freelancers", f["id"])["blocked_at"] == AGORA.isoformat()


def test_iniciar_trial(store):
    f = account_service.garantir_freelancer(store, "u1", agora=AGORA - timedelta(days=10))
    subscription_service.iniciar_trial(store, f, agora=AGORA)
    s = subscription_service.situacao_do_usuario(store, "u1", agora=AGORA)
    assert s["subscription_status"] == "trial"
    assert s["days_remaining"] == 7
