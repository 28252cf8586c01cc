"""
Plano e período de teste do freelancer.

Tudo aqui é cálculo de datas sobre o registro do freelancer (e a última
assinatura do provedor de pagamento, quando houver). `agora` é sempre
passado explicitamente pelos testes.
"""
import logging
import math
from datetime import timedelta

from utils import agora_utc, parse_datetime

logger = logging.getLogger(__name__)

TRIAL_DIAS = 7

STATUS_PAGOS = ("active", "trialing")


def dias_restantes(trial_ends_at, agora=None) -> int:
    fim = parse_datetime(trial_ends_at)
    if fim is None:
        return 0
    agora = parse_datetime(agora) or agora_utc()
    dias = math.ceil((fim - agora).total_seconds() / 86400)
    return max(0, dias)


def trial_ativo(trial_ends_at, agora=None) -> bool:
    fim = parse_datetime(trial_ends_at)
    if fim is None:
        return False
    return (parse_datetime(agora) or agora_utc()) < fim


def avaliar_assinatura(freelancer: dict = None, assinatura: dict = None,
                       agora=None, trial_dias: int = TRIAL_DIAS) -> dict:
    """
    Retorna a situação do plano:
    plan_type, subscription_status, trial_started_at, trial_ends_at,
    days_remaining, is_trial_active, is_blocked, can_create_documents
    e os dados da assinatura paga (stripe_*), se existir.
    """
    agora = parse_datetime(agora) or agora_utc()
    tem_assinatura = bool(assinatura and assinatura.get("status") in STATUS_PAGOS)

    if freelancer is None:
        # usuário novo: trial começa agora
        inicio = agora
        fim = agora + timedelta(days=trial_dias)
        plan_type, status = "free", "trial"
    else:
        inicio = (
            parse_datetime(freelancer.get("trial_started_at"))
            or parse_datetime(freelancer.get("created_at"))
            or agora
        )
        fim = parse_datetime(freelancer.get("trial_ends_at")) or inicio + timedelta(days=trial_dias)

        if tem_assinatura:
            plan_type = "pro"
            status = "trial" if assinatura["status"] == "trialing" else "active"
        elif freelancer.get("plan_type") == "pro" and freelancer.get("subscription_status") == "active":
            plan_type, status = "pro", "active"
        else:
            plan_type = freelancer.get("plan_type") or "free"
            status = freelancer.get("subscription_status") or "trial"
            if status == "trial" and plan_type == "free" and not trial_ativo(fim, agora):
                status = "expired"

    ativo = trial_ativo(fim, agora)

    pode_criar = (
        plan_type == "pro"
        or status == "active"
        or (status == "trial" and (tem_assinatura or ativo))
    )

    return {
        "plan_type": plan_type,
        "subscription_status": status,
        "trial_started_at": inicio.isoformat(),
        "trial_ends_at": fim.isoformat(),
        "days_remaining": dias_restantes(fim, agora),
        "is_trial_active": ativo,
        "is_blocked": status in ("blocked", "expired"),
        "can_create_documents": pode_criar,
        "stripe_subscription_id": (assinatura or {}).get("stripe_subscription_id"),
        "stripe_status": (assinatura or {}).get("status"),
        "current_period_end": (assinatura or {}).get("current_period_end"),
        "cancel_at_period_end": bool((assinatura or {}).get("cancel_at_period_end")),
        "has_active_subscription": tem_assinatura,
    }


def mensagem_status(situacao: dict) -> str:
    if situacao["plan_type"] == "pro" and situacao["subscription_status"] == "active":
        return "Plano Pro ativo"

    status = situacao["subscription_status"]
    if status == "trial":
        dias = situacao["days_remaining"]
        if dias == 0:
            return "Seu período de teste termina hoje"
        if dias == 1:
            return "Resta 1 dia de teste"
        return f"Restam {dias} dias de teste"
    if status == "expired":
        return "Período de teste expirado"
    if status == "blocked":
        return "Conta bloqueada"
    return "Plano Free"


def cor_status(situacao: dict) -> str:
    if situacao["plan_type"] == "pro":
        return "green"
    status = situacao["subscription_status"]
    if status == "trial":
        return "yellow" if situacao["days_remaining"] <= 2 else "blue"
    if status in ("expired", "blocked"):
        return "red"
    return "gray"


def ultima_assinatura(store, user_id: str):
    assinaturas = store.list("subscriptions", user_id=user_id)
    return assinaturas[0] if assinaturas else None


def situacao_do_usuario(store, user_id: str, agora=None, trial_dias: int = TRIAL_DIAS) -> dict:
    freelancers = store.list("freelancers", user_id=user_id)
    freelancer = freelancers[0] if freelancers else None
    situacao = avaliar_assinatura(freelancer, ultima_assinatura(store, user_id), agora, trial_dias)
    if freelancer:
        sincronizar_bloqueio(store, freelancer, situacao, agora)
    situacao["mensagem"] = mensagem_status(situacao)
    situacao["cor"] = cor_status(situacao)
    return situacao


def sincronizar_bloqueio(store, freelancer: dict, situacao: dict, agora=None) -> None:
    # marca blocked_at uma vez; a limpeza de contas usa essa data
    if situacao["is_blocked"] and not freelancer.get("blocked_at"):
        store.update("freelancers", freelancer["id"], {
            "blocked_at": parse_datetime(agora) or agora_utc(),
            "subscription_status": situacao["subscription_status"],
        })
        logger.info("Freelancer %s marcado como bloqueado (%s)", freelancer["id"], situacao["subscription_status"])


def iniciar_trial(store, freelancer: dict, agora=None, trial_dias: int = TRIAL_DIAS) -> dict:
    agora = parse_datetime(agora) or agora_utc()
    return store.update("freelancers", freelancer["id"], {
        "plan_type": "free",
        "subscription_status": "trial",
        "trial_started_at": agora,
        "trial_ends_at": agora + timedelta(days=trial_dias),
        "blocked_at": None,
    })
