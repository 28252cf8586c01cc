import logging
from datetime import timedelta

from errors import NotFoundError, ValidationError
from subscription_service import STATUS_PAGOS, TRIAL_DIAS
from utils import agora_utc, parse_datetime, so_digitos, validar_cnpj, validar_cpf

logger = logging.getLogger(__name__)

# ordem da exclusão em cascata: dependentes primeiro, identidade por último
ORDEM_EXCLUSAO = (
    "financial_records",
    "contracts",
    "proposals",
    "clients",
    "public_profiles",
    "settings",
    "subscriptions",
    "freelancers",
)

_CAMPOS_PERFIL = (
    "name", "person_type", "cpf", "cnpj", "city", "state",
    "whatsapp", "professional_email", "default_signature",
)


def obter_freelancer(store, user_id: str):
    freelancers = store.list("freelancers", user_id=user_id)
    return freelancers[0] if freelancers else None


def garantir_freelancer(store, user_id: str, email: str = None, name: str = None,
                        marketing_opt_in: bool = False, agora=None, trial_dias: int = TRIAL_DIAS) -> dict:
    """
    Cria o registro do freelancer no primeiro acesso, já com o trial iniciado.
    """
    existente = obter_freelancer(store, user_id)
    if existente:
        return existente

    agora = parse_datetime(agora) or agora_utc()
    f = store.create("freelancers", {
        "user_id": user_id,
        "name": name or "",
        "email": email,
        "plan_type": "free",
        "subscription_status": "trial",
        "trial_started_at": agora,
        "trial_ends_at": agora + timedelta(days=trial_dias),
        "accepted_terms_at": agora,
        "marketing_opt_in": bool(marketing_opt_in),
    })
    logger.info("Freelancer criado para o usuário %s (trial de %s dias)", user_id, trial_dias)
    return f


def atualizar_freelancer(store, user_id: str, dados: dict) -> dict:
    """
    Atualiza os dados profissionais. CPF e CNPJ são exclusivos:
    pf guarda só CPF, pj só CNPJ.
    """
    atual = obter_freelancer(store, user_id)
    if not atual:
        raise NotFoundError("Perfil não encontrado.")

    d = {}
    for k in _CAMPOS_PERFIL:
        if k in dados:
            v = dados[k]
            d[k] = (v.strip() if isinstance(v, str) else v) or None

    if "name" in d and not d["name"]:
        raise ValidationError("Informe seu nome.", campo="name")

    tipo = d.get("person_type") or atual.get("person_type")
    if tipo and tipo not in ("pf", "pj"):
        raise ValidationError("Tipo de pessoa inválido.", campo="person_type")

    if tipo == "pf":
        d["cnpj"] = None
        if d.get("cpf") and not validar_cpf(d["cpf"]):
            raise ValidationError("CPF inválido.", campo="cpf")
    elif tipo == "pj":
        d["cpf"] = None
        if d.get("cnpj") and not validar_cnpj(d["cnpj"]):
            raise ValidationError("CNPJ inválido.", campo="cnpj")

    if d.get("state"):
        d["state"] = d["state"].upper()[:2]
    if d.get("whatsapp"):
        d["whatsapp"] = so_digitos(d["whatsapp"])

    return store.update("freelancers", atual["id"], d)


def _encerrar_cobranca(store, billing, user_id: str) -> None:
    # assinaturas ativas primeiro, depois o cliente no Stripe
    clientes = set()
    for s in store.list("subscriptions", user_id=user_id):
        if s.get("status") in STATUS_PAGOS:
            billing.cancelar_assinatura(s.get("stripe_subscription_id"))
        if s.get("stripe_customer_id"):
            clientes.add(s["stripe_customer_id"])

    freelancer = obter_freelancer(store, user_id)
    if freelancer and freelancer.get("stripe_customer_id"):
        clientes.add(freelancer["stripe_customer_id"])

    for customer_id in sorted(clientes):
        billing.excluir_cliente(customer_id)


def excluir_conta(store, identity, user_id: str, billing=None) -> dict:
    """
    Encerra a cobrança no Stripe, apaga todos os dados do usuário e, por fim,
    a identidade no provedor.
    Pode ser chamada de novo após uma falha parcial.
    Retorna quantos registros saíram de cada tabela.
    """
    if billing is not None:
        _encerrar_cobranca(store, billing, user_id)

    removidos = {}
    for kind in ORDEM_EXCLUSAO:
        removidos[kind] = store.delete_where(kind, user_id=user_id)
        if removidos[kind]:
            logger.info("Conta %s: %s registro(s) removido(s) de %s", user_id, removidos[kind], kind)

    identity.delete_user(user_id)
    logger.info("Conta %s excluída", user_id)
    return removidos
