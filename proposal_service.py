import logging
from datetime import date, timedelta

import client_service
import settings_service
from errors import NotFoundError, ValidationError
from utils import currency_to_number
from workflow import PROPOSTA_RASCUNHO, status_apos_gerar, validar_status_proposta

logger = logging.getLogger(__name__)

_CAMPOS_PROPOSTA = (
    "client_name", "client_email", "client_phone", "service", "scope",
    "value", "deadline", "payment_method", "status",
    "followup_date", "followup_channel", "notes",
)


def normalizar_proposta(dados: dict) -> dict:
    d = {}
    for k in _CAMPOS_PROPOSTA:
        v = dados.get(k)
        if isinstance(v, str):
            v = v.strip()
        d[k] = v or None
    d["value"] = currency_to_number(dados.get("value"))
    d["status"] = d["status"] or PROPOSTA_RASCUNHO
    return d


def validar_proposta(d: dict) -> None:
    if not d.get("client_name"):
        raise ValidationError("Nome do cliente é obrigatório.", campo="client_name")
    if not d.get("service"):
        raise ValidationError("Serviço é obrigatório.", campo="service")
    if d["value"] <= 0:
        raise ValidationError("Valor é obrigatório e deve ser maior que zero.", campo="value")
    validar_status_proposta(d["status"])


def _obter(store, user_id: str, proposal_id: str) -> dict:
    p = store.get("proposals", proposal_id)
    if not p or p.get("user_id") != user_id:
        raise NotFoundError("Proposta não encontrada.")
    return p


def obter_proposta(store, user_id: str, proposal_id: str) -> dict:
    return _obter(store, user_id, proposal_id)


def _salvar(store, user_id: str, d: dict, proposal_id: str = None, hoje: date = None) -> dict:
    d["client_id"] = client_service.find_or_create(
        store, user_id, client_service.dados_cliente_da_proposta(d)
    )

    if proposal_id:
        _obter(store, user_id, proposal_id)
        p = store.update("proposals", proposal_id, d)
        logger.info("Proposta %s atualizada (%s)", proposal_id, p["status"])
        return p

    # validade vem das configurações do usuário
    config = settings_service.obter_configuracoes(store, user_id)
    dias = settings_service.validade_em_dias(config)
    hoje = hoje or date.today()
    d.update(
        user_id=user_id,
        validity_days=dias,
        expires_at=(hoje + timedelta(days=dias)).isoformat(),
    )
    p = store.create("proposals", d)
    logger.info("Proposta %s criada (%s)", p["id"], p["status"])
    return p


def salvar_rascunho(store, user_id: str, dados: dict, proposal_id: str = None, hoje: date = None) -> dict:
    """
    Salva sem mudar o status escolhido. Proposta nova sempre nasce rascunho.
    """
    d = normalizar_proposta(dados)
    if not proposal_id:
        d["status"] = PROPOSTA_RASCUNHO
    validar_proposta(d)
    return _salvar(store, user_id, d, proposal_id, hoje)


def gerar_documento(store, user_id: str, dados: dict = None, proposal_id: str = None, hoje: date = None) -> dict:
    """
    Salva e marca como gerada: rascunho vira enviada, os demais status ficam.
    Sem dados, usa o que já está salvo na proposta.
    """
    if proposal_id:
        dados = {**_obter(store, user_id, proposal_id), **(dados or {})}
    elif dados is None:
        raise ValidationError()

    d = normalizar_proposta(dados)
    validar_proposta(d)
    d["status"] = status_apos_gerar(d["status"])
    return _salvar(store, user_id, d, proposal_id, hoje)


def listar_propostas(store, user_id: str, status: str = None) -> list:
    filtros = {"user_id": user_id}
    if status:
        filtros["status"] = validar_status_proposta(status)
    return store.list("proposals", **filtros)


def excluir_proposta(store, user_id: str, proposal_id: str) -> None:
    _obter(store, user_id, proposal_id)
    store.delete("proposals", proposal_id)
    logger.info("Proposta %s excluída", proposal_id)
