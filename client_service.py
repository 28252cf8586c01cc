import logging

from errors import AppError
from utils import parse_datetime, so_digitos

logger = logging.getLogger(__name__)

# campos que só são preenchidos se o cliente existente estiver sem valor
_COMPLEMENTAVEIS = ("email", "phone", "document", "rg", "company_name", "address", "city", "state")


def _nome_normalizado(nome: str) -> str:
    return " ".join((nome or "").split()).casefold()


def _encontrar(clientes: list, dados: dict):
    email = (dados.get("email") or "").strip().lower()
    if email:
        for c in clientes:
            if (c.get("email") or "").strip().lower() == email:
                return c

    doc = so_digitos(dados.get("document"))
    if doc:
        for c in clientes:
            if so_digitos(c.get("document")) == doc:
                return c

    nome = _nome_normalizado(dados.get("name"))
    if nome:
        for c in clientes:
            if _nome_normalizado(c.get("name")) == nome:
                return c

    return None


def find_or_create(store, user_id: str, dados: dict):
    """
    Retorna o id do cliente (existente ou novo) ou None se algo falhar.
    Nunca impede o salvamento da proposta/contrato.
    """
    if not (dados.get("name") or "").strip():
        return None

    try:
        clientes = store.list("clients", user_id=user_id)
        existente = _encontrar(clientes, dados)

        if existente:
            updates = {
                k: dados[k] for k in _COMPLEMENTAVEIS
                if dados.get(k) and not existente.get(k)
            }
            if dados.get("person_type") and dados["person_type"] != existente.get("person_type"):
                updates["person_type"] = dados["person_type"]
            if updates:
                store.update("clients", existente["id"], updates)
            return existente["id"]

        novo = {k: dados.get(k) or None for k in _COMPLEMENTAVEIS}
        novo.update(
            user_id=user_id,
            name=dados["name"].strip(),
            person_type=dados.get("person_type") or "pf",
        )
        return store.create("clients", novo)["id"]

    except AppError as e:
        logger.error("Falha ao vincular cliente '%s': %s", dados.get("name"), e)
        return None


def dados_cliente_da_proposta(p: dict) -> dict:
    return {
        "name": p.get("client_name"),
        "email": p.get("client_email"),
        "phone": p.get("client_phone"),
    }


def dados_cliente_do_contrato(c: dict) -> dict:
    return {
        "name": c.get("client_name"),
        "email": c.get("client_email"),
        "phone": c.get("client_phone"),
        "person_type": c.get("person_type"),
        "document": c.get("client_document"),
        "rg": c.get("client_rg"),
        "company_name": c.get("client_company_name"),
        "address": c.get("client_address"),
        "city": c.get("client_city"),
        "state": c.get("client_state"),
    }


def metricas_cliente(cliente: dict, propostas: list, contratos: list) -> dict:
    ps = [p for p in propostas if p.get("client_id") == cliente["id"]]
    cs = [c for c in contratos if c.get("client_id") == cliente["id"]]

    datas = [parse_datetime(d["created_at"]) for d in ps + cs if d.get("created_at")]
    ultima = max(datas).isoformat() if datas else None

    return {
        **cliente,
        "proposals_count": len(ps),
        "contracts_count": len(cs),
        "last_interaction": ultima,
        "total_proposals_value": sum(float(p.get("value") or 0) for p in ps),
        "total_contracts_value": sum(float(c.get("value") or 0) for c in cs),
    }


def listar_clientes(store, user_id: str) -> list:
    clientes = store.list("clients", user_id=user_id)
    propostas = store.list("proposals", user_id=user_id)
    contratos = store.list("contracts", user_id=user_id)

    out = [metricas_cliente(c, propostas, contratos) for c in clientes]
    out.sort(key=lambda c: _nome_normalizado(c.get("name")))
    return out
