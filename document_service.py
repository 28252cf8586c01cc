import contract_service
import proposal_service
from errors import ValidationError
from utils import parse_datetime

TIPOS = ("proposal", "contract")


def documento_da_proposta(p: dict) -> dict:
    return {
        **p,
        "type": "proposal",
        "title": f"Proposta - {p.get('service') or ''} ({p.get('client_name') or ''})",
    }


def documento_do_contrato(c: dict) -> dict:
    return {
        **c,
        "type": "contract",
        "title": f"Contrato - {c.get('service_name') or 'Sem título'} ({c.get('client_name') or 'Cliente'})",
    }


def listar_documentos(store, user_id: str, tipo: str = None, status: str = None) -> list:
    """
    Propostas e contratos numa lista só, mais recentes primeiro.
    """
    if tipo and tipo not in TIPOS:
        raise ValidationError("Tipo de documento inválido.", campo="type")

    docs = []
    if tipo in (None, "proposal"):
        docs += [documento_da_proposta(p) for p in store.list("proposals", user_id=user_id)]
    if tipo in (None, "contract"):
        docs += [documento_do_contrato(c) for c in store.list("contracts", user_id=user_id)]

    if status:
        docs = [d for d in docs if d.get("status") == status]

    docs.sort(key=lambda d: parse_datetime(d["created_at"]), reverse=True)
    return docs


def excluir_documento(store, user_id: str, tipo: str, doc_id: str) -> None:
    if tipo == "proposal":
        proposal_service.excluir_proposta(store, user_id, doc_id)
    elif tipo == "contract":
        contract_service.excluir_contrato(store, user_id, doc_id)
    else:
        raise ValidationError("Tipo de documento inválido.", campo="type")
