import logging
from datetime import date

from errors import NotFoundError, ValidationError
from utils import currency_to_number, parse_bool, parse_data

logger = logging.getLogger(__name__)

FORMAS_PAGAMENTO = ("pix", "transferencia", "boleto", "cartao", "dinheiro")

_CAMPOS = ("contract_id", "description", "amount", "due_date", "received_date",
           "is_received", "payment_method", "notes")


def _data_iso(valor, campo: str):
    try:
        d = parse_data(valor)
    except ValueError:
        raise ValidationError("Data inválida.", campo=campo)
    return d.isoformat() if d else None


def _limpar(store, user_id: str, dados: dict, parcial: bool = False) -> dict:
    d = {}
    for k in _CAMPOS:
        if parcial and k not in dados:
            continue
        v = dados.get(k)
        d[k] = v.strip() if isinstance(v, str) else v

    if not parcial or "description" in d:
        if not d.get("description"):
            raise ValidationError("Informe a descrição.", campo="description")
    if not parcial or "amount" in d:
        d["amount"] = currency_to_number(d.get("amount"))
        if d["amount"] <= 0:
            raise ValidationError("Informe um valor maior que zero.", campo="amount")

    for campo in ("due_date", "received_date"):
        if campo in d:
            d[campo] = _data_iso(d[campo], campo)

    if d.get("payment_method") and d["payment_method"] not in FORMAS_PAGAMENTO:
        raise ValidationError("Forma de pagamento inválida.", campo="payment_method")

    if d.get("contract_id"):
        c = store.get("contracts", d["contract_id"])
        if not c or c.get("user_id") != user_id:
            raise NotFoundError("Contrato não encontrado.")

    if "is_received" in d:
        d["is_received"] = parse_bool(d["is_received"])
    return d


def _obter(store, user_id: str, record_id: str) -> dict:
    r = store.get("financial_records", record_id)
    if not r or r.get("user_id") != user_id:
        raise NotFoundError("Registro não encontrado.")
    return r


def listar_registros(store, user_id: str, contract_id: str = None) -> list:
    filtros = {"user_id": user_id}
    if contract_id:
        filtros["contract_id"] = contract_id
    return store.list("financial_records", **filtros)


def criar_registro(store, user_id: str, dados: dict, hoje: date = None) -> dict:
    d = _limpar(store, user_id, dados)
    d["user_id"] = user_id
    d["is_received"] = parse_bool(d.get("is_received"))
    if d["is_received"] and not d.get("received_date"):
        d["received_date"] = (hoje or date.today()).isoformat()
    r = store.create("financial_records", d)
    logger.info("Registro financeiro %s criado", r["id"])
    return r


def atualizar_registro(store, user_id: str, record_id: str, dados: dict) -> dict:
    _obter(store, user_id, record_id)
    return store.update("financial_records", record_id, _limpar(store, user_id, dados, parcial=True))


def excluir_registro(store, user_id: str, record_id: str) -> None:
    _obter(store, user_id, record_id)
    store.delete("financial_records", record_id)
    logger.info("Registro financeiro %s excluído", record_id)


def marcar_recebido(store, user_id: str, record_id: str, recebido: bool = True,
                    received_date=None, hoje: date = None) -> dict:
    """
    Recebido sem data usa hoje; desmarcar limpa a data.
    """
    _obter(store, user_id, record_id)
    if recebido:
        data = _data_iso(received_date, "received_date") or (hoje or date.today()).isoformat()
    else:
        data = None
    return store.update("financial_records", record_id, {"is_received": recebido, "received_date": data})


def total_recebido(contract_id: str, registros: list) -> float:
    return sum(
        float(r.get("amount") or 0) for r in registros
        if r.get("contract_id") == contract_id and r.get("is_received")
    )


def situacao_contrato(contrato: dict, registros: list, hoje: date = None):
    """
    quitado, parcial, atrasado ou em-dia. Contrato não ativo e sem pagamento: None.
    """
    pago = total_recebido(contrato["id"], registros)
    valor = float(contrato.get("value") or 0)

    if pago >= valor:
        return "quitado"
    if pago > 0:
        return "parcial"
    if contrato.get("status") != "ativo":
        return None

    hoje = hoje or date.today()
    for r in registros:
        if r.get("contract_id") != contrato["id"] or r.get("is_received") or not r.get("due_date"):
            continue
        if parse_data(r["due_date"]) < hoje:
            return "atrasado"
    return "em-dia"


def resumo_financeiro(contratos: list, registros: list, hoje: date = None) -> dict:
    faturado = sum(float(c.get("value") or 0) for c in contratos)
    recebido = sum(float(r.get("amount") or 0) for r in registros if r.get("is_received"))
    ativos = [c for c in contratos if c.get("status") == "ativo"]

    situacoes = {"em-dia": 0, "parcial": 0, "quitado": 0, "atrasado": 0}
    for c in contratos:
        s = situacao_contrato(c, registros, hoje)
        if s:
            situacoes[s] += 1

    return {
        "total_billed": faturado,
        "total_received": recebido,
        "total_outstanding": max(0.0, faturado - recebido),
        "total_contracts": len(contratos),
        "active_contracts": len(ativos),
        "active_clients": len({(c.get("client_name") or "").strip().casefold() for c in ativos}),
        "situations": situacoes,
    }


def resumo_do_usuario(store, user_id: str, hoje: date = None) -> dict:
    return resumo_financeiro(
        store.list("contracts", user_id=user_id),
        store.list("financial_records", user_id=user_id),
        hoje,
    )


def contratos_com_recebimentos(store, user_id: str, hoje: date = None) -> list:
    contratos = store.list("contracts", user_id=user_id)
    registros = store.list("financial_records", user_id=user_id)
    out = []
    for c in contratos:
        pago = total_recebido(c["id"], registros)
        out.append({
            "id": c["id"],
            "client_name": c.get("client_name"),
            "service_name": c.get("service_name"),
            "value": c.get("value"),
            "status": c.get("status"),
            "received": pago,
            "outstanding": max(0.0, float(c.get("value") or 0) - pago),
            "situation": situacao_contrato(c, registros, hoje),
        })
    return out
