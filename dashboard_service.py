import math

from workflow import PROPOSTA_FECHADAS, PROPOSTA_RASCUNHO, PROPOSTA_STATUS


def arredondar(x: float) -> int:
    # meio para cima (2.5 -> 3), igual ao Math.round do front
    return int(math.floor(x + 0.5))


def percentual(parte: float, total: float) -> int:
    if not total:
        return 0
    return arredondar(parte / total * 100)


def _soma(itens, campo: str) -> float:
    return sum(float(i.get(campo) or 0) for i in itens)


def calcular_metricas(propostas: list, contratos: list, registros: list) -> dict:
    """
    Contadores do dashboard a partir das três listas.
    Divisões por zero retornam 0.
    """
    pipeline = {s: 0 for s in PROPOSTA_STATUS}
    for p in propostas:
        if p.get("status") in pipeline:
            pipeline[p["status"]] += 1

    enviadas = sum(n for s, n in pipeline.items() if s != PROPOSTA_RASCUNHO)
    aceitas = sum(pipeline[s] for s in PROPOSTA_FECHADAS)

    total_proposto = _soma(propostas, "value")
    total_fechado = _soma([p for p in propostas if p.get("status") in PROPOSTA_FECHADAS], "value")

    valor_contratos = _soma(contratos, "value")
    ja_recebido = _soma([r for r in registros if r.get("is_received")], "amount")

    return {
        "pipeline": pipeline,
        "proposals_sent": enviadas,
        "proposals_accepted": aceitas,
        "proposals_accepted_percent": percentual(aceitas, enviadas),
        "proposals_closed": pipeline["encerrada"],
        "total_proposed": total_proposto,
        "total_closed": total_fechado,
        "closing_rate": percentual(total_fechado, total_proposto),
        "total_proposals": len(propostas),
        "contracts_created": len(contratos),
        "contracts_active": sum(1 for c in contratos if c.get("status") == "ativo"),
        "contracts_finished": sum(1 for c in contratos if c.get("status") == "finalizado"),
        "contracts_cancelled": sum(1 for c in contratos if c.get("status") == "cancelado"),
        "contracts_value": valor_contratos,
        "received": ja_recebido,
        "outstanding": max(0.0, valor_contratos - ja_recebido),
        "pending_records": _soma([r for r in registros if not r.get("is_received")], "amount"),
    }


def montar_dashboard(store, user_id: str) -> dict:
    return calcular_metricas(
        store.list("proposals", user_id=user_id),
        store.list("contracts", user_id=user_id),
        store.list("financial_records", user_id=user_id),
    )
