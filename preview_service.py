import os
import re

from jinja2 import Environment, FileSystemLoader, select_autoescape

from contract_service import PAGAMENTO_LABELS
from utils import formatar_data, moeda_pt_br
from workflow import label_status

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")

_env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=select_autoescape(["html"]),
)
_env.filters["moeda"] = moeda_pt_br
_env.filters["data"] = formatar_data

STATUS_CORES = {
    "rascunho": "#6b7280",
    "enviada": "#2563eb",
    "aceita": "#059669",
    "encerrada": "#374151",
    "expirada": "#dc2626",
    "ativo": "#059669",
    "finalizado": "#374151",
    "cancelado": "#dc2626",
}

_RE_TITULO = re.compile(r"^CONTRATO DE PRESTA[CÇ][AÃ]O DE SERVI[CÇ]OS?$|^CONTRATO$", re.IGNORECASE)
_RE_CLAUSULA = re.compile(r"^CL[AÁ]USULA\s+\S+", re.IGNORECASE)
_RE_CLAUSULA_TITULO = re.compile(r"^(CL[AÁ]USULA\s+.+?)\s+[-–:]\s+(.+)$", re.IGNORECASE)
_RE_PARAGRAFO = re.compile(
    r"^[0-9]+\.[0-9]+\.?\s|^Par[aá]grafo\s+(Primeiro|Segundo|Terceiro|Quarto|Quinto|[Úú]nico)",
    re.IGNORECASE,
)
_RE_ITEM = re.compile(r"^[a-z]\)|^[ivxIVX]+\)")
_RE_LOCAL_DATA = re.compile(r"^(Local|Cidade|Data)|^\d{1,2}\s+de\s+\w+\s+de\s+\d{4}|^_{10,}|^-{10,}", re.IGNORECASE)
_RE_ASSINATURA = re.compile(r"^(CONTRATANTE|CONTRATADO|PRESTADOR|TOMADOR)s?:?$", re.IGNORECASE)


def processar_texto_contrato(texto: str) -> list:
    """
    Classifica cada linha do texto do contrato em blocos para o template:
    titulo, clausula, paragrafo_numerado, lista, linha_assinatura, assinatura, paragrafo.
    Itens a), b)... consecutivos ficam no mesmo bloco de lista.
    """
    blocos = []
    lista = None

    for bruta in (texto or "").split("\n"):
        linha = bruta.strip()

        if _RE_ITEM.match(linha):
            if lista is None:
                lista = {"tipo": "lista", "itens": []}
                blocos.append(lista)
            lista["itens"].append(linha)
            continue

        lista = None
        if not linha:
            continue

        if _RE_TITULO.match(linha):
            blocos.append({"tipo": "titulo", "texto": linha})
        elif _RE_CLAUSULA.match(linha):
            m = _RE_CLAUSULA_TITULO.match(linha)
            if m:
                blocos.append({"tipo": "clausula", "numero": m.group(1), "titulo": m.group(2)})
            else:
                blocos.append({"tipo": "clausula", "numero": linha, "titulo": None})
        elif _RE_PARAGRAFO.match(linha):
            palavras = linha.split()
            blocos.append({
                "tipo": "paragrafo_numerado",
                "destaque": " ".join(palavras[:2]),
                "texto": " ".join(palavras[2:]),
            })
        elif _RE_LOCAL_DATA.match(linha):
            blocos.append({"tipo": "linha_assinatura", "texto": linha})
        elif _RE_ASSINATURA.match(linha):
            blocos.append({"tipo": "assinatura", "texto": linha.rstrip(":")})
        else:
            blocos.append({"tipo": "paragrafo", "texto": linha})

    return blocos


def _badge(status: str, tipo: str) -> dict:
    return {"label": label_status(tipo, status), "cor": STATUS_CORES.get(status, "#6b7280")}


def proposta_html(proposta: dict, date_format: str = "dd/mm/aaaa") -> str:
    return _env.get_template("proposta.html").render(
        p=proposta,
        badge=_badge(proposta.get("status"), "proposal"),
        date_format=date_format,
    )


def contrato_html(contrato: dict, date_format: str = "dd/mm/aaaa") -> str:
    endereco = ", ".join(
        x for x in (contrato.get("client_address"), contrato.get("client_city"), contrato.get("client_state")) if x
    )
    return _env.get_template("contrato.html").render(
        c=contrato,
        blocos=processar_texto_contrato(contrato.get("contract_text")) if contrato.get("contract_text") else None,
        endereco=endereco,
        pagamento=PAGAMENTO_LABELS.get(contrato.get("payment_type")),
        badge=_badge(contrato.get("status"), "contract"),
        date_format=date_format,
    )


def renderizar_preview(tipo: str, documento: dict, date_format: str = "dd/mm/aaaa") -> str:
    """
    tipo: 'proposal' ou 'contract'. O mesmo HTML serve de entrada para o PDF.
    """
    if tipo == "proposal":
        return proposta_html(documento, date_format)
    if tipo == "contract":
        return contrato_html(documento, date_format)
    raise ValueError(f"Tipo de documento desconhecido: {tipo}")


def perfil_publico_html(perfil: dict) -> str:
    return _env.get_template("perfil_publico.html").render(perfil=perfil)
