import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

import client_service
from errors import NotFoundError, ValidationError
from utils import (
    currency_to_number, data_pt_br, extenso_pt_br, formatar_data,
    formatar_data_extenso, moeda_pt_br, numero_com_extenso,
    numero_decimal_pt_br, validar_cnpj, validar_cpf,
)
from workflow import CONTRATO_RASCUNHO, validar_status_contrato

logger = logging.getLogger(__name__)

# percentuais de cada parcela por tipo de pagamento (somam 100)
PAGAMENTO_CONFIG = {
    "a-vista": [Decimal("100")],
    "2x": [Decimal("50"), Decimal("50")],
    "3x": [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")],
    "50-50": [Decimal("50"), Decimal("50")],
    "30-70": [Decimal("30"), Decimal("70")],
    "parcelado-acordo": [],
}

PAGAMENTO_LABELS = {
    "a-vista": "A vista",
    "2x": "2x sem juros",
    "3x": "3x sem juros",
    "50-50": "50% + 50%",
    "30-70": "30% + 70%",
    "parcelado-acordo": "Parcelado conforme acordo",
}

# valores fixos das cláusulas (sobrescritos por CONTRATO_* no .env)
POLITICA_PADRAO = {
    "rodadas_revisao": 2,
    "prazo_revisao_dias_uteis": 5,
    "suporte_dias": 30,
    "multa_percentual": 2,
    "juros_mensal_percentual": 1,
    "suspensao_dias": 10,
    "aviso_rescisao_dias": 15,
    "confidencialidade_anos": 2,
}

_ORDINAIS = [
    "PRIMEIRA", "SEGUNDA", "TERCEIRA", "QUARTA", "QUINTA",
    "SEXTA", "SETIMA", "OITAVA", "NONA",
]

ORDINAIS = {i + 1: o for i, o in enumerate(_ORDINAIS)}
ORDINAIS[10] = "DECIMA"
ORDINAIS.update({10 + i + 1: f"DECIMA {o}" for i, o in enumerate(_ORDINAIS)})
ORDINAIS[20] = "VIGESIMA"
ORDINAIS.update({20 + i + 1: f"VIGESIMA {o}" for i, o in enumerate(_ORDINAIS)})
ORDINAIS[30] = "TRIGESIMA"

PESSOA_TIPOS = ("pf", "pj")
PRAZO_MODOS = ("days", "date")
PRAZO_TIPOS = ("dias-uteis", "dias-corridos")

_CENTAVO = Decimal("0.01")


def ordinal_clausula(n: int) -> str:
    return ORDINAIS.get(n, f"{n}a")


def calcular_parcelas(payment_type: str, value, datas=None) -> list:
    """
    Divide o valor conforme PAGAMENTO_CONFIG.
    A última parcela absorve o arredondamento (valor - soma das anteriores).
    """
    percentuais = PAGAMENTO_CONFIG.get(payment_type)
    if percentuais is None:
        raise ValidationError("Forma de pagamento inválida.", campo="payment_type")

    datas = list(datas or [])
    total = Decimal(str(value or 0)).quantize(_CENTAVO, rounding=ROUND_HALF_UP)

    parcelas = []
    acumulado = Decimal("0")
    for i, pct in enumerate(percentuais):
        if i == len(percentuais) - 1:
            amount = total - acumulado
        else:
            amount = (total * pct / 100).quantize(_CENTAVO, rounding=ROUND_HALF_UP)
            acumulado += amount

        parcelas.append({
            "number": i + 1,
            "percentage": float(pct),
            "amount": float(amount),
            "due_date": (datas[i] if i < len(datas) else None) or None,
        })

    return parcelas


def _txt(v):
    v = (v or "").strip() if isinstance(v, str) else v
    return v or None


def normalizar_contrato(dados: dict) -> dict:
    """
    Limpa os campos do formulário e recalcula as parcelas.
    Só um dos prazos fica preenchido, conforme deadline_mode.
    """
    d = {k: _txt(v) for k, v in dados.items()}

    d["person_type"] = d.get("person_type") or "pf"
    d["deadline_mode"] = d.get("deadline_mode") or "days"
    d["payment_type"] = d.get("payment_type") or "a-vista"
    d["status"] = d.get("status") or CONTRATO_RASCUNHO
    d["value"] = currency_to_number(d.get("value"))

    if d["deadline_mode"] == "days":
        try:
            dias = int(d.get("deadline_days")) if d.get("deadline_days") is not None else None
        except (TypeError, ValueError):
            dias = None
        d["deadline_days"] = dias if dias and dias > 0 else None
        d["deadline_type"] = d.get("deadline_type") or "dias-uteis"
        d["deadline_date"] = None
    else:
        d["deadline_days"] = None
        d["deadline_type"] = None

    # datas das parcelas: lista explícita ou as já salvas
    datas = d.pop("installment_dates", None)
    if datas is None and d.get("payment_installments"):
        datas = [p.get("due_date") for p in d["payment_installments"]]
    if d["payment_type"] in PAGAMENTO_CONFIG:
        parcelas = calcular_parcelas(d["payment_type"], d["value"], datas)
        d["payment_installments"] = parcelas or None

    return d


def validar_contrato(d: dict) -> None:
    if not d.get("client_name"):
        raise ValidationError(campo="client_name")
    if not d.get("service_name"):
        raise ValidationError(campo="service_name")
    if not d.get("value") or d["value"] <= 0:
        raise ValidationError("Informe um valor maior que zero.", campo="value")

    if d["person_type"] not in PESSOA_TIPOS:
        raise ValidationError("Tipo de pessoa inválido.", campo="person_type")
    if d["deadline_mode"] not in PRAZO_MODOS:
        raise ValidationError("Modo de prazo inválido.", campo="deadline_mode")
    if d.get("deadline_type") and d["deadline_type"] not in PRAZO_TIPOS:
        raise ValidationError("Tipo de prazo inválido.", campo="deadline_type")
    if d["payment_type"] not in PAGAMENTO_CONFIG:
        raise ValidationError("Forma de pagamento inválida.", campo="payment_type")
    validar_status_contrato(d["status"])

    doc = d.get("client_document")
    if doc:
        if d["person_type"] == "pf" and not validar_cpf(doc):
            raise ValidationError("CPF inválido.", campo="client_document")
        if d["person_type"] == "pj" and not validar_cnpj(doc):
            raise ValidationError("CNPJ inválido.", campo="client_document")


# ---------------- texto do contrato ----------------

def _quantidade(n: int, singular: str, plural: str) -> str:
    return f"{numero_com_extenso(n)} {singular if n == 1 else plural}"


def _percentual(n) -> str:
    return f"{numero_decimal_pt_br(n)}% ({extenso_pt_br(n)} por cento)"


def _info_cliente(d: dict) -> str:
    if d["person_type"] == "pf":
        info = d.get("client_name") or ""
        if d.get("client_document"):
            info += f", inscrito no CPF sob o n. {d['client_document']}"
        if d.get("client_rg"):
            info += f", RG {d['client_rg']}"
        return info

    info = d.get("client_company_name") or d.get("client_name") or ""
    if d.get("client_document"):
        info += f", inscrita no CNPJ sob o n. {d['client_document']}"
    return info + f", neste ato representada por {d.get('client_name') or ''}"


def _texto_prazo(d: dict) -> str:
    if d["deadline_mode"] == "days":
        if not d.get("deadline_days"):
            return ""
        tipo = "dias uteis" if d.get("deadline_type") == "dias-uteis" else "dias corridos"
        return f"{d['deadline_days']} {tipo}"
    if d.get("deadline_date"):
        return f"ate {formatar_data_extenso(d['deadline_date'])}"
    return ""


def _texto_pagamento(d: dict) -> str:
    if d["payment_type"] == "parcelado-acordo":
        return "conforme acordo entre as partes"

    parcelas = d.get("payment_installments") or []
    if len(parcelas) == 1:
        texto = f"a vista, no valor de {moeda_pt_br(d['value'])}"
        if parcelas[0].get("due_date"):
            texto += f", com vencimento em {formatar_data(parcelas[0]['due_date'])}"
        return texto

    linhas = [f"em {len(parcelas)} parcelas:"]
    for p in parcelas:
        linha = f"  - {p['number']}a parcela: {moeda_pt_br(p['amount'])} ({numero_decimal_pt_br(p['percentage'])}%)"
        if p.get("due_date"):
            linha += f" - vencimento: {formatar_data(p['due_date'])}"
        linhas.append(linha)
    return "\n".join(linhas)


def _cabecalho(d: dict) -> str:
    contratante = f"CONTRATANTE: {_info_cliente(d)}"
    endereco = ", ".join(x for x in (d.get("client_address"), d.get("client_city"), d.get("client_state")) if x)
    if endereco:
        contratante += f"\nEndereco: {endereco}"
    if d.get("client_email"):
        contratante += f"\nE-mail: {d['client_email']}"
    if d.get("client_phone"):
        contratante += f"\nTelefone: {d['client_phone']}"

    return "\n\n".join([
        "CONTRATO DE PRESTACAO DE SERVICOS",
        "Pelo presente instrumento particular, de um lado:",
        contratante,
        "E de outro lado o CONTRATADO (prestador de servicos), tem entre si justo e acordado o seguinte:",
    ])


def _objeto(d, pol):
    return (
        f"O presente contrato tem por objeto a prestacao dos seguintes servicos: {d.get('service_name') or ''}\n\n"
        "Paragrafo unico: O CONTRATADO se compromete a executar os servicos com zelo, diligencia e boa tecnica, "
        "observando as especificacoes acordadas entre as partes."
    )


def _escopo(d, pol):
    return (
        f"{d['service_scope']}\n\n"
        "Paragrafo unico: Quaisquer servicos, funcionalidades ou entregas nao descritos expressamente nesta clausula "
        "estao fora do escopo deste contrato e, se solicitados, deverao ser objeto de nova negociacao."
    )


def _entregas(d, pol):
    return (
        f"{d['deliverables']}\n\n"
        "Paragrafo unico: As entregas serao consideradas aprovadas apos o prazo de "
        f"{_quantidade(pol['prazo_revisao_dias_uteis'], 'dia util', 'dias uteis')} contados do recebimento, "
        "caso o CONTRATANTE nao apresente ressalvas por escrito."
    )


def _revisoes(d, pol):
    return (
        f"Estao incluidos no valor deste contrato {_quantidade(pol['rodadas_revisao'], 'ciclo', 'ciclos')} de revisao "
        "sobre as entregas, a serem solicitados de forma consolidada pelo CONTRATANTE no prazo de "
        f"{_quantidade(pol['prazo_revisao_dias_uteis'], 'dia util', 'dias uteis')} apos cada entrega.\n\n"
        "Paragrafo unico: Revisoes adicionais ou solicitacoes que alterem o escopo aprovado serao orcadas a parte."
    )


def _valor(d, pol):
    texto = (
        f"O valor total dos servicos objeto deste contrato e de {moeda_pt_br(d['value'])}, "
        f"a ser pago {_texto_pagamento(d)}"
    )
    if d.get("payment_notes"):
        texto += f"\n\nObservacoes: {d['payment_notes']}"
    return texto + (
        "\n\nParagrafo primeiro: Em caso de atraso no pagamento, incidira multa de "
        f"{_percentual(pol['multa_percentual'])} sobre o valor devido, acrescido de juros de mora de "
        f"{_percentual(pol['juros_mensal_percentual'])} ao mes, calculados pro rata die.\n\n"
        "Paragrafo segundo: O CONTRATADO podera suspender a execucao dos servicos apos "
        f"{_quantidade(pol['suspensao_dias'], 'dia', 'dias')} de atraso no pagamento, "
        "sem que isso caracterize inadimplemento de sua parte."
    )


def _prazo(d, pol):
    prazo = _texto_prazo(d)
    if prazo:
        texto = (
            f"O prazo para execucao dos servicos e de {prazo}, contados a partir da assinatura deste contrato "
            "ou do recebimento de todas as informacoes e materiais necessarios, o que ocorrer por ultimo."
        )
    else:
        texto = "O prazo sera definido em comum acordo entre as partes."
    return texto + (
        "\n\nParagrafo primeiro: O prazo podera ser prorrogado mediante acordo escrito entre as partes, "
        "especialmente nos casos de:\n"
        "a) solicitacao de alteracoes no escopo pelo CONTRATANTE;\n"
        "b) atraso no fornecimento de informacoes ou materiais pelo CONTRATANTE;\n"
        "c) eventos de forca maior ou caso fortuito.\n\n"
        "Paragrafo segundo: Eventuais atrasos causados exclusivamente pelo CONTRATANTE nao configuram "
        "inadimplemento do CONTRATADO."
    )


def _obrigacoes_contratante(d, pol):
    return (
        "Constituem obrigacoes do CONTRATANTE:\n"
        "a) fornecer todas as informacoes, dados, materiais e acessos necessarios a execucao dos servicos, em tempo habil;\n"
        "b) efetuar os pagamentos nas datas e condicoes acordadas;\n"
        "c) designar responsavel para aprovacoes e comunicacoes;\n"
        "d) responder tempestivamente as solicitacoes do CONTRATADO;\n"
        "e) aprovar ou solicitar ajustes nas entregas dentro do prazo estipulado."
    )


def _responsabilidade_conteudo(d, pol):
    return (
        "O CONTRATANTE e o unico responsavel pela veracidade, legalidade e titularidade dos textos, imagens, "
        "marcas e demais materiais fornecidos ao CONTRATADO para a execucao dos servicos.\n\n"
        "Paragrafo unico: O CONTRATANTE isenta o CONTRATADO de qualquer responsabilidade perante terceiros "
        "decorrente do uso de materiais por ele fornecidos."
    )


def _obrigacoes_contratado(d, pol):
    return (
        "Constituem obrigacoes do CONTRATADO:\n"
        "a) executar os servicos de acordo com as especificacoes acordadas;\n"
        "b) manter o CONTRATANTE informado sobre o andamento dos trabalhos;\n"
        "c) cumprir os prazos estabelecidos, salvo nas hipoteses de prorrogacao previstas neste contrato;\n"
        "d) prestar os esclarecimentos que se fizerem necessarios;\n"
        "e) manter sigilo sobre informacoes confidenciais do CONTRATANTE."
    )


def _propriedade_intelectual(d, pol):
    return (
        "Todos os direitos patrimoniais sobre os trabalhos desenvolvidos em razao deste contrato serao "
        "transferidos ao CONTRATANTE apos a quitacao integral do valor contratado.\n\n"
        "Paragrafo primeiro: Ate a quitacao integral, o CONTRATADO mantera a titularidade dos direitos sobre "
        "os trabalhos desenvolvidos.\n\n"
        "Paragrafo segundo: O CONTRATADO reserva-se o direito de utilizar os trabalhos em seu portfolio "
        "profissional, salvo disposicao expressa em contrario."
    )


def _confidencialidade(d, pol):
    return (
        "As partes se comprometem a manter em sigilo todas as informacoes confidenciais a que tiverem acesso "
        "em razao deste contrato, nao podendo divulga-las a terceiros sem autorizacao previa e expressa da "
        "outra parte.\n\n"
        "Paragrafo unico: Esta obrigacao perdurara mesmo apos o termino ou rescisao deste contrato, pelo prazo de "
        f"{_quantidade(pol['confidencialidade_anos'], 'ano', 'anos')}."
    )


def _protecao_dados(d, pol):
    return (
        "As partes se comprometem a tratar os dados pessoais a que tiverem acesso em razao deste contrato "
        "exclusivamente para a sua execucao, em conformidade com a Lei Geral de Protecao de Dados Pessoais "
        "(Lei n. 13.709/2018).\n\n"
        "Paragrafo unico: Encerrado o contrato, os dados pessoais recebidos serao eliminados ou devolvidos, "
        "ressalvadas as hipoteses de guarda obrigatoria previstas em lei."
    )


def _rescisao(d, pol):
    return (
        "O presente contrato podera ser rescindido:\n"
        "a) por acordo mutuo entre as partes, formalizado por escrito;\n"
        "b) por qualquer das partes, mediante aviso previo de "
        f"{_quantidade(pol['aviso_rescisao_dias'], 'dia', 'dias')}, "
        "com pagamento proporcional pelos servicos ja executados;\n"
        "c) de imediato, em caso de descumprimento de clausula contratual, apos notificacao e prazo de "
        "5 (cinco) dias para regularizacao.\n\n"
        "Paragrafo unico: Em caso de rescisao, o CONTRATANTE devera pagar ao CONTRATADO pelos servicos "
        "efetivamente prestados ate a data da rescisao."
    )


def _nao_vinculacao(d, pol):
    return (
        "O presente contrato nao gera vinculo empregaticio, societario ou de qualquer outra natureza entre as "
        "partes, sendo o CONTRATADO profissional autonomo que executa os servicos com independencia tecnica "
        "e operacional.\n\n"
        "Paragrafo primeiro: O CONTRATADO podera prestar servicos a outros clientes durante a vigencia deste "
        "contrato, nao havendo clausula de exclusividade, salvo se expressamente pactuada.\n\n"
        "Paragrafo segundo: Cada parte sera responsavel pelos seus respectivos encargos fiscais, trabalhistas "
        "e previdenciarios."
    )


def _limitacao_responsabilidade(d, pol):
    return (
        "A responsabilidade do CONTRATADO limita-se ao valor total deste contrato, excluindo-se expressamente:\n"
        "a) lucros cessantes;\n"
        "b) danos indiretos ou consequenciais;\n"
        "c) perdas decorrentes de decisoes comerciais ou estrategicas do CONTRATANTE;\n"
        "d) danos causados por uso inadequado dos servicos ou entregas.\n\n"
        "Paragrafo unico: O CONTRATADO nao se responsabiliza por falhas, interrupcoes ou perdas decorrentes de "
        "servicos de terceiros, incluindo hospedagem, dominios, APIs externas ou infraestrutura tecnologica nao "
        "fornecida pelo CONTRATADO."
    )


def _nao_garantia(d, pol):
    return (
        "O CONTRATADO obriga-se a empregar os melhores meios para a execucao dos servicos, nao garantindo "
        "resultados comerciais, de vendas, de audiencia ou de posicionamento, que dependem de fatores alheios "
        "ao seu controle."
    )


def _alteracao_escopo(d, pol):
    return (
        "Qualquer alteracao no escopo dos servicos devera ser formalizada por escrito entre as partes.\n\n"
        "Paragrafo primeiro: Alteracoes de escopo poderao implicar em:\n"
        "a) ajuste no valor do contrato;\n"
        "b) ajuste no prazo de entrega;\n"
        "c) renegociacao das condicoes de pagamento.\n\n"
        "Paragrafo segundo: O CONTRATADO nao e obrigado a executar servicos fora do escopo originalmente "
        "contratado sem a devida formalizacao e acordo sobre valores e prazos."
    )


def _suporte(d, pol):
    return (
        "Apos a entrega final, o CONTRATADO prestara suporte para correcao de falhas relacionadas aos servicos "
        f"executados pelo prazo de {_quantidade(pol['suporte_dias'], 'dia', 'dias')}.\n\n"
        "Paragrafo unico: Nao se incluem no suporte novas funcionalidades, alteracoes de escopo ou problemas "
        "causados por intervencao de terceiros."
    )


def _suspensao(d, pol):
    return (
        "O CONTRATADO podera suspender a execucao dos servicos, sem que isso caracterize inadimplemento, nas "
        "seguintes hipoteses:\n"
        f"a) atraso superior a {_quantidade(pol['suspensao_dias'], 'dia', 'dias')} no pagamento de qualquer parcela;\n"
        "b) ausencia de fornecimento de informacoes, materiais ou acessos necessarios por prazo superior a "
        "15 (quinze) dias apos solicitacao;\n"
        "c) solicitacao expressa do CONTRATANTE.\n\n"
        "Paragrafo unico: A retomada dos servicos ocorrera em ate 5 (cinco) dias uteis apos a regularizacao da "
        "pendencia que motivou a suspensao, podendo haver ajuste proporcional no prazo de entrega."
    )


def _aceite_eletronico(d, pol):
    return (
        "As partes reconhecem como valido o aceite eletronico deste contrato, realizado por meio de plataformas "
        "digitais, e-mail, aplicativos de mensagens ou qualquer outro meio eletronico que permita a identificacao "
        "das partes e a manifestacao inequivoca de vontade.\n\n"
        "Paragrafo unico: O aceite eletronico confere ao presente instrumento plena validade juridica, nos termos "
        "da legislacao vigente, especialmente a Medida Provisoria n. 2.200-2/2001."
    )


def _comunicacoes(d, pol):
    return (
        "As comunicacoes entre as partes relativas a este contrato serao feitas preferencialmente por escrito, "
        "por e-mail ou aplicativo de mensagens, nos contatos informados neste instrumento.\n\n"
        "Paragrafo unico: Cabe a cada parte informar a outra sobre qualquer alteracao de seus dados de contato."
    )


def _disposicoes_gerais(d, pol):
    return (
        "Paragrafo primeiro: A eventual tolerancia de qualquer das partes quanto ao descumprimento de obrigacoes "
        "pela outra nao importara em novacao, renuncia ou alteracao do pactuado.\n\n"
        "Paragrafo segundo: Se qualquer clausula deste contrato for considerada invalida ou inexequivel, as "
        "demais clausulas permanecerao em pleno vigor e efeito.\n\n"
        "Paragrafo terceiro: Este contrato representa o acordo integral entre as partes sobre seu objeto, "
        "substituindo todos os entendimentos anteriores, verbais ou escritos.\n\n"
        "Paragrafo quarto: Qualquer alteracao deste contrato somente sera valida se formalizada por escrito e "
        "assinada por ambas as partes."
    )


def _solucao_amigavel(d, pol):
    return (
        "Antes de qualquer medida judicial, as partes se comprometem a buscar a solucao amigavel de eventuais "
        "divergencias, por meio de negociacao direta."
    )


def _foro(d, pol):
    return (
        "As partes elegem o foro da comarca do domicilio do CONTRATADO para dirimir quaisquer controversias "
        "oriundas deste contrato, com renuncia expressa a qualquer outro, por mais privilegiado que seja."
    )


def _tem(campo):
    return lambda d: bool(d.get(campo))


# (titulo, corpo, condição de inclusão). Só as incluídas recebem número.
CLAUSULAS = [
    ("DO OBJETO", _objeto, None),
    ("DO ESCOPO", _escopo, _tem("service_scope")),
    ("DAS ENTREGAS", _entregas, _tem("deliverables")),
    ("DAS REVISOES", _revisoes, _tem("deliverables")),
    ("DO VALOR E FORMA DE PAGAMENTO", _valor, None),
    ("DO PRAZO", _prazo, None),
    ("DAS OBRIGACOES DO CONTRATANTE", _obrigacoes_contratante, None),
    ("DA RESPONSABILIDADE SOBRE O CONTEUDO", _responsabilidade_conteudo, None),
    ("DAS OBRIGACOES DO CONTRATADO", _obrigacoes_contratado, None),
    ("DA PROPRIEDADE INTELECTUAL", _propriedade_intelectual, None),
    ("DA CONFIDENCIALIDADE", _confidencialidade, None),
    ("DA PROTECAO DE DADOS", _protecao_dados, None),
    ("DA RESCISAO", _rescisao, None),
    ("DA NAO VINCULACAO EMPREGATICIA", _nao_vinculacao, None),
    ("DA LIMITACAO DE RESPONSABILIDADE", _limitacao_responsabilidade, None),
    ("DA NAO GARANTIA DE RESULTADOS", _nao_garantia, None),
    ("DA ALTERACAO DE ESCOPO", _alteracao_escopo, None),
    ("DO SUPORTE", _suporte, None),
    ("DA SUSPENSAO DOS SERVICOS", _suspensao, None),
    ("DO ACEITE ELETRONICO", _aceite_eletronico, None),
    ("DAS COMUNICACOES", _comunicacoes, None),
    ("DAS DISPOSICOES GERAIS", _disposicoes_gerais, None),
    ("DA SOLUCAO AMIGAVEL DE CONFLITOS", _solucao_amigavel, None),
    ("DO FORO", _foro, None),
]


def clausulas_incluidas(d: dict) -> list:
    incluidas = [(t, corpo) for t, corpo, cond in CLAUSULAS if cond is None or cond(d)]
    return [(ordinal_clausula(n), t, corpo) for n, (t, corpo) in enumerate(incluidas, start=1)]


def _encerramento(d: dict, hoje) -> str:
    return "\n\n".join([
        "E, por estarem assim justas e contratadas, as partes assinam o presente instrumento em duas vias de "
        "igual teor e forma, na presenca de duas testemunhas.",
        f"Local e data: _______________, {data_pt_br(hoje)}",
        f"\n_________________________________\nCONTRATANTE: {d.get('client_name') or ''}",
        "\n_________________________________\nCONTRATADO",
        "\nTestemunha 1: _________________________________\nNome:\nCPF:",
        "Testemunha 2: _________________________________\nNome:\nCPF:",
    ])


def gerar_texto_contrato(dados: dict, hoje: date = None, politica: dict = None) -> str:
    """
    Monta o texto completo do contrato a partir dos campos.
    Campos opcionais vazios são omitidos; a numeração das cláusulas acompanha
    as que foram incluídas (escopo, entregas e revisões são opcionais).
    """
    d = normalizar_contrato(dados)
    pol = {**POLITICA_PADRAO, **(politica or {})}
    hoje = hoje or date.today()

    partes = [_cabecalho(d)]
    for ordinal, titulo, corpo in clausulas_incluidas(d):
        partes.append(f"CLAUSULA {ordinal} - {titulo}\n{corpo(d, pol)}")
    partes.append(_encerramento(d, hoje))

    return "\n\n".join(partes).strip()


# ---------------- persistência ----------------

_CAMPOS_CONTRATO = (
    "proposal_id", "person_type", "client_name", "client_document", "client_rg",
    "client_company_name", "client_address", "client_city", "client_state",
    "client_phone", "client_email", "service_name", "service_scope", "deliverables",
    "value", "deadline_mode", "deadline_days", "deadline_type", "deadline_date",
    "payment_type", "payment_installments", "payment_notes", "status",
)


def salvar_contrato(store, user_id: str, dados: dict, contract_id: str = None,
                    hoje: date = None, politica: dict = None) -> dict:
    d = normalizar_contrato(dados)
    validar_contrato(d)

    registro = {k: d.get(k) for k in _CAMPOS_CONTRATO}
    registro["contract_text"] = gerar_texto_contrato(d, hoje=hoje, politica=politica)
    registro["client_id"] = client_service.find_or_create(
        store, user_id, client_service.dados_cliente_do_contrato(d)
    )

    if contract_id:
        obter_contrato(store, user_id, contract_id)
        contrato = store.update("contracts", contract_id, registro)
        logger.info("Contrato %s atualizado", contract_id)
    else:
        registro["user_id"] = user_id
        contrato = store.create("contracts", registro)
        logger.info("Contrato %s criado", contrato["id"])

    return contrato


def dados_de_proposta(proposta: dict) -> dict:
    """
    Pré-preenche um contrato com os dados da proposta.
    O contrato é uma cópia independente: nada volta para a proposta.
    """
    return {
        "proposal_id": proposta["id"],
        "client_name": proposta.get("client_name") or "",
        "client_email": proposta.get("client_email") or "",
        "client_phone": proposta.get("client_phone") or "",
        "service_name": proposta.get("service") or "",
        "service_scope": proposta.get("scope") or "",
        "value": proposta.get("value") or 0,
        "person_type": "pf",
        "deadline_mode": "days",
        "deadline_type": "dias-uteis",
        "payment_type": "a-vista",
        "status": CONTRATO_RASCUNHO,
    }


def obter_contrato(store, user_id: str, contract_id: str) -> dict:
    c = store.get("contracts", contract_id)
    if not c or c.get("user_id") != user_id:
        raise NotFoundError("Contrato não encontrado.")
    return c


def listar_contratos(store, user_id: str, status: str = None) -> list:
    filtros = {"user_id": user_id}
    if status:
        filtros["status"] = validar_status_contrato(status)
    return store.list("contracts", **filtros)


def excluir_contrato(store, user_id: str, contract_id: str) -> None:
    obter_contrato(store, user_id, contract_id)
    store.delete("contracts", contract_id)
    logger.info("Contrato %s excluído", contract_id)
