import re
from datetime import date, datetime, timezone

from babel.numbers import format_decimal
from num2words import num2words

_MESES = [
    "janeiro","fevereiro","março","abril","maio","junho",
    "julho","agosto","setembro","outubro","novembro","dezembro"
]

_FORMATOS_DATA = {
    "dd/mm/aaaa": "%d/%m/%Y",
    "mm/dd/aaaa": "%m/%d/%Y",
    "aaaa-mm-dd": "%Y-%m-%d",
}


def data_pt_br(dt) -> str:
    return f"{dt.day} de {_MESES[dt.month-1]} de {dt.year}"


def agora_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_datetime(valor):
    """
    Aceita datetime, date ou string ISO ('2026-10-19T10:00:00Z').
    Datetimes sem fuso são tratados como UTC.
    """
    if valor is None or valor == "":
        return None
    if isinstance(valor, datetime):
        dt = valor
    elif isinstance(valor, date):
        dt = datetime(valor.year, valor.month, valor.day)
    else:
        s = str(valor).strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_data(valor):
    """
    Entrada: date, datetime, '2026-02-20', '20/02/26' ou '20/02/2026'
    Saída: date (ou None se vazio)
    """
    if valor is None or valor == "":
        return None
    if isinstance(valor, datetime):
        return valor.date()
    if isinstance(valor, date):
        return valor

    s = str(valor).strip()
    if "/" not in s:
        return datetime.fromisoformat(s[:10]).date()

    partes = s.split("/")
    if len(partes) != 3:
        raise ValueError("Data inválida. Use dd/mm/aa.")

    dd = int(partes[0])
    mm = int(partes[1])
    aa = partes[2]

    if len(aa) == 2:
        # regra simples: 00-79 -> 2000-2079, 80-99 -> 1980-1999
        y = int(aa)
        ano = 2000 + y if y <= 79 else 1900 + y
    else:
        ano = int(aa)

    return date(ano, mm, dd)


def formatar_data(valor, formato: str = "dd/mm/aaaa") -> str:
    try:
        d = parse_data(valor)
    except ValueError:
        return str(valor)
    if d is None:
        return ""
    return d.strftime(_FORMATOS_DATA.get(formato, "%d/%m/%Y"))


def formatar_data_extenso(valor) -> str:
    try:
        d = parse_data(valor)
    except ValueError:
        return str(valor)
    return data_pt_br(d) if d else ""


def moeda_pt_br(valor: float) -> str:
    """
    1234.5 -> 'R$ 1.234,50'
    """
    v = float(valor or 0)
    sinal = "-" if v < 0 else ""
    moeda = f"{abs(v):,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return f"{sinal}R$ {moeda}"


def extenso_pt_br(n: int) -> str:
    return num2words(n, lang="pt_BR")


def numero_com_extenso(n: int) -> str:
    # 5 -> '5 (cinco)'
    return f"{n} ({extenso_pt_br(n)})"


def numero_decimal_pt_br(n) -> str:
    # 33.33 -> '33,33' / 1000 -> '1.000'
    return format_decimal(n, locale="pt_BR")


def so_digitos(s) -> str:
    return re.sub(r"\D", "", str(s or ""))


_FALSOS = {"", "0", "false", "off", "no", "nao", "não", "none", "null"}


def parse_bool(valor) -> bool:
    """
    Booleano vindo de JSON ou de formulário ("false", "0", "off" e vazio são falsos).
    """
    if isinstance(valor, str):
        return valor.strip().lower() not in _FALSOS
    return bool(valor)


def mask_cpf(valor: str) -> str:
    d = so_digitos(valor)[:11]
    if len(d) <= 3:
        return d
    if len(d) <= 6:
        return f"{d[:3]}.{d[3:]}"
    if len(d) <= 9:
        return f"{d[:3]}.{d[3:6]}.{d[6:]}"
    return f"{d[:3]}.{d[3:6]}.{d[6:9]}-{d[9:]}"


def mask_cnpj(valor: str) -> str:
    d = so_digitos(valor)[:14]
    if len(d) <= 2:
        return d
    if len(d) <= 5:
        return f"{d[:2]}.{d[2:]}"
    if len(d) <= 8:
        return f"{d[:2]}.{d[2:5]}.{d[5:]}"
    if len(d) <= 12:
        return f"{d[:2]}.{d[2:5]}.{d[5:8]}/{d[8:]}"
    return f"{d[:2]}.{d[2:5]}.{d[5:8]}/{d[8:12]}-{d[12:]}"


def mask_phone(valor: str) -> str:
    # (00) 00000-0000
    d = so_digitos(valor)[:11]
    if len(d) <= 2:
        return d
    if len(d) <= 7:
        return f"({d[:2]}) {d[2:]}"
    return f"({d[:2]}) {d[2:7]}-{d[7:]}"


def mask_currency(valor: str) -> str:
    # digitado '123456' -> '1.234,56'
    centavos = int(so_digitos(valor) or "0")
    return format_decimal(centavos / 100, format="#,##0.00", locale="pt_BR")


def currency_to_number(valor) -> float:
    """
    Recebe '1.234,56', 'R$ 200,50' ou um número e retorna float.
    Ponto é separador de milhar, vírgula é decimal.
    """
    if isinstance(valor, (int, float)):
        return float(valor)
    s = str(valor or "").replace("R$", "").strip()
    s = s.replace(".", "").replace(",", ".")
    try:
        return float(s)
    except ValueError:
        return 0.0


def validar_cpf(cpf: str) -> bool:
    numeros = so_digitos(cpf)

    if len(numeros) != 11:
        return False
    if numeros == numeros[0] * 11:
        return False

    for tamanho in (9, 10):
        soma = sum(int(numeros[i]) * (tamanho + 1 - i) for i in range(tamanho))
        resto = (soma * 10) % 11
        if resto == 10:
            resto = 0
        if resto != int(numeros[tamanho]):
            return False

    return True


def validar_cnpj(cnpj: str) -> bool:
    numeros = so_digitos(cnpj)

    if len(numeros) != 14:
        return False
    if numeros == numeros[0] * 14:
        return False

    pesos1 = [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]
    pesos2 = [6] + pesos1

    for pesos in (pesos1, pesos2):
        tamanho = len(pesos)
        soma = sum(int(numeros[i]) * pesos[i] for i in range(tamanho))
        resto = soma % 11
        digito = 0 if resto < 2 else 11 - resto
        if digito != int(numeros[tamanho]):
            return False

    return True


_YOUTUBE_PATTERNS = [
    re.compile(r"(?:youtube\.com/watch\?v=)([a-zA-Z0-9_-]{11})"),
    re.compile(r"(?:youtu\.be/)([a-zA-Z0-9_-]{11})"),
    re.compile(r"(?:youtube\.com/embed/)([a-zA-Z0-9_-]{11})"),
]


def youtube_to_embed(url: str):
    """
    Converte watch?v=, youtu.be/ ou embed/ para https://www.youtube.com/embed/ID.
    Retorna None se não reconhecer.
    """
    s = (url or "").strip()
    if not s:
        return None

    for pattern in _YOUTUBE_PATTERNS:
        m = pattern.search(s)
        if m:
            return f"https://www.youtube.com/embed/{m.group(1)}"

    return None


def whatsapp_to_link(valor: str):
    """
    Número ('(55) 11 99999-9999') ou link (wa.me / api.whatsapp.com) -> https://wa.me/<digitos>
    """
    s = (valor or "").strip()
    if not s:
        return None

    m = re.search(r"wa\.me/(\d+)", s)
    if m:
        return f"https://wa.me/{m.group(1)}"

    m = re.search(r"api\.whatsapp\.com/send\?phone=(\d+)", s)
    if m:
        return f"https://wa.me/{m.group(1)}"

    # DDD + número
    digitos = so_digitos(s)
    if len(digitos) >= 10:
        return f"https://wa.me/{digitos}"

    return None


def normalizar_url(url: str):
    s = (url or "").strip()
    if not s:
        return None
    if not re.match(r"^https?://", s, flags=re.IGNORECASE):
        s = "https://" + s
    return s
