import os
import re
import unicodedata
import uuid
from pathlib import Path

def safe_filename(name: str) -> str:
    name = (name or "").strip()
    name = re.sub(r"[^\w\s\-\.]", "", name, flags=re.UNICODE)
    name = re.sub(r"\s+", " ", name)
    return name[:120] if name else "cliente"

def slugify(name: str) -> str:
    # 'Ateliê São João' -> 'atelie-sao-joao'
    s = unicodedata.normalize("NFKD", name or "").encode("ascii", "ignore").decode("ascii")
    s = re.sub(r"[^a-zA-Z0-9]+", "-", s).strip("-").lower()
    return s[:80]

def ensure_dir(path: str) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)

def documento_pdf_nome(tipo: str, client_name: str) -> str:
    # nome exibido no download: proposta-joao-silva.pdf
    base = slugify(safe_filename(client_name)) or "cliente"
    return f"{tipo}-{base}.pdf"

def documento_pdf_path(storage_dir: str, tipo: str, client_name: str) -> str:
    """
    Um arquivo por exportação: <storage>/_pdf_tmp/proposta-joao-silva-<hex>.pdf
    """
    out_dir = os.path.join(storage_dir, "_pdf_tmp")
    ensure_dir(out_dir)
    nome = documento_pdf_nome(tipo, client_name)[:-4]
    return os.path.join(out_dir, f"{nome}-{uuid.uuid4().hex}.pdf")
