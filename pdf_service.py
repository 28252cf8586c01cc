import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path

from errors import PdfExportError
from preview_service import renderizar_preview
from storage import documento_pdf_nome, documento_pdf_path

logger = logging.getLogger(__name__)

_TIPOS_ARQUIVO = {"proposal": "proposta", "contract": "contrato"}


def _convert_html_to_pdf(html_path: str, out_dir: str, libreoffice_path: str) -> str:
    """
    Converte HTML -> PDF usando LibreOffice headless.
    Retorna o caminho do PDF gerado.
    """
    Path(out_dir).mkdir(parents=True, exist_ok=True)

    cmd = [
        libreoffice_path,
        "--headless",
        "--convert-to", "pdf:writer_web_pdf_Export",
        "--outdir", out_dir,
        html_path,
    ]

    result = subprocess.run(cmd, capture_output=True, text=True)
    if result.returncode != 0:
        raise RuntimeError(
            "Falha ao converter para PDF.\n"
            f"stdout: {result.stdout}\n"
            f"stderr: {result.stderr}\n"
        )

    pdf_name = Path(html_path).with_suffix(".pdf").name
    pdf_path = str(Path(out_dir) / pdf_name)

    if not os.path.exists(pdf_path):
        raise RuntimeError("PDF não foi encontrado após conversão.")

    return pdf_path


def html_para_pdf(html: str, output_pdf_path: str, libreoffice_path: str = "soffice") -> str:
    """
    Grava o HTML numa pasta temporária, converte e copia o PDF para output_pdf_path.
    A pasta temporária some mesmo se a conversão falhar.
    """
    try:
        with tempfile.TemporaryDirectory() as tmp:
            html_path = str(Path(tmp) / "documento.html")
            Path(html_path).write_text(html, encoding="utf-8")

            pdf_tmp = _convert_html_to_pdf(html_path, tmp, libreoffice_path)

            Path(output_pdf_path).parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(pdf_tmp, output_pdf_path)
    except (OSError, RuntimeError, subprocess.SubprocessError) as e:
        logger.error("Erro ao gerar PDF %s: %s", output_pdf_path, e)
        raise PdfExportError()

    return output_pdf_path


def exportar_pdf(tipo: str, documento: dict, storage_dir: str,
                 libreoffice_path: str = "soffice", date_format: str = "dd/mm/aaaa") -> str:
    """
    tipo: 'proposal' ou 'contract'. Retorna o caminho do PDF, único por chamada.
    """
    html = renderizar_preview(tipo, documento, date_format)
    out = documento_pdf_path(storage_dir, _TIPOS_ARQUIVO[tipo], documento.get("client_name") or "")
    html_para_pdf(html, out, libreoffice_path)
    logger.info("PDF gerado: %s", os.path.basename(out))
    return out


def nome_pdf(tipo: str, documento: dict) -> str:
    return documento_pdf_nome(_TIPOS_ARQUIVO[tipo], documento.get("client_name") or "")
