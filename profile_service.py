import logging

from errors import NotFoundError, ValidationError
from storage import slugify
from utils import normalizar_url, parse_bool, whatsapp_to_link, youtube_to_embed

logger = logging.getLogger(__name__)

MAX_IMAGENS = 6


def _slug_unico(store, base: str, user_id: str) -> str:
    base = base or "perfil"
    slug, n = base, 1
    while True:
        donos = store.list("public_profiles", slug=slug)
        if not donos or all(p["user_id"] == user_id for p in donos):
            return slug
        n += 1
        slug = f"{base}-{n}"


def obter_perfil_publico(store, user_id: str):
    perfis = store.list("public_profiles", user_id=user_id)
    return perfis[0] if perfis else None


def salvar_perfil_publico(store, user_id: str, dados: dict) -> dict:
    nome = (dados.get("display_name") or "").strip()
    if not nome:
        raise ValidationError("Informe o nome profissional.", campo="display_name")

    video = None
    if (dados.get("video_url") or "").strip():
        video = youtube_to_embed(dados["video_url"])
        if not video:
            raise ValidationError(
                "URL do YouTube inválida. Use o formato: youtube.com/watch?v=... ou youtu.be/...",
                campo="video_url",
            )

    whatsapp = None
    if (dados.get("whatsapp") or "").strip():
        whatsapp = whatsapp_to_link(dados["whatsapp"])
        if not whatsapp:
            raise ValidationError(
                "Número de WhatsApp inválido. Informe o número completo com DDD ou um link válido.",
                campo="whatsapp",
            )

    imagens = [normalizar_url(i) for i in (dados.get("portfolio_images") or []) if (i or "").strip()]
    if len(imagens) > MAX_IMAGENS:
        raise ValidationError(f"Máximo de {MAX_IMAGENS} imagens no portfólio.", campo="portfolio_images")

    atual = obter_perfil_publico(store, user_id)
    base = slugify(dados.get("slug") or "") or (atual or {}).get("slug") or slugify(nome)
    registro = {
        "slug": _slug_unico(store, base, user_id),
        "display_name": nome,
        "specialty": (dados.get("specialty") or "").strip() or None,
        "bio": (dados.get("bio") or "").strip() or None,
        "photo_url": normalizar_url(dados.get("photo_url")),
        "whatsapp_link": whatsapp,
        "video_embed_url": video,
        "portfolio_images": imagens,
        "published": parse_bool(dados.get("published")),
    }

    if atual:
        perfil = store.update("public_profiles", atual["id"], registro)
    else:
        perfil = store.create("public_profiles", {"user_id": user_id, **registro})
    logger.info("Perfil público '%s' salvo (publicado=%s)", perfil["slug"], perfil["published"])
    return perfil


def perfil_por_slug(store, slug: str) -> dict:
    # só perfis publicados são visíveis
    perfis = store.list("public_profiles", slug=slug)
    if not perfis or not perfis[0].get("published"):
        raise NotFoundError("Perfil não encontrado.")
    return perfis[0]
