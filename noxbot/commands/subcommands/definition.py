"""/nox definition <word>

Looks a word up on the Priberam Portuguese dictionary. Priberam
renders each definition as an image (``img.imagemdef``); the handler
downloads that image and posts it as an embed attachment, falling
back to a plain link when the image cannot be fetched.
"""

from typing import Optional
from urllib.parse import quote, urljoin

import structlog
from bs4 import BeautifulSoup

from noxbot.commands.base import InvocationContext
from noxbot.commands.http import BROWSER_USER_AGENT, fetch_bytes, fetch_text
from noxbot.commands.models import Attachment, Embed
from noxbot.exceptions import UpstreamError

logger = structlog.get_logger("noxbot.handlers")

PRIBERAM_BASE = "https://dicionario.priberam.org"
FOOTER = "Nox AI Assistant - Dicionário Priberam"
HEADERS = {"User-Agent": BROWSER_USER_AGENT}


def page_url(word: str) -> str:
    return f"{PRIBERAM_BASE}/{quote(word)}"


def find_definition_image(html: str) -> Optional[str]:
    """Absolute URL of the first definition image, or None.

    Returns ``""`` when the image element exists but has no src, so
    callers can tell "word found, no image" from "word not found".
    """
    soup = BeautifulSoup(html, "html.parser")
    img = soup.select_one("img.imagemdef")
    if img is None:
        return None
    src = (img.get("src") or "").strip()
    if not src:
        return ""
    return src if src.startswith("http") else urljoin(PRIBERAM_BASE + "/", src)


def link_embed(word: str, text: str) -> Embed:
    return Embed(
        title=f"📚 Definição: {word}",
        description=f"{text}\n🔗 **[Ver no Priberam]({page_url(word)})**",
        footer=FOOTER,
    )


def image_embed(word: str, filename: str) -> Embed:
    return Embed(
        title=f"📚 Definição: {word}",
        description=f"Fonte: [Priberam Dicionário]({page_url(word)})",
        image_url=f"attachment://{filename}",
        footer=FOOTER,
    )


async def definition(ctx: InvocationContext, word: str) -> None:
    if not word or not word.strip():
        await ctx.reply(
            "❌ Por favor, forneça uma palavra para procurar. "
            "Exemplo: `/nox definition flotilha`",
            private=True,
        )
        return

    clean_word = word.strip().lower()
    # Discord only waits 3 seconds for the first response
    await ctx.defer_reply()

    services = ctx.services
    lookup_word = clean_word
    if services.spelling is not None:
        lookup_word = await services.spelling.correct(clean_word)

    timeout = services.config.definition_timeout
    try:
        html = await fetch_text(
            services.http, page_url(lookup_word), headers=HEADERS, timeout=timeout
        )
    except UpstreamError as e:
        logger.warning("definition_lookup_failed", word=lookup_word, kind=e.kind, status=e.status)
        if e.kind == "timeout":
            await ctx.edit_reply(
                "❌ Timeout: O dicionário Priberam demorou muito para responder. "
                "Tente novamente mais tarde."
            )
        elif e.kind == "not_found":
            await ctx.edit_reply(
                f'❌ Palavra "{lookup_word}" não encontrada no dicionário Priberam.'
            )
        else:
            await ctx.edit_reply(
                "❌ Ocorreu um erro ao procurar a definição. Tente novamente mais tarde."
            )
        return

    image_url = find_definition_image(html)
    if image_url is None:
        await ctx.edit_reply(
            f'❌ Palavra "{lookup_word}" não encontrada no dicionário Priberam. '
            "Verifique a ortografia e tente novamente."
        )
        return
    if not image_url:
        await ctx.edit_reply(
            embed=link_embed(lookup_word, "Palavra encontrada! Veja a definição completa:")
        )
        return

    try:
        image = await fetch_bytes(services.http, image_url, headers=HEADERS, timeout=timeout)
    except UpstreamError as e:
        logger.warning("definition_image_failed", word=lookup_word, kind=e.kind)
        await ctx.edit_reply(
            embed=link_embed(
                lookup_word,
                "Não foi possível carregar a imagem, mas você pode ver a definição aqui:",
            )
        )
        return

    filename = f"definicao-{lookup_word}.png"
    await ctx.edit_reply(
        embed=image_embed(lookup_word, filename),
        attachment=Attachment(filename=filename, data=image),
    )
