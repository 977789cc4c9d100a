"""Tests for Portuguese accent correction."""

import pytest

from noxbot.spelling import AccentCorrector, read_dic_words, strip_accents

DIC = "5\naçúcar/S\ncasa/p\nflotilha\ncoração/S po:nome\nacção\n"


@pytest.fixture
def dic_path(tmp_path):
    path = tmp_path / "pt_PT.dic"
    path.write_text(DIC, encoding="utf-8")
    return path


def test_strip_accents():
    assert strip_accents("coração") == "coracao"
    assert strip_accents("casa") == "casa"


def test_read_dic_words_skips_count_and_flags(dic_path):
    assert read_dic_words(dic_path) == ["açúcar", "casa", "flotilha", "coração", "acção"]


@pytest.mark.asyncio
async def test_restores_accents(dic_path):
    corrector = AccentCorrector(dic_path)
    assert await corrector.correct("acucar") == "açúcar"
    assert await corrector.correct("coracao") == "coração"


@pytest.mark.asyncio
async def test_known_word_is_unchanged(dic_path):
    corrector = AccentCorrector(dic_path)
    assert await corrector.correct("casa") == "casa"


@pytest.mark.asyncio
async def test_close_misspelling(dic_path):
    corrector = AccentCorrector(dic_path)
    assert await corrector.correct("flotila") == "flotilha"


@pytest.mark.asyncio
async def test_unknown_word_is_unchanged(dic_path):
    corrector = AccentCorrector(dic_path)
    assert await corrector.correct("zzzz") == "zzzz"


@pytest.mark.asyncio
async def test_missing_dictionary_disables_correction(tmp_path):
    corrector = AccentCorrector(tmp_path / "missing.dic")
    assert await corrector.correct("acucar") == "acucar"
    assert corrector.loaded is False


@pytest.mark.asyncio
async def test_load_is_attempted_once(dic_path):
    corrector = AccentCorrector(dic_path)
    assert await corrector.load() is True
    dic_path.unlink()
    assert await corrector.load() is True
    assert corrector.loaded is True
