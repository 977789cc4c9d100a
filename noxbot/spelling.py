"""Portuguese accent correction for dictionary lookups.

Users type "acucar" and mean "açúcar". The corrector reads a Hunspell
``.dic`` word list once, indexes it by accent-stripped spelling, and
maps unaccented input back to the accented dictionary word.
"""

import asyncio
import difflib
import unicodedata
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional, Set

import structlog

logger = structlog.get_logger("noxbot.handlers")

ACCENTED_CHARS = set("áéíóúâêôãõçàü")
LOAD_TIMEOUT = 5.0


def strip_accents(word: str) -> str:
    """Remove combining marks: "açúcar" -> "acucar"."""
    normalized = unicodedata.normalize("NFD", word)
    return "".join(c for c in normalized if unicodedata.category(c) != "Mn")


def has_accents(word: str) -> bool:
    return any(c in ACCENTED_CHARS for c in word)


def read_dic_words(path: Path) -> List[str]:
    """Read the words from a Hunspell .dic file.

    The first line is the entry count. Each entry is ``word[/FLAGS]``,
    optionally followed by morphological fields after whitespace.
    """
    words = []
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        for lineno, line in enumerate(f):
            line = line.strip()
            if not line or (lineno == 0 and line.isdigit()):
                continue
            word = line.split()[0].split("/", 1)[0].strip().lower()
            if word:
                words.append(word)
    return words


class _WordIndex:
    """Loaded dictionary state."""

    def __init__(self, words: List[str]):
        self.words: Set[str] = set(words)
        self.by_plain: Dict[str, List[str]] = defaultdict(list)
        self.by_initial: Dict[str, List[str]] = defaultdict(list)
        for word in self.words:
            plain = strip_accents(word)
            self.by_plain[plain].append(word)
            self.by_initial[plain[:1]].append(word)
        for bucket in self.by_plain.values():
            bucket.sort()


class AccentCorrector:
    """Lazily loaded accent corrector.

    ``load()`` runs at most once; concurrent callers wait on the same
    lock. A missing or unreadable dictionary leaves the corrector
    disabled and ``correct()`` then returns its input unchanged.

    Args:
        dictionary_path: Hunspell .dic file.
        load_timeout: Seconds allowed for the initial load.
    """

    def __init__(self, dictionary_path: Path, load_timeout: float = LOAD_TIMEOUT):
        self.dictionary_path = Path(dictionary_path)
        self.load_timeout = load_timeout
        self._index: Optional[_WordIndex] = None
        self._attempted = False
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._index is not None

    async def load(self) -> bool:
        """Load the dictionary if that has not been tried yet.

        Returns:
            True when a dictionary is available.
        """
        async with self._lock:
            if self._attempted:
                return self._index is not None
            self._attempted = True
            if not self.dictionary_path.is_file():
                logger.warning("dictionary_missing", path=str(self.dictionary_path))
                return False
            try:
                words = await asyncio.wait_for(
                    asyncio.to_thread(read_dic_words, self.dictionary_path),
                    timeout=self.load_timeout,
                )
            except asyncio.TimeoutError:
                logger.error("dictionary_load_timeout", timeout=self.load_timeout)
                return False
            except OSError as e:
                logger.error("dictionary_load_failed", error=str(e))
                return False
            self._index = _WordIndex(words)
            logger.info("dictionary_loaded", words=len(self._index.words))
            return True

    def suggest(self, word: str) -> Optional[str]:
        """Best dictionary spelling for ``word`` (None if nothing fits)."""
        index = self._index
        if index is None:
            return None
        if word in index.words:
            return word

        plain = strip_accents(word)
        same_letters = index.by_plain.get(plain)
        if same_letters:
            accented = [w for w in same_letters if has_accents(w)]
            return accented[0] if accented else same_letters[0]

        candidates = [
            w for w in index.by_initial.get(plain[:1], ())
            if abs(len(w) - len(word)) <= 2
        ]
        matches = difflib.get_close_matches(word, candidates, n=5, cutoff=0.8)
        if not matches:
            return None
        accented = [m for m in matches if has_accents(m)]
        return accented[0] if accented else matches[0]

    async def correct(self, word: str) -> str:
        """Return the corrected spelling of ``word``, or ``word`` itself."""
        if not await self.load():
            return word
        suggestion = self.suggest(word)
        if suggestion and suggestion != word:
            logger.debug("word_corrected", original=word, corrected=suggestion)
            return suggestion
        return word
