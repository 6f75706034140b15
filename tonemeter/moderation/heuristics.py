"""Rule-based tone analysis used when the classifier is unavailable.

Every check runs on every message and each one contributes at most one
issue, in the order below:

1. aggressive or blaming vocabulary (substring scan, lower-cased)
2. shouting (share of upper-case letters)
3. excessive exclamation marks
4. writing-impairment signals (stretched letters, runs of junk tokens,
   near-miss spellings of common words)
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from tonemeter.moderation.models import HeuristicResult

# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------

AGGRESSIVE_TERMS: tuple[str, ...] = (
    "idiota",
    "estúpido",
    "estúpida",
    "imbécil",
    "tonto",
    "tonta",
    "inútil",
    "incapaz",
    "culpa tuya",
    "tu culpa",
    "siempre",
    "nunca",
)

# Small dictionary of frequent words in family logistics messages.  Used both
# to ignore legitimate short words and as the reference for misspellings.
COMMON_WORDS: frozenset[str] = frozenset(
    """
    a al algo ahora así ayer bien bueno buen buenas buenos casa chicos chicas
    colegio como con confirmar confirmarme cuando dale de del después día días
    domingo donde el ella ellos en entonces es esa ese eso esta este esto está
    estás estoy favor fin gracias hacer haces hacés hasta hay hija hijo hijos
    hola hora horario horas hoy jueves la las le les llevar lo los lunes mañana
    martes más me médico mi mis miércoles muy nada necesito nena nene no noche
    nos nunca o ok para pero perdón podés podemos poder por porque puede puedes
    puedo que qué quiero retiro retirar reunión sábado salud se semana si sí
    siempre su sus también tarde te temprano tenemos tenés tengo todo todos tu
    tus turno un una uno vacaciones vamos ver viernes vos y ya yo
    escuela mensaje buscar partido cumpleaños clase clases tarea pediatra
    vacuna regalo gracias avisar avisame aviso llegar llego quedar queda
    foto nota maestra maestro boletín mando merienda plaza perfecto vemos
    llevo tomar cada ocho cinco durante dijo tiene remedio fiebre mochila
    abuela abuelo cena almuerzo
    """.split()
)

# ---------------------------------------------------------------------------
# Issue texts
# ---------------------------------------------------------------------------

AGGRESSIVE_ISSUE = "Lenguaje potencialmente agresivo o culpabilizador"
SHOUTING_ISSUE = "Uso excesivo de mayúsculas puede percibirse como agresivo"
EXCLAMATION_ISSUE = "Múltiples signos de exclamación pueden indicar tono agresivo"
IMPAIRMENT_ISSUE = (
    "La escritura parece incoherente o con muchos errores; "
    "revisá el mensaje con calma antes de enviarlo"
)
NEUTRAL_SUGGESTION = (
    "Considera reformular el mensaje de manera más neutral y constructiva. "
    "Enfócate en los hechos y evita lenguaje que pueda ser percibido como acusatorio."
)

# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------

UPPERCASE_RATIO_THRESHOLD = 0.3
UPPERCASE_MIN_LENGTH = 10
MAX_EXCLAMATIONS = 3

SHORT_TOKEN_MAX_LENGTH = 2
SHORT_TOKEN_RUN = 3
MISSPELLING_MIN_LENGTH = 4
# Tokens up to this length are misspelled only one edit away from a known word.
MISSPELLING_SHORT_TOKEN_LENGTH = 5
MISSPELLING_MAX_DISTANCE = 2
MISSPELLING_MIN_COUNT = 4
MISSPELLING_MIN_RATIO = 0.5
IMPAIRMENT_SIGNAL_THRESHOLD = 3

_WORD_RE = re.compile(r"[^\W\d_]+")
_STRETCHED_RE = re.compile(r"([^\W\d_])\1{3,}")


def levenshtein(a: str, b: str) -> int:
    """Return the edit distance between *a* and *b*."""
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


class HeuristicAnalyzer:
    """Deterministic, dependency-free tone analyzer."""

    def __init__(
        self,
        extra_terms: Optional[Iterable[str]] = None,
        dictionary: Optional[Iterable[str]] = None,
    ) -> None:
        self.terms = AGGRESSIVE_TERMS + tuple(t.lower() for t in (extra_terms or ()))
        self.dictionary = frozenset(dictionary) if dictionary is not None else COMMON_WORDS
        self._reference = [w for w in self.dictionary if len(w) >= MISSPELLING_MIN_LENGTH]

    # -- checks --------------------------------------------------------------

    def _has_aggressive_language(self, lowered: str) -> bool:
        return any(term in lowered for term in self.terms)

    @staticmethod
    def _is_shouting(text: str) -> bool:
        if len(text) <= UPPERCASE_MIN_LENGTH:
            return False
        upper = sum(1 for ch in text if ch.isupper())
        return upper / len(text) > UPPERCASE_RATIO_THRESHOLD

    @staticmethod
    def _has_excessive_exclamations(text: str) -> bool:
        return text.count("!") > MAX_EXCLAMATIONS

    def _short_token_runs(self, tokens: list[str]) -> int:
        runs = 0
        streak = 0
        for token in tokens:
            if len(token) <= SHORT_TOKEN_MAX_LENGTH and token not in self.dictionary:
                streak += 1
                if streak == SHORT_TOKEN_RUN:
                    runs += 1
            else:
                streak = 0
        return runs

    def _is_misspelling(self, token: str) -> bool:
        max_distance = 1 if len(token) <= MISSPELLING_SHORT_TOKEN_LENGTH else MISSPELLING_MAX_DISTANCE
        for word in self._reference:
            if abs(len(word) - len(token)) > max_distance:
                continue
            # plurals and conjugations of a known word are not typos
            if token.startswith(word) or word.startswith(token):
                continue
            if levenshtein(token, word) <= max_distance:
                return True
        return False

    def impairment_signals(self, text: str) -> int:
        """Count writing-quality signals that suggest impaired writing."""
        lowered = text.lower()
        tokens = _WORD_RE.findall(lowered)

        signals = len(_STRETCHED_RE.findall(lowered))
        signals += self._short_token_runs(tokens)

        candidates = [
            t for t in tokens
            if len(t) >= MISSPELLING_MIN_LENGTH and t not in self.dictionary
        ]
        checked = sum(1 for t in tokens if len(t) >= MISSPELLING_MIN_LENGTH)
        misspelled = sum(1 for t in candidates if self._is_misspelling(t))
        if (
            misspelled >= MISSPELLING_MIN_COUNT
            and misspelled / max(checked, 1) >= MISSPELLING_MIN_RATIO
        ):
            signals += misspelled
        return signals

    # -- public API ----------------------------------------------------------

    def analyze(self, text: str) -> HeuristicResult:
        """Scan *text* and return the issues found, in detection order."""
        issues: list[str] = []

        if self._has_aggressive_language(text.lower()):
            issues.append(AGGRESSIVE_ISSUE)
        if self._is_shouting(text):
            issues.append(SHOUTING_ISSUE)
        if self._has_excessive_exclamations(text):
            issues.append(EXCLAMATION_ISSUE)
        if self.impairment_signals(text) >= IMPAIRMENT_SIGNAL_THRESHOLD:
            issues.append(IMPAIRMENT_ISSUE)

        if issues:
            return HeuristicResult(
                has_issues=True,
                issues=tuple(issues),
                suggestion=NEUTRAL_SUGGESTION,
            )
        return HeuristicResult(has_issues=False)
