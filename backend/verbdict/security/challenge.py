"""
Arithmetic captcha challenges.

A challenge is a short question such as ``7 × 3 = ?``.  The client receives a
decorative SVG of the question plus a token; the token is a SHA-256 digest of
the answer salted with the server secret, so nothing has to be stored between
issuing and verifying.  Tokens never expire on their own: they stay valid
until the secret changes.
"""

from __future__ import annotations

import hashlib
import hmac
import random
import secrets
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple
from xml.sax.saxutils import escape

OPERATORS = ("add", "subtract", "multiply", "divide")

GLYPHS: Dict[str, str] = {
    "add": "+",
    "subtract": "-",
    "multiply": "×",
    "divide": "÷",
}

SVG_WIDTH = 150
SVG_HEIGHT = 50

_system_random = secrets.SystemRandom()


@dataclass(frozen=True)
class Question:
    operator: str
    left: int
    right: int
    answer: int

    @property
    def text(self) -> str:
        return f"{self.left} {GLYPHS[self.operator]} {self.right} = ?"


@dataclass(frozen=True)
class IssuedChallenge:
    question: Question
    token: str
    visual: str


def _add(rng: random.Random) -> Tuple[int, int, int]:
    a = rng.randint(1, 20)
    b = rng.randint(1, 20)
    return a, b, a + b


def _subtract(rng: random.Random) -> Tuple[int, int, int]:
    minuend = rng.randint(5, 24)
    subtrahend = rng.randrange(0, minuend)
    return minuend, subtrahend, minuend - subtrahend


def _multiply(rng: random.Random) -> Tuple[int, int, int]:
    a = rng.randint(1, 9)
    b = rng.randint(1, 9)
    return a, b, a * b


def _divide(rng: random.Random) -> Tuple[int, int, int]:
    divisor = rng.randint(1, 9)
    quotient = rng.randint(1, 9)
    return divisor * quotient, divisor, quotient


_BUILDERS: Dict[str, Callable[[random.Random], Tuple[int, int, int]]] = {
    "add": _add,
    "subtract": _subtract,
    "multiply": _multiply,
    "divide": _divide,
}


def generate_question(rng: Optional[random.Random] = None, operator: Optional[str] = None) -> Question:
    """Draw a question; ``operator`` pins the operation (tests), otherwise it is uniform."""
    rng = rng or _system_random
    op = operator or rng.choice(OPERATORS)
    left, right, answer = _BUILDERS[op](rng)
    return Question(operator=op, left=left, right=right, answer=answer)


def normalize_answer(answer) -> Optional[str]:
    """Canonical text of a submitted answer, or ``None`` if it is not an integer."""
    if isinstance(answer, bool):
        return None
    if isinstance(answer, int):
        return str(answer)
    try:
        return str(int(str(answer).strip()))
    except (TypeError, ValueError):
        return None


def digest(answer, secret: str) -> str:
    return hashlib.sha256(f"{answer}{secret}".encode("utf-8")).hexdigest()


def token_matches(answer, token: str, secret: str) -> bool:
    canonical = normalize_answer(answer)
    if canonical is None:
        return False
    expected = digest(canonical, secret).encode("utf-8")
    return hmac.compare_digest(expected, str(token).encode("utf-8"))


def _random_colour(rng: random.Random, low: int, high: int) -> str:
    return "#{:02x}{:02x}{:02x}".format(
        rng.randint(low, high), rng.randint(low, high), rng.randint(low, high)
    )


def render_svg(text: str, rng: Optional[random.Random] = None) -> str:
    """Scrambled SVG rendering of ``text``. Cosmetic only."""
    rng = rng or _system_random
    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{SVG_WIDTH}" height="{SVG_HEIGHT}" '
        f'viewBox="0 0 {SVG_WIDTH} {SVG_HEIGHT}">',
        f'<rect width="100%" height="100%" fill="{_random_colour(rng, 220, 255)}"/>',
    ]
    for _ in range(rng.randint(4, 7)):
        parts.append(
            '<line x1="{}" y1="{}" x2="{}" y2="{}" stroke="{}" stroke-width="1"/>'.format(
                rng.randint(0, SVG_WIDTH),
                rng.randint(0, SVG_HEIGHT),
                rng.randint(0, SVG_WIDTH),
                rng.randint(0, SVG_HEIGHT),
                _random_colour(rng, 100, 200),
            )
        )
    for _ in range(rng.randint(20, 40)):
        parts.append(
            '<circle cx="{}" cy="{}" r="1" fill="{}"/>'.format(
                rng.randint(0, SVG_WIDTH), rng.randint(0, SVG_HEIGHT), _random_colour(rng, 80, 180)
            )
        )

    step = (SVG_WIDTH - 20) / max(len(text), 1)
    for index, char in enumerate(text):
        if char == " ":
            continue
        x = 10 + index * step + rng.uniform(-1.5, 1.5)
        y = 32 + rng.uniform(-4, 4)
        angle = rng.randint(-25, 25)
        parts.append(
            '<text x="{:.1f}" y="{:.1f}" font-family="monospace" font-size="{}" fill="{}" '
            'transform="rotate({} {:.1f} {:.1f})">{}</text>'.format(
                x, y, rng.randint(18, 24), _random_colour(rng, 0, 90), angle, x, y, escape(char)
            )
        )
    parts.append("</svg>")
    return "".join(parts)


def build_challenge(secret: str, rng: Optional[random.Random] = None) -> IssuedChallenge:
    question = generate_question(rng)
    return IssuedChallenge(
        question=question,
        token=digest(question.answer, secret),
        visual=render_svg(question.text, rng),
    )


__all__ = [
    "OPERATORS",
    "Question",
    "IssuedChallenge",
    "generate_question",
    "normalize_answer",
    "digest",
    "token_matches",
    "render_svg",
    "build_challenge",
]
