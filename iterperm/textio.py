"""Text form of permutation input and output.

Input is one line of comma separated numbers.  Tokens are kept as the
stripped text they were written with, so ``+1`` and ``1.0`` survive a
round trip unchanged and are distinct values.
"""

from __future__ import annotations

from iterperm.mptypes import Permutation


def parse_line(text: str) -> tuple[str, ...]:
    """Split a comma separated line into number tokens.

    Raises:
        ValueError: If a token does not parse as a number.
    """
    tokens = []
    for token in text.rstrip("\r\n").split(","):
        token = token.strip()
        try:
            float(token)
        except ValueError:
            raise ValueError(f"`{token}` is not a valid number") from None
        tokens.append(token)
    return tuple(tokens)


def format_permutation(permutation: Permutation) -> str:
    return ",".join(str(value) for value in permutation) + "\n"
