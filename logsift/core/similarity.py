"""String similarity used when merging near-duplicate clusters."""


def levenshtein_distance(a: str, b: str) -> int:
    """Minimum number of single-character edits turning ``a`` into ``b``."""
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(
                min(
                    previous[j] + 1,  # deletion
                    current[j - 1] + 1,  # insertion
                    previous[j - 1] + cost,  # substitution
                )
            )
        previous = current
    return previous[-1]


def similarity(a: str | None, b: str | None) -> float:
    """Normalized similarity in [0.0, 1.0]: ``1 - distance / max_length``.

    Missing strings are never similar; two empty strings are identical.
    """
    if a is None or b is None:
        return 0.0
    if a == b:
        return 1.0

    max_length = max(len(a), len(b))
    return 1.0 - levenshtein_distance(a, b) / max_length
