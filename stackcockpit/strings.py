"""Small string helpers."""


def capitalize(text: str) -> str:
    """Upper-case the first character and ASCII-lower-case the rest."""
    if not text:
        return ""
    first, rest = text[0], text[1:]
    return first.upper() + "".join(c.lower() if c.isascii() else c for c in rest)


def operator_chart_name(name: str) -> str:
    """Return the name of the operator chart in the Helm repository."""
    return f"{name}-operator"