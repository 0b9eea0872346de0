"""Quote-aware splitting of a command string into an argument vector."""

QUOTE_CHARS = ("'", '"')


def tokenize(command: str) -> list[str]:
    """Split a command into argv, honoring single and double quotes.

    Whitespace outside a quoted span separates tokens. Quote characters are
    stripped; the other quote character inside a span is literal. An
    unterminated quote runs to the end of the string. Text adjacent to a
    quoted span joins the same token, so ``a"b c"`` becomes ``ab c``.

    Unlike ``shlex.split`` this never raises and does not interpret
    backslashes.
    """
    tokens: list[str] = []
    current: list[str] = []
    in_token = False
    quote: str | None = None

    for char in command:
        if quote is not None:
            if char == quote:
                quote = None
            else:
                current.append(char)
            continue

        if char in QUOTE_CHARS:
            quote = char
            in_token = True
        elif char.isspace():
            if in_token:
                tokens.append("".join(current))
                current = []
                in_token = False
        else:
            current.append(char)
            in_token = True

    if in_token:
        tokens.append("".join(current))
    return tokens
