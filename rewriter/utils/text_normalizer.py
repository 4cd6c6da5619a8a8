import re


def normalize_text(text: str) -> str:
    """Normalize line breaks and trim surrounding whitespace.

    Converts CRLF/CR line breaks to newlines, drops trailing spaces on each
    line and reduces runs of blank lines to one, keeping paragraph structure
    and the spacing inside lines intact.

    Args:
        text: Raw text from the request.

    Returns:
        str: Normalized and trimmed text.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[ \t]+\n", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()
