# util/functions.py
def clip_chars(text: str, max_chars: int) -> str:
    """
    Keep the first `max_chars` characters of `text`.
    Prefix clipping is deterministic: the same input always yields the same cut.
    """
    if max_chars <= 0:
        return ""
    if len(text) <= max_chars:
        return text
    return text[:max_chars]
