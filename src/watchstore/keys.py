"""Composite storage keys for (source, video id) pairs."""

SEPARATOR = "+"

_ESCAPES = (("%", "%25"), ("+", "%2B"))


def storage_key(source: str, video_id: str) -> str:
    """Build the composite key ``source+video_id``.

    ``%`` and ``+`` inside the source are percent-escaped, so the first ``+``
    of a key is always the separator and distinct pairs never collide. The id
    is kept verbatim. Plain source names produce the bare ``source+id`` form.
    """
    for raw, escaped in _ESCAPES:
        source = source.replace(raw, escaped)
    return f"{source}{SEPARATOR}{video_id}"


def split_storage_key(key: str) -> tuple[str, str]:
    """Recover (source, video_id) from a key built by storage_key().

    Raises:
        ValueError: If the key has no separator.
    """
    source, sep, video_id = key.partition(SEPARATOR)
    if not sep:
        raise ValueError(f"Not a composite storage key: {key!r}")
    for raw, escaped in reversed(_ESCAPES):
        source = source.replace(escaped, raw)
    return source, video_id
