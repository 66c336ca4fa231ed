"""Shared error types for the translation layer."""


class TranslationError(Exception):
    """Base error for all encode/decode failures."""


class MalformedContentError(TranslationError):
    """Content could not be encoded (e.g. an invalid base64 data URL)."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Malformed content" + (f": {detail}" if detail else ""))


class UnsupportedBlockError(TranslationError):
    """A content block has no mapping in the target protocol."""

    def __init__(self, block_type: str, detail: str = "") -> None:
        self.block_type = block_type
        self.detail = detail
        msg = f"Unsupported content block type: {block_type}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class UnsupportedMessageTypeError(TranslationError):
    """A message role has no mapping in the target protocol."""

    def __init__(self, role: str) -> None:
        self.role = role
        super().__init__(f"Unsupported message type: {role}")


class EmptyResponseError(TranslationError):
    """A response carried no candidate or output to decode."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Empty response" + (f": {detail}" if detail else ""))
