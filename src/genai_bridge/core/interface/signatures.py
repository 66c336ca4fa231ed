"""Signature Propagator — carries the continuation signature across turns.

The server attaches an opaque ``thought signature`` to the model turn that
started a reasoning/tool-call chain. A follow-up request must send it back
on that same turn or the server rejects the continuation. Decoding stores
it in ``metadata["thought_signature"]``; encoding puts it back on the wire.
"""

from typing import Any

from genai_bridge.core.interface.models import LEGACY_SIGNATURE_KEY, SIGNATURE_KEY


def read_signature(metadata: dict[str, Any]) -> str | None:
    """Return the signature stored in message metadata, if any."""
    value = metadata.get(SIGNATURE_KEY, metadata.get(LEGACY_SIGNATURE_KEY))
    return value if isinstance(value, str) and value else None


def attach_signature(parts: list[dict[str, Any]], signature: str | None) -> list[dict[str, Any]]:
    """Place *signature* on the last standard-protocol part of an AI turn.

    A turn that encoded to no parts gets an empty text part carrying only
    the signature.
    """
    if not signature:
        return list(parts)
    if not parts:
        return [{"text": "", "thoughtSignature": signature}]
    return [*parts[:-1], {**parts[-1], "thoughtSignature": signature}]


def attach_interaction_signature(
    items: list[dict[str, Any]], signature: str | None
) -> list[dict[str, Any]]:
    """Place *signature* on the last ``thought`` item of an Interactions turn.

    Without a thought item, a signature-only thought is inserted at the start
    of the turn, where the server emits it.
    """
    if not signature:
        return list(items)
    for pos in range(len(items) - 1, -1, -1):
        if items[pos].get("type") == "thought":
            return [*items[:pos], {**items[pos], "signature": signature}, *items[pos + 1 :]]
    return [{"type": "thought", "signature": signature}, *items]
