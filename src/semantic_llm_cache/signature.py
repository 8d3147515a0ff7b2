"""Generation-configuration signatures.

A signature identifies which generation configuration produced a cached
response. Two cache entries are interchangeable only if their signatures are
equal, so every input that changes model behaviour must show up in it.
"""

import hashlib

SYSTEM_PROMPT_PREFIX_LENGTH = 50
SYSTEM_PROMPT_DIGEST_LENGTH = 12


def build_signature(
    model: str,
    temperature: float,
    max_tokens: int,
    system_prompt: str | None = "",
) -> str:
    """Build the signature string for a generation configuration.

    The system prompt is truncated to a readable prefix. Longer prompts also
    get a short SHA-256 digest of the full text, so two prompts sharing the
    same prefix still produce different signatures.

    Args:
        model: Completion model name (e.g. "gpt-4o-mini")
        temperature: Sampling temperature
        max_tokens: Maximum completion tokens
        system_prompt: System instructions sent with every request

    Returns:
        Deterministic signature, e.g. "gpt-4o-mini:temp=0.7:max=1024:system=You are..."

    Example:
        ```python
        >>> build_signature("gpt-4o-mini", 0.2, 256, "Be brief.")
        'gpt-4o-mini:temp=0.2:max=256:system=Be brief.'
        ```
    """
    system_prompt = system_prompt or ""
    system_part = system_prompt[:SYSTEM_PROMPT_PREFIX_LENGTH]
    if len(system_prompt) > SYSTEM_PROMPT_PREFIX_LENGTH:
        digest = hashlib.sha256(system_prompt.encode("utf-8")).hexdigest()
        system_part = f"{system_part}#{digest[:SYSTEM_PROMPT_DIGEST_LENGTH]}"

    return f"{model}:temp={float(temperature)}:max={int(max_tokens)}:system={system_part}"
