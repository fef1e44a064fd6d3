"""Prompt optimizer: ask the model to rewrite a prompt for a target model.

One stateless completion. The system message carries the current prompt,
its target model and type, and the requested change; the reply is taken as
the rewritten prompt and nothing else.
"""

from __future__ import annotations

PROMPT_TYPES: frozenset[str] = frozenset(["user", "system"])

_OPTIMIZER_TEMPLATE = """\
You are an expert prompt engineer. Your task is to optimize prompts for AI \
models to be more effective, clear, and produce better results.

Target Model: {target_model}
Prompt Type: {prompt_type}

Current Prompt:
{prompt}

Optimization Request:
{request}

Please provide an optimized version of the prompt that:
1. Maintains the original intent and purpose
2. Is optimized for the target model ({target_model})
3. Follows best practices for {prompt_type} prompts
4. Addresses the specific optimization request
5. Is clear, concise, and effective

Return ONLY the optimized prompt content, no explanations or markdown formatting."""

_USER_TURN = "Please optimize this prompt."


def build_optimizer_messages(
    prompt: str,
    request: str,
    target_model: str,
    prompt_type: str = "user",
) -> list[dict]:
    """Return the two-message conversation that asks for a rewritten *prompt*.

    Raises:
        ValueError: If *prompt* or *request* is blank, or *prompt_type* is
            not 'user' or 'system'.
    """
    if not prompt.strip():
        raise ValueError("prompt must not be empty")
    if not request.strip():
        raise ValueError("optimization request must not be empty")
    if prompt_type not in PROMPT_TYPES:
        raise ValueError(f"Unknown prompt type: {prompt_type!r} (use 'user' or 'system')")

    system = _OPTIMIZER_TEMPLATE.format(
        target_model=target_model,
        prompt_type=prompt_type,
        prompt=prompt.strip(),
        request=request.strip(),
    )
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": _USER_TURN},
    ]


def clean_optimized(text: str) -> str:
    """Strip surrounding whitespace and a single wrapping code fence, if any."""
    text = text.strip()
    lines = text.split("\n")
    if len(lines) >= 2 and lines[0].startswith("```") and lines[-1].strip() == "```":
        text = "\n".join(lines[1:-1]).strip()
    return text
