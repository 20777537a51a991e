"""
Prompt loader utility for versioned LLM prompts.

Prompts live next to the package so they can be revised without touching
the gateway code.

Usage:
    system_prompt = load_prompt("analysis", "system", version="1.0.0")
    chat_prompt = load_prompt("chat", "system")  # defaults to 1.0.0
"""

from functools import lru_cache
from pathlib import Path


@lru_cache(maxsize=None)
def load_prompt(
    prompt_group: str,
    prompt_name: str,
    version: str = "1.0.0"
) -> str:
    """
    Load a versioned prompt from the prompts directory.

    Args:
        prompt_group: The prompt directory name (e.g., 'analysis', 'chat')
        prompt_name: The prompt file name without version or extension (e.g., 'system', 'user')
        version: Semantic version string (default: '1.0.0')

    Returns:
        str: The prompt content as a string

    Raises:
        FileNotFoundError: If the prompt file does not exist
    """
    prompt_dir = Path(__file__).parent.parent / "prompts" / prompt_group
    prompt_file = prompt_dir / f"{prompt_name}_v{version}.txt"

    if not prompt_file.exists():
        raise FileNotFoundError(
            f"Prompt not found: {prompt_file}. "
            f"Expected format: prompts/{prompt_group}/{prompt_name}_v{version}.txt"
        )

    return prompt_file.read_text(encoding="utf-8")
