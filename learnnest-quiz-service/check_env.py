#!/usr/bin/env python3
"""
Check that the model API keys load from the environment or .env
"""
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import dotenv_values

API_KEYS = ("OPENAI_API_KEY", "GEMINI_API_KEY")


def describe_key(value: Optional[str]) -> Dict[str, Any]:
    """Masked summary of one key: never includes the full value"""
    if not value:
        return {"present": False, "length": 0, "preview": None,
                "unusual_characters": [], "surrounding_whitespace": False}

    preview = f"{value[:6]}...{value[-4:]}" if len(value) > 12 else "***"
    return {
        "present": True,
        "length": len(value),
        "preview": preview,
        # Pasted keys sometimes carry control or non-ASCII characters
        "unusual_characters": [i for i, char in enumerate(value) if ord(char) > 127 or ord(char) < 32],
        "surrounding_whitespace": value != value.strip(),
    }


def check_environment(env_file: str = ".env") -> Dict[str, Dict[str, Any]]:
    """Report where each API key comes from and whether it looks sane"""
    file_values = dotenv_values(env_file) if Path(env_file).exists() else {}

    report = {}
    for key in API_KEYS:
        env_value = os.getenv(key)
        file_value = file_values.get(key)
        entry = describe_key(env_value or file_value)
        entry["source"] = "environment" if env_value else ("env_file" if file_value else None)
        report[key] = entry
    return report


if __name__ == "__main__":
    print("=== API Key Analysis ===")
    for key, entry in check_environment().items():
        if not entry["present"]:
            print(f"✗ {key}: not set")
            continue
        print(f"✓ {key}: {entry['preview']} ({entry['length']} chars, from {entry['source']})")
        if entry["unusual_characters"]:
            print(f"  Unusual characters at positions {entry['unusual_characters']}")
        if entry["surrounding_whitespace"]:
            print("  Value has leading or trailing whitespace")
