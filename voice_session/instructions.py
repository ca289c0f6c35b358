"""
Assistant instructions for the patent interview.

The persona is scenario-based:
- Different instructions per scenario (default interview, claims review, ...)
- Scenario selection via explicit name or the ASSISTANT_SCENARIO env var

Implementation note:
- Scenarios are stored as YAML (preferred) or JSON.
- We use PyYAML's safe_load, which can parse both YAML and pure JSON.
"""

import os
from pathlib import Path
from typing import Optional, Dict, Any

import yaml


# Used when no scenario file can be found at all.
ASSISTANT_INSTRUCTIONS = """
You are ScreenSense AI, a communication interface between inventors and patent lawyers.

Keep on asking questions to the user to help you document the invention.
Keep on doing this until you think that the information provided by the user
is enough to document the invention and file a patent from it.
""".strip()


def _get_scenarios_dir() -> Path:
    return Path(__file__).parent / "scenarios"


def _load_file(path: Path) -> Dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Scenario file {path} must contain a mapping at top-level")
        return data


def load_scenario(scenario_name: str) -> Dict[str, Any]:
    """
    Load scenario configuration from YAML or JSON file.

    Resolution order:
    1) <name>.yaml / <name>.yml / <name>.json
    2) default.yaml / default.yml / default.json
    3) built-in instructions
    """
    scenarios_dir = _get_scenarios_dir()

    for name in (scenario_name, "default"):
        for suffix in (".yaml", ".yml", ".json"):
            candidate = scenarios_dir / f"{name}{suffix}"
            if candidate.exists():
                return _load_file(candidate)

    return {
        "name": "default",
        "prompt": ASSISTANT_INSTRUCTIONS,
    }


def get_scenario(scenario: Optional[str] = None) -> Dict[str, Any]:
    """
    Priority:
    1. scenario parameter
    2. ASSISTANT_SCENARIO environment variable
    3. "default"
    """
    scenario_name = scenario or os.getenv("ASSISTANT_SCENARIO", "default")
    return load_scenario(scenario_name)


def get_instructions(scenario: Optional[str] = None, custom_instructions: Optional[str] = None) -> str:
    """
    Instructions payload for session.update.

    Args:
        scenario: Scenario name
        custom_instructions: Optional extra instructions appended after a blank line
    """
    prompt = get_scenario(scenario).get("prompt", ASSISTANT_INSTRUCTIONS).strip()

    if custom_instructions:
        return f"{prompt}\n\n{custom_instructions}"
    return prompt


def build_session_update(instructions: str) -> Dict[str, Any]:
    """The one-time configuration event sent when the channel becomes ready."""
    return {
        "type": "session.update",
        "session": {
            "instructions": instructions,
        },
    }
