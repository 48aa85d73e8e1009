"""Tool validation utilities."""

import re

TOOL_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_\-]{1,}$")
TOOL_NAME_MAX_LENGTH = 64


def check_tool_name_validity(tool_name: str) -> tuple[bool, str]:
    """Validate a tool name against the characters and length models accept."""
    if not TOOL_NAME_PATTERN.match(tool_name):
        return False, f"tool_name=<{tool_name}> | invalid tool name pattern"

    if len(tool_name) > TOOL_NAME_MAX_LENGTH:
        return (
            False,
            f"tool_name=<{tool_name}>, tool_name_max_length=<{TOOL_NAME_MAX_LENGTH}> | invalid tool name length",
        )

    return True, ""
