"""
Stack output helpers.

Writes resolved stack exports to a dotenv-style file so local tooling can
pick up subnet and security group ids without querying the Pulumi backend.
"""

from pathlib import Path
from typing import Any, Mapping, Sequence

import pulumi


def format_env_value(value: Any) -> str:
    """Render one resolved output as a dotenv value (lists become CSV)."""
    if value is None:
        return ""
    if isinstance(value, Mapping):
        return ",".join(f"{k}={format_env_value(v)}" for k, v in value.items())
    if isinstance(value, Sequence) and not isinstance(value, str):
        return ",".join(format_env_value(item) for item in value)
    return str(value)


def render_env(values: Mapping[str, Any]) -> str:
    """Render resolved outputs as KEY=value lines, in mapping order."""
    lines = [f"{key.upper()}={format_env_value(value)}" for key, value in values.items()]
    return "\n".join(lines) + "\n"


def write_outputs_to_env(
    outputs: Mapping[str, pulumi.Input[Any]],
    filename: str,
) -> pulumi.Output[str] | None:
    """
    Write stack outputs to a dotenv file once they resolve.

    Args:
        outputs: Export name to (possibly unresolved) value
        filename: Target file path

    Returns:
        Output resolving to the written path, or None during preview
    """
    if pulumi.runtime.is_dry_run():
        return None

    keys = list(outputs)

    def _write(values: list[Any]) -> str:
        path = Path(filename)
        path.write_text(render_env(dict(zip(keys, values))))
        pulumi.log.info(f"Wrote {len(keys)} outputs to {path}")
        return str(path)

    return pulumi.Output.all(*outputs.values()).apply(_write)
