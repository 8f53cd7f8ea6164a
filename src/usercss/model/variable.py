"""Variable model: the descriptor shared by both variable dialects."""

from __future__ import annotations

from dataclasses import dataclass, field

VARIABLE_TYPES = frozenset({"text", "color", "number", "range", "select", "checkbox"})


@dataclass(frozen=True)
class VariableOption:
    """One choice of a select variable."""

    value: str
    label: str


@dataclass(frozen=True)
class VariableDescriptor:
    """A user-customizable variable.

    ``type`` is normally one of :data:`VARIABLE_TYPES`; unrecognized type
    strings from the source are kept as written.  ``option_css`` maps an
    option value to the CSS snippet it stands for (USO dropdowns).
    """

    name: str
    type: str = "text"
    default: str = ""
    value: str = ""
    label: str = ""
    min: float | None = None
    max: float | None = None
    step: float | None = None
    unit: str | None = None
    options: list[VariableOption] = field(default_factory=list)
    option_css: dict[str, str] = field(default_factory=dict)

    @property
    def bare_name(self) -> str:
        """The name without its leading ``--``."""
        return self.name[2:] if self.name.startswith("--") else self.name

    def option_values(self) -> list[str]:
        return [o.value for o in self.options]
