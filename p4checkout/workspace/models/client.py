"""Client workspace data model.

A client (workspace) is a named, server-side record that maps depot paths to
paths inside the client's own namespace (``//{client}/...``) and pins that
namespace to a local root directory.

Two wire formats are involved:

- **Tagged records** (``p4 -Mj -ztag client -o``): a flat JSON object where
  the ordered view lines are stored under ``View0``, ``View1``, ... keys,
  each holding ``"<depot> <client>"``.
- **Spec form** (``p4 client -i``): a line-oriented document with
  tab-separated fields and tab-indented ``Description:`` / ``View:`` blocks.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

VIEW_KEY_PREFIX = "View"


class InvalidViewError(ValueError):
    """A view line did not split into exactly a depot and a client path."""

    def __init__(self, line: str) -> None:
        super().__init__(f"Invalid client view '{line}'")
        self.line = line


class ClientMapping(BaseModel):
    """One line of a client view."""

    depot: str
    client: str

    @classmethod
    def from_line(cls, line: str) -> ClientMapping:
        parts = line.split()
        if len(parts) != 2:
            raise InvalidViewError(line)
        return cls(depot=parts[0], client=parts[1])

    def to_line(self) -> str:
        return f"{self.depot} {self.client}"


class ClientSpec(BaseModel):
    """A client workspace definition."""

    client: str
    owner: str = ""
    host: str = ""
    root: str = ""
    description: str = ""
    options: str = ""
    submit_options: str = ""
    line_end: str = ""
    view: list[ClientMapping] = Field(default_factory=list, description="Ordered view mappings")

    # -- Tagged records ----------------------------------------------------------

    @classmethod
    def from_tagged(cls, record: dict[str, Any]) -> ClientSpec:
        """Build a spec from a ``-ztag`` record.

        Raises ``InvalidViewError`` on a malformed view line.
        """
        view_keys = [key for key in record if key.startswith(VIEW_KEY_PREFIX)]
        view_keys.sort(key=_view_index)

        return cls(
            client=record.get("Client", ""),
            owner=record.get("Owner", ""),
            host=record.get("Host", ""),
            root=record.get("Root", ""),
            description=record.get("Description", ""),
            options=record.get("Options", ""),
            submit_options=record.get("SubmitOptions", ""),
            line_end=record.get("LineEnd", ""),
            view=[ClientMapping.from_line(record[key]) for key in view_keys],
        )

    # -- Spec form ---------------------------------------------------------------

    def to_spec_text(self) -> str:
        """Render the spec form accepted by ``p4 client -i``."""
        lines = [
            f"Client:\t{self.client}",
            f"Owner:\t{self.owner}",
            f"Host:\t{self.host}",
            "Description:",
        ]
        lines.extend(f"\t{line}" for line in self.description.rstrip("\n").split("\n"))
        lines.extend(
            [
                f"Root:\t{self.root}",
                f"Options:\t{self.options}",
                f"SubmitOptions:\t{self.submit_options}",
                f"LineEnd:\t{self.line_end}",
                "View:",
            ]
        )
        lines.extend(f"\t{mapping.to_line()}" for mapping in self.view)
        return "\n".join(lines) + "\n"


def _view_index(key: str) -> int:
    """Sort key for ``ViewN`` tags; unnumbered keys keep their place at the front."""
    suffix = key[len(VIEW_KEY_PREFIX) :]
    return int(suffix) if suffix.isdigit() else -1
