"""
Install outcomes — result of the AppImage probe-then-branch.

The FUSE probe is decided once. Whichever path ran, the summary reads
``kind`` and ``binary_path`` without caring about the layout.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class DirectInstall(BaseModel):
    """The AppImage ran under FUSE and was installed as-is."""

    kind: Literal["direct"] = "direct"
    install_path: str
    compat_link: str

    @property
    def binary_path(self) -> str:
        return self.install_path


class ExtractedInstall(BaseModel):
    """FUSE was unavailable; the AppImage was self-extracted and linked."""

    kind: Literal["extracted"] = "extracted"
    install_path: str       # symlink on PATH
    extract_dir: str
    target: str             # executable inside extract_dir
    compat_link: str

    @property
    def binary_path(self) -> str:
        return self.install_path


InstallOutcome = Annotated[
    Union[DirectInstall, ExtractedInstall],
    Field(discriminator="kind"),
]

_OUTCOME_ADAPTER: TypeAdapter[InstallOutcome] = TypeAdapter(InstallOutcome)


def parse_outcome(data: dict) -> DirectInstall | ExtractedInstall:
    """Rebuild an outcome from receipt metadata."""
    return _OUTCOME_ADAPTER.validate_python(data)
