"""Pydantic response DTOs for the API boundary.

Field names follow the JSON shape the admin UI already consumes
(``baseUrl``, ``fileUrl``, ``zip`` …), hence the camelCase aliases.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from git_packages.domain.entities import BranchInfo, FileEntry, PackageDescriptor


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ProviderSummary(_CamelModel):
    """One entry of ``GET /providers``."""

    key: str
    name: str
    has_token: bool = Field(alias="hasToken")


class BranchResponse(BaseModel):
    name: str
    url: str
    zip: str
    default: bool

    @classmethod
    def from_entity(cls, branch: BranchInfo) -> BranchResponse:
        return cls(
            name=branch.name,
            url=branch.web_url,
            zip=branch.archive_zip_url,
            default=branch.is_default,
        )


class PackageResponse(_CamelModel):
    """Successful response from ``GET /providers/check/{url}``."""

    key: str
    name: str
    private: bool
    provider: str
    branches: dict[str, BranchResponse]
    base_url: str = Field(alias="baseUrl")
    api_url: str = Field(alias="apiUrl")
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, descriptor: PackageDescriptor) -> PackageResponse:
        return cls(
            key=descriptor.key,
            name=descriptor.name,
            private=descriptor.private,
            provider=descriptor.provider.value,
            branches={
                name: BranchResponse.from_entity(branch)
                for name, branch in descriptor.branches.items()
            },
            base_url=descriptor.base_url,
            api_url=descriptor.api_url,
            warnings=list(descriptor.warnings),
        )


class FileResponse(_CamelModel):
    """One element of ``GET /providers/validate-dir``."""

    file: str
    file_url: str = Field(alias="fileUrl")
    content: str | None

    @classmethod
    def from_entity(cls, entry: FileEntry) -> FileResponse:
        return cls(file=entry.path, file_url=entry.fetch_url, content=entry.content)


class ErrorResponse(BaseModel):
    """Standard error envelope returned on all failure paths."""

    status: str = "error"
    code: str
    message: str
