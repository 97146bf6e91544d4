"""API routes — thin controllers that delegate to the package service."""

from __future__ import annotations

import base64
import binascii

from fastapi import APIRouter, Depends, Query

from git_packages.interface.dependencies import get_package_service
from git_packages.interface.schemas import (
    ErrorResponse,
    FileResponse,
    PackageResponse,
    ProviderSummary,
)
from git_packages.services.package_service import PackageService

router = APIRouter(prefix="/providers")

_ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    401: {"model": ErrorResponse, "description": "Missing or rejected provider token"},
    404: {"model": ErrorResponse, "description": "Repository, branch or directory not found"},
    409: {"model": ErrorResponse, "description": "Repository already installed"},
    422: {"model": ErrorResponse, "description": "Not a repository URL of any provider"},
    429: {"model": ErrorResponse, "description": "Provider rate limit exceeded"},
    502: {"model": ErrorResponse, "description": "Provider unreachable or invalid response"},
}


def decode_repository_url(raw: str) -> str:
    """Accept the repository URL either base64-encoded or as plain text."""
    raw = raw.strip()
    if raw.startswith(("https://", "http://", "git@")):
        return raw
    padded = raw + "=" * (-len(raw) % 4)
    for decoder in (base64.b64decode, base64.urlsafe_b64decode):
        try:
            decoded = decoder(padded).decode("utf-8").strip()
        except (binascii.Error, UnicodeDecodeError, ValueError):
            continue
        if decoded.startswith(("https://", "http://", "git@")):
            return decoded
    return raw


@router.get("", response_model=list[ProviderSummary])
async def list_providers(
    service: PackageService = Depends(get_package_service),
) -> list[ProviderSummary]:
    """List the registered providers and whether a token is configured."""
    return [ProviderSummary.model_validate(p) for p in service.registry.describe()]


@router.get(
    "/check/{url:path}",
    response_model=PackageResponse,
    responses=_ERROR_RESPONSES,
)
async def check_repository(
    url: str,
    installed: list[str] = Query(default=[]),
    service: PackageService = Depends(get_package_service),
) -> PackageResponse:
    """Resolve a repository URL into a package descriptor."""
    descriptor = await service.check_repository(
        decode_repository_url(url), installed_keys=installed
    )
    return PackageResponse.from_entity(descriptor)


@router.get(
    "/validate-dir",
    response_model=list[FileResponse],
    responses=_ERROR_RESPONSES,
)
async def validate_directory(
    url: str,
    branch: str,
    dir: str = "",  # noqa: A002
    service: PackageService = Depends(get_package_service),
) -> list[FileResponse]:
    """Return the installable files of one directory with their contents."""
    files = await service.validate_directory(url, branch, dir)
    return [FileResponse.from_entity(f) for f in files]
