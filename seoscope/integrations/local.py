"""
Local-presence collaborator contract.

A directory-lookup service reports where a business is listed and whether its
Name/Address/Phone (NAP) matches across listings. The audit core stores that
record and derives one deterministic aggregate score from it.
"""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field


class BusinessProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    found: bool = False
    name: str | None = None
    rating: float | None = None
    review_count: int | None = None
    address: str | None = None
    phone: str | None = None
    website: str | None = None
    categories: list[str] = Field(default_factory=list)
    hours: bool = False
    photos: int = 0


class DirectoryListing(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    found: bool = False
    url: str | None = None
    nap_consistent: bool = False


class NAPCheck(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    name: str | None = None
    address: str | None = None
    phone: str | None = None
    consistent: bool = False
    url: str | None = None


def calculate_local_score(directories: list[DirectoryListing]) -> int:
    """
    Aggregate local score (0-100).

    Half the score rewards directory presence, half rewards NAP consistency
    among the listings that were found.
    """
    if not directories:
        return 0
    found = [d for d in directories if d.found]
    consistent = [d for d in found if d.nap_consistent]
    score = (len(found) / len(directories)) * 50 + (len(consistent) / max(len(found), 1)) * 50
    return max(0, min(100, round(score)))


class LocalFindings(BaseModel):
    model_config = ConfigDict(frozen=True)

    business_profile: BusinessProfile = Field(default_factory=BusinessProfile)
    nap_consistency: list[NAPCheck] = Field(default_factory=list)
    directories: list[DirectoryListing] = Field(default_factory=list)
    overall_score: int = Field(0, ge=0, le=100)

    @classmethod
    def from_directories(
        cls,
        directories: list[DirectoryListing],
        business_profile: BusinessProfile | None = None,
        nap_consistency: list[NAPCheck] | None = None,
    ) -> "LocalFindings":
        return cls(
            business_profile=business_profile or BusinessProfile(),
            nap_consistency=nap_consistency or [],
            directories=directories,
            overall_score=calculate_local_score(directories),
        )


class LocalPresenceProvider(Protocol):
    """Anything that can look a business up across external directories."""

    async def lookup(
        self,
        business_name: str,
        address: str | None = None,
        phone: str | None = None,
        website: str | None = None,
    ) -> LocalFindings:
        ...
