"""
FastAPI router for the company profile
Project: Stair Ledger
"""

from fastapi import APIRouter, Depends

from stairledger.core.config import Settings, get_settings
from stairledger.schemas.settings import CompanyProfile

router = APIRouter(
    prefix="/company",
    tags=["Company"],
)


@router.get("/", summary="Company, VAT and CIS details", response_model=CompanyProfile)
async def get_company_profile(settings: Settings = Depends(get_settings)) -> CompanyProfile:
    return CompanyProfile.from_settings(settings)
