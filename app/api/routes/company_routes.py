"""
Company Routes

POST /companies - Create the employer's company profile
GET /companies/me - Get own company
PUT /companies/me - Update own company (only provided fields)
POST /companies/me/logo - Upload company logo
GET /companies/{company_id} - Public company profile
"""

from fastapi import APIRouter, Depends, UploadFile, File

from app.core.auth import get_current_employer
from app.services import identity_store
from app.services.blob_store import BlobStore, get_blob_store
from app.utils.file_upload import read_image
from app.schemas.schemas import CompanyCreate, CompanyUpdate, CompanyResponse

router = APIRouter(prefix="/companies", tags=["Companies"])


@router.post("", response_model=CompanyResponse, status_code=201)
async def create_company(data: CompanyCreate, employer: dict = Depends(get_current_employer)):
    """Create company profile. An employer can own only one company."""
    return identity_store.create_company(employer, data.model_dump(exclude_none=True))


@router.get("/me", response_model=CompanyResponse)
async def get_my_company(employer: dict = Depends(get_current_employer)):
    return identity_store.get_employer_company(employer)


@router.put("/me", response_model=CompanyResponse)
async def update_my_company(data: CompanyUpdate, employer: dict = Depends(get_current_employer)):
    return identity_store.update_company(employer, data.model_dump(exclude_unset=True))


@router.post("/me/logo", response_model=CompanyResponse)
async def upload_logo(
    file: UploadFile = File(...),
    employer: dict = Depends(get_current_employer),
    blobs: BlobStore = Depends(get_blob_store),
):
    """Upload company logo (JPEG/PNG, max 5MB)."""
    previous = identity_store.get_employer_company(employer)["logo"]
    content, filename, content_type = await read_image(file)
    reference = blobs.store(content, filename, content_type, kind="logo", owner_id=employer["user_id"])
    company = identity_store.set_company_logo(employer, reference)
    if previous:
        blobs.discard(previous)
    return company


@router.get("/{company_id}", response_model=CompanyResponse)
async def get_company(company_id: int):
    return identity_store.get_company(company_id)
