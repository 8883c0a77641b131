from fastapi import APIRouter, Depends, Response

from .. import models, schemas
from ..certificates import CertificateService
from ..deps import get_certificates, get_current_user

router = APIRouter(prefix="/user/certificate", tags=["Certificates"])


@router.get("/eligibility", response_model=schemas.Eligibility)
def get_eligibility(user: models.User = Depends(get_current_user),
                    certificates: CertificateService = Depends(get_certificates)):
    return certificates.eligibility(user.email)


@router.get("/generate")
def generate_certificate(user: models.User = Depends(get_current_user),
                         certificates: CertificateService = Depends(get_certificates)):
    pdf = certificates.generate(user.email)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": "inline; filename=certificate.pdf"},
    )
