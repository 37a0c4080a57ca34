from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from lms.api.v2.dependencies import get_current_user, get_db
from lms.core.errors import DomainError
from lms.models.user.user_model import User
from lms.schemas.progress import progress_schema
from lms.services import certificate_service

router = APIRouter()


@router.get("", response_model=List[progress_schema.CertificateOut])
def list_my_certificates(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return certificate_service.list_for_user(db, current_user.id)


# Public: anyone holding a certificate id can check it.
@router.get("/verify/{certificate_id}", response_model=progress_schema.CertificateVerificationOut)
def verify_certificate(certificate_id: str, db: Session = Depends(get_db)):
    try:
        certificate = certificate_service.verify(db, certificate_id)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc

    return progress_schema.CertificateVerificationOut(
        certificate_id=certificate.certificate_id,
        learner_name=certificate.user.name,
        course_title=certificate.course.title,
        issue_date=certificate.issue_date,
        completion_date=certificate.completion_date,
    )


@router.get("/{certificate_pk}", response_model=progress_schema.CertificateOut)
def read_certificate(
    certificate_pk: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return certificate_service.get_for_viewer(db, certificate_pk, current_user)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
