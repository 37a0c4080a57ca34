from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lms.core.config import settings
from lms.core.errors import ConflictError, ForbiddenError, NotFoundError
from lms.models.progress.certificate_model import Certificate
from lms.models.progress.progress_model import ProgressRecord
from lms.models.user.user_model import User, UserRole

logger = logging.getLogger(__name__)


def generate_certificate_id() -> str:
    """Return ``CERT-`` followed by 16 upper-case hex characters."""
    return f"CERT-{secrets.token_hex(8).upper()}"


class CertificateIssuer:
    """Issues at most one certificate per (learner, course).

    Uniqueness is enforced by the ``uq_certificate_user_course`` constraint,
    not by the lookup that precedes the insert: when two completions race,
    the losing insert fails and the winner's certificate is returned.
    """

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def issue_if_complete(self, record: ProgressRecord) -> Optional[Certificate]:
        if record.overall_progress_percent < 100:
            return None

        user_id, course_id = record.user_id, record.course_id
        existing = self._find_existing(user_id, course_id)
        if existing is not None:
            return existing

        max_retries = max(int(settings.CERTIFICATE_ID_MAX_RETRIES or 1), 1)
        for _ in range(max_retries):
            certificate = self._insert_certificate(user_id, course_id)
            if certificate is not None:
                logger.info(
                    "Certificate %s issued to user %s for course %s",
                    certificate.certificate_id,
                    user_id,
                    course_id,
                )
                return certificate

            existing = self._find_existing(user_id, course_id)
            if existing is not None:
                logger.info(
                    "Certificate for user %s / course %s was issued concurrently; keeping %s",
                    user_id,
                    course_id,
                    existing.certificate_id,
                )
                return existing

            logger.warning("Certificate id collision for user %s / course %s, regenerating", user_id, course_id)

        raise ConflictError("certificate_id_collision")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _find_existing(self, user_id: int, course_id: int) -> Optional[Certificate]:
        return (
            self.db.query(Certificate)
            .filter(Certificate.user_id == user_id, Certificate.course_id == course_id)
            .first()
        )

    def _insert_certificate(self, user_id: int, course_id: int) -> Optional[Certificate]:
        """Insert a certificate, or return ``None`` if a unique constraint rejects it."""
        now = datetime.now(timezone.utc)
        certificate = Certificate(
            certificate_id=generate_certificate_id(),
            user_id=user_id,
            course_id=course_id,
            issue_date=now,
            completion_date=now,
        )
        self.db.add(certificate)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return None
        self.db.refresh(certificate)
        return certificate


def list_for_user(db: Session, user_id: int) -> List[Certificate]:
    return (
        db.query(Certificate)
        .filter(Certificate.user_id == user_id)
        .order_by(Certificate.issue_date.desc(), Certificate.id.desc())
        .all()
    )


def get_for_viewer(db: Session, certificate_pk: int, viewer: User) -> Certificate:
    """Return a certificate to its owner or to an admin."""
    certificate = db.get(Certificate, certificate_pk)
    if certificate is None:
        raise NotFoundError("certificate_not_found")
    if certificate.user_id != viewer.id and viewer.role != UserRole.ADMIN:
        raise ForbiddenError("certificate_access_denied")
    return certificate


def verify(db: Session, certificate_id: str) -> Certificate:
    certificate = (
        db.query(Certificate)
        .filter(Certificate.certificate_id == certificate_id.strip().upper())
        .first()
    )
    if certificate is None:
        raise NotFoundError("invalid_certificate_id")
    return certificate
