import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from django.conf import settings
from django.contrib.auth.models import User
from django.core.mail import send_mail
from django.db import IntegrityError, transaction
from apps.domain.exceptions import (
    AcceptanceIncomplete,
    AlreadySigned,
    NothingToRemind,
    OutOfOrderSignature,
    SignatureNotFound,
)
from apps.domain.models import AuditEvent, LegalDocument, Signature
from apps.application.services.audit_trail_service import AuditTrailService
from apps.application.services.legal_document_service import LegalDocumentService

logger = logging.getLogger('apps')


@dataclass(frozen=True)
class RequiredDocumentStatus:
    document: LegalDocument
    is_signed: bool
    signed_at: Optional[datetime] = None
    signature_id: Optional[int] = None


@dataclass(frozen=True)
class AcceptanceStatus:
    total_documents: int
    signed_documents: int
    completion_percentage: int
    is_complete: bool


def completion_percentage(signed: int, total: int) -> int:
    """``signed / total * 100`` rounded half up; an empty required set counts as done."""
    if total == 0:
        return 100
    return (200 * signed + total) // (2 * total)


class LegalAcceptanceService:
    def __init__(
        self,
        document_service: Optional[LegalDocumentService] = None,
        audit_service: Optional[AuditTrailService] = None,
        enforce_order: Optional[bool] = None,
    ):
        self.document_service = document_service or LegalDocumentService()
        self.audit_service = audit_service or AuditTrailService()
        if enforce_order is None:
            enforce_order = getattr(settings, 'LEGAL_ENFORCE_SIGN_ORDER', False)
        self.enforce_order = enforce_order

    def get_required(self, user: User) -> List[RequiredDocumentStatus]:
        documents = self.document_service.list_required()
        signatures = {
            signature.document_id: signature
            for signature in Signature.objects.filter(user=user, document__in=documents)
        }
        result = []
        for document in documents:
            signature = signatures.get(document.id)
            result.append(RequiredDocumentStatus(
                document=document,
                is_signed=signature is not None,
                signed_at=signature.signed_at if signature else None,
                signature_id=signature.id if signature else None,
            ))
        return result

    def status(self, user: User) -> AcceptanceStatus:
        required = self.get_required(user)
        required_ids = {item.document.id for item in required}
        signed_ids = {item.document.id for item in required if item.is_signed}
        return AcceptanceStatus(
            total_documents=len(required_ids),
            signed_documents=len(signed_ids),
            completion_percentage=completion_percentage(len(signed_ids), len(required_ids)),
            is_complete=signed_ids >= required_ids,
        )

    def sign(
        self,
        user: User,
        document_id,
        signature_data: Optional[Dict] = None,
        ip_address: Optional[str] = None,
        user_agent: str = '',
    ) -> Signature:
        document = self.document_service.get_required(document_id)

        if self._find_existing(user, document) is not None:
            logger.info(f'User {user.id} tried to sign document {document.id} again')
            raise AlreadySigned(document.id)

        if self.enforce_order:
            self._check_order(user, document)

        try:
            # Signature and its audit event are written together or not at all
            with transaction.atomic():
                signature = Signature.objects.create(
                    document=document,
                    user=user,
                    signature_data=signature_data or {},
                    document_version=document.version,
                    document_content_hash=document.content_hash,
                    ip_address=ip_address,
                    user_agent=(user_agent or '')[:500],
                )
                self.audit_service.record_signature(signature)
        except IntegrityError:
            if self._find_existing(user, document) is not None:
                logger.info(f'Concurrent signature for document {document.id} by user {user.id} rejected')
                raise AlreadySigned(document.id)
            raise

        logger.info(f'User {user.id} signed legal document {document.id} v{document.version} (signature {signature.id})')
        return signature

    def record_completion(
        self,
        user: User,
        ip_address: Optional[str] = None,
        user_agent: str = '',
    ) -> Tuple[AuditEvent, bool]:
        required = self.get_required(user)
        if not all(item.is_signed for item in required):
            raise AcceptanceIncomplete()

        document_ids = sorted(item.document.id for item in required)
        completions = AuditEvent.objects.for_user(user).with_action(AuditEvent.DOCUMENTS_COMPLETED)
        for event in completions:
            if sorted(event.details.get('documentIds', [])) == document_ids:
                return event, False

        event = self.audit_service.record(
            user=user,
            action=AuditEvent.DOCUMENTS_COMPLETED,
            details={
                'documentIds': document_ids,
                'signatureIds': [item.signature_id for item in required],
            },
            ip_address=ip_address,
            user_agent=user_agent,
        )
        logger.info(f'User {user.id} accepted all {len(document_ids)} required legal documents')
        return event, True

    def send_reminder(
        self,
        user: User,
        actor: Optional[User] = None,
        ip_address: Optional[str] = None,
        user_agent: str = '',
    ) -> AuditEvent:
        pending = [item.document for item in self.get_required(user) if not item.is_signed]
        if not pending:
            raise NothingToRemind()

        delivered = False
        if user.email:
            titles = '\n'.join(f'- {document.title} (v{document.version})' for document in pending)
            send_mail(
                subject='Action required: accept the SmartStart legal documents',
                message=(
                    f'Hello {user.get_full_name() or user.username},\n\n'
                    f'The following documents still need your acceptance:\n{titles}\n'
                ),
                from_email=settings.DEFAULT_FROM_EMAIL,
                recipient_list=[user.email],
            )
            delivered = True
        else:
            logger.warning(f'User {user.id} has no email address, reminder recorded but not delivered')

        return self.audit_service.record(
            user=user,
            actor=actor,
            action=AuditEvent.REMINDER_SENT,
            details={
                'pendingDocumentIds': [document.id for document in pending],
                'delivered': delivered,
            },
            ip_address=ip_address,
            user_agent=user_agent,
        )

    def history(self, user: User) -> Dict:
        return {
            'signatures': list(Signature.objects.filter(user=user).select_related('document')),
            'events': list(self.audit_service.history_for_user(user)),
        }

    def get_signature(self, signature_id, user: Optional[User] = None) -> Signature:
        """Look up a signature, limited to ``user``'s own when given."""
        signatures = Signature.objects.select_related('document', 'user')
        if user is not None:
            signatures = signatures.filter(user=user)
        try:
            return signatures.get(pk=int(signature_id))
        except (TypeError, ValueError, Signature.DoesNotExist):
            raise SignatureNotFound(signature_id)

    def _find_existing(self, user: User, document: LegalDocument) -> Optional[Signature]:
        return Signature.objects.filter(user=user, document=document).first()

    def _check_order(self, user: User, document: LegalDocument) -> None:
        for item in self.get_required(user):
            if item.document.id == document.id:
                return
            if not item.is_signed:
                raise OutOfOrderSignature(document.id, item.document.id)
