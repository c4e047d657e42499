import logging
from typing import Dict, List, Optional
from django.contrib.auth.models import User
from django.db.models import Count
from apps.domain.models import AuditEvent, LegalDocument, Signature

logger = logging.getLogger('apps')


class AuditTrailService:
    def record(
        self,
        user: User,
        action: str,
        document: Optional[LegalDocument] = None,
        actor: Optional[User] = None,
        details: Optional[Dict] = None,
        ip_address: Optional[str] = None,
        user_agent: str = '',
    ) -> AuditEvent:
        event = AuditEvent.objects.create(
            user=user,
            actor=actor or user,
            document=document,
            action=action,
            details=details or {},
            ip_address=ip_address,
            user_agent=(user_agent or '')[:500],
        )
        logger.info(f'Audit event {action} recorded for user {user.id} (event {event.id})')
        return event

    def record_signature(self, signature: Signature) -> AuditEvent:
        return self.record(
            user=signature.user,
            action=AuditEvent.DOCUMENT_SIGNED,
            document=signature.document,
            details={
                'signatureId': signature.id,
                'signatureHash': signature.signature_hash,
                'documentTitle': signature.document.title,
                'documentVersion': signature.document_version,
                'documentContentHash': signature.document_content_hash,
            },
            ip_address=signature.ip_address,
            user_agent=signature.user_agent,
        )

    def history_for_user(self, user: User):
        return AuditEvent.objects.for_user(user).select_related('document')

    def history_for_document(self, document: LegalDocument):
        return AuditEvent.objects.for_document(document).select_related('user')

    def find_tampered(self, events=None) -> List[int]:
        """Ids of events whose stored hash no longer matches their content."""
        events = AuditEvent.objects.all() if events is None else events
        return [event.id for event in events if not event.verify()]

    def find_tampered_signatures(self, signatures=None) -> List[int]:
        signatures = Signature.objects.select_related('document') if signatures is None else signatures
        return [signature.id for signature in signatures if not signature.verify()]

    def statistics(self) -> Dict:
        total = AuditEvent.objects.count()
        by_action = {
            row['action']: row['count']
            for row in AuditEvent.objects.order_by().values('action').annotate(count=Count('id'))
        }
        by_severity = {
            row['severity']: row['count']
            for row in AuditEvent.objects.order_by().values('severity').annotate(count=Count('id'))
        }
        return {
            'total': total,
            'by_action': by_action,
            'by_severity': by_severity,
        }
