import pytest
from unittest.mock import Mock, patch
from django.core import mail
from django.db import IntegrityError
from apps.domain.exceptions import (
    AcceptanceIncomplete,
    AlreadySigned,
    DocumentNotFound,
    NothingToRemind,
    OutOfOrderSignature,
    SignatureNotFound,
)
from apps.domain.models import AuditEvent, LegalDocument, Signature
from apps.application.services.audit_trail_service import AuditTrailService
from apps.application.services.legal_acceptance_service import LegalAcceptanceService, completion_percentage
from apps.application.services.legal_document_service import LegalDocumentService


def sign_all(service, user, documents):
    for document in documents:
        service.sign(user, document.id, {'name': 'Test User'})


class TestCompletionPercentage:
    def test_rounds_half_up(self):
        assert completion_percentage(1, 4) == 25
        assert completion_percentage(1, 3) == 33
        assert completion_percentage(2, 3) == 67
        assert completion_percentage(1, 8) == 13

    def test_bounds(self):
        assert completion_percentage(0, 4) == 0
        assert completion_percentage(4, 4) == 100
        assert completion_percentage(0, 0) == 100


@pytest.mark.django_db
class TestLegalDocumentService:
    def test_get_required_unknown_id(self):
        service = LegalDocumentService()

        with pytest.raises(DocumentNotFound):
            service.get_required(999999)
        with pytest.raises(DocumentNotFound):
            service.get_required('not-a-number')

    def test_get_required_rejects_archived(self, legal_document):
        legal_document.status = 'archived'
        legal_document.save()

        with pytest.raises(DocumentNotFound):
            LegalDocumentService().get_required(legal_document.id)

    def test_get_includes_archived(self, legal_document):
        legal_document.status = 'archived'
        legal_document.save()

        assert LegalDocumentService().get(legal_document.id) == legal_document
        with pytest.raises(DocumentNotFound):
            LegalDocumentService().get(999999)

    def test_publish_revision(self, legal_document, user):
        Signature.objects.create(document=legal_document, user=user, signature_data={})

        revision = LegalDocumentService().publish_revision('cookie-policy', 'New cookie text', '2.0')

        legal_document.refresh_from_db()
        assert legal_document.status == 'archived'
        assert revision.status == 'active'
        assert revision.version == '2.0'
        assert revision.position == legal_document.position
        assert revision.title == legal_document.title
        assert revision.content_hash != legal_document.content_hash
        # The archived row still holds what was signed
        assert legal_document.signatures.get().matches_document() is True

    def test_publish_revision_requires_new_version(self, legal_document):
        with pytest.raises(ValueError):
            LegalDocumentService().publish_revision('cookie-policy', 'Other text', '1.0')

    def test_publish_revision_unknown_code(self):
        with pytest.raises(DocumentNotFound):
            LegalDocumentService().publish_revision('missing', 'text', '1.0')


@pytest.mark.django_db
class TestLegalAcceptanceService:
    def test_get_required_for_new_user(self, user, required_documents):
        service = LegalAcceptanceService()

        required = service.get_required(user)

        assert [item.document.id for item in required] == [document.id for document in required_documents]
        assert not any(item.is_signed for item in required)

    def test_get_required_reflects_signed_state(self, user, required_documents):
        service = LegalAcceptanceService()
        service.sign(user, required_documents[0].id, {'name': 'Test User'})

        required = service.get_required(user)

        assert required[0].is_signed is True
        assert required[0].signed_at is not None
        assert [item.is_signed for item in required[1:]] == [False, False, False]

    def test_sign_creates_signature_and_audit_event(self, user, required_documents):
        service = LegalAcceptanceService()
        document = required_documents[0]

        signature = service.sign(
            user,
            document.id,
            {'name': 'Test User', 'email': 'test@example.com'},
            ip_address='203.0.113.7',
            user_agent='pytest'
        )

        assert signature.document == document
        assert signature.ip_address == '203.0.113.7'
        assert signature.verify() is True
        event = AuditEvent.objects.get(user=user, action=AuditEvent.DOCUMENT_SIGNED)
        assert event.document == document
        assert event.details['signatureId'] == signature.id
        assert event.details['signatureHash'] == signature.signature_hash
        assert event.severity == 'high'

    def test_sign_twice_raises_already_signed(self, user, required_documents):
        service = LegalAcceptanceService()
        document = required_documents[1]
        service.sign(user, document.id)

        with pytest.raises(AlreadySigned):
            service.sign(user, document.id)

        assert Signature.objects.filter(user=user, document=document).count() == 1
        assert AuditEvent.objects.filter(user=user, action=AuditEvent.DOCUMENT_SIGNED).count() == 1

    def test_sign_unknown_document(self, user):
        with pytest.raises(DocumentNotFound):
            LegalAcceptanceService().sign(user, 424242)
        assert Signature.objects.count() == 0

    def test_sign_is_atomic_with_audit_event(self, user, required_documents):
        audit_service = Mock(spec=AuditTrailService)
        audit_service.record_signature.side_effect = RuntimeError('audit store down')
        service = LegalAcceptanceService(audit_service=audit_service)

        with pytest.raises(RuntimeError):
            service.sign(user, required_documents[0].id)

        assert Signature.objects.filter(user=user).count() == 0

    def test_concurrent_sign_maps_to_already_signed(self, user, required_documents):
        service = LegalAcceptanceService()
        document = required_documents[0]
        service.sign(user, document.id)

        # Simulate losing the race: the pre-check sees nothing, the constraint fires
        original = service._find_existing
        calls = []

        def find_existing(u, d):
            calls.append(d.id)
            return None if len(calls) == 1 else original(u, d)

        with patch.object(service, '_find_existing', side_effect=find_existing):
            with pytest.raises(AlreadySigned):
                service.sign(user, document.id)

        assert Signature.objects.filter(user=user, document=document).count() == 1

    def test_integrity_error_without_existing_row_propagates(self, user, required_documents):
        service = LegalAcceptanceService()

        with patch('apps.application.services.legal_acceptance_service.Signature.objects.create', side_effect=IntegrityError('boom')):
            with pytest.raises(IntegrityError):
                service.sign(user, required_documents[0].id)

    def test_order_not_enforced_by_default(self, user, required_documents):
        service = LegalAcceptanceService(enforce_order=False)

        signature = service.sign(user, required_documents[3].id)

        assert signature.document == required_documents[3]

    def test_enforced_order_rejects_skipping(self, user, required_documents):
        service = LegalAcceptanceService(enforce_order=True)

        with pytest.raises(OutOfOrderSignature) as exc_info:
            service.sign(user, required_documents[2].id)

        assert exc_info.value.pending_document_id == required_documents[0].id
        service.sign(user, required_documents[0].id)
        service.sign(user, required_documents[1].id)
        service.sign(user, required_documents[2].id)

    def test_status_counts(self, user, required_documents):
        service = LegalAcceptanceService()
        service.sign(user, required_documents[0].id)

        status = service.status(user)

        assert status.total_documents == 4
        assert status.signed_documents == 1
        assert status.completion_percentage == 25
        assert status.is_complete is False

    def test_status_complete(self, user, required_documents):
        service = LegalAcceptanceService()
        sign_all(service, user, required_documents)

        status = service.status(user)

        assert status.signed_documents == 4
        assert status.completion_percentage == 100
        assert status.is_complete is True

    def test_new_version_reopens_acceptance(self, user, required_documents):
        service = LegalAcceptanceService()
        sign_all(service, user, required_documents)

        LegalDocumentService().publish_revision('privacy', 'Revised privacy policy', '1.1')
        status = service.status(user)

        assert status.total_documents == 4
        assert status.signed_documents == 3
        assert status.is_complete is False

    def test_record_completion_requires_all_signed(self, user, required_documents):
        service = LegalAcceptanceService()
        service.sign(user, required_documents[0].id)

        with pytest.raises(AcceptanceIncomplete):
            service.record_completion(user)

    def test_record_completion_is_idempotent(self, user, required_documents):
        service = LegalAcceptanceService()
        sign_all(service, user, required_documents)

        event, created = service.record_completion(user, ip_address='127.0.0.1')
        again, created_again = service.record_completion(user)

        assert created is True
        assert created_again is False
        assert again.id == event.id
        assert event.details['documentIds'] == sorted(document.id for document in required_documents)
        assert AuditEvent.objects.with_action(AuditEvent.DOCUMENTS_COMPLETED).count() == 1

    def test_send_reminder_emails_pending_documents(self, user, admin_user, required_documents):
        service = LegalAcceptanceService()
        service.sign(user, required_documents[0].id)

        event = service.send_reminder(user, actor=admin_user)

        assert event.action == AuditEvent.REMINDER_SENT
        assert event.actor == admin_user
        assert event.details['pendingDocumentIds'] == [document.id for document in required_documents[1:]]
        assert event.details['delivered'] is True
        assert len(mail.outbox) == 1
        assert mail.outbox[0].to == ['test@example.com']
        assert required_documents[1].title in mail.outbox[0].body

    def test_send_reminder_without_email(self, user, required_documents):
        user.email = ''
        user.save()

        event = LegalAcceptanceService().send_reminder(user)

        assert event.details['delivered'] is False
        assert len(mail.outbox) == 0

    def test_send_reminder_nothing_pending(self, user, required_documents):
        service = LegalAcceptanceService()
        sign_all(service, user, required_documents)

        with pytest.raises(NothingToRemind):
            service.send_reminder(user)

    def test_history(self, user, other_user, required_documents):
        service = LegalAcceptanceService()
        service.sign(user, required_documents[0].id)
        service.sign(other_user, required_documents[0].id)

        history = service.history(user)

        assert len(history['signatures']) == 1
        assert [event.action for event in history['events']] == [AuditEvent.DOCUMENT_SIGNED]

    def test_get_signature_limited_to_owner(self, user, other_user, required_documents):
        service = LegalAcceptanceService()
        signature = service.sign(user, required_documents[0].id)

        assert service.get_signature(signature.id) == signature
        assert service.get_signature(signature.id, user=user) == signature
        with pytest.raises(SignatureNotFound):
            service.get_signature(signature.id, user=other_user)
        with pytest.raises(SignatureNotFound):
            service.get_signature('not-a-number')


@pytest.mark.django_db
class TestAuditTrailService:
    def test_find_tampered(self, user):
        service = AuditTrailService()
        event = service.record(user, AuditEvent.REMINDER_SENT, details={'delivered': True})
        clean = service.record(user, AuditEvent.REMINDER_SENT, details={'delivered': False})

        AuditEvent.objects.filter(pk=event.pk).update(details={'delivered': False, 'edited': True})

        assert service.find_tampered() == [event.id]
        assert clean.verify() is True

    def test_actor_defaults_to_user(self, user):
        event = AuditTrailService().record(user, AuditEvent.DOCUMENTS_COMPLETED)

        assert event.actor == user

    def test_statistics(self, user, required_documents):
        service = LegalAcceptanceService()
        service.sign(user, required_documents[0].id)
        service.send_reminder(user)

        stats = AuditTrailService().statistics()

        assert stats['total'] == 2
        assert stats['by_action'] == {AuditEvent.DOCUMENT_SIGNED: 1, AuditEvent.REMINDER_SENT: 1}
        assert stats['by_severity'] == {'high': 1, 'low': 1}

    def test_find_tampered_signatures(self, user, other_user, required_documents):
        service = LegalAcceptanceService()
        altered = service.sign(user, required_documents[0].id)
        intact = service.sign(other_user, required_documents[0].id)

        Signature.objects.filter(pk=altered.pk).update(signature_data={'name': 'Someone Else'})

        assert AuditTrailService().find_tampered_signatures() == [altered.id]
        assert intact.verify() is True

    def test_history_for_document(self, user, required_documents, legal_document):
        service = LegalAcceptanceService()
        service.sign(user, required_documents[0].id)
        service.sign(user, required_documents[1].id)

        events = AuditTrailService().history_for_document(required_documents[0])

        assert [event.document_id for event in events] == [required_documents[0].id]
        assert not AuditTrailService().history_for_document(legal_document).exists()
