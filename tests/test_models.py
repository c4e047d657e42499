import hashlib
import pytest
from django.db import IntegrityError, transaction
from apps.domain.exceptions import DocumentContentLocked, LedgerImmutable
from apps.domain.models import AuditEvent, LegalDocument, Signature


@pytest.mark.django_db
class TestLegalDocument:
    def test_seeded_required_documents(self, required_documents):
        assert [document.code for document in required_documents] == ['terms', 'privacy', 'nda', 'contributor']
        assert all(document.version == '1.0' for document in required_documents)

    def test_content_hash_is_sha256_of_content(self, legal_document):
        expected = hashlib.sha256(legal_document.content.encode('utf-8')).hexdigest()
        assert legal_document.content_hash == expected

    def test_unsigned_content_can_be_edited(self, legal_document):
        legal_document.content = 'Updated text'
        legal_document.save()

        legal_document.refresh_from_db()
        assert legal_document.content_hash == hashlib.sha256(b'Updated text').hexdigest()

    def test_signed_content_is_locked(self, legal_document, user):
        Signature.objects.create(document=legal_document, user=user, signature_data={})

        legal_document.content = 'Quietly changed terms'
        with pytest.raises(DocumentContentLocked):
            legal_document.save()

    def test_signed_document_metadata_can_change(self, legal_document, user):
        Signature.objects.create(document=legal_document, user=user, signature_data={})

        legal_document.status = 'archived'
        legal_document.save()

        legal_document.refresh_from_db()
        assert legal_document.status == 'archived'

    def test_code_and_version_are_unique(self, legal_document):
        with pytest.raises(IntegrityError):
            LegalDocument.objects.create(code='cookie-policy', title='Copy', content='x', version='1.0')

    def test_required_excludes_archived_and_optional(self, legal_document):
        LegalDocument.objects.create(code='newsletter', title='Newsletter', content='x', is_required=False)
        legal_document.status = 'archived'
        legal_document.save()

        codes = set(LegalDocument.objects.required().values_list('code', flat=True))
        assert 'newsletter' not in codes
        assert 'cookie-policy' not in codes


@pytest.mark.django_db
class TestSignature:
    def test_create_signature_snapshots_document(self, legal_document, user):
        signature = Signature.objects.create(
            document=legal_document,
            user=user,
            signature_data={'name': 'Test User', 'email': 'test@example.com'},
            ip_address='10.0.0.1'
        )

        assert signature.document_version == '1.0'
        assert signature.document_content_hash == legal_document.content_hash
        assert len(signature.signature_hash) == 64
        assert signature.verify() is True
        assert signature.matches_document() is True

    def test_hash_survives_reload(self, legal_document, user):
        signature = Signature.objects.create(document=legal_document, user=user, signature_data={'b': 2, 'a': 1})

        reloaded = Signature.objects.get(pk=signature.pk)
        assert reloaded.verify() is True

    def test_one_signature_per_user_and_document(self, legal_document, user):
        Signature.objects.create(document=legal_document, user=user, signature_data={})

        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Signature.objects.create(document=legal_document, user=user, signature_data={})

        assert Signature.objects.filter(document=legal_document, user=user).count() == 1

    def test_same_document_for_different_users(self, legal_document, user, other_user):
        Signature.objects.create(document=legal_document, user=user, signature_data={})
        Signature.objects.create(document=legal_document, user=other_user, signature_data={})

        assert legal_document.signatures.count() == 2

    def test_signature_cannot_be_updated(self, legal_document, user):
        signature = Signature.objects.create(document=legal_document, user=user, signature_data={})

        signature.ip_address = '192.168.0.1'
        with pytest.raises(LedgerImmutable):
            signature.save()

    def test_signature_cannot_be_deleted(self, legal_document, user):
        signature = Signature.objects.create(document=legal_document, user=user, signature_data={})

        with pytest.raises(LedgerImmutable):
            signature.delete()
        assert Signature.objects.filter(pk=signature.pk).exists()

    def test_tampered_signature_fails_verification(self, legal_document, user):
        signature = Signature.objects.create(document=legal_document, user=user, signature_data={'name': 'Test User'})

        Signature.objects.filter(pk=signature.pk).update(signature_data={'name': 'Someone Else'})
        signature.refresh_from_db()

        assert signature.verify() is False


@pytest.mark.django_db
class TestAuditEvent:
    def test_category_and_severity_follow_action(self, user):
        event = AuditEvent.objects.create(user=user, action=AuditEvent.DOCUMENT_SIGNED, details={'signatureId': 1})

        assert event.category == 'sign'
        assert event.severity == 'high'
        assert event.verify() is True

    def test_long_form_ipv6_hash_survives_reload(self, user):
        event = AuditEvent.objects.create(
            user=user,
            action=AuditEvent.DOCUMENT_SIGNED,
            ip_address='2001:0DB8:0000:0000:0000:0000:0000:0001'
        )

        reloaded = AuditEvent.objects.get(pk=event.pk)
        assert reloaded.ip_address == '2001:db8::1'
        assert reloaded.verify() is True

    def test_reminder_is_low_severity(self, user):
        event = AuditEvent.objects.create(user=user, action=AuditEvent.REMINDER_SENT)

        assert event.category == 'notify'
        assert event.severity == 'low'

    def test_audit_event_is_append_only(self, user):
        event = AuditEvent.objects.create(user=user, action=AuditEvent.DOCUMENTS_COMPLETED)

        event.details = {'forged': True}
        with pytest.raises(LedgerImmutable):
            event.save()
        with pytest.raises(LedgerImmutable):
            event.delete()

    def test_queryset_filters(self, user, other_user, legal_document):
        AuditEvent.objects.create(user=user, action=AuditEvent.DOCUMENT_SIGNED, document=legal_document)
        AuditEvent.objects.create(user=user, action=AuditEvent.REMINDER_SENT)
        AuditEvent.objects.create(user=other_user, action=AuditEvent.DOCUMENT_SIGNED, document=legal_document)

        assert AuditEvent.objects.for_user(user).count() == 2
        assert AuditEvent.objects.for_user(user).with_action(AuditEvent.REMINDER_SENT).count() == 1
        assert AuditEvent.objects.for_document(legal_document).count() == 2
