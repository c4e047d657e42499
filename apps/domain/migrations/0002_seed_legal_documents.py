import hashlib
from django.db import migrations
from apps.domain.default_documents import DEFAULT_LEGAL_DOCUMENTS, DEFAULT_DOCUMENT_VERSION


def seed_legal_documents(apps, schema_editor):
    # Historical models skip LegalDocument.save, so the hash is set here
    LegalDocument = apps.get_model('domain', 'LegalDocument')
    for position, document in enumerate(DEFAULT_LEGAL_DOCUMENTS, start=1):
        LegalDocument.objects.get_or_create(
            code=document['code'],
            version=DEFAULT_DOCUMENT_VERSION,
            defaults={
                'title': document['title'],
                'content': document['content'],
                'is_required': True,
                'status': 'active',
                'position': position,
                'content_hash': hashlib.sha256(document['content'].encode('utf-8')).hexdigest(),
            }
        )


def reverse_seed_legal_documents(apps, schema_editor):
    LegalDocument = apps.get_model('domain', 'LegalDocument')
    LegalDocument.objects.filter(
        code__in=[document['code'] for document in DEFAULT_LEGAL_DOCUMENTS],
        version=DEFAULT_DOCUMENT_VERSION,
        signatures__isnull=True,
    ).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('domain', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(seed_legal_documents, reverse_seed_legal_documents),
    ]
