import logging
from typing import List, Optional
from django.db import transaction
from apps.domain.exceptions import DocumentNotFound
from apps.domain.models import LegalDocument

logger = logging.getLogger('apps')


class LegalDocumentService:
    def list_required(self) -> List[LegalDocument]:
        return list(LegalDocument.objects.required())

    def get(self, document_id) -> LegalDocument:
        """Any version of a document, archived ones included."""
        try:
            return LegalDocument.objects.get(pk=int(document_id))
        except (TypeError, ValueError, LegalDocument.DoesNotExist):
            raise DocumentNotFound(document_id)

    def get_required(self, document_id) -> LegalDocument:
        try:
            return LegalDocument.objects.required().get(pk=int(document_id))
        except (TypeError, ValueError, LegalDocument.DoesNotExist):
            raise DocumentNotFound(document_id)

    def publish_revision(
        self,
        code: str,
        content: str,
        version: str,
        title: Optional[str] = None,
    ) -> LegalDocument:
        """Archive the active version of ``code`` and make a new version active.

        Existing signatures keep pointing at the archived row, so what a user
        agreed to never changes. Users have to accept the new version.
        """
        with transaction.atomic():
            current = (
                LegalDocument.objects.select_for_update()
                .filter(code=code, status='active')
                .first()
            )
            if current is None:
                raise DocumentNotFound(code)
            if LegalDocument.objects.filter(code=code, version=version).exists():
                raise ValueError(f'Version {version} of {code} already exists')

            current.status = 'archived'
            current.save(update_fields=['status', 'updated_at'])

            revision = LegalDocument.objects.create(
                code=code,
                title=title or current.title,
                content=content,
                version=version,
                is_required=current.is_required,
                position=current.position,
                status='active',
            )

        logger.info(f'Legal document {code} revised from v{current.version} to v{version} (id {revision.id})')
        return revision
