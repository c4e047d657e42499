from django.db import models
from django.contrib.auth.models import User
from django.utils import timezone
from apps.domain.exceptions import LedgerImmutable
from apps.domain.hashing import canonical_json, sha256_hex
from .legal_document import LegalDocument


class Signature(models.Model):
    document = models.ForeignKey(LegalDocument, on_delete=models.PROTECT, related_name='signatures')
    user = models.ForeignKey(User, on_delete=models.PROTECT, related_name='legal_signatures')
    signature_data = models.JSONField(default=dict, blank=True)
    signature_hash = models.CharField(max_length=64, editable=False)
    document_version = models.CharField(max_length=20)
    document_content_hash = models.CharField(max_length=64)
    ip_address = models.GenericIPAddressField(blank=True, null=True)
    user_agent = models.CharField(max_length=500, blank=True, default='')
    signed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'legal_signatures'
        ordering = ['signed_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['document', 'user'], name='unique_signature_per_document_user'),
        ]

    def __str__(self):
        return f"{self.user_id} signed {self.document_id} at {self.signed_at:%Y-%m-%d %H:%M}"

    def compute_hash(self) -> str:
        payload = ':'.join([
            str(self.document_id),
            str(self.user_id),
            canonical_json(self.signature_data),
            self.document_content_hash,
            self.signed_at.isoformat(),
        ])
        return sha256_hex(payload)

    def verify(self) -> bool:
        return self.compute_hash() == self.signature_hash

    def matches_document(self) -> bool:
        """True while the document still carries the exact content that was signed."""
        return self.document.content_hash == self.document_content_hash

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise LedgerImmutable()
        # Stored in the form the column writes, so the hash survives a reload
        self.ip_address = self._meta.get_field('ip_address').get_prep_value(self.ip_address) or None
        if not self.document_content_hash:
            self.document_content_hash = self.document.content_hash
        if not self.document_version:
            self.document_version = self.document.version
        self.signature_hash = self.compute_hash()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise LedgerImmutable()
