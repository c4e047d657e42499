from django.db import models
from apps.domain.exceptions import DocumentContentLocked
from apps.domain.hashing import sha256_hex


class LegalDocumentQuerySet(models.QuerySet):
    def required(self):
        return self.filter(is_required=True, status='active')


class LegalDocument(models.Model):
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('active', 'Active'),
        ('archived', 'Archived'),
    ]

    code = models.SlugField(max_length=50)
    title = models.CharField(max_length=255)
    content = models.TextField()
    is_required = models.BooleanField(default=True)
    version = models.CharField(max_length=20, default='1.0')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    position = models.PositiveIntegerField(default=0, help_text='Signing order; revisions keep the position of the version they replace')
    content_hash = models.CharField(max_length=64, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = LegalDocumentQuerySet.as_manager()

    class Meta:
        db_table = 'legal_documents'
        ordering = ['position', 'created_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['code', 'version'], name='unique_legal_document_version'),
        ]

    def __str__(self):
        return f"{self.title} v{self.version} ({self.status})"

    def save(self, *args, **kwargs):
        new_hash = sha256_hex(self.content)
        # What a user signed must stay what they signed
        if self.pk and self.content_hash and new_hash != self.content_hash and self.signatures.exists():
            raise DocumentContentLocked()
        self.content_hash = new_hash
        super().save(*args, **kwargs)
