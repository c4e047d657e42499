from django.db import models
from django.contrib.auth.models import User
from django.utils import timezone
from apps.domain.exceptions import LedgerImmutable
from apps.domain.hashing import canonical_json, sha256_hex
from .legal_document import LegalDocument


class AuditEventQuerySet(models.QuerySet):
    def for_user(self, user):
        return self.filter(user=user)

    def for_document(self, document):
        return self.filter(document=document)

    def with_action(self, action: str):
        return self.filter(action=action)


class AuditEvent(models.Model):
    DOCUMENT_SIGNED = 'document_signed'
    REMINDER_SENT = 'reminder_sent'
    DOCUMENTS_COMPLETED = 'documents_completed'

    ACTION_CHOICES = [
        (DOCUMENT_SIGNED, 'Document signed'),
        (REMINDER_SENT, 'Reminder sent'),
        (DOCUMENTS_COMPLETED, 'All documents accepted'),
    ]
    CATEGORY_CHOICES = [
        ('sign', 'Sign'),
        ('notify', 'Notify'),
        ('complete', 'Complete'),
    ]
    SEVERITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
    ]

    ACTION_CATEGORIES = {
        DOCUMENT_SIGNED: 'sign',
        REMINDER_SENT: 'notify',
        DOCUMENTS_COMPLETED: 'complete',
    }
    ACTION_SEVERITIES = {
        DOCUMENT_SIGNED: 'high',
        REMINDER_SENT: 'low',
        DOCUMENTS_COMPLETED: 'medium',
    }

    user = models.ForeignKey(User, on_delete=models.PROTECT, related_name='legal_audit_events')
    actor = models.ForeignKey(User, on_delete=models.PROTECT, related_name='+', null=True, blank=True)
    document = models.ForeignKey(LegalDocument, on_delete=models.PROTECT, related_name='audit_events', null=True, blank=True)
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, blank=True)
    severity = models.CharField(max_length=20, choices=SEVERITY_CHOICES, blank=True)
    details = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(blank=True, null=True)
    user_agent = models.CharField(max_length=500, blank=True, default='')
    audit_hash = models.CharField(max_length=64, editable=False)
    created_at = models.DateTimeField(default=timezone.now)

    objects = AuditEventQuerySet.as_manager()

    class Meta:
        db_table = 'legal_audit_events'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['user', 'action'], name='legal_audit_user_action_idx'),
        ]

    def __str__(self):
        return f"{self.action} for user {self.user_id} at {self.created_at:%Y-%m-%d %H:%M}"

    def compute_hash(self) -> str:
        return sha256_hex(canonical_json({
            'user': self.user_id,
            'actor': self.actor_id,
            'document': self.document_id,
            'action': self.action,
            'category': self.category,
            'severity': self.severity,
            'details': self.details,
            'ip_address': self.ip_address,
            'user_agent': self.user_agent,
            'created_at': self.created_at.isoformat(),
        }))

    def verify(self) -> bool:
        return self.compute_hash() == self.audit_hash

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise LedgerImmutable()
        # Stored in the form the column writes, so the hash survives a reload
        self.ip_address = self._meta.get_field('ip_address').get_prep_value(self.ip_address) or None
        if not self.category:
            self.category = self.ACTION_CATEGORIES.get(self.action, 'sign')
        if not self.severity:
            self.severity = self.ACTION_SEVERITIES.get(self.action, 'low')
        self.audit_hash = self.compute_hash()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise LedgerImmutable()
