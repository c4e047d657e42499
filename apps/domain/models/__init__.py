from .legal_document import LegalDocument
from .signature import Signature
from .audit_event import AuditEvent

__all__ = [
    'LegalDocument',
    'Signature',
    'AuditEvent',
]
