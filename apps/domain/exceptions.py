class LegalAcceptanceError(Exception):
    """Base class for errors raised by the legal acceptance workflow."""

    code = 'LegalAcceptanceError'

    def __init__(self, message: str = '', **context):
        super().__init__(message or self.default_message())
        self.context = context

    def default_message(self) -> str:
        return self.code


class DocumentNotFound(LegalAcceptanceError):
    code = 'DocumentNotFound'

    def __init__(self, document_id=None, message: str = ''):
        self.document_id = document_id
        super().__init__(message or f'Legal document {document_id} not found', document_id=document_id)


class AlreadySigned(LegalAcceptanceError):
    code = 'AlreadySigned'

    def __init__(self, document_id=None, message: str = ''):
        self.document_id = document_id
        super().__init__(message or f'Legal document {document_id} already signed by this user', document_id=document_id)


class OutOfOrderSignature(LegalAcceptanceError):
    code = 'OutOfOrderSignature'

    def __init__(self, document_id=None, pending_document_id=None):
        self.document_id = document_id
        self.pending_document_id = pending_document_id
        super().__init__(
            f'Legal document {pending_document_id} must be signed before {document_id}',
            document_id=document_id,
            pending_document_id=pending_document_id,
        )


class AcceptanceIncomplete(LegalAcceptanceError):
    code = 'AcceptanceIncomplete'

    def default_message(self) -> str:
        return 'Not all required legal documents have been signed'


class NothingToRemind(LegalAcceptanceError):
    code = 'NothingToRemind'

    def default_message(self) -> str:
        return 'User has already signed every required legal document'


class LedgerImmutable(LegalAcceptanceError):
    code = 'LedgerImmutable'

    def default_message(self) -> str:
        return 'Ledger entries are append-only and cannot be changed or deleted'


class DocumentContentLocked(LegalAcceptanceError):
    code = 'DocumentContentLocked'

    def default_message(self) -> str:
        return 'Signed document content cannot be edited; publish a new version instead'


# Raised on the client side of the acceptance API

class InitializationError(LegalAcceptanceError):
    code = 'InitializationError'

    def default_message(self) -> str:
        return 'Failed to load required legal documents'


class SigningNetworkError(LegalAcceptanceError):
    code = 'SigningNetworkError'

    def default_message(self) -> str:
        return 'Could not reach the signing service'


class Unauthorized(LegalAcceptanceError):
    code = 'Unauthorized'

    def default_message(self) -> str:
        return 'Authentication required'


class RegistrationError(LegalAcceptanceError):
    code = 'RegistrationError'

    def default_message(self) -> str:
        return 'Failed to create user account'


class SignatureNotFound(LegalAcceptanceError):
    code = 'SignatureNotFound'

    def __init__(self, signature_id=None, message: str = ''):
        self.signature_id = signature_id
        super().__init__(message or f'Signature {signature_id} not found', signature_id=signature_id)
