import time
import logging
from typing import Dict, List, Optional
import requests
from decouple import config
from apps.domain.exceptions import (
    AlreadySigned,
    DocumentNotFound,
    InitializationError,
    LegalAcceptanceError,
    OutOfOrderSignature,
    RegistrationError,
    SigningNetworkError,
    Unauthorized,
)
from apps.domain.interfaces.acceptance_api import AcceptanceApi

logger = logging.getLogger('apps')


class LegalApiClient(AcceptanceApi):
    """HTTP client for the legal acceptance endpoints.

    Maps transport failures and error bodies onto the workflow's domain errors
    so the acceptance engine never sees a ``requests`` exception.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    @classmethod
    def from_env(cls, token: Optional[str] = None, session: Optional[requests.Session] = None) -> 'LegalApiClient':
        return cls(
            base_url=config('LEGAL_API_BASE_URL', default='http://localhost:8000/api'),
            token=token,
            timeout=config('LEGAL_API_TIMEOUT', default=30, cast=float),
            session=session,
            max_retries=config('LEGAL_FETCH_RETRIES', default=3, cast=int),
        )

    @property
    def headers(self) -> Dict:
        headers = {'Content-Type': 'application/json'}
        if self.token:
            headers['Authorization'] = f'Token {self.token}'
        return headers

    def _url(self, path: str) -> str:
        return f'{self.base_url}/{path.lstrip("/")}'

    def _error_code(self, response) -> str:
        try:
            body = response.json()
        except ValueError:
            return ''
        return body.get('code', '') if isinstance(body, dict) else ''

    def _retry_operation(self, operation, **kwargs):
        for attempt in range(self.max_retries):
            try:
                return operation(**kwargs)
            except Unauthorized:
                raise
            except LegalAcceptanceError as e:
                if attempt == self.max_retries - 1:
                    raise
                logger.warning(f'Retry attempt {attempt + 1}/{self.max_retries} failed: {str(e)}')
                time.sleep(self.retry_delay * (attempt + 1))

    def register_user(self, form_data: Dict) -> Dict:
        payload = {key: value for key, value in form_data.items() if value is not None}
        try:
            response = self.session.post(
                self._url('auth/register/'), json=payload, headers=self.headers, timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f'Error registering user: {str(e)}')
            raise RegistrationError(f'Failed to create user account: {str(e)}')

        if response.status_code != 201:
            logger.error(f'Error registering user: {response.status_code} - {response.text[:500]}')
            raise RegistrationError(f'Failed to create user account: {response.status_code}')

        body = response.json()
        self.token = body.get('token') or self.token
        user = body.get('user', {})
        return {'id': user.get('id'), 'email': user.get('email'), 'token': body.get('token')}

    def fetch_required(self) -> List[Dict]:
        return self._retry_operation(self._fetch_required)

    def _fetch_required(self) -> List[Dict]:
        try:
            response = self.session.get(self._url('legal/required/'), headers=self.headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f'Error fetching required legal documents: {str(e)}')
            raise InitializationError(f'Failed to load required legal documents: {str(e)}')

        if response.status_code in (401, 403):
            raise Unauthorized()
        if response.status_code != 200:
            logger.error(f'Error fetching required legal documents: {response.status_code}')
            raise InitializationError(f'Failed to load required legal documents: {response.status_code}')

        try:
            documents = response.json()
        except ValueError:
            raise InitializationError('Required legal documents response is not valid JSON')
        if not isinstance(documents, list):
            raise InitializationError('Required legal documents response is not a list')
        return documents

    def sign(self, document_id, signature_data: Dict) -> Dict:
        payload = {'documentId': document_id, 'signatureData': signature_data}
        try:
            response = self.session.post(
                self._url('legal/sign/'), json=payload, headers=self.headers, timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f'Error signing legal document {document_id}: {str(e)}')
            raise SigningNetworkError(f'Failed to sign legal document {document_id}: {str(e)}')

        if response.status_code == 201:
            return response.json()

        code = self._error_code(response)
        if response.status_code in (401, 403):
            raise Unauthorized()
        if response.status_code == 404:
            raise DocumentNotFound(document_id)
        if response.status_code == 400 and code == AlreadySigned.code:
            raise AlreadySigned(document_id)
        if response.status_code == 400 and code == OutOfOrderSignature.code:
            raise OutOfOrderSignature(document_id)

        logger.error(f'Error signing legal document {document_id}: {response.status_code} - {code or response.text[:500]}')
        raise SigningNetworkError(f'Failed to sign legal document {document_id}: {response.status_code}')

    def record_completion(self) -> Dict:
        try:
            response = self.session.post(self._url('legal/complete/'), json={}, headers=self.headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise SigningNetworkError(f'Failed to record legal completion: {str(e)}')

        if response.status_code in (401, 403):
            raise Unauthorized()
        if response.status_code not in (200, 201):
            raise SigningNetworkError(f'Failed to record legal completion: {response.status_code}')
        return response.json()
