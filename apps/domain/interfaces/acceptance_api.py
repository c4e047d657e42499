from abc import ABC, abstractmethod
from typing import Dict, List


class AcceptanceApi(ABC):
    """Server contract the acceptance engine talks to."""

    @abstractmethod
    def register_user(self, form_data: Dict) -> Dict:
        """Create the account from registration form data; returns ``{'id', 'token'}``."""

    @abstractmethod
    def fetch_required(self) -> List[Dict]:
        """Required documents in server order, each with ``isSigned``/``signedAt``."""

    @abstractmethod
    def sign(self, document_id, signature_data: Dict) -> Dict:
        pass

    @abstractmethod
    def record_completion(self) -> Dict:
        pass
