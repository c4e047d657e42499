from abc import ABC, abstractmethod
from typing import List


class AcceptanceView(ABC):
    """Rendering surface driven by the acceptance engine."""

    @abstractmethod
    def show_document(self, document, index: int, total: int, html: str) -> None:
        pass

    @abstractmethod
    def show_reading_progress(self, percentage: int) -> None:
        pass

    @abstractmethod
    def set_accept_enabled(self, enabled: bool) -> None:
        pass

    @abstractmethod
    def set_accept_busy(self, busy: bool) -> None:
        pass

    @abstractmethod
    def set_navigation(self, can_go_back: bool, can_go_forward: bool) -> None:
        pass

    @abstractmethod
    def show_progress(self, signed: int, total: int, percentage: int, items: List[dict]) -> None:
        pass

    @abstractmethod
    def notify(self, message: str, level: str = 'info') -> None:
        pass

    @abstractmethod
    def show_completion(self, documents: List) -> None:
        pass
