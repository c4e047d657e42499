from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Set, Tuple


@dataclass(frozen=True)
class RequiredDocument:
    id: object
    title: str
    content: str
    code: str = ''
    version: str = ''
    is_signed: bool = False
    signed_at: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict) -> 'RequiredDocument':
        return cls(
            id=data['id'],
            title=data.get('title', ''),
            content=data.get('content') or '',
            code=data.get('code', ''),
            version=data.get('version', ''),
            is_signed=bool(data.get('isSigned')),
            signed_at=data.get('signedAt'),
        )

    @classmethod
    def from_default(cls, data: Dict) -> 'RequiredDocument':
        return cls(id=data['code'], title=data['title'], content=data['content'], code=data['code'])


@dataclass(frozen=True)
class AcceptanceResult:
    signed_ids: FrozenSet
    simulated_ids: FrozenSet
    degraded: bool


@dataclass
class AcceptanceSession:
    documents: Tuple[RequiredDocument, ...]
    degraded: bool = False
    current_index: int = 0
    signed_ids: Set = field(default_factory=set)
    simulated_ids: Set = field(default_factory=set)

    @classmethod
    def start(cls, documents: List[RequiredDocument], degraded: bool = False) -> 'AcceptanceSession':
        session = cls(documents=tuple(documents), degraded=degraded)
        session.signed_ids = {document.id for document in documents if document.is_signed}
        session.current_index = session.first_unsigned_index()
        return session

    @property
    def total(self) -> int:
        return len(self.documents)

    @property
    def current(self) -> Optional[RequiredDocument]:
        if 0 <= self.current_index < self.total:
            return self.documents[self.current_index]
        return None

    def first_unsigned_index(self) -> int:
        for index, document in enumerate(self.documents):
            if document.id not in self.signed_ids:
                return index
        return max(self.total - 1, 0)

    def is_signed(self, index: int) -> bool:
        return self.documents[index].id in self.signed_ids

    def mark_signed(self, index: int, simulated: bool = False) -> None:
        document_id = self.documents[index].id
        self.signed_ids.add(document_id)
        if simulated:
            self.simulated_ids.add(document_id)

    def can_go_back(self) -> bool:
        return self.current_index > 0

    def can_go_forward(self) -> bool:
        return self.current_index < self.total - 1 and self.is_signed(self.current_index)

    def is_complete(self) -> bool:
        return self.signed_ids >= {document.id for document in self.documents}

    def result(self) -> AcceptanceResult:
        return AcceptanceResult(
            signed_ids=frozenset(self.signed_ids),
            simulated_ids=frozenset(self.simulated_ids),
            degraded=self.degraded,
        )
