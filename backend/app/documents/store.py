"""In-memory document blobs, addressed by opaque handles (the server-side blob URL)."""

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class StoredDocument:
    handle: str
    content: bytes
    media_type: str = "application/pdf"


class DocumentStore:
    def __init__(self):
        self._documents: dict[str, StoredDocument] = {}

    def put(self, content: bytes, media_type: str = "application/pdf") -> str:
        handle = f"blob:{uuid.uuid4()}"
        self._documents[handle] = StoredDocument(handle=handle, content=content, media_type=media_type)
        return handle

    def get(self, handle: str) -> StoredDocument:
        try:
            return self._documents[handle]
        except KeyError:
            raise KeyError(f"Document {handle} not found") from None

    def fetch(self, handle: str) -> bytes:
        return self.get(handle).content

    def __contains__(self, handle: object) -> bool:
        return handle in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    def clear(self) -> None:
        self._documents.clear()
