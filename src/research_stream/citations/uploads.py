"""Metadata of files uploaded alongside a question.

The registry belongs to the file-ingestion side; the citation core only
reads it.
"""

import time
from dataclasses import dataclass, field
from typing import Iterator


@dataclass(frozen=True)
class UploadedFileDescriptor:
    """A locally available file that document citations may point at."""

    handle: str
    display_name: str
    mime_kind: str = ""
    text: str = field(default="", repr=False)  # extracted text, if any

    @property
    def is_pdf(self) -> bool:
        return "pdf" in self.mime_kind.lower() or self.display_name.lower().endswith(".pdf")

    @staticmethod
    def new_handle(display_name: str) -> str:
        """Handle in the ``uploaded-<millis>-<name>`` form."""
        return f"uploaded-{int(time.time() * 1000)}-{display_name}"


class UploadedFileRegistry:
    """Uploaded-file descriptors in registration order, keyed by handle."""

    def __init__(self):
        self._files: dict[str, UploadedFileDescriptor] = {}

    def register(self, descriptor: UploadedFileDescriptor) -> None:
        self._files[descriptor.handle] = descriptor

    def add(self, display_name: str, mime_kind: str = "", text: str = "") -> UploadedFileDescriptor:
        """Register a file under a freshly generated handle."""
        descriptor = UploadedFileDescriptor(
            handle=UploadedFileDescriptor.new_handle(display_name),
            display_name=display_name,
            mime_kind=mime_kind,
            text=text,
        )
        self.register(descriptor)
        return descriptor

    def remove(self, handle: str) -> bool:
        return self._files.pop(handle, None) is not None

    def get(self, handle: str) -> UploadedFileDescriptor | None:
        return self._files.get(handle)

    def clear(self) -> None:
        self._files.clear()

    def __iter__(self) -> Iterator[UploadedFileDescriptor]:
        # Copy so registration during iteration cannot break a resolver pass.
        return iter(list(self._files.values()))

    def __len__(self) -> int:
        return len(self._files)
