from collections.abc import Collection, Iterable
from dataclasses import dataclass, field

from app.extraction.models import SUPPORTED_EXTENSIONS, UploadedFile


@dataclass
class QueueAddOutcome:
    """What happened to a batch of files offered to a queue."""

    added: list[UploadedFile] = field(default_factory=list)
    duplicates: list[UploadedFile] = field(default_factory=list)
    unsupported: list[UploadedFile] = field(default_factory=list)


class UploadQueue:
    """Files waiting to be submitted for extraction.

    Two independent lists: single uploads accumulate across selections, while a
    folder selection replaces the previous one and remembers where it came from.
    Files whose name already appears in the processing history are never queued.
    """

    def __init__(self) -> None:
        self._files: list[UploadedFile] = []
        self._folder_files: list[UploadedFile] = []
        self._folder_source: str | None = None

    @property
    def files(self) -> list[UploadedFile]:
        return list(self._files)

    @property
    def folder_files(self) -> list[UploadedFile]:
        return list(self._folder_files)

    @property
    def folder_source(self) -> str | None:
        return self._folder_source

    def add(
        self, files: Iterable[UploadedFile], processed_names: Collection[str]
    ) -> QueueAddOutcome:
        outcome = QueueAddOutcome()
        for file in files:
            if file.name in processed_names:
                outcome.duplicates.append(file)
            else:
                outcome.added.append(file)
        self._files.extend(outcome.added)
        return outcome

    def add_folder(
        self,
        files: Iterable[UploadedFile],
        processed_names: Collection[str],
        source: str | None = None,
    ) -> QueueAddOutcome:
        """Replace the folder queue with the supported, not yet processed files."""
        outcome = QueueAddOutcome()
        for file in files:
            if file.extension not in SUPPORTED_EXTENSIONS:
                outcome.unsupported.append(file)
            elif file.name in processed_names:
                outcome.duplicates.append(file)
            else:
                outcome.added.append(file)
        self._folder_files = list(outcome.added)
        self._folder_source = source
        return outcome

    def clear(self) -> None:
        self._files = []

    def clear_folder(self) -> None:
        self._folder_files = []
        self._folder_source = None
