"""Abstract base class for document format handlers."""

from abc import ABC, abstractmethod
from pathlib import Path

from miaobi.formatting.ir import RenderedDocument


class ExportError(Exception):
    """The document could not be packed or saved."""

    pass


class FormatHandler(ABC):
    """Abstract base class for document format handlers.

    Each handler packs a RenderedDocument into its binary format, either
    in memory or to a file on disk.
    """

    @property
    @abstractmethod
    def extension(self) -> str:
        """Return the file extension this handler produces (e.g., '.docx')."""
        ...

    @property
    @abstractmethod
    def media_type(self) -> str:
        """Return the MIME type of the produced artifact."""
        ...

    @abstractmethod
    def render(self, document: RenderedDocument) -> bytes:
        """Pack the document into a single binary artifact.

        Args:
            document: The assembled document

        Returns:
            The file contents

        Raises:
            ExportError: If packing fails
        """
        ...

    def ensure_extension(self, filename: str) -> str:
        """Append the handler's extension unless the name already has it."""
        if filename.lower().endswith(self.extension):
            return filename
        return f"{filename}{self.extension}"

    def write(self, document: RenderedDocument, path: Path) -> Path:
        """Pack the document and save it to path.

        The extension is appended to path if missing.

        Returns:
            The path actually written

        Raises:
            ExportError: If packing or saving fails
        """
        target = path.with_name(self.ensure_extension(path.name))
        data = self.render(document)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise ExportError(f"Failed to save {target}: {e}") from e
        return target
