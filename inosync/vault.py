"""Vault writer for InoSync notes."""

from pathlib import Path

from .logging_config import create_execution_logger
from .models import RenderedNote

CREATED = "created"
UPDATED = "updated"
SKIPPED = "skipped"


class VaultWriter:
    """Writes rendered notes into folders of a vault directory."""

    def __init__(self, vault_path: str | Path = ".", execution_id: str | None = None):
        """Initialize the VaultWriter.

        Args:
            vault_path: Root directory of the vault
            execution_id: Execution ID for logging context
        """
        self.vault_path = Path(vault_path)
        self.logger = create_execution_logger("vault_writer", execution_id)

        self.logger.info("VaultWriter initialized", vault_path=str(self.vault_path))

    def folder_path(self, folder: str) -> Path:
        return self.vault_path / folder if folder else self.vault_path

    def note_path(self, folder: str, note: RenderedNote) -> Path:
        return self.folder_path(folder) / note.file_name

    def ensure_folder(self, folder: str) -> Path:
        """Create a vault folder if it does not exist yet."""
        path = self.folder_path(folder)
        if not path.exists():
            path.mkdir(parents=True)
            self.logger.info("Created folder", folder=folder)
        return path

    def exists(self, folder: str, note: RenderedNote) -> bool:
        return self.note_path(folder, note).exists()

    def write_note(self, folder: str, note: RenderedNote, force: bool = False) -> str:
        """Create a note, or overwrite an existing one when forced.

        Args:
            folder: Folder relative to the vault root
            note: Note to write
            force: Overwrite an existing note instead of skipping it

        Returns:
            "created", "updated" or "skipped"
        """
        path = self.note_path(folder, note)

        if path.exists() and not force:
            self.logger.debug("Note exists, skipping", item_title=note.file_name_stem)
            return SKIPPED

        action = UPDATED if path.exists() else CREATED
        try:
            path.write_text(note.document_text, encoding="utf-8")
        except OSError as e:
            self.logger.error(
                f"Error writing note {path}: {e}",
                item_title=note.file_name_stem,
                error=str(e),
            )
            raise

        self.logger.log_note_written(note.file_name_stem, action, folder)
        return action
