import errno
import mimetypes
from pathlib import Path
from typing import AsyncIterator, List

import aiofiles
import aiofiles.os
from fastapi.concurrency import run_in_threadpool

from app.exceptions import (
    AlreadyExists,
    DeleteFailed,
    DirectoryNotFound,
    EmptyUpload,
    FileManagerError,
    NotFound,
    PathEscape,
    WriteFailed,
)
from app.models.entry import Breadcrumb, Listing
from app.models.outcome import DownloadPayload, Outcome, UploadItem
from app.services.archive_builder import ArchiveBuilder
from app.services.entry_lister import EntryLister
from app.services.path_resolver import PathResolver, RelativePath
from app.services.quota_tracker import QuotaTracker
from config import Settings
from logger_config import setup_logger

logger = setup_logger()


class FileOps:
    """Entry point for every storage operation.

    Each operation takes the raw relative ``path`` the client is browsing and
    returns an ``Outcome``; errors from the services below never escape.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.resolver = PathResolver(settings)
        self.quota = QuotaTracker(settings)
        self.lister = EntryLister()
        self.archiver = ArchiveBuilder(settings)

    async def clean_temp_dir(self) -> int:
        """Remove archives and upload parts left behind by a previous run."""
        files_removed = 0
        for file in self.settings.temp_dir.glob("*"):
            if file.is_file():
                await aiofiles.os.unlink(file)
                files_removed += 1
        logger.info(f"Cleaned temporary directory, removed {files_removed} files")
        return files_removed

    def listing(self, raw_path: str) -> Listing:
        base = self.resolver.sanitize(raw_path)
        try:
            entries = self.lister.list(self.resolver.resolve_dir(base))
        except (DirectoryNotFound, PathEscape) as e:
            # Stale navigation state shows up as an empty folder
            logger.info(f"Listing '{raw_path}' returned nothing: {e.message}")
            entries = []

        return Listing(
            path="/".join(base),
            breadcrumbs=self.breadcrumbs(base),
            entries=entries,
            quota=self.quota.state(),
        )

    @staticmethod
    def breadcrumbs(base: RelativePath) -> List[Breadcrumb]:
        return [
            Breadcrumb(name=segment, path="/".join(base[:i + 1]))
            for i, segment in enumerate(base)
        ]

    async def create(self, raw_path: str, filename: str, content: str) -> Outcome:
        filename = filename.strip()
        data = content.encode("utf-8")
        try:
            path = self.resolver.resolve(self.resolver.sanitize(raw_path), filename)

            if await aiofiles.os.path.exists(path):
                raise AlreadyExists(f"File '{filename}' already exists.")

            await run_in_threadpool(self.quota.admit, len(data))
            await self._write_new_file(path, data)
        except FileManagerError as e:
            logger.warning(f"Create '{filename}' in '{raw_path}' rejected: {e.message}")
            return Outcome.failure(e)

        logger.info(f"Created file {path} ({len(data)} bytes)")
        return Outcome.success(f"File '{filename}' created successfully!")

    async def _write_new_file(self, path: Path, data: bytes) -> None:
        try:
            # 'x' so a file created after the existence check is never clobbered
            async with aiofiles.open(path, 'xb') as f:
                await f.write(data)
        except FileExistsError as e:
            raise AlreadyExists(f"File '{path.name}' already exists.") from e
        except OSError as e:
            logger.error(f"Error writing {path}: {e}", exc_info=True)
            if await aiofiles.os.path.exists(path):
                await aiofiles.os.remove(path)
            raise WriteFailed("Unable to write the file, please check permissions.") from e

    async def create_folder(self, raw_path: str, foldername: str) -> Outcome:
        foldername = foldername.strip()
        try:
            path = self.resolver.resolve(self.resolver.sanitize(raw_path), foldername)

            if await aiofiles.os.path.exists(path):
                raise AlreadyExists(f"Folder '{foldername}' already exists.")

            try:
                await aiofiles.os.mkdir(path, 0o755)
            except FileExistsError as e:
                raise AlreadyExists(f"Folder '{foldername}' already exists.") from e
            except OSError as e:
                logger.error(f"Error creating folder {path}: {e}", exc_info=True)
                raise WriteFailed("Unable to create the folder, please check permissions.") from e
        except FileManagerError as e:
            logger.warning(f"Create folder '{foldername}' in '{raw_path}' rejected: {e.message}")
            return Outcome.failure(e)

        logger.info(f"Created folder {path}")
        return Outcome.success(f"Folder '{foldername}' created successfully!")

    async def delete(self, raw_path: str, filename: str) -> Outcome:
        try:
            path = self.resolver.resolve(self.resolver.sanitize(raw_path), filename)

            if not await aiofiles.os.path.exists(path):
                raise NotFound("Target does not exist.")

            if await aiofiles.os.path.isdir(path):
                try:
                    await aiofiles.os.rmdir(path)
                except OSError as e:
                    if e.errno not in (errno.ENOTEMPTY, errno.EEXIST):
                        logger.error(f"Error removing folder {path}: {e}", exc_info=True)
                    raise DeleteFailed("Delete failed, the folder may not be empty.") from e
            else:
                try:
                    await aiofiles.os.remove(path)
                except OSError as e:
                    logger.error(f"Error removing file {path}: {e}", exc_info=True)
                    raise DeleteFailed("Delete failed, please check permissions.") from e
        except FileManagerError as e:
            logger.warning(f"Delete '{filename}' in '{raw_path}' rejected: {e.message}")
            return Outcome.failure(e)

        logger.info(f"Deleted {path}")
        return Outcome.success(f"File '{filename}' deleted.")

    async def upload(self, raw_path: str, items: List[UploadItem],
                     continue_on_item_failure: bool = True) -> Outcome:
        """Move already spooled uploads into ``raw_path``.

        With ``continue_on_item_failure`` (the default) an item that fails
        validation, quota or the move is skipped silently and only the number
        of stored files is reported. Otherwise the first failure ends the batch.
        """
        if not items or not items[0].name:
            return Outcome.failure(EmptyUpload("Please choose files to upload."))

        base = self.resolver.sanitize(raw_path)
        success_count = 0

        for item in items:
            if item.error != 0:
                logger.warning(f"Upload of '{item.name}' skipped, transport error code {item.error}")
                continue
            try:
                await self._store_upload(base, item)
            except FileManagerError as e:
                logger.warning(f"Upload of '{item.name}' skipped: {e.message}")
                if not continue_on_item_failure:
                    return Outcome.failure(e)
                continue
            success_count += 1

        logger.info(f"Uploaded {success_count} of {len(items)} files into '{'/'.join(base)}'")
        return Outcome.success(f"Successfully uploaded {success_count} files.", count=success_count)

    async def _store_upload(self, base: RelativePath, item: UploadItem) -> None:
        destination = self.resolver.resolve(base, item.name)
        await run_in_threadpool(self.quota.admit, item.size)
        try:
            await aiofiles.os.rename(str(item.temp_path), str(destination))
        except OSError as e:
            logger.error(f"Error moving upload {item.temp_path} to {destination}: {e}", exc_info=True)
            raise WriteFailed(f"Unable to store '{item.name}'.") from e

    async def download(self, raw_path: str, filename: str) -> Outcome:
        """Prepare a download. On success ``outcome.download`` holds the payload,
        which must be released once sent (``stream`` does this)."""
        try:
            path = self.resolver.resolve(self.resolver.sanitize(raw_path), filename)

            if not await aiofiles.os.path.exists(path):
                raise NotFound("File does not exist.")

            if await aiofiles.os.path.isdir(path):
                archive = await run_in_threadpool(self.archiver.build, path)
                payload = DownloadPayload(
                    path=archive.path,
                    filename=archive.filename,
                    media_type="application/zip",
                    content_length=archive.size,
                    archive=archive,
                )
            else:
                stat = await aiofiles.os.stat(path)
                media_type, _ = mimetypes.guess_type(path.name)
                payload = DownloadPayload(
                    path=path,
                    filename=path.name,
                    media_type=media_type or "application/octet-stream",
                    content_length=stat.st_size,
                )
        except FileManagerError as e:
            logger.warning(f"Download '{filename}' in '{raw_path}' rejected: {e.message}")
            return Outcome.failure(e)

        logger.info(f"Serving download {payload.filename} ({payload.content_length} bytes)")
        return Outcome.success(f"Downloading '{payload.filename}'.", download=payload)

    async def stream(self, payload: DownloadPayload) -> AsyncIterator[bytes]:
        """Yield the payload in chunks, releasing any archive afterwards."""
        try:
            async with aiofiles.open(payload.path, 'rb') as file:
                while chunk := await file.read(self.settings.chunk_size):
                    yield chunk
        finally:
            payload.release()
