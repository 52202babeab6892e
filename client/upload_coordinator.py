"""
Duplicate-aware batch upload.

The coordinator walks the picked files with a cursor, in input order. Each
file is checked against the user's stored files; a duplicate pauses the batch
in AWAITING_DECISION until the caller answers skip or upload anyway. Once every
file is classified the approved ones are uploaded sequentially.

    IDLE -> CHECKING -> AWAITING_DECISION <-> CHECKING -> READY -> UPLOADING -> DONE
"""

import inspect
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Sequence

from client.exceptions import ClientError
from client.models import DuplicateDecision, DuplicateResolver, PendingDuplicate
from client.picker import upload_name
from common.logging_config import get_logger
from common.types import FileRecord, PickedFile, UploadBatchResult

if TYPE_CHECKING:
    from client.services.file_service import FileService

logger = get_logger(__name__)


class BatchState(Enum):
    IDLE = 'idle'
    CHECKING = 'checking'
    AWAITING_DECISION = 'awaiting_decision'
    READY = 'ready'
    UPLOADING = 'uploading'
    DONE = 'done'


class InvalidBatchStateError(RuntimeError):
    """Raised when an operation is called in a state that does not allow it."""


class UploadCoordinator:
    """One batch at a time; reusable once DONE."""

    def __init__(self, files_service: 'FileService'):
        self.files_service = files_service
        self.state = BatchState.IDLE
        self.files: List[PickedFile] = []
        self.user_id = ""
        self.cursor = 0
        self.approved: List[PickedFile] = []
        self.skipped: List[str] = []
        self.pending: Optional[PendingDuplicate] = None
        self.result: Optional[UploadBatchResult] = None

    def _require(self, *states: BatchState) -> None:
        if self.state not in states:
            expected = ', '.join(s.name for s in states)
            raise InvalidBatchStateError(f"Batch is {self.state.name}, expected {expected}")

    async def start(self, files: Sequence[PickedFile], user_id: str) -> Optional[PendingDuplicate]:
        """
        Begin a batch and check files until the first duplicate.

        Returns:
            The duplicate awaiting a decision, or None if every file was approved
        """
        self._require(BatchState.IDLE, BatchState.DONE)
        self.files = list(files)
        self.user_id = str(user_id)
        self.cursor = 0
        self.approved = []
        self.skipped = []
        self.pending = None
        self.result = None
        self.state = BatchState.CHECKING
        logger.info(f"Starting batch of {len(self.files)} files")
        return await self._advance()

    async def _is_duplicate(self, file: PickedFile) -> Optional[FileRecord]:
        name = upload_name(file)
        try:
            return await self.files_service.check_duplicate(name, self.user_id)
        except ClientError as e:
            logger.warning(f"Duplicate check failed for {name}, treating as new: {e.message}")
            return None

    async def _advance(self) -> Optional[PendingDuplicate]:
        while self.cursor < len(self.files):
            file = self.files[self.cursor]
            existing = await self._is_duplicate(file)
            if existing is not None:
                self.pending = PendingDuplicate(index=self.cursor, file=file, existing=existing)
                self.state = BatchState.AWAITING_DECISION
                logger.info(f"Duplicate found at position {self.cursor}: {upload_name(file)}")
                return self.pending
            self.approved.append(file)
            self.cursor += 1

        self.state = BatchState.READY
        return None

    async def decide(
        self,
        decision: DuplicateDecision,
        index: Optional[int] = None,
    ) -> Optional[PendingDuplicate]:
        """
        Answer the pending duplicate and continue checking.

        Args:
            decision: Skip the file or upload it anyway
            index: Position the decision refers to; must match the pending file if given

        Returns:
            The next duplicate awaiting a decision, or None when all files are classified
        """
        self._require(BatchState.AWAITING_DECISION)
        pending = self.pending
        if index is not None and index != pending.index:
            raise InvalidBatchStateError(
                f"Decision for position {index} but position {pending.index} is pending"
            )

        name = upload_name(pending.file)
        if decision is DuplicateDecision.UPLOAD_ANYWAY:
            self.approved.append(pending.file)
        else:
            self.skipped.append(name)
        logger.info(f"Duplicate {name}: {decision.value}")

        self.pending = None
        self.cursor += 1
        self.state = BatchState.CHECKING
        return await self._advance()

    async def dismiss(self) -> Optional[PendingDuplicate]:
        """Closing the prompt without answering counts as skip."""
        return await self.decide(DuplicateDecision.SKIP)

    async def upload(self) -> UploadBatchResult:
        """Upload the approved files sequentially and finish the batch."""
        self._require(BatchState.READY)
        self.state = BatchState.UPLOADING
        try:
            result = await self.files_service.upload_files(self.approved, self.user_id)
        except BaseException:
            self.state = BatchState.READY
            raise
        result.skipped = list(self.skipped)
        self.result = result
        self.state = BatchState.DONE
        return result

    async def run(
        self,
        files: Sequence[PickedFile],
        user_id: str,
        resolver: DuplicateResolver,
    ) -> UploadBatchResult:
        """Drive a whole batch, asking resolver about every duplicate."""
        pending = await self.start(files, user_id)
        while pending is not None:
            decision = resolver(pending)
            if inspect.isawaitable(decision):
                decision = await decision
            pending = await self.decide(decision, pending.index)
        return await self.upload()
