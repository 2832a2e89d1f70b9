"""
File lifecycle tracking.

A file moves idle -> uploading -> scanning -> processing -> ready. `error` can be
reached from any non-terminal state and `quarantined` from scanning. Ready and
the two failure states end an upload attempt.

Transitions are delivered by a StatusSource. `SimulatedStatusSource` replays the
fixed progression on timers; `QueueStatusSource` is fed by a push-based status
feed from the processing backend. Both drive the same tracker.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, Dict, FrozenSet, List, Optional, Sequence, Union
import asyncio
import inspect
import logging

from academic_vault.core.config import settings
from academic_vault.schemas.file import FileStatus, VaultFile

logger = logging.getLogger(__name__)

TRANSITIONS: Dict[FileStatus, FrozenSet[FileStatus]] = {
    FileStatus.IDLE: frozenset({FileStatus.UPLOADING, FileStatus.ERROR}),
    FileStatus.UPLOADING: frozenset({FileStatus.SCANNING, FileStatus.ERROR}),
    FileStatus.SCANNING: frozenset({FileStatus.PROCESSING, FileStatus.QUARANTINED, FileStatus.ERROR}),
    FileStatus.PROCESSING: frozenset({FileStatus.READY, FileStatus.ERROR}),
}

TERMINAL_STATUSES = frozenset({FileStatus.READY, FileStatus.ERROR, FileStatus.QUARANTINED})

# Failure states keep whatever progress the attempt had reached
STATUS_PROGRESS: Dict[FileStatus, int] = {
    FileStatus.IDLE: 0,
    FileStatus.UPLOADING: 25,
    FileStatus.SCANNING: 50,
    FileStatus.PROCESSING: 75,
    FileStatus.READY: 100,
}

TransitionCallback = Callable[[VaultFile], Union[None, Awaitable[None]]]


class InvalidTransitionError(ValueError):
    def __init__(self, current: FileStatus, requested: FileStatus):
        super().__init__(f"Cannot move file from {current.value} to {requested.value}")
        self.current = current
        self.requested = requested


class StatusSource(ABC):
    """Delivers status changes for one file, poll- or push-based"""

    @abstractmethod
    def statuses(self, file: VaultFile) -> AsyncIterator[FileStatus]: ...


@dataclass
class SimulatedStep:
    status: FileStatus
    duration: float  # seconds


DEFAULT_STEPS: List[SimulatedStep] = [
    SimulatedStep(FileStatus.UPLOADING, 2.0),
    SimulatedStep(FileStatus.SCANNING, 1.5),
    SimulatedStep(FileStatus.PROCESSING, 4.0),
    SimulatedStep(FileStatus.READY, 0.5),
]


class SimulatedStatusSource(StatusSource):
    """Local stand-in for backend processing: replays the steps on timers"""

    def __init__(self, steps: Optional[Sequence[SimulatedStep]] = None, scale: Optional[float] = None):
        self.steps = list(steps if steps is not None else DEFAULT_STEPS)
        self.scale = settings.status_step_scale if scale is None else scale

    async def statuses(self, file: VaultFile) -> AsyncIterator[FileStatus]:
        for step in self.steps:
            await asyncio.sleep(step.duration * self.scale)
            yield step.status


class QueueStatusSource(StatusSource):
    """Push-based feed: whoever receives backend events calls push()"""

    def __init__(self):
        self.queue: asyncio.Queue[FileStatus] = asyncio.Queue()

    async def push(self, status: FileStatus) -> None:
        await self.queue.put(status)

    def push_nowait(self, status: FileStatus) -> None:
        self.queue.put_nowait(status)

    async def statuses(self, file: VaultFile) -> AsyncIterator[FileStatus]:
        while True:
            status = await self.queue.get()
            yield status
            if status in TERMINAL_STATUSES:
                return


class FileLifecycleTracker:
    """Applies status changes to one file and notifies an observer once per change"""

    def __init__(self, file: VaultFile, on_transition: Optional[TransitionCallback] = None):
        self.file = file
        self.on_transition = on_transition

    @property
    def status(self) -> FileStatus:
        return self.file.status

    @property
    def is_terminal(self) -> bool:
        return self.file.status in TERMINAL_STATUSES

    async def _notify(self) -> None:
        if self.on_transition is None:
            return
        result = self.on_transition(self.file)
        if inspect.isawaitable(result):
            await result

    async def advance(self, status: FileStatus) -> VaultFile:
        current = self.file.status
        if status == current:
            return self.file
        if status not in TRANSITIONS.get(current, frozenset()):
            raise InvalidTransitionError(current, status)

        progress = max(self.file.progress, STATUS_PROGRESS.get(status, self.file.progress))
        self.file = self.file.model_copy(update={"status": status, "progress": progress})
        logger.debug(f"File {self.file.id}: {current.value} -> {status.value} ({progress}%)")
        await self._notify()
        return self.file

    async def restart(self) -> VaultFile:
        """Begin a new attempt after an error"""
        if self.file.status != FileStatus.ERROR:
            raise InvalidTransitionError(self.file.status, FileStatus.IDLE)
        self.file = self.file.model_copy(update={"status": FileStatus.IDLE, "progress": 0})
        await self._notify()
        return self.file

    async def run(self, source: StatusSource) -> VaultFile:
        """Consume the source until the attempt reaches a terminal state"""
        try:
            async for status in source.statuses(self.file):
                await self.advance(status)
                if self.is_terminal:
                    break
        except InvalidTransitionError:
            raise
        except Exception as e:
            logger.error(f"❌ Processing error for file {self.file.id}: {e}")
            if not self.is_terminal:
                await self.advance(FileStatus.ERROR)
        return self.file
