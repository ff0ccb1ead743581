"""
SidVid Video Pipeline

Sequential scene-video generation for one session.

Each storyboard scene becomes a SceneVideoJob that moves through
pending -> queued -> generating -> completed | failed. Exactly one job is in
flight at a time and jobs are dispatched in scene order. Rate-limited
submissions wait in ``retry_scheduled`` for a linear backoff before being
resubmitted; every other failure is terminal for that scene only.

All timers (backoff, polling, settle delay) are asyncio tasks tagged with the
pipeline epoch. Starting a new run or tearing the pipeline down bumps the epoch
and cancels them, and a task that still wakes up under an old epoch does nothing.
"""

import asyncio
import math
from typing import Awaitable, Callable, Dict, List, Optional, Set

from sidvid.core.config import VideoPipelineConfig
from sidvid.core.constants import VideoJobStatus, VideoPipelineStatus
from sidvid.core.exceptions import InvalidArgumentError, InvalidStateError, SidVidError, is_rate_limit_error
from sidvid.core.logging_config import get_session_logger
from sidvid.core.retry import RetryConfig, calculate_delay, should_retry, retry_message, exhausted_message
from sidvid.generation.service import GenerationService, ProviderVideoStatus, VideoOptions
from sidvid.models.video import SceneVideoJob

JobBuilder = Callable[[], List[SceneVideoJob]]
ChangeHandler = Callable[[], Awaitable[None]]
ProgressCallback = Callable[[SceneVideoJob, float], None]


class VideoPipeline:
    """
    Drives scene video jobs against a GenerationService.

    Args:
        service: Provider used for submission and status polling
        config: Retry and timing policy
        build_jobs: Returns fresh jobs for the current storyboard scenes
        on_change: Awaited after every committed job transition (touch + autosave)
        session_id: Owning session, attached to every log record
    """

    def __init__(
        self,
        service: GenerationService,
        config: Optional[VideoPipelineConfig] = None,
        build_jobs: Optional[JobBuilder] = None,
        on_change: Optional[ChangeHandler] = None,
        session_id: Optional[str] = None
    ):
        self.service = service
        self.logger = get_session_logger("pipelines.video", session_id)
        self.config = config or VideoPipelineConfig()
        self.retry_config = RetryConfig(
            max_retries=self.config.max_retries,
            base_delay=self.config.retry_delay_seconds
        )
        self._build_jobs = build_jobs or (lambda: [])
        self._on_change = on_change

        self.jobs: List[SceneVideoJob] = []
        self.status = VideoPipelineStatus.IDLE
        self._epoch = 0
        self._tasks: Set[asyncio.Task] = set()
        self._submitting: Optional[SceneVideoJob] = None
        self._idle = asyncio.Event()
        self._idle.set()
        self._progress_callback: Optional[ProgressCallback] = None

    # -------------------------------------------------------------------------
    # Read accessors
    # -------------------------------------------------------------------------

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def is_running(self) -> bool:
        return self.status == VideoPipelineStatus.RUNNING

    @property
    def aggregate_progress(self) -> float:
        """Mean progress across all scene jobs (0 when there are none)."""
        if not self.jobs:
            return 0.0
        return sum(j.progress for j in self.jobs) / len(self.jobs)

    @property
    def active_job(self) -> Optional[SceneVideoJob]:
        """The job currently submitted, queued, generating or waiting to retry."""
        if self._submitting is not None:
            return self._submitting
        for job in self.jobs:
            if job.status.is_live or job.status == VideoJobStatus.RETRY_SCHEDULED:
                return job
        return None

    def get_job(self, scene_index: int) -> SceneVideoJob:
        for job in self.jobs:
            if job.scene_index == scene_index:
                return job
        raise InvalidArgumentError("Invalid scene index", {"scene_index": scene_index})

    def summary(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in VideoJobStatus}
        for job in self.jobs:
            counts[job.status.value] += 1
        return counts

    def set_progress_callback(self, callback: ProgressCallback) -> None:
        """Set callback invoked with (job, aggregate_progress) after each transition."""
        self._progress_callback = callback

    # -------------------------------------------------------------------------
    # Control
    # -------------------------------------------------------------------------

    async def start_generating_all_scenes(self) -> List[SceneVideoJob]:
        """
        Reset every scene job to pending and begin sequential dispatch.

        Returns:
            The fresh job list

        Raises:
            InvalidStateError: If there is no storyboard or it has no scene frames
        """
        jobs = self._build_jobs()
        if not jobs:
            raise InvalidStateError("No scenes to generate. Add scene images to the storyboard first.")

        self._invalidate()
        for job in jobs:
            job.reset()
        self.jobs = sorted(jobs, key=lambda j: j.scene_index)

        self.logger.info(f"Starting video generation for {len(self.jobs)} scenes (epoch {self._epoch})")
        self._mark_running()
        await self._commit(None)
        self.generate_next_scene()
        return self.jobs

    def generate_next_scene(self, delay: float = 0) -> asyncio.Task:
        """
        Dispatch the first pending scene, optionally after a delay in seconds.

        Must be called with a running event loop. The returned task is cancelled
        by teardown or a new run.
        """
        return self._spawn(self._dispatch_after(delay, self._epoch))

    def teardown(self) -> None:
        """
        Cancel every pending timer; late wake-ups become no-ops.

        Jobs that were queued, generating or waiting to retry go back to pending
        so a later generate_next_scene() can pick them up again. Completed and
        failed jobs are kept.
        """
        if self._tasks:
            self.logger.info(f"Tearing down video pipeline ({len(self._tasks)} pending tasks)")
        self._invalidate()
        released = [j.scene_index for j in self.jobs if j.release()]
        if released:
            self.logger.info(f"Returned scenes {released} to pending")
        self.status = VideoPipelineStatus.IDLE
        self._idle.set()

    async def wait_until_idle(self, timeout: Optional[float] = None) -> None:
        await asyncio.wait_for(self._idle.wait(), timeout)

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def _invalidate(self) -> None:
        self._epoch += 1
        current = asyncio.current_task() if _has_running_loop() else None
        for task in list(self._tasks):
            if task is not current:
                task.cancel()
        self._tasks.clear()
        self._submitting = None

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _mark_running(self) -> None:
        self.status = VideoPipelineStatus.RUNNING
        self._idle.clear()

    async def _dispatch_after(self, delay: float, epoch: int) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
        if epoch != self._epoch:
            return
        await self._dispatch(epoch)

    async def _dispatch(self, epoch: int) -> None:
        busy = self.active_job
        if busy is not None:
            self.logger.debug(f"Scene {busy.scene_index} still in flight; dispatch skipped")
            return

        job = next((j for j in self.jobs if j.status == VideoJobStatus.PENDING), None)
        if job is None:
            await self._go_idle()
            return

        self._mark_running()
        self._submitting = job
        self.logger.info(f"Submitting scene {job.scene_index} (attempt {job.retry_count + 1})")
        try:
            submission = await self.service.generate_video(
                job.description,
                job.image_url,
                VideoOptions(provider=self.config.provider, sound=self.config.sound)
            )
        except Exception as e:
            if epoch != self._epoch:
                return
            self._submitting = None
            await self._handle_submission_failure(job, e, epoch)
            return

        if epoch != self._epoch:
            return
        self._submitting = None
        job.video_id = submission.video_id
        job.status = VideoJobStatus.QUEUED
        job.message = None
        job.error = None
        self.logger.info(f"Scene {job.scene_index} queued as {job.video_id}")
        await self._commit(job)
        self._spawn(self._poll(job, epoch))

    async def _handle_submission_failure(self, job: SceneVideoJob, error: Exception, epoch: int) -> None:
        if should_retry(error, job.retry_count, self.retry_config):
            job.retry_count += 1
            delay = calculate_delay(job.retry_count, self.retry_config)
            job.status = VideoJobStatus.RETRY_SCHEDULED
            job.error = None
            job.message = retry_message(delay, job.retry_count, self.retry_config)
            self.logger.warning(f"Scene {job.scene_index}: {job.message}")
            await self._commit(job)
            self._spawn(self._retry_after(job, delay, epoch))
            return

        job.status = VideoJobStatus.FAILED
        job.message = None
        if is_rate_limit_error(error):
            job.error = exhausted_message(error, self.retry_config)
        else:
            job.error = _error_text(error)
        self.logger.error(f"Scene {job.scene_index} failed: {job.error}")
        await self._commit(job)
        self._spawn(self._dispatch_after(0, epoch))

    async def _retry_after(self, job: SceneVideoJob, delay: float, epoch: int) -> None:
        remaining = delay
        while remaining > 0:
            step = min(1.0, remaining)
            await asyncio.sleep(step)
            if epoch != self._epoch:
                return
            remaining -= step
            if remaining > 0:
                job.message = retry_message(math.ceil(remaining), job.retry_count, self.retry_config)

        if epoch != self._epoch:
            return
        job.status = VideoJobStatus.PENDING
        job.message = None
        await self._dispatch(epoch)

    # -------------------------------------------------------------------------
    # Polling
    # -------------------------------------------------------------------------

    async def _poll(self, job: SceneVideoJob, epoch: int) -> None:
        while True:
            await asyncio.sleep(self.config.poll_interval_seconds)
            if epoch != self._epoch:
                return

            try:
                result = await self.service.check_video_status(job.video_id)
            except Exception as e:
                if epoch != self._epoch:
                    return
                job.status = VideoJobStatus.FAILED
                job.error = _error_text(e)
                self.logger.error(f"Scene {job.scene_index} status check failed: {job.error}")
                await self._commit(job)
                self._spawn(self._dispatch_after(self.config.settle_delay_seconds, epoch))
                return

            if epoch != self._epoch:
                return

            job.progress = max(0, min(100, int(result.progress)))
            if result.status == ProviderVideoStatus.COMPLETED:
                job.status = VideoJobStatus.COMPLETED
                job.progress = 100
                job.video_url = result.video_url
                self.logger.info(f"Scene {job.scene_index} completed: {job.video_url}")
            elif result.status == ProviderVideoStatus.FAILED:
                job.status = VideoJobStatus.FAILED
                job.error = result.error or "Video generation failed"
                self.logger.error(f"Scene {job.scene_index} failed at provider: {job.error}")
            else:
                job.status = result.status.to_job_status()

            await self._commit(job)

            if job.status.is_terminal:
                self._spawn(self._dispatch_after(self.config.settle_delay_seconds, epoch))
                return

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    async def _go_idle(self) -> None:
        was_running = self.is_running
        self.status = VideoPipelineStatus.IDLE
        if was_running:
            counts = self.summary()
            self.logger.info(
                f"Video pipeline idle: {counts['completed']} completed, {counts['failed']} failed"
            )
            await self._commit(None)
        self._idle.set()

    async def _commit(self, job: Optional[SceneVideoJob]) -> None:
        if self._progress_callback and job is not None:
            try:
                self._progress_callback(job, self.aggregate_progress)
            except Exception:
                self.logger.exception(f"Progress callback failed for scene {job.scene_index}")
        if self._on_change is None:
            return
        try:
            await self._on_change()
        except SidVidError as e:
            self.logger.error(f"Failed to persist video pipeline state: {e}")
        except Exception:
            self.logger.exception("Video pipeline change handler failed")

    def to_dict(self) -> Dict:
        return {
            "status": self.status.value,
            "jobs": [j.to_dict() for j in self.jobs],
        }

    def load_state(self, data: Optional[Dict]) -> None:
        """Restore jobs from a snapshot; the pipeline itself always restarts idle."""
        self.teardown()
        data = data or {}
        self.jobs = [SceneVideoJob.from_dict(j) for j in data.get("jobs", [])]


def _has_running_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def _error_text(error: BaseException) -> str:
    return getattr(error, "message", None) or str(error) or error.__class__.__name__
