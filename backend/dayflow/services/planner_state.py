"""Planner aggregate: the active week's tasks plus the profile that generates them.

Every public mutation funnels through ``_commit`` once its in-memory work is done:
the named keys are written to the store, today's alerts are rebuilt when the
schedule changed, and registered listeners receive the ``ChangeSet``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from time import perf_counter
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple
from uuid import UUID

from dayflow.core.clock import Clock
from dayflow.domain.models import (
    FixedActivity,
    FreeActivity,
    Task,
    TaskTemplate,
    WeekTasks,
    default_fixed_activities,
)
from dayflow.domain.timeutils import (
    DAYS_PER_WEEK,
    check_day_index,
    date_for_day_index,
    start_of_week,
    weekday_index,
)
from dayflow.observability.metrics import log_metric
from dayflow.observability.tracing import trace
from dayflow.services import state_codec as codec
from dayflow.services.notifications.base import NotificationService, TaskAlert
from dayflow.services.notifications.hooks import schedule_task_alerts
from dayflow.services.progress_tracker import DayResult, ProgressTracker
from dayflow.services.schedule_generator import ScheduleConstraints, generate_schedule
from dayflow.services.state_store import StateStore

logger = logging.getLogger(__name__)

DEFAULT_WAKE = time(hour=7)
DEFAULT_SLEEP = time(hour=23)
DEFAULT_SELECTED = (FreeActivity.STUDY, FreeActivity.EXERCISE)
FALLBACK_TASK_TITLE = "Custom task"
FALLBACK_USER_NAME = "Friend"

WEEK_KEYS = (codec.CURRENT_WEEK_START, codec.WEEK_TASKS)
PROGRESS_KEYS = (codec.WEEKLY_PROGRESS, codec.WEEKLY_PROGRESS_CUSTOM, codec.LAST_WEEK_START)


@dataclass(frozen=True)
class ChangeSet:
    keys: FrozenSet[str]
    reschedule_alerts: bool = False


ChangeListener = Callable[[ChangeSet], None]


class PlannerState:
    def __init__(self, store: StateStore, notifier: NotificationService, clock: Clock):
        self.store = store
        self.notifier = notifier
        self.clock = clock
        self._listeners: List[ChangeListener] = []
        self.last_alerts: List[TaskAlert] = []

        self._load_profile()
        self.tracker = self._load_tracker()
        changed = set(self._load_week())
        if self.tracker.ensure_current_week():
            changed.update(PROGRESS_KEYS)
        self._commit(changed, reschedule=True)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load_profile(self) -> None:
        store = self.store
        self.has_onboarded: bool = codec.load_value(store, codec.HAS_ONBOARDED, codec.decode_bool, False)
        self.user_name: str = codec.load_value(store, codec.USER_NAME, codec.decode_str, "")
        self.wake_time: time = codec.load_value(store, codec.WAKE_TIME, codec.decode_time, DEFAULT_WAKE)
        self.sleep_time: time = codec.load_value(store, codec.SLEEP_TIME, codec.decode_time, DEFAULT_SLEEP)
        fixed = codec.load_value(store, codec.FIXED_ACTIVITIES, codec.decode_fixed_activities, None)
        self.fixed_activities: List[FixedActivity] = default_fixed_activities() if fixed is None else fixed
        self.selected_activities: List[FreeActivity] = codec.load_value(
            store, codec.SELECTED_ACTIVITIES, codec.decode_selected, list(DEFAULT_SELECTED)
        )
        self.custom_preferences: List[str] = codec.load_value(
            store, codec.CUSTOM_PREFERENCES, codec.decode_str_list, []
        )
        self.auto_schedule: bool = codec.load_value(store, codec.AUTO_SCHEDULE, codec.decode_bool, True)
        self.task_templates: List[TaskTemplate] = codec.load_value(
            store, codec.TASK_TEMPLATES, codec.decode_templates, []
        )

    def _load_tracker(self) -> ProgressTracker:
        store = self.store
        return ProgressTracker(
            self.clock,
            custom_preferences=lambda: self.custom_preferences,
            xp=codec.load_value(store, codec.XP, codec.decode_count, 0),
            streak=codec.load_value(store, codec.STREAK, codec.decode_count, 0),
            last_completion_date=codec.load_value(store, codec.LAST_COMPLETION_DATE, codec.decode_date, None),
            last_week_start=codec.load_value(store, codec.LAST_WEEK_START, codec.decode_date, None),
            weekly_goals=codec.load_value(store, codec.WEEKLY_GOALS, codec.decode_activity_hours, {}),
            weekly_progress=codec.load_value(store, codec.WEEKLY_PROGRESS, codec.decode_activity_hours, {}),
            weekly_goals_custom=codec.load_value(store, codec.WEEKLY_GOALS_CUSTOM, codec.decode_custom_hours, {}),
            weekly_progress_custom=codec.load_value(
                store, codec.WEEKLY_PROGRESS_CUSTOM, codec.decode_custom_hours, {}
            ),
        )

    def _load_week(self) -> Iterable[str]:
        """Reuse the stored week only when it is this week; otherwise start fresh."""
        this_week = start_of_week(self.clock.today())
        stored_start = codec.load_value(self.store, codec.CURRENT_WEEK_START, codec.decode_date, None)
        stored_tasks = None
        if stored_start == this_week:
            stored_tasks = codec.load_value(self.store, codec.WEEK_TASKS, codec.decode_week_tasks, None)
            if stored_tasks is not None and not _tasks_within_week(stored_tasks, this_week):
                logger.warning("Stored week tasks fall outside %s; discarding them", this_week)
                stored_tasks = None

        self.current_week_start = this_week
        if stored_tasks is not None:
            logger.info("Restored stored week starting %s", this_week)
            self.week_tasks: WeekTasks = stored_tasks
            return ()

        logger.info("No usable stored week for %s (stored=%s); generating", this_week, stored_start)
        self.week_tasks = self._generate_week_tasks()
        return WEEK_KEYS

    # ------------------------------------------------------------------
    # Change hooks
    # ------------------------------------------------------------------

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def _commit(self, keys: Iterable[str], *, reschedule: bool = False) -> ChangeSet:
        change = ChangeSet(keys=frozenset(keys), reschedule_alerts=reschedule)
        if change.keys:
            self.store.set_many({key: self._encode(key) for key in sorted(change.keys)})
        if change.reschedule_alerts:
            self.schedule_alerts_for_today()
        for listener in self._listeners:
            listener(change)
        return change

    def _encode(self, key: str) -> Any:
        tracker = self.tracker
        encoders: Dict[str, Callable[[], Any]] = {
            codec.HAS_ONBOARDED: lambda: self.has_onboarded,
            codec.USER_NAME: lambda: self.user_name,
            codec.WAKE_TIME: lambda: codec.encode_time(self.wake_time),
            codec.SLEEP_TIME: lambda: codec.encode_time(self.sleep_time),
            codec.FIXED_ACTIVITIES: lambda: codec.encode_fixed_activities(self.fixed_activities),
            codec.SELECTED_ACTIVITIES: lambda: codec.encode_selected(self.selected_activities),
            codec.CUSTOM_PREFERENCES: lambda: list(self.custom_preferences),
            codec.AUTO_SCHEDULE: lambda: self.auto_schedule,
            codec.TASK_TEMPLATES: lambda: codec.encode_templates(self.task_templates),
            codec.CURRENT_WEEK_START: lambda: codec.encode_date(self.current_week_start),
            codec.WEEK_TASKS: lambda: codec.encode_week_tasks(self.week_tasks),
            codec.XP: lambda: tracker.xp,
            codec.STREAK: lambda: tracker.streak,
            codec.LAST_COMPLETION_DATE: lambda: codec.encode_date(tracker.last_completion_date),
            codec.LAST_WEEK_START: lambda: codec.encode_date(tracker.last_week_start),
            codec.WEEKLY_GOALS: lambda: codec.encode_activity_hours(tracker.weekly_goals),
            codec.WEEKLY_PROGRESS: lambda: codec.encode_activity_hours(tracker.weekly_progress),
            codec.WEEKLY_GOALS_CUSTOM: lambda: codec.encode_custom_hours(tracker.weekly_goals_custom),
            codec.WEEKLY_PROGRESS_CUSTOM: lambda: codec.encode_custom_hours(tracker.weekly_progress_custom),
        }
        return encoders[key]()

    # ------------------------------------------------------------------
    # Week access and generation
    # ------------------------------------------------------------------

    def constraints(self) -> ScheduleConstraints:
        return ScheduleConstraints(
            wake_time=self.wake_time,
            sleep_time=self.sleep_time,
            fixed_activities=self.fixed_activities,
            auto_fill=self.auto_schedule,
            selected_activities=self.selected_activities,
            custom_preferences=self.custom_preferences,
        )

    def date_for_day_index(self, index: int):
        return date_for_day_index(self.current_week_start, check_day_index(index))

    def tasks_for(self, index: int) -> List[Task]:
        return list(self.week_tasks.get(check_day_index(index), []))

    def _check_in_week(self, label: str, moment: Optional[datetime], *, closing: bool = False) -> None:
        if moment is None:
            return
        opens, closes = _week_bounds(self.current_week_start)
        if not opens <= moment < closes and not (closing and moment == closes):
            raise ValueError(f"{label} {moment} is outside the week starting {self.current_week_start}")

    def _generate_week_tasks(self) -> WeekTasks:
        constraints = self.constraints()
        now = self.clock.now()
        return {
            idx: generate_schedule(
                date_for_day_index(self.current_week_start, idx),
                constraints,
                now=now,
                day_index=idx,
            )
            for idx in range(DAYS_PER_WEEK)
        }

    def generate_week(self) -> WeekTasks:
        """Replace all seven days with freshly generated schedules."""
        start = perf_counter()
        with trace("planner.generate_week", metadata={"week_start": self.current_week_start}):
            self.week_tasks = self._generate_week_tasks()
        task_count = sum(len(tasks) for tasks in self.week_tasks.values())
        logger.info("Generated week %s with %d tasks", self.current_week_start, task_count)
        log_metric("planner.generate_week", task_count, metadata={"latency_ms": (perf_counter() - start) * 1000})
        self._commit(WEEK_KEYS, reschedule=True)
        return self.week_tasks

    def regenerate_day(
        self,
        index: int,
        energy_level: Optional[int] = None,
        wake_override: Optional[datetime] = None,
        sleep_override: Optional[datetime] = None,
    ) -> List[Task]:
        day = self.date_for_day_index(index)
        self._check_in_week("wake_override", wake_override)
        self._check_in_week("sleep_override", sleep_override, closing=True)
        metadata = {
            "day": day,
            "energy_level": energy_level,
            "wake_override": wake_override,
            "sleep_override": sleep_override,
        }
        with trace("planner.regenerate_day", metadata=metadata):
            tasks = generate_schedule(
                day,
                self.constraints(),
                now=self.clock.now(),
                day_index=index,
                energy_level=energy_level,
                wake_override=wake_override,
                sleep_override=sleep_override,
            )
        self.week_tasks[index] = tasks
        logger.info("Regenerated %s (energy=%s): %d tasks", day, energy_level, len(tasks))
        log_metric("planner.regenerate_day", len(tasks), metadata={"energy_level": energy_level})
        self._commit(WEEK_KEYS, reschedule=True)
        return tasks

    def ensure_current_week(self) -> bool:
        """Catch up with the calendar before serving a read or a write; True when anything moved."""
        this_week = start_of_week(self.clock.today())
        if this_week == self.current_week_start and self.tracker.last_week_start == this_week:
            return False
        self.refresh_week()
        return True

    def refresh_week(self) -> bool:
        """Move to the real current week if the calendar has advanced past the stored one."""
        this_week = start_of_week(self.clock.today())
        moved = this_week != self.current_week_start
        changed = set()
        if moved:
            logger.info("Advancing planner week %s -> %s", self.current_week_start, this_week)
            self.current_week_start = this_week
            self.week_tasks = self._generate_week_tasks()
            changed.update(WEEK_KEYS)
        if self.tracker.ensure_current_week():
            changed.update(PROGRESS_KEYS)
        self._commit(changed, reschedule=True)
        return moved

    # ------------------------------------------------------------------
    # Task edits and completion
    # ------------------------------------------------------------------

    def add_manual_task(
        self,
        index: int,
        title: str,
        start: datetime,
        end: datetime,
        activity: Optional[FreeActivity] = None,
    ) -> Task:
        """Insert a user task; overlaps with existing tasks are allowed."""
        check_day_index(index)
        self._check_in_week("start", start)
        task = Task(title=title.strip() or FALLBACK_TASK_TITLE, start=start, end=end, type=activity)
        tasks = self.week_tasks.get(index, []) + [task]
        tasks.sort(key=lambda item: item.start)
        self.week_tasks[index] = tasks
        self._commit(WEEK_KEYS, reschedule=True)
        return task

    def delete_task(self, index: int, task_id: UUID) -> Task:
        task = self._find_task(index, task_id)
        self.week_tasks[index] = [item for item in self.week_tasks[index] if item.id != task_id]
        self._commit(WEEK_KEYS, reschedule=True)
        return task

    def toggle_completion(self, index: int, task_id: UUID, completed: bool) -> bool:
        task = self._find_task(index, task_id)
        if not self.tracker.set_completion(task, completed):
            return False
        self._commit(WEEK_KEYS + (codec.XP,) + PROGRESS_KEYS)
        return True

    def end_day(self, index: int) -> DayResult:
        result = self.tracker.end_day(self.tasks_for(index))
        self._commit((codec.STREAK, codec.LAST_COMPLETION_DATE) + PROGRESS_KEYS)
        return result

    def _find_task(self, index: int, task_id: UUID) -> Task:
        for task in self.week_tasks.get(check_day_index(index), []):
            if task.id == task_id:
                return task
        raise KeyError(f"task {task_id} not found on day {index}")

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def finish_onboarding(self, name: str) -> None:
        self.user_name = name.strip() or FALLBACK_USER_NAME
        self.has_onboarded = True
        self._commit((codec.USER_NAME, codec.HAS_ONBOARDED))
        self.generate_week()

    def set_wake_sleep(self, wake: time, sleep: time) -> None:
        self.wake_time = wake
        self.sleep_time = sleep
        self._commit((codec.WAKE_TIME, codec.SLEEP_TIME))

    def set_fixed_activities(self, activities: Iterable[FixedActivity]) -> None:
        self.fixed_activities = list(activities)
        self._commit((codec.FIXED_ACTIVITIES,))

    def add_fixed_activity(self) -> FixedActivity:
        activity = FixedActivity.weekly("New activity", time(hour=9), time(hour=10))
        self.fixed_activities.append(activity)
        self._commit((codec.FIXED_ACTIVITIES,))
        return activity

    def set_selected_activities(self, activities: Iterable[FreeActivity]) -> None:
        self.selected_activities = FreeActivity.ordered(activities)
        self._commit((codec.SELECTED_ACTIVITIES,))

    def add_custom_preference(self, name: str) -> bool:
        trimmed = name.strip()
        if not trimmed or trimmed in self.custom_preferences:
            return False
        self.custom_preferences.append(trimmed)
        self._commit((codec.CUSTOM_PREFERENCES,))
        return True

    def set_custom_preferences(self, names: Iterable[str]) -> None:
        cleaned: List[str] = []
        for name in names:
            trimmed = name.strip()
            if trimmed and trimmed not in cleaned:
                cleaned.append(trimmed)
        self.custom_preferences = cleaned
        self._commit((codec.CUSTOM_PREFERENCES,))

    def remove_custom_preference(self, name: str) -> bool:
        if name not in self.custom_preferences:
            return False
        self.custom_preferences = [pref for pref in self.custom_preferences if pref != name]
        self._commit((codec.CUSTOM_PREFERENCES,))
        return True

    def set_auto_schedule(self, enabled: bool) -> None:
        self.auto_schedule = enabled
        self._commit((codec.AUTO_SCHEDULE,))

    def save_template(
        self,
        title: str,
        duration: timedelta,
        activity: Optional[FreeActivity] = None,
    ) -> Optional[TaskTemplate]:
        trimmed = title.strip()
        if not trimmed or duration <= timedelta(0):
            return None
        template = TaskTemplate(title=trimmed, default_duration=duration, type=activity)
        self.task_templates.append(template)
        self._commit((codec.TASK_TEMPLATES,))
        return template

    def delete_templates(self, indices: Iterable[int]) -> int:
        doomed = {idx for idx in indices if 0 <= idx < len(self.task_templates)}
        if not doomed:
            return 0
        self.task_templates = [tpl for idx, tpl in enumerate(self.task_templates) if idx not in doomed]
        self._commit((codec.TASK_TEMPLATES,))
        return len(doomed)

    def set_weekly_goal(self, activity: FreeActivity, hours: float) -> float:
        value = self.tracker.set_weekly_goal(activity, hours)
        self._commit((codec.WEEKLY_GOALS,))
        return value

    def set_custom_goal(self, name: str, hours: float) -> float:
        value = self.tracker.set_custom_goal(name, hours)
        self._commit((codec.WEEKLY_GOALS_CUSTOM,))
        return value

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def today_index(self) -> int:
        return weekday_index(self.clock.today())

    def schedule_alerts_for_today(self) -> List[TaskAlert]:
        tasks = self.week_tasks.get(self.today_index(), [])
        self.last_alerts = schedule_task_alerts(self.notifier, tasks, self.clock.now())
        return self.last_alerts


def _week_bounds(week_start: date) -> Tuple[datetime, datetime]:
    opens = datetime.combine(week_start, time())
    return opens, opens + timedelta(days=DAYS_PER_WEEK)


def _tasks_within_week(week_tasks: WeekTasks, week_start: date) -> bool:
    opens, closes = _week_bounds(week_start)
    return all(opens <= task.start < closes for tasks in week_tasks.values() for task in tasks)
