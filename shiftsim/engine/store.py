"""Keyed publish/subscribe state store."""

import logging
from collections.abc import Mapping
from typing import Any, Callable, Optional, Union

from shiftsim.models.actions import (
    Action,
    ActivateTask,
    CompleteTask,
    ExpireTask,
    GameOver,
    InitializeGame,
    ReachCheckpoint,
    RegisterPatient,
    RegisterTask,
    TogglePause,
    UpdateTime,
    build_action,
)
from shiftsim.models.shift import GameStatus
from shiftsim.models.state import STATE_KEYS, StoreState
from shiftsim.models.task import Task, TaskStatus

logger = logging.getLogger(__name__)

WILDCARD = "*"
TASK_KEY_PREFIX = "task:"

Subscriber = Callable[[Any, Any], None]


def task_key(task_id: str) -> str:
    """Subscription key for a single task."""
    return f"{TASK_KEY_PREFIX}{task_id}"


def _changed(old: Any, new: Any) -> bool:
    return old is not new and old != new


def _transition_task(
    state: StoreState, task_id: str, expected: TaskStatus, target: TaskStatus, action_name: str
) -> StoreState:
    """Move one task between statuses, keeping active_task_ids in step."""
    task = state.tasks.get(task_id)
    if task is None:
        logger.warning(f"{action_name}: task {task_id} not found")
        return state
    if task.status != expected:
        logger.warning(
            f"{action_name}: task {task_id} is {task.status.value}, expected {expected.value}"
        )
        return state

    new_tasks = dict(state.tasks)
    new_tasks[task_id] = task.with_status(target)
    if target == TaskStatus.ACTIVE:
        new_active = state.active_task_ids | {task_id}
    else:
        new_active = state.active_task_ids - {task_id}
    return state.model_copy(update={"tasks": new_tasks, "active_task_ids": new_active})


def reduce(state: StoreState, action: Action) -> StoreState:
    """
    Compute the next state for an action.

    Returns the same state object when the action does not apply, and new
    container instances for every field it changes.
    """
    match action:
        case InitializeGame(start_time=start_time):
            return state.model_copy(
                update={
                    "game_status": GameStatus.RUNNING,
                    "current_time": start_time,
                    "current_seconds": 0,
                    "is_paused": False,
                    "last_checkpoint": None,
                }
            )

        case UpdateTime(time=time, seconds=seconds):
            if time == state.current_time and seconds == state.current_seconds:
                return state
            return state.model_copy(update={"current_time": time, "current_seconds": seconds})

        case TogglePause():
            if state.game_status in (GameStatus.INITIALIZING, GameStatus.GAME_OVER):
                logger.warning(f"TOGGLE_PAUSE ignored while {state.game_status.value}")
                return state
            is_paused = not state.is_paused
            return state.model_copy(
                update={
                    "is_paused": is_paused,
                    "game_status": GameStatus.PAUSED if is_paused else GameStatus.RUNNING,
                }
            )

        case ActivateTask(task_id=task_id):
            return _transition_task(state, task_id, TaskStatus.NOT_YET, TaskStatus.ACTIVE, "ACTIVATE_TASK")

        case CompleteTask(task_id=task_id):
            return _transition_task(state, task_id, TaskStatus.ACTIVE, TaskStatus.COMPLETED, "COMPLETE_TASK")

        case ExpireTask(task_id=task_id):
            return _transition_task(state, task_id, TaskStatus.ACTIVE, TaskStatus.OVERDUE, "EXPIRE_TASK")

        case RegisterTask(task=task):
            if task.task_id in state.tasks:
                logger.warning(f"REGISTER_TASK: task {task.task_id} is already registered")
                return state
            new_tasks = dict(state.tasks)
            new_tasks[task.task_id] = task
            update: dict[str, Any] = {"tasks": new_tasks}
            if task.status == TaskStatus.ACTIVE:
                update["active_task_ids"] = state.active_task_ids | {task.task_id}
            return state.model_copy(update=update)

        case RegisterPatient(patient=patient):
            new_patients = dict(state.patients)
            new_patients[patient.patient_id] = patient
            return state.model_copy(update={"patients": new_patients})

        case ReachCheckpoint(time=time):
            return state.model_copy(update={"last_checkpoint": time})

        case GameOver():
            if state.game_status == GameStatus.GAME_OVER:
                return state
            return state.model_copy(update={"game_status": GameStatus.GAME_OVER})

        case _:
            logger.warning(f"No reducer for action {action!r}")
            return state


class StateStore:
    """Holds the shift state and notifies subscribers of per-key changes."""

    def __init__(self, initial_state: Optional[StoreState] = None) -> None:
        """
        Initialize store.

        Args:
            initial_state: Optional starting state
        """
        self._state = initial_state or StoreState()
        self._subscribers: dict[str, list[Subscriber]] = {}

    @property
    def state(self) -> StoreState:
        """Get current state."""
        return self._state

    def get(self, key: str) -> Any:
        """Get one slice of the state by key."""
        if key not in STATE_KEYS:
            raise KeyError(f"Unknown state key: {key}")
        return getattr(self._state, key)

    def get_task(self, task_id: str) -> Optional[Task]:
        """Get a task by id."""
        return self._state.tasks.get(task_id)

    def subscribe(self, key: str, callback: Subscriber) -> Callable[[], None]:
        """
        Register interest in one state key.

        Args:
            key: A StoreState field name, task_key(task_id), or "*" for the whole state
            callback: Called with (new_value, old_value) after a change

        Returns:
            Function that removes the subscription

        Raises:
            ValueError: If the key is not subscribable
        """
        if key != WILDCARD and key not in STATE_KEYS and not key.startswith(TASK_KEY_PREFIX):
            raise ValueError(f"Cannot subscribe to unknown state key: {key}")

        self._subscribers.setdefault(key, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(key)
            if callbacks and callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def dispatch(
        self, action: Union[Action, str], payload: Optional[Mapping[str, Any]] = None
    ) -> StoreState:
        """
        Apply an action and notify subscribers.

        Args:
            action: A typed action, or an action type tag
            payload: Action fields when a type tag is given

        Returns:
            The state after the action
        """
        if isinstance(action, str):
            typed_action = build_action(action, payload)
            if typed_action is None:
                logger.warning(f"Action {action} not found")
                return self._state
            action = typed_action

        old_state = self._state
        new_state = reduce(old_state, action)
        self._state = new_state

        if new_state is not old_state:
            self._notify(old_state, new_state)
        return new_state

    def _notify(self, old_state: StoreState, new_state: StoreState) -> None:
        """Notify subscribers of the keys that changed."""
        any_changed = False
        for key in STATE_KEYS:
            old_value = getattr(old_state, key)
            new_value = getattr(new_state, key)
            if not _changed(old_value, new_value):
                continue
            any_changed = True
            for callback in list(self._subscribers.get(key, ())):
                callback(new_value, old_value)

        if _changed(old_state.tasks, new_state.tasks):
            for key, callbacks in list(self._subscribers.items()):
                if not key.startswith(TASK_KEY_PREFIX) or not callbacks:
                    continue
                task_id = key[len(TASK_KEY_PREFIX):]
                old_task = old_state.tasks.get(task_id)
                new_task = new_state.tasks.get(task_id)
                if _changed(old_task, new_task):
                    for callback in list(callbacks):
                        callback(new_task, old_task)

        if any_changed:
            for callback in list(self._subscribers.get(WILDCARD, ())):
                callback(new_state, old_state)
