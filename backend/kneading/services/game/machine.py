import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from .leaderboard import LeaderboardEntry, LeaderboardGateway
from .nicknames import generate_nickname
from .scenes import (
    CountdownState,
    EntryState,
    LeaderboardState,
    PlayState,
    ResultState,
    Scene,
    StartState,
    SubmissionStatus,
)
from .session import Session, register_tap
from .submission import build_submission, fetch_leaderboard, submit_score
from .timers import TimerService

AUTO_SWITCH = 'auto_switch'
COUNTDOWN_TICK = 'countdown_tick'
PLAY_TICK = 'play_tick'

# Scenes a tap moves to Entry from
_INVITING_SCENES = (Scene.START, Scene.LEADERBOARD, Scene.RESULT)


class WrongSceneError(Exception):
    """An action was sent that the current scene does not accept."""


@dataclass(frozen=True)
class GameSettings:
    auto_switch_sec: int = 7
    countdown_start: int = 3
    game_duration_sec: int = 10
    leaderboard_size: int = 5
    feedback_pulse_ms: int = 150

    @classmethod
    def from_config(cls, config) -> 'GameSettings':
        return cls(
            auto_switch_sec=int(config.get('AUTO_SWITCH_SEC', cls.auto_switch_sec)),
            countdown_start=int(config.get('COUNTDOWN_START', cls.countdown_start)),
            game_duration_sec=int(config.get('GAME_DURATION_SEC', cls.game_duration_sec)),
            leaderboard_size=int(config.get('LEADERBOARD_SIZE', cls.leaderboard_size)),
            feedback_pulse_ms=int(config.get('FEEDBACK_PULSE_MS', cls.feedback_pulse_ms)),
        )

    def to_dict(self):
        return {
            'auto_switch_sec': self.auto_switch_sec,
            'countdown_start': self.countdown_start,
            'game_duration_sec': self.game_duration_sec,
            'leaderboard_size': self.leaderboard_size,
            'feedback_pulse_ms': self.feedback_pulse_ms,
        }


class SceneMachine:
    """Drives one kiosk through Start/Leaderboard -> Entry -> Countdown -> Play -> Result.

    - Entering a scene cancels every pending timer, then arms only the timers
      the new scene uses (auto-switch, countdown tick or play tick)
    - Each timer callback also checks that the scene it was armed for is still
      current and aborts otherwise
    - The score is submitted once, on the Play -> Result edge, guarded by
      ``Session.submitted``
    - Leaderboard fetches update the cache whenever they land and never move
      the scene

    Listeners receive ``(event, payload)`` for ``'scene_update'`` (a snapshot)
    and ``'feedback'`` (one per counted tap).
    """

    def __init__(
        self,
        timers: TimerService,
        gateway: LeaderboardGateway,
        settings: Optional[GameSettings] = None,
        logger=None,
        nickname_factory: Callable[[], str] = generate_nickname,
        clock: Callable[[], float] = time.time,
    ):
        self.timers = timers
        self.gateway = gateway
        self.settings = settings or GameSettings()
        self.logger = logger or logging.getLogger(__name__)
        self.nickname_factory = nickname_factory
        self.clock = clock
        self.state = StartState()
        self.leaderboard: List[LeaderboardEntry] = []
        self._listeners: List[Callable[[str, dict], None]] = []
        self._started = False

    @property
    def scene(self) -> Scene:
        return self.state.scene

    def add_listener(self, listener: Callable[[str, dict], None]) -> None:
        self._listeners.append(listener)

    # ---- player actions ----

    def start(self) -> None:
        """(Re)enter Start and arm the auto-switch timer."""
        with self.timers.lock:
            self._started = True
            self._enter(StartState())

    def ensure_started(self) -> bool:
        """Start the machine unless it is already running. Returns True if it started."""
        with self.timers.lock:
            if self._started:
                return False
            self.start()
            return True

    def tap(self) -> bool:
        """Handle a tap anywhere on screen. Returns True if it did something."""
        with self.timers.lock:
            if self.scene in _INVITING_SCENES:
                self._enter(EntryState())
                return True
            if self.scene is Scene.PLAY:
                counted = register_tap(self.state.session, self._feedback)
                if counted:
                    self._publish()
                return counted
            return False

    def update_form(self, fields: dict) -> None:
        with self.timers.lock:
            state = self._require(Scene.ENTRY)
            state.form.update(fields or {})
            self._publish()

    def submit_form(self, fields: Optional[dict] = None) -> Optional[str]:
        """Validate the entry form and start the countdown.

        Returns the validation message when the form is rejected; the scene
        and the fields typed so far are left as they are.
        """
        with self.timers.lock:
            state = self._require(Scene.ENTRY)
            if fields:
                state.form.update(fields)
            error = state.form.validate()
            if error:
                state.error = error
                self.logger.info(f"[validation] {error}")
                self._publish()
                return error
            state.error = None
            self._enter(CountdownState(
                form=state.form,
                session=Session(duration=self.settings.game_duration_sec),
                ticks_remaining=self.settings.countdown_start,
            ))
            return None

    def snapshot(self) -> dict:
        with self.timers.lock:
            payload = {
                'scene': self.scene.value,
                'leaderboard': [e.to_dict() for e in self.leaderboard],
                'settings': self.settings.to_dict(),
            }
            payload.update(self.state.to_dict())
            return payload

    # ---- transitions ----

    def _require(self, scene: Scene):
        if self.scene is not scene:
            raise WrongSceneError(f"Not accepted in scene '{self.scene.value}'")
        return self.state

    def _enter(self, new_state) -> None:
        previous = self.state
        self.timers.cancel_all()
        self.state = new_state
        self.logger.info(f"[scene] from={previous.scene.value} to={new_state.scene.value}")

        if new_state.scene in (Scene.START, Scene.LEADERBOARD):
            self._arm_auto_switch(new_state)
        if new_state.scene is Scene.LEADERBOARD:
            self._refresh_leaderboard()
        elif new_state.scene is Scene.COUNTDOWN:
            self.timers.every_second(lambda: self._on_countdown_tick(new_state), purpose=COUNTDOWN_TICK)
        elif new_state.scene is Scene.PLAY:
            new_state.session.begin()
            self.timers.every_second(lambda: self._on_play_tick(new_state), purpose=PLAY_TICK)
        elif new_state.scene is Scene.RESULT:
            new_state.session.finish()
            self._submit_once(new_state)

        self._publish()

    def _is_stale(self, armed_for, purpose: str) -> bool:
        if self.state is armed_for:
            return False
        self.logger.warning(
            f"[timer-abort] purpose={purpose} armed_for={armed_for.scene.value} current={self.scene.value}"
        )
        return True

    def _arm_auto_switch(self, state) -> None:
        next_state = LeaderboardState if state.scene is Scene.START else StartState

        def _switch():
            if self._is_stale(state, AUTO_SWITCH):
                return
            self.logger.info(f"[timer-fire] purpose={AUTO_SWITCH} scene={state.scene.value}")
            self._enter(next_state())

        self.timers.after(self.settings.auto_switch_sec * 1000, _switch, purpose=AUTO_SWITCH)

    def _on_countdown_tick(self, state: CountdownState) -> None:
        if self._is_stale(state, COUNTDOWN_TICK):
            return
        if state.ticks_remaining > 0:
            state.ticks_remaining -= 1
        if state.ticks_remaining == 0:
            self._enter(PlayState(form=state.form, session=state.session))
        else:
            self._publish()

    def _on_play_tick(self, state: PlayState) -> None:
        if self._is_stale(state, PLAY_TICK):
            return
        if state.session.tick():
            self._enter(ResultState(form=state.form, session=state.session))
        else:
            self._publish()

    # ---- side effects ----

    def _feedback(self) -> None:
        self._emit('feedback', {
            'pulse_ms': self.settings.feedback_pulse_ms,
            'knead_count': self.state.session.knead_count,
        })

    def _submit_once(self, state: ResultState) -> None:
        session = state.session
        if session.submitted:
            return
        session.submitted = True
        state.nickname = self.nickname_factory()
        submission = build_submission(state.form, session, state.nickname, self.clock())
        self.timers.spawn(self._run_submission, state, submission)

    def _run_submission(self, state: ResultState, submission) -> None:
        # Runs outside the lock so taps are handled while the store is busy
        stored = submit_score(self.gateway, submission, self.logger)
        with self.timers.lock:
            state.submission = SubmissionStatus.SUBMITTED if stored else SubmissionStatus.FAILED
        self._apply_leaderboard(fetch_leaderboard(self.gateway, self.settings.leaderboard_size, self.logger))

    def _refresh_leaderboard(self) -> None:
        self.timers.spawn(self._run_refresh)

    def _run_refresh(self) -> None:
        self._apply_leaderboard(fetch_leaderboard(self.gateway, self.settings.leaderboard_size, self.logger))

    def _apply_leaderboard(self, entries: Optional[List[LeaderboardEntry]]) -> None:
        with self.timers.lock:
            if entries is not None:
                self.leaderboard = entries
            self._publish()

    def _publish(self) -> None:
        self._emit('scene_update', self.snapshot())

    def _emit(self, event: str, payload: dict) -> None:
        for listener in list(self._listeners):
            # A broken screen connection must not stop the game clock
            try:
                listener(event, payload)
            except Exception:
                self.logger.exception(f"[emit-failed] event={event} scene={self.scene.value}")
