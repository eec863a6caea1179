"""Turn interpretation - utterance tracking and pipeline trigger rules.

The streaming service reports each utterance several times: interim
partials, a raw end-of-turn report, then a formatted end-of-turn report.
Only the formatted one may trigger translation.
"""

import time
from dataclasses import dataclass
from typing import Callable

from livetranslate.config.session import SessionConfig
from livetranslate.transcription.events import TurnEvent


@dataclass(frozen=True)
class TurnObservation:
    """What a single turn report means for utterance tracking."""

    new_utterance: bool = False
    stt_latency_ms: int | None = None
    first_end_of_turn: bool = False


class TurnTracker:
    """Tracks utterance boundaries across turn reports for one session.

    A report opens a new utterance when the previous report was end-of-turn
    and this one is not. End-of-turn reports yield an STT latency sample
    measured from the utterance start. The start is kept through the raw
    end-of-turn report and its formatted follow-up, then cleared, so an
    utterance first reported as end-of-turn carries no latency. Reports with
    empty transcripts do not move the tracker.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._last_was_end_of_turn = True
        self._awaiting_formatted = False
        self._utterance_started_at: float | None = None

    @property
    def in_utterance(self) -> bool:
        return not self._last_was_end_of_turn

    def reset(self) -> None:
        self._last_was_end_of_turn = True
        self._awaiting_formatted = False
        self._utterance_started_at = None

    def observe(self, turn: TurnEvent) -> TurnObservation:
        if not turn.transcript:
            return TurnObservation()

        new_utterance = self._last_was_end_of_turn and not turn.end_of_turn
        if new_utterance:
            self._utterance_started_at = self._clock()

        first_end_of_turn = turn.end_of_turn and not self._last_was_end_of_turn
        formatted_follow_up = turn.turn_is_formatted and self._awaiting_formatted
        if turn.end_of_turn and not first_end_of_turn and not formatted_follow_up:
            # Utterance opened directly at end-of-turn; its start was never seen
            self._utterance_started_at = None

        self._last_was_end_of_turn = turn.end_of_turn

        stt_latency_ms = None
        if turn.end_of_turn and self._utterance_started_at is not None:
            stt_latency_ms = round((self._clock() - self._utterance_started_at) * 1000)

        self._awaiting_formatted = first_end_of_turn and not turn.turn_is_formatted
        if turn.end_of_turn and not self._awaiting_formatted:
            self._utterance_started_at = None

        return TurnObservation(
            new_utterance=new_utterance,
            stt_latency_ms=stt_latency_ms,
            first_end_of_turn=first_end_of_turn,
        )


def should_translate(turn: TurnEvent) -> bool:
    """Whether this report triggers translate + synthesize.

    Only the formatted end-of-turn report with non-blank text qualifies, so
    each utterance is translated at most once.
    """
    return turn.end_of_turn and turn.turn_is_formatted and bool(turn.transcript.strip())


def resolve_languages(turn: TurnEvent, config: SessionConfig) -> tuple[str, str]:
    """Source and target language for a turn.

    Source is the detected language, or language A when detection is absent.
    Target is whichever configured language is not the source.
    """
    source = turn.language_code or config.language_a
    target = config.language_b if source == config.language_a else config.language_a
    return source, target
