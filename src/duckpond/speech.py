from __future__ import annotations
import threading

import speech_recognition as sr

from .config import AppConfig
from .logging import get_logger

logger = get_logger(__name__)

_bridge = None


class UtteranceSlot:
    """
    Single-slot channel between the recognizer thread and the frame loop.

    `put` overwrites whatever is there; `take` returns the text and empties the
    slot, so a burst of results between two frames collapses to the newest.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._text = ""

    def put(self, text: str):
        with self._lock:
            self._text = text or ""

    def take(self) -> str:
        with self._lock:
            text, self._text = self._text, ""
        return text

    def peek(self) -> str:
        with self._lock:
            return self._text


def contains_wake_word(text: str, words) -> bool:
    low = (text or "").lower()
    return any(w.lower() in low for w in words if w)


class SpeechBridge:
    """Continuous microphone transcription feeding an UtteranceSlot."""

    def __init__(
        self,
        slot: UtteranceSlot,
        cfg: AppConfig,
        recognizer: sr.Recognizer | None = None,
        microphone=None,
    ):
        self.slot = slot
        self.cfg = cfg
        self.recognizer = recognizer
        self.microphone = microphone
        self.available = False
        self._stop = None
        try:
            if self.recognizer is None:
                self.recognizer = sr.Recognizer()
            if self.microphone is None:
                # raises AttributeError when PyAudio is not installed
                self.microphone = sr.Microphone()
            self.available = True
        except (AttributeError, OSError) as e:
            logger.warning(f"Speech recognition unavailable, quack-on-speech disabled: {e}")

    @property
    def listening(self) -> bool:
        return self._stop is not None

    def transcribe(self, audio) -> str:
        engine = getattr(self.recognizer, f"recognize_{self.cfg.speech_engine}")
        return engine(audio, language=self.cfg.speech_language)

    def on_audio(self, _recognizer, audio):
        """Runs on the recognizer's background thread."""
        try:
            text = self.transcribe(audio)
        except sr.UnknownValueError:
            logger.debug("Speech not understood")
            return
        except sr.RequestError as e:
            logger.error(f"Speech recognition error: {e}")
            return
        except Exception as e:
            # an escaping exception would end the listener thread
            logger.error(f"Speech recognition error: {e}")
            return
        logger.info(f"Heard: {text!r}")
        self.slot.put(text)

    def start(self):
        if not self.available or self.listening:
            return
        try:
            with self.microphone as source:
                self.recognizer.adjust_for_ambient_noise(source, duration=0.5)
            self._stop = self.recognizer.listen_in_background(
                self.microphone,
                self.on_audio,
                phrase_time_limit=self.cfg.speech_phrase_limit,
            )
        except OSError as e:
            logger.error(f"Could not start listening: {e}")
            return
        logger.info("Listening for speech")

    def stop(self):
        if self._stop is None:
            return
        self._stop(wait_for_stop=False)
        self._stop = None
        logger.info("Stopped listening")


def install(bridge: SpeechBridge | None):
    """Make `bridge` the target of start_listening/stop_listening."""
    global _bridge
    _bridge = bridge


def start_listening():
    if _bridge is not None:
        _bridge.start()


def stop_listening():
    if _bridge is not None:
        _bridge.stop()


def toggle_listening():
    if _bridge is None:
        return
    if _bridge.listening:
        _bridge.stop()
    else:
        _bridge.start()
