"""LiveTranslate Exception Hierarchy.

Provides structured exception classes for better error handling.

Hierarchy:
    LiveTranslateError (base)
    ├── SessionError
    │   └── SessionStateError
    ├── TranscriptionError
    │   ├── TranscriptionConnectionError
    │   └── TranscriptionProtocolError
    ├── TranslationError
    └── SynthesisError
"""

from typing import Any


class LiveTranslateError(Exception):
    """Base exception for all LiveTranslate errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the error can be recovered from
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# Session Errors
# =============================================================================


class SessionError(LiveTranslateError):
    """Base exception for session-related errors."""

    def __init__(
        self,
        message: str,
        session_id: str | None = None,
        details: dict[str, Any] | None = None,
        recoverable: bool = False,
    ) -> None:
        details = details or {}
        if session_id:
            details["session_id"] = session_id
        super().__init__(message, details, recoverable)
        self.session_id = session_id


class SessionStateError(SessionError):
    """Raised for invalid session state transitions."""

    def __init__(
        self,
        message: str,
        session_id: str | None = None,
        current_state: str | None = None,
        target_state: str | None = None,
    ) -> None:
        details = {}
        if current_state:
            details["current_state"] = current_state
        if target_state:
            details["target_state"] = target_state
        super().__init__(message, session_id, details, recoverable=False)


# =============================================================================
# Transcription Errors
# =============================================================================


class TranscriptionError(LiveTranslateError):
    """Base exception for upstream transcription errors."""

    pass


class TranscriptionConnectionError(TranscriptionError):
    """Raised when the transcription service connection fails."""

    def __init__(self, service: str, reason: str) -> None:
        super().__init__(
            message=reason,
            details={"service": service},
            recoverable=True,  # Client may issue a fresh start
        )
        self.service = service

    def __str__(self) -> str:
        return self.message


class TranscriptionProtocolError(TranscriptionError):
    """Raised when an upstream message cannot be decoded."""

    def __init__(self, reason: str, raw: str | None = None) -> None:
        details: dict[str, Any] = {"reason": reason}
        if raw is not None:
            details["raw"] = raw[:200]
        super().__init__(
            message=f"Malformed transcription message: {reason}",
            details=details,
            recoverable=True,
        )


# =============================================================================
# Translation / Synthesis Errors
# =============================================================================


class TranslationError(LiveTranslateError):
    """Raised when a translation call fails."""

    def __init__(
        self,
        reason: str,
        source_lang: str | None = None,
        target_lang: str | None = None,
        model: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if source_lang:
            details["source_lang"] = source_lang
        if target_lang:
            details["target_lang"] = target_lang
        if model:
            details["model"] = model
        super().__init__(
            message=f"Translation failed: {reason}",
            details=details,
            recoverable=True,  # Next turn may succeed
        )

    def __str__(self) -> str:
        return self.message


class SynthesisError(LiveTranslateError):
    """Raised when speech synthesis fails."""

    def __init__(
        self,
        reason: str,
        text_length: int | None = None,
        voice: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if text_length is not None:
            details["text_length"] = text_length
        if voice:
            details["voice"] = voice
        super().__init__(
            message=f"Speech synthesis failed: {reason}",
            details=details,
            recoverable=True,
        )

    def __str__(self) -> str:
        return self.message
