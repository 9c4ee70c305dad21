"""
Custom exceptions for tabi-box.

Every error raised by the services carries an ErrorCode and a localized
message that is safe to show next to the form that triggered it.

Usage:
    from app.core.errors import NotFoundError, ErrorCode

    raise NotFoundError("No trip for share id abc12345", code=ErrorCode.TRIP_NOT_FOUND)
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Error codes for client-facing error messages."""

    # Lookup errors
    TRIP_NOT_FOUND = "TRIP_NOT_FOUND"
    MEMBER_NOT_FOUND = "MEMBER_NOT_FOUND"
    RESERVATION_NOT_FOUND = "RESERVATION_NOT_FOUND"
    ATTACHMENT_NOT_FOUND = "ATTACHMENT_NOT_FOUND"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIRMATION_REQUIRED = "CONFIRMATION_REQUIRED"

    # Data store errors
    WRITE_FAILED = "WRITE_FAILED"
    LOAD_FAILED = "LOAD_FAILED"
    UPLOAD_FAILED = "UPLOAD_FAILED"

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


USER_MESSAGES: Dict[ErrorCode, str] = {
    ErrorCode.TRIP_NOT_FOUND: "旅行が見つかりませんでした",
    ErrorCode.MEMBER_NOT_FOUND: "メンバーが見つかりませんでした",
    ErrorCode.RESERVATION_NOT_FOUND: "予約が見つかりませんでした",
    ErrorCode.ATTACHMENT_NOT_FOUND: "添付ファイルが見つかりませんでした",
    ErrorCode.VALIDATION_ERROR: "入力内容を確認してください",
    ErrorCode.CONFIRMATION_REQUIRED: "削除するには確認が必要です",
    ErrorCode.WRITE_FAILED: "保存に失敗しました。もう一度お試しください。",
    ErrorCode.LOAD_FAILED: "データの取得に失敗しました",
    ErrorCode.UPLOAD_FAILED: "ファイルのアップロードに失敗しました",
    ErrorCode.INTERNAL_ERROR: "予期しないエラーが発生しました",
}


class TabiBoxError(Exception):
    """Base exception for all tabi-box errors."""

    status_code = 500

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INTERNAL_ERROR):
        self.message = message
        self.code = code
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return USER_MESSAGES.get(self.code, USER_MESSAGES[ErrorCode.INTERNAL_ERROR])

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code.value, "message": self.message}


class NotFoundError(TabiBoxError):
    """Share id or child id does not resolve inside the trip."""

    status_code = 404

    def __init__(self, message: str, code: ErrorCode = ErrorCode.TRIP_NOT_FOUND):
        super().__init__(message, code)


class ValidationError(TabiBoxError):
    """Input rejected before any write was attempted."""

    status_code = 400

    def __init__(self, message: str, code: ErrorCode = ErrorCode.VALIDATION_ERROR):
        super().__init__(message, code)


class ConfirmationRequired(ValidationError):
    """Destructive operation requested without confirmation."""

    status_code = 428

    def __init__(self, message: str):
        super().__init__(message, code=ErrorCode.CONFIRMATION_REQUIRED)


class WriteFailure(TabiBoxError):
    """An insert, update or delete against the data store failed."""

    def __init__(
        self,
        message: str,
        reservation_id: Optional[int] = None,
        code: ErrorCode = ErrorCode.WRITE_FAILED,
    ):
        self.reservation_id = reservation_id
        super().__init__(message, code)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.reservation_id is not None:
            data["reservation_id"] = self.reservation_id
        return data


class LoadError(TabiBoxError):
    """Loading the trip aggregate failed part way."""

    def __init__(self, message: str):
        super().__init__(message, code=ErrorCode.LOAD_FAILED)


class UploadFailure(TabiBoxError):
    """A single file could not be stored. Recorded per file, never fatal."""

    def __init__(self, message: str, file_name: str):
        self.file_name = file_name
        super().__init__(message, code=ErrorCode.UPLOAD_FAILED)
