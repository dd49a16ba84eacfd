"""
도메인 예외 정의

모든 예외는 AppError를 상속하며 HTTP 상태 코드와 에러 코드를 가진다.
Web 계층은 AppError를 그대로 응답으로 변환한다.
"""


class AppError(Exception):
    """애플리케이션 예외 기본 클래스

    HTTP 상태 코드는 하위 클래스의 status_code 클래스 속성으로 정해진다.

    Args:
        message: 사용자에게 전달할 메시지 (없으면 default_message)
        code: 에러 코드 (응답 본문의 code, 없으면 default_code)
    """

    status_code: int = 500
    default_code: str = "INTERNAL_ERROR"
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, code: str | None = None):
        self.message = message or self.default_message
        self.code = code or self.default_code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, object]:
        """응답 본문 형태로 변환"""
        return {
            "success": False,
            "message": self.message,
            "code": self.code,
        }


class ValidationError(AppError):
    """입력값 오류 (형식 불일치, 음수 금액, 자기 자신으로의 이체 등)"""

    status_code = 400
    default_code = "VALIDATION_ERROR"
    default_message = "Validation error"


class InsufficientHoldingError(ValidationError):
    """보유 수량 부족 (보유량보다 많은 매도)"""

    default_code = "INSUFFICIENT_HOLDING"
    default_message = "Insufficient holding units"


class UnauthorizedError(AppError):
    """인증 정보 없음"""

    status_code = 401
    default_code = "UNAUTHORIZED"
    default_message = "Unauthorized"


class ForbiddenError(AppError):
    """다른 사용자의 리소스 접근"""

    status_code = 403
    default_code = "FORBIDDEN"
    default_message = "Forbidden"


class NotFoundError(AppError):
    """참조한 리소스 없음"""

    status_code = 404
    default_code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(AppError):
    """유니크 제약 위반"""

    status_code = 409
    default_code = "DUPLICATE_ENTRY"
    default_message = "Resource already exists"
