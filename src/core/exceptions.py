"""앱 전역 커스텀 예외 클래스.

AppException을 상속하면 전역 핸들러(error_handlers.py)가 자동으로
{"error_code": "...", "message": "..."} 형식의 JSON 응답을 생성한다.

이미지 파이프라인(큐, 외부 저장소) 오류는 HTTP 응답으로 나가지 않으므로
여기가 아니라 각 모듈(repository.task_queue, client.image_store)에 있다.
"""


class AppException(Exception):
    """앱 전역 베이스 예외.

    서브클래스에서 status_code, error_code, message를 클래스 변수로 정의하면
    전역 핸들러가 해당 값을 읽어 HTTP 응답을 생성한다.
    """

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    message: str = "서버 내부 오류가 발생했습니다"

    def __init__(self, message: str | None = None):
        if message:
            self.message = message
        super().__init__(self.message)


class InvalidPayload(AppException):
    status_code = 422
    error_code = "INVALID_PAYLOAD"
    message = "요청 값이 올바르지 않습니다"


# --- 인증 관련 ---


class DuplicateEmail(AppException):
    status_code = 409
    error_code = "DUPLICATE_EMAIL"
    message = "이미 등록된 이메일입니다"


class InvalidCredentials(AppException):
    status_code = 401
    error_code = "INVALID_CREDENTIALS"
    message = "이메일 또는 패스워드가 올바르지 않습니다"


class InvalidToken(AppException):
    status_code = 401
    error_code = "INVALID_TOKEN"
    message = "유효하지 않거나 만료된 토큰입니다"


class Forbidden(AppException):
    status_code = 403
    error_code = "FORBIDDEN"
    message = "접근 권한이 없습니다"


# --- 영화관 관련 ---


class CinemaNotFound(AppException):
    status_code = 404
    error_code = "CINEMA_NOT_FOUND"
    message = "영화관을 찾을 수 없습니다"


class RoomNotFound(AppException):
    status_code = 404
    error_code = "ROOM_NOT_FOUND"
    message = "상영관을 찾을 수 없습니다"


# --- 영화 관련 ---


class MovieNotFound(AppException):
    status_code = 404
    error_code = "MOVIE_NOT_FOUND"
    message = "영화를 찾을 수 없습니다"


class MovieImageNotFound(AppException):
    status_code = 404
    error_code = "MOVIE_IMAGE_NOT_FOUND"
    message = "영화 이미지를 찾을 수 없습니다"


class IndicativeRatingNotFound(AppException):
    status_code = 400
    error_code = "INDICATIVE_RATING_NOT_FOUND"
    message = "존재하지 않는 관람 등급입니다"


class TooManyImages(AppException):
    status_code = 422
    error_code = "TOO_MANY_IMAGES"
    message = "첨부할 수 있는 이미지 수를 초과했습니다"


class InvalidImage(AppException):
    status_code = 422
    error_code = "INVALID_IMAGE"
    message = "이미지 파일만 첨부할 수 있습니다"


class QueueUnavailable(AppException):
    status_code = 503
    error_code = "QUEUE_UNAVAILABLE"
    message = "작업 큐에 연결할 수 없습니다. 잠시 후 다시 시도해주세요"
