from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # 앱 설정
    APP_NAME: str = "movie-pass"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # true면 한 줄짜리 JSON 로그 (로그 수집기용)

    # 서버 설정
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # DB / Redis 설정
    DATABASE_URL: str = "sqlite:///./movie_pass.db"
    REDIS_URL: str = "redis://localhost:6379/0"

    # JWT + 세션 설정
    JWT_SECRET_KEY: str = "dev-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60 * 24
    SESSION_EXPIRE_HOURS: int = 24

    # 외부 이미지 저장소 (Cloudflare Images 호환 API)
    IMAGE_STORE_ENDPOINT: str = "https://api.cloudflare.com/client/v4/accounts/change-me/images/v1"
    IMAGE_STORE_API_KEY: str = ""
    IMAGE_STORE_TIMEOUT_SECONDS: float = 30.0

    # 작업 큐 + 워커 설정
    UPLOAD_QUEUE_NAME: str = "image_upload_queue"
    DELETE_QUEUE_NAME: str = "image_delete_queue"
    WORKER_POLL_FLOOR_SECONDS: float = 5.0
    WORKER_POLL_CEILING_SECONDS: float = 60.0
    WORKER_MAX_ATTEMPTS: int = 3
    RUN_WORKERS_IN_APP: bool = False

    # 영화 생성 시 허용하는 최대 이미지 수
    MAX_MOVIE_IMAGES: int = 10

    # 최초 기동 시 생성할 최고 관리자 (둘 다 비어 있으면 생략)
    SUPERADMIN_EMAIL: str | None = None
    SUPERADMIN_PASSWORD: str | None = None

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
