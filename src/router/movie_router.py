import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from pydantic import BaseModel, Field

from core.dependencies import get_movie_repository, require_role
from model.movie import ImageOutcome, Movie
from model.pagination import DEFAULT_LIMIT, MAX_LIMIT, Pagination
from model.user import Role, User
from repository.movie_repository import MovieRepository
from service import movie_service

router = APIRouter(prefix="/v1/movies", tags=["movies"])

require_admin = require_role(Role.ADMIN_LEVEL_1)


# --- 요청/응답 스키마 ---

class MovieUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    duration: int | None = Field(default=None, gt=0)
    indicative_rating_id: uuid.UUID | None = None


class IndicativeRatingResponse(BaseModel):
    id: uuid.UUID
    description: str
    image_url: str


class MovieImageResponse(BaseModel):
    id: uuid.UUID
    image_url: str


class MovieResponse(BaseModel):
    id: uuid.UUID
    title: str
    duration: int
    indicative_rating: IndicativeRatingResponse | None = None
    images: list[MovieImageResponse] = []
    created_at: datetime


class ImageEventResponse(BaseModel):
    task_id: uuid.UUID | None
    outcome: ImageOutcome
    detail: str | None
    external_id: str | None
    created_at: datetime


def _movie_response(movie: Movie, repo: MovieRepository) -> MovieResponse:
    rating = repo.get_indicative_rating(movie.indicative_rating_id)
    return MovieResponse(
        id=movie.id,
        title=movie.title,
        duration=movie.duration,
        indicative_rating=(
            IndicativeRatingResponse.model_validate(rating, from_attributes=True) if rating else None
        ),
        images=[
            MovieImageResponse.model_validate(img, from_attributes=True)
            for img in repo.get_images(movie.id)
        ],
        created_at=movie.created_at,
    )


# --- 엔드포인트 ---

@router.get("/indicative-ratings", response_model=list[IndicativeRatingResponse])
def list_indicative_ratings(repo: MovieRepository = Depends(get_movie_repository)):
    return [
        IndicativeRatingResponse.model_validate(r, from_attributes=True)
        for r in repo.get_all_indicative_ratings()
    ]


@router.post("", response_model=MovieResponse, status_code=status.HTTP_201_CREATED)
def create_movie(
    title: str = Form(..., min_length=1, max_length=255),
    duration: int = Form(..., gt=0),
    indicative_rating_id: uuid.UUID = Form(...),
    images: list[UploadFile] | None = File(default=None),
    current_user: User = Depends(require_admin),
    repo: MovieRepository = Depends(get_movie_repository),
):
    """영화 생성. 이미지는 큐에 넣기만 하고 업로드를 기다리지 않는다.

    응답의 images는 비어 있다. 업로드 결과는 GET /{id} 또는
    GET /{id}/image-events 로 나중에 확인한다.
    """
    movie = movie_service.create_movie(
        repo, current_user, title, duration, indicative_rating_id, images or []
    )
    return _movie_response(movie, repo)


@router.get("")
def list_movies(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    current_user: User = Depends(require_admin),
    repo: MovieRepository = Depends(get_movie_repository),
):
    result = movie_service.list_movies(repo, current_user, Pagination(page=page, limit=limit))
    return result.model_copy(update={"rows": [_movie_response(m, repo) for m in result.rows]})


@router.get("/{movie_id}", response_model=MovieResponse)
def get_movie(
    movie_id: uuid.UUID,
    current_user: User = Depends(require_admin),
    repo: MovieRepository = Depends(get_movie_repository),
):
    return _movie_response(movie_service.get_owned_movie(repo, movie_id, current_user), repo)


@router.put("/{movie_id}", response_model=MovieResponse)
def update_movie(
    movie_id: uuid.UUID,
    req: MovieUpdateRequest,
    current_user: User = Depends(require_admin),
    repo: MovieRepository = Depends(get_movie_repository),
):
    updates = req.model_dump(exclude_none=True)
    movie = movie_service.update_movie(repo, movie_id, current_user, updates)
    return _movie_response(movie, repo)


@router.delete("/{movie_id}")
def delete_movie(
    movie_id: uuid.UUID,
    current_user: User = Depends(require_admin),
    repo: MovieRepository = Depends(get_movie_repository),
):
    scheduled = movie_service.delete_movie(repo, movie_id, current_user)
    return {"detail": "Deleted", "image_deletions_queued": scheduled}


@router.delete("/{movie_id}/images/{image_id}", status_code=status.HTTP_202_ACCEPTED)
def delete_movie_image(
    movie_id: uuid.UUID,
    image_id: uuid.UUID,
    current_user: User = Depends(require_admin),
    repo: MovieRepository = Depends(get_movie_repository),
):
    task = movie_service.delete_movie_image(repo, movie_id, image_id, current_user)
    return {"detail": "Image deletion queued", "task_id": task.id}


@router.get("/{movie_id}/image-events", response_model=list[ImageEventResponse])
def list_image_events(
    movie_id: uuid.UUID,
    current_user: User = Depends(require_admin),
    repo: MovieRepository = Depends(get_movie_repository),
):
    """이미지 파이프라인 처리 결과 (큐 적재, 업로드, 실패, 삭제 ...)."""
    return [
        ImageEventResponse.model_validate(e, from_attributes=True)
        for e in movie_service.get_image_events(repo, movie_id, current_user)
    ]
