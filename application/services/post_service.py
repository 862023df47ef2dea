"""
帖子与评论应用服务 - 常规 CRUD 编排
"""
from typing import Callable, Optional

from domain.post.entity import Post
from domain.comment.entity import Comment
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.common.exceptions import PostNotFoundException, ValidationException
from application.dto import (
    PostCreateDTO, PostUpdateDTO, PostResponseDTO, PostListDTO,
    CommentCreateDTO, CommentResponseDTO, CommentListDTO,
)
from core.config import settings
from core.logging_config import get_logger


logger = get_logger(__name__)


def _clamp(limit: int, offset: int) -> tuple:
    if limit <= 0:
        limit = settings.DEFAULT_PAGE_SIZE
    return min(limit, settings.MAX_PAGE_SIZE), max(offset, 0)


class PostApplicationService:
    """帖子应用服务"""

    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork]):
        self._uow_factory = uow_factory

    async def create_post(self, data: PostCreateDTO, author_id: str) -> PostResponseDTO:
        try:
            post = Post(
                title=data.title,
                content=data.content,
                author_id=author_id,
                category_id=data.category_id,
            )
        except ValueError as exc:
            raise ValidationException(str(exc))

        async with self._uow_factory() as uow:
            created = await uow.post_repository.create(post)
        logger.info("post_created", post_id=created.id, author_id=author_id)
        return PostResponseDTO.model_validate(created)

    async def get_post(self, post_id: str) -> PostResponseDTO:
        async with self._uow_factory(readonly=True) as uow:
            post = await uow.post_repository.get_by_id(post_id)
        if not post:
            raise PostNotFoundException(post_id)
        return PostResponseDTO.model_validate(post)

    async def list_posts(self, limit: int = 0, offset: int = 0,
                         category_id: Optional[str] = None) -> PostListDTO:
        limit, offset = _clamp(limit, offset)
        async with self._uow_factory(readonly=True) as uow:
            posts = await uow.post_repository.get_all(limit, offset, category_id)
            total = await uow.post_repository.count(category_id)
        return PostListDTO(
            items=[PostResponseDTO.model_validate(p) for p in posts],
            total=total,
        )

    async def update_post(self, post_id: str, data: PostUpdateDTO) -> PostResponseDTO:
        async with self._uow_factory() as uow:
            post = await uow.post_repository.get_by_id(post_id)
            if not post:
                raise PostNotFoundException(post_id)
            try:
                post.edit(data.title, data.content)
            except ValueError as exc:
                raise ValidationException(str(exc))
            updated = await uow.post_repository.update(post)
        logger.info("post_updated", post_id=post_id)
        return PostResponseDTO.model_validate(updated)

    async def delete_post(self, post_id: str) -> None:
        async with self._uow_factory() as uow:
            deleted = await uow.post_repository.delete(post_id)
        if not deleted:
            raise PostNotFoundException(post_id)
        logger.info("post_deleted", post_id=post_id)

    # -------------------- Comments --------------------

    async def add_comment(self, post_id: str, data: CommentCreateDTO, author_id: str) -> CommentResponseDTO:
        try:
            comment = Comment(post_id=post_id, author_id=author_id, content=data.content)
        except ValueError as exc:
            raise ValidationException(str(exc), field="content")

        async with self._uow_factory() as uow:
            if not await uow.post_repository.get_by_id(post_id):
                raise PostNotFoundException(post_id)
            created = await uow.comment_repository.create(comment)
        logger.info("comment_created", comment_id=created.id, post_id=post_id, author_id=author_id)
        return CommentResponseDTO.model_validate(created)

    async def list_comments(self, post_id: str, limit: int = 0, offset: int = 0) -> CommentListDTO:
        limit, offset = _clamp(limit, offset)
        async with self._uow_factory(readonly=True) as uow:
            if not await uow.post_repository.get_by_id(post_id):
                raise PostNotFoundException(post_id)
            comments = await uow.comment_repository.list_by_post(post_id, limit, offset)
            total = await uow.comment_repository.count_by_post(post_id)
        return CommentListDTO(
            items=[CommentResponseDTO.model_validate(c) for c in comments],
            total=total,
        )
