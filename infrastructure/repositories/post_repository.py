"""
帖子与评论仓储实现 - 使用SQLAlchemy实现数据访问
"""
from typing import Optional, List

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from domain.post.entity import Post
from domain.post.repository import PostRepository
from domain.comment.entity import Comment
from domain.comment.repository import CommentRepository
from domain.common.exceptions import PostNotFoundException
from infrastructure.models.post import PostModel, CommentModel


class SQLAlchemyPostRepository(PostRepository):
    """帖子仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: PostModel) -> Post:
        return Post(
            id=model.id,
            title=model.title,
            content=model.content,
            author_id=model.author_id,
            category_id=model.category_id,
            is_pinned=model.is_pinned,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def _get_model(self, post_id: str) -> Optional[PostModel]:
        result = await self.session.execute(
            select(PostModel).where(PostModel.id == post_id)
        )
        return result.scalar_one_or_none()

    async def create(self, post: Post) -> Post:
        db_post = PostModel(
            id=post.id,
            title=post.title,
            content=post.content,
            author_id=post.author_id,
            category_id=post.category_id,
            is_pinned=post.is_pinned,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )
        self.session.add(db_post)
        await self.session.flush()
        await self.session.refresh(db_post)
        return self._to_entity(db_post)

    async def get_by_id(self, post_id: str) -> Optional[Post]:
        db_post = await self._get_model(post_id)
        return self._to_entity(db_post) if db_post else None

    async def get_all(self, limit: int = 50, offset: int = 0,
                      category_id: Optional[str] = None) -> List[Post]:
        query = select(PostModel)
        if category_id:
            query = query.where(PostModel.category_id == category_id)
        # 置顶优先，其次按创建时间倒序
        query = query.order_by(
            PostModel.is_pinned.desc(),
            PostModel.created_at.desc(),
            PostModel.id.desc(),
        ).offset(offset).limit(limit)
        result = await self.session.execute(query)
        return [self._to_entity(row) for row in result.scalars().all()]

    async def count(self, category_id: Optional[str] = None) -> int:
        query = select(func.count()).select_from(PostModel)
        if category_id:
            query = query.where(PostModel.category_id == category_id)
        result = await self.session.execute(query)
        return int(result.scalar() or 0)

    async def update(self, post: Post) -> Post:
        db_post = await self._get_model(post.id)
        if not db_post:
            raise PostNotFoundException(post.id)

        db_post.title = post.title
        db_post.content = post.content
        db_post.is_pinned = post.is_pinned
        db_post.updated_at = post.updated_at

        await self.session.flush()
        await self.session.refresh(db_post)
        return self._to_entity(db_post)

    async def delete(self, post_id: str) -> bool:
        db_post = await self._get_model(post_id)
        if not db_post:
            return False

        # SQLite 默认不启用外键级联，显式删除评论
        await self.session.execute(
            delete(CommentModel).where(CommentModel.post_id == post_id)
        )
        await self.session.delete(db_post)
        await self.session.flush()
        return True


class SQLAlchemyCommentRepository(CommentRepository):
    """评论仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: CommentModel) -> Comment:
        return Comment(
            id=model.id,
            post_id=model.post_id,
            author_id=model.author_id,
            content=model.content,
            created_at=model.created_at,
        )

    async def create(self, comment: Comment) -> Comment:
        db_comment = CommentModel(
            id=comment.id,
            post_id=comment.post_id,
            author_id=comment.author_id,
            content=comment.content,
            created_at=comment.created_at,
        )
        self.session.add(db_comment)
        await self.session.flush()
        await self.session.refresh(db_comment)
        return self._to_entity(db_comment)

    async def list_by_post(self, post_id: str, limit: int = 50, offset: int = 0) -> List[Comment]:
        query = (
            select(CommentModel)
            .where(CommentModel.post_id == post_id)
            .order_by(CommentModel.created_at.asc(), CommentModel.id.asc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return [self._to_entity(row) for row in result.scalars().all()]

    async def count_by_post(self, post_id: str) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(CommentModel)
            .where(CommentModel.post_id == post_id)
        )
        return int(result.scalar() or 0)
