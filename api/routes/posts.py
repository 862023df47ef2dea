"""
帖子与评论API路由 - FastAPI表现层
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from application.dto import (
    PostCreateDTO, PostUpdateDTO, PostResponseDTO, PostListDTO,
    CommentCreateDTO, CommentResponseDTO, CommentListDTO,
)
from application.services.post_service import PostApplicationService
from api.dependencies import get_current_user_id, get_post_service
from core.response import success_response, Response as ApiResponse

router = APIRouter(
    prefix="/posts",
    tags=["Posts"]
)


@router.get("", summary="帖子列表", response_model=ApiResponse[PostListDTO])
async def list_posts(
    limit: int = Query(0),
    offset: int = Query(0),
    category_id: Optional[str] = Query(None, description="按分类筛选"),
    service: PostApplicationService = Depends(get_post_service),
):
    posts = await service.list_posts(limit=limit, offset=offset, category_id=category_id)
    return success_response(data=posts)


@router.post("", summary="创建帖子", response_model=ApiResponse[PostResponseDTO])
async def create_post(
    data: PostCreateDTO,
    user_id: str = Depends(get_current_user_id),
    service: PostApplicationService = Depends(get_post_service),
):
    post = await service.create_post(data, author_id=user_id)
    return success_response(data=post, message="Post created")


@router.get("/{post_id}", summary="获取帖子", response_model=ApiResponse[PostResponseDTO])
async def get_post(
    post_id: str,
    service: PostApplicationService = Depends(get_post_service),
):
    post = await service.get_post(post_id)
    return success_response(data=post)


@router.put("/{post_id}", summary="更新帖子", response_model=ApiResponse[PostResponseDTO])
async def update_post(
    post_id: str,
    data: PostUpdateDTO,
    user_id: str = Depends(get_current_user_id),
    service: PostApplicationService = Depends(get_post_service),
):
    post = await service.update_post(post_id, data)
    return success_response(data=post, message="Post updated")


@router.delete("/{post_id}", summary="删除帖子", response_model=ApiResponse[Any])
async def delete_post(
    post_id: str,
    user_id: str = Depends(get_current_user_id),
    service: PostApplicationService = Depends(get_post_service),
):
    await service.delete_post(post_id)
    return success_response(data=None, message="Post deleted")


@router.get("/{post_id}/comments", summary="评论列表", response_model=ApiResponse[CommentListDTO])
async def list_comments(
    post_id: str,
    limit: int = Query(0),
    offset: int = Query(0),
    service: PostApplicationService = Depends(get_post_service),
):
    comments = await service.list_comments(post_id, limit=limit, offset=offset)
    return success_response(data=comments)


@router.post("/{post_id}/comments", summary="发表评论", response_model=ApiResponse[CommentResponseDTO])
async def create_comment(
    post_id: str,
    data: CommentCreateDTO,
    user_id: str = Depends(get_current_user_id),
    service: PostApplicationService = Depends(get_post_service),
):
    comment = await service.add_comment(post_id, data, author_id=user_id)
    return success_response(data=comment, message="Comment created")
