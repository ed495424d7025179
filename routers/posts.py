# In routers/posts.py

import logging
from fastapi import (
    APIRouter, HTTPException, Depends, status,
    File, UploadFile, Form, Query
)
from google.cloud import firestore
from google.cloud.firestore import AsyncClient
from google.cloud import storage
from typing import List, Optional, Annotated
import datetime
import uuid

import AuthAndUser as auth
from domain.comments import (
    Comment, CommentAuthor, CommentCreate, ThreadEntry,
    build_comment_tree, iter_comment_thread,
)
from domain.posts import Post, PostAuthor
from domain.user import Profile
from services.clients import get_firestore_client, get_gcs_client
from services.listing import get_model_or_404, list_newest_first, matches_search, matches_tag, stream_models
from services.storage import discard_image, store_optional_image

logger = logging.getLogger('uvicorn.error')

MAX_TEXT_FIELD_SIZE_KB = 500
MAX_TEXT_FIELD_SIZE_BYTES = MAX_TEXT_FIELD_SIZE_KB * 1024

POSTS_COLLECTION = "posts"
COMMENTS_SUBCOLLECTION = "comments"
PROFILES_COLLECTION = "profiles"

router = APIRouter(
    prefix="/posts",
    tags=["posts", "comments"]
)


def parse_tags(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    seen = []
    for tag in raw.split(","):
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


async def get_author_card(db: AsyncClient, user: auth.User) -> PostAuthor:
    """Display info for ``user``, taken from their profile when one exists."""
    profile_doc = await db.collection(PROFILES_COLLECTION).document(user.username).get()
    if profile_doc.exists:
        profile = Profile(**profile_doc.to_dict())
        return PostAuthor(
            name=profile.name or user.name or user.username,
            avatar=profile.avatar_url,
            title=profile.title,
            company=profile.company,
        )
    return PostAuthor(name=user.name or user.username)


async def fetch_post_comments(post_ref) -> List[Comment]:
    comments_query = post_ref.collection(COMMENTS_SUBCOLLECTION).order_by(
        "created_at", direction=firestore.Query.ASCENDING
    )
    return [comment async for comment in stream_models(comments_query, Comment, "comment")]


async def get_post_ref_or_404(db: AsyncClient, post_id: str):
    post_ref = db.collection(POSTS_COLLECTION).document(post_id)
    post_doc = await post_ref.get()
    if not post_doc.exists:
        logger.warning(f"Post {post_id} not found.")
        raise HTTPException(status_code=404, detail=f"Post with id {post_id} not found.")
    return post_ref


# --- Post API Routes ---
@router.get("/", response_model=List[Post])
async def list_posts(
    q: Optional[str] = None,
    tag: Optional[str] = None,
    db: AsyncClient = Depends(get_firestore_client)
):
    try:
        return await list_newest_first(
            db, POSTS_COLLECTION, Post,
            lambda post: matches_search(q, post.content) and matches_tag(tag, post.tags),
        )
    except Exception as e:
        logger.exception(f"Error retrieving posts: {e}")
        raise HTTPException(status_code=500, detail="Internal server error while fetching posts")


@router.get("/tags", response_model=List[str])
async def list_post_tags(db: AsyncClient = Depends(get_firestore_client)):
    try:
        posts = await list_newest_first(db, POSTS_COLLECTION, Post, lambda post: True)
        return sorted({tag for post in posts for tag in post.tags})
    except Exception as e:
        logger.exception(f"Error retrieving post tags: {e}")
        raise HTTPException(status_code=500, detail="Internal server error while fetching tags")


@router.get("/{post_id}", response_model=Post)
async def get_post_by_id(
    post_id: str,
    db: AsyncClient = Depends(get_firestore_client)
):
    try:
        return await get_model_or_404(db, POSTS_COLLECTION, post_id, Post)
    except HTTPException as http_exc:
        raise http_exc
    except Exception as e:
        logger.exception(f"Error retrieving post {post_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error while fetching post")


@router.post("/", response_model=Post, status_code=status.HTTP_201_CREATED)
async def create_post(
    current_user: Annotated[auth.User, Depends(auth.get_current_active_user)],
    content: str = Form(...),
    tags: Optional[str] = Form(default=None, description="Comma separated tags"),
    image_file: Optional[UploadFile] = File(default=None, description="Optional JPG, PNG or GIF image"),
    db: AsyncClient = Depends(get_firestore_client),
    gcs: storage.Client = Depends(get_gcs_client)
):
    if not content.strip():
        raise HTTPException(status_code=400, detail="Post content cannot be empty.")
    if len(content.encode('utf-8')) > MAX_TEXT_FIELD_SIZE_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Post content exceeds the maximum size of {MAX_TEXT_FIELD_SIZE_KB} KB."
        )

    author = await get_author_card(db, current_user)
    image_public_url = await store_optional_image(
        gcs, image_file, folder=f"posts/{current_user.username}", username=current_user.username
    )
    now = datetime.datetime.now(datetime.timezone.utc)
    post_id = f"post-{uuid.uuid4().hex}"
    new_post = Post(
        id=post_id,
        author=author,
        content=content.strip(),
        image=image_public_url,
        tags=parse_tags(tags),
        created_at=now,
        updated_at=now,
    )
    try:
        await db.collection(POSTS_COLLECTION).document(post_id).set(new_post.model_dump(exclude={"id"}))
        logger.info(f"User '{current_user.username}' created post '{post_id}' with image URL {image_public_url}")
        return new_post
    except Exception as e:
        logger.exception(f"Error creating post '{post_id}' for user '{current_user.username}': {e}")
        discard_image(gcs, image_public_url)
        raise HTTPException(status_code=500, detail="Internal server error while creating post")


# --- Comment API Routes ---
@router.post("/{post_id}/comments/", response_model=Comment, status_code=status.HTTP_201_CREATED)
async def create_comment(
    post_id: str,
    comment_in: CommentCreate,
    db: AsyncClient = Depends(get_firestore_client),
    current_user: auth.User = Depends(auth.get_current_active_user)
):
    post_ref = await get_post_ref_or_404(db, post_id)

    if len(comment_in.content.encode('utf-8')) > MAX_TEXT_FIELD_SIZE_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Comment content exceeds the maximum size of {MAX_TEXT_FIELD_SIZE_KB} KB."
        )
    if comment_in.parent_id:
        parent_doc = await post_ref.collection(COMMENTS_SUBCOLLECTION).document(comment_in.parent_id).get()
        if not parent_doc.exists:
            logger.warning(f"User '{current_user.username}' replied to unknown comment {comment_in.parent_id} on post {post_id}")
            raise HTTPException(status_code=400, detail=f"Comment {comment_in.parent_id} does not belong to post {post_id}.")

    author = await get_author_card(db, current_user)
    new_comment = Comment(
        id=f"comment-{uuid.uuid4().hex}",
        post_id=post_id,
        parent_id=comment_in.parent_id,
        author=CommentAuthor(**author.model_dump()),
        content=comment_in.content,
    )
    try:
        comment_doc_ref = post_ref.collection(COMMENTS_SUBCOLLECTION).document(new_comment.id)
        batch = db.batch()
        batch.set(comment_doc_ref, new_comment.to_document())
        batch.update(post_ref, {"comments": firestore.Increment(1)})
        await batch.commit()
        logger.info(f"User '{current_user.username}' created comment '{new_comment.id}' on post '{post_id}'")
        return new_comment
    except Exception as e:
        logger.exception(f"Error creating comment for post '{post_id}' by user '{current_user.username}': {e}")
        raise HTTPException(status_code=500, detail="Internal server error while creating comment.")


@router.get("/{post_id}/comments/", response_model=List[Comment])
async def get_comments_for_post(
    post_id: str,
    flat: bool = Query(default=False, description="Return comments unnested, oldest first"),
    db: AsyncClient = Depends(get_firestore_client)
):
    post_ref = await get_post_ref_or_404(db, post_id)
    try:
        comments = await fetch_post_comments(post_ref)
    except Exception as e:
        logger.exception(f"Error retrieving comments for post {post_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error while fetching comments.")
    if flat:
        return comments
    return build_comment_tree(comments)


@router.get("/{post_id}/comments/thread", response_model=List[ThreadEntry])
async def get_comment_thread(
    post_id: str,
    db: AsyncClient = Depends(get_firestore_client)
):
    post_ref = await get_post_ref_or_404(db, post_id)
    try:
        comments = await fetch_post_comments(post_ref)
    except Exception as e:
        logger.exception(f"Error retrieving comment thread for post {post_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error while fetching comments.")
    return [
        ThreadEntry(depth=depth, comment=comment.model_copy(update={"children": []}))
        for comment, depth in iter_comment_thread(build_comment_tree(comments))
    ]


@router.get("/{post_id}/comments/{comment_id}", response_model=Comment)
async def get_comment_by_id(
    post_id: str,
    comment_id: str,
    db: AsyncClient = Depends(get_firestore_client)
):
    post_ref = await get_post_ref_or_404(db, post_id)
    try:
        comment_doc = await post_ref.collection(COMMENTS_SUBCOLLECTION).document(comment_id).get()
        if not comment_doc.exists:
            logger.warning(f"Comment {comment_id} not found in post {post_id}")
            raise HTTPException(status_code=404, detail=f"Comment with id {comment_id} not found in post {post_id}.")
        comment_data = comment_doc.to_dict()
        comment_data['id'] = comment_doc.id
        return Comment(**comment_data)
    except HTTPException as http_exc:
        raise http_exc
    except Exception as e:
        logger.exception(f"Error retrieving comment {comment_id} for post {post_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error while fetching specific comment.")
