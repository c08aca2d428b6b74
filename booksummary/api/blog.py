from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..blog import all_tags, featured_split, related_posts, search_posts
from ..dependencies import Services, get_services
from ..errors import NotFound
from ..models import BlogPost, CamelModel


router = APIRouter(prefix="/api/blog", tags=["blog"])


class BlogListing(CamelModel):
    featured: List[BlogPost]
    posts: List[BlogPost]
    tags: List[str]


class BlogPostDetail(CamelModel):
    post: BlogPost
    related: List[BlogPost]


@router.get("", response_model=BlogListing)
def list_posts(
    q: Optional[str] = Query(default=None, description="Search in title, excerpt and content"),
    tag: Optional[str] = Query(default=None),
    services: Services = Depends(get_services),
) -> BlogListing:
    posts = services.blog.list()
    featured, regular = featured_split(search_posts(posts, q, tag))
    return BlogListing(featured=featured, posts=regular, tags=all_tags(posts))


@router.get("/{slug}", response_model=BlogPostDetail)
def get_post(slug: str, services: Services = Depends(get_services)) -> BlogPostDetail:
    post = services.blog.get_by_slug(slug)
    if post is None:
        raise NotFound(f"Blog post '{slug}' not found")
    return BlogPostDetail(post=post, related=related_posts(post, services.blog.list()))
