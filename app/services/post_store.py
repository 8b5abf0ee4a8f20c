"""CRUD storage for posts and their ordered image references."""

from sqlalchemy.orm import Query, Session, selectinload

from app.models.post import Post, PostImage


class PostStore:
    """Post records keyed by id, each owned by a user id."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _query(self) -> Query[Post]:
        return self.db.query(Post).options(
            selectinload(Post.images), selectinload(Post.owner)
        )

    def find_by_id(self, post_id: int) -> Post | None:
        return self._query().filter(Post.id == post_id).first()

    def find_by_owner(self, user_id: int) -> list[Post]:
        return (
            self._query()
            .filter(Post.user_id == user_id)
            .order_by(Post.created_at.desc(), Post.id.desc())
            .all()
        )

    def list_all(self) -> list[Post]:
        return self._query().order_by(Post.created_at.desc(), Post.id.desc()).all()

    def create(
        self,
        *,
        owner_id: int,
        title: str,
        content: str,
        image_urls: list[str] | None = None,
    ) -> Post:
        """Persist a post; image order follows image_urls."""
        post = Post(title=title, content=content, user_id=owner_id)
        for position, url in enumerate(image_urls or []):
            post.images.append(PostImage(url=url, position=position))
        self.db.add(post)
        self.db.commit()
        self.db.refresh(post)
        return post

    def update(self, post: Post, *, title: str, content: str) -> Post:
        post.title = title
        post.content = content
        self.db.commit()
        self.db.refresh(post)
        return post

    def delete(self, post: Post) -> list[str]:
        """Delete the post and its image rows; return the removed image urls."""
        urls = [image.url for image in post.images]
        self.db.delete(post)
        self.db.commit()
        return urls
