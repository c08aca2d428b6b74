"""Tests for the typed collections."""

import pytest
from werkzeug.security import check_password_hash

from booksummary.errors import EmailAlreadyRegistered, ExternalBookError, NotFound
from booksummary.models import BlogPostCreate, BlogPostUpdate, BookCreate, BookUpdate
from booksummary.repositories import BlogRepository, CommentRepository
from booksummary.storage import BOOKS_KEY


class TestBookRepository:
    """Local book CRUD."""

    def test_seeds_sample_books(self, book_repo):
        """An empty store starts with the sample collection."""
        ids = [b.id for b in book_repo.list()]
        assert ids == ["book-1", "book-2", "book-3", "book-4", "book-5", "book-6"]

    def test_create_update_delete(self, book_repo):
        """A created book can be edited and removed."""
        book = book_repo.create(BookCreate(title="Deep Work", author_name="Cal Newport", summary="Focus."))
        assert book_repo.get(book.id).author.name == "Cal Newport"

        updated = book_repo.update(book.id, BookUpdate(title="Deep Work (2nd ed.)", author_bio="Professor"))
        assert updated.title == "Deep Work (2nd ed.)"
        assert updated.author.name == "Cal Newport"
        assert updated.author.bio == "Professor"

        book_repo.delete(book.id)
        assert book_repo.get(book.id) is None

    @pytest.mark.parametrize("book_id", ["gutenberg-76", "modern-12"])
    def test_delete_external_book_is_rejected(self, book_repo, store, book_id):
        """External ids cannot be deleted and the collection stays as it was."""
        book_repo.list()
        before = store.load(BOOKS_KEY, [])
        with pytest.raises(ExternalBookError):
            book_repo.delete(book_id)
        assert store.load(BOOKS_KEY, []) == before

    def test_update_external_book_is_rejected(self, book_repo):
        """External books are read-only."""
        with pytest.raises(ExternalBookError):
            book_repo.update("gutenberg-76", BookUpdate(title="x"))

    def test_delete_unknown_book(self, book_repo):
        """Deleting an id that does not exist raises NotFound."""
        with pytest.raises(NotFound):
            book_repo.delete("book-404")

    def test_like_persists(self, book_repo):
        """Likes on local books are written back."""
        before = book_repo.get("book-3").likes
        book_repo.like("book-3")
        assert book_repo.get("book-3").likes == before + 1


class TestAccountRepository:
    """Accounts and the seeded admin."""

    def test_admin_is_seeded_with_hashed_password(self, accounts, settings):
        """The configured admin is an ordinary account with a hashed password."""
        admin = accounts.find_by_email(settings.admin_email)
        assert admin.role == "admin"
        assert admin.password_hash != settings.admin_password
        assert check_password_hash(admin.password_hash, settings.admin_password)

    def test_duplicate_email_is_case_insensitive(self, accounts):
        """Test@x.com and test@x.com are the same account."""
        accounts.add("Test", "Test@x.com", "Password1")
        with pytest.raises(EmailAlreadyRegistered):
            accounts.add("Other", "test@x.com", "Password2")


class TestBlogRepository:
    """Blog post CRUD."""

    def test_create_derives_slug_and_reading_time(self, store):
        """Slug and reading time are computed from title and content."""
        repo = BlogRepository(store)
        post = repo.create(BlogPostCreate(title="Hello, World! Again", content="word " * 400))
        assert post.slug == "hello-world-again"
        assert post.reading_time == 2
        assert repo.get_by_slug("hello-world-again").id == post.id

    def test_update_recomputes_slug(self, store):
        """Renaming a post changes its slug."""
        repo = BlogRepository(store)
        updated = repo.update("blog-1", BlogPostUpdate(title="Brand New Title"))
        assert updated.slug == "brand-new-title"


class TestCommentRepository:
    """Comments are persisted per book."""

    def test_add_and_list_newest_first(self, store):
        """A new comment is listed before the seeded ones."""
        repo = CommentRepository(store)
        comment = repo.add("book-1", "Reader", "  Great read  ")
        comments = repo.for_book("book-1")
        assert comments[0].id == comment.id
        assert comments[0].content == "Great read"
        assert {c.book_id for c in comments} == {"book-1"}
        assert len(CommentRepository(store).for_book("book-1")) == len(comments)
