"""Comment thread state for a single movie."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from kinoteka.errors import InvalidInputError, StoreError
from kinoteka.notifications import Confirm, NotificationKind, Notifier
from kinoteka.schemas.comment import Comment
from kinoteka.state.base import Outcome, StateContainer
from kinoteka.store.base import Order, RemoteStore, eq, parse_row

logger = logging.getLogger(__name__)

# Embeds the author's display name into each comment row.
COMMENT_COLUMNS = "*,user:user_id(name)"
UNKNOWN_MOVIE_TITLE = "Unknown movie"


@dataclass(frozen=True)
class CommentsState:
    comments: list[Comment] = field(default_factory=list)
    movie_title: str = ""
    loading: bool = False
    submitting: bool = False
    error: str | None = None
    editing_comment_id: str | None = None


class CommentsContainer(StateContainer[CommentsState]):
    """Loads a movie's comments and applies create/edit/delete in memory."""

    def __init__(self, store: RemoteStore, confirm: Confirm, notifier: Notifier | None = None) -> None:
        super().__init__(CommentsState(), notifier)
        self.store = store
        self.confirm = confirm

    def set_editing(self, comment_id: str | None) -> None:
        self._commit(editing_comment_id=comment_id)

    async def load(self, movie_id: str) -> Outcome:
        self._commit(loading=True, error=None)
        try:
            movie = await self.store.select(
                "movies", columns="title", filters=[eq("id", movie_id)], limit=1
            )
            if not movie.rows:
                raise StoreError("Movie not found.")
            title = movie.rows[0].get("title") or UNKNOWN_MOVIE_TITLE

            result = await self.store.select(
                "comments",
                columns=COMMENT_COLUMNS,
                filters=[eq("movie_id", movie_id)],
                order=Order("created_at", ascending=False),
            )
            comments = [parse_row(Comment.from_row, row) for row in result.rows]
        except StoreError as e:
            logger.error(f"Failed to load comments for movie {movie_id}: {e.message}")
            self._commit(loading=False, error=e.message, comments=[])
            return Outcome.FAILED

        self._commit(loading=False, comments=comments, movie_title=title)
        return Outcome.DONE

    async def add(self, movie_id: str, user_id: str, text: str) -> Outcome:
        """Insert a comment and put it at the top of the thread."""
        if not text or not text.strip():
            raise InvalidInputError("Comment cannot be empty.")

        self._commit(submitting=True, error=None)
        try:
            row = await self.store.insert(
                "comments",
                {"movie_id": movie_id, "user_id": user_id, "comment": text},
                columns=COMMENT_COLUMNS,
            )
            comment = parse_row(Comment.from_row, row)
        except StoreError as e:
            return self._failed("Could not add comment", e)

        self._commit(submitting=False, comments=[comment, *self.state.comments])
        self._notify(NotificationKind.SUCCESS, "Comment added", "Your comment was added.")
        return Outcome.DONE

    async def edit(self, comment_id: str, text: str) -> Outcome:
        """
        Replace a comment's text.

        A comment no longer in the thread is left alone; edit-focus is
        cleared either way once the store accepted the change.
        """
        if not text or not text.strip():
            raise InvalidInputError("Comment cannot be empty.")

        now = datetime.now(timezone.utc)
        self._commit(submitting=True, error=None)
        try:
            await self.store.update(
                "comments",
                {"comment": text, "updated_at": now.isoformat()},
                [eq("id", comment_id)],
            )
        except StoreError as e:
            return self._failed("Could not update comment", e)

        comments = [
            c.model_copy(update={"comment": text, "updated_at": now}) if c.id == comment_id else c
            for c in self.state.comments
        ]
        self._commit(submitting=False, comments=comments, editing_comment_id=None)
        self._notify(NotificationKind.SUCCESS, "Comment updated", "Your comment was updated.")
        return Outcome.DONE

    async def remove(self, comment_id: str) -> Outcome:
        if not await self.confirm("Delete this comment?"):
            return Outcome.DECLINED

        self._commit(submitting=True, error=None)
        try:
            await self.store.delete("comments", [eq("id", comment_id)])
        except StoreError as e:
            return self._failed("Could not delete comment", e)

        self._commit(
            submitting=False,
            comments=[c for c in self.state.comments if c.id != comment_id],
        )
        self._notify(NotificationKind.SUCCESS, "Comment deleted", "The comment was deleted.")
        return Outcome.DONE

    def _failed(self, title: str, error: StoreError) -> Outcome:
        logger.error(f"{title}: {error.message}")
        self._commit(submitting=False, error=error.message)
        self._notify(NotificationKind.ERROR, title, error.message)
        return Outcome.FAILED
