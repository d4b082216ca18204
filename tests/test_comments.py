"""Tests for the comment thread."""

import pytest

from komuniteti.core.exceptions import RequestNotFoundError, ValidationError
from komuniteti.schemas.common.enums import CommentAuthorRole
from komuniteti.schemas.maintenance import CommentCreate
from komuniteti.services.base import ErrorCode


def make_comment(text="Technician arrives at 10", **overrides):
    data = {
        "author_id": "manager-1",
        "author_name": "Lirim Shala",
        "author_role": CommentAuthorRole.MANAGER,
        "text": text,
    }
    data.update(overrides)
    return CommentCreate(**data)


def test_comments_keep_append_order(services, request_snapshot):
    comments = services.comments()
    for text in ("first", "second", "third"):
        comments.add_comment(request_snapshot.id, make_comment(text)).unwrap()

    thread = comments.list_comments(request_snapshot.id).unwrap()

    assert [c.text for c in thread] == ["first", "second", "third"]
    assert [c.position for c in thread] == [1, 2, 3]


def test_comment_is_visible_on_request(services, request_snapshot):
    added = services.comments().add_comment(request_snapshot.id, make_comment()).unwrap()

    current = services.requests().get_request(request_snapshot.id).unwrap()

    assert [c.id for c in current.comments] == [added.id]
    assert current.version == request_snapshot.version + 1
    assert current.updated_at >= request_snapshot.updated_at


@pytest.mark.parametrize("text", ["", "   "])
def test_blank_comment_is_rejected(services, request_snapshot, text):
    result = services.comments().add_comment(request_snapshot.id, make_comment(text))

    assert result.error.code == ErrorCode.VALIDATION_ERROR
    with pytest.raises(ValidationError):
        result.unwrap()
    assert services.comments().list_comments(request_snapshot.id).unwrap() == []


def test_comment_on_missing_request(services):
    result = services.comments().add_comment("missing", make_comment())

    with pytest.raises(RequestNotFoundError):
        result.unwrap()


def test_private_comments_can_be_filtered(services, request_snapshot):
    comments = services.comments()
    comments.add_comment(request_snapshot.id, make_comment("public note")).unwrap()
    comments.add_comment(
        request_snapshot.id, make_comment("staff only", is_private=True)
    ).unwrap()

    everything = comments.list_comments(request_snapshot.id).unwrap()
    public = comments.list_comments(request_snapshot.id, include_private=False).unwrap()

    assert len(everything) == 2
    assert [c.text for c in public] == ["public note"]


def test_comments_allowed_on_terminal_request(services, request_snapshot):
    services.workflow().change_status(request_snapshot.id, "cancelled").unwrap()

    added = services.comments().add_comment(
        request_snapshot.id,
        make_comment("Resident confirmed", author_role=CommentAuthorRole.RESIDENT),
    ).unwrap()

    assert added.author_role == CommentAuthorRole.RESIDENT
