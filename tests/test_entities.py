from datetime import datetime

import pytest

from domain.chat.entity import ChatMessage, MESSAGE_TEXT_MAX_LENGTH, USER_ID_MAX_LENGTH
from domain.comment.entity import Comment
from domain.post.entity import Post


def test_chat_message_create_assigns_id_and_utc_timestamp():
    a = ChatMessage.create("alice", "hi")
    b = ChatMessage.create("alice", "hi")
    assert a.id != b.id
    assert a.created_at.tzinfo is not None
    assert a.created_at.utcoffset().total_seconds() == 0


def test_chat_message_is_immutable():
    message = ChatMessage.create("alice", "hi")
    with pytest.raises(Exception):
        message.text = "edited"  # type: ignore[misc]


@pytest.mark.parametrize("text", ["", "x" * (MESSAGE_TEXT_MAX_LENGTH + 1)])
def test_chat_message_text_bounds(text):
    with pytest.raises(ValueError):
        ChatMessage.create("alice", text)


def test_chat_message_requires_author():
    with pytest.raises(ValueError):
        ChatMessage.create("", "hi")
    with pytest.raises(ValueError):
        ChatMessage.create("u" * (USER_ID_MAX_LENGTH + 1), "hi")
    assert ChatMessage.create("u" * USER_ID_MAX_LENGTH, "hi").user_id


def test_naive_timestamp_is_treated_as_utc():
    message = ChatMessage(user_id="alice", text="hi", created_at=datetime(2024, 1, 1, 12, 0))
    assert message.created_at.tzinfo is not None
    assert message.created_at.hour == 12


def test_post_rules():
    post = Post(title="Hello", content="long enough body", author_id="1", category_id="2")
    assert post.updated_at is None
    post.edit("Edited", "another long body")
    assert post.updated_at is not None

    with pytest.raises(ValueError):
        Post(title="Hi", content="long enough body", author_id="1", category_id="1")
    with pytest.raises(ValueError):
        Post(title="Hello", content="short", author_id="1", category_id="1")
    with pytest.raises(ValueError):
        Post(title="Hello", content="long enough body", author_id="1", category_id="4")


def test_comment_length_rules():
    assert Comment(post_id="p", author_id="1", content="nice").content == "nice"
    with pytest.raises(ValueError):
        Comment(post_id="p", author_id="1", content="no")
    with pytest.raises(ValueError):
        Comment(post_id="p", author_id="1", content="x" * 501)
