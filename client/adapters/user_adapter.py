"""Adapter for user payloads (single, list and paginated list)."""

from typing import Any, List, Optional

from client.adapters.resolver import (
    Field,
    key,
    list_items,
    resolve_fields,
    to_bool,
    to_int,
    to_opaque_id,
    to_optional_text,
    to_text,
    unwrap,
)
from common.types import UserPage, UserProfile

USER_WRAPPERS = ('user', 'data', 'result', 'profile')
USER_MARKERS = ('id', '_id', 'user_id', 'userId', 'username')
USER_LIST_WRAPPERS = ('items', 'users', 'data', 'results')

USER_FIELDS = (
    Field('id', (key('id'), key('_id'), key('user_id'), key('userId'), key('uuid')), default=""),
    Field(
        'username',
        (key('username'), key('userName'), key('user_name'), key('login'), key('profile', 'username')),
        default="",
        skip_blank=True,
    ),
    Field(
        'full_name',
        (
            key('fullName'),
            key('full_name'),
            key('name'),
            key('displayName'),
            key('display_name'),
            key('profile', 'fullName'),
            key('profile', 'full_name'),
        ),
        skip_blank=True,
    ),
    Field('email', (key('email'), key('emailAddress'), key('profile', 'email')), skip_blank=True),
    Field('created_at', (key('createdAt'), key('created_at'), key('joined_at'))),
)


def has_identity(raw: Any) -> bool:
    """True when a payload carries at least an id, a username or an email."""
    values = resolve_fields(unwrap(raw, USER_WRAPPERS, USER_MARKERS), USER_FIELDS)
    return bool(
        to_opaque_id(values['id']) or to_text(values['username']) or to_text(values['email'])
    )


def adapt_user(raw: Any) -> UserProfile:
    """
    Map a user payload to a UserProfile.

    The full name falls back to the username when the payload carries none.
    """
    values = resolve_fields(unwrap(raw, USER_WRAPPERS, USER_MARKERS), USER_FIELDS)
    username = to_text(values['username'])
    return UserProfile(
        id=to_opaque_id(values['id']),
        username=username,
        full_name=to_text(values['full_name']) or username,
        email=to_optional_text(values['email']),
        created_at=to_optional_text(values['created_at']),
    )


def adapt_user_list(raw: Any) -> List[UserProfile]:
    return [
        adapt_user(item)
        for item in list_items(raw, USER_LIST_WRAPPERS)
        if isinstance(item, dict)
    ]


PAGE_FIELDS = (
    Field('has_more', (key('hasMore'), key('has_more'), key('pagination', 'hasMore'), key('pagination', 'has_more'))),
    Field('next', (key('next'), key('nextPage'), key('next_page'))),
    Field('total', (key('total'), key('totalCount'), key('total_count'), key('count'), key('pagination', 'total'))),
)


def adapt_user_page(raw: Any) -> UserPage:
    """
    Map a paginated user listing.

    Accepts a bare array (single page, no more results) or an envelope with
    the items under items/users/data/results and a has-more flag or next link.
    """
    users = adapt_user_list(raw)
    if not isinstance(raw, dict):
        return UserPage(users=users)

    values = resolve_fields(raw, PAGE_FIELDS)
    has_more = to_bool(values['has_more']) if values['has_more'] is not None else bool(values['next'])
    total: Optional[int] = to_int(values['total'], -1) if values['total'] is not None else None
    if total is not None and total < 0:
        total = None
    return UserPage(users=users, has_more=has_more, total=total)
