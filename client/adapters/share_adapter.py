"""
Adapter for share payloads.

Two wire variants exist for inbox items: a share record with the file nested
under "file", and a flat record carrying the file fields next to the sender
fields. Both are mapped to a ShareRecord; the embedded file is always built by
the file adapter.
"""

from collections.abc import Mapping
from typing import Any, List

from client.adapters.file_adapter import adapt_file
from client.adapters.resolver import (
    Field,
    key,
    list_items,
    resolve_fields,
    to_bool,
    to_iso_timestamp,
    to_opaque_id,
    to_text,
    utc_now_iso,
)
from common.constants import UNKNOWN_DISPLAY_NAME
from common.types import ShareRecord

SHARE_LIST_WRAPPERS = ('shares', 'items', 'data', 'results', 'inbox')


def _party_fields(prefix: str, wire: str, nested: tuple) -> tuple:
    """Field entries for one side of a share (sender or recipient)."""
    id_keys = (key(f'{wire}UserId'), key(f'{wire}_user_id'), key(f'{prefix}_id'), key(f'{prefix}Id'))
    id_keys += tuple(key(n) for n in nested)
    full_name_keys = (key(f'{wire}FullName'), key(f'{wire}_full_name'))
    full_name_keys += tuple(key(n, 'fullName') for n in nested)
    full_name_keys += tuple(key(n, 'full_name') for n in nested)
    username_keys = (key(f'{wire}Username'), key(f'{wire}_username'), key(f'{prefix}_username'))
    username_keys += tuple(key(n, 'username') for n in nested)
    return (
        Field(f'{prefix}_id', id_keys, default=""),
        Field(f'{prefix}_full_name', full_name_keys, skip_blank=True),
        Field(f'{prefix}_username', username_keys, skip_blank=True),
    )


SHARE_FIELDS = (
    Field('id', (key('share_id'), key('shareId'), key('id'), key('_id')), default=""),
    *_party_fields('sender', 'from', ('sender', 'from_user', 'fromUser', 'sharedBy', 'shared_by')),
    *_party_fields('recipient', 'to', ('recipient', 'to_user', 'toUser', 'sharedWith', 'shared_with')),
    Field(
        'shared_at',
        (key('sharedAt'), key('shared_at'), key('createdAt'), key('created_at')),
        default=utc_now_iso,
    ),
    Field('is_read', (key('isRead'), key('is_read'), key('read')), default=False),
)

NESTED_FILE_KEYS = ('file', 'sharedFile', 'shared_file')


def _display_name(values: dict, prefix: str) -> str:
    return (
        to_text(values[f'{prefix}_full_name'])
        or to_text(values[f'{prefix}_username'])
        or UNKNOWN_DISPLAY_NAME
    )


def _file_payload(raw: Mapping) -> Any:
    for nested_key in NESTED_FILE_KEYS:
        if isinstance(raw.get(nested_key), Mapping):
            return raw[nested_key]
    # Flat variant: the file fields sit beside the share fields; the share's own
    # id must not be mistaken for the file id.
    view = {k: v for k, v in raw.items() if k not in ('id', '_id')}
    if 'fileId' not in view and 'file_id' not in view:
        view['file_id'] = raw.get('id', raw.get('_id'))
    return view


def adapt_share(raw: Any) -> ShareRecord:
    """
    Map an inbox or sent-list item to a ShareRecord.

    A flat file-shaped item (no share id of its own) gets the file id as its
    share id. Missing names fall back to "Unknown"; a missing timestamp to now.
    """
    source = raw if isinstance(raw, Mapping) else {}
    values = resolve_fields(source, SHARE_FIELDS)
    sender_name = _display_name(values, 'sender')

    shared_file = adapt_file(_file_payload(source), default_owner=sender_name)

    share_id = to_opaque_id(values['id']) or shared_file.id
    sender_id = to_opaque_id(values['sender_id']) or shared_file.owner_id

    return ShareRecord(
        id=share_id,
        file=shared_file,
        sender_id=sender_id,
        sender_display_name=sender_name,
        recipient_id=to_opaque_id(values['recipient_id']),
        recipient_display_name=_display_name(values, 'recipient'),
        shared_at=to_iso_timestamp(values['shared_at']),
        is_read=to_bool(values['is_read']),
        sender_username=to_text(values['sender_username']),
    )


def adapt_share_list(raw: Any) -> List[ShareRecord]:
    return [
        adapt_share(item)
        for item in list_items(raw, SHARE_LIST_WRAPPERS)
        if isinstance(item, Mapping)
    ]
