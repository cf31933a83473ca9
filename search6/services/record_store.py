"""
search6.services.record_store — Participant Records & Name Index
=================================================================

Two kinds of entries, always written together:

- ``user.id:<id>`` → :class:`ParticipantRecord` JSON
- ``user.slug:<name>#<discriminator>`` → ``<id>``

The reconciler is the only writer.  Lookups can run at any time; a read sees
either the previous or the new value for a key, never a partial one.

All methods are synchronous — call via ``await run_db(store.method, ...)``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from pydantic import ValidationError

from search6.constants import USER_ID_PREFIX, is_snowflake, user_id_key, user_slug_key
from search6.engine.records import ParticipantRecord
from search6.errors import NoId, NotRanked, UnknownId
from search6.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


class RecordStore:
    """Id- and name-addressable participant snapshots."""

    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv

    # -------------------------------------------------------------------
    # Sync path
    # -------------------------------------------------------------------
    def prior_snapshots(self, user_ids: Iterable[int]) -> dict[int, str]:
        """Batch-read the raw stored JSON for *user_ids*.

        Ids with no stored record are absent from the result.  Values are
        returned undecoded so the caller decides what a corrupt one means.
        """
        raw = self.kv.mget(user_id_key(uid) for uid in user_ids)
        return {int(key[len(USER_ID_PREFIX):]): value for key, value in raw.items()}

    def write_batch(self, records: Sequence[ParticipantRecord]) -> None:
        """Write every record and its name index entry in one transaction."""
        pairs: list[tuple[str, str]] = []
        for record in records:
            pairs.append((user_slug_key(record.slug), str(record.id)))
            pairs.append((user_id_key(record.id), record.to_json()))
        self.kv.mset(pairs)

    # -------------------------------------------------------------------
    # Read path
    # -------------------------------------------------------------------
    def get_record(self, user_id: int) -> ParticipantRecord | None:
        """Return the cached record, treating an undecodable value as absent."""
        raw = self.kv.get(user_id_key(user_id))
        if raw is None:
            return None
        try:
            return ParticipantRecord.from_json(raw)
        except ValidationError:
            logger.warning("Cached record for %d is corrupt; treating as absent", user_id)
            return None

    def resolve_slug(self, slug: str) -> int | None:
        """Map ``name#discriminator`` to an id, if the index knows it."""
        raw = self.kv.get(user_slug_key(slug))
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            logger.warning("Name index entry for %r is not an id: %r", slug, raw)
            return None

    def lookup(self, identifier: str | None, *, expect_present: bool = False) -> ParticipantRecord:
        """Resolve a numeric id or ``name#discriminator`` to a record.

        Parameters
        ----------
        identifier:
            A Discord snowflake or a slug.  Surrounding whitespace is ignored.
        expect_present:
            The caller has reason to believe the user exists (e.g. just
            logged in).  A miss then raises :class:`NotRanked`.

        Raises
        ------
        NoId
            *identifier* is empty.
        UnknownId
            Nothing cached under that id / name.
        NotRanked
            Same as ``UnknownId`` when *expect_present* is set.
        """
        if identifier is None or not identifier.strip():
            raise NoId()
        identifier = identifier.strip()

        record: ParticipantRecord | None = None
        if is_snowflake(identifier):
            record = self.get_record(int(identifier))
        else:
            user_id = self.resolve_slug(identifier)
            if user_id is not None:
                record = self.get_record(user_id)

        if record is None:
            raise NotRanked() if expect_present else UnknownId()
        return record
