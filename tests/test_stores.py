from __future__ import annotations

import threading
import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
import requests
from sqlalchemy.exc import OperationalError

from app.db import session as db_session
from app.db.session import make_engine, make_session_factory
from app.services import stores as stores_module
from app.errors import TierReadError, TierWriteError
from app.ml.recommendations.engine import RuleBasedRecommender
from app.schemas.screening import (
    AssessmentInput,
    RecommendationSource,
    ScreeningRecord,
    StorageTier,
)
from app.services.stores import MemoryStore, RemoteStore, SqlStore


BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_record(name="Aria", minutes=0, inp=None, emotion=None) -> ScreeningRecord:
    inp = inp or AssessmentInput(
        child_name=name, age=4, eye_contact=2, speech_level=3, social_response=2, sensory_reactions=4
    )
    return ScreeningRecord(
        id=uuid.uuid4().hex,
        input=inp,
        emotion=emotion,
        recommendation=RuleBasedRecommender().generate(inp),
        source=RecommendationSource.RULE_BASED,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


def _response(status=200, body=None, reason="OK"):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    resp.reason = reason
    resp.json.return_value = body
    if resp.ok:
        resp.raise_for_status.return_value = None
    else:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} {reason}")
    return resp


class TestSqlStore:
    def test_save_then_get_round_trips_fields(self, sql_store, happy_emotion):
        record = make_record(emotion=happy_emotion)
        saved = sql_store.save(record)
        loaded = sql_store.get(record.id)

        assert saved.tier == StorageTier.PRIMARY_DB
        assert loaded.tier == StorageTier.PRIMARY_DB
        assert loaded.input == record.input
        assert loaded.emotion == record.emotion
        assert loaded.recommendation == record.recommendation
        assert loaded.created_at == record.created_at

    def test_get_unknown_id_is_none(self, sql_store):
        assert sql_store.get("missing") is None

    def test_list_is_newest_first_and_limited(self, sql_store):
        for i in range(5):
            sql_store.save(make_record(name=f"Child {i}", minutes=i))

        records = sql_store.list(limit=3)
        assert [r.input.child_name for r in records] == ["Child 4", "Child 3", "Child 2"]

    def test_name_filter_is_case_insensitive_substring(self, sql_store):
        sql_store.save(make_record(name="Aria Lopez"))
        sql_store.save(make_record(name="Ben"))
        sql_store.save(make_record(name="MARIA"))

        names = sorted(r.input.child_name for r in sql_store.list(name_filter="aria"))
        assert names == ["Aria Lopez", "MARIA"]

    def test_constraint_violation_is_a_write_error(self, sql_store):
        bad_input = AssessmentInput.model_construct(
            child_name="Aria", age=30, eye_contact=2, speech_level=2, social_response=2, sensory_reactions=2
        )
        with pytest.raises(TierWriteError):
            sql_store.save(make_record(inp=bad_input))

    def test_missing_schema_raises_tier_errors(self):
        store = SqlStore(make_session_factory(make_engine("sqlite://")))  # no init_db
        with pytest.raises(TierWriteError):
            store.save(make_record())
        with pytest.raises(TierReadError):
            store.list()

    def test_schema_is_created_lazily_once_the_database_recovers(self, monkeypatch):
        engine = make_engine("sqlite://")
        attempts = []

        def flaky_init_db(eng):
            attempts.append(eng)
            if len(attempts) == 1:
                raise OperationalError("CREATE TABLE screenings", {}, Exception("database is locked"))
            db_session.init_db(eng)

        monkeypatch.setattr(stores_module, "init_db", flaky_init_db)
        store = SqlStore(make_session_factory(engine), engine=engine)

        with pytest.raises(TierWriteError):
            store.save(make_record())
        record = store.save(make_record())

        assert store.get(record.id).id == record.id
        store.list()
        assert len(attempts) == 2
        engine.dispose()


class TestRemoteStore:
    def _store(self, session) -> RemoteStore:
        return RemoteStore("https://storage.example/api/screenings/", "secret", timeout_seconds=2.5, session=session)

    def test_save_posts_record_and_adopts_remote_id(self):
        session = MagicMock()
        session.post.return_value = _response(201, {"id": "remote-42"})
        record = make_record()

        saved = self._store(session).save(record)

        assert saved.id == "remote-42"
        assert saved.tier == StorageTier.REMOTE_STORE
        assert saved.recommendation == record.recommendation
        args, kwargs = session.post.call_args
        assert args[0] == "https://storage.example/api/screenings"
        assert kwargs["json"]["input"]["childName"] == "Aria"
        assert "tier" not in kwargs["json"]
        assert kwargs["headers"]["Authorization"] == "Bearer secret"
        assert kwargs["headers"]["X-API-Key"] == "secret"
        assert kwargs["timeout"] == 2.5

    def test_non_success_status_is_write_error(self):
        session = MagicMock()
        session.post.return_value = _response(503, None, reason="Service Unavailable")
        with pytest.raises(TierWriteError, match="503"):
            self._store(session).save(make_record())

    def test_unreachable_is_write_error(self):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(TierWriteError):
            self._store(session).save(make_record())

    def test_list_parses_screenings_and_skips_malformed(self):
        older, newer = make_record(name="Aria", minutes=1), make_record(name="Arianna", minutes=2)
        items = [older.model_dump(mode="json", by_alias=True), {"id": "junk"}, newer.model_dump(mode="json", by_alias=True)]
        session = MagicMock()
        session.get.return_value = _response(200, {"screenings": items})

        records = self._store(session).list(limit=10, name_filter="aria")

        assert [r.id for r in records] == [newer.id, older.id]
        assert all(r.tier == StorageTier.REMOTE_STORE for r in records)
        assert session.get.call_args.kwargs["params"] == {"limit": 10, "childName": "aria"}

    def test_list_failure_is_read_error(self):
        session = MagicMock()
        session.get.return_value = _response(500, None, reason="Server Error")
        with pytest.raises(TierReadError):
            self._store(session).list()

    def test_get_404_is_absent(self):
        session = MagicMock()
        session.get.return_value = _response(404, None, reason="Not Found")
        assert self._store(session).get("abc") is None

    def test_get_unwraps_screening_key(self):
        record = make_record()
        session = MagicMock()
        session.get.return_value = _response(200, {"screening": record.model_dump(mode="json", by_alias=True)})

        loaded = self._store(session).get(record.id)

        assert loaded.id == record.id
        assert session.get.call_args.args[0].endswith(f"/screenings/{record.id}")


class TestMemoryStore:
    def test_list_is_newest_first_with_filter(self, memory_store):
        for name in ["Aria", "Ben", "Ariel"]:
            memory_store.save(make_record(name=name))

        assert [r.input.child_name for r in memory_store.list(name_filter="ari")] == ["Ariel", "Aria"]
        assert all(r.tier == StorageTier.MEMORY for r in memory_store.list())

    def test_cap_drops_oldest(self):
        store = MemoryStore(max_records=3)
        records = [store.save(make_record(name=f"Child {i}")) for i in range(5)]

        assert len(store) == 3
        assert store.get(records[0].id) is None
        assert store.get(records[4].id) is not None

    def test_snapshot_is_a_copy(self, memory_store):
        memory_store.save(make_record())
        snap = memory_store.snapshot()
        snap.clear()
        assert len(memory_store) == 1

    def test_concurrent_appends_are_not_lost(self):
        store = MemoryStore(max_records=10_000)
        template = make_record()

        def worker(n):
            for i in range(50):
                store.save(template.model_copy(update={"id": f"{n}-{i}"}))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        ids = [r.id for r in store.snapshot()]
        assert len(ids) == 400
        assert len(set(ids)) == 400
        # per-thread insertion order is preserved
        thread_zero = [i for i in ids if i.startswith("0-")]
        assert thread_zero == [f"0-{i}" for i in range(50)]
